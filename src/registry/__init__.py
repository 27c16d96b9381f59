"""
Signature registry: enrolled (name, descriptor) pairs and their JSON exchange format.
"""

from .codec import (
    EXPORT_FILENAME,
    SignatureRecord,
    dumps_signatures,
    export_to_file,
    import_from_file,
    load_signatures,
)
from .registry import SignatureRegistry

__all__ = [
    "EXPORT_FILENAME",
    "SignatureRecord",
    "SignatureRegistry",
    "dumps_signatures",
    "export_to_file",
    "import_from_file",
    "load_signatures",
]
