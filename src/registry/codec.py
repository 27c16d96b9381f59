"""
Signature exchange format.

A signatures file is a JSON array, one object per signature, in registry order:

    [{"id": "...", "name": "...", "savedAt": "...", "descriptor": [0.1, ...]}]
"""

from __future__ import annotations

import json
import logging
import math
import os
from typing import TYPE_CHECKING, Any, Iterable, List, Union

import pydantic
from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, field_validator

from errors import ValidationError
from models.signature import FaceSignature

if TYPE_CHECKING:
    from .registry import SignatureRegistry

EXPORT_FILENAME = "face-signatures.json"


class SignatureRecord(BaseModel):
    """One exchanged signature object."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    name: str
    savedAt: str = Field(..., min_length=1)
    # JSON numbers only; numeric strings and booleans are rejected
    descriptor: List[Union[StrictFloat, StrictInt]] = Field(..., min_length=1)

    @field_validator("id", "savedAt")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v

    @field_validator("descriptor")
    @classmethod
    def _finite(cls, v: List[Union[float, int]]) -> List[float]:
        if not all(math.isfinite(x) for x in v):
            raise ValueError("descriptor values must be finite numbers")
        return [float(x) for x in v]

    def to_signature(self) -> FaceSignature:
        return FaceSignature(
            id=self.id,
            name=self.name,
            saved_at=self.savedAt,
            descriptor=tuple(self.descriptor),
        )


def parse_records(raw: Iterable[Any]) -> List[SignatureRecord]:
    """
    Validate every raw entry.

    Raises:
        ValidationError: naming the first malformed entry.
    """
    records: List[SignatureRecord] = []
    for index, item in enumerate(raw):
        if isinstance(item, SignatureRecord):
            records.append(item)
            continue
        if not isinstance(item, dict):
            raise ValidationError(f"entry {index}: expected an object, got {type(item).__name__}")
        try:
            records.append(SignatureRecord.model_validate(item))
        except pydantic.ValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ValidationError(f"entry {index}: {errors}") from e
    return records


def as_record_list(data: Any) -> List[Any]:
    """Entries of a parsed document; anything but a non-empty array yields []."""
    if not isinstance(data, list) or not data:
        return []
    return data


def dumps_signatures(signatures: Iterable[FaceSignature]) -> str:
    """Pretty-printed JSON array in the given order."""
    return json.dumps([s.to_record() for s in signatures], indent=2)


def load_signatures(text: str) -> List[Any]:
    """
    Parse a signatures file.

    Returns the raw entries, or an empty list when the document is not an array
    or is an empty array (import is then a no-op).

    Raises:
        ValidationError: The text is not valid JSON.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid face signatures file: {e}") from e
    return as_record_list(data)


def export_to_file(registry: "SignatureRegistry", path: str, allow_empty: bool = False) -> bool:
    """
    Write the registry to path. An empty registry is skipped unless allow_empty.

    Returns:
        True if a file was written.
    """
    if len(registry) == 0 and not allow_empty:
        logging.info("No signatures to export")
        return False

    out_dir = os.path.dirname(path)
    if out_dir and not os.path.exists(out_dir):
        os.makedirs(out_dir)
    with open(path, "w", encoding="utf-8") as f:
        f.write(dumps_signatures(registry.all()))
    logging.info(f"Exported {len(registry)} signatures to {path}")
    return True


def import_from_file(registry: "SignatureRegistry", path: str) -> int:
    """
    Append all signatures from a file to the registry (all-or-nothing).

    Returns:
        Number of signatures imported.
    """
    with open(path, "r", encoding="utf-8") as f:
        text = f.read()
    imported = registry.import_many(load_signatures(text))
    logging.info(f"Imported {len(imported)} signatures from {path}")
    return len(imported)
