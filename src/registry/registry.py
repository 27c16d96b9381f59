"""
In-memory registry of enrolled face signatures.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from errors import ValidationError
from models.signature import FaceSignature
from .codec import parse_records

SAVED_AT_FORMAT = "%m/%d/%Y, %I:%M:%S %p"


class SignatureRegistry:
    """
    Ordered store of FaceSignature entries.

    Insertion order is display and export order. Ids are unique; new ids are
    millisecond timestamps, bumped when needed so they strictly increase.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._signatures: List[FaceSignature] = []
        self._last_id = 0

    def __len__(self) -> int:
        return len(self._signatures)

    def __iter__(self) -> Iterator[FaceSignature]:
        return iter(tuple(self._signatures))

    def __contains__(self, signature_id: object) -> bool:
        return any(s.id == signature_id for s in self._signatures)

    def all(self) -> Tuple[FaceSignature, ...]:
        """Read-only snapshot in registry order."""
        return tuple(self._signatures)

    def export_records(self) -> List[Dict[str, Any]]:
        """Exchange-format dicts in registry order."""
        return [s.to_record() for s in self._signatures]

    def get(self, signature_id: str) -> Optional[FaceSignature]:
        for s in self._signatures:
            if s.id == signature_id:
                return s
        return None

    def _next_id(self) -> str:
        candidate = int(self._clock() * 1000)
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return str(candidate)

    def _observe_id(self, signature_id: str) -> None:
        """Keep generated ids ahead of numeric ids brought in by import."""
        if signature_id.isdigit():
            self._last_id = max(self._last_id, int(signature_id))

    def enroll(self, name: Optional[str], descriptor: Optional[Sequence[float]]) -> FaceSignature:
        """
        Add a signature for name.

        Raises:
            ValidationError: name is empty/whitespace, or no descriptor is available.
        """
        if name is None or not name.strip():
            raise ValidationError("A name is required to enroll a face")
        if descriptor is None or len(descriptor) == 0:
            raise ValidationError("No face descriptor available; position a face in the frame")

        signature = FaceSignature(
            id=self._next_id(),
            name=name.strip(),
            saved_at=datetime.fromtimestamp(self._clock()).strftime(SAVED_AT_FORMAT),
            descriptor=tuple(float(v) for v in descriptor),
        )
        self._signatures.append(signature)
        logging.info(f"Enrolled signature id={signature.id} name={signature.name!r}")
        return signature

    def remove(self, signature_id: str) -> Optional[FaceSignature]:
        """Delete by id. Returns the removed signature, or None if absent."""
        for i, s in enumerate(self._signatures):
            if s.id == signature_id:
                del self._signatures[i]
                logging.info(f"Removed signature id={signature_id} name={s.name!r}")
                return s
        return None

    def import_many(self, records: Iterable[Any]) -> List[FaceSignature]:
        """
        Append a batch of exchanged records.

        Every entry is validated first; any malformed entry or duplicate id
        rejects the whole batch and leaves the registry unchanged.
        """
        parsed = parse_records(records)
        seen = {s.id for s in self._signatures}
        batch: List[FaceSignature] = []
        for index, record in enumerate(parsed):
            if record.id in seen:
                raise ValidationError(f"entry {index}: duplicate signature id {record.id!r}")
            seen.add(record.id)
            batch.append(record.to_signature())

        self._signatures.extend(batch)
        for s in batch:
            self._observe_id(s.id)
        if batch:
            logging.info(f"Imported {len(batch)} signatures (total={len(self._signatures)})")
        return batch

    def clear(self) -> int:
        """Drop every signature. Returns how many were removed."""
        count = len(self._signatures)
        self._signatures = []
        if count:
            logging.info(f"Cleared {count} signatures")
        return count
