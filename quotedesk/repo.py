from __future__ import annotations
from typing import List, Protocol
import json
import logging
import os

from quotedesk.classes.quote import QuoteRequest
from quotedesk.errors import StorageReadError, StorageWriteError

log = logging.getLogger("quotedesk.repo")


class RecordStore(Protocol):
    """Whole-collection persistence. The quote manager is the only writer."""

    def read_all(self, strict: bool = False) -> List[QuoteRequest]: ...

    def write_all(self, records: List[QuoteRequest]) -> None: ...


class MemoryStore:
    def __init__(self, records: List[QuoteRequest] | None = None):
        self.records: List[QuoteRequest] = list(records or [])

    def read_all(self, strict: bool = False) -> List[QuoteRequest]:
        return list(self.records)

    def write_all(self, records: List[QuoteRequest]) -> None:
        self.records = list(records)


class JsonFileStore:
    """All quotes as one JSON array on disk, rewritten in full on every mutation.

    There is no lock and no atomic rename: two concurrent writers can lose an
    update, and a crash mid-write can truncate the file.
    """

    def __init__(self, path: str):
        self.path = os.path.abspath(path)
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        if not os.path.exists(self.path):
            self.write_all([])

    def read_all(self, strict: bool = False) -> List[QuoteRequest]:
        """Load every record. Failures are logged and yield [] unless strict."""
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            if not isinstance(raw, list):
                raise ValueError(f"expected a JSON array, got {type(raw).__name__}")
            if not all(isinstance(item, dict) for item in raw):
                raise ValueError("expected every entry to be a JSON object")
            return [QuoteRequest.from_dict(item) for item in raw]
        except (OSError, ValueError, TypeError) as e:
            err = StorageReadError(f"Error reading quotes file {self.path}: {e}")
            log.error("%s", err, exc_info=True)
            if strict:
                raise err from e
            return []

    def write_all(self, records: List[QuoteRequest]) -> None:
        try:
            payload = json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False)
            with open(self.path, "w", encoding="utf-8") as f:
                f.write(payload)
        except (OSError, TypeError, ValueError) as e:
            log.error("Error writing quotes file %s: %s", self.path, e, exc_info=True)
            raise StorageWriteError(f"Error writing quotes file {self.path}: {e}") from e
