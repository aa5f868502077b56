"""
Named saved quotes, kept in a single JSON file.

The file holds one key (``cfg.STORAGE_KEY``) whose value is the array
of saved-quote records. It is always read and written whole: updating
one quote is a read-modify-write of the full array. Failures at this
boundary are logged and reported as "nothing saved" rather than raised.
A file that cannot be read is never overwritten.
"""

from __future__ import annotations

import json
import logging
import os
import random
import string
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import config as cfg
from quote import QuoteInput, parse_quote

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


@dataclass
class SavedQuote:
    id: str
    name: str
    data: QuoteInput
    saved_at: str                # ISO-8601, UTC
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {"id": self.id, "name": self.name, "data": self.data.to_dict(), "savedAt": self.saved_at}
        if self.notes is not None:
            out["notes"] = self.notes
        return out

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "SavedQuote":
        return cls(
            id=str(raw["id"]),
            name=str(raw["name"]),
            data=parse_quote(raw["data"]),
            saved_at=str(raw["savedAt"]),
            notes=raw.get("notes"),
        )


def _new_id() -> str:
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"quote_{int(time.time() * 1000)}_{suffix}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _record_id(raw: Any) -> Optional[str]:
    return raw.get("id") if isinstance(raw, dict) else None


def default_store_path() -> Path:
    return Path(os.environ.get(cfg.STORE_PATH_ENV, cfg.DEFAULT_STORE_PATH))


class QuoteStore:
    """Saved quotes backed by one JSON file."""

    def __init__(self, path: str | os.PathLike | None = None) -> None:
        self.path = Path(path) if path is not None else default_store_path()

    # ── raw array access ─────────────────────────────────────────────

    def _read(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        with open(self.path, encoding="utf-8") as fh:
            doc = json.load(fh)
        records = doc.get(cfg.STORAGE_KEY, []) if isinstance(doc, dict) else None
        if not isinstance(records, list):
            raise ValueError(f"{self.path} does not hold a saved-quote array")
        return records

    def _write(self, records: List[Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        with open(tmp, "w", encoding="utf-8") as fh:
            json.dump({cfg.STORAGE_KEY: records}, fh, indent=2)
        os.replace(tmp, self.path)

    # ── public API ───────────────────────────────────────────────────

    def _records(self) -> Optional[List[Dict[str, Any]]]:
        """The raw array, or None if the file cannot be read."""
        try:
            return self._read()
        except (OSError, ValueError) as exc:
            logger.error("Failed to load saved quotes from %s: %s", self.path, exc)
            return None

    def load_all(self) -> List[SavedQuote]:
        """All readable saved quotes; ``[]`` if the file is missing or unreadable.

        A record that no longer parses is skipped here but left in the
        file, so later writes never drop it.
        """
        quotes = []
        for raw in self._records() or []:
            try:
                quotes.append(SavedQuote.from_dict(raw))
            except (ValueError, KeyError, TypeError) as exc:
                logger.warning("Skipping unreadable saved quote %r: %s", _record_id(raw), exc)
        return quotes

    def get(self, quote_id: str) -> Optional[SavedQuote]:
        for q in self.load_all():
            if q.id == quote_id:
                return q
        return None

    def save(self, name: str, data: QuoteInput, notes: Optional[str] = None) -> Optional[SavedQuote]:
        """Append a new quote. Returns None if it could not be written."""
        records = self._records()
        if records is None:
            return None
        saved = SavedQuote(id=_new_id(), name=name, data=data, saved_at=_now_iso(), notes=notes)
        try:
            self._write(records + [saved.to_dict()])
        except OSError as exc:
            logger.error("Failed to save quote %r: %s", name, exc)
            return None
        logger.info("Saved quote %s (%s)", saved.id, name)
        return saved

    def update(
        self,
        quote_id: str,
        name: Optional[str] = None,
        data: Optional[QuoteInput] = None,
        notes: Optional[str] = None,
    ) -> bool:
        """Replace the given fields of one quote; id and savedAt never change."""
        records = self._records()
        if records is None:
            return False
        for raw in records:
            if _record_id(raw) == quote_id:
                break
        else:
            return False

        if name is not None:
            raw["name"] = name
        if data is not None:
            raw["data"] = data.to_dict()
        if notes is not None:
            raw["notes"] = notes
        try:
            self._write(records)
        except OSError as exc:
            logger.error("Failed to update quote %s: %s", quote_id, exc)
            return False
        return True

    def delete(self, quote_id: str) -> bool:
        records = self._records()
        if records is None:
            return False
        remaining = [r for r in records if _record_id(r) != quote_id]
        try:
            self._write(remaining)
        except OSError as exc:
            logger.error("Failed to delete quote %s: %s", quote_id, exc)
            return False
        return True
