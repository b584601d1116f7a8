"""Ledger of processed bookmark IDs and their outcomes.

State is stored as a JSON document (default data/processed.json):
    {
        "version": 1,
        "last_run": "2025-01-15T14:30:00+00:00",
        "processed": {
            "tweet_id": {
                "id": "tweet_id",
                "processed_at": "2025-01-15T14:29:58+00:00",
                "author": "alice",
                "destination": "instapaper",
                "action": "send_to_instapaper",
                "bookmark": {...}
            }
        }
    }

An ID is a key iff it has been processed (successfully or with an error)
and not since removed for reprocessing. The file is not locked; two
processes sharing one ledger file is unsupported.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

from .models import Bookmark, ProcessedEntry
from .parser import bookmark_to_dict, parse_bookmark

logger = logging.getLogger(__name__)

STATE_VERSION = 1
DEFAULT_MAX_AGE = timedelta(days=30)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProcessedLedger:
    def __init__(
        self,
        state_file: Path = Path("data/processed.json"),
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.state_file = state_file
        self._clock = clock
        self._entries: dict[str, ProcessedEntry] = {}
        self._last_run: datetime | None = None
        self._dirty = False
        self._load()

    def _load(self) -> None:
        """Load state from disk. A missing or corrupt file means an empty ledger."""
        if not self.state_file.exists():
            logger.info("No existing state found. Starting fresh.")
            return

        try:
            data = json.loads(self.state_file.read_text(encoding="utf-8"))
            processed = data.get("processed", {})
            last_run = data.get("last_run")
            if not isinstance(processed, dict):
                raise ValueError("'processed' is not an object")
        except (OSError, ValueError, AttributeError) as e:
            logger.warning(
                "Failed to load state file %s (%s). Starting with an empty ledger.",
                self.state_file,
                e,
            )
            return

        if last_run:
            try:
                self._last_run = datetime.fromisoformat(last_run)
            except (TypeError, ValueError):
                self._last_run = None

        for entry_id, raw in processed.items():
            try:
                self._entries[entry_id] = _entry_from_dict(entry_id, raw)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping unreadable ledger entry %s: %s", entry_id, e)

        logger.info("Loaded %d processed bookmark IDs from state", len(self._entries))

    def save(self) -> None:
        """Persist state to disk if anything changed since the last save."""
        if not self._dirty:
            return

        self.state_file.parent.mkdir(parents=True, exist_ok=True)
        self._last_run = self._clock()
        data = {
            "version": STATE_VERSION,
            "last_run": self._last_run.isoformat(),
            "processed": {
                entry_id: _entry_to_dict(entry)
                for entry_id, entry in self._entries.items()
            },
        }
        self.state_file.write_text(
            json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8"
        )
        self._dirty = False
        logger.info("State saved to %s", self.state_file)

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def count(self) -> int:
        return len(self._entries)

    @property
    def last_run(self) -> datetime | None:
        return self._last_run

    def is_processed(self, bookmark_id: str) -> bool:
        return bookmark_id in self._entries

    def get_entry(self, bookmark_id: str) -> ProcessedEntry | None:
        return self._entries.get(bookmark_id)

    def mark_processed(
        self,
        bookmark_id: str,
        *,
        author: str | None = None,
        destination: str | None = None,
        action: str | None = None,
        bookmark: Bookmark | None = None,
    ) -> ProcessedEntry:
        """Record a successful outcome, replacing any existing entry."""
        entry = ProcessedEntry(
            id=bookmark_id,
            processed_at=self._clock(),
            author=author,
            destination=destination,
            action=action,
            bookmark=bookmark,
        )
        self._entries[bookmark_id] = entry
        self._dirty = True
        return entry

    def mark_error(
        self,
        bookmark_id: str,
        error: str,
        *,
        author: str | None = None,
        destination: str | None = None,
        action: str | None = None,
        bookmark: Bookmark | None = None,
    ) -> ProcessedEntry:
        """Record a failed outcome, replacing any existing entry."""
        entry = ProcessedEntry(
            id=bookmark_id,
            processed_at=self._clock(),
            author=author,
            destination=destination,
            action=action,
            error=error,
            bookmark=bookmark,
        )
        self._entries[bookmark_id] = entry
        self._dirty = True
        return entry

    def remove_entry(self, bookmark_id: str) -> bool:
        """Remove an entry so the bookmark can be processed again."""
        if bookmark_id not in self._entries:
            return False
        del self._entries[bookmark_id]
        self._dirty = True
        return True

    def prune(self, max_age: timedelta = DEFAULT_MAX_AGE) -> int:
        """Drop entries whose own timestamp is older than now - max_age."""
        cutoff = self._clock() - max_age
        stale = [
            entry_id
            for entry_id, entry in self._entries.items()
            if entry.processed_at < cutoff
        ]
        for entry_id in stale:
            del self._entries[entry_id]
        if stale:
            self._dirty = True
        return len(stale)

    def get_processed_ids(self) -> set[str]:
        return set(self._entries)

    def filter_new(self, bookmarks: list[Bookmark]) -> list[Bookmark]:
        """Return only bookmarks not yet processed."""
        processed = self.get_processed_ids()
        new = [b for b in bookmarks if b.id not in processed]
        logger.info("Found %d new bookmarks out of %d total", len(new), len(bookmarks))
        return new

    def get_all_entries(self) -> list[ProcessedEntry]:
        """All entries, newest first. Ties keep insertion order."""
        return sorted(
            self._entries.values(), key=lambda e: e.processed_at, reverse=True
        )

    def get_recent_entries(self, limit: int = 10) -> list[ProcessedEntry]:
        return self.get_all_entries()[:limit]

    def get_entry_by_index(self, index: int) -> ProcessedEntry | None:
        """0 = most recent, 1 = second most recent, ...

        Re-sorts the whole ledger on every call; fine at this size.
        """
        if index < 0:
            return None
        entries = self.get_recent_entries(index + 1)
        return entries[index] if index < len(entries) else None


def _entry_to_dict(entry: ProcessedEntry) -> dict:
    data: dict = {"id": entry.id, "processed_at": entry.processed_at.isoformat()}
    for key in ("author", "destination", "action", "error"):
        value = getattr(entry, key)
        if value is not None:
            data[key] = value
    if entry.bookmark is not None:
        data["bookmark"] = bookmark_to_dict(entry.bookmark)
    return data


def _entry_from_dict(entry_id: str, raw: dict) -> ProcessedEntry:
    processed_at = datetime.fromisoformat(raw["processed_at"])
    if processed_at.tzinfo is None:
        processed_at = processed_at.replace(tzinfo=timezone.utc)

    bookmark = None
    if raw.get("bookmark"):
        try:
            bookmark = parse_bookmark(raw["bookmark"])
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.debug("Dropping unreadable cached bookmark %s: %s", entry_id, e)

    return ProcessedEntry(
        id=raw.get("id", entry_id),
        processed_at=processed_at,
        author=raw.get("author"),
        destination=raw.get("destination"),
        action=raw.get("action"),
        error=raw.get("error"),
        bookmark=bookmark,
    )
