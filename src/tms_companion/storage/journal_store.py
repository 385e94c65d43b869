"""Append-only journal and session logs, one file per user."""

import fcntl
import json
from pathlib import Path

import structlog

from tms_companion.models.progress import JournalEntry, TreatmentSession
from tms_companion.storage.local_store import atomic_write_json

logger = structlog.get_logger()

JOURNAL_DIRNAME = "journal"


def _empty_log() -> dict:
    return {"journal_entries": [], "sessions": []}


class JournalStore:
    """Per-user logs. Reads of an unreadable log return [] and failed
    appends return None; the cause is logged and the log is left as is.
    """

    def __init__(self, data_dir: Path):
        self.root = Path(data_dir) / JOURNAL_DIRNAME
        self.root.mkdir(parents=True, exist_ok=True)

    def _log_path(self, user_id: str) -> Path:
        return self.root / f"{user_id}.json"

    def _read_log(self, user_id: str) -> dict:
        path = self._log_path(user_id)
        if not path.exists():
            return _empty_log()
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"journal log for {user_id} is not a JSON object")
        return data

    def _append(self, user_id: str, key: str, record: dict) -> bool:
        """Append a record under an exclusive lock, then replace the log atomically."""
        lock_path = self.root / f"{user_id}.json.lock"
        try:
            with open(lock_path, "w") as lock_file:
                fcntl.flock(lock_file, fcntl.LOCK_EX)

                data = self._read_log(user_id)
                data.setdefault(key, []).append(record)
                atomic_write_json(self._log_path(user_id), data)
        except (OSError, ValueError):
            logger.exception("journal_append_failed", user_id=user_id, log=key)
            return False
        return True

    def add_journal_entry(self, user_id: str, entry: JournalEntry) -> JournalEntry | None:
        if not self._append(user_id, "journal_entries", entry.model_dump(mode="json")):
            return None
        logger.info("journal_entry_stored", user_id=user_id, words=entry.word_count)
        return entry

    def get_journal_entries(self, user_id: str) -> list[JournalEntry]:
        """Entries in the order they were written."""
        try:
            records = self._read_log(user_id).get("journal_entries", [])
            return [JournalEntry.model_validate(e) for e in records]
        except (OSError, ValueError):
            logger.exception("journal_read_failed", user_id=user_id, log="journal_entries")
            return []

    def add_session(self, user_id: str, session: TreatmentSession) -> TreatmentSession | None:
        if not self._append(user_id, "sessions", session.model_dump(mode="json")):
            return None
        logger.info("session_stored", user_id=user_id, pain_level=session.pain_level)
        return session

    def get_sessions(self, user_id: str) -> list[TreatmentSession]:
        try:
            records = self._read_log(user_id).get("sessions", [])
            return [TreatmentSession.model_validate(s) for s in records]
        except (OSError, ValueError):
            logger.exception("journal_read_failed", user_id=user_id, log="sessions")
            return []

    def clear_user_data(self, user_id: str) -> None:
        self._log_path(user_id).unlink(missing_ok=True)
        (self.root / f"{user_id}.json.lock").unlink(missing_ok=True)
        logger.info("journal_cleared", user_id=user_id)
