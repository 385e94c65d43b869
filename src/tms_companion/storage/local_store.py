"""Single-user document store (JSON + fcntl.flock + atomic write)."""

import fcntl
import json
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import TypeVar

import structlog
from pydantic import BaseModel

from tms_companion.models.gamification import UserStats
from tms_companion.models.profile import UserProfile
from tms_companion.models.progress import TreatmentProgress
from tms_companion.models.safety import UserSafetyProfile

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)

PROFILE_FILENAME = "user_profile.json"
PROGRESS_FILENAME = "treatment_progress.json"
STATS_FILENAME = "user_stats.json"
SAFETY_FILENAME = "safety_profile.json"

DOCUMENTS = (PROFILE_FILENAME, PROGRESS_FILENAME, STATS_FILENAME, SAFETY_FILENAME)


def atomic_write_json(path: Path, data: dict) -> None:
    """Write JSON beside the target and swap it in; a failed dump leaves no temp file."""
    with tempfile.NamedTemporaryFile(
        "w", dir=path.parent, delete=False, suffix=".json", encoding="utf-8"
    ) as tmp:
        try:
            json.dump(data, tmp, indent=2)
        except BaseException:
            tmp.close()
            os.unlink(tmp.name)
            raise
    os.replace(tmp.name, path)


class LocalStore:
    """Profile, progress, stats and safety documents under one directory.

    Failures never propagate: reads return None and writes return False,
    with the cause logged.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, filename: str) -> Path:
        return self.data_dir / filename

    def _read(self, filename: str) -> dict | None:
        path = self._path(filename)
        if not path.exists():
            return None
        with open(path, encoding="utf-8") as f:
            fcntl.flock(f, fcntl.LOCK_SH)
            try:
                return json.load(f)
            finally:
                fcntl.flock(f, fcntl.LOCK_UN)

    def _write(self, filename: str, data: dict) -> None:
        atomic_write_json(self._path(filename), data)

    def _load(self, filename: str, model: type[ModelT]) -> ModelT | None:
        try:
            data = self._read(filename)
            return model.model_validate(data) if data is not None else None
        except (OSError, ValueError):
            logger.exception("document_load_failed", document=filename)
            return None

    def _save(self, filename: str, document: BaseModel) -> bool:
        try:
            self._write(filename, document.model_dump(mode="json"))
        except (OSError, ValueError):
            logger.exception("document_save_failed", document=filename)
            return False
        logger.debug("document_saved", document=filename)
        return True

    # Documents ---------------------------------------------------------

    def save_user_profile(self, profile: UserProfile) -> bool:
        return self._save(PROFILE_FILENAME, profile)

    def get_user_profile(self) -> UserProfile | None:
        return self._load(PROFILE_FILENAME, UserProfile)

    def save_treatment_progress(self, progress: TreatmentProgress) -> bool:
        return self._save(PROGRESS_FILENAME, progress)

    def get_treatment_progress(self) -> TreatmentProgress | None:
        return self._load(PROGRESS_FILENAME, TreatmentProgress)

    def save_user_stats(self, stats: UserStats) -> bool:
        return self._save(STATS_FILENAME, stats)

    def get_user_stats(self) -> UserStats | None:
        return self._load(STATS_FILENAME, UserStats)

    def save_safety_profile(self, profile: UserSafetyProfile) -> bool:
        return self._save(SAFETY_FILENAME, profile)

    def get_safety_profile(self) -> UserSafetyProfile | None:
        return self._load(SAFETY_FILENAME, UserSafetyProfile)

    # Backup ------------------------------------------------------------

    def export_data(self) -> str:
        """Profile and progress as a JSON bundle stamped with the export date."""
        profile = self.get_user_profile()
        progress = self.get_treatment_progress()
        bundle = {
            "profile": profile.model_dump(mode="json") if profile else None,
            "progress": progress.model_dump(mode="json") if progress else None,
            "export_date": datetime.now().isoformat(),
        }
        return json.dumps(bundle, indent=2)

    def import_data(self, payload: str) -> bool:
        """Restore a bundle produced by export_data.

        Nothing is written unless every present part validates.
        """
        try:
            bundle = json.loads(payload)
            if not isinstance(bundle, dict):
                raise ValueError("export bundle must be a JSON object")
            profile = (
                UserProfile.model_validate(bundle["profile"]) if bundle.get("profile") else None
            )
            progress = (
                TreatmentProgress.model_validate(bundle["progress"])
                if bundle.get("progress")
                else None
            )
        except ValueError:
            logger.exception("import_rejected")
            return False

        ok = True
        if profile is not None:
            ok = self.save_user_profile(profile) and ok
        if progress is not None:
            ok = self.save_treatment_progress(progress) and ok
        logger.info("data_imported", profile=profile is not None, progress=progress is not None)
        return ok

    def clear_all_data(self) -> bool:
        try:
            for filename in DOCUMENTS:
                self._path(filename).unlink(missing_ok=True)
        except OSError:
            logger.exception("clear_data_failed")
            return False
        logger.info("data_cleared", data_dir=str(self.data_dir))
        return True
