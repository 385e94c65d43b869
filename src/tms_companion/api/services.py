"""Engines and stores shared by the HTTP routes."""

import functools
import random
from dataclasses import dataclass

import structlog

from tms_companion.assessment.tms import TMSScorer
from tms_companion.config import Settings, get_settings
from tms_companion.conversation.knowledge import load_knowledge_base
from tms_companion.conversation.responder import VirtualSarno
from tms_companion.gamification.engine import GamificationEngine
from tms_companion.models.progress import TreatmentProgress
from tms_companion.rules.safety import CLINICAL_GUIDELINES
from tms_companion.safety.monitor import SafetyMonitor
from tms_companion.storage.journal_store import JournalStore
from tms_companion.storage.local_store import LocalStore

logger = structlog.get_logger()


@dataclass
class AppServices:
    settings: Settings
    store: LocalStore
    journal: JournalStore
    scorer: TMSScorer
    safety: SafetyMonitor
    gamification: GamificationEngine
    counselor: VirtualSarno

    def progress(self) -> TreatmentProgress:
        """Stored treatment progress, or a fresh record for the local user."""
        return self.store.get_treatment_progress() or TreatmentProgress(
            user_id=self.settings.user_id
        )

    def persist_safety(self) -> bool:
        return self.store.save_safety_profile(self.safety.get_safety_profile())

    def persist_stats(self) -> bool:
        return self.store.save_user_stats(self.gamification.get_stats())


def build_services(settings: Settings) -> AppServices:
    """Wire engines to the local store, resuming any persisted state."""
    store = LocalStore(settings.data_dir)
    guidelines = CLINICAL_GUIDELINES.model_copy(
        update={"max_duration_weeks": settings.max_treatment_weeks}
    )
    safety = SafetyMonitor(
        settings.user_id,
        profile=store.get_safety_profile(),
        guidelines=guidelines,
        worsening_threshold=settings.worsening_threshold,
    )
    counselor = VirtualSarno(
        load_knowledge_base(),
        safety_monitor=safety,
        rng=random.Random(settings.chat_seed),
    )
    logger.info("services_ready", user_id=settings.user_id, data_dir=str(settings.data_dir))
    return AppServices(
        settings=settings,
        store=store,
        journal=JournalStore(settings.data_dir),
        scorer=TMSScorer(),
        safety=safety,
        gamification=GamificationEngine(stats=store.get_user_stats()),
        counselor=counselor,
    )


@functools.lru_cache
def get_services() -> AppServices:
    """FastAPI dependency; overridden in tests."""
    return build_services(get_settings())
