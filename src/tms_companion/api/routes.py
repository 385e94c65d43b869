"""REST API routes for the local companion UI."""

import json
import uuid
from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends, HTTPException, Response
from pydantic import BaseModel, Field

from tms_companion.api.services import AppServices, get_services
from tms_companion.assessment.tms import IncompleteProfileError
from tms_companion.education import curriculum
from tms_companion.models.conversation import ConversationContext, SarnoResponse
from tms_companion.models.education import EducationalModule
from tms_companion.models.gamification import (
    AssessmentCompleted,
    EventResult,
    GamificationEvent,
    JournalEntryCreated,
    LevelProgress,
    PainLevelLogged,
    UserStats,
)
from tms_companion.models.profile import TMSAssessmentResult, UserProfile
from tms_companion.models.progress import JournalEntry, TreatmentPhase, TreatmentSession
from tms_companion.models.safety import (
    CompletedSafetyCheck,
    Disclaimer,
    EmergencyStatus,
    MedicalClearance,
    SafetyAlert,
    UserSafetyProfile,
)
from tms_companion.rules.safety import PRE_ASSESSMENT_SCREENING

logger = structlog.get_logger()
router = APIRouter(prefix="/api")


class ScreeningRequest(BaseModel):
    check_id: str = PRE_ASSESSMENT_SCREENING
    responses: dict[str, Any] = Field(default_factory=dict)


class ScreeningResponse(BaseModel):
    check: CompletedSafetyCheck
    red_flags: list[str]
    emergency: EmergencyStatus


class MonitorRequest(BaseModel):
    pain_levels: list[int] = Field(default_factory=list)
    symptom_changes: list[str] = Field(default_factory=list)


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)
    session_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    user_name: str | None = None


class FlagAcknowledgement(BaseModel):
    medical_consultation_sought: bool | None = None


class StatsResponse(BaseModel):
    stats: UserStats
    level_progress: LevelProgress


class ModuleSummary(BaseModel):
    id: str
    title: str
    category: str
    difficulty: str
    estimated_read_time: int
    unlocked: bool
    completed: bool


class ModuleCompletion(BaseModel):
    answers: dict[str, str | int] = Field(default_factory=dict)
    time_spent: float = Field(default=0, ge=0)


class ModuleCompletionResult(BaseModel):
    score: int
    passed: bool
    reward: EventResult | None = None


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


# Assessment ------------------------------------------------------------


@router.post("/assessment")
async def run_assessment(
    profile: UserProfile, services: AppServices = Depends(get_services)
) -> TMSAssessmentResult:
    try:
        result = services.scorer.assess(profile)
    except IncompleteProfileError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    profile.tms_assessment = result
    services.store.save_user_profile(profile)

    progress = services.progress()
    if progress.current_phase == TreatmentPhase.ASSESSMENT and services.safety.may_begin_education(
        profile
    ):
        progress.current_phase = TreatmentPhase.EDUCATION
        services.store.save_treatment_progress(progress)
        logger.info("treatment_phase_advanced", phase=progress.current_phase)

    services.gamification.process_event(
        AssessmentCompleted(assessment_type="tms", score=result.tms_likelihood)
    )
    services.persist_stats()
    return result


# Safety ----------------------------------------------------------------


@router.post("/safety/screening")
async def safety_screening(
    request: ScreeningRequest, services: AppServices = Depends(get_services)
) -> ScreeningResponse:
    completed = services.safety.complete_safety_check(request.check_id, request.responses)
    if completed is None:
        raise HTTPException(status_code=404, detail="Unknown safety check")
    flags = services.safety.get_safety_profile().red_flags_triggered
    emergency = services.safety.evaluate_emergency_status([], request.responses)
    services.persist_safety()
    return ScreeningResponse(
        check=completed,
        red_flags=[rf.flag_id for rf in flags],
        emergency=emergency,
    )


@router.post("/safety/monitor")
async def safety_monitor(
    request: MonitorRequest, services: AppServices = Depends(get_services)
) -> list[SafetyAlert]:
    progress = services.progress()
    pain_levels = request.pain_levels or progress.pain_levels
    return services.safety.monitor_ongoing_symptoms(
        pain_levels, request.symptom_changes, progress
    )


@router.get("/safety/recommendations")
async def safety_recommendations(services: AppServices = Depends(get_services)) -> list[str]:
    profile = services.store.get_user_profile()
    if profile is None:
        raise HTTPException(status_code=404, detail="No profile saved")
    return services.safety.generate_safety_recommendations(profile, services.progress())


@router.post("/safety/red-flags/{flag_id}/acknowledge")
async def acknowledge_red_flag(
    flag_id: str,
    request: FlagAcknowledgement | None = None,
    services: AppServices = Depends(get_services),
) -> UserSafetyProfile:
    sought = request.medical_consultation_sought if request else None
    if not services.safety.acknowledge_red_flag(flag_id, sought):
        raise HTTPException(status_code=404, detail="Red flag not triggered")
    services.persist_safety()
    return services.safety.get_safety_profile()


@router.get("/safety/disclaimers")
async def pending_disclaimers(
    page: str | None = None, services: AppServices = Depends(get_services)
) -> list[Disclaimer]:
    return services.safety.pending_disclaimers(page)


@router.post("/safety/disclaimers/{disclaimer_id}/acknowledge")
async def acknowledge_disclaimer(
    disclaimer_id: str, services: AppServices = Depends(get_services)
) -> UserSafetyProfile:
    if not any(d.id == disclaimer_id for d in services.safety.disclaimers):
        raise HTTPException(status_code=404, detail="Unknown disclaimer")
    services.safety.acknowledge_disclaimer(disclaimer_id)
    services.persist_safety()
    return services.safety.get_safety_profile()


@router.post("/safety/clearance")
async def record_medical_clearance(
    clearance: MedicalClearance, services: AppServices = Depends(get_services)
) -> dict:
    services.safety.set_medical_clearance(clearance)
    services.persist_safety()
    return {"valid": services.safety.has_valid_medical_clearance()}


# Gamification ----------------------------------------------------------


@router.post("/gamification/events")
async def gamification_event(
    event: GamificationEvent = Body(...), services: AppServices = Depends(get_services)
) -> EventResult:
    result = services.gamification.process_event(event)
    services.persist_stats()
    return result


@router.get("/gamification/stats")
async def gamification_stats(services: AppServices = Depends(get_services)) -> StatsResponse:
    return StatsResponse(
        stats=services.gamification.get_stats(),
        level_progress=services.gamification.get_progress_to_next_level(),
    )


# Journal and sessions --------------------------------------------------


@router.post("/journal")
async def add_journal_entry(
    entry: JournalEntry, breakthrough: bool = False, services: AppServices = Depends(get_services)
) -> EventResult:
    user_id = services.settings.user_id
    services.journal.add_journal_entry(user_id, entry)
    progress = services.progress()
    progress.add_journal_entry(entry)
    services.store.save_treatment_progress(progress)

    result = services.gamification.process_event(
        JournalEntryCreated(
            entry_id=uuid.uuid4().hex[:12],
            word_count=entry.word_count,
            breakthrough=breakthrough,
        )
    )
    services.persist_stats()
    return result


@router.get("/journal")
async def list_journal_entries(services: AppServices = Depends(get_services)) -> list[JournalEntry]:
    return services.journal.get_journal_entries(services.settings.user_id)


@router.post("/sessions")
async def log_session(
    session: TreatmentSession, services: AppServices = Depends(get_services)
) -> EventResult:
    """Log a pain check-in; a lower level than the last session counts as improvement."""
    user_id = services.settings.user_id
    progress = services.progress()
    previous = progress.pain_levels
    services.journal.add_session(user_id, session)
    progress.add_session(session)
    services.store.save_treatment_progress(progress)

    improvement = bool(previous) and session.pain_level < previous[-1]
    result = services.gamification.process_event(
        PainLevelLogged(level=session.pain_level, improvement=improvement)
    )
    services.persist_stats()
    return result


# Counselor -------------------------------------------------------------


@router.post("/chat")
async def chat(request: ChatRequest, services: AppServices = Depends(get_services)) -> SarnoResponse:
    progress = services.progress()
    context = ConversationContext(
        user_id=services.settings.user_id,
        session_id=request.session_id,
        current_phase=progress.current_phase,
        user_name=request.user_name,
        conversation_history=services.counselor.get_conversation_history(request.session_id),
    )
    response = await services.counselor.generate_response(request.message, context)
    if response.red_flags:
        services.persist_safety()
    return response


# Education -------------------------------------------------------------


def _completed_modules(services: AppServices) -> list[str]:
    return list(services.progress().reading_progress.comprehension_scores)


@router.get("/education/modules")
async def list_modules(services: AppServices = Depends(get_services)) -> list[ModuleSummary]:
    completed = _completed_modules(services)
    return [
        ModuleSummary(
            id=m.id,
            title=m.title,
            category=m.category,
            difficulty=m.difficulty,
            estimated_read_time=m.estimated_read_time,
            unlocked=curriculum.is_module_unlocked(m, completed),
            completed=m.id in completed,
        )
        for m in curriculum.load_modules()
    ]


@router.get("/education/modules/{module_id}")
async def get_module(module_id: str) -> EducationalModule:
    module = curriculum.get_module(module_id)
    if module is None:
        raise HTTPException(status_code=404, detail="Module not found")
    return module


@router.get("/education/recommended")
async def recommended_modules(
    services: AppServices = Depends(get_services),
) -> list[EducationalModule]:
    return curriculum.get_next_recommended_modules(_completed_modules(services))


@router.post("/education/modules/{module_id}/complete")
async def complete_module(
    module_id: str,
    completion: ModuleCompletion,
    services: AppServices = Depends(get_services),
) -> ModuleCompletionResult:
    """Grade the quiz and record the module.

    A failed quiz records nothing; a module already completed keeps its
    stored score and earns no further reward.
    """
    module = curriculum.get_module(module_id)
    if module is None:
        raise HTTPException(status_code=404, detail="Module not found")
    scores = services.progress().reading_progress.comprehension_scores
    if module.id in scores:
        return ModuleCompletionResult(score=scores[module.id], passed=True)
    if not curriculum.is_module_unlocked(module, list(scores)):
        raise HTTPException(status_code=409, detail="Prerequisite modules not completed")

    score = None
    if module.quiz is not None:
        score = curriculum.score_quiz(module.quiz, completion.answers)
        if not curriculum.quiz_passed(module.quiz, score):
            return ModuleCompletionResult(score=score, passed=False)

    progress = services.progress()
    event = curriculum.complete_module(progress, module, score, completion.time_spent)
    services.store.save_treatment_progress(progress)
    reward = services.gamification.process_event(event)
    services.persist_stats()
    return ModuleCompletionResult(score=event.score, passed=True, reward=reward)


# Backup ----------------------------------------------------------------


@router.get("/export")
async def export_data(services: AppServices = Depends(get_services)) -> Response:
    return Response(content=services.store.export_data(), media_type="application/json")


@router.post("/import")
async def import_data(
    bundle: dict[str, Any] = Body(...), services: AppServices = Depends(get_services)
) -> dict:
    if not services.store.import_data(json.dumps(bundle)):
        raise HTTPException(status_code=400, detail="Invalid export bundle")
    return {"status": "imported"}
