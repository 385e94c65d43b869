"""Educational curriculum: module lookup, unlock rules and quiz grading."""

from collections.abc import Iterable, Mapping
from functools import lru_cache

import structlog

from tms_companion.assessment.tms import round_half_up
from tms_companion.config import load_content
from tms_companion.models.education import EducationalModule, ModuleCategory, Quiz
from tms_companion.models.gamification import EducationModuleCompleted
from tms_companion.models.progress import TreatmentProgress

logger = structlog.get_logger()


@lru_cache(maxsize=1)
def load_modules() -> tuple[EducationalModule, ...]:
    """Curriculum modules in teaching order."""
    raw = load_content("education")
    return tuple(EducationalModule.model_validate(m) for m in raw.get("modules", []))


def _modules(modules: tuple[EducationalModule, ...] | None) -> tuple[EducationalModule, ...]:
    return load_modules() if modules is None else modules


def get_module(
    module_id: str, modules: tuple[EducationalModule, ...] | None = None
) -> EducationalModule | None:
    return next((m for m in _modules(modules) if m.id == module_id), None)


def get_modules_by_category(
    category: ModuleCategory | str, modules: tuple[EducationalModule, ...] | None = None
) -> list[EducationalModule]:
    return [m for m in _modules(modules) if m.category == category]


def get_prerequisite_modules(
    module_id: str, modules: tuple[EducationalModule, ...] | None = None
) -> list[EducationalModule]:
    """Modules that must be completed before ``module_id``; unknown ids are skipped."""
    module = get_module(module_id, modules)
    if module is None:
        return []
    found = (get_module(p, modules) for p in module.prerequisite_modules)
    return [m for m in found if m is not None]


def is_module_unlocked(module: EducationalModule, completed: Iterable[str]) -> bool:
    done = set(completed)
    return all(p in done for p in module.prerequisite_modules)


def get_next_recommended_modules(
    completed: Iterable[str],
    limit: int = 3,
    modules: tuple[EducationalModule, ...] | None = None,
) -> list[EducationalModule]:
    """Incomplete modules whose prerequisites are all done, in curriculum order."""
    done = set(completed)
    available = [
        m for m in _modules(modules) if m.id not in done and is_module_unlocked(m, done)
    ]
    return available[:limit]


def _answer_matches(given: str | int, expected: str | int) -> bool:
    return str(given).strip().lower() == str(expected).strip().lower()


def score_quiz(quiz: Quiz, answers: Mapping[str, str | int]) -> int:
    """Percentage of questions answered correctly.

    Unanswered questions count as wrong. An empty quiz scores 100.
    """
    if not quiz.questions:
        return 100
    correct = sum(
        1
        for q in quiz.questions
        if q.id in answers and _answer_matches(answers[q.id], q.correct_answer)
    )
    return round_half_up(correct / len(quiz.questions) * 100)


def quiz_passed(quiz: Quiz, score: int) -> bool:
    return score >= quiz.passing_score


def complete_module(
    progress: TreatmentProgress,
    module: EducationalModule,
    score: int | None = None,
    time_spent: float = 0,
) -> EducationModuleCompleted:
    """Record a finished module in reading progress.

    Modules without a quiz score 100 when no score is given. The returned
    event is ready for the gamification engine.
    """
    if score is None:
        score = 100 if module.quiz is None else 0
    progress.update_reading_progress(
        completed_sections=[s.id for s in module.sections],
        current_section=module.id,
        comprehension_scores={module.id: score},
    )
    logger.info("education_module_completed", module_id=module.id, score=score)
    return EducationModuleCompleted(module_id=module.id, score=score, time_spent=time_spent)
