"""Tests for the educational curriculum."""

import pytest

from tms_companion.education.curriculum import (
    complete_module,
    get_module,
    get_modules_by_category,
    get_next_recommended_modules,
    get_prerequisite_modules,
    is_module_unlocked,
    load_modules,
    quiz_passed,
    score_quiz,
)
from tms_companion.models.education import ModuleCategory, SectionType
from tms_companion.models.progress import TreatmentProgress

MODULE_IDS = [
    "tms-intro",
    "mind-body-connection",
    "personality-and-tms",
    "emotional-exploration",
    "recovery-process",
]


class TestCurriculumContent:
    def test_five_modules_in_order(self):
        assert [m.id for m in load_modules()] == MODULE_IDS

    def test_prerequisites_reference_known_modules(self):
        for module in load_modules():
            for prerequisite in module.prerequisite_modules:
                assert get_module(prerequisite) is not None

    def test_intro_module_shape(self):
        intro = get_module("tms-intro")
        assert intro.prerequisite_modules == ()
        assert intro.sections[1].type == SectionType.QUOTE
        assert len(intro.key_takeaways) == 5
        assert intro.quiz.passing_score == 70
        assert len(intro.quiz.questions) == 3

    def test_unknown_module(self):
        assert get_module("advanced-rage") is None


class TestLookups:
    def test_by_category(self):
        fundamentals = get_modules_by_category(ModuleCategory.FUNDAMENTALS)
        assert [m.id for m in fundamentals] == ["tms-intro", "mind-body-connection"]
        assert [m.id for m in get_modules_by_category("recovery")] == ["recovery-process"]

    def test_prerequisite_modules(self):
        prerequisites = get_prerequisite_modules("recovery-process")
        assert [m.id for m in prerequisites] == [
            "tms-intro",
            "mind-body-connection",
            "emotional-exploration",
        ]
        assert get_prerequisite_modules("nope") == []

    def test_unlocking(self):
        personality = get_module("personality-and-tms")
        assert not is_module_unlocked(personality, ["tms-intro"])
        assert is_module_unlocked(personality, ["tms-intro", "mind-body-connection"])


class TestRecommendations:
    def test_new_learner_starts_with_intro(self):
        assert [m.id for m in get_next_recommended_modules([])] == ["tms-intro"]

    def test_follows_prerequisites(self):
        done = ["tms-intro", "mind-body-connection"]
        assert [m.id for m in get_next_recommended_modules(done)] == ["personality-and-tms"]

    def test_limit(self):
        assert get_next_recommended_modules(MODULE_IDS) == []
        assert len(get_next_recommended_modules([], limit=0)) == 0


class TestQuiz:
    @pytest.fixture
    def quiz(self):
        return get_module("tms-intro").quiz

    def test_all_correct(self, quiz):
        assert score_quiz(quiz, {"q1": 1, "q2": "false", "q3": 1}) == 100

    def test_answers_compare_loosely(self, quiz):
        assert score_quiz(quiz, {"q1": "1", "q2": "False", "q3": 1}) == 100

    def test_partial_and_missing(self, quiz):
        score = score_quiz(quiz, {"q1": 1, "q2": "true"})
        assert score == 33
        assert not quiz_passed(quiz, score)
        assert quiz_passed(quiz, 70)


class TestCompleteModule:
    def test_quiz_score_recorded(self):
        progress = TreatmentProgress(user_id="u")
        module = get_module("tms-intro")
        event = complete_module(progress, module, score=67, time_spent=12)
        assert event.module_id == "tms-intro"
        assert event.score == 67
        assert event.time_spent == 12
        reading = progress.reading_progress
        assert reading.comprehension_scores == {"tms-intro": 67}
        assert reading.completed_sections[0] == "what-is-tms"
        assert reading.current_section == "tms-intro"

    def test_module_without_quiz_scores_full(self):
        progress = TreatmentProgress(user_id="u")
        event = complete_module(progress, get_module("personality-and-tms"))
        assert event.score == 100

    def test_repeat_completion_merges(self):
        progress = TreatmentProgress(user_id="u")
        module = get_module("tms-intro")
        complete_module(progress, module, score=67)
        complete_module(progress, module, score=100)
        reading = progress.reading_progress
        assert reading.comprehension_scores == {"tms-intro": 100}
        assert len(reading.completed_sections) == len(module.sections)
