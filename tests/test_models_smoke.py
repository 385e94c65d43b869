"""Smoke tests for Pydantic models."""

from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from tms_companion.models.gamification import (
    GoalCounter,
    JournalEntryCreated,
    UserStats,
    WeeklyGoal,
    event_adapter,
)
from tms_companion.models.profile import (
    Lifestyle,
    PainFrequency,
    PainHistory,
    PersonalInfo,
    UserProfile,
)
from tms_companion.models.progress import (
    JournalEntry,
    ProgressMilestone,
    TreatmentProgress,
    TreatmentSession,
)
from tms_companion.rules.gamification import BADGES
from tms_companion.rules.safety import RED_FLAGS


class TestUserProfile:
    def test_defaults_are_incomplete(self):
        profile = UserProfile(id="u")
        assert profile.is_complete() is False
        assert profile.is_assessed is False

    def test_complete_profile(self):
        profile = UserProfile(
            id="u",
            personal_info=PersonalInfo(age=30, occupation="Nurse", lifestyle=Lifestyle.SEDENTARY),
            pain_history=PainHistory(
                pain_locations=["neck"],
                pain_intensity=3,
                pain_frequency=PainFrequency.CONSTANT,
                onset_date=datetime(2024, 1, 1),
            ),
        )
        assert profile.is_complete() is True

    def test_blank_occupation_is_incomplete(self):
        profile = UserProfile(
            id="u",
            personal_info=PersonalInfo(age=30, occupation="  ", lifestyle=Lifestyle.ACTIVE),
            pain_history=PainHistory(
                pain_locations=["neck"],
                pain_intensity=3,
                pain_frequency=PainFrequency.CONSTANT,
                onset_date=datetime(2024, 1, 1),
            ),
        )
        assert profile.is_complete() is False

    def test_intensity_bounds(self):
        with pytest.raises(ValidationError):
            PainHistory(pain_intensity=11)

    def test_lifestyle_values(self):
        assert PersonalInfo(lifestyle="very active").lifestyle == Lifestyle.VERY_ACTIVE


class TestTreatmentProgress:
    def test_pain_levels_sorted_by_date(self):
        start = datetime(2024, 1, 1)
        progress = TreatmentProgress(user_id="u", start_date=start)
        progress.add_session(TreatmentSession(date=start + timedelta(days=2), pain_level=3))
        progress.add_session(TreatmentSession(date=start, pain_level=7))
        assert progress.pain_levels == [7, 3]

    def test_weeks_since_start(self):
        progress = TreatmentProgress(user_id="u", start_date=datetime(2024, 1, 1))
        assert progress.weeks_since_start(datetime(2024, 1, 22)) == 3

    def test_append_helpers(self):
        progress = TreatmentProgress(user_id="u")
        progress.add_journal_entry(JournalEntry(response="one two three"))
        progress.add_milestone(ProgressMilestone(type="first_pain_free_day"))
        assert progress.journal_entries[0].word_count == 3
        assert progress.milestones[0].type == "first_pain_free_day"

    def test_reading_progress_merge(self):
        progress = TreatmentProgress(user_id="u")
        progress.update_reading_progress(completed_sections=["a", "b"], current_section="b")
        progress.update_reading_progress(completed_sections=["b", "c"])
        reading = progress.reading_progress
        assert reading.completed_sections == ["a", "b", "c"]
        assert reading.current_section == "b"

    def test_utc_session_dates_sort_with_local_ones(self):
        progress = TreatmentProgress(user_id="u", start_date=datetime(2024, 1, 1))
        progress.add_session(TreatmentSession(date=datetime(2024, 1, 3), pain_level=2))
        progress.add_session(TreatmentSession.model_validate({"date": "2024-01-01T00:00:00Z", "pain_level": 8}))
        assert progress.sessions[1].date.tzinfo is None
        assert progress.pain_levels == [8, 2]

    def test_session_pain_bounds(self):
        with pytest.raises(ValidationError):
            TreatmentSession(pain_level=0)


class TestCatalogsAreFrozen:
    def test_badge_is_immutable(self):
        with pytest.raises(ValidationError):
            BADGES[0].name = "changed"

    def test_red_flag_is_immutable(self):
        with pytest.raises(ValidationError):
            RED_FLAGS[0].severity = "low"


class TestGamificationModels:
    def test_default_streaks(self):
        stats = UserStats()
        assert set(stats.streaks) == {
            "daily_checkin",
            "journal_entry",
            "education",
            "pain_tracking",
            "overall",
        }

    def test_goal_counters(self):
        goal = WeeklyGoal(id="2024-W01", week="2024-W01")
        assert goal.goals.journal_entries.target == 5
        assert goal.goals.overall_engagement.target == 10
        assert GoalCounter(target=2, current=2).reached

    def test_event_union_rejects_unknown_tag(self):
        with pytest.raises(ValidationError):
            event_adapter.validate_python({"type": "NOT_AN_EVENT"})

    def test_event_union_round_trip(self):
        event = JournalEntryCreated(entry_id="e1", word_count=120)
        assert event_adapter.validate_python(event.model_dump()) == event
