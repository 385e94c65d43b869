"""Tests for TMS assessment scoring."""

from datetime import datetime, timedelta

import pytest

from tms_companion.assessment.tms import (
    IncompleteProfileError,
    TMSScorer,
    round_half_up,
    score_medical,
    score_pain,
    score_personality,
    score_stress,
)
from tms_companion.models.profile import (
    Lifestyle,
    PainFrequency,
    PainHistory,
    PersonalInfo,
    PsychologicalProfile,
    UserProfile,
)

NOW = datetime(2024, 6, 1, 12, 0)


def make_profile(**overrides) -> UserProfile:
    profile = UserProfile(
        id="user-1",
        personal_info=PersonalInfo(
            name="Alex", age=40, occupation="Software manager", lifestyle=Lifestyle.ACTIVE
        ),
        psychological_profile=PsychologicalProfile(
            personality_type=["perfectionist", "people-pleaser"],
        ),
        pain_history=PainHistory(
            pain_locations=["lower back", "neck"],
            pain_intensity=7,
            pain_frequency=PainFrequency.INTERMITTENT,
            onset_date=NOW - timedelta(days=365),
            triggers=["stress at work"],
            previous_diagnoses=[],
        ),
    )
    return profile.model_copy(update=overrides)


def high_tms_profile() -> UserProfile:
    profile = make_profile()
    profile.psychological_profile = PsychologicalProfile(
        personality_type=[
            "perfectionist",
            "people-pleaser",
            "highly responsible",
            "goodist",
            "self-critical",
        ],
        coping_mechanisms=["workaholism", "perfectionism"],
        stress_factors=["work pressure", "perfectionism"],
        current_life_stressors=["divorce", "new job"],
        trauma_history=True,
    )
    profile.pain_history.previous_treatments = ["physio", "chiropractor", "injections"]
    return profile


class TestSubscores:
    def test_empty_profile_scores(self):
        assert score_personality(PsychologicalProfile()) == 0
        assert score_stress(PsychologicalProfile()) == 0
        assert score_pain(PainHistory()) == 0
        # No diagnoses on record counts toward TMS
        assert score_medical(PainHistory()) == 30

    def test_pain_subscore(self):
        pain = make_profile().pain_history
        # 2/4 locations * 30 + intermittent 25 + 1/4 triggers * 25 + intensity 10 + multi-site 10
        assert score_pain(pain) == pytest.approx(66.25)

    def test_personality_clamped_to_100(self):
        psych = PsychologicalProfile(
            personality_type=[
                "perfectionist",
                "people-pleaser",
                "highly responsible",
                "goodist",
                "self-critical",
                "achievement-oriented",
            ],
            coping_mechanisms=["workaholism", "people-pleasing", "perfectionism"],
        )
        assert score_personality(psych) == 100

    def test_stress_life_stressors_capped(self):
        psych = PsychologicalProfile(current_life_stressors=["a", "b", "c", "d", "e"])
        assert score_stress(psych) == 30

    def test_vague_diagnoses_fraction(self):
        pain = PainHistory(previous_diagnoses=["Chronic pain syndrome", "Herniated disc"])
        assert score_medical(pain) == pytest.approx(20)

    def test_many_treatments(self):
        pain = PainHistory(
            previous_treatments=["a", "b", "c"], previous_diagnoses=["muscle strain"]
        )
        assert score_medical(pain) == pytest.approx(70)


class TestLikelihood:
    def test_regression_fixture_is_high(self):
        likelihood = TMSScorer().calculate_tms_likelihood(high_tms_profile())
        assert likelihood >= 60
        assert likelihood == 73

    def test_moderate_profile(self):
        assert TMSScorer().calculate_tms_likelihood(make_profile()) == 35

    def test_bounds_on_extreme_profiles(self):
        scorer = TMSScorer()
        empty = UserProfile(id="empty")
        assert 0 <= scorer.calculate_tms_likelihood(empty) <= 100
        assert 0 <= scorer.calculate_tms_likelihood(high_tms_profile()) <= 100
        assert 0 <= scorer.calculate_sarno_compatibility(empty) <= 100

    def test_custom_weights(self):
        scorer = TMSScorer(weights={"personality": 1.0})
        assert scorer.calculate_tms_likelihood(make_profile()) == 30

    def test_zero_weights(self):
        assert TMSScorer(weights={"personality": 0}).calculate_tms_likelihood(make_profile()) == 0


class TestSarnoCompatibility:
    def test_typical_patient(self):
        # 20 age + 15 occupation + 15 active + 2/3*35 traits + 10 not constant + 10 stress trigger
        assert TMSScorer().calculate_sarno_compatibility(make_profile()) == 93

    def test_active_outranks_very_active(self):
        scorer = TMSScorer()
        profile = make_profile()
        active = scorer.calculate_sarno_compatibility(profile)
        profile.personal_info.lifestyle = Lifestyle.VERY_ACTIVE
        assert scorer.calculate_sarno_compatibility(profile) == active - 5

    def test_constant_pain_loses_bonus(self):
        profile = make_profile()
        profile.pain_history.pain_frequency = PainFrequency.CONSTANT
        assert TMSScorer().calculate_sarno_compatibility(profile) == 83


class TestRedFlags:
    def test_age_and_intensity(self):
        profile = make_profile()
        profile.personal_info.age = 75
        profile.pain_history.pain_intensity = 9
        flags = TMSScorer().identify_red_flags(profile, now=NOW)
        assert "Age over 70 - increased risk of serious conditions" in flags
        assert "Severe pain intensity - rule out serious pathology" in flags

    def test_no_flags_for_typical_profile(self):
        assert TMSScorer().identify_red_flags(make_profile(), now=NOW) == []

    def test_constant_severe_pain(self):
        profile = make_profile()
        profile.pain_history.pain_frequency = PainFrequency.CONSTANT
        flags = TMSScorer().identify_red_flags(profile, now=NOW)
        assert flags == ["Constant severe pain - requires medical evaluation"]

    def test_neurological_symptom_substring(self):
        profile = make_profile()
        profile.pain_history.primary_symptoms = ["Leg numbness"]
        flags = TMSScorer().identify_red_flags(profile, now=NOW)
        assert "Neurological symptoms present - medical clearance required" in flags

    def test_recent_severe_onset(self):
        profile = make_profile()
        profile.pain_history.onset_date = NOW - timedelta(days=10)
        profile.pain_history.pain_intensity = 8
        flags = TMSScorer().identify_red_flags(profile, now=NOW)
        assert "Recent onset of severe pain - rule out acute conditions" in flags

    def test_pure_and_order_stable(self):
        profile = make_profile()
        profile.personal_info.age = 80
        profile.pain_history.pain_intensity = 10
        profile.pain_history.pain_frequency = PainFrequency.CONSTANT
        scorer = TMSScorer()
        first = scorer.identify_red_flags(profile, now=NOW)
        assert first == scorer.identify_red_flags(profile, now=NOW)
        assert first[0].startswith("Age over 70")


class TestRecommendations:
    def test_high_tier_with_trait_extras(self):
        recs = TMSScorer().generate_recommendations(high_tms_profile())
        assert recs[0] == "High likelihood of TMS - begin education phase immediately"
        assert "Address perfectionist tendencies through cognitive work" in recs
        assert "Practice setting boundaries and expressing needs" in recs

    def test_low_tier(self):
        recs = TMSScorer().generate_recommendations(make_profile())
        assert recs[0] == "Lower likelihood of TMS - medical evaluation recommended"
        assert len(recs) == 5


class TestAssess:
    def test_incomplete_profile_rejected(self):
        with pytest.raises(IncompleteProfileError):
            TMSScorer().assess(UserProfile(id="new"))

    def test_incomplete_profile_is_value_error(self):
        assert issubclass(IncompleteProfileError, ValueError)

    def test_assess_result(self):
        profile = make_profile()
        result = TMSScorer().assess(profile, now=NOW)
        assert result.tms_likelihood == 35
        assert result.sarno_compatibility == 93
        assert result.red_flags == []
        assert result.assessment_date == NOW

    def test_assess_does_not_mutate_profile(self):
        profile = make_profile()
        TMSScorer().assess(profile, now=NOW)
        assert profile.tms_assessment is None

    def test_utc_onset_date_is_accepted(self):
        data = make_profile().model_dump(mode="json")
        data["pain_history"]["onset_date"] = "2024-01-01T00:00:00.000Z"
        profile = UserProfile.model_validate(data)
        assert profile.pain_history.onset_date.tzinfo is None
        result = TMSScorer().assess(profile, now=NOW)
        assert result.tms_likelihood == 35


class TestRounding:
    def test_half_up(self):
        assert round_half_up(34.5) == 35
        assert round_half_up(2.5) == 3
        assert round_half_up(2.49) == 2
