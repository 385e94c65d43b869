"""TMS likelihood and Sarno-compatibility scoring of a self-assessment profile."""

import math
from datetime import datetime, timedelta

import structlog

from tms_companion.models.profile import (
    Lifestyle,
    PainFrequency,
    PainHistory,
    PsychologicalProfile,
    TMSAssessmentResult,
    UserProfile,
)

logger = structlog.get_logger()

# Weight of each sub-score in the likelihood percentage
DEFAULT_WEIGHTS: dict[str, float] = {
    "personality": 0.4,
    "pain": 0.3,
    "stress": 0.2,
    "medical": 0.1,
}

HIGH_RISK_PERSONALITY = ("perfectionist", "people-pleaser", "highly responsible", "goodist")
REPRESSION_COPING = ("workaholism", "people-pleasing", "perfectionism")
TMS_PAIN_LOCATIONS = ("lower back", "upper back", "neck", "shoulders")
TMS_TRIGGERS = ("stress", "emotional events", "work pressure", "relationship issues")
HIGH_STRESS_FACTORS = ("work pressure", "relationship issues", "financial stress", "perfectionism")
VAGUE_DIAGNOSES = ("chronic pain", "fibromyalgia", "tension", "strain", "spasm")
STRESSFUL_OCCUPATIONS = ("executive", "manager", "doctor", "lawyer", "teacher", "healthcare")
SARNO_PERSONALITY = ("perfectionist", "people-pleaser", "highly responsible")
SERIOUS_SYMPTOMS = ("numbness", "weakness", "bowel", "bladder", "fever")

FREQUENCY_BONUS = {
    PainFrequency.INTERMITTENT: 25,
    PainFrequency.EPISODIC: 20,
    PainFrequency.CONSTANT: 10,
}

# "active" outranks "very active" in Sarno's typical patient profile
LIFESTYLE_BONUS = {
    Lifestyle.VERY_ACTIVE: 10,
    Lifestyle.ACTIVE: 15,
}

MAX_SUBSCORE = 100.0


class IncompleteProfileError(ValueError):
    """Raised when a profile is scored before the questionnaire is finished."""


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _fraction(matches: int, total: int) -> float:
    return matches / total if total else 0.0


def _contains_any(text: str, terms: tuple[str, ...]) -> bool:
    lowered = text.lower()
    return any(term in lowered for term in terms)


def score_personality(psych: PsychologicalProfile) -> float:
    traits = psych.personality_type
    score = _fraction(sum(1 for t in traits if t in HIGH_RISK_PERSONALITY), len(HIGH_RISK_PERSONALITY)) * 60
    if "self-critical" in traits:
        score += 15
    if "achievement-oriented" in traits:
        score += 10
    repressing = sum(1 for m in psych.coping_mechanisms if _contains_any(m, REPRESSION_COPING))
    score += _fraction(repressing, len(REPRESSION_COPING)) * 15
    return min(score, MAX_SUBSCORE)


def score_pain(pain: PainHistory) -> float:
    locations = pain.pain_locations
    score = _fraction(sum(1 for loc in locations if loc in TMS_PAIN_LOCATIONS), len(TMS_PAIN_LOCATIONS)) * 30
    if pain.pain_frequency is not None:
        score += FREQUENCY_BONUS.get(pain.pain_frequency, 0)
    stress_triggers = sum(1 for t in pain.triggers if _contains_any(t, TMS_TRIGGERS))
    score += _fraction(stress_triggers, len(TMS_TRIGGERS)) * 25
    if pain.pain_intensity >= 6:
        score += 10
    # TMS pain tends to migrate between sites
    if len(locations) > 1:
        score += 10
    return min(score, MAX_SUBSCORE)


def score_stress(psych: PsychologicalProfile) -> float:
    factors = sum(1 for f in psych.stress_factors if f in HIGH_STRESS_FACTORS)
    score = _fraction(factors, len(HIGH_STRESS_FACTORS)) * 50
    score += min(len(psych.current_life_stressors) * 10, 30)
    if psych.trauma_history:
        score += 20
    return min(score, MAX_SUBSCORE)


def score_medical(pain: PainHistory) -> float:
    score = 0.0
    if len(pain.previous_treatments) > 2:
        score += 30
    diagnoses = pain.previous_diagnoses
    vague = sum(1 for d in diagnoses if _contains_any(d, VAGUE_DIAGNOSES))
    score += vague / max(len(diagnoses), 1) * 40
    if not diagnoses:
        score += 30
    return min(score, MAX_SUBSCORE)


class TMSScorer:
    """Scores a user profile against Dr. Sarno's TMS criteria.

    All scoring methods are pure functions of the profile. ``assess`` is the
    only entry point that refuses incomplete profiles.

    Args:
        weights: Sub-score weights keyed by personality, pain, stress, medical.
    """

    def __init__(self, weights: dict[str, float] | None = None):
        self.weights = dict(weights or DEFAULT_WEIGHTS)

    def subscores(self, profile: UserProfile) -> dict[str, float]:
        psych = profile.psychological_profile
        pain = profile.pain_history
        return {
            "personality": score_personality(psych),
            "pain": score_pain(pain),
            "stress": score_stress(psych),
            "medical": score_medical(pain),
        }

    def calculate_tms_likelihood(self, profile: UserProfile) -> int:
        """Weighted sum of the four sub-scores as a 0-100 percentage."""
        score = 0.0
        max_score = 0.0
        for name, value in self.subscores(profile).items():
            weight = self.weights.get(name, 0.0)
            score += value * weight
            max_score += MAX_SUBSCORE * weight
        if max_score == 0:
            return 0
        return max(0, min(100, round_half_up(score / max_score * 100)))

    def calculate_sarno_compatibility(self, profile: UserProfile) -> int:
        info = profile.personal_info
        pain = profile.pain_history
        score = 0.0
        if 25 <= info.age <= 65:
            score += 20
        if _contains_any(info.occupation, STRESSFUL_OCCUPATIONS):
            score += 15
        if info.lifestyle is not None:
            score += LIFESTYLE_BONUS.get(info.lifestyle, 0)
        traits = profile.psychological_profile.personality_type
        matches = sum(1 for t in traits if t in SARNO_PERSONALITY)
        score += _fraction(matches, len(SARNO_PERSONALITY)) * 35
        if pain.pain_frequency != PainFrequency.CONSTANT:
            score += 10
        if any("stress" in t.lower() for t in pain.triggers):
            score += 10
        return max(0, min(100, round_half_up(score)))

    def identify_red_flags(self, profile: UserProfile, now: datetime | None = None) -> list[str]:
        now = now or datetime.now()
        info = profile.personal_info
        pain = profile.pain_history
        flags: list[str] = []

        if info.age > 70:
            flags.append("Age over 70 - increased risk of serious conditions")
        if pain.pain_intensity >= 9:
            flags.append("Severe pain intensity - rule out serious pathology")
        if pain.pain_frequency == PainFrequency.CONSTANT and pain.pain_intensity >= 7:
            flags.append("Constant severe pain - requires medical evaluation")
        if any(_contains_any(s, SERIOUS_SYMPTOMS) for s in pain.primary_symptoms):
            flags.append("Neurological symptoms present - medical clearance required")
        recent_onset = pain.onset_date is not None and now - pain.onset_date < timedelta(days=30)
        if recent_onset and pain.pain_intensity >= 8:
            flags.append("Recent onset of severe pain - rule out acute conditions")

        return flags

    def generate_recommendations(self, profile: UserProfile) -> list[str]:
        likelihood = self.calculate_tms_likelihood(profile)
        if likelihood >= 70:
            recommendations = [
                "High likelihood of TMS - begin education phase immediately",
                "Focus on understanding the mind-body connection",
                "Start daily journaling to explore emotional patterns",
            ]
        elif likelihood >= 40:
            recommendations = [
                "Moderate likelihood of TMS - continue assessment",
                "Consider medical evaluation to rule out structural issues",
                "Begin stress management techniques",
            ]
        else:
            recommendations = [
                "Lower likelihood of TMS - medical evaluation recommended",
                "Focus on conventional treatment approaches",
                "Monitor for psychological factors",
            ]

        traits = profile.psychological_profile.personality_type
        if "perfectionist" in traits:
            recommendations.append("Address perfectionist tendencies through cognitive work")
        if "people-pleaser" in traits:
            recommendations.append("Practice setting boundaries and expressing needs")
        return recommendations

    def assess(self, profile: UserProfile, now: datetime | None = None) -> TMSAssessmentResult:
        """Score a finished profile.

        Raises:
            IncompleteProfileError: If the questionnaire is not finished.
        """
        if not profile.is_complete():
            raise IncompleteProfileError(f"profile {profile.id} is incomplete")
        now = now or datetime.now()
        result = TMSAssessmentResult(
            tms_likelihood=self.calculate_tms_likelihood(profile),
            sarno_compatibility=self.calculate_sarno_compatibility(profile),
            red_flags=self.identify_red_flags(profile, now=now),
            assessment_date=now,
        )
        logger.info(
            "assessment_scored",
            user_id=profile.id,
            tms_likelihood=result.tms_likelihood,
            sarno_compatibility=result.sarno_compatibility,
            red_flags=len(result.red_flags),
        )
        return result
