"""Red-flag screening, ongoing symptom monitoring and TMS eligibility."""

import time
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

import structlog

from tms_companion.models.profile import UserProfile
from tms_companion.models.progress import TreatmentProgress
from tms_companion.models.safety import (
    AlertAction,
    AlertType,
    ClinicalGuidelines,
    CompletedSafetyCheck,
    Disclaimer,
    EligibilityResult,
    EmergencyStatus,
    EmergencyType,
    MedicalClearance,
    RedFlag,
    RedFlagCategory,
    SafetyAlert,
    SafetyCheck,
    SafetyOutcome,
    Severity,
    TriggeredRedFlag,
    UserSafetyProfile,
)
from tms_companion.rules.safety import (
    CLINICAL_GUIDELINES,
    DISCLAIMERS,
    EMERGENCY_SYMPTOM_FLAGS,
    PRE_ASSESSMENT_SCREENING,
    RED_FLAGS,
    SAFETY_CHECKS,
)

logger = structlog.get_logger()

# Questionnaire keys checked directly, on top of the question trigger tables
SUPPLEMENTARY_FLAG_CHECKS: tuple[tuple[str, str], ...] = (
    ("cancer_history", "cancer_history"),
    ("recent_trauma", "trauma_history"),
    ("neurological_symptoms", "progressive_neurological"),
    ("bowel_bladder", "bowel_bladder_dysfunction"),
    ("fever_symptoms", "fever_with_pain"),
    ("mental_health_screening", "suicidal_ideation"),
    ("severe_depression", "severe_depression"),
)

MENTAL_HEALTH_SCORE_THRESHOLD = 15
NO_PROGRESS_MIN_WEEKS = 4
TREND_WINDOW = 7


def evaluate_condition(value: Any, condition: str) -> bool:
    """Match a questionnaire answer against a trigger condition."""
    if condition == "yes":
        return value == "yes" or value is True
    if condition == "no":
        return value == "no" or value is False
    return value == condition


def _mean(values: list[int]) -> float:
    return sum(values) / len(values)


class SafetyMonitor:
    """Per-user safety screening against a red-flag catalog.

    Evaluation never raises; malformed or missing answers simply trigger no
    flag. The only state is the user's safety profile, whose lists only grow.

    Args:
        user_id: Owner of the safety profile.
        profile: Previously persisted safety profile to resume from.
        red_flags: Red-flag catalog.
        checks: Safety questionnaires.
        guidelines: Clinical limits and symptom lists.
        disclaimers: Disclaimers the user may need to acknowledge.
        worsening_threshold: Mean pain increase that counts as worsening.
        clock: Source of the current time.
    """

    def __init__(
        self,
        user_id: str,
        profile: UserSafetyProfile | None = None,
        red_flags: tuple[RedFlag, ...] = RED_FLAGS,
        checks: tuple[SafetyCheck, ...] = SAFETY_CHECKS,
        guidelines: ClinicalGuidelines = CLINICAL_GUIDELINES,
        disclaimers: tuple[Disclaimer, ...] = DISCLAIMERS,
        worsening_threshold: float = 1.0,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._profile = profile.model_copy(deep=True) if profile else UserSafetyProfile(user_id=user_id)
        self.red_flags = red_flags
        self.checks = checks
        self.guidelines = guidelines
        self.disclaimers = disclaimers
        self.worsening_threshold = worsening_threshold
        self._clock = clock

    @property
    def user_id(self) -> str:
        return self._profile.user_id

    def get_safety_profile(self) -> UserSafetyProfile:
        return self._profile.model_copy(deep=True)

    def find_flag(self, flag_id: str) -> RedFlag | None:
        return next((f for f in self.red_flags if f.id == flag_id), None)

    def find_check(self, check_id: str) -> SafetyCheck | None:
        return next((c for c in self.checks if c.id == check_id), None)

    # Red flags ---------------------------------------------------------

    def record_red_flag(self, flag_id: str) -> bool:
        """Log a triggered flag once. Returns False if it was already logged."""
        if any(rf.flag_id == flag_id for rf in self._profile.red_flags_triggered):
            return False
        self._profile.red_flags_triggered.append(
            TriggeredRedFlag(flag_id=flag_id, triggered_at=self._clock())
        )
        logger.info("red_flag_recorded", user_id=self.user_id, flag_id=flag_id)
        return True

    def _flags_from_check(self, check: SafetyCheck, responses: dict[str, Any]) -> list[RedFlag]:
        triggered: list[RedFlag] = []
        for question in check.questions:
            answer = responses.get(question.id)
            for trigger in question.red_flag_triggers:
                if not evaluate_condition(answer, trigger.condition):
                    continue
                flag = self.find_flag(trigger.flag_id)
                if flag:
                    triggered.append(flag)
                    self.record_red_flag(flag.id)
        return triggered

    def _supplementary_flags(self, responses: dict[str, Any]) -> list[RedFlag]:
        flag_ids = [
            flag_id for key, flag_id in SUPPLEMENTARY_FLAG_CHECKS if responses.get(key) == "yes"
        ]
        if responses.get("suicidal_thoughts") is True and "suicidal_ideation" not in flag_ids:
            flag_ids.append("suicidal_ideation")
        return [flag for flag_id in flag_ids if (flag := self.find_flag(flag_id))]

    def check_assessment_red_flags(self, responses: dict[str, Any]) -> list[RedFlag]:
        """Derive red flags from pre-assessment screening answers.

        The returned list may name a flag twice when both the question
        trigger table and a direct answer check match it; the persisted log
        holds each flag once.
        """
        triggered: list[RedFlag] = []
        check = self.find_check(PRE_ASSESSMENT_SCREENING)
        if check:
            triggered.extend(self._flags_from_check(check, responses))
        triggered.extend(self._supplementary_flags(responses))
        if triggered:
            logger.warning(
                "assessment_red_flags",
                user_id=self.user_id,
                flags=[f.id for f in triggered],
            )
        return triggered

    @staticmethod
    def classify_outcome(flags: list[RedFlag]) -> SafetyOutcome:
        if any(f.severity == Severity.CRITICAL and f.requires_immediate_attention for f in flags):
            return SafetyOutcome.EMERGENCY
        if any(f.medical_consultation_required for f in flags):
            return SafetyOutcome.MEDICAL_REQUIRED
        if flags:
            return SafetyOutcome.CAUTION
        return SafetyOutcome.SAFE

    def complete_safety_check(
        self, check_id: str, responses: dict[str, Any]
    ) -> CompletedSafetyCheck | None:
        """Run a questionnaire and log its outcome. Unknown checks return None."""
        check = self.find_check(check_id)
        if check is None:
            logger.warning("unknown_safety_check", check_id=check_id)
            return None
        if check_id == PRE_ASSESSMENT_SCREENING:
            flags = self.check_assessment_red_flags(responses)
        else:
            flags = self._flags_from_check(check, responses)
        completed = CompletedSafetyCheck(
            check_id=check_id,
            completed_at=self._clock(),
            responses=dict(responses),
            outcome=self.classify_outcome(flags),
        )
        self._profile.safety_checks_completed.append(completed)
        logger.info(
            "safety_check_completed",
            user_id=self.user_id,
            check_id=check_id,
            outcome=completed.outcome,
        )
        return completed

    def acknowledge_red_flag(self, flag_id: str, medical_consultation_sought: bool | None = None) -> bool:
        for entry in self._profile.red_flags_triggered:
            if entry.flag_id == flag_id:
                entry.acknowledged = True
                if medical_consultation_sought is not None:
                    entry.medical_consultation_sought = medical_consultation_sought
                return True
        return False

    # Disclaimers and clearance -----------------------------------------

    def acknowledge_disclaimer(self, disclaimer_id: str) -> None:
        if disclaimer_id not in self._profile.acknowledged_disclaimers:
            self._profile.acknowledged_disclaimers.append(disclaimer_id)
            logger.info("disclaimer_acknowledged", user_id=self.user_id, disclaimer_id=disclaimer_id)

    def pending_disclaimers(self, page: str | None = None) -> list[Disclaimer]:
        """Disclaimers requiring acknowledgment that the user has not accepted.

        Args:
            page: Restrict to disclaimers shown on this page ("all" matches any).
        """
        acknowledged = set(self._profile.acknowledged_disclaimers)
        return [
            d
            for d in self.disclaimers
            if d.requires_acknowledgment
            and d.id not in acknowledged
            and (page is None or "all" in d.applicable_pages or page in d.applicable_pages)
        ]

    def set_medical_clearance(self, clearance: MedicalClearance) -> None:
        self._profile.medical_clearance = clearance
        logger.info("medical_clearance_recorded", user_id=self.user_id, provided_by=clearance.provided_by)

    def has_valid_medical_clearance(self) -> bool:
        clearance = self._profile.medical_clearance
        if clearance is None:
            return False
        return clearance.valid_until is None or clearance.valid_until >= self._clock()

    # Ongoing monitoring ------------------------------------------------

    def is_symptom_worsening(self, pain_levels: list[int]) -> bool:
        if len(pain_levels) < TREND_WINDOW:
            return False
        recent = pain_levels[-TREND_WINDOW:]
        previous = pain_levels[-2 * TREND_WINDOW:-TREND_WINDOW]
        if not previous:
            return False
        return _mean(recent) > _mean(previous) + self.worsening_threshold

    def identify_concerning_symptoms(self, symptoms: list[str]) -> list[str]:
        phrases = [p.lower() for p in self.guidelines.red_flag_symptoms]
        return [s for s in symptoms if any(p in s.lower() for p in phrases)]

    def exceeds_treatment_limits(self, progress: TreatmentProgress) -> bool:
        return progress.weeks_since_start(self._clock()) > self.guidelines.max_duration_weeks

    def lacks_progress(self, progress: TreatmentProgress) -> bool:
        """No improvement from the first week of logs to the latest week."""
        if progress.weeks_since_start(self._clock()) < NO_PROGRESS_MIN_WEEKS:
            return False
        levels = progress.pain_levels
        if len(levels) < 2 * TREND_WINDOW:
            return False
        return _mean(levels[-TREND_WINDOW:]) >= _mean(levels[:TREND_WINDOW])

    def monitor_ongoing_symptoms(
        self,
        pain_levels: list[int],
        symptom_changes: list[str],
        progress: TreatmentProgress,
    ) -> list[SafetyAlert]:
        alerts: list[SafetyAlert] = []
        if self.is_symptom_worsening(pain_levels):
            alerts.append(self.create_worsening_symptom_alert())
        concerning = self.identify_concerning_symptoms(symptom_changes)
        if concerning:
            alerts.append(self.create_new_symptom_alert(concerning))
        if self.exceeds_treatment_limits(progress):
            alerts.append(self.create_treatment_limit_alert())
        if self.lacks_progress(progress):
            alerts.append(self.create_no_progress_alert())

        if alerts:
            logger.warning(
                "safety_alerts_raised",
                user_id=self.user_id,
                alerts=[a.id for a in alerts],
            )
        return alerts

    # Emergencies -------------------------------------------------------

    def evaluate_emergency_status(
        self, symptoms: list[str], responses: dict[str, Any]
    ) -> EmergencyStatus:
        flags: list[RedFlag] = []

        def add(flag_id: str) -> None:
            flag = self.find_flag(flag_id)
            if flag and flag not in flags:
                flags.append(flag)

        emergency_phrases = {p.lower() for p in self.guidelines.emergency_symptoms}
        for symptom in symptoms:
            key = symptom.strip().lower()
            if key in emergency_phrases and key in EMERGENCY_SYMPTOM_FLAGS:
                add(EMERGENCY_SYMPTOM_FLAGS[key])

        if responses.get("suicidal_ideation") == "yes" or responses.get("suicidal_thoughts") is True:
            add("suicidal_ideation")

        if any(f.category == RedFlagCategory.MEDICAL for f in flags):
            emergency_type = EmergencyType.MEDICAL
        elif any(f.category == RedFlagCategory.PSYCHOLOGICAL for f in flags):
            emergency_type = EmergencyType.PSYCHOLOGICAL
        else:
            emergency_type = None

        status = EmergencyStatus(
            is_emergency=bool(flags),
            emergency_type=emergency_type,
            recommended_action=self.emergency_recommendation(flags),
            red_flags=flags,
        )
        if status.is_emergency:
            logger.warning(
                "emergency_detected",
                user_id=self.user_id,
                emergency_type=emergency_type,
                flags=[f.id for f in flags],
            )
        return status

    @staticmethod
    def emergency_recommendation(flags: list[RedFlag]) -> str:
        critical = any(f.severity == Severity.CRITICAL for f in flags)
        if critical and any(f.category == RedFlagCategory.MEDICAL for f in flags):
            return "Call 911 or go to the nearest emergency room immediately"
        if critical and any(f.category == RedFlagCategory.PSYCHOLOGICAL for f in flags):
            return "Call 988 (Suicide & Crisis Lifeline) or go to the nearest emergency room"
        return "Consult with a healthcare provider as soon as possible"

    # Eligibility and recommendations -----------------------------------

    def check_tms_eligibility(self, profile: UserProfile) -> EligibilityResult:
        medical = profile.medical_history
        psych = profile.psychological_profile
        result = EligibilityResult(is_eligible=True)

        if medical.recent_trauma:
            result.excluded_reasons.append("Recent trauma or injury")
        if medical.structural_abnormalities:
            result.excluded_reasons.append("Confirmed structural abnormalities requiring treatment")
        if medical.active_infection:
            result.excluded_reasons.append("Active infection or inflammation")
        if medical.cancer_history:
            result.concerns.append("History of cancer - requires medical clearance")
            result.requires_medical_clearance = True
        if medical.previous_spinal_surgery:
            result.concerns.append("Previous spinal surgery - requires medical clearance")
            result.requires_medical_clearance = True
        if psych.severe_mental_illness:
            result.excluded_reasons.append(
                "Severe psychiatric conditions requiring immediate treatment"
            )
        if psych.active_substance_abuse:
            result.excluded_reasons.append("Active substance abuse")

        result.is_eligible = not result.excluded_reasons
        return result

    def may_begin_education(self, profile: UserProfile) -> bool:
        """Whether a scored profile may leave the assessment phase.

        Blocked by hard eligibility exclusions and by an emergency outcome
        on the latest pre-assessment screening.
        """
        screenings = [
            c
            for c in self._profile.safety_checks_completed
            if c.check_id == PRE_ASSESSMENT_SCREENING
        ]
        if screenings and screenings[-1].outcome == SafetyOutcome.EMERGENCY:
            return False
        return self.check_tms_eligibility(profile).is_eligible

    def needs_professional_referral(self, progress: TreatmentProgress) -> bool:
        """Any unacknowledged red flag or a worsening session pain trend."""
        if any(not rf.acknowledged for rf in self._profile.red_flags_triggered):
            return True
        return self.is_symptom_worsening(progress.pain_levels)

    @staticmethod
    def needs_mental_health_support(profile: UserProfile) -> bool:
        psych = profile.psychological_profile
        return any(
            score is not None and score > MENTAL_HEALTH_SCORE_THRESHOLD
            for score in (psych.depression_score, psych.anxiety_score)
        )

    def needs_treatment_modification(self, progress: TreatmentProgress) -> bool:
        return self.lacks_progress(progress) or self.exceeds_treatment_limits(progress)

    def generate_safety_recommendations(
        self, profile: UserProfile, progress: TreatmentProgress
    ) -> list[str]:
        recommendations: list[str] = []
        if self.check_tms_eligibility(profile).requires_medical_clearance:
            recommendations.append("Obtain medical clearance before continuing with TMS approach")
        if self.needs_professional_referral(progress):
            recommendations.append("Consider consultation with a healthcare provider familiar with TMS")
        if self.needs_mental_health_support(profile):
            recommendations.append("Consider additional mental health support alongside TMS approach")
        if self.needs_treatment_modification(progress):
            recommendations.append("Consider modifying treatment approach or taking a break")
        return recommendations

    # Alert builders ----------------------------------------------------

    @staticmethod
    def _alert_id(prefix: str) -> str:
        return f"{prefix}_{time.time_ns() // 1_000_000}"

    def create_worsening_symptom_alert(self) -> SafetyAlert:
        return SafetyAlert(
            id=self._alert_id("worsening"),
            type=AlertType.WARNING,
            title="Symptoms Worsening",
            message=(
                "Your pain levels appear to be increasing. This may indicate that the TMS "
                "approach is not suitable for your condition, or that there may be other "
                "factors to consider."
            ),
            actions=[
                AlertAction(label="Contact Healthcare Provider", action="contact_doctor", is_primary=True),
                AlertAction(label="Acknowledge", action="acknowledge", is_primary=False),
            ],
            persistent=True,
        )

    def create_new_symptom_alert(self, symptoms: list[str]) -> SafetyAlert:
        return SafetyAlert(
            id=self._alert_id("new_symptoms"),
            type=AlertType.CAUTION,
            title="New Concerning Symptoms",
            message=(
                "You have reported new symptoms that may require medical evaluation: "
                + ", ".join(symptoms)
            ),
            actions=[
                AlertAction(label="Seek Medical Evaluation", action="contact_doctor", is_primary=True),
                AlertAction(label="Acknowledge", action="acknowledge", is_primary=False),
            ],
            persistent=True,
        )

    def create_treatment_limit_alert(self) -> SafetyAlert:
        return SafetyAlert(
            id=self._alert_id("treatment_limit"),
            type=AlertType.INFO,
            title="Treatment Duration Limit",
            message=(
                "You have been using the TMS approach for an extended period. Consider "
                "taking a break and consulting with a healthcare provider."
            ),
            actions=[
                AlertAction(label="Schedule Consultation", action="contact_doctor", is_primary=True),
                AlertAction(label="Continue with Caution", action="acknowledge", is_primary=False),
            ],
            persistent=False,
            expires_at=self._clock() + timedelta(days=7),
        )

    def create_no_progress_alert(self) -> SafetyAlert:
        return SafetyAlert(
            id=self._alert_id("no_progress"),
            type=AlertType.CAUTION,
            title="Limited Progress",
            message=(
                "You have not seen significant improvement after several weeks. The TMS "
                "approach may not be suitable for your condition."
            ),
            actions=[
                AlertAction(label="Consult Healthcare Provider", action="contact_doctor", is_primary=True),
                AlertAction(label="Continue Current Approach", action="acknowledge", is_primary=False),
            ],
            persistent=False,
        )
