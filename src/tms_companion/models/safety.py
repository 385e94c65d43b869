"""Safety screening models: red flags, checks, alerts and the user safety log."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tms_companion.models.timestamps import LocalDateTime


class RedFlagCategory(StrEnum):
    MEDICAL = "medical"
    PSYCHOLOGICAL = "psychological"
    SYMPTOM = "symptom"
    DURATION = "duration"


class Severity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SafetyOutcome(StrEnum):
    SAFE = "safe"
    CAUTION = "caution"
    MEDICAL_REQUIRED = "medical_required"
    EMERGENCY = "emergency"


class EmergencyType(StrEnum):
    MEDICAL = "medical"
    PSYCHOLOGICAL = "psychological"


class RedFlag(BaseModel):
    """Catalog entry describing a signal that warrants professional care."""

    model_config = ConfigDict(frozen=True)

    id: str
    category: RedFlagCategory
    severity: Severity
    title: str
    description: str
    recommendation: str
    requires_immediate_attention: bool
    medical_consultation_required: bool
    contraindications: tuple[str, ...] = ()


class RedFlagTrigger(BaseModel):
    model_config = ConfigDict(frozen=True)

    condition: str
    flag_id: str


class SafetyQuestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    question: str
    type: str  # yes_no, multiple_choice, scale, text
    options: tuple[str, ...] = ()
    red_flag_triggers: tuple[RedFlagTrigger, ...] = ()
    required: bool = True


class SafetyAction(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: str
    priority: Severity
    message: str
    action_required: bool
    timeout_minutes: int | None = None


class SafetyCheck(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: str  # pre_assessment, ongoing_monitoring, symptom_change, emergency
    triggers: tuple[str, ...]
    questions: tuple[SafetyQuestion, ...]
    actions: tuple[SafetyAction, ...] = ()


class Disclaimer(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: str
    title: str
    content: str
    requires_acknowledgment: bool
    version: str
    last_updated: LocalDateTime
    applicable_pages: tuple[str, ...] = ()


class ClinicalGuidelines(BaseModel):
    model_config = ConfigDict(frozen=True)

    eligibility_included: tuple[str, ...]
    eligibility_excluded: tuple[str, ...]
    eligibility_requires_clearance: tuple[str, ...]
    red_flag_symptoms: tuple[str, ...]
    progression_concerns: tuple[str, ...]
    emergency_symptoms: tuple[str, ...]
    max_duration_weeks: int
    required_breaks: tuple[str, ...]
    contraindicated_conditions: tuple[str, ...]
    professional_referral_criteria: tuple[str, ...]


class TriggeredRedFlag(BaseModel):
    flag_id: str
    triggered_at: LocalDateTime = Field(default_factory=datetime.now)
    acknowledged: bool = False
    medical_consultation_sought: bool | None = None


class CompletedSafetyCheck(BaseModel):
    check_id: str
    completed_at: LocalDateTime = Field(default_factory=datetime.now)
    responses: dict[str, Any] = Field(default_factory=dict)
    outcome: SafetyOutcome


class EmergencyContact(BaseModel):
    id: str
    name: str
    relationship: str
    phone: str
    email: str | None = None
    is_primary: bool = False
    is_healthcare_provider: bool = False


class MedicalClearance(BaseModel):
    provided_by: str
    date: LocalDateTime = Field(default_factory=datetime.now)
    notes: str = ""
    valid_until: LocalDateTime | None = None


class UserSafetyProfile(BaseModel):
    user_id: str
    acknowledged_disclaimers: list[str] = Field(default_factory=list)
    red_flags_triggered: list[TriggeredRedFlag] = Field(default_factory=list)
    safety_checks_completed: list[CompletedSafetyCheck] = Field(default_factory=list)
    emergency_contacts: list[EmergencyContact] = Field(default_factory=list)
    medical_clearance: MedicalClearance | None = None


class AlertType(StrEnum):
    WARNING = "warning"
    CAUTION = "caution"
    INFO = "info"
    EMERGENCY = "emergency"


class AlertAction(BaseModel):
    label: str
    action: str  # acknowledge, contact_doctor, call_emergency, dismiss
    is_primary: bool


class SafetyAlert(BaseModel):
    id: str
    type: AlertType
    title: str
    message: str
    actions: list[AlertAction]
    persistent: bool
    expires_at: LocalDateTime | None = None


class EmergencyStatus(BaseModel):
    is_emergency: bool
    emergency_type: EmergencyType | None = None
    recommended_action: str
    red_flags: list[RedFlag] = Field(default_factory=list)


class EligibilityResult(BaseModel):
    is_eligible: bool
    concerns: list[str] = Field(default_factory=list)
    requires_medical_clearance: bool = False
    excluded_reasons: list[str] = Field(default_factory=list)
