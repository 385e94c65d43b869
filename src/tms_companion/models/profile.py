"""User profile model collected by the self-assessment."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from tms_companion.models.timestamps import LocalDateTime


class Lifestyle(StrEnum):
    SEDENTARY = "sedentary"
    ACTIVE = "active"
    VERY_ACTIVE = "very active"


class PainFrequency(StrEnum):
    CONSTANT = "constant"
    INTERMITTENT = "intermittent"
    EPISODIC = "episodic"


class PersonalInfo(BaseModel):
    name: str = ""
    age: int = 0
    occupation: str = ""
    lifestyle: Lifestyle | None = None


class PsychologicalProfile(BaseModel):
    """Personality, stress and coping tags plus screening fields."""

    personality_type: list[str] = Field(default_factory=list)
    stress_factors: list[str] = Field(default_factory=list)
    coping_mechanisms: list[str] = Field(default_factory=list)
    trauma_history: bool = False
    current_life_stressors: list[str] = Field(default_factory=list)
    # Screening fields read by the eligibility and support checks
    severe_mental_illness: bool | None = None
    active_substance_abuse: bool | None = None
    depression_score: int | None = None
    anxiety_score: int | None = None


class PainHistory(BaseModel):
    primary_symptoms: list[str] = Field(default_factory=list)
    pain_locations: list[str] = Field(default_factory=list)
    pain_intensity: int = Field(default=0, ge=0, le=10)
    pain_frequency: PainFrequency | None = None
    onset_date: LocalDateTime | None = None
    triggers: list[str] = Field(default_factory=list)
    previous_diagnoses: list[str] = Field(default_factory=list)
    previous_treatments: list[str] = Field(default_factory=list)
    medical_history: list[str] = Field(default_factory=list)


class MedicalScreening(BaseModel):
    """Yes/no medical history answers used for TMS eligibility."""

    recent_trauma: bool | None = None
    structural_abnormalities: bool | None = None
    active_infection: bool | None = None
    cancer_history: bool | None = None
    previous_spinal_surgery: bool | None = None


class TMSAssessmentResult(BaseModel):
    tms_likelihood: int = Field(default=0, ge=0, le=100)
    sarno_compatibility: int = Field(default=0, ge=0, le=100)
    red_flags: list[str] = Field(default_factory=list)
    assessment_date: LocalDateTime | None = None


class UserProfile(BaseModel):
    id: str
    created_at: LocalDateTime = Field(default_factory=datetime.now)
    last_active: LocalDateTime = Field(default_factory=datetime.now)
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    psychological_profile: PsychologicalProfile = Field(default_factory=PsychologicalProfile)
    pain_history: PainHistory = Field(default_factory=PainHistory)
    medical_history: MedicalScreening = Field(default_factory=MedicalScreening)
    tms_assessment: TMSAssessmentResult | None = None

    def is_complete(self) -> bool:
        """Whether every field the scorers rely on has been answered."""
        info = self.personal_info
        pain = self.pain_history
        return (
            info.age > 0
            and bool(info.occupation.strip())
            and info.lifestyle is not None
            and bool(pain.pain_locations)
            and pain.pain_intensity >= 1
            and pain.pain_frequency is not None
            and pain.onset_date is not None
        )

    @property
    def is_assessed(self) -> bool:
        return self.tms_assessment is not None and self.tms_assessment.assessment_date is not None
