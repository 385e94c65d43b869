"""Counselor conversation models."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from tms_companion.models.progress import TreatmentPhase
from tms_companion.models.timestamps import LocalDateTime


class EmotionalState(StrEnum):
    CALM = "calm"
    ANXIOUS = "anxious"
    FRUSTRATED = "frustrated"
    HOPEFUL = "hopeful"
    DISCOURAGED = "discouraged"


class UrgencyLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRISIS = "crisis"


class Message(BaseModel):
    """A single turn in a counselor session."""

    id: str
    role: str  # "user" or "sarno"
    content: str
    timestamp: LocalDateTime = Field(default_factory=datetime.now)
    context: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)


class ConversationContext(BaseModel):
    user_id: str
    session_id: str
    start_time: LocalDateTime = Field(default_factory=datetime.now)
    current_phase: TreatmentPhase = TreatmentPhase.EDUCATION
    user_name: str | None = None
    conversation_history: list[Message] = Field(default_factory=list)
    current_topics: list[str] = Field(default_factory=list)
    emotional_state: EmotionalState = EmotionalState.CALM
    urgency_level: UrgencyLevel = UrgencyLevel.LOW


class Resource(BaseModel):
    type: str  # book, exercise, technique, referral
    title: str
    description: str
    url: str | None = None


class SarnoResponse(BaseModel):
    message: str
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str
    recommendations: list[str] = Field(default_factory=list)
    follow_up_questions: list[str] = Field(default_factory=list)
    red_flags: list[str] = Field(default_factory=list)
    resources: list[Resource] = Field(default_factory=list)


class MessageAnalysis(BaseModel):
    intent: str
    emotions: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    urgency: str = "low"
    category: str = "general"


class CommonQuestion(BaseModel):
    question: str
    response: str
    category: str
    keywords: list[str] = Field(default_factory=list)


class CaseExample(BaseModel):
    scenario: str
    sarno_response: str
    category: str
    applicable_conditions: list[str] = Field(default_factory=list)


class Contraindication(BaseModel):
    condition: str
    response: str
    referral_needed: bool


class KnowledgeBase(BaseModel):
    core_teachings: dict[str, list[str]] = Field(default_factory=dict)
    common_questions: list[CommonQuestion] = Field(default_factory=list)
    cases_and_examples: list[CaseExample] = Field(default_factory=list)
    contraindications: list[Contraindication] = Field(default_factory=list)
    expressions: list[str] = Field(default_factory=list)
