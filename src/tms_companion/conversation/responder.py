"""Scripted counselor replies in the voice of Dr. Sarno.

Every message is first screened for crisis and medical language; only a
message that passes screening gets a knowledge-base reply.
"""

import random
import uuid
from datetime import datetime
from enum import StrEnum

import structlog

from tms_companion.conversation.classifier import (
    KeywordClassifier,
    TextClassifier,
    category_classifier,
    crisis_classifier,
    emotion_classifier,
    intent_classifier,
    medical_classifier,
    urgency_classifier,
)
from tms_companion.models.conversation import (
    CaseExample,
    CommonQuestion,
    ConversationContext,
    KnowledgeBase,
    Message,
    MessageAnalysis,
    Resource,
    SarnoResponse,
    UrgencyLevel,
)
from tms_companion.safety.monitor import SafetyMonitor

logger = structlog.get_logger()

STOPWORDS = frozenset({"that", "this", "with", "have", "been", "will"})

CRISIS_MESSAGE = (
    "I'm very concerned about what you've shared. These feelings are serious and require "
    "immediate professional help. Please reach out for help immediately:\n\n"
    "🆘 **Crisis Resources:**\n"
    "• **988 Suicide & Crisis Lifeline**: Call or text 988\n"
    "• **Emergency Services**: Call 911\n"
    "• **Crisis Text Line**: Text HOME to 741741\n\n"
    "While TMS and emotional healing are important, your immediate safety comes first. "
    "Please contact one of these resources right now. You don't have to face this alone, "
    "and there are people who want to help you through this difficult time.\n\n"
    "I care about your wellbeing, and I want you to get the support you need right now."
)

MEDICAL_MESSAGE = (
    "Based on what you've described, this may require immediate medical attention. While I "
    "believe strongly in the mind-body connection and TMS, certain symptoms require immediate "
    "medical evaluation to rule out serious conditions.\n\n"
    "🏥 **Please seek medical attention if you have:**\n"
    "• Fever with back pain (possible infection)\n"
    "• Progressive weakness or numbness\n"
    "• Bowel or bladder problems\n"
    "• Severe pain after trauma/injury\n\n"
    "You can explore TMS after ensuring there's no structural emergency. Your safety comes "
    "first, and a proper medical evaluation will give you peace of mind to focus on TMS "
    "healing if appropriate."
)

EMPATHY_OPENERS = (
    ("fear", "I understand your fear - it's completely natural when dealing with chronic pain. "),
    (
        "anger",
        "Your frustration is understandable, and actually, that anger you're feeling is very "
        "important to acknowledge. ",
    ),
    (
        "despair",
        "I hear the discouragement in your words. Many of my patients have felt exactly as "
        "you do right now. ",
    ),
)

CATEGORY_GUIDANCE: dict[str, tuple[tuple[str, ...], str]] = {
    "symptoms": (
        ("Resume normal physical activities gradually", "Practice daily emotional awareness exercises"),
        "Remember: the pain is real, but it's not structural. Your body is not damaged.",
    ),
    "emotions": (
        ("Start a daily emotion journal", 'Practice the "talking to your brain" technique'),
        "What you're feeling is the key to your healing. Don't push these emotions away - "
        "acknowledge them.",
    ),
    "treatment": (
        ("Stop treatments that reinforce structural thinking", "Focus on psychological approaches instead"),
        "",
    ),
}

FOLLOW_UP_QUESTIONS: dict[str, tuple[str, ...]] = {
    "symptoms": (
        "What emotions were you experiencing when the pain first started?",
        "Have you noticed if the pain changes with stress levels?",
    ),
    "emotions": (
        "What situations make you feel most angry or frustrated?",
        "Do you consider yourself a perfectionist or people-pleaser?",
    ),
    "treatment": (
        "What activities have you stopped doing because of the pain?",
        "How do you feel about the idea of resuming normal activities?",
    ),
}

CATEGORY_RESOURCES: dict[str, Resource] = {
    "emotions": Resource(
        type="technique",
        title="Emotion Journaling",
        description="Daily practice to identify and process repressed emotions",
        url="/techniques/emotion-journaling",
    ),
    "symptoms": Resource(
        type="exercise",
        title="Talking to Your Brain",
        description="Direct communication with your unconscious mind",
        url="/techniques/talking-to-brain",
    ),
}


class SessionType(StrEnum):
    CRISIS = "crisis"
    CONSULTATION = "consultation"
    FOLLOW_UP = "follow_up"
    GENERAL = "general"


class VirtualSarno:
    """Rule-based counselor with per-session conversation logs.

    Args:
        knowledge: Teachings, common questions, cases and closing expressions.
        safety_monitor: Receives red flags raised by crisis language.
        rng: Source of randomness for the closing expression.
        crisis: Classifier for crisis language.
        medical: Classifier for medical red-flag language.
        intent: Classifier for message intent.
        category: Classifier for message topic.
    """

    def __init__(
        self,
        knowledge: KnowledgeBase,
        safety_monitor: SafetyMonitor | None = None,
        rng: random.Random | None = None,
        crisis: TextClassifier | None = None,
        medical: KeywordClassifier | None = None,
        intent: TextClassifier | None = None,
        category: TextClassifier | None = None,
    ):
        self.knowledge = knowledge
        self.safety_monitor = safety_monitor
        self.rng = rng or random.Random()
        self.crisis = crisis or crisis_classifier()
        self.medical = medical or medical_classifier()
        self.intent = intent or intent_classifier()
        self.category = category or category_classifier()
        self.emotions = emotion_classifier()
        self.urgency = urgency_classifier()
        self._history: dict[str, list[Message]] = {}

    async def generate_response(self, message: str, context: ConversationContext) -> SarnoResponse:
        """Screen, analyze and answer one user message."""
        if self.crisis.classify(message):
            response = self._crisis_response(context)
        elif self.medical.classify(message):
            response = self._medical_response(message)
        else:
            analysis = self.analyze_message(message)
            response = self._craft_response(analysis, context)

        self._store(context, message, response)
        return response

    # Screening ---------------------------------------------------------

    def _crisis_response(self, context: ConversationContext) -> SarnoResponse:
        logger.warning("crisis_language_detected", session_id=context.session_id)
        if self.safety_monitor is not None:
            self.safety_monitor.record_red_flag("suicidal_ideation")
        return SarnoResponse(
            message=CRISIS_MESSAGE,
            confidence=1.0,
            reasoning="Crisis intervention required - immediate professional help needed",
            red_flags=["crisis_language", "suicide_risk"],
            resources=[
                Resource(
                    type="referral",
                    title="988 Suicide & Crisis Lifeline",
                    description="Free and confidential emotional support 24/7",
                    url="tel:988",
                )
            ],
        )

    def _medical_response(self, message: str) -> SarnoResponse:
        matched = self.medical.matched_keywords(message)
        logger.warning("medical_language_detected", keywords=matched)
        notes = [
            c.response
            for c in self.knowledge.contraindications
            if any(k in c.condition.lower() for k in matched)
        ]
        text = MEDICAL_MESSAGE
        if notes:
            text += "\n\n" + "\n\n".join(notes)
        return SarnoResponse(
            message=text,
            confidence=1.0,
            reasoning="Medical red flags detected - professional evaluation needed",
            red_flags=["medical_emergency"],
            resources=[
                Resource(
                    type="referral",
                    title="Emergency Medical Care",
                    description="Seek immediate medical evaluation",
                    url="tel:911",
                )
            ],
        )

    # Analysis ----------------------------------------------------------

    def analyze_message(self, message: str) -> MessageAnalysis:
        keywords = [
            word for word in message.lower().split(" ") if len(word) > 3 and word not in STOPWORDS
        ]
        return MessageAnalysis(
            intent=self.intent.classify(message) or "general_question",
            emotions=self.emotions.labels(message),
            keywords=keywords,
            urgency=self.urgency.classify(message) or "low",
            category=self.category.classify(message) or "general",
        )

    def find_relevant_knowledge(
        self, analysis: MessageAnalysis
    ) -> tuple[list[CommonQuestion], list[tuple[str, list[str]]], list[CaseExample]]:
        """Common questions, core teachings and cases relevant to the analysis."""
        keywords = set(analysis.keywords)
        questions = [
            q
            for q in self.knowledge.common_questions
            if q.category == analysis.category or any(k.lower() in keywords for k in q.keywords)
        ]
        teachings = [
            (key, texts)
            for key, texts in self.knowledge.core_teachings.items()
            if any(k in key or key in k for k in analysis.keywords)
        ]
        cases = [
            c
            for c in self.knowledge.cases_and_examples
            if c.category == analysis.category
            or any(k in c.scenario.lower() for k in analysis.keywords)
        ]
        return questions[:2], teachings[:3], cases[:1]

    # Reply assembly ----------------------------------------------------

    def _craft_response(self, analysis: MessageAnalysis, context: ConversationContext) -> SarnoResponse:
        questions, teachings, cases = self.find_relevant_knowledge(analysis)
        text = ""
        confidence = 0.7

        for emotion, opener in EMPATHY_OPENERS:
            if emotion in analysis.emotions:
                text += opener
                confidence += 0.1
                break

        if not context.conversation_history:
            text += f"Hello {context.user_name}. " if context.user_name else "Hello. "

        if questions:
            text += questions[0].response + " "
            confidence += 0.2
        elif teachings and teachings[0][1]:
            text += teachings[0][1][0] + " "
            confidence += 0.15

        if cases:
            text += "\n\n" + cases[0].sarno_response
            confidence += 0.1

        recommendations: list[str] = []
        guidance = CATEGORY_GUIDANCE.get(analysis.category)
        if guidance:
            recommendations.extend(guidance[0])
            if guidance[1]:
                text += "\n\n" + guidance[1]

        if self.knowledge.expressions:
            text += "\n\n" + self.rng.choice(self.knowledge.expressions)

        resource = CATEGORY_RESOURCES.get(analysis.category)
        return SarnoResponse(
            message=text.strip(),
            confidence=min(confidence, 1.0),
            reasoning=(
                f"Responded to {analysis.intent} about {analysis.category} with "
                f"{len(questions) + len(teachings)} relevant knowledge pieces"
            ),
            recommendations=recommendations,
            follow_up_questions=list(FOLLOW_UP_QUESTIONS.get(analysis.category, ()))[:2],
            resources=[resource] if resource else [],
        )

    # Conversation log --------------------------------------------------

    @staticmethod
    def session_type(message: str, context: ConversationContext) -> SessionType:
        if context.urgency_level in (UrgencyLevel.HIGH, UrgencyLevel.CRISIS):
            return SessionType.CRISIS
        if not context.conversation_history:
            return SessionType.CONSULTATION
        lowered = message.lower()
        if "follow up" in lowered or "update" in lowered:
            return SessionType.FOLLOW_UP
        return SessionType.GENERAL

    def _store(self, context: ConversationContext, message: str, response: SarnoResponse) -> None:
        log = self._history.setdefault(context.session_id, [])
        turn_context = {
            "current_phase": context.current_phase,
            "emotional_state": context.emotional_state,
        }
        log.append(
            Message(
                id=uuid.uuid4().hex[:9],
                role="user",
                content=message,
                timestamp=datetime.now(),
                context={**turn_context, "session_type": self.session_type(message, context)},
            )
        )
        log.append(
            Message(
                id=uuid.uuid4().hex[:9],
                role="sarno",
                content=response.message,
                timestamp=datetime.now(),
                context=turn_context,
                metadata={
                    "confidence": response.confidence,
                    "recommendations": response.recommendations,
                    "red_flags": response.red_flags,
                },
            )
        )
        logger.debug(
            "conversation_turn_stored",
            session_id=context.session_id,
            messages=len(log),
        )

    def get_conversation_history(self, session_id: str) -> list[Message]:
        return list(self._history.get(session_id, []))

    def clear_conversation_history(self, session_id: str) -> None:
        self._history.pop(session_id, None)
