"""Tests for the scripted counselor."""

import random

import pytest

from tms_companion.conversation.knowledge import load_knowledge_base
from tms_companion.conversation.responder import (
    CRISIS_MESSAGE,
    MEDICAL_MESSAGE,
    SessionType,
    VirtualSarno,
)
from tms_companion.models.conversation import ConversationContext, Message, UrgencyLevel
from tms_companion.safety.monitor import SafetyMonitor


@pytest.fixture
def knowledge():
    return load_knowledge_base()


@pytest.fixture
def monitor():
    return SafetyMonitor("user-1")


@pytest.fixture
def sarno(knowledge, monitor):
    return VirtualSarno(knowledge, safety_monitor=monitor, rng=random.Random(7))


def context(session_id: str = "s1", **kwargs) -> ConversationContext:
    return ConversationContext(user_id="user-1", session_id=session_id, **kwargs)


class TestKnowledgeBase:
    def test_loaded_from_content(self, knowledge):
        assert len(knowledge.common_questions) == 6
        assert len(knowledge.cases_and_examples) == 3
        assert len(knowledge.contraindications) == 4
        assert len(knowledge.expressions) == 11
        assert "tms_theory" in knowledge.core_teachings


class TestScreening:
    async def test_crisis_short_circuits(self, sarno, monitor):
        response = await sarno.generate_response("I want to kill myself", context())
        assert response.message == CRISIS_MESSAGE
        assert response.confidence == 1.0
        assert response.red_flags == ["crisis_language", "suicide_risk"]
        assert response.resources[0].url == "tel:988"
        logged = [rf.flag_id for rf in monitor.get_safety_profile().red_flags_triggered]
        assert logged == ["suicidal_ideation"]

    async def test_crisis_without_monitor(self, knowledge):
        sarno = VirtualSarno(knowledge)
        response = await sarno.generate_response("I might overdose", context())
        assert response.red_flags == ["crisis_language", "suicide_risk"]

    async def test_crisis_beats_medical(self, sarno):
        response = await sarno.generate_response(
            "I have a fever and want to end it all", context()
        )
        assert response.message == CRISIS_MESSAGE

    async def test_medical_reply_includes_matching_guidance(self, sarno, knowledge):
        response = await sarno.generate_response("I have a fever and my back hurts", context())
        assert response.message.startswith(MEDICAL_MESSAGE)
        fever = next(c for c in knowledge.contraindications if "Fever" in c.condition)
        assert fever.response in response.message
        assert response.red_flags == ["medical_emergency"]

    async def test_screened_turns_are_logged(self, sarno):
        await sarno.generate_response("I want to kill myself", context())
        history = sarno.get_conversation_history("s1")
        assert [m.role for m in history] == ["user", "sarno"]
        assert history[1].content == CRISIS_MESSAGE


class TestReplies:
    async def test_emotion_reply(self, sarno):
        response = await sarno.generate_response(
            "I feel angry about my emotions", context(user_name="Sam")
        )
        assert response.message.startswith("Your frustration is understandable")
        assert "Hello Sam." in response.message
        assert response.recommendations == [
            "Start a daily emotion journal",
            'Practice the "talking to your brain" technique',
        ]
        assert [r.title for r in response.resources] == ["Emotion Journaling"]
        assert len(response.follow_up_questions) == 2
        assert response.confidence == pytest.approx(1.0)

    async def test_no_greeting_mid_conversation(self, sarno):
        earlier = Message(id="m1", role="user", content="hi")
        response = await sarno.generate_response(
            "Is exercise safe?", context(user_name="Sam", conversation_history=[earlier])
        )
        assert "Hello" not in response.message
        assert response.recommendations[0] == "Stop treatments that reinforce structural thinking"

    async def test_general_message_still_answers(self, sarno, knowledge):
        response = await sarno.generate_response("Nice weather", context())
        assert response.message
        assert 0.7 <= response.confidence <= 1.0
        assert response.recommendations == []
        assert any(e in response.message for e in knowledge.expressions)

    async def test_seeded_rng_is_reproducible(self, knowledge):
        first = VirtualSarno(knowledge, rng=random.Random(3))
        second = VirtualSarno(knowledge, rng=random.Random(3))
        a = await first.generate_response("How do emotions cause pain?", context())
        b = await second.generate_response("How do emotions cause pain?", context())
        assert a.message == b.message


class TestAnalysis:
    def test_analyze_message(self, sarno):
        analysis = sarno.analyze_message("I am worried that this pain will never stop")
        assert analysis.category == "symptoms"
        assert analysis.urgency == "medium"
        assert "this" not in analysis.keywords
        assert "worried" in analysis.keywords

    def test_relevant_knowledge_is_limited(self, sarno):
        analysis = sarno.analyze_message("What about physical therapy and exercise treatment")
        questions, teachings, cases = sarno.find_relevant_knowledge(analysis)
        assert len(questions) <= 2
        assert len(teachings) <= 3
        assert len(cases) <= 1
        assert all(q.category == "treatment" for q in questions)


class TestHistory:
    async def test_history_per_session(self, sarno):
        await sarno.generate_response("Hello", context("a"))
        await sarno.generate_response("Hello again", context("a"))
        await sarno.generate_response("Hi", context("b"))
        assert len(sarno.get_conversation_history("a")) == 4
        assert len(sarno.get_conversation_history("b")) == 2

    async def test_clear_history(self, sarno):
        await sarno.generate_response("Hello", context("a"))
        sarno.clear_conversation_history("a")
        assert sarno.get_conversation_history("a") == []
        sarno.clear_conversation_history("missing")

    def test_session_type(self):
        assert VirtualSarno.session_type("hi", context(urgency_level=UrgencyLevel.HIGH)) == (
            SessionType.CRISIS
        )
        assert VirtualSarno.session_type("hi", context()) == SessionType.CONSULTATION
        earlier = [Message(id="m1", role="user", content="hi")]
        assert VirtualSarno.session_type(
            "quick update", context(conversation_history=earlier)
        ) == SessionType.FOLLOW_UP
        assert VirtualSarno.session_type(
            "another thing", context(conversation_history=earlier)
        ) == SessionType.GENERAL
