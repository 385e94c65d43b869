"""Keyword classifiers used by the counselor to screen and route messages."""

from collections.abc import Sequence
from typing import Protocol

# A keyword is a phrase, or a tuple of phrases that must all appear
Keyword = str | tuple[str, ...]


class TextClassifier(Protocol):
    """Maps free text to a label, or None when nothing applies."""

    def classify(self, text: str) -> str | None: ...


def _normalize(keyword: Keyword) -> tuple[str, ...]:
    if isinstance(keyword, str):
        return (keyword.lower(),)
    return tuple(k.lower() for k in keyword)


class KeywordClassifier:
    """Ordered substring rules; the first rule with a matching keyword wins.

    Args:
        rules: (label, keywords) pairs checked in order against lowercased text.
        default: Label returned when no rule matches.
    """

    def __init__(self, rules: Sequence[tuple[str, Sequence[Keyword]]], default: str | None = None):
        self.rules = tuple(
            (label, tuple(_normalize(k) for k in keywords)) for label, keywords in rules
        )
        self.default = default

    @staticmethod
    def _hit(lowered: str, keyword: tuple[str, ...]) -> bool:
        return all(part in lowered for part in keyword)

    def matched_keywords(self, text: str) -> list[str]:
        lowered = text.lower()
        return [
            " + ".join(keyword)
            for _, keywords in self.rules
            for keyword in keywords
            if self._hit(lowered, keyword)
        ]

    def labels(self, text: str) -> list[str]:
        """Every label with at least one matching keyword, in rule order."""
        lowered = text.lower()
        return [
            label
            for label, keywords in self.rules
            if any(self._hit(lowered, keyword) for keyword in keywords)
        ]

    def classify(self, text: str) -> str | None:
        labels = self.labels(text)
        return labels[0] if labels else self.default


CRISIS_KEYWORDS = (
    "suicide",
    "kill myself",
    "end it all",
    "not worth living",
    "hurt myself",
    "self-harm",
    "overdose",
    "can't go on",
)

MEDICAL_KEYWORDS = (
    "fever",
    "infection",
    "bladder",
    "bowel",
    "weakness getting worse",
    "can't walk",
    "numbness spreading",
    "emergency",
    "accident",
)

INTENT_RULES: tuple[tuple[str, tuple[Keyword, ...]], ...] = (
    ("information_seeking", ("how", "what")),
    ("advice_seeking", ("should i", "what do")),
    ("symptom_concern", (("pain", "worse"),)),
    ("fear_expression", ("afraid", "scared")),
)

EMOTION_RULES: tuple[tuple[str, tuple[Keyword, ...]], ...] = (
    ("anger", ("frustrated", "angry")),
    ("fear", ("scared", "afraid")),
    ("sadness", ("sad", "depressed")),
    ("despair", ("hopeless", "giving up")),
    ("hope", ("better", "improving")),
)

URGENCY_RULES: tuple[tuple[str, tuple[Keyword, ...]], ...] = (
    ("high", ("urgent", "emergency")),
    ("medium", ("worried", "concerned")),
)

CATEGORY_RULES: tuple[tuple[str, tuple[Keyword, ...]], ...] = (
    ("symptoms", ("pain", "symptom")),
    ("treatment", ("exercise", "activity")),
    ("emotions", ("emotion", "angry")),
    ("medical", ("doctor", "medical")),
)


def crisis_classifier() -> KeywordClassifier:
    return KeywordClassifier([("crisis", CRISIS_KEYWORDS)])


def medical_classifier() -> KeywordClassifier:
    return KeywordClassifier([("medical", MEDICAL_KEYWORDS)])


def intent_classifier() -> KeywordClassifier:
    return KeywordClassifier(INTENT_RULES, default="general_question")


def category_classifier() -> KeywordClassifier:
    return KeywordClassifier(CATEGORY_RULES, default="general")


def emotion_classifier() -> KeywordClassifier:
    return KeywordClassifier(EMOTION_RULES)


def urgency_classifier() -> KeywordClassifier:
    return KeywordClassifier(URGENCY_RULES, default="low")
