"""Educational curriculum models."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class ModuleCategory(StrEnum):
    FUNDAMENTALS = "fundamentals"
    PERSONALITY = "personality"
    EMOTIONAL = "emotional"
    RECOVERY = "recovery"


class Difficulty(StrEnum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class SectionType(StrEnum):
    TEXT = "text"
    QUOTE = "quote"
    EXAMPLE = "example"
    WARNING = "warning"
    TIP = "tip"


class ContentSection(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    type: SectionType
    content: str


class Exercise(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    type: str  # reflection, breathing, visualization, journaling, physical
    estimated_time: int
    instructions: tuple[str, ...] = ()


class QuizQuestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    question: str
    type: str  # multiple-choice, true-false, short-answer
    options: tuple[str, ...] = ()
    correct_answer: str | int
    explanation: str = ""
    points: int = 10


class Quiz(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    questions: tuple[QuizQuestion, ...]
    passing_score: int  # percentage


class EducationalModule(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    category: ModuleCategory
    description: str
    estimated_read_time: int  # minutes
    difficulty: Difficulty
    prerequisite_modules: tuple[str, ...] = ()
    sections: tuple[ContentSection, ...] = ()
    key_takeaways: tuple[str, ...] = ()
    practical_exercises: tuple[Exercise, ...] = ()
    reflection_questions: tuple[str, ...] = ()
    quiz: Quiz | None = None
