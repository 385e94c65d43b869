"""Treatment progress: session logs, journal, milestones and reading progress."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from tms_companion.models.timestamps import LocalDateTime


class TreatmentPhase(StrEnum):
    """Program phases gated by assessment and safety screening."""

    ASSESSMENT = "assessment"
    EDUCATION = "education"
    TREATMENT = "treatment"
    MAINTENANCE = "maintenance"


class TreatmentSession(BaseModel):
    date: LocalDateTime = Field(default_factory=datetime.now)
    pain_level: int = Field(ge=1, le=10)
    emotional_state: str = ""
    insights: str = ""
    activities: list[str] = Field(default_factory=list)
    breakthroughs: str = ""


class ProgressMilestone(BaseModel):
    date: LocalDateTime = Field(default_factory=datetime.now)
    type: str  # first pain-free day, emotional breakthrough, etc.
    description: str = ""


class JournalEntry(BaseModel):
    date: LocalDateTime = Field(default_factory=datetime.now)
    prompt: str = ""
    response: str = ""
    emotional_tags: list[str] = Field(default_factory=list)

    @property
    def word_count(self) -> int:
        return len(self.response.split())


class ReadingProgress(BaseModel):
    completed_sections: list[str] = Field(default_factory=list)
    current_section: str = ""
    comprehension_scores: dict[str, int] = Field(default_factory=dict)


class TreatmentProgress(BaseModel):
    user_id: str
    start_date: LocalDateTime = Field(default_factory=datetime.now)
    current_phase: TreatmentPhase = TreatmentPhase.ASSESSMENT
    sessions: list[TreatmentSession] = Field(default_factory=list)
    milestones: list[ProgressMilestone] = Field(default_factory=list)
    journal_entries: list[JournalEntry] = Field(default_factory=list)
    reading_progress: ReadingProgress = Field(default_factory=ReadingProgress)

    def add_session(self, session: TreatmentSession) -> TreatmentSession:
        self.sessions.append(session)
        return session

    def add_journal_entry(self, entry: JournalEntry) -> JournalEntry:
        self.journal_entries.append(entry)
        return entry

    def add_milestone(self, milestone: ProgressMilestone) -> ProgressMilestone:
        self.milestones.append(milestone)
        return milestone

    def update_reading_progress(
        self,
        completed_sections: list[str] | None = None,
        current_section: str | None = None,
        comprehension_scores: dict[str, int] | None = None,
    ) -> ReadingProgress:
        """Merge new reading progress into the existing record.

        Completed sections are unioned (order preserved), scores are
        overwritten per module, and the current section is replaced only
        when given.
        """
        reading = self.reading_progress
        for section in completed_sections or []:
            if section not in reading.completed_sections:
                reading.completed_sections.append(section)
        if current_section is not None:
            reading.current_section = current_section
        if comprehension_scores:
            reading.comprehension_scores.update(comprehension_scores)
        return reading

    @property
    def pain_levels(self) -> list[int]:
        """Session pain levels in chronological order."""
        return [s.pain_level for s in sorted(self.sessions, key=lambda s: s.date)]

    def weeks_since_start(self, now: datetime | None = None) -> int:
        now = now or datetime.now()
        return (now - self.start_date).days // 7
