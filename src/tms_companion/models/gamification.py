"""Gamification models: badges, achievements, levels, streaks and events."""

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from tms_companion.models.timestamps import LocalDateTime


class BadgeCategory(StrEnum):
    LEARNING = "learning"
    CONSISTENCY = "consistency"
    PROGRESS = "progress"
    MILESTONE = "milestone"
    SPECIAL = "special"


class Rarity(StrEnum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class ActivityType(StrEnum):
    JOURNAL = "journal"
    EDUCATION = "education"
    PAIN_TRACKER = "pain_tracker"
    ASSESSMENT = "assessment"
    MILESTONE = "milestone"


class StreakType(StrEnum):
    DAILY_CHECKIN = "daily_checkin"
    JOURNAL_ENTRY = "journal_entry"
    EDUCATION = "education"
    PAIN_TRACKING = "pain_tracking"
    OVERALL = "overall"


class Badge(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    icon: str
    category: BadgeCategory
    rarity: Rarity


class UnlockedBadge(BaseModel):
    badge: Badge
    unlocked_at: LocalDateTime


class AchievementCriteria(BaseModel):
    model_config = ConfigDict(frozen=True)

    metric: str
    operator: Literal["equals", "greater_than", "less_than", "greater_equal", "less_equal"]
    value: float
    timeframe: str | None = None


class AchievementReward(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["badge", "points", "title", "feature_unlock"]
    value: str | int


class Achievement(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    type: str  # streak, completion, score, time, special
    criteria: AchievementCriteria
    reward: AchievementReward


class UnlockedAchievement(BaseModel):
    achievement: Achievement
    unlocked_at: LocalDateTime


class UserLevel(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: int
    title: str
    description: str
    experience_required: int
    benefits: tuple[str, ...] = ()
    color: str = ""


class ProgressStreak(BaseModel):
    type: StreakType
    current: int = 0
    longest: int = 0
    last_activity: LocalDateTime | None = None


class ActivityEntry(BaseModel):
    id: str
    type: ActivityType
    timestamp: LocalDateTime
    experience_gained: int
    description: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class GoalCounter(BaseModel):
    target: int
    current: int = 0

    @property
    def reached(self) -> bool:
        return self.current >= self.target


class WeeklyGoalTargets(BaseModel):
    journal_entries: GoalCounter = Field(default_factory=lambda: GoalCounter(target=5))
    education_modules: GoalCounter = Field(default_factory=lambda: GoalCounter(target=2))
    pain_tracking: GoalCounter = Field(default_factory=lambda: GoalCounter(target=7))
    overall_engagement: GoalCounter = Field(default_factory=lambda: GoalCounter(target=10))


class GoalReward(BaseModel):
    experience: int
    badge: str | None = None
    title: str | None = None


class WeeklyGoal(BaseModel):
    id: str
    week: str  # YYYY-Www
    goals: WeeklyGoalTargets = Field(default_factory=WeeklyGoalTargets)
    is_completed: bool = False
    completed_at: LocalDateTime | None = None
    reward: GoalReward | None = None

    @property
    def all_targets_reached(self) -> bool:
        g = self.goals
        return all(
            c.reached
            for c in (g.journal_entries, g.education_modules, g.pain_tracking, g.overall_engagement)
        )


class MilestoneCriteria(BaseModel):
    type: str  # pain_reduction, education_completion, streak_achievement, time_milestone
    value: float
    unit: str


class GamificationMilestone(BaseModel):
    id: str
    name: str
    description: str
    category: Literal["recovery", "learning", "engagement", "time"]
    criteria: MilestoneCriteria
    is_achieved: bool = False
    achieved_at: LocalDateTime | None = None
    reward: GoalReward


def _default_streaks() -> dict[str, ProgressStreak]:
    return {t.value: ProgressStreak(type=t) for t in StreakType}


class UserStats(BaseModel):
    total_experience: int = Field(default=0, ge=0)
    current_level: int = 1
    badges: list[UnlockedBadge] = Field(default_factory=list)
    achievements: list[UnlockedAchievement] = Field(default_factory=list)
    streaks: dict[str, ProgressStreak] = Field(default_factory=_default_streaks)
    activity_history: list[ActivityEntry] = Field(default_factory=list)
    weekly_goals: list[WeeklyGoal] = Field(default_factory=list)
    milestones: list[GamificationMilestone] = Field(default_factory=list)

    def has_badge(self, badge_id: str) -> bool:
        return any(b.badge.id == badge_id for b in self.badges)

    def has_achievement(self, achievement_id: str) -> bool:
        return any(a.achievement.id == achievement_id for a in self.achievements)

    def activities(self, activity_type: ActivityType) -> list[ActivityEntry]:
        return [a for a in self.activity_history if a.type == activity_type]


# Events ---------------------------------------------------------------


class JournalEntryCreated(BaseModel):
    type: Literal["JOURNAL_ENTRY_CREATED"] = "JOURNAL_ENTRY_CREATED"
    entry_id: str
    word_count: int = Field(ge=0)
    breakthrough: bool = False


class EducationModuleCompleted(BaseModel):
    type: Literal["EDUCATION_MODULE_COMPLETED"] = "EDUCATION_MODULE_COMPLETED"
    module_id: str
    score: int = Field(ge=0, le=100)
    time_spent: float = Field(default=0, ge=0)  # minutes


class PainLevelLogged(BaseModel):
    type: Literal["PAIN_LEVEL_LOGGED"] = "PAIN_LEVEL_LOGGED"
    level: int = Field(ge=1, le=10)
    improvement: bool = False


class StreakMilestoneReached(BaseModel):
    type: Literal["STREAK_MILESTONE"] = "STREAK_MILESTONE"
    streak_type: str
    count: int = Field(ge=0)


class WeeklyGoalCompleted(BaseModel):
    type: Literal["WEEKLY_GOAL_COMPLETED"] = "WEEKLY_GOAL_COMPLETED"
    week_id: str
    category: str = ""


class AssessmentCompleted(BaseModel):
    type: Literal["ASSESSMENT_COMPLETED"] = "ASSESSMENT_COMPLETED"
    assessment_type: str
    score: int = Field(ge=0, le=100)


class MilestoneAchieved(BaseModel):
    type: Literal["MILESTONE_ACHIEVED"] = "MILESTONE_ACHIEVED"
    milestone_id: str
    category: str = ""


GamificationEvent = Annotated[
    JournalEntryCreated
    | EducationModuleCompleted
    | PainLevelLogged
    | StreakMilestoneReached
    | WeeklyGoalCompleted
    | AssessmentCompleted
    | MilestoneAchieved,
    Field(discriminator="type"),
]

event_adapter: TypeAdapter[GamificationEvent] = TypeAdapter(GamificationEvent)


class EventResult(BaseModel):
    experience_gained: int = 0
    new_badges: list[UnlockedBadge] = Field(default_factory=list)
    new_achievements: list[UnlockedAchievement] = Field(default_factory=list)
    level_up: bool = False
    new_level: int | None = None


class LevelProgress(BaseModel):
    current: int
    required: int
    percentage: int
