"""Badge, achievement and level tables plus experience rules."""

from collections import Counter
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict

from tms_companion.models.gamification import (
    Achievement,
    AchievementCriteria,
    AchievementReward,
    ActivityType,
    Badge,
    BadgeCategory,
    Rarity,
    UserLevel,
    UserStats,
)

BADGES: tuple[Badge, ...] = (
    # Learning
    Badge(id="first_module", name="Knowledge Seeker", description="Complete your first educational module", icon="📚", category=BadgeCategory.LEARNING, rarity=Rarity.COMMON),
    Badge(id="education_complete", name="TMS Scholar", description="Complete all educational modules", icon="🎓", category=BadgeCategory.LEARNING, rarity=Rarity.EPIC),
    Badge(id="perfect_quiz", name="Quiz Master", description="Score 100% on any educational quiz", icon="🏆", category=BadgeCategory.LEARNING, rarity=Rarity.UNCOMMON),
    Badge(id="speed_learner", name="Speed Learner", description="Complete 3 modules in one day", icon="⚡", category=BadgeCategory.LEARNING, rarity=Rarity.RARE),
    # Consistency
    Badge(id="first_journal", name="Journal Starter", description="Write your first journal entry", icon="✍️", category=BadgeCategory.CONSISTENCY, rarity=Rarity.COMMON),
    Badge(id="week_streak", name="Week Warrior", description="Maintain a 7-day activity streak", icon="🔥", category=BadgeCategory.CONSISTENCY, rarity=Rarity.UNCOMMON),
    Badge(id="month_streak", name="Consistency Champion", description="Maintain a 30-day activity streak", icon="💪", category=BadgeCategory.CONSISTENCY, rarity=Rarity.RARE),
    Badge(id="hundred_days", name="Centurion", description="Maintain a 100-day activity streak", icon="👑", category=BadgeCategory.CONSISTENCY, rarity=Rarity.LEGENDARY),
    # Progress
    Badge(id="pain_tracker", name="Pain Tracker", description="Log your pain levels for 7 consecutive days", icon="📊", category=BadgeCategory.PROGRESS, rarity=Rarity.COMMON),
    Badge(id="improvement_noted", name="Progress Pioneer", description="Record your first pain level improvement", icon="📈", category=BadgeCategory.PROGRESS, rarity=Rarity.UNCOMMON),
    Badge(id="significant_improvement", name="Healing Hero", description="Achieve a 50% reduction in average pain levels", icon="🌟", category=BadgeCategory.PROGRESS, rarity=Rarity.EPIC),
    # Milestones
    Badge(id="assessment_complete", name="Self-Aware", description="Complete the initial TMS assessment", icon="🧠", category=BadgeCategory.MILESTONE, rarity=Rarity.COMMON),
    Badge(id="month_journey", name="Monthly Milestone", description="Complete one month of TMS recovery work", icon="📅", category=BadgeCategory.MILESTONE, rarity=Rarity.UNCOMMON),
    Badge(id="recovery_graduate", name="Recovery Graduate", description="Complete the full TMS recovery program", icon="🎖️", category=BadgeCategory.MILESTONE, rarity=Rarity.LEGENDARY),
    # Special
    Badge(id="early_adopter", name="Early Adopter", description="Join the Virtual Sarno community", icon="🚀", category=BadgeCategory.SPECIAL, rarity=Rarity.RARE),
    Badge(id="breakthrough", name="Breakthrough Moment", description="Record a significant emotional breakthrough", icon="💡", category=BadgeCategory.SPECIAL, rarity=Rarity.EPIC),
    Badge(id="helper", name="Community Helper", description="Help another user in their recovery journey", icon="🤝", category=BadgeCategory.SPECIAL, rarity=Rarity.RARE),
)

ACHIEVEMENTS: tuple[Achievement, ...] = (
    Achievement(
        id="journal_streak_7",
        name="Weekly Journalist",
        description="Write journal entries for 7 consecutive days",
        type="streak",
        criteria=AchievementCriteria(metric="journal_streak", operator="greater_equal", value=7),
        reward=AchievementReward(type="badge", value="week_streak"),
    ),
    Achievement(
        id="education_master",
        name="Education Master",
        description="Complete all educational modules with 90%+ average score",
        type="completion",
        criteria=AchievementCriteria(
            metric="education_average_score", operator="greater_equal", value=90
        ),
        reward=AchievementReward(type="badge", value="education_complete"),
    ),
    Achievement(
        id="pain_improvement",
        name="Pain Reducer",
        description="Achieve 25% reduction in average pain levels over 2 weeks",
        type="score",
        criteria=AchievementCriteria(
            metric="pain_reduction_percentage", operator="greater_equal", value=25, timeframe="week"
        ),
        reward=AchievementReward(type="badge", value="improvement_noted"),
    ),
    Achievement(
        id="speed_completion",
        name="Quick Learner",
        description="Complete 3 educational modules in under 2 hours total",
        type="time",
        criteria=AchievementCriteria(
            metric="modules_completion_time", operator="less_than", value=120
        ),
        reward=AchievementReward(type="badge", value="speed_learner"),
    ),
)

USER_LEVELS: tuple[UserLevel, ...] = (
    UserLevel(level=1, title="TMS Newcomer", description="Just beginning your TMS recovery journey", experience_required=0, benefits=("Access to basic features", "Initial assessment"), color="#94a3b8"),
    UserLevel(level=2, title="Pain Explorer", description="Learning about the mind-body connection", experience_required=100, benefits=("Pain tracking tools", "Basic educational content"), color="#60a5fa"),
    UserLevel(level=3, title="Mindful Student", description="Actively engaging with TMS concepts", experience_required=300, benefits=("Advanced journaling prompts", "Progress analytics"), color="#34d399"),
    UserLevel(level=4, title="Recovery Practitioner", description="Consistently applying TMS principles", experience_required=600, benefits=("Personalized insights", "Advanced tracking"), color="#fbbf24"),
    UserLevel(level=5, title="Healing Advocate", description="Experienced in TMS recovery methods", experience_required=1000, benefits=("Community features", "Mentor tools"), color="#f472b6"),
    UserLevel(level=6, title="TMS Master", description="Expert practitioner of Dr. Sarno's methods", experience_required=1500, benefits=("All features unlocked", "Master insights"), color="#a855f7"),
    UserLevel(level=7, title="Recovery Guru", description="Achieved mastery in mind-body healing", experience_required=2500, benefits=("Guru status", "Special recognition"), color="#ef4444"),
)

# Total number of curriculum modules a learner can complete
EDUCATION_MODULE_COUNT = 5


class ExperienceRates(BaseModel):
    model_config = ConfigDict(frozen=True)

    journal_entry: int = 10
    education_module: int = 50
    pain_tracking: int = 5
    streak_bonus: int = 5
    milestone_bonus: int = 100
    assessment: int = 30
    weekly_goal: int = 50


# streak length -> multiplier
STREAK_MULTIPLIERS: dict[int, float] = {
    7: 1.2,
    14: 1.4,
    30: 1.6,
    60: 1.8,
    100: 2.0,
}


def pain_levels_logged(stats: UserStats) -> list[int]:
    return [
        int(a.metadata.get("level", 0))
        for a in stats.activities(ActivityType.PAIN_TRACKER)
        if a.metadata.get("level") is not None
    ]


def pain_reduction_percentage(stats: UserStats) -> float:
    """Percent drop from the first seven logged pain levels to the last seven.

    Needs at least fourteen entries; returns 0.0 otherwise.
    """
    levels = pain_levels_logged(stats)
    if len(levels) < 14:
        return 0.0
    initial = sum(levels[:7]) / 7
    recent = sum(levels[-7:]) / 7
    if initial == 0:
        return 0.0
    return (initial - recent) / initial * 100


def _max_modules_in_one_day(stats: UserStats) -> int:
    days = Counter(a.timestamp.date() for a in stats.activities(ActivityType.EDUCATION))
    return max(days.values(), default=0)


def _activity_span_days(stats: UserStats) -> int:
    if not stats.activity_history:
        return 0
    stamps = [a.timestamp for a in stats.activity_history]
    return (max(stamps) - min(stamps)).days


def _any_streak_at_least(stats: UserStats, length: int) -> bool:
    return any(s.current >= length for s in stats.streaks.values())


BadgePredicate = Callable[[UserStats], bool]

BADGE_UNLOCK_CRITERIA: dict[str, BadgePredicate] = {
    "first_module": lambda stats: bool(stats.activities(ActivityType.EDUCATION)),
    "education_complete": lambda stats: (
        len({a.metadata.get("module_id") for a in stats.activities(ActivityType.EDUCATION)})
        >= EDUCATION_MODULE_COUNT
    ),
    "perfect_quiz": lambda stats: any(
        a.metadata.get("score") == 100 for a in stats.activities(ActivityType.EDUCATION)
    ),
    "speed_learner": lambda stats: _max_modules_in_one_day(stats) >= 3,
    "week_streak": lambda stats: _any_streak_at_least(stats, 7),
    "month_streak": lambda stats: _any_streak_at_least(stats, 30),
    "hundred_days": lambda stats: _any_streak_at_least(stats, 100),
    "pain_tracker": lambda stats: len(stats.activities(ActivityType.PAIN_TRACKER)) >= 7,
    "improvement_noted": lambda stats: any(
        m.category == "recovery" and m.is_achieved for m in stats.milestones
    ),
    "significant_improvement": lambda stats: pain_reduction_percentage(stats) >= 50,
    "assessment_complete": lambda stats: bool(stats.activities(ActivityType.ASSESSMENT)),
    "month_journey": lambda stats: _activity_span_days(stats) >= 30,
    "first_journal": lambda stats: bool(stats.activities(ActivityType.JOURNAL)),
    # Awarded to all initial users
    "early_adopter": lambda stats: True,
    "breakthrough": lambda stats: any(
        a.metadata.get("breakthrough") is True for a in stats.activities(ActivityType.JOURNAL)
    ),
}


def calculate_level(experience: int, levels: tuple[UserLevel, ...] = USER_LEVELS) -> int:
    """Highest level whose threshold does not exceed the experience total."""
    for level in sorted(levels, key=lambda lv: lv.experience_required, reverse=True):
        if experience >= level.experience_required:
            return level.level
    return 1


def get_experience_for_next_level(
    experience: int, levels: tuple[UserLevel, ...] = USER_LEVELS
) -> int:
    current = calculate_level(experience, levels)
    next_level = next((lv for lv in levels if lv.level == current + 1), None)
    return next_level.experience_required - experience if next_level else 0


def calculate_streak_multiplier(
    streak_length: int, multipliers: dict[int, float] = STREAK_MULTIPLIERS
) -> float:
    """Multiplier of the highest threshold the streak has reached."""
    for threshold in sorted(multipliers, reverse=True):
        if streak_length >= threshold:
            return multipliers[threshold]
    return 1.0


def check_badge_unlock(
    badge_id: str,
    stats: UserStats,
    criteria: dict[str, BadgePredicate] = BADGE_UNLOCK_CRITERIA,
) -> bool:
    predicate = criteria.get(badge_id)
    return predicate(stats) if predicate else False
