"""Experience, streak, badge and achievement processing for one user."""

import uuid
from collections.abc import Callable
from datetime import date, datetime, timedelta

import structlog

from tms_companion.models.gamification import (
    Achievement,
    ActivityEntry,
    ActivityType,
    AssessmentCompleted,
    Badge,
    EducationModuleCompleted,
    EventResult,
    GamificationEvent,
    GoalReward,
    JournalEntryCreated,
    LevelProgress,
    MilestoneAchieved,
    PainLevelLogged,
    ProgressStreak,
    StreakMilestoneReached,
    StreakType,
    UnlockedAchievement,
    UnlockedBadge,
    UserLevel,
    UserStats,
    WeeklyGoal,
    WeeklyGoalCompleted,
)
from tms_companion.rules.gamification import (
    ACHIEVEMENTS,
    BADGE_UNLOCK_CRITERIA,
    BADGES,
    STREAK_MULTIPLIERS,
    USER_LEVELS,
    BadgePredicate,
    ExperienceRates,
    calculate_level,
    calculate_streak_multiplier,
    pain_reduction_percentage,
)

logger = structlog.get_logger()

WEEKLY_GOAL_REWARD = GoalReward(experience=100, badge="week_streak")

_EVENT_STREAKS: dict[type, StreakType] = {
    JournalEntryCreated: StreakType.JOURNAL_ENTRY,
    EducationModuleCompleted: StreakType.EDUCATION,
    PainLevelLogged: StreakType.PAIN_TRACKING,
}


def week_id(moment: datetime) -> str:
    year, week, _ = moment.isocalendar()
    return f"{year}-W{week:02d}"


def compare(value: float, operator: str, target: float) -> bool:
    match operator:
        case "equals":
            return value == target
        case "greater_than":
            return value > target
        case "less_than":
            return value < target
        case "greater_equal":
            return value >= target
        case "less_equal":
            return value <= target
    return False


class GamificationEngine:
    """Turns activity events into experience, streaks, badges and levels.

    The engine owns its ``UserStats``; callers only ever see copies, so
    experience and streak records cannot be rewound from outside.

    Args:
        stats: Previously persisted stats to resume from.
        clock: Source of the current time.
        badges: Badge catalog.
        achievements: Achievement catalog.
        levels: Level threshold table.
        rates: Base experience per activity.
        streak_multipliers: Streak length to experience multiplier.
        badge_criteria: Unlock predicate per badge id.
    """

    def __init__(
        self,
        stats: UserStats | None = None,
        clock: Callable[[], datetime] = datetime.now,
        badges: tuple[Badge, ...] = BADGES,
        achievements: tuple[Achievement, ...] = ACHIEVEMENTS,
        levels: tuple[UserLevel, ...] = USER_LEVELS,
        rates: ExperienceRates | None = None,
        streak_multipliers: dict[int, float] | None = None,
        badge_criteria: dict[str, BadgePredicate] | None = None,
    ):
        self._stats = stats.model_copy(deep=True) if stats else UserStats()
        for streak_type in StreakType:
            self._stats.streaks.setdefault(streak_type.value, ProgressStreak(type=streak_type))
        self._clock = clock
        self.badges = badges
        self.achievements = achievements
        self.levels = tuple(sorted(levels, key=lambda lv: lv.experience_required))
        self.rates = rates or ExperienceRates()
        self.streak_multipliers = streak_multipliers or STREAK_MULTIPLIERS
        self.badge_criteria = badge_criteria or BADGE_UNLOCK_CRITERIA

    def get_stats(self) -> UserStats:
        return self._stats.model_copy(deep=True)

    def process_event(self, event: GamificationEvent) -> EventResult:
        """Score one event and apply level, badge, achievement and streak updates."""
        previous_level = self._stats.current_level
        result = EventResult(experience_gained=self._score(event))

        self._stats.total_experience += result.experience_gained
        self._stats.current_level = calculate_level(self._stats.total_experience, self.levels)
        if self._stats.current_level > previous_level:
            result.level_up = True
            result.new_level = self._stats.current_level
            logger.info("level_up", level=self._stats.current_level)

        result.new_badges = self._check_new_badges()
        result.new_achievements = self._check_new_achievements()
        self._update_streaks(event)
        self._advance_weekly_goal(event)

        logger.info(
            "gamification_event_processed",
            event_type=event.type,
            experience_gained=result.experience_gained,
            total_experience=self._stats.total_experience,
            new_badges=[b.badge.id for b in result.new_badges],
        )
        return result

    # Scoring -----------------------------------------------------------

    def _score(self, event: GamificationEvent) -> int:
        match event:
            case JournalEntryCreated():
                return self._process_journal_entry(event)
            case EducationModuleCompleted():
                return self._process_education_module(event)
            case PainLevelLogged():
                return self._process_pain_tracking(event)
            case StreakMilestoneReached():
                return self.rates.streak_bonus * (event.count // 7 + 1)
            case WeeklyGoalCompleted():
                return self._process_weekly_goal(event)
            case AssessmentCompleted():
                return self._process_assessment(event)
            case MilestoneAchieved():
                return self._process_milestone(event)
        return 0

    def _multiplier(self, streak_type: StreakType) -> float:
        return calculate_streak_multiplier(
            self._stats.streaks[streak_type.value].current, self.streak_multipliers
        )

    def _record_activity(
        self,
        entry_id: str,
        activity_type: ActivityType,
        experience: int,
        description: str,
        **metadata,
    ) -> None:
        self._stats.activity_history.append(
            ActivityEntry(
                id=entry_id,
                type=activity_type,
                timestamp=self._clock(),
                experience_gained=experience,
                description=description,
                metadata=metadata,
            )
        )

    def _process_journal_entry(self, event: JournalEntryCreated) -> int:
        word_bonus = min(event.word_count // 100 * 5, 25)
        experience = round(
            (self.rates.journal_entry + word_bonus) * self._multiplier(StreakType.JOURNAL_ENTRY)
        )
        self._record_activity(
            f"journal_{event.entry_id}",
            ActivityType.JOURNAL,
            experience,
            f"Wrote journal entry ({event.word_count} words)",
            word_count=event.word_count,
            breakthrough=event.breakthrough,
        )
        return experience

    def _process_education_module(self, event: EducationModuleCompleted) -> int:
        score_bonus = round(event.score / 100 * 20)
        speed_bonus = 10 if event.time_spent < 15 else 0
        experience = round(
            (self.rates.education_module + score_bonus + speed_bonus)
            * self._multiplier(StreakType.EDUCATION)
        )
        self._record_activity(
            f"education_{event.module_id}",
            ActivityType.EDUCATION,
            experience,
            f"Completed education module ({event.score}% score)",
            module_id=event.module_id,
            score=event.score,
            time_spent=event.time_spent,
        )
        return experience

    def _process_pain_tracking(self, event: PainLevelLogged) -> int:
        improvement_bonus = 10 if event.improvement else 0
        experience = round(
            (self.rates.pain_tracking + improvement_bonus)
            * self._multiplier(StreakType.PAIN_TRACKING)
        )
        note = " (improvement noted)" if event.improvement else ""
        self._record_activity(
            f"pain_{uuid.uuid4().hex[:12]}",
            ActivityType.PAIN_TRACKER,
            experience,
            f"Logged pain level: {event.level}/10{note}",
            level=event.level,
            improvement=event.improvement,
        )
        return experience

    def _process_weekly_goal(self, event: WeeklyGoalCompleted) -> int:
        goal = next((g for g in self._stats.weekly_goals if g.id == event.week_id), None)
        if goal is None or goal.is_completed:
            return 0
        goal.is_completed = True
        goal.completed_at = self._clock()
        if goal.reward and goal.reward.badge:
            self._grant_badge(goal.reward.badge)
        return goal.reward.experience if goal.reward else self.rates.weekly_goal

    def _process_assessment(self, event: AssessmentCompleted) -> int:
        experience = self.rates.assessment + round(event.score / 100 * 20)
        self._record_activity(
            f"assessment_{uuid.uuid4().hex[:12]}",
            ActivityType.ASSESSMENT,
            experience,
            f"Completed {event.assessment_type} assessment ({event.score}% score)",
            assessment_type=event.assessment_type,
            score=event.score,
        )
        return experience

    def _process_milestone(self, event: MilestoneAchieved) -> int:
        milestone = next((m for m in self._stats.milestones if m.id == event.milestone_id), None)
        if milestone is None:
            return self.rates.milestone_bonus
        if milestone.is_achieved:
            return 0
        milestone.is_achieved = True
        milestone.achieved_at = self._clock()
        return milestone.reward.experience

    # Unlocks -----------------------------------------------------------

    def _grant_badge(self, badge_id: str) -> UnlockedBadge | None:
        if self._stats.has_badge(badge_id):
            return None
        badge = next((b for b in self.badges if b.id == badge_id), None)
        if badge is None:
            return None
        unlocked = UnlockedBadge(badge=badge, unlocked_at=self._clock())
        self._stats.badges.append(unlocked)
        logger.info("badge_unlocked", badge_id=badge_id)
        return unlocked

    def _check_new_badges(self) -> list[UnlockedBadge]:
        new_badges = []
        for badge in self.badges:
            if self._stats.has_badge(badge.id):
                continue
            predicate = self.badge_criteria.get(badge.id)
            if predicate and predicate(self._stats):
                new_badges.append(self._grant_badge(badge.id))
        return new_badges

    def achievement_metric(self, metric: str) -> float | None:
        """Current value of an achievement metric, or None when not measurable yet."""
        education = self._stats.activities(ActivityType.EDUCATION)
        match metric:
            case "journal_streak":
                return self._stats.streaks[StreakType.JOURNAL_ENTRY.value].current
            case "education_average_score":
                if not education:
                    return None
                return sum(a.metadata.get("score", 0) for a in education) / len(education)
            case "pain_reduction_percentage":
                return pain_reduction_percentage(self._stats)
            case "modules_completion_time":
                recent = education[-3:]
                if len(recent) < 3:
                    return None
                return sum(a.metadata.get("time_spent", 0) for a in recent)
        return None

    def _check_new_achievements(self) -> list[UnlockedAchievement]:
        new_achievements = []
        for achievement in self.achievements:
            if self._stats.has_achievement(achievement.id):
                continue
            criteria = achievement.criteria
            value = self.achievement_metric(criteria.metric)
            if value is None or not compare(value, criteria.operator, criteria.value):
                continue
            unlocked = UnlockedAchievement(achievement=achievement, unlocked_at=self._clock())
            self._stats.achievements.append(unlocked)
            new_achievements.append(unlocked)
            if achievement.reward.type == "badge":
                self._grant_badge(str(achievement.reward.value))
            logger.info("achievement_unlocked", achievement_id=achievement.id)
        return new_achievements

    # Streaks and goals -------------------------------------------------

    def _update_streaks(self, event: GamificationEvent) -> None:
        today = self._clock().date()
        streak_type = _EVENT_STREAKS.get(type(event))
        if streak_type is not None:
            self._update_streak(streak_type, today)
        self._update_streak(StreakType.OVERALL, today)

    def _update_streak(self, streak_type: StreakType, today: date) -> None:
        streak = self._stats.streaks[streak_type.value]
        last = streak.last_activity.date() if streak.last_activity else None
        if last == today:
            return
        if last == today - timedelta(days=1):
            streak.current += 1
        else:
            streak.current = 1
        streak.longest = max(streak.longest, streak.current)
        streak.last_activity = self._clock()

    def current_weekly_goal(self) -> WeeklyGoal | None:
        current = week_id(self._clock())
        return next((g for g in self._stats.weekly_goals if g.id == current), None)

    def create_weekly_goals(self) -> WeeklyGoal:
        """Return this week's goal record, creating it on first call."""
        existing = self.current_weekly_goal()
        if existing:
            return existing.model_copy(deep=True)
        current = week_id(self._clock())
        goal = WeeklyGoal(id=current, week=current, reward=WEEKLY_GOAL_REWARD)
        self._stats.weekly_goals.append(goal)
        logger.info("weekly_goals_created", week=current)
        return goal.model_copy(deep=True)

    def _advance_weekly_goal(self, event: GamificationEvent) -> None:
        goal = self.current_weekly_goal()
        if goal is None or goal.is_completed:
            return
        counters = goal.goals
        match event:
            case JournalEntryCreated():
                counters.journal_entries.current += 1
            case EducationModuleCompleted():
                counters.education_modules.current += 1
            case PainLevelLogged():
                counters.pain_tracking.current += 1
        counters.overall_engagement.current += 1
        if goal.all_targets_reached:
            logger.info("weekly_targets_reached", week=goal.week)

    # Levels ------------------------------------------------------------

    def get_progress_to_next_level(self) -> LevelProgress:
        """Progress through the current level's experience band.

        At the top level there is no next band: ``required`` is 0 and the
        percentage is reported as 100.
        """
        experience = self._stats.total_experience
        level_number = calculate_level(experience, self.levels)
        current_level = next(lv for lv in self.levels if lv.level == level_number)
        next_level = next((lv for lv in self.levels if lv.level == level_number + 1), None)
        current = experience - current_level.experience_required
        if next_level is None:
            return LevelProgress(current=current, required=0, percentage=100)
        required = next_level.experience_required - current_level.experience_required
        return LevelProgress(
            current=current,
            required=required,
            percentage=round(current / required * 100),
        )
