"""
Progression Engine - Player level, skill unlocks, prestige and daily rewards.

Experience only arrives through rewards (the merchant's experience tome);
every level gained grants one skill point. Daily rewards are keyed on the
UTC calendar date of ``now``.
"""

from __future__ import annotations
from dataclasses import dataclass, fields, replace
from datetime import date, datetime

from .action import ActionResult
from .clock import as_utc
from .state import DailyRewardClaim, GameState, Progression, Settings

EXPERIENCE_PER_LEVEL = 100
SKILL_POINTS_PER_LEVEL = 1

SKILL_COSTS = {
    "combat_mastery": 1,
    "knowledge_boost": 2,
    "treasure_hunter": 2,
    "durability_expert": 3,
    "streak_master": 3,
    "health_regeneration": 4,
}

PRESTIGE_MIN_LEVEL = 50
PRESTIGE_POINTS_PER_LEVELS = 10

DAILY_REWARD_CYCLE_DAYS = 7
DAILY_COINS_PER_DAY = 100
DAILY_GEMS_PER_DAY = 5
DAILY_HISTORY_LIMIT = 30


@dataclass
class DailyReward:
    day: int
    coins: int
    gems: int


def experience_for_next(level: int) -> int:
    return EXPERIENCE_PER_LEVEL * level


def gain_experience(progression: Progression, amount: int) -> tuple[Progression, int]:
    """Add experience, levelling up as often as it covers. Returns levels gained."""
    level = progression.level
    experience = progression.experience + max(0, amount)
    to_next = progression.experience_to_next
    gained = 0
    while experience >= to_next:
        experience -= to_next
        level += 1
        gained += 1
        to_next = experience_for_next(level)

    return replace(
        progression,
        level=level,
        experience=experience,
        experience_to_next=to_next,
        skill_points=progression.skill_points + gained * SKILL_POINTS_PER_LEVEL,
    ), gained


def _utc_date(value: datetime) -> date:
    return as_utc(value).date()


def daily_reward_for(streak_day: int) -> DailyReward:
    day = (streak_day - 1) % DAILY_REWARD_CYCLE_DAYS + 1
    return DailyReward(day=day, coins=DAILY_COINS_PER_DAY * day, gems=DAILY_GEMS_PER_DAY * day)


@dataclass
class ProgressionEngine:

    # ------------------------------------------------------------------
    # Skills and prestige
    # ------------------------------------------------------------------

    def upgrade_skill(self, state: GameState, skill_id: str) -> ActionResult:
        cost = SKILL_COSTS.get(skill_id)
        if cost is None:
            return ActionResult.failure(f"Unknown skill {skill_id}", error_code="NOT_FOUND")

        progression = state.progression
        if skill_id in progression.unlocked_skills:
            return ActionResult.failure(f"{skill_id} is already unlocked", error_code="ALREADY_UNLOCKED")
        if progression.skill_points < cost:
            return ActionResult.failure(
                f"{skill_id} costs {cost} skill points, have {progression.skill_points}",
                error_code="INSUFFICIENT_SKILL_POINTS",
            )

        progression = replace(
            progression,
            skill_points=progression.skill_points - cost,
            unlocked_skills=progression.unlocked_skills + [skill_id],
        )
        return ActionResult.success_with_state(
            state._copy_with(progression=progression),
            changes=[f"Unlocked {skill_id} for {cost} skill points"],
        )

    def prestige(self, state: GameState) -> ActionResult:
        """Trade a level of at least 50 for prestige points; progression restarts."""
        progression = state.progression
        if progression.level < PRESTIGE_MIN_LEVEL:
            return ActionResult.failure(
                f"Prestige requires level {PRESTIGE_MIN_LEVEL}, at {progression.level}",
                error_code="PRESTIGE_LOCKED",
            )

        points = progression.level // PRESTIGE_POINTS_PER_LEVELS
        new_progression = Progression(
            prestige_level=progression.prestige_level + 1,
            prestige_points=progression.prestige_points + points,
        )
        return ActionResult.success_with_state(
            state._copy_with(progression=new_progression),
            changes=[f"Prestiged to rank {new_progression.prestige_level} (+{points} points)"],
            value=points,
        )

    # ------------------------------------------------------------------
    # Daily rewards
    # ------------------------------------------------------------------

    def daily_reward_available(self, state: GameState, now: datetime) -> bool:
        last = state.daily_rewards.last_claim_date
        return last is None or _utc_date(last) < _utc_date(now)

    def next_daily_reward(self, state: GameState, now: datetime) -> DailyReward | None:
        if not self.daily_reward_available(state, now):
            return None
        return daily_reward_for(self._next_streak(state, now))

    def claim_daily_reward(self, state: GameState, now: datetime) -> ActionResult:
        if not self.daily_reward_available(state, now):
            return ActionResult.failure("Daily reward already claimed today", error_code="NO_DAILY_REWARD")

        streak = self._next_streak(state, now)
        reward = daily_reward_for(streak)
        daily = state.daily_rewards
        claim = DailyRewardClaim(day=reward.day, coins=reward.coins, gems=reward.gems, claimed_at=now)
        stats = state.statistics
        new_state = state._copy_with(
            coins=state.coins + reward.coins,
            gems=state.gems + reward.gems,
            daily_rewards=replace(
                daily,
                last_claim_date=now,
                current_streak=streak,
                max_streak=max(daily.max_streak, streak),
                history=(daily.history + [claim])[-DAILY_HISTORY_LIMIT:],
            ),
            statistics=replace(
                stats,
                coins_earned=stats.coins_earned + reward.coins,
                gems_earned=stats.gems_earned + reward.gems,
            ),
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Day {reward.day} reward: {reward.coins} coins and {reward.gems} gems"],
            value=reward,
        )

    def _next_streak(self, state: GameState, now: datetime) -> int:
        # A missed calendar day restarts the streak
        daily = state.daily_rewards
        last = daily.last_claim_date
        if last is not None and (_utc_date(now) - _utc_date(last)).days == 1:
            return daily.current_streak + 1
        return 1

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def update_settings(self, state: GameState, changes: dict) -> ActionResult:
        """Merge known preferences; an unknown key or wrong type rejects the whole update."""
        current = state.settings
        known = {f.name for f in fields(Settings)}
        for key, value in changes.items():
            if key not in known:
                return ActionResult.failure(f"Unknown setting {key}", error_code="INVALID_SETTING")
            if type(value) is not type(getattr(current, key)):
                return ActionResult.failure(f"Invalid value for {key}", error_code="INVALID_SETTING")

        return ActionResult.success_with_state(
            state._copy_with(settings=replace(current, **changes)),
            changes=[f"Updated {', '.join(sorted(changes))}"] if changes else [],
        )
