"""
Tests for player progression.

Tests:
- Experience and level-ups
- Skill unlocks and prestige
- Daily login rewards
- Player settings
"""

from dataclasses import replace
from datetime import timedelta

import pytest

from ..engine_core.action import Action
from ..engine_core.progression import (
    DAILY_HISTORY_LIMIT,
    ProgressionEngine,
    gain_experience,
)
from ..engine_core.reducer import Reducer
from ..engine_core.state import DailyRewardClaim, DailyRewards, Progression


@pytest.fixture
def progression():
    return ProgressionEngine()


def with_progression(state, **values):
    return state._copy_with(progression=replace(state.progression, **values))


def claimed_at(state, when, streak=1):
    """State whose last daily reward was claimed at ``when``."""
    return state._copy_with(daily_rewards=DailyRewards(
        last_claim_date=when,
        current_streak=streak,
        max_streak=streak,
    ))


class TestExperience:
    """Tests for gaining experience."""

    def test_below_threshold(self):
        result, levels = gain_experience(Progression(), 50)

        assert levels == 0
        assert result.level == 1
        assert result.experience == 50

    def test_exact_threshold_levels_up(self):
        result, levels = gain_experience(Progression(), 100)

        assert levels == 1
        assert result.level == 2
        assert result.experience == 0
        assert result.experience_to_next == 200
        assert result.skill_points == 1

    def test_large_gain_crosses_several_levels(self):
        result, levels = gain_experience(Progression(), 3000)

        assert levels == 7
        assert result.level == 8
        assert result.experience == 200
        assert result.experience_to_next == 800

    def test_negative_gain_ignored(self):
        result, levels = gain_experience(Progression(experience=40), -500)

        assert levels == 0
        assert result.experience == 40


class TestSkills:
    """Tests for spending skill points."""

    def test_unlock_skill(self, progression, state):
        state = with_progression(state, skill_points=3)
        result = progression.upgrade_skill(state, "combat_mastery")

        assert result.success
        assert result.new_state.progression.skill_points == 2
        assert result.new_state.progression.unlocked_skills == ["combat_mastery"]

    def test_insufficient_points(self, progression, state):
        state = with_progression(state, skill_points=1)
        result = progression.upgrade_skill(state, "streak_master")

        assert not result.success
        assert result.error_code == "INSUFFICIENT_SKILL_POINTS"
        assert state.progression.unlocked_skills == []

    def test_skill_unlocks_once(self, progression, state):
        state = with_progression(state, skill_points=5, unlocked_skills=["combat_mastery"])
        result = progression.upgrade_skill(state, "combat_mastery")
        assert result.error_code == "ALREADY_UNLOCKED"

    def test_unknown_skill(self, progression, state):
        state = with_progression(state, skill_points=5)
        result = progression.upgrade_skill(state, "flight")
        assert result.error_code == "NOT_FOUND"


class TestPrestige:
    """Tests for prestige resets."""

    def test_locked_below_level_50(self, progression, state):
        result = progression.prestige(with_progression(state, level=49))

        assert not result.success
        assert result.error_code == "PRESTIGE_LOCKED"

    def test_prestige_resets_progression(self, progression, state):
        state = with_progression(
            state,
            level=57,
            experience=1234,
            experience_to_next=5700,
            skill_points=4,
            unlocked_skills=["combat_mastery"],
        )

        result = progression.prestige(state)

        assert result.success
        assert result.value == 5
        assert result.new_state.progression == Progression(prestige_level=1, prestige_points=5)

    def test_prestige_accumulates(self, progression, state):
        state = with_progression(state, level=50, prestige_level=1, prestige_points=3)
        result = progression.prestige(state)

        assert result.new_state.progression.prestige_level == 2
        assert result.new_state.progression.prestige_points == 8

    def test_prestige_keeps_currency(self, progression, state):
        result = progression.prestige(with_progression(state, level=60))

        assert result.new_state.coins == state.coins
        assert result.new_state.zone == state.zone


class TestDailyReward:
    """Tests for the once-a-day login reward."""

    def test_first_claim(self, progression, state, now):
        assert progression.daily_reward_available(state, now)

        result = progression.claim_daily_reward(state, now)

        assert result.success
        assert result.new_state.coins == 600
        assert result.new_state.gems == 55
        daily = result.new_state.daily_rewards
        assert daily.last_claim_date == now
        assert daily.current_streak == 1
        assert daily.max_streak == 1
        assert daily.history == [DailyRewardClaim(day=1, coins=100, gems=5, claimed_at=now)]
        assert result.new_state.statistics.coins_earned == 100

    def test_second_claim_same_day_rejected(self, progression, state, now):
        state = progression.claim_daily_reward(state, now).new_state

        result = progression.claim_daily_reward(state, now + timedelta(hours=11))

        assert not result.success
        assert result.error_code == "NO_DAILY_REWARD"
        assert progression.next_daily_reward(state, now) is None

    def test_consecutive_day_extends_streak(self, progression, state, now):
        state = claimed_at(state, now - timedelta(days=1), streak=1)

        result = progression.claim_daily_reward(state, now)

        assert result.value.day == 2
        assert result.value.coins == 200
        assert result.value.gems == 10
        assert result.new_state.daily_rewards.current_streak == 2

    def test_missed_day_restarts_streak(self, progression, state, now):
        state = claimed_at(state, now - timedelta(days=2), streak=4)

        result = progression.claim_daily_reward(state, now)

        assert result.value.day == 1
        assert result.new_state.daily_rewards.current_streak == 1
        assert result.new_state.daily_rewards.max_streak == 4

    def test_reward_cycles_weekly(self, progression, state, now):
        state = claimed_at(state, now - timedelta(days=1), streak=7)

        result = progression.claim_daily_reward(state, now)

        assert result.value.day == 1
        assert result.value.coins == 100
        assert result.new_state.daily_rewards.current_streak == 8
        assert result.new_state.daily_rewards.max_streak == 8

    def test_new_utc_day_unlocks_reward(self, progression, state, now):
        late = now.replace(hour=23, minute=30)
        state = progression.claim_daily_reward(state, late).new_state

        assert progression.daily_reward_available(state, late + timedelta(minutes=40))

    def test_history_is_bounded(self, progression, state, now):
        old = [
            DailyRewardClaim(day=1, coins=100, gems=5, claimed_at=now - timedelta(days=60 - i))
            for i in range(DAILY_HISTORY_LIMIT)
        ]
        state = state._copy_with(daily_rewards=DailyRewards(
            last_claim_date=old[-1].claimed_at,
            history=old,
        ))

        result = progression.claim_daily_reward(state, now)

        history = result.new_state.daily_rewards.history
        assert len(history) == DAILY_HISTORY_LIMIT
        assert history[-1].claimed_at == now


class TestSettings:
    """Tests for player preferences."""

    def test_update_settings(self, progression, state):
        result = progression.update_settings(state, {"dark_mode": False, "language": "fr"})

        assert result.success
        assert result.new_state.settings.dark_mode is False
        assert result.new_state.settings.language == "fr"
        assert result.new_state.settings.notifications is True

    def test_unknown_setting_rejected(self, progression, state):
        result = progression.update_settings(state, {"volume": 11})
        assert result.error_code == "INVALID_SETTING"

    @pytest.mark.parametrize("changes", [
        {"dark_mode": "yes"},
        {"language": True},
        {"dark_mode": False, "colorblind_mode": 1},
    ])
    def test_wrong_type_rejected(self, progression, state, changes):
        result = progression.update_settings(state, changes)

        assert not result.success
        assert result.error_code == "INVALID_SETTING"


class TestReducerRouting:
    """Tests for progression commands through the reducer."""

    def test_claim_daily_reward(self, state, rng, now):
        result = Reducer(rng=rng).apply(state, Action.claim_daily_reward(), now)

        assert result.success
        assert result.new_state.coins == 600

    def test_update_settings(self, state, rng, now):
        result = Reducer(rng=rng).apply(state, Action.update_settings(beauty_mode=True), now)
        assert result.new_state.settings.beauty_mode is True

    def test_upgrade_skill_without_points(self, state, rng, now):
        result = Reducer(rng=rng).apply(state, Action.upgrade_skill("combat_mastery"), now)
        assert result.error_code == "INSUFFICIENT_SKILL_POINTS"

    def test_prestige_locked_for_new_game(self, state, rng, now):
        result = Reducer(rng=rng).apply(state, Action.prestige(), now)
        assert result.error_code == "PRESTIGE_LOCKED"
