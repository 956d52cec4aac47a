"""
Tests for the reducer (state transitions).

Tests:
- Action dispatch
- Derived stat recomputation
- Validation and error handling
- A full encounter through actions
"""

import random
from dataclasses import replace

import pytest

from ..engine_core.action import Action, ActionType
from ..engine_core.reducer import Reducer, initial_state
from ..engine_core.state import CombatPhase, GameModeType, MerchantReward, MerchantRewardType
from .conftest import with_menu_skill


@pytest.fixture
def reducer(rng):
    return Reducer(rng=rng)


class TestInitialState:
    """Tests for a fresh game."""

    def test_fresh_game(self, rng, now):
        state = initial_state(rng, now)

        assert state.coins == 500
        assert state.gems == 50
        assert state.zone == 1
        assert state.player.hp == state.player.max_hp == 100
        assert state.player.atk == 25
        assert state.player.defense == 15
        assert 3 <= len(state.market.items) <= 5
        assert state.combat.phase == CombatPhase.IDLE
        assert state.offline.last_save_time == now

    def test_fresh_game_is_seeded(self, now):
        first = initial_state(random.Random(7), now)
        second = initial_state(random.Random(7), now)
        assert first == second


class TestDispatch:
    """Tests for handler dispatch and failures."""

    def test_every_action_type_has_handler(self, reducer):
        for action_type in ActionType:
            assert reducer._get_handler(action_type) is not None

    def test_missing_handler(self, reducer, state, now, monkeypatch):
        monkeypatch.setattr(reducer, "_get_handler", lambda action_type: None)
        result = reducer.apply(state, Action.start_combat(), now)

        assert not result.success
        assert result.error_code == "NO_HANDLER"

    def test_handler_exception_is_reported(self, reducer, state, now, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("engine exploded")

        monkeypatch.setattr(reducer.combat, "start_combat", boom)
        result = reducer.apply(state, Action.start_combat(), now)

        assert not result.success
        assert result.error_code == "HANDLER_ERROR"
        assert "engine exploded" in result.error

    def test_rejection_leaves_state_untouched(self, reducer, state, now):
        before = state.clone()
        result = reducer.apply(state, Action.open_chest(10_000), now)

        assert not result.success
        assert result.new_state is None
        assert state == before

    def test_missing_chest_cost(self, reducer, state, now):
        result = reducer.apply(state, Action(action_type=ActionType.OPEN_CHEST), now)
        assert result.error_code == "INVALID_AMOUNT"


class TestDerivedStats:
    """Tests for stat recomputation after each action."""

    def test_menu_skill_applied_after_any_action(self, reducer, state, now):
        state = with_menu_skill(state, "stat_amplifier", now, hours=4)
        result = reducer.apply(state, Action.claim_idle_rewards(), now)

        player = result.new_state.player
        assert player.atk == 37
        assert player.defense == 22
        assert player.max_hp == 150

    def test_hp_clamped_to_max(self, reducer, state, now):
        state = state._copy_with(player=replace(state.player, hp=250))
        result = reducer.apply(state, Action.claim_idle_rewards(), now)
        assert result.new_state.player.hp == 100

    def test_merchant_attack_reward_reflected(self, reducer, state, now):
        reward = MerchantReward("m1", MerchantRewardType.ATTACK, "Power Enhancement", attack_multiplier=1.25)
        state = state._copy_with(merchant=replace(state.merchant, available_rewards=[reward]))

        result = reducer.apply(state, Action.select_merchant_reward("m1"), now)

        assert result.new_state.player.atk == 31


class TestSettings:
    """Tests for game mode and reset."""

    def test_set_survival_mode(self, reducer, state, now):
        state = state._copy_with(game_mode=replace(state.game_mode, survival_lives=0))
        result = reducer.apply(state, Action.set_game_mode("survival"), now)

        assert result.new_state.game_mode.current == GameModeType.SURVIVAL
        assert result.new_state.game_mode.survival_lives == 3

    def test_unknown_game_mode(self, reducer, state, now):
        result = reducer.apply(state, Action.set_game_mode("chaos"), now)
        assert result.error_code == "NOT_FOUND"

    def test_reset_game(self, reducer, state, now):
        state = state._copy_with(coins=9999, zone=12)
        result = reducer.apply(state, Action.reset_game(), now)

        assert result.new_state.coins == 500
        assert result.new_state.zone == 1


class TestEncounter:
    """A full encounter driven through actions."""

    def test_three_hits_win_zone_one(self, reducer, state, now):
        state = reducer.apply(state, Action.start_combat(), now).new_state
        assert state.combat.phase == CombatPhase.DRAFTING

        state = reducer.apply(state, Action.skip_adventure_skill(), now).new_state
        assert state.combat.phase == CombatPhase.ACTIVE

        outcomes = []
        for _ in range(3):
            result = reducer.apply(state, Action.answer_turn(True, "Math"), now)
            assert result.success
            state = result.new_state
            outcomes.append(result.value)

        assert [o.damage_dealt for o in outcomes] == [20, 20, 20]
        assert outcomes[-1].victory
        assert state.zone == 2
        assert state.combat.phase == CombatPhase.IDLE
        assert state.streak.current == 3
        assert state.statistics.accuracy_by_category["Math"].correct == 3

    def test_answer_while_drafting_rejected(self, reducer, state, now):
        state = reducer.apply(state, Action.start_combat(), now).new_state
        result = reducer.apply(state, Action.answer_turn(True), now)
        assert result.error_code == "INVALID_PHASE"
