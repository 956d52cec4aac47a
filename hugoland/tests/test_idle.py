"""
Tests for idle accrual.

Tests:
- Offline earnings staging and claiming
- Garden growth and watering
- Market refresh and menu skill expiry
"""

from dataclasses import replace
from datetime import timedelta

import pytest

from ..engine_core.idle import IdleAccrualEngine
from ..engine_core.stats import compute_stats
from ..engine_core.state import Garden
from .conftest import with_menu_skill


@pytest.fixture
def idle():
    return IdleAccrualEngine()


def saved_ago(state, now, **kwargs):
    """State whose last save happened the given interval before ``now``."""
    return state._copy_with(offline=replace(state.offline, last_save_time=now - timedelta(**kwargs)))


class TestOfflineEarnings:
    """Tests for staging and claiming offline earnings."""

    def test_five_minutes_offline(self, idle, state, rng, now):
        result = idle.reconcile(saved_ago(state, now, seconds=300), rng, now)

        offline = result.new_state.offline
        assert offline.offline_coins == 30
        assert offline.offline_gems == 3
        assert offline.offline_seconds == 300
        assert offline.last_save_time == now
        # Staged, not yet live
        assert result.new_state.coins == 500
        assert result.new_state.gems == 50

    def test_research_level_scales_earnings(self, idle, state, rng, now):
        state = saved_ago(state, now, seconds=300)
        state = state._copy_with(research=replace(state.research, level=3))

        result = idle.reconcile(state, rng, now)

        assert result.new_state.offline.offline_coins == 90
        assert result.new_state.offline.offline_gems == 9

    def test_below_threshold_accrues_nothing(self, idle, state, rng, now):
        result = idle.reconcile(saved_ago(state, now, seconds=59), rng, now)

        assert result.new_state.offline.offline_coins == 0
        assert result.value.elapsed_seconds == 0

    def test_offline_time_is_capped(self, idle, state, rng, now):
        result = idle.reconcile(saved_ago(state, now, hours=20), rng, now)

        assert result.value.elapsed_seconds == 8 * 3600
        assert result.new_state.offline.offline_coins == 2880
        assert result.new_state.offline.offline_gems == 288

    def test_reconcile_twice_does_not_double_count(self, idle, state, rng, now):
        first = idle.reconcile(saved_ago(state, now, seconds=300), rng, now).new_state
        second = idle.reconcile(first, rng, now).new_state
        assert second.offline.offline_coins == 30

    def test_staged_earnings_accumulate_until_claimed(self, idle, state, rng, now):
        first = idle.reconcile(saved_ago(state, now, seconds=300), rng, now).new_state
        later = now + timedelta(seconds=300)
        second = idle.reconcile(first, rng, later).new_state
        assert second.offline.offline_coins == 60

    def test_claim_moves_staged_earnings(self, idle, state, rng, now):
        staged = idle.reconcile(saved_ago(state, now, seconds=300), rng, now).new_state

        result = idle.claim(staged)

        assert result.value.coins == 30
        assert result.value.gems == 3
        assert result.new_state.coins == 530
        assert result.new_state.gems == 53
        assert result.new_state.offline.offline_coins == 0

    def test_second_claim_yields_nothing(self, idle, state, rng, now):
        staged = idle.reconcile(saved_ago(state, now, seconds=300), rng, now).new_state
        claimed = idle.claim(staged).new_state

        again = idle.claim(claimed)

        assert again.success
        assert again.value.coins == 0
        assert again.new_state.coins == claimed.coins

    def test_start_session_restores_free_revival(self, idle, state, now):
        state = state._copy_with(has_used_revival=True)
        later = now + timedelta(hours=1)

        new_state = idle.start_session(state, later)

        assert not new_state.has_used_revival
        assert new_state.skills.session_start_time == later


class TestGarden:
    """Tests for planting, watering and growth."""

    def _planted(self, state, now, water_hours):
        return state._copy_with(
            garden=Garden(is_planted=True, planted_at=now, water_hours_remaining=water_hours)
        )

    def test_plant_garden(self, idle, state, now):
        state = state._copy_with(coins=2000)
        result = idle.plant_garden(state, now)

        assert result.success
        garden = result.new_state.garden
        assert garden.is_planted
        assert garden.planted_at == now
        assert garden.water_hours_remaining == 24
        assert result.new_state.coins == 1000

    def test_plant_twice(self, idle, state, now):
        planted = idle.plant_garden(state._copy_with(coins=5000), now).new_state
        result = idle.plant_garden(planted, now)
        assert result.error_code == "ALREADY_PLANTED"

    def test_plant_insufficient_coins(self, idle, state, now):
        result = idle.plant_garden(state, now)
        assert result.error_code == "INSUFFICIENT_COINS"

    def test_water_garden(self, idle, state, now):
        state = self._planted(state, now, 0)
        result = idle.water_garden(state, 12, now)

        assert result.new_state.coins == 0
        assert result.new_state.garden.water_hours_remaining == 12

    def test_water_unplanted(self, idle, state, now):
        result = idle.water_garden(state, 12, now)
        assert result.error_code == "NOT_PLANTED"

    def test_water_non_positive_hours(self, idle, state, now):
        result = idle.water_garden(self._planted(state, now, 0), 0, now)
        assert result.error_code == "INVALID_AMOUNT"

    def test_growth_stops_when_water_runs_out(self, idle, state, rng, now):
        state = saved_ago(self._planted(state, now, water_hours=2), now, hours=5)

        result = idle.reconcile(state, rng, now)

        garden = result.new_state.garden
        assert garden.growth_cm == pytest.approx(1.0)
        assert garden.water_hours_remaining == 0
        assert garden.total_growth_bonus == pytest.approx(5.0)

    def test_growth_is_capped(self, idle, state, rng, now):
        state = self._planted(state, now, water_hours=100)
        state = state._copy_with(garden=replace(state.garden, growth_cm=99.8))
        state = saved_ago(state, now, hours=4)

        result = idle.reconcile(state, rng, now)

        assert result.new_state.garden.growth_cm == pytest.approx(100.0)

    def test_garden_booster(self, idle, state, rng, now):
        state = self._planted(state, now, water_hours=10)
        state = with_menu_skill(saved_ago(state, now, hours=1), "garden_booster", now, hours=2)

        result = idle.reconcile(state, rng, now)

        assert result.new_state.garden.growth_cm == pytest.approx(2.5)

    def test_garden_bonus_boosts_stats(self, state, now):
        state = state._copy_with(garden=Garden(is_planted=True, growth_cm=2, total_growth_bonus=10))
        player = compute_stats(state, now)

        assert player.atk == 27
        assert player.defense == 16
        assert player.max_hp == 110


class TestMarketAndExpiry:
    """Tests for market refresh and menu skill expiry."""

    def test_market_replaced_wholesale(self, idle, state, rng, now):
        later = state.market.next_refresh + timedelta(seconds=1)
        old_ids = {item.item_id for item in state.market.items}

        result = idle.reconcile(state, rng, later)

        market = result.new_state.market
        assert result.value.market_refreshed
        assert 3 <= len(market.items) <= 5
        assert old_ids.isdisjoint(item.item_id for item in market.items)
        assert market.last_refresh == later
        assert market.next_refresh == later + timedelta(minutes=5)

    def test_refresh_not_due(self, idle, state, rng, now):
        result = idle.refresh_market_if_due(state, rng, now)

        assert result.value is False
        assert result.new_state.market.items == state.market.items

    def test_refresh_due(self, idle, state, rng):
        result = idle.refresh_market_if_due(state, rng, state.market.next_refresh)
        assert result.value is True

    def test_expired_menu_skill_cleared(self, idle, state, rng, now):
        state = with_menu_skill(state, "golden_touch", now - timedelta(hours=10), hours=8)

        result = idle.reconcile(state, rng, now)

        assert result.new_state.skills.active_menu_skill is None
        assert result.value.menu_skill_expired

    def test_active_menu_skill_kept(self, idle, state, rng, now):
        state = with_menu_skill(state, "golden_touch", now, hours=8)
        result = idle.reconcile(state, rng, now)
        assert result.new_state.skills.active_menu_skill is not None
