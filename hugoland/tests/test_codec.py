"""
Tests for the snapshot codec.

Tests:
- Round trips keep timestamps timezone-aware
- Corrupt sections are repaired individually
- Undecodable bytes start a fresh game
"""

import json
from dataclasses import replace
from datetime import timezone

import pytest

from ..engine_core.progression import ProgressionEngine
from ..engine_core.state import Garden, MenuSkill
from ..session.codec import StateIntegrityError, decode, decode_section, encode, repair
from .conftest import weapon, with_items, with_menu_skill


def _raw(state):
    return json.loads(encode(state))


class TestRoundTrip:
    """Tests for encode/decode."""

    def test_round_trip_preserves_state(self, state, rng, now):
        state = with_menu_skill(with_items(state, weapon()), "golden_touch", now, hours=8)
        state = state._copy_with(garden=Garden(is_planted=True, planted_at=now, water_hours_remaining=5))

        decoded = decode(encode(state), rng, now)

        assert decoded == state

    def test_timestamps_are_datetimes(self, state, rng, now):
        state = with_menu_skill(state, "treasurer", now)
        decoded = decode(encode(state), rng, now)

        skill = decoded.skills.active_menu_skill
        assert isinstance(skill, MenuSkill)
        assert skill.expires_at.tzinfo is not None
        assert skill.expires_at.utcoffset() == timezone.utc.utcoffset(None)
        assert decoded.market.next_refresh == state.market.next_refresh
        assert decoded.offline.last_save_time == now

    def test_daily_reward_history_round_trips(self, state, rng, now):
        state = ProgressionEngine().claim_daily_reward(state, now).new_state

        decoded = decode(encode(state), rng, now)

        assert decoded.daily_rewards == state.daily_rewards
        assert decoded.daily_rewards.history[0].claimed_at == now

    def test_naive_timestamps_read_as_utc(self, state, rng, now):
        raw = _raw(state)
        raw["offline"]["last_save_time"] = "2025-01-01T12:00:00"

        decoded = decode(json.dumps(raw).encode(), rng, now)

        assert decoded.offline.last_save_time == now

    def test_encoded_enums_are_values(self, state):
        raw = _raw(with_items(state, weapon()))
        assert raw["inventory"]["weapons"][0]["kind"] == "weapon"
        assert raw["combat"]["phase"] == "idle"


class TestCorruption:
    """Tests for per-section recovery."""

    def test_garbage_bytes_start_fresh(self, rng, now):
        decoded = decode(b"\x00not json", rng, now)

        assert decoded.coins == 500
        assert decoded.zone == 1

    def test_non_object_starts_fresh(self, rng, now):
        decoded = decode(b"[1, 2, 3]", rng, now)
        assert decoded.coins == 500

    def test_corrupt_section_replaced(self, state, rng, now):
        raw = _raw(state._copy_with(coins=1234, zone=7))
        raw["garden"] = "definitely not a garden"

        decoded = decode(json.dumps(raw).encode(), rng, now)

        assert decoded.garden == Garden()
        assert decoded.coins == 1234
        assert decoded.zone == 7

    def test_missing_section_replaced(self, state, rng, now):
        raw = _raw(state._copy_with(gems=77))
        del raw["streak"]

        decoded = decode(json.dumps(raw).encode(), rng, now)

        assert decoded.streak.current == 0
        assert decoded.gems == 77

    def test_corrupt_timestamp_replaced(self, state, rng, now):
        raw = _raw(state)
        raw["market"]["next_refresh"] = "yesterday-ish"

        decoded = decode(json.dumps(raw).encode(), rng, now)

        assert decoded.market.next_refresh.tzinfo is not None

    def test_decode_section_raises(self):
        with pytest.raises(StateIntegrityError) as excinfo:
            decode_section("coins", "lots")
        assert excinfo.value.section == "coins"


class TestRepair:
    """Tests for cross-section invariants."""

    def test_negative_counters_clamped(self, state):
        repaired = repair(state._copy_with(coins=-5, gems=-1, shiny_gems=-3))

        assert repaired.coins == 0
        assert repaired.gems == 0
        assert repaired.shiny_gems == 0

    def test_dangling_equipment_cleared(self, state):
        inventory = replace(state.inventory, current_weapon_id="ghost", current_armor_id="ghost")
        repaired = repair(state._copy_with(inventory=inventory))

        assert repaired.inventory.current_weapon_id is None
        assert repaired.inventory.current_armor_id is None

    def test_owned_equipment_kept(self, state):
        state = with_items(state, weapon())
        state = state._copy_with(inventory=replace(state.inventory, current_weapon_id="w1"))
        assert repair(state).inventory.current_weapon_id == "w1"

    def test_hp_clamped(self, state):
        repaired = repair(state._copy_with(player=replace(state.player, hp=500)))
        assert repaired.player.hp == repaired.player.max_hp

    def test_valid_state_unchanged(self, state):
        assert repair(state) is state
