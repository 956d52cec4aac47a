"""
Pytest fixtures for Hugoland tests.
"""

import random
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from ..engine_core.reducer import initial_state
from ..engine_core.state import (
    CombatPhase,
    CombatState,
    Enemy,
    GameState,
    Item,
    ItemKind,
    MenuSkill,
    Rarity,
)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class FixedRandom(random.Random):
    """Random source whose uniform draw is pinned."""

    def __init__(self, value: float):
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def now() -> datetime:
    return datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(now) -> FakeClock:
    return FakeClock(now)


@pytest.fixture
def state(rng, now) -> GameState:
    """A fresh game: 500 coins, 50 gems, zone 1, no gear."""
    return initial_state(rng, now)


def zone_one_enemy(**overrides) -> Enemy:
    values = dict(name="Goblin Scout", zone=1, hp=60, max_hp=60, atk=20, defense=5)
    values.update(overrides)
    return Enemy(**values)


def in_combat(state: GameState, skill_id: str | None = None, **enemy_overrides) -> GameState:
    """Put the state into an active encounter against a zone 1 enemy."""
    combat = CombatState(
        phase=CombatPhase.ACTIVE,
        enemy=zone_one_enemy(**enemy_overrides),
        offered_skill_ids=[skill_id] if skill_id else [],
        selected_skill_id=skill_id,
    )
    return state._copy_with(combat=combat)


def with_hp(state: GameState, hp: int) -> GameState:
    return state._copy_with(player=replace(state.player, hp=hp))


def menu_skill(skill_type: str, now: datetime, hours: float = 1) -> MenuSkill:
    return MenuSkill(
        skill_id=f"test-{skill_type}",
        skill_type=skill_type,
        activated_at=now,
        expires_at=now + timedelta(hours=hours),
    )


def with_menu_skill(state: GameState, skill_type: str, now: datetime, hours: float = 1) -> GameState:
    return state._copy_with(
        skills=replace(state.skills, active_menu_skill=menu_skill(skill_type, now, hours))
    )


def weapon(item_id: str = "w1", atk: int = 10, **overrides) -> Item:
    values = dict(
        item_id=item_id,
        name="Plain Sword",
        kind=ItemKind.WEAPON,
        rarity=Rarity.COMMON,
        base_atk=atk,
        upgrade_cost=5,
        sell_price=10,
    )
    values.update(overrides)
    return Item(**values)


def armor(item_id: str = "a1", defense: int = 6, **overrides) -> Item:
    values = dict(
        item_id=item_id,
        name="Plain Helmet",
        kind=ItemKind.ARMOR,
        rarity=Rarity.COMMON,
        base_def=defense,
        upgrade_cost=5,
        sell_price=10,
    )
    values.update(overrides)
    return Item(**values)


def relic(item_id: str = "r1", atk: int = 40, defense: int = 0, cost: int = 100, **overrides) -> Item:
    values = dict(
        item_id=item_id,
        name="Ember Crown",
        kind=ItemKind.RELIC,
        rarity=Rarity.LEGENDARY,
        base_atk=atk,
        base_def=defense,
        upgrade_cost=30,
        sell_price=cost // 2,
        cost=cost,
    )
    values.update(overrides)
    return Item(**values)


def with_items(state: GameState, *items: Item) -> GameState:
    return state._copy_with(inventory=state.inventory.with_added(list(items)))
