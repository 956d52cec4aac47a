"""
Derived stats - recomputed from every input after each committed change.

atk/defense/max_hp are a pure function of base stats, equipped gear,
equipped relics, research bonuses, the garden bonus and the active menu
skill. hp is clamped into [0, max_hp].
"""

from __future__ import annotations
import math
from dataclasses import replace
from datetime import datetime

from .modifier_resolver import ModifierResolver
from .skills import Axis, ModifierContext
from .state import GameState, PlayerStats


def garden_multiplier(state: GameState) -> float:
    return 1 + state.garden.total_growth_bonus / 100


def compute_stats(
    state: GameState,
    now: datetime,
    resolver: ModifierResolver | None = None,
) -> PlayerStats:
    """Return the player's stats with every derived field recomputed."""
    resolver = resolver or ModifierResolver()
    player = state.player
    inventory = state.inventory
    bonuses = state.research.bonuses

    atk = player.base_atk + bonuses.atk
    defense = player.base_def + bonuses.defense
    max_hp = player.base_hp + bonuses.hp

    weapon = inventory.current_weapon
    if weapon:
        atk += math.floor(weapon.base_atk * weapon.durability_ratio)
    armor = inventory.current_armor
    if armor:
        defense += math.floor(armor.base_def * armor.durability_ratio)
    for relic in inventory.equipped_relics:
        atk += relic.base_atk
        defense += relic.base_def

    multiplier = garden_multiplier(state)
    atk = math.floor(atk * multiplier)
    defense = math.floor(defense * multiplier)
    max_hp = math.floor(max_hp * multiplier)

    menu_skill = state.skills.active(now)
    context = ModifierContext(now=now, hp=player.hp, max_hp=max_hp, streak=state.streak.current)
    atk = resolver.resolve_int(atk, Axis.ATK, menu_skill, None, context)
    defense = resolver.resolve_int(defense, Axis.DEF, menu_skill, None, context)
    max_hp = max(1, resolver.resolve_int(max_hp, Axis.MAX_HP, menu_skill, None, context))

    return replace(
        player,
        atk=atk,
        defense=defense,
        max_hp=max_hp,
        hp=clamp_hp(player.hp, max_hp),
    )


def clamp_hp(hp: int, max_hp: int) -> int:
    return max(0, min(hp, max_hp))


def with_recomputed_stats(
    state: GameState,
    now: datetime,
    resolver: ModifierResolver | None = None,
) -> GameState:
    return state._copy_with(player=compute_stats(state, now, resolver))
