"""
Item Generation - Weapons, armor, relics and enemies.

All generators draw from a caller-supplied ``random.Random`` so that a
seeded generator reproduces the same loot.
"""

from __future__ import annotations
import math
import random
import uuid
from dataclasses import dataclass

from .state import Enemy, Item, ItemKind, Rarity, RARITY_ORDER


@dataclass(frozen=True)
class RarityProfile:
    """Stat ranges and prices for one rarity tier."""
    atk_range: tuple[int, int]
    def_range: tuple[int, int]
    upgrade_cost: int  # Gems
    sell_price: int  # Coins
    durability: int
    name_prefixes: tuple[str, ...]


RARITY_PROFILES = {
    Rarity.COMMON: RarityProfile((8, 14), (4, 8), 5, 10, 100, ("Rusty", "Worn", "Plain")),
    Rarity.RARE: RarityProfile((15, 24), (8, 13), 10, 25, 150, ("Sturdy", "Polished", "Tempered")),
    Rarity.EPIC: RarityProfile((25, 39), (14, 22), 20, 60, 200, ("Gleaming", "Runed", "Stormforged")),
    Rarity.LEGENDARY: RarityProfile((40, 59), (23, 34), 40, 150, 300, ("Ancient", "Dragonbone", "Radiant")),
    Rarity.MYTHICAL: RarityProfile((60, 89), (35, 50), 80, 400, 500, ("Celestial", "Voidborn", "Eternal")),
}

WEAPON_NAMES = ("Sword", "Axe", "Bow", "Dagger", "Staff", "Mace", "Spear")
ARMOR_NAMES = ("Helmet", "Chestplate", "Shield", "Gauntlets", "Boots", "Cloak")

# Enchanted gear rolls its stat 50% higher
ENCHANT_MULTIPLIER = 1.5


def new_id(rng: random.Random) -> str:
    """Deterministic short identifier drawn from ``rng``."""
    return uuid.UUID(int=rng.getrandbits(128)).hex[:12]


def generate_weapon(rng: random.Random, rarity: Rarity, enchanted: bool = False) -> Item:
    profile = RARITY_PROFILES[rarity]
    atk = rng.randint(*profile.atk_range)
    if enchanted:
        atk = math.floor(atk * ENCHANT_MULTIPLIER)
    name = f"{rng.choice(profile.name_prefixes)} {rng.choice(WEAPON_NAMES)}"
    return Item(
        item_id=new_id(rng),
        name=name,
        kind=ItemKind.WEAPON,
        rarity=rarity,
        base_atk=atk,
        durability=profile.durability,
        max_durability=profile.durability,
        upgrade_cost=profile.upgrade_cost,
        sell_price=profile.sell_price,
        enchanted=enchanted,
    )


def generate_armor(rng: random.Random, rarity: Rarity, enchanted: bool = False) -> Item:
    profile = RARITY_PROFILES[rarity]
    defense = rng.randint(*profile.def_range)
    if enchanted:
        defense = math.floor(defense * ENCHANT_MULTIPLIER)
    name = f"{rng.choice(profile.name_prefixes)} {rng.choice(ARMOR_NAMES)}"
    return Item(
        item_id=new_id(rng),
        name=name,
        kind=ItemKind.ARMOR,
        rarity=rarity,
        base_def=defense,
        durability=profile.durability,
        max_durability=profile.durability,
        upgrade_cost=profile.upgrade_cost,
        sell_price=profile.sell_price,
        enchanted=enchanted,
    )


def generate_gear(rng: random.Random, kind: ItemKind, rarity: Rarity, enchanted: bool = False) -> Item:
    if kind == ItemKind.WEAPON:
        return generate_weapon(rng, rarity, enchanted)
    return generate_armor(rng, rarity, enchanted)


# ============================================================================
# Relics
# ============================================================================

RELIC_NAMES = (
    "Ember Crown",
    "Tidal Amulet",
    "Owl Sigil",
    "Hollow Chalice",
    "Starlit Compass",
    "Iron Idol",
    "Sunken Bell",
    "Scholar's Quill",
)


def generate_relic(rng: random.Random) -> Item:
    """A legendary or mythical relic carrying either attack or defense."""
    rarity = Rarity.MYTHICAL if rng.random() < 0.2 else Rarity.LEGENDARY
    is_attack = rng.random() < 0.5
    power = 60 if rarity == Rarity.MYTHICAL else 40
    cost = rng.randint(50, 150) + (100 if rarity == Rarity.MYTHICAL else 0)
    return Item(
        item_id=new_id(rng),
        name=rng.choice(RELIC_NAMES),
        kind=ItemKind.RELIC,
        rarity=rarity,
        base_atk=rng.randint(power, power + 20) if is_attack else 0,
        base_def=0 if is_attack else rng.randint(power // 2, power // 2 + 15),
        upgrade_cost=30,
        sell_price=math.floor(cost * 0.5),
        cost=cost,
    )


def generate_market_items(rng: random.Random) -> list[Item]:
    """A fresh market pool of 3-5 relics."""
    return [generate_relic(rng) for _ in range(rng.randint(3, 5))]


# ============================================================================
# Reward container rarity
# ============================================================================

# (minimum cost, weights in percent for common..mythical)
CHEST_WEIGHT_TIERS = [
    (1000, (20, 35, 30, 13, 2)),
    (400, (35, 35, 20, 9, 1)),
    (150, (50, 30, 15, 5, 0)),
    (0, (70, 25, 5, 0, 0)),
]


def chest_rarity_weights(cost: int) -> tuple[int, ...]:
    """
    Rarity weights for a container price.

    Monotonic in cost: a higher price never moves mass toward commoner tiers.
    """
    for min_cost, weights in CHEST_WEIGHT_TIERS:
        if cost >= min_cost:
            return weights
    return CHEST_WEIGHT_TIERS[-1][1]


def roll_rarity(weights: tuple[int, ...], draw: float) -> Rarity:
    """Cumulative-weight sampling against one uniform draw in [0, 100)."""
    cumulative = 0.0
    for rarity, weight in zip(RARITY_ORDER, weights):
        cumulative += weight
        if draw <= cumulative and weight > 0:
            return rarity
    return Rarity.COMMON


# ============================================================================
# Enemies
# ============================================================================

ENEMY_NAMES = (
    "Goblin Scout",
    "Cave Troll",
    "Shadow Wolf",
    "Bog Witch",
    "Skeleton Knight",
    "Fire Imp",
    "Stone Golem",
    "Frost Wraith",
)


def generate_enemy(rng: random.Random, zone: int) -> Enemy:
    """Enemy scaled linearly with the zone number."""
    step = max(zone, 1) - 1
    hp = 60 + step * 20
    return Enemy(
        name=rng.choice(ENEMY_NAMES),
        zone=zone,
        hp=hp,
        max_hp=hp,
        atk=20 + step * 5,
        defense=5 + step * 2,
    )
