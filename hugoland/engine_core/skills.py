"""
Skill Catalogs - Adventure and menu skills declared as data.

Each skill variant declares which numeric axes it touches and how
(multiply, add, conditional multiply, chance multiply). The
ModifierResolver iterates these declarations; it never branches on a
skill's identity. Adding a variant is a catalog entry, not new control
flow.

Boolean capabilities that are not numeric (avoiding a hit, reviving,
overriding a chest roll) are declared as traits and read by the engine
that owns that decision.
"""

from __future__ import annotations
import math
import random
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable


class Axis(Enum):
    """Named numeric quantities that skills can modify."""
    ATK = "atk"
    DEF = "def"
    MAX_HP = "maxHp"
    COINS = "coins"
    GEMS = "gems"
    XP = "xp"
    DAMAGE = "damage"
    DAMAGE_TAKEN = "damage_taken"

    # Combat-internal axes
    START_HP = "start_hp"
    STRIKE = "strike"  # Post-defense damage multipliers
    ELEMENTAL = "elemental"
    HEAL_ON_HIT = "heal_on_hit"
    POISON_TURNS = "poison_turns"
    REVIVE_HP = "revive_hp"
    KILL_ATK = "kill_atk"

    # Session-wide systems
    STREAK_GAIN = "streak_gain"
    GARDEN_GROWTH = "garden_growth"
    UPGRADE_COST = "upgrade_cost"


class EffectOp(Enum):
    MULTIPLY = "multiply"
    ADD = "add"
    CONDITIONAL_MULTIPLY = "conditional_multiply"
    CHANCE_MULTIPLY = "chance_multiply"


class Trait(Enum):
    """Non-numeric capabilities."""
    # Adventure
    AVOID_HIT = "avoid_hit"
    REVIVE = "revive"
    AUTO_CORRECT = "auto_correct"

    # Menu
    TREASURER = "treasurer"
    ENCHANTER = "enchanter"
    ITEM_DUPLICATOR = "item_duplicator"
    STREAK_GUARDIAN = "streak_guardian"
    REVIVAL_BLESSING = "revival_blessing"
    LUCKY_MINING = "lucky_mining"


@dataclass
class ModifierContext:
    """
    Everything a conditional effect may read.

    Passed explicitly so the resolver never touches global state.
    ``rng`` is required only for chance effects; without it they never fire.
    """
    now: datetime
    hp: int = 0
    max_hp: int = 0
    streak: int = 0
    category: str | None = None
    damage_dealt: int = 0
    rng: random.Random | None = None


@dataclass(frozen=True)
class AxisEffect:
    """
    One declared effect on one axis.

    ``scale`` computes the magnitude from context when the effect depends on
    the situation (ramp stacks, life steal); otherwise ``value`` is used.
    """
    axis: Axis
    op: EffectOp
    value: float = 1.0
    condition: Callable[[ModifierContext], bool] | None = None
    chance: float | None = None
    scale: Callable[[ModifierContext], float] | None = None
    floor: bool = False

    def magnitude(self, context: ModifierContext) -> float:
        if self.scale is not None:
            return self.scale(context)
        return self.value


def multiply(axis: Axis, factor: float, floor: bool = False) -> AxisEffect:
    return AxisEffect(axis=axis, op=EffectOp.MULTIPLY, value=factor, floor=floor)


def add(axis: Axis, amount: float) -> AxisEffect:
    return AxisEffect(axis=axis, op=EffectOp.ADD, value=amount)


def multiply_when(
    axis: Axis,
    factor: float,
    condition: Callable[[ModifierContext], bool],
) -> AxisEffect:
    return AxisEffect(axis=axis, op=EffectOp.CONDITIONAL_MULTIPLY, value=factor, condition=condition)


def chance_multiply(axis: Axis, factor: float, chance: float) -> AxisEffect:
    return AxisEffect(axis=axis, op=EffectOp.CHANCE_MULTIPLY, value=factor, chance=chance)


def scaled(
    axis: Axis,
    op: EffectOp,
    scale: Callable[[ModifierContext], float],
    floor: bool = False,
) -> AxisEffect:
    return AxisEffect(axis=axis, op=op, scale=scale, floor=floor)


# ============================================================================
# Adventure Skills (encounter-scoped)
# ============================================================================

# Elemental mastery multiplier per trivia category
ELEMENTAL_MULTIPLIERS = {
    "Math": 1.3,
    "Science": 1.4,
    "Geography": 1.2,
    "History": 1.3,
    "Literature": 1.2,
    "Technology": 1.4,
    "Sports": 1.2,
    "Music": 1.2,
    "Art": 1.2,
    "Entertainment": 1.2,
}
DEFAULT_ELEMENTAL_MULTIPLIER = 1.1


def _elemental_factor(context: ModifierContext) -> float:
    if not context.category:
        return 1.0
    return ELEMENTAL_MULTIPLIERS.get(context.category, DEFAULT_ELEMENTAL_MULTIPLIER)


def _below_half_health(context: ModifierContext) -> bool:
    return context.hp < context.max_hp * 0.5


@dataclass(frozen=True)
class AdventureSkillDef:
    """
    An adventure skill variant.

    ``one_shot`` names the encounter flag consumed when the capability fires.
    """
    skill_id: str
    name: str
    description: str
    effects: tuple[AxisEffect, ...] = ()
    traits: frozenset[Trait] = field(default_factory=frozenset)
    one_shot: str | None = None


ADVENTURE_SKILL_LIST = [
    AdventureSkillDef(
        "risker", "Risker", "Start with 50% HP but gain +100% ATK",
        effects=(multiply(Axis.ATK, 2), multiply(Axis.START_HP, 0.5, floor=True)),
    ),
    AdventureSkillDef(
        "lightning_chain", "Lightning Chain", "Correct answers have 30% chance to deal double damage",
        effects=(chance_multiply(Axis.STRIKE, 2, 0.3),),
    ),
    AdventureSkillDef(
        "skip_card", "Skip Card", "Skip one question and automatically get it correct",
        traits=frozenset({Trait.AUTO_CORRECT}), one_shot="skip_card",
    ),
    AdventureSkillDef(
        "metal_shield", "Metal Shield", "Block the first enemy attack completely",
        traits=frozenset({Trait.AVOID_HIT}), one_shot="metal_shield",
    ),
    AdventureSkillDef(
        "truth_lies", "Truth & Lies", "Remove one wrong answer from multiple choice questions",
    ),
    AdventureSkillDef(
        "ramp", "Ramp", "Gain +10% ATK for each correct answer (stacks)",
        effects=(scaled(Axis.ATK, EffectOp.MULTIPLY, lambda c: 1 + c.streak * 0.1),),
    ),
    AdventureSkillDef(
        "dodge", "Dodge", "First wrong answer deals no damage",
        traits=frozenset({Trait.AVOID_HIT}), one_shot="dodge",
    ),
    AdventureSkillDef(
        "berserker", "Berserker", "Deal +50% damage when below 50% HP",
        effects=(multiply_when(Axis.ATK, 1.5, _below_half_health),),
    ),
    AdventureSkillDef(
        "vampiric", "Vampiric", "Heal 25% of damage dealt",
        effects=(scaled(Axis.HEAL_ON_HIT, EffectOp.ADD, lambda c: math.floor(c.damage_dealt * 0.25)),),
    ),
    AdventureSkillDef(
        "phoenix", "Phoenix", "Revive once with 50% HP when defeated",
        effects=(scaled(Axis.REVIVE_HP, EffectOp.ADD, lambda c: math.floor(c.max_hp * 0.5)),),
        traits=frozenset({Trait.REVIVE}), one_shot="phoenix",
    ),
    AdventureSkillDef(
        "time_slow", "Time Slow", "Get +3 seconds for each question",
    ),
    AdventureSkillDef(
        "critical_strike", "Critical Strike", "20% chance to deal triple damage",
        effects=(chance_multiply(Axis.STRIKE, 3, 0.2),),
    ),
    AdventureSkillDef(
        "shield_wall", "Shield Wall", "Take 50% less damage from all attacks",
        effects=(multiply(Axis.DAMAGE_TAKEN, 0.5),),
    ),
    AdventureSkillDef(
        "poison_blade", "Poison Blade", "Attacks poison enemies for 3 turns",
        effects=(add(Axis.POISON_TURNS, 3),),
    ),
    AdventureSkillDef(
        "arcane_shield", "Arcane Shield", "Absorb first 100 damage taken",
    ),
    AdventureSkillDef(
        "battle_frenzy", "Battle Frenzy", "Each kill increases ATK by 25%",
        effects=(multiply(Axis.KILL_ATK, 1.25, floor=True),),
    ),
    AdventureSkillDef(
        "elemental_mastery", "Elemental Mastery", "Deal bonus damage based on question category",
        effects=(scaled(Axis.ELEMENTAL, EffectOp.MULTIPLY, _elemental_factor, floor=True),),
    ),
    AdventureSkillDef(
        "shadow_step", "Shadow Step", "Avoid next enemy attack after wrong answer",
        traits=frozenset({Trait.AVOID_HIT}), one_shot="shadow_step",
    ),
    AdventureSkillDef(
        "healing_aura", "Healing Aura", "Regenerate 10 HP after each correct answer",
        effects=(add(Axis.HEAL_ON_HIT, 10),),
    ),
    AdventureSkillDef(
        "double_strike", "Double Strike", "Attack twice on correct answers",
        effects=(multiply(Axis.STRIKE, 2),),
    ),
    AdventureSkillDef(
        "mana_shield", "Mana Shield", "Convert 50% damage to mana cost",
    ),
    AdventureSkillDef(
        "berserk_rage", "Berserk Rage", "Gain rage stacks that increase damage",
    ),
    AdventureSkillDef(
        "divine_protection", "Divine Protection", "Immune to death once per adventure",
        effects=(add(Axis.REVIVE_HP, 1),),
        traits=frozenset({Trait.REVIVE}), one_shot="divine_protection",
    ),
    AdventureSkillDef(
        "storm_call", "Storm Call", "Lightning strikes deal area damage",
    ),
    AdventureSkillDef(
        "blood_pact", "Blood Pact", "Sacrifice HP to deal massive damage",
    ),
]

ADVENTURE_SKILLS: dict[str, AdventureSkillDef] = {s.skill_id: s for s in ADVENTURE_SKILL_LIST}

# Fixed evaluation order on a wrong answer / on defeat
AVOIDANCE_PRIORITY = ["dodge", "metal_shield", "shadow_step"]
REVIVAL_PRIORITY = ["phoenix", "divine_protection"]

DRAFT_SIZE = 3


def get_adventure_skill(skill_id: str | None) -> AdventureSkillDef | None:
    if skill_id is None:
        return None
    return ADVENTURE_SKILLS.get(skill_id)


def draw_adventure_skills(rng: random.Random, count: int = DRAFT_SIZE) -> list[str]:
    """Draw skill ids without replacement."""
    return rng.sample([s.skill_id for s in ADVENTURE_SKILL_LIST], count)


# ============================================================================
# Menu Skills (timed buffs)
# ============================================================================

@dataclass(frozen=True)
class MenuSkillDef:
    skill_type: str
    name: str
    description: str
    duration_hours: float
    effects: tuple[AxisEffect, ...] = ()
    traits: frozenset[Trait] = field(default_factory=frozenset)


MENU_SKILL_LIST = [
    MenuSkillDef("coin_vacuum", "Coin Vacuum", "Get 15 free coins per minute of play time", 60),
    MenuSkillDef(
        "treasurer", "Treasurer", "Guarantees next chest opened is epic or better", 1,
        traits=frozenset({Trait.TREASURER}),
    ),
    MenuSkillDef(
        "xp_surge", "XP Surge", "Gives 300% XP gains for 24 hours", 24,
        effects=(multiply(Axis.XP, 3),),
    ),
    MenuSkillDef(
        "luck_gem", "Luck Gem", "All gems mined for 1 hour are shiny gems", 1,
        traits=frozenset({Trait.LUCKY_MINING}),
    ),
    MenuSkillDef(
        "enchanter", "Enchanter", "Epic+ drops have 80% chance to be enchanted", 2,
        traits=frozenset({Trait.ENCHANTER}),
    ),
    MenuSkillDef("time_warp", "Time Warp", "Get 50% more time to answer questions for 12 hours", 12),
    MenuSkillDef(
        "golden_touch", "Golden Touch", "All coin rewards are doubled for 8 hours", 8,
        effects=(multiply(Axis.COINS, 2),),
    ),
    MenuSkillDef(
        "knowledge_boost", "Knowledge Boost", "Knowledge streaks build 50% faster for 24 hours", 24,
        effects=(multiply(Axis.STREAK_GAIN, 1.5, floor=True),),
    ),
    MenuSkillDef("durability_master", "Durability Master", "Items lose no durability for 6 hours", 6),
    MenuSkillDef(
        "relic_finder", "Relic Finder", "Next 3 market refreshes have guaranteed legendary relics", 24,
    ),
    MenuSkillDef(
        "stat_amplifier", "Stat Amplifier", "All stats (ATK, DEF, HP) increased by 50% for 4 hours", 4,
        effects=(
            multiply(Axis.ATK, 1.5),
            multiply(Axis.DEF, 1.5),
            multiply(Axis.MAX_HP, 1.5),
        ),
    ),
    MenuSkillDef(
        "question_master", "Question Master",
        "See question category and difficulty before answering for 2 hours", 2,
    ),
    MenuSkillDef(
        "gem_magnet", "Gem Magnet", "Triple gem rewards from all sources for 3 hours", 3,
        effects=(multiply(Axis.GEMS, 3),),
    ),
    MenuSkillDef(
        "streak_guardian", "Streak Guardian", "Knowledge streak cannot be broken for 1 hour", 1,
        traits=frozenset({Trait.STREAK_GUARDIAN}),
    ),
    MenuSkillDef(
        "revival_blessing", "Revival Blessing", "Gain an extra revival chance for this session", 24,
        traits=frozenset({Trait.REVIVAL_BLESSING}),
    ),
    MenuSkillDef("zone_skipper", "Zone Skipper", "Skip directly to zone +5 without fighting", 1),
    MenuSkillDef(
        "item_duplicator", "Item Duplicator", "Next item found is automatically duplicated", 1,
        traits=frozenset({Trait.ITEM_DUPLICATOR}),
    ),
    MenuSkillDef(
        "research_accelerator", "Research Accelerator", "Upgrades cost 50% less for 6 hours", 6,
        effects=(multiply(Axis.UPGRADE_COST, 0.5, floor=True),),
    ),
    MenuSkillDef(
        "garden_booster", "Garden Booster", "Garden grows 5x faster for 2 hours", 2,
        effects=(multiply(Axis.GARDEN_GROWTH, 5),),
    ),
    MenuSkillDef("market_refresh", "Market Refresh", "Instantly refresh the market with premium items", 1),
    MenuSkillDef(
        "coin_multiplier", "Coin Multiplier", "All coin gains are multiplied by 3x for 4 hours", 4,
        effects=(multiply(Axis.COINS, 3),),
    ),
    MenuSkillDef(
        "gem_multiplier", "Gem Multiplier", "All gem gains are multiplied by 2.5x for 3 hours", 3,
        effects=(multiply(Axis.GEMS, 2.5),),
    ),
    MenuSkillDef(
        "xp_multiplier", "XP Multiplier", "All experience gains are multiplied by 4x for 2 hours", 2,
        effects=(multiply(Axis.XP, 4),),
    ),
    MenuSkillDef(
        "damage_boost", "Damage Boost", "Deal 100% more damage in combat for 5 hours", 5,
        effects=(multiply(Axis.DAMAGE, 2),),
    ),
    MenuSkillDef(
        "defense_boost", "Defense Boost", "Take 75% less damage in combat for 6 hours", 6,
        effects=(multiply(Axis.DAMAGE_TAKEN, 0.25),),
    ),
    MenuSkillDef(
        "health_boost", "Health Boost", "Maximum health increased by 200% for 8 hours", 8,
        effects=(multiply(Axis.MAX_HP, 3),),
    ),
    MenuSkillDef("speed_boost", "Speed Boost", "Answer time increased by 100% for 3 hours", 3),
    MenuSkillDef("luck_boost", "Luck Boost", "All random events have 50% better outcomes for 4 hours", 4),
    MenuSkillDef("magic_shield", "Magic Shield", "Immune to all negative effects for 2 hours", 2),
    MenuSkillDef("auto_heal", "Auto Heal", "Automatically heal 25% HP every minute for 1 hour", 1),
]

MENU_SKILLS: dict[str, MenuSkillDef] = {s.skill_type: s for s in MENU_SKILL_LIST}


def get_menu_skill(skill_type: str | None) -> MenuSkillDef | None:
    if skill_type is None:
        return None
    return MENU_SKILLS.get(skill_type)
