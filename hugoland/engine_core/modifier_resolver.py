"""
Modifier Resolver - Adjusts a base value along a named axis.

Precedence:
1. Menu skill (session-wide timed buff) effects
2. Adventure skill (encounter-scoped) effects

The resolver is a pure function of its inputs. It reads skill
declarations from the catalogs, checks menu-skill expiry by comparing
against ``context.now`` without touching the skill record, and reads
conditional inputs only from the supplied context.
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from .skills import (
    AdventureSkillDef,
    Axis,
    AxisEffect,
    EffectOp,
    MenuSkillDef,
    ModifierContext,
    Trait,
    get_menu_skill,
)
from .state import MenuSkill


@dataclass
class ModifierResolver:
    """
    Stateless resolver over the declared skill effects.

    A skill with no declaration for the requested axis is a no-op.
    """

    def resolve(
        self,
        base_value: float,
        axis: Axis,
        menu_skill: MenuSkill | None,
        adventure_skill: AdventureSkillDef | None,
        context: ModifierContext,
    ) -> float:
        """Return ``base_value`` adjusted by every applicable declared effect."""
        value = base_value

        menu_def = self.active_menu_definition(menu_skill, context.now)
        if menu_def:
            value = self._apply_effects(value, axis, menu_def.effects, context)

        if adventure_skill:
            value = self._apply_effects(value, axis, adventure_skill.effects, context)

        return value

    def resolve_int(
        self,
        base_value: float,
        axis: Axis,
        menu_skill: MenuSkill | None,
        adventure_skill: AdventureSkillDef | None,
        context: ModifierContext,
    ) -> int:
        """Resolve and floor to a whole number."""
        return math.floor(self.resolve(base_value, axis, menu_skill, adventure_skill, context))

    def has_trait(
        self,
        trait: Trait,
        menu_skill: MenuSkill | None,
        adventure_skill: AdventureSkillDef | None,
        now: datetime,
    ) -> bool:
        """Whether either active skill declares the trait."""
        menu_def = self.active_menu_definition(menu_skill, now)
        if menu_def and trait in menu_def.traits:
            return True
        return bool(adventure_skill and trait in adventure_skill.traits)

    def active_menu_definition(
        self,
        menu_skill: MenuSkill | None,
        now: datetime,
    ) -> MenuSkillDef | None:
        """Catalog entry for an unexpired menu skill."""
        if menu_skill is None or not menu_skill.is_active(now):
            return None
        return get_menu_skill(menu_skill.skill_type)

    def _apply_effects(
        self,
        value: float,
        axis: Axis,
        effects: Iterable[AxisEffect],
        context: ModifierContext,
    ) -> float:
        for effect in effects:
            if effect.axis != axis:
                continue

            if effect.op == EffectOp.CONDITIONAL_MULTIPLY:
                if effect.condition is None or not effect.condition(context):
                    continue
            elif effect.op == EffectOp.CHANCE_MULTIPLY:
                # Chance effects only fire when a random source is supplied
                if context.rng is None or context.rng.random() >= (effect.chance or 0.0):
                    continue

            magnitude = effect.magnitude(context)
            if effect.op == EffectOp.ADD:
                value = value + magnitude
            else:
                value = value * magnitude

            if effect.floor:
                value = math.floor(value)

        return value
