"""
Combat Engine - The turn-based adventure state machine.

Idle -> Drafting -> Active -> (victory | defeat) -> Idle

Turn resolution order:
1. Player hit (correct) or enemy hit (incorrect)
2. End-of-turn poison tick on the enemy
3. Revival chain if the player dropped to 0 hp
4. Victory if the enemy dropped to 0 hp, otherwise defeat if the player did
"""

from __future__ import annotations
import logging
import math
import random
from dataclasses import dataclass, field, replace
from datetime import datetime

from .action import ActionResult
from .economy import EconomyEngine, VictoryReward
from .items import generate_enemy
from .modifier_resolver import ModifierResolver
from .skills import (
    AVOIDANCE_PRIORITY,
    REVIVAL_PRIORITY,
    AdventureSkillDef,
    Axis,
    ModifierContext,
    Trait,
    draw_adventure_skills,
    get_adventure_skill,
)
from .state import (
    CategoryAccuracy,
    CombatPhase,
    CombatState,
    Enemy,
    GameModeType,
    GameState,
    PlayerStats,
    SkillFlags,
    Statistics,
)

logger = logging.getLogger(__name__)

RISKER_SKILL_ID = "risker"
SKIP_CARD_SKILL_ID = "skip_card"

POISON_TICK_RATIO = 0.1  # Of enemy max hp, per turn
FREE_REVIVAL_RATIO = 0.5
PREMIUM_ZONE = 50
FRAGMENT_ZONE_INTERVAL = 5


@dataclass
class TurnOutcome:
    """What happened during one answered question."""
    correct: bool
    damage_dealt: int = 0
    damage_taken: int = 0
    avoided_by: str | None = None
    revived_by: str | None = None
    victory: bool = False
    defeat: bool = False
    reward: VictoryReward | None = None


@dataclass
class _Turn:
    """Mutable working copy for a single turn; never escapes the engine."""
    player: PlayerStats
    enemy: Enemy
    flags: SkillFlags
    state: GameState
    outcome: TurnOutcome
    log: list[str] = field(default_factory=list)


@dataclass
class CombatEngine:
    resolver: ModifierResolver = field(default_factory=ModifierResolver)
    economy: EconomyEngine = field(default_factory=EconomyEngine)

    # ------------------------------------------------------------------
    # Phase transitions
    # ------------------------------------------------------------------

    def start_combat(self, state: GameState, rng: random.Random, now: datetime) -> ActionResult:
        """Idle -> Drafting: new enemy, fresh draft, fresh one-shot flags."""
        if state.in_combat:
            return ActionResult.failure("Already in combat", error_code="INVALID_PHASE")

        enemy = generate_enemy(rng, state.zone)
        offered = draw_adventure_skills(rng)

        # Starting hp reads the selection of the previous encounter
        hp = state.player.max_hp
        previous = get_adventure_skill(state.combat.previous_skill_id)
        if previous and previous.skill_id == RISKER_SKILL_ID:
            hp = self.resolver.resolve_int(
                hp,
                Axis.START_HP,
                None,
                previous,
                ModifierContext(now=now, hp=hp, max_hp=state.player.max_hp),
            )

        combat = CombatState(
            phase=CombatPhase.DRAFTING,
            enemy=enemy,
            offered_skill_ids=offered,
            previous_skill_id=state.combat.previous_skill_id,
        )
        message = f"You encounter a {enemy.name} in Zone {state.zone}!"
        new_state = state._copy_with(
            combat=combat,
            player=replace(state.player, hp=hp),
            combat_log=[message],
        )
        return ActionResult.success_with_state(new_state, changes=[message], value=enemy)

    def select_skill(self, state: GameState, skill_id: str) -> ActionResult:
        """Drafting -> Active with one of the offered skills."""
        if state.combat.phase != CombatPhase.DRAFTING:
            return ActionResult.failure("No skill draft in progress", error_code="INVALID_PHASE")
        if skill_id not in state.combat.offered_skill_ids:
            return ActionResult.failure(f"Skill {skill_id} was not offered", error_code="NOT_FOUND")

        skill = get_adventure_skill(skill_id)
        if not skill:
            return ActionResult.failure(f"Unknown skill {skill_id}", error_code="NOT_FOUND")
        combat = replace(state.combat, phase=CombatPhase.ACTIVE, selected_skill_id=skill_id)
        return ActionResult.success_with_state(
            state._copy_with(combat=combat),
            changes=[f"Selected {skill.name}"],
        )

    def skip_skill(self, state: GameState) -> ActionResult:
        """Drafting -> Active with no skill for the whole encounter."""
        if state.combat.phase != CombatPhase.DRAFTING:
            return ActionResult.failure("No skill draft in progress", error_code="INVALID_PHASE")

        combat = replace(state.combat, phase=CombatPhase.ACTIVE, selected_skill_id=None)
        return ActionResult.success_with_state(
            state._copy_with(combat=combat),
            changes=["Skipped adventure skill selection"],
        )

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    def answer_turn(
        self,
        state: GameState,
        correct: bool,
        category: str | None,
        rng: random.Random,
        now: datetime,
    ) -> ActionResult:
        if state.combat.phase != CombatPhase.ACTIVE or state.combat.enemy is None:
            return ActionResult.failure("No active combat", error_code="INVALID_PHASE")
        return self._resolve_turn(state, state.combat.flags, correct, category, rng, now)

    def use_skip_card(
        self,
        state: GameState,
        category: str | None,
        rng: random.Random,
        now: datetime,
    ) -> ActionResult:
        """Resolve the current question as correct, once per encounter."""
        if state.combat.phase != CombatPhase.ACTIVE or state.combat.enemy is None:
            return ActionResult.failure("No active combat", error_code="INVALID_PHASE")

        skill = get_adventure_skill(state.combat.selected_skill_id)
        if (
            not skill
            or Trait.AUTO_CORRECT not in skill.traits
            or state.combat.flags.is_used(skill.one_shot)
        ):
            return ActionResult.failure("Skip card not available", error_code="SKILL_UNAVAILABLE")

        flags = state.combat.flags.mark_used(skill.one_shot)
        return self._resolve_turn(state, flags, True, category, rng, now)

    def _resolve_turn(
        self,
        state: GameState,
        flags: SkillFlags,
        correct: bool,
        category: str | None,
        rng: random.Random,
        now: datetime,
    ) -> ActionResult:
        skill = get_adventure_skill(state.combat.selected_skill_id)
        turn = _Turn(
            player=state.player,
            enemy=state.combat.enemy,
            flags=flags,
            state=state,
            outcome=TurnOutcome(correct=correct),
        )

        if correct:
            self._player_hits(turn, skill, category, rng, now)
        else:
            self._enemy_hits(turn, skill, category, now)

        self._tick_poison(turn)

        new_state = turn.state._copy_with(
            player=turn.player,
            statistics=_record_answer(turn.state.statistics, turn.outcome, category),
            combat=replace(
                turn.state.combat,
                enemy=turn.enemy,
                flags=turn.flags,
                turns_taken=turn.state.combat.turns_taken + 1,
            ),
        )
        turn.state = new_state

        if turn.player.hp <= 0:
            self._revive(turn, skill, now)

        if turn.enemy.hp <= 0:
            self._victory(turn, skill, now)
        elif turn.player.hp <= 0:
            self._defeat(turn)

        final = turn.state._copy_with(player=turn.player).with_log(turn.log)
        return ActionResult.success_with_state(final, changes=list(turn.log), value=turn.outcome)

    def _player_hits(
        self,
        turn: _Turn,
        skill: AdventureSkillDef | None,
        category: str | None,
        rng: random.Random,
        now: datetime,
    ) -> None:
        state = turn.state
        menu_skill = state.skills.active(now)
        context = ModifierContext(
            now=now,
            hp=turn.player.hp,
            max_hp=turn.player.max_hp,
            streak=state.streak.current,
            category=category,
            rng=rng,
        )

        attack = self.resolver.resolve(turn.player.atk, Axis.ATK, None, skill, context)
        attack = self.resolver.resolve(attack, Axis.DAMAGE, menu_skill, skill, context)
        damage = max(1, math.floor(attack) - turn.enemy.defense)
        damage = self.resolver.resolve_int(damage, Axis.STRIKE, None, skill, context)
        damage = max(1, self.resolver.resolve_int(damage, Axis.ELEMENTAL, None, skill, context))

        heal = self.resolver.resolve_int(
            0, Axis.HEAL_ON_HIT, None, skill, replace(context, damage_dealt=damage)
        )
        if heal > 0:
            turn.player = replace(turn.player, hp=min(turn.player.max_hp, turn.player.hp + heal))
            turn.log.append(f"Healed {heal} HP")

        poison_turns = self.resolver.resolve_int(0, Axis.POISON_TURNS, None, skill, context)
        enemy = replace(turn.enemy, hp=turn.enemy.hp - damage)
        if poison_turns > 0:
            enemy = replace(enemy, is_poisoned=True, poison_turns=poison_turns)

        turn.enemy = enemy
        turn.state = state._copy_with(streak=self.economy.advance_streak(state, now))
        turn.outcome.damage_dealt = damage
        turn.log.append(f"You hit {enemy.name} for {damage} damage")

    def _enemy_hits(
        self,
        turn: _Turn,
        skill: AdventureSkillDef | None,
        category: str | None,
        now: datetime,
    ) -> None:
        state = turn.state
        turn.state = state._copy_with(streak=self.economy.break_streak(state, now))

        avoided = self._first_available(skill, turn.flags, AVOIDANCE_PRIORITY, Trait.AVOID_HIT)
        if avoided:
            turn.flags = turn.flags.mark_used(avoided)
            turn.outcome.avoided_by = avoided
            turn.log.append(f"{skill.name} avoided the attack")
            return

        menu_skill = state.skills.active(now)
        context = ModifierContext(
            now=now,
            hp=turn.player.hp,
            max_hp=turn.player.max_hp,
            streak=state.streak.current,
            category=category,
        )
        defense = self.resolver.resolve(turn.player.defense, Axis.DEF, None, skill, context)
        damage = max(1, turn.enemy.atk - math.floor(defense))
        damage = max(1, self.resolver.resolve_int(damage, Axis.DAMAGE_TAKEN, menu_skill, skill, context))

        turn.player = replace(turn.player, hp=max(0, turn.player.hp - damage))
        turn.outcome.damage_taken = damage
        turn.log.append(f"{turn.enemy.name} hits you for {damage} damage")

    def _tick_poison(self, turn: _Turn) -> None:
        enemy = turn.enemy
        if not enemy.is_poisoned:
            return
        tick = math.floor(enemy.max_hp * POISON_TICK_RATIO)
        remaining = enemy.poison_turns - 1
        turn.enemy = replace(
            enemy,
            hp=enemy.hp - tick,
            poison_turns=max(0, remaining),
            is_poisoned=remaining > 0,
        )
        turn.log.append(f"Poison deals {tick} damage to {enemy.name}")

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _revive(self, turn: _Turn, skill: AdventureSkillDef | None, now: datetime) -> None:
        """Phoenix -> divine protection -> revival blessing -> free session revival."""
        max_hp = turn.player.max_hp
        state = turn.state

        capability = self._first_available(skill, turn.flags, REVIVAL_PRIORITY, Trait.REVIVE)
        if capability:
            hp = self.resolver.resolve_int(
                0, Axis.REVIVE_HP, None, skill, ModifierContext(now=now, hp=0, max_hp=max_hp)
            )
            turn.flags = turn.flags.mark_used(capability)
            turn.state = state._copy_with(combat=replace(state.combat, flags=turn.flags))
            self._revived(turn, max(1, hp), skill.name)
            return

        menu_skill = state.skills.active(now)
        if (
            menu_skill
            and not menu_skill.consumed
            and self.resolver.has_trait(Trait.REVIVAL_BLESSING, menu_skill, None, now)
        ):
            turn.state = state._copy_with(
                skills=replace(state.skills, active_menu_skill=replace(menu_skill, consumed=True))
            )
            self._revived(turn, math.floor(max_hp * FREE_REVIVAL_RATIO), "Revival Blessing")
            return

        if not state.has_used_revival:
            turn.state = state._copy_with(has_used_revival=True)
            self._revived(turn, math.floor(max_hp * FREE_REVIVAL_RATIO), "revival")

    def _revived(self, turn: _Turn, hp: int, source: str) -> None:
        turn.player = replace(turn.player, hp=min(hp, turn.player.max_hp))
        turn.outcome.revived_by = source
        stats = turn.state.statistics
        turn.state = turn.state._copy_with(statistics=replace(stats, revivals=stats.revivals + 1))
        turn.log.append(f"Revived by {source} with {turn.player.hp} HP")

    def _victory(self, turn: _Turn, skill: AdventureSkillDef | None, now: datetime) -> None:
        state = turn.state
        player = turn.player

        base_atk = self.resolver.resolve_int(
            player.base_atk, Axis.KILL_ATK, None, skill, ModifierContext(now=now)
        )
        if base_atk != player.base_atk:
            turn.log.append(f"{skill.name}! ATK increased")
        turn.player = replace(player, base_atk=base_atk)

        reward = self.economy.victory_reward(state, now)
        zone = state.zone + 1

        merchant = state.merchant
        if zone % FRAGMENT_ZONE_INTERVAL == 0 and zone > merchant.last_fragment_zone:
            merchant = replace(
                merchant,
                fragments=merchant.fragments + 1,
                total_fragments_earned=merchant.total_fragments_earned + 1,
                last_fragment_zone=zone,
            )
            turn.log.append("Earned 1 Hugoland Fragment!")

        stats = state.statistics
        turn.state = state._copy_with(
            coins=state.coins + reward.coins,
            gems=state.gems + reward.gems,
            zone=zone,
            is_premium=state.is_premium or zone >= PREMIUM_ZONE,
            merchant=merchant,
            combat=CombatState(previous_skill_id=state.combat.selected_skill_id),
            statistics=replace(
                stats,
                total_victories=stats.total_victories + 1,
                coins_earned=stats.coins_earned + reward.coins,
                gems_earned=stats.gems_earned + reward.gems,
                zones_reached=max(stats.zones_reached, zone),
            ),
        )
        turn.outcome.victory = True
        turn.outcome.reward = reward
        turn.log.append(f"{turn.enemy.name} is defeated! Rewards: {reward.coins} coins, {reward.gems} gems")

    def _defeat(self, turn: _Turn) -> None:
        state = turn.state
        game_mode = state.game_mode
        if game_mode.current == GameModeType.SURVIVAL:
            game_mode = replace(game_mode, survival_lives=max(0, game_mode.survival_lives - 1))

        turn.state = state._copy_with(
            combat=CombatState(previous_skill_id=state.combat.selected_skill_id),
            game_mode=game_mode,
            statistics=replace(state.statistics, total_deaths=state.statistics.total_deaths + 1),
        )
        turn.outcome.defeat = True
        turn.log.append("You have been defeated!")
        if game_mode.current == GameModeType.SURVIVAL and game_mode.survival_lives <= 0:
            logger.info("All survival lives lost at zone %d", state.zone)
            turn.log.append("All lives lost in Survival mode!")

    @staticmethod
    def _first_available(
        skill: AdventureSkillDef | None,
        flags: SkillFlags,
        priority: list[str],
        trait: Trait,
    ) -> str | None:
        """First unused one-shot capability of the selected skill, in priority order."""
        if not skill or trait not in skill.traits:
            return None
        for capability in priority:
            if skill.one_shot == capability and not flags.is_used(capability):
                return capability
        return None


def _record_answer(stats: Statistics, outcome: TurnOutcome, category: str | None) -> Statistics:
    accuracy = dict(stats.accuracy_by_category)
    if category:
        entry = accuracy.get(category, CategoryAccuracy())
        accuracy[category] = CategoryAccuracy(
            correct=entry.correct + (1 if outcome.correct else 0),
            total=entry.total + 1,
        )
    return replace(
        stats,
        total_questions_answered=stats.total_questions_answered + 1,
        correct_answers=stats.correct_answers + (1 if outcome.correct else 0),
        accuracy_by_category=accuracy,
        total_damage_dealt=stats.total_damage_dealt + outcome.damage_dealt,
        total_damage_taken=stats.total_damage_taken + outcome.damage_taken,
    )
