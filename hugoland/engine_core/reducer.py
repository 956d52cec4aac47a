"""
Reducer - Applies actions to game state.

The reducer is the single point of state mutation.
All state changes must go through apply().

Design principles:
- Pure function: (state, action, now) -> new_state
- Rejections leave the input state untouched
- Returns ActionResult with success/failure
- Delegates game rules to the combat, economy, inventory and idle engines
- Derived player stats are recomputed after every committed action
"""

from __future__ import annotations
import logging
import random
from dataclasses import dataclass, field, replace
from datetime import datetime

from .action import Action, ActionResult, ActionType
from .combat import CombatEngine
from .economy import EconomyEngine
from .idle import IdleAccrualEngine
from .inventory import InventoryLedger
from .items import generate_market_items
from .modifier_resolver import ModifierResolver
from .progression import ProgressionEngine
from .state import GameModeType, GameState
from .stats import with_recomputed_stats

logger = logging.getLogger(__name__)


def initial_state(rng: random.Random, now: datetime) -> GameState:
    """A fresh game with a stocked market and derived stats in place."""
    state = GameState.create(now)
    state = state._copy_with(market=replace(state.market, items=generate_market_items(rng)))
    return with_recomputed_stats(state, now)


@dataclass
class Reducer:
    """
    Reducer applies actions to game state.

    Stateless apart from its random source - all game state is in GameState.
    """
    rng: random.Random = field(default_factory=random.Random)
    resolver: ModifierResolver = field(default_factory=ModifierResolver)

    def __post_init__(self):
        self.economy = EconomyEngine(resolver=self.resolver)
        self.combat = CombatEngine(resolver=self.resolver, economy=self.economy)
        self.inventory = InventoryLedger(resolver=self.resolver)
        self.idle = IdleAccrualEngine(resolver=self.resolver)
        self.progression = ProgressionEngine()

    def apply(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        """
        Apply an action to the game state.

        Returns ActionResult with new state or error.
        """
        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}",
                error_code="NO_HANDLER",
            )

        try:
            result = handler(state, action, now)
        except Exception as e:
            logger.exception("Handler for %s failed", action.action_type.value)
            return ActionResult.failure(str(e), error_code="HANDLER_ERROR")

        if result.success and result.new_state is not None:
            result.new_state = with_recomputed_stats(result.new_state, now, self.resolver)
        return result

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.START_COMBAT: self._handle_start_combat,
            ActionType.SELECT_ADVENTURE_SKILL: self._handle_select_adventure_skill,
            ActionType.SKIP_ADVENTURE_SKILL: self._handle_skip_adventure_skill,
            ActionType.ANSWER_TURN: self._handle_answer_turn,
            ActionType.USE_SKIP_CARD: self._handle_use_skip_card,
            ActionType.OPEN_CHEST: self._handle_open_chest,
            ActionType.PURCHASE_MYTHICAL: self._handle_purchase_mythical,
            ActionType.PURCHASE_RELIC: self._handle_purchase_relic,
            ActionType.ROLL_MENU_SKILL: self._handle_roll_menu_skill,
            ActionType.SPEND_FRAGMENTS: self._handle_spend_fragments,
            ActionType.SELECT_MERCHANT_REWARD: self._handle_select_merchant_reward,
            ActionType.MINE_GEM: self._handle_mine_gem,
            ActionType.EXCHANGE_SHINY_GEMS: self._handle_exchange_shiny_gems,
            ActionType.EQUIP: self._handle_equip,
            ActionType.UNEQUIP: self._handle_unequip,
            ActionType.UPGRADE: self._handle_upgrade,
            ActionType.SELL: self._handle_sell,
            ActionType.DISCARD: self._handle_discard,
            ActionType.BULK_SELL: self._handle_bulk_sell,
            ActionType.BULK_UPGRADE: self._handle_bulk_upgrade,
            ActionType.CLAIM_IDLE_REWARDS: self._handle_claim_idle_rewards,
            ActionType.PLANT_GARDEN: self._handle_plant_garden,
            ActionType.WATER_GARDEN: self._handle_water_garden,
            ActionType.UPGRADE_SKILL: self._handle_upgrade_skill,
            ActionType.PRESTIGE: self._handle_prestige,
            ActionType.CLAIM_DAILY_REWARD: self._handle_claim_daily_reward,
            ActionType.SET_GAME_MODE: self._handle_set_game_mode,
            ActionType.UPDATE_SETTINGS: self._handle_update_settings,
            ActionType.RESET_GAME: self._handle_reset_game,
            ActionType.RECONCILE: self._handle_reconcile,
            ActionType.REFRESH_MARKET: self._handle_refresh_market,
        }
        return handlers.get(action_type)

    # ------------------------------------------------------------------
    # Combat
    # ------------------------------------------------------------------

    def _handle_start_combat(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.combat.start_combat(state, self.rng, now)

    def _handle_select_adventure_skill(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        skill_id = action.payload.skill_id
        if not skill_id:
            return ActionResult.failure("No skill specified", error_code="NOT_FOUND")
        return self.combat.select_skill(state, skill_id)

    def _handle_skip_adventure_skill(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.combat.skip_skill(state)

    def _handle_answer_turn(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        payload = action.payload
        return self.combat.answer_turn(state, bool(payload.correct), payload.category, self.rng, now)

    def _handle_use_skip_card(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.combat.use_skip_card(state, action.payload.category, self.rng, now)

    # ------------------------------------------------------------------
    # Economy
    # ------------------------------------------------------------------

    def _handle_open_chest(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        cost = action.payload.cost
        if cost is None:
            return ActionResult.failure("No chest cost specified", error_code="INVALID_AMOUNT")
        return self.economy.open_chest(state, cost, self.rng, now)

    def _handle_purchase_mythical(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        cost = action.payload.cost
        if cost is None:
            return ActionResult.failure("No cost specified", error_code="INVALID_AMOUNT")
        return self.economy.purchase_mythical(state, cost, self.rng)

    def _handle_purchase_relic(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.economy.purchase_relic(state, action.payload.item_id or "")

    def _handle_roll_menu_skill(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.economy.roll_menu_skill(state, self.rng, now)

    def _handle_spend_fragments(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.economy.spend_fragments(state, self.rng)

    def _handle_select_merchant_reward(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.economy.select_merchant_reward(state, action.payload.reward_id or "", self.rng, now)

    def _handle_mine_gem(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.economy.mine_gem(state, self.rng, now)

    def _handle_exchange_shiny_gems(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.economy.exchange_shiny_gems(state, action.payload.amount or 0)

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    def _handle_equip(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.inventory.equip(state, action.payload.item_id or "")

    def _handle_unequip(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.inventory.unequip(state, action.payload.item_id or "")

    def _handle_upgrade(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.inventory.upgrade(state, action.payload.item_id or "", now)

    def _handle_sell(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.inventory.sell(state, action.payload.item_id or "", now)

    def _handle_discard(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.inventory.discard(state, action.payload.item_id or "")

    def _handle_bulk_sell(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.inventory.bulk_sell(state, action.payload.item_ids or [], now)

    def _handle_bulk_upgrade(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.inventory.bulk_upgrade(state, action.payload.item_ids or [], now)

    # ------------------------------------------------------------------
    # Idle systems
    # ------------------------------------------------------------------

    def _handle_claim_idle_rewards(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.idle.claim(state)

    def _handle_plant_garden(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.idle.plant_garden(state, now)

    def _handle_water_garden(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.idle.water_garden(state, action.payload.hours, now)

    # ------------------------------------------------------------------
    # Progression
    # ------------------------------------------------------------------

    def _handle_upgrade_skill(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.progression.upgrade_skill(state, action.payload.skill_id or "")

    def _handle_prestige(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.progression.prestige(state)

    def _handle_claim_daily_reward(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.progression.claim_daily_reward(state, now)

    # ------------------------------------------------------------------
    # Settings and system actions
    # ------------------------------------------------------------------

    def _handle_set_game_mode(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        try:
            mode = GameModeType(action.payload.mode)
        except ValueError:
            return ActionResult.failure(f"Unknown game mode: {action.payload.mode}", error_code="NOT_FOUND")

        game_mode = replace(state.game_mode, current=mode)
        if mode == GameModeType.SURVIVAL:
            game_mode = replace(game_mode, survival_lives=3, max_survival_lives=3)
        return ActionResult.success_with_state(
            state._copy_with(game_mode=game_mode),
            changes=[f"Game mode set to {mode.value}"],
        )

    def _handle_update_settings(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.progression.update_settings(state, action.payload.params)

    def _handle_reset_game(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        logger.info("Game reset")
        return ActionResult.success_with_state(
            initial_state(self.rng, now),
            changes=["Started a new game"],
        )

    def _handle_reconcile(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.idle.reconcile(state, self.rng, now)

    def _handle_refresh_market(self, state: GameState, action: Action, now: datetime) -> ActionResult:
        return self.idle.refresh_market_if_due(state, self.rng, now)
