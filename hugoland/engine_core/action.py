"""
Action System - Actions, payloads, and results.

Actions represent:
1. Player intents (answer a question, open a chest, equip gear)
2. System intents (idle reconciliation on load, market refresh poll)

All state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ActionType(Enum):
    """Types of actions in the system."""
    # Combat
    START_COMBAT = "start_combat"
    SELECT_ADVENTURE_SKILL = "select_adventure_skill"
    SKIP_ADVENTURE_SKILL = "skip_adventure_skill"
    ANSWER_TURN = "answer_turn"
    USE_SKIP_CARD = "use_skip_card"

    # Economy
    OPEN_CHEST = "open_chest"
    PURCHASE_MYTHICAL = "purchase_mythical"
    PURCHASE_RELIC = "purchase_relic"
    ROLL_MENU_SKILL = "roll_menu_skill"
    SPEND_FRAGMENTS = "spend_fragments"
    SELECT_MERCHANT_REWARD = "select_merchant_reward"
    MINE_GEM = "mine_gem"
    EXCHANGE_SHINY_GEMS = "exchange_shiny_gems"

    # Inventory
    EQUIP = "equip"
    UNEQUIP = "unequip"
    UPGRADE = "upgrade"
    SELL = "sell"
    DISCARD = "discard"
    BULK_SELL = "bulk_sell"
    BULK_UPGRADE = "bulk_upgrade"

    # Idle systems
    CLAIM_IDLE_REWARDS = "claim_idle_rewards"
    PLANT_GARDEN = "plant_garden"
    WATER_GARDEN = "water_garden"

    # Progression
    UPGRADE_SKILL = "upgrade_skill"
    PRESTIGE = "prestige"
    CLAIM_DAILY_REWARD = "claim_daily_reward"

    # Settings
    SET_GAME_MODE = "set_game_mode"
    UPDATE_SETTINGS = "update_settings"
    RESET_GAME = "reset_game"

    # System actions
    RECONCILE = "reconcile"  # Offline accrual on load
    REFRESH_MARKET = "refresh_market"  # Periodic poll


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types use different fields.
    Validation happens in the reducer and engines.
    """
    item_id: str | None = None
    item_ids: list[str] | None = None
    skill_id: str | None = None
    reward_id: str | None = None

    # For combat turns
    correct: bool | None = None
    category: str | None = None

    # Amounts
    cost: int | None = None
    hours: float | None = None
    amount: int | None = None

    mode: str | None = None

    # Generic params
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class Action:
    """
    A complete intent to be applied to the game state.

    Actions are applied atomically by the reducer: either a new
    snapshot is produced or the state is left untouched.
    """
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)

    @classmethod
    def start_combat(cls) -> Action:
        return cls(action_type=ActionType.START_COMBAT)

    @classmethod
    def select_adventure_skill(cls, skill_id: str) -> Action:
        return cls(
            action_type=ActionType.SELECT_ADVENTURE_SKILL,
            payload=ActionPayload(skill_id=skill_id),
        )

    @classmethod
    def skip_adventure_skill(cls) -> Action:
        return cls(action_type=ActionType.SKIP_ADVENTURE_SKILL)

    @classmethod
    def answer_turn(cls, correct: bool, category: str | None = None) -> Action:
        """Factory for a combat turn; only correctness and category reach the engine."""
        return cls(
            action_type=ActionType.ANSWER_TURN,
            payload=ActionPayload(correct=correct, category=category),
        )

    @classmethod
    def use_skip_card(cls, category: str | None = None) -> Action:
        return cls(
            action_type=ActionType.USE_SKIP_CARD,
            payload=ActionPayload(category=category),
        )

    @classmethod
    def open_chest(cls, cost: int) -> Action:
        return cls(action_type=ActionType.OPEN_CHEST, payload=ActionPayload(cost=cost))

    @classmethod
    def purchase_mythical(cls, cost: int) -> Action:
        return cls(action_type=ActionType.PURCHASE_MYTHICAL, payload=ActionPayload(cost=cost))

    @classmethod
    def purchase_relic(cls, item_id: str) -> Action:
        return cls(action_type=ActionType.PURCHASE_RELIC, payload=ActionPayload(item_id=item_id))

    @classmethod
    def roll_menu_skill(cls) -> Action:
        return cls(action_type=ActionType.ROLL_MENU_SKILL)

    @classmethod
    def spend_fragments(cls) -> Action:
        return cls(action_type=ActionType.SPEND_FRAGMENTS)

    @classmethod
    def select_merchant_reward(cls, reward_id: str) -> Action:
        return cls(
            action_type=ActionType.SELECT_MERCHANT_REWARD,
            payload=ActionPayload(reward_id=reward_id),
        )

    @classmethod
    def mine_gem(cls) -> Action:
        return cls(action_type=ActionType.MINE_GEM)

    @classmethod
    def exchange_shiny_gems(cls, amount: int) -> Action:
        return cls(action_type=ActionType.EXCHANGE_SHINY_GEMS, payload=ActionPayload(amount=amount))

    @classmethod
    def equip(cls, item_id: str) -> Action:
        return cls(action_type=ActionType.EQUIP, payload=ActionPayload(item_id=item_id))

    @classmethod
    def unequip(cls, item_id: str) -> Action:
        return cls(action_type=ActionType.UNEQUIP, payload=ActionPayload(item_id=item_id))

    @classmethod
    def upgrade(cls, item_id: str) -> Action:
        return cls(action_type=ActionType.UPGRADE, payload=ActionPayload(item_id=item_id))

    @classmethod
    def sell(cls, item_id: str) -> Action:
        return cls(action_type=ActionType.SELL, payload=ActionPayload(item_id=item_id))

    @classmethod
    def discard(cls, item_id: str) -> Action:
        return cls(action_type=ActionType.DISCARD, payload=ActionPayload(item_id=item_id))

    @classmethod
    def bulk_sell(cls, item_ids: list[str]) -> Action:
        return cls(action_type=ActionType.BULK_SELL, payload=ActionPayload(item_ids=list(item_ids)))

    @classmethod
    def bulk_upgrade(cls, item_ids: list[str]) -> Action:
        return cls(action_type=ActionType.BULK_UPGRADE, payload=ActionPayload(item_ids=list(item_ids)))

    @classmethod
    def claim_idle_rewards(cls) -> Action:
        return cls(action_type=ActionType.CLAIM_IDLE_REWARDS)

    @classmethod
    def plant_garden(cls) -> Action:
        return cls(action_type=ActionType.PLANT_GARDEN)

    @classmethod
    def water_garden(cls, hours: float) -> Action:
        return cls(action_type=ActionType.WATER_GARDEN, payload=ActionPayload(hours=hours))

    @classmethod
    def upgrade_skill(cls, skill_id: str) -> Action:
        return cls(action_type=ActionType.UPGRADE_SKILL, payload=ActionPayload(skill_id=skill_id))

    @classmethod
    def prestige(cls) -> Action:
        return cls(action_type=ActionType.PRESTIGE)

    @classmethod
    def claim_daily_reward(cls) -> Action:
        return cls(action_type=ActionType.CLAIM_DAILY_REWARD)

    @classmethod
    def update_settings(cls, **settings) -> Action:
        return cls(action_type=ActionType.UPDATE_SETTINGS, payload=ActionPayload(params=settings))

    @classmethod
    def set_game_mode(cls, mode: str) -> Action:
        return cls(action_type=ActionType.SET_GAME_MODE, payload=ActionPayload(mode=mode))

    @classmethod
    def reset_game(cls) -> Action:
        return cls(action_type=ActionType.RESET_GAME)

    @classmethod
    def reconcile(cls) -> Action:
        return cls(action_type=ActionType.RECONCILE)

    @classmethod
    def refresh_market(cls) -> Action:
        return cls(action_type=ActionType.REFRESH_MARKET)


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether the action was committed
    - New state (if committed)
    - Rejection reason (if not)
    - Human-readable changes and an optional return value
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: str | None = None

    # For UI/presentation
    state_changes: list[str] = field(default_factory=list)

    # Operation-specific return value (opened items, combat outcome, ...)
    value: Any | None = None

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a rejection; the caller keeps its current state."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
        value: Any | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
            value=value,
        )
