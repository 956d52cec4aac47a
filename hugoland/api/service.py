"""
Game Service - Business logic layer between the API and the state store.

The service:
1. Translates API requests into store commands
2. Converts committed results into response models
3. Converts rejections into ErrorResponse values

This layer is framework-agnostic (can be used with FastAPI, a CLI, tests).
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import TypeAdapter

from ..engine_core.action import Action, ActionResult
from ..engine_core.progression import ProgressionEngine
from ..engine_core.skills import get_adventure_skill, get_menu_skill
from ..engine_core.state import GameState
from ..session import MemoryBackend, StateStore
from .schemas import (
    # Requests
    AnswerRequest,
    ChestRequest,
    ExchangeShinyRequest,
    GameModeRequest,
    ItemIdsRequest,
    PurchaseMythicalRequest,
    SelectRewardRequest,
    SelectSkillRequest,
    SkipCardRequest,
    SettingsRequest,
    UpgradeSkillRequest,
    WaterGardenRequest,
    # Responses
    ActionResponse,
    ErrorResponse,
    GameStateResponse,
    # Shared
    AdventureSkillInfo,
    CombatInfo,
    DailyRewardInfo,
    DailyRewardsInfo,
    EnemyInfo,
    GameModeInfo,
    GardenInfo,
    InventoryInfo,
    MarketInfo,
    MenuSkillInfo,
    MerchantInfo,
    OfflineInfo,
    PlayerInfo,
    ProgressionInfo,
    SettingsInfo,
    StreakInfo,
    # Enums
    ErrorCode,
)

_JSONABLE = TypeAdapter(Any)


@dataclass
class GameService:
    """
    Main API service.

    Usage:
        service = GameService(store)
        await service.open()

        state = service.get_state()
        response = service.answer(AnswerRequest(correct=True))
    """
    store: StateStore

    @classmethod
    def in_memory(cls) -> GameService:
        return cls(store=StateStore(MemoryBackend()))

    async def open(self, poll: bool = True):
        await self.store.open(poll=poll)

    async def close(self):
        await self.store.close()

    # =========================================================================
    # Queries
    # =========================================================================

    def get_state(self) -> GameStateResponse:
        return build_state_response(self.store.state, self.store.clock())

    # =========================================================================
    # Combat
    # =========================================================================

    def start_combat(self) -> ActionResponse | ErrorResponse:
        return self._run(Action.start_combat())

    def select_skill(self, request: SelectSkillRequest) -> ActionResponse | ErrorResponse:
        return self._run(Action.select_adventure_skill(request.skill_id))

    def skip_skill(self) -> ActionResponse | ErrorResponse:
        return self._run(Action.skip_adventure_skill())

    def answer(self, request: AnswerRequest) -> ActionResponse | ErrorResponse:
        return self._run(Action.answer_turn(request.correct, request.category))

    def use_skip_card(self, request: SkipCardRequest) -> ActionResponse | ErrorResponse:
        return self._run(Action.use_skip_card(request.category))

    # =========================================================================
    # Economy
    # =========================================================================

    def open_chest(self, request: ChestRequest) -> ActionResponse | ErrorResponse:
        return self._run(Action.open_chest(request.cost))

    def purchase_mythical(self, request: PurchaseMythicalRequest) -> ActionResponse | ErrorResponse:
        return self._run(Action.purchase_mythical(request.cost))

    def purchase_relic(self, relic_id: str) -> ActionResponse | ErrorResponse:
        return self._run(Action.purchase_relic(relic_id))

    def roll_menu_skill(self) -> ActionResponse | ErrorResponse:
        return self._run(Action.roll_menu_skill())

    def spend_fragments(self) -> ActionResponse | ErrorResponse:
        return self._run(Action.spend_fragments())

    def select_reward(self, request: SelectRewardRequest) -> ActionResponse | ErrorResponse:
        return self._run(Action.select_merchant_reward(request.reward_id))

    def mine_gem(self) -> ActionResponse | ErrorResponse:
        return self._run(Action.mine_gem())

    def exchange_shiny_gems(self, request: ExchangeShinyRequest) -> ActionResponse | ErrorResponse:
        return self._run(Action.exchange_shiny_gems(request.amount))

    # =========================================================================
    # Inventory
    # =========================================================================

    def equip(self, item_id: str) -> ActionResponse | ErrorResponse:
        return self._run(Action.equip(item_id))

    def unequip(self, item_id: str) -> ActionResponse | ErrorResponse:
        return self._run(Action.unequip(item_id))

    def upgrade(self, item_id: str) -> ActionResponse | ErrorResponse:
        return self._run(Action.upgrade(item_id))

    def sell(self, item_id: str) -> ActionResponse | ErrorResponse:
        return self._run(Action.sell(item_id))

    def discard(self, item_id: str) -> ActionResponse | ErrorResponse:
        return self._run(Action.discard(item_id))

    def bulk_sell(self, request: ItemIdsRequest) -> ActionResponse | ErrorResponse:
        return self._run(Action.bulk_sell(request.item_ids))

    def bulk_upgrade(self, request: ItemIdsRequest) -> ActionResponse | ErrorResponse:
        return self._run(Action.bulk_upgrade(request.item_ids))

    # =========================================================================
    # Idle systems
    # =========================================================================

    def claim_idle_rewards(self) -> ActionResponse | ErrorResponse:
        return self._run(Action.claim_idle_rewards())

    def plant_garden(self) -> ActionResponse | ErrorResponse:
        return self._run(Action.plant_garden())

    def water_garden(self, request: WaterGardenRequest) -> ActionResponse | ErrorResponse:
        return self._run(Action.water_garden(request.hours))

    # =========================================================================
    # Progression and settings
    # =========================================================================

    def upgrade_skill(self, request: UpgradeSkillRequest) -> ActionResponse | ErrorResponse:
        return self._run(Action.upgrade_skill(request.skill_id))

    def prestige(self) -> ActionResponse | ErrorResponse:
        return self._run(Action.prestige())

    def claim_daily_reward(self) -> ActionResponse | ErrorResponse:
        return self._run(Action.claim_daily_reward())

    def update_settings(self, request: SettingsRequest) -> ActionResponse | ErrorResponse:
        return self._run(Action.update_settings(**request.model_dump(exclude_none=True)))

    def set_game_mode(self, request: GameModeRequest) -> ActionResponse | ErrorResponse:
        return self._run(Action.set_game_mode(request.mode.value))

    def reset_game(self) -> ActionResponse | ErrorResponse:
        return self._run(Action.reset_game())

    # =========================================================================
    # Helpers
    # =========================================================================

    def _run(self, action: Action) -> ActionResponse | ErrorResponse:
        result = self.store.dispatch(action)
        if not result.success:
            return error_response(result)
        return ActionResponse(
            changes=result.state_changes,
            result=_JSONABLE.dump_python(result.value, mode="json"),
            state=self.get_state(),
        )


def error_response(result: ActionResult) -> ErrorResponse:
    try:
        code = ErrorCode(result.error_code)
    except ValueError:
        code = ErrorCode.HANDLER_ERROR
    return ErrorResponse(error=result.error or "Action rejected", error_code=code)


def build_state_response(state: GameState, now: datetime) -> GameStateResponse:
    """Project a snapshot into the API response model."""
    combat = state.combat
    offered = [get_adventure_skill(skill_id) for skill_id in combat.offered_skill_ids]

    menu_info = None
    menu_skill = state.skills.active(now)
    definition = get_menu_skill(menu_skill.skill_type) if menu_skill else None
    if menu_skill and definition:
        menu_info = MenuSkillInfo(
            skill_type=menu_skill.skill_type,
            name=definition.name,
            description=definition.description,
            activated_at=menu_skill.activated_at,
            expires_at=menu_skill.expires_at,
        )

    daily = state.daily_rewards
    next_daily = ProgressionEngine().next_daily_reward(state, now)

    return GameStateResponse(
        coins=state.coins,
        gems=state.gems,
        shiny_gems=state.shiny_gems,
        zone=state.zone,
        is_premium=state.is_premium,
        has_used_revival=state.has_used_revival,
        player=PlayerInfo.model_validate(state.player),
        inventory=InventoryInfo.model_validate(state.inventory),
        combat=CombatInfo(
            phase=combat.phase,
            enemy=EnemyInfo.model_validate(combat.enemy) if combat.enemy else None,
            offered_skills=[AdventureSkillInfo.model_validate(s) for s in offered if s],
            selected_skill_id=combat.selected_skill_id,
            turns_taken=combat.turns_taken,
        ),
        active_menu_skill=menu_info,
        streak=StreakInfo.model_validate(state.streak),
        garden=GardenInfo.model_validate(state.garden),
        market=MarketInfo.model_validate(state.market),
        merchant=MerchantInfo.model_validate(state.merchant),
        offline=OfflineInfo.model_validate(state.offline),
        game_mode=GameModeInfo.model_validate(state.game_mode),
        progression=ProgressionInfo.model_validate(state.progression),
        daily_rewards=DailyRewardsInfo(
            last_claim_date=daily.last_claim_date,
            current_streak=daily.current_streak,
            max_streak=daily.max_streak,
            available=DailyRewardInfo.model_validate(next_daily) if next_daily else None,
        ),
        settings=SettingsInfo.model_validate(state.settings),
        combat_log=list(state.combat_log),
    )
