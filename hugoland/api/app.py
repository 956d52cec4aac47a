"""
FastAPI Application - REST API over the game engine.

Endpoints:
    GET    /api/v1/health                     Liveness and version
    GET    /api/v1/state                      Full game state
    POST   /api/v1/combat/start               Start an encounter
    POST   /api/v1/combat/skill               Pick an offered adventure skill
    POST   /api/v1/combat/skip-skill          Fight without an adventure skill
    POST   /api/v1/combat/answer              Resolve one answered question
    POST   /api/v1/combat/skip-card           Auto-correct one question
    POST   /api/v1/chests                     Open a reward chest
    POST   /api/v1/shop/mythical              Buy a mythical item
    POST   /api/v1/market/{relic_id}/buy      Buy a relic from the market
    POST   /api/v1/skills/roll                Roll a timed menu skill
    POST   /api/v1/merchant/fragments         Spend fragments on merchant offers
    POST   /api/v1/merchant/rewards           Take one merchant offer
    POST   /api/v1/mining/mine                Mine a gem
    POST   /api/v1/mining/exchange            Exchange shiny gems
    POST   /api/v1/items/{item_id}/equip      Equip an item
    POST   /api/v1/items/{item_id}/unequip    Unequip an item
    POST   /api/v1/items/{item_id}/upgrade    Upgrade an item
    POST   /api/v1/items/{item_id}/sell       Sell an item
    DELETE /api/v1/items/{item_id}            Discard an item
    POST   /api/v1/items/bulk-sell            Sell several items
    POST   /api/v1/items/bulk-upgrade         Upgrade several items
    POST   /api/v1/idle/claim                 Claim staged offline earnings
    POST   /api/v1/garden/plant               Plant the garden
    POST   /api/v1/garden/water               Water the garden
    POST   /api/v1/progression/skills         Unlock a progression skill
    POST   /api/v1/progression/prestige       Prestige at level 50 or above
    POST   /api/v1/daily-reward/claim         Claim today's login reward
    PATCH  /api/v1/settings                   Update player preferences
    POST   /api/v1/mode                       Change game mode
    POST   /api/v1/reset                      Start a new game

Rejected commands return 409 with an ErrorResponse, unknown ids 404,
handler failures 500.
"""

from contextlib import asynccontextmanager
from typing import Union

from .. import __version__
from ..config import EngineSettings, configure_logging


def create_app(service=None, settings: EngineSettings | None = None):
    """
    Create the FastAPI application.

    Args:
        service: Optional GameService instance (creates one from settings if not provided)
        settings: Optional EngineSettings (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from ..session import FileBackend, StateStore
    from .service import GameService
    from .schemas import (
        # Request models
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
        # Response models
        ActionResponse,
        ErrorResponse,
        GameStateResponse,
        HealthResponse,
        # Enums
        ErrorCode,
    )

    settings = settings or EngineSettings.from_env()
    configure_logging(settings.log_level)

    api_service = service or GameService(
        store=StateStore(
            FileBackend(settings.save_dir),
            key=settings.storage_key,
            debounce_seconds=settings.persist_debounce_seconds,
            poll_seconds=settings.market_poll_seconds,
        )
    )

    @asynccontextmanager
    async def lifespan(app):
        if not api_service.store.is_loaded:
            await api_service.open()
        yield
        await api_service.close()

    app = FastAPI(
        title="Hugoland Engine API",
        description="Idle trivia RPG engine: combat, loot, idle accrual and persistence.",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    ActionOrError = Union[ActionResponse, JSONResponse]

    def respond(response: Union[ActionResponse, ErrorResponse]) -> ActionOrError:
        """Map rejections onto HTTP status codes."""
        if isinstance(response, ErrorResponse):
            status_code = 404 if response.error_code == ErrorCode.NOT_FOUND else 409
            if response.error_code in (ErrorCode.HANDLER_ERROR, ErrorCode.NO_HANDLER):
                status_code = 500
            return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))
        return response

    error_responses = {code: {"model": ErrorResponse} for code in (404, 409, 500)}

    # =========================================================================
    # Queries
    # =========================================================================

    @app.get("/api/v1/health", response_model=HealthResponse, tags=["System"])
    async def health() -> HealthResponse:
        return HealthResponse(version=__version__, env=settings.env)

    @app.get("/api/v1/state", response_model=GameStateResponse, tags=["State"])
    async def get_state() -> GameStateResponse:
        return api_service.get_state()

    # =========================================================================
    # Combat
    # =========================================================================

    @app.post("/api/v1/combat/start", response_model=ActionResponse, responses=error_responses, tags=["Combat"])
    async def start_combat():
        return respond(api_service.start_combat())

    @app.post("/api/v1/combat/skill", response_model=ActionResponse, responses=error_responses, tags=["Combat"])
    async def select_skill(request: SelectSkillRequest):
        return respond(api_service.select_skill(request))

    @app.post("/api/v1/combat/skip-skill", response_model=ActionResponse, responses=error_responses, tags=["Combat"])
    async def skip_skill():
        return respond(api_service.skip_skill())

    @app.post("/api/v1/combat/answer", response_model=ActionResponse, responses=error_responses, tags=["Combat"])
    async def answer(request: AnswerRequest):
        return respond(api_service.answer(request))

    @app.post("/api/v1/combat/skip-card", response_model=ActionResponse, responses=error_responses, tags=["Combat"])
    async def use_skip_card(request: SkipCardRequest):
        return respond(api_service.use_skip_card(request))

    # =========================================================================
    # Economy
    # =========================================================================

    @app.post("/api/v1/chests", response_model=ActionResponse, responses=error_responses, tags=["Economy"])
    async def open_chest(request: ChestRequest):
        return respond(api_service.open_chest(request))

    @app.post("/api/v1/shop/mythical", response_model=ActionResponse, responses=error_responses, tags=["Economy"])
    async def purchase_mythical(request: PurchaseMythicalRequest):
        return respond(api_service.purchase_mythical(request))

    @app.post(
        "/api/v1/market/{relic_id}/buy",
        response_model=ActionResponse,
        responses=error_responses,
        tags=["Economy"],
    )
    async def purchase_relic(relic_id: str):
        return respond(api_service.purchase_relic(relic_id))

    @app.post("/api/v1/skills/roll", response_model=ActionResponse, responses=error_responses, tags=["Economy"])
    async def roll_menu_skill():
        return respond(api_service.roll_menu_skill())

    @app.post(
        "/api/v1/merchant/fragments",
        response_model=ActionResponse,
        responses=error_responses,
        tags=["Economy"],
    )
    async def spend_fragments():
        return respond(api_service.spend_fragments())

    @app.post("/api/v1/merchant/rewards", response_model=ActionResponse, responses=error_responses, tags=["Economy"])
    async def select_reward(request: SelectRewardRequest):
        return respond(api_service.select_reward(request))

    @app.post("/api/v1/mining/mine", response_model=ActionResponse, responses=error_responses, tags=["Economy"])
    async def mine_gem():
        return respond(api_service.mine_gem())

    @app.post("/api/v1/mining/exchange", response_model=ActionResponse, responses=error_responses, tags=["Economy"])
    async def exchange_shiny_gems(request: ExchangeShinyRequest):
        return respond(api_service.exchange_shiny_gems(request))

    # =========================================================================
    # Inventory
    # =========================================================================

    @app.post("/api/v1/items/bulk-sell", response_model=ActionResponse, responses=error_responses, tags=["Items"])
    async def bulk_sell(request: ItemIdsRequest):
        return respond(api_service.bulk_sell(request))

    @app.post("/api/v1/items/bulk-upgrade", response_model=ActionResponse, responses=error_responses, tags=["Items"])
    async def bulk_upgrade(request: ItemIdsRequest):
        return respond(api_service.bulk_upgrade(request))

    @app.post("/api/v1/items/{item_id}/equip", response_model=ActionResponse, responses=error_responses, tags=["Items"])
    async def equip(item_id: str):
        return respond(api_service.equip(item_id))

    @app.post(
        "/api/v1/items/{item_id}/unequip",
        response_model=ActionResponse,
        responses=error_responses,
        tags=["Items"],
    )
    async def unequip(item_id: str):
        return respond(api_service.unequip(item_id))

    @app.post(
        "/api/v1/items/{item_id}/upgrade",
        response_model=ActionResponse,
        responses=error_responses,
        tags=["Items"],
    )
    async def upgrade(item_id: str):
        return respond(api_service.upgrade(item_id))

    @app.post("/api/v1/items/{item_id}/sell", response_model=ActionResponse, responses=error_responses, tags=["Items"])
    async def sell(item_id: str):
        return respond(api_service.sell(item_id))

    @app.delete("/api/v1/items/{item_id}", response_model=ActionResponse, responses=error_responses, tags=["Items"])
    async def discard(item_id: str):
        return respond(api_service.discard(item_id))

    # =========================================================================
    # Idle systems
    # =========================================================================

    @app.post("/api/v1/idle/claim", response_model=ActionResponse, responses=error_responses, tags=["Idle"])
    async def claim_idle_rewards():
        return respond(api_service.claim_idle_rewards())

    @app.post("/api/v1/garden/plant", response_model=ActionResponse, responses=error_responses, tags=["Idle"])
    async def plant_garden():
        return respond(api_service.plant_garden())

    @app.post("/api/v1/garden/water", response_model=ActionResponse, responses=error_responses, tags=["Idle"])
    async def water_garden(request: WaterGardenRequest):
        return respond(api_service.water_garden(request))

    # =========================================================================
    # Progression and settings
    # =========================================================================

    @app.post("/api/v1/progression/skills", response_model=ActionResponse, responses=error_responses, tags=["Progression"])
    async def upgrade_skill(request: UpgradeSkillRequest):
        return respond(api_service.upgrade_skill(request))

    @app.post("/api/v1/progression/prestige", response_model=ActionResponse, responses=error_responses, tags=["Progression"])
    async def prestige():
        return respond(api_service.prestige())

    @app.post("/api/v1/daily-reward/claim", response_model=ActionResponse, responses=error_responses, tags=["Progression"])
    async def claim_daily_reward():
        return respond(api_service.claim_daily_reward())

    @app.patch("/api/v1/settings", response_model=ActionResponse, responses=error_responses, tags=["Settings"])
    async def update_settings(request: SettingsRequest):
        return respond(api_service.update_settings(request))

    @app.post("/api/v1/mode", response_model=ActionResponse, responses=error_responses, tags=["Settings"])
    async def set_game_mode(request: GameModeRequest):
        return respond(api_service.set_game_mode(request))

    @app.post("/api/v1/reset", response_model=ActionResponse, responses=error_responses, tags=["Settings"])
    async def reset_game():
        return respond(api_service.reset_game())

    return app
