"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a game client and the engine.
Engine dataclasses are read with ``from_attributes`` so responses mirror
the state tree without hand-written field copying.

Error Codes:
- INVALID_PHASE: Command not valid in the current combat phase
- NOT_FOUND: Item, relic, skill or reward id is unknown
- INSUFFICIENT_COINS / INSUFFICIENT_GEMS / INSUFFICIENT_FRAGMENTS /
  INSUFFICIENT_SHINY_GEMS: Not enough currency
- ITEM_EQUIPPED: Equipped items cannot be sold or discarded
- ALREADY_PLANTED / NOT_PLANTED: Garden state does not allow the command
- INVALID_AMOUNT: Cost, hours or amount out of range
- SKILL_UNAVAILABLE: Skill capability already consumed or not selected
- HANDLER_ERROR: Unexpected engine failure
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from ..engine_core.state import CombatPhase, GameModeType, ItemKind, MerchantRewardType, Rarity


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    INVALID_PHASE = "INVALID_PHASE"
    NOT_FOUND = "NOT_FOUND"
    INSUFFICIENT_COINS = "INSUFFICIENT_COINS"
    INSUFFICIENT_GEMS = "INSUFFICIENT_GEMS"
    INSUFFICIENT_FRAGMENTS = "INSUFFICIENT_FRAGMENTS"
    INSUFFICIENT_SHINY_GEMS = "INSUFFICIENT_SHINY_GEMS"
    ITEM_EQUIPPED = "ITEM_EQUIPPED"
    ALREADY_PLANTED = "ALREADY_PLANTED"
    NOT_PLANTED = "NOT_PLANTED"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    SKILL_UNAVAILABLE = "SKILL_UNAVAILABLE"
    NO_HANDLER = "NO_HANDLER"
    INSUFFICIENT_SKILL_POINTS = "INSUFFICIENT_SKILL_POINTS"
    ALREADY_UNLOCKED = "ALREADY_UNLOCKED"
    PRESTIGE_LOCKED = "PRESTIGE_LOCKED"
    NO_DAILY_REWARD = "NO_DAILY_REWARD"
    INVALID_SETTING = "INVALID_SETTING"
    HANDLER_ERROR = "HANDLER_ERROR"


class GameModeName(str, Enum):
    NORMAL = "normal"
    BLITZ = "blitz"
    BLOODLUST = "bloodlust"
    SURVIVAL = "survival"


# =============================================================================
# Shared Models
# =============================================================================

class ItemInfo(BaseModel):
    """Weapon, armor or relic."""
    item_id: str
    name: str
    kind: ItemKind
    rarity: Rarity
    level: int
    base_atk: int = 0
    base_def: int = 0
    durability: int = 100
    max_durability: int = 100
    upgrade_cost: int
    sell_price: int = 0
    cost: int = 0
    enchanted: bool = False
    equipped: bool = False

    model_config = {"from_attributes": True, "use_enum_values": True}


class InventoryInfo(BaseModel):
    weapons: list[ItemInfo] = Field(default_factory=list)
    armor: list[ItemInfo] = Field(default_factory=list)
    relics: list[ItemInfo] = Field(default_factory=list)
    current_weapon_id: Optional[str] = None
    current_armor_id: Optional[str] = None

    model_config = {"from_attributes": True}


class PlayerInfo(BaseModel):
    hp: int
    max_hp: int
    atk: int
    defense: int
    base_atk: int
    base_def: int
    base_hp: int

    model_config = {"from_attributes": True}


class EnemyInfo(BaseModel):
    name: str
    zone: int
    hp: int
    max_hp: int
    atk: int
    defense: int
    is_poisoned: bool = False
    poison_turns: int = 0

    model_config = {"from_attributes": True}


class AdventureSkillInfo(BaseModel):
    skill_id: str
    name: str
    description: str

    model_config = {"from_attributes": True}


class CombatInfo(BaseModel):
    phase: CombatPhase
    enemy: Optional[EnemyInfo] = None
    offered_skills: list[AdventureSkillInfo] = Field(default_factory=list)
    selected_skill_id: Optional[str] = None
    turns_taken: int = 0


class MenuSkillInfo(BaseModel):
    skill_type: str
    name: str
    description: str
    activated_at: datetime
    expires_at: datetime


class StreakInfo(BaseModel):
    current: int = 0
    best: int = 0
    multiplier: float = 1.0

    model_config = {"from_attributes": True}


class GardenInfo(BaseModel):
    is_planted: bool = False
    planted_at: Optional[datetime] = None
    water_hours_remaining: float = 0.0
    growth_cm: float = 0.0
    total_growth_bonus: float = 0.0
    max_growth_cm: float = 100.0

    model_config = {"from_attributes": True}


class MarketInfo(BaseModel):
    items: list[ItemInfo] = Field(default_factory=list)
    last_refresh: datetime
    next_refresh: datetime

    model_config = {"from_attributes": True}


class MerchantRewardInfo(BaseModel):
    reward_id: str
    reward_type: MerchantRewardType
    name: str
    description: str = ""

    model_config = {"from_attributes": True, "use_enum_values": True}


class MerchantInfo(BaseModel):
    fragments: int = 0
    total_fragments_earned: int = 0
    available_rewards: list[MerchantRewardInfo] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class OfflineInfo(BaseModel):
    """Idle earnings waiting to be claimed."""
    offline_coins: int = 0
    offline_gems: int = 0
    offline_seconds: int = 0
    last_save_time: datetime

    model_config = {"from_attributes": True}


class GameModeInfo(BaseModel):
    current: GameModeType
    survival_lives: int
    max_survival_lives: int

    model_config = {"from_attributes": True, "use_enum_values": True}


class ProgressionInfo(BaseModel):
    level: int
    experience: int
    experience_to_next: int
    skill_points: int
    unlocked_skills: list[str] = Field(default_factory=list)
    prestige_level: int = 0
    prestige_points: int = 0

    model_config = {"from_attributes": True}


class DailyRewardInfo(BaseModel):
    day: int
    coins: int
    gems: int

    model_config = {"from_attributes": True}


class DailyRewardsInfo(BaseModel):
    """Login reward streak; ``available`` is the reward claimable right now."""
    last_claim_date: Optional[datetime] = None
    current_streak: int = 0
    max_streak: int = 0
    available: Optional[DailyRewardInfo] = None


class SettingsInfo(BaseModel):
    colorblind_mode: bool
    dark_mode: bool
    language: str
    notifications: bool
    snap_to_grid: bool
    beauty_mode: bool

    model_config = {"from_attributes": True}


# =============================================================================
# Request Models
# =============================================================================

class AnswerRequest(BaseModel):
    """Outcome of one trivia question, as judged by the question service."""
    correct: bool
    category: Optional[str] = Field(default=None, description="Question category, e.g. Science")


class SkipCardRequest(BaseModel):
    category: Optional[str] = None


class SelectSkillRequest(BaseModel):
    skill_id: str


class ChestRequest(BaseModel):
    cost: int = Field(ge=0, description="Coins paid for the chest")


class PurchaseMythicalRequest(BaseModel):
    cost: int = Field(ge=0)


class ItemIdsRequest(BaseModel):
    item_ids: list[str] = Field(min_length=1)


class WaterGardenRequest(BaseModel):
    hours: float = Field(gt=0)


class ExchangeShinyRequest(BaseModel):
    amount: int = Field(gt=0)


class GameModeRequest(BaseModel):
    mode: GameModeName


class SelectRewardRequest(BaseModel):
    reward_id: str


class UpgradeSkillRequest(BaseModel):
    skill_id: str


class SettingsRequest(BaseModel):
    """Partial preferences update; omitted fields keep their value."""
    colorblind_mode: Optional[bool] = None
    dark_mode: Optional[bool] = None
    language: Optional[str] = Field(default=None, min_length=2, max_length=8)
    notifications: Optional[bool] = None
    snap_to_grid: Optional[bool] = None
    beauty_mode: Optional[bool] = None

    model_config = {"extra": "forbid"}


# =============================================================================
# Response Models
# =============================================================================

class GameStateResponse(BaseModel):
    """Full view of the live game."""
    coins: int
    gems: int
    shiny_gems: int
    zone: int
    is_premium: bool
    has_used_revival: bool
    player: PlayerInfo
    inventory: InventoryInfo
    combat: CombatInfo
    active_menu_skill: Optional[MenuSkillInfo] = None
    streak: StreakInfo
    garden: GardenInfo
    market: MarketInfo
    merchant: MerchantInfo
    offline: OfflineInfo
    game_mode: GameModeInfo
    progression: ProgressionInfo
    daily_rewards: DailyRewardsInfo
    settings: SettingsInfo
    combat_log: list[str] = Field(default_factory=list)


class ActionResponse(BaseModel):
    """A committed command."""
    success: bool = True
    changes: list[str] = Field(default_factory=list)
    result: Optional[Any] = Field(default=None, description="Command-specific payload")
    state: GameStateResponse


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    env: str
