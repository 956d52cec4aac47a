"""
Game State - The root snapshot every engine operates on.

Design principles:
- Immutable-friendly: engines return new snapshots, never patch inputs
- Serializable: every section round-trips through the session codec
- Single owner: only the StateStore holds the live snapshot
- Explicit time: timestamps are timezone-aware and compared against a
  caller-supplied ``now``
"""

from __future__ import annotations
from copy import deepcopy
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum

from .clock import Timestamp


# Combat log keeps only the most recent messages
COMBAT_LOG_LIMIT = 10

MARKET_REFRESH_INTERVAL = timedelta(minutes=5)


class Rarity(Enum):
    """Item rarity tiers, ordered common < rare < epic < legendary < mythical."""
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"
    MYTHICAL = "mythical"


RARITY_ORDER = [
    Rarity.COMMON,
    Rarity.RARE,
    Rarity.EPIC,
    Rarity.LEGENDARY,
    Rarity.MYTHICAL,
]


class ItemKind(Enum):
    WEAPON = "weapon"
    ARMOR = "armor"
    RELIC = "relic"


@dataclass
class Item:
    """
    An owned or purchasable piece of gear.

    Weapons contribute ``base_atk``, armor ``base_def``; a relic carries
    exactly one of the two. ``equipped`` is only meaningful for relics:
    weapons and armor are equipped through the inventory's current-item
    references.
    """
    item_id: str
    name: str
    kind: ItemKind
    rarity: Rarity
    level: int = 1
    base_atk: int = 0
    base_def: int = 0
    durability: int = 100
    max_durability: int = 100
    upgrade_cost: int = 10
    sell_price: int = 0
    cost: int = 0  # Market price in gems (relics)
    enchanted: bool = False
    equipped: bool = False

    @property
    def durability_ratio(self) -> float:
        if self.max_durability <= 0:
            return 1.0
        return self.durability / self.max_durability


@dataclass
class Inventory:
    """
    Owned gear.

    Relics live in one collection and carry their own equipped flag,
    so a relic can never be both equipped and unequipped.
    """
    weapons: list[Item] = field(default_factory=list)
    armor: list[Item] = field(default_factory=list)
    relics: list[Item] = field(default_factory=list)
    current_weapon_id: str | None = None
    current_armor_id: str | None = None

    @property
    def current_weapon(self) -> Item | None:
        return _find(self.weapons, self.current_weapon_id)

    @property
    def current_armor(self) -> Item | None:
        return _find(self.armor, self.current_armor_id)

    @property
    def equipped_relics(self) -> list[Item]:
        return [r for r in self.relics if r.equipped]

    @property
    def unequipped_relics(self) -> list[Item]:
        return [r for r in self.relics if not r.equipped]

    def find(self, item_id: str) -> Item | None:
        """Find an owned item of any kind."""
        for items in (self.weapons, self.armor, self.relics):
            item = _find(items, item_id)
            if item:
                return item
        return None

    def collection(self, kind: ItemKind) -> list[Item]:
        if kind == ItemKind.WEAPON:
            return self.weapons
        if kind == ItemKind.ARMOR:
            return self.armor
        return self.relics

    def is_equipped(self, item: Item) -> bool:
        if item.kind == ItemKind.WEAPON:
            return item.item_id == self.current_weapon_id
        if item.kind == ItemKind.ARMOR:
            return item.item_id == self.current_armor_id
        return item.equipped

    def with_collection(self, kind: ItemKind, items: list[Item]) -> Inventory:
        """Return new inventory with one collection replaced."""
        if kind == ItemKind.WEAPON:
            return replace(self, weapons=items)
        if kind == ItemKind.ARMOR:
            return replace(self, armor=items)
        return replace(self, relics=items)

    def with_item(self, item: Item) -> Inventory:
        """Return new inventory with an owned item replaced by id."""
        items = [item if i.item_id == item.item_id else i for i in self.collection(item.kind)]
        return self.with_collection(item.kind, items)

    def with_added(self, items: list[Item]) -> Inventory:
        inventory = self
        for item in items:
            inventory = inventory.with_collection(item.kind, inventory.collection(item.kind) + [item])
        return inventory

    def without(self, item_ids: set[str]) -> Inventory:
        """Return new inventory with the given items removed from every collection."""
        return replace(
            self,
            weapons=[i for i in self.weapons if i.item_id not in item_ids],
            armor=[i for i in self.armor if i.item_id not in item_ids],
            relics=[i for i in self.relics if i.item_id not in item_ids],
        )


def _find(items: list[Item], item_id: str | None) -> Item | None:
    if item_id is None:
        return None
    for item in items:
        if item.item_id == item_id:
            return item
    return None


@dataclass
class PlayerStats:
    """
    Base stats plus the derived stats recomputed from every input.

    ``atk``/``defense``/``max_hp`` are derived; ``base_*`` only change on
    permanent boosts. ``hp`` always stays within ``[0, max_hp]``.
    """
    hp: int = 100
    max_hp: int = 100
    atk: int = 25
    defense: int = 15
    base_atk: int = 25
    base_def: int = 15
    base_hp: int = 100


@dataclass
class Enemy:
    """A combat opponent, created at encounter start from the zone number."""
    name: str
    zone: int
    hp: int
    max_hp: int
    atk: int
    defense: int
    is_poisoned: bool = False
    poison_turns: int = 0


@dataclass
class SkillFlags:
    """
    One-shot capability flags scoped to a single encounter.

    Reset wholesale whenever a new encounter enters drafting.
    """
    skip_card_used: bool = False
    dodge_used: bool = False
    metal_shield_used: bool = False
    shadow_step_used: bool = False
    phoenix_used: bool = False
    divine_protection_used: bool = False

    def is_used(self, capability: str) -> bool:
        return getattr(self, f"{capability}_used")

    def mark_used(self, capability: str) -> SkillFlags:
        return replace(self, **{f"{capability}_used": True})


class CombatPhase(Enum):
    """Combat state machine. Victory and defeat resolve straight back to IDLE."""
    IDLE = "idle"
    DRAFTING = "drafting"
    ACTIVE = "active"


@dataclass
class CombatState:
    phase: CombatPhase = CombatPhase.IDLE
    enemy: Enemy | None = None
    offered_skill_ids: list[str] = field(default_factory=list)
    selected_skill_id: str | None = None
    # Selection of the last finished encounter; risker halving reads this
    previous_skill_id: str | None = None
    flags: SkillFlags = field(default_factory=SkillFlags)
    turns_taken: int = 0


@dataclass
class MenuSkill:
    """
    A timed buff. Expiry is evaluated lazily against ``now`` on every read.
    """
    skill_id: str
    skill_type: str
    activated_at: Timestamp
    expires_at: Timestamp
    consumed: bool = False  # One-shot charge (revival blessing)

    def is_active(self, now: datetime) -> bool:
        return now <= self.expires_at


@dataclass
class SkillsState:
    active_menu_skill: MenuSkill | None = None
    last_roll_time: Timestamp | None = None
    session_start_time: Timestamp | None = None

    def active(self, now: datetime) -> MenuSkill | None:
        """The active menu skill, or None once it has expired."""
        skill = self.active_menu_skill
        if skill and skill.is_active(now):
            return skill
        return None


@dataclass
class KnowledgeStreak:
    current: int = 0
    best: int = 0
    multiplier: float = 1.0


@dataclass
class Market:
    """Relic market. The pool is replaced wholesale on every refresh."""
    last_refresh: Timestamp
    next_refresh: Timestamp
    items: list[Item] = field(default_factory=list)

    def is_due(self, now: datetime) -> bool:
        return now >= self.next_refresh


@dataclass
class Garden:
    is_planted: bool = False
    planted_at: Timestamp | None = None
    last_watered: Timestamp | None = None
    water_hours_remaining: float = 0.0
    growth_cm: float = 0.0
    total_growth_bonus: float = 0.0
    seed_cost: int = 1000
    water_cost: int = 1000  # Coins per 24 hours of water
    max_growth_cm: float = 100.0


class MerchantRewardType(Enum):
    ITEM = "item"
    COINS = "coins"
    GEMS = "gems"
    XP = "xp"
    HEALTH = "health"
    ATTACK = "attack"
    SKILL = "skill"


@dataclass
class MerchantReward:
    reward_id: str
    reward_type: MerchantRewardType
    name: str
    description: str = ""
    item: Item | None = None
    coins: int = 0
    gems: int = 0
    xp: int = 0
    health_multiplier: float = 1.0
    attack_multiplier: float = 1.0
    menu_skill_type: str | None = None


@dataclass
class Merchant:
    fragments: int = 0
    total_fragments_earned: int = 0
    last_fragment_zone: int = 0
    available_rewards: list[MerchantReward] = field(default_factory=list)


@dataclass
class OfflineProgress:
    """Idle earnings staged for an explicit claim."""
    last_save_time: Timestamp
    offline_coins: int = 0
    offline_gems: int = 0
    offline_seconds: int = 0
    max_offline_hours: int = 8


@dataclass
class ResearchBonuses:
    atk: int = 0
    defense: int = 0
    hp: int = 0


@dataclass
class Research:
    level: int = 1
    bonuses: ResearchBonuses = field(default_factory=ResearchBonuses)


@dataclass
class CollectionBook:
    """Names recorded once per distinct item; rarity counts accrue per copy."""
    weapons: list[str] = field(default_factory=list)
    armor: list[str] = field(default_factory=list)
    rarity_counts: dict[str, int] = field(
        default_factory=lambda: {r.value: 0 for r in RARITY_ORDER}
    )


class GameModeType(Enum):
    NORMAL = "normal"
    BLITZ = "blitz"
    BLOODLUST = "bloodlust"
    SURVIVAL = "survival"


@dataclass
class GameMode:
    current: GameModeType = GameModeType.NORMAL
    survival_lives: int = 3
    max_survival_lives: int = 3


@dataclass
class CategoryAccuracy:
    correct: int = 0
    total: int = 0


@dataclass
class Statistics:
    total_questions_answered: int = 0
    correct_answers: int = 0
    accuracy_by_category: dict[str, CategoryAccuracy] = field(default_factory=dict)
    total_damage_dealt: int = 0
    total_damage_taken: int = 0
    total_victories: int = 0
    total_deaths: int = 0
    revivals: int = 0
    zones_reached: int = 1
    coins_earned: int = 0
    gems_earned: int = 0
    shiny_gems_earned: int = 0
    chests_opened: int = 0
    items_collected: int = 0
    items_sold: int = 0
    items_upgraded: int = 0


@dataclass
class Progression:
    """Player level fed by experience; skill points buy unlocks."""
    level: int = 1
    experience: int = 0
    experience_to_next: int = 100
    skill_points: int = 0
    unlocked_skills: list[str] = field(default_factory=list)
    prestige_level: int = 0
    prestige_points: int = 0


@dataclass
class DailyRewardClaim:
    day: int
    coins: int
    gems: int
    claimed_at: Timestamp


@dataclass
class DailyRewards:
    last_claim_date: Timestamp | None = None
    current_streak: int = 0
    max_streak: int = 0
    history: list[DailyRewardClaim] = field(default_factory=list)


@dataclass
class Settings:
    """Player preferences; the engine stores them but never reads them."""
    colorblind_mode: bool = False
    dark_mode: bool = True
    language: str = "en"
    notifications: bool = True
    snap_to_grid: bool = False
    beauty_mode: bool = False


@dataclass
class GameState:
    """
    Complete world state at a point in time.

    This is the canonical snapshot the StateStore owns.
    All state changes go through the reducer.
    """
    market: Market
    offline: OfflineProgress

    coins: int = 500
    gems: int = 50
    shiny_gems: int = 0
    zone: int = 1
    is_premium: bool = False
    has_used_revival: bool = False

    player: PlayerStats = field(default_factory=PlayerStats)
    inventory: Inventory = field(default_factory=Inventory)
    combat: CombatState = field(default_factory=CombatState)
    skills: SkillsState = field(default_factory=SkillsState)
    streak: KnowledgeStreak = field(default_factory=KnowledgeStreak)
    garden: Garden = field(default_factory=Garden)
    merchant: Merchant = field(default_factory=Merchant)
    research: Research = field(default_factory=Research)
    collection: CollectionBook = field(default_factory=CollectionBook)
    game_mode: GameMode = field(default_factory=GameMode)
    statistics: Statistics = field(default_factory=Statistics)
    progression: Progression = field(default_factory=Progression)
    daily_rewards: DailyRewards = field(default_factory=DailyRewards)
    settings: Settings = field(default_factory=Settings)
    combat_log: list[str] = field(default_factory=list)

    @property
    def in_combat(self) -> bool:
        return self.combat.phase != CombatPhase.IDLE

    def with_log(self, messages: list[str]) -> GameState:
        """Return new state with messages appended to the bounded combat log."""
        if not messages:
            return self
        return self._copy_with(combat_log=(self.combat_log + messages)[-COMBAT_LOG_LIMIT:])

    def _copy_with(self, **kwargs) -> GameState:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)

    def clone(self) -> GameState:
        """Deep copy the state."""
        return deepcopy(self)

    @classmethod
    def create(cls, now: datetime) -> GameState:
        """Factory for a fresh game; the market pool is filled by the caller."""
        return cls(
            market=Market(last_refresh=now, next_refresh=now + MARKET_REFRESH_INTERVAL),
            offline=OfflineProgress(last_save_time=now),
            skills=SkillsState(session_start_time=now),
        )
