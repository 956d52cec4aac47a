"""
Economy and Reward Engine - Chests, purchases, streaks, merchant, mining.

All randomness is drawn from the ``random.Random`` handed in by the
caller; the engine itself holds no state between calls.
"""

from __future__ import annotations
import math
import random
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta

from .action import ActionResult
from .items import (
    chest_rarity_weights,
    generate_gear,
    new_id,
    roll_rarity,
)
from .modifier_resolver import ModifierResolver
from .progression import gain_experience
from .skills import MENU_SKILL_LIST, Axis, MenuSkillDef, ModifierContext, Trait, get_menu_skill
from .stats import compute_stats
from .state import (
    CollectionBook,
    GameState,
    Item,
    ItemKind,
    KnowledgeStreak,
    MenuSkill,
    MerchantReward,
    MerchantRewardType,
    Rarity,
)

MENU_ROLL_COST = 100  # Coins
FRAGMENT_COST = 5
MERCHANT_OFFER_COUNT = 3
SHINY_EXCHANGE_RATE = 10  # Gems per shiny gem
SHINY_MINE_CHANCE = 0.05
ENCHANTER_CHANCE = 0.8
STREAK_MULTIPLIER_STEP = 0.1

ENCHANTABLE = {Rarity.EPIC, Rarity.LEGENDARY, Rarity.MYTHICAL}


@dataclass
class ChestReward:
    kind: ItemKind
    items: list[Item]
    bonus_gems: int


@dataclass
class VictoryReward:
    coins: int
    gems: int


@dataclass
class MineResult:
    gems: int
    shiny_gems: int


def streak_multiplier(current: int) -> float:
    return 1 + current * STREAK_MULTIPLIER_STEP


@dataclass
class EconomyEngine:
    """Reward formulas and every coin/gem spend outside the inventory ledger."""
    resolver: ModifierResolver = field(default_factory=ModifierResolver)

    # ------------------------------------------------------------------
    # Formulas
    # ------------------------------------------------------------------

    def apply_axis(self, state: GameState, amount: float, axis: Axis, now: datetime) -> int:
        """Pass an earned amount through the active menu skill for ``axis``."""
        return self.resolver.resolve_int(
            amount, axis, state.skills.active(now), None, ModifierContext(now=now)
        )

    def victory_reward(self, state: GameState, now: datetime) -> VictoryReward:
        multiplier = state.streak.multiplier
        coins = math.floor((50 + state.zone * 5) * multiplier)
        gems = math.floor((2 + state.zone // 5) * multiplier)
        return VictoryReward(
            coins=self.apply_axis(state, coins, Axis.COINS, now),
            gems=self.apply_axis(state, gems, Axis.GEMS, now),
        )

    def advance_streak(self, state: GameState, now: datetime) -> KnowledgeStreak:
        """One more correct answer; the knowledge boost scales the new run length."""
        current = self.resolver.resolve_int(
            state.streak.current + 1,
            Axis.STREAK_GAIN,
            state.skills.active(now),
            None,
            ModifierContext(now=now, streak=state.streak.current),
        )
        return KnowledgeStreak(
            current=current,
            best=max(state.streak.best, current),
            multiplier=streak_multiplier(current),
        )

    def break_streak(self, state: GameState, now: datetime) -> KnowledgeStreak:
        if self.resolver.has_trait(Trait.STREAK_GUARDIAN, state.skills.active(now), None, now):
            return state.streak
        return replace(state.streak, current=0, multiplier=1.0)

    # ------------------------------------------------------------------
    # Reward containers
    # ------------------------------------------------------------------

    def open_chest(
        self,
        state: GameState,
        cost: int,
        rng: random.Random,
        now: datetime,
    ) -> ActionResult:
        if cost < 0:
            return ActionResult.failure("Chest cost must not be negative", error_code="INVALID_AMOUNT")
        if state.coins < cost:
            return ActionResult.failure(
                f"Chest costs {cost} coins, have {state.coins}",
                error_code="INSUFFICIENT_COINS",
            )

        menu_skill = state.skills.active(now)
        rarity = roll_rarity(chest_rarity_weights(cost), rng.random() * 100)
        if self.resolver.has_trait(Trait.TREASURER, menu_skill, None, now):
            rarity = Rarity.EPIC if rng.random() < 0.5 else Rarity.LEGENDARY

        enchanted = (
            rarity in ENCHANTABLE
            and self.resolver.has_trait(Trait.ENCHANTER, menu_skill, None, now)
            and rng.random() < ENCHANTER_CHANCE
        )

        kind = ItemKind.WEAPON if rng.random() < 0.5 else ItemKind.ARMOR
        items = [generate_gear(rng, kind, rarity, enchanted)]
        if self.resolver.has_trait(Trait.ITEM_DUPLICATOR, menu_skill, None, now):
            items.append(generate_gear(rng, kind, rarity, enchanted))

        bonus_gems = self.apply_axis(state, rng.randint(5, 14), Axis.GEMS, now)

        stats = state.statistics
        new_state = state._copy_with(
            coins=state.coins - cost,
            gems=state.gems + bonus_gems,
            inventory=state.inventory.with_added(items),
            collection=record_collection(state.collection, items),
            statistics=replace(
                stats,
                chests_opened=stats.chests_opened + 1,
                items_collected=stats.items_collected + len(items),
                gems_earned=stats.gems_earned + bonus_gems,
            ),
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Opened a chest: {', '.join(i.name for i in items)} (+{bonus_gems} gems)"],
            value=ChestReward(kind=kind, items=items, bonus_gems=bonus_gems),
        )

    def purchase_mythical(
        self,
        state: GameState,
        cost: int,
        rng: random.Random,
    ) -> ActionResult:
        if cost < 0:
            return ActionResult.failure("Cost must not be negative", error_code="INVALID_AMOUNT")
        if state.coins < cost:
            return ActionResult.failure(
                f"Mythical item costs {cost} coins, have {state.coins}",
                error_code="INSUFFICIENT_COINS",
            )

        kind = ItemKind.WEAPON if rng.random() < 0.5 else ItemKind.ARMOR
        item = generate_gear(rng, kind, Rarity.MYTHICAL)
        new_state = state._copy_with(
            coins=state.coins - cost,
            inventory=state.inventory.with_added([item]),
            collection=record_collection(state.collection, [item]),
            statistics=replace(state.statistics, items_collected=state.statistics.items_collected + 1),
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Purchased {item.name}"],
            value=item,
        )

    def purchase_relic(self, state: GameState, item_id: str) -> ActionResult:
        relic = next((r for r in state.market.items if r.item_id == item_id), None)
        if not relic:
            return ActionResult.failure(f"Relic {item_id} not in market", error_code="NOT_FOUND")
        if state.gems < relic.cost:
            return ActionResult.failure(
                f"Relic costs {relic.cost} gems, have {state.gems}",
                error_code="INSUFFICIENT_GEMS",
            )

        market = replace(state.market, items=[r for r in state.market.items if r.item_id != item_id])
        new_state = state._copy_with(
            gems=state.gems - relic.cost,
            market=market,
            inventory=state.inventory.with_added([replace(relic, equipped=False)]),
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Purchased relic {relic.name} for {relic.cost} gems"],
            value=relic,
        )

    # ------------------------------------------------------------------
    # Menu skills
    # ------------------------------------------------------------------

    def roll_menu_skill(self, state: GameState, rng: random.Random, now: datetime) -> ActionResult:
        if state.coins < MENU_ROLL_COST:
            return ActionResult.failure(
                f"Rolling costs {MENU_ROLL_COST} coins, have {state.coins}",
                error_code="INSUFFICIENT_COINS",
            )

        definition = rng.choice(MENU_SKILL_LIST)
        skill = activate_menu_skill(definition, rng, now)
        new_state = state._copy_with(
            coins=state.coins - MENU_ROLL_COST,
            skills=replace(state.skills, active_menu_skill=skill, last_roll_time=now),
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Rolled {definition.name} for {definition.duration_hours:g} hours"],
            value=skill,
        )

    # ------------------------------------------------------------------
    # Merchant
    # ------------------------------------------------------------------

    def spend_fragments(self, state: GameState, rng: random.Random) -> ActionResult:
        if state.merchant.fragments < FRAGMENT_COST:
            return ActionResult.failure(
                f"Need {FRAGMENT_COST} fragments, have {state.merchant.fragments}",
                error_code="INSUFFICIENT_FRAGMENTS",
            )

        offers = [generate_merchant_reward(rng) for _ in range(MERCHANT_OFFER_COUNT)]
        merchant = replace(
            state.merchant,
            fragments=state.merchant.fragments - FRAGMENT_COST,
            available_rewards=offers,
        )
        return ActionResult.success_with_state(
            state._copy_with(merchant=merchant),
            changes=[f"Merchant offers: {', '.join(o.name for o in offers)}"],
            value=offers,
        )

    def select_merchant_reward(
        self,
        state: GameState,
        reward_id: str,
        rng: random.Random,
        now: datetime,
    ) -> ActionResult:
        reward = next((r for r in state.merchant.available_rewards if r.reward_id == reward_id), None)
        if not reward:
            return ActionResult.failure(f"Reward {reward_id} not offered", error_code="NOT_FOUND")

        changes = [f"Received {reward.name}"]
        new_state = state._copy_with(merchant=replace(state.merchant, available_rewards=[]))
        stats = new_state.statistics
        player = new_state.player

        if reward.reward_type == MerchantRewardType.ITEM and reward.item:
            new_state = new_state._copy_with(
                inventory=new_state.inventory.with_added([reward.item]),
                collection=record_collection(new_state.collection, [reward.item]),
                statistics=replace(stats, items_collected=stats.items_collected + 1),
            )
        elif reward.reward_type == MerchantRewardType.COINS:
            new_state = new_state._copy_with(
                coins=new_state.coins + reward.coins,
                statistics=replace(stats, coins_earned=stats.coins_earned + reward.coins),
            )
        elif reward.reward_type == MerchantRewardType.GEMS:
            new_state = new_state._copy_with(
                gems=new_state.gems + reward.gems,
                statistics=replace(stats, gems_earned=stats.gems_earned + reward.gems),
            )
        elif reward.reward_type == MerchantRewardType.XP:
            xp = self.apply_axis(state, reward.xp, Axis.XP, now)
            progression, levels = gain_experience(new_state.progression, xp)
            new_state = new_state._copy_with(progression=progression)
            if levels:
                changes.append(f"Reached level {progression.level}")
        elif reward.reward_type == MerchantRewardType.HEALTH:
            boosted = new_state._copy_with(
                player=replace(player, base_hp=math.floor(player.base_hp * reward.health_multiplier))
            )
            derived = compute_stats(boosted, now, self.resolver)
            new_state = boosted._copy_with(player=replace(derived, hp=derived.max_hp))
        elif reward.reward_type == MerchantRewardType.ATTACK:
            new_state = new_state._copy_with(
                player=replace(player, base_atk=math.floor(player.base_atk * reward.attack_multiplier))
            )
        elif reward.reward_type == MerchantRewardType.SKILL:
            definition = get_menu_skill(reward.menu_skill_type)
            if definition:
                new_state = new_state._copy_with(
                    skills=replace(
                        new_state.skills,
                        active_menu_skill=activate_menu_skill(definition, rng, now),
                    )
                )

        return ActionResult.success_with_state(
            new_state,
            changes=changes,
            value=reward,
        )

    # ------------------------------------------------------------------
    # Mining
    # ------------------------------------------------------------------

    def mine_gem(self, state: GameState, rng: random.Random, now: datetime) -> ActionResult:
        lucky = self.resolver.has_trait(Trait.LUCKY_MINING, state.skills.active(now), None, now)
        shiny = lucky or rng.random() < SHINY_MINE_CHANCE
        gems = 0 if shiny else self.apply_axis(state, 1, Axis.GEMS, now)
        shiny_gems = self.apply_axis(state, 1, Axis.GEMS, now) if shiny else 0

        stats = state.statistics
        new_state = state._copy_with(
            gems=state.gems + gems,
            shiny_gems=state.shiny_gems + shiny_gems,
            statistics=replace(
                stats,
                gems_earned=stats.gems_earned + gems,
                shiny_gems_earned=stats.shiny_gems_earned + shiny_gems,
            ),
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Mined {shiny_gems} shiny gems" if shiny else f"Mined {gems} gems"],
            value=MineResult(gems=gems, shiny_gems=shiny_gems),
        )

    def exchange_shiny_gems(self, state: GameState, amount: int) -> ActionResult:
        if amount <= 0:
            return ActionResult.failure("Amount must be positive", error_code="INVALID_AMOUNT")
        if state.shiny_gems < amount:
            return ActionResult.failure(
                f"Have {state.shiny_gems} shiny gems, need {amount}",
                error_code="INSUFFICIENT_SHINY_GEMS",
            )

        gems = amount * SHINY_EXCHANGE_RATE
        new_state = state._copy_with(
            shiny_gems=state.shiny_gems - amount,
            gems=state.gems + gems,
            statistics=replace(state.statistics, gems_earned=state.statistics.gems_earned + gems),
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Exchanged {amount} shiny gems for {gems} gems"],
            value=gems,
        )


def activate_menu_skill(definition: MenuSkillDef, rng: random.Random, now: datetime) -> MenuSkill:
    return MenuSkill(
        skill_id=new_id(rng),
        skill_type=definition.skill_type,
        activated_at=now,
        expires_at=now + timedelta(hours=definition.duration_hours),
    )


def generate_merchant_reward(rng: random.Random) -> MerchantReward:
    """One independently typed merchant offer."""
    reward_type = rng.choice(list(MerchantRewardType))
    reward_id = new_id(rng)

    if reward_type == MerchantRewardType.ITEM:
        kind = ItemKind.WEAPON if rng.random() < 0.5 else ItemKind.ARMOR
        item = generate_gear(rng, kind, Rarity.LEGENDARY, enchanted=True)
        label = "Weapon" if kind == ItemKind.WEAPON else "Armor"
        return MerchantReward(reward_id, reward_type, f"Legendary {label}", f"A powerful {item.name}", item=item)
    if reward_type == MerchantRewardType.COINS:
        coins = rng.randint(5000, 14999)
        return MerchantReward(reward_id, reward_type, "Coin Treasure", f"{coins:,} coins", coins=coins)
    if reward_type == MerchantRewardType.GEMS:
        gems = rng.randint(500, 1499)
        return MerchantReward(reward_id, reward_type, "Gem Cache", f"{gems:,} gems", gems=gems)
    if reward_type == MerchantRewardType.XP:
        xp = rng.randint(1000, 2999)
        return MerchantReward(reward_id, reward_type, "Experience Tome", f"{xp:,} experience points", xp=xp)
    if reward_type == MerchantRewardType.HEALTH:
        return MerchantReward(
            reward_id, reward_type, "Vitality Boost", "Permanently increase max HP by 50%",
            health_multiplier=1.5,
        )
    if reward_type == MerchantRewardType.ATTACK:
        return MerchantReward(
            reward_id, reward_type, "Power Enhancement", "Permanently increase ATK by 25%",
            attack_multiplier=1.25,
        )

    definition = rng.choice(MENU_SKILL_LIST)
    return MerchantReward(
        reward_id, reward_type, "Free Menu Skill", f"Get {definition.name} for free",
        menu_skill_type=definition.skill_type,
    )


def record_collection(book: CollectionBook, items: list[Item]) -> CollectionBook:
    """Record names once per distinct item; count every copy by rarity."""
    weapons = list(book.weapons)
    armor = list(book.armor)
    rarity_counts = dict(book.rarity_counts)
    for item in items:
        names = weapons if item.kind == ItemKind.WEAPON else armor
        if item.kind != ItemKind.RELIC and item.name not in names:
            names.append(item.name)
        rarity_counts[item.rarity.value] = rarity_counts.get(item.rarity.value, 0) + 1
    return CollectionBook(weapons=weapons, armor=armor, rarity_counts=rarity_counts)
