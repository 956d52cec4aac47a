"""
Inventory Ledger - Equip, upgrade, sell and discard owned gear.

Every operation returns an ActionResult. A rejected operation leaves the
input state untouched; nothing is ever partially applied.
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field, replace
from datetime import datetime

from .action import ActionResult
from .modifier_resolver import ModifierResolver
from .skills import Axis, ModifierContext
from .state import GameState, Item, ItemKind

# Flat stat gain per upgrade level
WEAPON_UPGRADE_ATK = 10
ARMOR_UPGRADE_DEF = 5
RELIC_UPGRADE_ATK = 22
RELIC_UPGRADE_DEF = 15

UPGRADE_COST_GROWTH = 1.5

# Relics sell back for half their market price, in gems
RELIC_SELL_RATIO = 0.5


@dataclass
class SaleValue:
    coins: int = 0
    gems: int = 0


@dataclass
class InventoryLedger:
    """Ownership and cost rules for weapons, armor and relics."""
    resolver: ModifierResolver = field(default_factory=ModifierResolver)

    # ------------------------------------------------------------------
    # Equip
    # ------------------------------------------------------------------

    def equip(self, state: GameState, item_id: str) -> ActionResult:
        item = state.inventory.find(item_id)
        if not item:
            return ActionResult.failure(f"Item {item_id} not found", error_code="NOT_FOUND")

        inventory = state.inventory
        if item.kind == ItemKind.WEAPON:
            inventory = replace(inventory, current_weapon_id=item.item_id)
        elif item.kind == ItemKind.ARMOR:
            inventory = replace(inventory, current_armor_id=item.item_id)
        else:
            inventory = inventory.with_item(replace(item, equipped=True))

        return ActionResult.success_with_state(
            state._copy_with(inventory=inventory),
            changes=[f"Equipped {item.name}"],
        )

    def unequip(self, state: GameState, item_id: str) -> ActionResult:
        item = state.inventory.find(item_id)
        if not item:
            return ActionResult.failure(f"Item {item_id} not found", error_code="NOT_FOUND")

        inventory = state.inventory
        if item.kind == ItemKind.WEAPON:
            if inventory.current_weapon_id == item.item_id:
                inventory = replace(inventory, current_weapon_id=None)
        elif item.kind == ItemKind.ARMOR:
            if inventory.current_armor_id == item.item_id:
                inventory = replace(inventory, current_armor_id=None)
        else:
            inventory = inventory.with_item(replace(item, equipped=False))

        return ActionResult.success_with_state(
            state._copy_with(inventory=inventory),
            changes=[f"Unequipped {item.name}"],
        )

    # ------------------------------------------------------------------
    # Upgrade
    # ------------------------------------------------------------------

    def upgrade_cost(self, state: GameState, item: Item, now: datetime) -> int:
        """Gem cost of the next level, after any upgrade discount."""
        return self.resolver.resolve_int(
            item.upgrade_cost,
            Axis.UPGRADE_COST,
            state.skills.active(now),
            None,
            ModifierContext(now=now),
        )

    def upgrade(self, state: GameState, item_id: str, now: datetime) -> ActionResult:
        item = state.inventory.find(item_id)
        if not item:
            return ActionResult.failure(f"Item {item_id} not found", error_code="NOT_FOUND")

        cost = self.upgrade_cost(state, item, now)
        if state.gems < cost:
            return ActionResult.failure(
                f"Upgrade costs {cost} gems, have {state.gems}",
                error_code="INSUFFICIENT_GEMS",
            )

        upgraded = upgraded_item(item)
        new_state = state._copy_with(
            gems=state.gems - cost,
            inventory=state.inventory.with_item(upgraded),
            statistics=replace(state.statistics, items_upgraded=state.statistics.items_upgraded + 1),
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Upgraded {item.name} to level {upgraded.level} for {cost} gems"],
            value=upgraded,
        )

    def bulk_upgrade(self, state: GameState, item_ids: list[str], now: datetime) -> ActionResult:
        """
        Upgrade every known item once per occurrence of its id.

        Unknown ids are skipped. A repeated id upgrades the already
        upgraded copy at its grown cost. The running total is checked
        before anything is committed, so insufficient gems aborts the
        whole batch.
        """
        inventory = state.inventory
        total = 0
        upgraded = []
        for item_id in item_ids:
            current = inventory.find(item_id)
            if not current:
                continue
            total += self.upgrade_cost(state, current, now)
            new_item = upgraded_item(current)
            inventory = inventory.with_item(new_item)
            upgraded.append(new_item)

        if state.gems < total:
            return ActionResult.failure(
                f"Bulk upgrade costs {total} gems, have {state.gems}",
                error_code="INSUFFICIENT_GEMS",
            )

        new_state = state._copy_with(
            gems=state.gems - total,
            inventory=inventory,
            statistics=replace(
                state.statistics,
                items_upgraded=state.statistics.items_upgraded + len(upgraded),
            ),
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Upgraded {len(upgraded)} items for {total} gems"],
            value=upgraded,
        )

    # ------------------------------------------------------------------
    # Sell / discard
    # ------------------------------------------------------------------

    def sale_value(self, state: GameState, item: Item, now: datetime) -> SaleValue:
        if item.kind == ItemKind.RELIC:
            return SaleValue(gems=math.floor(item.cost * RELIC_SELL_RATIO))
        coins = self.resolver.resolve_int(
            item.sell_price,
            Axis.COINS,
            state.skills.active(now),
            None,
            ModifierContext(now=now),
        )
        return SaleValue(coins=coins)

    def sell(self, state: GameState, item_id: str, now: datetime) -> ActionResult:
        item = state.inventory.find(item_id)
        if not item:
            return ActionResult.failure(f"Item {item_id} not found", error_code="NOT_FOUND")
        if state.inventory.is_equipped(item):
            return ActionResult.failure(f"{item.name} is equipped", error_code="ITEM_EQUIPPED")

        value = self.sale_value(state, item, now)
        new_state = self._credit_sale(state, [item], value)
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Sold {item.name} for {_describe(value)}"],
            value=value,
        )

    def bulk_sell(self, state: GameState, item_ids: list[str], now: datetime) -> ActionResult:
        """Sell every known, unequipped item; equipped and unknown ids are excluded."""
        sold: list[Item] = []
        seen: set[str] = set()
        total = SaleValue()
        for item_id in item_ids:
            if item_id in seen:
                continue
            seen.add(item_id)
            item = state.inventory.find(item_id)
            if not item or state.inventory.is_equipped(item):
                continue
            value = self.sale_value(state, item, now)
            total.coins += value.coins
            total.gems += value.gems
            sold.append(item)

        new_state = self._credit_sale(state, sold, total)
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Sold {len(sold)} items for {_describe(total)}"],
            value=total,
        )

    def discard(self, state: GameState, item_id: str) -> ActionResult:
        item = state.inventory.find(item_id)
        if not item:
            return ActionResult.failure(f"Item {item_id} not found", error_code="NOT_FOUND")
        if state.inventory.is_equipped(item):
            return ActionResult.failure(f"{item.name} is equipped", error_code="ITEM_EQUIPPED")

        return ActionResult.success_with_state(
            state._copy_with(inventory=state.inventory.without({item.item_id})),
            changes=[f"Discarded {item.name}"],
        )

    def _credit_sale(self, state: GameState, items: list[Item], value: SaleValue) -> GameState:
        stats = state.statistics
        return state._copy_with(
            coins=state.coins + value.coins,
            gems=state.gems + value.gems,
            inventory=state.inventory.without({i.item_id for i in items}),
            statistics=replace(
                stats,
                items_sold=stats.items_sold + len(items),
                coins_earned=stats.coins_earned + value.coins,
                gems_earned=stats.gems_earned + value.gems,
            ),
        )


def upgraded_item(item: Item) -> Item:
    """Item one level higher with its flat stat gain and grown cost."""
    atk, defense = item.base_atk, item.base_def
    if item.kind == ItemKind.WEAPON:
        atk += WEAPON_UPGRADE_ATK
    elif item.kind == ItemKind.ARMOR:
        defense += ARMOR_UPGRADE_DEF
    elif item.base_atk > 0:
        atk += RELIC_UPGRADE_ATK
    else:
        defense += RELIC_UPGRADE_DEF

    return replace(
        item,
        level=item.level + 1,
        base_atk=atk,
        base_def=defense,
        upgrade_cost=math.floor(item.upgrade_cost * UPGRADE_COST_GROWTH),
    )


def _describe(value: SaleValue) -> str:
    parts = []
    if value.coins:
        parts.append(f"{value.coins} coins")
    if value.gems:
        parts.append(f"{value.gems} gems")
    return " and ".join(parts) or "nothing"
