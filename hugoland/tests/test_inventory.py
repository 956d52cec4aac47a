"""
Tests for the inventory ledger.

Tests:
- Equip / unequip for gear and relics
- Upgrades and their costs
- Selling, bulk selling and discarding
"""

import pytest

from ..engine_core.action import Action
from ..engine_core.inventory import InventoryLedger
from ..engine_core.reducer import Reducer
from .conftest import armor, relic, weapon, with_items, with_menu_skill


@pytest.fixture
def ledger():
    return InventoryLedger()


class TestEquip:
    """Tests for equipping gear."""

    def test_equip_weapon(self, ledger, state):
        state = with_items(state, weapon())
        result = ledger.equip(state, "w1")

        assert result.success
        assert result.new_state.inventory.current_weapon_id == "w1"

    def test_equip_replaces_weapon(self, ledger, state):
        state = with_items(state, weapon("w1"), weapon("w2"))
        state = ledger.equip(state, "w1").new_state
        state = ledger.equip(state, "w2").new_state
        assert state.inventory.current_weapon_id == "w2"

    def test_equip_unknown(self, ledger, state):
        result = ledger.equip(state, "missing")

        assert not result.success
        assert result.error_code == "NOT_FOUND"

    def test_relic_equip_round_trip(self, ledger, state):
        state = with_items(state, relic())

        equipped = ledger.equip(state, "r1").new_state
        assert [r.item_id for r in equipped.inventory.equipped_relics] == ["r1"]
        assert equipped.inventory.unequipped_relics == []

        unequipped = ledger.unequip(equipped, "r1").new_state
        assert unequipped.inventory.equipped_relics == []
        assert [r.item_id for r in unequipped.inventory.unequipped_relics] == ["r1"]

    def test_unequip_armor(self, ledger, state):
        state = ledger.equip(with_items(state, armor()), "a1").new_state
        result = ledger.unequip(state, "a1")
        assert result.new_state.inventory.current_armor_id is None

    def test_equipped_gear_raises_stats(self, state, rng, now):
        reducer = Reducer(rng=rng)
        state = with_items(state, weapon(atk=10), armor(defense=6), relic(atk=40))

        for item_id in ("w1", "a1", "r1"):
            state = reducer.apply(state, Action.equip(item_id), now).new_state

        assert state.player.atk == 25 + 10 + 40
        assert state.player.defense == 15 + 6

    def test_worn_weapon_scales_by_durability(self, state, rng, now):
        reducer = Reducer(rng=rng)
        state = with_items(state, weapon(atk=10, durability=50, max_durability=100))

        state = reducer.apply(state, Action.equip("w1"), now).new_state

        assert state.player.atk == 30


class TestUpgrade:
    """Tests for upgrading items."""

    def test_upgrade_weapon(self, ledger, state, now):
        state = with_items(state, weapon(atk=10))
        result = ledger.upgrade(state, "w1", now)

        assert result.success
        item = result.new_state.inventory.find("w1")
        assert item.level == 2
        assert item.base_atk == 20
        assert item.upgrade_cost == 7
        assert result.new_state.gems == 45
        assert result.new_state.statistics.items_upgraded == 1

    def test_upgrade_armor_and_relics(self, ledger, state, now):
        state = with_items(state, armor(defense=6), relic("ra", atk=40), relic("rd", atk=0, defense=20))
        state = state._copy_with(gems=500)
        for item_id in ("a1", "ra", "rd"):
            state = ledger.upgrade(state, item_id, now).new_state

        assert state.inventory.find("a1").base_def == 11
        assert state.inventory.find("ra").base_atk == 62
        assert state.inventory.find("rd").base_def == 35

    def test_upgrade_insufficient_gems(self, ledger, state, now):
        state = with_items(state, weapon())._copy_with(gems=2)
        result = ledger.upgrade(state, "w1", now)

        assert not result.success
        assert result.error_code == "INSUFFICIENT_GEMS"
        assert state.inventory.find("w1").level == 1

    def test_research_accelerator_discount(self, ledger, state, now):
        state = with_menu_skill(with_items(state, weapon(upgrade_cost=10)), "research_accelerator", now, hours=6)
        result = ledger.upgrade(state, "w1", now)
        assert result.new_state.gems == 45

    def test_bulk_upgrade(self, ledger, state, now):
        state = with_items(state, weapon("w1"), weapon("w2"))
        result = ledger.bulk_upgrade(state, ["w1", "w2", "missing"], now)

        assert result.success
        assert result.new_state.gems == 40
        assert result.new_state.inventory.find("w1").level == 2
        assert result.new_state.inventory.find("w2").level == 2

    def test_bulk_upgrade_repeated_id_pays_grown_cost(self, ledger, state, now):
        state = with_items(state, weapon(upgrade_cost=10))._copy_with(gems=100)

        one_by_one = ledger.upgrade(state, "w1", now).new_state
        one_by_one = ledger.upgrade(one_by_one, "w1", now).new_state
        result = ledger.bulk_upgrade(state, ["w1", "w1"], now)

        assert result.success
        assert result.new_state.gems == one_by_one.gems == 75
        assert result.new_state.inventory.find("w1") == one_by_one.inventory.find("w1")
        assert result.new_state.inventory.find("w1").level == 3

    def test_bulk_upgrade_repeated_id_checks_running_total(self, ledger, state, now):
        state = with_items(state, weapon(upgrade_cost=10))._copy_with(gems=20)
        result = ledger.bulk_upgrade(state, ["w1", "w1"], now)

        assert not result.success
        assert result.error_code == "INSUFFICIENT_GEMS"

    def test_bulk_upgrade_is_all_or_nothing(self, ledger, state, now):
        state = with_items(state, weapon("w1"), weapon("w2"))._copy_with(gems=8)
        result = ledger.bulk_upgrade(state, ["w1", "w2"], now)

        assert not result.success
        assert result.error_code == "INSUFFICIENT_GEMS"


class TestSell:
    """Tests for selling and discarding."""

    def test_sell_weapon_for_coins(self, ledger, state, now):
        state = with_items(state, weapon(sell_price=25))
        result = ledger.sell(state, "w1", now)

        assert result.success
        assert result.new_state.coins == 525
        assert result.new_state.inventory.find("w1") is None
        assert result.new_state.statistics.items_sold == 1

    def test_sell_relic_for_gems(self, ledger, state, now):
        state = with_items(state, relic(cost=101))
        result = ledger.sell(state, "r1", now)

        assert result.value.gems == 50
        assert result.value.coins == 0
        assert result.new_state.gems == 100

    def test_sell_equipped_rejected(self, ledger, state, now):
        state = ledger.equip(with_items(state, weapon()), "w1").new_state
        result = ledger.sell(state, "w1", now)

        assert not result.success
        assert result.error_code == "ITEM_EQUIPPED"

    def test_sell_equipped_relic_rejected(self, ledger, state, now):
        state = ledger.equip(with_items(state, relic()), "r1").new_state
        result = ledger.sell(state, "r1", now)
        assert result.error_code == "ITEM_EQUIPPED"

    def test_golden_touch_doubles_sale(self, ledger, state, now):
        state = with_menu_skill(with_items(state, weapon(sell_price=25)), "golden_touch", now, hours=8)
        result = ledger.sell(state, "w1", now)
        assert result.new_state.coins == 550

    def test_bulk_sell_skips_equipped_and_unknown(self, ledger, state, now):
        state = with_items(state, weapon("w1"), weapon("w2"), armor("a1"), relic("r1", cost=100))
        state = ledger.equip(state, "w1").new_state

        result = ledger.bulk_sell(state, ["w1", "w2", "w2", "a1", "r1", "missing"], now)

        assert result.success
        inventory = result.new_state.inventory
        assert inventory.find("w1") is not None
        assert inventory.find("w2") is None
        assert inventory.find("a1") is None
        assert inventory.find("r1") is None
        assert result.value.coins == 20
        assert result.value.gems == 50
        assert result.new_state.statistics.items_sold == 3

    def test_discard(self, ledger, state):
        state = with_items(state, weapon())
        result = ledger.discard(state, "w1")

        assert result.success
        assert result.new_state.inventory.find("w1") is None
        assert result.new_state.coins == state.coins

    def test_discard_equipped_rejected(self, ledger, state):
        state = ledger.equip(with_items(state, armor()), "a1").new_state
        result = ledger.discard(state, "a1")
        assert result.error_code == "ITEM_EQUIPPED"
