"""
Idle Accrual Engine - Reconciles elapsed wall-clock time.

Every entry point takes ``now`` explicitly; nothing here reads the clock.
Offline earnings are staged on ``state.offline`` and only move into the
live counters on an explicit claim.
"""

from __future__ import annotations
import logging
import math
import random
from dataclasses import dataclass, field, replace
from datetime import datetime

from .action import ActionResult
from .items import generate_market_items
from .modifier_resolver import ModifierResolver
from .skills import Axis, ModifierContext
from .state import MARKET_REFRESH_INTERVAL, GameState, Garden

logger = logging.getLogger(__name__)

MIN_IDLE_SECONDS = 60
COINS_PER_SECOND_PER_LEVEL = 0.1
GEMS_PER_SECOND_PER_LEVEL = 0.01

GARDEN_CM_PER_HOUR = 0.5
GARDEN_BONUS_PER_CM = 5
GARDEN_WATER_HOURS_ON_PLANT = 24.0
WATER_COST_HOURS = 24


@dataclass
class IdleReport:
    """Summary of one reconciliation."""
    elapsed_seconds: int = 0
    staged_coins: int = 0
    staged_gems: int = 0
    garden_growth_cm: float = 0.0
    market_refreshed: bool = False
    menu_skill_expired: bool = False


@dataclass
class ClaimedRewards:
    coins: int = 0
    gems: int = 0


@dataclass
class IdleAccrualEngine:
    resolver: ModifierResolver = field(default_factory=ModifierResolver)

    def elapsed_seconds(self, state: GameState, now: datetime) -> int:
        """Seconds since the last save, capped at the offline limit."""
        offline = state.offline
        elapsed = max(0.0, (now - offline.last_save_time).total_seconds())
        return int(min(elapsed, offline.max_offline_hours * 3600))

    def reconcile(self, state: GameState, rng: random.Random, now: datetime) -> ActionResult:
        """Apply offline earnings, garden growth, market refresh and buff expiry."""
        report = IdleReport()
        changes: list[str] = []

        elapsed = self.elapsed_seconds(state, now)
        if elapsed >= MIN_IDLE_SECONDS:
            report.elapsed_seconds = elapsed
            state = self._stage_earnings(state, elapsed, now, report)
            state = self._grow_garden(state, elapsed / 3600, now, report)
            changes.append(
                f"Offline for {elapsed}s: {report.staged_coins} coins and "
                f"{report.staged_gems} gems ready to claim"
            )

        if state.market.is_due(now):
            state = self.refresh_market(state, rng, now)
            report.market_refreshed = True
            changes.append("Market refreshed")

        skill = state.skills.active_menu_skill
        if skill and not skill.is_active(now):
            state = state._copy_with(skills=replace(state.skills, active_menu_skill=None))
            report.menu_skill_expired = True
            changes.append(f"{skill.skill_type} expired")

        return ActionResult.success_with_state(state, changes=changes, value=report)

    def _stage_earnings(
        self,
        state: GameState,
        elapsed: int,
        now: datetime,
        report: IdleReport,
    ) -> GameState:
        level = state.research.level
        coins = math.floor(elapsed * COINS_PER_SECOND_PER_LEVEL * level)
        gems = math.floor(elapsed * GEMS_PER_SECOND_PER_LEVEL * level)
        report.staged_coins = coins
        report.staged_gems = gems

        offline = state.offline
        return state._copy_with(
            offline=replace(
                offline,
                offline_coins=offline.offline_coins + coins,
                offline_gems=offline.offline_gems + gems,
                offline_seconds=offline.offline_seconds + elapsed,
                # Accrued up to now; a repeated reconcile must not count it again
                last_save_time=now,
            )
        )

    def _grow_garden(
        self,
        state: GameState,
        hours: float,
        now: datetime,
        report: IdleReport,
    ) -> GameState:
        garden = state.garden
        if not garden.is_planted or garden.water_hours_remaining <= 0:
            return state

        # Growth stops once the water runs out mid-interval
        watered_hours = min(hours, garden.water_hours_remaining)
        rate = self.resolver.resolve(
            GARDEN_CM_PER_HOUR,
            Axis.GARDEN_GROWTH,
            state.skills.active(now),
            None,
            ModifierContext(now=now),
        )
        growth = min(watered_hours * rate, garden.max_growth_cm - garden.growth_cm)
        growth = max(0.0, growth)
        growth_cm = garden.growth_cm + growth
        report.garden_growth_cm = growth

        return state._copy_with(
            garden=replace(
                garden,
                growth_cm=growth_cm,
                water_hours_remaining=max(0.0, garden.water_hours_remaining - hours),
                total_growth_bonus=growth_cm * GARDEN_BONUS_PER_CM,
            )
        )

    def refresh_market(self, state: GameState, rng: random.Random, now: datetime) -> GameState:
        """Replace the market pool wholesale and schedule the next refresh."""
        items = generate_market_items(rng)
        logger.info("Market refreshed with %d relics", len(items))
        return state._copy_with(
            market=replace(
                state.market,
                items=items,
                last_refresh=now,
                next_refresh=now + MARKET_REFRESH_INTERVAL,
            )
        )

    def refresh_market_if_due(self, state: GameState, rng: random.Random, now: datetime) -> ActionResult:
        if not state.market.is_due(now):
            return ActionResult.success_with_state(state, value=False)
        return ActionResult.success_with_state(
            self.refresh_market(state, rng, now),
            changes=["Market refreshed"],
            value=True,
        )

    def claim(self, state: GameState) -> ActionResult:
        """Move staged earnings into the live counters; a second claim yields zero."""
        offline = state.offline
        claimed = ClaimedRewards(coins=offline.offline_coins, gems=offline.offline_gems)
        stats = state.statistics
        new_state = state._copy_with(
            coins=state.coins + claimed.coins,
            gems=state.gems + claimed.gems,
            offline=replace(offline, offline_coins=0, offline_gems=0, offline_seconds=0),
            statistics=replace(
                stats,
                coins_earned=stats.coins_earned + claimed.coins,
                gems_earned=stats.gems_earned + claimed.gems,
            ),
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Claimed {claimed.coins} coins and {claimed.gems} gems"],
            value=claimed,
        )

    def start_session(self, state: GameState, now: datetime) -> GameState:
        """A new play session restores the single free revival."""
        return state._copy_with(
            has_used_revival=False,
            skills=replace(state.skills, session_start_time=now),
        )

    # ------------------------------------------------------------------
    # Garden
    # ------------------------------------------------------------------

    def plant_garden(self, state: GameState, now: datetime) -> ActionResult:
        garden = state.garden
        if garden.is_planted:
            return ActionResult.failure("Garden already planted", error_code="ALREADY_PLANTED")
        if state.coins < garden.seed_cost:
            return ActionResult.failure(
                f"Seeds cost {garden.seed_cost} coins, have {state.coins}",
                error_code="INSUFFICIENT_COINS",
            )

        planted = Garden(
            is_planted=True,
            planted_at=now,
            last_watered=now,
            water_hours_remaining=GARDEN_WATER_HOURS_ON_PLANT,
            seed_cost=garden.seed_cost,
            water_cost=garden.water_cost,
            max_growth_cm=garden.max_growth_cm,
        )
        return ActionResult.success_with_state(
            state._copy_with(coins=state.coins - garden.seed_cost, garden=planted),
            changes=["Planted the garden"],
        )

    def water_garden(self, state: GameState, hours: float, now: datetime) -> ActionResult:
        garden = state.garden
        if not garden.is_planted:
            return ActionResult.failure("Garden is not planted", error_code="NOT_PLANTED")
        if hours is None or hours <= 0:
            return ActionResult.failure("Hours must be positive", error_code="INVALID_AMOUNT")

        cost = math.floor(hours / WATER_COST_HOURS * garden.water_cost)
        if state.coins < cost:
            return ActionResult.failure(
                f"Water costs {cost} coins, have {state.coins}",
                error_code="INSUFFICIENT_COINS",
            )

        return ActionResult.success_with_state(
            state._copy_with(
                coins=state.coins - cost,
                garden=replace(
                    garden,
                    water_hours_remaining=garden.water_hours_remaining + hours,
                    last_watered=now,
                ),
            ),
            changes=[f"Watered the garden for {hours:g} hours ({cost} coins)"],
        )
