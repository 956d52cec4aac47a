"""
State Store - Owns the live snapshot.

LIFECYCLE:
1. open(): load bytes from the backend, decode (or start fresh), start a
   new play session and reconcile offline time once
2. dispatch(): every command becomes an Action applied by the reducer;
   a committed result replaces the snapshot and schedules a debounced save
3. A background poll refreshes the relic market once its deadline passes
4. close(): stop the poll and flush any pending save

Single writer: mutations are applied synchronously on the event loop, so
no two ever interleave. Saves and the poll only ever read a complete
snapshot taken at trigger time.
"""

from __future__ import annotations
import asyncio
import logging
import random
from dataclasses import replace

from ..engine_core.action import Action, ActionResult
from ..engine_core.clock import Clock, utc_now
from ..engine_core.reducer import Reducer, initial_state
from ..engine_core.state import GameState
from .codec import decode, encode
from .persistence import PersistenceBackend

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "hugoland-game-state"


class StateStore:
    """
    The single owner of the root GameState.

    Usage:
        store = StateStore(FileBackend("~/.hugoland"))
        await store.open()
        result = store.answer_turn(correct=True, category="Science")
        await store.close()
    """

    def __init__(
        self,
        backend: PersistenceBackend,
        key: str = DEFAULT_STORAGE_KEY,
        reducer: Reducer | None = None,
        clock: Clock = utc_now,
        rng: random.Random | None = None,
        debounce_seconds: float = 1.0,
        poll_seconds: float = 10.0,
    ):
        self.backend = backend
        self.key = key
        self.rng = rng or random.Random()
        self.reducer = reducer or Reducer(rng=self.rng)
        self.clock = clock
        self.debounce_seconds = debounce_seconds
        self.poll_seconds = poll_seconds

        self._state: GameState | None = None
        self._dirty = False
        self._persist_handle: asyncio.TimerHandle | None = None
        self._poll_task: asyncio.Task | None = None
        self._save_tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> GameState:
        if self._state is None:
            raise RuntimeError("StateStore has not been opened")
        return self._state

    @property
    def is_loaded(self) -> bool:
        return self._state is not None

    @property
    def dirty(self) -> bool:
        return self._dirty

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self, poll: bool = True) -> GameState:
        await self.load()
        if poll:
            self.start_polling()
        return self.state

    async def load(self) -> GameState:
        """Load the persisted snapshot and reconcile it against the clock."""
        now = self.clock()
        data = None
        try:
            data = await self.backend.load(self.key)
        except Exception:
            logger.exception("Failed to load state for key %s, starting fresh", self.key)

        if data:
            state = decode(data, self.rng, now)
        else:
            logger.info("No saved state for key %s, starting a new game", self.key)
            state = initial_state(self.rng, now)

        state = self.reducer.idle.start_session(state, now)
        result = self.reducer.apply(state, Action.reconcile(), now)
        if result.success:
            state = result.new_state
            for change in result.state_changes:
                logger.info("Reconciled: %s", change)
        else:
            logger.warning("Reconcile failed: %s", result.error)

        self._state = state
        self._schedule_persist()
        return state

    async def close(self):
        """Stop the market poll and write any pending changes."""
        if self._poll_task:
            self._poll_task.cancel()
            try:
                await self._poll_task
            except asyncio.CancelledError:
                pass
            self._poll_task = None

        if self._persist_handle:
            self._persist_handle.cancel()
            self._persist_handle = None

        if self._save_tasks:
            await asyncio.gather(*self._save_tasks, return_exceptions=True)
        await self.flush()

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def dispatch(self, action: Action) -> ActionResult:
        """Apply an action; a committed result replaces the live snapshot."""
        result = self.reducer.apply(self.state, action, self.clock())
        if result.success and result.new_state is not None:
            self._state = result.new_state
            self._schedule_persist()
        return result

    # Command surface

    def start_combat(self) -> ActionResult:
        return self.dispatch(Action.start_combat())

    def select_adventure_skill(self, skill_id: str) -> ActionResult:
        return self.dispatch(Action.select_adventure_skill(skill_id))

    def skip_adventure_skill(self) -> ActionResult:
        return self.dispatch(Action.skip_adventure_skill())

    def answer_turn(self, correct: bool, category: str | None = None) -> ActionResult:
        return self.dispatch(Action.answer_turn(correct, category))

    def use_skip_card(self, category: str | None = None) -> ActionResult:
        return self.dispatch(Action.use_skip_card(category))

    def open_chest(self, cost: int) -> ActionResult:
        return self.dispatch(Action.open_chest(cost))

    def equip(self, item_id: str) -> ActionResult:
        return self.dispatch(Action.equip(item_id))

    def unequip(self, item_id: str) -> ActionResult:
        return self.dispatch(Action.unequip(item_id))

    def upgrade(self, item_id: str) -> ActionResult:
        return self.dispatch(Action.upgrade(item_id))

    def sell(self, item_id: str) -> ActionResult:
        return self.dispatch(Action.sell(item_id))

    def discard(self, item_id: str) -> ActionResult:
        return self.dispatch(Action.discard(item_id))

    def claim_idle_rewards(self) -> ActionResult:
        return self.dispatch(Action.claim_idle_rewards())

    def roll_menu_skill(self) -> ActionResult:
        return self.dispatch(Action.roll_menu_skill())

    def plant_garden(self) -> ActionResult:
        return self.dispatch(Action.plant_garden())

    def water_garden(self, hours: float) -> ActionResult:
        return self.dispatch(Action.water_garden(hours))

    def spend_merchant_fragments(self) -> ActionResult:
        return self.dispatch(Action.spend_fragments())

    def select_merchant_reward(self, reward_id: str) -> ActionResult:
        return self.dispatch(Action.select_merchant_reward(reward_id))

    def claim_daily_reward(self) -> ActionResult:
        return self.dispatch(Action.claim_daily_reward())

    def upgrade_skill(self, skill_id: str) -> ActionResult:
        return self.dispatch(Action.upgrade_skill(skill_id))

    def prestige(self) -> ActionResult:
        return self.dispatch(Action.prestige())

    def reset_game(self) -> ActionResult:
        return self.dispatch(Action.reset_game())

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _schedule_persist(self):
        """Mark dirty and (re)arm the debounce timer on the running loop."""
        self._dirty = True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return

        if self._persist_handle:
            self._persist_handle.cancel()
        self._persist_handle = loop.call_later(self.debounce_seconds, self._fire_persist)

    def _fire_persist(self):
        self._persist_handle = None
        task = asyncio.get_running_loop().create_task(self.flush())
        self._save_tasks.add(task)
        task.add_done_callback(self._save_tasks.discard)

    async def flush(self):
        """Write the current snapshot if anything changed since the last write."""
        if not self._dirty or self._state is None:
            return

        snapshot = self._state
        self._dirty = False
        now = self.clock()
        data = encode(snapshot._copy_with(offline=replace(snapshot.offline, last_save_time=now)))
        try:
            await self.backend.save(self.key, data)
        except Exception:
            # The in-memory snapshot stays authoritative
            logger.exception("Failed to persist state for key %s", self.key)
            self._dirty = True

    # ------------------------------------------------------------------
    # Market poll
    # ------------------------------------------------------------------

    def start_polling(self):
        if self._poll_task is None:
            self._poll_task = asyncio.get_running_loop().create_task(self._poll_market())

    async def _poll_market(self):
        while True:
            await asyncio.sleep(self.poll_seconds)
            self.poll_once()

    def poll_once(self) -> bool:
        """Refresh the market if its deadline has passed. Returns True on refresh."""
        if self._state is None or not self._state.market.is_due(self.clock()):
            return False
        return self.dispatch(Action.refresh_market()).success
