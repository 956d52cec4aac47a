"""
Snapshot codec - GameState <-> JSON bytes.

Decoding validates each top-level section of the snapshot on its own.
A malformed section is reinitialised from a fresh state while every other
section is kept, so a single corrupt field never costs the whole save.
Timestamps are reconstructed as timezone-aware datetimes, never left as
text.
"""

from __future__ import annotations
import json
import logging
import random
import typing
from dataclasses import fields, replace
from datetime import datetime
from typing import Any

from pydantic import TypeAdapter, ValidationError

from ..engine_core.reducer import initial_state
from ..engine_core.state import GameState

logger = logging.getLogger(__name__)

_STATE_ADAPTER = TypeAdapter(GameState)
_SECTION_HINTS = typing.get_type_hints(GameState, include_extras=True)
_SECTION_ADAPTERS = {f.name: TypeAdapter(_SECTION_HINTS[f.name]) for f in fields(GameState)}

_NON_NEGATIVE_COUNTERS = ("coins", "gems", "shiny_gems")


class StateIntegrityError(Exception):
    """A persisted section does not have the expected shape."""

    def __init__(self, section: str, detail: str):
        super().__init__(f"Section '{section}' is malformed: {detail}")
        self.section = section
        self.detail = detail


def encode(state: GameState) -> bytes:
    """Serialize a snapshot to JSON bytes."""
    payload = _STATE_ADAPTER.dump_python(state, mode="json")
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


def decode(data: bytes, rng: random.Random, now: datetime) -> GameState:
    """
    Rebuild a snapshot from bytes.

    Undecodable bytes yield a fresh state; malformed or missing sections are
    replaced individually by their fresh counterparts.
    """
    fresh = initial_state(rng, now)
    try:
        raw = json.loads(data)
    except (UnicodeDecodeError, ValueError) as e:
        logger.warning("Persisted state is not valid JSON, starting fresh: %s", e)
        return fresh
    if not isinstance(raw, dict):
        logger.warning("Persisted state is not an object, starting fresh")
        return fresh

    values: dict[str, Any] = {}
    for f in fields(GameState):
        if f.name not in raw:
            logger.warning("Persisted state is missing '%s', reinitialising it", f.name)
            values[f.name] = getattr(fresh, f.name)
            continue
        try:
            values[f.name] = decode_section(f.name, raw[f.name])
        except StateIntegrityError as e:
            logger.warning("%s; reinitialising it", e)
            values[f.name] = getattr(fresh, f.name)

    return repair(GameState(**values))


def decode_section(name: str, value: Any) -> Any:
    """Validate one top-level section, raising StateIntegrityError on bad shape."""
    try:
        return _SECTION_ADAPTERS[name].validate_python(value)
    except ValidationError as e:
        raise StateIntegrityError(name, f"{e.error_count()} validation errors") from e


def repair(state: GameState) -> GameState:
    """Restore invariants that per-section validation cannot see."""
    updates: dict[str, Any] = {}
    for name in _NON_NEGATIVE_COUNTERS:
        if getattr(state, name) < 0:
            logger.warning("Persisted %s was negative, clamping to 0", name)
            updates[name] = 0

    inventory = state.inventory
    if inventory.current_weapon_id and inventory.current_weapon is None:
        logger.warning("Equipped weapon %s is not owned, unequipping", inventory.current_weapon_id)
        inventory = replace(inventory, current_weapon_id=None)
    if inventory.current_armor_id and inventory.current_armor is None:
        logger.warning("Equipped armor %s is not owned, unequipping", inventory.current_armor_id)
        inventory = replace(inventory, current_armor_id=None)
    if inventory is not state.inventory:
        updates["inventory"] = inventory

    player = state.player
    if not 0 <= player.hp <= player.max_hp:
        updates["player"] = replace(player, hp=max(0, min(player.hp, player.max_hp)))

    return state._copy_with(**updates) if updates else state
