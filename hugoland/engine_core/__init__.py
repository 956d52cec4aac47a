"""
Engine Core - Deterministic game state transitions.

The engine is the runtime that:
1. Holds the GameState data model
2. Resolves skill modifiers over named axes
3. Runs combat, economy, inventory, idle and progression rules as pure engines
4. Applies actions via the reducer
"""

from .state import GameState, PlayerStats, Item, ItemKind, Rarity, CombatPhase
from .action import Action, ActionType, ActionPayload, ActionResult
from .skills import Axis, ModifierContext, ADVENTURE_SKILLS, MENU_SKILLS
from .modifier_resolver import ModifierResolver
from .inventory import InventoryLedger
from .economy import EconomyEngine
from .combat import CombatEngine, TurnOutcome
from .idle import IdleAccrualEngine
from .progression import ProgressionEngine
from .reducer import Reducer, initial_state

__all__ = [
    "GameState",
    "PlayerStats",
    "Item",
    "ItemKind",
    "Rarity",
    "CombatPhase",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "Axis",
    "ModifierContext",
    "ADVENTURE_SKILLS",
    "MENU_SKILLS",
    "ModifierResolver",
    "InventoryLedger",
    "EconomyEngine",
    "CombatEngine",
    "TurnOutcome",
    "IdleAccrualEngine",
    "ProgressionEngine",
    "Reducer",
    "initial_state",
]
