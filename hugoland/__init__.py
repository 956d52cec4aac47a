"""
Hugoland - Idle Trivia RPG Engine

A deterministic state-transition core for an idle/trivia role-playing game.
The engine turns player intents into new world snapshots:
- Turn-based combat driven by trivia answers
- Timed buffs and encounter-scoped skills over shared numeric axes
- Reward containers, merchant offers and a rotating relic market
- Offline accrual reconciled against wall-clock time on resume
"""

__version__ = "0.1.0"
