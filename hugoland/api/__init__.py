"""
API Module - HTTP interface to the game.

Exposes the state store via a REST API. A client:
1. Reads the full state
2. Sends commands (answer a question, open a chest, equip gear, ...)
3. Receives the committed changes and the new state, or a structured error

The trivia question bank lives in the client; only the judged outcome of
each question reaches the engine.
"""

from .schemas import (
    # Requests
    AnswerRequest,
    ChestRequest,
    SelectSkillRequest,
    ItemIdsRequest,
    WaterGardenRequest,
    # Responses
    ActionResponse,
    GameStateResponse,
    ErrorResponse,
    # Enums
    ErrorCode,
)
from .service import GameService
from .app import create_app

__all__ = [
    # Requests
    "AnswerRequest",
    "ChestRequest",
    "SelectSkillRequest",
    "ItemIdsRequest",
    "WaterGardenRequest",
    # Responses
    "ActionResponse",
    "GameStateResponse",
    "ErrorResponse",
    # Enums
    "ErrorCode",
    # Service
    "GameService",
    "create_app",
]
