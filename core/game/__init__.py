"""Table session and phase management."""

from core.game.events import GameEvent, EventType, EventEmitter
from core.game.state import GameState
from core.game.engine import BlackjackGame, TableState

__all__ = [
    "GameEvent",
    "EventType",
    "EventEmitter",
    "GameState",
    "BlackjackGame",
    "TableState",
]
