"""Core blackjack engine - 100% UI-agnostic."""

from core.cards import Card, Deck, Rank, Suit
from core.hand import Hand, HandType, HandValue, calculate_hand_value
from core.rules import (
    DeckExhaustedError,
    GameOutcome,
    GameResult,
    InsufficientCardsError,
    ShoeError,
)

__all__ = [
    "Card",
    "Deck",
    "Rank",
    "Suit",
    "Hand",
    "HandType",
    "HandValue",
    "calculate_hand_value",
    "GameOutcome",
    "GameResult",
    "ShoeError",
    "InsufficientCardsError",
    "DeckExhaustedError",
]
