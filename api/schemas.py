"""Pydantic schemas for API requests and responses."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class BetRequest(BaseModel):
    """Request to set the bet for the next round."""

    amount: int = Field(..., ge=1, description="Bet amount")


class ActionRequest(BaseModel):
    """Request for player action."""

    action: Literal["hit", "stand", "double"]


class CardResponse(BaseModel):
    """Card representation."""

    model_config = ConfigDict(from_attributes=True)

    rank: str
    suit: str
    value: int


class HandResponse(BaseModel):
    """Visible cards of a hand and their value."""

    cards: list[CardResponse]
    value: int
    type: Literal["soft", "hard"]
    is_bust: bool
    is_blackjack: bool
    display: str


class RoundResultResponse(BaseModel):
    """Settled round."""

    outcome: str
    display: str
    win_amount: float


class GameStateResponse(BaseModel):
    """Current table state."""

    state: str
    player_hand: HandResponse
    dealer_hand: HandResponse
    chips: float
    current_bet: int
    games_played: int
    games_won: int
    cards_remaining: int
    can_hit: bool
    can_stand: bool
    can_double: bool
    result: RoundResultResponse | None = None
