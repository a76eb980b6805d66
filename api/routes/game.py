"""Game API endpoints."""

import time
from typing import Annotated, Iterable

from fastapi import APIRouter, HTTPException, Header

from api.schemas import (
    ActionRequest,
    BetRequest,
    CardResponse,
    GameStateResponse,
    HandResponse,
    RoundResultResponse,
)
from api.session import create_session, extract_session_id, get_session, update_session
from config import config
from core.cards import Card
from core.game import BlackjackGame
from core.hand import calculate_hand_value
from core.rules import format_hand_value, outcome_display_name

router = APIRouter()

# Live tables, keyed by session token
_games: dict[str, BlackjackGame] = {}

SESSION_KEY_CREATED_AT = "created_at"
SESSION_KEY_LAST_ACTIVITY = "last_activity"


def _new_game() -> BlackjackGame:
    """Create a table from the configured defaults."""
    game_config = config.game
    return BlackjackGame(
        number_of_decks=game_config.num_decks,
        starting_chips=game_config.starting_chips,
        default_bet=game_config.default_bet,
        reshuffle_threshold=game_config.reshuffle_threshold,
        blackjack_payout=game_config.blackjack_payout,
        bet_amounts=game_config.bet_amounts,
    )


async def _touch(session_id: str) -> None:
    session_data = await get_session(session_id) or {}
    session_data[SESSION_KEY_LAST_ACTIVITY] = int(time.time())
    session_data.setdefault(SESSION_KEY_CREATED_AT, int(time.time()))
    await update_session(session_id, session_data)


async def _prune_expired_games() -> int:
    """Drop tables whose session has expired. Returns how many were dropped."""
    expired = [sid for sid in _games if await get_session(sid) is None]
    for sid in expired:
        del _games[sid]
    return len(expired)


async def _get_game(session_id: str) -> BlackjackGame:
    """Look up the table for a session, 404 if the session is unknown or expired."""
    if extract_session_id(session_id) is None or await get_session(session_id) is None:
        _games.pop(session_id, None)
        raise HTTPException(status_code=404, detail="Session not found")

    game = _games.get(session_id)
    if game is None:
        game = _new_game()
        _games[session_id] = game

    await _touch(session_id)
    return game


def _card_to_response(card: Card) -> CardResponse:
    return CardResponse(rank=card.rank.value, suit=card.suit.value, value=card.value)


def _hand_to_response(cards: Iterable[Card]) -> HandResponse:
    """Convert visible cards to a HandResponse."""
    cards = list(cards)
    hand_value = calculate_hand_value(cards)
    return HandResponse(
        cards=[_card_to_response(c) for c in cards],
        value=hand_value.value,
        type=hand_value.type.value,
        is_bust=hand_value.is_bust,
        is_blackjack=hand_value.is_blackjack,
        display=format_hand_value(hand_value),
    )


def _game_state_response(game: BlackjackGame) -> GameStateResponse:
    """Convert table state to response. The hole card stays hidden during play."""
    result = None
    if game.result is not None:
        result = RoundResultResponse(
            outcome=game.result.outcome.value,
            display=outcome_display_name(game.result.outcome),
            win_amount=float(game.result.win_amount),
        )

    table = game.table
    return GameStateResponse(
        state=game.state.name,
        player_hand=_hand_to_response(table.player_hand),
        dealer_hand=_hand_to_response(game.dealer_cards_visible),
        chips=float(table.chips),
        current_bet=table.current_bet,
        games_played=table.games_played,
        games_won=table.games_won,
        cards_remaining=game.deck.cards_remaining,
        can_hit=game.can_hit,
        can_stand=game.can_stand,
        can_double=game.can_double,
        result=result,
    )


@router.post("/new")
async def new_game(
    session_id: Annotated[str | None, Header(alias="X-Session-ID")] = None,
) -> dict[str, str]:
    """Create a new table, reusing the session when a valid one is supplied."""
    await _prune_expired_games()

    if session_id is None or await get_session(session_id) is None:
        session_id = await create_session()

    _games[session_id] = _new_game()
    await _touch(session_id)
    return {"session_id": session_id}


@router.get("/state")
async def get_state(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> GameStateResponse:
    """Get current table state."""
    game = await _get_game(session_id)
    return _game_state_response(game)


@router.post("/bet")
async def place_bet(
    request: BetRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> GameStateResponse:
    """Set the bet for the next round."""
    game = await _get_game(session_id)

    if not game.set_bet(request.amount):
        raise HTTPException(status_code=400, detail="Invalid bet")

    return _game_state_response(game)


@router.post("/deal")
async def deal(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> GameStateResponse:
    """Deal a new round with the current bet."""
    game = await _get_game(session_id)

    if not game.deal():
        raise HTTPException(status_code=400, detail="Cannot deal now")

    return _game_state_response(game)


@router.post("/action")
async def player_action(
    request: ActionRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> GameStateResponse:
    """Execute a player action."""
    game = await _get_game(session_id)

    actions = {
        "hit": game.hit,
        "stand": game.stand,
        "double": game.double_down,
    }

    if not actions[request.action]():
        raise HTTPException(status_code=400, detail=f"Cannot {request.action} now")

    return _game_state_response(game)


@router.post("/next")
async def next_round(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> GameStateResponse:
    """Clear a finished round and return to betting."""
    game = await _get_game(session_id)

    if not game.new_round():
        raise HTTPException(status_code=400, detail="Round is not finished")

    return _game_state_response(game)
