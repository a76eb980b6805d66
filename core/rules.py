"""Blackjack rules: dealer policy, action legality, outcomes and payouts."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from random import Random
from typing import Iterable

from core.cards import Card, Deck
from core.hand import BLACKJACK_TARGET, HandType, HandValue, calculate_hand_value

DEALER_STAND_VALUE = 17
BLACKJACK_PAYOUT = Decimal("1.5")  # 3:2
RESHUFFLE_THRESHOLD = 0.25


class ShoeError(RuntimeError):
    """The shoe could not supply a card the rules require."""


class InsufficientCardsError(ShoeError):
    """Fewer than four cards were left for the initial deal."""


class DeckExhaustedError(ShoeError):
    """The dealer had to hit but the deck was empty."""


class GameOutcome(Enum):
    """How a round ended, from the player's point of view."""

    PLAYER_WIN = "playerWin"
    DEALER_WIN = "dealerWin"
    PUSH = "push"
    PLAYER_BLACKJACK = "playerBlackjack"
    DEALER_BLACKJACK = "dealerBlackjack"
    PLAYER_BUST = "playerBust"
    DEALER_BUST = "dealerBust"


_OUTCOME_NAMES = {
    GameOutcome.PLAYER_WIN: "Player Wins!",
    GameOutcome.DEALER_WIN: "Dealer Wins",
    GameOutcome.PUSH: "Push",
    GameOutcome.PLAYER_BLACKJACK: "Player Blackjack!",
    GameOutcome.DEALER_BLACKJACK: "Dealer Blackjack",
    GameOutcome.PLAYER_BUST: "Player Bust",
    GameOutcome.DEALER_BUST: "Dealer Bust - Player Wins!",
}

_PLAYER_WINS = frozenset(
    {GameOutcome.PLAYER_WIN, GameOutcome.PLAYER_BLACKJACK, GameOutcome.DEALER_BUST}
)


@dataclass(frozen=True)
class GameResult:
    """Settled outcome of a round."""

    outcome: GameOutcome
    player_value: HandValue
    dealer_value: HandValue
    win_amount: Decimal = Decimal("0")


def should_dealer_hit(dealer_cards: Iterable[Card]) -> bool:
    """Dealer hits below 17 and on soft 17."""
    hand_value = calculate_hand_value(dealer_cards)
    if hand_value.value < DEALER_STAND_VALUE:
        return True
    return hand_value.value == DEALER_STAND_VALUE and hand_value.type is HandType.SOFT


def can_double_down(cards: Iterable[Card]) -> bool:
    """
    Check whether a hand may double down.

    Only the card count is checked; whether the player can afford the
    extra bet is up to the caller.
    """
    return len(list(cards)) == 2


def can_player_hit(cards: Iterable[Card]) -> bool:
    """A player may hit while under 21 (a natural is already 21)."""
    hand_value = calculate_hand_value(cards)
    return not hand_value.is_bust and hand_value.value < BLACKJACK_TARGET


def determine_game_result(
    player_cards: Iterable[Card],
    dealer_cards: Iterable[Card],
    bet: int | Decimal = 0,
    blackjack_payout: Decimal | float = BLACKJACK_PAYOUT,
) -> GameResult:
    """
    Settle a finished round.

    Checked in order, first match wins: player bust, dealer bust, both
    blackjack, player blackjack, dealer blackjack, then plain totals.
    A blackjack pays 3:2 exactly, so odd bets yield half chips.
    """
    player_value = calculate_hand_value(player_cards)
    dealer_value = calculate_hand_value(dealer_cards)
    stake = Decimal(str(bet))
    payout = Decimal(str(blackjack_payout))

    if player_value.is_bust:
        outcome, win_amount = GameOutcome.PLAYER_BUST, -stake
    elif dealer_value.is_bust:
        outcome, win_amount = GameOutcome.DEALER_BUST, stake
    elif player_value.is_blackjack and dealer_value.is_blackjack:
        outcome, win_amount = GameOutcome.PUSH, Decimal("0")
    elif player_value.is_blackjack:
        outcome, win_amount = GameOutcome.PLAYER_BLACKJACK, stake * payout
    elif dealer_value.is_blackjack:
        outcome, win_amount = GameOutcome.DEALER_BLACKJACK, -stake
    elif player_value.value > dealer_value.value:
        outcome, win_amount = GameOutcome.PLAYER_WIN, stake
    elif dealer_value.value > player_value.value:
        outcome, win_amount = GameOutcome.DEALER_WIN, -stake
    else:
        outcome, win_amount = GameOutcome.PUSH, Decimal("0")

    return GameResult(
        outcome=outcome,
        player_value=player_value,
        dealer_value=dealer_value,
        win_amount=win_amount,
    )


def is_player_win(outcome: GameOutcome) -> bool:
    """Check if an outcome counts as a win for the player."""
    return outcome in _PLAYER_WINS


def initialize_game(
    number_of_decks: int = Deck.DEFAULT_NUM_DECKS,
    rng: Random | None = None,
) -> Deck:
    """Build and shuffle a fresh shoe."""
    deck = Deck(num_decks=number_of_decks, rng=rng)
    deck.shuffle()
    return deck


def deal_initial_cards(deck: Deck) -> tuple[list[Card], list[Card]]:
    """
    Deal the opening hands: player, dealer, player, dealer.

    Returns:
        (player_cards, dealer_cards), two cards each

    Raises:
        InsufficientCardsError: if the deck runs out before four cards are dealt
    """
    player_cards: list[Card] = []
    dealer_cards: list[Card] = []

    for _ in range(2):
        player_card = deck.deal_card()
        dealer_card = deck.deal_card()
        if player_card is None or dealer_card is None:
            raise InsufficientCardsError("Not enough cards in deck for the initial deal")
        player_cards.append(player_card)
        dealer_cards.append(dealer_card)

    return player_cards, dealer_cards


def play_dealer_hand(deck: Deck, dealer_cards: Iterable[Card]) -> list[Card]:
    """
    Play out the dealer's hand and return it as a new list.

    Raises:
        DeckExhaustedError: if the dealer must hit and no card is left
    """
    final_hand = list(dealer_cards)

    while should_dealer_hit(final_hand):
        card = deck.deal_card()
        if card is None:
            raise DeckExhaustedError("Deck ran out of cards during dealer play")
        final_hand.append(card)

    return final_hand


def needs_reshuffle(deck: Deck, threshold: float = RESHUFFLE_THRESHOLD) -> bool:
    """Check if less than ``threshold`` of the shoe remains."""
    return deck.cards_remaining / deck.total_cards < threshold


def format_hand_value(hand_value: HandValue) -> str:
    """Format a hand value for display, e.g. 'Soft 17' or 'Bust (24)'."""
    if hand_value.is_blackjack:
        return "Blackjack!"
    if hand_value.is_bust:
        return f"Bust ({hand_value.value})"
    if hand_value.is_soft and hand_value.value != BLACKJACK_TARGET:
        return f"Soft {hand_value.value}"
    return str(hand_value.value)


def outcome_display_name(outcome: GameOutcome) -> str:
    """Return the display label for an outcome."""
    return _OUTCOME_NAMES[outcome]
