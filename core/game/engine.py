"""Single-player blackjack table driven by a phase state machine."""

from dataclasses import dataclass, field
from decimal import Decimal
from random import Random
from typing import Callable, Sequence

from transitions import Machine

from core.cards import Card, Deck
from core.hand import BLACKJACK_TARGET, Hand, HandValue
from core.rules import (
    BLACKJACK_PAYOUT,
    RESHUFFLE_THRESHOLD,
    GameResult,
    ShoeError,
    can_double_down,
    can_player_hit,
    deal_initial_cards,
    determine_game_result,
    initialize_game,
    is_player_win,
    needs_reshuffle as shoe_needs_reshuffle,
    play_dealer_hand,
)
from core.game.events import EventEmitter, EventType, GameEvent
from core.game.state import GameState

STANDARD_BET_AMOUNTS = (5, 10, 25, 50, 100, 500)


@dataclass
class TableState:
    """Everything a round needs beyond the shoe: chips, bets, hands, statistics."""

    chips: Decimal = Decimal("1000")
    current_bet: int = 10
    original_bet: int = 10
    games_played: int = 0
    games_won: int = 0
    player_hand: Hand = field(default_factory=Hand)
    dealer_hand: Hand = field(default_factory=Hand)
    last_result: GameResult | None = None

    def clear_hands(self) -> None:
        """Reset both hands for a new round."""
        self.player_hand.clear()
        self.dealer_hand.clear()


class BlackjackGame:
    """
    Blackjack table session.

    Owns the shoe and the table state, and walks one round at a time
    through its phases. Every rule decision is delegated to core.rules;
    nothing here waits or schedules. Callers read the phase and events
    and decide when to call the next action.
    """

    STATES = [s.value for s in GameState]

    TRANSITIONS = [
        {"trigger": "start_deal", "source": "betting", "dest": "dealing"},
        {"trigger": "abort_deal", "source": "dealing", "dest": "betting"},
        {"trigger": "begin_player_turn", "source": "dealing", "dest": "player_turn"},
        {
            "trigger": "deal_natural",
            "source": "dealing",
            "dest": "finished",
            "after": "_settle_round",
        },
        {"trigger": "begin_dealer_turn", "source": "player_turn", "dest": "dealer_turn"},
        {
            "trigger": "player_busted",
            "source": "player_turn",
            "dest": "finished",
            "after": "_settle_round",
        },
        {
            "trigger": "dealer_finished",
            "source": "dealer_turn",
            "dest": "finished",
            "after": "_settle_round",
        },
        # Void round: no settlement, the bet stays with the player
        {"trigger": "abandon_round", "source": "dealer_turn", "dest": "finished"},
        {"trigger": "reset_table", "source": "finished", "dest": "betting"},
    ]

    def __init__(
        self,
        number_of_decks: int = Deck.DEFAULT_NUM_DECKS,
        starting_chips: int | Decimal = 1000,
        default_bet: int = 10,
        reshuffle_threshold: float = RESHUFFLE_THRESHOLD,
        blackjack_payout: Decimal | float = BLACKJACK_PAYOUT,
        bet_amounts: Sequence[int] = STANDARD_BET_AMOUNTS,
        rng: Random | None = None,
    ) -> None:
        """
        Initialize a new table.

        Args:
            number_of_decks: Decks in the shoe
            starting_chips: Chips the player sits down with
            default_bet: Bet in place before the first round
            reshuffle_threshold: Replace the shoe when less than this fraction remains
            blackjack_payout: Multiplier paid on a player natural
            bet_amounts: Chip denominations used when lowering an unaffordable bet
            rng: Random number generator for reproducible shoes
        """
        self.number_of_decks = number_of_decks
        self.reshuffle_threshold = reshuffle_threshold
        self.blackjack_payout = Decimal(str(blackjack_payout))
        self.bet_amounts = tuple(sorted(bet_amounts))
        self._rng = rng

        self.deck = initialize_game(number_of_decks, rng=rng)
        self.table = TableState(
            chips=Decimal(str(starting_chips)),
            current_bet=default_bet,
            original_bet=default_bet,
        )
        self.events = EventEmitter()

        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial=GameState.BETTING.value,
            auto_transitions=False,
            model_attribute="_machine_state",
        )

    @property
    def state(self) -> GameState:
        """Get the current phase as enum."""
        return GameState(self._machine_state)  # type: ignore[attr-defined]

    def subscribe(
        self,
        handler: Callable[[GameEvent], None],
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to table events."""
        self.events.subscribe(handler, event_type)

    def _reject(self, message: str) -> bool:
        self.events.emit_new(EventType.INVALID_ACTION, message=message, state=self.state.name)
        return False

    # Betting

    def set_bet(self, amount: int) -> bool:
        """
        Choose the bet for the next round.

        Args:
            amount: Bet amount

        Returns:
            True if the bet was accepted
        """
        if self.state != GameState.BETTING:
            return self._reject("Cannot change bet in current state")

        if amount < 1:
            return self._reject("Bet must be positive")

        if Decimal(str(amount)) > self.table.chips:
            self.events.emit_new(
                EventType.INSUFFICIENT_FUNDS,
                required=amount,
                available=float(self.table.chips),
            )
            return False

        self.table.current_bet = amount
        self.table.original_bet = amount
        self.events.emit_new(EventType.BET_PLACED, amount=amount)
        return True

    def adjust_bet_if_needed(self) -> int:
        """Lower the bet to the largest affordable denomination, or the smallest one."""
        if Decimal(str(self.table.current_bet)) <= self.table.chips:
            return self.table.current_bet

        affordable = [a for a in self.bet_amounts if Decimal(a) <= self.table.chips]
        new_bet = max(affordable) if affordable else self.bet_amounts[0]

        self.table.current_bet = new_bet
        self.table.original_bet = new_bet
        self.events.emit_new(EventType.BET_ADJUSTED, amount=new_bet)
        return new_bet

    # Dealing

    def deal(self) -> bool:
        """
        Start a round with the current bet.

        Replaces the shoe first when it has run low. A natural on either
        side ends the round immediately.

        Raises:
            InsufficientCardsError: if the shoe cannot supply four cards.
                The table goes back to BETTING.
        """
        if self.state != GameState.BETTING:
            return self._reject("Cannot deal in current state")

        if Decimal(str(self.table.current_bet)) > self.table.chips:
            self.events.emit_new(
                EventType.INSUFFICIENT_FUNDS,
                required=self.table.current_bet,
                available=float(self.table.chips),
            )
            return False

        self.table.original_bet = self.table.current_bet

        if self.needs_reshuffle:
            self.deck = initialize_game(self.number_of_decks, rng=self._rng)
            self.events.emit_new(EventType.SHOE_SHUFFLED, cards=self.deck.total_cards)

        self.table.clear_hands()
        self.table.last_result = None
        self.start_deal()

        try:
            player_cards, dealer_cards = deal_initial_cards(self.deck)
        except ShoeError:
            self.events.emit_new(EventType.DECK_EXHAUSTED, action="deal")
            self.abort_deal()
            raise

        for player_card, dealer_card in zip(player_cards, dealer_cards):
            self._take_card(self.table.player_hand, player_card)
            self._take_card(self.table.dealer_hand, dealer_card)

        self.events.emit_new(EventType.ROUND_STARTED, bet=self.table.current_bet)

        if self.table.player_hand.is_blackjack or self.table.dealer_hand.is_blackjack:
            self.deal_natural()
        else:
            self.begin_player_turn()
        return True

    def _take_card(self, hand: Hand, card: Card) -> None:
        """Put a dealt card into a hand and announce it. The dealer's hole card stays hidden."""
        hand.add_card(card)
        is_dealer = hand is self.table.dealer_hand
        hidden = is_dealer and len(hand) == 2 and self.state == GameState.DEALING
        self.events.emit_new(
            EventType.CARD_DEALT,
            card="??" if hidden else str(card),
            hand="dealer" if is_dealer else "player",
            hand_value=None if hidden else hand.value,
        )

    # Player actions

    def hit(self) -> bool:
        """Player takes another card. Reaching 21 stands automatically."""
        if self.state != GameState.PLAYER_TURN:
            return self._reject("Cannot hit in current state")

        hand = self.table.player_hand
        if not can_player_hit(hand):
            return self._reject("Cannot hit on 21 or more")

        card = self.deck.deal_card()
        if card is None:
            self.events.emit_new(EventType.DECK_EXHAUSTED, action="hit")
            return False

        self._take_card(hand, card)
        hand_value = hand.hand_value
        self.events.emit_new(EventType.PLAYER_HIT, hand_value=hand_value.value)

        if hand_value.is_bust:
            self.events.emit_new(EventType.PLAYER_BUSTS, hand_value=hand_value.value)
            self.player_busted()
        elif hand_value.value == BLACKJACK_TARGET:
            self._play_dealer()
        return True

    def stand(self) -> bool:
        """Player keeps the current hand and the dealer plays."""
        if self.state != GameState.PLAYER_TURN:
            return self._reject("Cannot stand in current state")

        self.events.emit_new(EventType.PLAYER_STAND, hand_value=self.table.player_hand.value)
        self._play_dealer()
        return True

    def double_down(self) -> bool:
        """Player doubles the bet, takes exactly one card and stands."""
        if self.state != GameState.PLAYER_TURN:
            return self._reject("Cannot double in current state")

        hand = self.table.player_hand
        if not can_double_down(hand):
            return self._reject("Can only double on the first two cards")

        doubled = self.table.original_bet * 2
        if Decimal(str(doubled)) > self.table.chips:
            self.events.emit_new(
                EventType.INSUFFICIENT_FUNDS,
                required=doubled,
                available=float(self.table.chips),
            )
            return False

        card = self.deck.deal_card()
        if card is None:
            self.events.emit_new(EventType.DECK_EXHAUSTED, action="double")
            return False

        self.table.current_bet = doubled
        self._take_card(hand, card)
        hand_value = hand.hand_value
        self.events.emit_new(
            EventType.PLAYER_DOUBLE,
            hand_value=hand_value.value,
            new_bet=doubled,
        )

        if hand_value.is_bust:
            self.events.emit_new(EventType.PLAYER_BUSTS, hand_value=hand_value.value)
            self.player_busted()
        else:
            self._play_dealer()
        return True

    # Dealer

    def _play_dealer(self) -> None:
        """
        Reveal the hole card and draw to the house rule.

        Raises:
            DeckExhaustedError: if the dealer must hit and the shoe is empty.
                The round is left FINISHED without a result.
        """
        self.begin_dealer_turn()
        dealer_hand = self.table.dealer_hand

        self.events.emit_new(
            EventType.DEALER_REVEALS,
            card=str(dealer_hand.cards[1]),
            hand_value=dealer_hand.value,
        )

        try:
            final_cards = play_dealer_hand(self.deck, dealer_hand.cards)
        except ShoeError:
            self.events.emit_new(EventType.DECK_EXHAUSTED, action="dealer")
            self.abandon_round()
            raise

        for card in final_cards[len(dealer_hand):]:
            self._take_card(dealer_hand, card)
            self.events.emit_new(EventType.DEALER_HITS, hand_value=dealer_hand.value)

        if dealer_hand.is_busted:
            self.events.emit_new(EventType.DEALER_BUSTS, hand_value=dealer_hand.value)
        else:
            self.events.emit_new(EventType.DEALER_STANDS, hand_value=dealer_hand.value)

        self.dealer_finished()

    # Settlement

    def _settle_round(self) -> None:
        """Pay out the finished round and update statistics."""
        result = determine_game_result(
            self.table.player_hand,
            self.table.dealer_hand,
            self.table.current_bet,
            blackjack_payout=self.blackjack_payout,
        )

        self.table.chips += result.win_amount
        self.table.games_played += 1
        if is_player_win(result.outcome):
            self.table.games_won += 1
        self.table.last_result = result

        self.events.emit_new(
            EventType.ROUND_ENDED,
            outcome=result.outcome.value,
            win_amount=float(result.win_amount),
            chips=float(self.table.chips),
        )

    def new_round(self) -> bool:
        """Clear the table after a finished round and return to betting."""
        if self.state != GameState.FINISHED:
            return self._reject("Round is not finished")

        self.table.clear_hands()
        self.table.current_bet = self.table.original_bet
        self.reset_table()
        self.adjust_bet_if_needed()
        return True

    # Queries

    @property
    def result(self) -> GameResult | None:
        """The settled result while the round is finished, else None."""
        if self.state != GameState.FINISHED:
            return None
        return self.table.last_result

    @property
    def player_value(self) -> HandValue:
        return self.table.player_hand.hand_value

    @property
    def dealer_value(self) -> HandValue:
        return self.table.dealer_hand.hand_value

    @property
    def dealer_cards_visible(self) -> list[Card]:
        """Dealer cards the player may see: only the upcard before the dealer's turn."""
        cards = self.table.dealer_hand.cards
        if self.state in (GameState.DEALER_TURN, GameState.FINISHED):
            return list(cards)
        return cards[:1]

    @property
    def needs_reshuffle(self) -> bool:
        """Check if the shoe will be replaced before the next deal."""
        return shoe_needs_reshuffle(self.deck, self.reshuffle_threshold)

    @property
    def can_hit(self) -> bool:
        """Check if hitting is allowed."""
        return self.state == GameState.PLAYER_TURN and can_player_hit(self.table.player_hand)

    @property
    def can_stand(self) -> bool:
        return self.state == GameState.PLAYER_TURN

    @property
    def can_double(self) -> bool:
        """Check if doubling is allowed, including whether the player can cover it."""
        return (
            self.state == GameState.PLAYER_TURN
            and can_double_down(self.table.player_hand)
            and Decimal(str(self.table.original_bet * 2)) <= self.table.chips
        )
