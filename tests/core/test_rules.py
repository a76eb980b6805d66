"""Tests for dealer policy, action legality and round settlement."""

import pytest
from decimal import Decimal
from random import Random

from core.cards import Card, Deck, Rank, Suit
from core.hand import HandType, HandValue
from core.rules import (
    DeckExhaustedError,
    GameOutcome,
    InsufficientCardsError,
    ShoeError,
    can_double_down,
    can_player_hit,
    deal_initial_cards,
    determine_game_result,
    format_hand_value,
    initialize_game,
    is_player_win,
    needs_reshuffle,
    outcome_display_name,
    play_dealer_hand,
    should_dealer_hit,
)


def stacked_deck(*codes: str) -> Deck:
    """A one-deck shoe holding only the given cards, first code dealt first."""
    deck = Deck(num_decks=1)
    deck.deal_cards(52)
    for code in reversed(codes):
        deck._cards.append(Card.from_string(code))
    return deck


class TestDealerPolicy:
    """Tests for should_dealer_hit."""

    def test_hits_soft_17(self, soft_17_cards):
        assert should_dealer_hit(soft_17_cards)

    def test_stands_hard_17(self, hard_17_cards):
        assert not should_dealer_hit(hard_17_cards)

    def test_hits_16(self, hard_16_cards):
        assert should_dealer_hit(hard_16_cards)

    def test_stands_18(self, make_cards):
        assert not should_dealer_hit(make_cards("10S", "8H"))

    def test_stands_soft_18(self, make_cards):
        assert not should_dealer_hit(make_cards("AS", "7H"))

    def test_stands_when_bust(self, bust_cards):
        assert not should_dealer_hit(bust_cards)

    def test_hits_empty_hand(self):
        assert should_dealer_hit([])


class TestActionLegality:
    """Tests for can_double_down and can_player_hit."""

    def test_double_needs_exactly_two_cards(self, make_cards):
        assert can_double_down(make_cards("5S", "6H"))
        assert can_double_down(make_cards("KS", "QH"))  # total does not matter
        assert not can_double_down(make_cards("5S"))
        assert not can_double_down(make_cards("2S", "3H", "4C"))

    def test_can_hit_below_21(self, hard_16_cards, soft_17_cards):
        assert can_player_hit(hard_16_cards)
        assert can_player_hit(soft_17_cards)

    def test_cannot_hit_on_21(self, blackjack_cards, make_cards):
        assert not can_player_hit(blackjack_cards)
        assert not can_player_hit(make_cards("7S", "7H", "7C"))

    def test_cannot_hit_when_bust(self, bust_cards):
        assert not can_player_hit(bust_cards)


class TestDetermineGameResult:
    """Tests for outcome order and payouts."""

    def test_player_blackjack_pays_3_to_2(self, blackjack_cards, make_cards):
        result = determine_game_result(blackjack_cards, make_cards("10C", "9D"), 10)
        assert result.outcome == GameOutcome.PLAYER_BLACKJACK
        assert result.win_amount == 15

    def test_odd_bet_blackjack_pays_half_chips(self, blackjack_cards, make_cards):
        result = determine_game_result(blackjack_cards, make_cards("10C", "9D"), 5)
        assert result.win_amount == Decimal("7.5")

    def test_custom_blackjack_payout(self, blackjack_cards, make_cards):
        result = determine_game_result(
            blackjack_cards, make_cards("10C", "9D"), 10, blackjack_payout=1.2
        )
        assert result.win_amount == 12

    def test_player_bust_loses_regardless(self, make_cards, hard_17_cards):
        result = determine_game_result(make_cards("10S", "9H", "5C"), hard_17_cards, 20)
        assert result.outcome == GameOutcome.PLAYER_BUST
        assert result.win_amount == -20

    def test_both_bust_player_loses(self, bust_cards, make_cards):
        result = determine_game_result(bust_cards, make_cards("10D", "6C", "QS"), 10)
        assert result.outcome == GameOutcome.PLAYER_BUST
        assert result.win_amount == -10

    def test_dealer_bust(self, hard_17_cards, bust_cards):
        result = determine_game_result(hard_17_cards, bust_cards, 10)
        assert result.outcome == GameOutcome.DEALER_BUST
        assert result.win_amount == 10

    def test_both_blackjack_push(self, blackjack_cards, make_cards):
        result = determine_game_result(blackjack_cards, make_cards("AC", "QD"), 10)
        assert result.outcome == GameOutcome.PUSH
        assert result.win_amount == 0

    def test_dealer_blackjack(self, blackjack_cards, make_cards):
        result = determine_game_result(make_cards("10S", "9H"), blackjack_cards, 10)
        assert result.outcome == GameOutcome.DEALER_BLACKJACK
        assert result.win_amount == -10

    def test_dealer_blackjack_beats_three_card_21(self, blackjack_cards, make_cards):
        result = determine_game_result(make_cards("7S", "7H", "7C"), blackjack_cards, 10)
        assert result.outcome == GameOutcome.DEALER_BLACKJACK

    def test_player_blackjack_beats_three_card_21(self, blackjack_cards, make_cards):
        result = determine_game_result(blackjack_cards, make_cards("7S", "7H", "7C"), 10)
        assert result.outcome == GameOutcome.PLAYER_BLACKJACK

    def test_higher_total_wins(self, make_cards):
        result = determine_game_result(make_cards("10S", "9H"), make_cards("10C", "8D"), 10)
        assert result.outcome == GameOutcome.PLAYER_WIN
        assert result.win_amount == 10

    def test_lower_total_loses(self, make_cards):
        result = determine_game_result(make_cards("10S", "7H"), make_cards("10C", "9D"), 10)
        assert result.outcome == GameOutcome.DEALER_WIN
        assert result.win_amount == -10

    def test_equal_totals_push(self, make_cards):
        result = determine_game_result(make_cards("10S", "8H"), make_cards("10C", "8D"), 10)
        assert result.outcome == GameOutcome.PUSH
        assert result.win_amount == 0

    def test_result_carries_hand_values(self, blackjack_cards, bust_cards):
        result = determine_game_result(blackjack_cards, bust_cards, 10)
        assert result.player_value.value == 21
        assert result.dealer_value.is_bust

    def test_default_bet_is_zero(self, make_cards):
        result = determine_game_result(make_cards("10S", "9H"), make_cards("10C", "8D"))
        assert result.win_amount == 0

    def test_player_win_outcomes(self):
        assert is_player_win(GameOutcome.PLAYER_WIN)
        assert is_player_win(GameOutcome.PLAYER_BLACKJACK)
        assert is_player_win(GameOutcome.DEALER_BUST)
        assert not is_player_win(GameOutcome.PUSH)
        assert not is_player_win(GameOutcome.DEALER_BLACKJACK)


class TestRoundHelpers:
    """Tests for shoe setup, initial deal and dealer play."""

    def test_initialize_game(self):
        deck = initialize_game(rng=Random(1))
        assert deck.num_decks == 8
        assert deck.cards_remaining == 416
        assert list(deck) != list(Deck())

    def test_initialize_game_deck_count(self):
        assert initialize_game(2).total_cards == 104

    def test_deal_initial_cards_alternates(self):
        deck = stacked_deck("2S", "3S", "4S", "5S", "9H")
        player, dealer = deal_initial_cards(deck)
        assert player == [Card(Rank.TWO, Suit.SPADES), Card(Rank.FOUR, Suit.SPADES)]
        assert dealer == [Card(Rank.THREE, Suit.SPADES), Card(Rank.FIVE, Suit.SPADES)]
        assert deck.cards_remaining == 1

    def test_deal_initial_cards_insufficient(self):
        deck = stacked_deck("2S", "3S", "4S")
        with pytest.raises(InsufficientCardsError):
            deal_initial_cards(deck)

    def test_dealer_draws_to_17(self, make_cards):
        deck = stacked_deck("2C", "3D", "KH")
        dealer = make_cards("10S", "2H")
        final = play_dealer_hand(deck, dealer)
        assert [c.value for c in final] == [10, 2, 2, 3]
        assert deck.cards_remaining == 1

    def test_dealer_hits_soft_17_then_stands(self, soft_17_cards):
        deck = stacked_deck("AC", "5D")
        final = play_dealer_hand(deck, soft_17_cards)
        # A-6 soft 17, A -> soft 18
        assert len(final) == 3
        assert deck.cards_remaining == 1

    def test_dealer_hand_input_untouched(self, hard_16_cards):
        deck = stacked_deck("5C")
        final = play_dealer_hand(deck, hard_16_cards)
        assert len(hard_16_cards) == 2
        assert len(final) == 3

    def test_dealer_stands_without_drawing(self, hard_17_cards):
        deck = stacked_deck("5C")
        assert play_dealer_hand(deck, hard_17_cards) == hard_17_cards
        assert deck.cards_remaining == 1

    def test_dealer_deck_exhausted(self, hard_16_cards):
        deck = stacked_deck()
        with pytest.raises(DeckExhaustedError):
            play_dealer_hand(deck, hard_16_cards)

    def test_shoe_errors_share_base(self):
        assert issubclass(InsufficientCardsError, ShoeError)
        assert issubclass(DeckExhaustedError, ShoeError)


class TestNeedsReshuffle:
    """Tests for the reshuffle threshold."""

    def test_full_deck(self, deck):
        assert not needs_reshuffle(deck)

    def test_boundary_is_not_reshuffle(self, deck):
        deck.deal_cards(39)  # 13 / 52 == 0.25
        assert not needs_reshuffle(deck)

    def test_below_boundary(self, deck):
        deck.deal_cards(40)  # 12 / 52 < 0.25
        assert needs_reshuffle(deck)

    def test_custom_threshold(self, deck):
        deck.deal_cards(26)
        assert needs_reshuffle(deck, threshold=0.75)
        assert not needs_reshuffle(deck, threshold=0.5)


class TestDisplay:
    """Tests for display helpers."""

    def test_format_hand_value(self):
        assert format_hand_value(HandValue(21, HandType.SOFT, False, True)) == "Blackjack!"
        assert format_hand_value(HandValue(24, HandType.HARD, True, False)) == "Bust (24)"
        assert format_hand_value(HandValue(17, HandType.SOFT, False, False)) == "Soft 17"
        assert format_hand_value(HandValue(21, HandType.SOFT, False, False)) == "21"
        assert format_hand_value(HandValue(16, HandType.HARD, False, False)) == "16"

    def test_outcome_display_names(self):
        assert outcome_display_name(GameOutcome.PLAYER_WIN) == "Player Wins!"
        assert outcome_display_name(GameOutcome.DEALER_BUST) == "Dealer Bust - Player Wins!"
        assert all(outcome_display_name(o) for o in GameOutcome)
