"""Pytest fixtures for blackjack table tests."""

import pytest
from random import Random

from core.cards import Card, Deck
from core.game import BlackjackGame


def cards(*codes: str) -> list[Card]:
    """Build a list of cards from short codes like 'AS', '10H'."""
    return [Card.from_string(code) for code in codes]


@pytest.fixture
def make_cards():
    """Factory for card lists from short codes."""
    return cards


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def deck(rng):
    """A shuffled single deck."""
    d = Deck(num_decks=1, rng=rng)
    d.shuffle()
    return d


@pytest.fixture
def shoe(rng):
    """A shuffled 8-deck shoe."""
    s = Deck(num_decks=8, rng=rng)
    s.shuffle()
    return s


@pytest.fixture
def blackjack_cards():
    """A natural blackjack (A-K)."""
    return cards("AS", "KH")


@pytest.fixture
def soft_17_cards():
    """A soft 17 (A-6)."""
    return cards("AS", "6H")


@pytest.fixture
def hard_17_cards():
    """A hard 17 (10-7)."""
    return cards("10S", "7H")


@pytest.fixture
def hard_16_cards():
    """A hard 16 (10-6)."""
    return cards("10S", "6H")


@pytest.fixture
def bust_cards():
    """A busted hand (10-7-6)."""
    return cards("10S", "7H", "6C")


@pytest.fixture
def game(rng):
    """A new table with a seeded shoe."""
    return BlackjackGame(starting_chips=1000, rng=rng)

