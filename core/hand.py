"""Hand evaluation for blackjack."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator

from core.cards import Card

BLACKJACK_TARGET = 21


class HandType(Enum):
    """Whether an ace is still being counted as 11."""

    SOFT = "soft"
    HARD = "hard"


@dataclass(frozen=True)
class HandValue:
    """Point total and classification of a hand at one moment."""

    value: int
    type: HandType
    is_bust: bool
    is_blackjack: bool

    @property
    def is_soft(self) -> bool:
        return self.type is HandType.SOFT


def calculate_hand_value(cards: Iterable[Card]) -> HandValue:
    """
    Calculate the value of a hand.

    Every ace starts at 11. While the total is over 21, aces are demoted to 1
    one at a time until the total fits or no ace is left to demote. The hand
    is soft when at least one ace is still worth 11.

    A blackjack is a two-card 21 only; 21 reached by hitting never counts.
    """
    cards = list(cards)
    total = 0
    aces = 0

    for card in cards:
        if card.is_ace:
            aces += 1
        total += card.value

    demoted = 0
    while total > BLACKJACK_TARGET and demoted < aces:
        total -= 10
        demoted += 1

    is_soft = aces > 0 and demoted < aces

    return HandValue(
        value=total,
        type=HandType.SOFT if is_soft else HandType.HARD,
        is_bust=total > BLACKJACK_TARGET,
        is_blackjack=len(cards) == 2 and total == BLACKJACK_TARGET,
    )


@dataclass
class Hand:
    """A player's or dealer's cards for one round. Cards are only ever appended."""

    cards: list[Card] = field(default_factory=list)

    def add_card(self, card: Card) -> None:
        """Add a card to the hand."""
        self.cards.append(card)

    def clear(self) -> None:
        """Remove all cards from the hand."""
        self.cards.clear()

    @property
    def hand_value(self) -> HandValue:
        """Evaluate the hand as it stands right now."""
        return calculate_hand_value(self.cards)

    @property
    def value(self) -> int:
        return self.hand_value.value

    @property
    def is_soft(self) -> bool:
        return self.hand_value.is_soft

    @property
    def is_blackjack(self) -> bool:
        return self.hand_value.is_blackjack

    @property
    def is_busted(self) -> bool:
        return self.hand_value.is_bust

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __str__(self) -> str:
        cards_str = " ".join(str(card) for card in self.cards)
        hand_value = self.hand_value
        value_str = f"({hand_value.value})"
        if hand_value.is_soft:
            value_str = f"(soft {hand_value.value})"
        if hand_value.is_blackjack:
            value_str = "(BLACKJACK)"
        if hand_value.is_bust:
            value_str = "(BUST)"
        return f"{cards_str} {value_str}"

    def __repr__(self) -> str:
        return f"Hand({self.cards!r}, value={self.value})"
