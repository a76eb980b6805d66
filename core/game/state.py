"""Table phase enumeration."""

from enum import Enum


class GameState(Enum):
    """
    Phases of a round.

    Flow: BETTING → DEALING → PLAYER_TURN → DEALER_TURN → FINISHED → BETTING
    """

    BETTING = "betting"
    DEALING = "dealing"
    PLAYER_TURN = "player_turn"
    DEALER_TURN = "dealer_turn"
    FINISHED = "finished"

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()


VALID_TRANSITIONS: dict[GameState, list[GameState]] = {
    GameState.BETTING: [GameState.DEALING],
    GameState.DEALING: [GameState.PLAYER_TURN, GameState.FINISHED, GameState.BETTING],
    GameState.PLAYER_TURN: [GameState.DEALER_TURN, GameState.FINISHED],  # FINISHED on bust
    GameState.DEALER_TURN: [GameState.FINISHED],  # also when the shoe runs dry
    GameState.FINISHED: [GameState.BETTING],
}


def is_valid_transition(from_state: GameState, to_state: GameState) -> bool:
    """
    Check if a phase transition is valid.

    Args:
        from_state: Current phase
        to_state: Desired phase

    Returns:
        True if the transition is allowed
    """
    return to_state in VALID_TRANSITIONS.get(from_state, [])
