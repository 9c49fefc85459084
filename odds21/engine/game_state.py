"""
Game state model: rules, phases, terminal recognition and child derivation.

A hand of 21 moves through two phases:

    PLAYER_TURN → (stand) → DEALER_TURN → terminal

During PLAYER_TURN the player chooses HIT (draw one of the remaining cards)
or STAND.  Standing hands control to the dealer, whose score starts from 0
and who draws mechanically until it busts or its score exceeds the player's.
There is no path back from DEALER_TURN to PLAYER_TURN.

Every remaining card is equally likely to be drawn next; cards are never
replaced.

Terminal recognition order (the first match decides the outcome):
    1. player == target           → win 1.0
    2. player >  target           → win 0.0 (player bust)
    3. dealer >  target           → win 1.0 (dealer bust)
    4. dealer >  player           → win 0.0
    5. no cards left to draw      → win 1.0 if dealer < player, else 0.0

Rule 5 can only fire for custom rule sets whose cards add up to little more
than the target; with the standard 1–11 deck the dealer always busts or
passes the player before the deck runs dry.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from .cards import CARD_VALUES, TARGET_SCORE, is_valid_card


# ─── Rules ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Rules:
    """Card set and target score for one family of games.

    Frozen so that an evaluator's rules cannot drift under its cache.
    Card values are stored ascending.
    """
    card_values: tuple[int, ...] = CARD_VALUES
    target: int = TARGET_SCORE

    def __post_init__(self) -> None:
        values = tuple(sorted(self.card_values))
        if not values:
            raise ValueError("A rule set needs at least one card.")
        if len(set(values)) != len(values):
            raise ValueError(f"Card values must be distinct, got {self.card_values}.")
        if values[0] < 1:
            raise ValueError(f"Card values must be positive, got {self.card_values}.")
        if self.target < 1:
            raise ValueError(f"Target must be positive, got {self.target}.")
        object.__setattr__(self, "card_values", values)

    @property
    def deck_total(self) -> int:
        """Sum of every card in a full deck."""
        return sum(self.card_values)


DEFAULT_RULES: Rules = Rules()


# ─── Enumerations ─────────────────────────────────────────────────────────────

class Phase(Enum):
    PLAYER_TURN = auto()
    DEALER_TURN = auto()


# ─── State ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class GameState:
    """Immutable snapshot of a hand in progress.

    Frozen (hashable) and canonical: ``remaining`` is always stored as an
    ascending tuple, so two states reached by dealing the same cards in a
    different order compare and hash equal.  The state itself is the
    memoisation key.

    Attributes:
        remaining:    Card values not yet drawn.
        player_score: Sum of the player's cards.
        phase:        Whose turn it is.
        dealer_score: Sum of the dealer's cards; 0 until the dealer draws.
    """
    remaining: tuple[int, ...]
    player_score: int
    phase: Phase = Phase.PLAYER_TURN
    dealer_score: int = 0

    def __post_init__(self) -> None:
        canonical = tuple(sorted(self.remaining))
        if len(set(canonical)) != len(canonical):
            raise ValueError(f"Duplicate card in remaining set {self.remaining}.")
        if self.player_score < 0 or self.dealer_score < 0:
            raise ValueError(
                f"Scores must be non-negative, got player={self.player_score} "
                f"dealer={self.dealer_score}."
            )
        object.__setattr__(self, "remaining", canonical)


def initial_state(rules: Rules = DEFAULT_RULES) -> GameState:
    """Return the PLAYER_TURN state before any card has been dealt."""
    return GameState(remaining=rules.card_values, player_score=0)


# ─── Validation ───────────────────────────────────────────────────────────────

def _score_pairs(cards: tuple[int, ...]) -> set[tuple[int, int]]:
    """Return every (player, dealer) split reachable from *cards*.

    Each card goes to the player, to the dealer, or to neither, and never to
    both.  The set is bounded by the number of distinct score pairs, not by
    the number of assignments.

    Examples:
        >>> sorted(_score_pairs((1, 3)))
        [(0, 0), (0, 1), (0, 3), (0, 4), (1, 0), (1, 3), (3, 0), (3, 1), (4, 0)]
    """
    pairs = {(0, 0)}
    for card in cards:
        pairs |= {(p + card, d) for p, d in pairs} | {(p, d + card) for p, d in pairs}
    return pairs


def validate_state(state: GameState, rules: Rules = DEFAULT_RULES) -> None:
    """Check that *state* could arise from some deal under *rules*.

    A malformed state is a programming error, so this raises rather than
    returning a flag.

    Raises:
        ValueError: If a remaining card is not in the deck, the dealer has a
            score during the player's turn, or the scores cannot be built
            from the cards that have left the deck.
    """
    unknown = [c for c in state.remaining if not is_valid_card(c, rules.card_values)]
    if unknown:
        raise ValueError(f"Cards {unknown} are not part of the deck {rules.card_values}.")

    if state.phase is Phase.PLAYER_TURN and state.dealer_score != 0:
        raise ValueError(
            f"Dealer score must be 0 during the player's turn, got {state.dealer_score}."
        )

    dealt = tuple(c for c in rules.card_values if c not in state.remaining)
    pairs = _score_pairs(dealt)
    if state.player_score not in {p for p, _ in pairs}:
        raise ValueError(
            f"Player score {state.player_score} cannot be made from dealt cards {dealt}."
        )
    if state.dealer_score not in {d for _, d in pairs}:
        raise ValueError(
            f"Dealer score {state.dealer_score} cannot be made from dealt cards {dealt}."
        )
    if (state.player_score, state.dealer_score) not in pairs:
        raise ValueError(
            f"Scores {state.player_score} and {state.dealer_score} cannot both be made "
            f"from dealt cards {dealt} without sharing a card."
        )


# ─── Terminal recognition ─────────────────────────────────────────────────────

def terminal_win_probability(state: GameState, target: int = TARGET_SCORE) -> float | None:
    """Return the fixed win probability of a resolved state, or None.

    Checks are applied in priority order; see the module docstring.

    Examples:
        >>> terminal_win_probability(GameState((1, 2), 21))
        1.0
        >>> terminal_win_probability(GameState((1, 2), 24))
        0.0
        >>> terminal_win_probability(GameState((1, 2), 16)) is None
        True
    """
    player = state.player_score
    dealer = state.dealer_score

    if player == target:
        return 1.0
    if player > target:
        return 0.0
    if dealer > target:
        return 1.0
    if dealer > player:
        return 0.0
    if not state.remaining:
        return 1.0 if dealer < player else 0.0
    return None


# ─── Child derivation ─────────────────────────────────────────────────────────

def stand_child(state: GameState) -> GameState:
    """Return the DEALER_TURN state reached when the player stands.

    The dealer's play always starts from a score of 0.
    """
    return GameState(
        remaining=state.remaining,
        player_score=state.player_score,
        phase=Phase.DEALER_TURN,
        dealer_score=0,
    )


def draw_child(state: GameState, card: int) -> GameState:
    """Return the state after *card* is drawn by whoever is to act.

    In PLAYER_TURN the card goes to the player (a hit); in DEALER_TURN it
    goes to the dealer.
    """
    remaining = tuple(c for c in state.remaining if c != card)
    if state.phase is Phase.PLAYER_TURN:
        return GameState(remaining, state.player_score + card, Phase.PLAYER_TURN, 0)
    return GameState(remaining, state.player_score, Phase.DEALER_TURN, state.dealer_score + card)


def draw_children(state: GameState) -> list[GameState]:
    """Return one child per remaining card, in ascending card order."""
    return [draw_child(state, card) for card in state.remaining]
