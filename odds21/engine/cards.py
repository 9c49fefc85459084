"""
Card constants and small helpers for the 21 card game.

The deck holds exactly one card of each value 1–11 (eleven cards, total 66).
There are no suits and no face cards: a card *is* its integer value, so the
same int is used as identity, point value and display label.
"""

from __future__ import annotations

CARD_VALUES: tuple[int, ...] = tuple(range(1, 12))
"""Every card in a fresh deck, ascending."""

TARGET_SCORE: int = 21
"""Score that wins outright; anything above it is a bust."""


def is_valid_card(card: int, card_values: tuple[int, ...] = CARD_VALUES) -> bool:
    """Return True if *card* is one of the values in the deck.

    Examples:
        >>> is_valid_card(1)
        True
        >>> is_valid_card(12)
        False
    """
    return card in card_values


def hand_total(cards: tuple[int, ...] | list[int]) -> int:
    """Return the score of a hand: the plain sum of its card values.

    Examples:
        >>> hand_total((10, 6))
        16
        >>> hand_total(())
        0
    """
    return sum(cards)


def hand_to_str(cards: tuple[int, ...] | list[int]) -> str:
    """Convert a hand to a human-readable string.

    Examples:
        >>> hand_to_str((10, 6))
        '10 6'
        >>> hand_to_str(())
        '-'
    """
    if not cards:
        return "-"
    return " ".join(str(c) for c in cards)
