"""
Deck creation and card dealing operations.

The deck is a numpy int8 mask with one slot per card value of the rule set.
    1 = card is still in the deck
    0 = card has been dealt

Slot i holds card ``rules.card_values[i]``; for the standard deck that is
value ``i + 1``.  The mask is only used at the UI boundary; the solver works
on the canonical tuple returned by :func:`remaining_cards`.
"""

from __future__ import annotations

from typing import Iterable

import numpy as np

from .game_state import DEFAULT_RULES, Rules


def create_deck(rules: Rules = DEFAULT_RULES) -> np.ndarray:
    """Create a fresh, full deck.

    Returns:
        np.ndarray: int8 array with one slot per card value, all 1s.

    Examples:
        >>> deck = create_deck()
        >>> int(deck.sum())
        11
    """
    return np.ones(len(rules.card_values), dtype=np.int8)


def _slot(card: int, rules: Rules) -> int:
    try:
        return rules.card_values.index(card)
    except ValueError:
        raise ValueError(
            f"Card {card!r} is not part of the deck {rules.card_values}."
        ) from None


def remaining_cards(deck: np.ndarray, rules: Rules = DEFAULT_RULES) -> tuple[int, ...]:
    """Return the values still available in the deck, ascending.

    Examples:
        >>> deck = create_deck()
        >>> deck[9] = 0   # deal the 10
        >>> remaining_cards(deck)
        (1, 2, 3, 4, 5, 6, 7, 8, 9, 11)
    """
    return tuple(rules.card_values[i] for i in np.where(deck == 1)[0])


def cards_remaining(deck: np.ndarray) -> int:
    """Return the count of cards still available in the deck."""
    return int(deck.sum())


def deal_specific_card(deck: np.ndarray, card: int, rules: Rules = DEFAULT_RULES) -> None:
    """Mark a specific card as dealt.

    Args:
        deck:  Mutable deck array — modified in place.
        card:  Card value to deal.
        rules: Rule set the deck was built for.

    Raises:
        ValueError: If the card is not in the rule set or was already dealt.
    """
    slot = _slot(card, rules)
    if deck[slot] == 0:
        raise ValueError(f"Card {card} has already been dealt.")
    deck[slot] = 0


def return_card(deck: np.ndarray, card: int, rules: Rules = DEFAULT_RULES) -> None:
    """Put a dealt card back into the deck (the UI "un-toggle" action).

    Raises:
        ValueError: If the card is not in the rule set or is already in the deck.
    """
    slot = _slot(card, rules)
    if deck[slot] == 1:
        raise ValueError(f"Card {card} is already in the deck.")
    deck[slot] = 1


def build_deck_from_dealt(
    dealt_cards: Iterable[int],
    rules: Rules = DEFAULT_RULES,
) -> np.ndarray:
    """Create a deck with the given cards already marked as dealt.

    Args:
        dealt_cards: Card values that have left the deck.
        rules:       Rule set that defines the full deck.

    Returns:
        np.ndarray: deck with those cards marked as dealt.

    Raises:
        ValueError: On an unknown or duplicated card.

    Examples:
        >>> deck = build_deck_from_dealt([10, 6])
        >>> cards_remaining(deck)
        9
    """
    deck = create_deck(rules)
    for card in dealt_cards:
        deal_specific_card(deck, card, rules)
    return deck
