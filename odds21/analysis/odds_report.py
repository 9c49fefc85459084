"""Odds report for the 21 solver.

Formatting helpers shared by the dashboard and the terminal report:

    format_percent(p)                  — probability → "46.61%"
    format_advice(summary)             — hit/stand advice sentence
    build_draw_table(dealt, evaluator) — per-card outcome DataFrame
    print_odds_report(summary)         — odds block for one hand
    print_opening_chart(evaluator)     — odds for every possible first card

Rounding happens here and only here; the solver returns exact floats.
"""

from __future__ import annotations

from typing import Iterable

import pandas as pd

from odds21.engine.cards import hand_to_str
from odds21.solvers.odds_evaluator import (
    Action,
    OddsEvaluator,
    OddsSummary,
    get_odds,
)


def format_percent(probability: float) -> str:
    """Format a probability as a percentage with two decimals.

    Examples:
        >>> format_percent(0.4661459836459837)
        '46.61%'
        >>> format_percent(1.0)
        '100.00%'
    """
    return f"{probability * 100:.2f}%"


def format_advice(summary: OddsSummary) -> str:
    """Return the advice line shown under the odds.

    A resolved hand gets a verdict instead of advice.  A live hand gets the
    recommended action and its margin over the alternative.
    """
    if summary.recommendation is None:
        if summary.win_probability == 1.0:
            return f"You have {summary.player_score} — you win!"
        return f"Bust — {summary.player_score} is over the limit."

    edge = abs(summary.stand_probability - summary.hit_probability)
    if summary.recommendation is Action.HIT:
        return f"Hit — drawing beats standing by {format_percent(edge)}."
    if edge == 0.0:
        return "Stand — hitting is no better."
    return f"Stand — standing beats drawing by {format_percent(edge)}."


def build_draw_table(dealt_cards: Iterable[int], evaluator: OddsEvaluator) -> pd.DataFrame:
    """Return one row per remaining card describing what drawing it would do.

    Columns:
        Card      — card value
        New score — player score after drawing it
        Busts     — True if the draw takes the player over the target
        P(win)    — win probability after the draw, under optimal play

    Args:
        dealt_cards: Cards already dealt to the player.
        evaluator:   Evaluator to query.

    Returns:
        pandas DataFrame, rows ordered by card value.  Empty when no card is
        left to draw.
    """
    dealt = tuple(dealt_cards)
    summary = get_odds(dealt, evaluator)
    target = evaluator.rules.target

    rows = []
    for card in summary.remaining:
        after = get_odds(dealt + (card,), evaluator)
        rows.append(
            {
                "Card": card,
                "New score": after.player_score,
                "Busts": after.player_score > target,
                "P(win)": after.win_probability,
            }
        )
    return pd.DataFrame(rows, columns=["Card", "New score", "Busts", "P(win)"])


def print_odds_report(summary: OddsSummary, dealt_cards: Iterable[int] = ()) -> None:
    """Print the odds block for one hand.

    Args:
        summary:     Result of :func:`get_odds`.
        dealt_cards: Cards behind the summary, shown in the header.
    """
    print("=" * 44)
    print(f"Hand: {hand_to_str(tuple(dealt_cards))}   Score: {summary.player_score}")
    print("=" * 44)
    print(f"  P(win), optimal play:  {format_percent(summary.win_probability)}")
    if summary.recommendation is not None:
        print(f"  P(win) if standing:    {format_percent(summary.stand_probability)}")
        print(f"  P(win) if hitting:     {format_percent(summary.hit_probability)}")
        print(f"  P(bust) on next card:  {format_percent(summary.bust_on_hit_probability)}")
    print(f"  {format_advice(summary)}")
    print()


def print_opening_chart(evaluator: OddsEvaluator) -> None:
    """Print stand / hit / optimal odds for every possible first card.

    Args:
        evaluator: Evaluator to query (warmed or not).
    """
    print("\nOpening chart: first card dealt to the player")
    print(f"{'Card':>6}{'Stand':>10}{'Hit':>10}{'Best':>10}{'Action':>8}")
    print("─" * 44)

    opening = get_odds((), evaluator)
    print(
        f"{'-':>6}{format_percent(opening.stand_probability):>10}"
        f"{format_percent(opening.hit_probability):>10}"
        f"{format_percent(opening.win_probability):>10}"
        f"{opening.recommendation.value:>8}"
    )
    for card in evaluator.rules.card_values:
        s = get_odds((card,), evaluator)
        if s.recommendation is None:
            print(f"{card:>6}{'—':>10}{'—':>10}{format_percent(s.win_probability):>10}{'—':>8}")
            continue
        print(
            f"{card:>6}{format_percent(s.stand_probability):>10}"
            f"{format_percent(s.hit_probability):>10}"
            f"{format_percent(s.win_probability):>10}"
            f"{s.recommendation.value:>8}"
        )


# ─── __main__ ─────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import logging

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [odds21] %(message)s")

    evaluator = OddsEvaluator()
    elapsed = evaluator.warm_up()
    print(f"Warmed {len(evaluator.cache)} states in {elapsed:.3f}s")

    print_opening_chart(evaluator)
    print()
    for hand in [(10, 6), (10, 9), (5, 6), (10, 11)]:
        print_odds_report(get_odds(hand, evaluator), hand)
