"""Interactive Plotly odds lookup for the 21 solver.

Three public functions:

    build_two_card_lookup_figure(evaluator)
        — Hoverable heat map of P(win) for every two-card starting hand.
    build_draw_outcome_figure(dealt_cards, evaluator)
        — Bar chart of P(win) after drawing each remaining card.
    save_lookup_html(fig, path)
        — Export any figure to a self-contained HTML file.
"""

from __future__ import annotations

from typing import Iterable

import numpy as np
import plotly.graph_objects as go

from odds21.analysis.heat_maps import build_two_card_heatmap_data
from odds21.analysis.odds_report import build_draw_table
from odds21.solvers.odds_evaluator import OddsEvaluator

_CONTINUOUS_COLORSCALE: str = "RdYlGn"
_BUST_COLOR: str = "#d62728"
_SAFE_COLOR: str = "#2ca02c"


# ─── Hover text builder ───────────────────────────────────────────────────────


def _build_two_card_hover(
    win: np.ndarray,
    action: np.ndarray,
    cards: tuple[int, ...],
) -> list[list[str]]:
    """Return an n×n list of hover strings (empty for absent cells)."""
    rows: list[list[str]] = []
    for r, first in enumerate(cards):
        row: list[str] = []
        for c, second in enumerate(cards):
            if np.isnan(win[r, c]):
                row.append("")
                continue
            lines = [
                f"Cards: <b>{first} + {second}</b>",
                f"Score: {first + second}",
                f"P(win): <b>{win[r, c] * 100:.2f}%</b>",
            ]
            if not np.isnan(action[r, c]):
                lines.append(f"Action: <b>{'HIT' if action[r, c] >= 0.5 else 'STAND'}</b>")
            row.append("<br>".join(lines))
        rows.append(row)
    return rows


# ─── Public figure builders ───────────────────────────────────────────────────


def build_two_card_lookup_figure(evaluator: OddsEvaluator) -> go.Figure:
    """Build an interactive P(win) heat map over two-card starting hands.

    Args:
        evaluator: Evaluator to query.

    Returns:
        go.Figure with a single heatmap trace.
    """
    cards = evaluator.rules.card_values
    win, action = build_two_card_heatmap_data(evaluator)
    labels = [str(card) for card in cards]
    z = [[None if np.isnan(v) else v for v in row] for row in win.tolist()]

    fig = go.Figure(
        go.Heatmap(
            z=z,
            x=labels,
            y=labels,
            colorscale=_CONTINUOUS_COLORSCALE,
            zmin=0.0,
            zmax=1.0,
            text=_build_two_card_hover(win, action, cards),
            hovertemplate="%{text}<extra></extra>",
            colorbar={"title": "P(win)"},
            name="P(win)",
        )
    )
    fig.update_layout(
        title_text="Two-card odds lookup",
        title_font_size=15,
        height=520,
        width=620,
    )
    fig.update_xaxes(title_text="Second card", type="category")
    fig.update_yaxes(title_text="First card", type="category", autorange="reversed")
    return fig


def build_draw_outcome_figure(dealt_cards: Iterable[int], evaluator: OddsEvaluator) -> go.Figure:
    """Build a bar chart of P(win) after drawing each remaining card.

    Busting draws are coloured red and always sit at zero.

    Args:
        dealt_cards: Cards already dealt to the player.
        evaluator:   Evaluator to query.

    Returns:
        go.Figure with a single bar trace (no bars when the deck is empty).
    """
    table = build_draw_table(dealt_cards, evaluator)
    colors = [_BUST_COLOR if busts else _SAFE_COLOR for busts in table["Busts"]]

    fig = go.Figure(
        go.Bar(
            x=[str(card) for card in table["Card"]],
            y=table["P(win)"].tolist(),
            marker_color=colors,
            customdata=table["New score"].tolist(),
            hovertemplate="Draw %{x} → score %{customdata}<br>P(win): %{y:.2%}<extra></extra>",
            name="P(win) after draw",
        )
    )
    fig.update_layout(
        title_text="P(win) after the next card",
        title_font_size=15,
        height=380,
        width=620,
        yaxis_range=[0.0, 1.0],
    )
    fig.update_xaxes(title_text="Next card", type="category")
    fig.update_yaxes(title_text="P(win)", tickformat=".0%")
    return fig


# ─── HTML export ───────────────────────────────────────────────────────────────


def save_lookup_html(fig: go.Figure, path: str) -> None:
    """Save a Plotly figure to a self-contained HTML file.

    Plotly JS is loaded from the CDN so the file itself remains compact.
    """
    fig.write_html(path, include_plotlyjs="cdn")
