"""Two-card odds heat maps for the 21 solver.

One data builder and two plot helpers:

    build_two_card_heatmap_data(evaluator)  — (win, action) matrices
    plot_odds_heatmaps(win, action, title)  — 1×2 matplotlib figure
    plot_two_card_heatmaps(evaluator)       — convenience wrapper

Matrix convention:
    Shape  : (n, n) for an n-card deck (11×11 for the standard deck)
             rows = first card, cols = second card
    win    : P(win) under optimal play after both cards are dealt
    action : 1.0 = HIT, 0.0 = STAND
    np.nan : impossible pair (same card twice) or resolved hand (no action)
"""

from __future__ import annotations

import matplotlib
import matplotlib.colors
import matplotlib.figure
import matplotlib.pyplot as plt
import numpy as np

from odds21.solvers.odds_evaluator import Action, OddsEvaluator, get_odds

_NAN_COLOR: str = "#cccccc"


# ─── Colormaps ────────────────────────────────────────────────────────────────


def _make_binary_cmap() -> matplotlib.colors.ListedColormap:
    """Red=STAND (0), Green=HIT (1), grey=absent (NaN)."""
    cmap = matplotlib.colors.ListedColormap(["#d62728", "#2ca02c"])
    cmap.set_bad(color=_NAN_COLOR)
    return cmap


def _make_continuous_cmap() -> matplotlib.colors.Colormap:
    """RdYlGn gradient: red=P(win)=0, green=P(win)=1, grey=absent (NaN)."""
    cmap = matplotlib.colormaps["RdYlGn"].copy()
    cmap.set_bad(color=_NAN_COLOR)
    return cmap


_BINARY_CMAP: matplotlib.colors.Colormap = _make_binary_cmap()
_CONTINUOUS_CMAP: matplotlib.colors.Colormap = _make_continuous_cmap()


# ─── Data builder ─────────────────────────────────────────────────────────────


def build_two_card_heatmap_data(evaluator: OddsEvaluator) -> tuple[np.ndarray, np.ndarray]:
    """Return (win_matrix, action_matrix) over every two-card starting hand.

    Args:
        evaluator: Evaluator to query; its rule set fixes the matrix size.

    Returns:
        (win_matrix, action_matrix) each of dtype float64, shape (n, n).
    """
    cards = evaluator.rules.card_values
    n = len(cards)
    win = np.full((n, n), np.nan)
    action = np.full((n, n), np.nan)

    for r, first in enumerate(cards):
        for c, second in enumerate(cards):
            if first == second:
                continue
            summary = get_odds((first, second), evaluator)
            win[r, c] = summary.win_probability
            if summary.recommendation is not None:
                action[r, c] = 1.0 if summary.recommendation is Action.HIT else 0.0

    return win, action


# ─── Rendering helper ─────────────────────────────────────────────────────────


def _render_panel(
    ax: matplotlib.axes.Axes,
    data: np.ndarray,
    labels: list[str],
    binary: bool,
) -> matplotlib.image.AxesImage:
    """Render one heat-map panel onto *ax* and return the AxesImage."""
    cmap = _BINARY_CMAP if binary else _CONTINUOUS_CMAP
    masked = np.ma.masked_invalid(data)
    im = ax.imshow(masked, cmap=cmap, vmin=0.0, vmax=1.0, aspect="auto")

    ax.set_xticks(range(len(labels)))
    ax.set_xticklabels(labels, fontsize=8)
    ax.set_yticks(range(len(labels)))
    ax.set_yticklabels(labels, fontsize=8)

    for r in range(data.shape[0]):
        for c in range(data.shape[1]):
            val = data[r, c]
            if np.isnan(val):
                continue
            if binary:
                text = "H" if val >= 0.5 else "S"
                text_color = "white"
            else:
                text = f"{val * 100:.0f}"
                text_color = "black" if 0.25 < val < 0.75 else "white"
            ax.text(c, r, text, ha="center", va="center", fontsize=7, color=text_color)

    return im


# ─── Public plot functions ────────────────────────────────────────────────────


def plot_odds_heatmaps(
    win_data: np.ndarray,
    action_data: np.ndarray,
    title: str,
    *,
    labels: list[str] | None = None,
    show: bool = True,
    save_path: str | None = None,
) -> matplotlib.figure.Figure:
    """Plot the P(win) and HIT/STAND heat maps side by side.

    Args:
        win_data:    (n, n) P(win) matrix, NaN = absent.
        action_data: (n, n) action matrix, 1.0=HIT, 0.0=STAND, NaN = absent.
        title:       Figure suptitle.
        labels:      Axis tick labels; defaults to "1".."n".
        show:        If True, call plt.show() after rendering.
        save_path:   If not None, save the figure to this path before showing.

    Returns:
        matplotlib.figure.Figure.
    """
    if labels is None:
        labels = [str(i + 1) for i in range(win_data.shape[0])]

    fig, (ax_win, ax_action) = plt.subplots(1, 2, figsize=(11, 5))
    fig.suptitle(title, fontsize=13, fontweight="bold")

    im_win = _render_panel(ax_win, win_data, labels, binary=False)
    _render_panel(ax_action, action_data, labels, binary=True)

    ax_win.set_title("P(win) %, optimal play", fontsize=10)
    ax_action.set_title("Best action", fontsize=10)
    for ax in (ax_win, ax_action):
        ax.set_xlabel("Second card", fontsize=9)
        ax.set_ylabel("First card", fontsize=9)

    plt.colorbar(im_win, ax=ax_win, label="P(win)", fraction=0.046, pad=0.04)
    plt.tight_layout()

    if save_path is not None:
        fig.savefig(save_path, bbox_inches="tight", dpi=120)
    if show:
        plt.show()

    return fig


def plot_two_card_heatmaps(
    evaluator: OddsEvaluator,
    *,
    show: bool = True,
    save_path: str | None = None,
) -> matplotlib.figure.Figure:
    """Convenience: build two-card data from *evaluator* and render it."""
    win, action = build_two_card_heatmap_data(evaluator)
    labels = [str(card) for card in evaluator.rules.card_values]
    return plot_odds_heatmaps(
        win,
        action,
        "Two-card starting hands",
        labels=labels,
        show=show,
        save_path=save_path,
    )
