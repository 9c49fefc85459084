"""21 Odds Solver — Streamlit Dashboard.

Click cards to mark them as dealt to you; the odds update on every click.

  Top      — card toggles, win / stand / hit / bust metrics, advice
  Tab 1    — Next Card        (per-card outcome table + Plotly bar chart)
  Tab 2    — Two-Card Lookup  (interactive Plotly heat map)
  Tab 3    — Heat Maps        (matplotlib P(win) + HIT/STAND grids)

Run:
    PYTHONPATH=. streamlit run app.py
"""

from __future__ import annotations

import logging

import matplotlib

matplotlib.use("Agg")  # must be set before any other matplotlib imports

import streamlit as st

logging.basicConfig(level=logging.INFO, format="%(asctime)s [odds21] %(message)s")
logger = logging.getLogger("odds21.app")

# ─── Page config ──────────────────────────────────────────────────────────────

st.set_page_config(
    page_title="21 Odds Solver",
    page_icon="🃏",
    layout="wide",
)


# ─── Solver (warmed once per process) ─────────────────────────────────────────


@st.cache_resource
def _load_evaluator():
    """Build the evaluator and warm its cache (cached for the process lifetime)."""
    from odds21.solvers.odds_evaluator import OddsEvaluator

    evaluator = OddsEvaluator()
    elapsed = evaluator.warm_up()
    logger.info("Dashboard evaluator ready after %.3fs", elapsed)
    return evaluator


@st.cache_resource
def _load_analysis_modules():
    """Import deck and display helpers once (cached for the process lifetime)."""
    from odds21.analysis.heat_maps import plot_two_card_heatmaps
    from odds21.analysis.odds_report import build_draw_table, format_advice, format_percent
    from odds21.analysis.plotly_lookup import (
        build_draw_outcome_figure,
        build_two_card_lookup_figure,
    )
    from odds21.engine.deck import cards_remaining, create_deck, deal_specific_card, return_card
    from odds21.solvers.odds_evaluator import get_odds

    return {
        "create_deck": create_deck,
        "deal_specific_card": deal_specific_card,
        "return_card": return_card,
        "cards_remaining": cards_remaining,
        "get_odds": get_odds,
        "format_percent": format_percent,
        "format_advice": format_advice,
        "build_draw_table": build_draw_table,
        "build_draw_outcome_figure": build_draw_outcome_figure,
        "build_two_card_lookup_figure": build_two_card_lookup_figure,
        "plot_two_card_heatmaps": plot_two_card_heatmaps,
    }


with st.spinner("Warming odds cache …"):
    evaluator = _load_evaluator()
m = _load_analysis_modules()

# ─── Dealt-card state ─────────────────────────────────────────────────────────

# The deck mask is the source of truth; "dealt" keeps the order cards were taken.
if "deck" not in st.session_state:
    st.session_state["deck"] = m["create_deck"](evaluator.rules)
    st.session_state["dealt"] = []


def _toggle(card: int) -> None:
    deck = st.session_state["deck"]
    dealt = st.session_state["dealt"]
    if card in dealt:
        m["return_card"](deck, card, evaluator.rules)
        dealt.remove(card)
    else:
        m["deal_specific_card"](deck, card, evaluator.rules)
        dealt.append(card)


def _reset() -> None:
    st.session_state["deck"] = m["create_deck"](evaluator.rules)
    st.session_state["dealt"] = []


# ─── Sidebar ──────────────────────────────────────────────────────────────────

with st.sidebar:
    st.title("🃏 21 Odds Solver")
    st.markdown("---")
    st.button("Reset hand", on_click=_reset)
    st.markdown("---")
    st.caption(f"Deck: {', '.join(str(c) for c in evaluator.rules.card_values)}")
    st.caption(f"Target: {evaluator.rules.target}")
    st.caption(f"Cards left: {m['cards_remaining'](st.session_state['deck'])}")
    st.caption(f"Cached states: {len(evaluator.cache):,}")

# ─── Card toggles ─────────────────────────────────────────────────────────────

st.header("Your cards")
st.caption("Click a card to deal it to yourself; click again to put it back.")

card_cols = st.columns(len(evaluator.rules.card_values))
for col, card in zip(card_cols, evaluator.rules.card_values):
    dealt_now = card in st.session_state["dealt"]
    col.button(
        str(card),
        key=f"card_{card}",
        type="primary" if dealt_now else "secondary",
        on_click=_toggle,
        args=(card,),
        use_container_width=True,
    )

dealt = tuple(st.session_state["dealt"])
summary = m["get_odds"](dealt, evaluator)
pct = m["format_percent"]

# ─── Odds ─────────────────────────────────────────────────────────────────────

col1, col2, col3, col4, col5 = st.columns(5)
col1.metric("Score", summary.player_score)
col2.metric("P(win), best play", pct(summary.win_probability))
if summary.recommendation is not None:
    col3.metric("P(win) if stand", pct(summary.stand_probability))
    col4.metric("P(win) if hit", pct(summary.hit_probability))
    col5.metric("P(bust) on hit", pct(summary.bust_on_hit_probability))

advice = m["format_advice"](summary)
if summary.recommendation is None and summary.win_probability == 1.0:
    st.success(advice)
elif summary.recommendation is None:
    st.error(advice)
else:
    st.info(advice)

# ─── Tabs ─────────────────────────────────────────────────────────────────────

tab1, tab2, tab3 = st.tabs(["Next Card", "Two-Card Lookup", "Heat Maps"])

with tab1:
    st.subheader("What each remaining card would do")
    if summary.recommendation is None:
        st.info("The hand is over. Reset or remove a card to continue.")
    else:
        table = m["build_draw_table"](dealt, evaluator)
        table["P(win)"] = table["P(win)"].map(pct)
        st.dataframe(table, use_container_width=True, hide_index=True)
        st.plotly_chart(
            m["build_draw_outcome_figure"](dealt, evaluator),
            use_container_width=True,
        )

with tab2:
    st.subheader("Two-card starting hands")
    st.caption("Hover a cell for the score, P(win) and best action.")
    st.plotly_chart(m["build_two_card_lookup_figure"](evaluator), use_container_width=True)

with tab3:
    st.subheader("P(win) and best action by starting hand")
    st.caption("Rows = first card | Cols = second card | Grey = impossible or resolved")
    st.pyplot(m["plot_two_card_heatmaps"](evaluator, show=False))
