"""
Shared pytest fixtures for 21 odds solver tests.

The full-deck evaluator is warmed once per session; tests that count
expansions build their own fresh evaluator instead.
"""

from __future__ import annotations

import pytest

from odds21.engine.game_state import Rules
from odds21.solvers.odds_evaluator import OddsEvaluator

# Three cards (total 6) and a target of 5: small enough to check by hand.
SMALL_RULES = Rules(card_values=(1, 2, 3), target=5)

# Two cards and a target of 3: holding the 2, standing and hitting both win.
TIE_RULES = Rules(card_values=(1, 2), target=3)


@pytest.fixture(scope="session")
def warm_evaluator() -> OddsEvaluator:
    """Return a standard-deck evaluator with a fully warmed cache."""
    evaluator = OddsEvaluator()
    evaluator.warm_up()
    return evaluator


@pytest.fixture
def fresh_evaluator() -> OddsEvaluator:
    """Return a standard-deck evaluator with an empty cache."""
    return OddsEvaluator()


@pytest.fixture
def small_evaluator() -> OddsEvaluator:
    return OddsEvaluator(SMALL_RULES)
