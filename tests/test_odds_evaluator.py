"""
Tests for odds21/solvers/odds_evaluator.py — memoised odds search.

Reference values for the standard deck were computed once and pinned; the
three-card game in ``SMALL_RULES`` is small enough to check by hand (see
the per-test comments).
"""

from __future__ import annotations

import pytest

from odds21.engine.game_state import GameState, Phase, Rules, initial_state
from odds21.solvers.odds_evaluator import (
    Action,
    OddsCache,
    OddsEvaluator,
    OddsResult,
    OddsSummary,
    bust_probability,
    get_odds,
    recommend_action,
)
from tests.conftest import SMALL_RULES, TIE_RULES

FULL = tuple(range(1, 12))

OPENING_WIN = 0.4661459836459837
WARM_CACHE_SIZE = 6884
WARM_PLAYER_STATES = 285
WARM_DEALER_STATES = 6599


def _without(*cards: int) -> tuple[int, ...]:
    return tuple(c for c in FULL if c not in cards)


# ─── OddsResult / recommend_action ────────────────────────────────────────────


class TestOddsResult:
    def test_leaf_has_no_breakdown(self):
        result = OddsResult(1.0)
        assert result.stand_probability is None
        assert result.hit_probability is None
        assert not result.is_decision_point

    def test_decision_point(self):
        result = OddsResult(0.4, stand_probability=0.3, hit_probability=0.4)
        assert result.is_decision_point

    def test_frozen(self):
        with pytest.raises(AttributeError):
            OddsResult(0.5).win_probability = 0.6


class TestRecommendAction:
    def test_hit(self):
        assert recommend_action(OddsResult(0.4, 0.3, 0.4)) is Action.HIT

    def test_stand(self):
        assert recommend_action(OddsResult(0.6, 0.6, 0.2)) is Action.STAND

    def test_tie_prefers_stand(self):
        assert recommend_action(OddsResult(0.5, 0.5, 0.5)) is Action.STAND

    def test_leaf_raises(self):
        with pytest.raises(ValueError, match="resolved"):
            recommend_action(OddsResult(0.0))


# ─── OddsCache ────────────────────────────────────────────────────────────────


class TestOddsCache:
    def test_starts_empty(self):
        assert len(OddsCache()) == 0

    def test_insert_and_get(self):
        cache = OddsCache()
        state = GameState((1, 2), 3)
        result = OddsResult(0.5, 0.5, 0.25)
        assert cache.insert(state, result) is result
        assert cache.get(state) is result
        assert state in cache

    def test_get_missing(self):
        assert OddsCache().get(GameState((1,), 2)) is None

    def test_existing_entry_never_replaced(self):
        cache = OddsCache()
        state = GameState((1, 2), 3)
        first = OddsResult(0.5)
        cache.insert(state, first)
        assert cache.insert(state, OddsResult(0.9)) is first
        assert cache.get(state) is first
        assert len(cache) == 1

    def test_count_by_phase(self):
        cache = OddsCache()
        cache.insert(GameState((1, 2), 3), OddsResult(0.5, 0.5, 0.5))
        cache.insert(GameState((1, 2), 3, Phase.DEALER_TURN), OddsResult(0.5))
        cache.insert(GameState((2,), 4, Phase.DEALER_TURN, 1), OddsResult(0.0))
        assert cache.count_by_phase() == {Phase.PLAYER_TURN: 1, Phase.DEALER_TURN: 2}


# ─── Terminal short-circuit ───────────────────────────────────────────────────


class TestTerminalShortCircuit:
    def test_score_21_wins_without_expansion(self, fresh_evaluator):
        result = fresh_evaluator.evaluate(GameState(_without(10, 11), 21))
        assert result.win_probability == 1.0
        assert fresh_evaluator.expansions == 0
        assert len(fresh_evaluator.cache) == 0

    def test_bust_loses_without_expansion(self, fresh_evaluator):
        result = fresh_evaluator.evaluate(GameState(_without(10, 9, 5), 24))
        assert result.win_probability == 0.0
        assert fresh_evaluator.expansions == 0
        assert len(fresh_evaluator.cache) == 0

    def test_terminal_has_no_breakdown(self, fresh_evaluator):
        result = fresh_evaluator.evaluate(GameState(_without(10, 11), 21))
        assert not result.is_decision_point

    def test_dealer_ahead_state(self, fresh_evaluator):
        # Player 5 + 8, dealer 9 + 10.
        state = GameState(_without(10, 9, 8, 5), 13, Phase.DEALER_TURN, 19)
        assert fresh_evaluator.evaluate(state).win_probability == 0.0
        assert fresh_evaluator.expansions == 0

    def test_dealer_bust_state(self, fresh_evaluator):
        # Player 4 + 9, dealer 3 + 10 + 11.
        state = GameState(_without(3, 4, 9, 10, 11), 13, Phase.DEALER_TURN, 24)
        assert fresh_evaluator.evaluate(state).win_probability == 1.0
        assert fresh_evaluator.expansions == 0


# ─── Hand-checkable three-card game ───────────────────────────────────────────


class TestSmallGame:
    """Cards 1, 2, 3; target 5.

    Standing on 0 always loses (the dealer's first card beats it).
    Hitting from 0:
        draw 1 → (2, 3) vs 1: only drawing 3 then standing on 4 wins → 1/2
        draw 2 → (1, 3) vs 2: only drawing 3 (score 5) wins           → 1/2
        draw 3 → (1, 2) vs 3: every line wins                          → 1
    so P(win) = (1/2 + 1/2 + 1) / 3 = 2/3.
    """

    def test_opening(self, small_evaluator):
        result = small_evaluator.evaluate(initial_state(SMALL_RULES))
        assert result.stand_probability == 0.0
        assert result.hit_probability == pytest.approx(2 / 3)
        assert result.win_probability == pytest.approx(2 / 3)

    def test_holding_one(self, small_evaluator):
        result = small_evaluator.evaluate(GameState((2, 3), 1))
        assert result.stand_probability == 0.0
        assert result.hit_probability == 0.5

    def test_holding_four_stands(self, small_evaluator):
        # Dealer can only draw the 2 and runs out of cards behind the player.
        result = small_evaluator.evaluate(GameState((2,), 4))
        assert result.stand_probability == 1.0
        assert result.hit_probability == 0.0
        assert recommend_action(result) is Action.STAND

    def test_dealer_tie_on_empty_deck_loses(self, small_evaluator):
        # Player 3 stands; dealer draws 1 and 2 (either order) to reach 3.
        state = GameState((1, 2), 3, Phase.DEALER_TURN, 0)
        assert small_evaluator.evaluate(state).win_probability == 0.0

    def test_cache_size(self, small_evaluator):
        small_evaluator.warm_up()
        assert len(small_evaluator.cache) == 15
        assert small_evaluator.expansions == 15

    def test_tie_recommends_stand(self):
        # Holding the 2 (target 3): standing wins (dealer stops at 1 with no
        # cards left) and hitting draws the 1 for exactly 3.
        summary = get_odds([2], OddsEvaluator(TIE_RULES))
        assert summary.stand_probability == 1.0
        assert summary.hit_probability == 1.0
        assert summary.recommendation is Action.STAND


# ─── Standard deck scenarios ──────────────────────────────────────────────────


class TestStandardScenarios:
    def test_opening_golden_value(self, fresh_evaluator):
        result = fresh_evaluator.evaluate(initial_state())
        assert result.win_probability == pytest.approx(OPENING_WIN, rel=1e-12)
        assert 0.0 < result.win_probability < 1.0

    def test_standing_on_zero_is_poor(self, fresh_evaluator):
        result = fresh_evaluator.evaluate(initial_state())
        assert result.stand_probability < 0.5
        assert result.stand_probability == 0.0

    def test_sixteen(self, fresh_evaluator):
        result = fresh_evaluator.evaluate(GameState(_without(10, 6), 16))
        assert result.stand_probability == pytest.approx(0.30912698412698414, rel=1e-12)
        assert result.hit_probability == pytest.approx(0.3829365079365079, rel=1e-12)
        assert recommend_action(result) is Action.HIT
        assert fresh_evaluator.expansions == 492

    def test_nineteen_stands(self, fresh_evaluator):
        result = fresh_evaluator.evaluate(GameState(_without(10, 9), 19))
        assert result.stand_probability == pytest.approx(0.6543650793650793, rel=1e-12)
        assert result.hit_probability == pytest.approx(0.20436507936507936, rel=1e-12)
        assert recommend_action(result) is Action.STAND

    def test_four_small_cards(self, fresh_evaluator):
        result = fresh_evaluator.evaluate(GameState(_without(2, 3, 4, 5), 14))
        assert result.win_probability == pytest.approx(0.3, rel=1e-12)
        assert fresh_evaluator.expansions == 60


# ─── Memoisation ──────────────────────────────────────────────────────────────


class TestMemoisation:
    def test_second_call_is_cache_hit(self, fresh_evaluator):
        state = GameState(_without(10, 6), 16)
        first = fresh_evaluator.evaluate(state)
        expansions = fresh_evaluator.expansions
        second = fresh_evaluator.evaluate(state)
        assert second is first
        assert fresh_evaluator.expansions == expansions

    def test_equivalent_key_is_cache_hit(self, fresh_evaluator):
        first = fresh_evaluator.evaluate(GameState((1, 2, 3, 4, 5, 7, 8, 9, 11), 16))
        expansions = fresh_evaluator.expansions
        second = fresh_evaluator.evaluate(GameState((11, 9, 8, 7, 5, 4, 3, 2, 1), 16))
        assert second is first
        assert fresh_evaluator.expansions == expansions

    def test_expansions_match_cache_size(self, fresh_evaluator):
        fresh_evaluator.evaluate(GameState(_without(10, 9), 19))
        assert fresh_evaluator.expansions == len(fresh_evaluator.cache) == 277

    def test_sub_state_reused_after_opening(self, fresh_evaluator):
        fresh_evaluator.evaluate(initial_state())
        expansions = fresh_evaluator.expansions
        fresh_evaluator.evaluate(GameState(_without(10, 6), 16))
        assert fresh_evaluator.expansions == expansions

    def test_results_independent_of_call_history(self, warm_evaluator, fresh_evaluator):
        state = GameState(_without(5, 6), 11)
        cold = fresh_evaluator.evaluate(state)
        warm = warm_evaluator.evaluate(state)
        assert cold == warm

    def test_injected_cache_is_used(self):
        cache = OddsCache()
        evaluator = OddsEvaluator(cache=cache)
        evaluator.evaluate(GameState(_without(10, 9), 19))
        assert evaluator.cache is cache
        assert len(cache) == 277


# ─── Warm-up ──────────────────────────────────────────────────────────────────


class TestWarmUp:
    def test_cache_size_pinned(self, warm_evaluator):
        assert len(warm_evaluator.cache) == WARM_CACHE_SIZE

    def test_cache_by_phase(self, warm_evaluator):
        assert warm_evaluator.cache.count_by_phase() == {
            Phase.PLAYER_TURN: WARM_PLAYER_STATES,
            Phase.DEALER_TURN: WARM_DEALER_STATES,
        }

    def test_expansions_equal_cache_size(self, warm_evaluator):
        assert warm_evaluator.expansions == WARM_CACHE_SIZE

    def test_returns_elapsed_seconds(self):
        evaluator = OddsEvaluator()
        elapsed = evaluator.warm_up()
        assert elapsed >= 0.0

    def test_second_warm_up_expands_nothing(self):
        evaluator = OddsEvaluator()
        evaluator.warm_up()
        evaluator.warm_up()
        assert evaluator.expansions == WARM_CACHE_SIZE

    def test_interactive_queries_expand_nothing(self, warm_evaluator):
        before = warm_evaluator.expansions
        for dealt in [(), (10,), (10, 6), (1, 2, 3), (11, 9)]:
            get_odds(dealt, warm_evaluator)
        assert warm_evaluator.expansions == before


# ─── Whole-cache properties ───────────────────────────────────────────────────


class TestCacheProperties:
    def test_probabilities_in_unit_interval(self, warm_evaluator):
        for state, result in warm_evaluator.cache.items():
            assert 0.0 <= result.win_probability <= 1.0, state

    def test_optimal_play_dominance(self, warm_evaluator):
        for state, result in warm_evaluator.cache.items():
            if state.phase is Phase.PLAYER_TURN:
                assert result.is_decision_point, state
                assert result.win_probability == max(
                    result.stand_probability, result.hit_probability
                ), state

    def test_dealer_states_have_no_breakdown(self, warm_evaluator):
        for state, result in warm_evaluator.cache.items():
            if state.phase is Phase.DEALER_TURN:
                assert not result.is_decision_point, state

    def test_no_terminal_states_cached(self, warm_evaluator):
        for state, _ in warm_evaluator.cache.items():
            assert state.player_score < 21
            assert state.dealer_score <= state.player_score

    def test_stand_odds_non_decreasing_in_score(self, fresh_evaluator):
        remaining = (1, 2, 3, 4)
        previous = 0.0
        for score in range(5, 22):
            state = GameState(remaining, score, Phase.DEALER_TURN, 0)
            win = fresh_evaluator.win_probability(state)
            assert win >= previous, score
            previous = win
        assert previous == 1.0


# ─── Validation at the boundary ───────────────────────────────────────────────


class TestEvaluateValidation:
    def test_unknown_card_raises(self, fresh_evaluator):
        with pytest.raises(ValueError):
            fresh_evaluator.evaluate(GameState((1, 2, 12), 0))

    def test_inconsistent_score_raises(self, fresh_evaluator):
        with pytest.raises(ValueError):
            fresh_evaluator.evaluate(GameState(FULL, 10))

    def test_rules_are_per_evaluator(self, fresh_evaluator):
        small = OddsEvaluator(Rules(card_values=(1, 2, 3), target=5))
        small.evaluate(initial_state(small.rules))
        with pytest.raises(ValueError):
            small.evaluate(initial_state())
        assert len(fresh_evaluator.cache) == 0


class TestDepthGuard:
    def test_depth_bound_is_one_per_card_plus_stand(self, fresh_evaluator, small_evaluator):
        assert fresh_evaluator._max_depth == 12
        assert small_evaluator._max_depth == 4

    def test_exceeding_depth_bound_asserts(self, fresh_evaluator):
        state = GameState(_without(10, 6), 16)
        with pytest.raises(AssertionError, match="depth"):
            fresh_evaluator._evaluate(state, fresh_evaluator._max_depth + 1)
        assert fresh_evaluator.expansions == 0


# ─── get_odds ─────────────────────────────────────────────────────────────────


class TestBustProbability:
    def test_sixteen(self):
        assert bust_probability(16, (1, 2, 3, 4, 5, 7, 8, 9, 11), 21) == 4 / 9

    def test_never_busts(self):
        assert bust_probability(0, FULL, 21) == 0.0

    def test_always_busts(self):
        assert bust_probability(20, (2, 3), 21) == 1.0


class TestGetOdds:
    def test_empty_hand(self, warm_evaluator):
        summary = get_odds([], warm_evaluator)
        assert isinstance(summary, OddsSummary)
        assert summary.player_score == 0
        assert summary.remaining == FULL
        assert summary.win_probability == pytest.approx(OPENING_WIN, rel=1e-12)
        assert summary.stand_probability < 0.5
        assert summary.bust_on_hit_probability == 0.0
        assert summary.recommendation is Action.HIT

    def test_twenty_one(self, fresh_evaluator):
        summary = get_odds([10, 11], fresh_evaluator)
        assert summary.win_probability == 1.0
        assert summary.stand_probability is None
        assert summary.hit_probability is None
        assert summary.bust_on_hit_probability is None
        assert summary.recommendation is None
        assert fresh_evaluator.expansions == 0

    def test_bust(self, fresh_evaluator):
        summary = get_odds([10, 9, 5], fresh_evaluator)
        assert summary.win_probability == 0.0
        assert summary.player_score == 24
        assert summary.recommendation is None
        assert fresh_evaluator.expansions == 0

    def test_sixteen(self, warm_evaluator):
        summary = get_odds([10, 6], warm_evaluator)
        assert summary.remaining == (1, 2, 3, 4, 5, 7, 8, 9, 11)
        assert summary.stand_probability == pytest.approx(0.30912698412698414, rel=1e-12)
        assert summary.hit_probability == pytest.approx(0.3829365079365079, rel=1e-12)
        assert summary.bust_on_hit_probability == 4 / 9
        assert summary.recommendation is Action.HIT

    def test_order_of_dealt_cards_irrelevant(self, warm_evaluator):
        assert get_odds([6, 10], warm_evaluator) == get_odds([10, 6], warm_evaluator)

    def test_accepts_tuple(self, warm_evaluator):
        assert get_odds((10, 9), warm_evaluator).recommendation is Action.STAND

    def test_duplicate_card_raises(self, warm_evaluator):
        with pytest.raises(ValueError):
            get_odds([10, 10], warm_evaluator)

    def test_unknown_card_raises(self, warm_evaluator):
        with pytest.raises(ValueError):
            get_odds([0], warm_evaluator)
        with pytest.raises(ValueError):
            get_odds([12], warm_evaluator)
