"""
Tests for heuristic game analysis.

Accuracy comes from an injected estimator, so everything except the
randomized estimator's ranges is deterministic.
"""

import asyncio
import random
import unittest

from chessstats.game_analysis import (
    AnalysisFailure,
    AnalysisSuccess,
    GameAnalyzer,
    RandomAccuracyEstimator,
    analyze_pgn,
    analyze_stored_game,
)

from conftest import FixedEstimator, new_store

QUEEN_HANGS = "1. e4 e5 2. Nf3 Qh4 3. Nxh4"
KNIGHT_TRADE = "1. e4 e5 2. Nf3 Nc6 3. Nc3 Nf6 4. Nd5 Nxd5 5. exd5"
SCHOLARS_MATE = '[Opening "Italian Game"]\n[Result "1-0"]\n\n1. e4 e5 2. Qh5 Nc6 3. Bc4 Nf6 4. Qxf7# 1-0'


class TestAnalyzePgn(unittest.TestCase):

    def test_hanging_queen_is_a_blunder_for_its_owner(self):
        outcome = analyze_pgn(QUEEN_HANGS, FixedEstimator())
        self.assertIsInstance(outcome, AnalysisSuccess)
        result = outcome.result

        self.assertEqual(result.material_diff, 9)
        self.assertEqual(result.captures.to_dict(), {"white": 1, "black": 0})
        self.assertEqual(result.blunders.to_dict(), {"white": 0, "black": 1})

    def test_even_trade_keeps_material_level(self):
        outcome = analyze_pgn(KNIGHT_TRADE, FixedEstimator())
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.result.material_diff, 0)
        self.assertEqual(outcome.result.captures.to_dict(), {"white": 1, "black": 1})

    def test_checks_and_aggressiveness(self):
        result = analyze_pgn(SCHOLARS_MATE, FixedEstimator()).result

        self.assertEqual(result.checks.to_dict(), {"white": 1, "black": 0})
        self.assertEqual(result.captures.white, 1)
        # (1 capture + 1 check) / 4 white moves
        self.assertEqual(result.aggressiveness.to_dict(), {"white": 50, "black": 0})
        self.assertEqual(result.blunders.to_dict(), {"white": 0, "black": 0})
        self.assertEqual(result.material_diff, 1)

    def test_opening_from_headers(self):
        self.assertEqual(analyze_pgn(SCHOLARS_MATE, FixedEstimator()).result.opening, "Italian Game")
        eco_only = '[ECO "C20"]\n\n1. e4 e5'
        self.assertEqual(analyze_pgn(eco_only, FixedEstimator()).result.opening, "ECO C20")
        self.assertEqual(analyze_pgn("1. e4 e5", FixedEstimator()).result.opening, "Unknown Opening")

    def test_accuracy_comes_from_estimator(self):
        estimator = FixedEstimator()
        result = analyze_pgn(QUEEN_HANGS, estimator).result
        self.assertEqual(result.accuracy.to_dict(), {"white": 90, "black": 80})
        self.assertEqual(estimator.calls, 1)

    def test_illegal_move_is_a_failure(self):
        outcome = analyze_pgn("1. e4 e5 2. Ke4", FixedEstimator())
        self.assertIsInstance(outcome, AnalysisFailure)
        self.assertFalse(outcome.ok)
        self.assertIn("invalid PGN", outcome.reason)

    def test_empty_pgn_is_a_failure(self):
        self.assertIsInstance(analyze_pgn("", FixedEstimator()), AnalysisFailure)
        self.assertIsInstance(analyze_pgn("   \n", FixedEstimator()), AnalysisFailure)

    def test_text_without_moves_is_a_failure(self):
        for text in ("hello world", '[Event "Live Chess"]\n[Result "*"]\n\n*'):
            outcome = analyze_pgn(text, FixedEstimator())
            self.assertIsInstance(outcome, AnalysisFailure)
            self.assertEqual(outcome.reason, "no moves in PGN")

    def test_to_dict_nests_counters(self):
        data = analyze_pgn(QUEEN_HANGS, FixedEstimator()).result.to_dict()
        self.assertEqual(data["analysis"]["material_diff"], 9)
        self.assertEqual(data["accuracy"], {"white": 90, "black": 80})
        self.assertGreater(data["processed_at"], 0)


class TestRandomAccuracyEstimator(unittest.TestCase):

    def test_winner_and_loser_ranges(self):
        estimator = RandomAccuracyEstimator(random.Random(7))
        for _ in range(200):
            acc = estimator.estimate("1-0", 60)
            self.assertTrue(75 <= acc.white <= 99)
            self.assertTrue(60 <= acc.black <= 85)

    def test_short_games_get_a_bonus(self):
        estimator = RandomAccuracyEstimator(random.Random(7))
        for _ in range(200):
            acc = estimator.estimate("1/2-1/2", 10)
            self.assertTrue(75 <= acc.white <= 99)
            self.assertTrue(75 <= acc.black <= 99)


class TestAnalyzeStoredGame(unittest.TestCase):

    def test_success_is_cached_on_the_game(self):
        estimator = FixedEstimator()
        analyzer = GameAnalyzer(estimator, delay_seconds=0)

        async def run():
            store = await new_store()
            await store.set("games", "123", {"username": "alice", "pgn": QUEEN_HANGS})
            first = await analyze_stored_game(store, analyzer, "123")
            second = await analyze_stored_game(store, analyzer, "123")
            doc = await store.get("games", "123")
            return first, second, doc

        first, second, doc = asyncio.run(run())
        self.assertEqual(first, second)
        self.assertEqual(estimator.calls, 1)
        self.assertEqual(doc["analysis"]["analysis"]["material_diff"], 9)
        self.assertEqual(doc["username"], "alice")

    def test_failure_is_not_cached(self):
        analyzer = GameAnalyzer(FixedEstimator(), delay_seconds=0)

        async def run():
            store = await new_store()
            await store.set("games", "bad", {"pgn": "1. e4 e5 2. Ke4"})
            outcome = await analyze_stored_game(store, analyzer, "bad")
            return outcome, await store.get("games", "bad")

        outcome, doc = asyncio.run(run())
        self.assertIn("error", outcome)
        self.assertNotIn("analysis", doc)

    def test_non_pgn_text_is_not_cached(self):
        estimator = FixedEstimator()
        analyzer = GameAnalyzer(estimator, delay_seconds=0)

        async def run():
            store = await new_store()
            await store.set("games", "junk", {"pgn": "hello world"})
            outcome = await analyze_stored_game(store, analyzer, "junk")
            return outcome, await store.get("games", "junk")

        outcome, doc = asyncio.run(run())
        self.assertEqual(outcome, {"error": "no moves in PGN"})
        self.assertNotIn("analysis", doc)
        self.assertEqual(estimator.calls, 0)

    def test_missing_game(self):
        analyzer = GameAnalyzer(FixedEstimator(), delay_seconds=0)

        async def run():
            store = await new_store()
            return await analyze_stored_game(store, analyzer, "nope")

        self.assertIsNone(asyncio.run(run()))


if __name__ == "__main__":
    unittest.main()
