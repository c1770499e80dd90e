"""
Tests for the game aggregator.
"""

import unittest

from chessstats.aggregator import aggregate_games, game_outcome, player_side
from chessstats.results import LOSS, WIN

from conftest import make_game

ITALIAN = '[Opening "Italian Game"]\n\n1. e4 e5 2. Nf3 Nc6 3. Bc4'
SICILIAN = "1. e4 c5 2. Nf3"
FRENCH = "1. e4 e6 2. d4"
UNKNOWN = "1. b3 e5 2. Bb2"
LONDON = "1. d4 d5 2. Bf4"


class TestPlayerSide(unittest.TestCase):

    def test_side_is_case_insensitive(self):
        game = make_game("Alice", "bob", "win", "resigned")
        self.assertEqual(player_side(game, "alice"), "white")
        self.assertEqual(player_side(game, "BOB"), "black")
        self.assertIsNone(player_side(game, "carol"))

    def test_outcome_from_player_perspective(self):
        game = make_game("alice", "bob", "win", "checkmated")
        self.assertEqual(game_outcome(game, "alice"), WIN)
        self.assertEqual(game_outcome(game, "bob"), LOSS)
        self.assertIsNone(game_outcome(game, "carol"))


class TestAggregateGames(unittest.TestCase):

    def setUp(self):
        self.games = [
            make_game("alice", "bob", "win", "resigned", end_time=1, pgn=ITALIAN,
                      black_rating=1400),
            make_game("carol", "alice", "win", "timeout", end_time=2, pgn=SICILIAN,
                      time_class="rapid", white_rating=1600),
            make_game("alice", "dave", "agreed", "agreed", end_time=3, pgn=ITALIAN,
                      black_rating=1501),
            make_game("erin", "alice", "resigned", "win", end_time=4, pgn=UNKNOWN,
                      white_rating=1700),
            # Not one of alice's games
            make_game("bob", "carol", "win", "resigned", end_time=5, pgn=FRENCH),
        ]

    def test_totals_partition_games(self):
        agg = aggregate_games(self.games, "alice")
        self.assertEqual((agg.wins, agg.losses, agg.draws), (2, 1, 1))
        self.assertEqual(agg.total, 4)
        self.assertEqual(agg.white_games + agg.black_games, agg.total)
        self.assertEqual((agg.white_games, agg.black_games), (2, 2))
        self.assertEqual(agg.winrate, 50.0)

    def test_unknown_openings_are_left_out_of_by_opening(self):
        agg = aggregate_games(self.games, "alice")
        names = [o.name for o in agg.by_opening]
        self.assertEqual(names, ["Italian Game", "Sicilian Defense"])
        self.assertLessEqual(sum(o.games for o in agg.by_opening), agg.total)

        italian = agg.by_opening[0]
        self.assertEqual((italian.games, italian.wins, italian.draws), (2, 1, 1))
        self.assertEqual(italian.winrate, 50.0)

    def test_by_time_class(self):
        agg = aggregate_games(self.games, "alice")
        self.assertEqual(agg.by_time_class["blitz"].total, 3)
        self.assertEqual(agg.by_time_class["rapid"].losses, 1)
        self.assertEqual(
            sum(c.total for c in agg.by_time_class.values()), agg.total
        )

    def test_opponent_rating_and_first_move(self):
        agg = aggregate_games(self.games, "alice")
        # 1400, 1600, 1501, 1700
        self.assertEqual(agg.avg_opponent_rating, 1550)
        self.assertEqual(agg.top_first_move, "e4")

    def test_opening_winrate_rounds_to_one_decimal(self):
        games = [
            make_game("alice", "x", "win", "resigned", pgn=LONDON),
            make_game("alice", "y", "win", "resigned", pgn=LONDON),
            make_game("alice", "z", "resigned", "win", pgn=LONDON),
        ]
        agg = aggregate_games(games, "alice")
        self.assertEqual(agg.by_opening[0].winrate, 66.7)
        self.assertEqual(agg.winrate, 66.7)

    def test_equal_counts_keep_first_seen_order(self):
        games = [
            make_game("alice", "x", "win", "resigned", pgn=FRENCH),
            make_game("alice", "y", "win", "resigned", pgn=SICILIAN),
        ]
        agg = aggregate_games(games, "alice")
        self.assertEqual([o.name for o in agg.by_opening], ["French Defense", "Sicilian Defense"])

    def test_three_as_white_two_as_black(self):
        games = [
            make_game("alice", "a", "win", "resigned"),
            make_game("alice", "b", "win", "timeout"),
            make_game("alice", "c", "abandoned", "win"),
            make_game("d", "alice", "checkmated", "win"),
            make_game("e", "alice", "repetition", "repetition"),
        ]
        agg = aggregate_games(games, "alice")
        self.assertEqual(
            (agg.wins, agg.losses, agg.draws, agg.total), (3, 1, 1, 5)
        )
        self.assertEqual((agg.white_games, agg.black_games), (3, 2))

    def test_empty_input(self):
        agg = aggregate_games([], "alice")
        self.assertEqual(agg.total, 0)
        self.assertEqual(agg.winrate, 0.0)
        self.assertEqual(agg.by_opening, [])
        self.assertIsNone(agg.avg_opponent_rating)
        self.assertEqual(agg.top_first_move, "Unknown")
        self.assertIsNone(agg.current_streak_kind)

    def test_streaks_follow_end_time_not_input_order(self):
        outcomes = {1: "win", 2: "win", 3: "resigned", 4: "win", 5: "win", 6: "win"}
        games = [
            make_game("alice", f"opp{t}", res, "win" if res != "win" else "resigned", end_time=t)
            for t, res in outcomes.items()
        ]
        games.reverse()
        games.insert(0, games.pop(3))

        agg = aggregate_games(games, "alice")
        self.assertEqual(agg.current_streak_kind, WIN)
        self.assertEqual(agg.current_streak, 3)
        self.assertEqual(agg.best_win_streak, 3)

    def test_to_dict_shape(self):
        data = aggregate_games(self.games, "alice").to_dict()
        self.assertEqual(data["total"], 4)
        self.assertEqual(data["by_opening"][0]["name"], "Italian Game")
        self.assertEqual(data["by_time_class"]["rapid"]["losses"], 1)
        self.assertIn("current_streak", data)


if __name__ == "__main__":
    unittest.main()
