"""Tests for the victory evaluator."""

import unittest

from court_debate.models import MatchState, Opponent, Player, Standing, Winner
from court_debate.victory import check_victory, evaluate_winner


def _make_state(face=60, patience=10, player_tier=0, opponent_tiers=(0,)) -> MatchState:
    return MatchState(
        player=Player(face=face, standing=Standing(player_tier, 0)),
        opponents=tuple(
            Opponent(id=f"opp_{i}", name="Rival", face=40, max_face=40,
                     standing=Standing(tier, 0))
            for i, tier in enumerate(opponent_tiers)
        ),
        patience=patience,
    )


class TestEvaluateWinner(unittest.TestCase):
    def test_ongoing(self):
        self.assertIsNone(evaluate_winner(_make_state()))

    def test_face_out_loses(self):
        self.assertEqual(evaluate_winner(_make_state(face=0)), Winner.OPPONENT)

    def test_face_out_takes_priority_over_patience(self):
        state = _make_state(face=0, patience=0, player_tier=3)
        self.assertEqual(evaluate_winner(state), Winner.OPPONENT)

    def test_patience_out_higher_tier_wins(self):
        state = _make_state(patience=0, player_tier=2, opponent_tiers=(1,))
        self.assertEqual(evaluate_winner(state), Winner.PLAYER)

    def test_patience_out_tie_loses(self):
        state = _make_state(patience=-3, player_tier=1, opponent_tiers=(1,))
        self.assertEqual(evaluate_winner(state), Winner.OPPONENT)

    def test_patience_out_against_best_opponent(self):
        state = _make_state(patience=0, player_tier=2, opponent_tiers=(0, 3))
        self.assertEqual(evaluate_winner(state), Winner.OPPONENT)


class TestCheckVictory(unittest.TestCase):
    def test_sets_game_over(self):
        state = check_victory(_make_state(face=0))
        self.assertTrue(state.is_game_over)
        self.assertEqual(state.winner, Winner.OPPONENT)

    def test_finished_game_is_left_alone(self):
        state = check_victory(_make_state(patience=0, player_tier=1))
        self.assertEqual(state.winner, Winner.PLAYER)
        self.assertIs(check_victory(state), state)

    def test_ongoing_is_unchanged(self):
        state = _make_state()
        self.assertIs(check_victory(state), state)


if __name__ == "__main__":
    unittest.main()
