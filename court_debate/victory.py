"""Victory evaluator – face-out first, then patience-out tier comparison."""

from __future__ import annotations

from dataclasses import replace

from court_debate.models import MatchState, Winner
from court_debate.standing import max_opponent_tier


def evaluate_winner(state: MatchState) -> Winner | None:
    if state.player.face <= 0:
        return Winner.OPPONENT
    if state.patience <= 0:
        if state.player.standing.current_tier > max_opponent_tier(state):
            return Winner.PLAYER
        return Winner.OPPONENT
    return None


def check_victory(state: MatchState) -> MatchState:
    if state.is_game_over:
        return state
    winner = evaluate_winner(state)
    if winner is None:
        return state
    return replace(state, is_game_over=True, winner=winner)
