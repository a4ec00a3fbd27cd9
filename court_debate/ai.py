"""Phase 6: AI agents – ABC, GreedyAI, SimpleAI, RandomAI, HumanAgent."""

from __future__ import annotations

import random
from abc import ABC, abstractmethod

from court_debate.actions import Action, EndTurn, PlayCard, apply_action
from court_debate.combat import CombatEngine
from court_debate.models import MatchState, Winner
from court_debate.standing import get_total_favor


class Agent(ABC):
    @abstractmethod
    def choose_action(self, state: MatchState, legal_actions: list[Action]) -> Action:
        ...


# ---------------------------------------------------------------------------
# GreedyAI
# ---------------------------------------------------------------------------

def _evaluate(state: MatchState) -> float:
    if state.is_game_over:
        return 1000.0 if state.winner == Winner.PLAYER else -1000.0

    tiers = state.judge.tier_structure
    p = state.player
    best_opp_favor = max(
        (get_total_favor(o.standing, tiers) for o in state.opponents), default=0,
    )

    score = 0.0
    score += get_total_favor(p.standing, tiers) * 3.0     # my standing
    score -= best_opp_favor * 2.0                           # rival standing
    score += sum(o.max_face - o.face for o in state.opponents) * 1.0
    score += p.face * 1.0
    score += p.poise * 0.5
    score += state.patience * 0.5
    score += state.harmony_streak * 0.5
    return score


class GreedyAI(Agent):
    """One-ply lookahead: play the card that most improves the evaluation.

    Each candidate is simulated with a private rng so choosing never
    disturbs the match's own random stream.
    """

    def __init__(self, seed: int = 0) -> None:
        self.seed = seed

    def choose_action(self, state: MatchState, legal_actions: list[Action]) -> Action:
        best_action: Action = EndTurn()
        best_score = _evaluate(state)

        for action in legal_actions:
            if isinstance(action, EndTurn):
                continue
            sim_engine = CombatEngine(random.Random(self.seed + state.next_id))
            sim = apply_action(state, action, sim_engine)
            score = _evaluate(sim)
            if score > best_score:
                best_score = score
                best_action = action

        return best_action


# ---------------------------------------------------------------------------
# SimpleAI / RandomAI
# ---------------------------------------------------------------------------

class SimpleAI(Agent):
    """Plays the first legal non-bad card, then ends the turn."""

    def choose_action(self, state: MatchState, legal_actions: list[Action]) -> Action:
        for action in legal_actions:
            if isinstance(action, PlayCard) and not state.player.hand[action.hand_index].is_bad:
                return action
        return EndTurn()


class RandomAI(Agent):
    def __init__(self, seed: int = 0) -> None:
        self.rng = random.Random(seed)

    def choose_action(self, state: MatchState, legal_actions: list[Action]) -> Action:
        if not legal_actions:
            return EndTurn()
        return self.rng.choice(legal_actions)


# ---------------------------------------------------------------------------
# HumanAgent (stdin)
# ---------------------------------------------------------------------------

class HumanAgent(Agent):
    def choose_action(self, state: MatchState, legal_actions: list[Action]) -> Action:
        from court_debate.display import render_actions, render_state
        render_state(state)
        render_actions(legal_actions, state)

        while True:
            try:
                raw = input("Choose action number: ").strip()
                idx = int(raw)
                if 0 <= idx < len(legal_actions):
                    return legal_actions[idx]
                print(f"  Invalid index. Enter 0-{len(legal_actions)-1}.")
            except ValueError:
                print("  Enter a number.")
            except EOFError:
                return EndTurn()
