"""Playability pre-check – the caller validates legality before invoking the engine."""

from __future__ import annotations

from dataclasses import dataclass

from court_debate.costs import calculate_effective_costs
from court_debate.models import Card, MatchState
from court_debate.targeting import get_valid_targets


@dataclass(frozen=True)
class Playability:
    playable: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.playable


def is_card_playable(card: Card, state: MatchState) -> Playability:
    if state.is_game_over:
        return Playability(False, "The debate is over")

    costs = calculate_effective_costs(card, state)
    if state.patience < costs.patience:
        return Playability(
            False, f"Not enough Patience (need {costs.patience}, have {state.patience})",
        )

    pool = state.player.poise + state.player.face
    if pool < costs.face:
        return Playability(False, f"Not enough Face/Poise (need {costs.face}, have {pool})")

    req = card.target_requirement
    if req is not None and req.is_play_requirement and not req.optional:
        if not get_valid_targets(state, card):
            return Playability(False, req.prompt or "No valid targets for required effect")

    return Playability(True)
