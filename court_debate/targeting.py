"""Targeting service – hand-card target queries, random selection, destinations."""

from __future__ import annotations

import random

from court_debate.deck import burn_card, discard_card
from court_debate.models import (
    OPPONENT, AddStatus, Card, Computed, DealShame, EffectDef, GainStanding,
    MatchState, RevealIntention,
)


def get_valid_targets(state: MatchState, card: Card) -> tuple[Card, ...]:
    """Hand cards ``card`` may target (never itself)."""
    req = card.target_requirement
    if req is None or req.type == "none":
        return ()
    targets = [c for c in state.player.hand if c.id != card.id]
    if req.element is not None:
        targets = [c for c in targets if c.element == req.element]
    return tuple(targets)


def apply_target_destination(
    state: MatchState, card: Card, selected: tuple[Card, ...],
) -> MatchState:
    req = card.target_requirement
    if req is None:
        return state
    for target in selected:
        if req.destination == "burn":
            state = burn_card(state, target.id)
        else:
            state = discard_card(state, target.id)
    return state


def resolve_random_selection(
    state: MatchState, card: Card, rng: random.Random,
) -> tuple[MatchState, tuple[Card, ...]]:
    """Pick targets for a random-mode card and move them to their destination."""
    req = card.target_requirement
    if req is None or req.selection_mode != "random":
        return state, ()
    candidates = list(get_valid_targets(state, card))
    if not candidates:
        return state, ()
    selected = tuple(rng.sample(candidates, min(req.count, len(candidates))))
    return apply_target_destination(state, card, selected), selected


def resolve_selection(
    state: MatchState,
    card: Card,
    chosen: tuple[Card, ...],
    rng: random.Random,
) -> tuple[MatchState, tuple[Card, ...]]:
    """Settle targeting before effects run: random picks, or the chosen cards."""
    if not card.needs_target:
        return state, ()
    if card.target_requirement.selection_mode == "random":
        return resolve_random_selection(state, card, rng)
    valid = {c.id for c in get_valid_targets(state, card)}
    selected = tuple(c for c in chosen if c.id in valid)[:card.target_requirement.count]
    return apply_target_destination(state, card, selected), selected


def _effect_targets_opponent(effect: EffectDef) -> bool:
    match effect:
        case DealShame() | RevealIntention():
            return True
        case AddStatus(target=target) | GainStanding(target=target):
            return target == OPPONENT
        case Computed(template=template):
            return _effect_targets_opponent(template)
    return False


def targets_opponent(card: Card) -> bool:
    """True when any of ``card``'s effects lands on a chosen opponent."""
    return any(_effect_targets_opponent(e) for e in card.effects)


def opponent_targets(state: MatchState, card: Card) -> tuple[str | None, ...]:
    """Opponent ids a play of ``card`` can aim at; ``(None,)`` means the default."""
    if len(state.opponents) < 2 or not targets_opponent(card):
        return (None,)
    return tuple(opp.id for opp in state.opponents)
