"""Cost calculator – base cost + judge tax + status discounts + harmony adjustment."""

from __future__ import annotations

from dataclasses import dataclass, replace

from court_debate.harmony import calculate_flow
from court_debate.models import PLAYER, Card, Flow, MatchState, ModifierStat
from court_debate.statuses import get_modifier_additive

CHAOS_MULTIPLIER = 2

# (patience delta, face delta) per flow tier
_HARMONY_ADJUSTMENT: dict[Flow, tuple[int, int]] = {
    Flow.BALANCED: (-1, 0),
    Flow.DISSONANT: (1, 1),
    Flow.CHAOS: (2, 2),
    Flow.NEUTRAL: (0, 0),
}


@dataclass(frozen=True)
class EffectiveCosts:
    patience: int
    face: int
    base_patience: int
    base_face: int
    judge_modifier: int
    status_modifier: int
    harmony_modifier: int
    flow: Flow

    @property
    def modifier(self) -> str:
        """Short label for the harmony adjustment."""
        if self.flow == Flow.BALANCED:
            return "-1 (balanced)"
        if self.flow == Flow.DISSONANT:
            return "+1 (dissonant)"
        if self.flow == Flow.CHAOS:
            return "+2 (chaos)"
        return ""

    @property
    def is_reduced(self) -> bool:
        return self.patience < self.base_patience

    @property
    def is_increased(self) -> bool:
        return self.patience > self.base_patience or self.face > self.base_face

    @property
    def effect_multiplier(self) -> int:
        return CHAOS_MULTIPLIER if self.flow == Flow.CHAOS else 1


def calculate_effective_costs(card: Card, state: MatchState) -> EffectiveCosts:
    flow = calculate_flow(state.last_element, card.element, state.harmony_streak).flow

    judge_tax = state.judge.effects.element_tax(card.element)
    status_discount = (
        get_element_cost_additive(state, card)
        + _additive(state, ModifierStat.PATIENCE_COST)
    )

    patience = card.patience_cost + judge_tax + status_discount
    face = card.face_cost
    patience_delta, face_delta = _HARMONY_ADJUSTMENT[flow]
    adjusted = patience + patience_delta
    face += face_delta

    return EffectiveCosts(
        patience=max(0, adjusted),
        face=face,
        base_patience=card.patience_cost,
        base_face=card.face_cost,
        judge_modifier=judge_tax,
        status_modifier=status_discount,
        harmony_modifier=patience_delta,
        flow=flow,
    )


def get_element_cost_additive(state: MatchState, card: Card) -> int:
    return get_modifier_additive(
        state, ModifierStat.ELEMENT_COST, owner=PLAYER, element=card.element,
    )


def _additive(state: MatchState, stat: ModifierStat) -> int:
    return get_modifier_additive(state, stat, owner=PLAYER)


def deduct_face_cost(state: MatchState, amount: int) -> MatchState:
    """Pay ``amount`` from poise first, the remainder from face (floored at 0)."""
    if amount <= 0:
        return state
    player = state.player
    absorbed = min(player.poise, amount)
    remainder = amount - absorbed
    return replace(state, player=replace(
        player,
        poise=player.poise - absorbed,
        face=max(0, player.face - remainder),
    ))


def calculate_chaos_modifiers(flow: Flow) -> int:
    """Effect multiplier for a flow tier."""
    return CHAOS_MULTIPLIER if flow == Flow.CHAOS else 1
