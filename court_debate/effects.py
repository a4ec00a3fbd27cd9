"""Phase 2: Effect resolver – decorator-based registry over the EffectDef variants."""

from __future__ import annotations

import math
import warnings
from dataclasses import replace
from typing import Callable

from court_debate import deck
from court_debate.deck import DrawFn
from court_debate.models import (
    OPPONENT, PLAYER, AddStatus, BurnCard, Computed, DealShame, DiscardCard,
    DrainPatience, DrawCards, EffectContext, EffectDef, GainPoise, GainStanding,
    HealFace, MatchState, ModifierStat, RemoveStatus, RevealIntention,
    ShuffleDiscard, TargetPatienceCost,
)
from court_debate.standing import add_standing
from court_debate.statuses import (
    add_reveal_status, add_status_from_template, get_modifier_additive,
    remove_status_by_tag, remove_status_by_template,
)

EffectHandler = Callable[
    [MatchState, EffectDef, EffectContext, "DrawFn | None", float], MatchState
]

EFFECT_REGISTRY: dict[str, EffectHandler] = {}


def register_effect(name: str):
    """Decorator to register an effect handler."""
    def decorator(fn: EffectHandler) -> EffectHandler:
        EFFECT_REGISTRY[name] = fn
        return fn
    return decorator


def resolve_effect(
    state: MatchState,
    effect: EffectDef,
    ctx: EffectContext,
    draw_cards: DrawFn | None = None,
    multiplier: float = 1,
) -> MatchState:
    handler = EFFECT_REGISTRY.get(effect.kind)
    if handler is None:
        warnings.warn(f"Unknown effect type: {effect.kind}", RuntimeWarning, stacklevel=2)
        return state
    return handler(state, effect, ctx, draw_cards, multiplier)


def resolve_effects(
    state: MatchState,
    effects: tuple[EffectDef, ...],
    ctx: EffectContext | None = None,
    draw_cards: DrawFn | None = None,
    multiplier: float = 1,
) -> MatchState:
    """Run ``effects`` in list order, scaling numeric values by ``multiplier``."""
    ctx = ctx if ctx is not None else EffectContext()
    for effect in effects:
        state = resolve_effect(state, effect, ctx, draw_cards, multiplier)
    return state


# ---------------------------------------------------------------------------
# Utility
# ---------------------------------------------------------------------------

def scale(value: int, multiplier: float) -> int:
    return math.floor(value * multiplier)


def _target_opponent_id(state: MatchState, ctx: EffectContext) -> str | None:
    opp = state.opponent_by_id(ctx.target_opponent_id)
    return opp.id if opp is not None else None


# ---------------------------------------------------------------------------
# Resource effects
# ---------------------------------------------------------------------------

@register_effect("gain_standing")
def _gain_standing(state, effect: GainStanding, ctx, draw_cards, multiplier) -> MatchState:
    amount = scale(effect.value, multiplier)
    if effect.target == OPPONENT:
        return add_standing(state, OPPONENT, amount, _target_opponent_id(state, ctx))
    return add_standing(state, PLAYER, amount)


@register_effect("deal_shame")
def _deal_shame(state, effect: DealShame, ctx, draw_cards, multiplier) -> MatchState:
    opp = state.opponent_by_id(ctx.target_opponent_id)
    if opp is None:
        return state
    amount = scale(effect.value, multiplier)
    if amount > 0:
        amount += get_modifier_additive(state, ModifierStat.DAMAGE_BONUS, owner=PLAYER)
    return state.replace_opponent(replace(opp, face=max(0, opp.face - amount)))


@register_effect("heal_face")
def _heal_face(state, effect: HealFace, ctx, draw_cards, multiplier) -> MatchState:
    p = state.player
    healed = min(p.max_face, p.face + scale(effect.value, multiplier))
    return replace(state, player=replace(p, face=healed))


@register_effect("gain_poise")
def _gain_poise(state, effect: GainPoise, ctx, draw_cards, multiplier) -> MatchState:
    p = state.player
    return replace(state, player=replace(p, poise=p.poise + scale(effect.value, multiplier)))


@register_effect("drain_patience")
def _drain_patience(state, effect: DrainPatience, ctx, draw_cards, multiplier) -> MatchState:
    return replace(state, patience=state.patience - scale(effect.value, multiplier))


@register_effect("draw_cards")
def _draw_cards(state, effect: DrawCards, ctx, draw_cards, multiplier) -> MatchState:
    if draw_cards is None:
        return state
    return draw_cards(state, scale(effect.count, multiplier))


# ---------------------------------------------------------------------------
# Status effects
# ---------------------------------------------------------------------------

@register_effect("add_status")
def _add_status(state, effect: AddStatus, ctx, draw_cards, multiplier) -> MatchState:
    if effect.target == OPPONENT:
        return add_status_from_template(
            state, effect.status_id, owner=OPPONENT, duration=effect.duration,
            opponent_id=_target_opponent_id(state, ctx),
        )
    return add_status_from_template(
        state, effect.status_id, owner=PLAYER, duration=effect.duration,
    )


@register_effect("remove_status")
def _remove_status(state, effect: RemoveStatus, ctx, draw_cards, multiplier) -> MatchState:
    if effect.status_id is not None:
        state = remove_status_by_template(state, effect.status_id, owner=effect.target)
    if effect.tag is not None:
        state = remove_status_by_tag(state, effect.tag, owner=effect.target)
    return state


@register_effect("reveal_intention")
def _reveal_intention(state, effect: RevealIntention, ctx, draw_cards, multiplier) -> MatchState:
    opponent_id = _target_opponent_id(state, ctx)
    if opponent_id is None:
        return state
    return add_reveal_status(state, opponent_id, effect.count)


# ---------------------------------------------------------------------------
# Hand manipulation
# ---------------------------------------------------------------------------

def _require_rng(ctx: EffectContext):
    if ctx.rng is None:
        raise ValueError("Random card selection requires EffectContext.rng")
    return ctx.rng


@register_effect("burn_card")
def _burn_card(state, effect: BurnCard, ctx, draw_cards, multiplier) -> MatchState:
    if effect.source == "selected":
        return state  # targeting already moved the card
    rng = _require_rng(ctx)
    for _ in range(scale(effect.count, multiplier)):
        state = deck.burn_random_card(state, rng, exclude_id=ctx.source_card_id)
    return state


@register_effect("discard_card")
def _discard_card(state, effect: DiscardCard, ctx, draw_cards, multiplier) -> MatchState:
    if effect.source == "selected":
        return state
    rng = _require_rng(ctx)
    for _ in range(scale(effect.count, multiplier)):
        state = deck.discard_random_card(state, rng, exclude_id=ctx.source_card_id)
    return state


@register_effect("shuffle_discard")
def _shuffle_discard(state, effect: ShuffleDiscard, ctx, draw_cards, multiplier) -> MatchState:
    return deck.shuffle_discard_into_deck(state, _require_rng(ctx))


# ---------------------------------------------------------------------------
# Computed effects
# ---------------------------------------------------------------------------

def compute_value(state: MatchState, compute: TargetPatienceCost, ctx: EffectContext) -> int:
    if isinstance(compute, TargetPatienceCost):
        if not ctx.selected_cards:
            return 0
        return ctx.selected_cards[0].patience_cost * compute.multiplier
    warnings.warn(f"Unknown computed value: {compute!r}", RuntimeWarning, stacklevel=2)
    return 0


def _inject(template: EffectDef, value: int) -> EffectDef:
    if hasattr(template, "value"):
        return replace(template, value=value)
    if hasattr(template, "count"):
        return replace(template, count=value)
    return template


@register_effect("computed")
def _computed(state, effect: Computed, ctx, draw_cards, multiplier) -> MatchState:
    value = scale(compute_value(state, effect.compute, ctx), multiplier)
    return resolve_effect(state, _inject(effect.template, value), ctx, draw_cards, 1)
