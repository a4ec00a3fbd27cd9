"""Status / modifier system – storage, aggregation, triggers, and duration ticks."""

from __future__ import annotations

import math
import warnings
from dataclasses import replace
from typing import TYPE_CHECKING, Iterator

from court_debate.models import (
    OPPONENT, PLAYER, EffectContext, Element, MatchState, ModifierOp,
    ModifierStat, Status, StatusModifier, StatusTrigger,
)

if TYPE_CHECKING:
    from court_debate.effects import DrawFn

REVEALED_TAG = "revealed"
REVEAL_TEMPLATE_ID = "keen_insight"


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

def add_status(state: MatchState, status: Status) -> MatchState:
    return replace(state, statuses=state.statuses + (status,))


def add_status_from_template(
    state: MatchState,
    template_id: str,
    owner: str = PLAYER,
    duration: int | None = None,
    opponent_id: str | None = None,
) -> MatchState:
    """Instantiate a registered template. Unknown ids are a no-op."""
    template = state.status_templates.get(template_id)
    if template is None:
        warnings.warn(f"Unknown status template: {template_id}", RuntimeWarning, stacklevel=2)
        return state

    if owner == OPPONENT and opponent_id is None and state.opponents:
        opponent_id = state.opponents[0].id

    status_id, state = state.alloc_id("status")
    status = Status(
        id=status_id,
        name=template.name,
        description=template.description,
        owner=owner,
        trigger=template.trigger,
        turns_remaining=template.default_duration if duration is None else duration,
        triggers_remaining=template.default_trigger_count,
        modifiers=template.modifiers,
        triggered_effects=template.triggered_effects,
        tags=template.tags,
        is_positive=template.is_positive,
        template_id=template.id,
        opponent_id=opponent_id if owner == OPPONENT else None,
    )
    return add_status(state, status)


def remove_status(state: MatchState, status_id: str) -> MatchState:
    return replace(state, statuses=tuple(s for s in state.statuses if s.id != status_id))


def remove_status_by_template(
    state: MatchState, template_id: str, owner: str | None = None,
) -> MatchState:
    return replace(state, statuses=tuple(
        s for s in state.statuses
        if not (s.template_id == template_id and _owned_by(s, owner))
    ))


def remove_status_by_tag(
    state: MatchState,
    tag: str,
    owner: str | None = None,
    opponent_id: str | None = None,
) -> MatchState:
    return replace(state, statuses=tuple(
        s for s in state.statuses
        if not (tag in s.tags and _owned_by(s, owner, opponent_id))
    ))


def _replace_status(state: MatchState, status: Status) -> MatchState:
    return replace(state, statuses=tuple(
        status if s.id == status.id else s for s in state.statuses
    ))


def _find_status(state: MatchState, status_id: str) -> Status | None:
    for s in state.statuses:
        if s.id == status_id:
            return s
    return None


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def _owned_by(status: Status, owner: str | None, opponent_id: str | None = None) -> bool:
    if owner is not None and status.owner != owner:
        return False
    if opponent_id is not None and status.opponent_id != opponent_id:
        return False
    return True


def get_statuses(
    state: MatchState, owner: str | None = None, opponent_id: str | None = None,
) -> tuple[Status, ...]:
    return tuple(s for s in state.statuses if _owned_by(s, owner, opponent_id))


def get_statuses_by_trigger(
    state: MatchState, trigger: StatusTrigger, owner: str | None = None,
) -> tuple[Status, ...]:
    return tuple(
        s for s in state.statuses if s.trigger == trigger and _owned_by(s, owner)
    )


def has_status(state: MatchState, template_id: str, owner: str | None = None) -> bool:
    return any(
        s.template_id == template_id and _owned_by(s, owner) for s in state.statuses
    )


def has_tag(
    state: MatchState,
    tag: str,
    owner: str | None = None,
    trigger: StatusTrigger | None = None,
) -> bool:
    return any(
        tag in s.tags and _owned_by(s, owner) and (trigger is None or s.trigger == trigger)
        for s in state.statuses
    )


# ---------------------------------------------------------------------------
# Modifier aggregation
# ---------------------------------------------------------------------------

def _iter_modifiers(
    state: MatchState,
    stat: ModifierStat,
    owner: str | None,
    element: Element | None,
    opponent_id: str | None,
) -> Iterator[StatusModifier]:
    """Yield matching modifiers in insertion order.

    An element query matches element-less and same-element modifiers; an
    element-less query matches element-less modifiers only.
    """
    for status in state.statuses:
        if not _owned_by(status, owner, opponent_id):
            continue
        for mod in status.modifiers:
            if mod.stat != stat:
                continue
            if mod.element is not None and mod.element != element:
                continue
            yield mod


def get_modifier_additive(
    state: MatchState,
    stat: ModifierStat,
    owner: str | None = None,
    element: Element | None = None,
    opponent_id: str | None = None,
) -> int:
    total = sum(
        m.value for m in _iter_modifiers(state, stat, owner, element, opponent_id)
        if m.op == ModifierOp.ADD
    )
    return math.floor(total)


def get_modifier_multiplier(
    state: MatchState,
    stat: ModifierStat,
    owner: str | None = None,
    element: Element | None = None,
    opponent_id: str | None = None,
) -> float:
    product = 1.0
    for m in _iter_modifiers(state, stat, owner, element, opponent_id):
        if m.op == ModifierOp.MULTIPLY:
            product *= m.value
    return product


def get_modifier_total(
    state: MatchState,
    stat: ModifierStat,
    owner: str | None = None,
    element: Element | None = None,
    opponent_id: str | None = None,
) -> int:
    """ADD sum times MULTIPLY product; the last SET modifier overrides both."""
    additive = 0.0
    product = 1.0
    override: float | None = None
    for m in _iter_modifiers(state, stat, owner, element, opponent_id):
        if m.op == ModifierOp.ADD:
            additive += m.value
        elif m.op == ModifierOp.MULTIPLY:
            product *= m.value
        elif m.op == ModifierOp.SET:
            override = m.value
    if override is not None:
        return math.floor(override)
    return math.floor(additive * product)


# ---------------------------------------------------------------------------
# Triggers and ticking
# ---------------------------------------------------------------------------

def process_status_trigger(
    state: MatchState,
    trigger: StatusTrigger,
    owner: str | None = None,
    ctx: EffectContext | None = None,
    draw_cards: "DrawFn | None" = None,
) -> MatchState:
    """Fire every status matching ``trigger`` in the order it was added."""
    from court_debate.effects import resolve_effects

    base_ctx = ctx if ctx is not None else EffectContext()
    firing = [s.id for s in get_statuses_by_trigger(state, trigger, owner)]

    for status_id in firing:
        status = _find_status(state, status_id)
        if status is None:
            continue  # removed by an earlier status in this pass
        sub_ctx = replace(
            base_ctx,
            target_opponent_id=status.opponent_id or base_ctx.target_opponent_id,
            source_card_id=None,
        )
        state = resolve_effects(state, status.triggered_effects, sub_ctx, draw_cards)
        state = _consume_trigger(state, status.id)
    return state


def _consume_trigger(state: MatchState, status_id: str) -> MatchState:
    status = _find_status(state, status_id)
    if status is None or status.triggers_remaining is None:
        return state
    remaining = status.triggers_remaining - 1
    if remaining <= 0:
        return remove_status(state, status_id)
    return _replace_status(state, replace(status, triggers_remaining=remaining))


def tick_statuses(state: MatchState) -> MatchState:
    kept: list[Status] = []
    for status in state.statuses:
        if status.is_permanent:
            kept.append(status)
            continue
        remaining = status.turns_remaining - 1
        if remaining > 0:
            kept.append(replace(status, turns_remaining=remaining))
    return replace(state, statuses=tuple(kept))


# ---------------------------------------------------------------------------
# Reveal tracking
# ---------------------------------------------------------------------------

def _reveal_status(state: MatchState, opponent_id: str) -> Status | None:
    for s in state.statuses:
        if REVEALED_TAG in s.tags and s.owner == OPPONENT and s.opponent_id == opponent_id:
            return s
    return None


def add_reveal_status(state: MatchState, opponent_id: str, count: int = 1) -> MatchState:
    """Reveal an opponent's upcoming intentions for ``count`` advances (stacks)."""
    existing = _reveal_status(state, opponent_id)
    if existing is not None:
        stacked = (existing.triggers_remaining or 0) + count
        return _replace_status(state, replace(existing, triggers_remaining=stacked))

    template = state.status_templates.get(REVEAL_TEMPLATE_ID)
    status_id, state = state.alloc_id("status")
    return add_status(state, Status(
        id=status_id,
        name=template.name if template else "Keen Insight",
        description=template.description if template else "Reveal next intention(s)",
        owner=OPPONENT,
        trigger=StatusTrigger.PASSIVE,
        turns_remaining=-1,
        triggers_remaining=count,
        tags=(REVEALED_TAG,),
        is_positive=False,
        template_id=REVEAL_TEMPLATE_ID,
        opponent_id=opponent_id,
    ))


def consume_reveal_trigger(state: MatchState, opponent_id: str) -> MatchState:
    status = _reveal_status(state, opponent_id)
    if status is None:
        return state
    return _consume_trigger(state, status.id)


def is_opponent_revealed(state: MatchState, opponent_id: str) -> bool:
    return _reveal_status(state, opponent_id) is not None
