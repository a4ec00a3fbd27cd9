"""Opponent action resolver – intentions, intention queue, and the flustered state."""

from __future__ import annotations

import math
import random
from dataclasses import replace
from typing import TYPE_CHECKING

from court_debate.models import (
    OPPONENT, PLAYER, EffectContext, GameEvent, Intention, IntentionType,
    MatchState, ModifierStat, Opponent, StatusTrigger,
)
from court_debate.standing import add_standing, get_standing, remove_standing, get_total_favor
from court_debate.statuses import (
    consume_reveal_trigger, get_modifier_additive, get_modifier_multiplier,
    has_tag, process_status_trigger,
)

if TYPE_CHECKING:
    from court_debate.combat_log import CombatLog

NEGATE_ATTACK_TAG = "negate_attack"

FLUSTERED_INTENTIONS: tuple[Intention, ...] = (
    Intention("Stammering Retort", IntentionType.FLUSTERED, 0),
    Intention("Flushed Silence", IntentionType.FLUSTERED, 0),
    Intention("Fumbled Scroll", IntentionType.FLUSTERED, 0),
    Intention("Nervous Laughter", IntentionType.FLUSTERED, 0),
)


def pick_random_intention(pool: tuple[Intention, ...], rng: random.Random) -> Intention | None:
    if not pool:
        return None
    return rng.choice(pool)


def pick_random_flustered(rng: random.Random) -> Intention:
    return rng.choice(FLUSTERED_INTENTIONS)


def describe_intention(intention: Intention) -> str:
    match intention.type:
        case IntentionType.ATTACK:
            return f"Deals {intention.value} shame"
        case IntentionType.STANDING_GAIN:
            return f"Gains {intention.value} standing"
        case IntentionType.STANDING_STEAL:
            return f"Steals {intention.value} standing"
        case IntentionType.STALL:
            return f"Drains {intention.value} patience"
        case IntentionType.FLUSTERED:
            return "Opponent is flustered!"
    return ""


def _emit(state: MatchState, kind: str, name: str, description: str, value: int) -> MatchState:
    event_id, state = state.alloc_id("evt")
    event = GameEvent(
        id=event_id, type=kind, name=name, description=description,
        turn=state.turn_number, value=value,
    )
    return replace(state, events=state.events + (event,))


# ---------------------------------------------------------------------------
# Action execution
# ---------------------------------------------------------------------------

def _resolve_attack(
    state: MatchState, intention: Intention, rng: random.Random,
) -> tuple[MatchState, int | None]:
    """Returns the new state and the face lost, or None when the attack was negated."""
    damage = math.floor(intention.value * state.judge.effects.damage_modifier)
    negated = has_tag(state, NEGATE_ATTACK_TAG, owner=PLAYER, trigger=StatusTrigger.ON_DAMAGE)
    damage += get_modifier_additive(state, ModifierStat.DAMAGE_TAKEN, owner=PLAYER)
    state = process_status_trigger(
        state, StatusTrigger.ON_DAMAGE, PLAYER, EffectContext(rng=rng),
    )
    if negated:
        return state, None

    damage = max(0, damage)
    p = state.player
    absorbed = min(p.poise, damage)
    face_lost = min(p.face, damage - absorbed)
    state = replace(state, player=replace(p, poise=p.poise - absorbed, face=p.face - face_lost))
    return state, face_lost


def _opponent_gain(state: MatchState, opp: Opponent, value: int) -> int:
    multiplier = state.judge.effects.favor_gain_modifier * get_modifier_multiplier(
        state, ModifierStat.FAVOR_GAIN_MULTIPLIER, owner=OPPONENT, opponent_id=opp.id,
    )
    bonus = get_modifier_additive(
        state, ModifierStat.STANDING_GAIN, owner=OPPONENT, opponent_id=opp.id,
    )
    return max(0, math.floor(value * multiplier) + bonus)


def execute_opponent_action(
    state: MatchState,
    opponent_id: str,
    intention: Intention,
    rng: random.Random,
    log: "CombatLog | None" = None,
) -> MatchState:
    before = state
    opp = state.opponent_by_id(opponent_id)
    if opp is None:
        return state

    value = intention.value
    match intention.type:
        case IntentionType.ATTACK:
            state, face_lost = _resolve_attack(state, intention, rng)
            if face_lost is None:
                state = _emit(state, "opponent_action", intention.name, "Attack was negated!", 0)
                if log:
                    log.log("system", f"{intention.name} was negated", {"opponent": opp.name})
                return state
            value = face_lost
        case IntentionType.STANDING_GAIN:
            value = _opponent_gain(state, opp, intention.value)
            state = add_standing(state, OPPONENT, value, opp.id)
            state = process_status_trigger(
                state, StatusTrigger.ON_OPPONENT_STANDING_GAIN, PLAYER,
                EffectContext(rng=rng, target_opponent_id=opp.id),
            )
        case IntentionType.STANDING_STEAL:
            tiers = state.judge.tier_structure
            held = get_total_favor(get_standing(state, PLAYER), tiers)
            value = min(held, intention.value)
            state = remove_standing(state, PLAYER, value)
            state = add_standing(state, OPPONENT, value, opp.id)
        case IntentionType.STALL:
            state = replace(state, patience=state.patience - intention.value)
        case IntentionType.FLUSTERED:
            value = 0

    state = _emit(state, "opponent_action", intention.name, describe_intention(intention), value)
    if log:
        log.log_ai_action(opp.name, intention.name, intention.type.value, value, before, state)
    return state


def advance_opponent_intention(
    state: MatchState, opponent_id: str, rng: random.Random,
) -> MatchState:
    """current <- next (or queue head); next <- queue head (or a random pick)."""
    opp = state.opponent_by_id(opponent_id)
    if opp is None:
        return state

    queue = list(opp.intention_queue)
    current = opp.next_intention
    if current is None:
        current = queue.pop(0) if queue else pick_random_intention(opp.intention_pool, rng)
    upcoming = queue.pop(0) if queue else pick_random_intention(opp.intention_pool, rng)

    state = state.replace_opponent(replace(
        opp,
        current_intention=current,
        next_intention=upcoming,
        intention_queue=tuple(queue),
        patience_spent=0,
    ))
    return consume_reveal_trigger(state, opponent_id)


def take_opponent_turn(
    state: MatchState,
    opponent_id: str,
    rng: random.Random,
    log: "CombatLog | None" = None,
) -> MatchState:
    opp = state.opponent_by_id(opponent_id)
    if opp is None or opp.current_intention is None:
        return state
    state = execute_opponent_action(state, opponent_id, opp.current_intention, rng, log)
    return advance_opponent_intention(state, opponent_id, rng)


def resolve_opponent_turns(
    state: MatchState, rng: random.Random, log: "CombatLog | None" = None,
) -> MatchState:
    """Every opponent acts in roster order, stopping once the player has no face left."""
    for opp_id in [o.id for o in state.opponents]:
        if state.player.face <= 0:
            break
        state = take_opponent_turn(state, opp_id, rng, log)
    return state


def track_patience_spent(
    state: MatchState,
    amount: int,
    rng: random.Random,
    log: "CombatLog | None" = None,
) -> MatchState:
    """Accumulate card-play spend on each opponent; fire intentions whose threshold is met."""
    for opp_id in [o.id for o in state.opponents]:
        opp = state.opponent_by_id(opp_id)
        spent = opp.patience_spent + amount
        state = state.replace_opponent(replace(opp, patience_spent=spent))
        intention = opp.current_intention
        if intention is None or intention.patience_threshold <= 0:
            continue
        if spent >= intention.patience_threshold:
            state = take_opponent_turn(state, opp_id, rng, log)
    return state


# ---------------------------------------------------------------------------
# Flustered mechanic
# ---------------------------------------------------------------------------

def fluster(opp: Opponent, rng: random.Random) -> Opponent:
    queue = opp.intention_queue
    if opp.next_intention is not None:
        queue = (opp.next_intention,) + queue
    return replace(
        opp,
        face=opp.max_face // 2,
        intention_queue=queue,
        next_intention=opp.current_intention,
        current_intention=pick_random_flustered(rng),
        patience_spent=0,
    )


def apply_flustered_mechanic(
    state: MatchState, rng: random.Random, log: "CombatLog | None" = None,
) -> MatchState:
    for opp in state.opponents:
        if opp.face > 0:
            continue
        flustered = fluster(opp, rng)
        state = state.replace_opponent(flustered)
        if log:
            log.log_system_event("Opponent Flustered", {
                "opponent": opp.name, "effect": flustered.current_intention.name,
            })
    return state
