"""Judge / escalation system – spent patience unlocks decrees."""

from __future__ import annotations

import random
from dataclasses import replace
from typing import TYPE_CHECKING

from court_debate.models import (
    GameEvent, JudgeAction, JudgeDecree, JudgeState, JudgeTemplate, MatchState,
)

if TYPE_CHECKING:
    from court_debate.combat_log import CombatLog


def pick_random_judge_action(
    actions: tuple[JudgeAction, ...], rng: random.Random,
) -> JudgeAction | None:
    if not actions:
        return None
    return rng.choice(actions)


def create_judge_state(template: JudgeTemplate, rng: random.Random) -> JudgeState:
    first = pick_random_judge_action(template.actions, rng)
    return JudgeState(
        name=template.name,
        actions=template.actions,
        next_action=first,
        patience_threshold=first.patience_threshold if first else template.patience_threshold,
        tier_structure=template.tier_structure,
    )


def apply_judge_action(
    state: MatchState,
    action: JudgeAction,
    rng: random.Random,
    log: "CombatLog | None" = None,
) -> MatchState:
    judge = state.judge
    decree = JudgeDecree(
        name=action.name, description=action.description, turn_applied=state.turn_number,
    )
    effects = action.apply(judge.effects)
    effects = replace(effects, active_decrees=judge.effects.active_decrees + (decree,))

    upcoming = pick_random_judge_action(judge.actions, rng)
    state = replace(state, judge=replace(
        judge,
        effects=effects,
        next_action=upcoming,
        patience_threshold=upcoming.patience_threshold if upcoming else judge.patience_threshold,
        patience_spent=0,
    ))

    event_id, state = state.alloc_id("evt")
    state = replace(state, events=state.events + (GameEvent(
        id=event_id, type="judge_decree", name=action.name,
        description=action.description, turn=state.turn_number,
    ),))
    if log:
        log.log("judge", action.name, {"description": action.description})
    return state


def check_judge_trigger(
    state: MatchState,
    patience_spent: int,
    rng: random.Random,
    log: "CombatLog | None" = None,
) -> MatchState:
    """Add ``patience_spent`` to the judge's tally and fire the pending decree if due."""
    judge = state.judge
    spent = judge.patience_spent + patience_spent
    state = replace(state, judge=replace(judge, patience_spent=spent))
    if judge.next_action is not None and spent >= judge.patience_threshold:
        state = apply_judge_action(state, judge.next_action, rng, log)
    return state
