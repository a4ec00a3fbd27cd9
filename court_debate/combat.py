"""Combat engine – orchestrates one card play, the end of a turn, and the start of the next.

Every entry point takes a MatchState and returns a new one; once the match
is over they return the state unchanged.
"""

from __future__ import annotations

import math
import random
from dataclasses import replace

from court_debate.combat_log import CombatLog, NullCombatLog
from court_debate.costs import calculate_effective_costs, deduct_face_cost
from court_debate.deck import DrawFn
from court_debate.effects import resolve_effects
from court_debate.harmony import calculate_flow
from court_debate.judge import check_judge_trigger
from court_debate.models import (
    PLAYER, Card, EffectContext, MatchState, ModifierStat, StatusTrigger, TurnPhase,
)
from court_debate.opponent import (
    apply_flustered_mechanic, resolve_opponent_turns, track_patience_spent,
)
from court_debate.standing import add_standing, get_total_favor, remove_standing
from court_debate.statuses import (
    get_modifier_additive, get_modifier_multiplier, process_status_trigger,
    tick_statuses,
)
from court_debate.victory import check_victory


class CombatEngine:
    """Pure state-in/state-out combat orchestration.

    Randomness comes only from ``rng`` and observability only from ``log``.
    """

    def __init__(self, rng: random.Random | None = None, log: CombatLog | None = None) -> None:
        self.rng = rng if rng is not None else random.Random()
        self.log = log if log is not None else NullCombatLog()

    # ------------------------------------------------------------------
    # Card play
    # ------------------------------------------------------------------

    def process_turn(
        self,
        state: MatchState,
        card: Card,
        draw_cards: DrawFn | None = None,
        ctx: EffectContext | None = None,
    ) -> MatchState:
        if state.is_game_over:
            return state
        self.log.set_turn(state.turn_number)
        before = state
        ctx = self._card_context(state, card, ctx)
        state = replace(state, turn_phase=TurnPhase.RESOLVING)

        # 1. Harmony and costs
        flow = calculate_flow(state.last_element, card.element, state.harmony_streak)
        costs = calculate_effective_costs(card, state)
        state = replace(state, patience=state.patience - costs.patience)
        state = deduct_face_cost(state, costs.face)

        # 2. Opponent intentions with a patience threshold may fire mid-turn
        state = track_patience_spent(state, costs.patience, self.rng, self.log)

        # 3. Effects, doubled under chaos
        pre_effects = state
        state = resolve_effects(state, card.effects, ctx, draw_cards, costs.effect_multiplier)
        state = self._apply_standing_modifiers(pre_effects, state)
        state = self._fire_play_triggers(pre_effects, state, ctx, draw_cards)

        # 4. Harmony bookkeeping
        state = replace(
            state,
            last_element=card.element,
            harmony_streak=flow.new_harmony_streak,
            history=state.history + (card.element,),
        )

        # 5. Flustered opponents, then terminal checks
        state = apply_flustered_mechanic(state, self.rng, self.log)
        state = check_victory(replace(state, turn_phase=TurnPhase.PLAYER_ACTION))

        self.log.log_card_played(card, costs, flow.flow, before, state)
        if state.is_game_over:
            self.log.log_system_event("Game Over", {"winner": state.winner.value})
        return state

    def _card_context(
        self, state: MatchState, card: Card, ctx: EffectContext | None,
    ) -> EffectContext:
        ctx = ctx if ctx is not None else EffectContext()
        target = ctx.target_opponent_id
        if target is None and state.opponents:
            target = state.opponents[0].id
        return replace(
            ctx,
            rng=ctx.rng if ctx.rng is not None else self.rng,
            source_card_id=card.id,
            target_opponent_id=target,
        )

    def _apply_standing_modifiers(self, before: MatchState, after: MatchState) -> MatchState:
        """Scale the player's standing gain by judge × status multipliers, plus flat bonus."""
        tiers = after.judge.tier_structure
        gained = (
            get_total_favor(after.player.standing, tiers)
            - get_total_favor(before.player.standing, tiers)
        )
        if gained <= 0:
            return after
        multiplier = after.judge.effects.favor_gain_modifier * get_modifier_multiplier(
            after, ModifierStat.FAVOR_GAIN_MULTIPLIER, owner=PLAYER,
        )
        bonus = get_modifier_additive(after, ModifierStat.STANDING_GAIN, owner=PLAYER)
        modified = max(0, math.floor(gained * multiplier) + bonus)
        delta = modified - gained
        if delta > 0:
            return add_standing(after, PLAYER, delta)
        if delta < 0:
            return remove_standing(after, PLAYER, -delta)
        return after

    def _fire_play_triggers(
        self,
        before: MatchState,
        after: MatchState,
        ctx: EffectContext,
        draw_cards: DrawFn | None,
    ) -> MatchState:
        before_faces = {o.id: o.face for o in before.opponents}
        dealt = any(o.face < before_faces.get(o.id, o.face) for o in after.opponents)
        state = after
        if dealt:
            state = process_status_trigger(
                state, StatusTrigger.ON_DAMAGE_DEALT, PLAYER, ctx, draw_cards,
            )
        if state.player.standing.current_tier > before.player.standing.current_tier:
            state = process_status_trigger(
                state, StatusTrigger.ON_TIER_ADVANCE, PLAYER, ctx, draw_cards,
            )
        return state

    # ------------------------------------------------------------------
    # Turn boundaries
    # ------------------------------------------------------------------

    def process_end_turn(self, state: MatchState, draw_cards: DrawFn | None = None) -> MatchState:
        if state.is_game_over:
            return state
        self.log.set_turn(state.turn_number)
        before = state
        state = replace(state, turn_phase=TurnPhase.OPPONENT_TURN)

        # 1. End-turn patience cost
        cost = state.judge.effects.end_turn_patience_cost
        state = replace(state, patience=state.patience - cost)
        self.log.log("system", f"End Turn (-{cost} patience)", {"cost": cost}, before, state)

        # 2. Opponents act in roster order
        state = resolve_opponent_turns(state, self.rng, self.log)

        # 3. Judge escalation counts the end-turn cost only
        state = check_judge_trigger(state, cost, self.rng, self.log)

        # 4. Turn-end statuses, then durations tick
        state = process_status_trigger(
            state, StatusTrigger.TURN_END, None, EffectContext(rng=self.rng), draw_cards,
        )
        state = tick_statuses(state)
        state = apply_flustered_mechanic(state, self.rng, self.log)

        # 5. Poise never carries over
        state = replace(
            state,
            player=replace(state.player, poise=0),
            turn_phase=TurnPhase.DRAWING,
        )
        state = check_victory(state)
        if state.is_game_over:
            self.log.log_system_event("Game Over", {"winner": state.winner.value})
        return state

    def process_start_turn(self, state: MatchState, draw_cards: DrawFn | None = None) -> MatchState:
        if state.is_game_over:
            return state
        self.log.set_turn(state.turn_number)
        state = process_status_trigger(
            state, StatusTrigger.TURN_START, None, EffectContext(rng=self.rng), draw_cards,
        )
        state = apply_flustered_mechanic(state, self.rng, self.log)
        state = check_victory(replace(state, turn_phase=TurnPhase.PLAYER_ACTION))
        if state.is_game_over:
            self.log.log_system_event("Game Over", {"winner": state.winner.value})
        return state


# ---------------------------------------------------------------------------
# Convenience functions
# ---------------------------------------------------------------------------

def process_turn(
    state: MatchState,
    card: Card,
    draw_cards: DrawFn | None = None,
    ctx: EffectContext | None = None,
    rng: random.Random | None = None,
    log: CombatLog | None = None,
) -> MatchState:
    return CombatEngine(rng, log).process_turn(state, card, draw_cards, ctx)


def process_end_turn(
    state: MatchState,
    draw_cards: DrawFn | None = None,
    rng: random.Random | None = None,
    log: CombatLog | None = None,
) -> MatchState:
    return CombatEngine(rng, log).process_end_turn(state, draw_cards)


def process_start_turn(
    state: MatchState, rng: random.Random | None = None, log: CombatLog | None = None,
) -> MatchState:
    return CombatEngine(rng, log).process_start_turn(state)
