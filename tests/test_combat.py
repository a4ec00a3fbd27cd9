"""Tests for the combat engine: card play, end of turn, start of turn."""

import random
import unittest

from court_debate.combat import CombatEngine, process_end_turn, process_turn
from court_debate.combat_log import CombatLogger
from court_debate.deck import make_draw_fn
from court_debate.judge import create_judge_state
from court_debate.models import (
    PLAYER, Card, DealShame, DrawCards, Element, GainPoise, GainStanding, Intention,
    IntentionType, JudgeAction, JudgeEffects, JudgeRule, JudgeState,
    JudgeTemplate, MatchState, Opponent, Player, Standing, Status,
    StatusTrigger, TurnPhase, Winner,
)

JAB = Intention("Jab", IntentionType.ATTACK, 5)
BOAST = Intention("Boast", IntentionType.STANDING_GAIN, 10)


def _card(element=Element.WOOD, patience=3, face=1, effects=(DealShame(4),), card_id="c1"):
    return Card(id=card_id, name=f"Card {card_id}", element=element,
                patience_cost=patience, face_cost=face, effects=effects)


def _opponent(**kwargs) -> Opponent:
    defaults = dict(
        id="opp_1", name="Rival", face=40, max_face=40,
        current_intention=JAB, next_intention=BOAST, intention_pool=(JAB, BOAST),
    )
    defaults.update(kwargs)
    return Opponent(**defaults)


def _make_state(**kwargs) -> MatchState:
    defaults = dict(player=Player(face=60, max_face=60), opponents=(_opponent(),), patience=40)
    defaults.update(kwargs)
    return MatchState(**defaults)


def _engine(seed=0, log=None) -> CombatEngine:
    return CombatEngine(random.Random(seed), log)


def _status(status_id, trigger, effects, turns=-1) -> Status:
    return Status(id=status_id, name=status_id, owner=PLAYER, trigger=trigger,
                  turns_remaining=turns, triggered_effects=effects)


class TestCardPlay(unittest.TestCase):
    def test_pays_costs_and_resolves_effects(self):
        state = _engine().process_turn(_make_state(), _card())
        self.assertEqual(state.patience, 37)
        self.assertEqual(state.player.face, 59)
        self.assertEqual(state.opponents[0].face, 36)
        self.assertEqual(state.last_element, Element.WOOD)
        self.assertEqual(state.history, (Element.WOOD,))
        self.assertEqual(state.turn_phase, TurnPhase.PLAYER_ACTION)

    def test_balanced_chain_builds_streak(self):
        engine = _engine()
        state = engine.process_turn(_make_state(), _card(Element.WOOD))
        state = engine.process_turn(state, _card(Element.FIRE))
        self.assertEqual(state.harmony_streak, 1)
        self.assertEqual(state.patience, 40 - 3 - 2)

    def test_chaos_costs_more_and_doubles_once(self):
        state = _make_state(last_element=Element.WOOD, harmony_streak=3)
        state = _engine().process_turn(state, _card(Element.EARTH))
        self.assertEqual(state.patience, 35)
        self.assertEqual(state.player.face, 57)
        self.assertEqual(state.opponents[0].face, 32)
        self.assertEqual(state.harmony_streak, 0)

    def test_dissonant_costs_one_more(self):
        state = _make_state(last_element=Element.WOOD)
        state = _engine().process_turn(state, _card(Element.WATER))
        self.assertEqual(state.patience, 36)
        self.assertEqual(state.player.face, 58)
        self.assertEqual(state.opponents[0].face, 36)

    def test_judge_favor_modifier_scales_player_gain(self):
        judge = JudgeState(effects=JudgeEffects(favor_gain_modifier=1.5))
        card = _card(effects=(GainStanding(10),), face=0)
        state = _engine().process_turn(_make_state(judge=judge), card)
        self.assertEqual(state.player.standing, Standing(0, 15))

    def test_breaking_opponent_flusters(self):
        state = _make_state(opponents=(_opponent(face=3),))
        state = _engine().process_turn(state, _card(effects=(DealShame(10),)))
        opp = state.opponents[0]
        self.assertEqual(opp.face, 20)
        self.assertEqual(opp.current_intention.type, IntentionType.FLUSTERED)
        self.assertEqual(opp.next_intention, JAB)
        self.assertFalse(state.is_game_over)

    def test_damage_dealt_trigger(self):
        status = _status("spark", StatusTrigger.ON_DAMAGE_DEALT, (GainPoise(2),))
        state = _make_state(statuses=(status,))
        state = _engine().process_turn(state, _card(face=0))
        self.assertEqual(state.player.poise, 2)

    def test_tier_advance_trigger(self):
        status = _status("rise", StatusTrigger.ON_TIER_ADVANCE, (GainPoise(3),))
        state = _make_state(statuses=(status,), player=Player(standing=Standing(0, 20)))
        state = _engine().process_turn(state, _card(effects=(GainStanding(10),), face=0))
        self.assertEqual(state.player.standing.current_tier, 1)
        self.assertEqual(state.player.poise, 3)

    def test_mid_turn_intention(self):
        snap = Intention("Snap", IntentionType.ATTACK, 4, patience_threshold=3)
        state = _make_state(opponents=(_opponent(current_intention=snap),))
        state = _engine().process_turn(state, _card(face=0))
        self.assertEqual(state.player.face, 56)
        self.assertEqual(state.opponents[0].current_intention, BOAST)

    def test_patience_out_with_higher_tier_wins(self):
        state = _make_state(patience=2, player=Player(standing=Standing(1, 0)))
        state = _engine().process_turn(state, _card())
        self.assertTrue(state.is_game_over)
        self.assertEqual(state.winner, Winner.PLAYER)

    def test_face_out_loses_even_at_patience_zero(self):
        state = _make_state(patience=2, player=Player(face=1, standing=Standing(3, 0)))
        state = _engine().process_turn(state, _card(face=5))
        self.assertEqual(state.winner, Winner.OPPONENT)

    def test_finished_match_is_frozen(self):
        state = _make_state(is_game_over=True, winner=Winner.OPPONENT)
        self.assertIs(_engine().process_turn(state, _card()), state)
        self.assertIs(_engine().process_end_turn(state), state)
        self.assertIs(_engine().process_start_turn(state), state)

    def test_module_level_helper(self):
        state = process_turn(_make_state(), _card(), rng=random.Random(0))
        self.assertEqual(state.patience, 37)


class TestEndTurn(unittest.TestCase):
    def test_end_turn_sequence(self):
        status = _status("brief", StatusTrigger.PASSIVE, (), turns=1)
        state = _make_state(player=Player(face=60, poise=2), statuses=(status,))
        state = _engine().process_end_turn(state)
        self.assertEqual(state.patience, 39)
        self.assertEqual(state.player.face, 57)
        self.assertEqual(state.player.poise, 0)
        self.assertEqual(state.statuses, ())
        self.assertEqual(state.opponents[0].current_intention, BOAST)
        self.assertEqual(state.turn_phase, TurnPhase.DRAWING)

    def test_turn_end_statuses_fire(self):
        status = _status("jab", StatusTrigger.TURN_END, (DealShame(3),))
        state = _engine().process_end_turn(_make_state(statuses=(status,)))
        self.assertEqual(state.opponents[0].face, 37)

    def test_turn_end_draw_through_module_function(self):
        status = _status("study", StatusTrigger.TURN_END, (DrawCards(2),))
        deck = (_card(card_id="d1"), _card(card_id="d2"), _card(card_id="d3"))
        state = _make_state(player=Player(face=60, max_face=60, deck=deck), statuses=(status,))
        state = process_end_turn(state, make_draw_fn(random.Random(0)), rng=random.Random(0))
        self.assertEqual([c.id for c in state.player.hand], ["d3", "d2"])
        self.assertEqual(len(state.player.deck), 1)

    def test_judge_counts_end_turn_cost(self):
        template = JudgeTemplate("Quick", 50, (
            JudgeAction("Hurry", "", 1, JudgeRule(end_turn_cost_delta=1)),))
        judge = create_judge_state(template, random.Random(0))
        state = _engine().process_end_turn(_make_state(judge=judge))
        self.assertEqual(state.judge.effects.end_turn_patience_cost, 2)
        self.assertEqual(state.events[-1].type, "judge_decree")

    def test_running_out_of_patience_ends_match(self):
        state = process_end_turn(_make_state(patience=1), rng=random.Random(0))
        self.assertTrue(state.is_game_over)
        self.assertEqual(state.winner, Winner.OPPONENT)


class TestStartTurn(unittest.TestCase):
    def test_turn_start_statuses_fire(self):
        status = _status("bark", StatusTrigger.TURN_START, (GainPoise(4),))
        state = _make_state(statuses=(status,), turn_phase=TurnPhase.DRAWING)
        state = _engine().process_start_turn(state)
        self.assertEqual(state.player.poise, 4)
        self.assertEqual(state.turn_phase, TurnPhase.PLAYER_ACTION)


class TestLogging(unittest.TestCase):
    def test_engine_writes_to_injected_log(self):
        log = CombatLogger()
        engine = _engine(log=log)
        state = engine.process_turn(_make_state(), _card())
        engine.process_end_turn(state)
        actions = [e.action for e in log.entries]
        self.assertEqual(actions[0], "Played Card c1")
        self.assertIn("End Turn (-1 patience)", actions)
        self.assertTrue(any(e.actor == "opponent" for e in log.entries))
        self.assertEqual(log.entries[0].state_delta["patience"], -3)


if __name__ == "__main__":
    unittest.main()
