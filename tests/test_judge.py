"""Tests for the judge escalation system."""

import random
import unittest

from court_debate.judge import apply_judge_action, check_judge_trigger, create_judge_state
from court_debate.models import (
    Element, JudgeAction, JudgeEffects, JudgeRule, JudgeTemplate, MatchState,
)

IMPATIENCE = JudgeAction("Impatience", "End turn costs +1 patience", 3,
                         JudgeRule(end_turn_cost_delta=1))
FIRE_TAX = JudgeAction("Fire Tax", "Fire costs +2", 3,
                       JudgeRule(element_tax=((Element.FIRE, 2),)))


def _make_state(*actions) -> MatchState:
    template = JudgeTemplate("Test Judge", 50, actions or (IMPATIENCE,))
    return MatchState(judge=create_judge_state(template, random.Random(0)))


class TestCreate(unittest.TestCase):
    def test_first_action_sets_threshold(self):
        judge = _make_state().judge
        self.assertEqual(judge.name, "Test Judge")
        self.assertEqual(judge.next_action, IMPATIENCE)
        self.assertEqual(judge.patience_threshold, 3)
        self.assertEqual(judge.effects, JudgeEffects())

    def test_no_actions_falls_back_to_template_threshold(self):
        judge = create_judge_state(JudgeTemplate("Idle", 50, ()), random.Random(0))
        self.assertIsNone(judge.next_action)
        self.assertEqual(judge.patience_threshold, 50)


class TestTrigger(unittest.TestCase):
    def test_accumulates_below_threshold(self):
        state = check_judge_trigger(_make_state(), 2, random.Random(0))
        self.assertEqual(state.judge.patience_spent, 2)
        self.assertEqual(state.judge.effects.active_decrees, ())

    def test_fires_at_threshold(self):
        state = check_judge_trigger(_make_state(), 2, random.Random(0))
        state = check_judge_trigger(state, 1, random.Random(0))
        judge = state.judge
        self.assertEqual(judge.effects.end_turn_patience_cost, 2)
        self.assertEqual([d.name for d in judge.effects.active_decrees], ["Impatience"])
        self.assertEqual(judge.patience_spent, 0)
        self.assertEqual(state.events[-1].type, "judge_decree")

    def test_decrees_stack(self):
        state = _make_state()
        for _ in range(2):
            state = check_judge_trigger(state, 3, random.Random(0))
        self.assertEqual(state.judge.effects.end_turn_patience_cost, 3)
        self.assertEqual(len(state.judge.effects.active_decrees), 2)

    def test_idle_judge_never_fires(self):
        state = MatchState()
        state = check_judge_trigger(state, 100, random.Random(0))
        self.assertEqual(state.events, ())


class TestRules(unittest.TestCase):
    def test_element_tax_accumulates(self):
        state = apply_judge_action(_make_state(FIRE_TAX), FIRE_TAX, random.Random(0))
        state = apply_judge_action(state, FIRE_TAX, random.Random(0))
        effects = state.judge.effects
        self.assertEqual(effects.element_tax(Element.FIRE), 4)
        self.assertEqual(effects.element_tax(Element.WATER), 0)

    def test_multipliers_compound(self):
        rule = JudgeRule(favor_gain_multiplier=1.5, damage_multiplier=2.0)
        action = JudgeAction("Boom", "", 1, rule)
        effects = action.apply(action.apply(JudgeEffects()))
        self.assertAlmostEqual(effects.favor_gain_modifier, 2.25)
        self.assertAlmostEqual(effects.damage_modifier, 4.0)


if __name__ == "__main__":
    unittest.main()
