"""Tests for the combat log port."""

import csv
import io
import json
import unittest
from dataclasses import replace

from court_debate.combat_log import CombatLogger, NullCombatLog, state_delta
from court_debate.models import MatchState, Opponent, Player


def _make_state(**kwargs) -> MatchState:
    defaults = dict(opponents=(Opponent(id="opp_1", name="Rival", face=40, max_face=40),))
    defaults.update(kwargs)
    return MatchState(**defaults)


class TestStateDelta(unittest.TestCase):
    def test_only_changes_reported(self):
        before = _make_state()
        after = replace(before, patience=35, player=Player(face=55))
        self.assertEqual(state_delta(before, after), {"patience": -5, "player_face": -5})

    def test_opponent_keys(self):
        before = _make_state()
        after = before.replace_opponent(replace(before.opponents[0], face=30))
        self.assertEqual(state_delta(before, after), {"opp_1_face": -10})

    def test_missing_snapshot(self):
        self.assertEqual(state_delta(None, _make_state()), {})


class TestCombatLogger(unittest.TestCase):
    def test_entries_are_numbered_per_turn(self):
        log = CombatLogger()
        log.log("player", "Played X")
        log.set_turn(3)
        log.log("judge", "Decree", {"description": "d"})
        self.assertEqual([e.id for e in log.entries], [1, 2])
        self.assertEqual([e.turn for e in log.entries], [1, 3])

    def test_unknown_actor_rejected(self):
        with self.assertRaises(ValueError):
            CombatLogger().log("spectator", "Cheer")

    def test_subscribe_and_unsubscribe(self):
        log = CombatLogger()
        seen = []
        unsubscribe = log.subscribe(seen.append)
        log.log("system", "one")
        unsubscribe()
        log.log("system", "two")
        self.assertEqual([e.action for e in seen], ["one"])

    def test_clear(self):
        log = CombatLogger()
        log.log("system", "one")
        log.clear()
        self.assertEqual(log.entries, [])

    def test_export_json(self):
        log = CombatLogger()
        log.log("system", "one", {"k": 1}, _make_state(), _make_state(patience=39))
        (entry,) = json.loads(log.export_json())
        self.assertEqual(entry["details"], {"k": 1})
        self.assertEqual(entry["state_delta"], {"patience": -1})

    def test_export_csv(self):
        log = CombatLogger()
        log.log("opponent", "Jab")
        rows = list(csv.reader(io.StringIO(log.export_csv())))
        self.assertEqual(rows[0][:4], ["id", "turn", "actor", "action"])
        self.assertEqual(rows[1][2:4], ["opponent", "Jab"])


class TestNullLog(unittest.TestCase):
    def test_discards_everything(self):
        log = NullCombatLog()
        log.log("anything", "goes")
        log.log_system_event("Game Over")


if __name__ == "__main__":
    unittest.main()
