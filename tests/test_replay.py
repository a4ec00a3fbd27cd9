"""Tests for replay recording and playback."""

import json
import os
import tempfile
import unittest
from io import StringIO
from pathlib import Path
from unittest.mock import patch

from court_debate.engine import MatchConfig, play_match
from court_debate.loader import load_content
from court_debate.models import MatchState, Opponent
from court_debate.replay import ReplayWriter, load_replay, render_replay, snapshot_state

DATA_DIR = os.path.join(os.path.dirname(__file__), "..", "data")


def _config(seed=42) -> MatchConfig:
    return MatchConfig(seed=seed, judge="The Warlord", opponents=["The Gilded Concubine"])


def _run_with_replay(content, seed, replay_path):
    """Run a match with replay enabled and return (log, events)."""
    with ReplayWriter(replay_path) as rw:
        _, log = play_match(content, _config(seed), replay=rw)
    return log, load_replay(replay_path)


class TestReplayWriter(unittest.TestCase):
    def test_writes_jsonl(self):
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "test.jsonl"
            with ReplayWriter(path) as rw:
                rw.write({"a": 1})
                rw.write({"b": 2})
            lines = path.read_text().strip().split("\n")
            self.assertEqual([json.loads(line) for line in lines], [{"a": 1}, {"b": 2}])

    def test_close_then_write_raises(self):
        with tempfile.TemporaryDirectory() as td:
            rw = ReplayWriter(Path(td) / "test.jsonl")
            rw.close()
            with self.assertRaises(RuntimeError):
                rw.write({"x": 1})

    def test_creates_parent_dirs(self):
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "a" / "b" / "test.jsonl"
            with ReplayWriter(path) as rw:
                rw.write({"x": 1})
                self.assertEqual(rw.path, path)
            self.assertTrue(path.exists())


class TestSnapshot(unittest.TestCase):
    def test_opponent_snapshot(self):
        state = MatchState(opponents=(Opponent("opp_1", "Rival", 12, 40),))
        snap = snapshot_state(state)
        self.assertEqual(snap["patience"], 40)
        self.assertEqual(snap["opponents"][0]["face"], 12)
        self.assertIsNone(snap["opponents"][0]["intention"])


class TestReplayDeterminism(unittest.TestCase):
    """Replay ON/OFF must produce identical match results."""

    def test_replay_does_not_affect_result(self):
        content = load_content(DATA_DIR)
        for seed in range(5):
            _, log1 = play_match(content, _config(seed))
            with tempfile.TemporaryDirectory() as td:
                log2, _ = _run_with_replay(content, seed, Path(td) / f"{seed}.jsonl")
            self.assertEqual(log1.winner, log2.winner, f"Winner mismatch at seed={seed}")
            self.assertEqual(log1.turns, log2.turns, f"Turns mismatch at seed={seed}")
            self.assertEqual(log1.final_patience, log2.final_patience)


class TestReplayStructure(unittest.TestCase):
    def setUp(self):
        content = load_content(DATA_DIR)
        with tempfile.TemporaryDirectory() as td:
            self.log, self.events = _run_with_replay(content, 42, Path(td) / "test.jsonl")

    def test_event_order(self):
        types = [e["type"] for e in self.events]
        self.assertEqual(types[:2], ["meta", "match_start"])
        self.assertEqual(types[-1], "match_end")
        starts = types.count("turn_start")
        self.assertIn(types.count("end_turn"), (starts, starts - 1))

    def test_required_keys(self):
        required_keys = {
            "meta": {"type", "seed", "judge", "opponents", "policy"},
            "match_start": {"type", "state"},
            "turn_start": {"type", "turn", "state"},
            "play_card": {"type", "turn", "card_id", "name", "element",
                          "patience_after", "face_after", "harmony_streak"},
            "end_turn": {"type", "turn", "events", "patience_after", "face_after"},
            "match_end": {"type", "winner", "reason", "turns", "final_patience", "final_face"},
        }
        for event in self.events:
            missing = required_keys[event["type"]] - set(event)
            self.assertEqual(missing, set(), f"Missing keys in {event['type']}: {missing}")

    def test_match_end_matches_log(self):
        end = self.events[-1]
        self.assertEqual(self.events[0]["seed"], 42)
        self.assertEqual(end["winner"], self.log.winner.value)
        self.assertEqual(end["turns"], self.log.turns)
        self.assertEqual(end["final_face"], self.log.final_face)


class TestRenderReplay(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = Path(self.tmpdir.name) / "r.jsonl"
        content = load_content(DATA_DIR)
        _run_with_replay(content, 3, self.path)

    def tearDown(self):
        self.tmpdir.cleanup()

    def _render(self, **kwargs) -> str:
        with patch("sys.stdout", new_callable=StringIO) as out:
            render_replay(self.path, **kwargs)
        return out.getvalue()

    def test_full_render(self):
        text = self._render()
        self.assertIn("=== REPLAY: seed=3 ===", text)
        self.assertIn("--- Turn 1 ---", text)
        self.assertIn("=== MATCH END ===", text)

    def test_turn_filter(self):
        text = self._render(from_turn=2, to_turn=2)
        self.assertNotIn("--- Turn 1 ---", text)
        self.assertNotIn("--- Turn 3 ---", text)

    def test_compact_hides_opponents(self):
        self.assertNotIn("The Gilded Concubine: Face=", self._render(compact=True))


if __name__ == "__main__":
    unittest.main()
