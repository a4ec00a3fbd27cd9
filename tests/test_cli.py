"""Tests for the command-line entry point and text display."""

import json
import os
import tempfile
import unittest
from io import StringIO
from unittest.mock import patch

from court_debate.cli import _parse_policy_arg, main
from court_debate.display import render_stats


def _run(argv) -> str:
    with patch("sys.stdout", new_callable=StringIO) as out:
        main(argv)
    return out.getvalue()


class TestPlay(unittest.TestCase):
    def test_ai_match(self):
        text = _run(["play", "--seed", "3", "--judge", "The Emperor",
                     "--opponent", "The Iron General"])
        self.assertIn("Result:", text)
        self.assertIn("judge: The Emperor", text)

    def test_trace_and_json_log(self):
        text = _run(["play", "--seed", "4", "--policy", "simple", "--trace", "--log", "json"])
        self.assertIn("Trace (", text)
        self.assertIn('"actor": "player"', text)

    def test_writes_replay(self):
        with tempfile.TemporaryDirectory() as td:
            path = os.path.join(td, "match.jsonl")
            _run(["play", "--seed", "5", "--replay", path])
            text = _run(["replay", path, "--compact"])
        self.assertIn("=== REPLAY: seed=5 ===", text)

    def test_no_command_exits(self):
        with patch("sys.stdout", new_callable=StringIO), self.assertRaises(SystemExit):
            main([])


class TestSimulateAndStats(unittest.TestCase):
    def test_simulate_then_stats(self):
        with tempfile.TemporaryDirectory() as td:
            text = _run(["simulate", "--matches", "2", "--seed", "1",
                         "--judges", "The Scholar", "--opponents", "The Gilded Concubine",
                         "--policies", "simple:1,random:1", "--telemetry", "on",
                         "--output", td])
            self.assertIn("Simulation Results  (2 matches)", text)
            self.assertIn("Telemetry (2 matches)", text)

            logs_path = os.path.join(td, "match_logs.json")
            with open(logs_path, encoding="utf-8") as f:
                self.assertEqual(len(json.load(f)), 2)
            stats = _run(["stats", "--logs", logs_path])
        self.assertIn("The Scholar", stats)


class TestHelpers(unittest.TestCase):
    def test_parse_policy_arg(self):
        self.assertEqual(_parse_policy_arg("greedy:0.6, simple"), [
            {"name": "greedy", "weight": 0.6},
            {"name": "simple", "weight": 1.0},
        ])

    def test_render_stats(self):
        stats = {"total_matches": 1, "player_wins": 1, "player_losses": 0,
                 "win_rate": 100.0, "avg_turns": 7, "judges": {}, "opponents": {}}
        with patch("sys.stdout", new_callable=StringIO) as out:
            render_stats(stats)
        self.assertIn("WR=100.0%", out.getvalue())


if __name__ == "__main__":
    unittest.main()
