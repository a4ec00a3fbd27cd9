"""Tests for telemetry summary aggregation."""

import unittest

from court_debate.metrics import aggregate_match_summaries


class TestAggregateMatchSummaries(unittest.TestCase):
    def _make_summaries(self):
        return [
            {"judge": "The Emperor", "winner": "player", "total_turns": 10,
             "cards_played": 20, "shame_dealt": 40, "flow_balanced": 6, "element_fire": 4},
            {"judge": "The Emperor", "winner": "opponent", "total_turns": 14,
             "cards_played": 25, "shame_dealt": 12, "flow_balanced": 2, "element_fire": 7},
            {"judge": "The Scholar", "winner": "opponent", "total_turns": 8,
             "cards_played": 11, "shame_dealt": 30, "flow_balanced": 1, "element_fire": 0},
        ]

    def test_overall_count(self):
        result = aggregate_match_summaries(self._make_summaries())
        self.assertEqual(result["count"], 3)

    def test_overall_mean(self):
        overall = aggregate_match_summaries(self._make_summaries())["overall"]
        # (10 + 14 + 8) / 3
        self.assertAlmostEqual(overall["total_turns"]["mean"], 10.6667, places=3)
        self.assertAlmostEqual(overall["total_turns"]["sum"], 32.0)
        self.assertAlmostEqual(overall["flow_balanced"]["sum"], 9.0)
        self.assertAlmostEqual(overall["element_fire"]["mean"], 3.6667, places=3)

    def test_metadata_ignored(self):
        overall = aggregate_match_summaries(self._make_summaries())["overall"]
        self.assertNotIn("judge", overall)
        self.assertNotIn("winner", overall)

    def test_group_by_judge(self):
        result = aggregate_match_summaries(self._make_summaries(), group_keys=["judge"])
        groups = result["by_group"]
        self.assertEqual(sorted(groups), ["The Emperor", "The Scholar"])
        self.assertAlmostEqual(groups["The Emperor"]["cards_played"]["mean"], 22.5)
        self.assertEqual(groups["The Scholar"]["shame_dealt"]["count"], 1)

    def test_group_by_two_keys(self):
        result = aggregate_match_summaries(self._make_summaries(), group_keys=["judge", "winner"])
        self.assertIn("The Emperor|player", result["by_group"])

    def test_empty(self):
        result = aggregate_match_summaries([])
        self.assertEqual(result["count"], 0)
        self.assertEqual(result["overall"], {})
        self.assertNotIn("by_group", result)


if __name__ == "__main__":
    unittest.main()
