"""v3.1: Aggregation of match telemetry summaries."""

from __future__ import annotations

from collections import defaultdict
from typing import Any

from court_debate.models import Element, Flow

# Numeric fields in a telemetry summary (metadata excluded)
_NUMERIC_KEYS: set[str] = {
    "total_turns", "final_patience", "final_tier",
    "cards_played", "bad_cards_played", "patience_spent_on_cards",
    "patience_spent_on_end_turn", "standing_gained", "shame_dealt",
    "face_lost", "opponent_actions", "judge_decrees", "flustered",
    "max_harmony_streak",
}
_NUMERIC_KEYS.update(f"flow_{f.value}" for f in Flow)
_NUMERIC_KEYS.update(f"element_{e.value}" for e in Element)


def aggregate_match_summaries(
    summaries: list[dict[str, Any]],
    group_keys: list[str] | None = None,
) -> dict[str, Any]:
    """Aggregate a list of match telemetry summaries.

    Returns a dict with:
      - "overall": {field: {"sum": .., "mean": .., "count": ..}}
      - "by_group": {group_value: {field: {...}}} (only if group_keys is given)
    """
    if group_keys is None:
        group_keys = []

    result: dict[str, Any] = {
        "overall": _aggregate_group(summaries),
        "count": len(summaries),
    }

    if group_keys:
        groups: dict[str, list[dict[str, Any]]] = defaultdict(list)
        for s in summaries:
            group_key = "|".join(str(s.get(k, "unknown")) for k in group_keys)
            groups[group_key].append(s)
        result["by_group"] = {
            gk: _aggregate_group(gs) for gk, gs in sorted(groups.items())
        }

    return result


def _aggregate_group(summaries: list[dict[str, Any]]) -> dict[str, Any]:
    if not summaries:
        return {}

    totals: dict[str, float] = defaultdict(float)
    count = len(summaries)
    for s in summaries:
        for key in _NUMERIC_KEYS:
            if key in s:
                totals[key] += float(s[key])

    return {
        key: {"sum": total, "mean": round(total / count, 4), "count": count}
        for key, total in sorted(totals.items())
    }
