"""Phase 8: Batch simulation and aggregation."""

from __future__ import annotations

import json
import random
from dataclasses import replace
from pathlib import Path
from typing import Any

from court_debate.engine import MatchConfig, play_match
from court_debate.models import ContentDB, MatchLog, Winner
from court_debate.policies import default_registry
from court_debate.telemetry import MatchTelemetry


def run_batch(
    content: ContentDB,
    base_config: MatchConfig,
    n_matches: int,
    base_seed: int,
    judges: list[str] | None = None,
    opponents: list[str] | None = None,
    output_dir: str | Path | None = None,
    trace: bool = False,
    telemetry_enabled: bool = False,
    policy_weights: list[dict[str, Any]] | None = None,
) -> tuple[list[MatchLog], list[dict[str, Any]]]:
    """Run ``n_matches`` seeded matches for every (judge, opponent) pairing.

    Returns the match logs and, when telemetry is on, one summary per match.
    """
    judges = judges or sorted(content.judges)
    opponents = opponents or sorted(content.opponents)
    registry = default_registry()
    mix = registry.mix(policy_weights) if policy_weights else None
    policy_rng = random.Random(base_seed)

    logs: list[MatchLog] = []
    summaries: list[dict[str, Any]] = []
    match_id = 0
    for judge in judges:
        for opponent in opponents:
            for _ in range(n_matches):
                seed = base_seed + match_id
                policy = mix.draw(policy_rng) if mix else base_config.policy
                config = replace(
                    base_config, seed=seed, judge=judge, opponents=[opponent], policy=policy,
                )
                agent = registry.make_agent(policy, seed)
                telemetry = MatchTelemetry() if telemetry_enabled else None
                _, log = play_match(content, config, agent, trace=trace, telemetry=telemetry)
                logs.append(log)
                if telemetry is not None:
                    summary = telemetry.to_summary()
                    summary.update({"seed": seed, "judge": judge, "opponent": opponent,
                                    "policy": policy})
                    summaries.append(summary)
                match_id += 1

    if output_dir is not None:
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)
        _write_logs(logs, out / "match_logs.json")
        if summaries:
            with open(out / "telemetry.json", "w", encoding="utf-8") as f:
                json.dump(summaries, f, indent=2, ensure_ascii=False)

    return logs, summaries


def log_to_dict(log: MatchLog, match_id: int) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "match_id": match_id,
        "seed": log.seed,
        "judge": log.judge,
        "opponents": list(log.opponents),
        "winner": log.winner.value if log.winner else None,
        "turns": log.turns,
        "final_patience": log.final_patience,
        "final_face": log.final_face,
        "final_tiers": list(log.final_tiers),
    }
    if log.play_trace is not None:
        entry["play_trace"] = log.play_trace
    return entry


def log_from_dict(entry: dict[str, Any]) -> MatchLog:
    return MatchLog(
        seed=entry["seed"],
        judge=entry["judge"],
        opponents=tuple(entry["opponents"]),
        winner=Winner(entry["winner"]) if entry.get("winner") else None,
        turns=entry["turns"],
        final_patience=entry["final_patience"],
        final_face=entry["final_face"],
        final_tiers=tuple(entry["final_tiers"]),
    )


def _write_logs(logs: list[MatchLog], path: Path) -> None:
    data = [log_to_dict(log, i) for i, log in enumerate(logs)]
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def _bucket(stats: dict[str, dict[str, int]], key: str) -> dict[str, int]:
    if key not in stats:
        stats[key] = {"wins": 0, "losses": 0, "games": 0}
    return stats[key]


def _rates(stats: dict[str, dict[str, int]]) -> dict[str, dict[str, Any]]:
    out: dict[str, dict[str, Any]] = {}
    for key, s in sorted(stats.items()):
        games = s["games"]
        out[key] = {
            **s,
            "win_rate": round(s["wins"] / games * 100, 1) if games else 0,
        }
    return out


def aggregate(logs: list[MatchLog]) -> dict[str, Any]:
    """Compute player win rates overall, per judge, and per opponent."""
    by_judge: dict[str, dict[str, int]] = {}
    by_opponent: dict[str, dict[str, int]] = {}
    wins = 0
    total_turns = 0
    face_outs = 0

    for log in logs:
        won = log.winner == Winner.PLAYER
        wins += int(won)
        total_turns += log.turns
        if log.final_face <= 0:
            face_outs += 1
        buckets = [_bucket(by_judge, log.judge)]
        buckets += [_bucket(by_opponent, name) for name in log.opponents]
        for b in buckets:
            b["games"] += 1
            b["wins" if won else "losses"] += 1

    n = len(logs)
    return {
        "total_matches": n,
        "player_wins": wins,
        "player_losses": n - wins,
        "win_rate": round(wins / n * 100, 1) if n else 0,
        "avg_turns": round(total_turns / n, 2) if n else 0,
        "face_losses": face_outs,
        "judges": _rates(by_judge),
        "opponents": _rates(by_opponent),
    }
