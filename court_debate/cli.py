"""Phase 9b: CLI entry point – play / simulate / stats / replay subcommands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from court_debate.ai import HumanAgent
from court_debate.combat_log import CombatLogger
from court_debate.display import render_state, render_stats, render_telemetry
from court_debate.engine import MatchConfig, play_match
from court_debate.loader import DEFAULT_DATA_DIR, load_content
from court_debate.metrics import aggregate_match_summaries
from court_debate.replay import ReplayWriter, render_replay
from court_debate.simulation import aggregate, log_from_dict, run_batch

DEFAULT_CONFIG = DEFAULT_DATA_DIR / "match.json"


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="court_debate", description="Court Debate combat engine")
    sub = parser.add_subparsers(dest="command")

    # --- play ---
    p_play = sub.add_parser("play", help="Play a single debate")
    p_play.add_argument("--config", default=str(DEFAULT_CONFIG), help="Path to match config JSON")
    p_play.add_argument("--seed", type=int, default=None)
    p_play.add_argument("--judge", default=None)
    p_play.add_argument("--opponent", action="append", default=None,
                        help="Opponent name (repeat for a multi-opponent debate)")
    p_play.add_argument("--core-argument", default=None)
    p_play.add_argument("--mode", choices=["ai", "human"], default="ai")
    p_play.add_argument("--policy", default=None, help="greedy, simple or random")
    p_play.add_argument("--data", default=None, help="Content directory")
    p_play.add_argument("--trace", action="store_true", help="Print play trace")
    p_play.add_argument("--log", choices=["none", "json", "csv"], default="none",
                        help="Dump the combat log after the match")
    p_play.add_argument("--replay", default=None, help="Write a JSONL replay to this path")

    # --- simulate ---
    p_sim = sub.add_parser("simulate", help="Run batch simulation")
    p_sim.add_argument("--config", default=str(DEFAULT_CONFIG), help="Path to match config JSON")
    p_sim.add_argument("--matches", type=int, default=20, help="Matches per judge/opponent pair")
    p_sim.add_argument("--seed", type=int, default=42)
    p_sim.add_argument("--judges", nargs="*", default=None)
    p_sim.add_argument("--opponents", nargs="*", default=None)
    p_sim.add_argument("--policies", default=None,
                       help="name:weight,... (e.g. greedy:0.6,simple:0.3,random:0.1)")
    p_sim.add_argument("--data", default=None, help="Content directory")
    p_sim.add_argument("--output", default="output/", help="Output directory")
    p_sim.add_argument("--trace", action="store_true", help="Include play traces in log")
    p_sim.add_argument("--telemetry", choices=["on", "off"], default="off",
                       help="Enable match telemetry collection")

    # --- stats ---
    p_stats = sub.add_parser("stats", help="Show stats from match logs")
    p_stats.add_argument("--logs", required=True, help="Path to match_logs.json")

    # --- replay ---
    p_rep = sub.add_parser("replay", help="Render a JSONL replay")
    p_rep.add_argument("path")
    p_rep.add_argument("--from-turn", type=int, default=None)
    p_rep.add_argument("--to-turn", type=int, default=None)
    p_rep.add_argument("--compact", action="store_true")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "play":
        _cmd_play(args)
    elif args.command == "simulate":
        _cmd_simulate(args)
    elif args.command == "stats":
        _cmd_stats(args)
    elif args.command == "replay":
        render_replay(args.path, args.from_turn, args.to_turn, args.compact)


def _load_config(args: argparse.Namespace, **overrides: Any) -> MatchConfig:
    if Path(args.config).exists():
        return MatchConfig.from_json(args.config, **overrides)
    return MatchConfig(**{k: v for k, v in overrides.items() if v is not None})


def _content_dir(config: MatchConfig, args: argparse.Namespace) -> Path:
    return Path(args.data or config.data_dir or DEFAULT_DATA_DIR)


def _cmd_play(args: argparse.Namespace) -> None:
    config = _load_config(
        args,
        seed=args.seed,
        judge=args.judge,
        opponents=args.opponent,
        core_argument=args.core_argument,
        policy=args.policy,
    )
    content = load_content(_content_dir(config, args))
    agent = HumanAgent() if args.mode == "human" else None
    log = CombatLogger()

    if args.replay:
        with ReplayWriter(Path(args.replay)) as replay:
            state, match_log = play_match(
                content, config, agent, trace=args.trace, replay=replay, log=log,
            )
    else:
        state, match_log = play_match(content, config, agent, trace=args.trace, log=log)

    render_state(state)
    winner = match_log.winner.value if match_log.winner else "none"
    print(f"Result: {winner}  (judge: {match_log.judge})")
    print(f"Turns: {match_log.turns}  Patience: {match_log.final_patience}  "
          f"Face: {match_log.final_face}  Tiers: you={match_log.final_tiers[0]} "
          f"rival={match_log.final_tiers[1]}")

    if match_log.play_trace:
        print(f"\nTrace ({len(match_log.play_trace)} actions):")
        for entry in match_log.play_trace:
            print(f"  T{entry['turn']}: {entry['action']}")

    if args.log == "json":
        print(log.export_json())
    elif args.log == "csv":
        print(log.export_csv())


def _parse_policy_arg(arg: str) -> list[dict[str, Any]]:
    """Parse 'greedy:0.6,simple:0.3' into [{"name": "greedy", "weight": 0.6}, ...]."""
    entries = []
    for part in arg.split(","):
        part = part.strip()
        if ":" in part:
            name, weight_str = part.split(":", 1)
            entries.append({"name": name.strip(), "weight": float(weight_str.strip())})
        else:
            entries.append({"name": part, "weight": 1.0})
    return entries


def _cmd_simulate(args: argparse.Namespace) -> None:
    config = _load_config(args)
    content = load_content(_content_dir(config, args))

    telemetry_on = args.telemetry == "on"
    logs, summaries = run_batch(
        content, config, args.matches, args.seed,
        judges=args.judges or None,
        opponents=args.opponents or None,
        output_dir=args.output,
        trace=args.trace,
        telemetry_enabled=telemetry_on,
        policy_weights=_parse_policy_arg(args.policies) if args.policies else None,
    )
    render_stats(aggregate(logs))
    if summaries:
        render_telemetry(aggregate_match_summaries(summaries, group_keys=["judge"]))

    print(f"Logs written to: {Path(args.output) / 'match_logs.json'}")


def _cmd_stats(args: argparse.Namespace) -> None:
    with open(args.logs, encoding="utf-8") as f:
        raw = json.load(f)
    render_stats(aggregate([log_from_dict(entry) for entry in raw]))


