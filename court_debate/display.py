"""Phase 9a: CLI display – debate state, actions, and stats."""

from __future__ import annotations

from typing import Any

from court_debate.actions import Action, EndTurn, PlayCard
from court_debate.costs import calculate_effective_costs
from court_debate.models import MatchState, PLAYER
from court_debate.opponent import describe_intention
from court_debate.standing import get_tier_progress
from court_debate.statuses import get_statuses, is_opponent_revealed


def render_state(state: MatchState) -> None:
    p = state.player
    print(f"\n{'='*60}")
    print(f"  Turn {state.turn_number}  |  Judge: {state.judge.name}  |  "
          f"Patience: {state.patience}  |  Harmony: {state.harmony_streak}")
    print(f"{'='*60}")

    progress = get_tier_progress(state, PLAYER)
    print(f"  You: Face={p.face}/{p.max_face}  Poise={p.poise}  "
          f"Tier={progress.tier_name} ({progress.favor_in_tier}/{progress.favor_required})  "
          f"Deck={len(p.deck)}  Discard={len(p.discard)}")

    for opp in state.opponents:
        intent = opp.current_intention
        line = f"  {opp.name}: Face={opp.face}/{opp.max_face}  Tier={opp.standing.current_tier}"
        if intent is not None:
            line += f"  -> {intent.name} ({describe_intention(intent)})"
        if is_opponent_revealed(state, opp.id) and opp.next_intention is not None:
            line += f"  then {opp.next_intention.name}"
        print(line)

    if state.judge.effects.active_decrees:
        names = ", ".join(d.name for d in state.judge.effects.active_decrees)
        print(f"  Decrees: {names}")
    statuses = get_statuses(state, PLAYER)
    if statuses:
        print(f"  Statuses: {', '.join(s.name for s in statuses)}")
    print()


def render_actions(actions: list[Action], state: MatchState) -> None:
    hand = state.player.hand
    print("  Actions:")
    for i, action in enumerate(actions):
        match action:
            case PlayCard(hand_index=idx, target_indices=targets, target_opponent=opp_id):
                card = hand[idx]
                costs = calculate_effective_costs(card, state)
                label = (f"    [{i}] Play: {card.name} [{card.element.value}] "
                         f"(patience {costs.patience}, face {costs.face}, {costs.flow.value})")
                if targets:
                    label += " targeting " + ", ".join(hand[t].name for t in targets)
                if opp_id is not None:
                    label += f" at {state.opponent_by_id(opp_id).name}"
                print(label)
            case EndTurn():
                print(f"    [{i}] End Turn")
    print()


def render_stats(stats: dict[str, Any]) -> None:
    print(f"\n{'='*60}")
    print(f"  Simulation Results  ({stats['total_matches']} matches)")
    print(f"{'='*60}")
    print(f"  Player wins: {stats['player_wins']}  Losses: {stats['player_losses']}  "
          f"WR={stats['win_rate']:5.1f}%  Avg turns={stats['avg_turns']}")

    for section in ("judges", "opponents"):
        print(f"\n  By {section[:-1]}:")
        for name, s in stats[section].items():
            print(f"    {name:24s}  W={s['wins']:4d}  L={s['losses']:4d}  "
                  f"WR={s['win_rate']:5.1f}%")
    print()


def render_telemetry(agg: dict[str, Any]) -> None:
    print(f"  Telemetry ({agg['count']} matches):")
    for key, v in agg["overall"].items():
        print(f"    {key:28s}  mean={v['mean']:8.2f}")
    print()
