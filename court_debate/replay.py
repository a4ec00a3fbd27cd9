"""v0.5.9: Replay recording and playback."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

from court_debate.opponent import describe_intention

if TYPE_CHECKING:
    from court_debate.models import MatchState, Opponent


def snapshot_opponent(opp: "Opponent") -> dict:
    """Snapshot one opponent's state."""
    return {
        "id": opp.id,
        "name": opp.name,
        "face": opp.face,
        "max_face": opp.max_face,
        "tier": opp.standing.current_tier,
        "favor": opp.standing.favor_in_current_tier,
        "intention": opp.current_intention.name if opp.current_intention else None,
        "intention_text": (
            describe_intention(opp.current_intention) if opp.current_intention else ""
        ),
    }


def snapshot_state(state: "MatchState") -> dict:
    """Snapshot the headline numbers of a match."""
    p = state.player
    return {
        "patience": state.patience,
        "face": p.face,
        "max_face": p.max_face,
        "poise": p.poise,
        "tier": p.standing.current_tier,
        "favor": p.standing.favor_in_current_tier,
        "hand_count": len(p.hand),
        "deck_count": len(p.deck),
        "discard_count": len(p.discard),
        "harmony_streak": state.harmony_streak,
        "decrees": [d.name for d in state.judge.effects.active_decrees],
        "opponents": [snapshot_opponent(o) for o in state.opponents],
    }


class ReplayWriter:
    """Writes replay events as JSONL to a file."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self._path, "w", encoding="utf-8")
        self._closed = False

    def write(self, event: dict) -> None:
        if self._closed:
            raise RuntimeError("ReplayWriter is closed")
        self._file.write(json.dumps(event, ensure_ascii=False) + "\n")

    def close(self) -> None:
        if not self._closed:
            self._file.close()
            self._closed = True

    @property
    def path(self) -> Path:
        return self._path

    def __enter__(self) -> "ReplayWriter":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def load_replay(path: str | Path) -> list[dict]:
    events: list[dict] = []
    with open(Path(path), encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                events.append(json.loads(line))
    return events


def _print_state(snap: dict, compact: bool) -> None:
    print(f"  Patience={snap.get('patience')}  Face={snap.get('face')}/{snap.get('max_face')}  "
          f"Poise={snap.get('poise')}  Tier={snap.get('tier')} ({snap.get('favor')} favor)")
    if compact:
        return
    for o in snap.get("opponents", []):
        print(f"    {o['name']}: Face={o['face']}/{o['max_face']} Tier={o['tier']} "
              f"-> {o['intention']} ({o['intention_text']})")
    if snap.get("decrees"):
        print(f"    Decrees: {', '.join(snap['decrees'])}")


def render_replay(
    path: str | Path,
    from_turn: int | None = None,
    to_turn: int | None = None,
    compact: bool = False,
) -> None:
    """Render a JSONL replay file to stdout."""
    for ev in load_replay(path):
        etype = ev.get("type", "")
        turn = ev.get("turn")

        # Filter by turn range
        if turn is not None:
            if from_turn is not None and turn < from_turn:
                continue
            if to_turn is not None and turn > to_turn:
                continue

        if etype == "meta":
            print(f"=== REPLAY: seed={ev.get('seed')} ===")
            print(f"  Judge: {ev.get('judge')}  |  Opponents: {', '.join(ev.get('opponents', []))}")

        elif etype == "match_start":
            _print_state(ev.get("state", {}), compact)

        elif etype == "turn_start":
            print(f"\n--- Turn {turn} ---")
            _print_state(ev.get("state", {}), compact)

        elif etype == "play_card":
            print(f"  Plays {ev.get('name')} [{ev.get('element')}] "
                  f"-> patience {ev.get('patience_after')}, face {ev.get('face_after')}")

        elif etype == "end_turn":
            print(f"  End turn -> patience {ev.get('patience_after')}, "
                  f"face {ev.get('face_after')}")
            if not compact:
                for e in ev.get("events", []):
                    print(f"    [{e['type']}] {e['name']} ({e['value']})")

        elif etype == "match_end":
            print("\n=== MATCH END ===")
            print(f"  Winner: {ev.get('winner')} (reason: {ev.get('reason')})")
            print(f"  Final patience: {ev.get('final_patience')}  Final face: {ev.get('final_face')}")
            print(f"  Turns: {ev.get('turns')}")
