"""Combat log port – injected into the engine; NullCombatLog is the default sink."""

from __future__ import annotations

import csv
import io
import json
from abc import ABC
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from court_debate.costs import EffectiveCosts
    from court_debate.models import Card, Flow, MatchState

ACTORS = ("player", "opponent", "system", "judge")


def state_delta(before: "MatchState | None", after: "MatchState | None") -> dict[str, int]:
    """Changes in the headline numbers between two snapshots (zero deltas dropped)."""
    if before is None or after is None:
        return {}
    pairs = {
        "patience": (before.patience, after.patience),
        "player_face": (before.player.face, after.player.face),
        "player_poise": (before.player.poise, after.player.poise),
        "player_tier": (
            before.player.standing.current_tier, after.player.standing.current_tier,
        ),
        "player_favor": (
            before.player.standing.favor_in_current_tier,
            after.player.standing.favor_in_current_tier,
        ),
    }
    before_opps = {o.id: o for o in before.opponents}
    for opp in after.opponents:
        prev = before_opps.get(opp.id)
        if prev is None:
            continue
        pairs[f"{opp.id}_face"] = (prev.face, opp.face)
        pairs[f"{opp.id}_tier"] = (prev.standing.current_tier, opp.standing.current_tier)
    return {k: b - a for k, (a, b) in pairs.items() if b != a}


class CombatLog(ABC):
    """Sink for structured combat events. Every hook defaults to a no-op."""

    def set_turn(self, turn: int) -> None:
        pass

    def log(
        self,
        actor: str,
        action: str,
        details: dict[str, Any] | None = None,
        before: "MatchState | None" = None,
        after: "MatchState | None" = None,
    ) -> None:
        pass

    def log_card_played(
        self,
        card: "Card",
        costs: "EffectiveCosts",
        flow: "Flow",
        before: "MatchState",
        after: "MatchState",
    ) -> None:
        self.log("player", f"Played {card.name}", {
            "card_id": card.id,
            "element": card.element.value,
            "patience_cost": costs.patience,
            "face_cost": costs.face,
            "flow": flow.value,
        }, before, after)

    def log_ai_action(
        self,
        opponent: str,
        intention: str,
        intention_type: str,
        value: int,
        before: "MatchState",
        after: "MatchState",
    ) -> None:
        self.log("opponent", f"{opponent}: {intention}", {
            "type": intention_type, "value": value,
        }, before, after)

    def log_system_event(self, event: str, details: dict[str, Any] | None = None) -> None:
        self.log("system", event, details)


class NullCombatLog(CombatLog):
    pass


@dataclass
class LogEntry:
    id: int
    turn: int
    actor: str
    action: str
    details: dict[str, Any] = field(default_factory=dict)
    state_delta: dict[str, int] = field(default_factory=dict)


class CombatLogger(CombatLog):
    """In-memory combat log with subscribers and JSON/CSV export."""

    def __init__(self) -> None:
        self.entries: list[LogEntry] = []
        self._turn = 1
        self._subscribers: list[Callable[[LogEntry], None]] = []

    def set_turn(self, turn: int) -> None:
        self._turn = turn

    def log(
        self,
        actor: str,
        action: str,
        details: dict[str, Any] | None = None,
        before: "MatchState | None" = None,
        after: "MatchState | None" = None,
    ) -> None:
        if actor not in ACTORS:
            raise ValueError(f"Unknown log actor: {actor}")
        entry = LogEntry(
            id=len(self.entries) + 1,
            turn=self._turn,
            actor=actor,
            action=action,
            details=dict(details or {}),
            state_delta=state_delta(before, after),
        )
        self.entries.append(entry)
        for callback in list(self._subscribers):
            callback(entry)

    def subscribe(self, callback: Callable[[LogEntry], None]) -> Callable[[], None]:
        """Register ``callback``; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return _unsubscribe

    def clear(self) -> None:
        self.entries.clear()

    def export_json(self) -> str:
        return json.dumps([asdict(e) for e in self.entries], indent=2, ensure_ascii=False)

    def export_csv(self) -> str:
        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(["id", "turn", "actor", "action", "details", "state_delta"])
        for e in self.entries:
            writer.writerow([
                e.id, e.turn, e.actor, e.action,
                json.dumps(e.details, ensure_ascii=False),
                json.dumps(e.state_delta, ensure_ascii=False),
            ])
        return buf.getvalue()
