"""v3.1: Match telemetry – per-match counters for balance analytics."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

from court_debate.harmony import classify
from court_debate.models import Element, Flow
from court_debate.opponent import FLUSTERED_INTENTIONS
from court_debate.standing import get_total_favor

if TYPE_CHECKING:
    from court_debate.models import Card, MatchState


_FLUSTERED_NAMES = frozenset(i.name for i in FLUSTERED_INTENTIONS)


class MatchTelemetry:
    """Collects per-match statistics via on_*() hooks called from the runner.

    Every hook receives the state before and after the step, so the
    counters are derived from state differences rather than engine internals.
    """

    def __init__(self) -> None:
        self.cards_played: int = 0
        self.bad_cards_played: int = 0
        self.patience_spent_on_cards: int = 0
        self.patience_spent_on_end_turn: int = 0
        self.standing_gained: int = 0
        self.shame_dealt: int = 0
        self.face_lost: int = 0
        self.opponent_actions: int = 0
        self.judge_decrees: int = 0
        self.flustered: int = 0
        self.flow_counts: dict[str, int] = {f.value: 0 for f in Flow}
        self.element_counts: dict[str, int] = {e.value: 0 for e in Element}
        self.max_harmony_streak: int = 0

        # Match metadata
        self._total_turns: int = 0
        self._winner: str = ""
        self._reason: str = ""
        self._final_patience: int = 0
        self._final_tier: int = 0

    # ------------------------------------------------------------------
    # Shared state-diff bookkeeping
    # ------------------------------------------------------------------

    def _track(self, before: "MatchState", after: "MatchState") -> None:
        tiers = after.judge.tier_structure
        gained = (
            get_total_favor(after.player.standing, tiers)
            - get_total_favor(before.player.standing, tiers)
        )
        self.standing_gained += max(gained, 0)
        self.face_lost += max(before.player.face - after.player.face, 0)

        before_opps = {o.id: o for o in before.opponents}
        for opp in after.opponents:
            prev = before_opps.get(opp.id)
            if prev is None:
                continue
            became_flustered = (
                opp.current_intention is not None
                and opp.current_intention.name in _FLUSTERED_NAMES
                and opp.current_intention != prev.current_intention
            )
            if became_flustered:
                self.flustered += 1
                # the face reset hides the blow that caused it
                self.shame_dealt += prev.face
            else:
                self.shame_dealt += max(prev.face - opp.face, 0)

        for event in after.events[len(before.events):]:
            if event.type == "opponent_action":
                self.opponent_actions += 1
            elif event.type == "judge_decree":
                self.judge_decrees += 1

    # ------------------------------------------------------------------
    # Hook methods – called by engine.run_match
    # ------------------------------------------------------------------

    def on_match_start(self, state: "MatchState") -> None:
        pass

    def on_turn_start(self, state: "MatchState") -> None:
        pass

    def on_card_played(
        self, before: "MatchState", after: "MatchState", card: "Card",
    ) -> None:
        self.cards_played += 1
        if card.is_bad:
            self.bad_cards_played += 1
        self.element_counts[card.element.value] += 1
        self.flow_counts[classify(before.last_element, card.element).value] += 1
        self.max_harmony_streak = max(self.max_harmony_streak, after.harmony_streak)
        # patience drained by mid-turn opponent actions is counted as card spend too
        self.patience_spent_on_cards += max(before.patience - after.patience, 0)
        self._track(before, after)

    def on_end_turn(self, before: "MatchState", after: "MatchState") -> None:
        self.patience_spent_on_end_turn += before.judge.effects.end_turn_patience_cost
        self._track(before, after)

    def on_match_end(self, state: "MatchState", reason: str) -> None:
        self._total_turns = state.turn_number
        self._winner = state.winner.value if state.winner else ""
        self._reason = reason
        self._final_patience = state.patience
        self._final_tier = state.player.standing.current_tier

    # ------------------------------------------------------------------
    # Summary export
    # ------------------------------------------------------------------

    def to_summary(self) -> dict[str, Any]:
        """Return a flat dict summarizing this match's telemetry."""
        summary: dict[str, Any] = {
            "total_turns": self._total_turns,
            "winner": self._winner,
            "reason": self._reason,
            "final_patience": self._final_patience,
            "final_tier": self._final_tier,
        }
        for fname in (
            "cards_played", "bad_cards_played", "patience_spent_on_cards",
            "patience_spent_on_end_turn", "standing_gained", "shame_dealt",
            "face_lost", "opponent_actions", "judge_decrees", "flustered",
            "max_harmony_streak",
        ):
            summary[fname] = getattr(self, fname)
        for flow, n in self.flow_counts.items():
            summary[f"flow_{flow}"] = n
        for element, n in self.element_counts.items():
            summary[f"element_{element}"] = n
        return summary
