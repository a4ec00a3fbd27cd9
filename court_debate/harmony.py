"""Harmony calculator – classifies consecutive plays on the five-element cycle."""

from __future__ import annotations

from dataclasses import dataclass

from court_debate.models import Element, Flow

ELEMENT_CYCLE: tuple[Element, ...] = (
    Element.WOOD, Element.FIRE, Element.EARTH, Element.METAL, Element.WATER,
)

HARMONY_THRESHOLD = 5


@dataclass(frozen=True)
class FlowResult:
    flow: Flow
    distance: int | None
    new_harmony_streak: int
    threshold: int = HARMONY_THRESHOLD

    @property
    def is_balanced(self) -> bool:
        return self.flow == Flow.BALANCED

    @property
    def is_chaos(self) -> bool:
        return self.flow == Flow.CHAOS

    @property
    def is_dissonant(self) -> bool:
        return self.flow == Flow.DISSONANT

    @property
    def is_in_harmony(self) -> bool:
        return self.new_harmony_streak >= self.threshold


def cycle_distance(previous: Element, current: Element) -> int:
    """Forward distance from ``previous`` to ``current`` around the cycle."""
    prev_idx = ELEMENT_CYCLE.index(previous)
    cur_idx = ELEMENT_CYCLE.index(current)
    return (cur_idx - prev_idx + len(ELEMENT_CYCLE)) % len(ELEMENT_CYCLE)


def classify(previous: Element | None, current: Element) -> Flow:
    if previous is None:
        return Flow.NEUTRAL
    distance = cycle_distance(previous, current)
    if distance == 1:
        return Flow.BALANCED
    if distance == 2:
        return Flow.CHAOS
    if distance in (3, 4):
        return Flow.DISSONANT
    return Flow.NEUTRAL


def next_streak(streak: int, flow: Flow, threshold: int = HARMONY_THRESHOLD) -> int:
    if flow == Flow.BALANCED:
        return min(streak + 1, threshold)
    if flow == Flow.CHAOS:
        return 0
    return max(0, streak - 1)


def calculate_flow(
    previous: Element | None,
    current: Element,
    streak: int = 0,
    threshold: int = HARMONY_THRESHOLD,
) -> FlowResult:
    flow = classify(previous, current)
    distance = None if previous is None else cycle_distance(previous, current)
    return FlowResult(
        flow=flow,
        distance=distance,
        new_harmony_streak=next_streak(streak, flow, threshold),
        threshold=threshold,
    )
