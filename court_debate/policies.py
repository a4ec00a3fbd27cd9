"""Player policies – named agent factories and weighted mixes for batch debates."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Callable

from court_debate.ai import Agent, GreedyAI, RandomAI, SimpleAI

AgentFactory = Callable[[int], Agent]  # (seed) -> Agent


@dataclass(frozen=True)
class PolicyMix:
    """Normalized policy weights; ``pick`` maps a roll onto a policy name."""

    weights: tuple[tuple[str, float], ...]

    def pick(self, roll: float) -> str:
        acc = 0.0
        for name, weight in self.weights:
            acc += weight
            if roll < acc:
                return name
        return self.weights[-1][0]

    def draw(self, rng: random.Random) -> str:
        return self.pick(rng.random())


class PolicyRegistry:
    def __init__(self) -> None:
        self._factories: dict[str, AgentFactory] = {}

    def register(self, name: str, factory: AgentFactory) -> None:
        self._factories[name] = factory

    def names(self) -> list[str]:
        return sorted(self._factories)

    def make_agent(self, name: str, seed: int) -> Agent:
        """Build the agent for ``name``. Raises KeyError for an unknown policy."""
        return self._factories[name](seed)

    def mix(self, entries: list[dict[str, Any]]) -> PolicyMix:
        """Turn ``[{"name": ..., "weight": ...}, ...]`` into a normalized mix.

        Raises KeyError for an unregistered name and ValueError for an empty
        list, a negative weight, or a non-positive total.
        """
        if not entries:
            raise ValueError("Policy mix must name at least one policy")
        for entry in entries:
            if entry["name"] not in self._factories:
                raise KeyError(entry["name"])
            if float(entry["weight"]) < 0:
                raise ValueError(f"Negative weight for policy '{entry['name']}'")
        total = sum(float(entry["weight"]) for entry in entries)
        if total <= 0:
            raise ValueError(f"Total policy weight must be positive, got {total}")
        return PolicyMix(tuple((e["name"], float(e["weight"]) / total) for e in entries))


def default_registry() -> PolicyRegistry:
    registry = PolicyRegistry()
    registry.register("greedy", GreedyAI)
    registry.register("simple", lambda seed: SimpleAI())
    registry.register("random", RandomAI)
    return registry
