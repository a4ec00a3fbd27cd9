"""Standing / tier system – favor walks the judge's tier ladder in both directions."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

from court_debate.models import (
    PLAYER, MatchState, Standing, TierDefinition, Winner,
)


@dataclass(frozen=True)
class TierProgress:
    current_tier: int
    tier_name: str
    favor_in_tier: int
    favor_required: int
    progress_percent: float
    is_max_tier: bool


@dataclass(frozen=True)
class CombatResult:
    player_tier: int
    opponent_tier: int
    max_tier: int
    player_total_favor: int
    opponent_total_favor: int

    @property
    def winner(self) -> Winner:
        if self.player_tier > self.opponent_tier:
            return Winner.PLAYER
        return Winner.OPPONENT


# ---------------------------------------------------------------------------
# Ladder helpers
# ---------------------------------------------------------------------------

def get_max_tier(tiers: tuple[TierDefinition, ...]) -> int:
    return max((t.tier_number for t in tiers), default=0)


def _tier(tiers: tuple[TierDefinition, ...], tier_number: int) -> TierDefinition | None:
    for t in tiers:
        if t.tier_number == tier_number:
            return t
    return None


def tier_requirement(tiers: tuple[TierDefinition, ...], tier_number: int) -> int:
    t = _tier(tiers, tier_number)
    return t.favor_required if t is not None else 0


def get_total_favor(standing: Standing, tiers: tuple[TierDefinition, ...]) -> int:
    """Favor banked in completed tiers plus progress in the current one."""
    banked = sum(tier_requirement(tiers, n) for n in range(standing.current_tier))
    return banked + standing.favor_in_current_tier


def advance(standing: Standing, amount: int, tiers: tuple[TierDefinition, ...]) -> Standing:
    if amount <= 0:
        return standing
    tier = standing.current_tier
    favor = standing.favor_in_current_tier + amount
    max_tier = get_max_tier(tiers)
    while tier < max_tier:
        required = tier_requirement(tiers, tier)
        if favor < required:
            break
        favor -= required
        tier += 1
    return Standing(current_tier=tier, favor_in_current_tier=favor)


def retreat(standing: Standing, amount: int, tiers: tuple[TierDefinition, ...]) -> Standing:
    if amount <= 0:
        return standing
    tier = standing.current_tier
    favor = standing.favor_in_current_tier
    deficit = amount
    while deficit > 0:
        if favor >= deficit:
            favor -= deficit
            deficit = 0
        elif tier > 0:
            deficit -= favor
            tier -= 1
            favor = tier_requirement(tiers, tier)
        else:
            favor = 0
            break
    return Standing(current_tier=tier, favor_in_current_tier=favor)


# ---------------------------------------------------------------------------
# State-level operations
# ---------------------------------------------------------------------------

def get_standing(state: MatchState, target: str, opponent_id: str | None = None) -> Standing:
    if target == PLAYER:
        return state.player.standing
    opp = state.opponent_by_id(opponent_id)
    return opp.standing if opp is not None else Standing()


def _set_standing(
    state: MatchState, target: str, standing: Standing, opponent_id: str | None,
) -> MatchState:
    if target == PLAYER:
        return replace(state, player=replace(state.player, standing=standing))
    opp = state.opponent_by_id(opponent_id)
    if opp is None:
        return state
    return state.replace_opponent(replace(opp, standing=standing))


def add_standing(
    state: MatchState, target: str, amount: int, opponent_id: str | None = None,
) -> MatchState:
    tiers = state.judge.tier_structure
    current = get_standing(state, target, opponent_id)
    return _set_standing(state, target, advance(current, amount, tiers), opponent_id)


def remove_standing(
    state: MatchState, target: str, amount: int, opponent_id: str | None = None,
) -> MatchState:
    tiers = state.judge.tier_structure
    current = get_standing(state, target, opponent_id)
    return _set_standing(state, target, retreat(current, amount, tiers), opponent_id)


def apply_standing_gain_modifier(amount: int, modifier: float) -> int:
    return math.floor(amount * modifier)


def get_tier_progress(
    state: MatchState, target: str = PLAYER, opponent_id: str | None = None,
) -> TierProgress:
    tiers = state.judge.tier_structure
    standing = get_standing(state, target, opponent_id)
    tier = _tier(tiers, standing.current_tier)
    required = tier.favor_required if tier is not None else 0
    is_max = standing.current_tier >= get_max_tier(tiers)
    if is_max or required <= 0:
        percent = 100.0
    else:
        percent = min(100.0, standing.favor_in_current_tier / required * 100)
    return TierProgress(
        current_tier=standing.current_tier,
        tier_name=tier.tier_name if tier is not None else "",
        favor_in_tier=standing.favor_in_current_tier,
        favor_required=required,
        progress_percent=round(percent, 1),
        is_max_tier=is_max,
    )


def max_opponent_tier(state: MatchState) -> int:
    return max((o.standing.current_tier for o in state.opponents), default=0)


def get_combat_result(state: MatchState) -> CombatResult:
    tiers = state.judge.tier_structure
    best = max(
        state.opponents,
        key=lambda o: (o.standing.current_tier, get_total_favor(o.standing, tiers)),
        default=None,
    )
    return CombatResult(
        player_tier=state.player.standing.current_tier,
        opponent_tier=max_opponent_tier(state),
        max_tier=get_max_tier(tiers),
        player_total_favor=get_total_favor(state.player.standing, tiers),
        opponent_total_favor=get_total_favor(best.standing, tiers) if best else 0,
    )

