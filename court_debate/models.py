"""Phase 1: Data models for the court debate combat engine.

Every record is frozen. Engine functions never mutate a state; they build a
new one with ``dataclasses.replace``.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, ClassVar, Union


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Element(Enum):
    WOOD = "wood"
    FIRE = "fire"
    EARTH = "earth"
    METAL = "metal"
    WATER = "water"


class Flow(Enum):
    BALANCED = "balanced"
    CHAOS = "chaos"
    DISSONANT = "dissonant"
    NEUTRAL = "neutral"


class IntentionType(Enum):
    ATTACK = "attack"
    STANDING_GAIN = "standing_gain"
    STANDING_STEAL = "standing_steal"
    STALL = "stall"
    FLUSTERED = "flustered"


class StatusTrigger(Enum):
    TURN_START = "turn_start"
    TURN_END = "turn_end"
    ON_DAMAGE = "on_damage"
    PASSIVE = "passive"
    ON_DAMAGE_DEALT = "on_damage_dealt"
    ON_TIER_ADVANCE = "on_tier_advance"
    ON_OPPONENT_STANDING_GAIN = "on_opponent_standing_gain"


class ModifierOp(Enum):
    ADD = "add"
    MULTIPLY = "multiply"
    SET = "set"


class ModifierStat(Enum):
    PATIENCE_COST = "patience_cost"
    ELEMENT_COST = "element_cost"
    STANDING_GAIN = "standing_gain"
    FAVOR_GAIN_MULTIPLIER = "favor_gain_multiplier"
    DAMAGE_BONUS = "damage_bonus"
    DAMAGE_TAKEN = "damage_taken"
    DRAW_BONUS = "draw_bonus"


class TurnPhase(Enum):
    PLAYER_ACTION = "player_action"
    RESOLVING = "resolving"
    OPPONENT_TURN = "opponent_turn"
    DRAWING = "drawing"


class Winner(Enum):
    PLAYER = "player"
    OPPONENT = "opponent"


PLAYER = "player"
OPPONENT = "opponent"


# ---------------------------------------------------------------------------
# Effect definitions (closed set of tagged variants)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GainStanding:
    value: int
    target: str = PLAYER
    kind: ClassVar[str] = "gain_standing"


@dataclass(frozen=True)
class DealShame:
    value: int
    kind: ClassVar[str] = "deal_shame"


@dataclass(frozen=True)
class HealFace:
    value: int
    kind: ClassVar[str] = "heal_face"


@dataclass(frozen=True)
class GainPoise:
    value: int
    kind: ClassVar[str] = "gain_poise"


@dataclass(frozen=True)
class DrainPatience:
    value: int
    kind: ClassVar[str] = "drain_patience"


@dataclass(frozen=True)
class DrawCards:
    count: int
    kind: ClassVar[str] = "draw_cards"


@dataclass(frozen=True)
class AddStatus:
    status_id: str
    duration: int | None = None     # None -> template default
    target: str = PLAYER
    kind: ClassVar[str] = "add_status"


@dataclass(frozen=True)
class RemoveStatus:
    status_id: str | None = None    # template id
    tag: str | None = None
    target: str = PLAYER
    kind: ClassVar[str] = "remove_status"


@dataclass(frozen=True)
class RevealIntention:
    count: int = 1
    kind: ClassVar[str] = "reveal_intention"


@dataclass(frozen=True)
class BurnCard:
    count: int = 1
    source: str = "selected"        # "selected" or "random"
    kind: ClassVar[str] = "burn_card"


@dataclass(frozen=True)
class DiscardCard:
    count: int = 1
    source: str = "selected"
    kind: ClassVar[str] = "discard_card"


@dataclass(frozen=True)
class ShuffleDiscard:
    """Shuffle the discard pile back into the deck."""
    kind: ClassVar[str] = "shuffle_discard"


@dataclass(frozen=True)
class TargetPatienceCost:
    """Patience cost of the first selected card, times ``multiplier``."""
    multiplier: int = 1
    kind: ClassVar[str] = "target_patience_cost"


ComputedValue = TargetPatienceCost


@dataclass(frozen=True)
class Computed:
    compute: ComputedValue
    template: "EffectDef"
    kind: ClassVar[str] = "computed"


EffectDef = Union[
    GainStanding, DealShame, HealFace, GainPoise, DrainPatience, DrawCards,
    AddStatus, RemoveStatus, RevealIntention, BurnCard, DiscardCard, ShuffleDiscard, Computed,
]

EFFECT_TYPES: dict[str, type] = {
    cls.kind: cls
    for cls in (
        GainStanding, DealShame, HealFace, GainPoise, DrainPatience, DrawCards,
        AddStatus, RemoveStatus, RevealIntention, BurnCard, DiscardCard, ShuffleDiscard,
        Computed,
    )
}


# ---------------------------------------------------------------------------
# Card definition (immutable content)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TargetRequirement:
    type: str = "none"              # "none" or "hand_card"
    destination: str = "discard"    # "discard" or "burn"
    selection_mode: str = "choose"  # "choose" or "random"
    count: int = 1
    element: Element | None = None  # filter
    optional: bool = False
    is_play_requirement: bool = False
    prompt: str = ""


@dataclass(frozen=True)
class Card:
    id: str
    name: str
    element: Element
    patience_cost: int
    face_cost: int
    effects: tuple[EffectDef, ...] = ()
    description: str = ""
    target_requirement: TargetRequirement | None = None
    is_bad: bool = False
    remove_after_play: bool = False

    @property
    def needs_target(self) -> bool:
        req = self.target_requirement
        return req is not None and req.type == "hand_card"


# ---------------------------------------------------------------------------
# Statuses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StatusModifier:
    stat: ModifierStat
    op: ModifierOp
    value: float
    element: Element | None = None


@dataclass(frozen=True)
class StatusTemplate:
    id: str
    name: str
    description: str
    trigger: StatusTrigger
    default_duration: int = -1
    default_trigger_count: int | None = None
    modifiers: tuple[StatusModifier, ...] = ()
    triggered_effects: tuple[EffectDef, ...] = ()
    is_positive: bool = True
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class Status:
    id: str
    name: str
    owner: str                      # "player" or "opponent"
    trigger: StatusTrigger
    turns_remaining: int = -1       # -1 == permanent
    triggers_remaining: int | None = None
    modifiers: tuple[StatusModifier, ...] = ()
    triggered_effects: tuple[EffectDef, ...] = ()
    tags: tuple[str, ...] = ()
    is_positive: bool = True
    template_id: str | None = None
    description: str = ""
    opponent_id: str | None = None  # owning opponent, when owner == "opponent"

    @property
    def is_permanent(self) -> bool:
        return self.turns_remaining == -1


# ---------------------------------------------------------------------------
# Standing
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TierDefinition:
    tier_number: int
    favor_required: int
    tier_name: str


@dataclass(frozen=True)
class Standing:
    current_tier: int = 0
    favor_in_current_tier: int = 0


DEFAULT_TIER_STRUCTURE: tuple[TierDefinition, ...] = (
    TierDefinition(0, 25, "Petitioner"),
    TierDefinition(1, 35, "Advisor"),
    TierDefinition(2, 50, "Minister"),
    TierDefinition(3, 70, "Chancellor"),
)


# ---------------------------------------------------------------------------
# Core arguments (passive traits)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PassiveModifiers:
    standing_gain_bonus: int = 0
    standing_gain_multiplier: float = 1.0
    element_cost_reduction: tuple[tuple[Element, int], ...] = ()
    patience_cost_reduction: int = 0
    starting_poise: int = 0
    opponent_standing_damage_bonus: int = 0
    draw_bonus: int = 0


@dataclass(frozen=True)
class CoreArgument:
    id: str
    name: str
    description: str = ""
    element: Element | None = None
    trigger: StatusTrigger | None = None
    passive: PassiveModifiers = field(default_factory=PassiveModifiers)


# ---------------------------------------------------------------------------
# Opponents
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Intention:
    name: str
    type: IntentionType
    value: int
    patience_threshold: int = 0     # 0 == fires only at end of turn


@dataclass(frozen=True)
class OpponentTemplate:
    name: str
    max_face: int
    intentions: tuple[Intention, ...]
    core_argument: CoreArgument | None = None


@dataclass(frozen=True)
class Opponent:
    id: str
    name: str
    face: int
    max_face: int
    standing: Standing = field(default_factory=Standing)
    current_intention: Intention | None = None
    next_intention: Intention | None = None
    intention_queue: tuple[Intention, ...] = ()
    intention_pool: tuple[Intention, ...] = ()
    core_argument: CoreArgument | None = None
    patience_spent: int = 0


# ---------------------------------------------------------------------------
# Judge
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class JudgeDecree:
    name: str
    description: str
    turn_applied: int


@dataclass(frozen=True)
class JudgeEffects:
    end_turn_patience_cost: int = 1
    element_cost_modifier: tuple[tuple[Element, int], ...] = ()
    favor_gain_modifier: float = 1.0
    damage_modifier: float = 1.0
    active_decrees: tuple[JudgeDecree, ...] = ()

    def element_tax(self, element: Element) -> int:
        for el, amount in self.element_cost_modifier:
            if el == element:
                return amount
        return 0


@dataclass(frozen=True)
class JudgeRule:
    """Declarative transform a decree applies to JudgeEffects."""
    end_turn_cost_delta: int = 0
    element_tax: tuple[tuple[Element, int], ...] = ()
    favor_gain_multiplier: float = 1.0
    damage_multiplier: float = 1.0


@dataclass(frozen=True)
class JudgeAction:
    name: str
    description: str
    patience_threshold: int
    rule: JudgeRule = field(default_factory=JudgeRule)

    def apply(self, effects: JudgeEffects) -> JudgeEffects:
        taxes = dict(effects.element_cost_modifier)
        for element, amount in self.rule.element_tax:
            taxes[element] = taxes.get(element, 0) + amount
        return replace(
            effects,
            end_turn_patience_cost=effects.end_turn_patience_cost + self.rule.end_turn_cost_delta,
            element_cost_modifier=tuple(
                (el, taxes[el]) for el in Element if el in taxes
            ),
            favor_gain_modifier=effects.favor_gain_modifier * self.rule.favor_gain_multiplier,
            damage_modifier=effects.damage_modifier * self.rule.damage_multiplier,
        )


@dataclass(frozen=True)
class JudgeTemplate:
    name: str
    patience_threshold: int
    actions: tuple[JudgeAction, ...]
    tier_structure: tuple[TierDefinition, ...] = DEFAULT_TIER_STRUCTURE


@dataclass(frozen=True)
class JudgeState:
    name: str = "The Court"
    effects: JudgeEffects = field(default_factory=JudgeEffects)
    actions: tuple[JudgeAction, ...] = ()
    next_action: JudgeAction | None = None
    patience_threshold: int = 0
    patience_spent: int = 0
    tier_structure: tuple[TierDefinition, ...] = DEFAULT_TIER_STRUCTURE


# ---------------------------------------------------------------------------
# Player
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Player:
    face: int = 60
    max_face: int = 60
    poise: int = 0
    standing: Standing = field(default_factory=Standing)
    hand: tuple[Card, ...] = ()
    deck: tuple[Card, ...] = ()
    discard: tuple[Card, ...] = ()
    removed: tuple[Card, ...] = ()
    core_argument: CoreArgument | None = None


# ---------------------------------------------------------------------------
# Effect context and game events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EffectContext:
    rng: random.Random | None = None
    selected_cards: tuple[Card, ...] = ()
    target_opponent_id: str | None = None
    source_card_id: str | None = None


@dataclass(frozen=True)
class GameEvent:
    id: str
    type: str                       # "judge_decree" or "opponent_action"
    name: str
    description: str
    turn: int
    value: int = 0


# ---------------------------------------------------------------------------
# Match state (root aggregate)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MatchState:
    player: Player = field(default_factory=Player)
    opponents: tuple[Opponent, ...] = ()
    judge: JudgeState = field(default_factory=JudgeState)
    patience: int = 40
    last_element: Element | None = None
    harmony_streak: int = 0
    statuses: tuple[Status, ...] = ()
    turn_number: int = 1
    turn_phase: TurnPhase = TurnPhase.PLAYER_ACTION
    is_game_over: bool = False
    winner: Winner | None = None
    next_id: int = 1
    history: tuple[Element, ...] = ()
    events: tuple[GameEvent, ...] = ()
    status_templates: dict[str, StatusTemplate] = field(default_factory=dict, compare=False)

    def alloc_id(self, prefix: str) -> tuple[str, "MatchState"]:
        return f"{prefix}_{self.next_id}", replace(self, next_id=self.next_id + 1)

    def opponent_by_id(self, opponent_id: str | None) -> Opponent | None:
        if opponent_id is None:
            return self.opponents[0] if self.opponents else None
        for opp in self.opponents:
            if opp.id == opponent_id:
                return opp
        return None

    def replace_opponent(self, opponent: Opponent) -> "MatchState":
        return replace(self, opponents=tuple(
            opponent if o.id == opponent.id else o for o in self.opponents
        ))


# ---------------------------------------------------------------------------
# Content bundle and match log
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ContentDB:
    cards: dict[str, Card]
    opponents: dict[str, OpponentTemplate]
    judges: dict[str, JudgeTemplate]
    core_arguments: dict[str, CoreArgument]
    status_templates: dict[str, StatusTemplate]
    bad_cards: tuple[Card, ...] = ()
    starter_deck: tuple[str, ...] = ()


@dataclass
class MatchLog:
    seed: int
    judge: str
    opponents: tuple[str, ...]
    winner: Winner | None
    turns: int
    final_patience: int
    final_face: int
    final_tiers: tuple[int, int]    # (player, best opponent)
    play_trace: list[dict[str, Any]] | None = None
