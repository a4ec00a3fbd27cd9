"""Phase 3: Actions – types, legal-move generation, and application."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from court_debate.deck import DrawFn, remove_from_hand
from court_debate.models import Card, EffectContext, MatchState
from court_debate.playability import is_card_playable
from court_debate.targeting import get_valid_targets, opponent_targets, resolve_selection

if TYPE_CHECKING:
    from court_debate.combat import CombatEngine


# ---------------------------------------------------------------------------
# Action types (frozen dataclasses)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PlayCard:
    hand_index: int
    target_indices: tuple[int, ...] = ()   # hand indices of chosen targets
    target_opponent: str | None = None      # opponent id; None -> first opponent


@dataclass(frozen=True)
class EndTurn:
    pass


Action = Union[PlayCard, EndTurn]


# ---------------------------------------------------------------------------
# Legal action generation
# ---------------------------------------------------------------------------

def get_legal_actions(state: MatchState) -> list[Action]:
    if state.is_game_over:
        return []
    actions: list[Action] = []
    hand = state.player.hand
    for i, card in enumerate(hand):
        if not is_card_playable(card, state):
            continue
        actions.extend(_play_candidates(state, card, i))
    # Always can end turn
    actions.append(EndTurn())
    return actions


def _play_candidates(state: MatchState, card: Card, index: int) -> list[PlayCard]:
    """One candidate per single chosen target and per opponent, keeping the move list small."""
    req = card.target_requirement
    if not card.needs_target or req.selection_mode == "random":
        hand_targets: list[tuple[int, ...]] = [()]
    else:
        valid_ids = {c.id for c in get_valid_targets(state, card)}
        hand_targets = [
            (j,) for j, c in enumerate(state.player.hand)
            if j != index and c.id in valid_ids
        ]
        if not hand_targets or req.optional:
            hand_targets.append(())
    return [
        PlayCard(hand_index=index, target_indices=targets, target_opponent=opp_id)
        for targets in hand_targets
        for opp_id in opponent_targets(state, card)
    ]


# ---------------------------------------------------------------------------
# Action application
# ---------------------------------------------------------------------------

def apply_action(
    state: MatchState,
    action: Action,
    engine: "CombatEngine",
    draw_cards: DrawFn | None = None,
) -> MatchState:
    match action:
        case PlayCard(hand_index=idx, target_indices=targets, target_opponent=opp_id):
            return _apply_play_card(state, idx, targets, engine, draw_cards, opp_id)
        case EndTurn():
            return engine.process_end_turn(state, draw_cards)
        case _:
            raise ValueError(f"Unknown action: {action}")


def _apply_play_card(
    state: MatchState,
    hand_index: int,
    target_indices: tuple[int, ...],
    engine: "CombatEngine",
    draw_cards: DrawFn | None,
    target_opponent: str | None = None,
) -> MatchState:
    hand = state.player.hand
    if not 0 <= hand_index < len(hand):
        raise ValueError(f"No card at hand index {hand_index}")
    card = hand[hand_index]
    check = is_card_playable(card, state)
    if not check:
        raise ValueError(f"Cannot play {card.name}: {check.reason}")
    if target_opponent is not None and state.opponent_by_id(target_opponent) is None:
        raise ValueError(f"No opponent with id {target_opponent}")

    chosen = tuple(hand[i] for i in target_indices if 0 <= i < len(hand) and i != hand_index)
    state = remove_from_hand(state, card.id)
    state, selected = resolve_selection(state, card, chosen, engine.rng)
    ctx = EffectContext(selected_cards=selected, target_opponent_id=target_opponent)
    return engine.process_turn(state, card, draw_cards, ctx)
