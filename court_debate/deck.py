"""Deck service – draw, shuffle, discard/burn piles, and bad-card generation."""

from __future__ import annotations

import random
from dataclasses import replace
from typing import Callable

from court_debate.harmony import ELEMENT_CYCLE
from court_debate.models import Card, MatchState

BAD_CARD_MAX_CHANCE = 0.75

DrawFn = Callable[[MatchState, int], MatchState]


def shuffle_cards(cards: tuple[Card, ...], rng: random.Random) -> tuple[Card, ...]:
    shuffled = list(cards)
    rng.shuffle(shuffled)
    return tuple(shuffled)


def bad_card_chance(face: int, max_face: int) -> float:
    """Chance grows with missing face, capped at 75%."""
    if max_face <= 0:
        return BAD_CARD_MAX_CHANCE
    missing = 1 - face / max_face
    return max(0.0, min(BAD_CARD_MAX_CHANCE, missing))


def should_generate_bad_card(face: int, max_face: int, rng: random.Random) -> bool:
    return rng.random() < bad_card_chance(face, max_face)


def generate_bad_card(
    state: MatchState, templates: tuple[Card, ...], rng: random.Random,
) -> tuple[Card, MatchState]:
    template = rng.choice(templates)
    element = rng.choice(ELEMENT_CYCLE)
    card_id, state = state.alloc_id("bad")
    card = replace(template, id=card_id, element=element, is_bad=True)
    return card, state


def draw_cards(
    state: MatchState,
    count: int,
    rng: random.Random,
    bad_cards: tuple[Card, ...] = (),
) -> MatchState:
    """Draw ``count`` cards, reshuffling the discard pile when the deck runs dry.

    While the player's face is damaged each draw may instead produce a
    generated bad card.
    """
    deck = list(state.player.deck)
    discard = state.player.discard
    drawn: list[Card] = []

    for _ in range(count):
        if bad_cards and should_generate_bad_card(
            state.player.face, state.player.max_face, rng,
        ):
            card, state = generate_bad_card(state, bad_cards, rng)
            drawn.append(card)
            continue
        if not deck:
            if not discard:
                break
            deck = list(shuffle_cards(discard, rng))
            discard = ()
        drawn.append(deck.pop())

    return replace(state, player=replace(
        state.player,
        hand=state.player.hand + tuple(drawn),
        deck=tuple(deck),
        discard=discard,
    ))


def make_draw_fn(rng: random.Random, bad_cards: tuple[Card, ...] = ()) -> DrawFn:
    def _draw(state: MatchState, count: int) -> MatchState:
        return draw_cards(state, count, rng, bad_cards)
    return _draw


def shuffle_discard_into_deck(state: MatchState, rng: random.Random) -> MatchState:
    p = state.player
    return replace(state, player=replace(
        p, deck=shuffle_cards(p.deck + p.discard, rng), discard=(),
    ))


def discard_hand(state: MatchState) -> MatchState:
    p = state.player
    return replace(state, player=replace(p, hand=(), discard=p.discard + p.hand))


# ---------------------------------------------------------------------------
# Moving single cards out of the hand
# ---------------------------------------------------------------------------

def _take_from_hand(state: MatchState, card_id: str) -> tuple[Card | None, tuple[Card, ...]]:
    hand = list(state.player.hand)
    for i, card in enumerate(hand):
        if card.id == card_id:
            hand.pop(i)
            return card, tuple(hand)
    return None, state.player.hand


def remove_from_hand(state: MatchState, card_id: str) -> MatchState:
    """Move a played card to discard, or out of the game if it is bad/one-shot."""
    card, hand = _take_from_hand(state, card_id)
    if card is None:
        return state
    p = state.player
    if card.is_bad or card.remove_after_play:
        return replace(state, player=replace(p, hand=hand, removed=p.removed + (card,)))
    return replace(state, player=replace(p, hand=hand, discard=p.discard + (card,)))


def discard_card(state: MatchState, card_id: str) -> MatchState:
    card, hand = _take_from_hand(state, card_id)
    if card is None:
        return state
    p = state.player
    return replace(state, player=replace(p, hand=hand, discard=p.discard + (card,)))


def burn_card(state: MatchState, card_id: str) -> MatchState:
    card, hand = _take_from_hand(state, card_id)
    if card is None:
        return state
    p = state.player
    return replace(state, player=replace(p, hand=hand, removed=p.removed + (card,)))


def _random_hand_card(
    state: MatchState, rng: random.Random, exclude_id: str | None,
) -> Card | None:
    candidates = [c for c in state.player.hand if c.id != exclude_id]
    if not candidates:
        return None
    return rng.choice(candidates)


def burn_random_card(
    state: MatchState, rng: random.Random, exclude_id: str | None = None,
) -> MatchState:
    card = _random_hand_card(state, rng, exclude_id)
    return burn_card(state, card.id) if card is not None else state


def discard_random_card(
    state: MatchState, rng: random.Random, exclude_id: str | None = None,
) -> MatchState:
    card = _random_hand_card(state, rng, exclude_id)
    return discard_card(state, card.id) if card is not None else state
