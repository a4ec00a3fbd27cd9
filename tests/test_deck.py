"""Tests for the deck service."""

import random
import unittest

from court_debate.deck import (
    BAD_CARD_MAX_CHANCE, bad_card_chance, burn_card, burn_random_card,
    discard_hand, discard_random_card, draw_cards, make_draw_fn,
    remove_from_hand, shuffle_discard_into_deck,
)
from court_debate.models import Card, Element, MatchState, Player


def _card(card_id, **kwargs) -> Card:
    defaults = dict(id=card_id, name=card_id, element=Element.WOOD, patience_cost=1, face_cost=0)
    defaults.update(kwargs)
    return Card(**defaults)


def _make_state(hand=(), deck=(), discard=(), face=60) -> MatchState:
    return MatchState(player=Player(
        face=face, max_face=60,
        hand=tuple(_card(c) for c in hand),
        deck=tuple(_card(c) for c in deck),
        discard=tuple(_card(c) for c in discard),
    ))


def _ids(cards) -> list[str]:
    return [c.id for c in cards]


class TestDraw(unittest.TestCase):
    def test_draws_from_top(self):
        state = draw_cards(_make_state(deck=["a", "b", "c"]), 2, random.Random(0))
        self.assertEqual(_ids(state.player.hand), ["c", "b"])
        self.assertEqual(_ids(state.player.deck), ["a"])

    def test_reshuffles_discard_when_empty(self):
        state = draw_cards(_make_state(deck=["a"], discard=["x", "y"]), 3, random.Random(0))
        self.assertEqual(sorted(_ids(state.player.hand)), ["a", "x", "y"])
        self.assertEqual(state.player.discard, ())

    def test_stops_when_everything_empty(self):
        state = draw_cards(_make_state(deck=["a"]), 5, random.Random(0))
        self.assertEqual(_ids(state.player.hand), ["a"])

    def test_full_face_never_generates_bad_cards(self):
        bad = (_card("bad", is_bad=True),)
        state = draw_cards(_make_state(deck=["a", "b"]), 2, random.Random(0), bad)
        self.assertFalse(any(c.is_bad for c in state.player.hand))

    def test_low_face_can_generate_bad_cards(self):
        bad = (_card("bad", is_bad=True),)
        state = _make_state(deck=[f"c{i}" for i in range(30)], face=1)
        state = draw_cards(state, 30, random.Random(3), bad)
        generated = [c for c in state.player.hand if c.is_bad]
        self.assertTrue(generated)
        self.assertEqual(len({c.id for c in generated}), len(generated))

    def test_draw_fn_closure(self):
        draw = make_draw_fn(random.Random(0))
        self.assertEqual(len(draw(_make_state(deck=["a", "b"]), 1).player.hand), 1)


class TestBadCardChance(unittest.TestCase):
    def test_scales_with_missing_face(self):
        self.assertEqual(bad_card_chance(60, 60), 0.0)
        self.assertAlmostEqual(bad_card_chance(45, 60), 0.25)
        self.assertEqual(bad_card_chance(0, 60), BAD_CARD_MAX_CHANCE)


class TestPiles(unittest.TestCase):
    def test_played_card_goes_to_discard(self):
        state = remove_from_hand(_make_state(hand=["a", "b"]), "a")
        self.assertEqual(_ids(state.player.hand), ["b"])
        self.assertEqual(_ids(state.player.discard), ["a"])

    def test_bad_card_is_removed_from_game(self):
        state = MatchState(player=Player(hand=(_card("bad", is_bad=True),)))
        state = remove_from_hand(state, "bad")
        self.assertEqual(_ids(state.player.removed), ["bad"])
        self.assertEqual(state.player.discard, ())

    def test_burn(self):
        state = burn_card(_make_state(hand=["a"]), "a")
        self.assertEqual(_ids(state.player.removed), ["a"])

    def test_missing_card_is_noop(self):
        state = _make_state(hand=["a"])
        self.assertIs(burn_card(state, "zzz"), state)

    def test_random_skips_excluded_card(self):
        state = _make_state(hand=["src", "b"])
        for seed in range(5):
            result = discard_random_card(state, random.Random(seed), exclude_id="src")
            self.assertEqual(_ids(result.player.discard), ["b"])

    def test_random_with_only_excluded_is_noop(self):
        state = _make_state(hand=["src"])
        self.assertIs(burn_random_card(state, random.Random(0), exclude_id="src"), state)

    def test_discard_hand(self):
        state = discard_hand(_make_state(hand=["a", "b"], discard=["z"]))
        self.assertEqual(state.player.hand, ())
        self.assertEqual(_ids(state.player.discard), ["z", "a", "b"])

    def test_shuffle_discard_into_deck(self):
        state = shuffle_discard_into_deck(_make_state(deck=["a"], discard=["b", "c"]),
                                          random.Random(1))
        self.assertEqual(sorted(_ids(state.player.deck)), ["a", "b", "c"])
        self.assertEqual(state.player.discard, ())


if __name__ == "__main__":
    unittest.main()
