"""Phase 5: Match runner – config, match setup, the turn loop, and limits."""

from __future__ import annotations

import json
import random
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

from court_debate.actions import Action, EndTurn, PlayCard, apply_action, get_legal_actions
from court_debate.combat import CombatEngine
from court_debate.combat_log import CombatLog
from court_debate.core_arguments import create_core_argument_statuses
from court_debate.deck import DrawFn, discard_hand, make_draw_fn, shuffle_cards
from court_debate.judge import create_judge_state
from court_debate.models import (
    OPPONENT, PLAYER, ContentDB, MatchLog, MatchState, ModifierStat, Opponent,
    Player, Winner,
)
from court_debate.opponent import pick_random_intention
from court_debate.standing import max_opponent_tier
from court_debate.statuses import get_modifier_additive

if TYPE_CHECKING:
    from court_debate.ai import Agent
    from court_debate.replay import ReplayWriter
    from court_debate.telemetry import MatchTelemetry

MAX_TURNS = 50


@dataclass
class MatchConfig:
    seed: int = 42
    judge: str | None = None                    # None == random judge
    opponents: list[str] = field(default_factory=list)   # empty == one random opponent
    core_argument: str | None = None
    starting_patience: int = 40
    player_max_face: int = 60
    hand_size: int = 5
    max_turns: int = MAX_TURNS
    max_actions_per_turn: int = 20
    policy: str = "greedy"
    data_dir: str | None = None

    @classmethod
    def from_json(cls, path: str | Path, **overrides: Any) -> "MatchConfig":
        """Load config from JSON file with optional CLI overrides."""
        path = Path(path)
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
        raw.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**raw)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

def _pick(names: dict[str, Any], wanted: str | None, kind: str, rng: random.Random) -> str:
    if wanted is None:
        return rng.choice(sorted(names))
    if wanted not in names:
        raise ValueError(f"Unknown {kind}: {wanted}")
    return wanted


def _draw_count(state: MatchState, hand_size: int) -> int:
    return hand_size + get_modifier_additive(state, ModifierStat.DRAW_BONUS, owner=PLAYER)


def init_match(
    content: ContentDB,
    config: MatchConfig,
    rng: random.Random | None = None,
) -> MatchState:
    """Build the opening MatchState: roster, judge, core arguments, opening hand."""
    rng = rng if rng is not None else random.Random(config.seed)

    judge_name = _pick(content.judges, config.judge, "judge", rng)
    opponent_names = list(config.opponents) or [_pick(content.opponents, None, "opponent", rng)]

    core = None
    if config.core_argument is not None:
        if config.core_argument not in content.core_arguments:
            raise ValueError(f"Unknown core argument: {config.core_argument}")
        core = content.core_arguments[config.core_argument]

    deck = shuffle_cards(tuple(content.cards[cid] for cid in content.starter_deck), rng)
    player = Player(
        face=config.player_max_face,
        max_face=config.player_max_face,
        deck=deck,
        core_argument=core,
    )

    opponents = []
    for i, name in enumerate(opponent_names):
        template = content.opponents[_pick(content.opponents, name, "opponent", rng)]
        opponents.append(Opponent(
            id=f"opp_{i + 1}",
            name=template.name,
            face=template.max_face,
            max_face=template.max_face,
            current_intention=pick_random_intention(template.intentions, rng),
            next_intention=pick_random_intention(template.intentions, rng),
            intention_pool=template.intentions,
            core_argument=template.core_argument,
        ))

    state = MatchState(
        player=player,
        opponents=tuple(opponents),
        judge=create_judge_state(content.judges[judge_name], rng),
        patience=config.starting_patience,
        status_templates=content.status_templates,
    )

    if core is not None:
        state = create_core_argument_statuses(state, core, owner=PLAYER)
    for opp in state.opponents:
        if opp.core_argument is not None:
            state = create_core_argument_statuses(
                state, opp.core_argument, owner=OPPONENT, opponent_id=opp.id,
            )

    draw = make_draw_fn(rng, content.bad_cards)
    return draw(state, _draw_count(state, config.hand_size))


def begin_next_turn(
    state: MatchState,
    engine: CombatEngine,
    draw_cards: DrawFn,
    hand_size: int = 5,
) -> MatchState:
    """Discard the hand, advance the turn counter, draw, and fire turn-start statuses."""
    if state.is_game_over:
        return state
    state = discard_hand(state)
    state = replace(state, turn_number=state.turn_number + 1)
    state = draw_cards(state, _draw_count(state, hand_size))
    return engine.process_start_turn(state, draw_cards)


# ---------------------------------------------------------------------------
# Turn loop
# ---------------------------------------------------------------------------

def _record_trace(
    play_trace: list[dict] | None,
    state: MatchState,
    action: Action,
) -> None:
    if play_trace is None:
        return
    entry: dict[str, Any] = {"turn": state.turn_number, "action": str(action)}
    if isinstance(action, PlayCard):
        entry["card_id"] = state.player.hand[action.hand_index].id
        if action.target_opponent is not None:
            entry["target_opponent"] = action.target_opponent
    play_trace.append(entry)


def _turn_limit_winner(state: MatchState) -> Winner:
    if state.player.standing.current_tier > max_opponent_tier(state):
        return Winner.PLAYER
    return Winner.OPPONENT


def run_match(
    state: MatchState,
    agent: "Agent",
    engine: CombatEngine,
    draw_cards: DrawFn,
    config: MatchConfig | None = None,
    trace: bool = False,
    telemetry: "MatchTelemetry | None" = None,
    replay: "ReplayWriter | None" = None,
) -> tuple[MatchState, MatchLog]:
    config = config if config is not None else MatchConfig()
    play_trace: list[dict] | None = [] if trace else None
    reason = "normal"

    if telemetry:
        telemetry.on_match_start(state)
    if replay:
        from court_debate.replay import snapshot_state
        replay.write({"type": "match_start", "state": snapshot_state(state)})

    state = engine.process_start_turn(state, draw_cards)

    while not state.is_game_over:
        if state.turn_number > config.max_turns:
            state = replace(state, is_game_over=True, winner=_turn_limit_winner(state))
            reason = "turn_limit"
            break

        if telemetry:
            telemetry.on_turn_start(state)
        if replay:
            from court_debate.replay import snapshot_state
            replay.write({
                "type": "turn_start",
                "turn": state.turn_number,
                "state": snapshot_state(state),
            })

        # --- Player action phase ---
        actions_taken = 0
        while not state.is_game_over:
            if actions_taken >= config.max_actions_per_turn:
                action: Action = EndTurn()
            else:
                action = agent.choose_action(state, get_legal_actions(state))
            _record_trace(play_trace, state, action)

            before = state
            card = (
                state.player.hand[action.hand_index] if isinstance(action, PlayCard) else None
            )
            state = apply_action(state, action, engine, draw_cards)

            if isinstance(action, EndTurn):
                if telemetry:
                    telemetry.on_end_turn(before, state)
                if replay:
                    replay.write({
                        "type": "end_turn",
                        "turn": before.turn_number,
                        "events": [
                            {"type": e.type, "name": e.name, "value": e.value}
                            for e in state.events[len(before.events):]
                        ],
                        "patience_after": state.patience,
                        "face_after": state.player.face,
                    })
                break

            actions_taken += 1
            if telemetry:
                telemetry.on_card_played(before, state, card)
            if replay:
                replay.write({
                    "type": "play_card",
                    "turn": state.turn_number,
                    "card_id": card.id,
                    "name": card.name,
                    "element": card.element.value,
                    "patience_after": state.patience,
                    "face_after": state.player.face,
                    "harmony_streak": state.harmony_streak,
                })

        state = begin_next_turn(state, engine, draw_cards, config.hand_size)

    if telemetry:
        telemetry.on_match_end(state, reason)
    if replay:
        replay.write({
            "type": "match_end",
            "winner": state.winner.value if state.winner else None,
            "reason": reason,
            "turns": state.turn_number,
            "final_patience": state.patience,
            "final_face": state.player.face,
        })

    return state, MatchLog(
        seed=0,  # filled by caller
        judge=state.judge.name,
        opponents=tuple(o.name for o in state.opponents),
        winner=state.winner,
        turns=state.turn_number,
        final_patience=state.patience,
        final_face=state.player.face,
        final_tiers=(state.player.standing.current_tier, max_opponent_tier(state)),
        play_trace=play_trace,
    )


def play_match(
    content: ContentDB,
    config: MatchConfig,
    agent: "Agent | None" = None,
    trace: bool = False,
    telemetry: "MatchTelemetry | None" = None,
    replay: "ReplayWriter | None" = None,
    log: CombatLog | None = None,
) -> tuple[MatchState, MatchLog]:
    """Set up and run one seeded match end to end."""
    if agent is None:
        from court_debate.policies import default_registry
        agent = default_registry().make_agent(config.policy, config.seed)

    rng = random.Random(config.seed)
    state = init_match(content, config, rng)
    if replay:
        replay.write({
            "type": "meta",
            "seed": config.seed,
            "judge": state.judge.name,
            "opponents": [o.name for o in state.opponents],
            "policy": config.policy,
        })
    engine = CombatEngine(rng, log)
    draw = make_draw_fn(rng, content.bad_cards)
    state, match_log = run_match(
        state, agent, engine, draw, config,
        trace=trace, telemetry=telemetry, replay=replay,
    )
    match_log.seed = config.seed
    return state, match_log
