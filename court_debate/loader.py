"""Phase 4: JSON content loading and validation.

Content mistakes are rejected here with a ValueError naming the offending
record, so the engine never has to second-guess its tables at play time.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

from court_debate.models import (
    EFFECT_TYPES, OPPONENT, PLAYER, Card, Computed, ContentDB, CoreArgument,
    EffectDef, Element, Intention, IntentionType, JudgeAction, JudgeRule,
    JudgeTemplate, ModifierOp, ModifierStat, OpponentTemplate, PassiveModifiers,
    StatusModifier, StatusTemplate, StatusTrigger, TargetPatienceCost,
    TargetRequirement, TierDefinition, AddStatus, DEFAULT_TIER_STRUCTURE,
)

DEFAULT_DATA_DIR = Path(__file__).resolve().parent.parent / "data"

E = TypeVar("E", bound=Enum)

_COMPUTED_VALUES = {TargetPatienceCost.kind: TargetPatienceCost}


def _read(path: str | Path) -> Any:
    with open(Path(path), encoding="utf-8") as f:
        return json.load(f)


def _enum(cls: type[E], raw: Any, where: str) -> E:
    try:
        return cls(raw)
    except ValueError:
        raise ValueError(f"{where}: invalid {cls.__name__} '{raw}'") from None


def _element_map(raw: dict[str, int] | None, where: str) -> tuple[tuple[Element, int], ...]:
    if not raw:
        return ()
    return tuple((_enum(Element, k, where), int(v)) for k, v in raw.items())


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------

def parse_effect(raw: dict[str, Any], where: str) -> EffectDef:
    kind = raw.get("type")
    cls = EFFECT_TYPES.get(kind)
    if cls is None:
        raise ValueError(f"{where}: unknown effect type '{kind}'")
    kwargs = {k: v for k, v in raw.items() if k != "type"}

    if cls is Computed:
        compute_raw = kwargs.get("compute", {})
        compute_cls = _COMPUTED_VALUES.get(compute_raw.get("type"))
        if compute_cls is None:
            raise ValueError(f"{where}: unknown computed value '{compute_raw.get('type')}'")
        if "template" not in kwargs:
            raise ValueError(f"{where}: computed effect needs a template")
        compute = compute_cls(**{k: v for k, v in compute_raw.items() if k != "type"})
        return Computed(compute=compute, template=parse_effect(kwargs["template"], where))

    try:
        effect = cls(**kwargs)
    except TypeError as exc:
        raise ValueError(f"{where}: bad fields for '{kind}': {exc}") from None
    _validate_effect(effect, where)
    return effect


def _validate_effect(effect: EffectDef, where: str) -> None:
    for attr in ("value", "count"):
        amount = getattr(effect, attr, None)
        if amount is not None and (not isinstance(amount, int) or amount < 0):
            raise ValueError(f"{where}: {effect.kind}.{attr} must be a non-negative int")
    target = getattr(effect, "target", PLAYER)
    if target not in (PLAYER, OPPONENT):
        raise ValueError(f"{where}: invalid target '{target}'")
    source = getattr(effect, "source", "selected")
    if source not in ("selected", "random"):
        raise ValueError(f"{where}: invalid source '{source}'")


def _iter_effects(effects: tuple[EffectDef, ...]):
    for effect in effects:
        yield effect
        if isinstance(effect, Computed):
            yield effect.template


def _check_status_refs(
    effects: tuple[EffectDef, ...], templates: dict[str, StatusTemplate], where: str,
) -> None:
    for effect in _iter_effects(effects):
        if isinstance(effect, AddStatus) and effect.status_id not in templates:
            raise ValueError(f"{where}: unknown status template '{effect.status_id}'")


# ---------------------------------------------------------------------------
# Status templates
# ---------------------------------------------------------------------------

def load_status_templates(path: str | Path) -> dict[str, StatusTemplate]:
    templates: dict[str, StatusTemplate] = {}
    for entry in _read(path):
        where = f"Status {entry.get('id')}"
        template = StatusTemplate(
            id=entry["id"],
            name=entry["name"],
            description=entry.get("description", ""),
            trigger=_enum(StatusTrigger, entry["trigger"], where),
            default_duration=entry.get("default_duration", -1),
            default_trigger_count=entry.get("default_trigger_count"),
            modifiers=tuple(_parse_modifier(m, where) for m in entry.get("modifiers", ())),
            triggered_effects=tuple(
                parse_effect(e, where) for e in entry.get("triggered_effects", ())
            ),
            is_positive=entry.get("is_positive", True),
            tags=tuple(entry.get("tags", ())),
        )
        if template.default_duration == 0 or template.default_duration < -1:
            raise ValueError(f"{where}: default_duration must be positive or -1")
        templates[template.id] = template

    for template in templates.values():
        _check_status_refs(template.triggered_effects, templates, f"Status {template.id}")
    return templates


def _parse_modifier(raw: dict[str, Any], where: str) -> StatusModifier:
    element = raw.get("element")
    return StatusModifier(
        stat=_enum(ModifierStat, raw["stat"], where),
        op=_enum(ModifierOp, raw["op"], where),
        value=raw["value"],
        element=_enum(Element, element, where) if element is not None else None,
    )


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------

def _parse_card(entry: dict[str, Any]) -> Card:
    where = f"Card {entry.get('id')}"
    req_raw = entry.get("target_requirement")
    req = None
    if req_raw is not None:
        element = req_raw.get("element")
        req = TargetRequirement(
            type=req_raw.get("type", "none"),
            destination=req_raw.get("destination", "discard"),
            selection_mode=req_raw.get("selection_mode", "choose"),
            count=req_raw.get("count", 1),
            element=_enum(Element, element, where) if element is not None else None,
            optional=req_raw.get("optional", False),
            is_play_requirement=req_raw.get("is_play_requirement", False),
            prompt=req_raw.get("prompt", ""),
        )
    return Card(
        id=entry["id"],
        name=entry["name"],
        element=_enum(Element, entry.get("element", "wood"), where),
        patience_cost=entry["patience_cost"],
        face_cost=entry.get("face_cost", 0),
        effects=tuple(parse_effect(e, where) for e in entry.get("effects", ())),
        description=entry.get("description", ""),
        target_requirement=req,
        is_bad=entry.get("is_bad", False),
        remove_after_play=entry.get("remove_after_play", False),
    )


def _validate_card(card: Card, templates: dict[str, StatusTemplate]) -> None:
    if card.patience_cost < 0 or card.patience_cost > 10:
        raise ValueError(f"Card {card.id}: patience_cost {card.patience_cost} out of range [0,10]")
    if card.face_cost < 0 or card.face_cost > 50:
        raise ValueError(f"Card {card.id}: face_cost {card.face_cost} out of range [0,50]")
    req = card.target_requirement
    if req is not None:
        if req.type not in ("none", "hand_card"):
            raise ValueError(f"Card {card.id}: invalid target type '{req.type}'")
        if req.destination not in ("discard", "burn"):
            raise ValueError(f"Card {card.id}: invalid destination '{req.destination}'")
        if req.selection_mode not in ("choose", "random"):
            raise ValueError(f"Card {card.id}: invalid selection_mode '{req.selection_mode}'")
        if req.count < 1:
            raise ValueError(f"Card {card.id}: target count must be >= 1")
    if any(isinstance(e, Computed) for e in card.effects) and not card.needs_target:
        raise ValueError(f"Card {card.id}: computed effect without a hand-card target")
    _check_status_refs(card.effects, templates, f"Card {card.id}")


def load_cards(
    path: str | Path, status_templates: dict[str, StatusTemplate] | None = None,
) -> dict[str, Card]:
    templates = status_templates or {}
    card_db: dict[str, Card] = {}
    for entry in _read(path):
        card = _parse_card(entry)
        _validate_card(card, templates)
        if card.id in card_db:
            raise ValueError(f"Card {card.id}: duplicate id")
        card_db[card.id] = card
    return card_db


def load_bad_cards(path: str | Path) -> tuple[Card, ...]:
    cards = []
    for entry in _read(path):
        card = _parse_card({**entry, "is_bad": True})
        _validate_card(card, {})
        cards.append(card)
    return tuple(cards)


# ---------------------------------------------------------------------------
# Core arguments, opponents, judges
# ---------------------------------------------------------------------------

def load_core_arguments(path: str | Path) -> dict[str, CoreArgument]:
    result: dict[str, CoreArgument] = {}
    for entry in _read(path):
        where = f"Core argument {entry.get('id')}"
        p = entry.get("passive", {})
        element = entry.get("element")
        trigger = entry.get("trigger")
        core = CoreArgument(
            id=entry["id"],
            name=entry["name"],
            description=entry.get("description", ""),
            element=_enum(Element, element, where) if element else None,
            trigger=_enum(StatusTrigger, trigger, where) if trigger else None,
            passive=PassiveModifiers(
                standing_gain_bonus=p.get("standing_gain_bonus", 0),
                standing_gain_multiplier=p.get("standing_gain_multiplier", 1.0),
                element_cost_reduction=_element_map(p.get("element_cost_reduction"), where),
                patience_cost_reduction=p.get("patience_cost_reduction", 0),
                starting_poise=p.get("starting_poise", 0),
                opponent_standing_damage_bonus=p.get("opponent_standing_damage_bonus", 0),
                draw_bonus=p.get("draw_bonus", 0),
            ),
        )
        result[core.id] = core
    return result


def load_opponents(
    path: str | Path, core_arguments: dict[str, CoreArgument] | None = None,
) -> dict[str, OpponentTemplate]:
    cores = core_arguments or {}
    result: dict[str, OpponentTemplate] = {}
    for entry in _read(path):
        where = f"Opponent {entry.get('name')}"
        intentions = tuple(
            Intention(
                name=i["name"],
                type=_enum(IntentionType, i["type"], where),
                value=i["value"],
                patience_threshold=i.get("patience_threshold", 0),
            )
            for i in entry["intentions"]
        )
        if not intentions:
            raise ValueError(f"{where}: needs at least one intention")
        if entry["max_face"] < 2:
            raise ValueError(f"{where}: max_face must be at least 2 to survive a fluster")
        core_id = entry.get("core_argument")
        if core_id is not None and core_id not in cores:
            raise ValueError(f"{where}: unknown core argument '{core_id}'")
        template = OpponentTemplate(
            name=entry["name"],
            max_face=entry["max_face"],
            intentions=intentions,
            core_argument=cores.get(core_id) if core_id else None,
        )
        result[template.name] = template
    return result


def _parse_tiers(raw: list[dict[str, Any]] | None, where: str) -> tuple[TierDefinition, ...]:
    if not raw:
        return DEFAULT_TIER_STRUCTURE
    tiers = tuple(
        TierDefinition(t["tier_number"], t["favor_required"], t["tier_name"]) for t in raw
    )
    numbers = sorted(t.tier_number for t in tiers)
    if numbers != list(range(len(tiers))):
        raise ValueError(f"{where}: tier numbers must run 0..{len(tiers) - 1}")
    if any(t.favor_required <= 0 for t in tiers):
        raise ValueError(f"{where}: favor_required must be positive")
    return tuple(sorted(tiers, key=lambda t: t.tier_number))


def load_judges(path: str | Path) -> dict[str, JudgeTemplate]:
    result: dict[str, JudgeTemplate] = {}
    for entry in _read(path):
        where = f"Judge {entry.get('name')}"
        actions = []
        for a in entry["actions"]:
            rule = a.get("rule", {})
            actions.append(JudgeAction(
                name=a["name"],
                description=a.get("description", ""),
                patience_threshold=a["patience_threshold"],
                rule=JudgeRule(
                    end_turn_cost_delta=rule.get("end_turn_cost_delta", 0),
                    element_tax=_element_map(rule.get("element_tax"), where),
                    favor_gain_multiplier=rule.get("favor_gain_multiplier", 1.0),
                    damage_multiplier=rule.get("damage_multiplier", 1.0),
                ),
            ))
        if any(a.patience_threshold <= 0 for a in actions):
            raise ValueError(f"{where}: action thresholds must be positive")
        template = JudgeTemplate(
            name=entry["name"],
            patience_threshold=entry.get("patience_threshold", 50),
            actions=tuple(actions),
            tier_structure=_parse_tiers(entry.get("tier_structure"), where),
        )
        result[template.name] = template
    return result


def load_content(data_dir: str | Path = DEFAULT_DATA_DIR) -> ContentDB:
    data_dir = Path(data_dir)
    templates = load_status_templates(data_dir / "status_templates.json")
    cores = load_core_arguments(data_dir / "core_arguments.json")
    cards = load_cards(data_dir / "cards.json", templates)
    return ContentDB(
        cards=cards,
        opponents=load_opponents(data_dir / "opponents.json", cores),
        judges=load_judges(data_dir / "judges.json"),
        core_arguments=cores,
        status_templates=templates,
        bad_cards=load_bad_cards(data_dir / "bad_cards.json"),
        starter_deck=tuple(cards),
    )
