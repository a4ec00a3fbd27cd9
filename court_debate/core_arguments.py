"""Core arguments – passive traits converted into permanent statuses at match start."""

from __future__ import annotations

from court_debate.models import (
    OPPONENT, PLAYER, CoreArgument, EffectDef, GainPoise, GainStanding,
    MatchState, ModifierOp, ModifierStat, Status, StatusModifier, StatusTrigger,
)
from court_debate.statuses import add_status

CORE_ARGUMENT_TAG = "core_argument"


def _permanent(
    state: MatchState,
    core: CoreArgument,
    label: str,
    description: str,
    owner: str,
    opponent_id: str | None,
    trigger: StatusTrigger = StatusTrigger.PASSIVE,
    modifiers: tuple[StatusModifier, ...] = (),
    triggered_effects: tuple[EffectDef, ...] = (),
    is_positive: bool = True,
) -> MatchState:
    status_id, state = state.alloc_id("ca_status")
    return add_status(state, Status(
        id=status_id,
        name=f"{core.name}: {label}",
        description=description,
        owner=owner,
        trigger=trigger,
        turns_remaining=-1,
        modifiers=modifiers,
        triggered_effects=triggered_effects,
        tags=(CORE_ARGUMENT_TAG,),
        is_positive=is_positive,
        template_id=core.id,
        opponent_id=opponent_id if owner == OPPONENT else None,
    ))


def create_core_argument_statuses(
    state: MatchState,
    core: CoreArgument,
    owner: str = PLAYER,
    opponent_id: str | None = None,
) -> MatchState:
    """Add one permanent status per passive rule of ``core``.

    A triggered core argument turns its standing bonus (and starting poise)
    into effects fired on that trigger; every other rule becomes a modifier.
    """
    passive = core.passive
    trigger = core.trigger
    is_player = owner == PLAYER

    def add(label, description, **kwargs):
        nonlocal state
        state = _permanent(state, core, label, description, owner, opponent_id, **kwargs)

    if trigger is not None:
        effects: list[EffectDef] = []
        if passive.standing_gain_bonus > 0:
            effects.append(GainStanding(
                passive.standing_gain_bonus, target=PLAYER if is_player else OPPONENT,
            ))
        if passive.starting_poise > 0 and is_player:
            effects.append(GainPoise(passive.starting_poise))
        if effects:
            add("Trigger", core.description, trigger=trigger, triggered_effects=tuple(effects))
    else:
        if passive.standing_gain_bonus > 0:
            add(
                "Standing Bonus", f"+{passive.standing_gain_bonus} standing on gain",
                modifiers=(StatusModifier(
                    ModifierStat.STANDING_GAIN, ModifierOp.ADD, passive.standing_gain_bonus,
                ),),
            )
        if passive.starting_poise > 0 and is_player:
            add(
                "Starting Poise", f"Start each turn with +{passive.starting_poise} poise",
                trigger=StatusTrigger.TURN_START,
                triggered_effects=(GainPoise(passive.starting_poise),),
            )

    if passive.standing_gain_multiplier != 1:
        pct = round((passive.standing_gain_multiplier - 1) * 100)
        add(
            "Standing Multiplier", f"{pct:+d}% standing gains",
            modifiers=(StatusModifier(
                ModifierStat.FAVOR_GAIN_MULTIPLIER, ModifierOp.MULTIPLY,
                passive.standing_gain_multiplier,
            ),),
            is_positive=passive.standing_gain_multiplier > 1,
        )

    for element, reduction in passive.element_cost_reduction:
        if reduction > 0:
            add(
                f"{element.value.title()} Discount",
                f"{element.value.title()} cards cost -{reduction} patience",
                modifiers=(StatusModifier(
                    ModifierStat.ELEMENT_COST, ModifierOp.ADD, -reduction, element,
                ),),
            )

    if passive.patience_cost_reduction > 0:
        add(
            "Patience Reduction", f"-{passive.patience_cost_reduction} patience costs",
            modifiers=(StatusModifier(
                ModifierStat.PATIENCE_COST, ModifierOp.ADD, -passive.patience_cost_reduction,
            ),),
        )

    if passive.opponent_standing_damage_bonus > 0:
        add(
            "Sharpened Words", f"+{passive.opponent_standing_damage_bonus} shame dealt",
            modifiers=(StatusModifier(
                ModifierStat.DAMAGE_BONUS, ModifierOp.ADD,
                passive.opponent_standing_damage_bonus,
            ),),
        )

    if passive.draw_bonus > 0:
        add(
            "Draw Bonus", f"Draw +{passive.draw_bonus} card(s) per turn",
            modifiers=(StatusModifier(
                ModifierStat.DRAW_BONUS, ModifierOp.ADD, passive.draw_bonus,
            ),),
        )

    return state
