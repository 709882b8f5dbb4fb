"""
Combat Resolver.

Legal-choice computation and effect execution for card actions and enemy
attacks. Functions read the current BattleState from the store and apply
every change through `BattleStore.mutate`.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging

from hextactics.core.actions import (
    Action,
    AreaEffect,
    AttackAction,
    BuffAction,
    FixedCountArea,
    HealAction,
    MoveAction,
    PushAction,
    ShieldAction,
    SpecialAction,
    TrapAction,
)
from hextactics.core.battle_state import BattleState, BattleStore, Character, Phase, Unit
from hextactics.core.events import EventType
from hextactics.core.hex_math import Hex, direction_toward, distance, hexes_in_range
from hextactics.core.initiative import UnitKind
from hextactics.core import pathfinding
from hextactics.core.pathfinding import ReachableHex

logger = logging.getLogger(__name__)


@dataclass
class AttackResult:
    """Outcome of a single hit."""
    target_id: str
    damage: int
    absorbed: int
    dealt: int
    remaining_health: int
    defeated: bool = False
    stunned: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_id": self.target_id,
            "damage": self.damage,
            "absorbed": self.absorbed,
            "dealt": self.dealt,
            "remaining_health": self.remaining_health,
            "defeated": self.defeated,
            "stunned": self.stunned,
        }


@dataclass
class PushResult:
    """How far a push actually moved its target."""
    target_id: str
    requested: int
    pushed_distance: int

    @property
    def blocked(self) -> bool:
        return self.pushed_distance == 0

    @property
    def stopped_short(self) -> bool:
        return self.pushed_distance < self.requested


@dataclass
class ActionOutcome:
    """
    Result of dispatching a card action.

    Either complete (resolved immediately) or pending on a choice from
    `hexes` (move destinations) or `target_ids` (units to affect).
    """
    complete: bool
    action: Optional[Action] = None
    hexes: List[Hex] = field(default_factory=list)
    target_ids: List[str] = field(default_factory=list)

    @classmethod
    def done(cls, action: Optional[Action] = None) -> "ActionOutcome":
        return cls(complete=True, action=action)

    @property
    def is_pending(self) -> bool:
        return not self.complete

    @property
    def has_choices(self) -> bool:
        return bool(self.hexes) or bool(self.target_ids)


def display_name(unit: Unit) -> str:
    if isinstance(unit, Character):
        return unit.short_name
    return unit.name


# =============================================================================
# Occupancy
# =============================================================================

def is_in_bounds(hex_: Hex, state: BattleState) -> bool:
    room = state.room
    return room is not None and room.in_bounds(hex_)


def is_wall(hex_: Hex, state: BattleState) -> bool:
    room = state.room
    return room is not None and hex_ in room.walls


def is_occupied(hex_: Hex, state: BattleState, ignore_id: Optional[str] = None) -> bool:
    for unit in list(state.characters) + list(state.enemies):
        if unit.id != ignore_id and unit.position == hex_:
            return True
    return False


def is_walkable(hex_: Hex, state: BattleState) -> bool:
    """In bounds, not a wall and not occupied by any unit."""
    return is_in_bounds(hex_, state) and not is_wall(hex_, state) and not is_occupied(hex_, state)


# =============================================================================
# Legal choice sets
# =============================================================================

def get_reachable_hexes(unit: Unit, move_range: int, state: BattleState) -> List[ReachableHex]:
    return pathfinding.get_reachable_hexes(
        unit.position,
        move_range,
        lambda h: is_walkable(h, state),
    )


def get_attack_targets(
    unit: Unit,
    attack_range: int,
    state: BattleState,
    target_kind: UnitKind = UnitKind.ENEMY
) -> List[Unit]:
    """Units of `target_kind` standing within range, in range-scan order."""
    pool = state.enemies if target_kind == UnitKind.ENEMY else state.characters
    by_hex = {u.position: u for u in pool if u.is_alive}

    targets: List[Unit] = []
    for hex_ in pathfinding.get_targets_in_range(unit.position, attack_range, lambda h: h in by_hex):
        targets.append(by_hex[hex_])
    return targets


def get_heal_targets(unit: Unit, heal_range: int, state: BattleState) -> List[Character]:
    """Living characters within range that are below max health."""
    return [
        c for c in state.characters
        if c.is_alive and c.health < c.max_health
        and distance(unit.position, c.position) <= heal_range
    ]


def get_shield_targets(state: BattleState) -> List[Character]:
    return state.living_characters()


# =============================================================================
# Effects
# =============================================================================

def execute_move(store: BattleStore, unit_id: str, hex_: Hex) -> bool:
    """Relocate a unit to an already validated destination."""
    unit = store.state.get_unit(unit_id)
    if unit is None:
        return False

    def _move(state: BattleState) -> None:
        state.get_unit(unit_id).position = hex_

    store.mutate(_move)
    store.emit(
        EventType.UNIT_MOVED,
        f"{display_name(unit)} moved to ({hex_.q}, {hex_.r})",
        unit_id=unit_id,
        position=hex_.to_dict(),
    )
    return True


def execute_attack(
    store: BattleStore,
    attacker_id: str,
    target_id: str,
    damage: int,
    stun: bool = False
) -> Optional[AttackResult]:
    """
    Deal damage to a unit.

    Shield absorbs first, the remainder hits health. An enemy at 0 is
    removed; a character at 0 ends the mission. A surviving enemy may be
    stunned.

    Returns:
        The hit result, or None if either unit no longer exists
    """
    state = store.state
    attacker = state.get_unit(attacker_id)
    target = state.get_unit(target_id)
    if attacker is None or target is None:
        return None

    absorbed = min(getattr(target, "shield", 0), damage)
    dealt = damage - absorbed
    remaining = max(0, target.health - dealt)
    result = AttackResult(
        target_id=target_id,
        damage=damage,
        absorbed=absorbed,
        dealt=dealt,
        remaining_health=remaining,
        defeated=remaining <= 0,
    )

    def _hit(state: BattleState) -> None:
        unit = state.get_unit(target_id)
        if isinstance(unit, Character):
            unit.shield -= absorbed
            unit.health = remaining
            if unit.health <= 0:
                state.phase = Phase.DEFEAT
        else:
            unit.health = remaining
            if unit.health <= 0:
                state.enemies = [e for e in state.enemies if e.id != target_id]
            elif stun:
                unit.stunned = True
                result.stunned = True

    store.mutate(_hit)

    attacker_name = display_name(attacker)
    target_name = display_name(target)
    store.emit(
        EventType.UNIT_DAMAGED,
        f"{attacker_name} attacks {target_name} for {damage} damage! ({remaining}/{target.max_health})",
        unit_id=target_id,
        attacker_id=attacker_id,
        damage=damage,
        absorbed=absorbed,
        new_health=remaining,
        max_health=target.max_health,
        position=target.position.to_dict(),
    )

    if result.defeated:
        is_character = target.kind == UnitKind.CHARACTER
        message = f"{target_name} has fallen! Mission failed!" if is_character else f"{target_name} defeated!"
        store.emit(EventType.UNIT_DEFEATED, message, unit_id=target_id, is_character=is_character)
        if is_character:
            logger.info(f"[Combat] Character {target_id} fell to {attacker_id}")
    elif result.stunned:
        store.emit(EventType.UNIT_STUNNED, f"{target_name} is stunned!", unit_id=target_id)

    logger.debug(f"[Combat] {attacker_id} -> {target_id}: {damage} dmg ({absorbed} absorbed)")
    return result


def execute_aoe_attack(
    store: BattleStore,
    attacker_id: str,
    primary_id: str,
    damage: int,
    area: AreaEffect
) -> List[AttackResult]:
    """
    Hit the primary target, then enemies around it.

    Enemies are re-read after the primary hit. A FixedCountArea hits at
    most `max_additional` of them; a RadiusArea hits all of them.
    """
    primary = store.state.get_unit(primary_id)
    if primary is None:
        return []
    center = primary.position

    results: List[AttackResult] = []
    first = execute_attack(store, attacker_id, primary_id, damage)
    if first is not None:
        results.append(first)

    additional = [
        e for e in store.state.enemies
        if e.id != primary_id and e.is_alive and distance(center, e.position) <= area.radius
    ]
    if isinstance(area, FixedCountArea):
        additional = additional[:area.max_additional]

    for enemy in additional:
        current = store.state.get_enemy(enemy.id)
        if current is not None and current.is_alive:
            hit = execute_attack(store, attacker_id, enemy.id, damage)
            if hit is not None:
                results.append(hit)

    if additional:
        store.emit(
            EventType.ATTACK_AOE,
            f"AOE hits {len(additional)} additional target(s)!",
            unit_id=attacker_id,
            additional_count=len(additional),
        )
    return results


def execute_heal(store: BattleStore, healer_id: str, target_id: str, amount: int) -> int:
    """Heal a character, clamped to max health. Returns the amount restored."""
    state = store.state
    healer = state.get_unit(healer_id)
    target = state.get_character(target_id)
    if healer is None or target is None:
        return 0

    new_health = min(target.max_health, target.health + amount)
    restored = new_health - target.health

    def _heal(state: BattleState) -> None:
        state.get_character(target_id).health = new_health

    store.mutate(_heal)
    store.emit(
        EventType.UNIT_HEALED,
        f"{display_name(healer)} heals {target.short_name} for {restored}! ({new_health}/{target.max_health})",
        unit_id=target_id,
        healer_id=healer_id,
        amount=restored,
        new_health=new_health,
        max_health=target.max_health,
    )
    return restored


def execute_shield(store: BattleStore, caster_id: str, target_id: str, amount: int) -> int:
    """Add shield to a character. Stacks with any existing shield."""
    state = store.state
    caster = state.get_unit(caster_id)
    target = state.get_character(target_id)
    if caster is None or target is None:
        return 0

    def _shield(state: BattleState) -> None:
        state.get_character(target_id).shield += amount

    store.mutate(_shield)
    store.emit(
        EventType.UNIT_SHIELDED,
        f"{display_name(caster)} grants {target.short_name} Shield {amount}!",
        unit_id=target_id,
        caster_id=caster_id,
        amount=amount,
    )
    return store.state.get_character(target_id).shield


def execute_push(store: BattleStore, pusher_id: str, target_id: str, push_distance: int) -> Optional[PushResult]:
    """
    Push a unit directly away from the pusher.

    The direction is snapped to the closest of the six hex directions.
    The target steps until it has moved `push_distance` hexes or the next
    hex is out of bounds, a wall, or occupied.
    """
    state = store.state
    pusher = state.get_unit(pusher_id)
    target = state.get_unit(target_id)
    if pusher is None or target is None:
        return None

    direction = direction_toward(pusher.position, target.position)
    current = target.position
    pushed = 0
    for _ in range(push_distance):
        next_hex = current + direction
        if not is_in_bounds(next_hex, state) or is_wall(next_hex, state):
            break
        if is_occupied(next_hex, state, ignore_id=target_id):
            break
        current = next_hex
        pushed += 1

    result = PushResult(target_id=target_id, requested=push_distance, pushed_distance=pushed)
    name = display_name(target)

    if pushed > 0:
        destination = current

        def _push(state: BattleState) -> None:
            state.get_unit(target_id).position = destination

        store.mutate(_push)
        store.emit(
            EventType.UNIT_PUSHED,
            f"{name} pushed {pushed} hex(es)!",
            unit_id=target_id,
            distance=pushed,
            blocked=False,
            position=destination.to_dict(),
        )
    else:
        store.emit(
            EventType.UNIT_PUSHED,
            f"{name} couldn't be pushed (blocked)",
            unit_id=target_id,
            distance=0,
            blocked=True,
        )
    return result


def clear_shields(store: BattleStore) -> None:
    def _clear(state: BattleState) -> None:
        for char in state.characters:
            char.shield = 0

    store.mutate(_clear)


# =============================================================================
# Dispatch
# =============================================================================

def _pending_on_units(action: Action, units: List[Unit]) -> ActionOutcome:
    return ActionOutcome(
        complete=False,
        action=action,
        hexes=[u.position for u in units],
        target_ids=[u.id for u in units],
    )


def process_action(store: BattleStore, action: Action, unit_id: str) -> ActionOutcome:
    """
    Resolve a card half for the acting character.

    Self heals, heal-all, self shields, buffs, specials and traps resolve
    immediately. Everything else returns its legal choice set and waits.
    """
    state = store.state
    unit = state.get_unit(unit_id)
    if unit is None:
        return ActionOutcome.done(action)
    name = display_name(unit)

    if isinstance(action, MoveAction):
        reachable = get_reachable_hexes(unit, action.value, state)
        return ActionOutcome(complete=False, action=action, hexes=[r.hex for r in reachable])

    if isinstance(action, AttackAction):
        return _pending_on_units(action, get_attack_targets(unit, action.range, state, UnitKind.ENEMY))

    if isinstance(action, HealAction):
        if action.all_allies:
            for char in list(state.characters):
                if char.is_alive and char.health < char.max_health:
                    execute_heal(store, unit_id, char.id, action.value)
            return ActionOutcome.done(action)
        if action.range == 0 or action.self_only:
            execute_heal(store, unit_id, unit_id, action.value)
            return ActionOutcome.done(action)
        return _pending_on_units(action, get_heal_targets(unit, action.range, state))

    if isinstance(action, ShieldAction):
        if action.self_only:
            execute_shield(store, unit_id, unit_id, action.value)
            return ActionOutcome.done(action)
        return _pending_on_units(action, get_shield_targets(state))

    if isinstance(action, PushAction):
        return _pending_on_units(action, get_attack_targets(unit, action.range, state, UnitKind.ENEMY))

    if isinstance(action, (BuffAction, SpecialAction)):
        store.emit(EventType.ACTION_SPECIAL, f"{name} uses {action.text}", unit_id=unit_id, text=action.text)
        return ActionOutcome.done(action)

    if isinstance(action, TrapAction):
        store.emit(
            EventType.ACTION_SPECIAL,
            f"{name} sets a trap: {action.text}",
            unit_id=unit_id,
            text=action.text,
        )
        return ActionOutcome.done(action)

    raise TypeError(f"Unhandled action type: {type(action).__name__}")
