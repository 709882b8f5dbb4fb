"""
Card Actions.

Every card has a top and a bottom action. Actions are a closed set of
dataclasses, one per kind, each carrying only the fields it needs.
Code that dispatches over actions must handle every kind and raise
TypeError for anything else.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union


class ActionKind(str, Enum):
    """Action kinds a card half can declare."""
    MOVE = "move"
    ATTACK = "attack"
    HEAL = "heal"
    SHIELD = "shield"
    PUSH = "push"
    BUFF = "buff"
    SPECIAL = "special"
    TRAP = "trap"


class CardHalf(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"

    @property
    def opposite(self) -> "CardHalf":
        return CardHalf.BOTTOM if self is CardHalf.TOP else CardHalf.TOP


# =============================================================================
# Area effects
# =============================================================================

@dataclass(frozen=True)
class FixedCountArea:
    """Hit up to `max_additional` other enemies adjacent to the primary target."""
    max_additional: int = 2
    radius: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": "fixed_count", "max_additional": self.max_additional, "radius": self.radius}


@dataclass(frozen=True)
class RadiusArea:
    """Hit every enemy within `radius` of the primary target."""
    radius: int

    @property
    def max_additional(self) -> Optional[int]:
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": "radius", "radius": self.radius}


AreaEffect = Union[FixedCountArea, RadiusArea]


# =============================================================================
# Actions
# =============================================================================

@dataclass(frozen=True)
class MoveAction:
    value: int
    text: str = ""
    kind = ActionKind.MOVE


@dataclass(frozen=True)
class AttackAction:
    value: int
    range: int = 1
    stun: bool = False
    push: int = 0
    area: Optional[AreaEffect] = None
    text: str = ""
    kind = ActionKind.ATTACK


@dataclass(frozen=True)
class HealAction:
    value: int
    range: int = 0
    all_allies: bool = False
    self_only: bool = False
    text: str = ""
    kind = ActionKind.HEAL


@dataclass(frozen=True)
class ShieldAction:
    value: int
    self_only: bool = False
    text: str = ""
    kind = ActionKind.SHIELD


@dataclass(frozen=True)
class PushAction:
    value: int
    range: int = 1
    text: str = ""
    kind = ActionKind.PUSH


@dataclass(frozen=True)
class BuffAction:
    value: int = 0
    text: str = ""
    kind = ActionKind.BUFF


@dataclass(frozen=True)
class SpecialAction:
    value: int = 0
    text: str = ""
    kind = ActionKind.SPECIAL


@dataclass(frozen=True)
class TrapAction:
    value: int = 0
    text: str = ""
    kind = ActionKind.TRAP


Action = Union[
    MoveAction, AttackAction, HealAction, ShieldAction,
    PushAction, BuffAction, SpecialAction, TrapAction,
]


@dataclass(frozen=True)
class Card:
    """An ability card."""
    id: str
    name: str
    initiative: int
    top: Action
    bottom: Action

    def half(self, half: CardHalf) -> Action:
        return self.top if half is CardHalf.TOP else self.bottom

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "initiative": self.initiative,
            "top": action_to_dict(self.top),
            "bottom": action_to_dict(self.bottom),
        }


# =============================================================================
# Conversion
# =============================================================================

def _area_from_dict(data: Dict[str, Any]) -> Optional[AreaEffect]:
    area = data.get("area")
    if not area:
        return None
    if area.get("kind") == "radius":
        return RadiusArea(radius=int(area.get("radius", 1)))
    return FixedCountArea(
        max_additional=int(area.get("max_additional", 2)),
        radius=int(area.get("radius", 1)),
    )


def action_from_dict(data: Dict[str, Any]) -> Action:
    """Build an action from a content row such as {"type": "attack", "value": 3}."""
    kind = ActionKind(data["type"])
    value = int(data.get("value", 0))
    text = data.get("text", "")

    if kind is ActionKind.MOVE:
        return MoveAction(value=value, text=text)
    if kind is ActionKind.ATTACK:
        return AttackAction(
            value=value,
            range=int(data.get("range", 1)),
            stun=bool(data.get("stun", False)),
            push=int(data.get("push", 0)),
            area=_area_from_dict(data),
            text=text,
        )
    if kind is ActionKind.HEAL:
        return HealAction(
            value=value,
            range=int(data.get("range", 0)),
            all_allies=bool(data.get("all_allies", False)),
            self_only=bool(data.get("self_only", False)),
            text=text,
        )
    if kind is ActionKind.SHIELD:
        return ShieldAction(value=value, self_only=bool(data.get("self_only", False)), text=text)
    if kind is ActionKind.PUSH:
        return PushAction(value=value, range=int(data.get("range", 1)), text=text)
    if kind is ActionKind.BUFF:
        return BuffAction(value=value, text=text)
    if kind is ActionKind.SPECIAL:
        return SpecialAction(value=value, text=text)
    if kind is ActionKind.TRAP:
        return TrapAction(value=value, text=text)
    raise TypeError(f"Unhandled action kind: {kind}")


def action_to_dict(action: Action) -> Dict[str, Any]:
    """Serialize an action for the state snapshot."""
    data: Dict[str, Any] = {"type": action.kind.value, "value": action.value, "text": action.text}
    if isinstance(action, AttackAction):
        data.update({"range": action.range, "stun": action.stun, "push": action.push})
        if action.area is not None:
            data["area"] = action.area.to_dict()
    elif isinstance(action, HealAction):
        data.update({"range": action.range, "all_allies": action.all_allies, "self_only": action.self_only})
    elif isinstance(action, ShieldAction):
        data["self_only"] = action.self_only
    elif isinstance(action, PushAction):
        data["range"] = action.range
    return data


def card_from_dict(data: Dict[str, Any]) -> Card:
    return Card(
        id=data["id"],
        name=data["name"],
        initiative=int(data["initiative"]),
        top=action_from_dict(data["top"]),
        bottom=action_from_dict(data["bottom"]),
    )
