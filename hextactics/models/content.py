"""
Content Table Models.

Pydantic models validating the static JSON tables: characters, their card
decks, enemy archetypes and room layouts.
"""
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class ActionType(str, Enum):
    """Card action kinds as written in the content tables."""
    MOVE = "move"
    ATTACK = "attack"
    HEAL = "heal"
    SHIELD = "shield"
    PUSH = "push"
    BUFF = "buff"
    SPECIAL = "special"
    TRAP = "trap"


class AreaKind(str, Enum):
    FIXED_COUNT = "fixed_count"  # hit N adjacent
    RADIUS = "radius"            # everything within radius


class AreaDefinition(BaseModel):
    kind: AreaKind = AreaKind.FIXED_COUNT
    radius: int = Field(default=1, ge=1)
    max_additional: Optional[int] = Field(default=None, ge=1)


class ActionDefinition(BaseModel):
    """One half of a card."""
    type: ActionType
    value: int = Field(default=0, ge=0)
    range: Optional[int] = Field(default=None, ge=0)
    stun: bool = False
    push: int = Field(default=0, ge=0)
    area: Optional[AreaDefinition] = None
    all_allies: bool = False
    self_only: bool = False
    text: str = ""

    def to_engine_dict(self) -> Dict:
        """Row in the shape `action_from_dict` expects; unset fields fall back to per-kind defaults."""
        return self.model_dump(mode="json", exclude_none=True)


class CardDefinition(BaseModel):
    """An ability card."""
    id: str
    name: str
    initiative: int = Field(ge=1, le=99)
    top: ActionDefinition
    bottom: ActionDefinition


class CharacterTemplate(BaseModel):
    """A playable character and its deck reference."""
    id: str
    name: str
    short_name: str
    max_health: int = Field(ge=1)
    deck: str


class EnemyArchetype(BaseModel):
    """Stats shared by every enemy of one type."""
    id: str
    name: str
    max_health: int = Field(ge=1)
    move: int = Field(ge=0)
    attack: int = Field(ge=0)
    range: int = Field(ge=1)
    ai: str
    initiative: int = Field(ge=1, le=99)


class Position(BaseModel):
    q: int
    r: int


class EnemySpawnDefinition(BaseModel):
    type: str
    position: Position


class RoomLayout(BaseModel):
    """A room: dimensions, spawns, starting hexes and the optional artifact."""
    id: int
    name: str
    width: int = Field(ge=1)
    height: int = Field(ge=1)
    start_positions: List[Position] = Field(min_length=1)
    enemies: List[EnemySpawnDefinition] = []
    walls: List[Position] = []
    artifact: Optional[Position] = None
