# Content Models

from .content import (
    ActionType,
    AreaKind,
    AreaDefinition,
    ActionDefinition,
    CardDefinition,
    CharacterTemplate,
    EnemyArchetype,
    Position,
    EnemySpawnDefinition,
    RoomLayout,
)

__all__ = [
    "ActionType",
    "AreaKind",
    "AreaDefinition",
    "ActionDefinition",
    "CardDefinition",
    "CharacterTemplate",
    "EnemyArchetype",
    "Position",
    "EnemySpawnDefinition",
    "RoomLayout",
]
