"""
Game Events.

Semantic notifications emitted by the engine for logging and animation.
Every event carries a human-readable message; the bounded list of recent
events doubles as the narrative combat log.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class EventType(str, Enum):
    """Kinds of events the engine emits."""
    # Mission lifecycle
    MISSION_STARTED = "mission_started"
    ROOM_ENTERED = "room_entered"
    ROOM_CLEARED = "room_cleared"
    VICTORY = "victory"
    DEFEAT = "defeat"

    # Round / turn boundaries
    ROUND_STARTED = "round_started"
    ROUND_ENDED = "round_ended"
    TURN_STARTED = "turn_started"

    # Unit effects
    UNIT_MOVED = "unit_moved"
    UNIT_DAMAGED = "unit_damaged"
    UNIT_DEFEATED = "unit_defeated"
    UNIT_STUNNED = "unit_stunned"
    UNIT_HEALED = "unit_healed"
    UNIT_SHIELDED = "unit_shielded"
    UNIT_PUSHED = "unit_pushed"
    ATTACK_AOE = "attack_aoe"
    MODIFIER_DRAWN = "modifier_drawn"

    # Actions
    ACTION_SPECIAL = "action_special"
    ACTION_SKIPPED = "action_skipped"
    ENEMY_STUNNED_SKIP = "enemy_stunned_skip"
    ENEMY_WAIT = "enemy_wait"

    # Rests
    REST_SHORT = "rest_short"
    REST_LONG = "rest_long"
    CARD_BURNED = "card_burned"

    # Narrative only
    MESSAGE = "message"


@dataclass
class GameEvent:
    """An event that occurred during the mission."""
    event_type: EventType
    message: str
    round_number: int = 0
    unit_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.event_type.value,
            "message": self.message,
            "round": self.round_number,
            "unit_id": self.unit_id,
            "data": dict(self.data),
        }
