"""
Battle State.

The single mutable aggregate holding the party, the active enemies, the
room and turn progress, plus the store that funnels every change through
one entry point and notifies subscribers with a full snapshot.
"""
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional, TypeVar, Union
import copy
import logging

from hextactics.core.actions import Card, Action, action_to_dict
from hextactics.core.events import EventType, GameEvent
from hextactics.core.hex_math import Hex
from hextactics.core.initiative import CardSelection, InitiativeTracker, UnitKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Phase(str, Enum):
    """Mission-level phase."""
    BRIEFING = "briefing"
    PLAYING = "playing"
    VICTORY = "victory"
    DEFEAT = "defeat"


class RoundPhase(str, Enum):
    """Phase within a round."""
    SELECTION = "selection"
    EXECUTION = "execution"


class TurnStep(str, Enum):
    """Where a character's two-action turn currently stands."""
    AWAITING_LEAD_CHOICE = "awaiting_lead_choice"
    AWAITING_ACTION_1 = "awaiting_action_1"
    AWAITING_TARGET = "awaiting_target"
    AWAITING_ACTION_2 = "awaiting_action_2"
    TURN_COMPLETE = "turn_complete"


# =============================================================================
# Room layout
# =============================================================================

@dataclass(frozen=True)
class EnemySpawn:
    archetype: str
    position: Hex


@dataclass
class Room:
    """A rectangular hex field with its fixed spawns."""
    id: int
    name: str
    width: int
    height: int
    start_positions: List[Hex]
    enemies: List[EnemySpawn] = field(default_factory=list)
    walls: List[Hex] = field(default_factory=list)
    artifact: Optional[Hex] = None

    def in_bounds(self, hex_: Hex) -> bool:
        return 0 <= hex_.q < self.width and 0 <= hex_.r < self.height

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "width": self.width,
            "height": self.height,
            "walls": [w.to_dict() for w in self.walls],
            "artifact": self.artifact.to_dict() if self.artifact else None,
        }


# =============================================================================
# Units
# =============================================================================

@dataclass
class Character:
    """A party member. Persists across rooms."""
    id: str
    name: str
    short_name: str
    max_health: int
    health: int
    position: Hex
    hand: List[Card] = field(default_factory=list)
    discard: List[Card] = field(default_factory=list)
    burned: List[Card] = field(default_factory=list)
    shield: int = 0
    resting: bool = False

    kind = UnitKind.CHARACTER

    @property
    def is_alive(self) -> bool:
        return self.health > 0

    def needs_rest(self, cards_to_play: int = 2) -> bool:
        """Too few cards in hand, with something to recover."""
        return len(self.hand) < cards_to_play and len(self.discard) > 0

    def is_exhausted(self, cards_to_play: int = 2) -> bool:
        return len(self.hand) < cards_to_play and not self.discard

    def find_card(self, card_id: str) -> Optional[Card]:
        for card in self.hand:
            if card.id == card_id:
                return card
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "name": self.name,
            "short_name": self.short_name,
            "health": self.health,
            "max_health": self.max_health,
            "position": self.position.to_dict(),
            "hand": [c.to_dict() for c in self.hand],
            "discard": [c.to_dict() for c in self.discard],
            "burned": [c.to_dict() for c in self.burned],
            "shield": self.shield,
            "resting": self.resting,
        }


@dataclass
class Enemy:
    """An enemy spawned from an archetype. Ids are only unique within a room."""
    id: str
    type: str
    name: str
    health: int
    max_health: int
    position: Hex
    move: int
    attack: int
    range: int
    ai: str
    initiative: int
    stunned: bool = False

    kind = UnitKind.ENEMY

    @property
    def is_alive(self) -> bool:
        return self.health > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "type": self.type,
            "name": self.name,
            "health": self.health,
            "max_health": self.max_health,
            "position": self.position.to_dict(),
            "move": self.move,
            "attack": self.attack,
            "range": self.range,
            "ai": self.ai,
            "initiative": self.initiative,
            "stunned": self.stunned,
        }


Unit = Union[Character, Enemy]


# =============================================================================
# Turn state
# =============================================================================

@dataclass
class PendingAction:
    """An action waiting for the player to pick from its legal set."""
    action: Action
    action_index: int
    unit_id: str
    hexes: List[Hex] = field(default_factory=list)
    target_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": action_to_dict(self.action),
            "action_index": self.action_index,
            "unit_id": self.unit_id,
            "hexes": [h.to_dict() for h in self.hexes],
            "target_ids": list(self.target_ids),
        }


@dataclass
class TurnState:
    round_phase: RoundPhase = RoundPhase.SELECTION
    selections: Dict[str, CardSelection] = field(default_factory=dict)
    order: InitiativeTracker = field(default_factory=InitiativeTracker)
    step: Optional[TurnStep] = None
    action_index: int = 0
    pending: Optional[PendingAction] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "round_phase": self.round_phase.value,
            "selections": {cid: s.to_dict() for cid, s in self.selections.items()},
            "turn_order": self.order.to_dict(),
            "step": self.step.value if self.step else None,
            "action_index": self.action_index,
            "pending": self.pending.to_dict() if self.pending else None,
        }


@dataclass
class BattleState:
    """
    Complete state of a mission.

    Units are stored in two ordered lists (party order, spawn order) and
    are also reachable through `get_unit`, which indexes both by id.
    """
    phase: Phase = Phase.BRIEFING
    rooms: List[Room] = field(default_factory=list)
    room_index: int = 0
    round_number: int = 0
    characters: List[Character] = field(default_factory=list)
    enemies: List[Enemy] = field(default_factory=list)
    turn: TurnState = field(default_factory=TurnState)
    selected_character: Optional[str] = None
    highlighted_hexes: List[Hex] = field(default_factory=list)
    victory_code: Optional[str] = None

    @property
    def room(self) -> Optional[Room]:
        if 0 <= self.room_index < len(self.rooms):
            return self.rooms[self.room_index]
        return None

    @property
    def room_number(self) -> int:
        return self.room_index + 1

    @property
    def is_final_room(self) -> bool:
        return self.room_index >= len(self.rooms) - 1

    @property
    def units(self) -> Dict[str, Unit]:
        registry: Dict[str, Unit] = {c.id: c for c in self.characters}
        registry.update({e.id: e for e in self.enemies})
        return registry

    def get_unit(self, unit_id: str) -> Optional[Unit]:
        return self.units.get(unit_id)

    def unit_kind(self, unit_id: str) -> Optional[UnitKind]:
        unit = self.get_unit(unit_id)
        return unit.kind if unit is not None else None

    def get_character(self, character_id: str) -> Optional[Character]:
        for char in self.characters:
            if char.id == character_id:
                return char
        return None

    def get_enemy(self, enemy_id: str) -> Optional[Enemy]:
        for enemy in self.enemies:
            if enemy.id == enemy_id:
                return enemy
        return None

    def living_characters(self) -> List[Character]:
        return [c for c in self.characters if c.is_alive]

    def unit_at(self, hex_: Hex) -> Optional[Unit]:
        for unit in list(self.characters) + list(self.enemies):
            if unit.position == hex_:
                return unit
        return None

    def all_cards_selected(self, cards_to_play: int = 2) -> bool:
        """
        Readiness gate for confirming the round.

        Resting characters and exhausted characters (hand and discard both
        short) are skipped. A character with a short hand but cards in the
        discard blocks the gate until it rests.
        """
        for char in self.characters:
            if char.resting or char.is_exhausted(cards_to_play):
                continue
            if char.needs_rest(cards_to_play):
                return False
            selection = self.turn.selections.get(char.id)
            if selection is None or not selection.is_complete:
                return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        room = self.room
        return {
            "phase": self.phase.value,
            "room_number": self.room_number,
            "total_rooms": len(self.rooms),
            "room": room.to_dict() if room else None,
            "round_number": self.round_number,
            "characters": [c.to_dict() for c in self.characters],
            "enemies": [e.to_dict() for e in self.enemies],
            "turn": self.turn.to_dict(),
            "ui": {
                "selected_character": self.selected_character,
                "highlighted_hexes": [h.to_dict() for h in self.highlighted_hexes],
            },
            "victory_code": self.victory_code,
        }


# =============================================================================
# Store
# =============================================================================

StateListener = Callable[[Dict[str, Any]], None]
EventListener = Callable[[GameEvent], None]


class BattleStore:
    """
    Observer store around a BattleState.

    `mutate` is the only way to change state: it records the prior state
    for undo, applies the change, then hands every subscriber the full
    post-change snapshot. The narrative event log lives beside the state
    and is not rolled back by undo.
    """

    def __init__(
        self,
        state: Optional[BattleState] = None,
        max_history: int = 50,
        max_log: int = 50
    ):
        self._state = state or BattleState()
        self._listeners: List[StateListener] = []
        self._event_listeners: List[EventListener] = []
        self._history: Deque[BattleState] = deque(maxlen=max_history)
        self._log: Deque[GameEvent] = deque(maxlen=max_log)

    @property
    def state(self) -> BattleState:
        return self._state

    @property
    def log(self) -> List[GameEvent]:
        return list(self._log)

    @property
    def history_size(self) -> int:
        return len(self._history)

    def mutate(self, change: Callable[[BattleState], T]) -> T:
        """Apply `change` to the state and notify subscribers."""
        self._history.append(copy.deepcopy(self._state))
        result = change(self._state)
        self._notify()
        return result

    def emit(
        self,
        event_type: EventType,
        message: str,
        unit_id: Optional[str] = None,
        **data
    ) -> GameEvent:
        """Record an event in the log and forward it to event subscribers."""
        event = GameEvent(
            event_type=event_type,
            message=message,
            round_number=self._state.round_number,
            unit_id=unit_id,
            data=data,
        )
        self._log.append(event)
        logger.debug(f"[State] {event_type.value}: {message}")
        for listener in list(self._event_listeners):
            listener(event)
        return event

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a state listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def subscribe_events(self, listener: EventListener) -> Callable[[], None]:
        self._event_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._event_listeners:
                self._event_listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> Dict[str, Any]:
        data = self._state.to_dict()
        data["log"] = [e.to_dict() for e in self._log]
        return data

    def reset(self, state: Optional[BattleState] = None) -> None:
        """Replace the state wholesale, dropping history and the log."""
        self._state = state or BattleState()
        self._history.clear()
        self._log.clear()
        self._notify()

    def undo(self) -> bool:
        """Restore the previous state. Returns False if there is none."""
        if not self._history:
            return False
        self._state = self._history.pop()
        self._notify()
        return True

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
