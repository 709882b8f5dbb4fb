"""
Content Table Loader.

Singleton service that loads, validates and caches the static content
tables from JSON: characters, card decks, enemy archetypes and rooms.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from hextactics.config import get_settings
from hextactics.core.actions import Card, card_from_dict
from hextactics.core.battle_state import EnemySpawn, Room
from hextactics.core.errors import ContentError, ContentNotFoundError, ErrorCode
from hextactics.core.hex_math import Hex
from hextactics.models.content import (
    CardDefinition,
    CharacterTemplate,
    EnemyArchetype,
    Position,
    RoomLayout,
)

logger = logging.getLogger(__name__)


def _to_hex(position: Position) -> Hex:
    return Hex(position.q, position.r)


class ContentLoader:
    """Loads and caches the content tables."""

    _instance: Optional['ContentLoader'] = None
    _initialized: bool = False

    # Data caches
    _characters: Dict[str, CharacterTemplate] = {}
    _decks: Dict[str, List[CardDefinition]] = {}
    _enemies: Dict[str, EnemyArchetype] = {}
    _rooms: List[RoomLayout] = []

    def __new__(cls) -> 'ContentLoader':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self._load_all_data()
            ContentLoader._initialized = True

    @classmethod
    def get_instance(cls) -> 'ContentLoader':
        """Get the singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls):
        """Reset the singleton (useful for testing)."""
        cls._instance = None
        cls._initialized = False
        cls._characters = {}
        cls._decks = {}
        cls._enemies = {}
        cls._rooms = []

    def _get_data_path(self) -> Path:
        """Content directory: CONTENT_DIR if set, else the bundled tables."""
        override = get_settings().CONTENT_DIR
        if override:
            return Path(override)
        return Path(__file__).parent.parent / "data" / "content"

    def _load_json_file(self, filename: str) -> Dict[str, Any]:
        filepath = self._get_data_path() / filename
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, FileNotFoundError) as e:
            logger.error(f"[Content] Error loading {filepath}: {e}")
            raise ContentError(
                code=ErrorCode.CONTENT_INVALID,
                message=f"Could not load content table {filename}",
                details={"path": str(filepath), "reason": str(e)},
            )

    def _load_all_data(self):
        """Load every table and check cross references."""
        try:
            characters = [
                CharacterTemplate(**row)
                for row in self._load_json_file("characters.json").get("characters", [])
            ]
            decks = {
                deck_id: [CardDefinition(**row) for row in rows]
                for deck_id, rows in self._load_json_file("cards.json").get("decks", {}).items()
            }
            enemies = [
                EnemyArchetype(**row)
                for row in self._load_json_file("enemies.json").get("enemies", [])
            ]
            rooms = [
                RoomLayout(**row)
                for row in self._load_json_file("rooms.json").get("rooms", [])
            ]
        except PydanticValidationError as e:
            raise ContentError(
                code=ErrorCode.CONTENT_INVALID,
                message="Content table failed validation",
                details={"errors": e.errors(include_url=False)},
            )

        self._characters = {c.id: c for c in characters}
        self._decks = decks
        self._enemies = {e.id: e for e in enemies}
        self._rooms = rooms
        self._validate_references()

        logger.info(
            f"[Content] Loaded {len(self._characters)} characters, {len(self._decks)} decks, "
            f"{len(self._enemies)} enemy types, {len(self._rooms)} rooms"
        )

    def _validate_references(self):
        for char in self._characters.values():
            if char.deck not in self._decks:
                raise ContentNotFoundError("deck", char.deck)
        for room in self._rooms:
            for spawn in room.enemies:
                if spawn.type not in self._enemies:
                    raise ContentNotFoundError("enemy archetype", spawn.type)

    # ==================== Characters ====================

    def get_character_templates(self) -> List[CharacterTemplate]:
        """Party members in party order."""
        return list(self._characters.values())

    def get_character_template(self, character_id: str) -> CharacterTemplate:
        template = self._characters.get(character_id)
        if template is None:
            raise ContentNotFoundError("character", character_id)
        return template

    # ==================== Cards ====================

    def get_card_definitions(self, deck_id: str) -> List[CardDefinition]:
        deck = self._decks.get(deck_id)
        if deck is None:
            raise ContentNotFoundError("deck", deck_id)
        return list(deck)

    def get_deck(self, deck_id: str) -> List[Card]:
        """Engine cards for a deck, in table order."""
        return [
            card_from_dict({
                "id": d.id,
                "name": d.name,
                "initiative": d.initiative,
                "top": d.top.to_engine_dict(),
                "bottom": d.bottom.to_engine_dict(),
            })
            for d in self.get_card_definitions(deck_id)
        ]

    # ==================== Enemies ====================

    def get_enemy_archetype(self, archetype_id: str) -> EnemyArchetype:
        archetype = self._enemies.get(archetype_id)
        if archetype is None:
            raise ContentNotFoundError("enemy archetype", archetype_id)
        return archetype

    # ==================== Rooms ====================

    def get_rooms(self) -> List[Room]:
        """Engine room layouts in mission order."""
        return [
            Room(
                id=layout.id,
                name=layout.name,
                width=layout.width,
                height=layout.height,
                start_positions=[_to_hex(p) for p in layout.start_positions],
                enemies=[EnemySpawn(archetype=s.type, position=_to_hex(s.position)) for s in layout.enemies],
                walls=[_to_hex(w) for w in layout.walls],
                artifact=_to_hex(layout.artifact) if layout.artifact else None,
            )
            for layout in self._rooms
        ]

    def get_room(self, room_id: int) -> Room:
        for room in self.get_rooms():
            if room.id == room_id:
                return room
        raise ContentNotFoundError("room", str(room_id))


# Convenience function to get the singleton
def get_content_loader() -> ContentLoader:
    """Get the ContentLoader singleton instance."""
    return ContentLoader.get_instance()
