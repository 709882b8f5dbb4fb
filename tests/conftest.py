"""
Hex Tactics Engine - Test Configuration and Fixtures
Shared test utilities and fixtures for pytest.
"""
import pytest
import random
from typing import List, Optional

from hextactics.config import get_settings
from hextactics.core.actions import Action, AttackAction, Card, MoveAction
from hextactics.core.battle_state import (
    BattleState,
    BattleStore,
    Character,
    Enemy,
    Phase,
    Room,
)
from hextactics.core.hex_math import Hex
from hextactics.core.mission_engine import MissionEngine
from hextactics.core.mission_storage import clear_missions
from hextactics.services.content_loader import ContentLoader, get_content_loader


# ==================== Builders ====================

def build_card(
    card_id: str,
    initiative: int = 50,
    top: Optional[Action] = None,
    bottom: Optional[Action] = None
) -> Card:
    return Card(
        id=card_id,
        name=card_id.replace("_", " ").title(),
        initiative=initiative,
        top=top or AttackAction(value=2),
        bottom=bottom or MoveAction(value=2),
    )


def build_hand(prefix: str, count: int, initiative: int = 50) -> List[Card]:
    return [build_card(f"{prefix}_{i}", initiative + i) for i in range(count)]


def build_character(
    char_id: str = "jack",
    position: Hex = Hex(0, 0),
    health: int = 10,
    max_health: int = 10,
    hand: Optional[List[Card]] = None,
    discard: Optional[List[Card]] = None,
    **kwargs
) -> Character:
    return Character(
        id=char_id,
        name=char_id.title(),
        short_name=char_id.title(),
        max_health=max_health,
        health=health,
        position=position,
        hand=hand if hand is not None else build_hand(char_id, 4),
        discard=discard if discard is not None else [],
        **kwargs
    )


def build_enemy(
    enemy_id: str = "enemy_0",
    position: Hex = Hex(4, 4),
    health: int = 6,
    move: int = 2,
    attack: int = 3,
    attack_range: int = 1,
    ai: str = "melee",
    initiative: int = 50,
    **kwargs
) -> Enemy:
    return Enemy(
        id=enemy_id,
        type="jaffa_warrior",
        name="Jaffa Warrior",
        health=health,
        max_health=max(health, 6),
        position=position,
        move=move,
        attack=attack,
        range=attack_range,
        ai=ai,
        initiative=initiative,
        **kwargs
    )


def build_room(
    room_id: int = 1,
    width: int = 7,
    height: int = 7,
    walls: Optional[List[Hex]] = None,
    artifact: Optional[Hex] = None
) -> Room:
    return Room(
        id=room_id,
        name=f"Room {room_id}",
        width=width,
        height=height,
        start_positions=[Hex(0, 0), Hex(1, 0), Hex(0, 1), Hex(1, 1)],
        walls=walls or [],
        artifact=artifact,
    )


def build_store(
    characters: Optional[List[Character]] = None,
    enemies: Optional[List[Enemy]] = None,
    rooms: Optional[List[Room]] = None
) -> BattleStore:
    """A store holding a PLAYING state in the first of `rooms`."""
    state = BattleState(
        phase=Phase.PLAYING,
        rooms=rooms or [build_room()],
        room_index=0,
        round_number=1,
        characters=characters if characters is not None else [build_character()],
        enemies=enemies if enemies is not None else [],
    )
    return BattleStore(state)


class RecordingPacer:
    """Pacer that records requested delays instead of sleeping."""

    def __init__(self):
        self.delays: List[int] = []

    def __call__(self, delay_ms: int) -> None:
        self.delays.append(delay_ms)


# ==================== Builder Fixtures ====================

@pytest.fixture
def make_card():
    return build_card


@pytest.fixture
def make_character():
    return build_character


@pytest.fixture
def make_enemy():
    return build_enemy


@pytest.fixture
def make_room():
    return build_room


@pytest.fixture
def make_store():
    return build_store


# ==================== Engine Fixtures ====================

@pytest.fixture
def loader() -> ContentLoader:
    """Content loader over the bundled tables."""
    return get_content_loader()


@pytest.fixture
def pacer() -> RecordingPacer:
    return RecordingPacer()


@pytest.fixture
def engine(loader, pacer) -> MissionEngine:
    """Engine with deterministic rng and the modifier deck disabled."""
    return MissionEngine(
        loader=loader,
        settings=get_settings(),
        use_modifier_deck=False,
        rng=random.Random(1234),
        pacer=pacer,
    )


@pytest.fixture
def started_engine(engine) -> MissionEngine:
    """Engine already in the first room's card selection."""
    engine.start_mission()
    return engine


# ==================== Cleanup ====================

@pytest.fixture(autouse=True)
def cleanup_after_test():
    """Reset shared singletons after each test."""
    yield
    ContentLoader.reset()
    clear_missions()


# ==================== Markers ====================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "combat: Combat system tests")
