"""
Shared storage for active mission sessions.

Keeps mission engines in memory keyed by mission id so the HTTP routes
and tests can look them up without importing each other.
"""
from typing import Any, Dict
import logging

from hextactics.core.errors import MissionNotFoundError

logger = logging.getLogger(__name__)


# In-memory storage for active missions
# Keys are mission_id (str), values are MissionEngine instances
active_missions: Dict[str, Any] = {}


def register_mission(engine: Any) -> str:
    """
    Store an engine under its id.

    Args:
        engine: A MissionEngine instance

    Returns:
        The mission id
    """
    active_missions[engine.id] = engine
    logger.info(f"[MissionStorage] Registered mission {engine.id} ({len(active_missions)} active)")
    return engine.id


def get_mission(mission_id: str) -> Any:
    """Look up an active mission or raise MissionNotFoundError."""
    engine = active_missions.get(mission_id)
    if engine is None:
        raise MissionNotFoundError(mission_id)
    return engine


def remove_mission(mission_id: str) -> bool:
    """
    Drop a mission from storage.

    Returns:
        True if the mission existed
    """
    removed = active_missions.pop(mission_id, None) is not None
    if removed:
        logger.info(f"[MissionStorage] Removed mission {mission_id}")
    return removed


def clear_missions() -> None:
    active_missions.clear()
