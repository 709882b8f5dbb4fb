"""
Mission API Routes.

Single-player HTTP adapter over MissionEngine:
- Start, restart and drop a mission
- Card selection, rests and confirming the round
- Lead-half choice and target clicks during a turn
- Query the state snapshot and the event log

Every command returns the command result plus the post-command snapshot.
Rejected commands leave state untouched and answer 200 with
`accepted: false`, unless the caller passes `strict=true`, in which case
a rejection is reported as a 409.
"""
from fastapi import APIRouter
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
import logging
import random

from hextactics.core.actions import CardHalf
from hextactics.core.errors import CommandRejectedError
from hextactics.core.hex_math import Hex
from hextactics.core.mission_engine import CommandResult, MissionEngine
from hextactics.core.mission_storage import get_mission, register_mission, remove_mission

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Request/Response Models
# =============================================================================

class StartMissionRequest(BaseModel):
    """Options for a new mission."""
    use_modifier_deck: Optional[bool] = None
    seed: Optional[int] = Field(default=None, description="Seed for reproducible shuffles and rests")


class SelectCharacterRequest(BaseModel):
    character_id: str


class SelectCardRequest(BaseModel):
    character_id: str
    card_id: str


class LeadHalfRequest(BaseModel):
    lead_half: CardHalf


class HexRequest(BaseModel):
    q: int
    r: int


class UnitRequest(BaseModel):
    unit_id: str


class RestRequest(BaseModel):
    character_id: Optional[str] = None


class CommandResponse(BaseModel):
    """Result of a player command and the mission afterwards."""
    mission_id: str
    accepted: bool
    reason: str = ""
    data: Dict[str, Any] = Field(default_factory=dict)
    state: Dict[str, Any]


class EventsResponse(BaseModel):
    mission_id: str
    events: List[Dict[str, Any]]


# =============================================================================
# Helpers
# =============================================================================

def _respond(engine: MissionEngine, command: str, result: CommandResult, strict: bool) -> CommandResponse:
    if not result.accepted:
        logger.debug(f"[API] {engine.id} rejected {command}: {result.reason}")
        if strict:
            raise CommandRejectedError(command, result.reason)
    return CommandResponse(
        mission_id=engine.id,
        accepted=result.accepted,
        reason=result.reason,
        data=result.data,
        state=engine.get_state(),
    )


# =============================================================================
# Lifecycle
# =============================================================================

@router.post("/start", response_model=CommandResponse)
async def start_mission(request: Optional[StartMissionRequest] = None):
    """Create a mission and enter the first room."""
    request = request or StartMissionRequest()
    rng = random.Random(request.seed) if request.seed is not None else None
    engine = MissionEngine(use_modifier_deck=request.use_modifier_deck, rng=rng)
    result = engine.start_mission()
    if result.accepted:
        register_mission(engine)
    return _respond(engine, "start", result, strict=True)


@router.get("/{mission_id}/state")
async def get_mission_state(mission_id: str):
    """Full snapshot of the mission."""
    return get_mission(mission_id).get_state()


@router.get("/{mission_id}/events", response_model=EventsResponse)
async def get_mission_events(mission_id: str, since: int = 0):
    """
    The narrative log, oldest first.

    Args:
        since: Skip this many of the retained entries
    """
    engine = get_mission(mission_id)
    events = [e.to_dict() for e in engine.store.log]
    return EventsResponse(mission_id=mission_id, events=events[since:])


@router.post("/{mission_id}/restart", response_model=CommandResponse)
async def restart_mission(mission_id: str, strict: bool = False):
    engine = get_mission(mission_id)
    return _respond(engine, "restart", engine.restart_mission(), strict)


@router.delete("/{mission_id}")
async def delete_mission(mission_id: str):
    """Drop a mission from memory."""
    get_mission(mission_id)
    remove_mission(mission_id)
    return {"success": True, "mission_id": mission_id}


# =============================================================================
# Card selection
# =============================================================================

@router.post("/{mission_id}/select-character", response_model=CommandResponse)
async def select_character(mission_id: str, request: SelectCharacterRequest, strict: bool = False):
    engine = get_mission(mission_id)
    return _respond(engine, "select-character", engine.select_character(request.character_id), strict)


@router.post("/{mission_id}/select-card", response_model=CommandResponse)
async def select_card(mission_id: str, request: SelectCardRequest, strict: bool = False):
    """Toggle a card in a character's selection."""
    engine = get_mission(mission_id)
    result = engine.select_card(request.character_id, request.card_id)
    return _respond(engine, "select-card", result, strict)


@router.post("/{mission_id}/confirm", response_model=CommandResponse)
async def confirm_selection(mission_id: str, strict: bool = False):
    """
    Lock in the round's cards.

    Enemy turns resolve immediately; the response stops at the first
    character turn or back at card selection.
    """
    engine = get_mission(mission_id)
    return _respond(engine, "confirm", engine.confirm_selection(), strict)


@router.post("/{mission_id}/short-rest", response_model=CommandResponse)
async def short_rest(mission_id: str, request: Optional[RestRequest] = None, strict: bool = False):
    engine = get_mission(mission_id)
    character_id = request.character_id if request else None
    return _respond(engine, "short-rest", engine.short_rest(character_id), strict)


@router.post("/{mission_id}/long-rest", response_model=CommandResponse)
async def long_rest(mission_id: str, request: Optional[RestRequest] = None, strict: bool = False):
    engine = get_mission(mission_id)
    character_id = request.character_id if request else None
    return _respond(engine, "long-rest", engine.long_rest(character_id), strict)


# =============================================================================
# Turn input
# =============================================================================

@router.post("/{mission_id}/lead", response_model=CommandResponse)
async def choose_lead_half(mission_id: str, request: LeadHalfRequest, strict: bool = False):
    """Pick which half of the lead card resolves first."""
    engine = get_mission(mission_id)
    return _respond(engine, "lead", engine.choose_lead_half(request.lead_half), strict)


@router.post("/{mission_id}/hex", response_model=CommandResponse)
async def click_hex(mission_id: str, request: HexRequest, strict: bool = False):
    """Choose a move destination."""
    engine = get_mission(mission_id)
    return _respond(engine, "hex", engine.click_hex(Hex(request.q, request.r)), strict)


@router.post("/{mission_id}/unit", response_model=CommandResponse)
async def click_unit(mission_id: str, request: UnitRequest, strict: bool = False):
    """Choose the target of an attack, push, heal or shield."""
    engine = get_mission(mission_id)
    return _respond(engine, "unit", engine.click_unit(request.unit_id), strict)


@router.post("/{mission_id}/skip", response_model=CommandResponse)
async def skip_action(mission_id: str, strict: bool = False):
    engine = get_mission(mission_id)
    return _respond(engine, "skip", engine.skip_pending_action(), strict)
