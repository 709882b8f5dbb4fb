"""
Hex Tactics Engine - Custom Error Types
Structured exceptions for engine errors with recovery hints.

Gameplay commands never raise these: an illegal command is rejected silently
(see CommandResult in mission_engine). These cover lookups and setup faults.
"""
from typing import Dict, Any, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the game engine."""
    # General errors
    UNKNOWN = "UNKNOWN"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"

    # Mission errors
    MISSION_NOT_FOUND = "MISSION_NOT_FOUND"
    MISSION_INVALID_STATE = "MISSION_INVALID_STATE"
    COMMAND_REJECTED = "COMMAND_REJECTED"

    # Content errors
    CONTENT_NOT_FOUND = "CONTENT_NOT_FOUND"
    CONTENT_INVALID = "CONTENT_INVALID"


class GameError(Exception):
    """
    Base exception for all game-related errors.

    Provides structured error information with:
    - Error code for programmatic handling
    - Human-readable message
    - Additional context details
    - Recovery hints for the frontend
    """

    def __init__(
        self,
        code: ErrorCode = ErrorCode.UNKNOWN,
        message: str = "An unexpected error occurred",
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
        recovery_hint: Optional[str] = None,
        http_status: int = 500
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable
        self.recovery_hint = recovery_hint
        self.http_status = http_status

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON response."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
                "recoverable": self.recoverable,
                "recovery_hint": self.recovery_hint
            }
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


# =============================================================================
# Mission Errors
# =============================================================================

class MissionError(GameError):
    """Mission-related errors."""

    def __init__(
        self,
        code: ErrorCode = ErrorCode.MISSION_INVALID_STATE,
        message: str = "Invalid mission state",
        **kwargs
    ):
        kwargs.setdefault("http_status", 400)
        super().__init__(code=code, message=message, **kwargs)


class MissionNotFoundError(MissionError):
    """Raised when a mission id has no active session."""

    def __init__(self, mission_id: Optional[str] = None):
        details = {}
        if mission_id:
            details["mission_id"] = mission_id
        super().__init__(
            code=ErrorCode.MISSION_NOT_FOUND,
            message="Mission not found",
            details=details,
            http_status=404,
            recovery_hint="Start a new mission"
        )


class CommandRejectedError(MissionError):
    """Raised by strict callers that want a rejected command to surface as an error."""

    def __init__(self, command: str, reason: str):
        super().__init__(
            code=ErrorCode.COMMAND_REJECTED,
            message=f"Command '{command}' rejected: {reason}",
            details={"command": command, "reason": reason},
            http_status=409,
            recovery_hint="Refresh the mission state and pick a legal option"
        )


# =============================================================================
# Content Errors
# =============================================================================

class ContentError(GameError):
    """Content table errors."""

    def __init__(
        self,
        code: ErrorCode = ErrorCode.CONTENT_INVALID,
        message: str = "Invalid content data",
        **kwargs
    ):
        super().__init__(code=code, message=message, recoverable=False, **kwargs)


class ContentNotFoundError(ContentError):
    """Raised when a content id (character, card, archetype, room) is unknown."""

    def __init__(self, kind: str, identifier: str):
        super().__init__(
            code=ErrorCode.CONTENT_NOT_FOUND,
            message=f"Unknown {kind}: {identifier}",
            details={"kind": kind, "id": identifier},
            http_status=404
        )
