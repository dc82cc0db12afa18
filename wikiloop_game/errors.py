from __future__ import annotations

from typing import Any, Optional


class GameError(Exception):
    code = "GAME_ERROR"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class NoSnapshotAvailable(GameError):
    """No epoch has been published yet; no candidates can exist."""

    code = "NO_SNAPSHOT"


class CandidateQueryFailure(GameError):
    code = "CANDIDATE_QUERY"


class VerificationFailure(GameError):
    """The claim lookup failed; the entity is skipped for this pass."""

    code = "VERIFICATION"


class LoggingFailure(GameError):
    code = "LOGGING"
