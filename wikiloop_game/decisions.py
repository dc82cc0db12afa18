from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import jsonschema

from .errors import LoggingFailure

SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "log_action.schema.json"

with SCHEMA_PATH.open(encoding="utf-8") as _handle:
    _VALIDATOR = jsonschema.Draft202012Validator(json.load(_handle))


class Decision(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    SKIP = "skip"


# The game platform echoes the entry decision of the clicked button.
_ALIASES = {"yes": Decision.ACCEPT, "no": Decision.REJECT}


@dataclass(frozen=True)
class LogRequest:
    user: str
    qid: str
    decision: Decision


def normalize_log_request(params: dict[str, Any]) -> LogRequest:
    """
    Turn raw log_action query parameters into a LogRequest.

    The tile id is upper-cased and the decision lower-cased before checking
    them against the log_action schema. The first failure, shallowest path
    first, is raised as LoggingFailure. Platform yes/no map to accept/reject.
    """
    candidate = {key: params[key] for key in ("user", "tile", "decision") if key in params}
    if isinstance(candidate.get("tile"), str):
        candidate["tile"] = candidate["tile"].strip().upper()
    if isinstance(candidate.get("decision"), str):
        candidate["decision"] = candidate["decision"].strip().lower()

    error = min(_VALIDATOR.iter_errors(candidate), key=lambda e: len(e.absolute_path), default=None)
    if error is not None:
        raise LoggingFailure(
            "Invalid log_action request.",
            {"path": list(error.absolute_path), "message": error.message},
        )

    raw_decision = candidate["decision"]
    decision = _ALIASES.get(raw_decision) or Decision(raw_decision)
    return LogRequest(user=candidate["user"], qid=candidate["tile"], decision=decision)
