from __future__ import annotations

import html
import json
import re
from typing import Any

from . import config
from .facts import Fact, parse_fact
from .games import GameDefinition
from .store import CandidateRow

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_WIKIPEDIA_SUFFIX_RE = re.compile(r"\.(m\.)?wikipedia.*$", re.IGNORECASE)


def url_language(url: str) -> str:
    """Return the language subdomain of a Wikipedia URL (http://de.wikipedia.org/... -> de)."""
    return _WIKIPEDIA_SUFFIX_RE.sub("", _SCHEME_RE.sub("", url))


def reference_snak(url: str) -> dict[str, Any]:
    return {
        "snaktype": "value",
        "property": config.IMPORT_URL_PROPERTY,
        "datavalue": {"value": url, "type": "string"},
        "datatype": "url",
    }


def references_section(refs) -> dict[str, Any]:
    links = [
        f'<a href="{html.escape(url, quote=True)}" target="_blank">'
        f"{html.escape(url_language(url).upper())} Wikipedia</a>"
        for url in refs
    ]
    return {"type": "html", "title": "References:", "text": "<br>".join(links)}


def build_claim(game: GameDefinition, fact: Fact, refs) -> dict[str, Any]:
    return {
        "mainsnak": fact.mainsnak(game.property_id),
        "references": [
            {
                "snaks": {config.IMPORT_URL_PROPERTY: [reference_snak(url) for url in refs]},
                "snaks-order": [config.IMPORT_URL_PROPERTY],
            }
        ],
        "type": "statement",
        "rank": "normal",
    }


def build_api_action(game: GameDefinition, qid: str, fact: Fact, refs) -> dict[str, Any]:
    # wbeditentity is the only module that adds a claim and its references in one call.
    data = {"claims": [build_claim(game, fact, refs)]}
    return {
        "action": "wbeditentity",
        "id": qid,
        "summary": game.summary,
        "data": json.dumps(data),
    }


def build_entries(game: GameDefinition, qid: str, fact: Fact, refs) -> list[dict[str, Any]]:
    return [
        {
            "type": "green",
            "decision": "yes",
            "label": "Accept",
            "api_action": build_api_action(game, qid, fact, refs),
        },
        {"type": "white", "decision": "skip", "label": "I don't know"},
        {"type": "blue", "decision": "no", "label": "Reject"},
    ]


def build_display_data(game: GameDefinition, row: CandidateRow):
    """
    Return (sections, entries) for one candidate row.

    Raises ValueError when the proposed value cannot be turned into a claim.
    """
    if not row.refs:
        raise ValueError(f"{row.qid} has no source references")
    fact = parse_fact(game.fact_kind, row.missing_value)
    sections = [{"type": "item", "q": row.qid}]
    sections.extend(fact.value_sections(game.value_title))
    sections.append(references_section(row.refs))
    return sections, build_entries(game, row.qid, fact, row.refs)


def build_tile(game: GameDefinition, row: CandidateRow) -> dict[str, Any]:
    sections, entries = build_display_data(game, row)
    return {
        "id": row.qid,
        "sections": sections,
        "controls": [{"type": "buttons", "entries": entries}],
    }
