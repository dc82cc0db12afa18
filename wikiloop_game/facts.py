from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from typing import Any, Union

from . import config
from .games import FactKind

logger = logging.getLogger(__name__)

# Wikibase time precision codes
PRECISION_YEAR = 9
PRECISION_MONTH = 10
PRECISION_DAY = 11

_PRECISION_BY_LENGTH = {4: PRECISION_YEAR, 7: PRECISION_MONTH, 10: PRECISION_DAY}
_PADDING_BY_LENGTH = {4: "-00-00", 7: "-00"}


@dataclass(frozen=True)
class DateFact:
    """A proposed date (YYYY, YYYY-MM or YYYY-MM-DD) for a time-valued property."""

    raw: str
    kind = FactKind.DATE

    @property
    def precision(self) -> int:
        precision = _PRECISION_BY_LENGTH.get(len(self.raw))
        if precision is None:
            logger.warning("[!] Unexpected date shape %r; defaulting to day precision.", self.raw)
            return PRECISION_DAY
        return precision

    @property
    def time_value(self) -> str:
        """Return the +YYYY-MM-DDT00:00:00Z form the Wikibase API expects."""
        padded = self.raw + _PADDING_BY_LENGTH.get(len(self.raw), "")
        return f"+{padded}T00:00:00Z"

    def datavalue(self) -> dict[str, Any]:
        return {
            "value": {
                "time": self.time_value,
                "timezone": 0,
                "before": 0,
                "after": 0,
                "precision": self.precision,
                "calendarmodel": config.GREGORIAN_CALENDAR,
            },
            "type": "time",
        }

    def mainsnak(self, property_id: str) -> dict[str, Any]:
        return {"snaktype": "value", "property": property_id, "datavalue": self.datavalue()}

    def value_sections(self, title: str) -> list[dict[str, Any]]:
        return [{"type": "html", "title": title, "text": f"<b>{html.escape(self.raw)}</b>"}]


@dataclass(frozen=True)
class ItemFact:
    """A proposed item reference, e.g. http://www.wikidata.org/wiki/Q64."""

    raw: str
    numeric_id: int
    kind = FactKind.ITEM

    @classmethod
    def parse(cls, raw: str) -> "ItemFact":
        match = config.TRAILING_QID_PATTERN.search(raw or "")
        if not match:
            raise ValueError(f"No trailing item id in {raw!r}")
        return cls(raw=raw, numeric_id=int(match.group(1)))

    @property
    def target_qid(self) -> str:
        return f"Q{self.numeric_id}"

    def datavalue(self) -> dict[str, Any]:
        return {
            "value": {"entity-type": "item", "numeric-id": self.numeric_id},
            "type": "wikibase-entityid",
        }

    def mainsnak(self, property_id: str) -> dict[str, Any]:
        return {
            "snaktype": "value",
            "property": property_id,
            "datavalue": self.datavalue(),
            "datatype": "wikibase-item",
        }

    def value_sections(self, title: str) -> list[dict[str, Any]]:
        return [{"type": "html", "title": title}, {"type": "item", "q": self.target_qid}]


Fact = Union[DateFact, ItemFact]


def parse_fact(kind: FactKind, raw: str) -> Fact:
    if kind is FactKind.DATE:
        return DateFact(raw=raw.strip())
    if kind is FactKind.ITEM:
        return ItemFact.parse(raw.strip())
    raise ValueError(f"Unsupported fact kind {kind!r}")
