from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from . import config


class FactKind(str, Enum):
    DATE = "date"
    ITEM = "item"


@dataclass(frozen=True)
class GameDefinition:
    key: str
    dataset: str
    property_id: str
    fact_kind: FactKind
    value_title: str
    summary: str
    label: str
    description: str
    instructions: tuple[str, ...]
    icon: str

    def render_instructions(self, epoch: str) -> str:
        lines = [*self.instructions, f"*Data was last collected on {epoch}."]
        return "\n".join(lines)


_FEEDBACK_LINE = (
    "*Bug reports and feedback should be sent to "
    "[https://www.wikidata.org/wiki/User:Chaoyuel User:Chaoyuel] or "
    "[https://github.com/google/wikiloop-wikidata-game Github]."
)
_LANGUAGE_LINE = (
    "*Tiles with a source wikipedia link in your primary language (the first language in your "
    "user settings) are shown first, other tiles are displayed once those have all been marked."
)

DATE_OF_DEATH = GameDefinition(
    key="date_of_death",
    dataset="missing_date_of_death",
    property_id="P570",
    fact_kind=FactKind.DATE,
    value_title="Possible date of death:",
    summary="Distributed game missing date of death. Update P570.",
    label="Missing Date of Death",
    description="Import missing date of death from wikipedia to wikidata.",
    instructions=(
        '*Click "Accept" to add a date of death claim(P570) to the wikidata entity, '
        "meanwhile set the wikipedia pages as references.",
        '*Click "Reject" to refuse the suggestion.',
        "*If you're not sure, click \"I don't know\".",
        "*The suggested date of death comes from wikipedia articles. There might be errors due to "
        "outdated wikipedia page snapshots, parsing errors or wrong wikipedia info. "
        "Be sure to check the data before you make a choice!",
        _LANGUAGE_LINE,
        _FEEDBACK_LINE,
    ),
    icon="https://upload.wikimedia.org/wikipedia/commons/5/56/AngelHeart.png",
)

PLACE_OF_BIRTH = GameDefinition(
    key="place_of_birth",
    dataset="missing_place_of_birth",
    property_id="P19",
    fact_kind=FactKind.ITEM,
    value_title="Was this person born here:",
    summary="Distributed game missing place of birth. Update P19.",
    label="Born where",
    description="Import missing place of birth from wikipedia to wikidata.",
    instructions=(
        '*Click "Accept" to add a [https://www.wikidata.org/wiki/Property:P19 place of birth(P19)] '
        "claim to the wikidata entity, meanwhile add the source wikipedia links to "
        "[https://www.wikidata.org/wiki/Property:P4656 Wikimedia import URL] in the claim reference part.",
        '*Click "Reject" if the place of birth suggestion appears to be wrong.',
        "*If you are not sure of what to do, click \"I don't know\".",
        "*Be sure to verify the suggested birth place using the links presented.",
        _LANGUAGE_LINE,
        _FEEDBACK_LINE,
    ),
    icon="https://upload.wikimedia.org/wikipedia/commons/thumb/3/37/BlankMap-World-820.png/320px-BlankMap-World-820.png",
)

GAMES = {game.key: game for game in (DATE_OF_DEATH, PLACE_OF_BIRTH)}


def get_game(key=None):
    """Return the game registered under key (defaults to the configured game)."""
    key = key or config.GAME
    try:
        return GAMES[key]
    except KeyError:
        raise ValueError(f"Unknown game {key!r}; expected one of {sorted(GAMES)}") from None
