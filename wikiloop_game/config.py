import os
import re
from pathlib import Path


def _env(name, default):
    return os.environ.get(f"WIKILOOP_{name}", default)


def _env_int(name, default):
    raw = os.environ.get(f"WIKILOOP_{name}")
    if raw is None or not raw.strip():
        return default
    return int(raw)


# HTTP identity and base endpoints
HEADERS = {"User-Agent": _env("USER_AGENT", "WikiLoopGame/1.0 (https://github.com/google/wikiloop-wikidata-game)")}
API_ENDPOINT = _env("API_ENDPOINT", "https://www.wikidata.org/w/api.php")

# Claim verification knobs
API_TIMEOUT = _env_int("API_TIMEOUT", 10)  # Seconds per HTTP request
VERIFY_MAX_RETRIES = _env_int("VERIFY_MAX_RETRIES", 2)  # Extra attempts after the first
VERIFY_BACKOFF_SECONDS = 0.5  # Doubled on each retry

# Tile loop bounds
OVERFETCH_FACTOR = 5  # Candidate rows read per requested tile
MAX_TILES_PER_REQUEST = _env_int("MAX_TILES", 50)
MAX_FETCH_ROUNDS = _env_int("MAX_FETCH_ROUNDS", 10)
MAX_VERIFICATIONS_PER_REQUEST = _env_int("MAX_VERIFICATIONS", 100)

# Storage layout
DB_PATH = Path(_env("DB_PATH", "data/wikiloop_game.sqlite"))
GAME = _env("GAME", "date_of_death")
DATASET = _env("DATASET", "")  # Empty means the game's own dataset name
HISTORY_TABLE = "all_logging_history"
EPOCH_TABLE_SUFFIX = "_epoch"
LOG_TABLE_SUFFIX = "_logging"
TABLE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")

# Wikidata identifiers shared by every game
QID_EXACT_PATTERN = re.compile(r"^Q[1-9][0-9]*$")
TRAILING_QID_PATTERN = re.compile(r"Q([1-9][0-9]*)/?\s*$")
IMPORT_URL_PROPERTY = "P4656"  # Wikimedia import URL
GREGORIAN_CALENDAR = "http://www.wikidata.org/entity/Q1985727"
REFS_SEPARATOR = ", "

# HTTP surface
JSONP_CALLBACK_PATTERN = re.compile(r"^[A-Za-z_$][0-9A-Za-z_$.]*$")
HOST = _env("HOST", "0.0.0.0")
PORT = _env_int("PORT", 8080)
LOG_LEVEL = _env("LOG_LEVEL", "INFO")
