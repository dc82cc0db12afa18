import logging

from . import config
from .decisions import normalize_log_request
from .dedup import ServedSet
from .errors import CandidateQueryFailure, LoggingFailure, NoSnapshotAvailable, VerificationFailure
from .games import get_game
from .store import GameStore
from .tiles import build_tile
from .wikidata import ClaimVerifier

logger = logging.getLogger(__name__)

LOGGED_STATUS = "logging info"
INVALID_ACTION_STATUS = "No valid action!"
NO_SNAPSHOT_STATUS = "No snapshot available"


def parse_num(raw):
    """Clamp the requested batch size; unparseable values mean an empty batch."""
    try:
        num = int(raw)
    except (TypeError, ValueError):
        return 0
    return max(0, min(num, config.MAX_TILES_PER_REQUEST))


class TileService:
    """Serves tiles and records decisions for one game."""

    def __init__(self, game, store, verifier, served=None):
        self.game = game
        self.store = store
        self.verifier = verifier
        self.served = served if served is not None else ServedSet()

    def resolve_epoch(self):
        epoch = self.store.latest_epoch()
        self.served.rollover(epoch)
        return epoch

    def describe(self):
        epoch = self.resolve_epoch()
        return {
            "label": {"en": self.game.label},
            "description": {"en": self.game.description},
            "instructions": {"en": self.game.render_instructions(epoch)},
            "icon": self.game.icon,
        }

    def tiles(self, num, lang):
        """
        Return up to num tiles the process has never handed out before.

        Each candidate is claimed in the served set before it is verified, so a
        failed verification still consumes it for this process lifetime. The
        loop stops when num tiles are built, the snapshot is exhausted, or the
        per-request fetch/verification caps are reached.
        """
        epoch = self.resolve_epoch()
        out = []
        verifications = 0
        for _ in range(config.MAX_FETCH_ROUNDS):
            if len(out) >= num:
                break
            try:
                rows = self.store.fetch_candidates(epoch, num, lang, exclude=self.served.snapshot())
            except CandidateQueryFailure as exc:
                logger.error("[!] %s %s", exc, exc.details)
                break
            if not rows:
                break
            for row in rows:
                if len(out) >= num:
                    break
                if verifications >= config.MAX_VERIFICATIONS_PER_REQUEST:
                    logger.warning(
                        "[!] Verification budget of %s spent; returning %s/%s tiles.",
                        config.MAX_VERIFICATIONS_PER_REQUEST,
                        len(out),
                        num,
                    )
                    return out
                if not self.served.claim(row.qid):
                    continue
                verifications += 1
                try:
                    if self.verifier.has_existing_claim(row.qid, self.game.property_id):
                        continue
                except VerificationFailure as exc:
                    logger.warning("[!] Skipping %s: %s", row.qid, exc)
                    continue
                try:
                    out.append(build_tile(self.game, row))
                except ValueError as exc:
                    logger.warning("[!] Skipping malformed row %s: %s", row.qid, exc)
        else:
            if len(out) < num:
                logger.warning("[!] Fetch round limit reached with %s/%s tiles.", len(out), num)
        logger.info("[+] Served %s tiles (lang=%s, epoch=%s, verified=%s).", len(out), lang, epoch, verifications)
        return out

    def log_action(self, params):
        """Record a decision; the caller is acknowledged even when logging fails."""
        try:
            request = normalize_log_request(params)
            epoch = self.resolve_epoch()
            self.store.log_decision(epoch, request.user, request.qid, request.decision.value)
        except (LoggingFailure, NoSnapshotAvailable) as exc:
            logger.error("[!] Decision not logged: %s %s", exc, exc.details)
        else:
            logger.info("[+] Logged %s on %s by %s.", request.decision.value, request.qid, request.user)
        return {"status": LOGGED_STATUS}

    def handle(self, params):
        """Dispatch a query-string request to the matching action."""
        action = params.get("action")
        if action == "log_action":
            return self.log_action(params)
        if action not in ("desc", "tiles"):
            return {"status": INVALID_ACTION_STATUS}
        try:
            if action == "desc":
                return self.describe()
            return {"tiles": self.tiles(parse_num(params.get("num")), params.get("lang") or "")}
        except NoSnapshotAvailable as exc:
            logger.error("[!] %s", exc)
            out = {"status": NO_SNAPSHOT_STATUS}
            if action == "tiles":
                out["tiles"] = []
            return out


def create_service(game_key=None, db_path=None, dataset=None):
    """Build a TileService wired to the configured SQLite store and Wikidata API."""
    game = get_game(game_key)
    store = GameStore(db_path or config.DB_PATH, dataset or config.DATASET or game.dataset)
    return TileService(game, store, ClaimVerifier())
