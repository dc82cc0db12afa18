import json
import logging
import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from . import config
from .errors import CandidateQueryFailure, LoggingFailure, NoSnapshotAvailable

logger = logging.getLogger(__name__)


def _utc_now_sql():
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _table_name(name):
    if not config.TABLE_NAME_PATTERN.fullmatch(name or ""):
        raise ValueError(f"Refusing unsafe table name {name!r}")
    return f'"{name}"'


@dataclass(frozen=True)
class CandidateRow:
    """One proposed fact from a snapshot table."""

    qid: str
    missing_value: str
    refs: tuple[str, ...]
    languages: str

    @classmethod
    def from_db(cls, row):
        qid, missing_value, raw_refs, languages = row
        # Untyped snapshot columns may hand back integers (e.g. a bare year).
        refs = tuple(url.strip() for url in str(raw_refs or "").split(config.REFS_SEPARATOR) if url.strip())
        return cls(
            qid=str(qid),
            missing_value="" if missing_value is None else str(missing_value),
            refs=refs,
            languages=str(languages or ""),
        )


class GameStore:
    """SQLite-backed snapshot reader and decision log for one dataset."""

    def __init__(self, db_path, dataset):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.dataset = dataset
        _table_name(self.epoch_table)
        self._local = threading.local()
        self._init_lock = threading.Lock()
        self._log_tables_ready = set()

    @property
    def epoch_table(self):
        return f"{self.dataset}{config.EPOCH_TABLE_SUFFIX}"

    def candidate_table(self, epoch):
        return f"{self.dataset}_{epoch}"

    def log_table(self, epoch):
        return f"{self.candidate_table(epoch)}{config.LOG_TABLE_SUFFIX}"

    def _get_conn(self):
        conn = getattr(self._local, "conn", None)
        if conn is None:
            conn = sqlite3.connect(self.db_path)
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
            conn.execute("PRAGMA busy_timeout=5000")
            self._local.conn = conn
        return conn

    def _ensure_log_tables(self, conn, epoch):
        if epoch in self._log_tables_ready:
            return
        with self._init_lock:
            if epoch in self._log_tables_ready:
                return
            for name in (self.log_table(epoch), config.HISTORY_TABLE):
                conn.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {_table_name(name)} (
                        "user" TEXT NOT NULL,
                        qNumber TEXT NOT NULL,
                        decision TEXT NOT NULL,
                        changetime TEXT NOT NULL,
                        PRIMARY KEY ("user", qNumber)
                    )
                    """
                )
            conn.commit()
            self._log_tables_ready.add(epoch)

    def latest_epoch(self):
        """Return the newest snapshot identifier; longer ids sort after shorter ones."""
        conn = self._get_conn()
        try:
            row = conn.execute(
                f"SELECT epoch FROM {_table_name(self.epoch_table)} ORDER BY length(epoch) DESC, epoch DESC LIMIT 1"
            ).fetchone()
        except sqlite3.Error as exc:
            raise NoSnapshotAvailable(
                f"Cannot read snapshot metadata from {self.epoch_table}", {"error": str(exc)}
            ) from exc
        if row is None or row[0] is None:
            raise NoSnapshotAvailable(f"No snapshot recorded in {self.epoch_table}")
        return str(row[0])

    def fetch_candidates(self, epoch, limit, lang, exclude=()):
        """
        Return up to limit * OVERFETCH_FACTOR unreviewed rows of the snapshot.

        Rows whose languages contain lang are preferred; only when that pool is
        empty are rows from the other languages returned. Rows already logged for
        this snapshot and ids in exclude are never returned.
        """
        if limit <= 0:
            return []
        cap = limit * config.OVERFETCH_FACTOR
        lang = (lang or "").strip().lower()
        excluded = json.dumps(sorted(exclude))
        try:
            conn = self._get_conn()
            self._ensure_log_tables(conn, epoch)
            base = (
                f"SELECT qNumber, missingValue, refs, languages FROM {_table_name(self.candidate_table(epoch))} "
                f"WHERE qNumber NOT IN (SELECT qNumber FROM {_table_name(self.log_table(epoch))}) "
                "AND qNumber NOT IN (SELECT value FROM json_each(?)) "
            )
            rows = []
            if lang:
                rows = conn.execute(
                    base + "AND instr(lower(COALESCE(languages, '')), ?) > 0 LIMIT ?",
                    (excluded, lang, cap),
                ).fetchall()
                if not rows:
                    logger.debug("[*] No unreviewed %r rows in %s; trying other languages.", lang, epoch)
                    rows = conn.execute(
                        base + "AND instr(lower(COALESCE(languages, '')), ?) = 0 LIMIT ?",
                        (excluded, lang, cap),
                    ).fetchall()
            else:
                rows = conn.execute(base + "LIMIT ?", (excluded, cap)).fetchall()
        except (sqlite3.Error, ValueError) as exc:
            raise CandidateQueryFailure(
                f"Candidate query failed for epoch {epoch}", {"error": str(exc)}
            ) from exc
        return [CandidateRow.from_db(row) for row in rows]

    def log_decision(self, epoch, user, qid, decision, changed_at=None):
        """
        Upsert the decision into the snapshot log and the global history.

        Both writes share one transaction; a repeat decision for the same
        (user, qid) replaces decision and changetime in place.
        """
        now = changed_at or _utc_now_sql()
        payload = (user, qid, decision, now)
        try:
            conn = self._get_conn()
            self._ensure_log_tables(conn, epoch)
            conn.execute("BEGIN")
            try:
                for name in (self.log_table(epoch), config.HISTORY_TABLE):
                    conn.execute(
                        f"""
                        INSERT INTO {_table_name(name)} ("user", qNumber, decision, changetime)
                        VALUES (?, ?, ?, ?)
                        ON CONFLICT("user", qNumber) DO UPDATE SET
                            decision=excluded.decision,
                            changetime=excluded.changetime
                        """,
                        payload,
                    )
                conn.commit()
            except sqlite3.Error:
                conn.rollback()
                raise
        except (sqlite3.Error, ValueError) as exc:
            raise LoggingFailure(
                f"Could not log decision for {qid}", {"user": user, "decision": decision, "error": str(exc)}
            ) from exc

    def close(self):
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            conn.close()
            del self._local.conn
