from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from sat_vocab.models import DrillOutcome, ReadingSnapshot

SCHEMA = """
CREATE TABLE IF NOT EXISTS reading_snapshots (
    user_id TEXT PRIMARY KEY,
    passage TEXT NOT NULL,
    marked_words_json TEXT NOT NULL DEFAULT '[]',
    definition_cache_json TEXT NOT NULL DEFAULT '{}',
    saved_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS drill_outcomes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    drill_id TEXT NOT NULL,
    word TEXT NOT NULL,
    outcome TEXT NOT NULL,
    recorded_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_drill_outcomes_user_word
    ON drill_outcomes (user_id, word);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Database:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self._init_schema()

    def _init_schema(self) -> None:
        self.conn.executescript(SCHEMA)
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()

    # ── Reading snapshots ─────────────────────────────────────────────────

    def save_snapshot(self, user_id: str, snapshot: ReadingSnapshot) -> None:
        """Store the (passage, marked words, definition cache) triple for *user_id*."""
        self.conn.execute(
            """INSERT INTO reading_snapshots
               (user_id, passage, marked_words_json, definition_cache_json, saved_at)
               VALUES (?, ?, ?, ?, ?)
               ON CONFLICT(user_id) DO UPDATE SET
                 passage = excluded.passage,
                 marked_words_json = excluded.marked_words_json,
                 definition_cache_json = excluded.definition_cache_json,
                 saved_at = excluded.saved_at""",
            (
                user_id,
                snapshot.passage,
                json.dumps(snapshot.marked_words),
                json.dumps(snapshot.definition_cache, ensure_ascii=False),
                _now(),
            ),
        )
        self.conn.commit()

    def load_snapshot(self, user_id: str) -> ReadingSnapshot | None:
        row = self.conn.execute(
            "SELECT * FROM reading_snapshots WHERE user_id = ?", (user_id,)
        ).fetchone()
        if row is None:
            return None
        return ReadingSnapshot(
            passage=row["passage"],
            marked_words=json.loads(row["marked_words_json"]),
            definition_cache=json.loads(row["definition_cache_json"]),
        )

    def delete_snapshot(self, user_id: str) -> bool:
        cur = self.conn.execute(
            "DELETE FROM reading_snapshots WHERE user_id = ?", (user_id,)
        )
        self.conn.commit()
        return cur.rowcount > 0

    # ── Drill outcomes ────────────────────────────────────────────────────

    def record_drill_outcomes(
        self, user_id: str, drill_id: str, outcomes: dict[str, DrillOutcome]
    ) -> int:
        now = _now()
        self.conn.executemany(
            """INSERT INTO drill_outcomes (user_id, drill_id, word, outcome, recorded_at)
               VALUES (?, ?, ?, ?, ?)""",
            [(user_id, drill_id, w, DrillOutcome(o).value, now) for w, o in outcomes.items()],
        )
        self.conn.commit()
        return len(outcomes)

    def get_outcome_counts(self, user_id: str) -> list[dict]:
        """Per-word known/unknown tallies, most often unknown first."""
        rows = self.conn.execute(
            """SELECT word,
                      SUM(CASE WHEN outcome = 'known' THEN 1 ELSE 0 END) AS known,
                      SUM(CASE WHEN outcome = 'unknown' THEN 1 ELSE 0 END) AS unknown
               FROM drill_outcomes
               WHERE user_id = ?
               GROUP BY word
               ORDER BY unknown DESC, word""",
            (user_id,),
        ).fetchall()
        return [dict(r) for r in rows]
