"""Crowd Pick – SQLite storage layer (thread-safe)."""

import json
import logging
import os
import sqlite3
import threading
from contextlib import contextmanager

from errors import StorageUnavailable

logger = logging.getLogger(__name__)

# Range of a SQLite INTEGER (signed 64-bit)
SQLITE_INT_MIN = -(2 ** 63)
SQLITE_INT_MAX = 2 ** 63 - 1


class Database:
    def __init__(self, db_path):
        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        try:
            self.conn = sqlite3.connect(db_path, check_same_thread=False)
        except sqlite3.Error as exc:
            raise StorageUnavailable(f"Cannot open database {db_path}: {exc}") from exc
        self.conn.row_factory = sqlite3.Row
        self.lock = threading.Lock()
        self._create_tables()

    @contextmanager
    def _locked(self):
        """Serialize access to the connection; surface sqlite errors as retryable."""
        with self.lock:
            try:
                yield self.conn
            except sqlite3.Error as exc:
                logger.error("Database error: %s", exc)
                raise StorageUnavailable(str(exc)) from exc

    # ── Schema ───────────────────────────────────────────────────────────
    def _create_tables(self):
        with self._locked() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS characters (
                    id        INTEGER PRIMARY KEY AUTOINCREMENT,
                    name      TEXT NOT NULL,
                    franchise TEXT,
                    image_url TEXT
                );

                CREATE TABLE IF NOT EXISTS tags (
                    id   INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT UNIQUE NOT NULL
                );

                CREATE TABLE IF NOT EXISTS character_tags (
                    character_id INTEGER NOT NULL,
                    tag_id       INTEGER NOT NULL,
                    PRIMARY KEY (character_id, tag_id),
                    FOREIGN KEY (character_id) REFERENCES characters(id),
                    FOREIGN KEY (tag_id) REFERENCES tags(id)
                );

                -- Append-only event log; vote aggregates are always counted from here
                CREATE TABLE IF NOT EXISTS user_interactions (
                    id            INTEGER PRIMARY KEY AUTOINCREMENT,
                    character_id  INTEGER NOT NULL,
                    session_id    TEXT NOT NULL,
                    action_type   TEXT NOT NULL,
                    vote_type     INTEGER,
                    interacted_at TEXT DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now')),
                    FOREIGN KEY (character_id) REFERENCES characters(id)
                );

                CREATE INDEX IF NOT EXISTS idx_interactions_character
                    ON user_interactions (character_id);
                CREATE INDEX IF NOT EXISTS idx_interactions_session
                    ON user_interactions (session_id);
            """)
            conn.commit()

    # ── Characters ───────────────────────────────────────────────────────
    def add_character(self, name, franchise, image_url, tags=()):
        """Insert a character with its tags.  Returns the new id."""
        with self._locked() as conn:
            cur = conn.execute(
                "INSERT INTO characters (name, franchise, image_url) "
                "VALUES (?, ?, ?)",
                (name, franchise, image_url),
            )
            character_id = cur.lastrowid
            for tag in tags:
                tag = tag.strip()
                if not tag:
                    continue
                conn.execute("INSERT OR IGNORE INTO tags (name) VALUES (?)", (tag,))
                tag_id = conn.execute(
                    "SELECT id FROM tags WHERE name=?", (tag,)
                ).fetchone()["id"]
                conn.execute(
                    "INSERT OR IGNORE INTO character_tags (character_id, tag_id) "
                    "VALUES (?, ?)",
                    (character_id, tag_id),
                )
            conn.commit()
            return character_id

    def import_characters(self, path):
        """Load a JSON list of {name, franchise, image_url, tags} objects.

        Returns the number of characters added.
        """
        with open(path, encoding="utf-8") as fh:
            entries = json.load(fh)
        if not isinstance(entries, list):
            raise ValueError(f"{path}: expected a JSON list of characters")
        count = 0
        for entry in entries:
            self.add_character(
                entry["name"],
                entry.get("franchise", ""),
                entry.get("image_url", ""),
                entry.get("tags", []),
            )
            count += 1
        logger.info("Imported %d characters from %s", count, path)
        return count

    def get_character(self, character_id):
        with self._locked() as conn:
            row = conn.execute(
                "SELECT * FROM characters WHERE id=?", (character_id,)
            ).fetchone()
            return dict(row) if row else None

    def get_character_tags(self, character_id):
        with self._locked() as conn:
            rows = conn.execute(
                """SELECT t.name FROM tags t
                   JOIN character_tags ct ON t.id = ct.tag_id
                   WHERE ct.character_id = ?
                   ORDER BY t.name""",
                (character_id,),
            ).fetchall()
            return [r["name"] for r in rows]

    def fetch_one(self, sql, params=()):
        """Run a read-only query built elsewhere and return the first row."""
        with self._locked() as conn:
            row = conn.execute(sql, params).fetchone()
            return dict(row) if row else None

    def get_character_count(self):
        with self._locked() as conn:
            return conn.execute(
                "SELECT COUNT(*) AS cnt FROM characters"
            ).fetchone()["cnt"]

    # ── Tags ─────────────────────────────────────────────────────────────
    def get_all_tags(self):
        """Every tag name attached to at least one character."""
        with self._locked() as conn:
            rows = conn.execute(
                """SELECT DISTINCT t.name FROM tags t
                   JOIN character_tags ct ON t.id = ct.tag_id
                   ORDER BY t.name"""
            ).fetchall()
            return [r["name"] for r in rows]

    # ── Interactions ─────────────────────────────────────────────────────
    def insert_interaction(self, character_id, session_id, action_type, vote_type=None):
        with self._locked() as conn:
            cur = conn.execute(
                "INSERT INTO user_interactions "
                "(character_id, session_id, action_type, vote_type) "
                "VALUES (?, ?, ?, ?)",
                (character_id, session_id, action_type, vote_type),
            )
            conn.commit()
            return cur.lastrowid

    def get_vote_counts(self, character_id):
        """Vote events for a character grouped by value: [(vote_type, count), ...]."""
        with self._locked() as conn:
            rows = conn.execute(
                """SELECT vote_type, COUNT(*) AS cnt FROM user_interactions
                   WHERE character_id = ? AND action_type = 'vote'
                     AND vote_type IS NOT NULL
                   GROUP BY vote_type""",
                (character_id,),
            ).fetchall()
            return [(r["vote_type"], r["cnt"]) for r in rows]

    def get_interactions(self, session_id):
        with self._locked() as conn:
            rows = conn.execute(
                "SELECT * FROM user_interactions WHERE session_id = ? "
                "ORDER BY interacted_at DESC, id DESC",
                (session_id,),
            ).fetchall()
            return [dict(r) for r in rows]

    def close(self):
        self.conn.close()
