"""SQLiteStore — local file-based store, the default backend.

Schema:
  commit_analyses — one row per completed commit analysis.
  file_analyses   — one row per (commit_id, file_path); criteria and
                    suggestions are JSON columns so reads need no JOINs
                    beyond commit → files.

Commit dates are stored normalised to UTC so date-range queries can compare
ISO strings directly.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone

from commitlens_core.errors import PersistenceError
from commitlens_core.models import ChangeKind, CommitAnalysis, CriterionScore, FileAnalysis, Suggestion
from commitlens_store.base import BaseStore

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS commit_analyses (
    commit_id       TEXT PRIMARY KEY,
    author          TEXT,
    email           TEXT,
    committed_at    TEXT,
    message         TEXT,
    overall_score   REAL DEFAULT 0,
    analyzed_files  INTEGER DEFAULT 0,
    analyzed_at     TEXT
);
CREATE INDEX IF NOT EXISTS idx_commit_analyses_date ON commit_analyses (committed_at);

CREATE TABLE IF NOT EXISTS file_analyses (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    commit_id       TEXT NOT NULL,
    file_path       TEXT NOT NULL,
    change_kind     TEXT,
    language        TEXT,
    added_lines     INTEGER DEFAULT 0,
    removed_lines   INTEGER DEFAULT 0,
    overall_score   REAL DEFAULT 0,
    criteria_json   TEXT DEFAULT '{}',
    suggestions_json TEXT DEFAULT '[]',
    comment         TEXT,
    analyzed_at     TEXT,
    UNIQUE (commit_id, file_path)
);
CREATE INDEX IF NOT EXISTS idx_file_analyses_commit ON file_analyses (commit_id);
"""


def _to_utc(value) -> str:
    """ISO timestamp normalised to UTC; naive values are taken as UTC."""
    if isinstance(value, str):
        if not value:
            return ""
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


class SQLiteStore(BaseStore):
    """Stores analyses in a local SQLite database file.

    The database file path defaults to `.commitlens.db` in the current working
    directory. Configure via .commitlens.yml: `store_path: /path/to/commitlens.db`.
    """

    def __init__(self, db_path: str = ".commitlens.db"):
        self._lock = threading.Lock()
        try:
            self._conn = sqlite3.connect(db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.executescript(_SCHEMA)
            self._conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot open analysis database {db_path}: {e}") from e

    @contextmanager
    def _transaction(self):
        with self._lock:
            try:
                with self._conn:
                    yield self._conn
            except sqlite3.Error as e:
                raise PersistenceError(f"SQLite error: {e}") from e

    # ------------------------------------------------------------------ #
    # Writes                                                               #
    # ------------------------------------------------------------------ #

    def save_file_analysis(self, analysis: FileAnalysis) -> None:
        with self._transaction() as conn:
            self._insert_file(conn, analysis)

    def save_commit_analysis(self, analysis: CommitAnalysis) -> None:
        with self._transaction() as conn:
            for file_analysis in analysis.files:
                self._insert_file(conn, file_analysis)
            conn.execute(
                """
                INSERT OR REPLACE INTO commit_analyses
                  (commit_id, author, email, committed_at, message,
                   overall_score, analyzed_files, analyzed_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    analysis.commit_id,
                    analysis.author,
                    analysis.email,
                    _to_utc(analysis.committed_at),
                    analysis.message,
                    analysis.overall_score,
                    len(analysis.files),
                    analysis.analyzed_at,
                ),
            )
        logger.debug("Saved analysis for commit %s (%d files)", analysis.commit_id[:8], len(analysis.files))

    @staticmethod
    def _insert_file(conn: sqlite3.Connection, analysis: FileAnalysis) -> None:
        criteria_json = json.dumps(
            {name: {"score": c.score, "justification": c.justification} for name, c in analysis.criteria.items()}
        )
        suggestions_json = json.dumps(
            [
                {
                    "title": s.title,
                    "description": s.description,
                    "priority": s.priority,
                    "category": s.category,
                    "difficulty": s.difficulty,
                    "study_references": s.study_references,
                }
                for s in analysis.suggestions
            ]
        )
        conn.execute(
            """
            INSERT OR REPLACE INTO file_analyses
              (commit_id, file_path, change_kind, language, added_lines, removed_lines,
               overall_score, criteria_json, suggestions_json, comment, analyzed_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                analysis.commit_id,
                analysis.file_path,
                analysis.change_kind.value,
                analysis.language,
                analysis.added_lines,
                analysis.removed_lines,
                analysis.overall_score,
                criteria_json,
                suggestions_json,
                analysis.comment,
                analysis.analyzed_at,
            ),
        )

    # ------------------------------------------------------------------ #
    # Reads                                                                #
    # ------------------------------------------------------------------ #

    def has_analysis(self, commit_id: str, file_path: str | None = None) -> bool:
        with self._transaction() as conn:
            if file_path is None:
                row = conn.execute("SELECT 1 FROM commit_analyses WHERE commit_id=?", (commit_id,)).fetchone()
            else:
                row = conn.execute(
                    "SELECT 1 FROM file_analyses WHERE commit_id=? AND file_path=?",
                    (commit_id, file_path),
                ).fetchone()
        return row is not None

    def list_file_analyses(self, commit_id: str) -> list[FileAnalysis]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM file_analyses WHERE commit_id=? ORDER BY file_path",
                (commit_id,),
            ).fetchall()
        return [self._row_to_file(r) for r in rows]

    def get_commit_analysis(self, commit_id: str) -> CommitAnalysis | None:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM commit_analyses WHERE commit_id=?", (commit_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_commit(row, self.list_file_analyses(commit_id))

    def list_commit_analyses(self, since=None, until=None, author=None) -> list[CommitAnalysis]:
        clauses, params = [], []
        if since is not None:
            clauses.append("committed_at >= ?")
            params.append(_to_utc(since))
        if until is not None:
            clauses.append("committed_at <= ?")
            params.append(_to_utc(until))
        if author:
            clauses.append("(LOWER(author)=LOWER(?) OR LOWER(email)=LOWER(?))")
            params += [author, author]
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with self._transaction() as conn:
            rows = conn.execute(f"SELECT * FROM commit_analyses {where} ORDER BY committed_at", params).fetchall()
        return [self._row_to_commit(r, self.list_file_analyses(r["commit_id"])) for r in rows]

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    @staticmethod
    def _row_to_commit(row: sqlite3.Row, files: list[FileAnalysis]) -> CommitAnalysis:
        return CommitAnalysis(
            commit_id=row["commit_id"],
            author=row["author"] or "",
            email=row["email"] or "",
            committed_at=row["committed_at"] or "",
            message=row["message"] or "",
            files=files,
            analyzed_at=row["analyzed_at"] or "",
        )

    @staticmethod
    def _row_to_file(row: sqlite3.Row) -> FileAnalysis:
        criteria_data = json.loads(row["criteria_json"] or "{}")
        suggestions_data = json.loads(row["suggestions_json"] or "[]")
        return FileAnalysis(
            commit_id=row["commit_id"],
            file_path=row["file_path"],
            change_kind=ChangeKind(row["change_kind"] or ChangeKind.UNKNOWN.value),
            language=row["language"] or "Unknown",
            added_lines=row["added_lines"],
            removed_lines=row["removed_lines"],
            criteria={
                name: CriterionScore(score=c.get("score", 0), justification=c.get("justification", ""))
                for name, c in criteria_data.items()
            },
            suggestions=[
                Suggestion(
                    title=s.get("title", ""),
                    description=s.get("description", ""),
                    priority=s.get("priority", "medium"),
                    category=s.get("category", ""),
                    difficulty=s.get("difficulty", ""),
                    study_references=s.get("study_references", []),
                )
                for s in suggestions_data
            ],
            comment=row["comment"] or "",
            analyzed_at=row["analyzed_at"] or "",
        )
