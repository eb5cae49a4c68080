"""Per-team credential storage.

Holds the Slack tokens used to post unfurls (one per authorizing user) and the
Rollbar read tokens registered per project. All mutations run inside a single
BEGIN IMMEDIATE transaction under a process-wide lock, so a team and its token
either land together or not at all.
"""

import sqlite3
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional

from ..errors import NoUsers, NotRegistered, StorageError
from ..log import get_logger
from .db import connect, init_db

logger = get_logger("store")


class CredentialStore:
    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    def open(self) -> "CredentialStore":
        try:
            self._conn = connect(self.db_path)
            init_db(self._conn)
        except sqlite3.Error as e:
            raise StorageError(f"Could not open {self.db_path}: {e}") from e
        logger.info(f"Credential store opened at {self.db_path}")
        return self

    def close(self):
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Serialized read-write transaction; rolls back on any error."""
        with self._lock:
            conn = self._connection()
            try:
                conn.execute("BEGIN IMMEDIATE")
                yield conn
                conn.execute("COMMIT")
            except sqlite3.Error as e:
                self._rollback(conn)
                raise StorageError(str(e)) from e
            except BaseException:
                self._rollback(conn)
                raise

    @contextmanager
    def _read(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            conn = self._connection()
            try:
                yield conn
            except sqlite3.Error as e:
                raise StorageError(str(e)) from e

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("Credential store is not open")
        return self._conn

    @staticmethod
    def _rollback(conn: sqlite3.Connection):
        if conn.in_transaction:
            conn.execute("ROLLBACK")

    @staticmethod
    def _team_exists(conn: sqlite3.Connection, team_id: str) -> bool:
        row = conn.execute("SELECT 1 FROM teams WHERE team_id = ?", (team_id,)).fetchone()
        return row is not None

    @staticmethod
    def _insert_team(conn: sqlite3.Connection, team_id: str):
        # INSERT OR IGNORE makes creation idempotent: losing a creation race is a no-op.
        conn.execute("INSERT OR IGNORE INTO teams (team_id) VALUES (?)", (team_id,))

    def ensure_team(self, team_id: str):
        with self._transaction() as conn:
            self._insert_team(conn, team_id)

    def team_exists(self, team_id: str) -> bool:
        with self._read() as conn:
            return self._team_exists(conn, team_id)

    def save_user_token(self, team_id: str, user_id: str, token: str):
        """Upsert a Slack post-back token. Raises StorageError if the write fails."""
        with self._transaction() as conn:
            self._insert_team(conn, team_id)
            conn.execute(
                """
                INSERT INTO users (team_id, user_id, token) VALUES (?, ?, ?)
                ON CONFLICT(team_id, user_id)
                DO UPDATE SET token = excluded.token, updated_at = CURRENT_TIMESTAMP
                """,
                (team_id, user_id, token)
            )

    def first_user_token(self, team_id: str) -> str:
        """
        Token of the lexicographically first user of the team.
        Raises NotRegistered or NoUsers.
        """
        with self._read() as conn:
            if not self._team_exists(conn, team_id):
                raise NotRegistered(team_id)
            row = conn.execute(
                "SELECT token FROM users WHERE team_id = ? ORDER BY user_id ASC LIMIT 1",
                (team_id,)
            ).fetchone()
            if row is None:
                raise NoUsers(team_id)
            return row["token"]

    def get_auth_token(self, team_id: str) -> str:
        """Post-back token for the team, or "" when none can be resolved."""
        try:
            return self.first_user_token(team_id)
        except (NotRegistered, NoUsers, StorageError) as e:
            logger.warning(f"get_auth_token: {e}")
            return ""

    def save_project_token(self, team_id: str, project: str, token: str):
        with self._transaction() as conn:
            self._insert_team(conn, team_id)
            conn.execute(
                """
                INSERT INTO projects (team_id, project, token) VALUES (?, ?, ?)
                ON CONFLICT(team_id, project)
                DO UPDATE SET token = excluded.token, updated_at = CURRENT_TIMESTAMP
                """,
                (team_id, project, token)
            )

    def get_project_token(self, team_id: str, project: str) -> str:
        """Read token for the project, or "" if the team or project is unknown."""
        try:
            with self._read() as conn:
                row = conn.execute(
                    "SELECT token FROM projects WHERE team_id = ? AND project = ?",
                    (team_id, project)
                ).fetchone()
        except StorageError as e:
            logger.error(f"get_project_token: {e}")
            return ""
        return row["token"] if row else ""

    def list_projects(self, team_id: str) -> List[str]:
        with self._read() as conn:
            rows = conn.execute(
                "SELECT project FROM projects WHERE team_id = ? ORDER BY project ASC",
                (team_id,)
            ).fetchall()
            return [row["project"] for row in rows]

    def delete_user_token(self, team_id: str, user_id: str):
        with self._transaction() as conn:
            conn.execute(
                "DELETE FROM users WHERE team_id = ? AND user_id = ?",
                (team_id, user_id)
            )

    def delete_project_token(self, team_id: str, project: str):
        with self._transaction() as conn:
            conn.execute(
                "DELETE FROM projects WHERE team_id = ? AND project = ?",
                (team_id, project)
            )

    def delete_team(self, team_id: str):
        """Remove the team and everything under it. Absent teams are a no-op."""
        with self._transaction() as conn:
            conn.execute("DELETE FROM users WHERE team_id = ?", (team_id,))
            conn.execute("DELETE FROM projects WHERE team_id = ?", (team_id,))
            conn.execute("DELETE FROM teams WHERE team_id = ?", (team_id,))
