"""
auth/store.py -- Credential persistence.

Pattern: Repository + Data Mapper.
UserStore is the SQLAlchemy Core repository; _row_to_user is the mapper.
InMemoryUserStore satisfies the same UserRepository protocol without a
database and is what the unit tests build services on.
Route and service code never touches SQL directly.

Uniqueness:
  UNIQUE(username) is enforced by the database. register() inserts directly
  and translates IntegrityError into DuplicateUsername, so two concurrent
  registrations for one username can never both succeed -- there is no
  check-then-insert window.

Failures:
  Any other database error becomes StorageUnavailable and propagates to the
  caller immediately. Nothing here retries.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Only password hashes are stored; plaintext never reaches this module.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, IntegrityError

from auth.errors import DuplicateUsername, StorageUnavailable, UserNotFound
from auth.models import User

logger = logging.getLogger("authshim.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
    )


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class UserRepository(Protocol):
    """What AuthService needs from a credential store."""

    def register(self, username: str, password_hash: str) -> User: ...

    def find_by_username(self, username: str) -> User: ...

    def ping(self) -> bool: ...

    def close(self) -> None: ...


# ---------------------------------------------------------------------------
# SQLAlchemy repository
# ---------------------------------------------------------------------------


class UserStore:
    """SQL-backed credential store.

    Usage:
        store = UserStore("sqlite:///auth.db")
        user = store.register("alice", hasher.hash("s3cret"))
        store.find_by_username("alice")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        try:
            _metadata.create_all(self.engine)
        except DBAPIError as exc:
            raise StorageUnavailable() from exc

    def register(self, username: str, password_hash: str) -> User:
        """Insert a new credential record and return it with its assigned id.

        Raises DuplicateUsername if the username is taken, StorageUnavailable
        on any other database failure.
        """
        created_at = _now_iso()
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        username=username,
                        hashed_password=password_hash,
                        created_at=created_at,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            raise DuplicateUsername() from exc
        except DBAPIError as exc:
            logger.error("register failed: %s", exc.__class__.__name__)
            raise StorageUnavailable() from exc
        return User(
            id=result.inserted_primary_key[0],
            username=username,
            hashed_password=password_hash,
            created_at=created_at,
        )

    def find_by_username(self, username: str) -> User:
        """Look up a user by exact username (case-sensitive). Raises UserNotFound."""
        try:
            with self.engine.connect() as conn:
                row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        except DBAPIError as exc:
            logger.error("lookup failed: %s", exc.__class__.__name__)
            raise StorageUnavailable() from exc
        if row is None:
            raise UserNotFound()
        return _row_to_user(row)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except DBAPIError:
            return False

    def close(self) -> None:
        """Dispose the engine connection pool."""
        self.engine.dispose()


# ---------------------------------------------------------------------------
# In-memory repository
# ---------------------------------------------------------------------------


class InMemoryUserStore:
    """Dict-backed credential store for tests and throwaway runs.

    The lock makes the existence check and the insert one atomic step, which
    is the in-memory equivalent of the UNIQUE constraint above.
    """

    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def register(self, username: str, password_hash: str) -> User:
        with self._lock:
            if username in self._users:
                raise DuplicateUsername()
            user = User(
                id=self._next_id,
                username=username,
                hashed_password=password_hash,
                created_at=_now_iso(),
            )
            self._users[username] = user
            self._next_id += 1
        return user

    def find_by_username(self, username: str) -> User:
        with self._lock:
            user = self._users.get(username)
        if user is None:
            raise UserNotFound()
        return user

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        pass
