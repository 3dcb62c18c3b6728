"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper (same as cvs/store.py).
UserStore is the repository; _row_to_user is the mapper.
Route and gateway code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(email) is enforced by the database. The gateway's "does this email
  exist?" lookup before insert is only a fast path for a friendly error --
  two concurrent registrations can both pass it. create_user() surfaces the
  constraint violation as IntegrityError and that is the authoritative
  signal [R1].

  Emails are normalised (stripped, lower-cased) on every write and lookup so
  the UNIQUE index also covers case variants.

Layer rule: no imports from api/ or cvs/.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import User
from core.config import get_settings

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("contact_number", String(50)),
    Column("google_id", Text),  # Google subject id, NULL for password accounts
    Column("avatar", Text),
    Column("created_at", String(32), nullable=False),
)

# Every column except the password hash -- used when loading a request principal.
_PUBLIC_COLUMNS = [c for c in _users.c if c.name != "hashed_password"]

# SQLite: "UNIQUE constraint failed: users.email"
# PostgreSQL: 'duplicate key value ... DETAIL:  Key (email)=(...) already exists.'
_UNIQUE_FIELD_PATTERNS = (
    re.compile(r"UNIQUE constraint failed: \w+\.(\w+)"),
    re.compile(r"Key \((\w+)\)="),
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
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def unique_violation_field(exc: IntegrityError, default: str = "email") -> str:
    """Return the column named in a UNIQUE violation, or `default` if unparseable."""
    message = str(exc.orig) if exc.orig is not None else str(exc)
    for pattern in _UNIQUE_FIELD_PATTERNS:
        match = pattern.search(message)
        if match:
            return match.group(1)
    return default


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore()
        user_id = store.create_user(User(username="ann", email="ann@x.com", hashed_password=hash_password("...")))
        user = store.get_by_email("Ann@X.com")
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # FastAPI runs sync handlers in a thread pool, so one pooled
            # connection may be used from several threads.
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # User queries
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        Callers must treat that as the authoritative duplicate signal [R1].
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    username=user.username,
                    email=normalize_email(user.email),
                    hashed_password=user.hashed_password,
                    contact_number=user.contact_number,
                    google_id=user.google_id,
                    avatar=user.avatar,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by email (case-insensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == normalize_email(email))).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int, with_password: bool = True) -> User | None:
        """Look up a user by primary key. Returns None if not found.

        with_password=False leaves the hash column out of the SELECT, so the
        returned User has hashed_password=None. The access middleware uses
        this for request principals.
        """
        columns = list(_users.c) if with_password else _PUBLIC_COLUMNS
        with self.engine.connect() as conn:
            row = conn.execute(select(*columns).where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            conn.execute(select(1))
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    # hashed_password is absent on principal rows selected without it.
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        hashed_password=getattr(row, "hashed_password", None),
        contact_number=row.contact_number,
        google_id=row.google_id,
        avatar=row.avatar,
        created_at=row.created_at,
    )
