"""
cvs/store.py -- SQLAlchemy-backed persistence layer for CV documents.

Uses SQLAlchemy Core (not ORM) so the domain dataclasses in cvs/models.py
remain the authoritative domain representation. Swapping SQLite for
PostgreSQL is a connection string change, not a rewrite.

Pattern: Repository + Data Mapper. CVStore is the repository; _row_to_cv is
the mapper. Nested sections (basic details, education, experience, projects,
skills, social profiles) are stored as JSON text columns and rebuilt into
dataclasses on read.

The store does not check ownership. Callers go through cvs/access.py, which
loads a CV and compares its user_id to the acting principal before any
read, update or delete.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = CVStore("postgresql://user:pw@host/db")
    cv_id = store.create_cv(cv)
    store.update_cv(cv_id, is_public=True)
    cvs = store.list_for_user(user_id)
    store.close()
"""

import json
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Index, Integer, MetaData, String, Table, Text, create_engine, event, select
from sqlalchemy.engine import Engine

from core.config import get_settings
from cvs.models import CV, BasicDetails, Education, Experience, Project, SocialProfile, Skill

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_cvs = Table(
    "cvs",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False),
    Column("layout", String(20), nullable=False, server_default="professional"),
    Column("basic_details", Text, nullable=False),  # JSON object
    Column("education", Text, nullable=False),  # JSON array
    Column("experience", Text, nullable=False),  # JSON array
    Column("projects", Text, nullable=False),  # JSON array
    Column("skills", Text, nullable=False),  # JSON array
    Column("social_profiles", Text, nullable=False),  # JSON array
    Column("is_public", Integer, nullable=False, server_default="0"),  # boolean stored as 0/1
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Index("idx_cvs_user_updated", "user_id", "updated_at"),
)

# Section columns and the dataclass each JSON element is rebuilt into.
_SECTIONS = {
    "education": Education,
    "experience": Experience,
    "projects": Project,
    "skills": Skill,
    "social_profiles": SocialProfile,
}

# Fields update_cv() accepts. user_id is deliberately absent: ownership is
# fixed at creation.
_UPDATABLE = {"layout", "basic_details", "is_public", *_SECTIONS}

# Largest value a signed 64-bit INTEGER column can hold. Ids outside
# 1.._MAX_ID cannot name a row, and SQLite refuses to bind them.
_MAX_ID = 2**63 - 1


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _valid_id(cv_id: int) -> bool:
    return 0 < cv_id <= _MAX_ID


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _dump_section(items: list) -> str:
    return json.dumps([asdict(item) for item in items])


def _serialize(field_name: str, value):
    """Convert one domain field into its column value."""
    if field_name == "basic_details":
        return json.dumps(asdict(value))
    if field_name in _SECTIONS:
        return _dump_section(value)
    if field_name == "is_public":
        return 1 if value else 0
    return value


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety (per connection)."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CVStore:
    def __init__(self, db_url: Optional[str] = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # FastAPI runs sync handlers in a thread pool; connections may
            # be shared across those threads.
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    def create_cv(self, cv: CV) -> int:
        """Insert a new CV and return its assigned database ID.

        created_at and updated_at are both stamped with the insert time.
        """
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _cvs.insert().values(
                    user_id=cv.user_id,
                    layout=cv.layout,
                    basic_details=_serialize("basic_details", cv.basic_details),
                    education=_dump_section(cv.education),
                    experience=_dump_section(cv.experience),
                    projects=_dump_section(cv.projects),
                    skills=_dump_section(cv.skills),
                    social_profiles=_dump_section(cv.social_profiles),
                    is_public=1 if cv.is_public else 0,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_cv(self, cv_id: int) -> Optional[CV]:
        """Fetch a single CV by ID. Returns None if not found."""
        if not _valid_id(cv_id):
            return None
        with self.engine.connect() as conn:
            row = conn.execute(_cvs.select().where(_cvs.c.id == cv_id)).fetchone()
        return _row_to_cv(row) if row is not None else None

    def list_for_user(self, user_id: int) -> list[CV]:
        """Return every CV owned by user_id, most recently updated first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _cvs.select().where(_cvs.c.user_id == user_id).order_by(_cvs.c.updated_at.desc(), _cvs.c.id.desc())
            ).fetchall()
        return [_row_to_cv(r) for r in rows]

    def update_cv(self, cv_id: int, **fields) -> bool:
        """Replace top-level fields on an existing CV and advance updated_at.

        Accepts any subset of: layout, basic_details, education, experience,
        projects, skills, social_profiles, is_public -- as domain values
        (dataclasses / lists of dataclasses). Unknown keys, including
        user_id, raise ValueError rather than being silently ignored.

        Returns True if a row was updated, False if cv_id was not found.
        """
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Unknown CV fields: {unknown!r}")
        if not _valid_id(cv_id):
            return False
        values = {name: _serialize(name, value) for name, value in fields.items()}
        values["updated_at"] = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(_cvs.update().where(_cvs.c.id == cv_id).values(**values))
            conn.commit()
        return result.rowcount > 0

    def delete_cv(self, cv_id: int) -> bool:
        """Permanently delete a CV. Returns True if deleted, False if not found."""
        if not _valid_id(cv_id):
            return False
        with self.engine.connect() as conn:
            result = conn.execute(_cvs.delete().where(_cvs.c.id == cv_id))
            conn.commit()
        return result.rowcount > 0

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(select(1))
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern -- DB row -> domain dataclass)
# ---------------------------------------------------------------------------


def _load_section(raw: Optional[str], cls) -> list:
    return [cls(**item) for item in json.loads(raw)] if raw else []


def _row_to_cv(row) -> CV:
    return CV(
        id=row.id,
        user_id=row.user_id,
        layout=row.layout,
        basic_details=BasicDetails(**json.loads(row.basic_details)),
        education=_load_section(row.education, Education),
        experience=_load_section(row.experience, Experience),
        projects=_load_section(row.projects, Project),
        skills=_load_section(row.skills, Skill),
        social_profiles=_load_section(row.social_profiles, SocialProfile),
        is_public=bool(row.is_public),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
