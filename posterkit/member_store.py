"""
Persistent store for registered members.

Goals:
  - Keep member records (contact details, designation, photo reference)
  - Prevent duplicate registrations of the same email for the same designation
  - Look members up by designation for poster batches
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    func,
    select,
)
from sqlalchemy.engine import make_url
from sqlalchemy.exc import OperationalError

from config.settings import DATABASE_URL
from posterkit.members import Member, split_designations

logger = logging.getLogger(__name__)

_metadata = MetaData()
_engine = None
_database_url = None
_schema_initialized = False
_schema_lock = threading.Lock()

EDITABLE_FIELDS = ("name", "email", "phone", "designation", "photo_url")

members_table = Table(
    "members",
    _metadata,
    Column("id", String(64), primary_key=True),
    Column("name", Text, nullable=False),
    Column("email", String(320), nullable=False, index=True),
    Column("phone", String(64), nullable=False, server_default=""),
    Column("designation", String(255), nullable=False, server_default="", index=True),
    Column("photo_url", Text, nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=True),
)


class DuplicateMemberError(ValueError):
    pass


class MemberNotFoundError(LookupError):
    pass


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


def _row_to_dict(row) -> dict:
    data = dict(row)
    for key in ("created_at", "updated_at"):
        if data.get(key) is not None:
            data[key] = data[key].isoformat()
    return data


def configure(database_url: str | None = None) -> None:
    """Point the store at another database (tests, scripts). Resets the engine."""
    global _engine, _database_url, _schema_initialized
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _database_url = database_url
    _schema_initialized = False


def get_engine():
    global _engine
    if _engine is not None:
        return _engine

    db_url = (_database_url or DATABASE_URL or "").strip()
    if not db_url:
        raise RuntimeError("DATABASE_URL is empty")

    connect_args = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    _engine = create_engine(
        db_url,
        future=True,
        pool_pre_ping=True,
        connect_args=connect_args,
    )
    return _engine


def get_db_runtime_info() -> dict:
    """Return safe DB runtime information for logs/UI."""
    db_url = (_database_url or DATABASE_URL or "").strip()
    try:
        parsed = make_url(db_url)
        return {
            "dialect": parsed.get_backend_name() or "unknown",
            "database_url_masked": parsed.render_as_string(hide_password=True),
        }
    except Exception:
        return {"dialect": "unknown", "database_url_masked": ""}


def ensure_schema():
    global _schema_initialized
    if _schema_initialized:
        return

    with _schema_lock:
        if _schema_initialized:
            return
        try:
            _metadata.create_all(get_engine())
            _schema_initialized = True
        except OperationalError as e:
            # In concurrent startup races on SQLite, CREATE TABLE can collide.
            if "already exists" in str(e).lower():
                logger.debug("Member store schema already exists; continuing")
                _schema_initialized = True
                return
            raise


def _find_duplicate(conn, email: str, designation: str, exclude_id: str | None = None):
    query = select(members_table.c.id, members_table.c.designation).where(
        func.lower(members_table.c.email) == email.lower()
    )
    if exclude_id:
        query = query.where(members_table.c.id != exclude_id)
    wanted = {d.lower() for d in split_designations(designation)}
    for row in conn.execute(query).mappings():
        existing = {d.lower() for d in split_designations(row["designation"])}
        if wanted & existing or (not wanted and not existing):
            return row
    return None


def create_member(
    *,
    name: str,
    email: str,
    phone: str = "",
    designation: str = "",
    photo_url: str | None = None,
) -> dict:
    """Insert a member. Raises DuplicateMemberError for a repeated email+designation."""
    ensure_schema()
    member = Member.from_record(
        {"name": name, "email": email, "phone": phone, "designation": designation, "photo": photo_url}
    )
    values = dict(
        id=_new_id(),
        name=member.name,
        email=member.email,
        phone=member.phone,
        designation=member.designation,
        photo_url=member.photo,
        created_at=_utc_now(),
    )
    with get_engine().begin() as conn:
        dup = _find_duplicate(conn, member.email, member.designation)
        if dup:
            raise DuplicateMemberError(
                f"This email is already registered as a {dup['designation'] or 'member'}."
            )
        conn.execute(members_table.insert().values(**values))
    logger.info(f"Registered member {values['id']} ({member.designation or 'no designation'})")
    return get_member(values["id"])


def get_member(member_id: str) -> dict | None:
    ensure_schema()
    with get_engine().begin() as conn:
        row = conn.execute(
            select(members_table).where(members_table.c.id == str(member_id))
        ).mappings().first()
    return _row_to_dict(row) if row else None


def list_members(limit: int = 500) -> list[dict]:
    ensure_schema()
    safe_limit = max(1, min(int(limit or 500), 5000))
    with get_engine().begin() as conn:
        rows = conn.execute(
            select(members_table)
            .order_by(members_table.c.created_at.asc(), members_table.c.id.asc())
            .limit(safe_limit)
        ).mappings().all()
    return [_row_to_dict(r) for r in rows]


def update_member(member_id: str, changes: dict) -> dict:
    """Apply editable field changes. Raises MemberNotFoundError / DuplicateMemberError."""
    ensure_schema()
    current = get_member(member_id)
    if not current:
        raise MemberNotFoundError(f"Member {member_id} not found")

    values = {k: v for k, v in (changes or {}).items() if k in EDITABLE_FIELDS}
    merged = {**current, **values}
    member = Member.from_record({**merged, "photo": merged.get("photo_url")})
    values.update(
        name=member.name,
        email=member.email,
        phone=member.phone,
        designation=member.designation,
        updated_at=_utc_now(),
    )

    with get_engine().begin() as conn:
        dup = _find_duplicate(conn, member.email, member.designation, exclude_id=str(member_id))
        if dup:
            raise DuplicateMemberError(
                f"This email is already registered as a {dup['designation'] or 'member'}."
            )
        conn.execute(
            members_table.update().where(members_table.c.id == str(member_id)).values(**values)
        )
    return get_member(member_id)


def set_member_photo(member_id: str, photo_url: str | None) -> dict:
    ensure_schema()
    with get_engine().begin() as conn:
        result = conn.execute(
            members_table.update()
            .where(members_table.c.id == str(member_id))
            .values(photo_url=photo_url or None, updated_at=_utc_now())
        )
    if result.rowcount == 0:
        raise MemberNotFoundError(f"Member {member_id} not found")
    return get_member(member_id)


def delete_member(member_id: str) -> dict | None:
    """Delete a member and return the removed row (None when absent)."""
    ensure_schema()
    existing = get_member(member_id)
    if not existing:
        return None
    with get_engine().begin() as conn:
        conn.execute(members_table.delete().where(members_table.c.id == str(member_id)))
    logger.info(f"Deleted member {member_id}")
    return existing


def find_members_by_designation(designation: str) -> list[dict]:
    """Members whose comma-separated designation list contains ``designation`` (case-insensitive)."""
    wanted = str(designation or "").strip().lower()
    if not wanted:
        return []
    return [
        row for row in list_members(limit=5000)
        if wanted in {d.lower() for d in split_designations(row.get("designation"))}
    ]
