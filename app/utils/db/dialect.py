"""Dialect-aware helpers for conflict-resolving inserts."""

from __future__ import annotations

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session


def get_dialect_name(db: Session, default: str = "postgresql") -> str:
    bind = db.get_bind()
    if bind is None:
        return default
    return bind.dialect.name


def upsert_insert(db: Session, model):
    """
    Return an INSERT construct that supports on_conflict_do_update/do_nothing.

    Both the PostgreSQL and SQLite constructs expose the same ON CONFLICT API.
    """
    dialect = get_dialect_name(db)
    if dialect == "postgresql":
        return pg_insert(model)
    if dialect == "sqlite":
        return sqlite_insert(model)
    raise NotImplementedError(f"Upsert is not supported for dialect {dialect!r}")
