"""Key/value storage gateway over the logical tables.

Every call opens its own session, so callers may fan operations out with
``asyncio.gather``. Writes are per-key upserts (last write wins); there are
no cross-key transactions.
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from sqlalchemy import delete as sa_delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from club_events.models import (
    EventRow,
    InvitationRow,
    RSVPRow,
    UserRow,
    StudentRow,
    LegacyCalendarRow,
)

logger = logging.getLogger(__name__)

TABLES = {
    "events": EventRow,
    "invitations": InvitationRow,
    "rsvps": RSVPRow,
    "users": UserRow,
    "students": StudentRow,
    "calendar": LegacyCalendarRow,
}

_MISSING_TABLE_MARKERS = ("no such table", "does not exist", "undefinedtable")


class StorageError(Exception):
    """A storage call failed."""


class TableNotFoundError(StorageError):
    """The underlying table has not been created (e.g. not migrated yet)."""

    def __init__(self, table: str):
        super().__init__(f"Table '{table}' does not exist")
        self.table = table


class StorageGateway:
    """get / put / delete / scan against named tables, addressed by key dicts."""

    def __init__(self, engine: AsyncEngine, sessionmaker: async_sessionmaker):
        self._engine = engine
        self._sessionmaker = sessionmaker

    async def get(self, table: str, key: dict[str, Any]) -> Optional[dict[str, Any]]:
        """Fetch one item by its full key, or None."""
        model = _model(table)
        async with self._guard(table) as session:
            row = await session.get(model, _identity(model, key))
            return _to_item(model, row) if row is not None else None

    async def put(self, table: str, item: dict[str, Any]) -> dict[str, Any]:
        """Create the item or overwrite the existing item with the same key."""
        model = _model(table)
        columns = _column_names(model)
        values = {k: v for k, v in item.items() if k in columns}
        async with self._guard(table) as session:
            await session.execute(self._upsert(model, values))
            await session.commit()
        return values

    async def delete(self, table: str, key: dict[str, Any]) -> bool:
        """Delete by full key. Returns False when nothing matched."""
        model = _model(table)
        identity = _identity(model, key)
        stmt = sa_delete(model).where(
            *[getattr(model, name) == value for name, value in identity.items()]
        )
        async with self._guard(table) as session:
            result = await session.execute(stmt)
            await session.commit()
            return (result.rowcount or 0) > 0

    async def scan(self, table: str, **filters: Any) -> list[dict[str, Any]]:
        """Return every item, optionally filtered by equality on named fields."""
        model = _model(table)
        unknown = set(filters) - _column_names(model)
        if unknown:
            raise ValueError(f"Unknown filter field(s) for {table}: {sorted(unknown)}")
        stmt = select(model).filter_by(**filters)
        async with self._guard(table) as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [_to_item(model, row) for row in rows]

    def _upsert(self, model, values: dict[str, Any]):
        dialect = postgresql if self._engine.dialect.name == "postgresql" else sqlite
        stmt = dialect.insert(model).values(**values)
        pk = [col.name for col in model.__table__.primary_key.columns]
        updates = {name: stmt.excluded[name] for name in values if name not in pk}
        if not updates:
            return stmt.on_conflict_do_nothing(index_elements=pk)
        return stmt.on_conflict_do_update(index_elements=pk, set_=updates)

    @asynccontextmanager
    async def _guard(self, table: str):
        """Yield a session and translate driver errors into storage errors."""
        try:
            async with self._sessionmaker() as session:
                yield session
        except SQLAlchemyError as exc:
            message = str(exc).lower()
            if any(marker in message for marker in _MISSING_TABLE_MARKERS):
                raise TableNotFoundError(table) from exc
            logger.error("Storage call on '%s' failed: %s", table, exc)
            raise StorageError(str(exc)) from exc


def _model(table: str):
    try:
        return TABLES[table]
    except KeyError:
        raise ValueError(f"Unknown table: {table}") from None


def _column_names(model) -> set[str]:
    return {col.name for col in model.__table__.columns}


def _identity(model, key: dict[str, Any]) -> dict[str, Any]:
    pk = [col.name for col in model.__table__.primary_key.columns]
    missing = [name for name in pk if key.get(name) is None]
    if missing:
        raise ValueError(f"Key for {model.__tablename__} is missing {missing}")
    return {name: key[name] for name in pk}


def _to_item(model, row) -> dict[str, Any]:
    return {col.name: getattr(row, col.name) for col in model.__table__.columns}
