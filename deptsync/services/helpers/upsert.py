"""
Atomic upsert-by-unique-key.

PostgreSQL and SQLite get a single ``INSERT ... ON CONFLICT (...) DO UPDATE``.
Any other dialect falls back to ``SELECT ... FOR UPDATE`` followed by an
insert or an update inside the caller's transaction.

Columns listed in ``insert_only`` are written when the row is created and
never overwritten afterwards (``created_by``, ``created_at``).
"""

from sqlalchemy import insert, select, update
from sqlalchemy.dialects import postgresql, sqlite

_ON_CONFLICT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def upsert_row(session, table, values: dict, key_columns, insert_only=()):
    """Insert ``values`` into ``table`` or update the row sharing its key."""
    update_values = {
        name: value for name, value in values.items()
        if name not in key_columns and name not in insert_only
    }

    dialect_insert = _ON_CONFLICT_INSERTS.get(session.get_bind().dialect.name)
    if dialect_insert is not None:
        stmt = dialect_insert(table).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=list(key_columns),
            set_={name: stmt.excluded[name] for name in update_values},
        )
        session.execute(stmt)
        return

    key_filter = [table.c[name] == values[name] for name in key_columns]
    existing = session.execute(
        select(table.c.id).where(*key_filter).with_for_update()
    ).scalar_one_or_none()
    if existing is None:
        session.execute(insert(table).values(**values))
    else:
        session.execute(update(table).where(table.c.id == existing).values(**update_values))
