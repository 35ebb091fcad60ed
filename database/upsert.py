# database/upsert.py
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def dialect_insert(db: Session, table):
    """
    Return an INSERT construct that supports ON CONFLICT for the session's backend.
    Both PostgreSQL and SQLite expose the same on_conflict_do_* API.
    """
    dialect = db.get_bind().dialect.name
    try:
        insert = _DIALECT_INSERTS[dialect]
    except KeyError:
        raise NotImplementedError(f"Upserts are not supported for dialect '{dialect}'")
    return insert(table)
