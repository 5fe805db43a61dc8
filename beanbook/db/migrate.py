"""Additive SQLite migrations for databases created by older builds."""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import text
from sqlalchemy.engine import Engine

# Only ADD columns and indexes here. Fresh databases get the full schema from
# Base.metadata.create_all.


def _table_columns(engine: Engine, table: str) -> list[dict[str, object]]:
    with engine.connect() as conn:
        return conn.execute(text(f"PRAGMA table_info({table})")).mappings().all()


def _column_names(engine: Engine, table: str) -> set[str]:
    return {record["name"] for record in _table_columns(engine, table)}


def _add_column_sqlite(engine: Engine, table: str, col_def: str) -> None:
    with engine.begin() as conn:
        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {col_def}"))


def _create_index_if_not_exists(engine: Engine, table: str, name: str, cols: Iterable[str], unique: bool = False) -> None:
    cols_sql = ", ".join(cols)
    unique_sql = "UNIQUE " if unique else ""
    with engine.begin() as conn:
        conn.execute(text(f"CREATE {unique_sql}INDEX IF NOT EXISTS {name} ON {table} ({cols_sql})"))


# Columns added after the first release, per table.
ADDED_COLUMNS: dict[str, dict[str, str]] = {
    "coffee_beans": {
        "owner": "TEXT NOT NULL DEFAULT 'default'",
        "buying_price_currency": "TEXT NOT NULL DEFAULT 'USD'",
        "price_per_gram": "REAL NOT NULL DEFAULT 0",
        "total_cost": "REAL NOT NULL DEFAULT 0",
        "cups_brewed": "INTEGER NOT NULL DEFAULT 0",
        "cost_per_cup": "REAL NOT NULL DEFAULT 0",
        "best_by_date": "DATE",
    },
    "brewing_schedule": {
        "completed_at": "TEXT",
    },
}


def run_migrations(engine: Engine) -> None:
    """Bring an existing SQLite schema up to date with the models."""

    if engine.dialect.name != "sqlite":
        return

    for table, needed in ADDED_COLUMNS.items():
        existing = _column_names(engine, table)
        if not existing:
            # Table absent -> create_all builds it with every column.
            continue
        for name, dtype in needed.items():
            if name not in existing:
                _add_column_sqlite(engine, table, f"{name} {dtype}")

    _create_index_if_not_exists(engine, "coffee_beans", "ix_coffee_beans_owner_created", ["owner", "created_at"])
    _create_index_if_not_exists(
        engine, "brewing_schedule", "ix_brewing_schedule_date_time", ["scheduled_date", "scheduled_time"]
    )
