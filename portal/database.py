"""
Database Connection and Session Management
Async queries go through `databases`; the schema lives in SQLAlchemy models
"""

from typing import Optional
import sqlite3
from databases import Database
from sqlalchemy import MetaData, Table, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base
import logging

logger = logging.getLogger(__name__)

# Metadata for models
metadata = MetaData()

# Base class for models
Base = declarative_base(metadata=metadata)


def create_database(database_url: str, **options) -> Database:
    """
    Build the async store handle handed to every service.

    For Supabase connection pooler (pgbouncer), prepared statements are disabled.
    """
    if "supabase.com" in database_url:
        db_options = {"min_size": 1, "max_size": 5, "statement_cache_size": 0}
    elif database_url.startswith("postgresql"):
        db_options = {"min_size": 1, "max_size": 10}
    else:
        db_options = {}
    db_options.update(options)
    return Database(database_url, **db_options)


def create_sync_engine(database_url: str) -> Engine:
    """Synchronous engine used for schema creation and migrations"""
    return create_engine(
        database_url.replace("postgresql://", "postgresql+psycopg2://")
        if "postgresql://" in database_url else database_url
    )


def create_tables(database_url: str) -> None:
    """Create every table known to the models"""
    import portal.models  # noqa: F401  (registers tables on metadata)

    engine = create_sync_engine(database_url)
    try:
        metadata.create_all(engine)
    finally:
        engine.dispose()


def row_to_dict(row, table: Table) -> Optional[dict]:
    """Copy a full-table record into a plain dict"""
    if row is None:
        return None
    return {column.name: row[column.name] for column in table.columns}


def is_unique_violation(error: Exception) -> bool:
    """
    True when a driver error is a unique-constraint failure

    `databases` passes driver exceptions through unwrapped, so both the
    SQLite message and the PostgreSQL SQLSTATE (asyncpg, psycopg2) are checked.
    """
    if isinstance(error, sqlite3.IntegrityError):
        return "UNIQUE constraint failed" in str(error)
    sqlstate = getattr(error, "sqlstate", None) or getattr(error, "pgcode", None)
    return sqlstate == "23505"


async def connect_db(database: Database):
    """Connect to database on startup"""
    await database.connect()
    logger.info("Database connected")


async def disconnect_db(database: Database):
    """Disconnect from database on shutdown"""
    await database.disconnect()
    logger.info("Database disconnected")
