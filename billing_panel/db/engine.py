# billing_panel/db/engine.py
"""
Motor SQLModel síncrono para toda la aplicación.
SQLite por defecto en DATA_DIR/db/, o DATABASE_URL si está definido.
Configurado con WAL mode para mejorar concurrencia.
"""
import os
from typing import Generator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from ..core.config import get_settings


def build_engine(database_url: str, **kwargs) -> Engine:
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite and ":memory:" not in database_url and "///" in database_url:
        db_file = database_url.split("///", 1)[1]
        if db_file:
            os.makedirs(os.path.dirname(os.path.abspath(db_file)), exist_ok=True)

    connect_args = {"check_same_thread": False} if is_sqlite else {}
    engine = create_engine(database_url, echo=False, connect_args=connect_args, **kwargs)

    # Activar WAL mode para evitar "database is locked"
    if is_sqlite and ":memory:" not in database_url:

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.close()

    return engine


_engine: Engine | None = None


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = build_engine(get_settings().resolved_database_url)
    return _engine


def get_sync_session() -> Generator[Session, None, None]:
    """
    Dependency for SYNC SQLModel session injection.
    Usage: session: Session = Depends(get_sync_session)
    """
    with Session(get_engine()) as session:
        yield session


def create_db_and_tables(engine: Engine | None = None):
    """
    Create all tables defined in SQLModel models.
    Call this at application startup after importing all models.
    """
    from .. import models  # noqa: F401  registra las tablas en SQLModel.metadata

    SQLModel.metadata.create_all(engine or get_engine())
