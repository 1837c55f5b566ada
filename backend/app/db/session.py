from __future__ import annotations

from typing import Any

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker

from app.core.config import settings


def engine_options(database_url: str) -> dict[str, Any]:
    options: dict[str, Any] = {"pool_pre_ping": True, "future": True}
    if make_url(database_url).get_backend_name() == "sqlite":
        # TestClient and the threadpool share connections across threads
        options["connect_args"] = {"check_same_thread": False}
    return options


def configure_sqlite(engine: Engine) -> None:
    """Enforce foreign keys and let SQLAlchemy own BEGIN so SAVEPOINTs work on pysqlite."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _):  # pragma: no cover - driver wiring
        dbapi_connection.isolation_level = None
        # Off by default per connection; ON DELETE CASCADE depends on it
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):  # pragma: no cover - driver wiring
        conn.exec_driver_sql("BEGIN")


def build_engine(database_url: str) -> Engine:
    built = create_engine(database_url, **engine_options(database_url))
    if built.dialect.name == "sqlite":
        configure_sqlite(built)
    return built


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


__all__ = ["SessionLocal", "build_engine", "engine", "engine_options", "get_db"]
