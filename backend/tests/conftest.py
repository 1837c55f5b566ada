import os
import socket
import sys
import tempfile
import time
from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy.engine import make_url

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))


def _resolve_database_url() -> str:
    url = (os.environ.get("TEST_DATABASE_URL") or "").strip()
    if url:
        return url
    path = Path(tempfile.gettempdir()) / f"learning_backend_test_{os.getpid()}.db"
    return f"sqlite:///{path}"


# Settings are read when app modules are first imported, so the URL has to
# be in place before any test module imports the app.
TEST_DATABASE_URL = _resolve_database_url()
os.environ["TEST_DATABASE_URL"] = TEST_DATABASE_URL
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from app.db import session as db_module  # noqa: E402
from app.main import app  # noqa: E402
from tests.factories import set_factory_session  # noqa: E402
from tests.utils.db import truncate_tables, upgrade_schema  # noqa: E402


def wait_for(host: str, port: int, timeout: float = 30.0):
    start = time.time()
    while time.time() - start < timeout:
        try:
            with socket.create_connection((host, port), timeout=1):
                return
        except OSError:
            time.sleep(0.5)
    raise RuntimeError(f"Service {host}:{port} not reachable")


def _sqlite_path(url: str) -> Path | None:
    url_obj = make_url(url)
    if url_obj.get_backend_name() != "sqlite" or not url_obj.database:
        return None
    return Path(url_obj.database)


@pytest.fixture(scope="session", autouse=True)
def prepare_db():
    url_obj = make_url(TEST_DATABASE_URL)
    if url_obj.get_backend_name().startswith("mysql"):
        wait_for(url_obj.host or "localhost", int(url_obj.port or 3306), timeout=60.0)

    sqlite_path = _sqlite_path(TEST_DATABASE_URL)
    if sqlite_path is not None and sqlite_path.exists():
        sqlite_path.unlink()

    upgrade_schema(TEST_DATABASE_URL)

    yield

    db_module.engine.dispose()
    if sqlite_path is not None and sqlite_path.exists():
        sqlite_path.unlink()


@pytest.fixture
def db_session(prepare_db) -> Iterator[Session]:
    truncate_tables(db_module.engine)
    session = db_module.SessionLocal()
    set_factory_session(session)
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        set_factory_session(None)


@pytest.fixture
def client(db_session: Session) -> Iterator[TestClient]:
    def override_get_db() -> Iterator[Session]:
        yield db_session

    app.dependency_overrides[db_module.get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(db_module.get_db, None)
