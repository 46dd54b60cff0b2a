from __future__ import annotations

from collections.abc import Callable, Generator
from contextlib import ExitStack
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import sales_dashboard.models.entities  # noqa: F401
from sales_dashboard.core.auth import AppRole, create_user, ensure_default_admin
from sales_dashboard.core.config import Settings
from sales_dashboard.db.base import Base
from sales_dashboard.db.dependencies import get_db_session
from sales_dashboard.db.session import build_engine
from sales_dashboard.main import create_app

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin123"


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = build_engine("sqlite+pysqlite:///:memory:", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def file_engine(tmp_path: Path) -> Generator[Engine, None, None]:
    """File-backed engine so that separate sessions use separate connections."""

    engine = build_engine(f"sqlite+pysqlite:///{tmp_path / 'sales.db'}")
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def make_client(db_session: Session) -> Generator[Callable[..., TestClient], None, None]:
    def override_db() -> Generator[Session, None, None]:
        yield db_session

    with ExitStack() as stack:

        def _make(settings: Settings | None = None) -> TestClient:
            app = create_app(settings or Settings(bootstrap_on_startup=False))
            app.dependency_overrides[get_db_session] = override_db
            return stack.enter_context(TestClient(app))

        yield _make


@pytest.fixture()
def client(make_client: Callable[..., TestClient]) -> TestClient:
    return make_client()


def login_headers(client: TestClient, username: str, password: str) -> dict[str, str]:
    response = client.post("/api/v1/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def bootstrap_admin(db_session: Session) -> None:
    ensure_default_admin(
        db_session,
        Settings(bootstrap_admin_username=ADMIN_USERNAME, bootstrap_admin_password=ADMIN_PASSWORD),
    )


@pytest.fixture()
def admin_headers(client: TestClient, db_session: Session) -> dict[str, str]:
    bootstrap_admin(db_session)
    return login_headers(client, ADMIN_USERNAME, ADMIN_PASSWORD)


@pytest.fixture()
def user_headers(client: TestClient, db_session: Session, admin_headers: dict[str, str]) -> dict[str, str]:
    create_user(
        db_session,
        username="clerk",
        password="clerk-pass",
        display_name="Branch Clerk",
        role=AppRole.USER,
    )
    db_session.commit()
    return login_headers(client, "clerk", "clerk-pass")
