"""Shared test fixtures for pytest."""

import io
import uuid

import pytest
import pytest_asyncio
from PIL import Image
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel import SQLModel

ADMIN_SECRET = "s3cret"


@pytest.fixture
def app_settings():
    """Settings with a unique in-memory database and a known admin secret."""
    from siteaudit.config import Settings

    unique_name = f"test_{uuid.uuid4().hex}"
    return Settings(
        database_url=f"sqlite+aiosqlite:///file:{unique_name}?mode=memory&cache=shared&uri=true",
        admin_secret=ADMIN_SECRET,
        log_level="WARNING",
        _env_file=None,
    )


@pytest.fixture
def app(monkeypatch, app_settings):
    """Application wired to the test settings."""
    import siteaudit.auth
    import siteaudit.config
    import siteaudit.db.engine
    import siteaudit.server

    siteaudit.config.get_settings.cache_clear()
    for module in (siteaudit.config, siteaudit.auth, siteaudit.db.engine, siteaudit.server):
        monkeypatch.setattr(module, "get_settings", lambda: app_settings)

    # Reset engine to force a new connection
    siteaudit.db.engine._engine = None

    application = siteaudit.server.create_app()
    yield application

    application.dependency_overrides.clear()
    siteaudit.db.engine._engine = None


@pytest.fixture
def client(app):
    """Test client for the app with an isolated in-memory database."""
    from fastapi.testclient import TestClient

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_client(client):
    """Test client carrying a valid admin cookie."""
    client.headers["Cookie"] = f"admin_token={ADMIN_SECRET}"
    return client


@pytest_asyncio.fixture
async def db_engine(monkeypatch):
    """Fresh in-memory engine installed as the process engine for one test."""
    import siteaudit.db.engine
    from siteaudit.db import models as _models  # noqa: F401

    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    monkeypatch.setattr(siteaudit.db.engine, "_engine", engine)
    yield engine

    await engine.dispose()


def make_png(width: int, height: int, mode: str = "RGB") -> bytes:
    """Encode a solid-colour PNG of the given size."""
    color = {
        "RGB": (40, 120, 200),
        "RGBA": (40, 120, 200, 128),
        "L": 128,
        "P": 3,
        "I;16": 32768,
    }[mode]
    image = Image.new(mode, (width, height), color)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_factory():
    return make_png
