"""
BingoBook Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Service and trigger tests run against a real SQLite file per test
       (triggers and ON DELETE CASCADE need a real engine); compensation
       paths use a mocked AsyncSession.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── database:            Database on a temp SQLite file, schema created
    ├── db_session:          AsyncSession on that database (services commit on it)
    ├── mock_db_session:     Mock async session for failure injection
    ├── temp_storage:        Temporary image directory
    ├── image_store:         ImageStore rooted at temp_storage
    ├── entry_service:       EntryService using that image_store
    ├── sample_image_bytes:  Small PNG payload for upload tests
    └── test_client:         HTTPX AsyncClient bound to create_app(database)
"""

import os
import tempfile
from unittest.mock import AsyncMock, MagicMock

# Override settings BEFORE any bingobook import
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="bingobook_test_")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["ENVIRONMENT"] = "test"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from bingobook.database import Database
from bingobook.services.entry_service import EntryService
from bingobook.services.image_store import ImageStore


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database(tmp_path):
    """A fresh SQLite database with tables and row-zero triggers."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'bingobook_test.db'}", echo=False)
    await db.create_schema()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    """
    One session for the whole test.

    Service writes commit on it; each test has its own database file.
    """
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    Mock async session for injecting database failures.

    Usage:
        mock_db_session.flush.side_effect = OperationalError(...)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Image Storage Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "uploads"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def image_store(temp_storage):
    return ImageStore(storage_root=temp_storage)


@pytest.fixture
def entry_service(image_store):
    return EntryService(store=image_store)


@pytest.fixture
def sample_image_bytes():
    """PNG signature + IHDR chunk header. Not a decodable image, but non-empty."""
    return (
        b"\x89PNG\r\n\x1a\n"
        b"\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00"
    )


# ══════════════════════════════════════════════════════════════════════════
# API Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(database, image_store, monkeypatch):
    """
    HTTPX AsyncClient talking to a fresh app instance.

    ASGITransport does not run the lifespan, so the app is handed the test
    database directly. Routes use the module-level entry_service; its image
    store is pointed at this test's temp directory.
    """
    from bingobook.main import create_app
    from bingobook.services.entry_service import entry_service as route_entry_service

    monkeypatch.setattr(route_entry_service, "image_store", image_store)

    app = create_app(database=database)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
