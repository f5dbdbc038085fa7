"""
OneSim Backend: Test Configuration (conftest.py)
================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Integration tests drive a real app through FastAPI's TestClient, so
       the lifespan runs and builds every service against a throwaway
       SQLite database. Unit tests use mocked sessions.

Fixture Hierarchy:
    ├── app_settings:      Settings pointing at tmp SQLite + tmp upload dir
    ├── app:               create_app(app_settings)
    ├── client:            TestClient with the lifespan running
    ├── upload_dir:        the staging directory the relay writes to
    ├── comparison_stub:   swaps the FileRelay for one on httpx.MockTransport
    ├── mock_db_session:   AsyncMock session for service unit tests
    └── hasher:            PasswordHasher at the minimum bcrypt cost
"""

import os
from typing import Callable, List
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Set before any onesim import: the module-level app reads the environment
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from onesim.config import Settings  # noqa: E402
from onesim.dependencies import get_file_relay  # noqa: E402
from onesim.main import create_app  # noqa: E402
from onesim.services.file_relay import FileRelay  # noqa: E402
from onesim.services.password_hasher import PasswordHasher  # noqa: E402

COMPARISON_URL = "http://comparison.test/compare"


# ══════════════════════════════════════════════════════════════════════════
# Application Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def app_settings(tmp_path, upload_dir):
    """Settings for one test: fresh SQLite file, tables created at startup."""
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'onesim_test.db'}",
        db_create_tables=True,
        upload_dir=str(upload_dir),
        bcrypt_rounds=4,
        comparison_service_url=COMPARISON_URL,
        log_level="WARNING",
    )


@pytest.fixture
def app(app_settings):
    return create_app(app_settings)


@pytest.fixture
def client(app):
    """
    TestClient used as a context manager so startup and shutdown run.

    Usage:
        def test_health(client):
            assert client.get("/health").status_code == 200
    """
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def comparison_stub(app, upload_dir):
    """
    Replace the comparison service with an in-process handler.

    Returns a function taking an httpx handler; every request the relay
    makes is passed to it and recorded.

    Usage:
        def test_relay(client, comparison_stub):
            comparison_stub(lambda request: httpx.Response(200, json={...}))
    """
    seen: List[httpx.Request] = []

    def install(handler: Callable[[httpx.Request], httpx.Response]) -> List[httpx.Request]:
        def recording_handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        relay = FileRelay(
            client=httpx.AsyncClient(transport=httpx.MockTransport(recording_handler)),
            target_url=COMPARISON_URL,
            upload_dir=str(upload_dir),
        )
        app.dependency_overrides[get_file_relay] = lambda: relay
        return seen

    yield install
    app.dependency_overrides.pop(get_file_relay, None)


# ══════════════════════════════════════════════════════════════════════════
# Unit-Test Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Mock async database session.

    Usage:
        result = MagicMock()
        result.scalars.return_value.all.return_value = [case]
        mock_db_session.execute.return_value = result
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


# ══════════════════════════════════════════════════════════════════════════
# Sample Payloads
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def patient_payload():
    """Every required identity field plus a few optional clinical ones."""
    return {
        "caseId": "CASE-7",
        "registration_id": "REG-001",
        "name": "Maria Lopez",
        "age": 54,
        "gender": "female",
        "contact": "555-0101",
        "allergies": "penicillin",
        "bloodGroup": "O+",
        "pulseRate": "88",
    }


@pytest.fixture
def assignment_payload():
    return {
        "caseKey": "CASE-7",
        "title": "Acute chest pain",
        "scenarios": [{"id": 1, "text": "Patient arrives at ER"}],
        "questions": [{"id": "q1", "text": "First test to order?"}],
        "assignedStudents": ["alice", "bob"],
    }
