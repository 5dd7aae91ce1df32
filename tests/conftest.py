"""
Shared test fixtures for the signage scheduler test suite.

Provides:
- In-memory SQLite database with all tables created
- Schedule repository wired to the test database
- Validation and schedule services on a fixed clock
- Flask app and test client
- Helper utilities for seeding test data

Usage:
    def test_example(seed, schedule_service):
        tenant_id = seed.create_tenant()
        playlist_id = seed.create_playlist(tenant_id)
        schedule = schedule_service.create_schedule(tenant_id, {...})
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pytest

from infrastructure.database.repositories.schedules import ScheduleRepository
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler
from infrastructure.logging.audit import AuditLogger
from signage.domain.schedules import PlaylistSchedule

# Monday 2 June 2025, 09:30 on the players' clock
FIXED_TODAY = date(2025, 6, 2)
FIXED_NOW = datetime(2025, 6, 2, 9, 30)

# Quiet down noisy loggers during tests
logging.getLogger("infrastructure").setLevel(logging.WARNING)
logging.getLogger("signage").setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# Database & Repositories
# ---------------------------------------------------------------------------


@pytest.fixture()
def db_handler():
    """Fresh in-memory SQLite database with all tables created."""
    handler = SQLiteDatabaseHandler(":memory:")
    handler.create_tables()
    yield handler
    handler.close()


@pytest.fixture()
def schedule_repo(db_handler):
    return ScheduleRepository(db_handler)


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@pytest.fixture()
def audit_log_path(tmp_path) -> Path:
    return tmp_path / "audit.log"


@pytest.fixture()
def audit_logger(audit_log_path):
    return AuditLogger(str(audit_log_path))


@pytest.fixture()
def validation_service(schedule_repo):
    """ScheduleValidationService whose "today" is FIXED_TODAY."""
    from signage.services.application.schedule_validation_service import (
        ScheduleValidationService,
    )

    return ScheduleValidationService(schedule_repo, today=lambda: FIXED_TODAY)


@pytest.fixture()
def schedule_service(schedule_repo, validation_service, audit_logger):
    """ScheduleService on a fixed clock with a real audit log."""
    from signage.services.application.schedule_service import ScheduleService

    return ScheduleService(
        schedule_repo,
        validation_service,
        audit_logger=audit_logger,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture()
def today() -> date:
    return FIXED_TODAY


@pytest.fixture()
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture()
def read_audit(audit_logger, audit_log_path):
    """Callable returning the JSON payloads written to the audit log so far."""

    def _read() -> list[dict[str, Any]]:
        audit_logger.flush()
        if not audit_log_path.exists():
            return []
        records = []
        for line in audit_log_path.read_text(encoding="utf-8").splitlines():
            if line.strip():
                records.append(json.loads(line.split(" | ", 2)[2]))
        return records

    return _read


# ---------------------------------------------------------------------------
# Flask
# ---------------------------------------------------------------------------


@pytest.fixture()
def app(tmp_path):
    """Flask app on an in-memory database, with the clock pinned."""
    from signage import create_app

    flask_app = create_app(
        {
            "database_path": ":memory:",
            "audit_log_path": str(tmp_path / "api-audit.log"),
            "log_dir": None,
        }
    )
    flask_app.config.update(TESTING=True)

    container = flask_app.config["CONTAINER"]
    container.schedule_validation_service.today = lambda: FIXED_TODAY
    container.schedule_service.clock = lambda: FIXED_NOW
    yield flask_app
    container.shutdown()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def api_seed(app):
    """SeedData bound to the Flask app's database."""
    container = app.config["CONTAINER"]
    return SeedData(container.database, container.schedule_repo)


# ========================== Seed Data Helpers ==============================


class SeedData:
    """Helper to create commonly needed test data.

    Schedules created here skip validation, so tests can set up states the
    service would refuse (overlapping or past schedules).

    Usage in tests::

        def test_something(seed):
            tenant_id = seed.create_tenant("Acme")
            playlist_id = seed.create_playlist(tenant_id, "Lobby")
            seed.create_schedule(tenant_id, playlist_id, start_time="08:00", end_time="12:00")
    """

    def __init__(self, db_handler: SQLiteDatabaseHandler, repo: ScheduleRepository):
        self._db = db_handler
        self._repo = repo

    def create_tenant(self, name: str = "Test Tenant") -> int:
        """Create a tenant and return its ID."""
        return self._db.insert_tenant(name)

    def create_playlist(self, tenant_id: int, name: str = "Test Playlist") -> int:
        """Create a playlist owned by *tenant_id* and return its ID."""
        return self._db.insert_playlist(tenant_id, name)

    def create_schedule(
        self,
        tenant_id: int,
        playlist_id: int,
        name: str = "Test Schedule",
        **fields: Any,
    ) -> PlaylistSchedule:
        """Store a schedule directly through the repository."""
        fields.setdefault("priority", 1)
        fields.setdefault("is_active", True)
        return self._repo.create(
            PlaylistSchedule(
                tenant_id=tenant_id,
                playlist_id=playlist_id,
                name=name,
                **fields,
            )
        )


@pytest.fixture()
def seed(db_handler, schedule_repo):
    """SeedData helper for quickly populating the test database."""
    return SeedData(db_handler, schedule_repo)


@pytest.fixture()
def tenant_id(seed):
    return seed.create_tenant("Acme Displays")


@pytest.fixture()
def playlist_id(seed, tenant_id):
    return seed.create_playlist(tenant_id, "Morning Loop")
