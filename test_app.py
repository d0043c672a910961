"""
App-level behavior: health, error envelope, request logging, settings, schema migration.
"""
import dataclasses
import logging
import re
from pathlib import Path

import pytest
from sqlalchemy import inspect, text

import gymlog.exercises
from conftest import login_as, make_client
from gymlog.app import create_app
from gymlog.config import Settings, database_url_from_env
from gymlog.database import Database


# ─── Health ──────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_health(anon):
    r = await anon.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["ok"] is True
    assert data["db_connected"] is True
    assert data["db_type"] == "SQLite"
    assert data["timestamp"]


# ─── Error envelope ──────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_unknown_route(client):
    r = await client.get("/does-not-exist")
    assert r.status_code == 404
    assert r.json() == {"error": "Not Found"}


@pytest.mark.asyncio
async def test_method_not_allowed(client):
    r = await client.patch("/exercises")
    assert r.status_code == 405
    assert "error" in r.json()


@pytest.mark.asyncio
async def test_malformed_json(client):
    r = await client.post(
        "/exercises", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid request body"}


@pytest.mark.asyncio
async def test_wrong_field_type(client):
    r = await client.post("/workout-logs", json={"exercise_id": 1, "date": "2024-01-15", "sets": "many"})
    assert r.status_code == 400
    assert r.json()["error"].startswith("sets:")


@pytest.mark.asyncio
async def test_unexpected_error_is_generic_500(app, monkeypatch, caplog):
    async def boom(*args, **kwargs):
        raise RuntimeError("database exploded")

    monkeypatch.setattr(gymlog.exercises, "list_exercises", boom)
    caplog.set_level(logging.ERROR, logger="gymlog.errors")

    async with make_client(app, raise_app_exceptions=False) as ac:
        await login_as(ac, "carol")
        r = await ac.get("/exercises")

    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error"}
    assert "database exploded" not in r.text
    assert "database exploded" in caplog.text


# ─── Request logging ─────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_requests_are_logged(anon, caplog):
    caplog.set_level(logging.INFO, logger="gymlog")
    await anon.get("/health")
    assert any("GET /health - Status: 200" in rec.getMessage() for rec in caplog.records)


# ─── Settings ────────────────────────────────────────────────────────────────

def test_database_url_priority(monkeypatch, tmp_path):
    for var in ("CLOUD_SQL_CONNECTION_NAME", "DATABASE_URL", "GYMLOG_DB", "DATA_DIR"):
        monkeypatch.delenv(var, raising=False)

    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    assert database_url_from_env() == f"sqlite+aiosqlite:///{(tmp_path / 'gym_app.db').resolve()}"

    monkeypatch.setenv("GYMLOG_DB", "/srv/gym.db")
    assert database_url_from_env() == "sqlite+aiosqlite:////srv/gym.db"

    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@db/gym")
    assert database_url_from_env() == "postgresql+asyncpg://u:p@db/gym"

    monkeypatch.setenv("CLOUD_SQL_CONNECTION_NAME", "proj:region:inst")
    monkeypatch.setenv("DB_USER", "gym")
    monkeypatch.setenv("DB_PASSWORD", "pw")
    monkeypatch.setenv("DB_NAME", "gymdb")
    assert database_url_from_env() == (
        "postgresql+asyncpg://gym:pw@/gymdb?host=/cloudsql/proj:region:inst"
    )


def test_settings_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("GYMLOG_DB", str(tmp_path / "x.db"))
    monkeypatch.setenv("SESSION_SECRET", "s3cret")
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("API_PREFIX", "/api/")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("RATE_LIMIT_REQUESTS", "0")
    monkeypatch.delenv("CLOUD_SQL_CONNECTION_NAME", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)

    s = Settings.from_env()
    assert s.session_secret == "s3cret"
    assert s.cookie_secure is True
    assert s.api_prefix == "/api"
    assert s.port == 8080
    assert s.rate_limit_requests == 0
    assert s.database_url.endswith("x.db")


@pytest.mark.asyncio
async def test_api_prefix(settings):
    app = create_app(dataclasses.replace(settings, api_prefix="/api"))
    await app.state.db.init()
    try:
        async with make_client(app) as ac:
            r = await ac.post("/api/auth/register", json={"username": "dave", "password": "secret123"})
            assert r.status_code == 201
            assert (await ac.get("/api/exercises")).status_code == 200
            assert (await ac.get("/exercises")).status_code == 404
            assert (await ac.get("/health")).status_code == 200
    finally:
        await app.state.db.dispose()


# ─── Schema migration ────────────────────────────────────────────────────────

LEGACY_SCHEMA = [
    """CREATE TABLE users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username VARCHAR UNIQUE NOT NULL,
        password_hash VARCHAR NOT NULL,
        created_at DATETIME
    )""",
    """CREATE TABLE exercises (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        name VARCHAR NOT NULL,
        muscle_group VARCHAR,
        equipment VARCHAR,
        description TEXT,
        instructions TEXT,
        video_link VARCHAR,
        image_link VARCHAR,
        created_at DATETIME
    )""",
    """CREATE TABLE workout_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        exercise_id INTEGER NOT NULL REFERENCES exercises(id) ON DELETE CASCADE,
        date VARCHAR NOT NULL,
        sets INTEGER,
        reps INTEGER,
        weight FLOAT,
        distance FLOAT,
        duration INTEGER,
        pace FLOAT,
        notes TEXT,
        created_at DATETIME
    )""",
    "INSERT INTO users (id, username, password_hash) VALUES (1, 'old', 'x')",
    "INSERT INTO exercises (id, user_id, name) VALUES (1, 1, 'Old Squat')",
]


def _all_columns(sync_conn):
    insp = inspect(sync_conn)
    return {t: {c["name"] for c in insp.get_columns(t)} for t in insp.get_table_names()}


@pytest.mark.asyncio
async def test_legacy_database_is_migrated(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'legacy.db'}")
    try:
        async with db.engine.begin() as conn:
            for stmt in LEGACY_SCHEMA:
                await conn.execute(text(stmt))

        await db.init()
        await db.init()  # second run is a no-op

        async with db.engine.connect() as conn:
            columns = await conn.run_sync(_all_columns)
            exercise_type = (
                await conn.execute(text("SELECT exercise_type FROM exercises WHERE id = 1"))
            ).scalar_one()

        assert {"exercise_type"} <= columns["exercises"]
        assert {"weight_per_set", "rest_time", "lap_times"} <= columns["workout_logs"]
        assert {"recovery_uuid", "recovery_secret_hash"} <= columns["users"]
        assert exercise_type == "strength"
        assert "public_exercises" in columns
    finally:
        await db.dispose()


@pytest.mark.asyncio
async def test_ping_reports_failure(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'nested' / 'x.db'}")
    try:
        # directory is never created, so connecting fails
        assert await db.ping() is False
    finally:
        await db.dispose()


# ─── Packaging ───────────────────────────────────────────────────────────────

def test_package_readme_exists():
    root = Path(__file__).parent
    match = re.search(r'^readme = "([^"]+)"$', (root / "pyproject.toml").read_text(), re.M)
    assert match, "pyproject.toml declares no readme"
    assert match.group(1) == "README.md"
    assert "gymlog" in (root / match.group(1)).read_text()
