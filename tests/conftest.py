"""Shared fixtures: an in-memory database, seeded contributors and games, fakes for the client side."""

from __future__ import annotations

import os

# Settings are read once and cached, so the environment has to be in place
# before anything under gamemeta is imported.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ADMIN_STEAM_IDS", '["76561190000000900"]')
os.environ.setdefault("JWT_SECRET", "test-secret")

from collections.abc import Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from gamemeta.api.deps import get_db
from gamemeta.auth.tokens import issue_token
from gamemeta.client.cache import LocalCache, create_cache_engine
from gamemeta.db.base import Base
from gamemeta.db.enums import CacheKind
from gamemeta.db.models import Contributor, Game
from gamemeta.schemas.ttb import TtbStatsRead
from gamemeta.services.errors import ExternalSourceMiss, UnknownEntity

ALICE_STEAM_ID = "76561190000000100"
BOB_STEAM_ID = "76561190000000200"
ADMIN_STEAM_ID = "76561190000000900"

PORTAL = 400
HADES = 1145360
CELESTE = 504230


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def session_factory() -> Iterator[sessionmaker]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    with factory() as db:
        db.add_all([
            Contributor(steam_id=ALICE_STEAM_ID, display_name="alice"),
            Contributor(steam_id=BOB_STEAM_ID, display_name="bob"),
            Contributor(steam_id=ADMIN_STEAM_ID, display_name="admin"),
            Game(appid=PORTAL, name="Portal"),
            Game(appid=HADES, name="Hades"),
            Game(appid=CELESTE, name="Celeste"),
        ])
        db.commit()

    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory: sessionmaker) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def contributor_id(db: Session, steam_id: str) -> int:
    return db.query(Contributor).filter(Contributor.steam_id == steam_id).one().id


@pytest.fixture
def alice(db: Session) -> int:
    return contributor_id(db, ALICE_STEAM_ID)


@pytest.fixture
def bob(db: Session) -> int:
    return contributor_id(db, BOB_STEAM_ID)


@pytest.fixture
def alice_token() -> str:
    return issue_token(ALICE_STEAM_ID)


@pytest.fixture
def bob_token() -> str:
    return issue_token(BOB_STEAM_ID)


@pytest.fixture
def admin_token() -> str:
    return issue_token(ADMIN_STEAM_ID)


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def client(session_factory: sessionmaker) -> Iterator[TestClient]:
    from gamemeta.main import app

    def override_get_db() -> Iterator[Session]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Client-side fakes
# ---------------------------------------------------------------------------


@pytest.fixture
def ttb_cache() -> LocalCache:
    return LocalCache(create_cache_engine("sqlite://"), CacheKind.TTB)


@pytest.fixture
def tags_cache() -> LocalCache:
    return LocalCache(create_cache_engine("sqlite://"), CacheKind.TAGS)


class FakeSource:
    """External source with canned answers; appids without one are a miss."""

    def __init__(self, records: dict[int, Any] | None = None) -> None:
        self.records = dict(records or {})
        self.calls: list[tuple[int, str]] = []
        self.on_fetch = None

    def fetch(self, appid: int, query: str) -> dict[str, Any]:
        self.calls.append((appid, query))
        if self.on_fetch is not None:
            self.on_fetch(appid)
        record = self.records.get(appid)
        if isinstance(record, Exception):
            raise record
        if record is None:
            raise ExternalSourceMiss(f"no match for {appid}")
        return record


class FakeGateway:
    """In-memory backend: aggregates by appid, tags by appid, recorded submissions.

    Like the real server it refuses ttb reports for games never registered.
    """

    def __init__(self, token: str | None = "token") -> None:
        self.token = token
        self.aggregates: dict[int, TtbStatsRead] = {}
        self.tags: dict[int, list[tuple[str, int]]] = {}
        self.blacklist: list[int] = []
        self.submitted: list[tuple[int, dict]] = []
        self.submit_error: Exception | None = None
        self.games: dict[int, str] = {}

    @property
    def has_token(self) -> bool:
        return bool(self.token)

    def register_games(self, games: list[tuple[int, str]]) -> tuple[int, int]:
        created = sum(1 for appid, _ in games if appid not in self.games)
        self.games.update(games)
        return created, 0

    def submit(self, appid: int, fields: dict, game_name: str | None = None) -> TtbStatsRead | None:
        if self.submit_error is not None:
            raise self.submit_error
        if appid not in self.games:
            raise UnknownEntity("game", appid)
        self.submitted.append((appid, fields))
        stats = TtbStatsRead(
            appid=appid,
            avg_main_seconds=fields.get("main_seconds"),
            avg_extra_seconds=fields.get("extra_seconds"),
            avg_completionist_seconds=fields.get("completionist_seconds"),
            report_count=1,
        )
        self.aggregates[appid] = stats
        return stats

    def withdraw(self, appid: int) -> TtbStatsRead | None:
        return self.aggregates.pop(appid, None)

    def get_aggregate(self, appid: int) -> TtbStatsRead | None:
        return self.aggregates.get(appid)

    def get_aggregates_batch(self, appids: list[int]) -> dict[int, TtbStatsRead]:
        return {appid: self.aggregates[appid] for appid in appids if appid in self.aggregates}

    def list_labels(self) -> list[str]:
        return sorted({tag_name for tags in self.tags.values() for tag_name, _ in tags})

    def get_tags_batch(self, appids: list[int]) -> dict[int, list[tuple[str, int]]]:
        return {appid: self.tags[appid] for appid in appids if appid in self.tags}

    def submit_tags(self, appid: int, tags: list[tuple[str, int]]) -> int:
        if self.submit_error is not None:
            raise self.submit_error
        self.submitted.append((appid, {"tags": list(tags)}))
        self.tags[appid] = list(tags)
        return len(tags)

    def get_blacklist(self) -> list[int]:
        return list(self.blacklist)


@pytest.fixture
def fake_source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()
