"""Per-client cache of game metadata already fetched or submitted.

Entries never expire; a fresher value simply overwrites the old one. Reads
are served from an in-memory mirror so the host UI can read while a scan
writes.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Column,
    DateTime,
    Engine,
    MetaData,
    String,
    Table,
    create_engine,
    select,
)
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from gamemeta.db.enums import CacheKind

logger = logging.getLogger("gamemeta.client.cache")

metadata = MetaData()

cache_entries = Table(
    "cache_entries",
    metadata,
    Column("kind", String, primary_key=True),
    Column("appid", BigInteger, primary_key=True, autoincrement=False),
    Column("snapshot", JSON, nullable=False),
    Column("fetched_at", DateTime(timezone=True), nullable=False),
)


@dataclass(frozen=True)
class CacheEntry:
    appid: int
    snapshot: dict[str, Any]
    fetched_at: datetime


def create_cache_engine(url: str) -> Engine:
    engine = create_engine(url)
    metadata.create_all(engine)
    return engine


class LocalCache:
    """Cache for one kind of metadata (ttb times or tags) in a local database.

    Entries already on disk are loaded on construction; ``load()`` re-reads them.
    """

    def __init__(self, engine: Engine, kind: CacheKind) -> None:
        self._engine = engine
        self._kind = kind
        self._entries: dict[int, CacheEntry] = {}
        self._write_lock = threading.Lock()
        metadata.create_all(engine)
        self.load()

    @property
    def kind(self) -> CacheKind:
        return self._kind

    def load(self) -> int:
        """Fill the in-memory mirror from disk; returns the number of entries."""
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(cache_entries.c.appid, cache_entries.c.snapshot, cache_entries.c.fetched_at)
                .where(cache_entries.c.kind == self._kind.value)
            ).all()

        entries = {
            appid: CacheEntry(appid=appid, snapshot=snapshot, fetched_at=fetched_at)
            for appid, snapshot, fetched_at in rows
        }
        with self._write_lock:
            self._entries = entries
        logger.info("Loaded %d %s entries from cache", len(entries), self._kind.value)
        return len(entries)

    def get(self, appid: int) -> CacheEntry | None:
        return self._entries.get(appid)

    def put(self, appid: int, snapshot: dict[str, Any], fetched_at: datetime | None = None) -> CacheEntry:
        entry = CacheEntry(
            appid=appid,
            snapshot=dict(snapshot),
            fetched_at=fetched_at or datetime.now(timezone.utc),
        )
        statement = sqlite_insert(cache_entries).values(
            kind=self._kind.value,
            appid=appid,
            snapshot=entry.snapshot,
            fetched_at=entry.fetched_at,
        )
        statement = statement.on_conflict_do_update(
            index_elements=[cache_entries.c.kind, cache_entries.c.appid],
            set_={"snapshot": statement.excluded.snapshot, "fetched_at": statement.excluded.fetched_at},
        )

        with self._write_lock:
            with self._engine.begin() as conn:
                conn.execute(statement)
            # swap in a new dict so readers never see a half-built mapping
            entries = dict(self._entries)
            entries[appid] = entry
            self._entries = entries
        return entry

    def subjects_missing(self, candidates: Iterable[Any]) -> list[Any]:
        """Candidates with no cache entry, in input order.

        Candidates may be bare appids or objects with an ``appid`` attribute.
        """
        entries = self._entries
        return [
            candidate for candidate in candidates
            if getattr(candidate, "appid", candidate) not in entries
        ]

    def __contains__(self, appid: object) -> bool:
        return appid in self._entries

    def __len__(self) -> int:
        return len(self._entries)
