"""The fetch-or-lookup cycle run for one game.

Order of lookups: local cache, then the shared backend, then the external
source. Whatever is obtained from the external source is submitted to the
backend and cached. A miss is never cached, so the game stays a candidate
for the next scan.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from gamemeta.client.cache import LocalCache
from gamemeta.client.gateway import SyncGateway
from gamemeta.client.sources import MetadataSource, clean_game_name_for_search
from gamemeta.db.enums import CycleOutcome, TtbField
from gamemeta.schemas.ttb import TtbStatsRead
from gamemeta.services.errors import ExternalSourceMiss, TransportFailure

logger = logging.getLogger("gamemeta.client.cycles")


@dataclass(frozen=True)
class GameRef:
    appid: int
    name: str


class FetchCycle(ABC):
    def __init__(self, cache: LocalCache, gateway: SyncGateway, source: MetadataSource) -> None:
        self.cache = cache
        self.gateway = gateway
        self.source = source

    def run(self, game: GameRef, search_query: str | None = None, refresh: bool = False) -> CycleOutcome:
        """Resolve metadata for ``game``.

        ``refresh`` skips the cache and backend lookups and goes straight to
        the external source. Transport and auth errors propagate.
        """
        if not refresh:
            if self.cache.get(game.appid) is not None:
                return CycleOutcome.CACHED

            snapshot = self.lookup_backend(game.appid)
            if snapshot is not None:
                self.cache.put(game.appid, snapshot)
                logger.info("%s for appid=%s found on backend", self.cache.kind.value, game.appid)
                return CycleOutcome.FROM_BACKEND

        query = search_query or clean_game_name_for_search(game.name)
        try:
            record = self.source.fetch(game.appid, query)
            snapshot = self.snapshot_from_record(record)
        except ExternalSourceMiss as exc:
            logger.info("No %s match for appid=%s query=%r: %s", self.cache.kind.value, game.appid, query, exc)
            return CycleOutcome.MISS

        if self.gateway.has_token:
            snapshot = self.submit(game, snapshot)
        else:
            logger.info("No contributor token, %s for appid=%s kept locally only", self.cache.kind.value, game.appid)

        self.cache.put(game.appid, snapshot)
        return CycleOutcome.FETCHED

    @abstractmethod
    def lookup_backend(self, appid: int) -> dict[str, Any] | None:
        """Snapshot already shared on the backend, or None."""

    @abstractmethod
    def snapshot_from_record(self, record: dict[str, Any]) -> dict[str, Any]:
        """Turn an external record into a cache snapshot; raise ExternalSourceMiss if it holds nothing."""

    @abstractmethod
    def submit(self, game: GameRef, snapshot: dict[str, Any]) -> dict[str, Any]:
        """Share the snapshot with the backend and return what should be cached."""


def ttb_snapshot(stats: TtbStatsRead) -> dict[str, Any]:
    return {
        TtbField.MAIN.value: stats.avg_main_seconds,
        TtbField.EXTRA.value: stats.avg_extra_seconds,
        TtbField.COMPLETIONIST.value: stats.avg_completionist_seconds,
        "report_count": stats.report_count,
    }


class TtbFetchCycle(FetchCycle):
    def lookup_backend(self, appid: int) -> dict[str, Any] | None:
        stats = self.gateway.get_aggregate(appid)
        return ttb_snapshot(stats) if stats is not None else None

    def snapshot_from_record(self, record: dict[str, Any]) -> dict[str, Any]:
        fields = {field.value: record.get(field.value) for field in TtbField}
        for name, value in fields.items():
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value) or value < 0:
                raise TransportFailure(f"Malformed {name} in source record: {value!r}")
        if all(value is None for value in fields.values()):
            raise ExternalSourceMiss("Match has no ttb times")
        return fields

    def submit(self, game: GameRef, snapshot: dict[str, Any]) -> dict[str, Any]:
        fields = {
            name: int(round(value)) if value is not None else None
            for name, value in snapshot.items()
        }
        # reports are only accepted for games the backend knows
        self.gateway.register_games([(game.appid, game.name)])
        stats = self.gateway.submit(game.appid, fields, game_name=game.name)
        return ttb_snapshot(stats) if stats is not None else snapshot


class TagFetchCycle(FetchCycle):
    def lookup_backend(self, appid: int) -> dict[str, Any] | None:
        tags = self.gateway.get_tags_batch([appid]).get(appid)
        if not tags:
            return None
        return {"tags": [[tag_name, vote_count] for tag_name, vote_count in tags]}

    def snapshot_from_record(self, record: dict[str, Any]) -> dict[str, Any]:
        tags = record.get("tags") or []
        if not tags:
            raise ExternalSourceMiss("Match has no tags")
        for tag in tags:
            if not isinstance(tag, (list, tuple)) or len(tag) != 2 or not isinstance(tag[0], str) or not isinstance(tag[1], int):
                raise TransportFailure(f"Malformed tag in source record: {tag!r}")
        return {"tags": [[tag_name, vote_count] for tag_name, vote_count in tags]}

    def submit(self, game: GameRef, snapshot: dict[str, Any]) -> dict[str, Any]:
        count = self.gateway.submit_tags(game.appid, [tuple(tag) for tag in snapshot["tags"]])
        logger.info("Submitted %d tags for appid=%s", count, game.appid)
        return snapshot
