from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from sqlalchemy.orm import Session

from gamemeta.client.http import request_json
from gamemeta.config.settings import get_settings
from gamemeta.schemas.ttb import TtbStatsRead
from gamemeta.services import sync
from gamemeta.services.errors import TransportFailure
from gamemeta.db.repositories.blacklist import get_blacklisted_appids

logger = logging.getLogger("gamemeta.client.gateway")


class SyncGateway(Protocol):
    """Client view of the shared metadata backend."""

    @property
    def has_token(self) -> bool: ...

    def register_games(self, games: list[tuple[int, str]]) -> tuple[int, int]: ...

    def submit(self, appid: int, fields: dict, game_name: str | None = None) -> TtbStatsRead | None: ...

    def withdraw(self, appid: int) -> TtbStatsRead | None: ...

    def get_aggregate(self, appid: int) -> TtbStatsRead | None: ...

    def get_aggregates_batch(self, appids: list[int]) -> dict[int, TtbStatsRead]: ...

    def list_labels(self) -> list[str]: ...

    def get_tags_batch(self, appids: list[int]) -> dict[int, list[tuple[str, int]]]: ...

    def submit_tags(self, appid: int, tags: list[tuple[str, int]]) -> int: ...

    def get_blacklist(self) -> list[int]: ...


def _chunks(values: list[int], size: int):
    for start in range(0, len(values), size):
        yield values[start:start + size]


class HttpSyncGateway:
    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        batch_limit: int | None = None,
    ) -> None:
        settings = get_settings()
        self._base_url = (base_url or settings.backend_url).rstrip("/")
        self._token = token
        self._timeout = timeout if timeout is not None else settings.http_timeout_secs
        self._batch_limit = batch_limit or settings.batch_limit
        self._user_agent = settings.user_agent

    @property
    def has_token(self) -> bool:
        return bool(self._token)

    def _call(self, method: str, path: str, payload: object | None = None, auth: bool = False) -> object:
        logger.debug("%s %s%s", method, self._base_url, path)
        return request_json(
            f"{self._base_url}{path}",
            method=method,
            payload=payload,
            token=self._token if auth else None,
            timeout=self._timeout,
            user_agent=self._user_agent,
        )

    @staticmethod
    def _stats(data: object) -> TtbStatsRead | None:
        if data is None:
            return None
        if not isinstance(data, dict):
            raise TransportFailure("Unexpected ttb response shape")
        return TtbStatsRead.model_validate(data)

    def register_games(self, games: list[tuple[int, str]]) -> tuple[int, int]:
        created = renamed = 0
        for start in range(0, len(games), self._batch_limit):
            chunk = games[start:start + self._batch_limit]
            body = {"games": [{"appid": appid, "name": name} for appid, name in chunk]}
            data = self._call("POST", "/games/batch", body)
            if not isinstance(data, dict):
                raise TransportFailure("Unexpected games batch response shape")
            created += int(data.get("created", 0))
            renamed += int(data.get("renamed", 0))
        return created, renamed

    def submit(self, appid: int, fields: dict, game_name: str | None = None) -> TtbStatsRead | None:
        body = {"appid": appid, "game_name": game_name, **fields}
        data = self._call("POST", "/ttb/", body, auth=True)
        if not isinstance(data, dict):
            raise TransportFailure("Unexpected ttb submit response shape")
        return self._stats(data.get("stats"))

    def withdraw(self, appid: int) -> TtbStatsRead | None:
        data = self._call("DELETE", f"/ttb/{appid}", auth=True)
        if not isinstance(data, dict):
            raise TransportFailure("Unexpected ttb delete response shape")
        return self._stats(data.get("stats"))

    def get_aggregate(self, appid: int) -> TtbStatsRead | None:
        return self._stats(self._call("GET", f"/ttb/{appid}"))

    def get_aggregates_batch(self, appids: list[int]) -> dict[int, TtbStatsRead]:
        result: dict[int, TtbStatsRead] = {}
        for chunk in _chunks(list(appids), self._batch_limit):
            data = self._call("POST", "/ttb/batch", {"appids": chunk})
            if not isinstance(data, dict):
                raise TransportFailure("Unexpected ttb batch response shape")
            for appid, stats in data.items():
                result[int(appid)] = TtbStatsRead.model_validate(stats)
        return result

    def list_labels(self) -> list[str]:
        data = self._call("GET", "/tags/")
        if not isinstance(data, dict) or not isinstance(data.get("tags"), list):
            raise TransportFailure("Unexpected tag names response shape")
        return [str(tag) for tag in data["tags"]]

    def get_tags_batch(self, appids: list[int]) -> dict[int, list[tuple[str, int]]]:
        result: dict[int, list[tuple[str, int]]] = {}
        for chunk in _chunks(list(appids), self._batch_limit):
            data = self._call("POST", "/tags/batch", {"appids": chunk})
            if not isinstance(data, dict) or not isinstance(data.get("tags"), dict):
                raise TransportFailure("Unexpected tags batch response shape")
            for appid, tags in data["tags"].items():
                result[int(appid)] = [(tag["tag_name"], int(tag["vote_count"])) for tag in tags]
        return result

    def submit_tags(self, appid: int, tags: list[tuple[str, int]]) -> int:
        body = {
            "appid": appid,
            "tags": [{"tag_name": tag_name, "vote_count": vote_count} for tag_name, vote_count in tags],
        }
        data = self._call("POST", "/tags/", body, auth=True)
        if not isinstance(data, dict):
            raise TransportFailure("Unexpected tags submit response shape")
        return int(data.get("count", 0))

    def get_blacklist(self) -> list[int]:
        data = self._call("GET", "/ttb/blacklist")
        if not isinstance(data, dict) or not isinstance(data.get("appids"), list):
            raise TransportFailure("Unexpected blacklist response shape")
        return [int(appid) for appid in data["appids"]]


class LocalSyncGateway:
    """Gateway that talks to the server functions in-process.

    Used when client and backend share a process (tests, single-user setups).
    Every call runs in its own session, like a request would.
    """

    def __init__(self, session_factory: Callable[[], Session], token: str | None = None) -> None:
        self._session_factory = session_factory
        self._token = token
        self._batch_limit = get_settings().batch_limit

    @property
    def has_token(self) -> bool:
        return bool(self._token)

    @staticmethod
    def _stats(stats) -> TtbStatsRead | None:
        return TtbStatsRead.model_validate(stats) if stats is not None else None

    def register_games(self, games: list[tuple[int, str]]) -> tuple[int, int]:
        with self._session_factory() as db:
            return sync.register_games(db, games)

    def submit(self, appid: int, fields: dict, game_name: str | None = None) -> TtbStatsRead | None:
        with self._session_factory() as db:
            return self._stats(sync.submit(db, self._token, appid, fields, game_name=game_name))

    def withdraw(self, appid: int) -> TtbStatsRead | None:
        with self._session_factory() as db:
            return self._stats(sync.withdraw(db, self._token, appid))

    def get_aggregate(self, appid: int) -> TtbStatsRead | None:
        with self._session_factory() as db:
            return self._stats(sync.get_aggregate(db, appid))

    def get_aggregates_batch(self, appids: list[int]) -> dict[int, TtbStatsRead]:
        result: dict[int, TtbStatsRead] = {}
        with self._session_factory() as db:
            for chunk in _chunks(list(appids), self._batch_limit):
                for appid, stats in sync.get_aggregates_batch(db, chunk).items():
                    result[appid] = TtbStatsRead.model_validate(stats)
        return result

    def list_labels(self) -> list[str]:
        with self._session_factory() as db:
            return sync.list_labels(db)

    def get_tags_batch(self, appids: list[int]) -> dict[int, list[tuple[str, int]]]:
        result: dict[int, list[tuple[str, int]]] = {}
        with self._session_factory() as db:
            for chunk in _chunks(list(appids), self._batch_limit):
                result.update(sync.get_tags_batch(db, chunk))
        return result

    def submit_tags(self, appid: int, tags: list[tuple[str, int]]) -> int:
        with self._session_factory() as db:
            return sync.submit_tags(db, self._token, appid, tags)

    def get_blacklist(self) -> list[int]:
        with self._session_factory() as db:
            return list(get_blacklisted_appids(db))
