"""Polite, resumable scanning of games that still lack metadata.

The scheduler never runs on its own: the host calls ``tick(now)`` from its
own loop (a UI frame, a timer) and each tick performs at most one
fetch-or-lookup cycle. At most one external request is made per
``min_interval`` while scanning, failed or not.

Nothing about a scan is persisted. ``start()`` rebuilds the backlog from the
cache, so a scan restarted after ``stop()`` or a crash skips every game that
was resolved before and retries everything else.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable

from gamemeta.client.cache import LocalCache
from gamemeta.client.cycles import FetchCycle, GameRef
from gamemeta.db.enums import CycleOutcome, SchedulerState
from gamemeta.services.errors import TransportFailure, Unauthorized

logger = logging.getLogger("gamemeta.client.scheduler")

DEFAULT_MIN_INTERVAL = 60.0


class FetchScheduler:
    def __init__(
        self,
        cycle: FetchCycle,
        subjects: Callable[[], Iterable[GameRef]],
        cache: LocalCache | None = None,
        min_interval: float = DEFAULT_MIN_INTERVAL,
        blacklist: Callable[[], Iterable[int]] | None = None,
    ) -> None:
        self._cycle = cycle
        self._subjects = subjects
        self._cache = cache if cache is not None else cycle.cache
        self._blacklist = blacklist
        self.min_interval = min_interval

        self._state = SchedulerState.IDLE
        self._backlog: list[GameRef] = []
        self._cursor = 0
        self._last_request_time: float | None = None
        self._generation = 0
        self._in_tick = False
        self._lock = threading.Lock()
        self.last_outcome: CycleOutcome | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def backlog(self) -> list[GameRef]:
        return list(self._backlog)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def last_request_time(self) -> float | None:
        return self._last_request_time

    @property
    def progress(self) -> tuple[int, int]:
        return self._cursor, len(self._backlog)

    def start(self) -> bool:
        """Begin a scan over every known game missing from the cache.

        Returns False (and changes nothing) when a scan is already running.
        """
        with self._lock:
            if self._state is SchedulerState.SCANNING:
                return False

            backlog = self._cache.subjects_missing(self._subjects())
            if self._blacklist is not None:
                excluded = set(self._blacklist())
                backlog = [game for game in backlog if game.appid not in excluded]

            self._generation += 1
            self._backlog = backlog
            self._cursor = 0
            self._last_request_time = None
            self._state = SchedulerState.SCANNING

        logger.info("%s scan started: %d games to check", self._cache.kind.value, len(backlog))
        return True

    def stop(self) -> None:
        with self._lock:
            was_scanning = self._state is SchedulerState.SCANNING
            self._generation += 1
            self._backlog = []
            self._cursor = 0
            self._state = SchedulerState.STOPPED
        if was_scanning:
            logger.info("%s scan cancelled", self._cache.kind.value)

    def tick(self, now: float) -> CycleOutcome | None:
        """Advance the scan by at most one game.

        Returns the outcome of the cycle that ran, or None when the tick was a
        no-op (not scanning, scan just finished, politeness window not yet
        elapsed). Unauthorized is re-raised after the tick's bookkeeping so
        the host can ask the user to sign in again.
        """
        if self._in_tick:
            logger.warning("tick() re-entered while a cycle is in flight, ignoring")
            return None

        with self._lock:
            if self._state is not SchedulerState.SCANNING:
                return None
            if self._cursor >= len(self._backlog):
                self._state = SchedulerState.IDLE
                logger.info("%s scan complete", self._cache.kind.value)
                return None
            if self._last_request_time is not None and now - self._last_request_time < self.min_interval:
                return None

            game = self._backlog[self._cursor]
            generation = self._generation

        logger.info(
            "%s scan %d / %d: appid=%s %s",
            self._cache.kind.value,
            self._cursor + 1,
            len(self._backlog),
            game.appid,
            game.name,
        )

        self._in_tick = True
        outcome = CycleOutcome.FAILED
        try:
            outcome = self._cycle.run(game)
        except TransportFailure as exc:
            logger.warning("%s fetch failed for appid=%s: %s", self._cache.kind.value, game.appid, exc)
        except Unauthorized:
            logger.warning("Contributor token rejected while submitting appid=%s", game.appid)
            raise
        finally:
            self._in_tick = False
            with self._lock:
                # stop() (and maybe a new start()) happened while the cycle ran
                if generation == self._generation:
                    self._cursor += 1
                    self._last_request_time = now
            self.last_outcome = outcome

        return outcome

    def fetch_one(self, game: GameRef, search_query: str | None = None, refresh: bool = False) -> CycleOutcome:
        """Resolve a single game right away, outside any scan.

        Ignores the backlog and the politeness interval. Errors propagate to
        the caller, who asked for this game explicitly.
        """
        logger.info("Fetching %s for appid=%s (%s)", self._cache.kind.value, game.appid, game.name)
        outcome = self._cycle.run(game, search_query=search_query, refresh=refresh)
        self.last_outcome = outcome
        return outcome
