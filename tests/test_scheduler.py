"""Tests for the fetch cycles and the scan scheduler driving them."""

from __future__ import annotations

import pytest

from conftest import FakeGateway, FakeSource
from gamemeta.client.cache import LocalCache, create_cache_engine
from gamemeta.client.cycles import FetchCycle, GameRef, TagFetchCycle, TtbFetchCycle
from gamemeta.client.scheduler import FetchScheduler
from gamemeta.db.enums import CacheKind, CycleOutcome, SchedulerState
from gamemeta.schemas.ttb import TtbStatsRead
from gamemeta.services.errors import TransportFailure, Unauthorized

GAMES = [GameRef(400, "Portal"), GameRef(620, "Portal 2"), GameRef(1145360, "Hades")]


def ttb_record(main: float) -> dict:
    return {"main_seconds": main, "extra_seconds": None, "completionist_seconds": None}


def make_scheduler(cache, gateway, source, games=GAMES, min_interval=60.0, blacklist=None) -> FetchScheduler:
    cycle = TtbFetchCycle(cache, gateway, source)
    return FetchScheduler(cycle, lambda: list(games), min_interval=min_interval, blacklist=blacklist)


# ---------------------------------------------------------------------------
# Single cycle
# ---------------------------------------------------------------------------


class TestTtbFetchCycle:
    def test_cache_hit_skips_everything(self, ttb_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        ttb_cache.put(400, {"main_seconds": 1.0})
        outcome = TtbFetchCycle(ttb_cache, fake_gateway, fake_source).run(GAMES[0])
        assert outcome is CycleOutcome.CACHED
        assert fake_source.calls == []

    def test_backend_hit_is_cached_without_fetch(self, ttb_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        fake_gateway.aggregates[400] = TtbStatsRead(appid=400, avg_main_seconds=5400.0, report_count=4)
        outcome = TtbFetchCycle(ttb_cache, fake_gateway, fake_source).run(GAMES[0])

        assert outcome is CycleOutcome.FROM_BACKEND
        assert fake_source.calls == []
        assert ttb_cache.get(400).snapshot["main_seconds"] == 5400.0
        assert ttb_cache.get(400).snapshot["report_count"] == 4

    def test_fetch_submits_then_caches(self, ttb_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        fake_source.records[400] = ttb_record(7200.4)
        outcome = TtbFetchCycle(ttb_cache, fake_gateway, fake_source).run(GAMES[0])

        assert outcome is CycleOutcome.FETCHED
        assert fake_source.calls == [(400, "Portal")]
        assert fake_gateway.submitted == [
            (400, {"main_seconds": 7200, "extra_seconds": None, "completionist_seconds": None})
        ]
        assert fake_gateway.games == {400: "Portal"}
        assert ttb_cache.get(400).snapshot["main_seconds"] == 7200

    def test_without_token_kept_locally(self, ttb_cache: LocalCache, fake_source: FakeSource) -> None:
        gateway = FakeGateway(token=None)
        fake_source.records[400] = ttb_record(60.0)
        outcome = TtbFetchCycle(ttb_cache, gateway, fake_source).run(GAMES[0])

        assert outcome is CycleOutcome.FETCHED
        assert gateway.submitted == []
        assert ttb_cache.get(400).snapshot["main_seconds"] == 60.0

    def test_miss_is_not_cached(self, ttb_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        outcome = TtbFetchCycle(ttb_cache, fake_gateway, fake_source).run(GAMES[0])
        assert outcome is CycleOutcome.MISS
        assert 400 not in ttb_cache

    def test_search_query_defaults_to_cleaned_name(self, ttb_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        game = GameRef(1, "Assassin's Creed® II: Deluxe")
        TtbFetchCycle(ttb_cache, fake_gateway, fake_source).run(game)
        assert fake_source.calls == [(1, "Assassin Creed® II Deluxe")]

    def test_fetch_cycle_is_abstract(self, ttb_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        with pytest.raises(TypeError):
            FetchCycle(ttb_cache, fake_gateway, fake_source)

    @pytest.mark.parametrize("value", ["2h", True, -5, float("nan"), [60]])
    def test_malformed_record_is_transport_failure(
        self, ttb_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource, value: object
    ) -> None:
        fake_source.records[400] = {"main_seconds": value}
        with pytest.raises(TransportFailure):
            TtbFetchCycle(ttb_cache, fake_gateway, fake_source).run(GAMES[0])
        assert fake_gateway.submitted == []
        assert 400 not in ttb_cache

    def test_refresh_ignores_cache(self, ttb_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        ttb_cache.put(400, {"main_seconds": 1.0})
        fake_source.records[400] = ttb_record(99.0)
        outcome = TtbFetchCycle(ttb_cache, fake_gateway, fake_source).run(GAMES[0], search_query="portal", refresh=True)

        assert outcome is CycleOutcome.FETCHED
        assert fake_source.calls == [(400, "portal")]
        assert ttb_cache.get(400).snapshot["main_seconds"] == 99


class TestTagFetchCycle:
    def test_fetch_submits_tags(self, tags_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        fake_source.records[400] = {"tags": [("Puzzle", 100), ("Funny", 20)]}
        outcome = TagFetchCycle(tags_cache, fake_gateway, fake_source).run(GAMES[0])

        assert outcome is CycleOutcome.FETCHED
        assert fake_gateway.tags[400] == [("Puzzle", 100), ("Funny", 20)]
        assert tags_cache.get(400).snapshot == {"tags": [["Puzzle", 100], ["Funny", 20]]}

    def test_malformed_tags(self, tags_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        fake_source.records[400] = {"tags": [("Puzzle", "many")]}
        with pytest.raises(TransportFailure):
            TagFetchCycle(tags_cache, fake_gateway, fake_source).run(GAMES[0])
        assert 400 not in tags_cache

    def test_backend_tags_used(self, tags_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        fake_gateway.tags[400] = [("Puzzle", 3)]
        outcome = TagFetchCycle(tags_cache, fake_gateway, fake_source).run(GAMES[0])
        assert outcome is CycleOutcome.FROM_BACKEND
        assert fake_source.calls == []


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------


class TestFetchScheduler:
    def test_idle_until_started(self, ttb_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        scheduler = make_scheduler(ttb_cache, fake_gateway, fake_source)
        assert scheduler.state is SchedulerState.IDLE
        assert scheduler.tick(0.0) is None
        assert fake_source.calls == []

    def test_one_cycle_per_interval(self, ttb_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        scheduler = make_scheduler(ttb_cache, fake_gateway, fake_source, min_interval=60.0)
        assert scheduler.start()

        assert scheduler.tick(1000.0) is CycleOutcome.MISS
        assert scheduler.tick(1030.0) is None
        assert scheduler.tick(1059.9) is None
        assert len(fake_source.calls) == 1
        assert scheduler.cursor == 1

        assert scheduler.tick(1060.0) is CycleOutcome.MISS
        assert len(fake_source.calls) == 2

    def test_full_scan_then_idle(self, ttb_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        fake_source.records = {400: ttb_record(10.0), 620: ttb_record(20.0), 1145360: ttb_record(30.0)}
        scheduler = make_scheduler(ttb_cache, fake_gateway, fake_source, min_interval=1.0)
        scheduler.start()

        outcomes = [scheduler.tick(float(now)) for now in range(3)]
        assert outcomes == [CycleOutcome.FETCHED] * 3
        assert scheduler.progress == (3, 3)
        assert scheduler.state is SchedulerState.SCANNING

        assert scheduler.tick(10.0) is None
        assert scheduler.state is SchedulerState.IDLE
        assert len(ttb_cache) == 3

    def test_backlog_skips_cached_games(self, ttb_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        ttb_cache.put(620, {"main_seconds": 1.0})
        scheduler = make_scheduler(ttb_cache, fake_gateway, fake_source)
        scheduler.start()
        assert [game.appid for game in scheduler.backlog] == [400, 1145360]

    def test_blacklisted_games_excluded(self, ttb_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        scheduler = make_scheduler(ttb_cache, fake_gateway, fake_source, blacklist=lambda: [620])
        scheduler.start()
        assert [game.appid for game in scheduler.backlog] == [400, 1145360]

    def test_start_while_scanning(self, ttb_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        scheduler = make_scheduler(ttb_cache, fake_gateway, fake_source)
        assert scheduler.start() is True
        scheduler.tick(0.0)
        assert scheduler.start() is False
        assert scheduler.cursor == 1

    def test_restart_never_refetches_resolved_games(self, ttb_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        fake_source.records = {400: ttb_record(10.0), 620: ttb_record(20.0), 1145360: ttb_record(30.0)}
        scheduler = make_scheduler(ttb_cache, fake_gateway, fake_source, min_interval=0.0)
        scheduler.start()
        scheduler.tick(0.0)
        scheduler.stop()
        assert scheduler.state is SchedulerState.STOPPED
        assert scheduler.tick(1.0) is None

        scheduler.start()
        while scheduler.tick(2.0) is not None:
            pass

        fetched = [appid for appid, _ in fake_source.calls]
        assert fetched == [400, 620, 1145360]

    def test_stop_during_cycle(self, ttb_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        fake_source.records = {400: ttb_record(10.0), 620: ttb_record(20.0)}
        scheduler = make_scheduler(ttb_cache, fake_gateway, fake_source)
        fake_source.on_fetch = lambda appid: scheduler.stop()
        scheduler.start()

        assert scheduler.tick(0.0) is CycleOutcome.FETCHED
        assert scheduler.state is SchedulerState.STOPPED
        assert scheduler.cursor == 0
        assert scheduler.last_request_time is None
        # the in-flight result still lands in the cache
        assert 400 in ttb_cache

    def test_reentrant_tick_ignored(self, ttb_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        scheduler = make_scheduler(ttb_cache, fake_gateway, fake_source, min_interval=0.0)
        nested = []
        fake_source.on_fetch = lambda appid: nested.append(scheduler.tick(0.0))
        scheduler.start()

        scheduler.tick(0.0)
        assert nested == [None]
        assert scheduler.cursor == 1

    def test_transport_failure_moves_on(self, ttb_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        fake_source.records = {400: TransportFailure("timed out"), 620: ttb_record(20.0)}
        scheduler = make_scheduler(ttb_cache, fake_gateway, fake_source, min_interval=5.0)
        scheduler.start()

        assert scheduler.tick(0.0) is CycleOutcome.FAILED
        assert scheduler.last_request_time == 0.0
        assert scheduler.tick(1.0) is None
        assert scheduler.tick(5.0) is CycleOutcome.FETCHED
        assert 400 not in ttb_cache
        assert 620 in ttb_cache

    def test_unauthorized_propagates(self, ttb_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        fake_source.records = {400: ttb_record(10.0)}
        fake_gateway.submit_error = Unauthorized("Token expired")
        scheduler = make_scheduler(ttb_cache, fake_gateway, fake_source)
        scheduler.start()

        with pytest.raises(Unauthorized):
            scheduler.tick(0.0)
        assert 400 not in ttb_cache
        assert scheduler.cursor == 1

    def test_fetch_one_ignores_interval(self, ttb_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        fake_source.records = {400: ttb_record(10.0), 620: ttb_record(20.0)}
        scheduler = make_scheduler(ttb_cache, fake_gateway, fake_source)
        scheduler.start()
        scheduler.tick(0.0)

        assert scheduler.fetch_one(GAMES[1]) is CycleOutcome.FETCHED
        assert scheduler.last_outcome is CycleOutcome.FETCHED
        assert scheduler.cursor == 1

    def test_fetch_one_errors_propagate(self, ttb_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        fake_source.records = {400: TransportFailure("boom")}
        scheduler = make_scheduler(ttb_cache, fake_gateway, fake_source)
        with pytest.raises(TransportFailure):
            scheduler.fetch_one(GAMES[0])

    def test_malformed_record_moves_on(self, ttb_cache: LocalCache, fake_source: FakeSource) -> None:
        gateway = FakeGateway(token=None)
        fake_source.records = {400: {"main_seconds": "2h"}, 620: ttb_record(20.0)}
        scheduler = make_scheduler(ttb_cache, gateway, fake_source, min_interval=1.0)
        scheduler.start()

        assert scheduler.tick(0.0) is CycleOutcome.FAILED
        assert scheduler.tick(1.0) is CycleOutcome.FETCHED
        assert 400 not in ttb_cache
        assert ttb_cache.get(620).snapshot["main_seconds"] == 20.0

    def test_unregistered_game_is_registered_before_submit(
        self, ttb_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource
    ) -> None:
        fake_source.records = {620: ttb_record(30600.0)}
        scheduler = make_scheduler(ttb_cache, fake_gateway, fake_source, games=[GameRef(620, "Portal 2")])
        scheduler.start()

        assert scheduler.tick(0.0) is CycleOutcome.FETCHED
        assert fake_gateway.games == {620: "Portal 2"}
        assert 620 in ttb_cache

    def test_empty_cache_argument_is_kept(self, ttb_cache: LocalCache, fake_gateway: FakeGateway, fake_source: FakeSource) -> None:
        ttb_cache.put(400, {"main_seconds": 1.0})
        own = LocalCache(create_cache_engine("sqlite://"), CacheKind.TTB)
        cycle = TtbFetchCycle(ttb_cache, fake_gateway, fake_source)
        scheduler = FetchScheduler(cycle, lambda: list(GAMES), cache=own)

        scheduler.start()
        # the backlog comes from the cache that was passed in, even while it is empty
        assert [game.appid for game in scheduler.backlog] == [400, 620, 1145360]
