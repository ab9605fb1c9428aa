import argparse
import json
import logging
import sys
import time
from pathlib import Path

from gamemeta.client.cache import LocalCache, create_cache_engine
from gamemeta.client.cycles import GameRef, TagFetchCycle
from gamemeta.client.gateway import HttpSyncGateway
from gamemeta.client.scheduler import FetchScheduler
from gamemeta.client.sources import SteamSpyTagSource
from gamemeta.config.settings import get_settings
from gamemeta.db.enums import CacheKind, SchedulerState
from gamemeta.services.errors import SyncError

logger = logging.getLogger("gamemeta.scripts.run_scan")


def load_library(path: Path) -> list[GameRef]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        raise SystemExit("Library file must hold a JSON list of {appid, name} objects")

    games = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        appid = item.get("appid")
        name = item.get("name")
        if isinstance(appid, int) and isinstance(name, str) and name.strip():
            games.append(GameRef(appid=appid, name=name.strip()))
    return games


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Scan a game library for missing SteamSpy tags and share them with the backend."
    )
    parser.add_argument("library", type=Path, help="JSON file listing the library's games.")
    parser.add_argument("--token", default=None, help="Contributor bearer token for submissions.")
    parser.add_argument(
        "--delay",
        type=float,
        default=settings.tags_scan_delay_secs,
        help="Minimum seconds between two requests to SteamSpy.",
    )
    parser.add_argument("--cache-url", default=settings.client_cache_url, help="Local cache database URL.")
    parser.add_argument("--tick", type=float, default=1.0, help="Seconds between scheduler ticks.")
    args = parser.parse_args()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
    )

    games = load_library(args.library)
    gateway = HttpSyncGateway(token=args.token)
    cache = LocalCache(create_cache_engine(args.cache_url), CacheKind.TAGS)

    scheduler = FetchScheduler(
        TagFetchCycle(cache, gateway, SteamSpyTagSource()),
        subjects=lambda: games,
        min_interval=args.delay,
    )
    scheduler.start()

    try:
        while scheduler.state is SchedulerState.SCANNING:
            scheduler.tick(time.monotonic())
            time.sleep(args.tick)
    except KeyboardInterrupt:
        scheduler.stop()
    except SyncError as exc:
        scheduler.stop()
        raise SystemExit(f"Scan aborted: {exc}")

    current, total = scheduler.progress
    print(f"Done. Checked {current} / {total} games, {len(cache)} now cached.")


if __name__ == "__main__":
    main()
