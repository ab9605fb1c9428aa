from gamemeta.db.models.game_ttb_stats import GameTtbStats
from gamemeta.db.models.library_entry import LibraryEntry
from sqlalchemy import select


def get_ttb_stats(db, appid: int):
    return db.get(GameTtbStats, appid)


def get_ttb_stats_batch(db, appids: list[int]):
    if not appids:
        return {}

    rows = db.execute(
        select(GameTtbStats)
        .where(GameTtbStats.appid.in_(appids))
    ).scalars().all()

    return {stats.appid: stats for stats in rows}


def get_own_record(db, contributor_id: int, appid: int):
    entry = db.get(LibraryEntry, (contributor_id, appid))
    if entry is None or entry.my_reported_at is None:
        return None
    return entry
