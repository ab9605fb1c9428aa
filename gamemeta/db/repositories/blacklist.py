from datetime import datetime, timezone

from sqlalchemy import select

from gamemeta.db.models.ttb_blacklist import TtbBlacklistEntry


def get_blacklisted_appids(db) -> list[int]:
    return db.execute(
        select(TtbBlacklistEntry.appid)
        .order_by(TtbBlacklistEntry.created_at.desc(), TtbBlacklistEntry.appid)
    ).scalars().all()


def add_to_blacklist(db, appid: int, game_name: str, reason: str | None, added_by_contributor_id: int | None):
    entry = db.get(TtbBlacklistEntry, appid)
    if entry is None:
        entry = TtbBlacklistEntry(appid=appid)
        db.add(entry)

    entry.game_name = game_name
    entry.reason = reason
    entry.added_by_contributor_id = added_by_contributor_id
    entry.created_at = datetime.now(timezone.utc)
    return entry


def remove_from_blacklist(db, appid: int) -> bool:
    entry = db.get(TtbBlacklistEntry, appid)
    if entry is None:
        return False
    db.delete(entry)
    return True
