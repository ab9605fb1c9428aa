from datetime import datetime, timezone

from sqlalchemy import select

from gamemeta.db.models.game_tag import GameTag


def list_tag_names(db):
    return db.execute(
        select(GameTag.tag_name)
        .distinct()
        .order_by(GameTag.tag_name)
    ).scalars().all()


def get_tags_for_games(db, appids: list[int]):
    if not appids:
        return {}

    rows = db.execute(
        select(GameTag.appid, GameTag.tag_name, GameTag.vote_count)
        .where(GameTag.appid.in_(appids))
        .order_by(GameTag.appid, GameTag.vote_count.desc(), GameTag.tag_name)
    ).all()

    tags_by_appid: dict[int, list[tuple[str, int]]] = {}
    for appid, tag_name, vote_count in rows:
        tags_by_appid.setdefault(appid, []).append((tag_name, vote_count))
    return tags_by_appid


def upsert_game_tags(db, appid: int, tags: list[tuple[str, int]]) -> int:
    """Last write wins per (appid, tag_name); tags absent from the list are kept."""
    if not tags:
        return 0

    now = datetime.now(timezone.utc)
    existing = {
        tag.tag_name: tag
        for tag in db.execute(
            select(GameTag).where(
                GameTag.appid == appid,
                GameTag.tag_name.in_([tag_name for tag_name, _ in tags]),
            )
        ).scalars().all()
    }

    count = 0
    for tag_name, vote_count in tags:
        row = existing.get(tag_name)
        if row is None:
            row = GameTag(appid=appid, tag_name=tag_name, vote_count=vote_count, updated_at=now)
            db.add(row)
            existing[tag_name] = row
        else:
            row.vote_count = vote_count
            row.updated_at = now
        count += 1

    return count
