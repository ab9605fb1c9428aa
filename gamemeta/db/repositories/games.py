from datetime import datetime, timezone

from sqlalchemy import select

from gamemeta.db.models.contributor import Contributor
from gamemeta.db.models.game import Game


def upsert_games(db, games: list[tuple[int, str]]):
    """Register games by appid; a differing name replaces the stored one."""
    if not games:
        return 0, 0

    existing = {
        game.appid: game
        for game in db.execute(
            select(Game).where(Game.appid.in_([appid for appid, _ in games]))
        ).scalars().all()
    }

    created = 0
    renamed = 0
    now = datetime.now(timezone.utc)
    for appid, name in games:
        game = existing.get(appid)
        if game is None:
            game = Game(appid=appid, name=name, name_updated_at=now)
            db.add(game)
            existing[appid] = game
            created += 1
        elif game.name != name:
            game.name = name
            game.name_updated_at = now
            renamed += 1

    return created, renamed


def get_contributor_by_steam_id(db, steam_id: str):
    return db.execute(
        select(Contributor).where(Contributor.steam_id == steam_id)
    ).scalar_one_or_none()
