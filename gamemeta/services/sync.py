import logging

from sqlalchemy.orm import Session

from gamemeta.auth.tokens import decode_token
from gamemeta.config.settings import get_settings
from gamemeta.db.models.contributor import Contributor
from gamemeta.db.models.game_ttb_stats import GameTtbStats
from gamemeta.db.repositories.games import get_contributor_by_steam_id, upsert_games
from gamemeta.db.repositories.tags import get_tags_for_games, list_tag_names, upsert_game_tags
from gamemeta.db.repositories.ttb import get_own_record, get_ttb_stats, get_ttb_stats_batch
from gamemeta.services.observation_store import delete_observation, submit_observation
from gamemeta.services.errors import UnknownEntity

logger = logging.getLogger("gamemeta.sync")


def _cap(appids: list[int], limit: int | None) -> list[int]:
    limit = limit if limit is not None else get_settings().batch_limit
    unique = list(dict.fromkeys(appids))
    return unique[:limit]


def authenticate(db: Session, token: str | None) -> Contributor:
    steam_id = decode_token(token)
    contributor = get_contributor_by_steam_id(db, steam_id)
    if contributor is None:
        raise UnknownEntity("contributor", steam_id)
    return contributor


def submit(db: Session, token: str | None, appid: int, fields: dict, game_name: str | None = None) -> GameTtbStats | None:
    contributor = authenticate(db, token)
    logger.info("ttb submitted steam_id=%s appid=%s game_name=%s", contributor.steam_id, appid, game_name)
    return submit_observation(db, contributor.id, appid, fields, game_name=game_name)


def withdraw(db: Session, token: str | None, appid: int) -> GameTtbStats | None:
    contributor = authenticate(db, token)
    return delete_observation(db, contributor.id, appid)


def own_record(db: Session, token: str | None, appid: int):
    contributor = authenticate(db, token)
    return get_own_record(db, contributor.id, appid)


def get_aggregate(db: Session, appid: int) -> GameTtbStats | None:
    return get_ttb_stats(db, appid)


def get_aggregates_batch(db: Session, appids: list[int], limit: int | None = None) -> dict[int, GameTtbStats]:
    """Aggregates for the requested games; games without one are left out."""
    return get_ttb_stats_batch(db, _cap(appids, limit))


def list_labels(db: Session) -> list[str]:
    return list(list_tag_names(db))


def get_tags_batch(db: Session, appids: list[int], limit: int | None = None) -> dict[int, list[tuple[str, int]]]:
    return get_tags_for_games(db, _cap(appids, limit))


def submit_tags(db: Session, token: str | None, appid: int, tags: list[tuple[str, int]]) -> int:
    contributor = authenticate(db, token)
    logger.info("tags submitted steam_id=%s appid=%s tag_count=%s", contributor.steam_id, appid, len(tags))
    try:
        count = upsert_game_tags(db, appid, tags)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return count


def register_games(db: Session, games: list[tuple[int, str]]) -> tuple[int, int]:
    """Make games known to the server so reports for them are accepted."""
    try:
        created, renamed = upsert_games(db, games)
        db.commit()
    except Exception:
        db.rollback()
        raise
    if created or renamed:
        logger.info("games registered created=%s renamed=%s", created, renamed)
    return created, renamed
