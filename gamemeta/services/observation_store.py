import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from gamemeta.db.enums import TtbField
from gamemeta.db.models.contributor import Contributor
from gamemeta.db.models.game import Game
from gamemeta.db.models.game_ttb_stats import GameTtbStats
from gamemeta.db.models.ttb_report import TtbReport
from gamemeta.services.aggregate_maintainer import recompute
from gamemeta.services.errors import EmptyObservation, UnknownEntity

logger = logging.getLogger("gamemeta.observation_store")


def _lock_game(db: Session, appid: int) -> Game | None:
    # Row lock on the game serializes every report mutation for that game,
    # mutations on other games are not blocked.
    return db.execute(
        select(Game).where(Game.appid == appid).with_for_update()
    ).scalar_one_or_none()


def _require_contributor(db: Session, contributor_id: int) -> Contributor:
    contributor = db.get(Contributor, contributor_id)
    if contributor is None:
        raise UnknownEntity("contributor", contributor_id)
    return contributor


def _normalize_fields(fields: dict) -> dict[TtbField, int | None]:
    normalized = {}
    for field in TtbField:
        value = fields.get(field.value)
        normalized[field] = int(value) if value is not None else None
    return normalized


def _same_values(report: TtbReport, fields: dict[TtbField, int | None]) -> bool:
    return all(getattr(report, field.value) == value for field, value in fields.items())


def submit_observation(
    db: Session,
    contributor_id: int,
    appid: int,
    fields: dict,
    game_name: str | None = None,
) -> GameTtbStats | None:
    """Upsert a contributor's ttb report and return the refreshed aggregate.

    The report, the game aggregate and the contributor's library mirror are
    written in one transaction. Resubmitting the same values changes nothing.
    """
    normalized = _normalize_fields(fields)
    if all(value is None for value in normalized.values()):
        raise EmptyObservation(f"No ttb field supplied for appid {appid}")

    try:
        _require_contributor(db, contributor_id)
        game = _lock_game(db, appid)
        if game is None:
            raise UnknownEntity("game", appid)

        if game_name and game.name != game_name:
            game.name = game_name
            game.name_updated_at = datetime.now(timezone.utc)

        report = db.execute(
            select(TtbReport).where(
                TtbReport.contributor_id == contributor_id,
                TtbReport.appid == appid,
            )
        ).scalar_one_or_none()

        if report is not None and _same_values(report, normalized):
            db.commit()
            return db.get(GameTtbStats, appid)

        now = datetime.now(timezone.utc)
        if report is None:
            report = TtbReport(contributor_id=contributor_id, appid=appid, reported_at=now)
            db.add(report)
        else:
            report.reported_at = now
        for field, value in normalized.items():
            setattr(report, field.value, value)
        db.flush()

        stats = recompute(db, appid, contributor_id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "ttb report stored contributor_id=%s appid=%s report_count=%s",
        contributor_id,
        appid,
        stats.report_count if stats is not None else 0,
    )
    return stats


def delete_observation(db: Session, contributor_id: int, appid: int) -> GameTtbStats | None:
    """Remove a contributor's report for a game; a missing report is a no-op."""
    try:
        _require_contributor(db, contributor_id)
        game = _lock_game(db, appid)
        if game is None:
            raise UnknownEntity("game", appid)

        stats = _delete_report(db, contributor_id, appid)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return stats


def _delete_report(db: Session, contributor_id: int, appid: int) -> GameTtbStats | None:
    report = db.execute(
        select(TtbReport).where(
            TtbReport.contributor_id == contributor_id,
            TtbReport.appid == appid,
        )
    ).scalar_one_or_none()
    if report is None:
        return db.get(GameTtbStats, appid)

    db.delete(report)
    db.flush()
    logger.info("ttb report deleted contributor_id=%s appid=%s", contributor_id, appid)
    return recompute(db, appid, contributor_id)


def delete_contributor(db: Session, contributor_id: int) -> list[int]:
    """Delete a contributor and every report they own.

    Each report goes through the same per-game path as a single delete so
    the aggregates of every affected game are rebuilt before the account row
    disappears. Returns the appids whose aggregates changed.
    """
    try:
        contributor = _require_contributor(db, contributor_id)
        appids = db.execute(
            select(TtbReport.appid)
            .where(TtbReport.contributor_id == contributor_id)
            .order_by(TtbReport.appid)
        ).scalars().all()

        for appid in appids:
            _lock_game(db, appid)
            _delete_report(db, contributor_id, appid)

        db.delete(contributor)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("contributor deleted contributor_id=%s reports_removed=%s", contributor_id, len(appids))
    return list(appids)
