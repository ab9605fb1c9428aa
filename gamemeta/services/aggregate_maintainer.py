from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from gamemeta.db.enums import TtbField
from gamemeta.db.models.game_ttb_stats import GameTtbStats
from gamemeta.db.models.library_entry import LibraryEntry
from gamemeta.db.models.ttb_report import TtbReport

_AVG_COLUMNS = {
    TtbField.MAIN: "avg_main_seconds",
    TtbField.EXTRA: "avg_extra_seconds",
    TtbField.COMPLETIONIST: "avg_completionist_seconds",
}

_MY_COLUMNS = {
    TtbField.MAIN: "my_main_seconds",
    TtbField.EXTRA: "my_extra_seconds",
    TtbField.COMPLETIONIST: "my_completionist_seconds",
}


def _mean(values: list[int]) -> float | None:
    if not values:
        return None
    return sum(values) / len(values)


def compute_stats(reports: list[TtbReport]) -> tuple[dict[TtbField, float | None], int]:
    means = {}
    for field in TtbField:
        values = [getattr(report, field.value) for report in reports]
        means[field] = _mean([value for value in values if value is not None])

    report_count = sum(
        1 for report in reports
        if any(getattr(report, field.value) is not None for field in TtbField)
    )
    return means, report_count


def recompute(db: Session, appid: int, contributor_id: int | None = None) -> GameTtbStats | None:
    """Rebuild the ttb aggregate for one game from its live reports.

    Must run inside the transaction that mutated the reports, after the
    mutation was flushed. The aggregate row is dropped once no report is left,
    and the mutating contributor's library entry is made to mirror their
    current report (or cleared when it is gone).
    """
    reports = db.execute(
        select(TtbReport).where(TtbReport.appid == appid)
    ).scalars().all()
    means, report_count = compute_stats(list(reports))

    stats = db.get(GameTtbStats, appid)
    if report_count == 0:
        if stats is not None:
            db.delete(stats)
            stats = None
    else:
        if stats is None:
            stats = GameTtbStats(appid=appid)
            db.add(stats)
        for field, column in _AVG_COLUMNS.items():
            setattr(stats, column, means[field])
        stats.report_count = report_count
        stats.updated_at = datetime.now(timezone.utc)

    if contributor_id is not None:
        own_report = next((report for report in reports if report.contributor_id == contributor_id), None)
        _mirror_own_report(db, contributor_id, appid, own_report)

    db.flush()
    return stats


def _mirror_own_report(db: Session, contributor_id: int, appid: int, report: TtbReport | None) -> None:
    entry = db.get(LibraryEntry, (contributor_id, appid))
    if entry is None:
        if report is None:
            return
        entry = LibraryEntry(contributor_id=contributor_id, appid=appid)
        db.add(entry)

    for field, column in _MY_COLUMNS.items():
        setattr(entry, column, getattr(report, field.value) if report is not None else None)
    entry.my_reported_at = report.reported_at if report is not None else None
