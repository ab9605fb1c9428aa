from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from gamemeta.api.deps import get_db, get_token, to_http_error
from gamemeta.config.settings import get_settings
from gamemeta.db.repositories.blacklist import add_to_blacklist, get_blacklisted_appids, remove_from_blacklist
from gamemeta.schemas.ttb import (
    TtbBatchRequest,
    TtbBlacklistListResponse,
    TtbBlacklistRequest,
    TtbBlacklistResponse,
    TtbOwnRecordRead,
    TtbStatsRead,
    TtbSubmitRequest,
    TtbSubmitResponse,
)
from gamemeta.services import sync
from gamemeta.services.errors import SyncError

router = APIRouter(prefix="/ttb", tags=["TTB"])

def _stats_read(stats) -> TtbStatsRead | None:
    if stats is None:
        return None
    return TtbStatsRead.model_validate(stats)

def _require_admin(db: Session, token: str | None):
    try:
        contributor = sync.authenticate(db, token)
    except SyncError as exc:
        raise to_http_error(exc)
    if contributor.steam_id not in get_settings().admin_steam_ids:
        raise HTTPException(status_code=403, detail="Admin access required")
    return contributor

@router.get("/blacklist", response_model=TtbBlacklistListResponse)
def get_blacklist(db: Session=Depends(get_db)):
    return TtbBlacklistListResponse(appids=get_blacklisted_appids(db))

@router.post("/blacklist", response_model=TtbBlacklistResponse)
def add_blacklist_entry(payload: TtbBlacklistRequest, db: Session=Depends(get_db), token: str | None=Depends(get_token)):
    admin = _require_admin(db, token)
    add_to_blacklist(db, payload.appid, payload.game_name, payload.reason, admin.id)
    db.commit()
    return TtbBlacklistResponse(success=True, appid=payload.appid)

@router.delete("/blacklist/{appid}", response_model=TtbBlacklistResponse)
def remove_blacklist_entry(appid: int, db: Session=Depends(get_db), token: str | None=Depends(get_token)):
    _require_admin(db, token)
    if not remove_from_blacklist(db, appid):
        raise HTTPException(status_code=404, detail="Game not in blacklist")
    db.commit()
    return TtbBlacklistResponse(success=True, appid=appid)

@router.post("/", response_model=TtbSubmitResponse)
def submit_ttb(payload: TtbSubmitRequest, db: Session=Depends(get_db), token: str | None=Depends(get_token)):
    fields = payload.model_dump(include={"main_seconds", "extra_seconds", "completionist_seconds"})
    try:
        stats = sync.submit(db, token, payload.appid, fields, game_name=payload.game_name)
    except SyncError as exc:
        raise to_http_error(exc)
    return TtbSubmitResponse(success=True, stats=_stats_read(stats))

@router.post("/batch", response_model=dict[int, TtbStatsRead])
def get_ttb_batch(payload: TtbBatchRequest, db: Session=Depends(get_db)):
    stats_by_appid = sync.get_aggregates_batch(db, payload.appids)
    return {appid: TtbStatsRead.model_validate(stats) for appid, stats in stats_by_appid.items()}

@router.get("/{appid}", response_model=TtbStatsRead | None)
def get_ttb(appid: int, db: Session=Depends(get_db)):
    return _stats_read(sync.get_aggregate(db, appid))

@router.get("/{appid}/mine", response_model=TtbOwnRecordRead | None)
def get_my_ttb(appid: int, db: Session=Depends(get_db), token: str | None=Depends(get_token)):
    try:
        entry = sync.own_record(db, token, appid)
    except SyncError as exc:
        raise to_http_error(exc)
    return TtbOwnRecordRead.model_validate(entry) if entry is not None else None

@router.delete("/{appid}", response_model=TtbSubmitResponse)
def delete_ttb(appid: int, db: Session=Depends(get_db), token: str | None=Depends(get_token)):
    try:
        stats = sync.withdraw(db, token, appid)
    except SyncError as exc:
        raise to_http_error(exc)
    return TtbSubmitResponse(success=True, stats=_stats_read(stats))
