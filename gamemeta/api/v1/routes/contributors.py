from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from gamemeta.api.deps import get_db, get_token, to_http_error
from gamemeta.auth.tokens import issue_token
from gamemeta.db.models.contributor import Contributor
from gamemeta.db.repositories.games import get_contributor_by_steam_id
from gamemeta.schemas.contributor import (
    ContributorCreate,
    ContributorDeleteResponse,
    ContributorRead,
    TokenRequest,
    TokenResponse,
)
from gamemeta.services import sync
from gamemeta.services.errors import SyncError
from gamemeta.services.observation_store import delete_contributor

router = APIRouter(prefix="/contributors", tags=["Contributor"])

@router.post("/", response_model=ContributorRead)
def create_contributor(payload: ContributorCreate, db: Session=Depends(get_db)):
    if get_contributor_by_steam_id(db, payload.steam_id) is not None:
        raise HTTPException(status_code=409, detail="Contributor already exists")

    contributor = Contributor(**payload.model_dump())
    db.add(contributor)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Contributor already exists")

    db.refresh(contributor)
    return contributor

@router.post("/token", response_model=TokenResponse)
def create_token(payload: TokenRequest, db: Session=Depends(get_db)):
    if get_contributor_by_steam_id(db, payload.steam_id) is None:
        raise HTTPException(status_code=404, detail="Contributor not found")
    return TokenResponse(access_token=issue_token(payload.steam_id))

@router.delete("/me", response_model=ContributorDeleteResponse)
def delete_me(db: Session=Depends(get_db), token: str | None=Depends(get_token)):
    try:
        contributor = sync.authenticate(db, token)
        appids = delete_contributor(db, contributor.id)
    except SyncError as exc:
        raise to_http_error(exc)
    return ContributorDeleteResponse(success=True, appids_recomputed=appids)
