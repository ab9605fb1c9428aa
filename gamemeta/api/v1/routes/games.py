from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from gamemeta.api.deps import get_db
from gamemeta.schemas.game import GamesBatchRequest, GamesBatchResponse
from gamemeta.services import sync

router = APIRouter(prefix="/games", tags=["Games"])

@router.post("/batch", response_model=GamesBatchResponse)
def register_games(payload: GamesBatchRequest, db: Session=Depends(get_db)):
    created, renamed = sync.register_games(db, [(game.appid, game.name) for game in payload.games])
    return GamesBatchResponse(created=created, renamed=renamed)
