from collections.abc import Iterator

from fastapi import Header, HTTPException
from sqlalchemy.orm import Session

from gamemeta.auth.tokens import bearer_token
from gamemeta.db.session import SessionLocal
from gamemeta.services.errors import EmptyObservation, SyncError, Unauthorized, UnknownEntity


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_token(authorization: str | None = Header(None)) -> str | None:
    return bearer_token(authorization)


def to_http_error(exc: SyncError) -> HTTPException:
    if isinstance(exc, Unauthorized):
        return HTTPException(status_code=401, detail=str(exc) or "Unauthorized")
    if isinstance(exc, UnknownEntity):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, EmptyObservation):
        return HTTPException(status_code=422, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))
