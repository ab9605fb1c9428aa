from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from gamemeta.api.deps import get_db, get_token, to_http_error
from gamemeta.schemas.tags import (
    SubmitTagsRequest,
    SubmitTagsResponse,
    TagNamesResponse,
    TagsBatchRequest,
    TagsBatchResponse,
    TagVote,
)
from gamemeta.services import sync
from gamemeta.services.errors import SyncError

router = APIRouter(prefix="/tags", tags=["Tags"])

@router.get("/", response_model=TagNamesResponse)
def get_all_tag_names(db: Session=Depends(get_db)):
    return TagNamesResponse(tags=sync.list_labels(db))

@router.post("/batch", response_model=TagsBatchResponse)
def get_tags_batch(payload: TagsBatchRequest, db: Session=Depends(get_db)):
    tags_by_appid = sync.get_tags_batch(db, payload.appids)
    return TagsBatchResponse(
        tags={
            appid: [TagVote(tag_name=tag_name, vote_count=vote_count) for tag_name, vote_count in tags]
            for appid, tags in tags_by_appid.items()
        }
    )

@router.post("/", response_model=SubmitTagsResponse)
def submit_tags(payload: SubmitTagsRequest, db: Session=Depends(get_db), token: str | None=Depends(get_token)):
    tags = [(tag.tag_name, tag.vote_count) for tag in payload.tags]
    try:
        count = sync.submit_tags(db, token, payload.appid, tags)
    except SyncError as exc:
        raise to_http_error(exc)
    return SubmitTagsResponse(success=True, count=count)
