from pydantic import BaseModel, Field

class TagVote(BaseModel):
    tag_name: str = Field(..., min_length=1)
    vote_count: int = Field(..., ge=0)

class SubmitTagsRequest(BaseModel):
    appid: int
    tags: list[TagVote] = Field(default_factory=list)

class SubmitTagsResponse(BaseModel):
    success: bool
    count: int

class TagsBatchRequest(BaseModel):
    appids: list[int] = Field(default_factory=list)

class TagsBatchResponse(BaseModel):
    tags: dict[int, list[TagVote]] = Field(default_factory=dict)

class TagNamesResponse(BaseModel):
    tags: list[str] = Field(default_factory=list)
