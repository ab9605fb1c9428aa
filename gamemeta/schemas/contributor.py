from datetime import datetime
from pydantic import BaseModel, ConfigDict

class ContributorCreate(BaseModel):
    steam_id: str
    display_name: str | None = None

class ContributorRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    steam_id: str
    display_name: str | None = None
    created_at: datetime | None = None

class TokenRequest(BaseModel):
    steam_id: str

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"

class ContributorDeleteResponse(BaseModel):
    success: bool
    appids_recomputed: list[int]
