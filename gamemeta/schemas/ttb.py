from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

class TtbFields(BaseModel):
    main_seconds: int | None = Field(None, ge=0)
    extra_seconds: int | None = Field(None, ge=0)
    completionist_seconds: int | None = Field(None, ge=0)

class TtbSubmitRequest(TtbFields):
    appid: int
    game_name: str | None = None

class TtbStatsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    appid: int
    avg_main_seconds: float | None = None
    avg_extra_seconds: float | None = None
    avg_completionist_seconds: float | None = None
    report_count: int
    updated_at: datetime | None = None

class TtbSubmitResponse(BaseModel):
    success: bool
    stats: TtbStatsRead | None = None

class TtbBatchRequest(BaseModel):
    appids: list[int] = Field(default_factory=list)

class TtbOwnRecordRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    appid: int
    my_main_seconds: int | None = None
    my_extra_seconds: int | None = None
    my_completionist_seconds: int | None = None
    my_reported_at: datetime | None = None

class TtbBlacklistRequest(BaseModel):
    appid: int
    game_name: str
    reason: str | None = None

class TtbBlacklistResponse(BaseModel):
    success: bool
    appid: int

class TtbBlacklistListResponse(BaseModel):
    appids: list[int] = Field(default_factory=list)
