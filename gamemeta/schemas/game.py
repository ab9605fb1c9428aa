from pydantic import BaseModel, Field

class GameRegister(BaseModel):
    appid: int
    name: str = Field(..., min_length=1)

class GamesBatchRequest(BaseModel):
    games: list[GameRegister] = Field(default_factory=list)

class GamesBatchResponse(BaseModel):
    created: int
    renamed: int
