from fastapi import APIRouter

from gamemeta.api.v1.routes.contributors import router as contributors_router
from gamemeta.api.v1.routes.games import router as games_router
from gamemeta.api.v1.routes.tags import router as tags_router
from gamemeta.api.v1.routes.ttb import router as ttb_router

api_router = APIRouter()
api_router.include_router(contributors_router)
api_router.include_router(games_router)
api_router.include_router(ttb_router)
api_router.include_router(tags_router)
