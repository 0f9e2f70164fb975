from fastapi import APIRouter

from dreamweaver.api.v1.routes.assets import build_asset_router
from dreamweaver.api.v1.routes.beats import router as beats_router
from dreamweaver.api.v1.routes.config import router as config_router
from dreamweaver.api.v1.routes.stories import router as stories_router
from dreamweaver.api.v1.routes.workspace import router as workspace_router

api_router = APIRouter()
api_router.include_router(config_router, tags=["config"])
api_router.include_router(build_asset_router("character"), prefix="/characters", tags=["characters"])
api_router.include_router(build_asset_router("location"), prefix="/locations", tags=["locations"])
api_router.include_router(workspace_router, tags=["workspace"])
api_router.include_router(beats_router, prefix="/beats", tags=["beats"])
api_router.include_router(stories_router, prefix="/stories", tags=["stories"])
