from __future__ import annotations

from fastapi import APIRouter

from dreamweaver.api.deps import ClientDep
from dreamweaver.schemas.api import ConfigStatus
from dreamweaver.schemas.cinematography import CinematographyCatalog, build_catalog
from dreamweaver.services.generation import GenerationClient

router = APIRouter()


@router.get("/config/status", response_model=ConfigStatus)
async def config_status(client: GenerationClient = ClientDep):
    """是否已配置 API Key（不发起网络请求）"""
    return ConfigStatus(configured=client.configured(), model=client.model)


@router.get("/cinematography", response_model=CinematographyCatalog)
async def cinematography_options():
    return build_catalog()
