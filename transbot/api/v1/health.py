"""Liveness endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from transbot.api.deps import get_settings
from transbot.core.config import Settings

router = APIRouter(tags=["health"])


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "✅ Translation bot is running (primary LLM -> Google Translate fallback)."


@router.get("/v1/health")
async def health(settings: Settings = Depends(get_settings)) -> dict:
    return {
        "status": "ok",
        "env": settings.app_env,
        "primary_backend": settings.primary_backend,
        "fallback_enabled": settings.fallback_enabled,
        "target_languages": settings.target_languages,
    }
