"""Shared FastAPI dependencies.

Settings and the EventDispatcher (which owns the fully wired
TranslationOrchestrator) are created once during the FastAPI lifespan and
stored on app.state. Route handlers retrieve them via Depends(), never by
direct import.
"""

from fastapi import Request

from transbot.core.config import Settings
from transbot.services.messaging.dispatcher import EventDispatcher


def get_settings(request: Request) -> Settings:
    """Return the Settings instance the app was started with."""
    return request.app.state.settings


def get_dispatcher(request: Request) -> EventDispatcher:
    """Return the singleton EventDispatcher from app state."""
    return request.app.state.dispatcher
