"""FastAPI application entrypoint.

POST /webhook receives LINE events; GET / and GET /v1/health are liveness
checks.

The TranslationOrchestrator (heuristic detector, LLM primary translator,
Google Translate secondary translator, LINE reply client) is built once
during the lifespan and wrapped in an EventDispatcher stored on app.state
for injection via Depends(). Missing credentials abort startup.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from transbot.api.v1.health import router as health_router
from transbot.api.v1.webhook import router as webhook_router
from transbot.core.config import Settings, settings
from transbot.core.exceptions import TransbotError
from transbot.services.language.detection import HeuristicLanguageDetector
from transbot.services.llm.base import LLMProvider
from transbot.services.llm.fallback import FallbackLLMProvider
from transbot.services.llm.gemini import GeminiProvider
from transbot.services.llm.openai_compat import OpenAICompatibleProvider
from transbot.services.messaging.dispatcher import EventDispatcher
from transbot.services.messaging.line import LineReplyClient
from transbot.services.translation.formatting import ReplyFormatter
from transbot.services.translation.orchestrator import TranslationOrchestrator
from transbot.services.translation.primary import PrimaryTranslator
from transbot.services.translation.secondary import (
    GoogleTranslateClient,
    SecondaryTranslator,
)


def _configure_logging() -> None:
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


_configure_logging()

logger = structlog.get_logger(__name__)


def build_llm_provider(config: Settings) -> LLMProvider:
    """Primary-tier LLM: the configured backend, as a model chain for Gemini."""
    if config.primary_backend == "openai":
        return OpenAICompatibleProvider(
            api_key=config.openai_api_key,
            model=config.openai_model,
            base_url=config.openai_base_url,
            timeout_seconds=config.http_timeout_seconds,
        )
    return FallbackLLMProvider(
        [
            GeminiProvider(
                api_key=config.gemini_api_key,
                model=model,
                max_attempts=config.primary_max_attempts,
                retry_delay_seconds=config.primary_retry_delay_seconds,
                timeout_seconds=config.http_timeout_seconds,
            )
            for model in config.gemini_models
        ]
    )


def build_orchestrator(
    config: Settings, llm: LLMProvider | None = None
) -> TranslationOrchestrator:
    """Wire every pipeline component from one Settings value."""
    secondary = SecondaryTranslator(
        GoogleTranslateClient(
            api_key=config.google_translate_api_key,
            base_url=config.google_translate_base_url,
            timeout_seconds=config.http_timeout_seconds,
        )
    )
    return TranslationOrchestrator(
        detector=HeuristicLanguageDetector(),
        primary=PrimaryTranslator(llm or build_llm_provider(config)),
        secondary=secondary,
        formatter=ReplyFormatter(
            flags=config.language_flags,
            default_flag=config.default_flag,
            empty_message=config.nothing_to_translate_message,
        ),
        sender=LineReplyClient(
            channel_access_token=config.line_channel_access_token,
            base_url=config.line_api_base_url,
            timeout_seconds=config.http_timeout_seconds,
        ),
        target_languages=config.target_languages,
        failure_message=config.translation_failed_message,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application startup and shutdown lifecycle.

    Validates credentials (raising ConfigurationError refuses startup),
    then attaches settings and the EventDispatcher to app.state.
    """
    # --- Startup ---
    logger.info("app_startup", env=settings.app_env)
    try:
        settings.require_credentials()
    except TransbotError as e:
        logger.critical("app_startup_config_invalid", error=e.message)
        raise

    orchestrator = build_orchestrator(settings)
    app.state.settings = settings
    app.state.dispatcher = EventDispatcher(orchestrator.handle)

    logger.info(
        "app_providers_ready",
        primary_backend=settings.primary_backend,
        fallback_enabled=settings.fallback_enabled,
        target_languages=settings.target_languages,
    )
    yield

    # --- Shutdown ---
    logger.info("app_shutdown", pending_batches=app.state.dispatcher.pending)
    await app.state.dispatcher.drain()


app = FastAPI(
    title="transbot: Multilingual Chat Translation Webhook",
    description="Replies to every chat message with its translations.",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(TransbotError)
async def transbot_error_handler(request: Request, exc: TransbotError) -> JSONResponse:
    """Structured error response for all transbot exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


app.include_router(health_router)
app.include_router(webhook_router)


def run() -> None:
    """Console entrypoint: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run("transbot.main:app", host="0.0.0.0", port=settings.port)
