"""LINE webhook endpoint."""

import structlog
from fastapi import APIRouter, Depends, Header, Request
from pydantic import ValidationError

from transbot.api.deps import get_dispatcher, get_settings
from transbot.core.config import Settings
from transbot.core.exceptions import InvalidSignatureError
from transbot.core.security import verify_signature
from transbot.schemas.webhook import WebhookAck, WebhookBody
from transbot.services.messaging.dispatcher import EventDispatcher

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["webhook"])


@router.post("/webhook", response_model=WebhookAck)
async def receive_webhook(
    request: Request,
    x_line_signature: str | None = Header(default=None, alias="X-Line-Signature"),
    settings: Settings = Depends(get_settings),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
) -> WebhookAck:
    """Verify, acknowledge, then process events in the background.

    Processing order:
    1. Verify X-Line-Signature against the raw body
    2. Parse the event envelope
    3. Schedule every event on the dispatcher (not awaited)
    4. Return 200 immediately, whatever the pipeline later does
    """
    body = await request.body()
    if not verify_signature(settings.line_channel_secret, body, x_line_signature):
        logger.warning("webhook_signature_invalid", body_len=len(body))
        raise InvalidSignatureError()

    try:
        payload = WebhookBody.model_validate_json(body) if body else WebhookBody()
    except ValidationError as e:
        # Signed by LINE but not in a shape we understand; acknowledge anyway
        # so the platform does not redeliver it.
        logger.warning("webhook_body_unparseable", error=str(e))
        return WebhookAck(events_received=0)

    dispatcher.schedule(payload.events)
    logger.info("webhook_received", events=len(payload.events))
    return WebhookAck(events_received=len(payload.events))
