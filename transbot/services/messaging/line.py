"""LINE Messaging API reply client.

Reply tokens are single-use and short-lived, so delivery is attempted once.
A failed reply is logged and reported as False, never raised and never
retried.
"""

import httpx
import structlog

logger = structlog.get_logger(__name__)

_TIMEOUT_SECONDS = 10.0
_REPLY_PATH = "/v2/bot/message/reply"
MAX_TEXT_LENGTH = 5000


def truncate_text(text: str, limit: int = MAX_TEXT_LENGTH) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "…"


class LineReplyClient:
    """Sends a single text message in reply to a webhook event."""

    def __init__(
        self,
        channel_access_token: str,
        base_url: str = "https://api.line.me",
        timeout_seconds: float = _TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token = channel_access_token
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    async def reply(self, reply_token: str, text: str) -> bool:
        payload = {
            "replyToken": reply_token,
            "messages": [{"type": "text", "text": truncate_text(text)}],
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self._base_url}{_REPLY_PATH}",
                    json=payload,
                    headers={"Authorization": f"Bearer {self._token}"},
                )
                response.raise_for_status()
        except Exception as e:
            logger.error(
                "line_reply_failed",
                error=str(e),
                text_len=len(text),
            )
            return False

        logger.info(
            "line_reply_sent",
            status_code=response.status_code,
            text_len=len(text),
        )
        return True
