"""LINE Messaging API webhook request/response schemas.

Only the fields the bot reads are declared; everything else in the
envelope is kept (extra="allow") and ignored.
"""

from pydantic import BaseModel, ConfigDict, Field


class EventMessage(BaseModel):
    """The message object of a "message" event."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str | None = None
    type: str
    text: str | None = None


class EventSource(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: str | None = None
    user_id: str | None = Field(default=None, alias="userId")
    group_id: str | None = Field(default=None, alias="groupId")


class WebhookEvent(BaseModel):
    """A single webhook event."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: str
    reply_token: str | None = Field(default=None, alias="replyToken")
    webhook_event_id: str | None = Field(default=None, alias="webhookEventId")
    timestamp: int | None = None
    source: EventSource | None = None
    message: EventMessage | None = None

    @property
    def is_text_message(self) -> bool:
        return (
            self.type == "message"
            and self.message is not None
            and self.message.type == "text"
        )


class WebhookBody(BaseModel):
    """POST /webhook request body."""

    model_config = ConfigDict(extra="allow")

    destination: str | None = None
    events: list[WebhookEvent] = []


class WebhookAck(BaseModel):
    """POST /webhook response body."""

    status: str = "ok"
    events_received: int = 0
