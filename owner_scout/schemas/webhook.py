"""
owner_scout/schemas/webhook.py

Payload schemas for the outbound notification webhook.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class WebhookEmbedField(BaseModel):
    name: str
    value: str
    inline: bool = False


class WebhookEmbed(BaseModel):
    """
    One rich embed block.
    """

    title: str
    description: str | None = None
    color: int | None = Field(default=None, ge=0, le=0xFFFFFF)
    fields: list[WebhookEmbedField] | None = None
    timestamp: str | None = None


class WebhookMessage(BaseModel):
    """
    Webhook body; at least one of `content` or `embeds` is set by the builders.
    """

    content: str | None = None
    embeds: list[WebhookEmbed] | None = None

    def to_payload(self) -> dict:
        return self.model_dump(exclude_none=True)
