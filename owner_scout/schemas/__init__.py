from owner_scout.schemas.status import StatusResponse
from owner_scout.schemas.webhook import WebhookEmbed, WebhookEmbedField, WebhookMessage

__all__ = [
    "StatusResponse",
    "WebhookEmbed",
    "WebhookEmbedField",
    "WebhookMessage",
]
