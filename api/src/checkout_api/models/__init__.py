"""API request/response models."""

from checkout_api.models.responses import ConfigResponse, HealthResponse, WebhookResponse

__all__ = ["ConfigResponse", "HealthResponse", "WebhookResponse"]
