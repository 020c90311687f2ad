"""Health check endpoint."""

from datetime import UTC, datetime

from fastapi import APIRouter

from checkout_api.models.responses import HealthResponse

router = APIRouter(tags=["health"])

SERVICE_NAME = "checkout-gateway"


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness probe; does not touch Stripe or the event store."""
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(UTC).isoformat(),
        service=SERVICE_NAME,
    )
