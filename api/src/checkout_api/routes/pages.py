"""Static page endpoints that are not covered by the static mount."""

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse
from starlette.status import HTTP_404_NOT_FOUND

from checkout_api.dependencies import get_config
from checkout_core.config import GatewayConfig

router = APIRouter(tags=["pages"])


@router.get(
    "/html/success.html",
    summary="Payment confirmation page",
    description="Stripe redirects here with `session_id` substituted after payment.",
    response_class=FileResponse,
)
def success_page(config: GatewayConfig = Depends(get_config)) -> FileResponse:
    page = Path(config.static_dir) / "html" / "success.html"
    if not page.is_file():
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Not Found")
    return FileResponse(page, media_type="text/html")
