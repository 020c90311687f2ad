"""FastAPI application for the checkout gateway.

Serves the checkout flow (price config, session creation and lookup), the
Stripe webhook receiver, and the static storefront pages.

Configuration is read lazily through checkout_api.dependencies, so the app
can be imported before the environment is complete; the first request that
needs a service fails with a 500 error body if configuration is missing.
"""

import logging
import os
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from mangum import Mangum

from checkout_api.exceptions import register_exception_handlers
from checkout_api.middleware.correlation import CorrelationIdMiddleware
from checkout_api.routes.checkout import router as checkout_router
from checkout_api.routes.health import router as health_router
from checkout_api.routes.pages import router as pages_router
from checkout_api.routes.webhooks import router as webhooks_router
from checkout_core.utils.logging import configure_logging

logger = logging.getLogger(__name__)

DEFAULT_PORT = 4242


def create_app(static_dir: str | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        static_dir: Directory served at "/". Defaults to STATIC_DIR or "static";
            skipped when the directory does not exist.

    Returns:
        Configured FastAPI app.
    """
    app = FastAPI(
        title="Checkout Gateway",
        description="Stripe Checkout sessions and webhook processing",
        version="0.1.0",
    )

    app.add_middleware(CorrelationIdMiddleware)

    # Register exception handlers for consistent error responses
    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(checkout_router)
    app.include_router(webhooks_router)
    app.include_router(pages_router)

    # The static mount matches every path, so it must come after the routers
    directory = Path(static_dir or os.environ.get("STATIC_DIR", "static"))
    if directory.is_dir():
        app.mount("/", StaticFiles(directory=directory, html=True), name="static")
    else:
        logger.warning("Static directory %s not found; storefront pages disabled", directory)

    return app


configure_logging(os.environ.get("LOG_LEVEL", "INFO"))

app = create_app()

# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = DEFAULT_PORT, reload: bool = False) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 4242)
        reload: Enable hot reload for development (default: False)
    """
    import uvicorn

    logger.info("server running at %s:%d", host, port)
    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run(
            "checkout_api.main:app",
            host=host,
            port=port,
            reload=True,
            reload_dirs=["api/src", "core/src"],
        )
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
