"""API routes package.

Routers are organized by concern:

- health: Liveness probe
- checkout: Price config, session lookup and session creation
- webhooks: Stripe webhook receiver
- pages: Payment confirmation page

All routers are registered in main.py at the root path, ahead of the static
asset mount.
"""

from checkout_api.routes.checkout import router as checkout_router
from checkout_api.routes.health import router as health_router
from checkout_api.routes.pages import router as pages_router
from checkout_api.routes.webhooks import router as webhooks_router

__all__ = [
    "checkout_router",
    "health_router",
    "pages_router",
    "webhooks_router",
]
