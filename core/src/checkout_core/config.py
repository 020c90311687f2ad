"""Gateway configuration.

GatewayConfig is built once at startup and passed to every component that
needs a key, secret, price or timeout. Core services never read os.environ
themselves.
"""

import os
from collections.abc import Mapping
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from checkout_core.models.errors import ConfigurationError
from checkout_core.services.ssm_service import SSMService, SSMServiceError, get_ssm_service
from checkout_core.utils.logging import get_logger

logger = get_logger(__name__)

# Placeholder price shipped in sample .env files
PLACEHOLDER_PRICE_ID = "price_12345"

DEFAULT_WEBHOOK_TOLERANCE_SECONDS = 300

_TRUE_VALUES = {"1", "true", "yes", "on"}


class GatewayConfig(BaseModel):
    """Immutable runtime configuration for the checkout gateway."""

    model_config = ConfigDict(frozen=True)

    stripe_secret_key: str = Field(..., min_length=1, repr=False)
    stripe_publishable_key: str = Field(default="")
    webhook_secret: str = Field(..., min_length=1, repr=False)
    price_id: str = Field(..., min_length=1, examples=["price_1ABC123DEF456"])
    domain: str = Field(
        ...,
        min_length=1,
        description="Base URL used for success/cancel redirects",
        examples=["http://localhost:4242"],
    )
    static_dir: str = Field(default="static")
    environment: str = Field(default="dev")

    webhook_tolerance_seconds: int = Field(default=DEFAULT_WEBHOOK_TOLERANCE_SECONDS)
    stripe_timeout_seconds: float = Field(default=10.0, gt=0)
    notifier_timeout_seconds: float = Field(default=10.0, gt=0)

    processed_event_store: Literal["memory", "dynamodb"] = "memory"
    event_claim_ttl_seconds: int = Field(default=300, gt=0)
    processed_event_retention_days: int = Field(default=30, gt=0)
    table_prefix: str | None = Field(
        default=None,
        description="DynamoDB table prefix, defaults to checkout-{environment}",
    )

    @property
    def dynamodb_table_prefix(self) -> str:
        return self.table_prefix or f"checkout-{self.environment}"

    @property
    def base_domain(self) -> str:
        return self.domain.rstrip("/")

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        ssm: SSMService | None = None,
    ) -> "GatewayConfig":
        """Build configuration from environment variables.

        When USE_SSM_SECRETS is true, the Stripe secret key and webhook secret
        are read from SSM Parameter Store if not present in the environment.

        Args:
            environ: Mapping to read from. Defaults to os.environ.
            ssm: SSM service override (tests).

        Returns:
            Validated GatewayConfig.

        Raises:
            ConfigurationError: If required values are missing or invalid.
        """
        env = os.environ if environ is None else environ
        environment = env.get("ENVIRONMENT", "dev")

        secret_key = env.get("STRIPE_SECRET_KEY", "")
        webhook_secret = env.get("STRIPE_WEBHOOK_SECRET", "")

        if env.get("USE_SSM_SECRETS", "").lower() in _TRUE_VALUES:
            ssm = ssm or get_ssm_service()
            try:
                if not secret_key:
                    secret_key = ssm.get_parameter(
                        f"/checkout/{environment}/stripe/secret_key"
                    )
                if not webhook_secret:
                    webhook_secret = ssm.get_parameter(
                        f"/checkout/{environment}/stripe/webhook_secret"
                    )
            except SSMServiceError as e:
                raise ConfigurationError(f"Failed to load Stripe secrets: {e}") from e

        price_id = env.get("PRICE", "")
        if price_id == PLACEHOLDER_PRICE_ID:
            raise ConfigurationError(
                "You must set a Price ID from your Stripe account in PRICE"
            )

        missing = [
            name
            for name, value in (
                ("STRIPE_SECRET_KEY", secret_key),
                ("STRIPE_WEBHOOK_SECRET", webhook_secret),
                ("PRICE", price_id),
                ("DOMAIN", env.get("DOMAIN", "")),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}"
            )

        values: dict[str, object] = {
            "stripe_secret_key": secret_key,
            "stripe_publishable_key": env.get("STRIPE_PUBLISHABLE_KEY", ""),
            "webhook_secret": webhook_secret,
            "price_id": price_id,
            "domain": env["DOMAIN"],
            "static_dir": env.get("STATIC_DIR", "static"),
            "environment": environment,
            "table_prefix": env.get("DYNAMODB_TABLE_PREFIX") or None,
        }
        optional = {
            "WEBHOOK_TOLERANCE_SECONDS": "webhook_tolerance_seconds",
            "STRIPE_TIMEOUT_SECONDS": "stripe_timeout_seconds",
            "NOTIFIER_TIMEOUT_SECONDS": "notifier_timeout_seconds",
            "PROCESSED_EVENT_STORE": "processed_event_store",
            "EVENT_CLAIM_TTL_SECONDS": "event_claim_ttl_seconds",
            "PROCESSED_EVENT_RETENTION_DAYS": "processed_event_retention_days",
        }
        for env_name, field_name in optional.items():
            if env.get(env_name):
                values[field_name] = env[env_name]

        try:
            config = cls.model_validate(values)
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            raise ConfigurationError(
                f"Invalid configuration values: {', '.join(fields)}"
            ) from e

        logger.info(
            "Configuration loaded for environment %s (price=%s, event store=%s)",
            config.environment,
            config.price_id,
            config.processed_event_store,
        )
        return config
