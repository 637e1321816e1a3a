"""
Billing configuration.

Stripe credentials and the price-to-tier mapping, read from environment
variables.
"""

from typing import Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from src.constants import STRIPE_SIGNATURE_TOLERANCE_SECONDS
from src.utils.env_utils import parse_int_env, parse_str_env


class BillingConfig(BaseSettings):
    """Configuration for the Stripe webhook receiver."""

    stripe_secret_key: Optional[str] = Field(
        default=None,
        description="Secret API key used to read subscriptions",
    )
    stripe_webhook_secret: Optional[str] = Field(
        default=None,
        description="Endpoint secret used to verify webhook signatures",
    )
    signature_tolerance_seconds: int = Field(
        default=STRIPE_SIGNATURE_TOLERANCE_SECONDS,
        description="Maximum age of a signed webhook timestamp",
    )

    # Price ids per plan
    standard_plan_id: Optional[str] = Field(default=None, description="Standard plan price id")
    pro_plan_id: Optional[str] = Field(default=None, description="Pro plan price id")
    enterprise_plan_id: Optional[str] = Field(default=None, description="Enterprise plan price id")

    class Config:
        case_sensitive = False

    @classmethod
    def from_env(cls) -> "BillingConfig":
        """Create config from environment variables."""
        return cls(
            stripe_secret_key=parse_str_env("STRIPE_SECRET_KEY"),
            stripe_webhook_secret=parse_str_env("STRIPE_WEBHOOK_SECRET"),
            signature_tolerance_seconds=parse_int_env(
                "STRIPE_SIGNATURE_TOLERANCE_SECONDS", STRIPE_SIGNATURE_TOLERANCE_SECONDS
            ),
            standard_plan_id=parse_str_env("STANDARD_PLAN_ID"),
            pro_plan_id=parse_str_env("PRO_PLAN_ID"),
            enterprise_plan_id=parse_str_env("ENTERPRISE_PLAN_ID"),
        )

    def price_to_tier(self) -> Dict[str, str]:
        """Map of configured price id to tier value. Unset prices are omitted."""
        mapping = {
            self.standard_plan_id: "standard",
            self.pro_plan_id: "pro",
            self.enterprise_plan_id: "enterprise",
        }
        return {price_id: tier for price_id, tier in mapping.items() if price_id}


# Singleton config instance
_config: Optional[BillingConfig] = None


def get_billing_config() -> BillingConfig:
    """Get the billing config singleton."""
    global _config
    if _config is None:
        _config = BillingConfig.from_env()
    return _config


def reset_billing_config() -> None:
    """Reset the config singleton (for testing)."""
    global _config
    _config = None
