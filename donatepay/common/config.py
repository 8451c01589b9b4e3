"""Central environment-driven settings for the donation service.

The process loads this once at startup. Behavior is controlled by environment
variables (see `.env.example`).
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class CommonSettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "donation-subscriptions"
    log_level: str = "INFO"
    stripe_secret_key: str = ""
    stripe_api_version: str = "2025-02-24.acacia"
    default_currency: str = "eur"
    default_country: str = "IE"
    allowed_origin: str = "http://localhost:8888"
    payment_method_prefix: str = "pm_"
    product_name: str = "Monthly Donation"
    compensation_policy: Literal["none", "compensate"] = "none"
    tracing_enabled: bool = True
    otel_exporter_otlp_endpoint: str = "http://otel-collector:4318/v1/traces"
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = CommonSettings()
