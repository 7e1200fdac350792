"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="DISPATCH_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "SwiftDash Dispatch API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root logging level.")

    # Matching policy
    max_match_radius_km: float = Field(
        default=6.0,
        gt=0.0,
        description="Closest driver must be within this distance of the pickup or no offer is made.",
    )
    candidate_limit: int = Field(default=10, ge=1, description="Maximum drivers fetched per pairing pass.")
    scheduled_lead_minutes: int = Field(
        default=15,
        ge=0,
        description="Scheduled deliveries become matchable this many minutes before pickup.",
    )
    scheduled_window_minutes: int = Field(
        default=10,
        ge=1,
        description="Look-ahead window used by the scheduled assignment sweep.",
    )
    geo_index_rpc: Optional[str] = Field(
        default="find_nearby_drivers",
        description="Name of the storage RPC ranking drivers by distance. Empty disables it.",
    )

    # Billing
    vat_rate: float = Field(default=0.12, ge=0.0)
    currency: str = Field(default="PHP", description="Currency all prices are charged in.")
    vat_currency: str = Field(default="PHP", description="Currency of the jurisdiction that levies VAT.")
    quote_ttl_minutes: int = Field(default=5, ge=1)

    # Directions
    mapbox_access_token: Optional[str] = Field(
        default=None,
        description="Mapbox token for road distances. Haversine is used when missing.",
    )
    mapbox_base_url: str = "https://api.mapbox.com"
    directions_timeout_seconds: float = Field(default=10.0, gt=0.0)
    directions_max_retries: int = Field(default=1, ge=0)
    directions_backoff_seconds: float = Field(default=0.5, ge=0.0)

    # Payment gateway
    maya_secret_key: Optional[str] = Field(default=None, description="Maya secret API key.")
    maya_environment: Literal["sandbox", "production"] = "sandbox"
    maya_timeout_seconds: float = Field(default=30.0, gt=0.0)
    payment_redirect_base: str = Field(
        default="swiftdash://payment",
        description="Deep link prefix the gateway redirects back to.",
    )

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("geo_index_rpc", mode="before")
    @classmethod
    def _blank_rpc_disables(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @property
    def maya_base_url(self) -> str:
        if self.maya_environment == "production":
            return "https://pg.paymaya.com"
        return "https://pg-sandbox.paymaya.com"

    @property
    def applies_vat(self) -> bool:
        return self.currency.upper() == self.vat_currency.upper()


settings = Settings()
