"""
AI Receptionist Configuration

All environment variables and settings for the call analytics dashboard API.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ==========================================================================
    # APP
    # ==========================================================================
    app_name: str = "AI Receptionist"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # ==========================================================================
    # SUPABASE (tenant lookup + call persistence)
    # ==========================================================================
    supabase_url: str | None = None
    supabase_service_key: str | None = None

    # ==========================================================================
    # AUTH
    # ==========================================================================
    auth_enabled: bool = True
    jwt_secret: str | None = None  # HS256 secret shared with the auth provider
    demo_shop_id: str = "demo-shop"  # Tenant used when auth is disabled

    # ==========================================================================
    # DASHBOARD API
    # ==========================================================================
    cors_origins: str = "http://localhost:5173"
    rate_limit_rpm: int = 60

    # ==========================================================================
    # VAPI (voice-AI provider)
    # ==========================================================================
    vapi_base_url: str = "https://api.vapi.ai"
    vapi_private_key: str | None = None
    vapi_timeout_seconds: float = 30.0
    vapi_webhook_secret: str | None = None  # Expected X-Vapi-Secret on /webhook/vapi

    # ==========================================================================
    # CALL RECORDS
    # ==========================================================================
    record_source: str = "mock"  # "mock" | "vapi"
    mock_seed: int = 42
    mock_call_count: int = 147
    mock_window_days: int = 30
    default_lookback_days: int = 30

    # ==========================================================================
    # DASHBOARD BEHAVIOR
    # ==========================================================================
    dashboard_cache_ttl_seconds: int = 300
    dashboard_max_calls: int = 10000  # Upper bound on calls aggregated per snapshot
    cost_tracking_enabled: bool = True
    persist_calls: bool = False  # Upsert normalized calls into Supabase

    # ==========================================================================
    # SERVER
    # ==========================================================================
    host: str = "0.0.0.0"
    port: int = 8000

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
