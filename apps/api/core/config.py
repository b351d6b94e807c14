"""
Centralized configuration management with validation.

All environment variables are loaded and validated here.
This ensures consistent configuration across the application.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings with validation."""

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    # Hosted backend (Supabase) - owns persistence and auth
    SUPABASE_URL: str = Field(default="http://localhost:54321")
    SUPABASE_ANON_KEY: str = Field(default="")
    # Used to verify access tokens locally. When unset, tokens are verified
    # by asking the backend for the user instead.
    SUPABASE_JWT_SECRET: Optional[str] = Field(default=None)

    # AI meal analysis (edge function). Local estimation is used when unset.
    MEAL_ANALYSIS_URL: Optional[str] = Field(default=None)

    # External API Configuration
    EXTERNAL_API_TIMEOUT: int = Field(default=30)
    EXTERNAL_API_RETRY_ATTEMPTS: int = Field(default=3, ge=1, le=10)
    EXTERNAL_API_BACKOFF_S: float = Field(default=0.5)

    # Insights windows
    INSIGHTS_WINDOW_DAYS: int = Field(default=14, ge=1, le=90)
    TOP_SYMPTOM_LIMIT: int = Field(default=5, ge=1, le=12)
    DEFAULT_TIMEZONE: str = Field(default="UTC")

    # API Configuration
    API_HOST: str = Field(default="0.0.0.0")
    API_PORT: int = Field(default=8000)

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="json")  # json or text

    # Environment
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    # CORS - comma-separated list of allowed origins for production
    CORS_ORIGINS: Optional[str] = Field(default=None)


# Global settings instance
settings = Settings()
