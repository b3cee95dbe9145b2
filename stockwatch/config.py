"""
Application Configuration

Settings for the stockwatch service, loaded from environment variables
(or a ``.env`` file) with Pydantic Settings.
"""
from typing import Dict, List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from stockwatch.schemas.stock import ProviderConfig


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Provider API keys are optional individually; the provider registry
    refuses to start when none of them is set.
    """

    # Service
    SERVICE_NAME: str = "stockwatch"
    ENV: str = Field(default="development", description="Environment (development, staging, production)")
    DEBUG: bool = Field(default=False, description="Debug mode")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    ALLOWED_ORIGINS: List[str] = Field(
        default=["http://localhost:4200"],
        description="CORS allowed origins"
    )

    # JWT Authentication
    JWT_SECRET: str = Field(
        default="your-super-secret-jwt-key-change-in-production",
        description="JWT secret key shared with the token issuer"
    )
    JWT_ALGORITHM: str = Field(default="HS256", description="JWT algorithm")
    JWT_EXPIRATION_MINUTES: int = Field(default=60, description="JWT token expiration in minutes")

    # Financial Modeling Prep
    FMP_API_KEY: Optional[str] = Field(default=None, description="Financial Modeling Prep API key")
    FMP_BASE_URL: str = "https://financialmodelingprep.com/api/v3"
    FMP_RATE_LIMIT_PER_MINUTE: int = 250
    FMP_TIMEOUT_MS: int = 10000

    # Finnhub
    FINNHUB_API_KEY: Optional[str] = Field(default=None, description="Finnhub API key")
    FINNHUB_BASE_URL: str = "https://finnhub.io/api/v1"
    FINNHUB_RATE_LIMIT_PER_MINUTE: int = 60
    FINNHUB_TIMEOUT_MS: int = 10000

    # Metrics
    METRICS_ENABLED: bool = True
    METRICS_PORT: int = 8001

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def provider_configs(self) -> Dict[str, ProviderConfig]:
        """
        Build the provider configuration mapping in preference order.

        FMP comes first, Finnhub second. Providers without a key are still
        listed; the registry skips them.
        """
        return {
            "fmp": ProviderConfig(
                api_key=self.FMP_API_KEY or "",
                base_url=self.FMP_BASE_URL,
                rate_limit_per_minute=self.FMP_RATE_LIMIT_PER_MINUTE,
                timeout=self.FMP_TIMEOUT_MS,
            ),
            "finnhub": ProviderConfig(
                api_key=self.FINNHUB_API_KEY or "",
                base_url=self.FINNHUB_BASE_URL,
                rate_limit_per_minute=self.FINNHUB_RATE_LIMIT_PER_MINUTE,
                timeout=self.FINNHUB_TIMEOUT_MS,
            ),
        }


settings = Settings()
