"""Application settings loaded from environment variables or a `.env` file."""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

CLOUDFLARE_AI_ENDPOINT = "https://api.cloudflare.com/client/v4/accounts"


class Settings(BaseSettings):
    """
    Typed access to environment configuration.

    Every field has a default so the application imports without a `.env`;
    the AI and auth credentials must be supplied for the service to be useful.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "Chat Assistant API"
    APP_VERSION: str = "alpha_0.0.9"

    DATABASE_URL: str = "sqlite:///./chat.db"
    """SQLAlchemy URL of the chat store."""

    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: list[str] = ["*"]

    CF_ACCOUNT_ID: str = ""
    """Cloudflare account hosting the Workers AI model."""

    CF_API_TOKEN: str = ""
    """Bearer token for the completion endpoint."""

    AI_BASE_URL: Optional[str] = None
    """OpenAI-compatible base URL; overrides the Cloudflare endpoint when set."""

    AI_MODEL: str = "@cf/meta/llama-3-8b-instruct"

    AI_TIMEOUT: float = 30.0
    """Upper bound in seconds on a single completion call."""

    CLERK_JWKS_URL: Optional[str] = None
    """JWKS endpoint used to verify RS256 session tokens."""

    CLERK_ISSUER: Optional[str] = None

    CLERK_AUTHORIZED_PARTIES: list[str] = []
    """Accepted `azp` claims; empty disables the check."""

    AUTH_SECRET: Optional[str] = None
    """Shared HS256 secret for locally issued tokens (development and tests)."""

    CLERK_WEBHOOK_SECRET: Optional[str] = None
    """Signing secret (`whsec_...`) of the identity-provider webhook endpoint."""

    @property
    def ai_base_url(self) -> Optional[str]:
        if self.AI_BASE_URL:
            return self.AI_BASE_URL
        if not self.CF_ACCOUNT_ID:
            return None
        return f"{CLOUDFLARE_AI_ENDPOINT}/{self.CF_ACCOUNT_ID}/ai/v1"


settings = Settings()
