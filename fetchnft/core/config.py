from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration, read from the environment and ``.env``."""

    ENV: Literal["dev", "prod"] = "dev"

    LOG_LEVEL: str = "INFO"
    SLACK_WEBHOOK_URL: str | None = None
    DOCS_ENABLED: bool | None = None  # None follows ENV

    # Full-featured provider
    OPENSEA_API_URL: str = "https://api.opensea.io/api/v1"
    OPENSEA_API_KEY: str = ""
    OPENSEA_ASSET_LIMIT: int = Field(200, ge=1)
    OPENSEA_EVENT_LIMIT: int = Field(300, ge=1)

    # Minimal provider
    NFTPORT_API_URL: str = "https://api.nftport.xyz"
    NFTPORT_API_KEY: str = ""
    NFTPORT_ASSET_LIMIT: int = Field(50, ge=1, le=50)
    NFTPORT_CHAIN: str = "ethereum"
    NFTPORT_REQUESTS_PER_SECOND: int = Field(10, ge=1)

    # Media classification
    IPFS_GATEWAY: str = "https://balance.mypinata.cloud/ipfs"
    IMAGE_CONVERTER_URL: str | None = None
    PROBE_TIMEOUT_SECONDS: float = Field(5.0, gt=0)
    PROBE_CONCURRENCY: int = Field(16, ge=1)

    HTTP_TIMEOUT_SECONDS: float = Field(15.0, gt=0)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("OPENSEA_API_URL", "NFTPORT_API_URL", "IPFS_GATEWAY")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def is_production(self) -> bool:
        return self.ENV == "prod"

    @property
    def debug_enabled(self) -> bool:
        return not self.is_production

    @property
    def effective_log_level(self) -> str:
        """LOG_LEVEL, except that production never logs below INFO."""
        if self.is_production and self.LOG_LEVEL.upper() in {"TRACE", "DEBUG"}:
            return "INFO"
        return self.LOG_LEVEL

    @property
    def docs_enabled(self) -> bool:
        if self.DOCS_ENABLED is not None:
            return self.DOCS_ENABLED
        return not self.is_production

    @property
    def configured_providers(self) -> list[str]:
        """Providers with an API key set."""
        keys = {"opensea": self.OPENSEA_API_KEY, "nftport": self.NFTPORT_API_KEY}
        return [name for name, key in keys.items() if key]


settings = Settings()
