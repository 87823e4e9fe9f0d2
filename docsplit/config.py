"""Service configuration loaded from environment variables and ``.env``."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DOCSPLIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    environment: str = "local"
    debug: bool = False
    log_level: str = "INFO"

    # HTTP surface
    host: str = "0.0.0.0"
    port: int = 8000
    cors_allowed_origins: str = "*"

    # Materialize runs write below this directory only
    output_root: str = "./docsplit-output"

    # tiktoken encoding used for token estimates
    token_encoding: str = "cl100k_base"

    # Default run options (per-request options override these)
    split_threshold: float = Field(default=7.0, ge=0.0, le=10.0)
    file_token_ceiling: int = Field(default=2500, ge=1)
    on_collision: str = "diff-report"

    @property
    def cors_origins_list(self) -> list[str]:
        """CORS origins as a list (comma-separated in the environment)."""
        if self.cors_allowed_origins.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]


settings = Settings()
