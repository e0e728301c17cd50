"""Application Settings - Central Configuration

Values come from environment variables (case-insensitive) or a ``.env`` file
in the working directory, e.g. ``MONGO_URI``, ``JWT_SECRET``,
``ADMIN_ROLE_NAME``.
"""
from functools import lru_cache
from typing import List
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "change-me"


class Settings(BaseSettings):
    """Approval Flow settings"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Storage
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "approval_flow_dev"
    # Multi-document transactions need a replica set; leave off for a standalone mongod
    mongo_use_transactions: bool = False

    # Bearer tokens are issued elsewhere; only the verification key lives here
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"

    # Actors holding this role manage templates, list all requests and may override approvers
    admin_role_name: str = "Admin"

    # Upper bound on manager-chain walks
    hierarchy_max_depth: int = 25

    # HTTP server
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    cors_origins: str = "*"  # comma separated, or "*"

    # Logging
    logs_path: str = "./logs"
    log_level: str = "INFO"

    environment: str = "development"
    debug: bool = True

    @model_validator(mode="after")
    def _require_real_secret_in_production(self) -> "Settings":
        if self.is_production and self.jwt_secret == DEFAULT_JWT_SECRET:
            raise ValueError("JWT_SECRET must be set when ENVIRONMENT is production")
        return self

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
