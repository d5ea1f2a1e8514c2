"""
Application configuration via Pydantic Settings.
Loads from environment variables with validation and defaults.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "change-me"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # === Server ===
    server_host: str = Field(default="0.0.0.0", alias="SERVER_HOST")
    server_port: int = Field(default=5000, alias="PORT")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # === Database ===
    database_url: str = Field(default="sqlite:///./idverify.db", alias="DATABASE_URL")

    # === CORS ===
    allowed_origins: str = Field(default="*", alias="ALLOWED_ORIGINS")

    # === JWT ===
    jwt_secret: str = Field(default=DEFAULT_JWT_SECRET, alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_expiration_hours: int = Field(default=24, alias="JWT_EXPIRATION_HOURS")

    # === External verification (NIA) ===
    nia_verify_url: str = Field(
        default="https://api.nia.gov.gh/verification/kyc/face",
        alias="NIA_VERIFY_URL",
    )
    merchant_id: str = Field(default="idverify", alias="MERCHANT_ID")
    merchant_key: Optional[str] = Field(default=None, alias="MERCHANT_KEY")
    nia_timeout_seconds: float = Field(default=30.0, alias="NIA_TIMEOUT_SECONDS")

    # === Submission limits ===
    min_image_base64_length: int = Field(default=1000, alias="MIN_IMAGE_BASE64_LENGTH")
    max_image_bytes: int = Field(default=1024 * 1024, alias="MAX_IMAGE_BYTES")
    strict_pin_validation: bool = Field(default=True, alias="STRICT_PIN_VALIDATION")

    # === Capture loop ===
    analysis_interval_seconds: float = Field(default=0.1, alias="ANALYSIS_INTERVAL_SECONDS")
    lighting_interval_seconds: float = Field(default=1.0, alias="LIGHTING_INTERVAL_SECONDS")
    load_face_model: bool = Field(default=True, alias="LOAD_FACE_MODEL")
    capture_session_ttl_seconds: Optional[float] = Field(default=600.0, alias="CAPTURE_SESSION_TTL_SECONDS")

    # === Bootstrap admin (created at startup when both are set) ===
    admin_username: Optional[str] = Field(default=None, alias="ADMIN_USERNAME")
    admin_password: Optional[str] = Field(default=None, alias="ADMIN_PASSWORD")

    @property
    def uses_default_jwt_secret(self) -> bool:
        return self.jwt_secret == DEFAULT_JWT_SECRET

    @property
    def cors_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS into list."""
        return [origin.strip() for origin in self.allowed_origins.split(",")]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
