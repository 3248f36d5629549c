from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "JobTracker"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 5000
    log_level: str = "INFO"
    sql_echo: bool = False

    database_url: str = "sqlite:///./data/jobtracker.db"
    data_dir: Path = Path("./data")
    upload_dir: Path = Path("./data/uploads")
    uploads_url_prefix: str = "/uploads"

    jwt_key: str = "change-me-to-a-long-random-signing-key"
    jwt_issuer: str = "jobtracker-api"
    jwt_audience: str = "jobtracker-client"
    jwt_algorithm: str = "HS256"
    jwt_expiry_minutes: int = 60
    password_reset_expiry_minutes: int = 30
    email_token_expiry_minutes: int = 1440

    cv_max_bytes: int = 10 * 1024 * 1024
    cv_allowed_extensions: str = ".pdf,.doc,.docx"

    sendgrid_api_key: str = ""
    sendgrid_api_url: str = "https://api.sendgrid.com/v3/mail/send"
    email_from: str = "no-reply@jobtracker.local"
    email_from_name: str = "JobTracker"
    email_timeout_sec: int = 15

    frontend_url: str = "http://localhost:3000"
    verify_email_path: str = "/verify-email"
    reset_password_path: str = "/reset-password"
    confirm_email_change_path: str = "/confirm-email-change"
    api_public_url: str = "http://localhost:5000"

    google_client_id: str = ""
    google_tokeninfo_url: str = "https://oauth2.googleapis.com/tokeninfo"

    admin_email: str = ""
    admin_password: str = ""

    require_confirmed_email: bool = True
    min_password_length: int = 8
    cors_origins: str = "http://localhost:3000"

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("jwt_key")
    @classmethod
    def validate_jwt_key(cls, value: str) -> str:
        if len(value) < 32:
            raise ValueError("jwt_key must be at least 32 characters")
        return value

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def cv_extension_set(self) -> set[str]:
        return {ext.strip().lower() for ext in self.cv_allowed_extensions.split(",") if ext.strip()}

    def frontend_link(self, path: str) -> str:
        return f"{self.frontend_url.rstrip('/')}/{path.lstrip('/')}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
