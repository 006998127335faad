# config.py
"""
Configuration module for the application.
Handles environment-specific settings using Pydantic v2 and pydantic-settings.
"""
from typing import Optional
from enum import Enum
from pydantic import Field, field_validator, BaseModel, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"

class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"
    file_enabled: bool = False
    file_path: str = "logs/registrar.log"

class APISettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    prefix: str = "/api"
    version: str = "1.0.0"
    title: str = "Document Request Service"
    description: str = "Document request submission, routing and tracking for students and alumni"

class DatabaseSettings(BaseModel):
    url: str
    pool_size: int = 20
    max_overflow: int = 30
    pool_recycle: int = 3600

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

class SecuritySettings(BaseModel):
    secret_key: SecretStr
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    password_min_length: int = 8
    password_reset_token_expire_minutes: int = 60
    password_reset_verify_window_minutes: int = 5
    @property
    def secret_key_str(self) -> str:
        """Return the secret key as a string for JWT operations."""
        return self.secret_key.get_secret_value()

class EmailSettings(BaseModel):
    enabled: bool = True
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    use_tls: bool = True
    username: Optional[str] = None
    password: Optional[SecretStr] = None
    from_email: str = "registrar@school.edu"
    @property
    def password_str(self) -> Optional[str]:
        """Return the password as a string for SMTP connection."""
        return self.password.get_secret_value() if self.password else None

class RequestSettings(BaseModel):
    cooldown_minutes: int = 5
    max_pending: int = 3
    reference_number_pattern: str = r"^SPC-DOC-\d{6}-\d{4}$"
    reference_number_prefix: str = "SPC-DOC"
    program_map_path: Optional[str] = None

class Settings(BaseSettings):
    """Main settings class with environment-specific configurations."""
    # Environment
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False

    # API
    api_title: str = "Document Request Service"
    api_description: str = "Document request submission, routing and tracking for students and alumni"
    api_version: str = "1.0.0"
    host: str = "0.0.0.0"
    port: int = 8000

    # Database
    database_url: str
    pool_size: int = 20
    max_overflow: int = 30
    pool_recycle: int = 3600

    # Security
    secret_key: SecretStr
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    password_min_length: int = 8
    password_reset_token_expire_minutes: int = 60
    password_reset_verify_window_minutes: int = 5

    # Logging
    log_level: str = "INFO"
    log_format: str = Field(default="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}")
    log_file_enabled: bool = False
    log_file_path: str = "logs/registrar.log"

    # Email
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_use_tls: bool = True
    smtp_username: Optional[str] = None
    smtp_password: Optional[SecretStr] = None
    smtp_from_email: str = "registrar@school.edu"
    enable_email_notifications: bool = True

    # Request protection and routing
    request_cooldown_minutes: int = Field(default=5, ge=0)
    max_pending_requests: int = Field(default=3, ge=1)
    reference_number_pattern: str = r"^SPC-DOC-\d{6}-\d{4}$"
    reference_number_prefix: str = "SPC-DOC"
    program_map_path: Optional[str] = None

    # Frontend
    frontend_urls_raw: str = Field(
        default="http://localhost:3000",
        alias="FRONTEND_URLS",
        exclude=True,
    )

    # Validators
    @field_validator("debug")
    @classmethod
    def debug_not_in_production(cls, v, info):
        env = info.data.get("environment")
        if v and env == Environment.PRODUCTION:
            raise ValueError("Debug mode should not be enabled in production")
        return v

    @property
    def frontend_urls(self) -> list[str]:
        """Comma-separated frontend URLs from .env, parsed into a list."""
        urls = [url.strip() for url in self.frontend_urls_raw.split(",") if url.strip()]
        from urllib.parse import urlparse
        for url in urls:
            parsed = urlparse(url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ValueError(f"Invalid URL in frontend_urls: {url}")
        return urls

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v):
        if not v.startswith(("postgresql+asyncpg://", "sqlite+aiosqlite://")):
            raise ValueError("Invalid database URL format")
        return v

    # Sub-settings via properties
    @property
    def api(self) -> APISettings:
        return APISettings(
            host=self.host,
            port=self.port,
            title=self.api_title,
            description=self.api_description,
            version=self.api_version,
        )

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings(
            level=self.log_level,
            format=self.log_format,
            file_enabled=self.log_file_enabled,
            file_path=self.log_file_path,
        )

    @property
    def database(self) -> DatabaseSettings:
        return DatabaseSettings(
            url=self.database_url,
            pool_size=self.pool_size,
            max_overflow=self.max_overflow,
            pool_recycle=self.pool_recycle,
        )

    @property
    def security(self) -> SecuritySettings:
        return SecuritySettings(
            secret_key=self.secret_key,
            algorithm=self.algorithm,
            access_token_expire_minutes=self.access_token_expire_minutes,
            password_min_length=self.password_min_length,
            password_reset_token_expire_minutes=self.password_reset_token_expire_minutes,
            password_reset_verify_window_minutes=self.password_reset_verify_window_minutes,
        )

    @property
    def email(self) -> EmailSettings:
        return EmailSettings(
            enabled=self.enable_email_notifications,
            smtp_host=self.smtp_host,
            smtp_port=self.smtp_port,
            use_tls=self.smtp_use_tls,
            username=self.smtp_username,
            password=self.smtp_password,
            from_email=self.smtp_from_email,
        )

    @property
    def requests(self) -> RequestSettings:
        return RequestSettings(
            cooldown_minutes=self.request_cooldown_minutes,
            max_pending=self.max_pending_requests,
            reference_number_pattern=self.reference_number_pattern,
            reference_number_prefix=self.reference_number_prefix,
            program_map_path=self.program_map_path,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
        populate_by_name=True,
    )

class DevelopmentSettings(Settings):
    debug: bool = True
    log_level: str = "DEBUG"

class ProductionSettings(Settings):
    debug: bool = False
    log_level: str = "INFO"

    @field_validator("smtp_password")
    @classmethod
    def validate_smtp_password(cls, v):
        if not v:
            raise ValueError("SMTP password is required in production")
        return v

class TestingSettings(Settings):
    database_url: str = "sqlite+aiosqlite:///:memory:"
    debug: bool = False
    log_level: str = "DEBUG"
    enable_email_notifications: bool = False

def get_settings() -> Settings:
    """Factory to return environment-specific settings."""
    env = Settings().environment
    if env == Environment.PRODUCTION:
        return ProductionSettings()
    elif env == Environment.TESTING:
        return TestingSettings()
    return DevelopmentSettings()

# Global settings instance
settings = get_settings()
