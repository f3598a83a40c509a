"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class TardisConfig(BaseSettings):
    """Tardis Bank configuration"""

    model_config = SettingsConfigDict(
        env_prefix="TARDIS_",
        env_file=".env",
        case_sensitive=False,
    )

    # Database configuration
    database_url: str = "sqlite:///tardis_bank.db"  # memory://, sqlite:///..., postgresql://...
    database_pool_size: int = 5

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8090
    cors_origins: str = "*"  # Comma separated

    # Security configuration
    jwt_secret: str = "change-me-in-production"
    jwt_expiry_hours: int = 24
    jwt_algorithm: str = "HS256"
    verification_expiry_hours: int = 72
    password_min_length: int = 1
    auto_verify_logins: bool = False  # Development only

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text

    # Business rules configuration
    allow_overdraft: bool = True

    # Schedule evaluation
    schedule_poll_seconds: float = 60.0  # 0 disables the background runner

    # Verification mail delivery
    mail_webhook_url: str = ""  # Empty = log only
    mail_timeout: float = 5.0
    mail_sender: str = "no-reply@tardisbank.local"
    public_base_url: str = "http://localhost:8090"


# Global configuration instance
config = TardisConfig()


def get_config() -> TardisConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> TardisConfig:
    """Reload configuration from environment"""
    global config
    config = TardisConfig()
    return config
