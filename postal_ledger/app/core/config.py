"""
Configuration settings for the Postal Ledger Service.

This module handles application configuration using Pydantic settings.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = "Postal Ledger Service"
    api_version: str = "v1"
    debug: bool = False
    log_level: str = "INFO"

    # Database Configuration
    database_url: str = "sqlite+aiosqlite:///./postal_ledger.db"
    db_echo: bool = False

    # World state backend: "sql", "redis" or "memory"
    state_backend: str = "sql"

    # Redis Configuration
    redis_url: str = "redis://localhost:6379/0"
    redis_key_prefix: str = "postal:state:"

    # Security Configuration (JWT)
    secret_key: str = "change-this-secret-key-in-production-min-32-chars"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    # Membership (stands in for the Fabric CA / MSP of org1)
    msp_id: str = "Org1MSP"
    ca_name: str = "ca.org1.postal.com"
    affiliation: str = "org1.department1"
    admin_username: str = "admin"
    admin_secret: str = "adminpw"

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
