"""
PURPOSE: Configuration settings for Strategy Forge.

This module uses Pydantic Settings to manage configuration from environment
variables and .env files. All settings are validated and typed.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    PURPOSE: Central configuration class for Strategy Forge.

    Manages environment-based settings for logging, persistence backend
    selection and the simulated chain deployment backend.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # System Settings
    APP_ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Persistence (memory | redis)
    STORAGE_BACKEND: str = "memory"
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_KEY_PREFIX: str = "forge:"

    # API boundary
    RATE_LIMIT_ENABLED: bool = True
    MAX_INPUT_LENGTH: int = 500

    # Chain backend (simulated unless replaced)
    CHAIN_RPC_URL: str = "https://testnet.sentry.tm.injective.network:443"
    CONTRACT_ADDRESS: str = "0x1234567890123456789012345678901234567890"
    CHAIN_CONNECT_DELAY_S: float = 1.5
    CHAIN_DRAFT_DELAY_S: float = 0.5
    CHAIN_DEPLOY_DELAY_S: float = 2.5
    CHAIN_STOP_DELAY_S: float = 1.5
    CHAIN_FAILURE_RATE: float = 0.05

    def is_production(self) -> bool:
        """
        PURPOSE: Determine whether the app is running in production mode.

        Returns:
            bool: True when APP_ENV indicates production.
        """
        return self.APP_ENV.strip().lower() in {"prod", "production"}

    def is_development(self) -> bool:
        """
        PURPOSE: Determine whether the app is running in development mode.

        Returns:
            bool: True when APP_ENV indicates development or debug is on.
        """
        return self.APP_ENV.strip().lower() in {"dev", "development"} or self.DEBUG


settings: Settings = Settings()
