"""Configuration management for the TradeStation client"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

from tradestation.shared.exceptions import ConfigurationError

DEFAULT_BASE_URL = "https://api.tradestation.com/v3"
DEFAULT_TOKEN_URL = "https://signin.tradestation.com/oauth/token"
DEFAULT_REDIRECT_URI = "http://localhost:8080/"


@dataclass(frozen=True)
class Config:
    """Configuration for the TradeStation client loaded from environment variables"""

    # Fields without defaults (required parameters)
    client_id: str
    client_secret: str

    # Fields with defaults (optional parameters with sensible defaults)
    refresh_token: str | None = None
    base_url: str = DEFAULT_BASE_URL
    token_url: str = DEFAULT_TOKEN_URL
    redirect_uri: str = DEFAULT_REDIRECT_URI
    timeout: float = 30.0

    # Seconds before expiry at which a token is treated as stale
    refresh_margin: int = 60

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Config":
        """Load configuration from environment variables

        Args:
            env_file: Optional .env file loaded before reading the environment.
                Variables already set in the environment take precedence.

        Returns:
            Config instance with values from environment

        Raises:
            ConfigurationError: If required environment variables are missing
                or invalid
        """
        if env_file is not None:
            load_dotenv(env_file, override=False)

        required_vars = {
            "TRADESTATION_CLIENT_ID": os.getenv("TRADESTATION_CLIENT_ID"),
            "TRADESTATION_CLIENT_SECRET": os.getenv(
                "TRADESTATION_CLIENT_SECRET"
            ),
        }
        missing = [k for k, v in required_vars.items() if not v]
        if missing:
            raise ConfigurationError(
                f"Missing TradeStation configuration: {missing}"
            )

        try:
            timeout = float(os.getenv("TRADESTATION_TIMEOUT", "30"))
            refresh_margin = int(os.getenv("TRADESTATION_REFRESH_MARGIN", "60"))
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

        if timeout <= 0:
            raise ConfigurationError("TRADESTATION_TIMEOUT must be positive")
        if refresh_margin < 0:
            raise ConfigurationError(
                "TRADESTATION_REFRESH_MARGIN must not be negative"
            )

        config = cls(
            client_id=required_vars["TRADESTATION_CLIENT_ID"],  # type: ignore[arg-type]
            client_secret=required_vars["TRADESTATION_CLIENT_SECRET"],  # type: ignore[arg-type]
            refresh_token=os.getenv("TRADESTATION_REFRESH_TOKEN") or None,
            base_url=os.getenv("TRADESTATION_BASE_URL", DEFAULT_BASE_URL),
            token_url=os.getenv("TRADESTATION_TOKEN_URL", DEFAULT_TOKEN_URL),
            redirect_uri=os.getenv(
                "TRADESTATION_REDIRECT_URI", DEFAULT_REDIRECT_URI
            ),
            timeout=timeout,
            refresh_margin=refresh_margin,
        )

        logger.info("Configuration loaded:")
        logger.info(f"  Client ID: {config.client_id}")
        logger.info("  Client Secret: ***")
        logger.info(
            f"  Refresh Token: {'Configured' if config.refresh_token else 'Not configured'}"
        )
        logger.info(f"  Base URL: {config.base_url}")
        logger.info(f"  Token URL: {config.token_url}")
        logger.info(f"  Timeout: {config.timeout}s")
        logger.info(f"  Refresh Margin: {config.refresh_margin}s")

        return config
