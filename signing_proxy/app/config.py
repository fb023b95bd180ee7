"""
Configuration module for the Signing Proxy.

This module uses Pydantic Settings to load and validate the environment
variables that describe the upstream host, the listening port and the
identity used to sign every outbound request.

Environment variables are loaded from the system environment, then from a
.env file in the working directory.
"""

from functools import lru_cache
from typing import Any, Dict, List, Optional

from pydantic import Field, HttpUrl, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from signing_proxy.app.errors import ConfigurationError
from signing_proxy.app.signing.signer import ProcessIdentity


# Human readable names used when reporting missing parameters
REQUIRED_PARAMETERS: Dict[str, str] = {
    "REMOTE_HOST": "Host",
    "PORT": "Port",
    "K_USER_ID": "User ID",
    "K_PRIVATE_KEY": "Private Key",
}

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Settings are read once at startup and never re-read while serving;
    the resulting object is shared read-only by every request.
    """

    # =========================================================================
    # Upstream & Listener Configuration
    # =========================================================================

    PORT: int = Field(
        ...,
        description="Local port to bind the proxy server",
        ge=1,
        le=65535,
    )

    HOST: str = Field(
        default="0.0.0.0",
        description="Local address to bind the proxy server",
    )

    REMOTE_HOST: HttpUrl = Field(
        ...,
        description="Base URL of the upstream host, scheme + host (e.g., https://api.example.com)",
    )

    # =========================================================================
    # Signing Identity
    # =========================================================================

    K_USER_ID: str = Field(
        ...,
        description="User ID embedded in every signed request",
        min_length=1,
    )

    K_PRIVATE_KEY: str = Field(
        ...,
        description="Shared secret used as the HMAC-SHA512 key",
        min_length=1,
    )

    # =========================================================================
    # Outbound Client Configuration
    # =========================================================================

    UPSTREAM_TIMEOUT_SECONDS: Optional[float] = Field(
        default=None,
        description="Overall timeout for upstream calls (unset means no deadline)",
        gt=0,
    )

    UPSTREAM_CONNECT_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Connect timeout for upstream calls",
        gt=0,
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def remote_host_str(self) -> str:
        """
        Get upstream base URL as string, without trailing slash.

        Request paths always start with "/", so the base must not end with one.
        """
        return str(self.REMOTE_HOST).rstrip("/")

    @property
    def identity(self) -> ProcessIdentity:
        return ProcessIdentity(user_id=self.K_USER_ID, private_key=self.K_PRIVATE_KEY)

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {LOG_LEVELS}, got: {v}")
        return v


def _describe_errors(exc: ValidationError) -> List[str]:
    """
    Turn pydantic validation errors into one message per offending setting.

    An empty value counts as not present, the same as an unset variable.
    """
    messages = []
    for error in exc.errors():
        name = str(error["loc"][0]) if error["loc"] else "settings"
        label = REQUIRED_PARAMETERS.get(name, "Parameter")
        if error["type"] == "missing" or error.get("input") == "":
            messages.append(f"{label} parameter {name} not present")
        else:
            messages.append(f"{label} parameter {name} invalid: {error['msg']}")
    return messages


def load_settings(**overrides: Any) -> Settings:
    """
    Load and validate settings.

    Args:
        **overrides: Explicit values that take precedence over the environment

    Returns:
        Validated Settings instance

    Raises:
        ConfigurationError: If a required setting is missing or invalid.
            The message names every offending setting.
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        raise ConfigurationError("; ".join(_describe_errors(e))) from e


# =============================================================================
# Settings Singleton
# =============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get or create a singleton Settings instance.

    Raises:
        ConfigurationError: If required environment variables are missing
                            or invalid.
    """
    return load_settings()
