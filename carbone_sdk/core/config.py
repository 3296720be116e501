"""
Centralized configuration for the Carbone SDK.

Pydantic v2 settings management: values are read from CARBONE_*
environment variables (or a local .env file), validated once, and kept
immutable. The API token is held as a SecretStr so it never appears in
reprs or logs.
"""

from functools import lru_cache
from typing import Annotated

from pydantic import AnyHttpUrl, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


# -------------------------------------------------------------------------
# Reusable Type Aliases
# -------------------------------------------------------------------------

SensitiveEnv = Annotated[
    SecretStr,
    Field(description="Sensitive credential, redacted from logs"),
]

PositiveSeconds = Annotated[
    float,
    Field(gt=0, description="Timeout in seconds"),
]


# -------------------------------------------------------------------------
# Settings Model
# -------------------------------------------------------------------------

class Settings(BaseSettings):
    """
    SDK settings parsed from the environment.

    Fails fast on construction if the API token is missing or if any
    transport parameter is malformed.
    """

    # ---------------------------------------------------------------------
    # Credentials
    # ---------------------------------------------------------------------

    api_token: SensitiveEnv

    # ---------------------------------------------------------------------
    # Remote service
    # ---------------------------------------------------------------------

    api_url: Annotated[
        AnyHttpUrl,
        Field(
            default="https://api.carbone.io",
            description="Base URL of the Carbone render service",
        ),
    ]

    api_version: Annotated[
        str,
        Field(
            default="4",
            min_length=1,
            description="Value sent in the carbone-version header",
        ),
    ]

    # ---------------------------------------------------------------------
    # Transport boundaries
    # ---------------------------------------------------------------------

    timeout_seconds: PositiveSeconds = 60.0
    connect_timeout_seconds: PositiveSeconds = 10.0

    model_config = SettingsConfigDict(
        env_prefix="CARBONE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
    )

    @property
    def base_url(self) -> str:
        return str(self.api_url).rstrip("/")


# -------------------------------------------------------------------------
# Settings Provider
# -------------------------------------------------------------------------

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Process-wide settings singleton.

    Call get_settings.cache_clear() after changing the environment.
    """
    return Settings()
