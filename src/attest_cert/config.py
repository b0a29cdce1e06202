"""
Configuration — typed, validated settings loaded from environment/.env.

Uses pydantic-settings to:
  - Load from ATTEST_CERT_* environment variables
  - Fall back to a .env file in the working directory
  - Validate types at startup, before any certificate is read

The library functions take their options as arguments; only the CLI reads
AppSettings.
"""

from __future__ import annotations

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from attest_cert.domain.models import CertFormat


class AppSettings(BaseSettings):
    """
    CLI settings.

    Load order (highest priority first):
      1. Command-line flags (applied by attest_cert.main)
      2. Environment variables (ATTEST_CERT_LOG_LEVEL, ATTEST_CERT_STRICT_DER, ...)
      3. .env file
      4. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="ATTEST_CERT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="structlog filtering level")
    strict_der: bool = Field(
        default=False,
        description="Require a DER SEQUENCE tag (0x30) for non-PEM input",
    )
    output_format: CertFormat = Field(
        default=CertFormat.PEM,
        description="Default target encoding for `attest-cert convert`",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Reject names the logging module does not know."""
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level {value!r}")
        return level
