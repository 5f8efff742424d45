"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_ledger_settings() -> "LedgerSettings":
    """Build ledger settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return LedgerSettings()  # type: ignore[call-arg]


def _build_storage_settings() -> "StorageSettings":
    return StorageSettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    See _build_ledger_settings() for rationale about the type ignore.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class LedgerSettings(BaseSettings):
    """Ledger (contract) connection configuration.

    The contract address is validated lazily by the ledger client cache so a
    misconfigured address degrades read endpoints instead of crashing startup.
    """

    contract_address: str = Field(
        "",
        description="Deployed contract address (0x-prefixed, 40 hex characters)",
    )
    chain_id: int = Field(
        31337,
        description="Active chain identifier (31337 = local hardhat node)",
    )
    rpc_url: str = Field(
        "http://127.0.0.1:8545",
        description="JSON-RPC endpoint of the active network",
    )
    signer_private_key: str | None = Field(
        None,
        description="Operator key used to sign write transactions (writes disabled when unset)",
    )
    request_timeout_seconds: float = Field(
        15.0,
        description="Timeout for a single JSON-RPC round trip",
        gt=0,
    )
    tx_receipt_timeout_seconds: float = Field(
        120.0,
        description="How long to wait for a submitted transaction to be mined",
        gt=0,
    )
    scan_upper_bound: int = Field(
        99,
        description="Highest post id probed by sequential-scan discovery",
        ge=1,
    )
    scan_concurrency: int = Field(
        8,
        description="Maximum concurrent point lookups during a scan",
        ge=1,
    )
    scan_timeout_seconds: float = Field(
        20.0,
        description="Deadline for a whole discovery scan",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        case_sensitive=False,
    )


class StorageSettings(BaseSettings):
    """Content storage (IPFS pinning service) configuration."""

    pinata_jwt: str | None = Field(
        None,
        description="Pinata JWT (preferred over key/secret pair)",
    )
    pinata_api_key: str | None = Field(None, description="Pinata API key")
    pinata_secret_key: str | None = Field(None, description="Pinata API secret")
    pin_file_url: str = Field(
        "https://api.pinata.cloud/pinning/pinFileToIPFS",
        description="Pinning endpoint for file uploads",
    )
    gateway_url: str = Field(
        "https://gateway.pinata.cloud/ipfs",
        description="Public gateway used to build content URLs",
    )
    timeout_seconds: float = Field(
        60.0,
        description="Upload request timeout in seconds",
        gt=0,
    )
    app_tag: str = Field(
        "creator-ledger",
        description="Value stored in pin metadata to identify this service",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    max_upload_size_mb: int = Field(
        100,
        description="Hard cap on upload size in megabytes (per-category caps also apply)",
    )
    api_key_required: bool = Field(
        True,
        description="Whether API key authentication is required on mutating endpoints",
    )
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid API keys for authentication",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client sliding-window rate limiting",
    )
    rate_limit_read_requests: int = Field(100, ge=1, description="Read endpoints: requests per window")
    rate_limit_read_window_seconds: float = Field(60, gt=0, description="Read endpoints: window size")
    rate_limit_write_requests: int = Field(20, ge=1, description="Write endpoints: requests per window")
    rate_limit_write_window_seconds: float = Field(60, gt=0, description="Write endpoints: window size")
    rate_limit_register_requests: int = Field(10, ge=1, description="Creator registration: requests per window")
    rate_limit_register_window_seconds: float = Field(60, gt=0, description="Creator registration: window size")
    rate_limit_upload_requests: int = Field(10, ge=1, description="Uploads: requests per window")
    rate_limit_upload_window_seconds: float = Field(60, gt=0, description="Uploads: window size")
    rate_limit_sweep_interval_seconds: float = Field(
        60,
        gt=0,
        description="How often idle rate limit windows are swept from memory",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="json or plain")
    output: str = Field("stdout", description="stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(10 * 1024 * 1024, description="Rotate file after this many bytes (0 disables)")
    backup_count: int = Field(5, description="Number of rotated files to keep")
    request_id_header: str = Field("X-Request-ID", description="Correlation id header")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Read once at startup; there is no hot reload.
    """

    app_env: str = APP_ENV
    ledger: LedgerSettings = Field(default_factory=_build_ledger_settings)
    storage: StorageSettings = Field(default_factory=_build_storage_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
