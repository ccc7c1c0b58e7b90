"""
Configuration management (SSOT).

This module defines ALL configuration for the GoBiz bridge.
All config keys are defined here; no other module should invent config keys.

Key invariants:
- Pacing and settling delays are platform constraints, expressed in milliseconds
- Account secrets (password) come from the file or environment, never from code
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


DEFAULT_BASE_URL = "https://api.gobiz.co.id"
DEFAULT_CLIENT_ID = "go-biz-web-new"


@dataclass
class GoBizConfig:
    """GoBiz platform and client behaviour settings."""

    base_url: str = DEFAULT_BASE_URL
    client_id: str = DEFAULT_CLIENT_ID
    # HTTP timeout (seconds)
    timeout_seconds: int = 30
    # Minimum spacing between two calls of the same session
    min_request_interval_ms: int = 2000
    # Server-side propagation time between login request and password exchange
    login_settle_delay_ms: int = 3000
    # Response statuses that trigger one refresh-and-retry cycle
    auth_failure_statuses: list[int] = field(default_factory=lambda: [401])
    # Page size used when fetching every page of a journal search
    page_size: int = 100
    # Upper bound on pages fetched by a single search_all
    max_pages: int = 1000
    # Serialize top-level operations per user id
    serialize_per_user: bool = True


@dataclass
class AccountConfig:
    """Merchant account used by the command-line runner."""

    user_id: str = "default"
    email: str = ""
    password: str = ""
    merchant_id: str | None = None


@dataclass
class Config:
    """Application configuration (SSOT)."""

    gobiz: GoBizConfig = field(default_factory=GoBizConfig)
    account: AccountConfig = field(default_factory=AccountConfig)

    def validate(self) -> list[str]:
        """Validate configuration completeness and consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        if not self.gobiz.base_url:
            errors.append("gobiz.base_url is required")
        if not self.gobiz.client_id:
            errors.append("gobiz.client_id is required")
        if self.gobiz.timeout_seconds <= 0:
            errors.append("gobiz.timeout_seconds must be positive")
        if self.gobiz.min_request_interval_ms < 0:
            errors.append("gobiz.min_request_interval_ms must be >= 0")
        if self.gobiz.login_settle_delay_ms < 0:
            errors.append("gobiz.login_settle_delay_ms must be >= 0")
        if not self.gobiz.auth_failure_statuses:
            errors.append("gobiz.auth_failure_statuses must not be empty")
        if self.gobiz.page_size < 1:
            errors.append("gobiz.page_size must be >= 1")
        if self.gobiz.max_pages < 1:
            errors.append("gobiz.max_pages must be >= 1")

        return errors

    def validate_account(self) -> list[str]:
        """Validate the account section (only needed for logging in)."""
        errors: list[str] = []
        if not self.account.email:
            errors.append("account.email is required")
        if not self.account.password:
            errors.append("account.password is required")
        return errors


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default  # Keep file value


def load_config(config_path: Path) -> Config:
    """
    Load configuration from YAML file.

    Environment variables can override config values:
    - GOBIZ_BASE_URL
    - GOBIZ_CLIENT_ID
    - GOBIZ_TIMEOUT (request timeout in seconds)
    - GOBIZ_MIN_REQUEST_INTERVAL_MS
    - GOBIZ_LOGIN_SETTLE_DELAY_MS
    - GOBIZ_USER_ID
    - GOBIZ_EMAIL
    - GOBIZ_PASSWORD
    - GOBIZ_MERCHANT_ID
    """
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    else:
        data = {}

    gobiz_data = data.get("gobiz", {}) or {}
    gobiz = GoBizConfig(
        base_url=os.environ.get("GOBIZ_BASE_URL", gobiz_data.get("base_url", DEFAULT_BASE_URL)),
        client_id=os.environ.get(
            "GOBIZ_CLIENT_ID", gobiz_data.get("client_id", DEFAULT_CLIENT_ID)
        ),
        timeout_seconds=_int_env("GOBIZ_TIMEOUT", gobiz_data.get("timeout_seconds", 30)),
        min_request_interval_ms=_int_env(
            "GOBIZ_MIN_REQUEST_INTERVAL_MS", gobiz_data.get("min_request_interval_ms", 2000)
        ),
        login_settle_delay_ms=_int_env(
            "GOBIZ_LOGIN_SETTLE_DELAY_MS", gobiz_data.get("login_settle_delay_ms", 3000)
        ),
        auth_failure_statuses=[int(s) for s in gobiz_data.get("auth_failure_statuses", [401])],
        page_size=gobiz_data.get("page_size", 100),
        max_pages=gobiz_data.get("max_pages", 1000),
        serialize_per_user=gobiz_data.get("serialize_per_user", True),
    )

    account_data = data.get("account", {}) or {}
    merchant_id = os.environ.get("GOBIZ_MERCHANT_ID", account_data.get("merchant_id"))
    account = AccountConfig(
        user_id=os.environ.get("GOBIZ_USER_ID", account_data.get("user_id", "default")),
        email=os.environ.get("GOBIZ_EMAIL", account_data.get("email", "")),
        password=os.environ.get("GOBIZ_PASSWORD", account_data.get("password", "")),
        merchant_id=str(merchant_id) if merchant_id is not None else None,
    )

    return Config(gobiz=gobiz, account=account)


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    default_config = """# GoBiz Bridge Configuration
#
# Secrets can be supplied through the environment instead:
# GOBIZ_EMAIL, GOBIZ_PASSWORD, GOBIZ_MERCHANT_ID

gobiz:
  base_url: "https://api.gobiz.co.id"
  client_id: "go-biz-web-new"
  timeout_seconds: 30
  min_request_interval_ms: 2000          # Spacing between calls of one session
  login_settle_delay_ms: 3000            # Platform needs this between login steps
  auth_failure_statuses: [401]           # Statuses that trigger refresh-and-retry
  page_size: 100                         # Page size when fetching all journals
  max_pages: 1000                        # Hard stop for pagination
  serialize_per_user: true               # One top-level operation per user at a time

account:
  user_id: "default"
  email: "merchant@example.com"
  password: "YOUR_PASSWORD"
  merchant_id: null
"""

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        f.write(default_config)
