"""Configuration loader for Intel 471 lookups."""

import os
from dataclasses import dataclass
from typing import Optional

import validators

DEFAULT_URL = "https://api.intel471.com"

# Upper bound on in-flight search requests per batch
MAX_PARALLEL_LOOKUPS = 10


def _str_or_none(value: Optional[str]) -> Optional[str]:
    """Treat empty strings as unset."""
    return value if value else None


def _float_or_none(value: Optional[str]) -> Optional[float]:
    """Convert string to float or return None."""
    return float(value) if value else None


def _bool_or_none(value: Optional[str]) -> Optional[bool]:
    """Convert string to boolean, or None when unset."""
    if not value:
        return None
    return value.lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class LookupOptions:
    """Per-user options supplied with each lookup."""

    url: str = DEFAULT_URL
    user_name: Optional[str] = None
    api_key: Optional[str] = None

    @property
    def search_url(self) -> str:
        return f"{self.url.rstrip('/')}/v1/search"


@dataclass(frozen=True)
class RequestConfig:
    """HTTP client settings applied once at startup."""

    # TLS material, as file paths
    cert: Optional[str] = None
    key: Optional[str] = None
    passphrase: Optional[str] = None
    ca: Optional[str] = None

    proxy: Optional[str] = None

    # None leaves certificate verification at the library default
    reject_unauthorized: Optional[bool] = None

    # None leaves aiohttp's default timeout in place
    timeout_seconds: Optional[float] = None

    max_parallel_lookups: int = MAX_PARALLEL_LOOKUPS

    def __post_init__(self) -> None:
        if self.max_parallel_lookups < 1:
            raise ValueError(
                f"max_parallel_lookups must be at least 1, got {self.max_parallel_lookups}"
            )


@dataclass(frozen=True)
class OptionError:
    """A single option validation failure."""

    key: str
    message: str


def _is_blank(value: Optional[str]) -> bool:
    return not isinstance(value, str) or len(value) == 0


def validate_options(options: LookupOptions) -> list[OptionError]:
    """
    Validate user options before a lookup.

    Args:
        options: Options to check

    Returns:
        List of validation errors, empty when the options are usable
    """
    errors: list[OptionError] = []

    if _is_blank(options.url) or not validators.url(options.url, simple_host=True):
        errors.append(OptionError("url", "You must provide a valid Intel 471 API URL"))

    if _is_blank(options.user_name):
        errors.append(
            OptionError("userName", "You must provide a valid Intel 471 Username")
        )

    if _is_blank(options.api_key):
        errors.append(OptionError("apiKey", "You must provide a valid Intel 471 API Key"))

    return errors


def load_options() -> LookupOptions:
    """Load lookup options from environment variables."""
    return LookupOptions(
        url=os.environ.get("INTEL471_URL") or DEFAULT_URL,
        user_name=_str_or_none(os.environ.get("INTEL471_USERNAME")),
        api_key=_str_or_none(os.environ.get("INTEL471_API_KEY")),
    )


def load_request_config() -> RequestConfig:
    """Load HTTP client settings from environment variables."""
    return RequestConfig(
        cert=_str_or_none(os.environ.get("INTEL471_CERT")),
        key=_str_or_none(os.environ.get("INTEL471_KEY")),
        passphrase=_str_or_none(os.environ.get("INTEL471_PASSPHRASE")),
        ca=_str_or_none(os.environ.get("INTEL471_CA")),
        proxy=_str_or_none(os.environ.get("INTEL471_PROXY")),
        reject_unauthorized=_bool_or_none(
            os.environ.get("INTEL471_REJECT_UNAUTHORIZED")
        ),
        timeout_seconds=_float_or_none(os.environ.get("INTEL471_TIMEOUT")),
        max_parallel_lookups=int(
            os.environ.get("INTEL471_MAX_PARALLEL_LOOKUPS", str(MAX_PARALLEL_LOOKUPS))
        ),
    )
