"""Environment-sourced configuration for the gateway."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .core.client import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, clamp_timeout, normalize_base_url

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3022

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in _TRUE_VALUES


@dataclass
class Settings:
    """
    Everything the gateway reads from its environment.

    Read once at startup and never modified afterwards.

    Environment variables:
        HYPERNYM_API_KEY: Your API key from Hypernym (required)
        HYPERNYM_API_URL: API base, a trailing /analyze_sync is accepted
        HYPERNYM_TIMEOUT: Seconds per upstream attempt (default 60, max 120)
        HYPERNYM_RAW_RESPONSE: 'true' makes semantic_compression return raw JSON
        HOST / PORT: Where the REST server listens (default 0.0.0.0:3022)
        SSL_KEY_PATH / SSL_CERT_PATH: Enable HTTPS when both are set
        LOG_LEVEL: Logging level name (default INFO)
    """
    api_key: str
    api_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    raw_response: bool = False
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    ssl_key_path: Optional[str] = None
    ssl_cert_path: Optional[str] = None
    log_level: str = "INFO"

    def __post_init__(self):
        if not self.api_key:
            raise ValueError("HYPERNYM_API_KEY must be provided or set as environment variable")
        self.api_url = normalize_base_url(self.api_url or DEFAULT_BASE_URL)
        self.timeout = clamp_timeout(self.timeout)
        self.log_level = (self.log_level or "INFO").upper()

    @property
    def tls_enabled(self) -> bool:
        return bool(self.ssl_key_path and self.ssl_cert_path)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> 'Settings':
        """
        Build settings from environment variables.

        Keyword overrides that are not None win over the environment (used by
        the command-line flags).

        Raises:
            ValueError: API key missing, or a numeric variable is not a number
        """
        env = os.environ if environ is None else environ

        try:
            values = {
                'api_key': env.get("HYPERNYM_API_KEY", ""),
                'api_url': env.get("HYPERNYM_API_URL") or DEFAULT_BASE_URL,
                'timeout': float(env.get("HYPERNYM_TIMEOUT") or DEFAULT_TIMEOUT),
                'raw_response': _env_flag(env.get("HYPERNYM_RAW_RESPONSE")),
                'host': env.get("HOST") or DEFAULT_HOST,
                'port': int(env.get("PORT") or DEFAULT_PORT),
                'ssl_key_path': env.get("SSL_KEY_PATH") or None,
                'ssl_cert_path': env.get("SSL_CERT_PATH") or None,
                'log_level': env.get("LOG_LEVEL") or "INFO",
            }
        except ValueError as e:
            raise ValueError(f"Invalid numeric setting in environment: {e}") from e

        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)


__all__ = ['Settings', 'DEFAULT_HOST', 'DEFAULT_PORT']
