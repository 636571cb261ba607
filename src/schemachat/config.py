"""Configuration: Frozen Config with the credential resolved once."""

from __future__ import annotations

from dataclasses import dataclass
import os

from dotenv import load_dotenv
import httpx

from schemachat.errors import ConfigurationError

load_dotenv()

API_KEY_ENV_VAR = "OPENAI_API_KEY"
BASE_URL_ENV_VAR = "OPENAI_BASE_URL"

DEFAULT_MODEL = "gpt-4o"
DEFAULT_BASE_URL = "https://api.openai.com/v1"


@dataclass(frozen=True)
class Config:
    """Immutable configuration for a chat-completion call.

    The API key is resolved from ``OPENAI_API_KEY`` when not passed
    explicitly. A missing key is fatal here, before any request is built.

    Example:
        config = Config(model="gpt-4o")
        # API key is automatically resolved from OPENAI_API_KEY
    """

    model: str = DEFAULT_MODEL
    #: Auto-resolved from ``OPENAI_API_KEY`` when *None*.
    api_key: str | None = None
    #: Auto-resolved from ``OPENAI_BASE_URL`` when *None*.
    base_url: str | None = None
    timeout_s: float = 60.0
    #: Log the outgoing request body (never the headers).
    debug: bool = False
    use_mock: bool = False

    def __post_init__(self) -> None:
        """Auto-resolve credential and endpoint, then validate."""
        if not isinstance(self.model, str) or not self.model.strip():
            raise ConfigurationError(
                "model must be a non-empty string",
                hint="Pass model='gpt-4o' or another chat-completions model id.",
            )
        if self.timeout_s <= 0:
            raise ConfigurationError(
                f"timeout_s must be > 0, got {self.timeout_s}",
                hint="This bounds the single HTTP call in seconds.",
            )

        if self.base_url is None:
            resolved_url = os.environ.get(BASE_URL_ENV_VAR) or DEFAULT_BASE_URL
            object.__setattr__(self, "base_url", resolved_url)
        _check_base_url(str(self.base_url))

        if self.api_key is None and not self.use_mock:
            object.__setattr__(self, "api_key", os.environ.get(API_KEY_ENV_VAR))

        if not self.use_mock and not self.api_key:
            raise ConfigurationError(
                "API key required",
                hint=f"Set {API_KEY_ENV_VAR} environment variable or pass api_key=...",
            )

    @property
    def endpoint(self) -> str:
        """Full chat-completions URL."""
        return f"{str(self.base_url).rstrip('/')}/chat/completions"

    def __str__(self) -> str:
        """Return a redacted, developer-friendly representation."""
        return (
            f"Config(model={self.model!r}, base_url={self.base_url!r}, "
            f"api_key={'[REDACTED]' if self.api_key else None}, use_mock={self.use_mock})"
        )

    __repr__ = __str__


def _check_base_url(base_url: str) -> None:
    """Reject a base URL httpx cannot send to, before any request is built."""
    hint = f"Set {BASE_URL_ENV_VAR} to an absolute http(s) URL such as {DEFAULT_BASE_URL}."
    try:
        url = httpx.URL(base_url)
    except httpx.InvalidURL as e:
        raise ConfigurationError(f"Invalid base_url {base_url!r}: {e}", hint=hint) from e
    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError(
            f"Invalid base_url {base_url!r}: expected an absolute http(s) URL",
            hint=hint,
        )
    if url.port is not None and not 0 < url.port < 65536:
        raise ConfigurationError(
            f"Invalid base_url {base_url!r}: port {url.port} is out of range",
            hint=hint,
        )
