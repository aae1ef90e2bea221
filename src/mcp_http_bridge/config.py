"""Bridge configuration.

Settings are read from the environment with pydantic-settings and then
validated into an immutable `BridgeConfig`:

- MCP_ENDPOINT (required, WP_MCP_ENDPOINT accepted as a fallback)
- MCP_AUTH_TOKEN: bearer token sent as `Authorization: Bearer <token>`
- CUSTOM_HEADERS: JSON object or `Key1:Value1,Key2:Value2`
- MCP_DEBUG: enables diagnostic logging on stderr
"""

import json
import logging
from typing import Any

from pydantic import AliasChoices, AnyHttpUrl, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from mcp_http_bridge.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

_TRUTHY = frozenset({"true", "1", "yes", "on"})

_url_adapter: TypeAdapter[AnyHttpUrl] = TypeAdapter(AnyHttpUrl)


class BridgeSettings(BaseSettings):
    """Raw settings as found in the environment.

    Values are kept as strings here; `load_config` turns them into a `BridgeConfig`.
    """

    model_config = SettingsConfigDict(env_prefix="MCP_", extra="ignore")

    endpoint: str | None = Field(
        default=None,
        validation_alias=AliasChoices("MCP_ENDPOINT", "WP_MCP_ENDPOINT"),
    )
    auth_token: str | None = None
    custom_headers: str = Field(default="", validation_alias="CUSTOM_HEADERS")
    debug: str = ""


class BridgeConfig(BaseModel):
    """Validated, immutable configuration. Constructed once at startup."""

    model_config = ConfigDict(frozen=True)

    endpoint: AnyHttpUrl
    auth_token: str | None = None
    custom_headers: dict[str, str] = Field(default_factory=dict)
    debug: bool = False
    timeout: float = DEFAULT_TIMEOUT

    @property
    def url(self) -> str:
        return str(self.endpoint)


def parse_debug_flag(raw: str | bool | None) -> bool:
    if isinstance(raw, bool):
        return raw
    return (raw or "").strip().lower() in _TRUTHY


def _stringify(value: Any) -> str:
    return value if isinstance(value, str) else json.dumps(value)


def parse_custom_headers(raw: str | None) -> dict[str, str]:
    """Parse custom headers from either a JSON object or comma-separated `key:value` pairs.

    JSON is tried first when the text looks like an object. The pair format has no
    escaping, so values cannot contain commas.

    Examples:
        >>> parse_custom_headers('{"X-API-Key": "abc123"}')
        {'X-API-Key': 'abc123'}
        >>> parse_custom_headers("X-API-Key:abc123,Authorization:Bearer token")
        {'X-API-Key': 'abc123', 'Authorization': 'Bearer token'}
    """
    if not raw or not raw.strip():
        return {}

    trimmed = raw.strip()

    if trimmed.startswith("{"):
        try:
            parsed = json.loads(trimmed)
        except json.JSONDecodeError as exc:
            logger.debug(f"Failed to parse headers as JSON: {exc}")
        else:
            if isinstance(parsed, dict):
                return {str(key): _stringify(value) for key, value in parsed.items()}
            logger.debug("Header JSON is not an object, falling back to key:value pairs")

    headers: dict[str, str] = {}
    for pair in trimmed.split(","):
        key, sep, value = pair.partition(":")
        key = key.strip()
        value = value.strip()
        if sep and key and value:
            headers[key] = value
    return headers


def load_config(
    endpoint: str | None = None,
    auth_token: str | None = None,
    custom_headers: str | None = None,
    debug: str | bool | None = None,
    timeout: float | None = None,
) -> BridgeConfig:
    """Build the bridge configuration from the environment.

    Arguments (e.g. from command-line options) win over the environment when they
    are not None.

    Raises:
        ConfigurationError: if the endpoint is missing or is not an http(s) URL, or if
            the token or a custom header cannot be sent as an HTTP header
    """
    settings = BridgeSettings()

    url_text = (endpoint if endpoint is not None else settings.endpoint or "").strip()
    if not url_text:
        raise ConfigurationError("MCP_ENDPOINT environment variable is required")

    try:
        endpoint_url = _url_adapter.validate_python(url_text)
    except ValidationError as exc:
        errors = exc.errors()
        detail = errors[0]["msg"] if errors else str(exc)
        raise ConfigurationError(f"Invalid MCP_ENDPOINT URL: {detail}") from exc

    token = (auth_token if auth_token is not None else settings.auth_token) or None
    if token is not None and not token.isascii():
        raise ConfigurationError("Invalid MCP_AUTH_TOKEN: only ASCII characters can be sent in a header")

    headers = parse_custom_headers(custom_headers if custom_headers is not None else settings.custom_headers)
    for key, value in headers.items():
        if not (key.isascii() and value.isascii()):
            raise ConfigurationError(f"Invalid CUSTOM_HEADERS: header {key!r} must contain only ASCII characters")

    return BridgeConfig(
        endpoint=endpoint_url,
        auth_token=token,
        custom_headers=headers,
        debug=parse_debug_flag(debug if debug is not None else settings.debug),
        timeout=timeout if timeout is not None else DEFAULT_TIMEOUT,
    )
