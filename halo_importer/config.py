"""Runtime configuration for the Halo action importer.

All settings come from environment variables. Connection settings are
required; tuning knobs fall back to defaults.

Usage
-----
>>> import os
>>> os.environ.update(
...     {
...         "BASE_RESOURCE_URL": "https://halo.example.test",
...         "CLIENT_ID": "importer",
...         "CLIENT_SECRET": "secret",
...         "ACTION_IDS_RESOURCE_PATH": "api/ReportData/1",
...         "ACTION_ID_CUSTOM_FIELD_ID": "214",
...     }
... )
>>> config = ImporterConfig.from_env()
>>> str(config.token_url)
'https://halo.example.test/auth/token'

"""

from __future__ import annotations

import dataclasses
import os

import httpx

from halo_importer.errors import ImporterConfigError
from halo_importer.logging import normalize_log_level

BASE_RESOURCE_URL_KEY = "BASE_RESOURCE_URL"
CLIENT_ID_KEY = "CLIENT_ID"
CLIENT_SECRET_KEY = "CLIENT_SECRET"  # noqa: S105 - variable name, not a secret
ACTION_IDS_RESOURCE_PATH_KEY = "ACTION_IDS_RESOURCE_PATH"
ACTION_ID_CUSTOM_FIELD_ID_KEY = "ACTION_ID_CUSTOM_FIELD_ID"
ACTION_IDS_REPORT_FIELD_KEY = "ACTION_IDS_REPORT_FIELD"
LOG_LEVEL_KEY = "LOG_LEVEL"
TOKEN_SAFETY_MARGIN_KEY = "TOKEN_SAFETY_MARGIN_SECONDS"  # noqa: S105
GATEWAY_RETRY_LIMIT_KEY = "GATEWAY_RETRY_LIMIT"
GATEWAY_COOLDOWN_KEY = "GATEWAY_COOLDOWN_SECONDS"
SUBMIT_DELAY_KEY = "SUBMIT_DELAY_MS"
HTTP_TIMEOUT_KEY = "HTTP_TIMEOUT_SECONDS"

TOKEN_PATH = "/auth/token"  # noqa: S105 - URL path
ACTIONS_PATH = "/api/actions"

_DEFAULT_REPORT_FIELD = "existingActionIds"
_DEFAULT_SAFETY_MARGIN_S = 60.0
_DEFAULT_GATEWAY_RETRY_LIMIT = 10
_DEFAULT_GATEWAY_COOLDOWN_S = 30.0
_DEFAULT_SUBMIT_DELAY_S = 0.5
_DEFAULT_TIMEOUT_S = 60.0


def resolve_resource_url(base_url: httpx.URL, path: str) -> httpx.URL:
    """Resolve a report path (or absolute URL) against the base resource URL.

    Relative entries replace the base URL's path, matching how the token and
    action endpoints are derived.
    """
    entry = path.strip()
    if "://" in entry:
        return httpx.URL(entry)
    return base_url.join("/" + entry.lstrip("/"))


@dataclasses.dataclass(frozen=True, slots=True)
class ImporterConfig:
    """Resolved configuration bundle for one import run.

    Attributes
    ----------
    base_resource_url
        Base URL of the Halo instance.
    client_id, client_secret
        Client-credentials pair used for the token exchange.
    action_ids_resources
        Report resources that list the action identifiers already in Halo.
    action_id_custom_field_id
        Numeric identifier of the custom field that stores ``action_id``.
    report_id_field
        Name of the report column holding the comma-delimited identifiers.
    log_level
        Normalized femtologging level name.
    token_safety_margin_s
        Seconds subtracted from a token's expiry before it is considered stale.
    gateway_retry_limit
        Maximum gateway-timeout retries per report resource.
    gateway_cooldown_s
        Seconds to wait between gateway-timeout retries.
    submit_delay_s
        Minimum delay before every action submission.
    timeout_s
        HTTP request timeout.

    """

    base_resource_url: httpx.URL
    client_id: str
    client_secret: str
    action_ids_resources: tuple[httpx.URL, ...]
    action_id_custom_field_id: int
    report_id_field: str = _DEFAULT_REPORT_FIELD
    log_level: str = "INFO"
    token_safety_margin_s: float = _DEFAULT_SAFETY_MARGIN_S
    gateway_retry_limit: int = _DEFAULT_GATEWAY_RETRY_LIMIT
    gateway_cooldown_s: float = _DEFAULT_GATEWAY_COOLDOWN_S
    submit_delay_s: float = _DEFAULT_SUBMIT_DELAY_S
    timeout_s: float = _DEFAULT_TIMEOUT_S

    @property
    def token_url(self) -> httpx.URL:
        """Return the identity endpoint derived from the base URL."""
        return self.base_resource_url.join(TOKEN_PATH)

    @property
    def actions_url(self) -> httpx.URL:
        """Return the action submission endpoint."""
        return self.base_resource_url.join(ACTIONS_PATH)

    @classmethod
    def from_env(cls) -> ImporterConfig:
        """Create configuration from environment variables.

        Returns
        -------
        ImporterConfig
            Configuration with values from the environment or defaults.

        Raises
        ------
        ImporterConfigError
            If a required variable is missing or any value is malformed.

        """
        base_resource_url = _parse_url(_require(BASE_RESOURCE_URL_KEY))
        client_id = _require(CLIENT_ID_KEY)
        client_secret = _require(CLIENT_SECRET_KEY)

        raw_paths = _require(ACTION_IDS_RESOURCE_PATH_KEY)
        resources = tuple(
            resolve_resource_url(base_resource_url, path)
            for path in raw_paths.split(",")
            if path.strip()
        )
        if not resources:
            raise ImporterConfigError.invalid(
                ACTION_IDS_RESOURCE_PATH_KEY, raw_paths, "no report paths given"
            )

        field_id = _parse_int(
            ACTION_ID_CUSTOM_FIELD_ID_KEY, _require(ACTION_ID_CUSTOM_FIELD_ID_KEY)
        )

        raw_level = os.environ.get(LOG_LEVEL_KEY, "INFO")
        log_level, invalid_level = normalize_log_level(raw_level)
        if invalid_level:
            raise ImporterConfigError.invalid(
                LOG_LEVEL_KEY, raw_level, "expected TRACE, DEBUG, INFO, WARN or ERROR"
            )

        report_field = (
            os.environ.get(ACTION_IDS_REPORT_FIELD_KEY, "").strip()
            or _DEFAULT_REPORT_FIELD
        )

        return cls(
            base_resource_url=base_resource_url,
            client_id=client_id,
            client_secret=client_secret,
            action_ids_resources=resources,
            action_id_custom_field_id=field_id,
            report_id_field=report_field,
            log_level=log_level,
            token_safety_margin_s=_optional_float(
                TOKEN_SAFETY_MARGIN_KEY, _DEFAULT_SAFETY_MARGIN_S
            ),
            gateway_retry_limit=_optional_int(
                GATEWAY_RETRY_LIMIT_KEY, _DEFAULT_GATEWAY_RETRY_LIMIT
            ),
            gateway_cooldown_s=_optional_float(
                GATEWAY_COOLDOWN_KEY, _DEFAULT_GATEWAY_COOLDOWN_S
            ),
            submit_delay_s=_optional_float(
                SUBMIT_DELAY_KEY, _DEFAULT_SUBMIT_DELAY_S * 1000
            )
            / 1000,
            timeout_s=_optional_float(HTTP_TIMEOUT_KEY, _DEFAULT_TIMEOUT_S),
        )


def _require(key: str) -> str:
    value = os.environ.get(key, "").strip()
    if not value:
        raise ImporterConfigError.missing(key)
    return value


def _parse_url(raw: str) -> httpx.URL:
    try:
        url = httpx.URL(raw)
    except httpx.InvalidURL as exc:
        raise ImporterConfigError.invalid(
            BASE_RESOURCE_URL_KEY, raw, "not a valid URL"
        ) from exc
    if url.scheme not in {"http", "https"} or not url.host:
        raise ImporterConfigError.invalid(
            BASE_RESOURCE_URL_KEY, raw, "expected an absolute http(s) URL"
        )
    return url


def _parse_int(key: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise ImporterConfigError.invalid(key, raw, "expected an integer") from exc
    if value < 1:
        raise ImporterConfigError.invalid(key, raw, "must be positive")
    return value


def _optional_int(key: str, default: int) -> int:
    raw = os.environ.get(key, "")
    if not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ImporterConfigError.invalid(key, raw, "expected an integer") from exc
    if value < 0:
        raise ImporterConfigError.invalid(key, raw, "must not be negative")
    return value


def _optional_float(key: str, default: float) -> float:
    """Read a non-negative number, falling back to a default when unset."""
    raw = os.environ.get(key, "")
    if not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ImporterConfigError.invalid(key, raw, "expected a number") from exc
    if value < 0:
        raise ImporterConfigError.invalid(key, raw, "must not be negative")
    return value
