"""Environment configuration for data sources and the backend API."""

import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_POLL_MS = 5000
DEFAULT_TIMEOUT_S = 15.0


class Settings(BaseSettings):
    """Environment layer of the data source configuration cascade.

    All fields are optional. Choices, policies, flags and numbers are kept as
    raw strings here and parsed leniently where they are used, so a bad value
    is logged and skipped instead of failing at startup.

    Environment variables:
        DATA_SOURCE_SHOWS_LIST: contract|backend|hybrid for the list view
        DATA_SOURCE_SHOW_DETAIL: contract|backend|hybrid for the detail view
        DATA_SOURCE_MERGE_POLICY: JSON merge policy, e.g.
            {"defaultMode":"coalesce","listFields":{"description":"preferBackend"}}
        DATA_CONFIG_PATH: Remote config document (http(s) URL or file path)
        DATA_CONFIG_POLL_MS: Poll interval in milliseconds (default: 5000)
        DATA_CONFIG_POLL_ENABLE: "true" forces polling on outside development
        APP_ENV: Runtime mode; "development" enables polling automatically
        DATA_SOURCE_OVERRIDE_PATH: File holding the persisted local override
        API_BASE_URL: Backend API base URL (backend reads disabled when unset)
        API_TIMEOUT_S: Backend request timeout in seconds (default: 15)
        REQUEST_ID_HEADER: Response header carrying the request id

    Example (.env file):
        DATA_SOURCE_SHOWS_LIST=hybrid
        DATA_SOURCE_MERGE_POLICY={"defaultMode":"preferContract"}
        DATA_CONFIG_PATH=https://config.example.com/data-sources.json
        APP_ENV=development
    """

    data_source_shows_list: str | None = None
    data_source_show_detail: str | None = None
    data_source_merge_policy: str | None = None

    data_config_path: str | None = None
    data_config_poll_ms: str | None = None
    data_config_poll_enable: str | None = None
    app_env: str = "production"

    data_source_override_path: str = ".showbridge/data_source_override.json"

    api_base_url: str | None = None
    api_timeout_s: str | None = None
    request_id_header: str = "x-request-id"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @property
    def poll_interval_s(self) -> float:
        """Poll interval in seconds; invalid or non-positive values use the default."""
        try:
            interval_ms = int(self.data_config_poll_ms or "")
        except ValueError:
            interval_ms = DEFAULT_POLL_MS
        if interval_ms <= 0:
            interval_ms = DEFAULT_POLL_MS
        return interval_ms / 1000

    @property
    def is_development(self) -> bool:
        return self.app_env.strip().lower() in ("development", "dev")

    @property
    def polling_enabled(self) -> bool:
        """Polling runs when a document is configured and the mode allows it."""
        return bool(self.data_config_path) and (self.poll_forced or self.is_development)

    @property
    def poll_forced(self) -> bool:
        """True only when DATA_CONFIG_POLL_ENABLE is "true" (case-insensitive)."""
        value = (self.data_config_poll_enable or "").strip().lower()
        if value not in ("", "true", "false"):
            logger.warning("Ignoring invalid DATA_CONFIG_POLL_ENABLE %r", value)
        return value == "true"

    @property
    def request_timeout_s(self) -> float:
        """Backend timeout in seconds; invalid or non-positive values use the default."""
        if not self.api_timeout_s:
            return DEFAULT_TIMEOUT_S
        try:
            timeout = float(self.api_timeout_s)
        except ValueError:
            timeout = 0.0
        if not 0 < timeout < float("inf"):
            logger.warning("Ignoring invalid API_TIMEOUT_S %r", self.api_timeout_s)
            return DEFAULT_TIMEOUT_S
        return timeout
