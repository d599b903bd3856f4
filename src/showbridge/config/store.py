"""Versioned data source configuration store with a layered cascade.

Resolution order, lowest to highest priority:

1. Compiled defaults (contract/contract, merge mode coalesce)
2. Environment (see Settings)
3. Remote config document, fetched at load time and re-applied by the poller
4. Persisted local override, always applied last

A failure at any layer is logged and the layer is skipped; loading never
raises. Mutations are synchronous and last-write-wins.
"""

import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from showbridge.config.documents import (
    FIELD_KEYS,
    config_from_settings,
    fetch_document,
    patch_from_override_document,
    patch_from_remote_document,
    patch_to_document,
)
from showbridge.config.persistence import MemoryOverrideStorage, OverrideStorage
from showbridge.config.settings import Settings
from showbridge.core.models import DataSourceConfig

logger = logging.getLogger(__name__)

Listener = Callable[[DataSourceConfig], None]
DocumentFetcher = Callable[[str], Awaitable[str]]


class DataSourceConfigStore:
    """Holds the single live DataSourceConfig and notifies subscribers.

    The store is constructed once at process start and passed by reference
    to the query facade and any other consumer.

    Example:
        store = DataSourceConfigStore(Settings())
        await store.load()  # remote document, then persisted override

        unsubscribe = store.subscribe(lambda cfg: print(cfg.list_source_choice))
        store.set({"list_source_choice": "backend"})  # prints SourceChoice.BACKEND
        unsubscribe()

    Note:
        ``set`` replaces the value shallowly: keys in the patch replace the
        whole attribute (a given merge policy replaces the previous one),
        keys not in the patch keep their value.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        storage: OverrideStorage | None = None,
        fetcher: DocumentFetcher | None = None,
    ):
        """Initialize the store with layers 1 and 2 resolved.

        Args:
            settings: Environment settings. If None, loads from environment.
            storage: Override persistence. Defaults to an in-memory store.
            fetcher: Async callable returning the remote document text for a
                location. Defaults to fetch_document.
        """
        if settings is None:
            settings = Settings()

        self.settings = settings
        self.storage: OverrideStorage = storage if storage is not None else MemoryOverrideStorage()
        self.fetcher: DocumentFetcher = fetcher or fetch_document
        self.document_location = settings.data_config_path

        self._base = config_from_settings(settings)
        self._config = self._base
        self._version = 0
        self._listeners: dict[int, Listener] = {}
        self._next_token = 0
        self._last_document_text: str | None = None

    @property
    def version(self) -> int:
        """Number of values applied so far; increases on every ``set``."""
        return self._version

    @property
    def last_document_text(self) -> str | None:
        """Raw text of the last remote document that was applied."""
        return self._last_document_text

    def get(self) -> DataSourceConfig:
        return self._config

    def export_current(self) -> DataSourceConfig:
        """Return a deep copy of the current value."""
        return self._config.model_copy(deep=True)

    def set(self, partial: Mapping[str, Any]) -> DataSourceConfig:
        """Shallow-merge ``partial`` into the current value and notify subscribers.

        Args:
            partial: Keys are DataSourceConfig field names or their camelCase
                aliases; values are models or their raw equivalents.

        Returns:
            The new current value.

        Raises:
            ValueError: If ``partial`` contains unknown keys or invalid values.
        """
        return self._apply(self._merged(partial))

    def set_and_persist(self, partial: Mapping[str, Any]) -> DataSourceConfig:
        """Validate ``partial``, persist it over the stored override, then apply it.

        Nothing is written when validation fails. Persistence is best-effort:
        storage failures are logged, never raised.

        Raises:
            ValueError: If ``partial`` contains unknown keys or invalid values.
        """
        config = self._merged(partial)
        # Persist the validated values so a reload reproduces them exactly
        fields = {FIELD_KEYS[key] for key in partial}
        try:
            existing = self._read_override_document() or {}
            existing.update(
                patch_to_document({name: getattr(config, name) for name in sorted(fields)})
            )
            self.storage.write(json.dumps(existing))
        except (OSError, ValueError, TypeError) as e:
            logger.warning("Failed to persist data source override: %s", e)

        return self._apply(config)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for every change; returns its unsubscribe function."""
        if not callable(listener):
            raise ValueError("listener must be callable")

        token = self._next_token
        self._next_token += 1
        self._listeners[token] = listener

        def unsubscribe() -> None:
            self._listeners.pop(token, None)

        return unsubscribe

    async def load(self) -> None:
        """Apply the remote document (layer 3) and then the override (layer 4)."""
        if not await self._load_document():
            self.apply_override()

    async def reset_override(self) -> None:
        """Delete the persisted override and re-resolve from environment + remote document."""
        try:
            self.storage.delete()
        except OSError as e:
            logger.warning("Failed to delete data source override: %s", e)

        self._config = self._base
        self._last_document_text = None
        await self._load_document()
        self._version += 1
        self._notify()

    def apply_document_text(self, text: str) -> bool:
        """Apply remote document text (layer 3), then re-apply the override (layer 4).

        Text identical to the last applied document is ignored.

        Returns:
            True if the document changed and was applied.

        Raises:
            ValueError: If the text is not a valid config document.
        """
        if text == self._last_document_text:
            return False

        patch = patch_from_remote_document(json.loads(text), self._config)
        self._last_document_text = text
        if not patch:
            return False

        logger.info("Applying remote data source config: %s", sorted(patch))
        self.set(patch)
        self.apply_override()
        return True

    def apply_override(self) -> bool:
        """Re-apply the persisted override, if any. Returns True when applied."""
        try:
            document = self._read_override_document()
            if document is None:
                return False
            patch = patch_from_override_document(document, self._config)
        except (OSError, ValueError) as e:
            logger.warning("Failed to read data source override: %s", e)
            return False

        if not patch:
            return False
        self.set(patch)
        return True

    def _read_override_document(self) -> dict[str, Any] | None:
        text = self.storage.read()
        if not text:
            return None
        document = json.loads(text)
        if not isinstance(document, dict):
            raise ValueError("override document must be a JSON object")
        return document

    async def _load_document(self) -> bool:
        if not self.document_location:
            return False
        try:
            text = await self.fetcher(self.document_location)
            return self.apply_document_text(text)
        except Exception as e:
            logger.warning(
                "Failed to load data source config from %s: %s", self.document_location, e
            )
            return False

    def _merged(self, partial: Mapping[str, Any]) -> DataSourceConfig:
        unknown = [key for key in partial if key not in FIELD_KEYS]
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")

        values: dict[str, Any] = dict(self._config)
        for key, value in partial.items():
            values[FIELD_KEYS[key]] = value
        return DataSourceConfig.model_validate(values)

    def _apply(self, config: DataSourceConfig) -> DataSourceConfig:
        self._config = config
        self._version += 1
        self._notify()
        return config

    def _notify(self) -> None:
        config = self._config
        for listener in list(self._listeners.values()):
            listener(config)
