"""Lifecycle wiring for the configuration store and its poller."""

import logging
from types import TracebackType

from showbridge.config.persistence import FileOverrideStorage, OverrideStorage
from showbridge.config.poller import ConfigPoller
from showbridge.config.settings import Settings
from showbridge.config.store import DataSourceConfigStore, DocumentFetcher

logger = logging.getLogger(__name__)


class DataSourceRuntime:
    """Owns the store and poller from process start to shutdown.

    Entering the context resolves the full cascade (``store.load()``) and
    starts the poller when polling is enabled (development mode, or
    ``DATA_CONFIG_POLL_ENABLE``). Exiting stops the poller.

    Example:
        async with DataSourceRuntime(Settings()) as runtime:
            facade = ShowQueryFacade(runtime.store, contract_source, backend_source)
            result = facade.list_shows()
    """

    def __init__(
        self,
        settings: Settings | None = None,
        storage: OverrideStorage | None = None,
        fetcher: DocumentFetcher | None = None,
        enable_polling: bool | None = None,
    ):
        """Initialize DataSourceRuntime.

        Args:
            settings: Environment settings. If None, loads from environment.
            storage: Override persistence. Defaults to a file at
                ``settings.data_source_override_path``.
            fetcher: Remote document fetcher (see DataSourceConfigStore).
            enable_polling: Force polling on or off. If None, follows settings.
        """
        if settings is None:
            settings = Settings()
        if storage is None:
            storage = FileOverrideStorage(settings.data_source_override_path)

        self.settings = settings
        self.store = DataSourceConfigStore(settings, storage=storage, fetcher=fetcher)
        self.enable_polling = (
            settings.polling_enabled if enable_polling is None else enable_polling
        )
        self.poller: ConfigPoller | None = None

    async def start(self) -> DataSourceConfigStore:
        await self.store.load()
        if self.enable_polling and self.store.document_location:
            self.poller = ConfigPoller(self.store, interval_s=self.settings.poll_interval_s)
            self.poller.start()
        logger.info(
            "Data source config ready (list=%s, detail=%s)",
            self.store.get().list_source_choice.value,
            self.store.get().detail_source_choice.value,
        )
        return self.store

    async def stop(self) -> None:
        if self.poller is not None:
            await self.poller.stop()
            self.poller = None

    async def __aenter__(self) -> "DataSourceRuntime":
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()
