"""Background refresh of the remote config document."""

import asyncio
import logging
from collections.abc import Callable

from showbridge.config.store import DataSourceConfigStore

logger = logging.getLogger(__name__)

ErrorHook = Callable[[Exception], None]


class ConfigPoller:
    """Cancellable repeating task that re-applies the remote config document.

    Each tick fetches the document; when its text differs from the last one
    applied, the store re-applies the document followed by the persisted
    override, so the override keeps its priority. Failures are silent to
    subscribers: they are logged at debug level, passed to ``on_error`` and
    retried on the next tick.

    Example:
        poller = ConfigPoller(store, interval_s=5.0)
        poller.start()
        ...
        await poller.stop()
    """

    def __init__(
        self,
        store: DataSourceConfigStore,
        interval_s: float = 5.0,
        location: str | None = None,
        on_error: ErrorHook | None = None,
    ):
        """Initialize ConfigPoller.

        Args:
            store: Store to refresh
            interval_s: Seconds between polls (must be positive)
            location: Document location; defaults to the store's location
            on_error: Optional hook called with every poll failure

        Raises:
            ValueError: If interval_s is not positive or no location is known
        """
        if interval_s <= 0:
            raise ValueError("interval_s must be positive")

        location = location or store.document_location
        if not location:
            raise ValueError("A config document location is required for polling")

        self.store = store
        self.interval_s = interval_s
        self.location = location
        self.on_error = on_error
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def poll_once(self) -> bool:
        """Fetch and apply the document once.

        Returns:
            True if a changed document was applied, False otherwise
            (unchanged content or a failure).
        """
        try:
            text = await self.store.fetcher(self.location)
            return self.store.apply_document_text(text)
        except Exception as e:
            logger.debug("Config poll of %s failed: %s", self.location, e)
            if self.on_error is not None:
                self.on_error(e)
            return False

    def start(self) -> "asyncio.Task[None]":
        """Start polling on the running event loop; idempotent."""
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._run())
            logger.info(
                "Polling data source config %s every %.1fs", self.location, self.interval_s
            )
        return self._task

    async def stop(self) -> None:
        """Cancel the polling task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_s)
            await self.poll_once()
