"""Backend show source: BackendClient results exposed as facade snapshots."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from showbridge.clients.backend import ApiError, BackendClient, Pagination, extract_items
from showbridge.core.pagination import LimitOffset, PageParams, to_limit_offset
from showbridge.core.sources import DetailSnapshot, ListSnapshot

logger = logging.getLogger(__name__)


class _QueryState:
    """Latest result of one request key."""

    def __init__(self) -> None:
        self.data: Any = None
        self.loaded = False
        self.fetching = False
        self.error: Any = None

    @property
    def loading(self) -> bool:
        # First load pending: nothing delivered and no failure yet
        return not self.loaded and self.error is None


class BackendShowSource:
    """ShowSource implementation backed by the REST API.

    Results are cached per request key (``limit``/``offset`` for lists, id
    for details). The previous data stays visible while a refetch is in
    flight, so ``loading`` only covers the first load and ``fetching``
    covers every load.

    Reading a snapshot for a key that was never loaded schedules its first
    load on the running event loop. ``refetch`` also schedules on the
    running loop, so both must be called from within it.

    Example:
        source = BackendShowSource(BackendClient(settings))
        await source.refresh_shows(PageParams(page=1, page_size=20))
        snapshot = source.shows(PageParams(page=1, page_size=20))
        snapshot.records  # raw backend payloads
    """

    def __init__(self, client: BackendClient):
        self.client = client
        self.pagination: dict[LimitOffset, Pagination | None] = {}
        self._lists: dict[LimitOffset, _QueryState] = {}
        self._details: dict[str, _QueryState] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    def shows(self, params: PageParams | None = None) -> ListSnapshot:
        if not self.client.enabled:
            return ListSnapshot()

        key = to_limit_offset(params)
        state = self._lists.get(key)
        if state is None:
            state = self._lists[key] = _QueryState()
            self._schedule(state, lambda: self._load_shows(params))

        return ListSnapshot(
            records=state.data,
            loading=state.loading,
            fetching=state.fetching,
            error=state.error,
            refetch=lambda: self._schedule(state, lambda: self._load_shows(params)),
        )

    def show(self, show_id: str | None) -> DetailSnapshot:
        if not self.client.enabled or show_id is None:
            return DetailSnapshot()

        key = str(show_id)
        state = self._details.get(key)
        if state is None:
            state = self._details[key] = _QueryState()
            self._schedule(state, lambda: self.client.fetch_show(key))

        return DetailSnapshot(
            record=state.data,
            loading=state.loading,
            fetching=state.fetching,
            error=state.error,
            refetch=lambda: self._schedule(state, lambda: self.client.fetch_show(key)),
        )

    async def refresh_shows(self, params: PageParams | None = None) -> ListSnapshot:
        """Load the list for ``params`` now and return the resulting snapshot."""
        key = to_limit_offset(params)
        state = self._lists.setdefault(key, _QueryState())
        await self._run(state, lambda: self._load_shows(params))
        return self.shows(params)

    async def refresh_show(self, show_id: str) -> DetailSnapshot:
        """Load one show now and return the resulting snapshot."""
        key = str(show_id)
        state = self._details.setdefault(key, _QueryState())
        await self._run(state, lambda: self.client.fetch_show(key))
        return self.show(key)

    async def _load_shows(self, params: PageParams | None) -> list[Any]:
        items, pagination = extract_items(await self.client.fetch_shows(params))
        self.pagination[to_limit_offset(params)] = pagination
        return items

    async def _run(self, state: _QueryState, loader: Callable[[], Awaitable[Any]]) -> None:
        state.fetching = True
        try:
            state.data = await loader()
            state.loaded = True
            state.error = None
        except ApiError as e:
            logger.warning("Backend request failed (status %s): %s", e.status, e.message)
            state.error = e
        except Exception as e:
            logger.warning("Backend load failed: %s", e, exc_info=True)
            state.error = e
        finally:
            state.fetching = False

    def _schedule(self, state: _QueryState, loader: Callable[[], Awaitable[Any]]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; backend load not scheduled")
            return
        state.fetching = True
        task = loop.create_task(self._run(state, loader))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
