"""Source collaborator contracts consumed by the query facade.

The contract reader and the backend HTTP reader live outside this package.
Both are consumed through the same four-part snapshot: the latest data, a
first-load flag, an in-flight flag, an error and a refetch trigger.
"""

from collections.abc import Callable, Mapping
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

from showbridge.core.pagination import PageParams


def _noop() -> None:
    return None


class ListSnapshot(BaseModel):
    """Latest state of a collaborator's show list.

    Attributes:
        records: Records as the source delivers them (None until first load)
        loading: True until the first load completes
        fetching: True while any load, including a background refetch, is in flight
        error: Error reported by the last load, if any
        refetch: Triggers a new load
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    records: list[Any] | None = None
    loading: bool = False
    fetching: bool = False
    error: Any = None
    refetch: Callable[[], Any] = Field(default=_noop, exclude=True, repr=False)


class DetailSnapshot(BaseModel):
    """Latest state of a collaborator's single-show read."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    record: Any = None
    loading: bool = False
    fetching: bool = False
    error: Any = None
    refetch: Callable[[], Any] = Field(default=_noop, exclude=True, repr=False)


class ShowSource(Protocol):
    """Protocol for a source of show data.

    The contract side yields CanonicalRecord-like objects; the backend side
    yields raw payloads that the facade normalizes. A source that cannot
    paginate ignores ``params``.
    """

    def shows(self, params: PageParams | None = None) -> ListSnapshot:
        """Return the latest snapshot of the show list."""
        ...

    def show(self, show_id: str | None) -> DetailSnapshot:
        """Return the latest snapshot of one show."""
        ...


def record_id(record: Any) -> str | None:
    """Read the id of a record or payload as a string."""
    value = record.get("id") if isinstance(record, Mapping) else getattr(record, "id", None)
    return None if value is None else str(value)


class InMemoryShowSource:
    """Static ShowSource backed by a list held in memory.

    Useful as a stand-in for either collaborator in tests and demos. State
    can be changed between facade calls to simulate loads completing or
    failing.

    Example:
        source = InMemoryShowSource([{"id": "1", "name": "Gala"}])
        source.shows().records
        # [{'id': '1', 'name': 'Gala'}]

        pending = InMemoryShowSource(loading=True)
        pending.shows().records
        # None
    """

    def __init__(
        self,
        records: list[Any] | None = None,
        loading: bool = False,
        fetching: bool = False,
        error: Any = None,
    ):
        self.records = records
        self.loading = loading
        self.fetching = fetching
        self.error = error
        self.refetch_count = 0
        self.requested_params: list[PageParams | None] = []

    def refetch(self) -> None:
        self.refetch_count += 1

    def shows(self, params: PageParams | None = None) -> ListSnapshot:
        self.requested_params.append(params)
        return ListSnapshot(
            records=None if self.records is None else list(self.records),
            loading=self.loading,
            fetching=self.fetching or self.loading,
            error=self.error,
            refetch=self.refetch,
        )

    def show(self, show_id: str | None) -> DetailSnapshot:
        found = None
        if show_id is not None and self.records is not None:
            found = next((r for r in self.records if record_id(r) == str(show_id)), None)
        return DetailSnapshot(
            record=found,
            loading=self.loading,
            fetching=self.fetching or self.loading,
            error=self.error,
            refetch=self.refetch,
        )
