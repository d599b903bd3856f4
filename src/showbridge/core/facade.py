"""Unified query facade over the contract and backend show sources.

The facade owns no state. Each call reads the current DataSourceConfig,
takes the latest snapshot from the active source(s) and recomputes one
UnifiedResult. Hybrid views merge field by field through the merge engine.
"""

import logging
from collections.abc import Callable
from typing import Any, Protocol

from pydantic import ValidationError

from showbridge.core.merge import merge_record
from showbridge.core.models import (
    CanonicalRecord,
    DataSourceConfig,
    ShowDetail,
    ShowListItem,
    SourceChoice,
    UnifiedResult,
)
from showbridge.core.normalizer import WarningHook, normalize_show
from showbridge.core.pagination import PageParams
from showbridge.core.sources import DetailSnapshot, ListSnapshot, ShowSource, record_id

logger = logging.getLogger(__name__)

ShowList = list[ShowListItem]


class ConfigProvider(Protocol):
    """The part of the config store the facade depends on."""

    def get(self) -> DataSourceConfig: ...

    def subscribe(
        self, listener: Callable[[DataSourceConfig], None]
    ) -> Callable[[], None]: ...


def _list_item(
    record: CanonicalRecord, contract_raw: Any = None, backend_raw: Any = None
) -> ShowListItem:
    return ShowListItem(
        id=record.id,
        name=record.name,
        description=record.description,
        location=record.location,
        start_time=record.start_time,
        contract_raw=contract_raw,
        backend_raw=backend_raw,
    )


def _detail(
    record: CanonicalRecord, contract_raw: Any = None, backend_raw: Any = None
) -> ShowDetail:
    return ShowDetail(
        id=record.id,
        name=record.name,
        description=record.description,
        location=record.location,
        start_time=record.start_time,
        ticket_price=record.ticket_price,
        max_tickets=record.max_tickets,
        sold_tickets=record.sold_tickets,
        organizer=record.organizer,
        is_active=record.is_active,
        status=record.status,
        metadata_uri=record.metadata_uri,
        contract_raw=contract_raw,
        backend_raw=backend_raw,
    )


def _first_error(data: Any, *snapshots: ListSnapshot | DetailSnapshot) -> Any:
    # Data first: an error only surfaces when nothing usable exists
    if data is not None:
        return None
    for snapshot in snapshots:
        if snapshot.error is not None:
            return snapshot.error
    return None


def _refetch_all(*snapshots: ListSnapshot | DetailSnapshot) -> Callable[[], None]:
    def refetch() -> None:
        for snapshot in snapshots:
            snapshot.refetch()

    return refetch


class ShowQueryFacade:
    """Stable query API for show lists and details across both sources.

    Each view is configured independently (``list_source_choice`` and
    ``detail_source_choice``):

    - contract: only the contract source is read
    - backend: only the backend source is read; payloads are normalized
    - hybrid: both sources are read and merged per field with the merge policy

    Example:
        facade = ShowQueryFacade(store, contract_source, backend_source)

        result = facade.list_shows(PageParams(page=2, page_size=20))
        if result.loading:
            ...
        for show in result.data or []:
            print(result.provenance.value, show.id, show.name)

    Note:
        In hybrid list mode the contract enumeration decides which ids appear.
        Backend records without a contract counterpart are omitted.
    """

    def __init__(
        self,
        config: ConfigProvider,
        contract_source: ShowSource,
        backend_source: ShowSource,
        on_normalize_warning: WarningHook | None = None,
    ):
        """Initialize ShowQueryFacade.

        Args:
            config: Config store (anything with ``get`` and ``subscribe``)
            contract_source: On-chain reader yielding CanonicalRecord-like records
            backend_source: Backend reader yielding raw payloads
            on_normalize_warning: Passed to normalize_show for backend payloads
        """
        self.config = config
        self.contract_source = contract_source
        self.backend_source = backend_source
        self.on_normalize_warning = on_normalize_warning

    def list_shows(self, params: PageParams | None = None) -> UnifiedResult[ShowList]:
        """Return the show list from the source(s) configured for the list view."""
        config = self.config.get()
        choice = config.list_source_choice

        if choice is SourceChoice.CONTRACT:
            contract = self.contract_source.shows()
            data = (
                None
                if contract.records is None
                else [
                    _list_item(c, contract_raw=raw)
                    for raw, c in self._contract_records(contract)
                ]
            )
            return UnifiedResult[ShowList](
                provenance=choice,
                data=data,
                loading=contract.loading,
                fetching=contract.loading or contract.fetching,
                error=_first_error(data, contract),
                refetch=contract.refetch,
            )

        if choice is SourceChoice.BACKEND:
            backend = self.backend_source.shows(params)
            data = (
                None
                if backend.records is None
                else [_list_item(b, backend_raw=b.raw) for b in self._backend_records(backend)]
            )
            return UnifiedResult[ShowList](
                provenance=choice,
                data=data,
                loading=backend.loading,
                fetching=backend.loading or backend.fetching,
                error=_first_error(data, backend),
                refetch=backend.refetch,
            )

        contract = self.contract_source.shows()
        backend = self.backend_source.shows(params)
        lookup = {b.id: b for b in self._backend_records(backend)}

        merged: ShowList | None = None
        if contract.records is not None:
            merged = []
            for raw, c in self._contract_records(contract):
                b = lookup.get(c.id)
                record = merge_record(c, b, "list", config.merge_policy)
                merged.append(
                    _list_item(record, contract_raw=raw, backend_raw=b.raw if b else None)
                )

        return UnifiedResult[ShowList](
            provenance=SourceChoice.HYBRID,
            data=merged,
            loading=contract.loading and backend.loading,
            fetching=contract.loading or contract.fetching or backend.loading or backend.fetching,
            error=_first_error(merged, contract, backend),
            refetch=_refetch_all(contract, backend),
        )

    def show_detail(self, show_id: str | None) -> UnifiedResult[ShowDetail]:
        """Return one show from the source(s) configured for the detail view."""
        config = self.config.get()
        choice = config.detail_source_choice

        if choice is SourceChoice.CONTRACT:
            contract = self.contract_source.show(show_id)
            c = self._contract_record(contract.record)
            data = None if c is None else _detail(c, contract_raw=contract.record)
            return UnifiedResult[ShowDetail](
                provenance=choice,
                data=data,
                loading=contract.loading,
                fetching=contract.loading or contract.fetching,
                error=_first_error(data, contract),
                refetch=contract.refetch,
            )

        if choice is SourceChoice.BACKEND:
            backend = self.backend_source.show(show_id)
            b = self._normalize(backend.record)
            data = None if b is None else _detail(b, backend_raw=backend.record)
            return UnifiedResult[ShowDetail](
                provenance=choice,
                data=data,
                loading=backend.loading,
                fetching=backend.loading or backend.fetching,
                error=_first_error(data, backend),
                refetch=backend.refetch,
            )

        contract = self.contract_source.show(show_id)
        backend = self.backend_source.show(show_id)
        c = self._contract_record(contract.record)
        b = self._normalize(backend.record)

        merged: ShowDetail | None = None
        if c is not None:
            record = merge_record(c, b, "detail", config.merge_policy)
            merged = _detail(record, contract_raw=contract.record, backend_raw=backend.record)
        elif b is not None:
            # Backend-only fallback while the contract record is missing
            merged = _detail(b, backend_raw=backend.record)

        return UnifiedResult[ShowDetail](
            provenance=SourceChoice.HYBRID,
            data=merged,
            loading=contract.loading and backend.loading,
            fetching=contract.loading or contract.fetching or backend.loading or backend.fetching,
            error=_first_error(merged, contract, backend),
            refetch=_refetch_all(contract, backend),
        )

    def watch_list(
        self,
        callback: Callable[[UnifiedResult[ShowList]], None],
        params: PageParams | None = None,
    ) -> Callable[[], None]:
        """Recompute the list on every config change; returns an unsubscribe function."""
        return self.config.subscribe(lambda _config: callback(self.list_shows(params)))

    def watch_detail(
        self,
        show_id: str | None,
        callback: Callable[[UnifiedResult[ShowDetail]], None],
    ) -> Callable[[], None]:
        """Recompute a detail on every config change; returns an unsubscribe function."""
        return self.config.subscribe(lambda _config: callback(self.show_detail(show_id)))

    def _normalize(self, payload: Any) -> CanonicalRecord | None:
        return normalize_show(payload, on_warning=self.on_normalize_warning)

    def _backend_records(self, snapshot: ListSnapshot) -> list[CanonicalRecord]:
        records = []
        for payload in snapshot.records or []:
            record = self._normalize(payload)
            if record is None:
                logger.debug("Skipping non-object backend item %r", payload)
                continue
            records.append(record)
        return records

    def _contract_records(self, snapshot: ListSnapshot) -> list[tuple[Any, CanonicalRecord]]:
        records = []
        for raw in snapshot.records or []:
            record = self._contract_record(raw)
            if record is not None:
                records.append((raw, record))
        return records

    @staticmethod
    def _contract_record(raw: Any) -> CanonicalRecord | None:
        if raw is None:
            return None
        if isinstance(raw, CanonicalRecord):
            return raw
        try:
            record = CanonicalRecord.model_validate(raw, from_attributes=True)
        except ValidationError as e:
            logger.warning(
                "Skipping invalid contract record %r: %d validation error(s)",
                record_id(raw),
                e.error_count(),
            )
            return None
        return record.model_copy(update={"raw": raw})
