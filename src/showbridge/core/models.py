"""
Data contracts for the showbridge reconciliation framework.

This module defines the Pydantic models shared by every component:

- SourceChoice: Which source(s) back a view (contract, backend, hybrid)
- FieldMergeMode: How one field is reconciled between the two sources
- MergePolicy: Default mode plus per-field overrides for list and detail views
- DataSourceConfig: The single process-wide configuration value
- CanonicalRecord: Normalized, source-agnostic representation of a show
- ShowListItem / ShowDetail: View shapes returned by the query facade
- UnifiedResult[T]: Facade output with provenance and loading/error state
"""

from collections.abc import Callable
from datetime import datetime
from enum import Enum
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Scope = Literal["list", "detail"]

DataT = TypeVar("DataT")


class SourceChoice(str, Enum):
    """Which source(s) are active for a logical view."""

    CONTRACT = "contract"
    BACKEND = "backend"
    HYBRID = "hybrid"

    @classmethod
    def _missing_(cls, value: object) -> "SourceChoice | None":
        # Case-insensitive lookup ("Backend", "HYBRID", ...)
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class FieldMergeMode(str, Enum):
    """Reconciliation rule for a single field.

    - PREFER_CONTRACT: contract value unless absent/empty, else backend
    - PREFER_BACKEND: backend value unless absent/empty, else contract
    - COALESCE: backend value if defined (empty string and zero count), else contract
    """

    PREFER_CONTRACT = "preferContract"
    PREFER_BACKEND = "preferBackend"
    COALESCE = "coalesce"

    @classmethod
    def _missing_(cls, value: object) -> "FieldMergeMode | None":
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value.lower() == lowered:
                    return member
        return None


class _CamelModel(BaseModel):
    """Base for config models serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MergePolicy(_CamelModel):
    """Rules governing how contract and backend records are combined.

    A field without an explicit override in the scope's map uses
    ``default_mode``.

    Attributes:
        default_mode: Mode used for fields without an override
        list_fields: Per-field overrides for the list view
        detail_fields: Per-field overrides for the detail view

    Example:
        >>> policy = MergePolicy(
        ...     default_mode=FieldMergeMode.COALESCE,
        ...     list_fields={"description": FieldMergeMode.PREFER_BACKEND},
        ... )
        >>> policy.mode_for("description", "list")
        <FieldMergeMode.PREFER_BACKEND: 'preferBackend'>
        >>> policy.mode_for("description", "detail")
        <FieldMergeMode.COALESCE: 'coalesce'>
    """

    default_mode: FieldMergeMode = FieldMergeMode.COALESCE
    list_fields: dict[str, FieldMergeMode] = Field(default_factory=dict)
    detail_fields: dict[str, FieldMergeMode] = Field(default_factory=dict)

    def mode_for(self, field_name: str, scope: Scope) -> FieldMergeMode:
        """Resolve the effective mode for a field in the given scope."""
        overrides = self.list_fields if scope == "list" else self.detail_fields
        return overrides.get(field_name, self.default_mode)


class DataSourceConfig(_CamelModel):
    """The process-wide data source configuration value.

    Attributes:
        list_source_choice: Source(s) backing the show list view
        detail_source_choice: Source(s) backing the show detail view
        merge_policy: Field-level merge rules used in hybrid mode
    """

    list_source_choice: SourceChoice = SourceChoice.CONTRACT
    detail_source_choice: SourceChoice = SourceChoice.CONTRACT
    merge_policy: MergePolicy = Field(default_factory=MergePolicy)

    def to_document(self) -> dict[str, Any]:
        """Serialize with camelCase keys and plain string enum values."""
        return self.model_dump(mode="json", by_alias=True)


class CanonicalRecord(BaseModel):
    """Normalized show record comparable across both sources.

    Counts and prices are arbitrary-precision integers (smallest currency
    unit for ``ticket_price``). ``raw`` keeps the source payload for
    diagnostics only; it is excluded from equality and serialization.

    Records validate from snake_case names or the contract's camelCase
    names (``startTime``, ``ticketPrice``, ``isActive``, ``metadataURI``, ...).
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    description: str = ""
    location: str = "-"
    start_time: datetime
    ticket_price: int = 0
    max_tickets: int = 0
    sold_tickets: int = 0
    organizer: str = "0x0000000000000000000000000000000000000000"
    is_active: bool = True
    status: int = 1
    metadata_uri: str = Field(default="", alias="metadataURI")
    raw: Any = Field(default=None, exclude=True, repr=False)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        # On-chain ids arrive as ints
        return str(value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CanonicalRecord):
            return NotImplemented
        return self.model_dump() == other.model_dump()

    def __hash__(self) -> int:
        return hash(self.id)


class ShowListItem(BaseModel):
    """List-view shape of a show.

    ``contract_raw`` / ``backend_raw`` reference the records each side
    contributed, for debugging only.
    """

    id: str
    name: str
    description: str
    location: str
    start_time: datetime
    contract_raw: Any = Field(default=None, exclude=True, repr=False)
    backend_raw: Any = Field(default=None, exclude=True, repr=False)


class ShowDetail(ShowListItem):
    """Detail-view shape of a show: list fields plus the remaining canonical fields."""

    ticket_price: int | None = None
    max_tickets: int | None = None
    sold_tickets: int | None = None
    organizer: str | None = None
    is_active: bool | None = None
    status: int | None = None
    metadata_uri: str | None = None


def _noop() -> None:
    return None


class UnifiedResult(BaseModel, Generic[DataT]):
    """Facade output: one coherent view over one or two sources.

    Attributes:
        provenance: Which branch produced ``data``
        data: The reconciled value (None while nothing usable exists)
        loading: True while the data required by the active mode is unavailable
        fetching: Superset of ``loading`` that also covers background refetches
        error: Source error, surfaced only when ``data`` is None
        refetch: Triggers a refetch on every active collaborator
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    provenance: SourceChoice
    data: DataT | None = None
    loading: bool = False
    fetching: bool = False
    error: Any = None
    refetch: Callable[[], Any] = Field(default=_noop, exclude=True, repr=False)
