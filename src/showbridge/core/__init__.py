"""
showbridge.core: Reconciliation primitives.

This module provides the canonical data contracts, the backend payload
normalizer, the field-level merge engine and the unified query facade.
"""

from showbridge.core.facade import ShowQueryFacade
from showbridge.core.merge import DETAIL_MERGE_FIELDS, LIST_MERGE_FIELDS, merge_field, merge_record
from showbridge.core.models import (
    CanonicalRecord,
    DataSourceConfig,
    FieldMergeMode,
    MergePolicy,
    ShowDetail,
    ShowListItem,
    SourceChoice,
    UnifiedResult,
)
from showbridge.core.normalizer import FIELD_ALIASES, normalize_show
from showbridge.core.pagination import LimitOffset, PageParams, to_limit_offset
from showbridge.core.sources import DetailSnapshot, InMemoryShowSource, ListSnapshot, ShowSource

__all__ = [
    "CanonicalRecord",
    "DataSourceConfig",
    "DETAIL_MERGE_FIELDS",
    "DetailSnapshot",
    "FIELD_ALIASES",
    "FieldMergeMode",
    "InMemoryShowSource",
    "LIST_MERGE_FIELDS",
    "LimitOffset",
    "ListSnapshot",
    "merge_field",
    "merge_record",
    "MergePolicy",
    "normalize_show",
    "PageParams",
    "ShowDetail",
    "ShowListItem",
    "ShowQueryFacade",
    "ShowSource",
    "SourceChoice",
    "to_limit_offset",
    "UnifiedResult",
]
