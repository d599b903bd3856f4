"""
showbridge: Reconciled reads of show data from an on-chain contract and a REST backend.

This package provides:
- showbridge.core: Canonical models, normalization, field-level merging and the query facade
- showbridge.config: Layered, live-reloadable data source configuration
- showbridge.clients: Backend HTTP client and backend show source
"""

from showbridge.config import DataSourceConfigStore, DataSourceRuntime, Settings
from showbridge.core import (
    CanonicalRecord,
    DataSourceConfig,
    FieldMergeMode,
    MergePolicy,
    ShowQueryFacade,
    SourceChoice,
    UnifiedResult,
)

__all__ = [
    "CanonicalRecord",
    "DataSourceConfig",
    "DataSourceConfigStore",
    "DataSourceRuntime",
    "FieldMergeMode",
    "MergePolicy",
    "Settings",
    "ShowQueryFacade",
    "SourceChoice",
    "UnifiedResult",
]

__version__ = "0.1.0"
