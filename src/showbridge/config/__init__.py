"""
showbridge.config: Data source configuration cascade.

Compiled defaults, environment, remote document and persisted local override
are resolved into one live DataSourceConfig with change notification.
"""

from showbridge.config.persistence import (
    FileOverrideStorage,
    MemoryOverrideStorage,
    OverrideStorage,
)
from showbridge.config.poller import ConfigPoller
from showbridge.config.runtime import DataSourceRuntime
from showbridge.config.settings import Settings
from showbridge.config.store import DataSourceConfigStore

__all__ = [
    "ConfigPoller",
    "DataSourceConfigStore",
    "DataSourceRuntime",
    "FileOverrideStorage",
    "MemoryOverrideStorage",
    "OverrideStorage",
    "Settings",
]
