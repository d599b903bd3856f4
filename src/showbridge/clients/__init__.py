"""
showbridge.clients: Backend service access.

This module provides the REST client for the shows backend and the
BackendShowSource that exposes its results to the query facade.
"""

from showbridge.clients.backend import ApiError, BackendClient, Pagination, extract_items
from showbridge.clients.source import BackendShowSource

__all__ = [
    "ApiError",
    "BackendClient",
    "BackendShowSource",
    "extract_items",
    "Pagination",
]
