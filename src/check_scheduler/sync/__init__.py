"""Definition synchronization - fetch policy, HTTP sources and refresh loop."""

from check_scheduler.sync.http_source import HttpDefinitionSource
from check_scheduler.sync.policy import (
    DefinitionSourceError,
    FetchDecision,
    FirstLoadError,
    MalformedResponseError,
    SyncState,
    resolve_fetch,
)
from check_scheduler.sync.refresher import (
    DefinitionRefresher,
    RefreshError,
    RefreshState,
    RefreshStats,
)

__all__ = [
    # HTTP source
    "HttpDefinitionSource",
    # Policy
    "DefinitionSourceError",
    "FetchDecision",
    "FirstLoadError",
    "MalformedResponseError",
    "SyncState",
    "resolve_fetch",
    # Refresher
    "DefinitionRefresher",
    "RefreshError",
    "RefreshState",
    "RefreshStats",
]
