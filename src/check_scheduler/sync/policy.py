"""First-load and stale-fallback policy for definition fetches.

A source keeps the last snapshot it fetched successfully. Once one load has
succeeded, later failures fall back to that snapshot so the active
configuration keeps running. Before that there is nothing safe to fall back
to, and the failure is surfaced.

The decision is a pure function of the current state and the fetch outcome:

    =============  =========  ===========================================
    loaded before  outcome    decision
    =============  =========  ===========================================
    no             success    store snapshot, mark loaded, return it
    yes            success    store snapshot, stay loaded, return it
    no             failure    state unchanged, raise FirstLoadError
    yes            failure    state unchanged, return last known good
    =============  =========  ===========================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


class DefinitionSourceError(Exception):
    """Base exception for definition source errors."""


class FirstLoadError(DefinitionSourceError):
    """Raised when a fetch fails before any load has ever succeeded."""


class MalformedResponseError(DefinitionSourceError):
    """Raised when a successful response does not carry the expected definitions."""


@dataclass(frozen=True)
class SyncState(Generic[T]):
    """Synchronization state owned by one source.

    Attributes:
        last_known_good: Snapshot from the most recent successful fetch.
        has_completed_first_load: Whether any fetch has succeeded yet.
    """

    last_known_good: T
    has_completed_first_load: bool = False


@dataclass(frozen=True)
class FetchDecision(Generic[T]):
    """Outcome of applying the policy to one fetch attempt.

    Exactly one of ``result`` and ``error`` is set. ``fell_back`` is True
    when ``result`` is the stale snapshot rather than a fresh one.
    """

    state: SyncState[T]
    result: T | None = None
    error: FirstLoadError | None = None
    fell_back: bool = False


def resolve_fetch(
    state: SyncState[T],
    snapshot: T | None,
    error: BaseException | None = None,
) -> FetchDecision[T]:
    """Decide the new state and the caller-visible result of a fetch.

    Args:
        state: State before the fetch.
        snapshot: Freshly fetched snapshot, or None if the fetch failed.
        error: The failure, if the fetch failed.

    Returns:
        FetchDecision carrying the new state and either a result or an error.
    """
    if error is None and snapshot is not None:
        return FetchDecision(
            state=SyncState(last_known_good=snapshot, has_completed_first_load=True),
            result=snapshot,
        )

    if not state.has_completed_first_load:
        first_load_error = FirstLoadError(f"Initial load failed: {error}")
        first_load_error.__cause__ = error
        return FetchDecision(state=state, error=first_load_error)

    return FetchDecision(state=state, result=state.last_known_good, fell_back=True)
