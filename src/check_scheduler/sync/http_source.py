"""HTTP-backed definition sources with stale fallback."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar, cast

import httpx

from check_scheduler.auth import TokenProvider, build_auth_headers, token_prefix
from check_scheduler.sync.policy import (
    MalformedResponseError,
    SyncState,
    resolve_fetch,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class HttpDefinitionSource(ABC, Generic[T]):
    """Fetches a complete definition snapshot from a remote authority.

    Subclasses name the collection key in the JSON body and turn its items
    into a snapshot. The first-load and stale-fallback rules are applied by
    :meth:`fetch_all` through :func:`resolve_fetch`.

    Calls to :meth:`fetch_all` on one instance are serialized, so overlapping
    refresh ticks cannot race on the stored snapshot.
    """

    #: Key of the definitions list in the response body.
    collection_key: str = ""

    def __init__(
        self,
        name: str,
        url: str,
        *,
        token_provider: TokenProvider | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the source.

        Args:
            name: Source name used in logs.
            url: Endpoint returning the full definition collection.
            token_provider: Supplies the bearer token. If None, requests are
                sent without an Authorization header.
            http_client: HTTP client to use. A default client is created and
                owned by the source if not provided.
        """
        self._name = name
        self._url = url
        self._token_provider = token_provider
        self._http = http_client or httpx.Client()
        self._owns_client = http_client is None
        self._lock = threading.Lock()
        self._state: SyncState[T] = SyncState(last_known_good=self._empty())
        self._last_fetch_error: Exception | None = None
        self._last_fetch_fell_back = False
        logger.info("Configuring %s source %s url=%s", self.kind, name, url)

    @property
    def name(self) -> str:
        """Source name."""
        return self._name

    @property
    def url(self) -> str:
        """Configured endpoint."""
        return self._url

    @property
    def kind(self) -> str:
        """Kind of definitions served, used in logs."""
        return self.collection_key.replace("_", " ")

    @property
    def state(self) -> SyncState[T]:
        """Current synchronization state."""
        return self._state

    @property
    def has_completed_first_load(self) -> bool:
        """Whether any fetch has succeeded yet."""
        return self._state.has_completed_first_load

    @property
    def last_known_good(self) -> T:
        """Snapshot from the most recent successful fetch."""
        return self._state.last_known_good

    @property
    def last_fetch_error(self) -> Exception | None:
        """Error of the most recent fetch, or None if it succeeded."""
        return self._last_fetch_error

    @property
    def last_fetch_fell_back(self) -> bool:
        """Whether the most recent fetch returned the last known good snapshot."""
        return self._last_fetch_fell_back

    @abstractmethod
    def _empty(self) -> T:
        """Return the empty snapshot a new source starts with."""

    @abstractmethod
    def _build(self, items: list[dict[str, Any]]) -> T:
        """Turn the raw definition items into a snapshot."""

    def fetch_all(self) -> T:
        """Fetch the current snapshot.

        Returns:
            The freshly fetched snapshot, or the last known good one if the
            fetch failed after a previous successful load.

        Raises:
            FirstLoadError: If the fetch failed and no load has succeeded yet.
        """
        with self._lock:
            snapshot: T | None = None
            error: Exception | None = None
            try:
                snapshot = self._fetch_remote()
            except Exception as e:
                error = e

            decision = resolve_fetch(self._state, snapshot, error)
            self._state = decision.state
            self._last_fetch_error = error
            self._last_fetch_fell_back = decision.fell_back

        if decision.error is not None:
            logger.error("Failed to get %s from %s: %s", self.kind, self._name, error)
            raise decision.error
        if decision.fell_back:
            logger.error(
                "Failed to get %s from %s, keeping %d known definitions: %s",
                self.kind,
                self._name,
                self._size(decision.result),
                error,
            )
        return cast(T, decision.result)

    def _fetch_remote(self) -> T:
        """Issue the authenticated request and parse the response."""
        token = self._token_provider.get() if self._token_provider else None
        logger.info("Querying %s with token %s", self.kind, token_prefix(token))

        response = self._http.get(self._url, headers=build_auth_headers(token))
        response.raise_for_status()

        snapshot = self._build(self._extract_items(response))
        logger.info("Got %d %s from %s", self._size(snapshot), self.kind, self._name)
        return snapshot

    def _extract_items(self, response: httpx.Response) -> list[dict[str, Any]]:
        """Pull the definitions list out of a response body."""
        try:
            body = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Response is not valid JSON: {e}") from e

        if not isinstance(body, dict):
            raise MalformedResponseError("Response body is not a JSON object")
        items = body.get(self.collection_key)
        if items is None:
            raise MalformedResponseError(f"Response has no {self.collection_key!r}")
        if not isinstance(items, list):
            raise MalformedResponseError(f"{self.collection_key!r} is not a list")
        return items

    @staticmethod
    def _size(snapshot: Any) -> int:
        return len(snapshot) if snapshot is not None else 0

    def close(self) -> None:
        """Close the HTTP client if the source created it."""
        if self._owns_client:
            self._http.close()
