"""Check definition source backed by the definition authority's HTTP API."""

from __future__ import annotations

from typing import Any

from check_scheduler.checks.models import CheckDefinition, CheckDefinitionSet
from check_scheduler.sync.http_source import HttpDefinitionSource

DEFAULT_CHECK_SOURCE_NAME = "default"


class HttpCheckSource(HttpDefinitionSource[CheckDefinitionSet]):
    """Fetches all active check definitions.

    Expects a JSON body of the form ``{"check_definitions": [...]}``.

    Example:
        >>> source = HttpCheckSource("default", "https://defs.example.com/checks")
        >>> checks = source.fetch_all()
    """

    collection_key = "check_definitions"

    def _empty(self) -> CheckDefinitionSet:
        return CheckDefinitionSet()

    def _build(self, items: list[dict[str, Any]]) -> CheckDefinitionSet:
        return CheckDefinitionSet(CheckDefinition.from_dict(item) for item in items)
