"""Alert definition source backed by the definition authority's HTTP API."""

from __future__ import annotations

from typing import Any

from check_scheduler.alerts.models import AlertDefinition, AlertDefinitionSet
from check_scheduler.sync.http_source import HttpDefinitionSource


class HttpAlertSource(HttpDefinitionSource[AlertDefinitionSet]):
    """Fetches all active alert definitions.

    Expects a JSON body of the form ``{"alert_definitions": [...]}``.
    """

    collection_key = "alert_definitions"

    def _empty(self) -> AlertDefinitionSet:
        return AlertDefinitionSet()

    def _build(self, items: list[dict[str, Any]]) -> AlertDefinitionSet:
        return AlertDefinitionSet(AlertDefinition.from_dict(item) for item in items)
