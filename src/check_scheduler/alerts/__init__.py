"""Alert definitions - fetching and lookup by owning check."""

from check_scheduler.alerts.models import AlertDefinition, AlertDefinitionSet
from check_scheduler.alerts.repository import AlertRepository, AlertSource
from check_scheduler.alerts.source import HttpAlertSource

__all__ = [
    "AlertDefinition",
    "AlertDefinitionSet",
    "AlertRepository",
    "AlertSource",
    "HttpAlertSource",
]
