"""Check definitions - fetching, snapshots and change detection."""

from check_scheduler.checks.events import (
    CheckChangeEvent,
    CheckChangeListener,
    CheckDeleted,
    CheckFilterChanged,
    CheckIntervalChanged,
    NewCheck,
)
from check_scheduler.checks.models import CheckDefinition, CheckDefinitionSet
from check_scheduler.checks.repository import CheckRepository, CheckSource, diff_checks
from check_scheduler.checks.source import HttpCheckSource

__all__ = [
    # Events
    "CheckChangeEvent",
    "CheckChangeListener",
    "CheckDeleted",
    "CheckFilterChanged",
    "CheckIntervalChanged",
    "NewCheck",
    # Models
    "CheckDefinition",
    "CheckDefinitionSet",
    # Repository
    "CheckRepository",
    "CheckSource",
    "diff_checks",
    # Source
    "HttpCheckSource",
]
