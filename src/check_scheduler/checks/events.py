"""Change events raised when two check snapshots differ.

Events form a closed, tagged set. Listeners receive one event per detected
change and dispatch on its type::

    def on_check_change(self, event: CheckChangeEvent) -> None:
        match event:
            case CheckFilterChanged(check_id=check_id):
                ...
            case _:
                pass
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, TypeAlias


@dataclass(frozen=True)
class NewCheck:
    """A check id present in the new snapshot but not in the previous one."""

    check_id: int


@dataclass(frozen=True)
class CheckIntervalChanged:
    """A check whose execution interval differs between snapshots."""

    check_id: int


@dataclass(frozen=True)
class CheckFilterChanged:
    """A check whose entity filter differs between snapshots."""

    check_id: int


@dataclass(frozen=True)
class CheckDeleted:
    """A check id present in the previous snapshot but not in the new one."""

    check_id: int


CheckChangeEvent: TypeAlias = NewCheck | CheckIntervalChanged | CheckFilterChanged | CheckDeleted


class CheckChangeListener(Protocol):
    """Receives check change events from a CheckRepository."""

    def on_check_change(self, event: CheckChangeEvent) -> None:
        """Handle a single change event."""
        ...
