"""Data models for check definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from check_scheduler.snapshot import DefinitionSet, entities_key


@dataclass(frozen=True)
class CheckDefinition:
    """A check specification as served by the definition authority.

    Attributes:
        id: Unique check id.
        interval: Execution interval in seconds.
        entities: Matching filter; each mapping selects a group of entities
            the check applies to.
        name: Human readable name.
        command: The check command to execute.
        owning_team: Team responsible for the check.
        last_modified_by: Who last touched the definition.

    Definitions hash on their fields with the entity filter taken in its
    order-independent form, so they can be kept in sets.
    """

    id: int
    interval: int
    entities: tuple[dict[str, Any], ...] = field(default_factory=tuple)
    name: str = ""
    command: str = ""
    owning_team: str | None = None
    last_modified_by: str | None = None

    def __hash__(self) -> int:
        return hash(
            (
                self.id,
                self.interval,
                self.filter_key,
                self.name,
                self.command,
                self.owning_team,
                self.last_modified_by,
            )
        )

    @property
    def filter_key(self) -> tuple[str, ...]:
        """The entity filter in a form that ignores entity order."""
        return entities_key(self.entities)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CheckDefinition:
        """Create a CheckDefinition from an API response item."""
        entities = data.get("entities") or []
        return cls(
            id=int(data["id"]),
            interval=int(data["interval"]),
            entities=tuple(dict(e) for e in entities),
            name=str(data.get("name") or ""),
            command=str(data.get("command") or ""),
            owning_team=data.get("owning_team"),
            last_modified_by=data.get("last_modified_by"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the API representation."""
        return {
            "id": self.id,
            "interval": self.interval,
            "entities": [dict(e) for e in self.entities],
            "name": self.name,
            "command": self.command,
            "owning_team": self.owning_team,
            "last_modified_by": self.last_modified_by,
        }


class CheckDefinitionSet(DefinitionSet[CheckDefinition]):
    """Snapshot of all active check definitions, keyed by check id."""

    __slots__ = ()
