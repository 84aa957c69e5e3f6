"""Data models for alert definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from check_scheduler.snapshot import DefinitionSet, entities_key


@dataclass(frozen=True)
class AlertDefinition:
    """An alert rule bound to exactly one check.

    Attributes:
        id: Unique alert id.
        check_definition_id: Id of the check whose results the alert evaluates.
        name: Human readable name.
        condition: Expression evaluated against the check result.
        entities: Additional entity filter narrowing the check's entities.
        priority: Alert priority (1 is highest).
        team: Team notified by the alert.
    """

    id: int
    check_definition_id: int
    name: str = ""
    condition: str = ""
    entities: tuple[dict[str, Any], ...] = field(default_factory=tuple)
    priority: int = 3
    team: str | None = None

    def __hash__(self) -> int:
        return hash(
            (
                self.id,
                self.check_definition_id,
                self.name,
                self.condition,
                entities_key(self.entities),
                self.priority,
                self.team,
            )
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AlertDefinition:
        """Create an AlertDefinition from an API response item."""
        entities = data.get("entities") or []
        return cls(
            id=int(data["id"]),
            check_definition_id=int(data["check_definition_id"]),
            name=str(data.get("name") or ""),
            condition=str(data.get("condition") or ""),
            entities=tuple(dict(e) for e in entities),
            priority=int(data.get("priority", 3)),
            team=data.get("team"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the API representation."""
        return {
            "id": self.id,
            "check_definition_id": self.check_definition_id,
            "name": self.name,
            "condition": self.condition,
            "entities": [dict(e) for e in self.entities],
            "priority": self.priority,
            "team": self.team,
        }


class AlertDefinitionSet(DefinitionSet[AlertDefinition]):
    """Snapshot of all active alert definitions, keyed by alert id."""

    __slots__ = ()
