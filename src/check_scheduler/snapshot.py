"""Immutable snapshots of definitions keyed by id."""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Any, Generic, Protocol, TypeVar


class HasId(Protocol):
    """Anything carrying an integer ``id``."""

    @property
    def id(self) -> int: ...


D = TypeVar("D", bound=HasId)


def entities_key(entities: Iterable[Mapping[str, Any]]) -> tuple[str, ...]:
    """Return an order-independent, hashable form of an entity filter.

    Each mapping is serialized with sorted keys and the results are sorted,
    so filters listing the same entities in another order compare equal.
    """
    return tuple(sorted(json.dumps(e, sort_keys=True, default=str) for e in entities))


class DefinitionSet(Generic[D]):
    """A complete, read-only snapshot of definitions from one fetch.

    Definitions are keyed by their ``id``. A snapshot is never mutated;
    refreshing produces a new one.
    """

    __slots__ = ("_items",)

    def __init__(self, definitions: Iterable[D] = ()) -> None:
        items: dict[int, D] = {}
        for definition in definitions:
            if definition.id in items:
                raise ValueError(f"Duplicate definition id {definition.id}")
            items[definition.id] = definition
        self._items: Mapping[int, D] = MappingProxyType(items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[D]:
        return iter(self._items.values())

    def __contains__(self, definition_id: object) -> bool:
        return definition_id in self._items

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return dict(self._items) == dict(other._items)  # type: ignore[attr-defined]

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(ids={sorted(self._items)})"

    @property
    def ids(self) -> frozenset[int]:
        """Ids of all definitions in the snapshot."""
        return frozenset(self._items)

    def get(self, definition_id: int) -> D | None:
        """Return the definition with the given id, or None."""
        return self._items.get(definition_id)
