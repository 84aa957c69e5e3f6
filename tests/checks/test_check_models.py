"""Tests for check definition models and snapshots."""

import pytest

from check_scheduler.alerts.models import AlertDefinitionSet
from check_scheduler.checks.models import CheckDefinition, CheckDefinitionSet


class TestCheckDefinition:
    """Tests for CheckDefinition."""

    def test_from_dict(self) -> None:
        check = CheckDefinition.from_dict(
            {
                "id": "12",
                "interval": 30,
                "entities": [{"type": "host", "team": "infra"}],
                "name": "CPU load",
                "command": "os().load()",
                "owning_team": "infra",
            }
        )

        assert check.id == 12
        assert check.interval == 30
        assert check.entities == ({"type": "host", "team": "infra"},)
        assert check.name == "CPU load"
        assert check.owning_team == "infra"
        assert check.last_modified_by is None

    def test_from_dict_defaults(self) -> None:
        check = CheckDefinition.from_dict({"id": 1, "interval": 60, "entities": None})

        assert check.entities == ()
        assert check.name == ""
        assert check.command == ""

    def test_from_dict_requires_interval(self) -> None:
        with pytest.raises(KeyError):
            CheckDefinition.from_dict({"id": 1})

    def test_to_dict_round_trip(self) -> None:
        check = CheckDefinition(id=3, interval=10, entities=({"type": "db"},), name="db")

        assert CheckDefinition.from_dict(check.to_dict()) == check

    def test_hashable_despite_entity_dicts(self) -> None:
        a = CheckDefinition(id=1, interval=60, entities=({"type": "host", "team": "infra"},))
        b = CheckDefinition(id=1, interval=60, entities=({"team": "infra", "type": "host"},))

        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_filter_key_ignores_entity_order(self) -> None:
        host, db = {"type": "host"}, {"type": "db", "application_id": "orders"}
        a = CheckDefinition(id=1, interval=60, entities=(host, db))
        b = CheckDefinition(id=1, interval=60, entities=(db, host))
        c = CheckDefinition(id=1, interval=60, entities=(host,))

        assert a.filter_key == b.filter_key
        assert a.filter_key != c.filter_key


class TestCheckDefinitionSet:
    """Tests for CheckDefinitionSet."""

    def test_keyed_by_id(self) -> None:
        checks = CheckDefinitionSet(
            [CheckDefinition(id=1, interval=60), CheckDefinition(id=2, interval=30)]
        )

        assert len(checks) == 2
        assert 1 in checks
        assert 3 not in checks
        assert checks.ids == frozenset({1, 2})
        assert checks.get(2).interval == 30
        assert checks.get(3) is None
        assert {c.id for c in checks} == {1, 2}

    def test_duplicate_ids_rejected(self) -> None:
        with pytest.raises(ValueError, match="Duplicate"):
            CheckDefinitionSet(
                [CheckDefinition(id=1, interval=60), CheckDefinition(id=1, interval=30)]
            )

    def test_equality_by_content(self) -> None:
        a = CheckDefinitionSet([CheckDefinition(id=1, interval=60)])
        b = CheckDefinitionSet([CheckDefinition(id=1, interval=60)])
        c = CheckDefinitionSet([CheckDefinition(id=1, interval=30)])

        assert a == b
        assert a != c

    def test_not_equal_to_other_snapshot_kinds(self) -> None:
        assert CheckDefinitionSet() != AlertDefinitionSet()

    def test_is_read_only(self) -> None:
        checks = CheckDefinitionSet([CheckDefinition(id=1, interval=60)])

        with pytest.raises(AttributeError):
            checks.extra = 1  # type: ignore[attr-defined]
        with pytest.raises(TypeError):
            checks._items[2] = CheckDefinition(id=2, interval=1)  # type: ignore[index]
