from datetime import timedelta

import pytest

from kinesis_consumer.dynamodb import TableDefinition, TableTtlRegistry, TimeToLive
from kinesis_consumer.exceptions import (
    ConfigurationError,
    ConfigurationNotFoundError,
    ConfigurationStateError,
)
from tests.factories import a_registry, a_table


def test_builds_registry_from_configuration(registry: TableTtlRegistry) -> None:
    assert registry.endpoint == "http://localhost:8000"
    assert registry.region == "us-west-2"
    assert not registry.client.uses_custom_retry_policy()
    assert registry.get_table_by_key("events").name == "events-dev"


def test_fails_on_missing_table_key(registry: TableTtlRegistry) -> None:
    with pytest.raises(ConfigurationNotFoundError, match="missing") as error:
        registry.get_table_by_key("missing")

    assert error.value.key == "missing"
    assert isinstance(error.value, LookupError)


class TestTableTimeToLive:
    @pytest.fixture()
    def table(self, registry: TableTtlRegistry) -> TableDefinition:
        return registry.get_table_by_key("events")

    def test_returns_enabled_time_to_live(self, table: TableDefinition) -> None:
        assert table.is_time_to_live_enabled("records")
        assert table.get_time_to_live("records") == timedelta(days=30)

    def test_disabled_time_to_live_is_not_enabled(self, table: TableDefinition) -> None:
        assert not table.is_time_to_live_enabled("archive")

    def test_fails_getting_disabled_time_to_live(self, table: TableDefinition) -> None:
        with pytest.raises(ConfigurationStateError, match="not enabled") as error:
            table.get_time_to_live("archive")

        assert error.value.key == "archive"

    def test_absent_key_is_not_enabled(self, table: TableDefinition) -> None:
        assert not table.is_time_to_live_enabled("k")

    def test_fails_getting_absent_key(self, table: TableDefinition) -> None:
        with pytest.raises(ConfigurationNotFoundError, match=r"\[k\]") as error:
            table.get_time_to_live("k")

        assert error.value.key == "k"


def test_table_without_time_to_live() -> None:
    table = TableDefinition.build(name="audit-dev")

    assert table.time_to_live == {}
    assert not table.is_time_to_live_enabled("records")


class TestValidation:
    @pytest.mark.parametrize("field", ["endpoint", "region"])
    def test_requires_location(self, field: str) -> None:
        raw = a_registry()
        del raw[field]

        with pytest.raises(ConfigurationError, match="Field required"):
            TableTtlRegistry.build(raw)

    @pytest.mark.parametrize("field", ["endpoint", "region"])
    def test_rejects_blank_location(self, field: str) -> None:
        with pytest.raises(ConfigurationError, match="must not be blank"):
            TableTtlRegistry.build(a_registry(**{field: "  "}))

    def test_rejects_empty_tables(self) -> None:
        with pytest.raises(ConfigurationError, match="tables"):
            TableTtlRegistry.build(a_registry(tables={}))

    def test_rejects_blank_table_name(self) -> None:
        with pytest.raises(ConfigurationError, match="must not be blank"):
            TableTtlRegistry.build(a_registry(tables={"events": a_table(name="")}))

    def test_rejects_invalid_time_to_live(self) -> None:
        tables = {"events": a_table(records={"value": "1d", "min": "2d"})}

        with pytest.raises(ConfigurationError, match="'min'"):
            TableTtlRegistry.build(a_registry(tables=tables))

    def test_rejects_invalid_client_policy(self) -> None:
        with pytest.raises(ConfigurationError, match="client"):
            TableTtlRegistry.build(a_registry(client={"maxErrorRetries": 0}))


def test_same_input_builds_equal_registries() -> None:
    first = TableTtlRegistry.build(a_registry())
    second = TableTtlRegistry.build(a_registry())

    assert first == second
    assert first is not second


class TestImmutability:
    def test_tables_cannot_be_removed(self, registry: TableTtlRegistry) -> None:
        with pytest.raises(TypeError):
            del registry.tables["events"]  # type: ignore[attr-defined]

        assert not hasattr(registry.tables, "pop")
        assert "events" in registry.tables

    def test_tables_cannot_be_replaced(self, registry: TableTtlRegistry) -> None:
        other = TableDefinition.build(name="other")

        with pytest.raises(TypeError):
            registry.tables["events"] = other  # type: ignore[index]

        assert registry.get_table_by_key("events").name == "events-dev"

    def test_time_to_live_cannot_be_changed(self, registry: TableTtlRegistry) -> None:
        table = registry.get_table_by_key("events")

        with pytest.raises(TypeError):
            table.time_to_live["records"] = TimeToLive.build()  # type: ignore[index]

        assert table.get_time_to_live("records") == timedelta(days=30)

    def test_defaulted_time_to_live_is_read_only(self) -> None:
        table = TableDefinition.build(name="audit-dev")

        with pytest.raises(TypeError):
            table.time_to_live["records"] = TimeToLive.build()  # type: ignore[index]

    def test_source_mapping_changes_do_not_leak(self) -> None:
        raw = a_registry()
        registry = TableTtlRegistry.build(raw)

        raw["tables"].clear()

        assert "events" in registry.tables
