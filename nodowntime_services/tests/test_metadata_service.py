import pytest
from pytest_mock import MockerFixture

from nodowntime_services.data_access import DataAccess
from nodowntime_services.services.definitions import MigrationState
from nodowntime_services.tests.conftest import CATALOG_MAPPINGS
from nodowntime_services.tests.fake_elasticsearch import FakeElasticsearch
from nodowntime_services.utils.exceptions import (
    IndexNotFoundError,
    MultipleIndicesBoundError,
)


def test_exists(data_access: DataAccess, catalog: str) -> None:
    assert data_access.exists_index(catalog)
    assert data_access.exists_index("catalog_v1")
    assert not data_access.exists_index("catalog_v2")

    assert data_access.exists_alias(catalog)
    assert not data_access.exists_alias("catalog_v1")


def test_list_aliases(
    data_access: DataAccess, fake_es: FakeElasticsearch, catalog: str
) -> None:
    data_access.create_index_by_alias("products")
    fake_es.indices.create(index="unaliased")

    assert data_access.list_aliases() == ["catalog", "products"]


def test_get_settings_and_mappings(
    data_access: DataAccess, catalog: str
) -> None:
    assert data_access.get_index_name(catalog) == "catalog_v1"
    assert data_access.get_mappings(catalog) == CATALOG_MAPPINGS
    settings = data_access.get_settings(catalog)
    assert settings["number_of_shards"] == "1"
    assert settings["number_of_replicas"] == "0"


def test_get_mappings_of_bare_index(data_access: DataAccess) -> None:
    data_access.create_index_by_alias("products")
    assert data_access.get_mappings("products") == {}


def test_metadata_of_missing_alias(data_access: DataAccess) -> None:
    with pytest.raises(IndexNotFoundError):
        data_access.get_settings("missing")
    with pytest.raises(IndexNotFoundError):
        data_access.get_mappings("missing")


def test_metadata_of_multiply_bound_alias(
    data_access: DataAccess, fake_es: FakeElasticsearch, catalog: str
) -> None:
    fake_es.indices.create(index="catalog_v2", aliases={catalog: {}})

    with pytest.raises(MultipleIndicesBoundError):
        data_access.get_settings(catalog)


def test_migration_states(
    data_access: DataAccess, fake_es: FakeElasticsearch, catalog: str
) -> None:
    assert data_access.get_migration_state("missing") == MigrationState.UNBOUND
    assert (
        data_access.get_migration_state(catalog)
        == MigrationState.SINGLE_SLOT_BOUND
    )

    fake_es.indices.create(index="catalog_v2")
    assert (
        data_access.get_migration_state(catalog)
        == MigrationState.MIGRATION_IN_FLIGHT
    )

    fake_es.indices.put_alias(index="catalog_v2", name=catalog)
    assert (
        data_access.get_migration_state(catalog)
        == MigrationState.MULTIPLE_BOUND
    )


def test_check_elasticsearch(
    data_access: DataAccess, mocker: MockerFixture
) -> None:
    assert data_access.check_elasticsearch()

    mocker.patch.object(
        data_access.es_service,
        "check_health",
        side_effect=Exception("Test error"),
    )
    assert not data_access.check_elasticsearch()


def test_check_aliases(
    data_access: DataAccess, fake_es: FakeElasticsearch, catalog: str
) -> None:
    data_access.create_index_by_alias("products")
    assert data_access.check_aliases() == {}

    data_access.reindex(catalog, wait_for_completion=False)
    assert data_access.check_aliases() == {
        catalog: MigrationState.MIGRATION_IN_FLIGHT
    }
