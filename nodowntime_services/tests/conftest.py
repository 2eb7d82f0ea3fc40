import pytest

from nodowntime_services.data_access import DataAccess
from nodowntime_services.tests.fake_elasticsearch import FakeElasticsearch
from nodowntime_services.utils.config import Config, MigrationConfig

CATALOG_MAPPINGS = {
    "properties": {
        "title": {"type": "text"},
        "category": {"type": "keyword"},
        "price": {"type": "float"},
    }
}


@pytest.fixture
def fake_es() -> FakeElasticsearch:
    return FakeElasticsearch()


@pytest.fixture
def config() -> Config:
    return Config(migration=MigrationConfig(lock_owner="test-runner"))


@pytest.fixture
def data_access(config: Config, fake_es: FakeElasticsearch) -> DataAccess:
    return DataAccess(config, es_client=fake_es)  # type: ignore[arg-type]


@pytest.fixture
def catalog(data_access: DataAccess, fake_es: FakeElasticsearch) -> str:
    """Alias "catalog" bound to catalog_v1 holding 5 documents."""
    fake_es.indices.create(
        index="catalog_v1",
        settings={"number_of_shards": 1, "number_of_replicas": 0},
        mappings=CATALOG_MAPPINGS,
        aliases={"catalog": {}},
    )
    for i in range(5):
        fake_es.index(
            index="catalog_v1",
            id=str(i),
            document={"title": f"book {i}", "category": "books"},
        )
    return "catalog"
