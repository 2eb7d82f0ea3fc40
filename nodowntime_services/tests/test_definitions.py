import pytest
from pydantic import ValidationError

from nodowntime_services.services.definitions import (
    IndexDefinition,
    IndexSettings,
    SearchParameters,
    compose,
)

ANALYSIS = {"analyzer": {"folding": {"tokenizer": "standard"}}}
MAPPINGS = {"properties": {"title": {"type": "text"}}}


def test_reusable_settings_drop_engine_metadata() -> None:
    settings = IndexSettings.reusable_from(
        {
            "number_of_shards": "3",
            "number_of_replicas": "1",
            "analysis": ANALYSIS,
            "uuid": "abc",
            "creation_date": "1700000000000",
            "provided_name": "catalog_v1",
        }
    )
    assert settings.to_body() == {
        "number_of_shards": "3",
        "number_of_replicas": "1",
        "analysis": ANALYSIS,
    }


def test_empty_definition_is_a_bare_request() -> None:
    assert IndexDefinition().to_request() == {}
    assert IndexDefinition(settings=IndexSettings()).to_request() == {}


def test_compose_overrides_field_by_field() -> None:
    definition = compose(
        override_settings={"number_of_replicas": 2},
        override_mappings=None,
        inherited_settings=IndexSettings(
            number_of_shards=3, number_of_replicas=0, analysis=ANALYSIS
        ),
        inherited_mappings=MAPPINGS,
    )
    assert definition.to_request() == {
        "settings": {
            "number_of_shards": 3,
            "number_of_replicas": 2,
            "analysis": ANALYSIS,
        },
        "mappings": MAPPINGS,
    }


def test_compose_ignores_empty_overrides() -> None:
    definition = compose(
        override_settings={"analysis": {}},
        override_mappings={},
        inherited_settings=IndexSettings(analysis=ANALYSIS),
        inherited_mappings=MAPPINGS,
    )
    assert definition.settings is not None
    assert definition.settings.analysis == ANALYSIS
    assert definition.mappings == MAPPINGS


def test_compose_takes_mapping_whole() -> None:
    new_mappings = {"properties": {"price": {"type": "float"}}}
    definition = compose(None, new_mappings, None, MAPPINGS)
    assert definition.mappings == new_mappings
    assert definition.settings is None


def test_compose_keeps_extra_settings() -> None:
    definition = compose({"refresh_interval": "30s"}, None, None, None)
    assert definition.to_request() == {
        "settings": {"refresh_interval": "30s"}
    }


def test_compose_without_anything_is_empty() -> None:
    assert compose(None, None, None, None).to_request() == {}


def test_search_parameters() -> None:
    parameters = SearchParameters(from_=20, size=5, sort=["title"])
    assert parameters.to_request() == {
        "from_": 20,
        "size": 5,
        "sort": ["title"],
    }


def test_invalid_search_offset() -> None:
    with pytest.raises(ValidationError):
        SearchParameters(from_=-1)
