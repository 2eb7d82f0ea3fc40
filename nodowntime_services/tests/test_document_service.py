import pytest
from pytest_mock import MockerFixture

from nodowntime_services.data_access import DataAccess
from nodowntime_services.services.definitions import SearchParameters
from nodowntime_services.tests.fake_elasticsearch import FakeElasticsearch
from nodowntime_services.utils.exceptions import IndexNotFoundError


def test_add_and_update_document(
    data_access: DataAccess, fake_es: FakeElasticsearch, catalog: str
) -> None:
    assert data_access.add_document(catalog, {"title": "new"}, doc_id="10")
    assert not data_access.add_document(catalog, {"title": "again"}, "10")

    assert data_access.update_document(catalog, "10", {"title": "changed"})
    assert not data_access.update_document(catalog, "11", {"title": "fresh"})

    assert fake_es.store["catalog_v1"].documents["10"] == {"title": "changed"}


def test_add_document_on_physical_index(
    data_access: DataAccess, fake_es: FakeElasticsearch, catalog: str
) -> None:
    assert data_access.add_document("catalog_v1", {"title": "direct"})
    assert data_access.count_documents(catalog) == 6


def test_document_operations_on_missing_index(
    data_access: DataAccess,
) -> None:
    with pytest.raises(IndexNotFoundError):
        data_access.add_document("missing", {"title": "x"})
    with pytest.raises(IndexNotFoundError):
        data_access.update_document("missing", "1", {"title": "x"})
    with pytest.raises(IndexNotFoundError):
        data_access.get_document("missing", "1")
    with pytest.raises(IndexNotFoundError):
        data_access.delete_document("missing", "1")
    with pytest.raises(IndexNotFoundError):
        data_access.search_documents("missing")
    with pytest.raises(IndexNotFoundError):
        data_access.count_documents("missing")


def test_get_and_delete_document(
    data_access: DataAccess, fake_es: FakeElasticsearch, catalog: str
) -> None:
    document = data_access.get_document(catalog, "2")
    assert document["_source"] == {"title": "book 2", "category": "books"}

    data_access.delete_document(catalog, "2", refresh=True)
    assert "2" not in fake_es.store["catalog_v1"].documents


def test_get_all_documents_paginates(
    data_access: DataAccess, catalog: str
) -> None:
    response = data_access.get_all_documents(catalog, from_=3, size=10)

    assert response["hits"]["total"]["value"] == 5
    assert len(response["hits"]["hits"]) == 2


def test_search_documents_sends_query(
    data_access: DataAccess,
    fake_es: FakeElasticsearch,
    catalog: str,
    mocker: MockerFixture,
) -> None:
    search = mocker.spy(fake_es, "search")

    data_access.search_documents(
        catalog, query={"term": {"category": "books"}}, size=3
    )

    search.assert_called_once_with(
        index=catalog,
        from_=0,
        size=3,
        query={"term": {"category": "books"}},
    )


def test_advanced_search_documents(
    data_access: DataAccess,
    fake_es: FakeElasticsearch,
    catalog: str,
    mocker: MockerFixture,
) -> None:
    search = mocker.spy(fake_es, "search")

    data_access.advanced_search_documents(
        catalog,
        body={"query": {"match_all": {}}, "aggs": {"c": {"terms": {}}}},
        parameters=SearchParameters(size=0, sort=["title"]),
    )

    search.assert_called_once_with(
        index=catalog,
        from_=0,
        size=0,
        sort=["title"],
        query={"match_all": {}},
        aggs={"c": {"terms": {}}},
    )


def test_count_documents_with_query(
    data_access: DataAccess,
    fake_es: FakeElasticsearch,
    catalog: str,
    mocker: MockerFixture,
) -> None:
    count = mocker.spy(fake_es, "count")

    assert data_access.count_documents(catalog) == 5
    data_access.count_documents(catalog, query={"term": {"category": "x"}})

    count.assert_called_with(
        index=catalog, query={"term": {"category": "x"}}
    )


def test_upload_documents(
    data_access: DataAccess, catalog: str, mocker: MockerFixture
) -> None:
    streaming_bulk = mocker.patch(
        "nodowntime_services.elasticsearch_client.write_repository"
        ".helpers.streaming_bulk",
        return_value=iter(
            [
                (True, {"index": {"_id": "a"}}),
                (False, {"index": {"_id": "b", "error": "mapper"}}),
                (True, {"index": {"_id": "c"}}),
            ]
        ),
    )

    uploaded = data_access.upload_documents(
        catalog,
        [{"sku": "a"}, {"sku": "b"}, {"sku": "c"}],
        id_field="sku",
    )

    assert uploaded == 2
    kwargs = streaming_bulk.call_args.kwargs
    assert kwargs["index"] == catalog
    assert kwargs["chunk_size"] == 1000
    assert list(kwargs["actions"]) == [
        {"_source": {"sku": "a"}, "_id": "a"},
        {"_source": {"sku": "b"}, "_id": "b"},
        {"_source": {"sku": "c"}, "_id": "c"},
    ]


def test_upload_documents_missing_alias(data_access: DataAccess) -> None:
    with pytest.raises(IndexNotFoundError):
        data_access.upload_documents("missing", [{"sku": "a"}])
