from typing import Any

from elasticsearch import Elasticsearch

from nodowntime_services.services.definitions import SearchParameters


class ElasticsearchReadRepository:
    def __init__(self, es_client: Elasticsearch) -> None:
        self.es = es_client

    def get_document(
        self,
        index_name: str,
        doc_id: str,
        refresh: bool = False,
    ) -> dict[str, Any]:
        response = self.es.get(index=index_name, id=doc_id, refresh=refresh)
        return dict(response)

    def search(
        self,
        index_name: str,
        body: dict[str, Any] | None = None,
        parameters: SearchParameters | None = None,
    ) -> dict[str, Any]:
        request: dict[str, Any] = {}
        if parameters is not None:
            request.update(parameters.to_request())
        if body:
            request.update(body)

        response = self.es.search(index=index_name, **request)
        return dict(response)

    def count(
        self,
        index_name: str,
        query: dict[str, Any] | None = None,
    ) -> int:
        if query is None:
            response = self.es.count(index=index_name)
        else:
            response = self.es.count(index=index_name, query=query)
        return int(response["count"])
