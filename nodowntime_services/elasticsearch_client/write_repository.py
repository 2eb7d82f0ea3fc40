import logging
from typing import Any, Iterable, Iterator

from elasticsearch import Elasticsearch, helpers

logger = logging.getLogger(__name__)


class ElasticsearchWriteRepository:
    def __init__(self, es_client: Elasticsearch) -> None:
        self.es = es_client

    def index_document(
        self,
        index_name: str,
        body: dict[str, Any],
        doc_id: str | None = None,
        refresh: bool = False,
    ) -> int:
        """Index a document and return the version the engine assigned."""
        if doc_id is None:
            response = self.es.index(
                index=index_name, document=body, refresh=refresh
            )
        else:
            response = self.es.index(
                index=index_name, id=doc_id, document=body, refresh=refresh
            )
        return int(response["_version"])

    def delete_document(
        self,
        index_name: str,
        doc_id: str,
        refresh: bool = False,
    ) -> None:
        self.es.delete(index=index_name, id=doc_id, refresh=refresh)

    def upload_documents(
        self,
        index_name: str,
        documents: Iterable[dict[str, Any]],
        id_field: str | None = None,
        chunk_size: int = 1000,
    ) -> int:
        def doc_stream() -> Iterator[dict[str, Any]]:
            for document in documents:
                action: dict[str, Any] = {"_source": document}
                if id_field is not None and id_field in document:
                    action["_id"] = document[id_field]
                yield action

        uploaded = 0
        for status_ok, response in helpers.streaming_bulk(
            self.es,
            actions=doc_stream(),
            chunk_size=chunk_size,
            index=index_name,
            raise_on_error=False,
        ):
            if status_ok:
                uploaded += 1
            else:
                logger.error(
                    f'Bulk upload to "{index_name}" failed: {response}'
                )
        return uploaded
