from typing import Any, Iterable

from nodowntime_services.services.base_service import (
    BaseService,
    BaseServiceDependencies,
)
from nodowntime_services.services.definitions import SearchParameters
from nodowntime_services.utils.exceptions import IndexNotFoundError


class DocumentService(BaseService):
    """Single document operations and searches through an alias.

    Reads go through the alias itself, so an alias bound to several
    indices is searched across all of them.
    """

    def __init__(
        self,
        base_service_dependencies: BaseServiceDependencies,
    ) -> None:
        super().__init__(base_service_dependencies)

    def get_document(
        self,
        alias: str,
        doc_id: str,
        refresh: bool = False,
    ) -> dict[str, Any]:
        self._check_alias(alias)
        return self.es_service.read.get_document(
            index_name=alias, doc_id=doc_id, refresh=refresh
        )

    def get_all_documents(
        self,
        alias: str,
        from_: int = 0,
        size: int = 10,
    ) -> dict[str, Any]:
        return self.search_documents(alias, query=None, from_=from_, size=size)

    def search_documents(
        self,
        alias: str,
        query: dict[str, Any] | None = None,
        from_: int = 0,
        size: int = 10,
    ) -> dict[str, Any]:
        body = {"query": query} if query is not None else None
        return self.advanced_search_documents(
            alias,
            body=body,
            parameters=SearchParameters(from_=from_, size=size),
        )

    def advanced_search_documents(
        self,
        alias: str,
        body: dict[str, Any] | None = None,
        parameters: SearchParameters | None = None,
    ) -> dict[str, Any]:
        """Search with a raw request body.

        Args:
            alias: Alias to search through
            body: Search body (query, aggregations, ...), sent as is
            parameters: Offset, size, sort and source filtering

        Returns:
            The engine response
        """
        self._check_alias(alias)
        return self.es_service.read.search(
            index_name=alias, body=body, parameters=parameters
        )

    def count_documents(
        self,
        alias: str,
        query: dict[str, Any] | None = None,
    ) -> int:
        self._check_alias(alias)
        return self.es_service.read.count(index_name=alias, query=query)

    def add_document(
        self,
        index_name: str,
        body: dict[str, Any],
        doc_id: str | None = None,
        refresh: bool = False,
    ) -> bool:
        """Index a document, returning True if it did not exist before.

        ``index_name`` may be an alias as long as it points to one index.
        """
        self._check_index(index_name)
        version = self.es_service.write.index_document(
            index_name=index_name, body=body, doc_id=doc_id, refresh=refresh
        )
        return version == 1

    def update_document(
        self,
        index_name: str,
        doc_id: str,
        body: dict[str, Any],
        refresh: bool = False,
    ) -> bool:
        """Index a document, returning True if it replaced an existing one."""
        self._check_index(index_name)
        version = self.es_service.write.index_document(
            index_name=index_name, body=body, doc_id=doc_id, refresh=refresh
        )
        return version > 1

    def delete_document(
        self,
        alias: str,
        doc_id: str,
        refresh: bool = False,
    ) -> None:
        self._check_alias(alias)
        self.es_service.write.delete_document(
            index_name=alias, doc_id=doc_id, refresh=refresh
        )

    def upload_documents(
        self,
        alias: str,
        documents: Iterable[dict[str, Any]],
        id_field: str | None = None,
        chunk_size: int = 1000,
    ) -> int:
        self._check_alias(alias)
        uploaded = self.es_service.write.upload_documents(
            index_name=alias,
            documents=documents,
            id_field=id_field,
            chunk_size=chunk_size,
        )
        self.logger.info(f'{uploaded} document(s) uploaded to "{alias}".')
        return uploaded

    def _check_alias(self, alias: str) -> None:
        if not self.es_service.aliases.alias_exists(alias):
            raise IndexNotFoundError(alias)

    def _check_index(self, index_name: str) -> None:
        if not self.es_service.aliases.exists(index_name):
            raise IndexNotFoundError(index_name)
