import logging
from typing import Any

from elasticsearch import Elasticsearch

from nodowntime_services.services.definitions import (
    IndexDefinition,
    IndexSettings,
)
from nodowntime_services.utils.exceptions import (
    IndexAlreadyExistsError,
    IndexNotFoundError,
)

logger = logging.getLogger(__name__)


class ElasticsearchIndexManager:
    def __init__(self, es_client: Elasticsearch) -> None:
        self.es = es_client

    def exists(self, index_name: str) -> bool:
        """True for an index name as well as for an alias name."""
        return bool(self.es.indices.exists(index=index_name))

    def create_index(
        self,
        index_name: str,
        definition: IndexDefinition | None = None,
        aliases: list[str] | None = None,
        ignore_if_exists: bool = False,
    ) -> bool:
        if self.exists(index_name):
            if ignore_if_exists:
                logger.warning(f'Index "{index_name}" already exists.')
                return False
            raise IndexAlreadyExistsError(index_name)

        request = (definition or IndexDefinition()).to_request()
        if aliases:
            request["aliases"] = {alias: {} for alias in aliases}

        response = self.es.indices.create(index=index_name, **request)
        logger.debug(f'Index "{index_name}" created with {request}.')
        return bool(response.get("acknowledged", False))

    def delete_index(
        self,
        index_name: str,
        ignore_if_not_exists: bool = True,
    ) -> None:
        if self.exists(index_name):
            self.es.indices.delete(index=index_name)
            logger.debug(f'Index "{index_name}" deleted.')
        else:
            if ignore_if_not_exists:
                logger.warning(f'Index "{index_name}" doesn\'t exist.')
            else:
                raise IndexNotFoundError(index_name)

    def open_index(self, index_name: str) -> None:
        self.es.indices.open(index=index_name)

    def close_index(self, index_name: str) -> None:
        self.es.indices.close(index=index_name)

    def get_settings(self, index_name: str) -> dict[str, Any]:
        response = self.es.indices.get_settings(index=index_name)
        return dict(response[index_name]["settings"]["index"])

    def put_settings(self, index_name: str, settings: dict[str, Any]) -> None:
        self.es.indices.put_settings(index=index_name, settings=settings)

    def get_mappings(self, index_name: str) -> dict[str, Any]:
        response = self.es.indices.get_mapping(index=index_name)
        mappings = response[index_name].get("mappings")
        return dict(mappings) if isinstance(mappings, dict) else {}

    def get_index_definition(self, index_name: str) -> IndexDefinition:
        """Read the parts of an index definition a new slot can reuse."""
        mappings = self.get_mappings(index_name)
        return IndexDefinition(
            settings=IndexSettings.reusable_from(
                self.get_settings(index_name)
            ),
            mappings=mappings or None,
        )

    def count_documents(self, index_name: str) -> int:
        return int(self.es.count(index=index_name)["count"])

    def is_empty(self, index_name: str) -> bool:
        return self.count_documents(index_name) == 0
