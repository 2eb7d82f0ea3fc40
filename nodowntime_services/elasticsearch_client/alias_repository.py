import logging

from elasticsearch import Elasticsearch

from nodowntime_services.utils.exceptions import (
    IndexNotFoundError,
    MultipleIndicesBoundError,
)

logger = logging.getLogger(__name__)


class ElasticsearchAliasRepository:
    def __init__(self, es_client: Elasticsearch) -> None:
        self.es = es_client

    def exists(self, name: str) -> bool:
        return bool(self.es.indices.exists(index=name))

    def alias_exists(self, alias: str) -> bool:
        return bool(self.es.indices.exists_alias(name=alias))

    def get_indices(self, alias: str) -> list[str]:
        if not self.alias_exists(alias):
            return []
        return sorted(self.es.indices.get_alias(name=alias).keys())

    def resolve_single(self, alias: str) -> str:
        """Return the one physical index an alias points to.

        Migrations rely on that index being unique, so an alias bound to
        several indices is refused instead of picking one of them.
        """
        indices = self.get_indices(alias)
        if len(indices) == 0:
            raise IndexNotFoundError(alias)
        if len(indices) > 1:
            raise MultipleIndicesBoundError(alias, indices)
        return indices[0]

    def list_aliases(self) -> list[str]:
        response = self.es.indices.get_alias()
        aliases: set[str] = set()
        for index_data in response.values():
            aliases.update(index_data.get("aliases", {}).keys())
        return sorted(aliases)

    def put_alias(self, alias: str, index_name: str) -> None:
        self.es.indices.put_alias(index=index_name, name=alias)
        logger.debug(f'Alias "{alias}" bound to "{index_name}".')

    def switch_alias(self, alias: str, source: str, dest: str) -> None:
        """Move an alias from one index to another in a single request."""
        self.es.indices.update_aliases(
            actions=[
                {"remove": {"index": source, "alias": alias}},
                {"add": {"index": dest, "alias": alias}},
            ]
        )
        logger.debug(f'Alias "{alias}" switched from "{source}" to "{dest}".')
