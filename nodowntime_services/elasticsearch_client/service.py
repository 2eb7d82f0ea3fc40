from elasticsearch import Elasticsearch

from nodowntime_services.elasticsearch_client.alias_repository import (
    ElasticsearchAliasRepository,
)
from nodowntime_services.elasticsearch_client.index_manager import (
    ElasticsearchIndexManager,
)
from nodowntime_services.elasticsearch_client.lock_repository import (
    ElasticsearchLockRepository,
)
from nodowntime_services.elasticsearch_client.read_repository import (
    ElasticsearchReadRepository,
)
from nodowntime_services.elasticsearch_client.reindex_controller import (
    ElasticsearchReindexController,
)
from nodowntime_services.elasticsearch_client.write_repository import (
    ElasticsearchWriteRepository,
)


class ElasticsearchService:
    def __init__(
        self,
        es_client: Elasticsearch,
        lock_index: str = "nodowntime-migration-locks",
    ) -> None:
        self.es = es_client
        self.index_manager = ElasticsearchIndexManager(es_client=es_client)
        self.aliases = ElasticsearchAliasRepository(es_client=es_client)
        self.reindex = ElasticsearchReindexController(es_client=es_client)
        self.locks = ElasticsearchLockRepository(
            es_client=es_client,
            lock_index=lock_index,
        )
        self.read = ElasticsearchReadRepository(es_client=es_client)
        self.write = ElasticsearchWriteRepository(es_client=es_client)

    def check_health(self) -> bool:
        return bool(self.es.ping())
