import logging

from elasticsearch import ConflictError, Elasticsearch

from nodowntime_services.services.definitions import MigrationLease
from nodowntime_services.utils.exceptions import MigrationInProgressError

logger = logging.getLogger(__name__)


class ElasticsearchLockRepository:
    """Per-alias migration leases stored as documents of a lock index.

    A lease is created with the ``create`` operation, which the engine
    refuses with a conflict when a document with the same id exists.
    """

    def __init__(self, es_client: Elasticsearch, lock_index: str) -> None:
        self.es = es_client
        self.lock_index = lock_index

    def acquire(self, alias: str, owner: str) -> MigrationLease:
        lease = MigrationLease(alias=alias, owner=owner)
        try:
            self.es.create(
                index=self.lock_index,
                id=alias,
                document=lease.model_dump(mode="json"),
                refresh=True,
            )
        except ConflictError as e:
            raise MigrationInProgressError(alias) from e
        logger.debug(f'Migration lease on "{alias}" acquired by {owner}.')
        return lease

    def get(self, alias: str) -> MigrationLease | None:
        response = self.es.options(ignore_status=404).get(
            index=self.lock_index, id=alias
        )
        if not response.get("found", False):
            return None
        return MigrationLease(**response["_source"])

    def attach_task(self, lease: MigrationLease, task_id: str) -> None:
        lease.task_id = task_id
        self.es.index(
            index=self.lock_index,
            id=lease.alias,
            document=lease.model_dump(mode="json"),
            refresh=True,
        )

    def release(self, alias: str) -> None:
        self.es.options(ignore_status=404).delete(
            index=self.lock_index, id=alias, refresh=True
        )
        logger.debug(f'Migration lease on "{alias}" released.')
