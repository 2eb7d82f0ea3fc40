import logging

from elasticsearch import Elasticsearch

from nodowntime_services.elasticsearch_client.service import (
    ElasticsearchService,
)
from nodowntime_services.services.base_service import (
    BaseServiceDependencies,
)
from nodowntime_services.services.document_service import DocumentService
from nodowntime_services.services.health_check_service import (
    HealthCheckService,
)
from nodowntime_services.services.migration_service import MigrationService
from nodowntime_services.utils.config import (
    Config,
    DatabaseConfig,
    LoggingConfig,
)


class DataAccess(
    MigrationService,
    DocumentService,
    HealthCheckService,
):
    """Entry point for managing indices behind aliases without downtime.

    This service combines the alias migrations (create, reindex, settings
    and mapping updates, delete-all), the document operations that go
    through an alias, and the metadata and health checks.
    """

    def __init__(
        self,
        config: Config,
        es_client: Elasticsearch | None = None,
    ) -> None:
        """Initialize the service with configuration.

        Args:
            config: Configuration object containing all necessary settings
            es_client: Already configured client, built from
                ``config.database`` when omitted
        """
        logger = self._get_logger(config.logging)
        self.es_service = ElasticsearchService(
            es_client or self._get_client(config.database),
            lock_index=config.migration.lock_index,
        )

        base_service_dependencies = BaseServiceDependencies(
            es_service=self.es_service,
            logger=logger,
            migration_config=config.migration,
        )
        super().__init__(base_service_dependencies)

    @property
    def client(self) -> Elasticsearch:
        return self.es_service.es

    def _get_client(self, database_config: DatabaseConfig) -> Elasticsearch:
        return Elasticsearch(
            hosts=[database_config.elastic_host],
            basic_auth=(
                database_config.elastic_user,
                database_config.elastic_password,
            ),
            ca_certs=(
                str(database_config.ca_certs)
                if database_config.ca_certs
                else None
            ),
            request_timeout=database_config.elastic_timeout,
        )

    def _get_logger(self, logging_config: LoggingConfig) -> logging.Logger:
        """Set the logger configuration."""
        logger = logging.getLogger("nodowntime_services")
        logger.setLevel(logging_config.level)
        if logger.handlers:
            return logger

        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(logging_config.format))
        logger.addHandler(handler)

        if logging_config.file:
            file_handler = logging.FileHandler(logging_config.file)
            file_handler.setFormatter(logging.Formatter(logging_config.format))
            logger.addHandler(file_handler)
        return logger
