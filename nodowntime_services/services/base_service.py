import logging
from dataclasses import dataclass

from nodowntime_services.elasticsearch_client.service import (
    ElasticsearchService,
)
from nodowntime_services.utils.config import MigrationConfig


@dataclass
class BaseServiceDependencies:
    es_service: ElasticsearchService
    logger: logging.Logger
    migration_config: MigrationConfig


class BaseService:
    def __init__(
        self,
        base_service_dependencies: BaseServiceDependencies,
    ) -> None:
        self.es_service = base_service_dependencies.es_service
        self.logger = base_service_dependencies.logger
        self.migration_config = base_service_dependencies.migration_config
