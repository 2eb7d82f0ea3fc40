from nodowntime_services.services.base_service import BaseServiceDependencies
from nodowntime_services.services.definitions import MigrationState
from nodowntime_services.services.metadata_service import MetadataService


class HealthCheckService(MetadataService):
    """Service for health checks of the engine and of the managed aliases."""

    def __init__(
        self,
        base_service_dependencies: BaseServiceDependencies,
    ) -> None:
        super(HealthCheckService, self).__init__(base_service_dependencies)

    def check_elasticsearch(self) -> bool:
        """Check if Elasticsearch is reachable."""
        try:
            return self.es_service.check_health()
        except Exception as e:
            self.logger.error(f"Elasticsearch health check failed: {e}")
            return False

    def check_aliases(self) -> dict[str, MigrationState]:
        """Return the aliases that are not bound to exactly one slot.

        An alias still waiting on an asynchronous reindex, or left with a
        second slot by an abandoned migration, shows up as in flight.
        """
        unsettled = {}
        for alias in self.list_aliases():
            state = self.get_migration_state(alias)
            if state != MigrationState.SINGLE_SLOT_BOUND:
                self.logger.warning(f'Alias "{alias}" is {state.value}.')
                unsettled[alias] = state
        return unsettled
