from typing import Any

from nodowntime_services.services.base_service import (
    BaseService,
    BaseServiceDependencies,
)
from nodowntime_services.services.definitions import MigrationState
from nodowntime_services.utils.exceptions import IndexNotFoundError
from nodowntime_services.utils.slots import dest_slot_name, first_slot_name


class MetadataService(BaseService):
    """Read-only views on aliases and the indices behind them."""

    def __init__(
        self,
        base_service_dependencies: BaseServiceDependencies,
    ) -> None:
        super().__init__(base_service_dependencies)

    def exists_index(self, name: str) -> bool:
        """Check an index or an alias name."""
        return self.es_service.aliases.exists(name)

    def exists_alias(self, alias: str) -> bool:
        return self.es_service.aliases.alias_exists(alias)

    def list_aliases(self) -> list[str]:
        return self.es_service.aliases.list_aliases()

    def get_index_name(self, alias: str) -> str:
        return self._resolve(alias)

    def get_settings(self, alias: str) -> dict[str, Any]:
        index_name = self._resolve(alias)
        return self.es_service.index_manager.get_settings(index_name)

    def get_mappings(self, alias: str) -> dict[str, Any]:
        index_name = self._resolve(alias)
        return self.es_service.index_manager.get_mappings(index_name)

    def get_migration_state(self, alias: str) -> MigrationState:
        """Derive where ``alias`` stands from the indices that exist."""
        indices = self.es_service.aliases.get_indices(alias)
        if len(indices) == 0:
            if self.es_service.aliases.exists(first_slot_name(alias)):
                return MigrationState.MIGRATION_IN_FLIGHT
            return MigrationState.UNBOUND
        if len(indices) > 1:
            return MigrationState.MULTIPLE_BOUND
        if self.es_service.aliases.exists(dest_slot_name(alias, indices[0])):
            return MigrationState.MIGRATION_IN_FLIGHT
        return MigrationState.SINGLE_SLOT_BOUND

    def _resolve(self, alias: str) -> str:
        if not self.es_service.aliases.alias_exists(alias):
            raise IndexNotFoundError(alias)
        return self.es_service.aliases.resolve_single(alias)
