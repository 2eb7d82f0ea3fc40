from nodowntime_services.data_access import DataAccess
from nodowntime_services.services.definitions import (
    IndexDefinition,
    IndexSettings,
    MigrationState,
    SearchParameters,
)
from nodowntime_services.utils.config import Config
from nodowntime_services.utils.exceptions import (
    IndexAlreadyExistsError,
    IndexNotFoundError,
    InvalidArgumentError,
    MigrationInProgressError,
    MultipleIndicesBoundError,
    NodowntimeError,
    ReindexFailedError,
)

__all__ = [
    "Config",
    "DataAccess",
    "IndexAlreadyExistsError",
    "IndexDefinition",
    "IndexNotFoundError",
    "IndexSettings",
    "InvalidArgumentError",
    "MigrationInProgressError",
    "MigrationState",
    "MultipleIndicesBoundError",
    "NodowntimeError",
    "ReindexFailedError",
    "SearchParameters",
]
