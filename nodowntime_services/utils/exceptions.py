from typing import Any


class NodowntimeError(Exception):
    pass


class IndexNotFoundError(NodowntimeError):
    def __init__(self, index: str) -> None:
        self.index = index
        super().__init__(f"index {index} not found")


class IndexAlreadyExistsError(NodowntimeError):
    def __init__(self, index: str) -> None:
        self.index = index
        super().__init__(f"index {index} already exists")


class InvalidArgumentError(NodowntimeError, ValueError):
    pass


class ReindexFailedError(NodowntimeError):
    def __init__(
        self,
        message: str,
        failures: list[dict[str, Any]] | None = None,
    ) -> None:
        self.failures = failures or []
        super().__init__(message)


class MultipleIndicesBoundError(NodowntimeError):
    """Raised when a migration meets an alias bound to several indices."""

    def __init__(self, alias: str, indices: list[str]) -> None:
        self.alias = alias
        self.indices = indices
        super().__init__(
            f'alias {alias} is bound to several indices: {", ".join(indices)}'
        )


class MigrationInProgressError(NodowntimeError):
    def __init__(self, alias: str) -> None:
        self.alias = alias
        super().__init__(f"a migration is already in progress for {alias}")
