from contextlib import contextmanager
from typing import Any, Iterator

from nodowntime_services.services.base_service import (
    BaseService,
    BaseServiceDependencies,
)
from nodowntime_services.services.definitions import (
    IndexSettings,
    MigrationLease,
    ReindexOutcome,
    compose,
)
from nodowntime_services.utils.exceptions import (
    IndexAlreadyExistsError,
    IndexNotFoundError,
    InvalidArgumentError,
    MigrationInProgressError,
    ReindexFailedError,
)
from nodowntime_services.utils.slots import (
    RETURN_ACKNOWLEDGE,
    dest_slot_name,
    first_slot_name,
)


class MigrationService(BaseService):
    """Alias based index migrations without downtime.

    Every alias is served by one of two physical indices, ``<alias>_v1`` or
    ``<alias>_v2``. A migration builds the slot that is not in use, fills
    it, moves the alias in one atomic action and then drops the old slot.
    Readers therefore always see either the old index or the new one.

    Operations that transfer documents return ``"ok"`` once the alias has
    moved, or the engine task id when started with
    ``wait_for_completion=False``. In the latter case the alias stays on
    the old slot until ``complete_migration`` is called with that task id.
    """

    def __init__(
        self,
        base_service_dependencies: BaseServiceDependencies,
    ) -> None:
        super().__init__(base_service_dependencies)

    def create_index_by_alias(self, alias: str) -> None:
        index_name = first_slot_name(alias)
        if self.es_service.aliases.exists(index_name):
            raise IndexAlreadyExistsError(index_name)
        if self.es_service.aliases.exists(alias):
            raise IndexAlreadyExistsError(alias)

        self.es_service.index_manager.create_index(
            index_name=index_name, aliases=[alias]
        )
        self.logger.info(f'Index "{index_name}" created for alias "{alias}".')

    def delete_index_by_alias(self, alias: str) -> None:
        self._check_alias(alias)
        with self._migration_lease(alias):
            index_name = self.es_service.aliases.resolve_single(alias)
            self.es_service.index_manager.delete_index(
                index_name, ignore_if_not_exists=False
            )
        self.logger.info(f'Index "{index_name}" of alias "{alias}" deleted.')

    def copy_index(
        self,
        alias_src: str,
        alias_dest: str,
        refresh: bool = False,
        wait_for_completion: bool = True,
    ) -> str:
        """Copy the index behind ``alias_src`` into a new alias.

        Args:
            alias_src: Alias to copy from, must exist
            alias_dest: Alias to create, must not exist
            refresh: Refresh the destination once documents are copied
            wait_for_completion: Block until the copy is finished

        Returns:
            "ok" once ``alias_dest`` is bound, or the reindex task id
        """
        self._check_alias(alias_src)
        if self.es_service.aliases.alias_exists(alias_dest):
            raise IndexAlreadyExistsError(alias_dest)
        # The source slot is dropped when its own migration swaps.
        if self._get_lease(alias_src) is not None:
            raise MigrationInProgressError(alias_src)

        with self._migration_lease(alias_dest) as lease:
            index_src = self.es_service.aliases.resolve_single(alias_src)
            index_dest = first_slot_name(alias_dest)
            self._drop_stale_slot(index_dest)

            definition = self.es_service.index_manager.get_index_definition(
                index_src
            )
            self.es_service.index_manager.create_index(
                index_name=index_dest, definition=definition
            )
            self.logger.info(
                f'Index "{index_dest}" created from "{index_src}".'
            )

            outcome = self._transfer(
                index_src, index_dest, refresh, wait_for_completion
            )
            if outcome.is_pending:
                return self._hand_off(alias_dest, lease, outcome)

            self.es_service.aliases.put_alias(alias_dest, index_dest)
            self.logger.info(f'Alias "{alias_dest}" bound to "{index_dest}".')
            return RETURN_ACKNOWLEDGE

    def reindex(
        self,
        alias: str,
        refresh: bool = False,
        need_create_dest: bool = True,
        wait_for_completion: bool = True,
    ) -> str:
        """Rebuild the index behind ``alias`` in its other slot.

        Args:
            alias: Alias to migrate
            refresh: Refresh the destination once documents are copied
            need_create_dest: Create the destination from the current
                index. Pass False when the destination was already built by
                ``update_settings`` or ``update_mappings``.
            wait_for_completion: Block until the documents are copied

        Returns:
            "ok" once the alias points to the new slot, or the task id
        """
        self._check_alias(alias)
        with self._migration_lease(alias) as lease:
            return self._reindex(
                alias, refresh, need_create_dest, wait_for_completion, lease
            )

    def add_settings(
        self,
        alias: str,
        settings: IndexSettings | dict[str, Any] | None,
    ) -> None:
        """Apply settings the engine accepts on an existing (closed) index.

        This covers additions such as new analyzers. Settings that need a
        new index, like the shard count, go through ``update_settings``.
        """
        self._check_alias(alias)
        if isinstance(settings, IndexSettings):
            settings = settings.to_body()
        if not settings:
            raise InvalidArgumentError(
                "settings are empty, there is nothing to add to the index."
            )

        with self._migration_lease(alias):
            index_name = self.es_service.aliases.resolve_single(alias)
            self.es_service.index_manager.close_index(index_name)
            try:
                self.es_service.index_manager.put_settings(
                    index_name, settings
                )
            finally:
                self.es_service.index_manager.open_index(index_name)
        self.logger.info(f'Settings added to "{index_name}".')

    def update_settings(
        self,
        alias: str,
        settings: IndexSettings | dict[str, Any] | None,
        refresh: bool = False,
        need_reindex: bool = True,
        wait_for_completion: bool = True,
    ) -> str:
        """Move ``alias`` to a new slot built with ``settings``.

        The mapping of the current index is kept. The given settings are
        used as they are: settings of the current index that are not
        repeated here are not carried over.

        With ``need_reindex=False`` only the new slot is created; the
        caller then finishes with ``reindex(alias, need_create_dest=False)``.
        """
        self._check_alias(alias)
        with self._migration_lease(alias) as lease:
            index_src = self.es_service.aliases.resolve_single(alias)
            index_dest = dest_slot_name(alias, index_src)
            self._drop_stale_slot(index_dest)

            definition = compose(
                override_settings=settings,
                override_mappings=None,
                inherited_settings=None,
                inherited_mappings=self.es_service.index_manager.get_mappings(
                    index_src
                ),
            )
            acknowledged = self.es_service.index_manager.create_index(
                index_name=index_dest, definition=definition
            )
            self.logger.info(
                f'Index "{index_dest}" created with new settings '
                f'for alias "{alias}".'
            )

            if acknowledged and need_reindex:
                return self._reindex(
                    alias, refresh, False, wait_for_completion, lease
                )
            return RETURN_ACKNOWLEDGE

    def update_mappings(
        self,
        alias: str,
        mappings: dict[str, Any] | None,
        refresh: bool = False,
        need_reindex: bool = True,
        wait_for_completion: bool = True,
        include_type_name: bool = False,
    ) -> str:
        """Move ``alias`` to a new slot built with ``mappings``.

        Shard count, replica count and analysis of the current index are
        kept. When ``include_type_name`` is set, ``mappings`` is expected to
        be wrapped in a single legacy type name, which is removed.
        """
        self._check_alias(alias)
        if include_type_name and mappings:
            mappings = _strip_type_name(mappings)

        with self._migration_lease(alias) as lease:
            index_src = self.es_service.aliases.resolve_single(alias)
            index_dest = dest_slot_name(alias, index_src)
            self._drop_stale_slot(index_dest)

            inherited = self.es_service.index_manager.get_index_definition(
                index_src
            )
            definition = compose(
                override_settings=None,
                override_mappings=mappings,
                inherited_settings=inherited.settings,
                inherited_mappings=None,
            )
            acknowledged = self.es_service.index_manager.create_index(
                index_name=index_dest, definition=definition
            )
            self.logger.info(
                f'Index "{index_dest}" created with new mappings '
                f'for alias "{alias}".'
            )

            if acknowledged and need_reindex:
                return self._reindex(
                    alias, refresh, False, wait_for_completion, lease
                )
            return RETURN_ACKNOWLEDGE

    def delete_all_documents(self, alias: str) -> None:
        """Empty ``alias`` by moving it to a fresh slot of the same shape."""
        self._check_alias(alias)
        with self._migration_lease(alias):
            index_src = self.es_service.aliases.resolve_single(alias)
            index_dest = dest_slot_name(alias, index_src)
            self._drop_stale_slot(index_dest)

            definition = self.es_service.index_manager.get_index_definition(
                index_src
            )
            self.es_service.index_manager.create_index(
                index_name=index_dest, definition=definition
            )
            self._swap(alias, index_src, index_dest)

    def complete_migration(self, alias: str, task_id: str) -> str:
        """Finish a migration started with ``wait_for_completion=False``.

        Returns ``task_id`` unchanged while the task is still running, and
        "ok" once the alias has been moved (or bound, for a copy) and the
        old slot dropped. A task that finished with failures is rolled
        back like a synchronous one.
        """
        lease = self._get_lease(alias)
        if lease is not None and lease.task_id != task_id:
            raise MigrationInProgressError(alias)

        index_src: str | None = None
        if self.es_service.aliases.alias_exists(alias):
            index_src = self.es_service.aliases.resolve_single(alias)
            index_dest = dest_slot_name(alias, index_src)
        else:
            index_dest = first_slot_name(alias)
        if not self.es_service.aliases.exists(index_dest):
            raise IndexNotFoundError(index_dest)

        outcome = self.es_service.reindex.get_task_outcome(
            task_id=task_id, source=index_src, dest=index_dest
        )
        if outcome.is_pending:
            self.logger.info(f"Reindex task {task_id} is still running.")
            return task_id

        try:
            if outcome.status == "failed":
                self.logger.error(
                    f"Reindex task {task_id} finished with "
                    f"{len(outcome.failures)} failure(s)."
                )
                self.es_service.index_manager.delete_index(index_dest)
                raise ReindexFailedError(
                    f"reindex task {task_id} failed", failures=outcome.failures
                )

            if index_src is None:
                self.es_service.aliases.put_alias(alias, index_dest)
                self.logger.info(f'Alias "{alias}" bound to "{index_dest}".')
            else:
                self._swap(alias, index_src, index_dest)
        finally:
            self._release_lease(alias)
        return RETURN_ACKNOWLEDGE

    def abort_migration(self, alias: str) -> None:
        """Drop the unfinished slot of ``alias`` and release its lease.

        The running reindex task, if the lease knows it, is cancelled. A
        lease without a task belongs to a synchronous migration still in
        progress and is left alone, see ``release_migration_lock``.
        """
        lease = self._get_lease(alias)
        if lease is not None and lease.task_id is None:
            raise MigrationInProgressError(alias)

        try:
            if lease is not None and lease.task_id is not None:
                self.es_service.reindex.cancel(lease.task_id)

            if self.es_service.aliases.alias_exists(alias):
                index_src = self.es_service.aliases.resolve_single(alias)
                self._drop_stale_slot(dest_slot_name(alias, index_src))
            else:
                self._drop_stale_slot(first_slot_name(alias))
        finally:
            self._release_lease(alias)
        self.logger.info(f'Migration of alias "{alias}" aborted.')

    def release_migration_lock(self, alias: str) -> None:
        """Force the release of a lease left behind by a dead process."""
        self.logger.warning(f'Releasing migration lease of "{alias}".')
        self._release_lease(alias)

    def _reindex(
        self,
        alias: str,
        refresh: bool,
        need_create_dest: bool,
        wait_for_completion: bool,
        lease: MigrationLease | None,
    ) -> str:
        index_src = self.es_service.aliases.resolve_single(alias)
        index_dest = dest_slot_name(alias, index_src)

        if need_create_dest:
            self._drop_stale_slot(index_dest)
            definition = self.es_service.index_manager.get_index_definition(
                index_src
            )
            self.es_service.index_manager.create_index(
                index_name=index_dest, definition=definition
            )
            self.logger.info(
                f'Index "{index_dest}" created from "{index_src}".'
            )
        elif not self.es_service.aliases.exists(index_dest):
            raise IndexNotFoundError(index_dest)

        outcome = self._transfer(
            index_src, index_dest, refresh, wait_for_completion
        )
        if outcome.is_pending:
            return self._hand_off(alias, lease, outcome)

        self._swap(alias, index_src, index_dest)
        return RETURN_ACKNOWLEDGE

    def _transfer(
        self,
        index_src: str,
        index_dest: str,
        refresh: bool,
        wait_for_completion: bool,
    ) -> ReindexOutcome:
        try:
            return self.es_service.reindex.transfer(
                source=index_src,
                dest=index_dest,
                refresh=refresh,
                wait_for_completion=wait_for_completion,
            )
        except ReindexFailedError as e:
            self.logger.error(f"{e}, dropping {index_dest}.")
            self.es_service.index_manager.delete_index(index_dest)
            raise

    def _swap(self, alias: str, index_src: str, index_dest: str) -> None:
        self.es_service.aliases.switch_alias(alias, index_src, index_dest)
        self.logger.info(
            f'Alias "{alias}" moved from "{index_src}" to "{index_dest}".'
        )
        self.es_service.index_manager.delete_index(index_src)
        self.logger.info(f'Index "{index_src}" deleted.')

    def _hand_off(
        self,
        alias: str,
        lease: MigrationLease | None,
        outcome: ReindexOutcome,
    ) -> str:
        assert outcome.task_id is not None
        if lease is not None:
            self.es_service.locks.attach_task(lease, outcome.task_id)
        self.logger.info(
            f'Alias "{alias}" waits for reindex task {outcome.task_id}, '
            "call complete_migration once it is done."
        )
        return outcome.task_id

    def _drop_stale_slot(self, index_name: str) -> None:
        if self.es_service.aliases.exists(index_name):
            self.logger.warning(f'Dropping leftover index "{index_name}".')
            self.es_service.index_manager.delete_index(index_name)

    def _check_alias(self, alias: str) -> None:
        if not self.es_service.aliases.alias_exists(alias):
            raise IndexNotFoundError(alias)

    @contextmanager
    def _migration_lease(self, alias: str) -> Iterator[MigrationLease | None]:
        """Hold the migration lease of ``alias`` for the enclosed steps.

        The lease is kept past the block only when an asynchronous reindex
        task was attached to it.
        """
        if not self.migration_config.use_lock:
            yield None
            return

        lease = self.es_service.locks.acquire(
            alias, self.migration_config.lock_owner
        )
        try:
            yield lease
        finally:
            if lease.task_id is None:
                self.es_service.locks.release(alias)

    def _get_lease(self, alias: str) -> MigrationLease | None:
        if not self.migration_config.use_lock:
            return None
        return self.es_service.locks.get(alias)

    def _release_lease(self, alias: str) -> None:
        if self.migration_config.use_lock:
            self.es_service.locks.release(alias)


def _strip_type_name(mappings: dict[str, Any]) -> dict[str, Any]:
    if len(mappings) != 1:
        raise InvalidArgumentError(
            "a typed mapping must contain exactly one type name"
        )
    type_mappings = next(iter(mappings.values()))
    if not isinstance(type_mappings, dict):
        raise InvalidArgumentError("a typed mapping must wrap a mapping")
    return type_mappings
