import logging
from typing import Any

from elasticsearch import Elasticsearch

from nodowntime_services.services.definitions import ReindexOutcome
from nodowntime_services.utils.exceptions import (
    InvalidArgumentError,
    ReindexFailedError,
)

logger = logging.getLogger(__name__)


class ElasticsearchReindexController:
    def __init__(self, es_client: Elasticsearch) -> None:
        self.es = es_client

    def transfer(
        self,
        source: str,
        dest: str,
        refresh: bool = False,
        wait_for_completion: bool = True,
    ) -> ReindexOutcome:
        """Copy every document of ``source`` into ``dest``.

        The reindex API misbehaves on an empty source, so nothing is sent
        to the engine in that case and the transfer counts as done.

        In synchronous mode a single reported failure raises
        ReindexFailedError. Removing the half-filled destination is left
        to the caller.

        In asynchronous mode the returned outcome is pending and carries
        the engine task id.
        """
        if self.es.count(index=source)["count"] == 0:
            logger.debug(f'Index "{source}" is empty, nothing to reindex.')
            return ReindexOutcome(
                source=source,
                destination=dest,
                wait_for_completion=wait_for_completion,
                status="succeeded",
            )

        response = self.es.reindex(
            source={"index": source},
            dest={"index": dest},
            refresh=refresh,
            wait_for_completion=wait_for_completion,
        )

        if not wait_for_completion:
            logger.info(
                f'Reindex task {response["task"]} started from "{source}" '
                f'to "{dest}".'
            )
            return ReindexOutcome(
                source=source,
                destination=dest,
                wait_for_completion=False,
                status="pending",
                task_id=str(response["task"]),
            )

        failures = list(response.get("failures", []))
        if len(failures) > 0:
            raise ReindexFailedError(
                f'reindex from "{source}" to "{dest}" failed '
                f"for {len(failures)} document(s)",
                failures=failures,
            )

        return ReindexOutcome(
            source=source,
            destination=dest,
            status="succeeded",
            total=int(response.get("total", 0)),
        )

    def get_task_outcome(
        self,
        task_id: str,
        source: str | None,
        dest: str,
    ) -> ReindexOutcome:
        response = self.es.tasks.get(task_id=task_id)
        _check_task_target(task_id, response, source, dest)
        if not response.get("completed", False):
            return ReindexOutcome(
                source=source,
                destination=dest,
                wait_for_completion=False,
                status="pending",
                task_id=task_id,
            )

        task_response: dict[str, Any] = response.get("response", {})
        failures = list(task_response.get("failures", []))
        if "error" in response:
            failures.append(response["error"])

        return ReindexOutcome(
            source=source,
            destination=dest,
            wait_for_completion=False,
            status="failed" if failures else "succeeded",
            task_id=task_id,
            total=int(task_response.get("total", 0)),
            failures=failures,
        )

    def cancel(self, task_id: str) -> None:
        self.es.options(ignore_status=404).tasks.cancel(task_id=task_id)
        logger.info(f"Reindex task {task_id} cancelled.")


def _check_task_target(
    task_id: str,
    response: dict[str, Any],
    source: str | None,
    dest: str,
) -> None:
    """Refuse a task that does not reindex ``source`` into ``dest``.

    The engine describes reindex tasks as
    ``reindex from [<source>] to [<dest>]``.
    """
    description = response.get("task", {}).get("description", "")
    expected = [f"to [{dest}]"]
    if source is not None:
        expected.append(f"from [{source}]")
    if not all(part in description for part in expected):
        raise InvalidArgumentError(
            f'task {task_id} is not a reindex into "{dest}": '
            f'"{description}"'
        )
