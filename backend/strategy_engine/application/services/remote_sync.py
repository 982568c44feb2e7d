"""Remote sync runner — background asyncio tasks for gateway calls.

Gateway calls are never cancelled, never time out beyond the HTTP
client's own timeout, and are never retried automatically. A failed call
stays in the history until someone retries it by hand.
"""

import asyncio
import logging
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from typing import Any

from strategy_engine.application.services.sync_events import SyncEventBroker
from strategy_engine.domain.entities import MutationStatus, PendingMutation
from strategy_engine.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)

RemoteCall = Callable[[], Awaitable[Any]]
FailureHandler = Callable[[PendingMutation], None]


class RemoteSyncRunner:
    """Runs gateway calls for dispatched mutations and records their outcome.

    ``submit`` schedules the call as an asyncio.Task on the running loop.
    Every transition is published on the event broker as
    ``mutation.<status>``.
    """

    def __init__(self, events: SyncEventBroker | None = None, history_size: int = 500) -> None:
        self._events = events
        self._history_size = history_size
        self._history: OrderedDict[str, PendingMutation] = OrderedDict()
        self._calls: dict[str, tuple[RemoteCall, FailureHandler | None]] = {}
        self._tasks: set[asyncio.Task] = set()

    def record(self, mutation: PendingMutation) -> None:
        """Add a mutation to the history once its local change is applied."""
        mutation.mark_applied()
        self._remember(mutation)
        self._publish(mutation)

    def submit(
        self,
        mutation: PendingMutation,
        call: RemoteCall,
        on_failure: FailureHandler | None = None,
    ) -> asyncio.Task | None:
        """Fire-and-forget the gateway call for an applied mutation.

        Without a running event loop the call cannot be scheduled; the
        mutation is failed on the spot and can be retried later.
        """
        self._calls[mutation.id] = (call, on_failure)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._remember(mutation)
            self._fail(mutation, RuntimeError("no running event loop"), on_failure)
            self._publish(mutation)
            return None
        task = loop.create_task(self._run(mutation, call, on_failure))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def execute(self, mutation: PendingMutation, call: RemoteCall) -> PendingMutation:
        """Run the gateway call inline; failures are recorded, never raised."""
        self._calls[mutation.id] = (call, None)
        await self._run(mutation, call, None)
        return mutation

    def retry(self, mutation_id: str) -> asyncio.Task | None:
        """Manually re-issue a failed gateway call."""
        mutation = self.get(mutation_id)
        if mutation is None or mutation_id not in self._calls:
            raise ValidationError(f"unknown mutation '{mutation_id}'")
        if mutation.status is not MutationStatus.FAILED:
            raise ValidationError(
                f"only failed mutations can be retried (status is {mutation.status.value})"
            )
        call, _ = self._calls[mutation_id]
        logger.info("Manual retry of %s %s/%s", mutation.operation.value, mutation.kind.value, mutation.entity_id)
        return self.submit(mutation, call)

    async def drain(self) -> None:
        """Wait until every outstanding gateway call has settled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def get(self, mutation_id: str) -> PendingMutation | None:
        return self._history.get(mutation_id)

    def history(self, status: MutationStatus | None = None) -> list[PendingMutation]:
        """Most recent first."""
        mutations = reversed(self._history.values())
        return [m for m in mutations if status is None or m.status is status]

    def failed(self) -> list[PendingMutation]:
        return self.history(MutationStatus.FAILED)

    @property
    def pending_count(self) -> int:
        return len(self._tasks)

    async def _run(
        self,
        mutation: PendingMutation,
        call: RemoteCall,
        on_failure: FailureHandler | None,
    ) -> None:
        self._remember(mutation)
        mutation.mark_sending()
        try:
            await call()
        except Exception as exc:
            self._fail(mutation, exc, on_failure)
        else:
            mutation.mark_confirmed()
            logger.debug(
                "Remote %s of %s/%s confirmed",
                mutation.operation.value,
                mutation.kind.value,
                mutation.entity_id,
            )
        self._publish(mutation)

    def _fail(
        self,
        mutation: PendingMutation,
        exc: Exception,
        on_failure: FailureHandler | None,
    ) -> None:
        mutation.mark_failed(str(exc))
        logger.error(
            "Remote %s of %s/%s failed via %s: %s",
            mutation.operation.value,
            mutation.kind.value,
            mutation.entity_id,
            mutation.gateway,
            exc,
        )
        if on_failure is not None:
            try:
                on_failure(mutation)
            except Exception:
                logger.exception("Failure handler for mutation %s raised", mutation.id)

    def _remember(self, mutation: PendingMutation) -> None:
        self._history[mutation.id] = mutation
        self._history.move_to_end(mutation.id)
        while len(self._history) > self._history_size:
            evicted, _ = self._history.popitem(last=False)
            self._calls.pop(evicted, None)

    def _publish(self, mutation: PendingMutation) -> None:
        if self._events is not None:
            self._events.publish(f"mutation.{mutation.status.value}", mutation.to_event())
