import asyncio
import itertools
from typing import Awaitable

from shardharness.errors import WorkloadDeadlineError
from shardharness.models import (
    OperationOutcome,
    PendingKind,
    PendingOperation,
    WriteOperation,
)


class InFlightOperations:
    """
    Tracks outstanding asynchronous submissions.

    Every submission runs as its own task and pushes an OperationOutcome
    into a completion queue when it finishes. Callers wait on admit()
    before submitting, which blocks while the number of outstanding
    operations is at the ceiling, and call join() to drain the queue.
    """

    def __init__(self, ceiling: int) -> None:
        if ceiling < 1:
            raise ValueError(f"in-flight ceiling must be at least 1, got {ceiling}")

        self.ceiling = ceiling
        self.peak = 0

        self._completions: asyncio.Queue[OperationOutcome] = asyncio.Queue()
        self._pending: dict[int, PendingOperation] = {}
        self._completed: list[OperationOutcome] = []
        self._tickets = itertools.count()

    @property
    def outstanding(self) -> int:
        return len(self._pending)

    @property
    def pending(self) -> list[PendingOperation]:
        return list(self._pending.values())

    async def admit(self) -> None:
        while len(self._pending) >= self.ceiling:
            self._complete(await self._completions.get())

    def submit(
        self,
        kind: PendingKind,
        call: Awaitable,
        operation: WriteOperation | None = None,
    ) -> PendingOperation:
        pending = PendingOperation(
            ticket=next(self._tickets),
            kind=kind,
            operation=operation,
        )

        self._pending[pending.ticket] = pending
        pending.task = asyncio.create_task(self._run(pending, call))

        self.peak = max(self.peak, len(self._pending))

        return pending

    async def _run(self, pending: PendingOperation, call: Awaitable) -> None:
        error: BaseException | None = None

        try:
            await call

        except Exception as err:
            error = err

        self._completions.put_nowait(
            OperationOutcome(
                pending=pending,
                error=error,
            )
        )

    def _complete(self, outcome: OperationOutcome) -> None:
        self._pending.pop(outcome.pending.ticket, None)
        self._completed.append(outcome)

    async def join(self, deadline: float | None = None) -> list[OperationOutcome]:
        """
        Wait for every outstanding operation and return all outcomes
        collected since the last join. Without a deadline this waits for
        as long as it takes.
        """
        loop = asyncio.get_running_loop()
        started = loop.time()

        while self._pending:
            if deadline is None:
                self._complete(await self._completions.get())
                continue

            remaining = deadline - (loop.time() - started)

            try:
                outcome = await asyncio.wait_for(
                    self._completions.get(),
                    timeout=max(0.0, remaining),
                )

            except asyncio.TimeoutError:
                outstanding = len(self._pending)
                await self.cancel()
                raise WorkloadDeadlineError(deadline, outstanding)

            self._complete(outcome)

        completed = self._completed
        self._completed = []

        return completed

    async def cancel(self) -> None:
        tasks = [
            pending.task
            for pending in self._pending.values()
            if pending.task is not None and not pending.task.done()
        ]

        for task in tasks:
            task.cancel()

        await asyncio.gather(*tasks, return_exceptions=True)
        self._pending.clear()
