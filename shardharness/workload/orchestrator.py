"""
Randomized write workload.

IndexingOrchestrator.run() takes a caller-built batch of writes and
applies it to a cluster in a randomly chosen way:

- ASYNC: one task per write, bounded by the in-flight ceiling, with
  refresh/flush/force-merge tasks mixed in between submissions
- SYNC: one write at a time, with the same side effects
- BULK: randomly sized bulk requests

Decoy documents may be mixed in and are deleted again before run()
returns. On success every non-decoy write in the batch has been applied.
"""

import functools
import random
from typing import Sequence

from shardharness.cluster.handle import ClusterHandle
from shardharness.env import Env, TimeParser
from shardharness.errors import (
    BulkWriteError,
    DecoyRetractionError,
    ErrorClass,
    RefreshFailedError,
    WriteError,
    classify_error,
)
from shardharness.logging import Logger
from shardharness.logging.harness_logging_models import (
    WorkloadDebug,
    WorkloadInfo,
    WorkloadWarning,
)
from shardharness.models import (
    DocWriteResult,
    ErrorRecord,
    IndexingStrategy,
    OperationOutcome,
    PendingKind,
    WorkloadOptions,
    WorkloadReport,
    WriteOperation,
)

from .decoys import DecoyFactory
from .in_flight import InFlightOperations
from .strategy import bulk_chunk_size, partition, select_strategy


class IndexingOrchestrator:
    """
    Example usage:
        orchestrator = IndexingOrchestrator(handle, rng=random.Random(seed))

        report = await orchestrator.run(
            [
                WriteOperation(index="test", id=str(idx), payload={"field": idx})
                for idx in range(100)
            ],
            WorkloadOptions(refresh=True),
        )
    """

    def __init__(
        self,
        handle: ClusterHandle,
        env: Env | None = None,
        logger: Logger | None = None,
        rng: random.Random | None = None,
    ) -> None:
        if env is None:
            env = Env()

        if rng is None:
            rng = random.Random()

        self._handle = handle
        self._logger = logger or Logger()
        self._rng = rng
        self._config = env.get_workload_config()
        self._maybe_flush = env.SHARDHARNESS_MAYBE_FLUSH
        self._decoys = DecoyFactory(rng)

        self._join_deadline: float | None = None
        if env.SHARDHARNESS_WORKLOAD_JOIN_DEADLINE is not None:
            self._join_deadline = TimeParser().parse(env.SHARDHARNESS_WORKLOAD_JOIN_DEADLINE)

    def _frequently(self) -> bool:
        return self._rng.random() < self._config["frequently_probability"]

    def _rarely(self) -> bool:
        return self._rng.random() < self._config["rarely_probability"]

    async def run(
        self,
        batch: Sequence[WriteOperation],
        options: WorkloadOptions | None = None,
    ) -> WorkloadReport:
        if options is None:
            options = WorkloadOptions()

        operations = list(batch)
        indices = list(dict.fromkeys(operation.index for operation in operations))

        decoy_probability = options.decoy_probability
        if decoy_probability is None:
            decoy_probability = self._config["decoy_probability"]

        decoys: list[WriteOperation] = []
        if (
            options.decoys_enabled
            and operations
            and self._rng.random() < decoy_probability
        ):
            decoys = self._decoys.build(operations)
            operations.extend(decoys)

        self._rng.shuffle(operations)

        strategy = options.strategy
        if strategy is None:
            strategy = select_strategy(len(operations), self._rng, self._config)

        report = WorkloadReport(
            strategy=strategy,
            batch_size=len(batch),
            decoys=len(decoys),
        )

        await self._logger.log(
            WorkloadInfo(
                message=(
                    f"Index [{len(operations)}] docs async: [{strategy == IndexingStrategy.ASYNC}] "
                    f"bulk: [{strategy == IndexingStrategy.BULK}]"
                ),
                batch_size=len(operations),
                strategy=strategy.value,
                in_flight=0,
            )
        )

        in_flight = InFlightOperations(self._config["max_in_flight"])
        records: list[ErrorRecord] = []

        try:
            if strategy == IndexingStrategy.ASYNC:
                await self._index_async(operations, indices, options, in_flight, report)

            elif strategy == IndexingStrategy.SYNC:
                records.extend(
                    await self._index_sync(operations, indices, options, in_flight, report)
                )

            else:
                await self._index_bulk(operations, report)

            join_deadline = options.join_deadline
            if join_deadline is None:
                join_deadline = self._join_deadline

            outcomes = await in_flight.join(deadline=join_deadline)

        except BaseException:
            await in_flight.cancel()
            raise

        report.peak_in_flight = in_flight.peak

        records.extend(await self._collect_errors(outcomes, strategy, len(operations)))
        await self._reconcile(records, report)

        if decoys:
            await self._retract_decoys(decoys)

        if options.refresh:
            await self._refresh(indices)

        return report

    async def _index_async(
        self,
        operations: list[WriteOperation],
        indices: list[str],
        options: WorkloadOptions,
        in_flight: InFlightOperations,
        report: WorkloadReport,
    ):
        for operation in operations:
            await in_flight.admit()
            in_flight.submit(
                PendingKind.WRITE,
                self._handle.write(operation),
                operation=operation,
            )
            report.writes_submitted += 1

            await self._maybe_side_effect(indices, options, in_flight, report)

    async def _index_sync(
        self,
        operations: list[WriteOperation],
        indices: list[str],
        options: WorkloadOptions,
        in_flight: InFlightOperations,
        report: WorkloadReport,
    ) -> list[ErrorRecord]:
        records: list[ErrorRecord] = []

        for operation in operations:
            report.writes_submitted += 1

            try:
                await self._handle.write(operation)

            except Exception as err:
                records.append(
                    ErrorRecord(
                        operation=operation,
                        cause=err,
                        error_class=classify_error(err),
                    )
                )

            await self._maybe_side_effect(indices, options, in_flight, report)

        return records

    async def _index_bulk(
        self,
        operations: list[WriteOperation],
        report: WorkloadReport,
    ):
        chunk_size = bulk_chunk_size(
            len(operations),
            self._rng,
            self._config["max_bulk_request_size"],
        )

        for chunk in partition(operations, chunk_size):
            response = await self._handle.bulk_write(chunk)
            report.bulk_chunk_sizes.append(len(chunk))
            report.writes_submitted += len(chunk)

            if response.has_failures:
                raise BulkWriteError(
                    f"bulk request of {len(chunk)} operations failed:\n"
                    f"{response.build_failure_message()}"
                )

    async def _maybe_side_effect(
        self,
        indices: list[str],
        options: WorkloadOptions,
        in_flight: InFlightOperations,
        report: WorkloadReport,
    ):
        if not self._rarely():
            return

        maybe_flush = options.maybe_flush and self._maybe_flush

        if self._rarely():
            kind = PendingKind.REFRESH
            call = functools.partial(self._handle.refresh, indices)

        elif maybe_flush and self._rarely():
            durable = self._rng.random() < 0.5
            kind = PendingKind.DURABLE_FLUSH if durable else PendingKind.FLUSH
            call = functools.partial(self._handle.flush, indices, durable=durable)

        elif self._rarely():
            kind = PendingKind.FORCE_MERGE
            call = functools.partial(
                self._handle.force_merge,
                indices,
                max_segments=self._rng.randint(1, 10),
                flush=False,
            )

        else:
            return

        await in_flight.admit()
        in_flight.submit(kind, call())
        report.side_effects[kind] = report.side_effects.get(kind, 0) + 1

    async def _collect_errors(
        self,
        outcomes: list[OperationOutcome],
        strategy: IndexingStrategy,
        batch_size: int,
    ) -> list[ErrorRecord]:
        records: list[ErrorRecord] = []

        for outcome in outcomes:
            if outcome.error is None:
                continue

            if outcome.pending.kind != PendingKind.WRITE:
                await self._logger.log(
                    WorkloadWarning(
                        message=f"{outcome.pending.kind.value} during indexing failed: {outcome.error!r}",
                        batch_size=batch_size,
                        strategy=strategy.value,
                        in_flight=0,
                    )
                )
                continue

            records.append(
                ErrorRecord(
                    operation=outcome.pending.operation,
                    cause=outcome.error,
                    error_class=classify_error(outcome.error),
                )
            )

        return records

    async def _reconcile(
        self,
        records: list[ErrorRecord],
        report: WorkloadReport,
    ):
        remaining: list[ErrorRecord] = []

        for record in records:
            if record.error_class != ErrorClass.TRANSIENT:
                remaining.append(record)
                continue

            await self._logger.log(
                WorkloadDebug(
                    message=f"retrying rejected write [{record.operation.index}][{record.operation.id}]",
                    batch_size=len(records),
                    strategy=report.strategy.value,
                    in_flight=0,
                )
            )

            try:
                await self._handle.write(record.operation)

            except Exception as err:
                # A write gets exactly one retry
                raise WriteError(
                    "write failed again after admission rejection",
                    [
                        ErrorRecord(
                            operation=record.operation,
                            cause=err,
                            error_class=classify_error(err),
                        )
                    ],
                ) from err

            report.retried += 1

        if remaining:
            raise WriteError(
                f"{len(remaining)} write operation(s) failed",
                remaining,
            )

    async def _retract_decoys(self, decoys: list[WriteOperation]):
        for decoy in decoys:
            result = await self._handle.delete(
                decoy.index,
                decoy.doc_type,
                decoy.id,
                routing=decoy.id,
            )

            if result.result != DocWriteResult.DELETED:
                raise DecoyRetractionError(
                    f"expected decoy [{decoy.index}][{decoy.id}] to be deleted "
                    f"but got {result.result.value}"
                )

    async def _refresh(self, indices: list[str]):
        response = await self._handle.refresh(indices)

        if response.failed:
            failures = "\n".join(
                f"[{failure.index}][{failure.shard}]: {failure.reason}"
                for failure in response.failures
            )
            raise RefreshFailedError(
                f"refresh failed on {len(response.failures)} shard(s):\n{failures}"
            )
