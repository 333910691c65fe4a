"""
Tests for IndexingOrchestrator.run().

Tests cover:
- Every non-decoy write lands regardless of strategy
- Forced sync and bulk scenarios
- In-flight ceiling under the async strategy
- Decoy injection and retraction
- Admission rejection retry and error surfacing
- Side effects and the final refresh
"""

import asyncio
import random

import pytest

from shardharness.cluster import ClusterHandle
from shardharness.env import Env
from shardharness.errors import (
    AdmissionRejectedError,
    BulkWriteError,
    DecoyRetractionError,
    ErrorClass,
    RefreshFailedError,
    WorkloadDeadlineError,
    WriteError,
)
from shardharness.models import (
    IndexingStrategy,
    PendingKind,
    WorkloadOptions,
    WorkloadReport,
    WriteOperation,
)
from shardharness.workload import DECOY_ID_PREFIX, InFlightOperations, IndexingOrchestrator

from tests.mocks import FakeStore, TransportError


def make_batch(size: int, indices: tuple[str, ...] = ("index-a",)) -> list[WriteOperation]:
    return [
        WriteOperation(
            index=indices[idx % len(indices)],
            id=str(idx),
            payload={"field": idx},
        )
        for idx in range(size)
    ]


# =============================================================================
# Test Writes Land
# =============================================================================


class TestWritesLand:
    """Every non-decoy write is applied, independent of the strategy."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("strategy", list(IndexingStrategy))
    async def test_forced_strategy_applies_every_write(
        self,
        handle: ClusterHandle,
        store: FakeStore,
        env: Env,
        strategy: IndexingStrategy,
    ):
        orchestrator = IndexingOrchestrator(handle, env=env, rng=random.Random(11))
        batch = make_batch(250, indices=("index-a", "index-b"))

        report = await orchestrator.run(
            batch,
            WorkloadOptions(refresh=True, strategy=strategy),
        )

        assert report.strategy == strategy
        assert sorted(store.search(), key=int) == [str(idx) for idx in range(250)]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("seed", range(8))
    async def test_random_strategy_applies_every_write(
        self,
        handle: ClusterHandle,
        store: FakeStore,
        env: Env,
        seed: int,
    ):
        orchestrator = IndexingOrchestrator(handle, env=env, rng=random.Random(seed))

        await orchestrator.run(make_batch(120), WorkloadOptions(refresh=True))

        assert len(store.search("index-a")) == 120
        assert not any(doc_id.startswith(DECOY_ID_PREFIX) for doc_id in store.search())

    @pytest.mark.asyncio
    async def test_empty_batch(self, handle: ClusterHandle, store: FakeStore, env: Env):
        orchestrator = IndexingOrchestrator(handle, env=env, rng=random.Random(1))

        report = await orchestrator.run([], WorkloadOptions(refresh=True))

        assert report.decoys == 0
        assert report.writes_submitted == 0
        assert store.calls["write"] == 0

    @pytest.mark.asyncio
    async def test_caller_batch_is_not_modified(self, handle: ClusterHandle, env: Env):
        orchestrator = IndexingOrchestrator(handle, env=env, rng=random.Random(1))
        batch = make_batch(30)
        original = list(batch)

        await orchestrator.run(
            batch,
            WorkloadOptions(refresh=True, inject_decoys=True, decoy_probability=1.0),
        )

        assert batch == original


# =============================================================================
# Test Scenarios
# =============================================================================


class TestScenarios:
    """Fixed scenarios with known call counts."""

    @pytest.mark.asyncio
    async def test_ten_sync_writes(self, handle: ClusterHandle, store: FakeStore, env: Env):
        orchestrator = IndexingOrchestrator(handle, env=env, rng=random.Random(12))

        report = await orchestrator.run(
            make_batch(10),
            WorkloadOptions(
                strategy=IndexingStrategy.SYNC,
                inject_decoys=True,
                decoy_probability=0.0,
            ),
        )

        assert store.calls["write"] == 10
        assert store.calls["bulk_write"] == 0
        assert report.decoys == 0
        assert report.writes_submitted == 10

    @pytest.mark.asyncio
    @pytest.mark.parametrize("seed", range(5))
    async def test_large_batch_is_always_bulk(
        self,
        handle: ClusterHandle,
        store: FakeStore,
        env: Env,
        seed: int,
    ):
        orchestrator = IndexingOrchestrator(handle, env=env, rng=random.Random(seed))

        report = await orchestrator.run(
            make_batch(5000),
            WorkloadOptions(refresh=True, inject_decoys=True),
        )

        assert report.strategy == IndexingStrategy.BULK
        assert store.calls["write"] == 0
        assert sum(store.bulk_sizes) == 5000 + report.decoys
        assert report.bulk_chunk_sizes == store.bulk_sizes
        assert all(size <= 1000 for size in store.bulk_sizes)
        assert len(store.search()) == 5000

    @pytest.mark.asyncio
    async def test_bulk_failure_is_hard_error(self, handle: ClusterHandle, store: FakeStore, env: Env):
        store.bulk_failures = {"7"}
        orchestrator = IndexingOrchestrator(handle, env=env, rng=random.Random(13))

        with pytest.raises(BulkWriteError) as raised:
            await orchestrator.run(
                make_batch(50),
                WorkloadOptions(strategy=IndexingStrategy.BULK),
            )

        assert "[index-a][7]" in str(raised.value)
        assert "mapper_parsing_exception" in str(raised.value)


# =============================================================================
# Test In-Flight Ceiling
# =============================================================================


class TestInFlightCeiling:
    """Async writes never exceed the in-flight ceiling."""

    @pytest.mark.asyncio
    async def test_default_ceiling(self, handle: ClusterHandle, store: FakeStore, env: Env):
        store.write_delay = 0.001
        orchestrator = IndexingOrchestrator(handle, env=env, rng=random.Random(14))

        report = await orchestrator.run(
            make_batch(600),
            WorkloadOptions(strategy=IndexingStrategy.ASYNC, maybe_flush=False),
        )

        assert store.peak_in_flight <= 150
        assert report.peak_in_flight <= 150
        assert report.peak_in_flight == 150
        assert len(store.search()) == 600

    @pytest.mark.asyncio
    async def test_configured_ceiling(self, handle: ClusterHandle, store: FakeStore):
        store.write_delay = 0.001
        env = Env(SHARDHARNESS_MAX_IN_FLIGHT_ASYNC_INDEXES=4)
        orchestrator = IndexingOrchestrator(handle, env=env, rng=random.Random(15))

        await orchestrator.run(
            make_batch(100),
            WorkloadOptions(strategy=IndexingStrategy.ASYNC),
        )

        assert store.peak_in_flight <= 4


# =============================================================================
# Test Decoys
# =============================================================================


class TestDecoys:
    """Decoys are injected and always retracted."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("strategy", list(IndexingStrategy))
    async def test_decoys_are_gone_after_run(
        self,
        handle: ClusterHandle,
        store: FakeStore,
        env: Env,
        strategy: IndexingStrategy,
    ):
        orchestrator = IndexingOrchestrator(handle, env=env, rng=random.Random(16))

        report = await orchestrator.run(
            make_batch(40),
            WorkloadOptions(
                refresh=True,
                strategy=strategy,
                decoy_probability=1.0,
            ),
        )

        assert 1 <= report.decoys <= 80
        assert len(store.deletes) == report.decoys
        assert all(routing == doc_id for _, doc_id, routing in store.deletes)
        assert not any(doc_id.startswith(DECOY_ID_PREFIX) for doc_id in store.search())
        assert len(store.search()) == 40

    @pytest.mark.asyncio
    async def test_decoys_follow_refresh_by_default(self, handle: ClusterHandle, store: FakeStore, env: Env):
        orchestrator = IndexingOrchestrator(handle, env=env, rng=random.Random(17))

        report = await orchestrator.run(
            make_batch(20),
            WorkloadOptions(refresh=False, decoy_probability=1.0),
        )

        assert report.decoys == 0
        assert store.calls["delete"] == 0

    @pytest.mark.asyncio
    async def test_decoy_that_cannot_be_deleted_is_hard_error(
        self,
        handle: ClusterHandle,
        store: FakeStore,
        env: Env,
    ):
        orchestrator = IndexingOrchestrator(handle, env=env, rng=random.Random(18))

        class Undeletable(set):
            def __contains__(self, doc_id):
                return doc_id.startswith(DECOY_ID_PREFIX)

        store.undeletable = Undeletable()

        with pytest.raises(DecoyRetractionError) as raised:
            await orchestrator.run(
                make_batch(10),
                WorkloadOptions(
                    refresh=True,
                    strategy=IndexingStrategy.SYNC,
                    decoy_probability=1.0,
                ),
            )

        assert "not_found" in str(raised.value)


# =============================================================================
# Test Error Reconciliation
# =============================================================================


class TestErrorReconciliation:
    """Admission rejections are retried once, everything else surfaces."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("strategy", [IndexingStrategy.ASYNC, IndexingStrategy.SYNC])
    async def test_rejections_are_retried_and_never_surface(
        self,
        handle: ClusterHandle,
        store: FakeStore,
        env: Env,
        strategy: IndexingStrategy,
    ):
        for doc_id in ("1", "5", "9"):
            store.rejections[doc_id] = 1

        orchestrator = IndexingOrchestrator(handle, env=env, rng=random.Random(19))

        report = await orchestrator.run(
            make_batch(20),
            WorkloadOptions(strategy=strategy, inject_decoys=False),
        )

        assert report.retried == 3
        assert store.calls["write"] == 23
        assert len(store.search()) == 20

    @pytest.mark.asyncio
    async def test_wrapped_rejection_is_transient(self, handle: ClusterHandle, store: FakeStore, env: Env):
        store.rejections["3"] = 1
        store.wrap_rejections = True
        orchestrator = IndexingOrchestrator(handle, env=env, rng=random.Random(20))

        report = await orchestrator.run(
            make_batch(5),
            WorkloadOptions(strategy=IndexingStrategy.ASYNC, inject_decoys=False),
        )

        assert report.retried == 1
        assert len(store.search()) == 5

    @pytest.mark.asyncio
    async def test_second_rejection_is_hard_failure(self, handle: ClusterHandle, store: FakeStore, env: Env):
        store.rejections["4"] = 2
        orchestrator = IndexingOrchestrator(handle, env=env, rng=random.Random(21))

        with pytest.raises(WriteError) as raised:
            await orchestrator.run(
                make_batch(10),
                WorkloadOptions(strategy=IndexingStrategy.SYNC, inject_decoys=False),
            )

        assert isinstance(raised.value.__cause__, AdmissionRejectedError)
        assert raised.value.records[0].operation.id == "4"
        assert store.calls["write"] == 11

    @pytest.mark.asyncio
    @pytest.mark.parametrize("strategy", [IndexingStrategy.ASYNC, IndexingStrategy.SYNC])
    async def test_permanent_failures_surface_together(
        self,
        handle: ClusterHandle,
        store: FakeStore,
        env: Env,
        strategy: IndexingStrategy,
    ):
        store.permanent_failures = {"2", "6"}
        store.rejections["3"] = 1
        orchestrator = IndexingOrchestrator(handle, env=env, rng=random.Random(22))

        with pytest.raises(WriteError) as raised:
            await orchestrator.run(
                make_batch(10),
                WorkloadOptions(strategy=strategy, inject_decoys=False),
            )

        records = raised.value.records
        assert sorted(record.operation.id for record in records) == ["2", "6"]
        assert all(record.error_class == ErrorClass.PERMANENT for record in records)
        assert "[index-a][2]" in str(raised.value)
        assert not any(isinstance(record.cause, AdmissionRejectedError) for record in records)

    @pytest.mark.asyncio
    async def test_transport_error_without_rejection_is_permanent(
        self,
        handle: ClusterHandle,
        store: FakeStore,
        env: Env,
        monkeypatch: pytest.MonkeyPatch,
    ):
        async def broken_write(operation):
            raise TransportError("connection reset")

        monkeypatch.setattr(handle, "write", broken_write)
        orchestrator = IndexingOrchestrator(handle, env=env, rng=random.Random(23))

        with pytest.raises(WriteError) as raised:
            await orchestrator.run(
                make_batch(3),
                WorkloadOptions(strategy=IndexingStrategy.ASYNC, inject_decoys=False),
            )

        assert len(raised.value.records) == 3


# =============================================================================
# Test Side Effects And Refresh
# =============================================================================


class TestSideEffects:
    """Refresh, flush and force-merge interleaved with writes."""

    @pytest.mark.asyncio
    async def test_side_effects_are_issued(self, handle: ClusterHandle, store: FakeStore):
        env = Env(SHARDHARNESS_RARELY_PROBABILITY=1.0)
        orchestrator = IndexingOrchestrator(handle, env=env, rng=random.Random(24))

        report = await orchestrator.run(
            make_batch(20),
            WorkloadOptions(strategy=IndexingStrategy.ASYNC, inject_decoys=False),
        )

        # Every submission is followed by a refresh when side effects always fire
        assert report.side_effects == {PendingKind.REFRESH: 20}
        assert store.calls["refresh"] == 20

    @pytest.mark.asyncio
    async def test_side_effect_call_waits_for_admission(
        self,
        handle: ClusterHandle,
        monkeypatch: pytest.MonkeyPatch,
    ):
        env = Env(SHARDHARNESS_RARELY_PROBABILITY=1.0)
        orchestrator = IndexingOrchestrator(handle, env=env, rng=random.Random(29))

        refreshed: list[list[str]] = []
        refresh = handle.refresh

        def record_refresh(indices):
            refreshed.append(list(indices))
            return refresh(indices)

        monkeypatch.setattr(handle, "refresh", record_refresh)

        # One stuck operation holds the only slot
        in_flight = InFlightOperations(ceiling=1)
        in_flight.submit(PendingKind.WRITE, asyncio.Event().wait())

        side_effect = asyncio.create_task(
            orchestrator._maybe_side_effect(
                ["index-a"],
                WorkloadOptions(),
                in_flight,
                WorkloadReport(strategy=IndexingStrategy.ASYNC, batch_size=1),
            )
        )
        await asyncio.sleep(0.01)

        assert not side_effect.done()
        assert refreshed == []

        side_effect.cancel()
        with pytest.raises(asyncio.CancelledError):
            await side_effect

        assert refreshed == []
        await in_flight.cancel()

    @pytest.mark.asyncio
    async def test_side_effect_mix(self, handle: ClusterHandle, store: FakeStore, env: Env):
        orchestrator = IndexingOrchestrator(handle, env=env, rng=random.Random(25))

        for _ in range(10):
            await orchestrator.run(
                make_batch(200),
                WorkloadOptions(strategy=IndexingStrategy.SYNC, inject_decoys=False),
            )

        side_effects = (
            store.calls["refresh"]
            + store.calls["flush"]
            + store.calls["durable_flush"]
            + store.calls["force_merge"]
        )

        # Roughly 2000 * 0.1 * (0.1 + 0.09 + 0.081) side effects
        assert 0 < side_effects < 150

    @pytest.mark.asyncio
    async def test_side_effect_failures_are_not_write_errors(self, handle: ClusterHandle, store: FakeStore):
        env = Env(SHARDHARNESS_RARELY_PROBABILITY=1.0, SHARDHARNESS_MAYBE_FLUSH=True)
        store.side_effect_error = RuntimeError("flush failed")
        orchestrator = IndexingOrchestrator(handle, env=env, rng=random.Random(26))

        report = await orchestrator.run(
            make_batch(10),
            WorkloadOptions(strategy=IndexingStrategy.ASYNC, inject_decoys=False),
        )

        assert report.side_effects == {PendingKind.REFRESH: 10}
        assert len(store.search()) == 10
        assert report.retried == 0

    @pytest.mark.asyncio
    async def test_final_refresh_failure(self, handle: ClusterHandle, store: FakeStore, env: Env):
        store.refresh_failures = True
        orchestrator = IndexingOrchestrator(handle, env=env, rng=random.Random(27))

        with pytest.raises(RefreshFailedError) as raised:
            await orchestrator.run(
                make_batch(5),
                WorkloadOptions(
                    refresh=True,
                    strategy=IndexingStrategy.BULK,
                    inject_decoys=False,
                ),
            )

        assert "engine closed" in str(raised.value)

    @pytest.mark.asyncio
    async def test_join_deadline(self, handle: ClusterHandle, store: FakeStore, env: Env):
        store.write_delay = 1.0
        orchestrator = IndexingOrchestrator(handle, env=env, rng=random.Random(28))

        with pytest.raises(WorkloadDeadlineError) as raised:
            await orchestrator.run(
                make_batch(5),
                WorkloadOptions(
                    strategy=IndexingStrategy.ASYNC,
                    inject_decoys=False,
                    join_deadline=0.05,
                ),
            )

        assert raised.value.outstanding >= 5
