"""
Health gate for provisioned clusters.

Polls a ClusterHandle until a HealthTarget holds or the timeout elapses.

States:
- POLLING: still waiting, the last response did not satisfy the target
- SATISFIED: status, shard movement and node count all match (terminal)
- TIMED_OUT: deadline elapsed, a diagnostic snapshot was taken (terminal)

A gate never returns a degraded status. It either returns a status that
is at least as good as requested or raises HealthTimeoutError.
"""

import asyncio
import time
from enum import Enum
from typing import Callable

from shardharness.cluster.handle import ClusterHandle
from shardharness.env import Env, TimeParser
from shardharness.errors import HealthTimeoutError
from shardharness.logging import Logger
from shardharness.logging.harness_logging_models import HealthDebug, HealthError
from shardharness.models import HealthResponse, HealthStatus, HealthTarget


class HealthGateState(Enum):
    POLLING = "polling"
    SATISFIED = "satisfied"
    TIMED_OUT = "timed_out"


VALID_TRANSITIONS: dict[HealthGateState, set[HealthGateState]] = {
    HealthGateState.POLLING: {
        HealthGateState.POLLING,
        HealthGateState.SATISFIED,
        HealthGateState.TIMED_OUT,
    },
    HealthGateState.SATISFIED: set(),
    HealthGateState.TIMED_OUT: set(),
}


def target_satisfied(
    target: HealthTarget,
    response: HealthResponse,
    expected_nodes: int,
) -> bool:
    if not response.status.satisfies(target.status):
        return False

    if target.wait_for_no_initializing_shards and response.initializing_shards > 0:
        return False

    if target.wait_for_no_relocating_shards and response.relocating_shards > 0:
        return False

    return response.number_of_nodes == expected_nodes


class HealthGate:
    """
    Waits for a cluster to reach a requested health.

    Example usage:
        gate = HealthGate(handle)

        status = await gate.wait(
            HealthTarget(
                status=HealthStatus.GREEN,
                timeout=30.0,
            )
        )

        # Shorthands
        await gate.ensure_green("index-a")
        await gate.ensure_stable_cluster(3)
    """

    def __init__(
        self,
        handle: ClusterHandle,
        env: Env | None = None,
        logger: Logger | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if env is None:
            env = Env()

        parser = TimeParser()

        self._handle = handle
        self._logger = logger or Logger()
        self._clock = clock
        self._default_timeout = parser.parse(env.SHARDHARNESS_HEALTH_TIMEOUT)
        self._poll_interval = parser.parse(env.SHARDHARNESS_HEALTH_POLL_INTERVAL)

        self.state = HealthGateState.POLLING
        self.last_response: HealthResponse | None = None
        self.last_error: BaseException | None = None
        self.polls = 0

    def _transition(self, to_state: HealthGateState) -> None:
        if to_state not in VALID_TRANSITIONS[self.state]:
            raise RuntimeError(
                f"invalid health gate transition {self.state.value} -> {to_state.value}"
            )

        self.state = to_state

    async def wait(self, target: HealthTarget) -> HealthStatus:
        timeout = target.timeout
        if timeout is None:
            timeout = self._default_timeout

        expected_nodes = target.expected_nodes
        if expected_nodes is None:
            expected_nodes = self._handle.size

        self.state = HealthGateState.POLLING
        self.last_response = None
        self.last_error = None
        self.polls = 0

        started = self._clock()

        while True:
            elapsed = self._clock() - started
            remaining = max(0.0, timeout - elapsed)

            response = await self._poll(target, expected_nodes, remaining)

            if response is not None and target_satisfied(target, response, expected_nodes):
                self._transition(HealthGateState.SATISFIED)

                await self._logger.log(
                    HealthDebug(
                        message=f"indices {list(target.indices) or ['_all']} are {response.status.name.lower()}",
                        requested_status=target.status.name,
                        observed_status=response.status.name,
                        expected_nodes=expected_nodes,
                        elapsed=self._clock() - started,
                    )
                )

                return response.status

            elapsed = self._clock() - started
            if elapsed >= timeout:
                self._transition(HealthGateState.TIMED_OUT)
                await self._fail(target, expected_nodes, timeout, elapsed)

            self._transition(HealthGateState.POLLING)
            await asyncio.sleep(min(self._poll_interval, max(0.0, timeout - elapsed)))

    async def _poll(
        self,
        target: HealthTarget,
        expected_nodes: int,
        remaining: float,
    ) -> HealthResponse | None:
        self.polls += 1

        try:
            response = await self._handle.health(
                indices=target.indices,
                wait_for_status=target.status,
                wait_for_nodes=expected_nodes,
                wait_for_no_relocating_shards=target.wait_for_no_relocating_shards,
                wait_for_no_initializing_shards=target.wait_for_no_initializing_shards,
                timeout=min(self._poll_interval, remaining),
                node_name=target.via_node,
                local=target.local,
            )

        except (ConnectionError, OSError, asyncio.TimeoutError) as err:
            # An unreachable node is an unhealthy poll, not a gate failure
            self.last_error = err
            return None

        self.last_response = response
        return response

    async def _fail(
        self,
        target: HealthTarget,
        expected_nodes: int,
        timeout: float,
        elapsed: float,
    ):
        try:
            cluster_state = await self._handle.state()

        except Exception as err:
            cluster_state = f"<failed to fetch cluster state: {err!r}>"

        try:
            pending_tasks = await self._handle.pending_tasks()

        except Exception as err:
            pending_tasks = [f"<failed to fetch pending tasks: {err!r}>"]

        observed = self.last_response.status.name if self.last_response else None
        await self._logger.log(
            HealthError(
                message=f"ensure {target.status.name.lower()} timed out",
                requested_status=target.status.name,
                observed_status=observed,
                expected_nodes=expected_nodes,
                elapsed=elapsed,
                cluster_state=str(cluster_state),
                pending_tasks=str(pending_tasks),
            )
        )

        error = HealthTimeoutError(
            requested=target.status,
            last_response=self.last_response,
            timeout=timeout,
            cluster_state=cluster_state,
            pending_tasks=pending_tasks,
        )

        if self.last_error is not None:
            raise error from self.last_error

        raise error

    async def ensure_green(
        self,
        *indices: str,
        timeout: float | None = None,
    ) -> HealthStatus:
        return await self.wait(
            HealthTarget(
                status=HealthStatus.GREEN,
                timeout=timeout,
                indices=indices,
            )
        )

    async def ensure_yellow(
        self,
        *indices: str,
        timeout: float | None = None,
    ) -> HealthStatus:
        return await self.wait(
            HealthTarget(
                status=HealthStatus.YELLOW,
                timeout=timeout,
                indices=indices,
            )
        )

    async def ensure_yellow_and_no_initializing_shards(
        self,
        *indices: str,
        timeout: float | None = None,
    ) -> HealthStatus:
        return await self.wait(
            HealthTarget(
                status=HealthStatus.YELLOW,
                timeout=timeout,
                wait_for_no_initializing_shards=True,
                indices=indices,
            )
        )

    async def wait_for_relocation(
        self,
        status: HealthStatus | None = None,
        timeout: float | None = None,
    ) -> HealthStatus:
        """
        Wait for all relocating shards to become active, and for the given
        status when one is requested.
        """
        observed = await self.wait(
            HealthTarget(
                status=HealthStatus.RED if status is None else status,
                timeout=timeout,
                wait_for_no_relocating_shards=True,
            )
        )

        if status is not None and observed != status:
            raise AssertionError(
                f"expected cluster status {status.name} after relocation but got {observed.name}"
            )

        return observed

    async def ensure_stable_cluster(
        self,
        node_count: int,
        timeout: float | None = None,
        via_node: str | None = None,
        local: bool = False,
    ) -> HealthStatus:
        """Wait until the cluster, as seen from one node, has exactly node_count nodes."""
        return await self.wait(
            HealthTarget(
                status=HealthStatus.RED,
                timeout=timeout,
                wait_for_no_relocating_shards=True,
                expected_nodes=node_count,
                via_node=via_node,
                local=local,
            )
        )

    async def ensure_cluster_size_consistency(
        self,
        timeout: float | None = None,
    ) -> HealthStatus | None:
        if self._handle.size == 0:
            return None

        return await self.wait(
            HealthTarget(
                status=HealthStatus.RED,
                timeout=timeout,
                wait_for_no_relocating_shards=False,
                expected_nodes=self._handle.size,
            )
        )
