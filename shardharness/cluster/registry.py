"""
Scope-keyed cache of provisioned clusters.

SUITE clusters are built once per suite identity and handed back to every
test of that suite. TEST clusters are closed and rebuilt on every acquire.
Builds for one identity are serialized by a per-identity lock so two
concurrent acquires never race to provision the same cluster.
"""

import asyncio
import random
from collections import defaultdict

from shardharness.env.harness_config import HarnessConfig
from shardharness.errors import ProvisioningError, TeardownError
from shardharness.logging import Logger
from shardharness.logging.harness_logging_models import (
    ClusterDebug,
    ClusterInfo,
    ClusterWarning,
)
from shardharness.models import Scope

from .handle import ClusterHandle
from .protocol import ClusterFactory
from .settings import resolve_cluster_spec


class ClusterRegistry:
    """
    Owns the mapping from suite identity to ClusterHandle.

    Example usage:
        registry = ClusterRegistry(factory, HarnessConfig(scope=Scope.SUITE))

        handle = await registry.acquire("tests.test_search", Scope.SUITE, seed)
        # Same handle for every test of the suite
        assert await registry.acquire("tests.test_search", Scope.SUITE, seed) is handle

        await registry.release_all()
    """

    def __init__(
        self,
        factory: ClusterFactory,
        config: HarnessConfig | None = None,
        logger: Logger | None = None,
    ) -> None:
        self._factory = factory
        self._config = config or HarnessConfig()
        self._logger = logger or Logger()
        self._handles: dict[str, ClusterHandle] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def get(self, identity: str) -> ClusterHandle | None:
        return self._handles.get(identity)

    def __contains__(self, identity: str) -> bool:
        return identity in self._handles

    def __len__(self) -> int:
        return len(self._handles)

    async def acquire(
        self,
        identity: str,
        scope: Scope,
        seed: int,
    ) -> ClusterHandle:
        async with self._locks[identity]:
            handle = self._handles.pop(identity, None)

            if scope == Scope.SUITE:
                if handle is not None and handle.scope != scope:
                    await self._close_quietly(handle)
                    handle = None

                if handle is None or handle.closed:
                    handle = await self._build(identity, scope, seed)

                else:
                    await self._logger.log(
                        ClusterDebug(
                            message="Reusing suite cluster",
                            identity=identity,
                            scope=scope.value,
                            seed=handle.seed,
                            nodes=handle.size,
                        )
                    )

            else:
                if handle is not None:
                    await self._close_quietly(handle)

                handle = await self._build(identity, scope, seed)

            self._handles[identity] = handle
            return handle

    async def release(self, identity: str) -> None:
        async with self._locks[identity]:
            handle = self._handles.pop(identity, None)
            if handle is None:
                return

            await handle.close()
            await self._logger.log(
                ClusterInfo(
                    message="Released cluster",
                    identity=identity,
                    scope=handle.scope.value,
                    seed=handle.seed,
                    nodes=handle.size,
                )
            )

    async def release_all(self) -> None:
        errors: list[BaseException] = []

        for identity in list(self._handles.keys()):
            try:
                await self.release(identity)

            except Exception as err:
                errors.append(err)
                # Evict even when close failed so the handle is never reused
                self._handles.pop(identity, None)

        if errors:
            raise TeardownError(errors)

    async def _build(
        self,
        identity: str,
        scope: Scope,
        seed: int,
    ) -> ClusterHandle:
        rng = random.Random(seed)
        spec = resolve_cluster_spec(self._config, identity, seed, rng)

        try:
            cluster = await self._factory.build(spec)

        except Exception as err:
            raise ProvisioningError(identity, err) from err

        handle = ClusterHandle(
            identity=identity,
            scope=scope,
            seed=seed,
            spec=spec,
            cluster=cluster,
        )

        await self._logger.log(
            ClusterInfo(
                message=f"Built cluster [{spec.cluster_name}]",
                identity=identity,
                scope=scope.value,
                seed=seed,
                nodes=handle.size,
            )
        )

        return handle

    async def _close_quietly(self, handle: ClusterHandle) -> None:
        try:
            await handle.close()

        except Exception as err:
            await self._logger.log(
                ClusterWarning(
                    message=f"Failed to close previous test cluster: {err!r}",
                    identity=handle.identity,
                    scope=handle.scope.value,
                    seed=handle.seed,
                    nodes=handle.size,
                )
            )
