"""
Explicit per-run harness context.

A Harness is created by the test runner, handed to every test and torn
down with the suite. It owns the ClusterRegistry, so it is the only
place clusters are built or closed.

Example usage:
    harness = Harness(factory, HarnessConfig(scope=Scope.SUITE))

    handle = await harness.before_test("tests.test_search", "test_match_all", seed)

    await harness.run_workload(
        [WriteOperation(index="test", id=str(idx)) for idx in range(10)],
        WorkloadOptions(refresh=True),
    )
    await harness.ensure_health(HealthTarget(status=HealthStatus.GREEN))

    await harness.after_test()
    await harness.after_suite()
"""

import random
from typing import Sequence

from shardharness.cluster import (
    RANDOM_INDEX_TEMPLATE,
    ClusterFactory,
    ClusterHandle,
    ClusterRegistry,
    random_index_settings,
)
from shardharness.consistency import ConsistencyChecker
from shardharness.env import Env, HarnessConfig
from shardharness.errors import HarnessError, TeardownError
from shardharness.health import HealthGate
from shardharness.logging import LoggingConfig, Logger
from shardharness.logging.harness_logging_models import ClusterError, TestInfo
from shardharness.models import (
    ConsistencyReport,
    HealthStatus,
    HealthTarget,
    Scope,
    WorkloadOptions,
    WorkloadReport,
    WriteOperation,
)
from shardharness.workload import IndexingOrchestrator


class Harness:
    def __init__(
        self,
        factory: ClusterFactory,
        config: HarnessConfig | None = None,
        env: Env | None = None,
        logger: Logger | None = None,
    ) -> None:
        if config is None:
            config = HarnessConfig()

        if env is None:
            env = Env()

        LoggingConfig().update(
            log_level=env.SHARDHARNESS_LOG_LEVEL,
            log_output=env.SHARDHARNESS_LOG_OUTPUT,
        )

        if logger is None:
            logger = Logger(path=env.SHARDHARNESS_LOG_FILE)

        self.config = config
        self.env = env
        self._logger = logger
        self._registry = ClusterRegistry(
            factory,
            config=config,
            logger=self._logger,
        )

        self.current: ClusterHandle | None = None
        self._test_name: str | None = None
        self._rng = random.Random()

    @property
    def registry(self) -> ClusterRegistry:
        return self._registry

    def _require_cluster(self) -> ClusterHandle:
        if self.current is None or self.current.closed:
            raise HarnessError("no cluster acquired, call before_test() or acquire_cluster() first")

        return self.current

    async def acquire_cluster(
        self,
        identity: str,
        seed: int,
        scope: Scope | None = None,
    ) -> ClusterHandle:
        if scope is None:
            scope = self.config.scope

        self.current = await self._registry.acquire(identity, scope, seed)
        self._rng = random.Random(seed)

        return self.current

    async def release_cluster(self, identity: str | None = None) -> None:
        if identity is None:
            if self.current is None:
                return

            identity = self.current.identity

        await self._registry.release(identity)

        if self.current is not None and self.current.identity == identity:
            self.current = None

    def health_gate(self) -> HealthGate:
        return HealthGate(
            self._require_cluster(),
            env=self.env,
            logger=self._logger,
        )

    async def ensure_health(self, target: HealthTarget) -> HealthStatus:
        return await self.health_gate().wait(target)

    async def run_workload(
        self,
        batch: Sequence[WriteOperation],
        options: WorkloadOptions | None = None,
    ) -> WorkloadReport:
        orchestrator = IndexingOrchestrator(
            self._require_cluster(),
            env=self.env,
            logger=self._logger,
            rng=self._rng,
        )

        return await orchestrator.run(batch, options)

    async def check_consistency(self) -> ConsistencyReport:
        checker = ConsistencyChecker(
            self._require_cluster(),
            logger=self._logger,
        )

        return await checker.check()

    async def before_test(
        self,
        identity: str,
        test_name: str,
        seed: int,
    ) -> ClusterHandle:
        handle = await self.acquire_cluster(identity, seed)
        self._test_name = test_name

        await self._logger.log(
            TestInfo(
                message=f"[{test_name}]: before test",
                identity=identity,
                test=test_name,
                scope=handle.scope.value,
            )
        )

        await handle.wipe(self.config.exclude_templates)

        if self.config.randomize_index_template and handle.size > 0:
            # Suite clusters get the same template on every test
            template_rng = random.Random(
                handle.seed if handle.scope == Scope.SUITE else seed
            )
            await self.install_random_index_template(handle, template_rng)

        return handle

    async def install_random_index_template(
        self,
        handle: ClusterHandle,
        rng: random.Random,
    ) -> dict:
        settings = random_index_settings(
            rng,
            self.config,
            handle.spec.num_data_nodes,
        )

        await handle.put_template(
            RANDOM_INDEX_TEMPLATE,
            ["*"],
            settings,
            order=0,
        )

        return settings

    async def after_test(self, test_failed: bool = False) -> list[BaseException]:
        """
        Validate and clean up the current cluster.

        Returns the collected teardown errors when the test already
        failed, so they never hide the original failure. Otherwise any
        teardown error is raised as a TeardownError.
        """
        handle = self.current
        if handle is None:
            return []

        errors: list[BaseException] = []

        try:
            if handle.scope != Scope.TEST:
                await self._assert_no_cluster_settings(handle)

            await self.health_gate().ensure_cluster_size_consistency()
            await self.check_consistency()
            await handle.wipe(self.config.exclude_templates)

        except Exception as err:
            errors.append(err)

        if handle.scope == Scope.TEST:
            try:
                await self.release_cluster(handle.identity)

            except Exception as err:
                errors.append(err)

        test_name = self._test_name
        self.current = None
        self._test_name = None

        if not errors:
            await self._logger.log(
                TestInfo(
                    message=f"[{test_name}]: cleaned up after test",
                    identity=handle.identity,
                    test=test_name or "",
                    scope=handle.scope.value,
                )
            )

            return []

        if test_failed:
            for error in errors:
                await self._logger.log(
                    ClusterError(
                        message=f"[{test_name}]: teardown failed after test failure: {error!r}",
                        identity=handle.identity,
                        scope=handle.scope.value,
                        seed=handle.seed,
                        nodes=handle.size,
                    )
                )

            return errors

        raise TeardownError(errors)

    async def _assert_no_cluster_settings(self, handle: ClusterHandle) -> None:
        state = await handle.state()

        if state.persistent_settings:
            raise AssertionError(
                f"test leaves persistent cluster metadata behind: {state.persistent_settings}"
            )

        if state.transient_settings:
            raise AssertionError(
                f"test leaves transient cluster metadata behind: {state.transient_settings}"
            )

    async def after_suite(self) -> None:
        self.current = None
        self._test_name = None

        try:
            await self._registry.release_all()

        finally:
            await self._logger.close()
