import sys
from typing import Callable, TypeVar

from shardharness.logging.config import LoggingConfig
from shardharness.logging.models import Entry, Log

from .logger_stream import LoggerStream

T = TypeVar("T", bound=Entry)


class Logger:
    """
    Async structured logger shared by the harness components.

    Example usage:
        logger = Logger()

        await logger.log(
            ClusterInfo(
                message="Built cluster",
                identity="tests.test_search",
                scope="suite",
                seed=seed,
                nodes=3,
            )
        )

        # JSON lines to a file instead of the console
        logger = Logger(path="logs/harness.json")
    """

    def __init__(
        self,
        template: str | None = None,
        path: str | None = None,
    ) -> None:
        self._template = template
        self._path = path
        self._config = LoggingConfig()
        self._streams: dict[str, LoggerStream] = {}

    def stream(self, name: str) -> LoggerStream:
        stream = self._streams.get(name)
        if stream is None:
            stream = LoggerStream(
                name,
                template=self._template,
                path=self._path,
            )
            self._streams[name] = stream

        return stream

    async def log(
        self,
        entry: T,
        name: str = "shardharness",
        path: str | None = None,
        filter: Callable[[T], bool] | None = None,
    ):
        if not self._config.enabled(name, entry.level):
            return

        if filter and not filter(entry):
            return

        caller = sys._getframe(1)

        await self.stream(name).write(
            Log(
                entry=entry,
                logger=name,
                filename=caller.f_code.co_filename,
                function_name=caller.f_code.co_name,
                line_number=caller.f_lineno,
            ),
            path=path,
        )

    async def close(self):
        for stream in self._streams.values():
            await stream.close()
