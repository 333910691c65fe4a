import asyncio
import io
import pathlib
import sys
from collections import defaultdict

import msgspec

from shardharness.logging.config import LoggingConfig, StreamType
from shardharness.logging.models import Log

DEFAULT_TEMPLATE = (
    "{timestamp} - {level} - {logger} - {filename}:{function_name}.{line_number} - {message}"
)


class LoggerStream:
    """
    Writes logs for one named logger.

    Console output is rendered through a template. File output is one
    msgspec-encoded JSON document per line. Blocking writes run in the
    default executor so logging never stalls the event loop.
    """

    def __init__(
        self,
        name: str,
        template: str | None = None,
        path: str | None = None,
    ) -> None:
        self.name = name
        self.template = template or DEFAULT_TEMPLATE
        self.path = path

        self._config = LoggingConfig()
        self._encoder = msgspec.json.Encoder()
        self._files: dict[str, io.BufferedWriter] = {}
        self._file_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def write(self, log: Log, path: str | None = None):
        if path is None:
            path = self.path

        loop = asyncio.get_running_loop()

        if path is None:
            line = log.entry.render(
                self.template,
                logger=log.logger,
                filename=log.filename,
                function_name=log.function_name,
                line_number=log.line_number,
                timestamp=log.timestamp,
            )

            await loop.run_in_executor(
                None,
                self._write_line,
                line,
                self._config.output,
            )
            return

        logfile_path = str(pathlib.Path(path).absolute())
        async with self._file_locks[logfile_path]:
            await loop.run_in_executor(
                None,
                self._write_record,
                self._encoder.encode(log),
                logfile_path,
            )

    def _write_line(self, line: str, stream_type: StreamType):
        stream = sys.stdout if stream_type == StreamType.STDOUT else sys.stderr
        if not stream.closed:
            stream.write(line + "\n")
            stream.flush()

    def _write_record(self, record: bytes, logfile_path: str):
        logfile = self._files.get(logfile_path)
        if logfile is None or logfile.closed:
            resolved = pathlib.Path(logfile_path)
            resolved.parent.mkdir(parents=True, exist_ok=True)
            logfile = open(resolved, "ab")
            self._files[logfile_path] = logfile

        logfile.write(record + b"\n")
        logfile.flush()

    async def close(self):
        loop = asyncio.get_running_loop()

        for logfile_path in list(self._files):
            async with self._file_locks[logfile_path]:
                logfile = self._files.pop(logfile_path)
                await loop.run_in_executor(None, logfile.close)
