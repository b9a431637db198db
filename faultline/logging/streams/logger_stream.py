import asyncio
import io
import os
import pathlib
import sys
from typing import Callable, TypeVar

import msgspec

from faultline.logging.config import LoggingConfig, StreamType
from faultline.logging.models import Entry, Log

T = TypeVar('T', bound=Entry)

DEFAULT_TEMPLATE = (
    "{timestamp} - {level} - {logger} - "
    "{filename}:{function_name}.{line_number} - {message}"
)


class LoggerStream:
    """
    One log destination. Without a path, entries are rendered through
    the template to stdout or stderr. With a ``.json`` path, every log is
    appended to the file as one msgspec-encoded JSON line.

    Blocking writes run on the loop's default executor.
    """

    def __init__(
        self,
        name: str | None = None,
        template: str | None = None,
        path: str | None = None,
    ) -> None:
        if name is None:
            name = "default"

        self._name = name
        self._template = template or DEFAULT_TEMPLATE
        self._path = path

        self._config = LoggingConfig()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._lock: asyncio.Lock | None = None
        self._logfile: io.BufferedRandom | None = None
        self._logfile_path: str | None = None

    @property
    def logfile_path(self) -> str | None:
        return self._logfile_path

    def _resolve_logfile_path(self, path: str) -> str:
        logfile_path = pathlib.Path(path)

        assert (
            logfile_path.suffix == ".json"
        ), "Err. - file must be JSON file for logs."

        if self._config.directory:
            logfile_path = pathlib.Path(self._config.directory) / logfile_path.name

        return str(logfile_path.absolute())

    async def open(self):
        if self._path is None:
            return

        logfile_path = self._resolve_logfile_path(self._path)

        if self._loop is None:
            self._loop = asyncio.get_running_loop()

        if self._lock is None:
            self._lock = asyncio.Lock()

        async with self._lock:
            if self._logfile and self._logfile.closed is False:
                return

            self._logfile = await self._loop.run_in_executor(
                None,
                self._open_file,
                logfile_path,
            )
            self._logfile_path = logfile_path

    def _open_file(self, logfile_path: str) -> io.BufferedRandom:
        logfile_directory = os.path.dirname(logfile_path)
        if not os.path.exists(logfile_directory):
            os.makedirs(logfile_directory)

        return open(logfile_path, "ab+")

    async def close(self):
        if self._logfile is None or self._logfile.closed:
            return

        async with self._lock:
            await self._loop.run_in_executor(
                None,
                self._logfile.close,
            )

    async def write(
        self,
        log: Log,
        filter: Callable[[T], bool] | None = None,
    ):
        entry: Entry = log.entry

        if self._config.enabled(self._name, entry.level) is False:
            return

        if filter and filter(entry) is False:
            return

        if self._loop is None:
            self._loop = asyncio.get_running_loop()

        if self._path is None:
            await self._write_to_stream(log)

        else:
            await self._write_to_file(log)

    async def _write_to_stream(self, log: Log):
        line = log.entry.render(
            self._template,
            logger=log.logger_name,
            filename=log.filename,
            function_name=log.function_name,
            line_number=log.line_number,
            thread_id=log.thread_id,
            timestamp=log.timestamp,
        )

        stream = sys.stderr if self._config.output == StreamType.STDERR else sys.stdout

        await self._loop.run_in_executor(
            None,
            self._write_line,
            stream,
            line,
        )

    def _write_line(
        self,
        stream: io.TextIOBase,
        line: str,
    ):
        stream.write(line + "\n")
        stream.flush()

    async def _write_to_file(self, log: Log):
        if self._logfile is None or self._logfile.closed:
            await self.open()

        async with self._lock:
            await self._loop.run_in_executor(
                None,
                self._append,
                msgspec.json.encode(log) + b"\n",
            )

    def _append(self, data: bytes):
        if self._logfile and self._logfile.closed is False:
            self._logfile.write(data)
            self._logfile.flush()
