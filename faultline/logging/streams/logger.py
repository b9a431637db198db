from __future__ import annotations

import asyncio
import sys
from typing import Callable, Dict, Tuple, TypeVar

from faultline.logging.models import Entry, Log

from .logger_stream import LoggerStream

T = TypeVar('T', bound=Entry)

StreamKey = Tuple[str, str | None, str | None]


class Logger:
    """
    Named structured logger. Each call records the caller's file,
    function and line alongside the entry.

    ``configure`` sets the default template and JSON file for a name.
    Passing ``template`` or ``path`` to ``log`` overrides them for that
    call only.
    """

    def __init__(self) -> None:
        self._defaults: Dict[str, Tuple[str | None, str | None]] = {}
        self._streams: Dict[StreamKey, LoggerStream] = {}

    def configure(
        self,
        name: str | None = None,
        template: str | None = None,
        path: str | None = None,
    ):
        if name is None:
            name = 'default'

        self._defaults[name] = (template, path)

    def _stream(
        self,
        name: str,
        template: str | None,
        path: str | None,
    ) -> LoggerStream:
        default_template, default_path = self._defaults.get(name, (None, None))
        key: StreamKey = (
            name,
            template or default_template,
            path or default_path,
        )

        if (stream := self._streams.get(key)) is None:
            stream = LoggerStream(
                name=name,
                template=key[1],
                path=key[2],
            )
            self._streams[key] = stream

        return stream

    async def log(
        self,
        entry: T,
        name: str | None = None,
        template: str | None = None,
        path: str | None = None,
        filter: Callable[[T], bool] | None = None,
    ):
        if name is None:
            name = 'default'

        await self._stream(name, template, path).write(
            Log.from_frame(entry, name, sys._getframe(1)),
            filter=filter,
        )

    async def batch(
        self,
        *entries: T,
        name: str | None = None,
    ):
        if name is None:
            name = 'default'

        frame = sys._getframe(1)
        stream = self._stream(name, None, None)

        await asyncio.gather(*[
            stream.write(
                Log.from_frame(entry, name, frame),
            ) for entry in entries
        ])

    async def close(self):
        if len(self._streams) > 0:
            await asyncio.gather(*[
                stream.close() for stream in self._streams.values()
            ])
