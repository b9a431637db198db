from __future__ import annotations

import datetime
import threading
from types import FrameType

import msgspec


class Log(msgspec.Struct, kw_only=True):
    entry: msgspec.Struct
    logger_name: str
    filename: str
    function_name: str
    line_number: int
    thread_id: int = msgspec.field(
        default_factory=threading.get_native_id,
    )
    timestamp: str = msgspec.field(
        default_factory=lambda: datetime.datetime.now(datetime.UTC).isoformat()
    )

    @classmethod
    def from_frame(
        cls,
        entry: msgspec.Struct,
        logger_name: str,
        frame: FrameType,
    ) -> Log:
        code = frame.f_code

        return cls(
            entry=entry,
            logger_name=logger_name,
            filename=code.co_filename,
            function_name=code.co_name,
            line_number=frame.f_lineno,
        )
