from __future__ import annotations

import contextvars
from typing import TYPE_CHECKING, List, Literal

from faultline.logging.models import LogLevel, LogLevelName
from .stream_type import StreamType

if TYPE_CHECKING:
    from faultline.env import Env


LogOutput = Literal['stdout', 'stderr']

_global_log_level = contextvars.ContextVar("_global_log_level", default=LogLevel.INFO)
_global_disabled_loggers = contextvars.ContextVar("_global_disabled_loggers", default=[])
_global_log_output_type = contextvars.ContextVar("_global_log_output_type", default=StreamType.STDOUT)
_global_logging_directory = contextvars.ContextVar("_global_logging_directory", default=None)


class LoggingConfig:
    """
    Process wide logging settings. Values live in context variables so
    a task can narrow them without affecting its parent.
    """

    def __init__(self) -> None:
        self._log_level: contextvars.ContextVar[LogLevel] = _global_log_level
        self._log_output_type: contextvars.ContextVar[StreamType] = _global_log_output_type
        self._log_directory: contextvars.ContextVar[str | None] = _global_logging_directory
        self._disabled_loggers: contextvars.ContextVar[List[str]] = (
            _global_disabled_loggers
        )

    def update(
        self,
        log_directory: str | None = None,
        log_level: LogLevelName | None = None,
        log_output: LogOutput | None = None,
    ):
        if log_directory:
            self._log_directory.set(log_directory)

        if log_level:
            self._log_level.set(
                LogLevel.to_level(log_level)
            )

        if log_output:
            self._log_output_type.set(
                StreamType.STDOUT if log_output == 'stdout' else StreamType.STDERR
            )

    def update_from_env(self, env: Env):
        self.update(log_level=env.FAULTLINE_LOG_LEVEL)

    def disable(self, logger_name: str):
        disabled_loggers = list(self._disabled_loggers.get())
        if logger_name not in disabled_loggers:
            disabled_loggers.append(logger_name)

        self._disabled_loggers.set(disabled_loggers)

    def enable(self, logger_name: str):
        self._disabled_loggers.set([
            name for name in self._disabled_loggers.get() if name != logger_name
        ])

    def enabled(self, logger_name: str, log_level: LogLevel) -> bool:
        return (
            logger_name not in self._disabled_loggers.get()
            and log_level.rank >= self._log_level.get().rank
        )

    @property
    def level(self) -> LogLevel:
        return self._log_level.get()

    @property
    def output(self) -> StreamType:
        return self._log_output_type.get()

    @property
    def directory(self) -> str | None:
        return self._log_directory.get()
