import os
from typing import Callable, Generator

import pytest

from faultline.logging import Entry, LoggingConfig, LogLevel


@pytest.fixture(autouse=True)
def verbose_logging() -> Generator[LoggingConfig, None, None]:
    config = LoggingConfig()
    config.update(log_level="trace", log_output="stdout")
    yield config
    config.update(log_level="critical")


@pytest.fixture
def json_logfile(temp_log_directory: str) -> Callable[[str], str]:
    def logfile(name: str) -> str:
        return os.path.join(temp_log_directory, f"{name}.json")

    return logfile


@pytest.fixture
def make_entry() -> Callable[..., Entry]:
    def build(
        message: str = "Test log message",
        level: LogLevel = LogLevel.INFO,
        tags: set[str] | None = None,
    ) -> Entry:
        return Entry(message=message, level=level, tags=tags or set())

    return build
