from __future__ import annotations

import asyncio

from faultline.cluster.errors import (
    InvalidMemberStateError,
    InvalidRequestError,
    LogContractViolationError,
    LogMessageNotFoundError,
)
from faultline.cluster.handles import ContainerHandle
from faultline.logging import Logger
from faultline.logging.faultline_logging_models import (
    ReadinessDebug,
    ReadinessTrace,
)

from .timestamps import (
    TIMESTAMP_LENGTH,
    first_timestamped_line,
    last_timestamped_line,
    logs_since_last_marker,
    starts_with_timestamp,
    timestamp_of,
)


class WaitForLogMessageAfter:
    """
    One-shot wait for a log line containing ``query`` whose timestamp is
    strictly later than the timestamp of ``after_line``.

    Container output is replayed from the beginning on every subscription
    and frames can arrive out of order, so neither position nor arrival
    order says anything about when a line was written. Only the timestamp
    prefix does.
    """

    def __init__(
        self,
        query: str,
        after_line: str,
        timestamp_length: int = TIMESTAMP_LENGTH,
    ) -> None:
        if "\n" in query:
            raise InvalidRequestError(
                "Log query must be a single line",
                query=query,
            )

        if not starts_with_timestamp(after_line):
            raise InvalidRequestError(
                "Baseline log line must start with a timestamp",
                line=after_line,
            )

        self.query = query
        self.after_line = after_line
        self.timestamp_length = timestamp_length
        self.baseline = timestamp_of(after_line, timestamp_length)

        self._consumed = False
        self._logger = Logger()

    @classmethod
    def after_restart(
        cls,
        query: str,
        logs: str,
        timestamp_length: int = TIMESTAMP_LENGTH,
    ) -> WaitForLogMessageAfter:
        """Baseline on the last timestamped line already written."""
        after_line = last_timestamped_line(logs)
        if after_line is None:
            raise InvalidMemberStateError(
                "Container has no existing logs starting with a recognisable timestamp"
            )

        return cls(
            query,
            after_line,
            timestamp_length=timestamp_length,
        )

    @classmethod
    def in_latest_session(
        cls,
        query: str,
        logs: str,
        start_marker: str,
        timestamp_length: int = TIMESTAMP_LENGTH,
    ) -> WaitForLogMessageAfter:
        """Baseline on the first timestamped line of the current process run."""
        after_line = first_timestamped_line(
            logs_since_last_marker(logs, start_marker)
        )
        if after_line is None:
            raise InvalidMemberStateError(
                "Container has no logs since its last start that begin with a recognisable timestamp",
                start_marker=start_marker,
            )

        return cls(
            query,
            after_line,
            timestamp_length=timestamp_length,
        )

    def is_match(self, line: str) -> bool:
        if self.query not in line:
            return False

        if not starts_with_timestamp(line):
            raise LogContractViolationError(self.query, line)

        return timestamp_of(line, self.timestamp_length) > self.baseline

    async def wait_until_ready(
        self,
        handle: ContainerHandle,
        timeout: float,
    ) -> str:
        if self._consumed:
            raise InvalidRequestError(
                "Log wait has already been used, create a new one",
                query=self.query,
            )

        self._consumed = True

        await self._logger.log(
            ReadinessDebug(
                message=f"Waiting up to {timeout:.2f}s for '{self.query}' on {handle.handle_id}",
                query=self.query,
                baseline=self.baseline,
                timeout=timeout,
            )
        )

        try:
            return await asyncio.wait_for(
                self._follow(handle, timeout),
                timeout=timeout,
            )

        except asyncio.TimeoutError as err:
            raise LogMessageNotFoundError(self.query, timeout, cause=err)

    async def _follow(
        self,
        handle: ContainerHandle,
        timeout: float,
    ) -> str:
        async with handle.follow_output() as frames:
            async for frame in frames:
                for line in frame.splitlines():
                    if self.is_match(line):
                        await self._logger.log(
                            ReadinessTrace(
                                message=f"Matched '{self.query}' after {self.baseline}",
                                query=self.query,
                                baseline=self.baseline,
                                line=line,
                            )
                        )

                        return line

        raise LogMessageNotFoundError(self.query, timeout)
