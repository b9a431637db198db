"""
Tests for the timestamp-baselined log wait.

Tests cover:
- Timestamp prefix recognition and fixed width comparison
- Baseline construction after restart and within the latest session
- Matching only lines strictly later than the baseline
- Out of order replay
- Contract violations, timeouts and one-shot use
"""

import asyncio

import pytest

from faultline.cluster import (
    InvalidMemberStateError,
    InvalidRequestError,
    LogContractViolationError,
    LogMessageNotFoundError,
    WaitForLogMessageAfter,
)
from faultline.cluster.readiness import (
    TIMESTAMP_LENGTH,
    last_timestamped_line,
    logs_since_last_marker,
    starts_with_timestamp,
    timestamp_of,
)

from tests.framework.runtime.log_clock import LogClock
from tests.framework.runtime.mock_container_handle import MockContainerHandle


# =============================================================================
# Test Timestamps
# =============================================================================


class TestTimestamps:
    """Tests for timestamp prefix helpers."""

    def test_recognises_timestamp_prefix(self):
        assert starts_with_timestamp("2024-01-01 12:00:00.0001+0000 INFO  hello")
        assert starts_with_timestamp("  2024-01-01 12:00:00.1 INFO  indented")

    def test_rejects_lines_without_timestamp(self):
        assert not starts_with_timestamp("Changed password for user 'neo4j'.")
        assert not starts_with_timestamp("2024-01-01T12:00:00.0001 INFO  iso")
        assert not starts_with_timestamp("")

    def test_timestamp_width(self):
        line = "2024-01-01 12:00:00.0001+0000 INFO  hello"

        assert TIMESTAMP_LENGTH == 24
        assert timestamp_of(line) == "2024-01-01 12:00:00.0001"

    def test_last_timestamped_line_skips_trailing_plain_lines(self):
        logs = "\n".join([
            "2024-01-01 12:00:00.0001+0000 INFO  first",
            "2024-01-01 12:00:00.0002+0000 INFO  second",
            "plain trailing output",
        ])

        assert last_timestamped_line(logs).endswith("second")

    def test_last_timestamped_line_none_when_absent(self):
        assert last_timestamped_line("no\ntimestamps\nhere") is None

    def test_logs_since_last_marker(self):
        logs = "a\nSTART one\nb\nSTART two\nc\n"

        assert logs_since_last_marker(logs, "START") == "START two\nc\n"
        assert logs_since_last_marker(logs, "MISSING") == logs


# =============================================================================
# Test Construction
# =============================================================================


class TestWaitConstruction:
    """Tests for baseline validation and factories."""

    def test_query_with_newline_rejected(self):
        with pytest.raises(InvalidRequestError):
            WaitForLogMessageAfter(
                "two\nlines",
                "2024-01-01 12:00:00.0001+0000 INFO  baseline",
            )

    def test_baseline_without_timestamp_rejected(self):
        with pytest.raises(InvalidRequestError):
            WaitForLogMessageAfter("Started.", "no timestamp here")

    def test_after_restart_uses_last_timestamped_line(self):
        clock = LogClock()
        handle = MockContainerHandle("container-1", clock)
        last_line = handle.emit("last line before restart")

        wait = WaitForLogMessageAfter.after_restart(
            "Started.",
            "\n".join(handle.output),
        )

        assert wait.after_line == last_line
        assert wait.baseline == timestamp_of(last_line)

    def test_after_restart_without_timestamps_raises(self):
        with pytest.raises(InvalidMemberStateError, match="recognisable timestamp"):
            WaitForLogMessageAfter.after_restart("Started.", "plain\noutput\n")

    @pytest.mark.asyncio
    async def test_in_latest_session_uses_first_line_of_last_run(self):
        handle = MockContainerHandle("container-1", LogClock())
        await handle.kill()
        await handle.start()

        wait = WaitForLogMessageAfter.in_latest_session(
            "Bolt enabled on",
            await handle.container_logs(),
            "======== Neo4j",
        )

        assert "======== Neo4j" in wait.after_line
        session_markers = [
            line for line in handle.output if "======== Neo4j" in line
        ]
        assert wait.after_line == session_markers[-1]


# =============================================================================
# Test Waiting
# =============================================================================


class TestWaitUntilReady:
    """Tests for waiting on a followed log stream."""

    @pytest.mark.asyncio
    async def test_line_after_baseline_succeeds(self):
        handle = MockContainerHandle("container-1", LogClock())
        wait = WaitForLogMessageAfter.after_restart(
            "Ready now",
            await handle.container_logs(),
        )

        async def emit_later():
            await asyncio.sleep(0.05)
            handle.emit("Ready now")

        emitter = asyncio.create_task(emit_later())
        line = await wait.wait_until_ready(handle, timeout=1.0)
        await emitter

        assert line.endswith("Ready now")

    @pytest.mark.asyncio
    async def test_line_before_baseline_is_ignored(self):
        """An older matching line never satisfies the wait."""
        handle = MockContainerHandle("container-1", LogClock())
        wait = WaitForLogMessageAfter.after_restart(
            "Bolt enabled on",
            await handle.container_logs(),
        )

        with pytest.raises(LogMessageNotFoundError):
            await wait.wait_until_ready(handle, timeout=0.1)

    @pytest.mark.asyncio
    async def test_line_with_equal_timestamp_is_ignored(self):
        handle = MockContainerHandle("container-1", LogClock())
        baseline_line = handle.emit("baseline")
        same_moment = timestamp_of(baseline_line) + "+0000 INFO  Ready now"
        handle.emit(same_moment, timestamped=False)

        wait = WaitForLogMessageAfter("Ready now", baseline_line)

        with pytest.raises(LogMessageNotFoundError):
            await wait.wait_until_ready(handle, timeout=0.1)

    @pytest.mark.asyncio
    async def test_out_of_order_replay_still_matches(self):
        handle = MockContainerHandle(
            "container-1",
            LogClock(),
            replay_reversed=True,
        )
        baseline_line = handle.emit("baseline")
        handle.emit("Ready now")

        wait = WaitForLogMessageAfter("Ready now", baseline_line)
        line = await wait.wait_until_ready(handle, timeout=1.0)

        assert line.endswith("Ready now")

    @pytest.mark.asyncio
    async def test_out_of_order_replay_does_not_match_stale_line(self):
        """Stale lines replayed after newer ones are still rejected."""
        handle = MockContainerHandle(
            "container-1",
            LogClock(),
            replay_reversed=True,
        )
        handle.emit("Ready now")
        baseline_line = handle.emit("baseline")

        wait = WaitForLogMessageAfter("Ready now", baseline_line)

        with pytest.raises(LogMessageNotFoundError):
            await wait.wait_until_ready(handle, timeout=0.1)

    @pytest.mark.asyncio
    async def test_matching_line_without_timestamp_raises_contract_error(self):
        handle = MockContainerHandle("container-1", LogClock())
        baseline_line = handle.emit("baseline")
        handle.emit("Ready now without a timestamp", timestamped=False)

        wait = WaitForLogMessageAfter("Ready now", baseline_line)

        with pytest.raises(LogContractViolationError):
            await wait.wait_until_ready(handle, timeout=1.0)

    @pytest.mark.asyncio
    async def test_plain_lines_not_matching_query_are_skipped(self):
        handle = MockContainerHandle("container-1", LogClock())
        baseline_line = handle.emit("baseline")
        handle.emit("unrelated plain output", timestamped=False)
        handle.emit("Ready now")

        wait = WaitForLogMessageAfter("Ready now", baseline_line)

        assert (await wait.wait_until_ready(handle, timeout=1.0)).endswith("Ready now")

    @pytest.mark.asyncio
    async def test_timeout_error_names_query(self):
        handle = MockContainerHandle("container-1", LogClock())
        wait = WaitForLogMessageAfter.after_restart(
            "never logged",
            await handle.container_logs(),
        )

        with pytest.raises(LogMessageNotFoundError) as error_info:
            await wait.wait_until_ready(handle, timeout=0.05)

        assert error_info.value.query == "never logged"
        assert "never logged" in str(error_info.value)

    @pytest.mark.asyncio
    async def test_stream_ending_without_match_raises(self):
        handle = MockContainerHandle("container-1", LogClock())
        wait = WaitForLogMessageAfter.after_restart(
            "never logged",
            await handle.container_logs(),
        )
        await handle.kill()

        with pytest.raises(LogMessageNotFoundError):
            await wait.wait_until_ready(handle, timeout=5.0)

    @pytest.mark.asyncio
    async def test_wait_is_one_shot(self):
        handle = MockContainerHandle("container-1", LogClock())
        baseline_line = handle.emit("baseline")
        handle.emit("Ready now")

        wait = WaitForLogMessageAfter("Ready now", baseline_line)
        await wait.wait_until_ready(handle, timeout=1.0)

        with pytest.raises(InvalidRequestError):
            await wait.wait_until_ready(handle, timeout=1.0)

    @pytest.mark.asyncio
    async def test_subscription_closed_after_wait(self):
        handle = MockContainerHandle("container-1", LogClock())
        wait = WaitForLogMessageAfter.after_restart(
            "never logged",
            await handle.container_logs(),
        )

        with pytest.raises(LogMessageNotFoundError):
            await wait.wait_until_ready(handle, timeout=0.05)

        assert handle._subscribers == []
