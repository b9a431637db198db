from __future__ import annotations

import asyncio
import random
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Iterable

from faultline.cluster.errors import (
    ClusterTimeoutError,
    InvalidMemberStateError,
    InvalidRequestError,
    LogContractViolationError,
    LogMessageNotFoundError,
    MemberActionError,
    MemberUnreachableError,
)
from faultline.cluster.members import Member
from faultline.cluster.probes import BoltHandshakeProbe, ConnectivityProbe
from faultline.cluster.readiness import WaitForLogMessageAfter
from faultline.cluster.selection import choose_random
from faultline.logging import Logger
from faultline.logging.faultline_logging_models import (
    ClusterDebug,
    ClusterError as ClusterErrorEntry,
    ClusterInfo,
    MemberActionDebug,
    MemberActionError as MemberActionErrorEntry,
    MemberActionInfo,
)

from .lifecycle_config import LifecycleConfig

MemberAction = Callable[[Member], Awaitable[None]]


class LifecycleEngine:
    """
    Runs lifecycle transitions against members in parallel.

    Every operation starts one task per member and joins all of them
    before returning, even when some fail. Failures are raised together
    as a MemberActionError once the whole batch has finished.
    """

    def __init__(
        self,
        members: Iterable[Member],
        config: LifecycleConfig | None = None,
        probe: ConnectivityProbe | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._members: tuple[Member, ...] = tuple(members)
        self._config = config or LifecycleConfig()
        self._probe = probe or BoltHandshakeProbe()
        self._rng = rng or random.Random()

        # Per-member locks serialising overlapping actions
        self._member_locks: dict[Member, asyncio.Lock] = {}
        self._logger = Logger()

    @property
    def config(self) -> LifecycleConfig:
        return self._config

    @asynccontextmanager
    async def lock_member(self, member: Member) -> AsyncIterator[None]:
        lock = self._member_locks.setdefault(member, asyncio.Lock())
        async with lock:
            yield

    def select(
        self,
        count: int,
        exclusions: Iterable[Member] | None = None,
    ) -> set[Member]:
        return choose_random(
            count,
            self._members,
            exclusions=exclusions,
            rng=self._rng,
        )

    # =========================================================================
    # Random fault injection
    # =========================================================================

    async def stop(
        self,
        count: int,
        exclusions: Iterable[Member] | None = None,
    ) -> set[Member]:
        return await self._for_each(
            "stop",
            self.select(count, exclusions),
            self._stop_member,
        )

    async def kill(
        self,
        count: int,
        exclusions: Iterable[Member] | None = None,
    ) -> set[Member]:
        return await self._for_each(
            "kill",
            self.select(count, exclusions),
            self._kill_member,
        )

    async def pause(
        self,
        count: int,
        exclusions: Iterable[Member] | None = None,
    ) -> set[Member]:
        return await self._for_each(
            "pause",
            self.select(count, exclusions),
            self._pause_member,
        )

    async def isolate(
        self,
        count: int,
        exclusions: Iterable[Member] | None = None,
    ) -> set[Member]:
        return await self._for_each(
            "isolate",
            self.select(count, exclusions),
            self._isolate_member,
        )

    # =========================================================================
    # Recovery
    # =========================================================================

    async def start(self, members: Iterable[Member]) -> set[Member]:
        return await self._for_each(
            "start",
            set(members),
            self._start_member,
        )

    async def unpause(self, members: Iterable[Member]) -> set[Member]:
        return await self._for_each(
            "unpause",
            set(members),
            self._unpause_member,
        )

    async def unisolate(self, members: Iterable[Member]) -> set[Member]:
        return await self._for_each(
            "unisolate",
            set(members),
            self._unisolate_member,
        )

    # =========================================================================
    # Readiness
    # =========================================================================

    async def wait_for_log_message_on_all(
        self,
        members: Iterable[Member],
        message: str,
        timeout: float,
    ) -> None:
        """
        Wait until every member logs ``message`` after its most recent
        start. Invalid state and contract errors win over timeouts when
        several members fail.
        """
        targets = list(members)

        results = await asyncio.gather(*[
            self._wait_for_log_message(
                member,
                message,
                timeout,
            ) for member in targets
        ], return_exceptions=True)

        failures: dict[Member, BaseException] = {
            member: result for member, result in zip(targets, results)
            if isinstance(result, BaseException)
        }

        if len(failures) == 0:
            return

        for failure in failures.values():
            if isinstance(failure, (InvalidRequestError, LogContractViolationError)):
                raise failure

        not_found = [
            failure for failure in failures.values()
            if isinstance(failure, LogMessageNotFoundError)
        ]

        if len(not_found) > 0:
            addresses = sorted(
                member.external_address for member, failure in failures.items()
                if isinstance(failure, LogMessageNotFoundError)
            )

            raise ClusterTimeoutError(
                f"Timed out waiting for '{message}' on {addresses}",
                cause=not_found[0],
                members=addresses,
                timeout=timeout,
            )

        raise MemberActionError("wait_for_log_message", failures)

    async def wait_for_ready_on_all(
        self,
        members: Iterable[Member],
        timeout: float,
    ) -> None:
        """
        Wait for the ready marker on every member, then check each member
        answers the handshake on its current direct address within what
        is left of ``timeout``.
        """
        targets = list(members)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        await self.wait_for_log_message_on_all(
            targets,
            self._config.ready_marker,
            timeout,
        )

        remaining = max(deadline - loop.time(), 0.0)

        results = await asyncio.gather(*[
            member.get_direct_address() for member in targets
        ], return_exceptions=True)

        # Members without a published port are reported by external address
        unpublished: dict[Member, Exception] = {}
        addresses: list[str] = []
        for member, result in zip(targets, results):
            if isinstance(result, Exception):
                unpublished[member] = result

            elif isinstance(result, BaseException):
                raise result

            else:
                addresses.append(result)

        reachable = await asyncio.gather(*[
            self._probe.probe(address, remaining) for address in addresses
        ])

        unreachable = sorted([
            *(member.external_address for member in unpublished),
            *(
                address for address, is_reachable in zip(addresses, reachable)
                if not is_reachable
            ),
        ])

        if len(unreachable) > 0:
            raise MemberUnreachableError(
                unreachable,
                cause=next(iter(unpublished.values()), None),
            )

    # =========================================================================
    # Fan-out
    # =========================================================================

    async def _for_each(
        self,
        action_name: str,
        members: set[Member],
        action: MemberAction,
    ) -> set[Member]:
        targets = list(members)

        await self._logger.log(
            ClusterInfo(
                message=f"Running {action_name} on {len(targets)} member(s)",
                cluster_size=len(self._members),
                action=action_name,
            )
        )

        results = await asyncio.gather(*[
            self._run_member_action(
                action_name,
                member,
                action,
            ) for member in targets
        ], return_exceptions=True)

        failures: dict[Member, BaseException] = {
            member: result for member, result in zip(targets, results)
            if isinstance(result, BaseException)
        }

        if len(failures) > 0:
            await self._logger.log(
                ClusterErrorEntry(
                    message=f"{action_name} failed on {len(failures)} of {len(targets)} member(s)",
                    cluster_size=len(self._members),
                    action=action_name,
                )
            )

            raise MemberActionError(action_name, failures)

        await self._logger.log(
            ClusterDebug(
                message=f"Completed {action_name} on {len(targets)} member(s)",
                cluster_size=len(self._members),
                action=action_name,
            )
        )

        return members

    async def _run_member_action(
        self,
        action_name: str,
        member: Member,
        action: MemberAction,
    ):
        async with self.lock_member(member):
            await self._logger.log(
                MemberActionInfo(
                    message=f"Running {action_name} on {member.external_address}",
                    member=member.external_address,
                    role=member.role.value,
                    action=action_name,
                )
            )

            try:
                await action(member)

            except Exception as err:
                await self._logger.log(
                    MemberActionErrorEntry(
                        message=f"{action_name} failed on {member.external_address}",
                        member=member.external_address,
                        role=member.role.value,
                        action=action_name,
                        error=str(err),
                    )
                )

                raise

    # =========================================================================
    # Per-member actions
    # =========================================================================

    async def _stop_member(self, member: Member):
        stopped_wait = WaitForLogMessageAfter.after_restart(
            self._config.stopped_marker,
            await member.get_container_logs(),
            timestamp_length=self._config.timestamp_length,
        )

        await member.handle.stop(self._config.stop_timeout)

        if not await self._wait_for_running(
            member,
            False,
            self._config.stop_timeout,
        ):
            await self._debug(member, "stop", "Graceful stop timed out, killing")
            await self._kill_member(member)
            return

        await stopped_wait.wait_until_ready(
            member.handle,
            self._config.stop_timeout,
        )

    async def _kill_member(self, member: Member):
        await member.handle.kill()

        if not await self._wait_for_running(
            member,
            False,
            self._config.stop_timeout,
        ):
            raise ClusterTimeoutError(
                "Member is still running after being killed",
                member=member.external_address,
                timeout=self._config.stop_timeout,
            )

    async def _pause_member(self, member: Member):
        await member.handle.pause()

    async def _unpause_member(self, member: Member):
        await member.handle.unpause()

    async def _isolate_member(self, member: Member):
        await member.handle.disconnect_network()

    async def _unisolate_member(self, member: Member):
        await member.handle.connect_network()

    async def _start_member(self, member: Member):
        if await member.is_running():
            raise InvalidMemberStateError(
                "Member is already running",
                member=member.external_address,
            )

        started_wait = WaitForLogMessageAfter.after_restart(
            self._config.start_marker,
            await member.get_container_logs(),
            timestamp_length=self._config.timestamp_length,
        )

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._config.start_timeout

        await member.handle.start()

        if not await self._wait_for_running(
            member,
            True,
            self._config.start_timeout,
        ):
            raise ClusterTimeoutError(
                "Member did not report running after start",
                member=member.external_address,
                timeout=self._config.start_timeout,
            )

        await started_wait.wait_until_ready(
            member.handle,
            max(deadline - loop.time(), 0.0),
        )

    async def _wait_for_running(
        self,
        member: Member,
        running: bool,
        timeout: float,
    ) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while await member.is_running() is not running:
            if loop.time() >= deadline:
                return False

            await asyncio.sleep(self._config.poll_interval)

        return True

    async def _debug(self, member: Member, action_name: str, message: str):
        await self._logger.log(
            MemberActionDebug(
                message=f"{message} ({member.external_address})",
                member=member.external_address,
                role=member.role.value,
                action=action_name,
            )
        )

    async def _wait_for_log_message(
        self,
        member: Member,
        message: str,
        timeout: float,
    ):
        if not await member.is_running():
            raise InvalidMemberStateError(
                "Server is not running. Cannot wait for logs on a non running server",
                member=member.external_address,
            )

        log_wait = WaitForLogMessageAfter.in_latest_session(
            message,
            await member.get_container_logs(),
            self._config.start_marker,
            timestamp_length=self._config.timestamp_length,
        )

        await log_wait.wait_until_ready(member.handle, timeout)
