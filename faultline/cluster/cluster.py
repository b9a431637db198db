from __future__ import annotations

import asyncio
import random
from typing import Iterable, Protocol

from faultline.env import Env
from faultline.logging import LoggingConfig

from .errors import InvalidRequestError, MemberActionError
from .lifecycle import LifecycleConfig, LifecycleEngine
from .members import Member, MemberRole
from .probes import BoltHandshakeProbe, ConnectivityProbe


class ProxyResource(Protocol):
    """Shared ingress routing external addresses to members."""

    async def close(self) -> None:
        ...


class Cluster:
    """
    A fixed set of members behind a shared proxy.

    Fault injection methods pick members at random and return the members
    they acted on so the caller can recover exactly those members later.
    """

    def __init__(
        self,
        members: Iterable[Member],
        proxy: ProxyResource | None = None,
        env: Env | None = None,
        config: LifecycleConfig | None = None,
        probe: ConnectivityProbe | None = None,
        rng: random.Random | None = None,
    ) -> None:
        if env is None:
            env = Env()

        else:
            LoggingConfig().update_from_env(env)

        if config is None:
            config = LifecycleConfig.from_env(env)

        if probe is None:
            probe = BoltHandshakeProbe(default_port=env.FAULTLINE_BOLT_PORT)

        self._members: frozenset[Member] = frozenset(members)
        self._proxy = proxy
        self._rng = rng or random.Random()
        self._engine = LifecycleEngine(
            self._members,
            config=config,
            probe=probe,
            rng=self._rng,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    @property
    def config(self) -> LifecycleConfig:
        return self._engine.config

    # =========================================================================
    # Membership
    # =========================================================================

    def get_all_members(self) -> set[Member]:
        return set(self._members)

    def get_all_members_except(self, exclusions: Iterable[Member]) -> set[Member]:
        return self._members - set(exclusions)

    def get_all_members_of_role(self, role: MemberRole) -> set[Member]:
        return {member for member in self._members if member.role == role}

    def get_uris(self) -> set[str]:
        return {
            member.external_address
            for member in self.get_all_members_of_role(MemberRole.CORE)
        }

    def get_uri(self) -> str:
        uris = sorted(self.get_uris())
        if len(uris) == 0:
            raise InvalidRequestError("Cluster has no core members to route to.")

        return self._rng.choice(uris)

    # =========================================================================
    # Fault injection
    # =========================================================================

    async def stop_random_members(
        self,
        count: int,
        exclusions: Iterable[Member] | None = None,
    ) -> set[Member]:
        return await self._engine.stop(count, exclusions)

    async def stop_random_members_except(
        self,
        count: int,
        *exclusions: Member,
    ) -> set[Member]:
        return await self._engine.stop(count, exclusions)

    async def kill_random_members(
        self,
        count: int,
        exclusions: Iterable[Member] | None = None,
    ) -> set[Member]:
        return await self._engine.kill(count, exclusions)

    async def kill_random_members_except(
        self,
        count: int,
        *exclusions: Member,
    ) -> set[Member]:
        return await self._engine.kill(count, exclusions)

    async def pause_random_members(
        self,
        count: int,
        exclusions: Iterable[Member] | None = None,
    ) -> set[Member]:
        return await self._engine.pause(count, exclusions)

    async def pause_random_members_except(
        self,
        count: int,
        *exclusions: Member,
    ) -> set[Member]:
        return await self._engine.pause(count, exclusions)

    async def isolate_random_members(
        self,
        count: int,
        exclusions: Iterable[Member] | None = None,
    ) -> set[Member]:
        return await self._engine.isolate(count, exclusions)

    async def isolate_random_members_except(
        self,
        count: int,
        *exclusions: Member,
    ) -> set[Member]:
        return await self._engine.isolate(count, exclusions)

    # =========================================================================
    # Recovery
    # =========================================================================

    async def start_members(self, members: Iterable[Member]) -> set[Member]:
        return await self._engine.start(self._require_members(members))

    async def unpause_members(self, members: Iterable[Member]) -> set[Member]:
        return await self._engine.unpause(self._require_members(members))

    async def unisolate_members(self, members: Iterable[Member]) -> set[Member]:
        return await self._engine.unisolate(self._require_members(members))

    async def wait_for_log_message_on_all(
        self,
        members: Iterable[Member],
        message: str,
        timeout: float,
    ) -> None:
        await self._engine.wait_for_log_message_on_all(
            self._require_members(members),
            message,
            timeout,
        )

    async def wait_for_ready_on_all(
        self,
        members: Iterable[Member],
        timeout: float | None = None,
    ) -> None:
        if timeout is None:
            timeout = self._engine.config.start_timeout

        await self._engine.wait_for_ready_on_all(
            self._require_members(members),
            timeout,
        )

    # =========================================================================
    # Teardown
    # =========================================================================

    async def close(self) -> None:
        try:
            if self._proxy is not None:
                await self._proxy.close()

        finally:
            members = list(self._members)
            results = await asyncio.gather(*[
                member.close() for member in members
            ], return_exceptions=True)

            failures = {
                member: result for member, result in zip(members, results)
                if isinstance(result, BaseException)
            }

            if len(failures) > 0:
                raise MemberActionError("close", failures)

    def _require_members(self, members: Iterable[Member]) -> set[Member]:
        requested = set(members)
        unknown = requested - self._members

        if len(unknown) > 0:
            raise InvalidRequestError(
                "Members do not belong to this cluster.",
                members=sorted(member.external_address for member in unknown),
            )

        return requested
