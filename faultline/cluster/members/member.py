from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit, urlunsplit

from faultline.cluster.handles import ContainerHandle, LogChannel
from faultline.cluster.readiness.timestamps import logs_since_last_marker
from faultline.env import Env

from .member_role import MemberRole
from .member_state import MemberState


DIRECT_SCHEMES: dict[str, str] = {
    "neo4j": "bolt",
    "neo4j+s": "bolt+s",
    "neo4j+ssc": "bolt+ssc",
}


def _env_default(name: str):
    return Env.model_fields[name].default


@dataclass(slots=True, eq=False)
class Member:
    """
    One cluster process, addressed through the cluster proxy.

    Identity is the pair (container handle id, external address) and never
    depends on the container's runtime state, so a member keeps its place
    in sets and dicts across stop, start, pause and isolate.

    ``internal_port`` and ``start_marker`` default to the ``Env`` defaults.
    Use ``from_env`` when the cluster runs with overridden settings.
    """

    handle: ContainerHandle
    external_address: str
    role: MemberRole = MemberRole.UNKNOWN
    internal_port: int = _env_default("FAULTLINE_BOLT_PORT")
    start_marker: str = _env_default("FAULTLINE_START_MARKER")

    @classmethod
    def from_env(
        cls,
        handle: ContainerHandle,
        external_address: str,
        role: MemberRole = MemberRole.UNKNOWN,
        env: Env | None = None,
    ) -> Member:
        """Build a member whose probed port and start marker follow ``env``."""
        if env is None:
            env = Env()

        return cls(
            handle,
            external_address,
            role=role,
            internal_port=env.FAULTLINE_BOLT_PORT,
            start_marker=env.FAULTLINE_START_MARKER,
        )

    @property
    def member_id(self) -> str:
        return self.handle.handle_id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Member):
            return NotImplemented

        return (
            self.member_id == other.member_id
            and self.external_address == other.external_address
        )

    def __hash__(self) -> int:
        return hash((self.member_id, self.external_address))

    def __repr__(self) -> str:
        return f"Member({self.role.value}, {self.external_address})"

    @staticmethod
    def direct_scheme_for(uri: str) -> str:
        scheme = urlsplit(uri).scheme
        return DIRECT_SCHEMES.get(scheme, scheme)

    async def get_debug_log(self) -> str:
        return await self.handle.read_log(LogChannel.DEBUG)

    async def get_debug_log_from(self, position: int) -> str:
        return await self.handle.read_log(LogChannel.DEBUG, offset=position)

    async def get_debug_log_position(self) -> int:
        return await self.handle.log_position(LogChannel.DEBUG)

    async def get_query_log(self) -> str:
        return await self.handle.read_log(LogChannel.QUERY)

    async def get_query_log_from(self, position: int) -> str:
        return await self.handle.read_log(LogChannel.QUERY, offset=position)

    async def get_query_log_position(self) -> int:
        return await self.handle.log_position(LogChannel.QUERY)

    async def get_container_logs(self) -> str:
        return await self.handle.container_logs()

    async def get_container_logs_since_start(self) -> str:
        logs = await self.handle.container_logs()
        return logs_since_last_marker(logs, self.start_marker)

    async def exec(self, command: list[str]) -> tuple[int, str]:
        return await self.handle.exec(command)

    async def is_running(self) -> bool:
        return await self.handle.is_running()

    async def is_paused(self) -> bool:
        return await self.handle.is_paused()

    async def is_isolated(self) -> bool:
        return await self.handle.is_isolated()

    async def get_state(self) -> MemberState:
        if not await self.handle.is_running():
            return MemberState.STOPPED

        if await self.handle.is_paused():
            return MemberState.PAUSED

        if await self.handle.is_isolated():
            return MemberState.ISOLATED

        return MemberState.RUNNING

    async def get_direct_address(self) -> str:
        # The published port can change on every restart.
        host, port = await self.handle.mapped_address(self.internal_port)
        parts = urlsplit(self.external_address)

        return urlunsplit((
            self.direct_scheme_for(self.external_address),
            f"{host}:{port}",
            parts.path,
            parts.query,
            parts.fragment,
        ))

    async def close(self) -> None:
        await self.handle.close()
