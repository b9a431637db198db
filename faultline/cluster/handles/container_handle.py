from typing import AsyncContextManager, AsyncIterator, Protocol

from .log_channel import LogChannel


class ContainerHandle(Protocol):
    """
    Protocol defining the container runtime operations the orchestrator
    needs from one member's container.

    The handle reference stays fixed for the member's lifetime while the
    container behind it changes state. ``handle_id`` never changes.
    """

    @property
    def handle_id(self) -> str:
        """Stable identifier of the underlying container."""
        ...

    async def start(self) -> None:
        """Start a stopped container."""
        ...

    async def stop(self, timeout: float) -> None:
        """Request graceful termination, waiting up to ``timeout`` seconds."""
        ...

    async def kill(self) -> None:
        """Forcefully terminate the container process."""
        ...

    async def pause(self) -> None:
        """Freeze every process in the container."""
        ...

    async def unpause(self) -> None:
        """Resume a paused container."""
        ...

    async def disconnect_network(self) -> None:
        """Detach the container from the cluster network."""
        ...

    async def connect_network(self) -> None:
        """Reattach the container to the cluster network."""
        ...

    async def is_running(self) -> bool:
        """True while the container process exists, paused or not."""
        ...

    async def is_paused(self) -> bool:
        ...

    async def is_isolated(self) -> bool:
        ...

    async def exec(self, command: list[str]) -> tuple[int, str]:
        """Run ``command`` inside the container, returning exit code and output."""
        ...

    async def read_log(self, channel: LogChannel, offset: int = 0) -> str:
        """Read a log file from ``offset`` bytes to its end."""
        ...

    async def log_position(self, channel: LogChannel) -> int:
        """Current size of a log file in bytes."""
        ...

    async def container_logs(self) -> str:
        """Complete container output across every restart."""
        ...

    def follow_output(self) -> AsyncContextManager[AsyncIterator[str]]:
        """
        Subscribe to container output. Existing output is replayed before
        new output is followed. Frames may arrive out of order and a frame
        may hold several lines.
        """
        ...

    async def mapped_address(self, port: int) -> tuple[str, int]:
        """Host and port currently published for an internal port."""
        ...

    async def close(self) -> None:
        """Release the container."""
        ...
