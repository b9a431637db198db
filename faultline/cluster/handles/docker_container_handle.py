import asyncio
import functools
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from typing import AsyncIterator

import docker
import psutil
from docker.models.containers import Container
from docker.models.networks import Network

from faultline.env import Env
from faultline.logging import Logger
from faultline.logging.faultline_logging_models import RuntimeDebug

from .log_channel import LogChannel


class DockerContainerHandle:
    def __init__(
        self,
        container: Container,
        network: Network,
        aliases: list[str] | None = None,
        env: Env | None = None,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        if env is None:
            env = Env()

        self._container = container
        self._network = network
        self._aliases = aliases or []
        self._handle_id: str = container.id

        self._log_paths: dict[LogChannel, str] = {
            LogChannel.DEBUG: env.FAULTLINE_DEBUG_LOG_PATH,
            LogChannel.QUERY: env.FAULTLINE_QUERY_LOG_PATH,
        }

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=env.FAULTLINE_RUNTIME_MAX_THREADS or psutil.cpu_count(logical=False)
        )
        self._loop: asyncio.AbstractEventLoop | None = None
        self._logger = Logger()

    @classmethod
    def from_names(
        cls,
        container_name: str,
        network_name: str,
        aliases: list[str] | None = None,
        env: Env | None = None,
        client: docker.DockerClient | None = None,
        executor: ThreadPoolExecutor | None = None,
    ):
        if client is None:
            client = docker.from_env()

        return cls(
            client.containers.get(container_name),
            client.networks.get(network_name),
            aliases=aliases,
            env=env,
            executor=executor,
        )

    @property
    def handle_id(self) -> str:
        return self._handle_id

    async def _run(self, call, *args, **kwargs):
        if self._loop is None:
            self._loop = asyncio.get_running_loop()

        return await self._loop.run_in_executor(
            self._executor,
            functools.partial(call, *args, **kwargs),
        )

    async def _state(self) -> dict:
        await self._run(self._container.reload)
        return self._container.attrs.get("State", {})

    async def start(self) -> None:
        await self._debug("start")
        await self._run(self._container.start)

    async def stop(self, timeout: float) -> None:
        await self._debug("stop")
        await self._run(self._container.stop, timeout=int(timeout))

    async def kill(self) -> None:
        await self._debug("kill")
        await self._run(self._container.kill)

    async def pause(self) -> None:
        await self._debug("pause")
        await self._run(self._container.pause)

    async def unpause(self) -> None:
        await self._debug("unpause")
        await self._run(self._container.unpause)

    async def disconnect_network(self) -> None:
        await self._debug("disconnect_network")
        await self._run(self._network.disconnect, self._container)

    async def connect_network(self) -> None:
        await self._debug("connect_network")
        await self._run(
            self._network.connect,
            self._container,
            aliases=self._aliases,
        )

    async def is_running(self) -> bool:
        state = await self._state()
        return bool(state.get("Running", False))

    async def is_paused(self) -> bool:
        state = await self._state()
        return bool(state.get("Paused", False))

    async def is_isolated(self) -> bool:
        await self._run(self._container.reload)
        networks: dict = self._container.attrs.get(
            "NetworkSettings", {}
        ).get("Networks") or {}

        return self._network.name not in networks

    async def exec(self, command: list[str]) -> tuple[int, str]:
        exit_code, output = await self._run(
            self._container.exec_run,
            command,
        )

        return exit_code, output.decode(errors="replace") if output else ""

    async def read_log(self, channel: LogChannel, offset: int = 0) -> str:
        exit_code, output = await self.exec([
            "tail",
            "-c",
            f"+{offset + 1}",
            self._log_paths[channel],
        ])

        if exit_code != 0:
            raise OSError(
                f"Err. - could not read {channel.value.lower()} log on {self._handle_id}: {output.strip()}"
            )

        return output

    async def log_position(self, channel: LogChannel) -> int:
        exit_code, output = await self.exec([
            "stat",
            "-c",
            "%s",
            self._log_paths[channel],
        ])

        if exit_code != 0:
            raise OSError(
                f"Err. - could not stat {channel.value.lower()} log on {self._handle_id}: {output.strip()}"
            )

        return int(output.strip())

    async def container_logs(self) -> str:
        output: bytes = await self._run(
            self._container.logs,
            stdout=True,
            stderr=True,
        )

        return output.decode(errors="replace")

    @asynccontextmanager
    async def follow_output(self) -> AsyncIterator[AsyncIterator[str]]:
        loop = asyncio.get_running_loop()
        frames: asyncio.Queue[str | Exception | None] = asyncio.Queue()
        closing = threading.Event()

        stream = await self._run(
            self._container.logs,
            stdout=True,
            stderr=True,
            stream=True,
            follow=True,
        )

        def read_frames():
            try:
                for frame in stream:
                    loop.call_soon_threadsafe(
                        frames.put_nowait,
                        frame.decode(errors="replace"),
                    )

            except Exception as err:
                if not closing.is_set():
                    loop.call_soon_threadsafe(frames.put_nowait, err)

            finally:
                loop.call_soon_threadsafe(frames.put_nowait, None)

        reader = threading.Thread(target=read_frames, daemon=True)
        reader.start()

        async def iter_frames():
            while (frame := await frames.get()) is not None:
                if isinstance(frame, Exception):
                    raise frame

                yield frame

        try:
            yield iter_frames()

        finally:
            closing.set()
            await self._run(stream.close)

    async def mapped_address(self, port: int) -> tuple[str, int]:
        await self._run(self._container.reload)
        ports: dict = self._container.attrs.get(
            "NetworkSettings", {}
        ).get("Ports") or {}

        bindings = ports.get(f"{port}/tcp")
        if not bindings:
            raise OSError(
                f"Err. - port {port} is not published on {self._handle_id}"
            )

        host = bindings[0].get("HostIp") or "localhost"
        if host in ("0.0.0.0", "::"):
            host = "localhost"

        return host, int(bindings[0]["HostPort"])

    async def close(self) -> None:
        await self._debug("close")
        await self._run(self._container.remove, force=True)

        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)

    async def _debug(self, operation: str):
        await self._logger.log(
            RuntimeDebug(
                message=f"Running {operation} on container {self._handle_id}",
                handle_id=self._handle_id,
                operation=operation,
            )
        )
