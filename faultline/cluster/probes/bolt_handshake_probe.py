import asyncio
from urllib.parse import urlsplit


BOLT_MAGIC_PREAMBLE = bytes([0x60, 0x60, 0xB0, 0x17])
BOLT_PROPOSED_VERSIONS = bytes([
    0x00, 0x04, 0x04, 0x05,
    0x00, 0x00, 0x00, 0x04,
    0x00, 0x00, 0x00, 0x03,
    0x00, 0x00, 0x00, 0x00,
])


class BoltHandshakeProbe:
    """
    Opens a TCP connection and performs the Bolt version handshake. A
    member passes when it agrees on any proposed version.
    """

    def __init__(self, default_port: int = 7687) -> None:
        self._default_port = default_port

    async def probe(self, address: str, timeout: float) -> bool:
        parts = urlsplit(address)
        host = parts.hostname or "localhost"
        port = parts.port or self._default_port

        try:
            return await asyncio.wait_for(
                self._handshake(host, port),
                timeout=timeout,
            )

        except (asyncio.TimeoutError, OSError, asyncio.IncompleteReadError):
            return False

    async def _handshake(self, host: str, port: int) -> bool:
        reader, writer = await asyncio.open_connection(host, port)

        try:
            writer.write(BOLT_MAGIC_PREAMBLE + BOLT_PROPOSED_VERSIONS)
            await writer.drain()

            agreed_version = await reader.readexactly(4)
            return agreed_version != bytes(4)

        finally:
            writer.close()
            await writer.wait_closed()
