from typing import Protocol


class ConnectivityProbe(Protocol):
    """Protocol for checking that a member accepts client connections."""

    async def probe(self, address: str, timeout: float) -> bool:
        """True when a client can connect to ``address`` within ``timeout``."""
        ...
