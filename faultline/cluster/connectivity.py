"""
Connectivity checks layered on top of a cluster.

A member passes when both its routed external address and its current
direct address answer the connectivity probe.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, TypeVar

from .cluster import Cluster
from .errors import ClusterTimeoutError, InvalidRequestError, MemberUnreachableError
from .members import Member
from .probes import ConnectivityProbe

T = TypeVar("T")


async def _member_addresses(members: Iterable[Member]) -> list[str]:
    targets = list(members)
    direct_addresses = await asyncio.gather(*[
        member.get_direct_address() for member in targets
    ], return_exceptions=True)

    unpublished = [
        (member, result) for member, result in zip(targets, direct_addresses)
        if isinstance(result, Exception)
    ]

    if len(unpublished) > 0:
        raise MemberUnreachableError(
            sorted(member.external_address for member, _ in unpublished),
            cause=unpublished[0][1],
        )

    return [
        *direct_addresses,
        *[member.external_address for member in targets],
    ]


async def verify_all(
    members: Iterable[Member],
    probe: ConnectivityProbe,
    timeout: float = 10.0,
) -> None:
    addresses = await _member_addresses(members)
    if len(addresses) == 0:
        raise InvalidRequestError("No members to verify connectivity against.")

    reachable = await asyncio.gather(*[
        probe.probe(address, timeout) for address in addresses
    ])

    unreachable = sorted(
        address for address, is_reachable in zip(addresses, reachable)
        if not is_reachable
    )

    if len(unreachable) > 0:
        raise MemberUnreachableError(unreachable)


async def verify_any(
    members: Iterable[Member],
    probe: ConnectivityProbe,
    timeout: float = 10.0,
) -> str:
    """Return the first address, direct before routed, that answers."""
    addresses = await _member_addresses(members)
    if len(addresses) == 0:
        raise InvalidRequestError("No members to verify connectivity against.")

    for address in addresses:
        if await probe.probe(address, timeout):
            return address

    raise MemberUnreachableError(addresses)


async def eventually(
    call: Callable[[], Awaitable[T]],
    timeout: float,
    description: str,
    poll_interval: float = 0.1,
) -> T:
    """
    Retry ``call`` until it succeeds or ``timeout`` elapses. The last
    failure is chained to the timeout error.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    last_error: Exception | None = None

    while loop.time() < deadline:
        try:
            return await call()

        except Exception as err:
            last_error = err

        await asyncio.sleep(poll_interval)

    raise ClusterTimeoutError(
        f"Timed out performing: {description}",
        cause=last_error,
        attempted=last_error is not None,
    )


async def continuously(
    call: Callable[[], Awaitable[object]],
    duration: float,
    description: str,
    poll_interval: float = 0.1,
) -> int:
    """
    Keep calling ``call`` for ``duration`` seconds. Any failure is raised
    immediately. Returns how many times ``call`` succeeded.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + duration
    count = 0

    while loop.time() < deadline:
        await call()
        count += 1
        await asyncio.sleep(poll_interval)

    if count == 0:
        raise ClusterTimeoutError(
            f"Timeout elapsed before first attempt: {description}",
        )

    return count


async def verify_eventually_all(
    cluster: Cluster,
    probe: ConnectivityProbe,
    timeout: float,
) -> None:
    await eventually(
        lambda: verify_all(cluster.get_all_members(), probe),
        timeout,
        "Verifying all members have connectivity",
    )


async def retry_once_with_wait_for_connectivity(
    cluster: Cluster,
    probe: ConnectivityProbe,
    connectivity_timeout: float,
    call: Callable[[], Awaitable[T]],
    retry_once: bool = True,
) -> T:
    """
    Wait for full connectivity, then run ``call``. On failure connectivity
    is awaited again and ``call`` is retried exactly once.
    """
    await verify_eventually_all(cluster, probe, connectivity_timeout)

    try:
        return await call()

    except Exception:
        if not retry_once:
            raise

        return await retry_once_with_wait_for_connectivity(
            cluster,
            probe,
            connectivity_timeout,
            call,
            retry_once=False,
        )
