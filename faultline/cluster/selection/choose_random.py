import random
from typing import Iterable, TypeVar

from faultline.cluster.errors import InvalidRequestError

T = TypeVar("T")


def choose_random(
    count: int,
    available: Iterable[T],
    exclusions: Iterable[T] | None = None,
    rng: random.Random | None = None,
) -> set[T]:
    """
    Pick ``count`` distinct members uniformly at random from ``available``
    minus ``exclusions``.

    Raises InvalidRequestError when ``count`` is negative or larger than
    the number of remaining candidates.
    """
    if count < 0:
        raise InvalidRequestError(
            "Cannot select a negative number of members.",
            count=count,
        )

    excluded = set(exclusions or ())
    candidates = [member for member in available if member not in excluded]

    if count > len(candidates):
        raise InvalidRequestError(
            "There are not enough valid members in the cluster.",
            requested=count,
            candidates=len(candidates),
        )

    if count == len(candidates):
        return set(candidates)

    if rng is None:
        rng = random.Random()

    selected: set[T] = set()
    while len(selected) < count:
        selected.add(rng.choice(candidates))

    return selected
