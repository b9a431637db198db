import time
from typing import Awaitable, Callable

from faultline.cluster import MemberState

from tests.framework.results.action_outcome import ActionOutcome
from tests.framework.runtime.scenario_runtime import ScenarioRuntime
from tests.framework.specs.action_spec import ActionSpec

TargetResolver = Callable[[ScenarioRuntime, dict], Awaitable[list[str] | str | int]]


def _required(params: dict, key: str, target: str):
    value = params.get(key)
    if not value:
        raise ValueError(f"Target '{target}' requires '{key}'")

    return value


async def _selection(runtime: ScenarioRuntime, params: dict) -> list[str]:
    members = runtime.resolve_selection(_required(params, "selection", "selection"))
    return sorted(member.external_address for member in members)


async def _members_in_state(runtime: ScenarioRuntime, params: dict) -> list[str]:
    state = MemberState(_required(params, "state", "members_in_state").upper())
    matching = [
        member.external_address
        for member in runtime.resolve_members(params)
        if await member.get_state() == state
    ]

    return sorted(matching)


async def _selection_overlap(runtime: ScenarioRuntime, params: dict) -> list[str]:
    match params.get("selections"):
        case [first, second]:
            overlap = runtime.resolve_selection(first) & runtime.resolve_selection(second)
            return sorted(member.external_address for member in overlap)
        case _:
            raise ValueError("Target 'selection_overlap' requires two selections")


async def _error(runtime: ScenarioRuntime, params: dict) -> str:
    alias = _required(params, "error", "error")
    if alias not in runtime.errors:
        raise ValueError(f"No error saved as '{alias}'")

    return type(runtime.errors[alias]).__name__


async def _debug_log_contains(runtime: ScenarioRuntime, params: dict) -> list[str]:
    text = _required(params, "text", "debug_log_contains")
    matching = [
        member.external_address
        for member in runtime.resolve_members(params)
        if text in await member.get_debug_log()
    ]

    return sorted(matching)


async def _cluster_size(runtime: ScenarioRuntime, params: dict) -> int:
    return len(runtime.require_cluster().cluster.get_all_members())


async def _core_uris(runtime: ScenarioRuntime, params: dict) -> list[str]:
    return sorted(runtime.require_cluster().cluster.get_uris())


TARGETS: dict[str, TargetResolver] = {
    "selection": _selection,
    "members_in_state": _members_in_state,
    "selection_overlap": _selection_overlap,
    "error": _error,
    "debug_log_contains": _debug_log_contains,
    "cluster_size": _cluster_size,
    "core_uris": _core_uris,
}


def _check_members(target: str, members: list[str], params: dict) -> None:
    count = len(members)
    bounds = {
        "equals_count": lambda expected: count == expected,
        "min_count": lambda expected: count >= expected,
        "max_count": lambda expected: count <= expected,
    }

    for key, holds in bounds.items():
        if (expected := params.get(key)) is not None:
            assert holds(int(expected)), (
                f"{target}: {key} {expected} not met, found {count} {members}"
            )

    if (contains := params.get("contains")) is not None:
        assert contains in members, f"{target}: {contains} not in {members}"


async def run(runtime: ScenarioRuntime, action: ActionSpec) -> ActionOutcome:
    start = time.monotonic()
    target = _required(action.params, "target", "assert_condition")
    if target not in TARGETS:
        raise ValueError(
            f"Unknown assert target '{target}', expected one of {', '.join(sorted(TARGETS))}"
        )

    value = await TARGETS[target](runtime, action.params)

    if isinstance(value, list):
        _check_members(target, value, action.params)

    elif "equals" in action.params:
        assert value == action.params["equals"], (
            f"{target}: expected {action.params['equals']!r}, found {value!r}"
        )

    else:
        raise ValueError(f"Target '{target}' requires 'equals'")

    return ActionOutcome(
        name=action.action_type,
        succeeded=True,
        duration_seconds=time.monotonic() - start,
        members=value if isinstance(value, list) else [],
        details=target,
    )
