from dataclasses import dataclass

from faultline.cluster.readiness import TIMESTAMP_LENGTH
from faultline.env import Env, TimeParser


@dataclass(slots=True)
class LifecycleConfig:
    """Timeouts and log markers used by lifecycle actions."""

    start_timeout: float = 180.0
    stop_timeout: float = 120.0
    poll_interval: float = 0.5
    start_marker: str = "======== Neo4j"
    stopped_marker: str = "Stopped."
    ready_marker: str = "Bolt enabled on"
    timestamp_length: int = TIMESTAMP_LENGTH

    @classmethod
    def from_env(cls, env: Env):
        parser = TimeParser()

        return cls(
            start_timeout=parser.parse(env.FAULTLINE_START_TIMEOUT),
            stop_timeout=parser.parse(env.FAULTLINE_STOP_TIMEOUT),
            poll_interval=parser.parse(env.FAULTLINE_STATE_POLL_INTERVAL),
            start_marker=env.FAULTLINE_START_MARKER,
            stopped_marker=env.FAULTLINE_STOPPED_MARKER,
            ready_marker=env.FAULTLINE_READY_MARKER,
        )
