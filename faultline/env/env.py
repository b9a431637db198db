from __future__ import annotations
import psutil
from pydantic import BaseModel, StrictInt, StrictStr
from typing import Callable, Dict, Literal, Union

PrimaryType = Union[str, int, float, bytes, bool]


class Env(BaseModel):
    FAULTLINE_START_TIMEOUT: StrictStr = "3m"
    FAULTLINE_STOP_TIMEOUT: StrictStr = "2m"
    FAULTLINE_STATE_POLL_INTERVAL: StrictStr = "0.5s"
    FAULTLINE_START_MARKER: StrictStr = "======== Neo4j"
    FAULTLINE_STOPPED_MARKER: StrictStr = "Stopped."
    FAULTLINE_READY_MARKER: StrictStr = "Bolt enabled on"
    FAULTLINE_BOLT_PORT: StrictInt = 7687
    FAULTLINE_RUNTIME_MAX_THREADS: StrictInt = psutil.cpu_count(logical=False) or 1
    FAULTLINE_LOG_LEVEL: Literal[
        "trace", "debug", "info", "warn", "error", "critical", "fatal"
    ] = "info"
    FAULTLINE_DEBUG_LOG_PATH: StrictStr = "/logs/debug.log"
    FAULTLINE_QUERY_LOG_PATH: StrictStr = "/logs/query.log"

    @classmethod
    def types_map(cls) -> Dict[str, Callable[[str], PrimaryType]]:
        return {
            "FAULTLINE_START_TIMEOUT": str,
            "FAULTLINE_STOP_TIMEOUT": str,
            "FAULTLINE_STATE_POLL_INTERVAL": str,
            "FAULTLINE_START_MARKER": str,
            "FAULTLINE_STOPPED_MARKER": str,
            "FAULTLINE_READY_MARKER": str,
            "FAULTLINE_BOLT_PORT": int,
            "FAULTLINE_RUNTIME_MAX_THREADS": int,
            "FAULTLINE_LOG_LEVEL": str,
            "FAULTLINE_DEBUG_LOG_PATH": str,
            "FAULTLINE_QUERY_LOG_PATH": str,
        }
