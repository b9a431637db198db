from enum import Enum


class MemberState(Enum):
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"
    PAUSED = "PAUSED"
    ISOLATED = "ISOLATED"
