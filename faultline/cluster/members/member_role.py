from enum import Enum


class MemberRole(Enum):
    CORE = "CORE"
    REPLICA = "REPLICA"
    UNKNOWN = "UNKNOWN"
