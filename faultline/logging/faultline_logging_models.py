from .models import Entry, LogLevel


class ClusterDebug(Entry, kw_only=True):
    cluster_size: int
    action: str
    level: LogLevel = LogLevel.DEBUG


class ClusterInfo(Entry, kw_only=True):
    cluster_size: int
    action: str
    level: LogLevel = LogLevel.INFO


class ClusterError(Entry, kw_only=True):
    cluster_size: int
    action: str
    level: LogLevel = LogLevel.ERROR


class MemberActionDebug(Entry, kw_only=True):
    member: str
    role: str
    action: str
    level: LogLevel = LogLevel.DEBUG


class MemberActionInfo(Entry, kw_only=True):
    member: str
    role: str
    action: str
    level: LogLevel = LogLevel.INFO


class MemberActionError(Entry, kw_only=True):
    member: str
    role: str
    action: str
    error: str
    level: LogLevel = LogLevel.ERROR


class ReadinessDebug(Entry, kw_only=True):
    query: str
    baseline: str
    timeout: float
    level: LogLevel = LogLevel.DEBUG


class ReadinessTrace(Entry, kw_only=True):
    query: str
    baseline: str
    line: str
    level: LogLevel = LogLevel.TRACE


class RuntimeDebug(Entry, kw_only=True):
    handle_id: str
    operation: str
    level: LogLevel = LogLevel.DEBUG
