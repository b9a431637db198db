"""
Fault injection for containerised database clusters.

- Member identity that survives container restarts
- Random selection of members with exclusions
- Parallel stop, kill, pause, isolate and their recoveries
- Log-timestamp readiness waits and connectivity probes
"""

from faultline.cluster.errors import (
    ClusterError as ClusterError,
    ClusterTimeoutError as ClusterTimeoutError,
    ErrorCategory as ErrorCategory,
    ErrorSeverity as ErrorSeverity,
    InvalidMemberStateError as InvalidMemberStateError,
    InvalidRequestError as InvalidRequestError,
    LogContractViolationError as LogContractViolationError,
    LogMessageNotFoundError as LogMessageNotFoundError,
    MemberActionError as MemberActionError,
    MemberUnreachableError as MemberUnreachableError,
)
from faultline.cluster.handles import (
    ContainerHandle as ContainerHandle,
    DockerContainerHandle as DockerContainerHandle,
    LogChannel as LogChannel,
)
from faultline.cluster.members import (
    Member as Member,
    MemberRole as MemberRole,
    MemberState as MemberState,
)
from faultline.cluster.selection import choose_random as choose_random
from faultline.cluster.readiness import (
    WaitForLogMessageAfter as WaitForLogMessageAfter,
)
from faultline.cluster.probes import (
    BoltHandshakeProbe as BoltHandshakeProbe,
    ConnectivityProbe as ConnectivityProbe,
)
from faultline.cluster.lifecycle import (
    LifecycleConfig as LifecycleConfig,
    LifecycleEngine as LifecycleEngine,
)
from faultline.cluster.cluster import (
    Cluster as Cluster,
    ProxyResource as ProxyResource,
)
