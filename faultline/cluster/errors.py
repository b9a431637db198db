"""
Cluster Orchestration Error Hierarchy

Categorized exceptions raised while injecting faults into a cluster.
Errors are classified by:
- Category: which part of a request went wrong
- Severity: whether retrying can help

Callers can catch a whole category via the intermediate classes, or
catch ClusterError to handle every orchestration failure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from faultline.cluster.members import Member


def _describe(error: BaseException) -> str:
    detail = str(error)
    if detail:
        return f"{type(error).__name__}: {detail}"

    return type(error).__name__


class ErrorSeverity(Enum):
    TRANSIENT = auto()
    """Retrying the operation later is likely to succeed."""

    DEGRADED = auto()
    """Some members reached the requested state, others did not."""

    FATAL = auto()
    """The request itself is wrong and retrying will not help."""


class ErrorCategory(Enum):
    INVALID_REQUEST = auto()
    """Bad arguments or a member in the wrong state for the action."""

    TIMEOUT = auto()
    """A bounded wait elapsed before its condition held."""

    CONTRACT = auto()
    """Observed output broke an assumption the orchestrator relies on."""

    PARTIAL_FAILURE = auto()
    """A fan-out action failed on one or more members."""

    CONNECTIVITY = auto()
    """A member logged readiness but does not answer on its endpoint."""


@dataclass(eq=False)
class ClusterError(Exception):
    """
    Base for every failure raised by cluster orchestration.

    ``context`` holds structured details such as member addresses or
    timeouts. A wrapped ``cause`` is also chained as ``__cause__``.

    Example:
        raise ClusterTimeoutError(
            "Member did not stop",
            member="neo4j://core-1:7687",
            timeout=120.0,
        )
    """

    message: str
    category: ErrorCategory
    severity: ErrorSeverity
    context: dict[str, Any] = field(default_factory=dict)
    cause: BaseException | None = None

    def __post_init__(self):
        super().__init__(self.message)
        if self.cause is not None:
            self.__cause__ = self.cause

    def __str__(self) -> str:
        labels = [self.category.name.lower(), self.severity.name.lower()]
        details = ", ".join(labels)
        if self.context:
            details += "; " + ", ".join(
                f"{key}={value}" for key, value in self.context.items()
            )

        text = f"{self.message} ({details})"
        if self.cause is not None:
            text += f" caused by {_describe(self.cause)}"

        return text

    @property
    def retryable(self) -> bool:
        return self.severity == ErrorSeverity.TRANSIENT

    def with_context(self, **kwargs: Any) -> ClusterError:
        self.context.update(kwargs)
        return self

    def log_fields(self) -> dict[str, Any]:
        """Flat fields for a structured log entry."""
        return {
            **self.context,
            'error': type(self).__name__,
            'message': self.message,
            'category': self.category.name.lower(),
            'severity': self.severity.name.lower(),
            'cause': _describe(self.cause) if self.cause else None,
        }


# =============================================================================
# Invalid Request Errors - caller asked for something impossible
# =============================================================================

class InvalidRequestError(ClusterError):
    """
    The request cannot be satisfied as stated.

    Examples: asking for more members than remain after exclusions, a
    negative count, a query containing a newline.
    """

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        **context: Any,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.INVALID_REQUEST,
            severity=ErrorSeverity.FATAL,
            context=context,
            cause=cause,
        )


class InvalidMemberStateError(InvalidRequestError):
    """The member is in a state that does not permit the action."""


# =============================================================================
# Timeout Errors - a bounded wait elapsed
# =============================================================================

class ClusterTimeoutError(ClusterError):
    """A wait on one or more members exceeded its deadline."""

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        **context: Any,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.TIMEOUT,
            severity=ErrorSeverity.TRANSIENT,
            context=context,
            cause=cause,
        )


class LogMessageNotFoundError(ClusterTimeoutError):
    """No qualifying log line appeared before the deadline."""

    def __init__(
        self,
        query: str,
        timeout: float,
        cause: BaseException | None = None,
    ):
        super().__init__(
            f"Timed out waiting for log output matching '{query}' after {timeout:.2f}s",
            cause=cause,
        )
        self.query = query
        self.timeout = timeout


# =============================================================================
# Contract Errors - observed output is not what the oracle assumes
# =============================================================================

class LogContractViolationError(ClusterError):
    """A log line matched the query but carries no timestamp prefix."""

    def __init__(
        self,
        query: str,
        line: str,
    ):
        super().__init__(
            message=(
                f"Log line matching '{query}' does not start with a timestamp "
                "so it cannot be ordered against the baseline"
            ),
            category=ErrorCategory.CONTRACT,
            severity=ErrorSeverity.FATAL,
            context={'line': line},
        )
        self.query = query
        self.line = line


# =============================================================================
# Aggregated Errors - fan-out actions
# =============================================================================

class MemberActionError(ClusterError):
    """
    A fan-out action failed on one or more members.

    Every failure is kept on ``failures`` keyed by member. The first
    failure is chained as the cause.
    """

    def __init__(
        self,
        action: str,
        failures: dict[Member, BaseException],
    ):
        addresses = sorted(member.external_address for member in failures)
        first_failure = next(iter(failures.values()), None)

        super().__init__(
            message=f"{action} failed on {len(failures)} member(s): {addresses}",
            category=ErrorCategory.PARTIAL_FAILURE,
            severity=ErrorSeverity.DEGRADED,
            context={'action': action},
            cause=first_failure,
        )
        self.action = action
        self.failures = failures


class MemberUnreachableError(ClusterError):
    """Members logged that they are ready but refuse the handshake."""

    def __init__(
        self,
        hosts: list[str],
        cause: BaseException | None = None,
    ):
        super().__init__(
            message=(
                "Bolt port does not respond to handshake after logging "
                f"that it is available on {hosts}"
            ),
            category=ErrorCategory.CONNECTIVITY,
            severity=ErrorSeverity.DEGRADED,
            context={'hosts': hosts},
            cause=cause,
        )
        self.hosts = hosts
