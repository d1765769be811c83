"""
Error types and exit codes for the cluster health checker.

Only NoLeaderError and ConfigurationChangedError are ever reported to the
operator; per-endpoint fetch failures are absorbed by the leader locator.
"""

from typing import Optional, Sequence


EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_BAD_ARGS = 2
EXIT_SERVER_ERROR = 4


class ClusterHealthError(Exception):
    """Base class for all health checking errors."""


class SnapshotDecodeError(ClusterHealthError):
    """The diagnostics document did not match the expected raft.status schema."""


class NoLeaderError(ClusterHealthError):
    """No endpoint in the probed set answered as a self-declared leader."""

    def __init__(self, endpoints: Sequence[str]):
        self.endpoints = list(endpoints)
        super().__init__(f"no leader found among {self.endpoints}")


class ConflictingLeadersError(ClusterHealthError):
    """More than one member claims leadership at the same time."""

    def __init__(self, claims):
        # claims: {endpoint: leader_id}
        self.claims = dict(claims)
        super().__init__(f"conflicting leadership claims: {self.claims}")


class ConfigurationChangedError(ClusterHealthError):
    """A tracked member disappeared from the follower set between two snapshots."""

    def __init__(self, member_id: str):
        self.member_id = member_id
        super().__init__(f"member {member_id} left the follower set during health checking")


class MembershipError(ClusterHealthError):
    """The member list could not be fetched from any seed endpoint."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)


class ProbeCancelled(ClusterHealthError):
    """The cancellation token was set while endpoints were still being probed."""
