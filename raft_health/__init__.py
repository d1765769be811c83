"""
Raft Cluster Health Package

This package checks whether a Raft cluster is making progress by sampling
the leader's self-reported status twice and comparing the snapshots.

Key Components:
- raft_status: Immutable raft status snapshots and wire decoding
- status_fetcher: Fetches one member's diagnostics snapshot over HTTP
- leader_locator: Finds the member currently claiming leadership
- progress_evaluator: Compares two leader snapshots into a health report
- cluster_monitor: One-shot and continuous monitoring loop
- membership: Static and members-API endpoint resolution
"""

from .errors import (
    ClusterHealthError,
    ConfigurationChangedError,
    ConflictingLeadersError,
    MembershipError,
    NoLeaderError,
    SnapshotDecodeError,
)
from .raft_status import ConsensusRole, ConsensusSnapshot, FollowerProgress
from .status_fetcher import StatusFetcher
from .leader_locator import LeaderLocator
from .progress_evaluator import HealthReport, MemberProgress, evaluate
from .cluster_monitor import ClusterHealthMonitor, MonitorState
from .membership import MembersApiResolver, StaticMembershipResolver
from .health_config import HealthCheckConfig

__version__ = '0.1.0'

__all__ = [
    'ClusterHealthError',
    'ConfigurationChangedError',
    'ConflictingLeadersError',
    'MembershipError',
    'NoLeaderError',
    'SnapshotDecodeError',
    'ConsensusRole',
    'ConsensusSnapshot',
    'FollowerProgress',
    'StatusFetcher',
    'LeaderLocator',
    'HealthReport',
    'MemberProgress',
    'evaluate',
    'ClusterHealthMonitor',
    'MonitorState',
    'MembersApiResolver',
    'StaticMembershipResolver',
    'HealthCheckConfig',
]
