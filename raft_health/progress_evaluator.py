"""
Replication progress evaluation.

Compares two snapshots of the same leader taken a short interval apart.
The cluster is making progress when the commit index advanced; a member is
making progress when its match index advanced.
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

from .errors import ConfigurationChangedError
from .raft_status import ConsensusSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MemberProgress:
    """Match index movement of one member between the two snapshots."""

    member_id: str
    match_before: int
    match_after: int

    @property
    def healthy(self) -> bool:
        return self.match_after > self.match_before

    def render(self) -> str:
        if self.healthy:
            return (f"member {self.member_id} is healthy: raft is making progress "
                    f"[match: {self.match_before}->{self.match_after}]")
        return (f"member {self.member_id} is unhealthy: raft is not making progress "
                f"[match: {self.match_before}->{self.match_after}]")


@dataclass(frozen=True)
class HealthReport:
    """Outcome of one evaluation cycle."""

    leader_id: str
    commit_before: int
    commit_after: int
    members: Tuple[MemberProgress, ...] = ()

    @property
    def healthy(self) -> bool:
        return self.commit_after > self.commit_before

    def summary(self) -> str:
        if self.healthy:
            return (f"cluster is healthy: raft is making progress "
                    f"[commit index: {self.commit_before}->{self.commit_after}]")
        return f"cluster is unhealthy: raft is not making progress [commit index: {self.commit_before}]"

    def member_lines(self) -> List[str]:
        # Sorted by the rendered text, not by member id, so "member 10" precedes "member 9"
        return sorted(member.render() for member in self.members)

    def lines(self) -> List[str]:
        return [self.summary(), f"leader is {self.leader_id}"] + self.member_lines()


def evaluate(before: ConsensusSnapshot, after: ConsensusSnapshot) -> HealthReport:
    """
    Compare two snapshots of the same leader.

    Args:
        before: Leader snapshot taken first
        after: Leader snapshot taken after the probe interval

    Returns:
        HealthReport for the cycle

    Raises:
        ConfigurationChangedError: If a member tracked in ``before`` is missing from ``after``
    """
    members = []
    for member_id, progress_before in before.follower_progress.items():
        progress_after = after.follower_progress.get(member_id)
        if progress_after is None:
            logger.error(f"Member {member_id} disappeared from the follower set of leader {before.leader_id}")
            raise ConfigurationChangedError(member_id)
        members.append(MemberProgress(
            member_id=member_id,
            match_before=progress_before.match_index,
            match_after=progress_after.match_index,
        ))

    report = HealthReport(
        leader_id=before.leader_id,
        commit_before=before.commit_index,
        commit_after=after.commit_index,
        members=tuple(members),
    )
    logger.debug(f"Evaluated leader {report.leader_id}: commit {report.commit_before}->{report.commit_after}, "
                 f"{sum(1 for m in members if not m.healthy)} of {len(members)} members stalled")
    return report
