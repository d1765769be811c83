"""
Raft status snapshots as reported by a member's diagnostics endpoint.

A member serves a JSON document whose ``raft.status`` object describes its
own view of the consensus state:

    {
        "raft.status": {
            "id": "8e9e05c52164694d",
            "term": 2,
            "vote": "8e9e05c52164694d",
            "commit": 100,
            "lead": "8e9e05c52164694d",
            "raftState": "StateLeader",
            "progress": {
                "8e9e05c52164694d": {"match": 100, "next": 101, "state": "ProgressStateReplicate"}
            }
        }
    }

Snapshots are immutable so two of them taken a moment apart can be diffed
without any copying or locking.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping

from .errors import SnapshotDecodeError

RAFT_STATUS_KEY = 'raft.status'
MAX_UINT64 = 2 ** 64 - 1


class ConsensusRole(Enum):
    """Role tags as they appear in ``raftState``."""

    FOLLOWER = "StateFollower"
    CANDIDATE = "StateCandidate"
    LEADER = "StateLeader"
    PRE_CANDIDATE = "StatePreCandidate"


@dataclass(frozen=True)
class FollowerProgress:
    """The leader's view of how far one member's log has been replicated."""

    match_index: int = 0
    next_index: int = 0
    state: str = ""


@dataclass(frozen=True)
class ConsensusSnapshot:
    """One member's self-reported consensus state at a point in time."""

    member_id: str
    term: int = 0
    vote: str = ""
    leader_id: str = ""
    commit_index: int = 0
    consensus_role: str = ""
    follower_progress: Mapping[str, FollowerProgress] = field(default_factory=dict)

    def __post_init__(self):
        # Freeze the progress map as well, the dataclass alone only freezes attributes
        object.__setattr__(self, 'follower_progress',
                           MappingProxyType(dict(self.follower_progress)))

    @property
    def is_leader(self) -> bool:
        """A snapshot is a leader snapshot only when the member names itself as leader."""
        return self.leader_id == self.member_id

    @classmethod
    def from_vars(cls, document: Any) -> 'ConsensusSnapshot':
        """
        Decode a snapshot from a full diagnostics document.

        Args:
            document: Parsed JSON body of the diagnostics resource

        Returns:
            ConsensusSnapshot instance

        Raises:
            SnapshotDecodeError: If the document does not match the schema
        """
        if not isinstance(document, dict) or RAFT_STATUS_KEY not in document:
            raise SnapshotDecodeError(f"document has no '{RAFT_STATUS_KEY}' object")
        return cls.from_status(document[RAFT_STATUS_KEY])

    @classmethod
    def from_status(cls, status: Any) -> 'ConsensusSnapshot':
        """Decode a snapshot from the ``raft.status`` object itself."""
        if not isinstance(status, dict):
            raise SnapshotDecodeError(f"'{RAFT_STATUS_KEY}' must be an object, got {type(status).__name__}")

        progress = status.get('progress') or {}
        if not isinstance(progress, dict):
            raise SnapshotDecodeError("'progress' must be an object")

        follower_progress = {}
        for member_id, entry in progress.items():
            if entry is None:
                entry = {}
            if not isinstance(entry, dict):
                raise SnapshotDecodeError(f"progress entry for {member_id} must be an object")
            follower_progress[member_id] = FollowerProgress(
                match_index=_uint64(entry, 'match'),
                next_index=_uint64(entry, 'next'),
                state=_string(entry, 'state'),
            )

        return cls(
            member_id=_string(status, 'id'),
            term=_uint64(status, 'term'),
            vote=_string(status, 'vote'),
            leader_id=_string(status, 'lead'),
            commit_index=_uint64(status, 'commit'),
            consensus_role=_string(status, 'raftState'),
            follower_progress=follower_progress,
        )

    def to_status(self) -> Dict[str, Any]:
        """Encode back into the ``raft.status`` wire shape."""
        return {
            'id': self.member_id,
            'term': self.term,
            'vote': self.vote,
            'commit': self.commit_index,
            'lead': self.leader_id,
            'raftState': self.consensus_role,
            'progress': {
                member_id: {'match': p.match_index, 'next': p.next_index, 'state': p.state}
                for member_id, p in self.follower_progress.items()
            },
        }


def _uint64(obj: Dict[str, Any], key: str) -> int:
    value = obj.get(key)
    if value is None:
        return 0
    # bool is an int subclass but never a valid index
    if isinstance(value, bool) or not isinstance(value, int):
        raise SnapshotDecodeError(f"'{key}' must be an unsigned integer, got {value!r}")
    if value < 0 or value > MAX_UINT64:
        raise SnapshotDecodeError(f"'{key}' out of uint64 range: {value}")
    return value


def _string(obj: Dict[str, Any], key: str) -> str:
    value = obj.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise SnapshotDecodeError(f"'{key}' must be a string, got {value!r}")
    return value
