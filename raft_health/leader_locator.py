"""
Leader discovery over an ordered set of member endpoints.

The first endpoint, in caller order, whose snapshot names itself as leader
wins. Leadership claims are not cross-checked unless ``verify_unique`` is
set, so during a split-brain or stale-state window a stale leader that is
listed first can be chosen.
"""

import logging
import threading
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import ConflictingLeadersError, NoLeaderError, ProbeCancelled
from .raft_status import ConsensusSnapshot
from .status_fetcher import StatusFetcher

logger = logging.getLogger(__name__)


class LeaderLocator:
    """Finds the member currently claiming leadership."""

    def __init__(self, fetcher: StatusFetcher, verify_unique: bool = False):
        """
        Initialize the locator.

        Args:
            fetcher: Snapshot fetcher used to probe each endpoint
            verify_unique: Probe every endpoint and reject conflicting leadership claims
        """
        self.fetcher = fetcher
        self.verify_unique = verify_unique

    def locate(self, endpoints: Sequence[str],
               cancel_event: Optional[threading.Event] = None) -> Tuple[str, ConsensusSnapshot]:
        """
        Return the first endpoint whose snapshot self-reports leadership.

        Args:
            endpoints: Member client URLs in probe order
            cancel_event: Cancellation token checked before every fetch

        Returns:
            Tuple of (endpoint, leader snapshot)

        Raises:
            NoLeaderError: If no endpoint answered as leader
            ConflictingLeadersError: If verify_unique is set and members disagree
            ProbeCancelled: If the token was set before all needed endpoints were probed
        """
        if self.verify_unique:
            return self._locate_verified(endpoints, cancel_event)

        for endpoint in endpoints:
            _check_cancelled(cancel_event)
            snapshot = self.fetcher.fetch(endpoint)
            if snapshot is None:
                continue
            if not snapshot.is_leader:
                logger.debug(f"Member {snapshot.member_id} at {endpoint} is not the leader "
                             f"(believes {snapshot.leader_id or 'none'})")
                continue
            logger.info(f"Found leader {snapshot.member_id} at {endpoint}")
            return endpoint, snapshot

        logger.warning(f"No leader found among {list(endpoints)}")
        raise NoLeaderError(endpoints)

    def _locate_verified(self, endpoints: Sequence[str],
                         cancel_event: Optional[threading.Event]) -> Tuple[str, ConsensusSnapshot]:
        claims: List[Tuple[str, ConsensusSnapshot]] = []
        for endpoint in endpoints:
            _check_cancelled(cancel_event)
            snapshot = self.fetcher.fetch(endpoint)
            if snapshot is not None and snapshot.is_leader:
                claims.append((endpoint, snapshot))

        if not claims:
            logger.warning(f"No leader found among {list(endpoints)}")
            raise NoLeaderError(endpoints)

        claimed: Dict[str, str] = {ep: snap.member_id for ep, snap in claims}
        if len(set(claimed.values())) > 1:
            logger.error(f"Members disagree about leadership: {claimed}")
            raise ConflictingLeadersError(claimed)

        endpoint, snapshot = claims[0]
        logger.info(f"Found leader {snapshot.member_id} at {endpoint}")
        return endpoint, snapshot


def _check_cancelled(cancel_event: Optional[threading.Event]):
    if cancel_event is not None and cancel_event.is_set():
        logger.info("Leader lookup cancelled")
        raise ProbeCancelled("leader lookup cancelled")
