"""
Diagnostics snapshot fetcher.

Fetches one member's ``/debug/vars`` document and decodes its raft status.
Every failure is reported as "unavailable" (None); the caller decides what
to do about it.
"""

import logging
from typing import Optional

import requests

from .errors import SnapshotDecodeError
from .raft_status import ConsensusSnapshot

logger = logging.getLogger(__name__)


class StatusFetcher:
    """Fetches raft status snapshots over a preconfigured HTTP session."""

    def __init__(self, session: requests.Session, status_path: str = '/debug/vars',
                 timeout: float = 5.0):
        """
        Initialize the fetcher.

        Args:
            session: Preconfigured HTTP transport (TLS, auth)
            status_path: Path of the diagnostics resource on each member
            timeout: Request timeout in seconds
        """
        self.session = session
        self.status_path = '/' + status_path.lstrip('/')
        self.timeout = timeout

    def status_url(self, endpoint: str) -> str:
        return endpoint.rstrip('/') + self.status_path

    def fetch(self, endpoint: str) -> Optional[ConsensusSnapshot]:
        """
        Issue a single request to the member's diagnostics resource.

        Args:
            endpoint: Member client URL, e.g. http://10.0.0.1:2379

        Returns:
            The decoded snapshot, or None if the member is unavailable
        """
        url = self.status_url(endpoint)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.debug(f"Member {endpoint} unreachable: {e}")
            return None

        try:
            if response.status_code != 200:
                logger.debug(f"Member {endpoint} returned status {response.status_code}")
                return None

            try:
                document = response.json()
            except ValueError as e:
                logger.debug(f"Member {endpoint} returned invalid JSON: {e}")
                return None

            try:
                return ConsensusSnapshot.from_vars(document)
            except SnapshotDecodeError as e:
                logger.debug(f"Member {endpoint} returned an unexpected raft status: {e}")
                return None
        finally:
            response.close()
