"""
Membership resolution.

Turns the configured endpoints into the ordered list of member client URLs
that the health checker probes. The list is resolved once per invocation
and is not refreshed during a continuous run; membership changes only show
up as a configuration change between two snapshots.
"""

import logging
from typing import List, Sequence

import requests

from .errors import MembershipError

logger = logging.getLogger(__name__)


class StaticMembershipResolver:
    """Uses the configured endpoints as the member list."""

    def __init__(self, endpoints: Sequence[str]):
        self.endpoints = list(endpoints)

    def resolve(self) -> List[str]:
        # An empty list is passed through; leader lookup reports it as no leader
        return list(self.endpoints)


class MembersApiResolver:
    """
    Lists members through the ``/v2/members`` API of any seed endpoint.

    The response has the shape::

        {"members": [{"id": "...", "name": "...", "peerURLs": [...], "clientURLs": [...]}]}

    Client URLs of all members are flattened in response order.
    """

    def __init__(self, session: requests.Session, seeds: Sequence[str],
                 members_path: str = '/v2/members', timeout: float = 5.0):
        """
        Initialize the resolver.

        Args:
            session: Preconfigured HTTP transport
            seeds: Endpoints to ask for the member list, tried in order
            members_path: Path of the members API
            timeout: Request timeout in seconds
        """
        self.session = session
        self.seeds = list(seeds)
        self.members_path = '/' + members_path.lstrip('/')
        self.timeout = timeout

    def resolve(self) -> List[str]:
        """
        Return the client URLs of every cluster member.

        Raises:
            MembershipError: If no seed returned a usable member list
        """
        last_error = None
        for seed in self.seeds:
            url = seed.rstrip('/') + self.members_path
            try:
                response = self.session.get(url, timeout=self.timeout)
                response.raise_for_status()
                members = response.json().get('members')
            except (requests.exceptions.RequestException, ValueError, AttributeError) as e:
                logger.debug(f"Listing members via {seed} failed: {e}")
                last_error = e
                continue

            if not isinstance(members, list):
                logger.debug(f"Seed {seed} returned no member list")
                continue

            client_urls = []
            for member in members:
                if not isinstance(member, dict):
                    continue
                client_urls.extend(member.get('clientURLs') or [])
            logger.info(f"Resolved {len(members)} members ({len(client_urls)} client URLs) via {seed}")
            return client_urls

        raise MembershipError(f"failed to list members from {self.seeds}", cause=last_error)
