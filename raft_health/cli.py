#!/usr/bin/env python3
"""
Command line entry point for the Raft cluster health checker.

Usage:
    raft-health --endpoints http://10.0.0.1:2379,http://10.0.0.2:2379 cluster-health
    raft-health --discovery-mode members --endpoints http://10.0.0.1:2379 cluster-health --forever
    raft-health --config health.yaml cluster-health
"""

import argparse
import logging
import signal
import sys
import threading
from typing import List, Optional

from .cluster_monitor import ClusterHealthMonitor
from .errors import EXIT_BAD_ARGS, EXIT_FAILURE, EXIT_SERVER_ERROR, MembershipError
from .health_config import (
    DISCOVERY_MEMBERS,
    DISCOVERY_STATIC,
    HealthCheckConfig,
    create_config,
    load_config_from_file,
)
from .leader_locator import LeaderLocator
from .membership import MembersApiResolver, StaticMembershipResolver
from .status_fetcher import StatusFetcher
from .transport import build_session

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='raft-health',
        description="Check the health of a Raft cluster through its members' diagnostics endpoints",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  raft-health --endpoints http://127.0.0.1:2379 cluster-health
  raft-health --discovery-mode members --endpoints http://127.0.0.1:2379 cluster-health --forever
        """
    )
    parser.add_argument("--config", help="JSON or YAML configuration file")
    parser.add_argument("--endpoints", help="Comma separated member client URLs")
    parser.add_argument("--discovery-mode", choices=[DISCOVERY_STATIC, DISCOVERY_MEMBERS],
                        help="Probe the endpoints as given, or list members through them")
    parser.add_argument("--cert", dest="cert_file", help="Client TLS certificate file")
    parser.add_argument("--key", dest="key_file", help="Client TLS key file")
    parser.add_argument("--cacert", dest="ca_file", help="CA bundle used to verify members")
    parser.add_argument("--insecure-skip-tls-verify", action="store_true", default=None,
                        help="Skip TLS certificate verification")
    parser.add_argument("--username", help="Basic auth user, as user or user:password")
    parser.add_argument("--timeout", type=float, dest="request_timeout",
                        help="Per request timeout in seconds")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: WARNING)")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.required = True
    health = subparsers.add_parser("cluster-health", help="check the health of the cluster")
    health.add_argument("--forever", action="store_true",
                        help="check the health every 10 seconds until CTRL+C")
    health.add_argument("--verify-leader", action="store_true", default=None,
                        help="probe every member and fail on conflicting leadership claims")
    return parser


def load_config(args: argparse.Namespace) -> HealthCheckConfig:
    """Resolve configuration: file, then environment, then command line flags."""
    base = create_config(load_config_from_file(args.config)) if args.config else HealthCheckConfig()
    config = HealthCheckConfig.from_env(base)

    username, password = args.username, None
    if username and ':' in username:
        username, password = username.split(':', 1)

    return config.override(
        endpoints=args.endpoints,
        discovery_mode=args.discovery_mode,
        cert_file=args.cert_file,
        key_file=args.key_file,
        ca_file=args.ca_file,
        insecure_skip_tls_verify=args.insecure_skip_tls_verify,
        username=username,
        password=password,
        request_timeout=args.request_timeout,
        verify_leader=args.verify_leader,
        log_level=args.log_level,
    )


def setup_signal_handlers(cancel_event: threading.Event):
    """Turn SIGINT/SIGTERM into a cancellation of the monitoring loop."""
    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, stopping health checks")
        cancel_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def cluster_health(config: HealthCheckConfig, forever: bool) -> int:
    """Run the cluster-health command with a resolved configuration."""
    session = build_session(config)

    if config.discovery_mode == DISCOVERY_MEMBERS:
        resolver = MembersApiResolver(session, config.endpoints, config.members_path,
                                      config.request_timeout)
    else:
        resolver = StaticMembershipResolver(config.endpoints)

    # TODO: refresh the member list between cycles when running with --forever
    try:
        endpoints = resolver.resolve()
    except MembershipError as e:
        print("cluster may be unhealthy: failed to list members")
        logger.error(f"{e} ({e.cause})" if e.cause else str(e))
        return EXIT_SERVER_ERROR

    cancel_event = threading.Event()
    if forever:
        setup_signal_handlers(cancel_event)

    fetcher = StatusFetcher(session, config.status_path, config.request_timeout)
    monitor = ClusterHealthMonitor(
        LeaderLocator(fetcher, verify_unique=config.verify_leader),
        endpoints,
        cancel_event=cancel_event,
        probe_interval=config.probe_interval,
        retry_interval=config.retry_interval,
        repeat_interval=config.repeat_interval,
    )
    try:
        return monitor.run(forever=forever)
    finally:
        session.close()


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args)
    except (OSError, ValueError, TypeError) as e:
        print(f"raft-health: invalid configuration: {e}", file=sys.stderr)
        return EXIT_BAD_ARGS

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.WARNING),
        format=config.log_format
    )

    if args.command == "cluster-health":
        try:
            return cluster_health(config, args.forever)
        except KeyboardInterrupt:
            return EXIT_FAILURE
        except ValueError as e:
            print(f"raft-health: {e}", file=sys.stderr)
            return EXIT_BAD_ARGS

    parser.print_help()
    return EXIT_BAD_ARGS


if __name__ == "__main__":
    sys.exit(main())
