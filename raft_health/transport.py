"""HTTP transport shared by the status fetcher and the membership resolver."""

import logging

import requests

from .health_config import HealthCheckConfig

logger = logging.getLogger(__name__)


def build_session(config: HealthCheckConfig) -> requests.Session:
    """
    Build a preconfigured requests session from the transport settings.

    Args:
        config: Health check configuration

    Returns:
        requests.Session with TLS and auth settings applied
    """
    if bool(config.cert_file) != bool(config.key_file):
        raise ValueError("cert_file and key_file must be given together")

    session = requests.Session()
    session.headers.update({'Accept': 'application/json'})

    if config.insecure_skip_tls_verify:
        session.verify = False
    elif config.ca_file:
        session.verify = config.ca_file

    if config.cert_file:
        session.cert = (config.cert_file, config.key_file)

    if config.username:
        session.auth = (config.username, config.password or '')

    logger.debug(f"HTTP transport ready (verify={session.verify}, client_cert={bool(config.cert_file)})")
    return session
