"""
Configuration module for the cluster health checker.

Settings are resolved from, in increasing priority: dataclass defaults, a
JSON/YAML configuration file, ``RAFT_HEALTH_*`` environment variables and
finally command line flags.
"""

import json
import os
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Optional

import yaml

DISCOVERY_STATIC = 'static'
DISCOVERY_MEMBERS = 'members'


@dataclass
class HealthCheckConfig:
    """Configuration for the cluster health checker."""

    # Cluster endpoints (client URLs). With members discovery these are the seeds.
    endpoints: List[str] = field(default_factory=lambda: ['http://127.0.0.1:2379'])
    discovery_mode: str = DISCOVERY_STATIC

    # Diagnostics endpoint
    status_path: str = '/debug/vars'
    members_path: str = '/v2/members'

    # Timing, in seconds
    probe_interval: float = 1.0
    retry_interval: float = 10.0
    repeat_interval: float = 10.0
    request_timeout: float = 5.0

    # Transport settings
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    ca_file: Optional[str] = None
    insecure_skip_tls_verify: bool = False
    username: Optional[str] = None
    password: Optional[str] = None

    # Leader discovery
    verify_leader: bool = False

    # Logging settings
    log_level: str = "WARNING"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    def __post_init__(self):
        if isinstance(self.endpoints, str):
            self.endpoints = _split_endpoints(self.endpoints)
        if not isinstance(self.endpoints, list) or not all(isinstance(ep, str) for ep in self.endpoints):
            raise ValueError(f"endpoints must be a list of URLs, got {self.endpoints!r}")
        # An empty YAML value loads as None
        for name in ('discovery_mode', 'status_path', 'members_path', 'log_level', 'log_format'):
            if not isinstance(getattr(self, name), str):
                raise ValueError(f"{name} must be a string, got {getattr(self, name)!r}")
        if self.discovery_mode not in (DISCOVERY_STATIC, DISCOVERY_MEMBERS):
            raise ValueError(f"Unsupported discovery mode: {self.discovery_mode}")
        for name in ('probe_interval', 'retry_interval', 'repeat_interval', 'request_timeout'):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")

    @classmethod
    def from_env(cls, base: Optional['HealthCheckConfig'] = None) -> 'HealthCheckConfig':
        """
        Create configuration from environment variables.

        Args:
            base: Configuration providing the values for unset variables

        Returns:
            HealthCheckConfig instance
        """
        base = base or cls()
        return cls(
            endpoints=_split_endpoints(os.getenv('RAFT_HEALTH_ENDPOINTS', ','.join(base.endpoints))),
            discovery_mode=os.getenv('RAFT_HEALTH_DISCOVERY_MODE', base.discovery_mode),
            status_path=os.getenv('RAFT_HEALTH_STATUS_PATH', base.status_path),
            members_path=os.getenv('RAFT_HEALTH_MEMBERS_PATH', base.members_path),
            probe_interval=float(os.getenv('RAFT_HEALTH_PROBE_INTERVAL', base.probe_interval)),
            retry_interval=float(os.getenv('RAFT_HEALTH_RETRY_INTERVAL', base.retry_interval)),
            repeat_interval=float(os.getenv('RAFT_HEALTH_REPEAT_INTERVAL', base.repeat_interval)),
            request_timeout=float(os.getenv('RAFT_HEALTH_REQUEST_TIMEOUT', base.request_timeout)),
            cert_file=os.getenv('RAFT_HEALTH_CERT_FILE', base.cert_file),
            key_file=os.getenv('RAFT_HEALTH_KEY_FILE', base.key_file),
            ca_file=os.getenv('RAFT_HEALTH_CA_FILE', base.ca_file),
            insecure_skip_tls_verify=_env_bool('RAFT_HEALTH_INSECURE_SKIP_TLS_VERIFY',
                                               base.insecure_skip_tls_verify),
            username=os.getenv('RAFT_HEALTH_USERNAME', base.username),
            password=os.getenv('RAFT_HEALTH_PASSWORD', base.password),
            verify_leader=_env_bool('RAFT_HEALTH_VERIFY_LEADER', base.verify_leader),
            log_level=os.getenv('RAFT_HEALTH_LOG_LEVEL', base.log_level),
            log_format=os.getenv('RAFT_HEALTH_LOG_FORMAT', base.log_format),
        )

    def override(self, **changes) -> 'HealthCheckConfig':
        """Return a copy with every non-None keyword applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


DEFAULT_CONFIG = HealthCheckConfig()


def load_config_from_file(config_path: str) -> Dict[str, Any]:
    """
    Load configuration from a file.

    Supports JSON and YAML formats.

    Args:
        config_path: Path to the configuration file

    Returns:
        Configuration dictionary
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as f:
        if config_path.endswith('.json'):
            data = json.load(f)
        elif config_path.endswith('.yaml') or config_path.endswith('.yml'):
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {config_path}: {e}") from e
        else:
            raise ValueError(f"Unsupported configuration file format: {config_path}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {config_path}")
    return data


def create_config(config_dict: Dict[str, Any]) -> HealthCheckConfig:
    """
    Create health check configuration from dictionary.

    Args:
        config_dict: Configuration dictionary

    Returns:
        HealthCheckConfig instance
    """
    known = {f.name for f in fields(HealthCheckConfig)}
    unknown = set(config_dict) - known
    if unknown:
        raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
    return HealthCheckConfig(**config_dict)


def _split_endpoints(value: str) -> List[str]:
    return [ep.strip() for ep in value.split(',') if ep.strip()]


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')

