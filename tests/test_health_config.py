import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
import json
import tempfile
import unittest
from unittest.mock import patch

from raft_health.health_config import (
    DEFAULT_CONFIG,
    HealthCheckConfig,
    create_config,
    load_config_from_file,
)


class TestHealthCheckConfig(unittest.TestCase):

    def test_defaults(self):
        self.assertEqual(DEFAULT_CONFIG.probe_interval, 1.0)
        self.assertEqual(DEFAULT_CONFIG.retry_interval, 10.0)
        self.assertEqual(DEFAULT_CONFIG.repeat_interval, 10.0)
        self.assertEqual(DEFAULT_CONFIG.status_path, '/debug/vars')
        self.assertFalse(DEFAULT_CONFIG.verify_leader)

    def test_endpoints_string_is_split(self):
        config = HealthCheckConfig(endpoints="http://a:2379, http://b:2379,,")
        self.assertEqual(config.endpoints, ["http://a:2379", "http://b:2379"])

    def test_rejects_unknown_discovery_mode(self):
        with self.assertRaises(ValueError):
            HealthCheckConfig(discovery_mode="dns")

    def test_rejects_negative_intervals(self):
        with self.assertRaises(ValueError):
            HealthCheckConfig(retry_interval=-1)

    def test_rejects_null_string_fields(self):
        for name in ('discovery_mode', 'status_path', 'members_path', 'log_level', 'log_format'):
            with self.subTest(field=name):
                with self.assertRaises(ValueError):
                    create_config({name: None})

    def test_rejects_endpoints_that_are_not_a_list(self):
        for value in (None, 2379, ["http://a:2379", None]):
            with self.subTest(endpoints=value):
                with self.assertRaises(ValueError):
                    HealthCheckConfig(endpoints=value)

    def test_from_env_overrides_base(self):
        env = {
            'RAFT_HEALTH_ENDPOINTS': 'http://x:2379,http://y:2379',
            'RAFT_HEALTH_PROBE_INTERVAL': '0.5',
            'RAFT_HEALTH_INSECURE_SKIP_TLS_VERIFY': 'true',
        }
        base = HealthCheckConfig(repeat_interval=30.0)
        with patch.dict(os.environ, env, clear=True):
            config = HealthCheckConfig.from_env(base)

        self.assertEqual(config.endpoints, ['http://x:2379', 'http://y:2379'])
        self.assertEqual(config.probe_interval, 0.5)
        self.assertTrue(config.insecure_skip_tls_verify)
        self.assertEqual(config.repeat_interval, 30.0)

    def test_override_ignores_none(self):
        config = HealthCheckConfig(log_level="INFO").override(log_level=None, request_timeout=2.0)
        self.assertEqual(config.log_level, "INFO")
        self.assertEqual(config.request_timeout, 2.0)

    def test_to_dict_round_trips_through_create_config(self):
        config = HealthCheckConfig(endpoints=["http://a:2379"], verify_leader=True)
        self.assertEqual(create_config(config.to_dict()), config)

    def test_create_config_rejects_unknown_keys(self):
        with self.assertRaises(ValueError):
            create_config({"endpoint": "http://a:2379"})


class TestLoadConfigFromFile(unittest.TestCase):

    def _write(self, suffix, content):
        handle = tempfile.NamedTemporaryFile('w', suffix=suffix, delete=False)
        handle.write(content)
        handle.close()
        self.addCleanup(os.unlink, handle.name)
        return handle.name

    def test_json(self):
        path = self._write('.json', json.dumps({"endpoints": ["http://a:2379"], "probe_interval": 2}))
        self.assertEqual(load_config_from_file(path), {"endpoints": ["http://a:2379"], "probe_interval": 2})

    def test_yaml(self):
        path = self._write('.yaml', "endpoints:\n  - http://a:2379\ndiscovery_mode: members\n")
        config = create_config(load_config_from_file(path))
        self.assertEqual(config.endpoints, ["http://a:2379"])
        self.assertEqual(config.discovery_mode, "members")

    def test_empty_yaml(self):
        path = self._write('.yml', "")
        self.assertEqual(load_config_from_file(path), {})

    def test_invalid_yaml(self):
        path = self._write('.yaml', "endpoints: [unclosed\n")
        with self.assertRaises(ValueError):
            load_config_from_file(path)

    def test_unsupported_format(self):
        path = self._write('.ini', "[raft]\n")
        with self.assertRaises(ValueError):
            load_config_from_file(path)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_config_from_file('/nonexistent/raft-health.json')


if __name__ == '__main__':
    unittest.main()
