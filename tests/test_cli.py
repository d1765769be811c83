import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
import io
import json
import signal
import tempfile
import threading
import unittest
from contextlib import redirect_stdout, redirect_stderr
from unittest.mock import patch

from raft_health import cli
from raft_health.errors import MembershipError
from raft_health.health_config import HealthCheckConfig


class TestArgumentParsing(unittest.TestCase):

    def test_cluster_health_flags(self):
        args = cli.build_parser().parse_args(
            ["--endpoints", "http://a:2379", "cluster-health", "--forever", "--verify-leader"])
        self.assertEqual(args.command, "cluster-health")
        self.assertTrue(args.forever)
        self.assertTrue(args.verify_leader)

    def test_command_is_required(self):
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                cli.build_parser().parse_args([])
        self.assertEqual(ctx.exception.code, 2)

    def test_flags_override_file_and_environment(self):
        with tempfile.NamedTemporaryFile('w', suffix='.json', delete=False) as handle:
            json.dump({"endpoints": ["http://file:2379"], "request_timeout": 9, "log_level": "INFO"}, handle)
        self.addCleanup(os.unlink, handle.name)

        args = cli.build_parser().parse_args(
            ["--config", handle.name, "--timeout", "3", "--username", "root:secret", "cluster-health"])
        with patch.dict(os.environ, {"RAFT_HEALTH_ENDPOINTS": "http://env:2379"}, clear=True):
            config = cli.load_config(args)

        self.assertEqual(config.endpoints, ["http://env:2379"])
        self.assertEqual(config.request_timeout, 3.0)
        self.assertEqual(config.log_level, "INFO")
        self.assertEqual((config.username, config.password), ("root", "secret"))


class TestClusterHealthCommand(unittest.TestCase):

    def setUp(self):
        self.config = HealthCheckConfig(endpoints=["http://a:2379", "http://b:2379"],
                                        probe_interval=0, retry_interval=0, repeat_interval=0)

    @patch("raft_health.cli.ClusterHealthMonitor")
    def test_one_shot_returns_monitor_status(self, monitor_cls):
        monitor_cls.return_value.run.return_value = 1

        status = cli.cluster_health(self.config, forever=False)

        self.assertEqual(status, 1)
        locator, endpoints = monitor_cls.call_args.args
        self.assertEqual(endpoints, ["http://a:2379", "http://b:2379"])
        self.assertFalse(locator.verify_unique)
        monitor_cls.return_value.run.assert_called_once_with(forever=False)

    @patch("raft_health.cli.signal.signal")
    @patch("raft_health.cli.ClusterHealthMonitor")
    def test_forever_installs_signal_handlers(self, monitor_cls, signal_mock):
        monitor_cls.return_value.run.return_value = 0

        cli.cluster_health(self.config, forever=True)

        installed = {c.args[0] for c in signal_mock.call_args_list}
        self.assertEqual(installed, {signal.SIGINT, signal.SIGTERM})

        # The handler only sets the cancellation token
        handler = signal_mock.call_args_list[0].args[1]
        cancel_event = monitor_cls.call_args.kwargs["cancel_event"]
        self.assertFalse(cancel_event.is_set())
        handler(signal.SIGINT, None)
        self.assertTrue(cancel_event.is_set())

    @patch("raft_health.cli.signal.signal")
    @patch("raft_health.cli.ClusterHealthMonitor")
    def test_one_shot_keeps_default_signal_handling(self, monitor_cls, signal_mock):
        monitor_cls.return_value.run.return_value = 0
        cli.cluster_health(self.config, forever=False)
        signal_mock.assert_not_called()

    @patch("raft_health.cli.MembersApiResolver.resolve", side_effect=MembershipError("failed"))
    def test_member_listing_failure(self, _):
        config = self.config.override(discovery_mode="members")
        out = io.StringIO()
        with redirect_stdout(out):
            status = cli.cluster_health(config, forever=False)

        self.assertEqual(status, 4)
        self.assertEqual(out.getvalue().strip(), "cluster may be unhealthy: failed to list members")

    def test_empty_static_endpoints_is_no_leader(self):
        config = self.config.override(endpoints=[])
        out = io.StringIO()
        with redirect_stdout(out):
            status = cli.cluster_health(config, forever=False)

        self.assertEqual(status, 1)
        self.assertEqual(out.getvalue().strip(), "cluster may be unhealthy: failed to connect []")

    @patch("raft_health.cli.ClusterHealthMonitor")
    def test_members_discovery_feeds_resolved_urls(self, monitor_cls):
        monitor_cls.return_value.run.return_value = 0
        config = self.config.override(discovery_mode="members")
        with patch("raft_health.cli.MembersApiResolver.resolve", return_value=["http://m1", "http://m2"]):
            cli.cluster_health(config, forever=False)

        self.assertEqual(monitor_cls.call_args.args[1], ["http://m1", "http://m2"])


class TestMain(unittest.TestCase):

    @patch("raft_health.cli.cluster_health", return_value=0)
    def test_main_dispatches(self, command):
        with patch.dict(os.environ, {}, clear=True):
            status = cli.main(["--endpoints", "http://a:2379", "--log-level", "DEBUG", "cluster-health"])

        self.assertEqual(status, 0)
        config, forever = command.call_args.args
        self.assertEqual(config.endpoints, ["http://a:2379"])
        self.assertFalse(forever)

    def test_bad_config_file(self):
        err = io.StringIO()
        with redirect_stderr(err):
            status = cli.main(["--config", "/nonexistent/health.json", "cluster-health"])
        self.assertEqual(status, 2)
        self.assertIn("invalid configuration", err.getvalue())

    def test_null_log_level_in_yaml(self):
        with tempfile.NamedTemporaryFile('w', suffix='.yaml', delete=False) as handle:
            handle.write("endpoints:\n  - http://a:2379\nlog_level:\n")
        self.addCleanup(os.unlink, handle.name)

        err = io.StringIO()
        with patch.dict(os.environ, {}, clear=True), redirect_stderr(err):
            status = cli.main(["--config", handle.name, "cluster-health"])
        self.assertEqual(status, 2)
        self.assertIn("log_level must be a string", err.getvalue())

    def test_cert_without_key(self):
        err = io.StringIO()
        with patch.dict(os.environ, {}, clear=True), redirect_stderr(err):
            status = cli.main(["--cert", "client.pem", "cluster-health"])
        self.assertEqual(status, 2)


if __name__ == '__main__':
    unittest.main()
