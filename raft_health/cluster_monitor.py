"""
Cluster health monitoring loop.

One evaluation cycle locates the leader, waits a short interval, probes the
same leader again and compares the two snapshots. In one-shot mode the
cycle runs once and its outcome becomes the exit status; in continuous
mode cycles repeat until the cancellation token is set.

States per cycle:

    PROBE_INITIAL -> WAIT_INTERVAL -> PROBE_FOLLOWUP -> EVALUATE
        -> REPORT_AND_EXIT | REPORT_AND_REPEAT

Every pause waits on the cancellation token, and the leader locator checks
the token before each endpoint fetch, so cancellation takes effect between
any two probes.
"""

import logging
import sys
import threading
from enum import Enum
from typing import Optional, Sequence, TextIO

from .errors import (
    EXIT_FAILURE,
    EXIT_SUCCESS,
    ConfigurationChangedError,
    ConflictingLeadersError,
    NoLeaderError,
    ProbeCancelled,
)
from .leader_locator import LeaderLocator
from .progress_evaluator import HealthReport, evaluate

logger = logging.getLogger(__name__)


class MonitorState(Enum):
    """States of one evaluation cycle."""

    PROBE_INITIAL = "probe_initial"
    WAIT_INTERVAL = "wait_interval"
    PROBE_FOLLOWUP = "probe_followup"
    EVALUATE = "evaluate"
    REPORT_AND_EXIT = "report_and_exit"
    REPORT_AND_REPEAT = "report_and_repeat"


class ClusterHealthMonitor:
    """Runs evaluation cycles against a fixed set of member endpoints."""

    def __init__(self, locator: LeaderLocator, endpoints: Sequence[str],
                 cancel_event: Optional[threading.Event] = None,
                 probe_interval: float = 1.0, retry_interval: float = 10.0,
                 repeat_interval: float = 10.0, output: Optional[TextIO] = None):
        """
        Initialize the monitor.

        Args:
            locator: Leader locator used for both probes
            endpoints: Member client URLs, in probe order
            cancel_event: Cancellation token; set it to stop a continuous run
            probe_interval: Pause between the two snapshots, in seconds
            retry_interval: Pause after a failed probe in continuous mode
            repeat_interval: Pause between two reports in continuous mode
            output: Stream the reports are written to (stdout by default)
        """
        self.locator = locator
        self.endpoints = list(endpoints)
        self.cancel_event = cancel_event or threading.Event()
        self.probe_interval = probe_interval
        self.retry_interval = retry_interval
        self.repeat_interval = repeat_interval
        self.output = output

        self.state = MonitorState.PROBE_INITIAL
        self.cycles = 0
        self.last_report: Optional[HealthReport] = None

    def cancel(self):
        """Request the loop to stop at its next pause or probe."""
        self.cancel_event.set()

    def run(self, forever: bool = False) -> int:
        """
        Run evaluation cycles.

        Args:
            forever: Keep evaluating until cancelled instead of running once

        Returns:
            Process exit status
        """
        self.state = MonitorState.PROBE_INITIAL
        leader_endpoint = None
        before = after = None

        while True:
            if self.cancel_event.is_set():
                logger.info(f"Health monitoring cancelled after {self.cycles} cycles")
                return EXIT_SUCCESS

            if self.state is MonitorState.PROBE_INITIAL:
                self.cycles += 1
                try:
                    leader_endpoint, before = self.locator.locate(self.endpoints, cancel_event=self.cancel_event)
                except ProbeCancelled:
                    continue
                except NoLeaderError:
                    self._emit(f"cluster may be unhealthy: failed to connect [{' '.join(self.endpoints)}]")
                    if not self._retry_or_stop(forever):
                        return EXIT_FAILURE
                    continue
                except ConflictingLeadersError as e:
                    self._emit(f"cluster may be unhealthy: {e}")
                    if not self._retry_or_stop(forever):
                        return EXIT_FAILURE
                    continue
                self.state = MonitorState.WAIT_INTERVAL

            elif self.state is MonitorState.WAIT_INTERVAL:
                self._pause(self.probe_interval)
                self.state = MonitorState.PROBE_FOLLOWUP

            elif self.state is MonitorState.PROBE_FOLLOWUP:
                try:
                    _, after = self.locator.locate([leader_endpoint], cancel_event=self.cancel_event)
                except ProbeCancelled:
                    continue
                except (NoLeaderError, ConflictingLeadersError):
                    self._emit("cluster is unhealthy")
                    if not self._retry_or_stop(forever):
                        return EXIT_FAILURE
                    continue
                self.state = MonitorState.EVALUATE

            elif self.state is MonitorState.EVALUATE:
                try:
                    self.last_report = evaluate(before, after)
                except ConfigurationChangedError:
                    self._emit("Cluster configuration changed during health checking. Please retry.")
                    return EXIT_FAILURE
                before = after = None
                if forever:
                    self.state = MonitorState.REPORT_AND_REPEAT
                else:
                    self.state = MonitorState.REPORT_AND_EXIT

            elif self.state is MonitorState.REPORT_AND_EXIT:
                self._print_report(self.last_report)
                return EXIT_SUCCESS if self.last_report.healthy else EXIT_FAILURE

            elif self.state is MonitorState.REPORT_AND_REPEAT:
                self._print_report(self.last_report)
                self._pause(self.repeat_interval)
                self.state = MonitorState.PROBE_INITIAL

    def _retry_or_stop(self, forever: bool) -> bool:
        """Back off before restarting the cycle; False means the run is over."""
        if not forever:
            return False
        logger.info(f"Retrying in {self.retry_interval}s")
        self._pause(self.retry_interval)
        self.state = MonitorState.PROBE_INITIAL
        return True

    def _pause(self, seconds: float):
        # Returns early when cancelled; the loop head then sees the token
        self.cancel_event.wait(seconds)

    def _print_report(self, report: HealthReport):
        for line in report.lines():
            self._emit(line)

    def _emit(self, line: str):
        stream = self.output or sys.stdout
        print(line, file=stream, flush=True)
