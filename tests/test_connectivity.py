"""Tests for telemetry connectivity tracking."""
from datetime import datetime, timezone

from core.connectivity import ConnectivityMonitor
from core.models.connection_status import ConnectionStatus


class TestConnectivityMonitor:

    def test_starts_disconnected(self):
        monitor = ConnectivityMonitor()
        assert monitor.status == ConnectionStatus.DISCONNECTED
        assert not monitor.is_connected()

    def test_success_connects(self):
        monitor = ConnectivityMonitor()
        at = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

        monitor.record_success(at)

        assert monitor.is_connected()
        assert monitor.last_success_at == at

    def test_failure_counts(self):
        monitor = ConnectivityMonitor()
        monitor.record_success()
        monitor.record_failure("timeout")
        monitor.record_failure("timeout")

        assert monitor.status == ConnectionStatus.ERROR
        assert monitor.consecutive_failures == 2
        assert monitor.total_failures == 2
        assert monitor.last_error == "timeout"

    def test_recovery_resets_consecutive_failures(self):
        monitor = ConnectivityMonitor()
        monitor.record_failure("timeout")
        monitor.record_success()

        assert monitor.status == ConnectionStatus.CONNECTED
        assert monitor.consecutive_failures == 0
        assert monitor.total_failures == 1
        assert monitor.last_error is None

    def test_transition_logged_once(self, caplog):
        monitor = ConnectivityMonitor()
        with caplog.at_level("WARNING", logger="core.connectivity"):
            monitor.record_failure("timeout")
            monitor.record_failure("timeout")
            monitor.record_failure("timeout")

        assert len([r for r in caplog.records if r.levelname == "WARNING"]) == 1

    def test_reset(self):
        monitor = ConnectivityMonitor()
        monitor.record_success()
        monitor.record_failure("boom")

        monitor.reset()

        assert monitor == ConnectivityMonitor()
