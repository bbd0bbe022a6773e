"""
Tests for blobcopy.reliability.error_collector — ordered background error sink.
"""

from __future__ import annotations

import logging
import threading
from unittest.mock import MagicMock

import pytest

from blobcopy.errors import ObjectError
from blobcopy.reliability.error_collector import ErrorCollector


class TestLifecycle:
    def test_not_running_before_start(self):
        assert not ErrorCollector().running

    def test_start_stop(self):
        collector = ErrorCollector().start()
        assert collector.running
        assert collector.stop() == 0
        assert not collector.running

    def test_double_start(self):
        collector = ErrorCollector().start()
        with pytest.raises(RuntimeError):
            collector.start()
        collector.stop()

    def test_restart_after_stop(self):
        """A collector runs once."""
        collector = ErrorCollector().start()
        collector.stop()
        with pytest.raises(RuntimeError, match="cannot be restarted"):
            collector.start()

    def test_stop_without_start(self):
        with pytest.raises(RuntimeError):
            ErrorCollector().stop()

    def test_stop_is_idempotent(self):
        collector = ErrorCollector().start()
        collector.send(ValueError("x"))
        assert collector.stop() == 1
        assert collector.stop() == 1

    def test_send_requires_running(self):
        with pytest.raises(RuntimeError):
            ErrorCollector().send(ValueError("x"))

    def test_send_after_stop(self):
        collector = ErrorCollector().start()
        collector.stop()
        with pytest.raises(RuntimeError):
            collector.send(ValueError("late"))

    def test_drain_thread_exits(self):
        collector = ErrorCollector().start()
        thread = collector._thread
        collector.stop()
        assert not thread.is_alive()


class TestCollecting:
    """Errors are counted and logged in send order."""

    def test_logged_in_order(self):
        log = MagicMock(spec=logging.Logger)
        with ErrorCollector(log=log) as collector:
            for i in range(5):
                collector.send(ObjectError(f"k{i}", "copy", ValueError(i)))

        messages = [call.args[0] for call in log.error.call_args_list]
        assert messages == [f"[copy] k{i}: {i}" for i in range(5)]
        assert collector.count == 5

    def test_send_returns_after_logging(self):
        """When send returns, the error has already been counted."""
        with ErrorCollector(log=MagicMock()) as collector:
            collector.send(ValueError("one"))
            assert collector.count == 1
            collector.send(ValueError("two"))
            assert collector.count == 2

    def test_recent_bounded(self):
        with ErrorCollector(log=MagicMock(), keep=3) as collector:
            for i in range(10):
                collector.send(ValueError(str(i)))
        assert collector.count == 10
        assert [str(e) for e in collector.recent] == ["7", "8", "9"]

    def test_concurrent_senders(self):
        log = MagicMock()
        with ErrorCollector(log=log) as collector:
            threads = [
                threading.Thread(target=lambda: [collector.send(ValueError("x")) for _ in range(20)])
                for _ in range(4)
            ]
            for t in threads:
                t.start()
            for t in threads:
                t.join()
        assert collector.count == 80
        assert log.error.call_count == 80
