"""Tests for the uvicorn runner's shutdown watchdog."""

from __future__ import annotations

import signal
import threading

import pytest

import favorites_api.server as server_module
from favorites_api.server import GracefulServer, build_server
from tests.conftest import make_settings


class FakeTimer:
    instances: list[FakeTimer] = []

    def __init__(self, interval: float, function) -> None:
        self.interval = interval
        self.function = function
        self.daemon = False
        self.started = False
        self.cancelled = False
        FakeTimer.instances.append(self)

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True


@pytest.fixture
def server(monkeypatch: pytest.MonkeyPatch) -> GracefulServer:
    FakeTimer.instances = []
    monkeypatch.setattr(server_module.threading, "Timer", FakeTimer)
    return build_server(make_settings(shutdown_grace_seconds=3, port=3100))


def test_build_server_applies_settings(server: GracefulServer) -> None:
    assert server.config.port == 3100
    assert server.config.timeout_graceful_shutdown == 3
    assert server.grace_seconds == 3


def test_signal_starts_single_watchdog(server: GracefulServer) -> None:
    server.handle_exit(signal.SIGTERM, None)
    server.handle_exit(signal.SIGINT, None)

    assert server.should_exit is True
    assert len(FakeTimer.instances) == 1
    timer = FakeTimer.instances[0]
    assert timer.interval == 3
    assert timer.started is True
    assert timer.daemon is True


def test_watchdog_can_be_cancelled(server: GracefulServer) -> None:
    server.begin_shutdown()
    server.cancel_watchdog()

    assert FakeTimer.instances[0].cancelled is True


def test_loop_exception_triggers_shutdown(server: GracefulServer) -> None:
    class _Loop:
        def default_exception_handler(self, context) -> None:
            return None

    server._handle_loop_exception(_Loop(), {"message": "Task exception was never retrieved"})

    assert server.should_exit is True
    assert len(FakeTimer.instances) == 1


def test_thread_exception_triggers_shutdown(
    server: GracefulServer, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(threading, "excepthook", threading.excepthook)
    server_module._install_thread_excepthook(server)

    def _boom() -> None:
        raise RuntimeError("worker failed")

    worker = threading.Thread(target=_boom, name="worker")
    worker.start()
    worker.join()

    assert server.should_exit is True
    assert len(FakeTimer.instances) == 1


def test_main_exits_with_failure_when_server_crashes(
    server: GracefulServer, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _crash() -> None:
        raise RuntimeError("loop died")

    monkeypatch.setattr(threading, "excepthook", threading.excepthook)
    monkeypatch.setattr(server, "run", _crash)
    monkeypatch.setattr(server_module, "build_server", lambda: server)
    server.begin_shutdown()

    assert server_module.main() == 1
    assert FakeTimer.instances[0].cancelled is True
