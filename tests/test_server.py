from __future__ import annotations

from pathlib import Path
import socket
import sys

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from recipe_catalog import server
from recipe_catalog.server import (
    DEFAULT_PORT,
    MAX_PORT,
    MAX_PORT_TRIES,
    PortUnavailableError,
    ServerSettings,
    find_available_port,
    port_is_free,
    settings_from_env,
)


def test_first_free_port_is_used():
    assert find_available_port("127.0.0.1", 3000, is_free=lambda host, port: True) == 3000


def test_busy_ports_are_skipped():
    busy = {3000, 3001, 3002}

    port = find_available_port("127.0.0.1", 3000, is_free=lambda host, port: port not in busy)

    assert port == 3003


def test_last_allowed_attempt_can_succeed():
    port = find_available_port(
        "127.0.0.1", 3000, is_free=lambda host, port: port == 3000 + MAX_PORT_TRIES
    )

    assert port == 3000 + MAX_PORT_TRIES


def test_gives_up_after_attempt_limit():
    tried = []

    def never_free(host, port):
        tried.append(port)
        return False

    with pytest.raises(PortUnavailableError, match="Unable to bind after 10 attempts"):
        find_available_port("127.0.0.1", 3000, is_free=never_free)

    assert tried == list(range(3000, 3000 + MAX_PORT_TRIES + 1))


def test_port_is_free_detects_listener():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as listener:
        listener.bind(("127.0.0.1", 0))
        listener.listen()
        port = listener.getsockname()[1]

        assert port_is_free("127.0.0.1", port) is False


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("PORT", "4100")
    monkeypatch.setenv("HOST", "0.0.0.0")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    assert settings_from_env() == ServerSettings(host="0.0.0.0", port=4100, log_level="DEBUG")


@pytest.mark.parametrize("raw", ["", "not-a-port", "-5", "70000"])
def test_settings_fall_back_to_default_port(monkeypatch, raw):
    monkeypatch.setenv("PORT", raw)
    monkeypatch.setenv("LOG_LEVEL", "chatty")

    settings = settings_from_env()

    assert settings.port == DEFAULT_PORT
    assert settings.log_level == "INFO"


class FakeApp:
    def __init__(self):
        self.calls = []

    def run(self, **kwargs):
        self.calls.append(kwargs)


def test_serve_runs_app_on_selected_port(monkeypatch):
    monkeypatch.setattr(server, "find_available_port", lambda host, port: port + 2)
    app = FakeApp()

    server.serve(app, ServerSettings(host="127.0.0.1", port=5000))

    assert app.calls == [{"host": "127.0.0.1", "port": 5002, "threaded": True, "use_reloader": False}]


def test_serve_exits_when_no_port_binds(monkeypatch):
    def unavailable(host, port):
        raise PortUnavailableError("Unable to bind after 10 attempts.")

    monkeypatch.setattr(server, "find_available_port", unavailable)
    app = FakeApp()

    with pytest.raises(SystemExit) as excinfo:
        server.serve(app, ServerSettings())

    assert excinfo.value.code == 1
    assert app.calls == []


def test_retries_stop_at_highest_port():
    tried = []

    def never_free(host, port):
        tried.append(port)
        return False

    with pytest.raises(PortUnavailableError):
        find_available_port("127.0.0.1", MAX_PORT - 3, is_free=never_free)

    assert tried == [MAX_PORT - 3, MAX_PORT - 2, MAX_PORT - 1, MAX_PORT]


@pytest.mark.parametrize("port", [0, MAX_PORT + 1])
def test_port_outside_range_is_unavailable(port):
    with pytest.raises(PortUnavailableError):
        port_is_free("127.0.0.1", port)


def test_address_not_on_this_host_is_unavailable():
    # 192.0.2.0/24 is reserved for documentation and never assigned locally.
    with pytest.raises(PortUnavailableError, match="Cannot bind"):
        port_is_free("192.0.2.1", 3000)


def test_ipv6_host_is_checked_with_ipv6_socket():
    try:
        with socket.socket(socket.AF_INET6, socket.SOCK_STREAM) as listener:
            listener.bind(("::1", 0))
            listener.listen()
            port = listener.getsockname()[1]

            assert port_is_free("::1", port) is False
    except OSError:
        pytest.skip("IPv6 loopback is not available")


def test_serve_exits_when_bind_address_is_unusable(monkeypatch):
    def unusable(host, port):
        raise PortUnavailableError(f"Cannot bind {host}:{port}")

    monkeypatch.setattr(server, "port_is_free", unusable)
    app = FakeApp()

    with pytest.raises(SystemExit) as excinfo:
        server.serve(app, ServerSettings(host="::", port=5000))

    assert excinfo.value.code == 1
    assert app.calls == []
