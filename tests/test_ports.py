"""Tests for port conflict detection and resolution."""

import contextlib
import io
import socket

import pytest

from perch.errors import PortDeclined
from perch.server.ports import (
    accept_free_port,
    create_listener,
    decline_port,
    find_free_port,
    interactive_port_policy,
    is_port_in_use,
    resolve_port,
)

HOST = "127.0.0.1"


@pytest.fixture
def occupied_port():
    """A port with a live listener on it for the duration of the test."""
    with contextlib.closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as sock:
        sock.bind((HOST, 0))
        sock.listen(1)
        yield sock.getsockname()[1]


class _Tty(io.StringIO):
    def isatty(self) -> bool:
        return True


class TestProbe:
    def test_free_port_not_in_use(self) -> None:
        assert not is_port_in_use(HOST, find_free_port(HOST))

    def test_occupied_port_in_use(self, occupied_port) -> None:
        assert is_port_in_use(HOST, occupied_port)

    def test_create_listener(self) -> None:
        port = find_free_port(HOST)
        with contextlib.closing(create_listener(HOST, port)) as sock:
            assert sock.getsockname()[1] == port
            assert is_port_in_use(HOST, port)


class TestResolvePort:
    def test_free_port_returned_unchanged(self) -> None:
        port = find_free_port(HOST)
        assert resolve_port(HOST, port, decline_port) == port

    def test_policy_not_consulted_when_free(self) -> None:
        def policy(requested: int) -> int:
            raise AssertionError("policy called")

        port = find_free_port(HOST)
        assert resolve_port(HOST, port, policy) == port

    def test_accept_policy_picks_other_port(self, occupied_port) -> None:
        port = resolve_port(HOST, occupied_port, accept_free_port(HOST))
        assert port != occupied_port
        assert not is_port_in_use(HOST, port)

    def test_decline_raises(self, occupied_port) -> None:
        with pytest.raises(PortDeclined) as exc_info:
            resolve_port(HOST, occupied_port, decline_port)
        assert exc_info.value.port == occupied_port

    def test_policy_receives_requested_port(self, occupied_port) -> None:
        seen: list[int] = []

        def policy(requested: int) -> int:
            seen.append(requested)
            return 12345

        assert resolve_port(HOST, occupied_port, policy) == 12345
        assert seen == [occupied_port]


class TestInteractivePolicy:
    @pytest.mark.parametrize("answer", ["\n", "y\n", "YES\n"])
    def test_accepts(self, answer: str) -> None:
        out = io.StringIO()
        policy = interactive_port_policy(HOST, stdin=_Tty(answer), stdout=out)
        port = policy(9000)
        assert isinstance(port, int)
        assert "Something is already running at port 9000" in out.getvalue()
        assert f"(port {port})" in out.getvalue()

    def test_declines(self) -> None:
        policy = interactive_port_policy(HOST, stdin=_Tty("n\n"), stdout=io.StringIO())
        assert policy(9000) is None

    def test_non_interactive_declines_without_prompt(self) -> None:
        out = io.StringIO()
        policy = interactive_port_policy(HOST, stdin=io.StringIO("y\n"), stdout=out)
        assert policy(9000) is None
        assert "Would you like" not in out.getvalue()
