"""Port conflict detection and resolution.

Before binding, the bootstrap asks whether the requested port is free.
If it is taken, a *port policy* decides what happens next:

    policy(requested_port) -> substitute port, or None to decline

The interactive policy asks the operator on the terminal; tests and
scripted environments inject a deterministic one. Declining (returning
None or raising ``PortDeclined``) aborts startup silently.
"""

from __future__ import annotations

import contextlib
import errno
import socket
import sys
from collections.abc import Callable
from typing import TextIO, TypeAlias

from perch.errors import PortDeclined


PortPolicy: TypeAlias = Callable[[int], int | None]

# Hosts that mean "every interface"
WILDCARD_HOSTS = frozenset({"0.0.0.0", "::", ""})


def bind_address(host: str) -> tuple[socket.AddressFamily, tuple]:
    """The (family, sockaddr) the server binds for *host*, port left as 0.

    Wildcard hosts bind every interface of their family. Named hosts bind
    the first address they resolve to.
    """
    if host in WILDCARD_HOSTS:
        if host == "::":
            return socket.AF_INET6, ("::", 0, 0, 0)
        return socket.AF_INET, ("0.0.0.0", 0)
    family, _, _, _, sockaddr = socket.getaddrinfo(host, 0, type=socket.SOCK_STREAM)[0]
    return family, sockaddr


def _new_socket(family: socket.AddressFamily) -> socket.socket:
    sock = socket.socket(family, socket.SOCK_STREAM)
    if sys.platform != "win32":
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    return sock


def create_listener(host: str, port: int, *, backlog: int = 2048) -> socket.socket:
    """Bind and listen on (*host*, *port*). The caller owns the socket."""
    family, sockaddr = bind_address(host)
    sock = _new_socket(family)
    try:
        sock.bind((sockaddr[0], port, *sockaddr[2:]))
        sock.listen(backlog)
    except OSError:
        sock.close()
        raise
    sock.set_inheritable(True)
    return sock


def is_port_in_use(host: str, port: int) -> bool:
    """True if something already listens on *port* for *host*.

    Probes by binding the same address the server will bind. Errors
    other than "address in use" (an unresolvable host, a privileged
    port) propagate.
    """
    family, sockaddr = bind_address(host)
    with contextlib.closing(_new_socket(family)) as sock:
        try:
            sock.bind((sockaddr[0], port, *sockaddr[2:]))
        except OSError as exc:
            if exc.errno == errno.EADDRINUSE:
                return True
            raise
    return False


def find_free_port(host: str) -> int:
    """Ask the OS for a free ephemeral port on *host*."""
    family, sockaddr = bind_address(host)
    with contextlib.closing(socket.socket(family, socket.SOCK_STREAM)) as sock:
        sock.bind((sockaddr[0], 0, *sockaddr[2:]))
        return sock.getsockname()[1]


def resolve_port(host: str, port: int, policy: PortPolicy) -> int:
    """Return *port* if free, else the substitute *policy* picks.

    Raises ``PortDeclined`` when the policy declines.
    """
    if not is_port_in_use(host, port):
        return port
    chosen = policy(port)
    if chosen is None:
        raise PortDeclined(port)
    return chosen


# -- Policies --


def accept_free_port(host: str) -> PortPolicy:
    """Policy that always takes the next free port the OS offers."""

    def policy(requested: int) -> int:  # noqa: ARG001
        return find_free_port(host)

    return policy


def decline_port(requested: int) -> None:  # noqa: ARG001
    """Policy that never substitutes a port."""
    return None


def interactive_port_policy(
    host: str,
    *,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> PortPolicy:
    """Policy that asks the operator before using another port.

    Without an interactive terminal there is nobody to ask: the conflict
    is reported as a decline.
    """
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    def policy(requested: int) -> int | None:
        if not stdin.isatty():
            stdout.write(f"Something is already running at port {requested}\n")
            return None
        alternative = find_free_port(host)
        stdout.write(
            f"Something is already running at port {requested}\n"
            f"Would you like to run the app at another port instead? "
            f"[Y/n] (port {alternative}) "
        )
        stdout.flush()
        answer = stdin.readline().strip().lower()
        if answer in ("", "y", "yes"):
            return alternative
        return None

    return policy
