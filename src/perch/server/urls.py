"""Reachable URLs for the startup banner.

For a wildcard bind the server answers on every interface, so the banner
shows ``localhost`` and, when the machine has a private LAN address, the
address other devices on the network can use.
"""

from __future__ import annotations

import contextlib
import ipaddress
import socket
from dataclasses import dataclass

from perch.server.ports import WILDCARD_HOSTS


@dataclass(frozen=True, slots=True)
class PreparedUrls:
    """URLs shown to the operator. Display only."""

    local_url_for_terminal: str
    local_url_for_browser: str
    lan_url_for_terminal: str | None = None
    # Bare LAN address, for tools that want a host rather than a URL
    lan_url_for_config: str | None = None


def get_lan_ip() -> str | None:
    """The machine's outward IPv4 address, or None if it cannot be found.

    Connecting a UDP socket sends nothing; it only selects the interface
    the route would use.
    """
    try:
        with contextlib.closing(socket.socket(socket.AF_INET, socket.SOCK_DGRAM)) as sock:
            sock.connect(("8.8.8.8", 80))
            return sock.getsockname()[0]
    except OSError:
        return None


def _is_private_ipv4(address: str) -> bool:
    try:
        ip = ipaddress.IPv4Address(address)
    except ValueError:
        return False
    return ip.is_private and not ip.is_loopback


def _format_url(protocol: str, host: str, port: int) -> str:
    if ":" in host:
        host = f"[{host}]"
    return f"{protocol}://{host}:{port}/"


def prepare_urls(protocol: str, host: str, port: int) -> PreparedUrls:
    """Build the local (and, for wildcard hosts, LAN) URLs for *host*."""
    if host in WILDCARD_HOSTS:
        pretty_host = "localhost"
        lan_url_for_terminal = None
        lan_url_for_config = None
        lan_ip = get_lan_ip()
        if lan_ip is not None and _is_private_ipv4(lan_ip):
            lan_url_for_config = lan_ip
            lan_url_for_terminal = _format_url(protocol, lan_ip, port)
    else:
        pretty_host = host
        lan_url_for_terminal = None
        lan_url_for_config = None

    local = _format_url(protocol, pretty_host, port)
    return PreparedUrls(
        local_url_for_terminal=local,
        local_url_for_browser=local,
        lan_url_for_terminal=lan_url_for_terminal,
        lan_url_for_config=lan_url_for_config,
    )
