"""UDP sockets and the endpoints that peers can be reached under.

A peer is reached either through an address already bound to one of our
sockets (learned when a message arrived from it), or through host-path
discovery. Discovery tries the known addresses over the available sockets
in round-robin order.
"""

from __future__ import annotations

import errno
import logging
import select
import socket
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

__all__ = [
    "SocketSet",
    "Endpoint",
    "SocketBoundAddress",
    "HostPathDiscoveryEndpoint",
    "discovery_from_multiple_sources",
    "ipv4_any_binding",
    "ipv6_any_binding",
]

log = logging.getLogger(__name__)

Address = tuple


def ipv4_any_binding() -> Address:
    """The IPv4 wildcard address with an ephemeral port."""
    return ("0.0.0.0", 0)


def ipv6_any_binding() -> Address:
    """The IPv6 wildcard address with an ephemeral port, flowinfo and scope id."""
    return ("::", 0, 0, 0)


def _family(addr: Address) -> int:
    if len(addr) == 4 or ":" in str(addr[0]):
        return socket.AF_INET6
    return socket.AF_INET


def _open_udp(addr: Address) -> socket.socket:
    sock = socket.socket(_family(addr), socket.SOCK_DGRAM)
    try:
        sock.bind(addr)
        sock.setblocking(False)
    except OSError:
        sock.close()
        raise
    return sock


class SocketSet:
    """The UDP sockets the application listens and sends on."""

    def __init__(self, sockets: Iterable[socket.socket]) -> None:
        self.sockets = list(sockets)
        self.all_sockets_drained = False

    @classmethod
    def bind(cls, addrs: Iterable[Address]) -> "SocketSet":
        """Bind one socket per address.

        With no addresses, listen on all interfaces best-effort: an IPv6
        socket, plus an IPv4 socket unless the IPv6 one is dual-stack.
        Raises ``OSError`` if no socket could be opened.
        """
        sockets: list[socket.socket] = []
        try:
            for addr in addrs:
                sockets.append(_open_udp(tuple(addr)))
        except OSError:
            for sock in sockets:
                sock.close()
            raise

        if not sockets:
            v6 = cls._try_open("IPv6", ipv6_any_binding())
            need_v4 = True
            if v6 is not None:
                sockets.append(v6)
                try:
                    need_v4 = bool(
                        v6.getsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY)
                    )
                except (OSError, AttributeError) as e:
                    log.warning(
                        "Unable to detect whether the IPv6 socket supports "
                        "dual-stack operation: %s",
                        e,
                    )
                    need_v4 = True
            if need_v4:
                v4 = cls._try_open("IPv4", ipv4_any_binding())
                if v4 is not None:
                    sockets.append(v4)

        if not sockets:
            raise OSError("No sockets to listen on!")
        return cls(sockets)

    @staticmethod
    def _try_open(title: str, addr: Address) -> Optional[socket.socket]:
        try:
            return _open_udp(addr)
        except OSError as e:
            log.warning("Could not bind to %s socket: %s", title, e)
            return None

    def __len__(self) -> int:
        return len(self.sockets)

    def __iter__(self):
        return iter(self.sockets)

    def __enter__(self) -> "SocketSet":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def send_to(self, index: int, buf, addr: Address) -> None:
        """Send ``buf`` to ``addr`` through the socket number ``index``."""
        self.sockets[index].sendto(bytes(buf), addr)

    def try_recv(
        self, bufsize: int, timeout: float
    ) -> Optional[tuple[bytes, "SocketBoundAddress"]]:
        """Try to receive one datagram, waiting up to ``timeout`` seconds.

        Returns ``(data, endpoint)`` or ``None`` if nothing arrived. Errors
        other than "would block" are raised immediately.
        """
        if timeout <= 0:
            return None

        # Only wait when every socket has been drained before.
        if self.all_sockets_drained:
            select.select(self.sockets, [], [], timeout)

        would_block = 0
        for sock_no, sock in enumerate(self.sockets):
            try:
                data, addr = sock.recvfrom(bufsize)
            except BlockingIOError:
                would_block += 1
                continue
            self.all_sockets_drained = False
            return data, SocketBoundAddress(sock_no, addr)

        self.all_sockets_drained = would_block == len(self.sockets)
        return None

    def close(self) -> None:
        """Close every socket."""
        for sock in self.sockets:
            sock.close()


class Endpoint(ABC):
    """Something a peer can be sent packets through."""

    @abstractmethod
    def send(self, sockets: SocketSet, buf) -> None:
        """Send ``buf`` to the peer."""

    @abstractmethod
    def addresses(self) -> list[Address]:
        """All addresses this endpoint may use."""


@dataclass(frozen=True)
class SocketBoundAddress(Endpoint):
    """An address reachable through one specific socket."""

    socket: int
    addr: Address

    def send(self, sockets: SocketSet, buf) -> None:
        sockets.send_to(self.socket, buf, self.addr)

    def addresses(self) -> list[Address]:
        return [self.addr]


def _parse_host_port(hostname: str) -> tuple[str, int]:
    host, sep, port = hostname.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ValueError(f"invalid socket address: {hostname!r}")
    number = int(port)
    if number > 0xFFFF:
        raise ValueError(f"invalid port in socket address: {hostname!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host, number


class HostPathDiscoveryEndpoint(Endpoint):
    """Reaches a host by trying socket/address combinations round-robin.

    Every successful send moves on to the next address and the next socket
    for the following send.
    """

    def __init__(self, addresses: Iterable[Address]) -> None:
        self._addresses = [tuple(a) for a in addresses]
        self.scouting_state = (0, 0)  # address offset, socket offset

    def __repr__(self) -> str:
        return f"HostPathDiscoveryEndpoint({self._addresses!r})"

    @classmethod
    def lookup(cls, hostname: str) -> "HostPathDiscoveryEndpoint":
        """Resolve ``"host:port"`` to all of its addresses."""
        host, port = _parse_host_port(hostname)
        infos = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM)
        return cls(info[4] for info in infos)

    def addresses(self) -> list[Address]:
        return self._addresses

    def send(self, sockets: SocketSet, buf) -> None:
        self.send_scouting(sockets, buf)

    def send_scouting(self, sockets: SocketSet, buf) -> None:
        """Send ``buf`` through the next working socket/address combination.

        Raises ``ConnectionError`` if every attempt failed.
        """
        addr_off, sock_off = self.scouting_state
        n_addrs = len(self._addresses)
        n_socks = len(sockets)

        addrs = (
            (i % n_addrs, self._addresses[i % n_addrs])
            for i in range(addr_off, addr_off + n_addrs)
        )
        # One iterator shared by all addresses, as in the round-robin walk.
        socks = (
            (i % n_socks, sockets.sockets[i % n_socks])
            for i in range(sock_off, sock_off + n_socks)
        )

        for addr_no, addr in addrs:
            for sock_no, sock in socks:
                try:
                    sock.sendto(bytes(buf), addr)
                except OSError as err:
                    ignore = isinstance(err, socket.gaierror) or (
                        err.errno == errno.EAFNOSUPPORT
                    )
                    if not ignore:
                        log.warning(
                            "Socket #%d refusing to send to %s: %s",
                            sock_no,
                            addr,
                            err,
                        )
                    continue
                self.scouting_state = (
                    (addr_no + 1) % n_addrs,
                    (sock_no + 1) % n_socks,
                )
                return

        raise ConnectionError("Unable to send message: All sockets returned errors.")


def discovery_from_multiple_sources(
    a: Optional[Endpoint], b: Optional[Endpoint]
) -> Optional[HostPathDiscoveryEndpoint]:
    """Restart discovery from the addresses of ``a`` then ``b``, deduplicated."""
    sources: Sequence[Endpoint] = [e for e in (a, b) if e is not None]
    if not sources:
        return None
    merged = dict.fromkeys(
        tuple(addr) for endpoint in sources for addr in endpoint.addresses()
    )
    return HostPathDiscoveryEndpoint(merged)