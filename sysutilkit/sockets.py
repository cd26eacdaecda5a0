"""Socket operations: interface listing, connect/accept with timeouts, options and multicast."""

from __future__ import annotations

import errno
import fcntl
import os
import selectors
import socket
import struct
import termios
from dataclasses import dataclass, field
from typing import Any, Optional

import psutil

from .sockaddr import (
    AF_INET,
    AF_INET6,
    ip_family,
    is_loopback_ip,
    sockaddr_decode,
    sockaddr_encode,
)

_TIMEVAL = struct.Struct("@ll")
_RETRY_ACCEPT = {errno.ECONNABORTED, getattr(errno, "EPROTO", errno.ECONNABORTED)}
_IN_PROGRESS = {errno.EINPROGRESS, errno.EWOULDBLOCK, errno.EAGAIN}


@dataclass(frozen=True)
class InterfaceAddress:
    """One IP address bound to an interface, with its netmask if known."""

    family: int
    ip: str
    netmask: Optional[str] = None


@dataclass
class NetworkInterface:
    """A running network interface and the addresses it carries."""

    index: int
    name: str
    mtu: int = 0
    phyaddr: bytes = b""
    is_loopback: bool = False
    addresses: list[InterfaceAddress] = field(default_factory=list)


def _error(code: int) -> OSError:
    return OSError(code, os.strerror(code))


def _no_family_support(family: int) -> OSError:
    return OSError(errno.EAFNOSUPPORT, f"address family {family} not supported")


def _parse_mac(text: str) -> bytes:
    try:
        return bytes.fromhex(text.replace(":", "").replace("-", ""))
    except ValueError:
        return b""


def network_interface_info() -> list[NetworkInterface]:
    """List the interfaces that are up, grouping aliases under their base interface."""
    stats = psutil.net_if_stats()
    result: dict[int, NetworkInterface] = {}
    for name, addrs in psutil.net_if_addrs().items():
        base = name.partition(":")[0]
        stat = stats.get(name) or stats.get(base)
        if stat is None or not stat.isup or not addrs:
            continue
        index = socket.if_nametoindex(base)
        info = result.get(index)
        if info is None:
            flags = getattr(stat, "flags", "") or ""
            info = result[index] = NetworkInterface(
                index=index,
                name=base,
                mtu=stat.mtu,
                is_loopback="loopback" in flags.split(","),
            )
        for addr in addrs:
            if addr.family == psutil.AF_LINK:
                info.phyaddr = _parse_mac(addr.address or "")
            elif addr.family in (AF_INET, AF_INET6):
                ip = addr.address.partition("%")[0]
                if is_loopback_ip(ip):
                    info.is_loopback = True
                info.addresses.append(InterfaceAddress(addr.family, ip, addr.netmask))
    for info in result.values():
        if info.is_loopback:
            info.phyaddr = b""
    return [result[index] for index in sorted(result)]


def has_addr(sock: socket.socket) -> Optional[Any]:
    """The socket's local address, or None if the system reports it has none."""
    try:
        return sock.getsockname()
    except OSError as exc:
        if exc.errno == errno.EINVAL:
            return None
        raise


def enable_reuse_port(sock: socket.socket, on: bool) -> None:
    """Set SO_REUSEPORT where the platform has it; otherwise do nothing."""
    option = getattr(socket, "SO_REUSEPORT", None)
    if option is not None:
        sock.setsockopt(socket.SOL_SOCKET, option, 1 if on else 0)


def enable_reuse_addr(sock: socket.socket, on: bool) -> None:
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1 if on else 0)


def bind_and_reuse(sock: socket.socket, address: Any) -> None:
    """Enable address and port reuse, then bind ``address``."""
    enable_reuse_addr(sock, True)
    enable_reuse_port(sock, True)
    sock.bind(address)


def socket_error(sock: socket.socket) -> int:
    """The pending error code of the socket (0 if none)."""
    return sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)


def is_connected(sock: socket.socket) -> Optional[Any]:
    """The peer address, or None if the socket is not connected."""
    try:
        return sock.getpeername()
    except OSError as exc:
        if exc.errno == errno.ENOTCONN:
            return None
        raise


def udp_disconnect(sock: socket.socket) -> None:
    """Dissolve a datagram socket's peer association, keeping its descriptor and local address.

    Queued datagrams and socket options are not kept.
    """
    if is_connected(sock) is None:
        return
    local = sock.getsockname()
    timeout = sock.gettimeout()
    fresh = socket.socket(sock.family, sock.type, sock.proto)
    try:
        os.dup2(fresh.fileno(), sock.fileno(), inheritable=False)
    finally:
        fresh.close()
    sock.bind(local)
    sock.settimeout(timeout)


def tcp_connect(family: int, address: Any, msec: int = -1) -> socket.socket:
    """Open a stream socket connected to ``address``.

    A negative ``msec`` waits without limit; otherwise TimeoutError is raised
    once ``msec`` milliseconds pass without the connection completing.
    """
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        if msec < 0:
            sock.connect(address)
            return sock
        sock.setblocking(False)
        err = sock.connect_ex(address)
        if err in _IN_PROGRESS:
            with selectors.DefaultSelector() as selector:
                selector.register(sock, selectors.EVENT_READ | selectors.EVENT_WRITE)
                if not selector.select(msec / 1000):
                    raise _error(errno.ETIMEDOUT)
            err = socket_error(sock)
        if err:
            raise _error(err)
        sock.setblocking(True)
        return sock
    except BaseException:
        sock.close()
        raise


def tcp_connect_ip(ip: str, port: int, msec: int = -1) -> socket.socket:
    """Connect to ``ip``:``port``, taking the family from the address text."""
    family = ip_family(ip)
    address = sockaddr_decode(family, sockaddr_encode(family, ip, port))
    return tcp_connect(family, address, msec)


def tcp_accept(listen_sock: socket.socket, msec: int = -1) -> tuple[socket.socket, Any]:
    """Accept a connection; wait without limit if ``msec`` is negative, else up to ``msec``."""
    if msec < 0:
        while True:
            try:
                return listen_sock.accept()
            except OSError as exc:
                if exc.errno in _RETRY_ACCEPT:
                    continue
                raise
    with selectors.DefaultSelector() as selector:
        selector.register(listen_sock, selectors.EVENT_READ)
        if not selector.select(msec / 1000):
            raise _error(errno.ETIMEDOUT)
    timeout = listen_sock.gettimeout()
    listen_sock.setblocking(False)
    try:
        conn, addr = listen_sock.accept()
    finally:
        listen_sock.settimeout(timeout)
    conn.setblocking(True)
    return conn, addr


def tcp_listen(sock: socket.socket, address: Any, backlog: int) -> None:
    """Bind ``address`` with reuse enabled and start listening."""
    bind_and_reuse(sock, address)
    sock.listen(backlog)


def tcp_listen_ip(family: int, ip: Optional[str], port: int, backlog: int) -> socket.socket:
    """Open a listening stream socket on ``ip``:``port``; an empty ip means any address."""
    address = sockaddr_decode(family, sockaddr_encode(family, ip, port))
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        tcp_listen(sock, address, backlog)
    except BaseException:
        sock.close()
        raise
    return sock


def socket_pair(socktype: int = socket.SOCK_STREAM) -> tuple[socket.socket, socket.socket]:
    """A pair of connected sockets of the given type."""
    family = getattr(socket, "AF_UNIX", socket.AF_INET)
    return socket.socketpair(family, socktype)


def tcp_write_all(sock: socket.socket, data: bytes) -> int:
    """Send all of ``data``; return the byte count, short only if sending stopped midway."""
    view = memoryview(data).cast("B")
    written = 0
    while written < len(view):
        try:
            sent = sock.send(view[written:])
        except OSError:
            if written:
                return written
            raise
        if sent <= 0:
            return written
        written += sent
    return len(view)


def tcp_read_all(sock: socket.socket, nbytes: int) -> bytes:
    """Read ``nbytes`` bytes, or fewer if the peer closes or an error follows partial data."""
    buf = bytearray(nbytes)
    view = memoryview(buf)
    got = 0
    while got < nbytes:
        try:
            count = sock.recv_into(view[got:])
        except OSError:
            if got:
                break
            raise
        if count <= 0:
            break
        got += count
    return bytes(buf[:got])


def tcp_no_delay(sock: socket.socket, on: bool) -> None:
    sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1 if on else 0)


def readable_bytes(sock: socket.socket) -> int:
    """Bytes that can be read at once without blocking."""
    raw = fcntl.ioctl(sock.fileno(), termios.FIONREAD, struct.pack("i", 0))
    return struct.unpack("i", raw)[0]


def _set_timeval(sock: socket.socket, option: int, msec: int) -> None:
    sec, rest = divmod(msec, 1000)
    sock.setsockopt(socket.SOL_SOCKET, option, _TIMEVAL.pack(sec, rest * 1000))


def set_send_timeout(sock: socket.socket, msec: int) -> None:
    _set_timeval(sock, socket.SO_SNDTIMEO, msec)


def set_recv_timeout(sock: socket.socket, msec: int) -> None:
    _set_timeval(sock, socket.SO_RCVTIMEO, msec)


def set_unicast_ttl(sock: socket.socket, family: int, ttl: int) -> None:
    """Set the hop limit of unicast packets (0-255)."""
    if not 0 <= ttl <= 255:
        raise ValueError("ttl must be in 0..255")
    if family == AF_INET:
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_TTL, ttl)
    elif family == AF_INET6:
        sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_UNICAST_HOPS, ttl)
    else:
        raise _no_family_support(family)


def set_multicast_ttl(sock: socket.socket, family: int, ttl: int) -> None:
    """Set the hop limit of multicast packets; IPv4 values above 255 are clamped."""
    if family == AF_INET:
        value = struct.pack("B", min(ttl, 0xFF))
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, value)
    elif family == AF_INET6:
        sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_MULTICAST_HOPS, ttl)
    else:
        raise _no_family_support(family)


def _membership(family: int, group_ip: str) -> tuple[int, bytes]:
    if family == AF_INET:
        return socket.IPPROTO_IP, socket.inet_pton(AF_INET, group_ip) + bytes(4)
    if family == AF_INET6:
        return socket.IPPROTO_IPV6, socket.inet_pton(AF_INET6, group_ip) + struct.pack("@I", 0)
    raise _no_family_support(family)


def mcast_group_join(sock: socket.socket, family: int, group_ip: str) -> None:
    """Join multicast group ``group_ip`` on the default interface."""
    level, req = _membership(family, group_ip)
    option = socket.IP_ADD_MEMBERSHIP if family == AF_INET else socket.IPV6_JOIN_GROUP
    sock.setsockopt(level, option, req)


def mcast_group_leave(sock: socket.socket, family: int, group_ip: str) -> None:
    """Leave multicast group ``group_ip`` on the default interface."""
    level, req = _membership(family, group_ip)
    option = socket.IP_DROP_MEMBERSHIP if family == AF_INET else socket.IPV6_LEAVE_GROUP
    sock.setsockopt(level, option, req)


def mcast_enable_loop(sock: socket.socket, family: int, on: bool) -> None:
    """Choose whether sent multicast packets loop back to local receivers."""
    if family == AF_INET:
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_LOOP, struct.pack("B", 1 if on else 0))
    elif family == AF_INET6:
        sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_MULTICAST_LOOP, 1 if on else 0)
    else:
        raise _no_family_support(family)