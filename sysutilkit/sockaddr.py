"""Socket address helpers: packing, unpacking, classification and byte-order swaps."""

from __future__ import annotations

import errno
import socket
import struct
import sys
from enum import Enum

AF_UNSPEC = socket.AF_UNSPEC
AF_INET = socket.AF_INET
AF_INET6 = socket.AF_INET6
AF_UNIX = getattr(socket, "AF_UNIX", None)

_SOCKADDR_IN = struct.Struct("=H2s4s8x")
_SOCKADDR_IN6 = struct.Struct("=H2s4s16s4s")
_SOCKADDR_UN_SIZE = 106 if sys.platform == "darwin" else 110
_INADDR_NONE = b"\xff\xff\xff\xff"


class IPType(Enum):
    UNKNOWN = "unknown"
    IPV4_A = "ipv4-a"
    IPV4_B = "ipv4-b"
    IPV4_C = "ipv4-c"
    IPV4_D = "ipv4-d"
    IPV4_E = "ipv4-e"
    IPV6_LINK = "ipv6-link"
    IPV6_SITE = "ipv6-site"
    IPV6_V4MAP = "ipv6-v4map"
    IPV6_GLOBAL = "ipv6-global"


def _no_family_support(family: int) -> OSError:
    return OSError(errno.EAFNOSUPPORT, f"address family {family} not supported")


def socktype_to_string(socktype: int) -> str:
    """Name of a stream or datagram socket type, or "" for anything else."""
    if socktype == socket.SOCK_STREAM:
        return "SOCK_STREAM"
    if socktype == socket.SOCK_DGRAM:
        return "SOCK_DGRAM"
    return ""


def string_to_socktype(name: str) -> int:
    """Socket type for "SOCK_STREAM" or "SOCK_DGRAM", 0 for anything else."""
    if name == "SOCK_STREAM":
        return socket.SOCK_STREAM
    if name == "SOCK_DGRAM":
        return socket.SOCK_DGRAM
    return 0


def _inet_addr(ip: str) -> bytes | None:
    """Parse a dotted IPv4 address; None where the classic parser reports INADDR_NONE."""
    try:
        packed = socket.inet_aton(ip)
    except OSError:
        return None
    if packed == _INADDR_NONE:
        return None
    return packed


def ip_type(family: int, ip: str) -> IPType:
    """Classify an IPv4 address by class or an IPv6 address by scope."""
    if family == AF_INET:
        try:
            packed = socket.inet_pton(AF_INET, ip)
        except OSError as exc:
            raise ValueError(f"invalid IPv4 address: {ip!r}") from exc
        addr = int.from_bytes(packed, "big")
        if addr >> 31 == 0:
            return IPType.IPV4_A
        if addr >> 30 == 0x2:
            return IPType.IPV4_B
        if addr >> 29 == 0x6:
            return IPType.IPV4_C
        if addr >> 28 == 0xE:
            return IPType.IPV4_D
        if addr >> 27 == 0x1E:
            return IPType.IPV4_E
        return IPType.UNKNOWN
    if family == AF_INET6:
        try:
            b = socket.inet_pton(AF_INET6, ip)
        except OSError as exc:
            raise ValueError(f"invalid IPv6 address: {ip!r}") from exc
        if b[0] == 0xFE and b[1] == 0x80 and not any(b[2:8]):
            return IPType.IPV6_LINK
        if b[0] in (0xFE, 0xFD) and b[1] == 0xC0 and not any(b[2:6]):
            return IPType.IPV6_SITE
        if b[10] == 0xFF and b[11] == 0xFF and not any(b[0:10]):
            return IPType.IPV6_V4MAP
        if b[0] & 0x20:
            return IPType.IPV6_GLOBAL
        return IPType.UNKNOWN
    return IPType.UNKNOWN


def loopback_ip(family: int) -> str:
    """The loopback address of ``family``, or "" for other families."""
    if family == AF_INET:
        return "127.0.0.1"
    if family == AF_INET6:
        return "::1"
    return ""


def is_loopback_ip(ip: str) -> bool:
    return ip == "::1" or "127.0.0.1" in ip


def is_inner_ip(ip: str) -> bool:
    """True for IPv4 private ranges 10/8, 172.16/12 and 192.168/16."""
    packed = _inet_addr(ip)
    if packed is None:
        return False
    first, second = packed[0], packed[1]
    return (
        first == 10
        or (first == 192 and second == 168)
        or (first == 172 and 16 <= second <= 31)
    )


def ip_family(ip: str) -> int:
    """Guess the family from the first '.' or ':' in ``ip``."""
    for char in ip:
        if char == ".":
            return AF_INET
        if char == ":":
            return AF_INET6
    return AF_UNSPEC


def sockaddr_length(family: int) -> int:
    """Size in bytes of the socket address structure for ``family``."""
    if family == AF_INET:
        return _SOCKADDR_IN.size
    if family == AF_INET6:
        return _SOCKADDR_IN6.size
    if family == AF_UNSPEC:
        return 0
    if AF_UNIX is not None and family == AF_UNIX:
        return _SOCKADDR_UN_SIZE
    raise _no_family_support(family)


def sockaddr_encode(family: int, ip: str | None, port: int) -> bytes:
    """Pack ``ip`` and ``port`` into a socket address; an empty ip means any address."""
    port_bytes = struct.pack("!H", port)
    if family == AF_INET:
        if not ip:
            addr = bytes(4)
        else:
            addr = _inet_addr(ip)
            if addr is None:
                raise ValueError(f"invalid IPv4 address: {ip!r}")
        return _SOCKADDR_IN.pack(AF_INET, port_bytes, addr)
    if family == AF_INET6:
        if not ip:
            addr = bytes(16)
        else:
            try:
                addr = socket.inet_pton(AF_INET6, ip)
            except OSError as exc:
                raise ValueError(f"invalid IPv6 address: {ip!r}") from exc
        return _SOCKADDR_IN6.pack(AF_INET6, port_bytes, bytes(4), addr, bytes(4))
    raise _no_family_support(family)


def _layout(family: int, packed: bytes) -> struct.Struct:
    if family == AF_INET:
        layout = _SOCKADDR_IN
    elif family == AF_INET6:
        layout = _SOCKADDR_IN6
    else:
        raise _no_family_support(family)
    if len(packed) < layout.size:
        raise ValueError("packed address is too short")
    return layout


def sockaddr_decode(family: int, packed: bytes) -> tuple[str, int]:
    """Unpack a socket address into ``(ip, port)``."""
    layout = _layout(family, packed)
    fields = layout.unpack_from(packed)
    port = struct.unpack("!H", fields[1])[0]
    addr = fields[2] if family == AF_INET else fields[3]
    return socket.inet_ntop(family, addr), port


def sockaddr_set_port(family: int, packed: bytes, port: int) -> bytes:
    """Return ``packed`` with its port replaced by ``port``."""
    _layout(family, packed)
    data = bytearray(packed)
    data[2:4] = struct.pack("!H", port)
    return bytes(data)


def sockaddr_is_equal(family_one: int, one: bytes, family_two: int, two: bytes) -> bool:
    """True if both addresses have the same family and the same structure bytes."""
    if family_one != family_two:
        return False
    try:
        length = sockaddr_length(family_one)
    except OSError:
        return False
    if length == 0:
        return True
    return bytes(one[:length]) == bytes(two[:length])


def htonll(value: int) -> int:
    """Reorder a 64-bit integer's bytes into network order."""
    return int.from_bytes(value.to_bytes(8, "big"), sys.byteorder)


def ntohll(value: int) -> int:
    """Reorder a 64-bit integer's bytes from network order."""
    return int.from_bytes(value.to_bytes(8, sys.byteorder), "big")


def htonf(value: float) -> int:
    """The network-order bytes of a 32-bit float, read as a host integer."""
    return int.from_bytes(struct.pack(">f", value), sys.byteorder)


def ntohf(value: int) -> float:
    """Undo htonf."""
    return struct.unpack(">f", value.to_bytes(4, sys.byteorder))[0]


def htond(value: float) -> int:
    """The network-order bytes of a 64-bit float, read as a host integer."""
    return int.from_bytes(struct.pack(">d", value), sys.byteorder)


def ntohd(value: int) -> float:
    """Undo htond."""
    return struct.unpack(">d", value.to_bytes(8, sys.byteorder))[0]