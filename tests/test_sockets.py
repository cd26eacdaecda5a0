import errno
import socket
import struct

import pytest

from sysutilkit.sockets import (
    InterfaceAddress,
    NetworkInterface,
    bind_and_reuse,
    enable_reuse_addr,
    has_addr,
    is_connected,
    mcast_enable_loop,
    mcast_group_join,
    mcast_group_leave,
    network_interface_info,
    readable_bytes,
    set_multicast_ttl,
    set_recv_timeout,
    set_send_timeout,
    set_unicast_ttl,
    socket_error,
    socket_pair,
    tcp_accept,
    tcp_connect,
    tcp_connect_ip,
    tcp_listen,
    tcp_listen_ip,
    tcp_no_delay,
    tcp_read_all,
    tcp_write_all,
    udp_disconnect,
)


@pytest.fixture
def stream_pair():
    a, b = socket_pair(socket.SOCK_STREAM)
    yield a, b
    a.close()
    b.close()


@pytest.fixture
def listener():
    sock = tcp_listen_ip(socket.AF_INET, "127.0.0.1", 0, 8)
    yield sock
    sock.close()


@pytest.fixture
def udp_socket():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    yield sock
    sock.close()


def _free_port():
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    return port


def test_pair_write_then_read_all(stream_pair):
    a, b = stream_pair
    assert tcp_write_all(a, b"payload") == 7
    assert tcp_read_all(b, 7) == b"payload"


def test_read_all_returns_partial_on_eof(stream_pair):
    a, b = stream_pair
    tcp_write_all(a, b"abc")
    a.shutdown(socket.SHUT_WR)
    assert tcp_read_all(b, 10) == b"abc"


def test_readable_bytes_counts_pending(stream_pair):
    a, b = stream_pair
    assert readable_bytes(b) == 0
    tcp_write_all(a, b"12345")
    b.settimeout(1)
    b.recv(0)
    assert tcp_read_all(b, 0) == b""
    assert readable_bytes(b) == 5
    tcp_read_all(b, 5)
    assert readable_bytes(b) == 0


def test_datagram_pair_keeps_boundaries():
    a, b = socket_pair(socket.SOCK_DGRAM)
    try:
        a.send(b"one")
        a.send(b"two")
        assert b.recv(100) == b"one"
        assert b.recv(100) == b"two"
    finally:
        a.close()
        b.close()


def test_connect_accept_roundtrip(listener):
    port = listener.getsockname()[1]
    client = tcp_connect_ip("127.0.0.1", port, 1000)
    conn, addr = tcp_accept(listener, 1000)
    try:
        assert is_connected(client) == ("127.0.0.1", port)
        assert addr == client.getsockname()
        assert client.gettimeout() is None
        assert tcp_write_all(conn, b"hello") == 5
        assert tcp_read_all(client, 5) == b"hello"
    finally:
        client.close()
        conn.close()


def test_blocking_connect_and_accept(listener):
    port = listener.getsockname()[1]
    client = tcp_connect(socket.AF_INET, ("127.0.0.1", port), -1)
    conn, addr = tcp_accept(listener, -1)
    try:
        assert conn.getpeername() == client.getsockname()
        assert addr == client.getsockname()
    finally:
        client.close()
        conn.close()


def test_accept_times_out(listener):
    with pytest.raises(TimeoutError):
        tcp_accept(listener, 50)
    assert listener.gettimeout() is None


@pytest.mark.parametrize("msec", [-1, 1000])
def test_connect_refused(msec):
    port = _free_port()
    with pytest.raises(ConnectionRefusedError):
        tcp_connect(socket.AF_INET, ("127.0.0.1", port), msec)


def test_connect_ip_needs_a_family():
    with pytest.raises(OSError) as info:
        tcp_connect_ip("localhost", 80, 100)
    assert info.value.errno == errno.EAFNOSUPPORT


def test_listen_ip_rejects_bad_address():
    with pytest.raises(ValueError):
        tcp_listen_ip(socket.AF_INET, "not-an-ip", 0, 1)


def test_tcp_listen_sets_reuse_and_listens():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        tcp_listen(sock, ("127.0.0.1", 0), 4)
        assert sock.getsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR) > 0
        assert sock.getsockopt(socket.SOL_SOCKET, socket.SO_ACCEPTCONN) == 1
        assert has_addr(sock) == sock.getsockname()
    finally:
        sock.close()


def test_bind_and_reuse_binds(udp_socket):
    bind_and_reuse(udp_socket, ("127.0.0.1", 0))
    ip, port = has_addr(udp_socket)
    assert ip == "127.0.0.1"
    assert port > 0


def test_reuse_addr_toggles(udp_socket):
    enable_reuse_addr(udp_socket, True)
    assert udp_socket.getsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR) > 0
    enable_reuse_addr(udp_socket, False)
    assert udp_socket.getsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR) == 0


def test_socket_error_is_zero_on_fresh_socket(udp_socket):
    assert socket_error(udp_socket) == 0


def test_is_connected_none_when_unconnected(udp_socket):
    udp_socket.bind(("127.0.0.1", 0))
    assert is_connected(udp_socket) is None


def test_udp_disconnect_keeps_fd_and_local_address(udp_socket):
    peer = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        peer.bind(("127.0.0.1", 0))
        udp_socket.bind(("127.0.0.1", 0))
        udp_socket.connect(peer.getsockname())
        fd = udp_socket.fileno()
        local = udp_socket.getsockname()
        assert is_connected(udp_socket) == peer.getsockname()
        udp_disconnect(udp_socket)
        assert is_connected(udp_socket) is None
        assert udp_socket.fileno() == fd
        assert udp_socket.getsockname() == local
        peer.sendto(b"back", local)
        udp_socket.settimeout(1)
        assert udp_socket.recv(10) == b"back"
    finally:
        peer.close()


def test_no_delay_toggles(stream_pair):
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        tcp_no_delay(sock, True)
        assert sock.getsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY) > 0
        tcp_no_delay(sock, False)
        assert sock.getsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY) == 0
    finally:
        sock.close()


@pytest.mark.parametrize(
    "setter, option",
    [(set_recv_timeout, socket.SO_RCVTIMEO), (set_send_timeout, socket.SO_SNDTIMEO)],
)
def test_timeouts_are_stored(udp_socket, setter, option):
    setter(udp_socket, 1500)
    raw = udp_socket.getsockopt(socket.SOL_SOCKET, option, struct.calcsize("@ll"))
    assert struct.unpack("@ll", raw) == (1, 500000)


def test_unicast_ttl(udp_socket):
    set_unicast_ttl(udp_socket, socket.AF_INET, 64)
    assert udp_socket.getsockopt(socket.IPPROTO_IP, socket.IP_TTL) == 64


def test_unicast_ttl_range_and_family(udp_socket):
    with pytest.raises(ValueError):
        set_unicast_ttl(udp_socket, socket.AF_INET, 256)
    with pytest.raises(OSError) as info:
        set_unicast_ttl(udp_socket, socket.AF_UNSPEC, 10)
    assert info.value.errno == errno.EAFNOSUPPORT


def test_multicast_ttl_is_clamped(udp_socket):
    set_multicast_ttl(udp_socket, socket.AF_INET, 300)
    assert udp_socket.getsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL) == 255
    set_multicast_ttl(udp_socket, socket.AF_INET, 5)
    assert udp_socket.getsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL) == 5


def test_multicast_loop_toggles(udp_socket):
    mcast_enable_loop(udp_socket, socket.AF_INET, False)
    assert udp_socket.getsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_LOOP) == 0
    mcast_enable_loop(udp_socket, socket.AF_INET, True)
    assert udp_socket.getsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_LOOP) == 1


def test_multicast_unsupported_family(udp_socket):
    with pytest.raises(OSError) as info:
        mcast_enable_loop(udp_socket, socket.AF_UNSPEC, True)
    assert info.value.errno == errno.EAFNOSUPPORT
    with pytest.raises(OSError) as info:
        mcast_group_join(udp_socket, socket.AF_UNSPEC, "239.1.2.3")
    assert info.value.errno == errno.EAFNOSUPPORT


def test_multicast_group_bad_address(udp_socket):
    with pytest.raises(OSError):
        mcast_group_join(udp_socket, socket.AF_INET, "not-an-ip")
    with pytest.raises(OSError):
        mcast_group_leave(udp_socket, socket.AF_INET, "not-an-ip")


def test_leave_group_not_joined_fails(udp_socket):
    with pytest.raises(OSError):
        mcast_group_leave(udp_socket, socket.AF_INET, "239.1.2.3")


def test_network_interface_info_invariants():
    interfaces = network_interface_info()
    assert all(isinstance(i, NetworkInterface) for i in interfaces)
    assert all(socket.if_nametoindex(i.name) == i.index for i in interfaces)
    assert [i.index for i in interfaces] == sorted({i.index for i in interfaces})
    for info in interfaces:
        assert all(isinstance(a, InterfaceAddress) for a in info.addresses)
        assert all(a.family in (socket.AF_INET, socket.AF_INET6) for a in info.addresses)
        assert all("%" not in a.ip for a in info.addresses)
        if info.is_loopback:
            assert info.phyaddr == b""


def test_network_interface_info_has_loopback():
    interfaces = network_interface_info()
    loopbacks = [i for i in interfaces if any(a.ip == "127.0.0.1" for a in i.addresses)]
    assert len(loopbacks) == 1
    assert loopbacks[0].is_loopback is True