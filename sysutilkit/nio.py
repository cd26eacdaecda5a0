"""Readiness notification for sockets: one-shot interest, wake-ups and deferred release."""

from __future__ import annotations

import errno
import os
import selectors
import socket
import threading
from enum import IntFlag
from typing import Any, Callable, Optional

_WAKEUP = object()
_IN_PROGRESS = {errno.EINPROGRESS, errno.EWOULDBLOCK, errno.EAGAIN}

NioEvent = tuple[selectors.SelectorKey, int]


class NioOp(IntFlag):
    READ = 1
    WRITE = 2
    ACCEPT = 4
    CONNECT = 8


_READ_SIDE = NioOp.READ | NioOp.ACCEPT
_WRITE_SIDE = NioOp.WRITE | NioOp.CONNECT


class NioFD:
    """A socket watched by a Nio, with the operations it is waiting for."""

    def __init__(self, sock: socket.socket, domain: Optional[int] = None) -> None:
        self.sock = sock
        self.domain = sock.family if domain is None else domain
        self.event_mask = NioOp(0)
        self.deleted = False
        self.registered = False
        self._selected = 0

    @property
    def fd(self) -> int:
        return self.sock.fileno()


def _selector_events(mask: NioOp) -> int:
    events = 0
    if mask & _READ_SIDE:
        events |= selectors.EVENT_READ
    if mask & _WRITE_SIDE:
        events |= selectors.EVENT_WRITE
    return events


class Nio:
    """Waits for committed operations on many sockets at once.

    Each committed operation fires once; commit it again to wait for more.
    Deleted descriptors that were registered are released on the next ``wait``.
    """

    def __init__(self, free_niofd: Optional[Callable[[NioFD], Any]] = None) -> None:
        self._free_niofd = free_niofd
        self._selector = selectors.DefaultSelector()
        self._wake_r, self._wake_w = socket.socketpair()
        try:
            self._wake_r.setblocking(False)
            self._wake_w.setblocking(False)
            self._selector.register(self._wake_r, selectors.EVENT_READ, _WAKEUP)
        except BaseException:
            self._wake_r.close()
            self._wake_w.close()
            self._selector.close()
            raise
        self._wakeup = False
        self._wake_lock = threading.Lock()
        self._alive: dict[NioFD, None] = {}
        self._free: list[NioFD] = []
        self._closed = False

    def __enter__(self) -> Nio:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _sync(self, niofd: NioFD, mask: NioOp) -> None:
        wanted = _selector_events(mask)
        if wanted == niofd._selected:
            return
        if wanted == 0:
            self._selector.unregister(niofd.sock)
        elif niofd._selected == 0:
            self._selector.register(niofd.sock, wanted, niofd)
        else:
            self._selector.modify(niofd.sock, wanted, niofd)
        niofd._selected = wanted

    def commit(self, niofd: NioFD, opcode: int, address: Any = None) -> None:
        """Ask to be told once ``opcode`` can proceed; CONNECT starts connecting to ``address``."""
        if niofd.deleted:
            raise ValueError("niofd has been deleted")
        mask = niofd.event_mask
        if opcode == NioOp.READ:
            if mask & NioOp.READ:
                return
            mask |= NioOp.READ
        elif opcode == NioOp.WRITE:
            if mask & NioOp.WRITE:
                return
            mask |= NioOp.WRITE
        elif opcode == NioOp.ACCEPT:
            if mask & NioOp.READ:
                return
            mask |= NioOp.READ | NioOp.ACCEPT
        elif opcode == NioOp.CONNECT:
            if mask & NioOp.WRITE:
                return
            err = niofd.sock.connect_ex(address)
            if err and err not in _IN_PROGRESS:
                raise OSError(err, os.strerror(err))
            mask |= NioOp.WRITE | NioOp.CONNECT
        else:
            raise ValueError(f"invalid nio opcode: {opcode!r}")
        self._sync(niofd, mask)
        niofd.event_mask = mask
        if not niofd.registered:
            niofd.registered = True
            self._alive[niofd] = None

    def _handle_free_list(self) -> None:
        free, self._free = self._free, []
        if self._free_niofd is not None:
            for niofd in free:
                self._free_niofd(niofd)

    def wait(self, count: int = 128, msec: int = -1) -> list[NioEvent]:
        """Wait up to ``msec`` milliseconds (negative: forever) for at most ``count`` events."""
        if count <= 0:
            raise ValueError("count must be positive")
        self._handle_free_list()
        timeout = None if msec < 0 else msec / 1000
        return self._selector.select(timeout)[:count]

    def wakeup(self) -> None:
        """Make a blocked ``wait`` return; safe to call from any thread."""
        with self._wake_lock:
            if self._wakeup:
                return
            self._wakeup = True
        try:
            self._wake_w.send(b"\0")
        except BlockingIOError:
            pass

    def event_check(self, event: NioEvent) -> Optional[tuple[NioFD, NioOp]]:
        """Turn a waited event into ``(niofd, fired ops)``, or None for wake-ups and deleted fds."""
        key, events = event
        if key.data is _WAKEUP:
            try:
                self._wake_r.recv(256)
            except BlockingIOError:
                pass
            with self._wake_lock:
                self._wakeup = False
            return None
        niofd: NioFD = key.data
        if niofd.deleted:
            return None
        fired = NioOp(0)
        mask = niofd.event_mask
        if events & selectors.EVENT_READ:
            if mask & NioOp.ACCEPT:
                fired |= NioOp.ACCEPT
            mask &= ~_READ_SIDE
            fired |= NioOp.READ
        if events & selectors.EVENT_WRITE:
            if mask & NioOp.CONNECT:
                fired |= NioOp.CONNECT
            mask &= ~_WRITE_SIDE
            fired |= NioOp.WRITE
        self._sync(niofd, mask)
        niofd.event_mask = mask
        return niofd, fired

    def delete(self, niofd: NioFD) -> None:
        """Close the descriptor's socket and release it, at once or on the next ``wait``."""
        if niofd.deleted:
            return
        niofd.deleted = True
        if niofd._selected:
            try:
                self._selector.unregister(niofd.sock)
            except (KeyError, ValueError):
                pass
            niofd._selected = 0
        niofd.sock.close()
        if not niofd.registered:
            if self._free_niofd is not None:
                self._free_niofd(niofd)
            return
        self._alive.pop(niofd, None)
        self._free.append(niofd)

    def close(self) -> None:
        """Delete and release every registered descriptor and close the poller."""
        if self._closed:
            return
        self._closed = True
        for niofd in list(self._alive):
            self.delete(niofd)
        self._alive.clear()
        self._handle_free_list()
        self._selector.close()
        self._wake_r.close()
        self._wake_w.close()


def connect_update(niofd: NioFD) -> int:
    """The pending error of a connecting socket: 0 once connected."""
    return niofd.sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)


def accept(niofd: NioFD) -> tuple[socket.socket, Any]:
    """Accept a connection on a listening descriptor."""
    return niofd.sock.accept()