"""Host facts: memory, processors, user, host name and disk usage."""

from __future__ import annotations

import mmap
import os
import socket
from dataclasses import dataclass

import psutil


@dataclass(frozen=True)
class DiskUsage:
    """Byte counts for a mounted file system."""

    total: int
    free: int
    available: int
    block_size: int


def memory_page_size() -> int:
    return mmap.PAGESIZE


def memory_size() -> int:
    """Total physical memory in bytes."""
    return psutil.virtual_memory().total


def processor_count() -> int:
    """Configured processors, at least 1."""
    count = os.cpu_count()
    return count if count and count > 0 else 1


def current_login_username() -> str:
    """Name of the user the process runs as."""
    import pwd

    return pwd.getpwuid(os.getuid()).pw_name


def hostname() -> str:
    return socket.gethostname()


def disk_partition_size(path: str | os.PathLike) -> DiskUsage:
    """Usage of the file system holding ``path``; OSError if it cannot be read."""
    info = os.statvfs(path)
    bsize = info.f_bsize
    return DiskUsage(
        total=info.f_blocks * bsize,
        free=info.f_bfree * bsize,
        available=info.f_bavail * bsize,
        block_size=bsize,
    )