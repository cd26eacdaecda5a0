# sysutilkit

A collection of small system and utility building blocks for POSIX systems.

| Module | What it offers |
| --- | --- |
| `sysutilkit.astar` | `AStarWalk` (open heap ordered by `f`, closed set, optional push limit), `AStarNode`, `GridNode`, `Point2D` and `merge_path` for writing an A* search over your own graph |
| `sysutilkit.buffer_view` | `BufferView`, bounds-checked reads and writes over a writable buffer |
| `sysutilkit.heap_timer` | `HeapTimer` and `HeapTimerEvent`, a min-heap of timestamped callbacks with rescheduling and detaching |
| `sysutilkit.lexical` | `lexical_cast` and `lexical_cast_or_default`, converting a value through its text form; `BadLexicalCast` on failure |
| `sysutilkit.strings` | `split_char`, `split_any`, `split_str` and printf-style `format_string` |
| `sysutilkit.timeutil` | wall-clock and monotonic clocks, time-zone offset, local week boundaries, `CalendarTime`, `tm_text`, `compare_tm` |
| `sysutilkit.sockaddr` | `IPType` classification, loopback and private-range checks, packing and unpacking socket addresses, 64-bit integer and float byte-order conversion |
| `sysutilkit.sockets` | network interface listing (`network_interface_info`), TCP connect/listen/accept with millisecond timeouts, socket options, TTLs and multicast membership |
| `sysutilkit.statistics` | page size, physical memory, processor count, user name, host name and `disk_partition_size` |
| `sysutilkit.nio` | `Nio`, a one-shot readiness multiplexer over registered sockets, with `NioFD` and `NioOp` |

## Installation

```
pip install .
```

Tests need the `test` extra:

```
pip install ".[test]"
pytest
```

## Examples

Timers:

```python
from sysutilkit.heap_timer import HeapTimer

timer = HeapTimer()
timer.add_callback(lambda t, e: print("fired at", e.timestamp), 100)
while (event := timer.pop_timeout_event(150)) is not None:
    event.callback()
```

`set_event` raises `ValueError` for a negative timestamp or for an event scheduled in
another timer; `next_timestamp()` returns `None` when nothing is scheduled.

Buffer views return the offset just past what they touched and raise `IndexError` when
a range does not fit. A range must end strictly before the end of the buffer:

```python
from sysutilkit.buffer_view import BufferView

view = BufferView(bytearray(8))
off = view.write_struct(0, "<I", 7)   # 4
view.read_struct(0, "<I")             # ((7,), 4)
```

Text conversions read the leading value of the target type:

```python
from sysutilkit.lexical import lexical_cast, lexical_cast_or_default

lexical_cast("42 apples", int)          # 42
lexical_cast_or_default("abc", int)     # 0
```

Splitting strings (a trailing empty field is dropped):

```python
from sysutilkit.strings import split_char, split_str

split_char("a,b,,c", ",")   # ['a', 'b', '', 'c']
split_str("a::b::c", "::")  # ['a', 'b', 'c']
```

Addresses:

```python
import socket
from sysutilkit.sockaddr import ip_family, is_inner_ip, sockaddr_encode, sockaddr_decode

ip_family("192.168.1.5")      # socket.AF_INET
is_inner_ip("10.1.2.3")       # True
packed = sockaddr_encode(socket.AF_INET, "127.0.0.1", 8080)
sockaddr_decode(socket.AF_INET, packed)   # ('127.0.0.1', 8080)
```

Waiting for readiness with `Nio`. Each committed operation fires once; commit it again
to keep waiting:

```python
from sysutilkit.nio import Nio, NioFD, NioOp
from sysutilkit.sockets import socket_pair

left, right = socket_pair()
with Nio() as nio:
    niofd = NioFD(left)
    nio.commit(niofd, NioOp.READ)
    right.send(b"hi")
    for event in nio.wait(count=16, msec=1000):
        checked = nio.event_check(event)
        if checked is not None:
            fd, fired = checked
            print(fired, fd.sock.recv(16))
right.close()
```

Closing the `Nio` closes every socket committed to it.

## What this package does not do

It offers no command-line program, no coroutine scheduler or event loop built on top of
`Nio` and `HeapTimer`, and no terminal control; those are left to the application. It
targets POSIX systems only: `sockets` and `statistics` rely on `fcntl`, `termios`, `pwd`
and `os.statvfs`.