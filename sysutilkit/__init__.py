"""System and utility toolkit: A* search pieces, heap timers, buffer views, strings, time, sockets, host statistics and readiness I/O."""

__version__ = "0.1.0"