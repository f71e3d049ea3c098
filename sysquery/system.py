"""Host and clock information."""

from __future__ import annotations

import socket
import time

__all__ = ["get_hostname", "get_ascii_time", "get_unix_time"]


def get_hostname() -> str:
    """Return the host name with surrounding whitespace removed."""
    return socket.gethostname().strip()


def get_ascii_time() -> str:
    """Return the current local time in ``asctime`` form."""
    return time.asctime(time.localtime(time.time())).strip()


def get_unix_time() -> int:
    """Return the current time as whole seconds since the epoch."""
    return int(time.time())