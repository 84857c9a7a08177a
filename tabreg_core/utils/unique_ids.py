"""Process-wide unique identifiers.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from collections import defaultdict
from typing import Dict

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_counter = 0
_named_counters: Dict[str, int] = defaultdict(int)


def process_id() -> int:
    """Return the id of the current process, or -1 if unavailable."""
    try:
        return os.getpid()
    except OSError:
        return -1


def next_long() -> int:
    """Return the next value of the process-wide counter (starts at 1)."""
    global _counter
    with _lock:
        _counter += 1
        return _counter


def next_int(name: str) -> int:
    """Return the next value of the counter registered under ``name``.

    Args:
        name: Counter name

    Returns:
        Counter value, starting at 1 for each new name
    """
    with _lock:
        _named_counters[name] += 1
        return _named_counters[name]


def next_id() -> str:
    """Generate an id that is unique within and across processes.

    The id is ``<nanotime>-<pid>-<counter>``, each part in hex.
    """
    pid = process_id()
    pid_part = format(pid, "x") if pid >= 0 else "-1"
    return f"{time.perf_counter_ns():x}-{pid_part}-{next_long():x}"


__all__ = ["next_id", "next_long", "next_int", "process_id"]
