"""Utilities module."""

from tabreg_core.utils.serialization import JSONSerializer, to_json, from_json
from tabreg_core.utils.hashing import compute_hash, compute_file_hash, verify_file_hash
from tabreg_core.utils.timing import Timer, TimingStats
from tabreg_core.utils.unique_ids import next_id, next_int, next_long

__all__ = [
    "JSONSerializer",
    "to_json",
    "from_json",
    "compute_hash",
    "compute_file_hash",
    "verify_file_hash",
    "Timer",
    "TimingStats",
    "next_id",
    "next_int",
    "next_long",
]
