"""Hashing utilities.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, Union

logger = logging.getLogger(__name__)


def compute_hash(data: Any) -> str:
    """Compute sha256 hash of data.

    Args:
        data: Data to hash (string, bytes, dataclass or JSON-serializable)

    Returns:
        Hex-encoded hash string
    """
    hasher = hashlib.sha256()

    if isinstance(data, bytes):
        hasher.update(data)
    elif isinstance(data, str):
        hasher.update(data.encode("utf-8"))
    elif is_dataclass(data) and not isinstance(data, type):
        hasher.update(json.dumps(asdict(data), sort_keys=True, default=str).encode("utf-8"))
    elif isinstance(data, (dict, list)):
        hasher.update(json.dumps(data, sort_keys=True, default=str).encode("utf-8"))
    else:
        hasher.update(str(data).encode("utf-8"))

    return hasher.hexdigest()


def compute_file_hash(path: Union[str, Path], chunk_size: int = 8192) -> str:
    """Compute sha256 hash of file contents.

    Args:
        path: Path to file
        chunk_size: Size of chunks to read

    Returns:
        Hex-encoded hash string
    """
    hasher = hashlib.sha256()

    with Path(path).open("rb") as f:
        while chunk := f.read(chunk_size):
            hasher.update(chunk)

    return hasher.hexdigest()


def verify_file_hash(path: Union[str, Path], expected_hash: str) -> bool:
    """Verify file matches expected hash."""
    return compute_file_hash(path) == expected_hash


__all__ = ["compute_hash", "compute_file_hash", "verify_file_hash"]
