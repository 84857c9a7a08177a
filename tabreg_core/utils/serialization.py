"""Serialization utilities.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, is_dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Union

logger = logging.getLogger(__name__)


class JSONSerializer:
    """JSON serializer for manifests, descriptors and configs.

    Datetimes are written as ISO strings, enums by name and dataclasses as
    plain dictionaries so the output stays readable by other tools.
    """

    def __init__(self, indent: int = 2, sort_keys: bool = False):
        self.indent = indent
        self.sort_keys = sort_keys

    def serialize(self, obj: Any) -> bytes:
        """Serialize to JSON bytes."""
        return json.dumps(
            obj,
            default=self._default_encoder,
            indent=self.indent,
            sort_keys=self.sort_keys,
        ).encode("utf-8")

    def deserialize(self, data: bytes) -> Dict[str, Any]:
        """Deserialize from JSON bytes."""
        return json.loads(data.decode("utf-8"))

    def to_file(self, obj: Any, path: Union[str, Path]) -> Path:
        """Serialize to file, replacing any existing content."""
        path = Path(path)
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_bytes(self.serialize(obj))
        tmp.replace(path)
        logger.debug(f"Serialized to {path}")
        return path

    def from_file(self, path: Union[str, Path]) -> Dict[str, Any]:
        """Deserialize from file."""
        return self.deserialize(Path(path).read_bytes())

    def _default_encoder(self, obj: Any) -> Any:
        """Handle non-JSON-serializable types."""
        if isinstance(obj, datetime):
            return obj.isoformat()
        elif isinstance(obj, Enum):
            return obj.name
        elif is_dataclass(obj) and not isinstance(obj, type):
            return asdict(obj)
        elif isinstance(obj, Path):
            return str(obj)
        elif isinstance(obj, (set, tuple)):
            return list(obj)
        elif hasattr(obj, "item"):
            # numpy scalars
            return obj.item()

        raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


_default_json = JSONSerializer()


def to_json(obj: Any) -> str:
    """Serialize object to a JSON string."""
    return _default_json.serialize(obj).decode("utf-8")


def from_json(text: str) -> Dict[str, Any]:
    """Parse a JSON string."""
    return json.loads(text)


__all__ = ["JSONSerializer", "to_json", "from_json"]
