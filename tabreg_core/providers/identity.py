"""TabReg Identity Providers - Model naming strategies.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict

from tabreg_core.utils.unique_ids import next_id

logger = logging.getLogger(__name__)

DEFAULT_ID = "tabreg"

_VALID_NAME = re.compile(r"^[A-Za-z0-9_.\-]+$")


def check_name(name: str) -> str:
    """Reject names that cannot be used as a file name prefix."""
    if not name or not _VALID_NAME.match(name):
        raise ValueError(f"Invalid model name {name!r}: use letters, digits, '.', '_' or '-'")
    return name


class IdentityProvider(ABC):
    """Produces the name a model is stored and registered under."""

    @abstractmethod
    def generate(self) -> str:
        pass

    @abstractmethod
    def to_spec(self) -> Dict[str, Any]:
        pass


class FixedID(IdentityProvider):
    """Always returns the same id.

    Example:
        FixedID("house-prices").generate()  # "house-prices"
    """

    def __init__(self, id: str = DEFAULT_ID):
        self.id = check_name(id)

    def generate(self) -> str:
        return self.id

    def to_spec(self) -> Dict[str, Any]:
        return {"type": "fixed", "id": self.id}

    def __repr__(self) -> str:
        return f"FixedID({self.id!r})"


class UniqueID(IdentityProvider):
    """Prefix plus a process-wide unique suffix; a new name on every call."""

    def __init__(self, prefix: str = DEFAULT_ID):
        self.prefix = check_name(prefix)

    def generate(self) -> str:
        return f"{self.prefix}-{next_id()}"

    def to_spec(self) -> Dict[str, Any]:
        return {"type": "unique", "prefix": self.prefix}

    def __repr__(self) -> str:
        return f"UniqueID(prefix={self.prefix!r})"


__all__ = ["IdentityProvider", "FixedID", "UniqueID", "check_name", "DEFAULT_ID"]
