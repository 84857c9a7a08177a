"""TabReg Location Providers - Model storage directories.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)


class LocationProvider(ABC):
    """Produces the directory a model's files are stored in."""

    @abstractmethod
    def generate(self) -> Path:
        pass

    @abstractmethod
    def to_spec(self) -> Dict[str, Any]:
        pass


class FixedDir(LocationProvider):
    """A fixed directory, the working directory by default."""

    def __init__(self, path: Union[str, Path] = "."):
        self.path = Path(path)

    def generate(self) -> Path:
        return self.path

    def to_spec(self) -> Dict[str, Any]:
        return {"type": "fixed", "path": str(self.path)}

    def __repr__(self) -> str:
        return f"FixedDir({str(self.path)!r})"


class TempDir(LocationProvider):
    """A temporary directory, created on first use and reused afterwards.

    The directory is not deleted automatically.
    """

    def __init__(self, prefix: str = "tabreg-"):
        self.prefix = prefix
        self._path: Optional[Path] = None

    def generate(self) -> Path:
        if self._path is None:
            self._path = Path(tempfile.mkdtemp(prefix=self.prefix))
            logger.info(f"Created temporary model directory {self._path}")
        return self._path

    def to_spec(self) -> Dict[str, Any]:
        return {"type": "temp", "prefix": self.prefix}

    def __repr__(self) -> str:
        return f"TempDir(prefix={self.prefix!r})"


__all__ = ["LocationProvider", "FixedDir", "TempDir"]
