"""TabReg Model Registry - Live model handles keyed by name.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

from tabreg_core.model.handle import ModelHandle

logger = logging.getLogger(__name__)


class ModelHandleRegistry:
    """Registry guaranteeing at most one live handle per model name.

    All lookups and mutations happen under a single lock, so concurrent
    installs under the same name serialize into evict-then-replace.

    Example:
        registry = ModelHandleRegistry()
        registry.install("tabreg", handle)

        # a second install releases the first handle
        registry.install("tabreg", other_handle)
        assert handle.released
    """

    def __init__(self):
        self._handles: Dict[str, ModelHandle] = {}
        self._lock = threading.RLock()

    def install(self, name: str, handle: ModelHandle) -> Optional[ModelHandle]:
        """Install a handle, releasing any other handle registered under name.

        Args:
            name: Model name
            handle: Handle to install

        Returns:
            The evicted handle, or None
        """
        with self._lock:
            existing = self._handles.get(name)
            evicted = None
            if existing is not None and existing is not handle:
                if not existing.released:
                    existing.release()
                evicted = existing
                logger.info(f"Evicted live model handle {name}")
            self._handles[name] = handle
            return evicted

    def release(self, name: str, handle: Optional[ModelHandle] = None) -> bool:
        """Remove and release the handle registered under name.

        Args:
            name: Model name
            handle: Only release if this exact handle is the registered one

        Returns:
            True if a handle was removed
        """
        with self._lock:
            existing = self._handles.get(name)
            if existing is None:
                return False
            if handle is not None and existing is not handle:
                return False

            del self._handles[name]
            if not existing.released:
                existing.release()
            return True

    def get(self, name: str) -> Optional[ModelHandle]:
        with self._lock:
            return self._handles.get(name)

    def names(self) -> List[str]:
        with self._lock:
            return list(self._handles.keys())

    def clear(self) -> None:
        """Release every registered handle."""
        with self._lock:
            for handle in self._handles.values():
                if not handle.released:
                    handle.release()
            self._handles.clear()

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._handles

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)

    def __repr__(self) -> str:
        return f"ModelHandleRegistry(models={len(self)})"


_default_registry: Optional[ModelHandleRegistry] = None
_default_lock = threading.Lock()


def get_default_registry() -> ModelHandleRegistry:
    """Process-wide registry for callers that do not inject their own."""
    global _default_registry
    with _default_lock:
        if _default_registry is None:
            _default_registry = ModelHandleRegistry()
        return _default_registry


__all__ = ["ModelHandleRegistry", "get_default_registry"]
