"""TabReg Model Handle - Exclusively owned engine model.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

import torch
from torch import nn

from tabreg_core.network.topology import NetworkTopology

logger = logging.getLogger(__name__)


class ModelHandle:
    """In-memory wrapper around a network and the device memory it holds.

    A handle must be released exactly once; releasing it again raises.
    """

    def __init__(self, name: str, device: str = "cpu"):
        self.name = name
        self.device = device
        self.created_at = datetime.now()
        self._network: Optional[nn.Module] = None
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    @property
    def attached(self) -> bool:
        return self._network is not None

    @property
    def network(self) -> nn.Module:
        """The attached network.

        Raises:
            RuntimeError: If the handle was released or nothing is attached
        """
        if self._released:
            raise RuntimeError(f"Model handle {self.name!r} has been released")
        if self._network is None:
            raise RuntimeError(f"No network attached to model handle {self.name!r}")
        return self._network

    @property
    def topology(self) -> Optional[NetworkTopology]:
        if self._network is None:
            return None
        return getattr(self._network, "topology", None)

    def attach(self, network: nn.Module) -> None:
        """Attach a network, moving it to the handle's device."""
        if self._released:
            raise RuntimeError(f"Model handle {self.name!r} has been released")
        self._network = network.to(self.device)

    def release(self) -> None:
        """Free the network and its device memory.

        Raises:
            RuntimeError: If the handle was already released
        """
        if self._released:
            raise RuntimeError(f"Model handle {self.name!r} already released")
        self._network = None
        self._released = True
        if self.device.startswith("cuda") and torch.cuda.is_available():
            torch.cuda.empty_cache()
        logger.debug(f"Released model handle {self.name}")

    def __repr__(self) -> str:
        state = "released" if self._released else ("attached" if self.attached else "empty")
        return f"ModelHandle(name={self.name!r}, device={self.device!r}, {state})"


__all__ = ["ModelHandle"]
