"""TabReg Architecture Builders - Network topology strategies.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import importlib.util
import logging
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from tabreg_core.network.topology import NetworkTopology

logger = logging.getLogger(__name__)


class SizeHint(Enum):
    """Capacity presets trading accuracy for training speed.

    The value is ``(num_shared, num_independent)`` GLU layers.
    """

    FAST = (1, 1)
    BALANCED = (2, 2)
    ACCURATE = (4, 4)

    @property
    def num_shared(self) -> int:
        return self.value[0]

    @property
    def num_independent(self) -> int:
        return self.value[1]

    @classmethod
    def parse(cls, value: Union[str, "SizeHint"]) -> "SizeHint":
        """Resolve a hint from its name (case-insensitive).

        Raises:
            ValueError: For unknown hints
        """
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            choices = ", ".join(h.name for h in cls)
            raise ValueError(f"Unknown size hint {value!r}, expected one of: {choices}") from None


class ArchitectureBuilder(ABC):
    """Builds the network topology for a dataset shape."""

    def check(self, feature_count: int, label_count: int) -> Optional[str]:
        """Return an error message if the shape cannot be handled."""
        if feature_count <= 0:
            return f"No features to build a network for (feature_count={feature_count})"
        if label_count <= 0:
            return f"No labels to build a network for (label_count={label_count})"
        return None

    def build(
        self,
        feature_count: int,
        label_count: int,
        size_hint: Union[str, SizeHint],
    ) -> NetworkTopology:
        """Build the topology.

        Args:
            feature_count: Width of the input vector
            label_count: Number of outputs
            size_hint: Capacity preset

        Returns:
            NetworkTopology

        Raises:
            ValueError: For an unusable shape or an unknown size hint
        """
        msg = self.check(feature_count, label_count)
        if msg is not None:
            raise ValueError(msg)
        return self._build(feature_count, label_count, SizeHint.parse(size_hint))

    @abstractmethod
    def _build(self, feature_count: int, label_count: int, size_hint: SizeHint) -> NetworkTopology:
        pass

    def to_spec(self) -> Dict[str, Any]:
        """Strategy spec that re-creates this builder."""
        return {"type": "tabular"}


class TabularRegressionBuilder(ArchitectureBuilder):
    """Attentive tabular network whose layer counts follow the size hint.

    FAST uses one shared and one independent GLU layer per step, BALANCED
    two of each and ACCURATE four of each.
    """

    def __init__(self, n_d: int = 8, n_a: int = 8, n_steps: int = 3, gamma: float = 1.3):
        self.n_d = n_d
        self.n_a = n_a
        self.n_steps = n_steps
        self.gamma = gamma

    def _build(self, feature_count: int, label_count: int, size_hint: SizeHint) -> NetworkTopology:
        return NetworkTopology(
            input_dim=feature_count,
            output_dim=label_count,
            num_shared=size_hint.num_shared,
            num_independent=size_hint.num_independent,
            n_d=self.n_d,
            n_a=self.n_a,
            n_steps=self.n_steps,
            gamma=self.gamma,
        )

    def to_spec(self) -> Dict[str, Any]:
        return {
            "type": "tabular",
            "n_d": self.n_d,
            "n_a": self.n_a,
            "n_steps": self.n_steps,
            "gamma": self.gamma,
        }

    def __repr__(self) -> str:
        return f"TabularRegressionBuilder(n_d={self.n_d}, n_a={self.n_a}, n_steps={self.n_steps})"


class _FunctionBuilder(ArchitectureBuilder):
    def __init__(self, fn: Callable[..., NetworkTopology], options: Dict[str, Any]):
        self._fn = fn
        self._options = options

    def _build(self, feature_count: int, label_count: int, size_hint: SizeHint) -> NetworkTopology:
        return self._fn(feature_count, label_count, size_hint, **self._options)


class ScriptArchitectureBuilder(ArchitectureBuilder):
    """Delegates to an architecture builder defined in a user Python file.

    The file must define either ``create_builder(**options)`` returning an
    object with a ``build(feature_count, label_count, size_hint)`` method, or
    a module-level ``build(feature_count, label_count, size_hint, **options)``
    function. Either way the result must be a :class:`NetworkTopology`.

    Example:
        builder = ScriptArchitectureBuilder("nets/wide.py", {"n_steps": 5})
        topology = builder.build(12, 1, "balanced")
    """

    def __init__(self, path: Union[str, Path], options: Optional[Dict[str, Any]] = None):
        self.path = Path(path)
        self.options = dict(options or {})
        self._delegate: Optional[Any] = None

    def _load(self) -> Any:
        if self._delegate is not None:
            return self._delegate

        if not self.path.is_file():
            raise FileNotFoundError(f"Architecture script not found: {self.path}")

        spec = importlib.util.spec_from_file_location(f"tabreg_script_{self.path.stem}", self.path)
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot load architecture script: {self.path}")
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)

        if hasattr(module, "create_builder"):
            delegate = module.create_builder(**self.options)
        elif callable(getattr(module, "build", None)):
            delegate = _FunctionBuilder(module.build, self.options)
        else:
            raise TypeError(f"{self.path} defines neither create_builder() nor build()")

        if not callable(getattr(delegate, "build", None)):
            raise TypeError(f"Builder from {self.path} has no build() method")

        logger.info(f"Loaded architecture script {self.path}")
        self._delegate = delegate
        return delegate

    def _build(self, feature_count: int, label_count: int, size_hint: SizeHint) -> NetworkTopology:
        topology = self._load().build(feature_count, label_count, size_hint)
        if not isinstance(topology, NetworkTopology):
            raise TypeError(
                f"Architecture script {self.path} returned {type(topology).__name__}, "
                "expected NetworkTopology"
            )
        return topology

    def to_spec(self) -> Dict[str, Any]:
        return {"type": "script", "path": str(self.path), "options": dict(self.options)}

    def __getstate__(self) -> Dict[str, Any]:
        state = self.__dict__.copy()
        state["_delegate"] = None
        return state

    def __repr__(self) -> str:
        return f"ScriptArchitectureBuilder(path={str(self.path)!r})"


__all__ = [
    "SizeHint",
    "ArchitectureBuilder",
    "TabularRegressionBuilder",
    "ScriptArchitectureBuilder",
]
