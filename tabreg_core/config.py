"""TabReg Configuration - Regressor options and strategy specs.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from tabreg_core.network.builder import SizeHint
from tabreg_core.utils.serialization import JSONSerializer

logger = logging.getLogger(__name__)

DEVICES = ("cpu", "cuda", "auto")


def _default_architecture() -> Dict[str, Any]:
    return {"type": "tabular"}


def _default_training_plan() -> Dict[str, Any]:
    return {"type": "regression"}


def _default_identity() -> Dict[str, Any]:
    return {"type": "fixed", "id": "tabreg"}


def _default_location() -> Dict[str, Any]:
    return {"type": "fixed", "path": "."}


@dataclass
class RegressorConfig:
    """Configuration surface of a tabular regressor.

    Attributes:
        size_hint: Architecture preset (FAST, BALANCED, ACCURATE)
        train_percentage: Share of rows used for training (1-99)
        mini_batch_size: Mini-batch size
        num_epochs: Training epochs
        parallel: Append a unique suffix to the model name so instances
            sharing an identity do not evict each other
        seed: Seed for the split, batch order and weight init (random when None)
        device: cpu, cuda or auto
        architecture: Architecture strategy spec
        training_plan: Training plan strategy spec
        identity: Identity strategy spec
        location: Location strategy spec
    """

    size_hint: str = "FAST"
    train_percentage: int = 80
    mini_batch_size: int = 32
    num_epochs: int = 20
    parallel: bool = False
    seed: Optional[int] = None
    device: str = "cpu"
    architecture: Dict[str, Any] = field(default_factory=_default_architecture)
    training_plan: Dict[str, Any] = field(default_factory=_default_training_plan)
    identity: Dict[str, Any] = field(default_factory=_default_identity)
    location: Dict[str, Any] = field(default_factory=_default_location)

    def __post_init__(self):
        self.size_hint = SizeHint.parse(self.size_hint).name
        if isinstance(self.train_percentage, bool) or not isinstance(self.train_percentage, int):
            raise ValueError(f"train_percentage must be an integer, got {self.train_percentage!r}")
        if not 1 <= self.train_percentage <= 99:
            raise ValueError(f"train_percentage must be in 1-99, got {self.train_percentage}")
        if self.mini_batch_size <= 0:
            raise ValueError(f"mini_batch_size must be positive, got {self.mini_batch_size}")
        if self.num_epochs <= 0:
            raise ValueError(f"num_epochs must be positive, got {self.num_epochs}")
        if self.device not in DEVICES and not self.device.startswith("cuda:"):
            raise ValueError(f"device must be one of {DEVICES}, got {self.device!r}")
        for name in ("architecture", "training_plan", "identity", "location"):
            spec = getattr(self, name)
            if isinstance(spec, str):
                spec = {"type": spec}
                setattr(self, name, spec)
            if "type" not in spec:
                raise ValueError(f"{name} strategy spec needs a 'type'")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RegressorConfig":
        """Build a config, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {sorted(unknown)}")
        return cls(**dict(data))

    def to_file(self, path: Union[str, Path]) -> Path:
        return JSONSerializer(indent=2).to_file(self.to_dict(), path)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "RegressorConfig":
        data = JSONSerializer().from_file(path)
        logger.debug(f"Loaded config from {path}")
        return cls.from_dict(data)

    def to_options(self) -> List[str]:
        """Command-line options reproducing this config with ``tabreg train``."""
        options = [
            "--size-hint", self.size_hint,
            "--train-percentage", str(self.train_percentage),
            "--mini-batch-size", str(self.mini_batch_size),
            "--num-epochs", str(self.num_epochs),
            "--device", self.device,
        ]
        if self.parallel:
            options.append("--parallel")
        if self.seed is not None:
            options += ["--seed", str(self.seed)]
        for name in ("architecture", "training_plan", "identity", "location"):
            options += [f"--{name.replace('_', '-')}", json.dumps(getattr(self, name), sort_keys=True)]
        return options


__all__ = ["RegressorConfig", "DEVICES"]
