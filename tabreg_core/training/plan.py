"""TabReg Training Plans - Loss, optimizer policy and listeners.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

import torch
from torch import nn

from tabreg_core.training.listeners import TrainingListener, basic_listeners, create_listeners

logger = logging.getLogger(__name__)

LOSSES = {
    "l2": nn.MSELoss,
    "l1": nn.L1Loss,
    "huber": nn.HuberLoss,
}

OPTIMIZERS = {
    "adam": torch.optim.Adam,
    "adamw": torch.optim.AdamW,
    "sgd": torch.optim.SGD,
}


@dataclass
class TrainingPlan:
    """Complete configuration consumed by the trainer.

    Attributes:
        loss: Loss function name (l2, l1, huber)
        optimizer: Optimizer name (adam, adamw, sgd)
        learning_rate: Optimizer learning rate
        weight_decay: Optimizer weight decay
        grad_clip: Max gradient norm, or None to disable clipping
        listeners: Training progress listeners
    """

    loss: str = "l2"
    optimizer: str = "adam"
    learning_rate: float = 1e-3
    weight_decay: float = 0.0
    grad_clip: Optional[float] = 1.0
    listeners: List[TrainingListener] = field(default_factory=basic_listeners)

    def __post_init__(self):
        if self.loss not in LOSSES:
            raise ValueError(f"Unknown loss {self.loss!r}, expected one of {sorted(LOSSES)}")
        if self.optimizer not in OPTIMIZERS:
            raise ValueError(f"Unknown optimizer {self.optimizer!r}, expected one of {sorted(OPTIMIZERS)}")
        if self.learning_rate <= 0:
            raise ValueError(f"learning_rate must be positive, got {self.learning_rate}")

    def create_loss(self) -> nn.Module:
        return LOSSES[self.loss]()

    def create_optimizer(self, params: Iterable[torch.Tensor]) -> torch.optim.Optimizer:
        return OPTIMIZERS[self.optimizer](
            params, lr=self.learning_rate, weight_decay=self.weight_decay
        )


class TrainingPlanBuilder(ABC):
    """Produces the training plan; independent of the network architecture."""

    @abstractmethod
    def build(self) -> TrainingPlan:
        pass

    def to_spec(self) -> Dict[str, Any]:
        return {"type": "regression"}


class RegressionTrainingPlan(TrainingPlanBuilder):
    """Regression plan with a configurable loss and optimizer.

    Example:
        plan = RegressionTrainingPlan(loss="huber", learning_rate=5e-3).build()
    """

    def __init__(
        self,
        loss: str = "l2",
        optimizer: str = "adam",
        learning_rate: float = 1e-3,
        weight_decay: float = 0.0,
        grad_clip: Optional[float] = 1.0,
        listeners: Optional[Sequence[str]] = None,
    ):
        self.loss = loss
        self.optimizer = optimizer
        self.learning_rate = learning_rate
        self.weight_decay = weight_decay
        self.grad_clip = grad_clip
        self.listeners = list(listeners) if listeners is not None else None

    def build(self) -> TrainingPlan:
        """Build a plan with fresh listener instances."""
        listeners = basic_listeners() if self.listeners is None else create_listeners(self.listeners)
        return TrainingPlan(
            loss=self.loss,
            optimizer=self.optimizer,
            learning_rate=self.learning_rate,
            weight_decay=self.weight_decay,
            grad_clip=self.grad_clip,
            listeners=listeners,
        )

    def to_spec(self) -> Dict[str, Any]:
        spec: Dict[str, Any] = {
            "type": "regression",
            "loss": self.loss,
            "optimizer": self.optimizer,
            "learning_rate": self.learning_rate,
            "weight_decay": self.weight_decay,
            "grad_clip": self.grad_clip,
        }
        if self.listeners is not None:
            spec["listeners"] = list(self.listeners)
        return spec

    def __repr__(self) -> str:
        return f"RegressionTrainingPlan(loss={self.loss!r}, optimizer={self.optimizer!r}, lr={self.learning_rate})"


__all__ = ["TrainingPlan", "TrainingPlanBuilder", "RegressionTrainingPlan", "LOSSES", "OPTIMIZERS"]
