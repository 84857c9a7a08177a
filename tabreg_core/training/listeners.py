"""TabReg Training Listeners - Progress hooks for the fit loop.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from tabreg_core.exceptions import TrainingError
from tabreg_core.utils.timing import Timer, TimingStats

logger = logging.getLogger(__name__)


@dataclass
class TrainingProgress:
    """Snapshot of a training run passed to listeners."""

    model_name: str
    epoch: int = 0
    num_epochs: int = 0
    train_loss: float = float("nan")
    validation_loss: Optional[float] = None
    metrics: Dict[str, float] = field(default_factory=dict)
    elapsed_seconds: float = 0.0


class TrainingListener:
    """Receives training events. All hooks default to no-ops."""

    def on_training_begin(self, progress: TrainingProgress) -> None:
        pass

    def on_epoch_end(self, progress: TrainingProgress) -> None:
        pass

    def on_training_end(self, progress: TrainingProgress) -> None:
        pass


class LoggingListener(TrainingListener):
    """Logs one line per epoch."""

    def on_training_begin(self, progress: TrainingProgress) -> None:
        logger.info(f"Training {progress.model_name} for {progress.num_epochs} epoch(s)")

    def on_epoch_end(self, progress: TrainingProgress) -> None:
        val = "n/a" if progress.validation_loss is None else f"{progress.validation_loss:.6f}"
        extra = " ".join(f"{k}={v:.4f}" for k, v in progress.metrics.items())
        logger.info(
            f"[{progress.model_name}] epoch {progress.epoch}/{progress.num_epochs} "
            f"train_loss={progress.train_loss:.6f} val_loss={val} {extra}".rstrip()
        )

    def on_training_end(self, progress: TrainingProgress) -> None:
        logger.info(f"Finished training {progress.model_name} in {progress.elapsed_seconds:.2f}s")


class MetricsListener(TrainingListener):
    """Keeps the per-epoch loss and metric history."""

    def __init__(self):
        self.history: List[Dict[str, Any]] = []

    def on_training_begin(self, progress: TrainingProgress) -> None:
        self.history = []

    def on_epoch_end(self, progress: TrainingProgress) -> None:
        entry: Dict[str, Any] = {"epoch": progress.epoch, "train_loss": progress.train_loss}
        if progress.validation_loss is not None:
            entry["validation_loss"] = progress.validation_loss
        entry.update(progress.metrics)
        self.history.append(entry)

    @property
    def latest(self) -> Optional[Dict[str, Any]]:
        return self.history[-1] if self.history else None


class TimingListener(TrainingListener):
    """Records the wall-clock duration of each epoch."""

    def __init__(self):
        self.stats = TimingStats()
        self._timer = Timer(log=False)

    def on_training_begin(self, progress: TrainingProgress) -> None:
        self.stats = TimingStats()
        self._timer.start()

    def on_epoch_end(self, progress: TrainingProgress) -> None:
        self.stats.record(self._timer.lap())

    def on_training_end(self, progress: TrainingProgress) -> None:
        logger.debug(f"Epoch timing for {progress.model_name}: {self.stats.to_dict()}")


class DivergenceCheckListener(TrainingListener):
    """Aborts training once the loss stops being finite."""

    def on_epoch_end(self, progress: TrainingProgress) -> None:
        if not math.isfinite(progress.train_loss):
            raise TrainingError(
                f"Training of {progress.model_name} diverged at epoch {progress.epoch} "
                f"(train_loss={progress.train_loss})"
            )


LISTENERS: Dict[str, Callable[[], TrainingListener]] = {
    "logging": LoggingListener,
    "metrics": MetricsListener,
    "timing": TimingListener,
    "divergence": DivergenceCheckListener,
}


def basic_listeners() -> List[TrainingListener]:
    """Default listener set: logging, metrics history, timing and divergence check."""
    return [LoggingListener(), MetricsListener(), TimingListener(), DivergenceCheckListener()]


def create_listeners(names: Sequence[str]) -> List[TrainingListener]:
    """Instantiate listeners by name.

    Raises:
        KeyError: For unknown listener names
    """
    listeners = []
    for name in names:
        if name not in LISTENERS:
            raise KeyError(f"Unknown training listener {name!r}, known: {sorted(LISTENERS)}")
        listeners.append(LISTENERS[name]())
    return listeners


__all__ = [
    "TrainingProgress",
    "TrainingListener",
    "LoggingListener",
    "MetricsListener",
    "TimingListener",
    "DivergenceCheckListener",
    "basic_listeners",
    "create_listeners",
]
