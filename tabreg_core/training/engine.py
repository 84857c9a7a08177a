"""TabReg Engine - PyTorch fit loop, persistence and predictors.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np
import torch

from tabreg_core.data.adapter import FeatureEncoder, TabularDataset
from tabreg_core.exceptions import ReconstructionError, TrainingError
from tabreg_core.metrics.regression import RegressionMetrics
from tabreg_core.model.artifact import params_filename
from tabreg_core.model.handle import ModelHandle
from tabreg_core.network.topology import NetworkTopology
from tabreg_core.serving.predictor import Predictor
from tabreg_core.training.listeners import TrainingProgress
from tabreg_core.training.plan import TrainingPlan
from tabreg_core.utils.timing import Timer

logger = logging.getLogger(__name__)


@dataclass
class FitResult:
    """Outcome of a completed fit."""

    epochs: int
    train_loss: float
    validation_loss: Optional[float] = None
    metrics: Dict[str, float] = field(default_factory=dict)
    history: List[Dict[str, Any]] = field(default_factory=list)
    duration_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "epochs": self.epochs,
            "train_loss": self.train_loss,
            "duration_seconds": self.duration_seconds,
        }
        if self.validation_loss is not None:
            data["validation_loss"] = self.validation_loss
        data.update(self.metrics)
        return data


def resolve_device(device: str) -> str:
    """Map "auto" to cuda when available, else cpu."""
    if device == "auto":
        return "cuda" if torch.cuda.is_available() else "cpu"
    if device.startswith("cuda") and not torch.cuda.is_available():
        raise ValueError(f"Device {device!r} requested but CUDA is not available")
    if device != "cpu" and not device.startswith("cuda"):
        raise ValueError(f"Unknown device {device!r}")
    return device


class TorchEngine:
    """Tensor engine backed by PyTorch.

    Trains the network attached to a model handle, persists its weights and
    hands out predictors bound to the handle.

    Example:
        engine = TorchEngine()
        handle = engine.create_handle("tabreg")
        engine.initialize(handle, topology, seed=1)
        result = engine.fit(handle, plan, train, validation, epochs=20)
        engine.save(handle, "models", "tabreg", result.epochs)
    """

    def __init__(self, device: str = "cpu"):
        self.device = resolve_device(device)

    def create_handle(self, name: str) -> ModelHandle:
        return ModelHandle(name, device=self.device)

    def initialize(self, handle: ModelHandle, topology: NetworkTopology, seed: Optional[int] = None) -> None:
        """Attach a freshly initialised network for topology to the handle."""
        if seed is not None:
            torch.manual_seed(seed)
        handle.attach(topology.create())
        logger.debug(f"Initialised network for {handle.name}: {topology}")

    def fit(
        self,
        handle: ModelHandle,
        plan: TrainingPlan,
        train: TabularDataset,
        validation: Optional[TabularDataset] = None,
        epochs: int = 20,
        seed: Optional[int] = None,
    ) -> FitResult:
        """Train the handle's network.

        Args:
            handle: Handle with an attached network
            plan: Loss, optimizer and listeners
            train: Training partition
            validation: Validation partition (may be empty)
            epochs: Number of passes over the training partition
            seed: Seed for weight updates and batch order

        Returns:
            FitResult with the final losses and label-scale metrics

        Raises:
            TrainingError: If the training partition is empty or the engine fails
        """
        if epochs <= 0:
            raise ValueError(f"epochs must be positive, got {epochs}")
        if len(train) == 0:
            raise TrainingError(f"No training rows for model {handle.name}")

        if seed is not None:
            torch.manual_seed(seed)

        network = handle.network
        loss_fn = plan.create_loss()
        optimizer = plan.create_optimizer(network.parameters())
        has_validation = validation is not None and len(validation) > 0

        progress = TrainingProgress(model_name=handle.name, num_epochs=epochs)
        timer = Timer(log=False)
        timer.start()
        for listener in plan.listeners:
            listener.on_training_begin(progress)

        try:
            for epoch in range(1, epochs + 1):
                network.train()
                total, count = 0.0, 0
                loader = train.loader(seed=None if seed is None else seed + epoch)
                for x, y in loader:
                    x = x.to(self.device)
                    y = y.to(self.device)

                    optimizer.zero_grad()
                    loss = loss_fn(network(x), y)
                    loss.backward()
                    if plan.grad_clip is not None:
                        torch.nn.utils.clip_grad_norm_(network.parameters(), plan.grad_clip)
                    optimizer.step()

                    total += loss.item() * x.shape[0]
                    count += x.shape[0]

                progress.epoch = epoch
                progress.train_loss = total / count
                progress.validation_loss = None
                progress.metrics = {}
                if has_validation:
                    progress.validation_loss, progress.metrics = self.evaluate(handle, plan, validation)
                progress.elapsed_seconds = timer.elapsed

                for listener in plan.listeners:
                    listener.on_epoch_end(progress)
        except (RuntimeError, ValueError) as e:
            raise TrainingError(f"Training of {handle.name} failed at epoch {progress.epoch}: {e}") from e

        for listener in plan.listeners:
            listener.on_training_end(progress)

        history: List[Dict[str, Any]] = []
        for listener in plan.listeners:
            if hasattr(listener, "history"):
                history = list(listener.history)

        return FitResult(
            epochs=epochs,
            train_loss=progress.train_loss,
            validation_loss=progress.validation_loss,
            metrics=dict(progress.metrics),
            history=history,
            duration_seconds=progress.elapsed_seconds,
        )

    def evaluate(
        self,
        handle: ModelHandle,
        plan: TrainingPlan,
        dataset: TabularDataset,
    ) -> Tuple[float, Dict[str, float]]:
        """Loss in standardised units plus metrics in label units."""
        network = handle.network
        loss_fn = plan.create_loss()
        descriptor = dataset.descriptor

        network.eval()
        total, count = 0.0, 0
        preds, targets = [], []
        with torch.no_grad():
            for x, y in dataset.loader(shuffle=False):
                x = x.to(self.device)
                y = y.to(self.device)
                out = network(x)
                total += loss_fn(out, y).item() * x.shape[0]
                count += x.shape[0]
                preds.append(out[:, 0].cpu().numpy())
                targets.append(y[:, 0].cpu().numpy())

        scale, shift = descriptor.label_std, descriptor.label_mean
        y_pred = np.concatenate(preds).astype(np.float64) * scale + shift
        y_true = np.concatenate(targets).astype(np.float64) * scale + shift
        return total / count, RegressionMetrics.compute_all(y_true, y_pred)

    def save(
        self,
        handle: ModelHandle,
        directory: Union[str, Path],
        name: str,
        epoch: int,
    ) -> Path:
        """Write the network weights to ``{directory}/{name}-{epoch:04d}.params``.

        Raises:
            TrainingError: If the handle was released before the weights were read
        """
        try:
            state = handle.network.state_dict()
        except RuntimeError as e:
            raise TrainingError(f"Cannot save model {name}: {e}") from e
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / params_filename(name, epoch)
        torch.save(state, path)
        logger.info(f"Saved model {name} to {path}")
        return path

    def load(self, handle: ModelHandle, path: Union[str, Path]) -> None:
        """Load weights into the handle's attached network.

        Raises:
            ReconstructionError: If the file cannot be read or does not fit
                the network
        """
        path = Path(path)
        try:
            state = torch.load(path, map_location=self.device, weights_only=True)
            handle.network.load_state_dict(state)
        except (OSError, RuntimeError, KeyError) as e:
            raise ReconstructionError(f"Cannot load weights from {path}: {e}") from e
        logger.info(f"Loaded model {handle.name} from {path}")

    def new_predictor(self, handle: ModelHandle, encoder: FeatureEncoder) -> Predictor:
        predictor = Predictor(handle, encoder)
        logger.info(f"Instantiated predictor for model {handle.name}")
        return predictor

    def __repr__(self) -> str:
        return f"TorchEngine(device={self.device!r})"


__all__ = ["TorchEngine", "FitResult", "resolve_device"]
