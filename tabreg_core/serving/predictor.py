"""TabReg Predictor - Single-record and batch prediction.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

import numpy as np
import torch

from tabreg_core.data.adapter import FeatureEncoder
from tabreg_core.exceptions import PredictionError
from tabreg_core.model.handle import ModelHandle
from tabreg_core.utils.timing import Timer

logger = logging.getLogger(__name__)


@dataclass
class PredictionResult:
    """Batch prediction result."""

    predictions: List[float]
    latency_ms: float = 0.0
    model_name: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)


class Predictor:
    """Maps encoded feature vectors to scalar predictions.

    Bound to one model handle; unusable once that handle is released.
    """

    def __init__(self, handle: ModelHandle, encoder: FeatureEncoder):
        self.handle = handle
        self.encoder = encoder

    @property
    def valid(self) -> bool:
        return not self.handle.released

    def _forward(self, matrix: np.ndarray) -> np.ndarray:
        if not self.valid:
            raise PredictionError(f"Model handle {self.handle.name!r} was released")
        network = self.handle.network
        network.eval()
        with torch.no_grad():
            x = torch.as_tensor(matrix, dtype=torch.float32, device=self.handle.device)
            out = network(x)
        return out[:, 0].detach().cpu().numpy().astype(np.float64)

    def predict(self, vector: np.ndarray) -> float:
        """Predict from one standardised feature vector (see FeatureEncoder)."""
        raw = self._forward(np.asarray(vector, dtype=np.float32).reshape(1, -1))
        return self.encoder.decode_label(raw[0])

    def predict_batch(self, vectors: Sequence[np.ndarray]) -> PredictionResult:
        """Predict from many standardised feature vectors in one forward pass."""
        if len(vectors) == 0:
            return PredictionResult(predictions=[], model_name=self.handle.name)

        with Timer(log=False) as timer:
            raw = self._forward(np.stack([np.asarray(v, dtype=np.float32) for v in vectors]))
            predictions = [self.encoder.decode_label(v) for v in raw]

        return PredictionResult(
            predictions=predictions,
            latency_ms=timer.elapsed_ms,
            model_name=self.handle.name,
            metadata={"rows": len(predictions)},
        )

    def __repr__(self) -> str:
        return f"Predictor(model={self.handle.name!r}, valid={self.valid})"


__all__ = ["Predictor", "PredictionResult"]
