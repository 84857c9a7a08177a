"""TabReg Regression Metrics - Error measures for validation.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, Sequence

import numpy as np

logger = logging.getLogger(__name__)


class RegressionMetrics:
    """Compute regression metrics (MSE, RMSE, MAE, R2).

    Inputs of unequal length, or empty inputs, score 0.0.
    """

    @staticmethod
    def mse(y_true: Sequence[float], y_pred: Sequence[float]) -> float:
        """Compute Mean Squared Error."""
        if len(y_true) != len(y_pred) or len(y_true) == 0:
            return 0.0

        errors = np.asarray(y_true, dtype=np.float64) - np.asarray(y_pred, dtype=np.float64)
        return float(np.mean(errors ** 2))

    @staticmethod
    def rmse(y_true: Sequence[float], y_pred: Sequence[float]) -> float:
        """Compute Root Mean Squared Error."""
        return math.sqrt(RegressionMetrics.mse(y_true, y_pred))

    @staticmethod
    def mae(y_true: Sequence[float], y_pred: Sequence[float]) -> float:
        """Compute Mean Absolute Error."""
        if len(y_true) != len(y_pred) or len(y_true) == 0:
            return 0.0

        errors = np.asarray(y_true, dtype=np.float64) - np.asarray(y_pred, dtype=np.float64)
        return float(np.mean(np.abs(errors)))

    @staticmethod
    def r2_score(y_true: Sequence[float], y_pred: Sequence[float]) -> float:
        """Compute R-squared (coefficient of determination)."""
        if len(y_true) != len(y_pred) or len(y_true) < 2:
            return 0.0

        t = np.asarray(y_true, dtype=np.float64)
        p = np.asarray(y_pred, dtype=np.float64)
        ss_tot = float(np.sum((t - t.mean()) ** 2))
        ss_res = float(np.sum((t - p) ** 2))

        if ss_tot == 0:
            return 0.0

        return 1 - (ss_res / ss_tot)

    @classmethod
    def compute_all(cls, y_true: Sequence[float], y_pred: Sequence[float]) -> Dict[str, float]:
        """All metrics keyed by name."""
        return {
            "mse": cls.mse(y_true, y_pred),
            "rmse": cls.rmse(y_true, y_pred),
            "mae": cls.mae(y_true, y_pred),
            "r2": cls.r2_score(y_true, y_pred),
        }


__all__ = ["RegressionMetrics"]
