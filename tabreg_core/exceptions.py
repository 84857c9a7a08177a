"""TabReg Exceptions - Error taxonomy for the model lifecycle.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

from typing import List, Optional


class TabRegError(Exception):
    """Base exception for all TabReg errors."""

    pass


class CapabilityError(TabRegError):
    """Dataset violates the attribute-type constraints of the regressor."""

    def __init__(self, message: str, issues: Optional[List[str]] = None) -> None:
        self.issues = list(issues or [])
        if self.issues:
            message = f"{message}: " + "; ".join(self.issues)
        super().__init__(message)


class ReconstructionError(TabRegError):
    """Persisted model state cannot be matched against the supplied schema."""

    pass


class PredictionError(TabRegError):
    """A prediction could not be produced."""

    pass


class EncodingError(PredictionError):
    """A prediction record cannot be encoded into the model's input vector."""

    def __init__(self, feature: str, reason: str) -> None:
        self.feature = feature
        self.reason = reason
        super().__init__(f"Cannot encode feature '{feature}': {reason}")


class TrainingError(TabRegError):
    """Engine-level failure while fitting a network."""

    pass


class CleanupWarning(UserWarning):
    """A stale model artifact could not be removed before training."""

    pass


__all__ = [
    "TabRegError",
    "CapabilityError",
    "ReconstructionError",
    "PredictionError",
    "EncodingError",
    "TrainingError",
    "CleanupWarning",
]
