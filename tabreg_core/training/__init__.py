"""Training module - Plans, listeners and the torch engine."""

from tabreg_core.training.listeners import (
    TrainingListener,
    TrainingProgress,
    basic_listeners,
    create_listeners,
)
from tabreg_core.training.plan import RegressionTrainingPlan, TrainingPlan, TrainingPlanBuilder
from tabreg_core.training.engine import FitResult, TorchEngine

__all__ = [
    "TrainingListener",
    "TrainingProgress",
    "basic_listeners",
    "create_listeners",
    "TrainingPlan",
    "TrainingPlanBuilder",
    "RegressionTrainingPlan",
    "FitResult",
    "TorchEngine",
]
