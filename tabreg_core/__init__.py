"""TabReg - Tabular Regression Model Lifecycle.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

Trains a tabular regression network on attribute-typed records and manages
the trained model across train, save, load and predict:
- Capability checks on the input dataset
- Dataset adaptation with a serializable descriptor
- Pluggable architecture, training plan, identity and location strategies
- Process-wide registry of live model handles
- Persisted weights plus manifest, reloadable without the training rows
- Lazy predictor creation

Architecture:
    ┌─────────────────────────────────────────────────────────────────┐
    │                        TabReg Regressor                          │
    ├─────────────────────────────────────────────────────────────────┤
    │  ┌─────────────┐  ┌─────────────┐  ┌─────────────┐             │
    │  │  Identity   │  │  Location   │  │   Config    │ STRATEGIES  │
    │  └──────┬──────┘  └──────┬──────┘  └──────┬──────┘             │
    │         │                │                │                     │
    │  ┌──────┴────────────────┴────────────────┴──────┐             │
    │  │              Dataset Adapter                   │             │
    │  │   ┌──────┐  ┌────────┐  ┌─────┐  ┌──────────┐ │    DATA     │
    │  │   │Schema│  │Validate│  │Split│  │Descriptor│ │    LAYER    │
    │  │   └──────┘  └────────┘  └─────┘  └──────────┘ │             │
    │  └──────────────────────┬────────────────────────┘             │
    │                         │                                       │
    │  ┌──────────────────────┴────────────────────────┐             │
    │  │          Architecture + Training Plan          │             │
    │  │   ┌────────┐  ┌────────┐  ┌──────────┐        │  TRAINING   │
    │  │   │Topology│  │  Plan  │  │  Engine  │        │    LAYER    │
    │  │   └────────┘  └────────┘  └──────────┘        │             │
    │  └──────────────────────┬────────────────────────┘             │
    │                         │                                       │
    │  ┌──────────────────────┴────────────────────────┐             │
    │  │            Handles and Artifacts               │             │
    │  │   ┌────────┐  ┌────────┐  ┌─────────┐         │   MODEL     │
    │  │   │Registry│  │Manifest│  │Predictor│         │   LAYER     │
    │  │   └────────┘  └────────┘  └─────────┘         │             │
    │  └──────────────────────────────────────────────┘             │
    └─────────────────────────────────────────────────────────────────┘

Example Usage:
    from tabreg_core import LabeledDataset, RegressorConfig, TabularRegressor

    dataset = LabeledDataset.from_csv("houses.csv", label="price")
    config = RegressorConfig(size_hint="BALANCED", num_epochs=10, seed=7)

    with TabularRegressor(config) as regressor:
        artifact = regressor.train(dataset)
        price = regressor.predict(dataset[0])

    # Reload from disk
    regressor = TabularRegressor.load(artifact.directory, artifact.name)
"""

__version__ = "1.0.0"
__author__ = "BlackRoad OS"

from tabreg_core.exceptions import (
    CapabilityError,
    CleanupWarning,
    EncodingError,
    PredictionError,
    ReconstructionError,
    TabRegError,
    TrainingError,
)
from tabreg_core.data.schema import Attribute, AttributeType, LabeledDataset, Record, Schema
from tabreg_core.data.validator import Capability, CapabilityValidator
from tabreg_core.data.adapter import (
    AdaptationDescriptor,
    DatasetAdapter,
    FeatureEncoder,
    TabularDataset,
)
from tabreg_core.network.topology import NetworkTopology
from tabreg_core.network.builder import (
    ArchitectureBuilder,
    ScriptArchitectureBuilder,
    SizeHint,
    TabularRegressionBuilder,
)
from tabreg_core.training.plan import RegressionTrainingPlan, TrainingPlan, TrainingPlanBuilder
from tabreg_core.training.engine import FitResult, TorchEngine
from tabreg_core.model.handle import ModelHandle
from tabreg_core.model.registry import ModelHandleRegistry, get_default_registry
from tabreg_core.model.artifact import ModelArtifact
from tabreg_core.serving.predictor import PredictionResult, Predictor
from tabreg_core.providers.identity import FixedID, IdentityProvider, UniqueID
from tabreg_core.providers.location import FixedDir, LocationProvider, TempDir
from tabreg_core.config import RegressorConfig
from tabreg_core.regressor import RegressorState, TabularRegressor
from tabreg_core.metrics.regression import RegressionMetrics

__all__ = [
    # Errors
    "TabRegError",
    "CapabilityError",
    "ReconstructionError",
    "PredictionError",
    "EncodingError",
    "TrainingError",
    "CleanupWarning",
    # Data
    "Attribute",
    "AttributeType",
    "Schema",
    "Record",
    "LabeledDataset",
    "Capability",
    "CapabilityValidator",
    "AdaptationDescriptor",
    "DatasetAdapter",
    "FeatureEncoder",
    "TabularDataset",
    # Network
    "NetworkTopology",
    "ArchitectureBuilder",
    "TabularRegressionBuilder",
    "ScriptArchitectureBuilder",
    "SizeHint",
    # Training
    "TrainingPlan",
    "TrainingPlanBuilder",
    "RegressionTrainingPlan",
    "TorchEngine",
    "FitResult",
    # Model
    "ModelHandle",
    "ModelHandleRegistry",
    "get_default_registry",
    "ModelArtifact",
    # Serving
    "Predictor",
    "PredictionResult",
    # Providers
    "IdentityProvider",
    "FixedID",
    "UniqueID",
    "LocationProvider",
    "FixedDir",
    "TempDir",
    # Regressor
    "RegressorConfig",
    "TabularRegressor",
    "RegressorState",
    # Metrics
    "RegressionMetrics",
]
