"""TabReg Regressor - Model lifecycle from labeled data to predictions.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from tabreg_core.config import RegressorConfig
from tabreg_core.data.adapter import AdaptationDescriptor, DatasetAdapter, FeatureEncoder
from tabreg_core.data.schema import LabeledDataset, Record, Schema
from tabreg_core.data.validator import CapabilityValidator
from tabreg_core.exceptions import PredictionError, ReconstructionError, TrainingError
from tabreg_core.model.artifact import ModelArtifact, remove_stale_files
from tabreg_core.model.handle import ModelHandle
from tabreg_core.model.registry import ModelHandleRegistry, get_default_registry
from tabreg_core.network.builder import ArchitectureBuilder
from tabreg_core.network.topology import NetworkTopology
from tabreg_core.providers.identity import IdentityProvider
from tabreg_core.providers.location import LocationProvider
from tabreg_core.serving.predictor import Predictor
from tabreg_core.strategies import (
    resolve_architecture,
    resolve_identity,
    resolve_location,
    resolve_training_plan,
)
from tabreg_core.training.engine import FitResult, TorchEngine
from tabreg_core.training.plan import TrainingPlanBuilder
from tabreg_core.utils.hashing import compute_file_hash
from tabreg_core.utils.unique_ids import next_id

logger = logging.getLogger(__name__)


class RegressorState(Enum):
    """Lifecycle states of a regressor."""

    UNBUILT = auto()
    TRAINING = auto()
    TRAINED = auto()
    LOADED = auto()
    SERVING = auto()


class TabularRegressor:
    """Trains, persists, reloads and serves a tabular regression network.

    Strategies for network architecture, training plan, model identity and
    storage location are taken from the configuration unless passed in
    directly. Live model handles are registered by name in a
    :class:`ModelHandleRegistry`, so two regressors training under the same
    name leave a single live handle behind.

    Features:
    - Capability check before any file or engine work
    - Stale weights cleanup before training
    - Lazy model reload and predictor creation on first prediction
    - Name-based encoding of prediction records

    Example:
        config = RegressorConfig(num_epochs=5, location={"type": "fixed", "path": "models"})
        with TabularRegressor(config) as regressor:
            regressor.train(dataset)
            value = regressor.predict(dataset[0])

        # later, in another process
        regressor = TabularRegressor.load("models", "tabreg")
        value = regressor.predict(record)
    """

    def __init__(
        self,
        config: Optional[RegressorConfig] = None,
        architecture: Optional[ArchitectureBuilder] = None,
        training_plan: Optional[TrainingPlanBuilder] = None,
        identity: Optional[IdentityProvider] = None,
        location: Optional[LocationProvider] = None,
        registry: Optional[ModelHandleRegistry] = None,
        engine: Optional[TorchEngine] = None,
        adapter: Optional[DatasetAdapter] = None,
    ):
        self.config = config or RegressorConfig()
        self.architecture = architecture or resolve_architecture(self.config.architecture)
        self.training_plan = training_plan or resolve_training_plan(self.config.training_plan)
        self.identity = identity or resolve_identity(self.config.identity)
        self.location = location or resolve_location(self.config.location)
        self.registry = registry if registry is not None else get_default_registry()
        self.engine = engine or TorchEngine(self.config.device)
        self.adapter = adapter or DatasetAdapter()

        self.state = RegressorState.UNBUILT
        self.model_name: Optional[str] = None
        self.directory: Optional[Path] = None
        self.descriptor: Optional[AdaptationDescriptor] = None
        self.header: Optional[Schema] = None
        self.topology: Optional[NetworkTopology] = None
        self.artifact: Optional[ModelArtifact] = None
        self.fit_result: Optional[FitResult] = None

        self._handle: Optional[ModelHandle] = None
        self._encoder: Optional[FeatureEncoder] = None
        self._predictor: Optional[Predictor] = None

    @classmethod
    def from_config(
        cls,
        config: Union[RegressorConfig, Dict[str, Any], str, Path],
        **kwargs,
    ) -> "TabularRegressor":
        """Create a regressor from a config object, mapping or JSON file."""
        if isinstance(config, (str, Path)):
            config = RegressorConfig.from_file(config)
        elif isinstance(config, dict):
            config = RegressorConfig.from_dict(config)
        return cls(config, **kwargs)

    @classmethod
    def load(
        cls,
        directory: Union[str, Path],
        name: str,
        registry: Optional[ModelHandleRegistry] = None,
        engine: Optional[TorchEngine] = None,
    ) -> "TabularRegressor":
        """Re-create a trained regressor from its persisted files.

        The configuration saved with the model is reused, pinned to the given
        directory and name.

        Raises:
            FileNotFoundError: If no model named name exists in directory
            ReconstructionError: If the persisted files are inconsistent
        """
        artifact = ModelArtifact.read(directory, name)
        data = dict(artifact.config)
        data["identity"] = {"type": "fixed", "id": name}
        data["location"] = {"type": "fixed", "path": str(directory)}
        data["parallel"] = False
        config = RegressorConfig.from_dict(data)

        regressor = cls(config, registry=registry, engine=engine)
        regressor._load(artifact)
        return regressor

    @property
    def handle(self) -> Optional[ModelHandle]:
        return self._handle

    @property
    def is_trained(self) -> bool:
        return self.artifact is not None

    def train(self, dataset: LabeledDataset) -> ModelArtifact:
        """Train a model on dataset and persist it.

        Args:
            dataset: Labeled records with numeric features and a numeric label

        Returns:
            The persisted ModelArtifact

        Raises:
            CapabilityError: If the dataset is not supported; nothing is written
            TrainingError: If the engine fails during fitting
        """
        CapabilityValidator().test(dataset)

        self._release_handle()
        self._reset()
        self.state = RegressorState.TRAINING
        config = self.config

        try:
            name = self.identity.generate()
            if config.parallel:
                name = f"{name}-{next_id()}"
            directory = Path(self.location.generate())
            directory.mkdir(parents=True, exist_ok=True)
            self.model_name, self.directory = name, directory

            removed = remove_stale_files(directory, name)
            if removed:
                logger.info(f"Removed {len(removed)} stale file(s) for model {name}")

            data, descriptor = self.adapter.build(
                dataset,
                batch_size=config.mini_batch_size,
                shuffle=True,
            )
            self.descriptor = descriptor
            self.header = dataset.schema

            train, validation = self.adapter.split(data, config.train_percentage, seed=config.seed)
            logger.info(
                f"Training model {name} on {len(train)} rows, validating on {len(validation)} "
                f"({config.num_epochs} epoch(s), size {config.size_hint})"
            )

            handle = self.engine.create_handle(name)
            self.registry.install(name, handle)
            self._handle = handle

            topology = self.architecture.build(
                descriptor.feature_size, descriptor.label_size, config.size_hint
            )
            if topology.input_dim != descriptor.feature_size:
                raise TrainingError(
                    f"Architecture expects {topology.input_dim} inputs, "
                    f"dataset provides {descriptor.feature_size}"
                )
            self.topology = topology
            self.engine.initialize(handle, topology, seed=config.seed)

            plan = self.training_plan.build()
            self.fit_result = self.engine.fit(
                handle, plan, train, validation, epochs=config.num_epochs, seed=config.seed
            )
            if handle.released:
                raise TrainingError(f"Model {name} was evicted from the registry during training")

            self._encoder = FeatureEncoder(descriptor)

            params_path = self.engine.save(handle, directory, name, config.num_epochs)
            artifact = ModelArtifact(
                name=name,
                directory=directory,
                epoch=config.num_epochs,
                checksum=compute_file_hash(params_path),
                descriptor=descriptor.to_dict(),
                header=self.header.to_dict(),
                topology=topology.to_dict(),
                config=config.to_dict(),
                metrics=self.fit_result.to_dict(),
            )
            artifact.write_manifest()
            self.artifact = artifact
        except Exception:
            logger.error(f"Training of model {self.model_name} failed")
            self._release_handle()
            self._reset()
            raise

        self.state = RegressorState.TRAINED
        return artifact

    def predict(self, record: Record) -> float:
        """Predict the label of one record.

        Loads the persisted model and creates the predictor on first use.

        Raises:
            EncodingError: If the record lacks a trained-on feature or has a
                missing or non-numeric value; the regressor is left unchanged
            PredictionError: If no trained model is available
        """
        artifact, descriptor = self._locate()
        vector = FeatureEncoder(descriptor)(record)
        return self._ensure_predictor(artifact).predict(vector)

    def predict_many(self, records: Sequence[Record]) -> List[float]:
        """Predict the labels of several records in one pass."""
        artifact, descriptor = self._locate()
        encoder = FeatureEncoder(descriptor)
        vectors = [encoder(r) for r in records]
        if not vectors:
            return []
        return self._ensure_predictor(artifact).predict_batch(vectors).predictions

    def close(self) -> None:
        """Release the engine handle and predictor; safe to call repeatedly.

        Persisted files are kept, so a later prediction reloads the model.
        """
        if self._handle is None:
            return
        self._release_handle()
        if self.state in (RegressorState.TRAINED, RegressorState.LOADED, RegressorState.SERVING):
            self.state = RegressorState.UNBUILT
        logger.debug(f"Closed regressor for model {self.model_name}")

    def _release_handle(self) -> None:
        handle = self._handle
        self._handle = None
        self._predictor = None
        if handle is None:
            return
        self.registry.release(handle.name, handle)
        if not handle.released:
            handle.release()

    def _reset(self) -> None:
        self.state = RegressorState.UNBUILT
        self.model_name = None
        self.directory = None
        self.descriptor = None
        self.header = None
        self.topology = None
        self.artifact = None
        self.fit_result = None
        self._encoder = None

    def _locate(self) -> Tuple[ModelArtifact, AdaptationDescriptor]:
        """Artifact and descriptor to predict with, without changing state."""
        if self.artifact is not None and self.descriptor is not None:
            return self.artifact, self.descriptor

        name = self.model_name or self.identity.generate()
        directory = self.directory or Path(self.location.generate())
        if not ModelArtifact.exists(directory, name):
            raise PredictionError(f"No trained model {name!r} in {directory}")
        artifact = ModelArtifact.read(directory, name)
        return artifact, AdaptationDescriptor.from_dict(artifact.descriptor)

    def _ensure_predictor(self, artifact: ModelArtifact) -> Predictor:
        if self._handle is None or self._handle.released:
            if self._handle is not None:
                logger.info(f"Model handle {self._handle.name} was released, reloading")
            self._load(artifact)

        if self._predictor is None or not self._predictor.valid:
            self._predictor = self.engine.new_predictor(self._handle, self._encoder)
            self.state = RegressorState.SERVING
        return self._predictor

    def _load(self, artifact: ModelArtifact) -> None:
        """Rebuild the network from persisted files and install its handle.

        Raises:
            ReconstructionError: If the schema, topology or weights do not
                match what was persisted
        """
        descriptor = AdaptationDescriptor.from_dict(artifact.descriptor)
        header = Schema.from_dict(artifact.header)
        self.adapter.reconstruct(header, descriptor)
        artifact.verify()

        try:
            topology = self.architecture.build(
                descriptor.feature_size, descriptor.label_size, self.config.size_hint
            )
        except ValueError as e:
            raise ReconstructionError(f"Cannot rebuild network for {artifact.name}: {e}") from e
        if topology.input_dim != descriptor.feature_size:
            raise ReconstructionError(
                f"Rebuilt network expects {topology.input_dim} inputs, "
                f"model {artifact.name} was trained on {descriptor.feature_size} features"
            )
        if topology != NetworkTopology.from_dict(artifact.topology):
            raise ReconstructionError(
                f"Rebuilt topology {topology} differs from the persisted topology of {artifact.name}"
            )

        logger.info(f"Loading model {artifact.name} from {artifact.directory}")
        handle = self.engine.create_handle(artifact.name)
        self.engine.initialize(handle, topology)
        self.engine.load(handle, artifact.params_path)
        self.registry.install(artifact.name, handle)

        self._handle = handle
        self._predictor = None
        self._encoder = FeatureEncoder(descriptor)
        self.model_name = artifact.name
        self.directory = Path(artifact.directory)
        self.descriptor = descriptor
        self.header = header
        self.topology = topology
        self.artifact = artifact
        self.state = RegressorState.LOADED

    def __enter__(self) -> "TabularRegressor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __getstate__(self) -> Dict[str, Any]:
        state = self.__dict__.copy()
        state["registry"] = None
        state["_handle"] = None
        state["_predictor"] = None
        if state["state"] in (RegressorState.TRAINED, RegressorState.LOADED, RegressorState.SERVING):
            state["state"] = RegressorState.UNBUILT
        return state

    def __setstate__(self, state: Dict[str, Any]) -> None:
        self.__dict__.update(state)
        self.registry = get_default_registry()

    def __str__(self) -> str:
        config = self.config
        lines = [
            f"Architecture........: {self.architecture.to_spec()}",
            f"Size hint...........: {config.size_hint}",
            f"Train %.............: {config.train_percentage}",
            f"Mini batch size.....: {config.mini_batch_size}",
            f"# epochs............: {config.num_epochs}",
            f"Training plan.......: {self.training_plan.to_spec()}",
            f"Identity............: {self.identity.to_spec()}",
            f"Location............: {self.location.to_spec()}",
            f"Parallel............: {config.parallel}",
        ]
        if self.model_name is not None:
            lines.append(f"Model...............: {self.model_name} ({self.state.name})")
        return "\n".join(lines) + "\n"

    def __repr__(self) -> str:
        return f"TabularRegressor(model={self.model_name!r}, state={self.state.name})"


__all__ = ["TabularRegressor", "RegressorState"]
