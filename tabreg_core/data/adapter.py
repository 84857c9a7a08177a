"""TabReg Dataset Adapter - Records to tensor datasets.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import torch
from torch.utils.data import DataLoader, Dataset

from tabreg_core.data.schema import AttributeType, LabeledDataset, Record, Schema
from tabreg_core.data.validator import CapabilityValidator
from tabreg_core.exceptions import EncodingError, ReconstructionError
from tabreg_core.utils.serialization import from_json, to_json

logger = logging.getLogger(__name__)


@dataclass
class AdaptationDescriptor:
    """How tabular columns map onto the network's input vector.

    The order of ``features`` is the order of the input vector, both when the
    network is built and when a prediction record is encoded.

    Attributes:
        features: Feature attribute names, in input order
        label: Label attribute name
        batch_size: Mini-batch size
        shuffle: Whether batches are drawn in random order
        feature_types: Attribute type name per feature
        feature_means: Per-feature mean used for standardisation
        feature_stds: Per-feature standard deviation used for standardisation
        label_mean: Label mean used for standardisation
        label_std: Label standard deviation used for standardisation
    """

    features: List[str]
    label: str
    batch_size: int = 32
    shuffle: bool = True
    feature_types: List[str] = field(default_factory=list)
    feature_means: List[float] = field(default_factory=list)
    feature_stds: List[float] = field(default_factory=list)
    label_mean: float = 0.0
    label_std: float = 1.0

    def __post_init__(self):
        n = len(self.features)
        if not self.feature_types:
            self.feature_types = [AttributeType.NUMERIC.name] * n
        if not self.feature_means:
            self.feature_means = [0.0] * n
        if not self.feature_stds:
            self.feature_stds = [1.0] * n
        for name in ("feature_types", "feature_means", "feature_stds"):
            if len(getattr(self, name)) != n:
                raise ValueError(f"{name} must have {n} entries")

    @property
    def feature_size(self) -> int:
        return len(self.features)

    @property
    def label_size(self) -> int:
        return 1

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AdaptationDescriptor":
        return cls(
            features=list(data["features"]),
            label=data["label"],
            batch_size=int(data.get("batch_size", 32)),
            shuffle=bool(data.get("shuffle", True)),
            feature_types=list(data.get("feature_types", [])),
            feature_means=[float(v) for v in data.get("feature_means", [])],
            feature_stds=[float(v) for v in data.get("feature_stds", [])],
            label_mean=float(data.get("label_mean", 0.0)),
            label_std=float(data.get("label_std", 1.0)),
        )

    def to_json(self) -> str:
        return to_json(self.to_dict())

    @classmethod
    def from_json(cls, text: str) -> "AdaptationDescriptor":
        return cls.from_dict(from_json(text))


class TabularDataset(Dataset):
    """Tensor view of a labeled dataset, yielding ``(features, label)`` pairs.

    Partitions created by :meth:`subset` share the parent's tensors.
    """

    def __init__(
        self,
        descriptor: AdaptationDescriptor,
        features: torch.Tensor,
        labels: torch.Tensor,
        indices: Optional[Sequence[int]] = None,
    ):
        self.descriptor = descriptor
        self._features = features
        self._labels = labels
        if indices is None:
            indices = range(features.shape[0])
        self.indices: List[int] = [int(i) for i in indices]

    @property
    def features(self) -> List[str]:
        return list(self.descriptor.features)

    @property
    def feature_size(self) -> int:
        return self.descriptor.feature_size

    @property
    def label_size(self) -> int:
        return self.descriptor.label_size

    @property
    def batch_size(self) -> int:
        return self.descriptor.batch_size

    @property
    def shuffle(self) -> bool:
        return self.descriptor.shuffle

    def __len__(self) -> int:
        return len(self.indices)

    def __getitem__(self, i: int) -> Tuple[torch.Tensor, torch.Tensor]:
        row = self.indices[i]
        return self._features[row], self._labels[row]

    def subset(self, indices: Sequence[int]) -> "TabularDataset":
        """Partition holding the given positions of this dataset."""
        return TabularDataset(
            self.descriptor,
            self._features,
            self._labels,
            [self.indices[int(i)] for i in indices],
        )

    def loader(self, seed: Optional[int] = None, shuffle: Optional[bool] = None) -> DataLoader:
        """Mini-batch loader over this dataset.

        Args:
            seed: Seed for the shuffling order (random when None)
            shuffle: Override the descriptor's shuffle flag

        Returns:
            torch DataLoader
        """
        shuffle = self.shuffle if shuffle is None else shuffle
        generator = None
        if shuffle and seed is not None:
            generator = torch.Generator()
            generator.manual_seed(seed)
        return DataLoader(
            self,
            batch_size=self.batch_size,
            shuffle=shuffle,
            generator=generator,
            drop_last=False,
        )

    def __repr__(self) -> str:
        return f"TabularDataset(rows={len(self)}, features={self.feature_size}, batch_size={self.batch_size})"


class DatasetAdapter:
    """Adapts attribute-typed records into tensor datasets.

    Features:
    - Feature selection and ordering
    - Standardisation statistics carried in the descriptor
    - Train/validation splitting
    - Reconstruction from a schema-only header and a descriptor

    Example:
        adapter = DatasetAdapter()
        data, descriptor = adapter.build(dataset, batch_size=32)
        train, val = adapter.split(data, 80, seed=1)

        # later, without the training rows
        empty = adapter.reconstruct(dataset.header(), descriptor)
    """

    def __init__(self, normalize: bool = True):
        self.normalize = normalize

    def build(
        self,
        dataset: LabeledDataset,
        feature_selection: Optional[Sequence[str]] = None,
        batch_size: int = 32,
        shuffle: bool = True,
    ) -> Tuple[TabularDataset, AdaptationDescriptor]:
        """Convert records into a tensor dataset.

        Args:
            dataset: Labeled records
            feature_selection: Feature names in input order (all non-label
                attributes in schema order when None)
            batch_size: Mini-batch size
            shuffle: Whether batches are shuffled

        Returns:
            Tuple of (TabularDataset, AdaptationDescriptor)

        Raises:
            CapabilityError: If no usable numeric features exist or the label
                is not numeric
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        schema = dataset.schema
        label = schema.label
        if feature_selection is None:
            features = [n for n in schema.names if n != label]
        else:
            features = [n for n in feature_selection if n != label]

        CapabilityValidator(features=features).test(dataset)

        x = np.array(
            [[float(r.value(name)) for name in features] for r in dataset],
            dtype=np.float64,
        ).reshape(len(dataset), len(features))
        y = np.array([float(r.value(label)) for r in dataset], dtype=np.float64)

        means, stds = np.zeros(len(features)), np.ones(len(features))
        label_mean, label_std = 0.0, 1.0
        if self.normalize and len(dataset) > 0:
            means = x.mean(axis=0)
            stds = _safe_std(x.std(axis=0))
            label_mean = float(y.mean())
            label_std = float(_safe_std(np.array([y.std()]))[0])

        descriptor = AdaptationDescriptor(
            features=list(features),
            label=label,
            batch_size=batch_size,
            shuffle=shuffle,
            feature_types=[schema.attribute(n).type.name for n in features],
            feature_means=[float(v) for v in means],
            feature_stds=[float(v) for v in stds],
            label_mean=label_mean,
            label_std=label_std,
        )

        x_t = torch.as_tensor((x - means) / stds, dtype=torch.float32)
        y_t = torch.as_tensor((y - label_mean) / label_std, dtype=torch.float32).view(-1, 1)

        logger.debug(f"Adapted {len(dataset)} rows with features {features}")
        return TabularDataset(descriptor, x_t, y_t), descriptor

    def split(
        self,
        dataset: TabularDataset,
        train_percentage: int,
        seed: Optional[int] = None,
    ) -> Tuple[TabularDataset, TabularDataset]:
        """Randomly partition into train and validation sets.

        Args:
            dataset: Dataset to partition
            train_percentage: Share of rows for training (1-99, rounded down
                but at least one row); the rest goes to validation
            seed: Seed for the assignment (random when None)

        Returns:
            Tuple of (train, validation)
        """
        if not isinstance(train_percentage, int) or not 1 <= train_percentage <= 99:
            raise ValueError(f"train_percentage must be an integer in 1-99, got {train_percentage!r}")

        n = len(dataset)
        n_train = max(1, n * train_percentage // 100) if n else 0
        order = np.random.default_rng(seed).permutation(n)

        return dataset.subset(order[:n_train]), dataset.subset(order[n_train:])

    def reconstruct(
        self,
        header: Union[Schema, LabeledDataset],
        descriptor: AdaptationDescriptor,
    ) -> TabularDataset:
        """Re-create an empty dataset from a schema and a descriptor.

        Raises:
            ReconstructionError: If the schema lacks a recorded attribute or
                an attribute changed type
        """
        schema = header.schema if isinstance(header, LabeledDataset) else header

        for name, type_name in zip(descriptor.features, descriptor.feature_types):
            if name not in schema:
                raise ReconstructionError(f"Feature '{name}' not found in schema")
            actual = schema.attribute(name).type.name
            if actual != type_name:
                raise ReconstructionError(
                    f"Feature '{name}' has type {actual}, model was trained on {type_name}"
                )
        if descriptor.label not in schema:
            raise ReconstructionError(f"Label '{descriptor.label}' not found in schema")

        n = descriptor.feature_size
        return TabularDataset(
            descriptor,
            torch.empty((0, n), dtype=torch.float32),
            torch.empty((0, 1), dtype=torch.float32),
        )


class FeatureEncoder:
    """Maps prediction records onto the trained input vector.

    Features are looked up by name in the record's schema, in the order
    recorded by the descriptor.
    """

    def __init__(self, descriptor: AdaptationDescriptor):
        self.descriptor = descriptor
        self._means = np.asarray(descriptor.feature_means, dtype=np.float64)
        self._stds = np.asarray(descriptor.feature_stds, dtype=np.float64)

    def encode(self, record: Record) -> List[str]:
        """Ordered feature values as text.

        Raises:
            EncodingError: If a trained-on feature is absent, missing or not
                numeric where the record schema says it is
        """
        encoded = []
        for name in self.descriptor.features:
            if name not in record.schema:
                raise EncodingError(name, "not present in record schema")
            if record.is_missing(name):
                raise EncodingError(name, "missing value")
            try:
                encoded.append(record.string_value(name))
            except (TypeError, ValueError):
                raise EncodingError(name, f"non-numeric value {record.value(name)!r}") from None
        return encoded

    def to_vector(self, encoded: Sequence[str]) -> np.ndarray:
        """Standardised float vector for an encoded record."""
        if len(encoded) != self.descriptor.feature_size:
            raise EncodingError(
                "<input>",
                f"expected {self.descriptor.feature_size} values, got {len(encoded)}",
            )
        values = np.empty(len(encoded), dtype=np.float64)
        for i, (name, text) in enumerate(zip(self.descriptor.features, encoded)):
            try:
                values[i] = float(text)
            except ValueError:
                raise EncodingError(name, f"non-numeric value {text!r}") from None
        return ((values - self._means) / self._stds).astype(np.float32)

    def decode_label(self, value: float) -> float:
        """Undo label standardisation."""
        return float(value) * self.descriptor.label_std + self.descriptor.label_mean

    def __call__(self, record: Record) -> np.ndarray:
        return self.to_vector(self.encode(record))


def _safe_std(std: np.ndarray) -> np.ndarray:
    std = np.where(np.isfinite(std) & (std > 1e-12), std, 1.0)
    return std


__all__ = [
    "AdaptationDescriptor",
    "TabularDataset",
    "DatasetAdapter",
    "FeatureEncoder",
]
