"""Data module - Records, capability checks and dataset adaptation."""

from tabreg_core.data.schema import Attribute, AttributeType, LabeledDataset, Record, Schema
from tabreg_core.data.validator import Capability, CapabilityValidator, ValidationResult
from tabreg_core.data.adapter import (
    AdaptationDescriptor,
    DatasetAdapter,
    FeatureEncoder,
    TabularDataset,
)

__all__ = [
    "Attribute", "AttributeType", "LabeledDataset", "Record", "Schema",
    "Capability", "CapabilityValidator", "ValidationResult",
    "AdaptationDescriptor", "DatasetAdapter", "FeatureEncoder", "TabularDataset",
]
