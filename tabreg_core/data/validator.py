"""TabReg Capability Validator - Dataset constraint checks.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import List, Optional, Sequence

from tabreg_core.data.schema import AttributeType, LabeledDataset
from tabreg_core.exceptions import CapabilityError

logger = logging.getLogger(__name__)


class Capability(Enum):
    """Data characteristics a learner can handle."""

    NUMERIC_ATTRIBUTES = auto()
    NOMINAL_ATTRIBUTES = auto()
    STRING_ATTRIBUTES = auto()
    MISSING_VALUES = auto()
    NUMERIC_CLASS = auto()
    NOMINAL_CLASS = auto()
    MISSING_CLASS_VALUES = auto()


@dataclass
class ValidationIssue:
    """A validation issue."""

    column: str
    issue_type: str
    message: str
    row_indices: List[int] = field(default_factory=list)


@dataclass
class ValidationResult:
    """Result of capability validation."""

    valid: bool
    issues: List[ValidationIssue] = field(default_factory=list)
    validated_at: datetime = field(default_factory=datetime.now)

    def add_issue(
        self,
        column: str,
        issue_type: str,
        message: str,
        row_indices: Optional[List[int]] = None,
    ) -> None:
        self.issues.append(ValidationIssue(column, issue_type, message, row_indices or []))
        self.valid = False


_DEFAULT_CAPABILITIES = frozenset({Capability.NUMERIC_ATTRIBUTES, Capability.NUMERIC_CLASS})


class CapabilityValidator:
    """Checks a labeled dataset against a set of enabled capabilities.

    The defaults allow numeric feature attributes and a numeric label only;
    missing values are rejected.

    Example:
        validator = CapabilityValidator()
        validator.test(dataset)  # raises CapabilityError on violations
    """

    def __init__(
        self,
        capabilities: Optional[Sequence[Capability]] = None,
        features: Optional[Sequence[str]] = None,
    ):
        """Initialize validator.

        Args:
            capabilities: Enabled capabilities (defaults to numeric attributes
                and numeric class)
            features: Restrict attribute checks to these attributes
        """
        self.capabilities = frozenset(capabilities) if capabilities is not None else _DEFAULT_CAPABILITIES
        self.features = list(features) if features is not None else None

    def handles(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def validate(self, dataset: LabeledDataset) -> ValidationResult:
        """Validate dataset, collecting every issue found."""
        result = ValidationResult(valid=True)
        schema = dataset.schema
        label = schema.label

        if label is None:
            result.add_issue("<label>", "no_class", "No label attribute set")
            return result

        label_attr = schema.attribute(label)
        if label_attr.is_numeric and not self.handles(Capability.NUMERIC_CLASS):
            result.add_issue(label, "class_type", "Cannot handle numeric label")
        elif not label_attr.is_numeric and not self.handles(Capability.NOMINAL_CLASS):
            result.add_issue(label, "class_type", f"Cannot handle {label_attr.type.name.lower()} label")

        if not self.handles(Capability.MISSING_CLASS_VALUES):
            missing = [i for i, r in enumerate(dataset) if r.is_missing(label)]
            if missing:
                result.add_issue(label, "missing_class", f"{len(missing)} missing label value(s)", missing)

        if self.features is None:
            features = [n for n in schema.names if n != label]
        else:
            features = self.features
            for name in features:
                if name not in schema:
                    result.add_issue(name, "unknown_attribute", "Selected feature is not in the schema")
            features = [n for n in features if n in schema and n != label]

        if not features:
            result.add_issue("<features>", "no_attributes", "No usable feature attributes")

        for name in features:
            attribute = schema.attribute(name)
            if attribute.is_numeric:
                capability = Capability.NUMERIC_ATTRIBUTES
            elif attribute.type == AttributeType.NOMINAL:
                capability = Capability.NOMINAL_ATTRIBUTES
            else:
                capability = Capability.STRING_ATTRIBUTES
            if not self.handles(capability):
                result.add_issue(
                    name, "attribute_type",
                    f"Cannot handle {attribute.type.name.lower()} attribute",
                )
                continue

            if not self.handles(Capability.MISSING_VALUES):
                missing = [i for i, r in enumerate(dataset) if r.is_missing(name)]
                if missing:
                    result.add_issue(name, "missing_values", f"{len(missing)} missing value(s)", missing)

        return result

    def test(self, dataset: LabeledDataset) -> None:
        """Validate dataset and raise if any issue was found.

        Raises:
            CapabilityError: If any capability is violated
        """
        result = self.validate(dataset)
        if not result.valid:
            issues = [f"{i.column}: {i.message}" for i in result.issues]
            logger.debug(f"Capability check failed with {len(issues)} issue(s)")
            raise CapabilityError("Dataset not supported", issues)


__all__ = [
    "Capability",
    "CapabilityValidator",
    "ValidationIssue",
    "ValidationResult",
]
