"""TabReg Schema - Attribute-typed records and datasets.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import csv
import logging
import math
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)


class AttributeType(Enum):
    """Attribute value types."""

    NUMERIC = auto()
    NOMINAL = auto()
    STRING = auto()


@dataclass(frozen=True)
class Attribute:
    """A named, typed column.

    Attributes:
        name: Attribute name
        type: Value type
        values: Allowed labels for nominal attributes
    """

    name: str
    type: AttributeType = AttributeType.NUMERIC
    values: Tuple[str, ...] = ()

    @property
    def is_numeric(self) -> bool:
        return self.type == AttributeType.NUMERIC

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type.name, "values": list(self.values)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Attribute":
        return cls(
            name=data["name"],
            type=AttributeType[data.get("type", "NUMERIC")],
            values=tuple(data.get("values", ())),
        )


class Schema:
    """Ordered attribute metadata plus the designated label attribute.

    Example:
        schema = Schema(
            [Attribute("x1"), Attribute("x2"), Attribute("y")],
            label="y",
        )
        schema.index("x2")  # 1
    """

    def __init__(self, attributes: Sequence[Attribute], label: Optional[str] = None):
        self._attributes: Tuple[Attribute, ...] = tuple(attributes)
        self._index: Dict[str, int] = {}
        for i, attribute in enumerate(self._attributes):
            if attribute.name in self._index:
                raise ValueError(f"Duplicate attribute name: {attribute.name}")
            self._index[attribute.name] = i

        if label is not None and label not in self._index:
            raise ValueError(f"Label attribute not in schema: {label}")
        self.label = label

    @property
    def attributes(self) -> Tuple[Attribute, ...]:
        return self._attributes

    @property
    def names(self) -> List[str]:
        return [a.name for a in self._attributes]

    @property
    def label_attribute(self) -> Optional[Attribute]:
        if self.label is None:
            return None
        return self.attribute(self.label)

    def attribute(self, name: str) -> Attribute:
        """Get attribute by name.

        Raises:
            KeyError: If no attribute has that name
        """
        return self._attributes[self._index[name]]

    def index(self, name: str) -> int:
        return self._index[name]

    def with_label(self, label: Optional[str]) -> "Schema":
        """Copy of this schema with a different label attribute."""
        return Schema(self._attributes, label=label)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attributes": [a.to_dict() for a in self._attributes],
            "label": self.label,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Schema":
        return cls(
            [Attribute.from_dict(a) for a in data["attributes"]],
            label=data.get("label"),
        )

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __len__(self) -> int:
        return len(self._attributes)

    def __iter__(self) -> Iterator[Attribute]:
        return iter(self._attributes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Schema):
            return NotImplemented
        return self._attributes == other._attributes and self.label == other.label

    def __repr__(self) -> str:
        return f"Schema(attributes={self.names}, label={self.label!r})"


@dataclass(frozen=True)
class Record:
    """A single row bound to its schema."""

    schema: Schema
    values: Mapping[str, Any] = field(default_factory=dict)

    def value(self, name: str) -> Any:
        """Raw value of an attribute (None when missing)."""
        if name not in self.schema:
            raise KeyError(name)
        return self.values.get(name)

    def is_missing(self, name: str) -> bool:
        value = self.value(name)
        if value is None:
            return True
        return isinstance(value, float) and math.isnan(value)

    def string_value(self, name: str) -> str:
        """Value rendered as text: numeric form for numeric attributes, label otherwise."""
        value = self.value(name)
        if self.schema.attribute(name).is_numeric:
            return str(float(value))
        return str(value)


class LabeledDataset:
    """Immutable collection of records sharing one schema with a label.

    Example:
        dataset = LabeledDataset.from_rows(
            [{"x": 1.0, "y": 2.0}, {"x": 2.0, "y": 4.1}],
            label="y",
        )
        header = dataset.header()   # same schema, zero rows
    """

    def __init__(self, schema: Schema, records: Iterable[Record] = ()):
        self.schema = schema
        self._records: Tuple[Record, ...] = tuple(records)
        for record in self._records:
            if record.schema is not schema and record.schema != schema:
                raise ValueError("Record schema does not match dataset schema")

    @property
    def label(self) -> Optional[str]:
        return self.schema.label

    @property
    def records(self) -> Tuple[Record, ...]:
        return self._records

    def header(self) -> "LabeledDataset":
        """Zero-row copy carrying only the schema."""
        return LabeledDataset(self.schema)

    def labels(self) -> List[Any]:
        if self.label is None:
            raise ValueError("Dataset has no label attribute")
        return [r.value(self.label) for r in self._records]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    def __getitem__(self, index: int) -> Record:
        return self._records[index]

    def __repr__(self) -> str:
        return f"LabeledDataset(rows={len(self)}, schema={self.schema!r})"

    @classmethod
    def from_rows(
        cls,
        rows: Sequence[Mapping[str, Any]],
        label: Optional[str] = None,
        attributes: Optional[Sequence[Attribute]] = None,
    ) -> "LabeledDataset":
        """Build a dataset from plain dictionaries.

        Args:
            rows: One mapping per record
            label: Label attribute name
            attributes: Explicit attribute metadata; inferred from the values
                of the first row when omitted

        Returns:
            LabeledDataset
        """
        if attributes is None:
            attributes = _infer_attributes(rows)
        schema = Schema(attributes, label=label)
        return cls(schema, [Record(schema, dict(row)) for row in rows])

    @classmethod
    def from_csv(
        cls,
        path: Union[str, Path],
        label: Optional[str] = None,
        delimiter: str = ",",
    ) -> "LabeledDataset":
        """Load a dataset from a CSV file with a header row.

        Columns whose non-empty cells all parse as numbers become numeric
        attributes; the rest become nominal. Empty cells and ``?`` are missing.
        """
        with Path(path).open(newline="") as f:
            reader = csv.DictReader(f, delimiter=delimiter)
            raw = list(reader)
            fieldnames = list(reader.fieldnames or [])

        attributes = []
        for name in fieldnames:
            cells = [row[name] for row in raw if not _is_missing_cell(row[name])]
            if all(_parses_as_float(c) for c in cells):
                attributes.append(Attribute(name, AttributeType.NUMERIC))
            else:
                attributes.append(Attribute(name, AttributeType.NOMINAL, tuple(dict.fromkeys(cells))))

        rows = []
        for row in raw:
            values: Dict[str, Any] = {}
            for attribute in attributes:
                cell = row[attribute.name]
                if _is_missing_cell(cell):
                    values[attribute.name] = None
                elif attribute.is_numeric:
                    values[attribute.name] = float(cell)
                else:
                    values[attribute.name] = cell
            rows.append(values)

        logger.info(f"Loaded {len(rows)} rows with {len(attributes)} attributes from {path}")
        return cls.from_rows(rows, label=label, attributes=attributes)


def _infer_attributes(rows: Sequence[Mapping[str, Any]]) -> List[Attribute]:
    if not rows:
        raise ValueError("Cannot infer attributes from zero rows")
    attributes = []
    for name in rows[0]:
        present = [row.get(name) for row in rows if row.get(name) is not None]
        if all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in present):
            attributes.append(Attribute(name, AttributeType.NUMERIC))
        else:
            labels = tuple(dict.fromkeys(str(v) for v in present))
            attributes.append(Attribute(name, AttributeType.NOMINAL, labels))
    return attributes


def _is_missing_cell(cell: Optional[str]) -> bool:
    return cell is None or cell.strip() in ("", "?")


def _parses_as_float(cell: str) -> bool:
    try:
        float(cell)
    except ValueError:
        return False
    return True


__all__ = ["AttributeType", "Attribute", "Schema", "Record", "LabeledDataset"]
