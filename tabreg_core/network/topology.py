"""TabReg Network Topology - Attentive tabular network.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping, Optional

import torch
import torch.nn.functional as F
from torch import nn

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NetworkTopology:
    """Description of a TabNet-style network.

    Attributes:
        input_dim: Number of input features
        output_dim: Number of outputs
        num_shared: GLU layers shared across decision steps
        num_independent: GLU layers private to each decision step
        n_d: Width of the decision output of each step
        n_a: Width of the attention output of each step
        n_steps: Number of decision steps
        gamma: Relaxation of feature re-use across steps
    """

    input_dim: int
    output_dim: int
    num_shared: int = 2
    num_independent: int = 2
    n_d: int = 8
    n_a: int = 8
    n_steps: int = 3
    gamma: float = 1.3

    def __post_init__(self):
        if self.input_dim <= 0:
            raise ValueError(f"input_dim must be positive, got {self.input_dim}")
        if self.output_dim <= 0:
            raise ValueError(f"output_dim must be positive, got {self.output_dim}")
        if self.num_shared < 0 or self.num_independent < 0:
            raise ValueError("Layer counts must not be negative")
        if self.num_shared + self.num_independent == 0:
            raise ValueError("At least one GLU layer is required")
        if self.n_d <= 0 or self.n_a <= 0 or self.n_steps <= 0:
            raise ValueError("n_d, n_a and n_steps must be positive")

    def create(self) -> nn.Module:
        """Instantiate a freshly initialised network."""
        return TabularNetwork(self)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NetworkTopology":
        return cls(**{k: data[k] for k in cls.__dataclass_fields__ if k in data})


class GLUBlock(nn.Module):
    """Linear projection, normalisation and gated linear unit."""

    def __init__(self, in_dim: int, out_dim: int, fc: Optional[nn.Linear] = None):
        super().__init__()
        self.fc = fc if fc is not None else nn.Linear(in_dim, 2 * out_dim, bias=False)
        self.norm = nn.LayerNorm(2 * out_dim)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return F.glu(self.norm(self.fc(x)), dim=-1)


class FeatureTransformer(nn.Module):
    """Stack of GLU blocks; the first ``len(shared)`` reuse shared projections."""

    def __init__(self, in_dim: int, out_dim: int, shared: List[nn.Linear], num_independent: int):
        super().__init__()
        blocks = []
        dim = in_dim
        for fc in shared:
            blocks.append(GLUBlock(dim, out_dim, fc))
            dim = out_dim
        for _ in range(num_independent):
            blocks.append(GLUBlock(dim, out_dim))
            dim = out_dim
        self.blocks = nn.ModuleList(blocks)
        self._scale = math.sqrt(0.5)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        for i, block in enumerate(self.blocks):
            out = block(x)
            x = out if i == 0 else (x + out) * self._scale
        return x


class TabularNetwork(nn.Module):
    """Attentive network for tabular regression.

    Each decision step selects features with an attention mask, transforms
    the masked input and adds its decision output to the aggregate passed to
    the final linear head.
    """

    def __init__(self, topology: NetworkTopology):
        super().__init__()
        self.topology = topology
        t = topology
        hidden = t.n_d + t.n_a

        self.shared = nn.ModuleList(
            nn.Linear(t.input_dim if i == 0 else hidden, 2 * hidden, bias=False)
            for i in range(t.num_shared)
        )
        shared = list(self.shared)

        self.initial = FeatureTransformer(t.input_dim, hidden, shared, t.num_independent)
        self.transformers = nn.ModuleList(
            FeatureTransformer(t.input_dim, hidden, shared, t.num_independent)
            for _ in range(t.n_steps)
        )
        self.attentions = nn.ModuleList(
            nn.Sequential(nn.Linear(t.n_a, t.input_dim, bias=False), nn.LayerNorm(t.input_dim))
            for _ in range(t.n_steps)
        )
        self.head = nn.Linear(t.n_d, t.output_dim)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        n_d = self.topology.n_d
        prior = torch.ones_like(x)
        attended = self.initial(x)[:, n_d:]
        aggregate = x.new_zeros((x.shape[0], n_d))

        for transformer, attention in zip(self.transformers, self.attentions):
            mask = torch.softmax(attention(attended) * prior, dim=-1)
            prior = prior * (self.topology.gamma - mask)
            h = transformer(mask * x)
            aggregate = aggregate + F.relu(h[:, :n_d])
            attended = h[:, n_d:]

        return self.head(aggregate)


__all__ = ["NetworkTopology", "TabularNetwork", "GLUBlock", "FeatureTransformer"]
