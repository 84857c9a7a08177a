"""Network module - Topologies and architecture builders."""

from tabreg_core.network.topology import NetworkTopology, TabularNetwork
from tabreg_core.network.builder import (
    ArchitectureBuilder,
    ScriptArchitectureBuilder,
    SizeHint,
    TabularRegressionBuilder,
)

__all__ = [
    "NetworkTopology", "TabularNetwork",
    "ArchitectureBuilder", "ScriptArchitectureBuilder", "SizeHint", "TabularRegressionBuilder",
]
