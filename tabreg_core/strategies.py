"""TabReg Strategies - Registered factories for pluggable strategies.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

Each strategy kind (architecture, training plan, identity, location) has its
own registry mapping a type name to a factory. A strategy is selected by a
spec, either a bare type name or a mapping ``{"type": name, **options}``
whose options are passed to the factory as keyword arguments.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Generic, List, Mapping, TypeVar, Union

from tabreg_core.network.builder import (
    ArchitectureBuilder,
    ScriptArchitectureBuilder,
    TabularRegressionBuilder,
)
from tabreg_core.providers.identity import FixedID, IdentityProvider, UniqueID
from tabreg_core.providers.location import FixedDir, LocationProvider, TempDir
from tabreg_core.training.plan import RegressionTrainingPlan, TrainingPlanBuilder

logger = logging.getLogger(__name__)

T = TypeVar("T")

StrategySpec = Union[str, Mapping[str, Any]]


class StrategyRegistry(Generic[T]):
    """Factories of one strategy kind, keyed by type name.

    Example:
        registry = StrategyRegistry("architecture")
        registry.register("tabular", TabularRegressionBuilder)
        builder = registry.create({"type": "tabular", "n_steps": 5})
    """

    def __init__(self, kind: str):
        self.kind = kind
        self._factories: Dict[str, Callable[..., T]] = {}

    def register(self, name: str, factory: Callable[..., T]) -> None:
        if name in self._factories:
            logger.debug(f"Replacing {self.kind} strategy {name}")
        self._factories[name] = factory

    def names(self) -> List[str]:
        return sorted(self._factories)

    def create(self, spec: StrategySpec) -> T:
        """Instantiate the strategy described by spec.

        Raises:
            KeyError: For unregistered type names
            ValueError: For a spec without a type
        """
        if isinstance(spec, str):
            name, options = spec, {}
        else:
            options = dict(spec)
            name = options.pop("type", None)
            if not name:
                raise ValueError(f"{self.kind} strategy spec has no 'type': {spec!r}")

        if name not in self._factories:
            raise KeyError(f"Unknown {self.kind} strategy {name!r}, known: {self.names()}")
        return self._factories[name](**options)

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def __repr__(self) -> str:
        return f"StrategyRegistry(kind={self.kind!r}, names={self.names()})"


architectures: StrategyRegistry[ArchitectureBuilder] = StrategyRegistry("architecture")
training_plans: StrategyRegistry[TrainingPlanBuilder] = StrategyRegistry("training plan")
identities: StrategyRegistry[IdentityProvider] = StrategyRegistry("identity")
locations: StrategyRegistry[LocationProvider] = StrategyRegistry("location")

architectures.register("tabular", TabularRegressionBuilder)
architectures.register("script", ScriptArchitectureBuilder)
training_plans.register("regression", RegressionTrainingPlan)
identities.register("fixed", FixedID)
identities.register("unique", UniqueID)
locations.register("fixed", FixedDir)
locations.register("temp", TempDir)


def resolve_architecture(spec: StrategySpec) -> ArchitectureBuilder:
    return architectures.create(spec)


def resolve_training_plan(spec: StrategySpec) -> TrainingPlanBuilder:
    return training_plans.create(spec)


def resolve_identity(spec: StrategySpec) -> IdentityProvider:
    return identities.create(spec)


def resolve_location(spec: StrategySpec) -> LocationProvider:
    return locations.create(spec)


__all__ = [
    "StrategyRegistry",
    "StrategySpec",
    "architectures",
    "training_plans",
    "identities",
    "locations",
    "resolve_architecture",
    "resolve_training_plan",
    "resolve_identity",
    "resolve_location",
]
