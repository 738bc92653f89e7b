"""Type graph discovery and dependency ordering."""

from .collector import TypeGraphCollector, custom_type_name, innermost_type
from .orderer import (
    CyclePolicy,
    DependencyCycleError,
    DependencyOrderer,
    DiscoveryMode,
    UnresolvedTypeError,
)

__all__ = [
    "CyclePolicy",
    "DependencyCycleError",
    "DependencyOrderer",
    "DiscoveryMode",
    "TypeGraphCollector",
    "UnresolvedTypeError",
    "custom_type_name",
    "innermost_type",
]
