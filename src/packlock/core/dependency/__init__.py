"""Package Dependency Graph and version resolution.

This package implements the dependency graph built from a lock and the
selection of concrete versions for dependencies that are not installed
yet. All public names are re-exported here.

Definitions
-----------
- **Installed node**: a package recorded in the lock; it has an outgoing
  edge for every dependency it declares.
- **Implied node**: a dependency declared by some installed package that
  no lock entry provides yet. Implied nodes are always leaves.
- **Constraint**: a semantic version range a candidate version must meet.
"""

from packlock.core.dependency.constraints import Constraints, Version
from packlock.core.dependency.graph import (
    DependencyGraph,
    GraphNode,
    ImpliedNode,
    InstalledNode,
    to_nodes,
)
from packlock.core.dependency.resolver import (
    VersionResolver,
    parse_versions,
    select_version,
)

__all__ = [
    "Constraints",
    "DependencyGraph",
    "GraphNode",
    "ImpliedNode",
    "InstalledNode",
    "Version",
    "VersionResolver",
    "parse_versions",
    "select_version",
    "to_nodes",
]
