"""
Modular Station Simulation - Topology Graph

Hub-spoke adjacency of the station. The designated hub node is linked to
every docked module within GRAPH_PROXIMITY of it; there are no
module-to-module edges, since edges model physical docking ports on the hub.

The graph is rebuilt from the registry rather than patched, so it heals
itself after removals.
"""

from collections import deque
import logging
from typing import Dict, Iterable, List, Optional

import numpy as np

from .config import SimulationConfig, create_default_config
from .types import PathIds

logger = logging.getLogger(__name__)


class TopologyGraph:
    """Hub-spoke adjacency graph with BFS pathfinding."""

    def __init__(self, config: SimulationConfig = None):
        self.config = config or create_default_config()
        self.hub_id: Optional[str] = None
        self.edges: Dict[str, List[str]] = {}

    @property
    def nodes(self) -> List[str]:
        return list(self.edges.keys())

    def clear(self):
        self.hub_id = None
        self.edges = {}

    def _add_edge(self, a: str, b: str):
        if b not in self.edges[a]:
            self.edges[a].append(b)
        if a not in self.edges[b]:
            self.edges[b].append(a)

    def rebuild(self, modules: Iterable):
        """
        Recompute adjacency from the module registry.

        The module flagged is_initial_hub is the hub node (first entry if none
        is flagged). Every other docked module becomes a node; those within
        graph_proximity of the hub are linked to it.

        Args:
            modules: Registry in insertion order
        """
        modules = list(modules)
        self.clear()
        if not modules:
            return

        hub = next((m for m in modules if m.is_initial_hub), modules[0])
        self.hub_id = hub.id
        self.edges[hub.id] = []

        for module in modules:
            if module.id == hub.id or not module.is_docked:
                continue
            self.edges.setdefault(module.id, [])
            distance = np.linalg.norm(module.position - hub.position)
            if distance < self.config.graph_proximity:
                self._add_edge(hub.id, module.id)

        logger.debug(f"Topology rebuilt: {len(self.edges)} nodes, "
                     f"{len(self.edges[hub.id])} hub edges")

    def neighbors(self, node_id: str) -> List[str]:
        return list(self.edges.get(node_id, []))

    def edge_list(self) -> List[tuple]:
        """Each undirected edge once, as (a, b) in discovery order."""
        seen = set()
        result = []
        for a, adjacent in self.edges.items():
            for b in adjacent:
                key = frozenset((a, b))
                if key not in seen:
                    seen.add(key)
                    result.append((a, b))
        return result

    def is_hub_spoke(self) -> bool:
        """True if every edge has the hub as one endpoint and adjacency is symmetric."""
        for a, adjacent in self.edges.items():
            for b in adjacent:
                if self.hub_id not in (a, b):
                    return False
                if a not in self.edges.get(b, []):
                    return False
        return True

    def shortest_path(self, target_id: str) -> PathIds:
        """
        Breadth-first search from the hub.

        Neighbours are expanded in insertion order, so the first path found is
        deterministic and shortest by edge count.

        Args:
            target_id: Module id to reach

        Returns:
            Ordered ids from hub to target inclusive, or [] if unknown or
            unreachable
        """
        if self.hub_id is None or target_id not in self.edges:
            return []
        if target_id == self.hub_id:
            return [self.hub_id]

        queue = deque([[self.hub_id]])
        visited = {self.hub_id}

        while queue:
            path = queue.popleft()
            current = path[-1]
            if current == target_id:
                return path
            for neighbor in self.edges.get(current, []):
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(path + [neighbor])

        return []

    def __len__(self) -> int:
        return len(self.edges)
