"""
Modular Station Simulation - Invariant Checks

This module implements station-wide invariant checks:
- At most one module in transit
- Hub-spoke topology
- Telemetry finite and within bounds
- Agent state finite, progress within [0, 100]

Abort on violation.
"""

import numpy as np

from . import constants as C


class ValidationError(Exception):
    """Raised when a station invariant check fails."""
    pass


def check_single_in_flight(modules) -> bool:
    """
    Verify that no more than one module is in transit.

    Returns:
        True if valid, raises ValidationError otherwise
    """
    in_transit = [m.id for m in modules if not m.is_docked]
    if len(in_transit) > 1:
        raise ValidationError(
            f"Single in-flight violation: {len(in_transit)} modules in transit {in_transit}"
        )
    return True


def check_hub_spoke(graph) -> bool:
    """
    Verify every edge touches the hub and adjacency is symmetric.

    Returns:
        True if valid, raises ValidationError otherwise
    """
    if graph.hub_id is None and len(graph) > 0:
        raise ValidationError("Topology has nodes but no hub")
    if not graph.is_hub_spoke():
        raise ValidationError(f"Hub-spoke violation: edges {graph.edge_list()}")
    return True


def _check_in_bounds(name: str, value: float, bounds: tuple):
    if not np.isfinite(value):
        raise ValidationError(f"{name} is not finite: {value}")
    if value < bounds[0] or value > bounds[1]:
        raise ValidationError(f"{name} = {value:.4f} outside bounds {bounds}")


def check_telemetry_bounds(telemetry, module_id: str = "?") -> bool:
    """
    Verify telemetry scalars are finite and clamped, and the fault matches status.

    Returns:
        True if valid, raises ValidationError otherwise
    """
    _check_in_bounds(f"{module_id} temperature", telemetry.temperature_c, C.TEMPERATURE_BOUNDS)
    _check_in_bounds(f"{module_id} cpu load", telemetry.cpu_load_pct, C.CPU_LOAD_BOUNDS)
    _check_in_bounds(f"{module_id} efficiency", telemetry.efficiency_pct, C.EFFICIENCY_BOUNDS)
    _check_in_bounds(f"{module_id} power", telemetry.power_kw, C.POWER_BOUNDS)

    if telemetry.is_critical != (telemetry.active_fault is not None):
        raise ValidationError(
            f"{module_id} status {telemetry.status.name} inconsistent with "
            f"active fault {telemetry.active_fault}"
        )
    return True


def check_agent_state(agent) -> bool:
    """
    Verify an agent's state is finite and its progress is in range.

    Returns:
        True if valid, raises ValidationError otherwise
    """
    if not (np.all(np.isfinite(agent.position)) and np.all(np.isfinite(agent.velocity))):
        raise ValidationError(
            f"Agent {agent.module_id} state not finite: "
            f"pos={agent.position}, vel={agent.velocity}"
        )
    if not 0.0 <= agent.progress_pct <= 100.0:
        raise ValidationError(
            f"Agent {agent.module_id} progress {agent.progress_pct} outside [0, 100]"
        )
    return True


def validate_station(controller) -> bool:
    """
    Run every invariant check against a StationController.

    Raises:
        ValidationError: On the first violated invariant
    """
    check_single_in_flight(controller.modules)
    check_hub_spoke(controller.graph)
    for module in controller.modules:
        check_telemetry_bounds(module.telemetry, module.id)
    for agent in controller.rendezvous.agents:
        check_agent_state(agent)
    return True
