"""
Modular Station Simulation - Headless Session Runner

This module drives a StationController without a presentation layer:
- Launches a plan of modules one at a time (respecting the in-flight lock)
- Switches to an expansion hub when the active hub is full
- Injects and repairs faults on a schedule
- Records a SessionLog for plotting and analysis

Coordinate frames:
- Module positions: world frame, hub plane is X-Z
- Agent state: hub-relative plane (x -> X, y -> Z)
"""

from dataclasses import dataclass, field
import logging
import time
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .config import SimulationConfig, create_default_config
from .controller import StationController
from .results import RejectionReason
from .state import Module, ModuleConfig, ModuleKind
from .validation import ValidationError

logger = logging.getLogger(__name__)


# Manufacturing modules offered by the station console
DEFAULT_PLAN: Tuple[ModuleConfig, ...] = (
    ModuleConfig("Graphene", "#2563eb"),
    ModuleConfig("ZBLAN Fiber", "#d946ef"),
    ModuleConfig("Ti-Al Alloy", "#f97316"),
    ModuleConfig("Thermal Ceramic", "#a8a29e"),
    ModuleConfig("Bio-Printed Tissue", "#10b981"),
    ModuleConfig("Expansion Node", "#e2e8f0", ModuleKind.HUB),
    ModuleConfig("Protein Crystal", "#06b6d4"),
    ModuleConfig("Graphene", "#2563eb"),
)


@dataclass
class SessionLog:
    """Container for logged session data."""
    time: List[float] = field(default_factory=list)
    in_transit: List[int] = field(default_factory=list)
    docked: List[int] = field(default_factory=list)
    critical: List[int] = field(default_factory=list)
    # Per-module series, keyed by module id
    approach_x: Dict[str, List[float]] = field(default_factory=dict)
    approach_z: Dict[str, List[float]] = field(default_factory=dict)
    progress: Dict[str, List[Tuple[float, float]]] = field(default_factory=dict)
    temperature: Dict[str, List[Tuple[float, float]]] = field(default_factory=dict)
    names: Dict[str, str] = field(default_factory=dict)
    launches: int = 0
    rejections: int = 0

    def append(self, controller: StationController):
        """Log data from the current tick."""
        t = controller.time
        self.time.append(t)
        self.in_transit.append(controller.in_transit_count)
        self.docked.append(sum(1 for m in controller.modules if m.is_docked))
        self.critical.append(sum(1 for m in controller.modules if m.telemetry.is_critical))

        for agent in controller.rendezvous.agents:
            module = controller.get_module(agent.module_id)
            if module is None:
                continue
            self.names[module.id] = module.name
            self.approach_x.setdefault(module.id, []).append(float(module.position[0]))
            self.approach_z.setdefault(module.id, []).append(float(module.position[2]))
            self.progress.setdefault(module.id, []).append((t, agent.progress_pct))

        for module in controller.modules:
            if module.is_docked:
                self.names[module.id] = module.name
                self.temperature.setdefault(module.id, []).append(
                    (t, module.telemetry.temperature_c))

    def __len__(self) -> int:
        return len(self.time)


def run_until_docked(controller: StationController, dt: float = None,
                     max_ticks: int = 10000) -> Optional[Module]:
    """
    Tick until the in-flight module docks.

    Args:
        controller: Station with a launch in flight
        dt: Frame time (s); config.dt if None
        max_ticks: Give up after this many ticks

    Returns:
        The docked Module, or None if nothing was in flight or max_ticks ran out
    """
    module_id = controller.in_flight_id
    if module_id is None:
        return None
    if dt is None:
        dt = controller.config.dt

    for _ in range(max_ticks):
        controller.tick(dt)
        if controller.in_flight_id is None:
            return controller.get_module(module_id)

    logger.warning(f"{module_id} still in transit after {max_ticks} ticks")
    return None


def _next_expansion_hub(controller: StationController) -> Optional[str]:
    """First docked hub module, other than the active one, with a free slot."""
    for module in controller.modules:
        if module.id == controller.active_hub_id or not module.is_docked:
            continue
        if not (module.is_hub_kind or module.is_initial_hub):
            continue
        if controller.slot_allocator.find_free_slot(module, controller.modules) is not None:
            return module.id
    return None


def run_session(plan: Sequence[ModuleConfig] = None,
                dt: float = None,
                max_time: float = None,
                fault_interval: Optional[float] = None,
                repair_interval: Optional[float] = None,
                config: SimulationConfig = None,
                rng: Optional[np.random.Generator] = None,
                verbose: bool = None):
    """
    Run a headless station session.

    Args:
        plan: Modules to launch in order (DEFAULT_PLAN if None)
        dt: Frame time (s); overrides config.dt if given
        max_time: Session length limit (s); overrides config.max_time if given
        fault_interval: Inject a random fault every this many seconds
        repair_interval: Repair every critical module this often
        config: SimulationConfig instance. If None a default is created.
        rng: Random generator; seeded from config.random_seed if None
        verbose: Print progress rows; overrides config.verbose if given

    Returns:
        (controller, log, termination_reason) tuple
    """
    if config is None:
        config = create_default_config()
    if dt is None:
        dt = config.dt
    if max_time is None:
        max_time = config.max_time
    if verbose is None:
        verbose = config.verbose

    controller = StationController(config, rng=rng)
    log = SessionLog()
    pending = list(plan if plan is not None else DEFAULT_PLAN)

    next_fault = fault_interval if fault_interval else None
    next_repair = repair_interval if repair_interval else None

    logger.info(f"Starting session: dt={dt}s, max_time={max_time}s, plan={len(pending)} modules")

    if verbose:
        print("\n" + "=" * 72)
        print(f"STATION SESSION    | dt={dt}s | T_max={max_time}s | plan={len(pending)}")
        print("=" * 72)
        print(f"{'Time (s)':^10} | {'Docked':^8} | {'Transit':^8} | {'Critical':^8} | {'Hub':<16}")
        print("-" * 72)

    start_time = time.time()
    last_print_time = 0.0
    reason = "Max time reached"

    while True:
        if not controller.is_locked and pending:
            result = controller.launch(config=pending[0])
            if result:
                log.launches += 1
                pending.pop(0)
            else:
                log.rejections += 1
                if result.reason is RejectionReason.NO_FREE_SLOT:
                    hub_id = _next_expansion_hub(controller)
                    if hub_id is not None:
                        controller.set_active_hub(hub_id)
                    else:
                        dropped = pending.pop(0)
                        logger.warning(f"No free slot for {dropped.name}; dropped from plan")

        if not pending and not controller.is_locked:
            reason = "Launch plan complete"
            break
        if controller.time >= max_time:
            break

        try:
            controller.tick(dt)
        except ValidationError as e:
            logger.error(f"Validation failed: {e}")
            reason = f"Validation failure: {e}"
            break

        if next_fault is not None and controller.time >= next_fault:
            controller.inject_random_fault()
            next_fault += fault_interval
        if next_repair is not None and controller.time >= next_repair:
            controller.repair_all()
            next_repair += repair_interval

        log.append(controller)

        if verbose and controller.time - last_print_time >= 10.0:
            _print_status(controller, log)
            last_print_time = controller.time

    elapsed = time.time() - start_time
    logger.info(f"Session complete: {len(log)} ticks in {elapsed:.2f}s ({reason})")
    logger.info(f"Final station: {controller}")
    if verbose:
        print(f"\nTermination: {reason}")

    return controller, log, reason


def _print_status(controller: StationController, log: SessionLog):
    """Print a formatted status row."""
    msg = (f"{controller.time:10.1f} | {log.docked[-1]:^8d} | "
           f"{log.in_transit[-1]:^8d} | {log.critical[-1]:^8d} | "
           f"{controller.active_hub_id:<16}")
    print(msg)
    logger.debug(msg)
