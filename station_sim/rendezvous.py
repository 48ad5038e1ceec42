"""
Modular Station Simulation - Rendezvous Simulator

This module animates a module's approach to its docking slot using a
linearised relative-motion model (Hill-Clohessy-Wiltshire) in the hub's
orbital plane:

    x'' = 3 n^2 x + 2 n y' + ux
    y'' = -2 n x'           + uy

driven by a PD controller that cancels the natural drift, adds velocity
damping and is saturated by a distance-dependent thrust cap:

    u = -Kp e - Kd e' - drift - c v,   |u| <= BASE_THRUST + THRUST_GAIN |e|

Integration is semi-implicit Euler with a fixed step. Docking requires both
position and velocity within tolerance.

Frame: agent x maps to world X and agent y to world Z, origin at the hub the
launch was made from.
"""

from dataclasses import dataclass, field
import logging
from typing import List, Optional

import numpy as np

from .config import SimulationConfig, create_default_config
from .types import AgentSnapshot
from . import constants as C

logger = logging.getLogger(__name__)


@dataclass
class Agent:
    """
    Transient rendezvous state for one module in transit.

    Attributes:
        module_id: Module this agent steers toward its slot
        position: Relative position in hub plane [x, y] (u)
        velocity: Relative velocity in hub plane [vx, vy] (u/s)
        target: Target in hub plane [tx, ty] (u)
        initial_distance: Distance to target at spawn (u)
        progress_pct: Running maximum of computed progress (0-100), measured
            against the spawn-to-target distance rather than the spawn radius
        elapsed: Simulated time since spawn (s)
        ticks: Number of steps taken
        docked: Set once docking criteria are met
    """
    module_id: str
    position: np.ndarray = field(default_factory=lambda: np.zeros(2))
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(2))
    target: np.ndarray = field(default_factory=lambda: np.zeros(2))
    initial_distance: float = 0.0
    progress_pct: float = 0.0
    elapsed: float = 0.0
    ticks: int = 0
    docked: bool = False

    def __post_init__(self):
        for attr in ['position', 'velocity', 'target']:
            setattr(self, attr, np.asarray(getattr(self, attr), dtype=np.float64))
        if self.initial_distance <= 0.0:
            self.initial_distance = float(np.linalg.norm(self.position - self.target))

    @property
    def error(self) -> np.ndarray:
        return self.position - self.target

    @property
    def distance(self) -> float:
        return float(np.hypot(*self.error))

    @property
    def speed(self) -> float:
        return float(np.hypot(*self.velocity))

    @property
    def eta(self) -> float:
        """Time to target at the current speed, 0 when nearly stationary."""
        speed = self.speed
        if speed > C.ETA_MIN_SPEED:
            return self.distance / speed
        return 0.0

    def snapshot(self) -> AgentSnapshot:
        return {
            'module_id': self.module_id,
            'position': self.position.copy(),
            'velocity': self.velocity.copy(),
            'target': self.target.copy(),
            'progress_pct': self.progress_pct,
            'distance': self.distance,
            'speed': self.speed,
            'eta': self.eta,
            'elapsed': self.elapsed,
        }


@dataclass(frozen=True)
class DockingCompletion:
    """Emitted by the simulator when an agent docks."""
    module_id: str
    ticks: int
    elapsed: float
    final_position: tuple


def natural_drift(position: np.ndarray, velocity: np.ndarray,
                  mean_motion: float) -> np.ndarray:
    """Unforced HCW relative acceleration in the orbital plane."""
    n = mean_motion
    x, _ = position
    vx, vy = velocity
    return np.array([
        3.0 * n * n * x + 2.0 * n * vy,
        -2.0 * n * vx,
    ])


def saturate_thrust(thrust: np.ndarray, error_distance: float,
                    base_thrust: float = C.BASE_THRUST,
                    thrust_gain: float = C.THRUST_GAIN) -> np.ndarray:
    """
    Apply the distance-dependent thrust cap.

    umax = base_thrust + thrust_gain * |error|; direction is preserved.
    """
    umax = base_thrust + thrust_gain * error_distance
    magnitude = np.hypot(*thrust)
    if magnitude > umax:
        return thrust * (umax / magnitude)
    return thrust


def compute_approach_thrust(position: np.ndarray, velocity: np.ndarray,
                            target: np.ndarray,
                            config: SimulationConfig = None) -> np.ndarray:
    """
    PD approach control with drift cancellation, damping and saturation.

        ux = -Kp ex - Kd vx - (3 n^2 x + 2 n vy) - c vx
        uy = -Kp ey - Kd vy + 2 n vx             - c vy

    Args:
        position: Relative position [x, y]
        velocity: Relative velocity [vx, vy]
        target: Target position [tx, ty]
        config: Gains and limits (defaults if None)

    Returns:
        Saturated control acceleration [ux, uy]
    """
    if config is None:
        config = create_default_config()

    error = position - target
    error_rate = velocity

    thrust = (-config.kp_approach * error
              - config.kd_approach * error_rate
              - natural_drift(position, velocity, config.mean_motion)
              - config.damping * velocity)

    return saturate_thrust(thrust, float(np.hypot(*error)),
                           config.base_thrust, config.thrust_gain)


def propagate(position: np.ndarray, velocity: np.ndarray, thrust: np.ndarray,
              dt: float, mean_motion: float = C.MEAN_MOTION) -> tuple:
    """
    Advance relative state by one semi-implicit Euler step.

    Velocity is updated first and the new velocity moves the position.

    Raises:
        ValueError: If dt <= 0 or thrust contains NaN
    """
    if dt <= 0:
        raise ValueError(f"Time step dt must be positive, got {dt}")
    if np.any(np.isnan(thrust)):
        raise ValueError("Thrust contains NaN values")

    accel = natural_drift(position, velocity, mean_motion) + thrust
    new_velocity = velocity + accel * dt
    new_position = position + new_velocity * dt
    return new_position, new_velocity


def docking_criteria_met(distance: float, speed: float,
                         dock_radius: float = C.DOCK_RADIUS,
                         dock_speed: float = C.DOCK_SPEED) -> bool:
    """Docked only when close enough AND slow enough; a fast flyby does not count."""
    return distance < dock_radius and speed < dock_speed


def compute_progress(initial_distance: float, distance: float) -> float:
    """Fraction of the initial distance closed, in percent, clamped to [0, 100]."""
    if initial_distance <= C.ZERO_TOLERANCE:
        return 100.0
    progress = 100.0 * (initial_distance - distance) / initial_distance
    return float(np.clip(progress, 0.0, 100.0))


class RendezvousSimulator:
    """
    Steps every in-flight agent toward its target.

    The simulator owns agent state only. Docking is reported through
    DockingCompletion records; the registry and graph are left to the caller.
    """

    def __init__(self, config: SimulationConfig = None,
                 rng: Optional[np.random.Generator] = None):
        self.config = config or create_default_config()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.random_seed)
        self.agents: List[Agent] = []

    def spawn(self, module_id: str, target: np.ndarray,
              spawn_angle: Optional[float] = None) -> Agent:
        """
        Create an agent at rest on the spawn circle around the hub.

        Args:
            module_id: Module the agent belongs to
            target: Slot position in hub plane [tx, ty]
            spawn_angle: Spawn angle (rad); drawn uniformly when None

        Returns:
            The new Agent
        """
        if spawn_angle is None:
            spawn_angle = float(self.rng.uniform(0.0, 2.0 * np.pi))
        start = self.config.spawn_distance * np.array([np.cos(spawn_angle), np.sin(spawn_angle)])
        agent = Agent(module_id=module_id, position=start, velocity=np.zeros(2),
                      target=np.asarray(target, dtype=np.float64))
        self.agents.append(agent)
        logger.debug(f"Agent spawned for {module_id} at {start.round(3).tolist()}, "
                     f"distance={agent.initial_distance:.3f}")
        return agent

    def add_agent(self, agent: Agent) -> Agent:
        """Track an agent constructed by the caller."""
        self.agents.append(agent)
        return agent

    def get_agent(self, module_id: str) -> Optional[Agent]:
        for agent in self.agents:
            if agent.module_id == module_id:
                return agent
        return None

    def step_agent(self, agent: Agent) -> bool:
        """
        Advance a single agent by one fixed step.

        Progress and the docking test use the state at the start of the step;
        a docked agent is not propagated.

        Returns:
            True if the agent docked on this step
        """
        if agent.docked:
            return False

        distance = agent.distance
        speed = agent.speed

        current = compute_progress(agent.initial_distance, distance)
        agent.progress_pct = max(agent.progress_pct, current)

        if docking_criteria_met(distance, speed, self.config.dock_radius, self.config.dock_speed):
            agent.docked = True
            agent.progress_pct = 100.0
            return True

        thrust = compute_approach_thrust(agent.position, agent.velocity, agent.target, self.config)
        agent.position, agent.velocity = propagate(
            agent.position, agent.velocity, thrust, self.config.dt, self.config.mean_motion)
        agent.elapsed += self.config.dt
        agent.ticks += 1
        return False

    def advance(self) -> List[DockingCompletion]:
        """
        Step every agent once and drop those that docked.

        Returns:
            Completion records for agents that docked on this call
        """
        completions = []
        remaining = []
        for agent in self.agents:
            if self.step_agent(agent):
                completions.append(DockingCompletion(
                    module_id=agent.module_id,
                    ticks=agent.ticks,
                    elapsed=agent.elapsed,
                    final_position=tuple(agent.position.tolist()),
                ))
                logger.debug(f"Agent {agent.module_id} docked after {agent.ticks} steps")
            else:
                remaining.append(agent)
        self.agents = remaining
        return completions

    def snapshot(self) -> List[AgentSnapshot]:
        return [agent.snapshot() for agent in self.agents]

    def __len__(self) -> int:
        return len(self.agents)
