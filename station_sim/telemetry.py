"""
Modular Station Simulation - Module Telemetry and Fault State Machine

Each docked module carries a TelemetryModel with four continuous scalars
(temperature, CPU load, efficiency, power draw) and a two-state health status:

    NOMINAL  --inject_fault()-->  CRITICAL
    CRITICAL --repair()------->  NOMINAL

No other transition exists; waiting never repairs a module.

Rates are specified per reference frame (TELEMETRY_FRAME_DT). update(dt)
advances in whole reference frames plus a scaled remainder, so coarse caller
frames never widen the walk or nudge past the band.
"""

from dataclasses import dataclass
from enum import Enum, auto
import logging
from typing import Optional

import numpy as np

from . import constants as C
from .config import SimulationConfig, create_default_config
from .types import TelemetrySnapshot

logger = logging.getLogger(__name__)


class TelemetryStatus(Enum):
    NOMINAL = auto()
    CRITICAL = auto()


class FaultKind(Enum):
    VOLTAGE = auto()
    THERMAL = auto()
    PRESSURE = auto()
    COMMS = auto()
    PROCESSOR = auto()
    SENSOR = auto()


class FaultSeverity(Enum):
    MAJOR = auto()
    CRITICAL = auto()


@dataclass(frozen=True)
class FaultDescriptor:
    """A fault drawn from the catalog."""
    kind: FaultKind
    label: str
    severity: FaultSeverity


FAULT_CATALOG = (
    FaultDescriptor(FaultKind.VOLTAGE, "Critical voltage", FaultSeverity.CRITICAL),
    FaultDescriptor(FaultKind.THERMAL, "High temperature", FaultSeverity.CRITICAL),
    FaultDescriptor(FaultKind.PRESSURE, "Abnormal pressure", FaultSeverity.MAJOR),
    FaultDescriptor(FaultKind.COMMS, "Communication failure", FaultSeverity.MAJOR),
    FaultDescriptor(FaultKind.PROCESSOR, "Processor error", FaultSeverity.MAJOR),
    FaultDescriptor(FaultKind.SENSOR, "Damaged sensor", FaultSeverity.MAJOR),
)


def _clamp(value: float, bounds: tuple) -> float:
    return float(min(max(value, bounds[0]), bounds[1]))


def _banded_walk(value: float, rng: np.random.Generator, walk: float,
                 band: tuple, nudge: float, scale: float) -> float:
    """One step of a random walk with a corrective nudge outside the band."""
    value += (rng.random() - 0.5) * walk * scale
    if value < band[0]:
        value += nudge * scale
    if value > band[1]:
        value -= nudge * scale
    return value


class TelemetryModel:
    """
    Simulated health of a single module.

    Attributes:
        temperature_c: Module temperature (deg C)
        cpu_load_pct: Processor load (%)
        efficiency_pct: Overall equipment effectiveness (%)
        power_kw: Electrical power draw (kW)
        status: TelemetryStatus
        active_fault: FaultDescriptor while CRITICAL, else None
        resources_generated: Units produced since docking
    """

    def __init__(self, rng: Optional[np.random.Generator] = None,
                 config: SimulationConfig = None):
        self.config = config or create_default_config()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.random_seed)

        self.temperature_c = C.NOMINAL_TEMPERATURE
        self.cpu_load_pct = C.NOMINAL_CPU_LOAD
        self.efficiency_pct = C.NOMINAL_EFFICIENCY
        self.power_kw = C.NOMINAL_POWER

        self.status = TelemetryStatus.NOMINAL
        self.active_fault: Optional[FaultDescriptor] = None

        self.resources_generated = 0
        self._production_clock = 0.0

    @property
    def is_critical(self) -> bool:
        return self.status is TelemetryStatus.CRITICAL

    def inject_fault(self) -> bool:
        """
        Enter CRITICAL with a fault drawn uniformly from FAULT_CATALOG.

        Returns:
            True if the status changed, False if already CRITICAL (the
            active fault is left untouched).
        """
        if self.status is TelemetryStatus.CRITICAL:
            return False

        index = int(self.rng.integers(len(FAULT_CATALOG)))
        self.active_fault = FAULT_CATALOG[index]
        self.status = TelemetryStatus.CRITICAL
        logger.debug(f"Fault injected: {self.active_fault.kind.name}")
        return True

    def repair(self) -> bool:
        """
        Return to NOMINAL and clear the active fault.

        Returns:
            True if the status changed, False if already NOMINAL.
        """
        if self.status is not TelemetryStatus.CRITICAL:
            return False

        self.status = TelemetryStatus.NOMINAL
        self.active_fault = None
        return True

    def update(self, dt: float):
        """
        Advance telemetry by dt seconds.

        Args:
            dt: Elapsed simulation time (s)

        Raises:
            ValueError: If dt is negative or not finite
        """
        if not np.isfinite(dt) or dt < 0:
            raise ValueError(f"Telemetry dt must be finite and non-negative, got {dt}")

        frame = self.config.telemetry_frame_dt
        frames = int(dt // frame)
        for _ in range(frames):
            self._step(1.0)
        remainder = dt - frames * frame
        if remainder > C.ZERO_TOLERANCE:
            self._step(remainder / frame)

        self._production_clock += dt
        while self._production_clock >= self.config.production_interval:
            self._production_clock -= self.config.production_interval
            self.resources_generated += 1

    def _step(self, scale: float):
        """One reference frame (scale=1) or a fraction of one."""
        if self.status is TelemetryStatus.CRITICAL:
            # Temperature runs away, CPU pins, efficiency collapses, draw spikes
            self.temperature_c = min(
                C.CRITICAL_TEMPERATURE_CEILING,
                self.temperature_c + C.CRITICAL_TEMPERATURE_RATE * scale)
            self.cpu_load_pct = max(self.cpu_load_pct, C.CRITICAL_CPU_LOAD)
            self.efficiency_pct = max(
                C.CRITICAL_EFFICIENCY_FLOOR,
                self.efficiency_pct - C.CRITICAL_EFFICIENCY_RATE * scale)
            self.power_kw = min(
                C.CRITICAL_POWER_CEILING,
                self.power_kw + C.CRITICAL_POWER_RATE * scale)
        else:
            self.temperature_c = _banded_walk(
                self.temperature_c, self.rng, C.TEMPERATURE_WALK,
                C.TEMPERATURE_BAND, C.TEMPERATURE_NUDGE, scale)
            self.cpu_load_pct = _banded_walk(
                self.cpu_load_pct, self.rng, C.CPU_LOAD_WALK,
                C.CPU_LOAD_BAND, C.CPU_LOAD_NUDGE, scale)
            self.efficiency_pct = _banded_walk(
                self.efficiency_pct, self.rng, C.EFFICIENCY_WALK,
                C.EFFICIENCY_BAND, C.EFFICIENCY_NUDGE, scale)
            self.power_kw = _banded_walk(
                self.power_kw, self.rng, C.POWER_WALK,
                C.POWER_BAND, C.POWER_NUDGE, scale)

        self.temperature_c = _clamp(self.temperature_c, C.TEMPERATURE_BOUNDS)
        self.cpu_load_pct = _clamp(self.cpu_load_pct, C.CPU_LOAD_BOUNDS)
        self.efficiency_pct = _clamp(self.efficiency_pct, C.EFFICIENCY_BOUNDS)
        self.power_kw = _clamp(self.power_kw, C.POWER_BOUNDS)

    def snapshot(self) -> TelemetrySnapshot:
        fault = None
        if self.active_fault is not None:
            fault = {
                'kind': self.active_fault.kind.name,
                'label': self.active_fault.label,
                'severity': self.active_fault.severity.name,
            }
        return {
            'status': self.status.name,
            'temperature_c': self.temperature_c,
            'cpu_load_pct': self.cpu_load_pct,
            'efficiency_pct': self.efficiency_pct,
            'power_kw': self.power_kw,
            'resources_generated': self.resources_generated,
            'active_fault': fault,
        }

    def __str__(self) -> str:
        return (
            f"Telemetry({self.status.name}, "
            f"T={self.temperature_c:.1f}C, "
            f"cpu={self.cpu_load_pct:.1f}%, "
            f"eff={self.efficiency_pct:.1f}%, "
            f"P={self.power_kw:.2f}kW)"
        )
