"""Tests for module telemetry and the fault state machine."""

import numpy as np
import pytest

from station_sim import constants as C
from station_sim.config import create_test_config
from station_sim.telemetry import (
    FAULT_CATALOG,
    FaultKind,
    TelemetryModel,
    TelemetryStatus,
)

FRAME = 1.0 / 60.0


@pytest.fixture
def telemetry():
    return TelemetryModel(rng=np.random.default_rng(7), config=create_test_config())


def test_starts_nominal(telemetry):
    assert telemetry.status is TelemetryStatus.NOMINAL
    assert telemetry.active_fault is None
    assert telemetry.temperature_c == C.NOMINAL_TEMPERATURE
    assert telemetry.resources_generated == 0


def test_inject_fault_is_idempotent(telemetry):
    assert telemetry.inject_fault() is True
    fault = telemetry.active_fault
    assert telemetry.status is TelemetryStatus.CRITICAL
    assert fault in FAULT_CATALOG
    assert telemetry.inject_fault() is False
    assert telemetry.active_fault is fault


def test_repair_is_idempotent(telemetry):
    assert telemetry.repair() is False
    telemetry.inject_fault()
    assert telemetry.repair() is True
    assert telemetry.status is TelemetryStatus.NOMINAL
    assert telemetry.active_fault is None
    assert telemetry.repair() is False


def test_fault_catalog_covers_all_kinds():
    assert len(FAULT_CATALOG) == 6
    assert {f.kind for f in FAULT_CATALOG} == set(FaultKind)


def test_fault_draw_reproducible():
    kinds = []
    for _ in range(2):
        model = TelemetryModel(rng=np.random.default_rng(11))
        model.inject_fault()
        kinds.append(model.active_fault.kind)
    assert kinds[0] is kinds[1]


def test_waiting_never_repairs(telemetry):
    telemetry.inject_fault()
    for _ in range(600):
        telemetry.update(FRAME)
    assert telemetry.status is TelemetryStatus.CRITICAL


def test_nominal_stays_near_bands(telemetry):
    margin = 1.0
    for _ in range(5000):
        telemetry.update(FRAME)
        assert C.TEMPERATURE_BAND[0] - margin <= telemetry.temperature_c <= C.TEMPERATURE_BAND[1] + margin
        assert C.CPU_LOAD_BAND[0] - margin <= telemetry.cpu_load_pct <= C.CPU_LOAD_BAND[1] + margin
        assert C.EFFICIENCY_BAND[0] - margin <= telemetry.efficiency_pct <= C.EFFICIENCY_BAND[1] + margin
        assert C.POWER_BAND[0] - margin <= telemetry.power_kw <= C.POWER_BAND[1] + margin


@pytest.mark.parametrize("dt", [1.0, 5.0])
def test_coarse_frames_stay_inside_bands(dt):
    """Large update steps walk frame by frame and never leave the nominal bands."""
    telemetry = TelemetryModel(rng=np.random.default_rng(3))
    bands = [
        (lambda: telemetry.temperature_c, C.TEMPERATURE_BAND),
        (lambda: telemetry.cpu_load_pct, C.CPU_LOAD_BAND),
        (lambda: telemetry.efficiency_pct, C.EFFICIENCY_BAND),
        (lambda: telemetry.power_kw, C.POWER_BAND),
    ]
    for _ in range(2000):
        telemetry.update(dt)
        for value, band in bands:
            assert band[0] <= value() <= band[1]


def test_coarse_frames_recover_after_repair():
    telemetry = TelemetryModel(rng=np.random.default_rng(4))
    telemetry.inject_fault()
    for _ in range(10):
        telemetry.update(5.0)
    telemetry.repair()
    for _ in range(100):
        telemetry.update(5.0)
    assert C.TEMPERATURE_BAND[0] <= telemetry.temperature_c <= C.TEMPERATURE_BAND[1]
    assert C.CPU_LOAD_BAND[0] <= telemetry.cpu_load_pct <= C.CPU_LOAD_BAND[1]
    assert C.EFFICIENCY_BAND[0] <= telemetry.efficiency_pct <= C.EFFICIENCY_BAND[1]
    assert C.POWER_BAND[0] <= telemetry.power_kw <= C.POWER_BAND[1]


def test_critical_ramps_are_monotone(telemetry):
    telemetry.inject_fault()
    previous = (telemetry.temperature_c, telemetry.efficiency_pct, telemetry.power_kw)
    for _ in range(300):
        telemetry.update(FRAME)
        assert telemetry.temperature_c >= previous[0]
        assert telemetry.efficiency_pct <= previous[1]
        assert telemetry.power_kw >= previous[2]
        assert telemetry.cpu_load_pct >= C.CRITICAL_CPU_LOAD
        previous = (telemetry.temperature_c, telemetry.efficiency_pct, telemetry.power_kw)


def test_critical_limits(telemetry):
    telemetry.inject_fault()
    for _ in range(1000):
        telemetry.update(FRAME)
    assert telemetry.temperature_c == pytest.approx(C.CRITICAL_TEMPERATURE_CEILING)
    assert telemetry.efficiency_pct == pytest.approx(C.CRITICAL_EFFICIENCY_FLOOR)
    assert telemetry.power_kw == pytest.approx(C.CRITICAL_POWER_CEILING)
    assert telemetry.cpu_load_pct == pytest.approx(C.CRITICAL_CPU_LOAD)


def test_repair_recovers_toward_bands(telemetry):
    telemetry.inject_fault()
    for _ in range(1000):
        telemetry.update(FRAME)
    telemetry.repair()
    for _ in range(4000):
        telemetry.update(FRAME)
    assert telemetry.temperature_c < C.TEMPERATURE_BAND[1] + 1.0
    assert telemetry.cpu_load_pct < C.CPU_LOAD_BAND[1] + 1.0
    assert telemetry.efficiency_pct > C.EFFICIENCY_BAND[0] - 1.0
    assert telemetry.power_kw < C.POWER_BAND[1] + 1.0


def test_rate_scales_with_dt():
    """One update of two frames equals two updates of one frame in critical."""
    a = TelemetryModel(rng=np.random.default_rng(1))
    b = TelemetryModel(rng=np.random.default_rng(1))
    a.inject_fault()
    b.inject_fault()
    a.update(2 * FRAME)
    b.update(FRAME)
    b.update(FRAME)
    assert a.temperature_c == pytest.approx(b.temperature_c)
    assert a.efficiency_pct == pytest.approx(b.efficiency_pct)
    assert a.power_kw == pytest.approx(b.power_kw)
    assert a.temperature_c == pytest.approx(C.NOMINAL_TEMPERATURE + 2 * C.CRITICAL_TEMPERATURE_RATE)


def test_values_always_within_bounds(telemetry):
    telemetry.inject_fault()
    telemetry.update(100.0)
    assert C.TEMPERATURE_BOUNDS[0] <= telemetry.temperature_c <= C.TEMPERATURE_BOUNDS[1]
    assert C.EFFICIENCY_BOUNDS[0] <= telemetry.efficiency_pct <= C.EFFICIENCY_BOUNDS[1]
    assert C.POWER_BOUNDS[0] <= telemetry.power_kw <= C.POWER_BOUNDS[1]


def test_resources_one_per_second(telemetry):
    for _ in range(int(2.5 / 0.05)):
        telemetry.update(0.05)
    assert telemetry.resources_generated == 2
    telemetry.update(3.0)
    assert telemetry.resources_generated == 5


def test_zero_dt_is_noop_for_resources(telemetry):
    telemetry.update(0.0)
    assert telemetry.resources_generated == 0


def test_update_rejects_bad_dt(telemetry):
    with pytest.raises(ValueError):
        telemetry.update(-0.1)
    with pytest.raises(ValueError):
        telemetry.update(float('nan'))
    with pytest.raises(ValueError):
        telemetry.update(float('inf'))


def test_snapshot(telemetry):
    snap = telemetry.snapshot()
    assert snap['status'] == 'NOMINAL'
    assert snap['active_fault'] is None
    telemetry.inject_fault()
    snap = telemetry.snapshot()
    assert snap['status'] == 'CRITICAL'
    assert snap['active_fault']['kind'] == telemetry.active_fault.kind.name
    assert 'CRITICAL' in str(telemetry)
