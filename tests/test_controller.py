"""Tests for StationController orchestration."""

from dataclasses import replace

import numpy as np
import pytest

from station_sim import constants as C
from station_sim.config import create_test_config
from station_sim.controller import StationController
from station_sim.events import EventKind
from station_sim.main import run_until_docked
from station_sim.results import (
    InvalidRemoval,
    LaunchRejected,
    NoEligibleModule,
    RejectionReason,
    RemovalRejection,
)
from station_sim.state import DockState, ModuleConfig, ModuleKind
from station_sim.telemetry import TelemetryStatus

MAX_TICKS = 10000


@pytest.fixture
def controller():
    return StationController(create_test_config())


def launch_and_dock(controller, config=None, hub_id=None):
    module = controller.launch(hub_id=hub_id, config=config)
    assert module, f"launch rejected: {module}"
    assert run_until_docked(controller, max_ticks=MAX_TICKS) is module
    return module


class TestInitialState:

    def test_hub_registered(self, controller):
        hub = controller.hub
        assert hub.is_initial_hub
        assert hub.is_docked
        assert hub.kind is ModuleKind.HUB
        assert controller.active_hub_id == hub.id
        assert controller.graph.nodes == [hub.id]
        assert not controller.is_locked

    def test_str(self, controller):
        assert "modules=1" in str(controller)


class TestLaunch:

    def test_first_launch_targets_30_degrees(self, controller):
        module = controller.launch(config=ModuleConfig(name="Graphene", color="#333"))
        expected = C.MODULE_SPACING * np.array([np.cos(np.radians(30)), 0.0, np.sin(np.radians(30))])
        np.testing.assert_array_almost_equal(module.target_position, expected)
        assert module.heading_deg == pytest.approx(210.0)
        assert module.dock_state is DockState.IN_TRANSIT
        assert module.name == "Graphene"
        assert module.color == "#333"
        assert controller.in_flight_id == module.id

    def test_spawn_on_circle_around_hub(self, controller):
        module = controller.launch()
        assert np.hypot(module.position[0], module.position[2]) == pytest.approx(C.SPAWN_DISTANCE)
        assert module.position[1] == 0.0

    def test_second_launch_locked(self, controller):
        first = controller.launch()
        second = controller.launch()
        assert isinstance(second, LaunchRejected)
        assert not second
        assert second.reason is RejectionReason.LOCKED
        assert len(controller.modules) == 2
        assert controller.in_flight_id == first.id

    def test_lock_clears_on_dock(self, controller):
        module = launch_and_dock(controller)
        assert module.is_docked
        assert not controller.is_locked
        np.testing.assert_array_almost_equal(module.position, module.target_position)
        assert controller.launch()

    def test_launch_events(self, controller):
        seen = []
        controller.subscribe(seen.append)
        module = controller.launch()
        docked_events = []
        for _ in range(MAX_TICKS):
            docked_events += [e for e in controller.tick(C.DT) if e.kind is EventKind.MODULE_DOCKED]
            if module.is_docked:
                break
        assert [e.kind for e in seen][0] is EventKind.MODULE_LAUNCHED
        assert len(docked_events) == 1
        assert docked_events[0].module_id == module.id
        assert docked_events[0].payload['ticks'] > 0
        assert len(controller.event_log.entries(EventKind.MODULE_DOCKED)) == 1

    def test_unsubscribe(self, controller):
        seen = []
        unsubscribe = controller.subscribe(seen.append)
        unsubscribe()
        controller.launch()
        assert seen == []

    def test_at_most_one_in_transit(self, controller):
        for _ in range(3):
            controller.launch()
            for _ in range(MAX_TICKS):
                controller.launch()
                assert controller.in_transit_count <= 1
                controller.tick(C.DT)
                if not controller.is_locked:
                    break
        assert controller.in_transit_count == 0

    def test_unknown_hub(self, controller):
        result = controller.launch(hub_id="nowhere")
        assert result.reason is RejectionReason.UNKNOWN_HUB
        assert len(controller.modules) == 1

    def test_in_transit_hub_is_unknown(self, controller):
        moving = controller.launch(config=ModuleConfig(kind=ModuleKind.HUB))
        controller.in_flight_id = None  # bypass the lock to probe hub validation
        result = controller.launch(hub_id=moving.id)
        assert result.reason is RejectionReason.UNKNOWN_HUB

    def test_full_hub_rejects_then_expansion_hub_accepts(self, controller):
        for i in range(C.SLOT_COUNT):
            kind = ModuleKind.HUB if i == 0 else ModuleKind.STANDARD
            launch_and_dock(controller, ModuleConfig(name=f"M{i}", kind=kind))

        count = len(controller.modules)
        result = controller.launch()
        assert result.reason is RejectionReason.NO_FREE_SLOT
        assert len(controller.modules) == count
        assert not controller.is_locked

        expansion = controller.modules[1]
        assert controller.set_active_hub(expansion.id)
        module = controller.launch()
        assert module
        offset = module.target_position - expansion.position
        angle = np.degrees(np.arctan2(offset[2], offset[0])) % 360
        assert angle == pytest.approx(30.0)

    def test_docked_modules_far_from_hub_have_no_path(self, controller):
        launch_and_dock(controller, ModuleConfig(kind=ModuleKind.HUB))
        expansion = controller.modules[1]
        controller.set_active_hub(expansion.id)
        outer = launch_and_dock(controller)
        assert np.linalg.norm(outer.position) > C.GRAPH_PROXIMITY
        assert controller.shortest_path(outer.id) == []
        assert controller.shortest_path(expansion.id) == [controller.hub.id, expansion.id]


class TestActiveHub:

    def test_rejects_unknown_and_in_transit(self, controller):
        assert controller.set_active_hub("missing") is False
        module = controller.launch()
        assert controller.set_active_hub(module.id) is False
        assert controller.active_hub_id == controller.hub.id

    def test_any_docked_module_by_default(self, controller):
        module = launch_and_dock(controller)
        assert controller.set_active_hub(module.id)
        assert controller.active_hub is module
        assert controller.event_log.entries(EventKind.ACTIVE_HUB_CHANGED)

    def test_restricted_to_hub_kind(self):
        controller = StationController(create_test_config(restrict_active_hub_to_hub_kind=True))
        standard = launch_and_dock(controller)
        assert controller.set_active_hub(standard.id) is False
        hub_module = launch_and_dock(controller, ModuleConfig(kind=ModuleKind.HUB))
        assert controller.set_active_hub(hub_module.id) is True
        assert controller.set_active_hub(controller.hub.id) is True


class TestFaults:

    def test_no_eligible_module(self, controller):
        before = controller.modules_snapshot()
        result = controller.inject_random_fault()
        assert isinstance(result, NoEligibleModule)
        assert not result
        assert controller.event_log.entries(EventKind.NO_ELIGIBLE_MODULE)
        assert [m['telemetry']['status'] for m in before] == \
            [m['telemetry']['status'] for m in controller.modules_snapshot()]

    def test_in_transit_not_eligible(self, controller):
        controller.launch()
        assert isinstance(controller.inject_random_fault(), NoEligibleModule)

    def test_hub_kind_not_eligible(self, controller):
        launch_and_dock(controller, ModuleConfig(kind=ModuleKind.HUB))
        assert isinstance(controller.inject_random_fault(), NoEligibleModule)

    def test_fault_and_repair_all(self, controller):
        a = launch_and_dock(controller)
        b = launch_and_dock(controller)
        first = controller.inject_random_fault()
        second = controller.inject_random_fault()
        assert {first.id, second.id} == {a.id, b.id}
        assert isinstance(controller.inject_random_fault(), NoEligibleModule)
        assert a.telemetry.status is TelemetryStatus.CRITICAL

        assert controller.repair_all() == 2
        assert controller.repair_all() == 0
        assert not a.telemetry.is_critical and not b.telemetry.is_critical
        assert len(controller.event_log.entries(EventKind.MODULE_REPAIRED)) == 2

    def test_critical_persists_across_ticks(self, controller):
        module = launch_and_dock(controller)
        controller.inject_random_fault()
        for _ in range(200):
            controller.tick(C.DT)
        assert module.telemetry.is_critical


class TestRemove:

    def test_unknown(self, controller):
        result = controller.remove("ghost")
        assert isinstance(result, InvalidRemoval)
        assert result.reason is RemovalRejection.UNKNOWN_MODULE

    def test_in_transit(self, controller):
        module = controller.launch()
        result = controller.remove(module.id)
        assert result.reason is RemovalRejection.IN_TRANSIT
        assert controller.get_module(module.id) is module

    def test_hubs(self, controller):
        assert controller.remove(controller.hub.id).reason is RemovalRejection.HUB
        hub_module = launch_and_dock(controller, ModuleConfig(kind=ModuleKind.HUB))
        assert controller.remove(hub_module.id).reason is RemovalRejection.HUB
        standard = launch_and_dock(controller)
        controller.set_active_hub(standard.id)
        assert controller.remove(standard.id).reason is RemovalRejection.HUB

    def test_remove_frees_slot_and_heals_graph(self, controller):
        module = launch_and_dock(controller)
        target = module.target_position.copy()
        controller.select_module(module.id)
        removed = controller.remove(module.id)
        assert removed is module
        assert controller.get_module(module.id) is None
        assert module.id not in controller.graph.nodes
        assert controller.selected_id is None
        assert controller.event_log.entries(EventKind.MODULE_REMOVED)

        again = controller.launch()
        np.testing.assert_array_almost_equal(again.target_position, target)


class TestTick:

    def test_rejects_bad_dt(self, controller):
        for dt in (0.0, -0.05, float('nan')):
            with pytest.raises(ValueError):
                controller.tick(dt)

    def test_returns_command_events_since_previous_tick(self, controller):
        module = controller.launch()
        controller.launch()
        events = controller.tick(C.DT)
        assert [e.kind for e in events] == [EventKind.MODULE_LAUNCHED, EventKind.LAUNCH_REJECTED]
        assert events[0].module_id == module.id
        assert controller.tick(C.DT) == []

    def test_time_advances(self, controller):
        controller.tick(0.1)
        controller.tick(0.1)
        assert controller.time == pytest.approx(0.2)

    def test_in_transit_position_follows_agent(self, controller):
        module = controller.launch()
        start = module.position.copy()
        for _ in range(20):
            controller.tick(C.DT)
        assert not np.allclose(module.position, start)
        agent = controller.rendezvous.get_agent(module.id)
        np.testing.assert_array_almost_equal(module.position[[0, 2]], agent.position)

    def test_recently_docked_expires(self, controller):
        module = launch_and_dock(controller)
        recent = controller.recently_docked()
        assert [d['module_id'] for d in recent] == [module.id]
        for _ in range(int(C.DOCKED_RETENTION_TIME / C.DT) + 2):
            controller.tick(C.DT)
        assert controller.recently_docked() == []

    def test_telemetry_only_for_docked(self, controller):
        module = controller.launch()
        for _ in range(30):
            controller.tick(C.DT)
        assert module.telemetry.resources_generated == 0
        assert controller.hub.telemetry.resources_generated >= 1


class TestQueries:

    def test_snapshots(self, controller):
        controller.launch()
        modules = controller.modules_snapshot()
        assert modules[0]['is_active_hub'] is True
        assert modules[1]['dock_state'] == 'IN_TRANSIT'
        agents = controller.agents_snapshot()
        assert len(agents) == 1
        assert agents[0]['module_id'] == modules[1]['id']
        assert 0.0 <= agents[0]['progress_pct'] <= 100.0

    def test_select_module(self, controller):
        module = launch_and_dock(controller)
        assert controller.select_module(module.id) == [controller.hub.id, module.id]
        assert controller.selected_id == module.id
        assert controller.select_module("nope") == []
        assert controller.selected_id is None
        assert controller.select_module(None) == []

    def test_event_log_bounded(self):
        controller = StationController(create_test_config(event_log_capacity=5))
        controller.launch()
        for _ in range(10):
            controller.launch()
        assert len(controller.event_log) == 5


def test_seeded_controllers_replay_identically():
    config = create_test_config(seed=123)
    runs = []
    for _ in range(2):
        controller = StationController(config)
        module = launch_and_dock(controller)
        launch_and_dock(controller)
        controller.inject_random_fault()
        for _ in range(50):
            controller.tick(C.DT)
        runs.append((controller.time, module.position.tolist(),
                     [m.telemetry.temperature_c for m in controller.modules]))
    assert runs[0] == runs[1]


def test_validation_runs_each_tick(controller):
    assert controller.config.validate_every_tick
    controller.launch()
    controller.tick(C.DT)


def test_default_config_used_when_missing():
    controller = StationController(rng=np.random.default_rng(0))
    assert controller.config.dt == C.DT
    assert replace(controller.config, dt=0.1).dt == 0.1
