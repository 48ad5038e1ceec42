"""Demo script: run the default launch plan and show the event timeline and topology."""
from station_sim.config import create_default_config
from station_sim.events import EventKind
from station_sim.main import run_session
from dataclasses import replace
import numpy as np

controller, log, reason = run_session(
    fault_interval=30.0,
    repair_interval=90.0,
    config=replace(create_default_config(), random_seed=7),
    verbose=True,
)

print("\n\n===== EVENT TIMELINE =====")
for event in controller.event_log:
    print(f"  {event}")

print("\n===== DOCKING DETAILS =====")
for event in controller.event_log.entries(EventKind.MODULE_DOCKED):
    module = controller.get_module(event.module_id)
    if module is None:
        continue
    print(f"  {module.name:<20} t={event.time:8.2f}s | approach={event.payload['elapsed']:7.2f}s "
          f"({event.payload['ticks']} steps) | slot={np.round(module.position, 2).tolist()}")

print("\n===== TOPOLOGY =====")
print(f"Hub: {controller.graph.hub_id} | edges: {len(controller.graph.edge_list())}")
for module in controller.modules:
    path = controller.shortest_path(module.id)
    print(f"  {module.id:<10} {' -> '.join(path) if path else '(no port link)'}")

print()
print(f"Termination: {reason}")
print(f"Launches: {log.launches} | Rejections: {log.rejections} | "
      f"Critical at end: {log.critical[-1] if log.critical else 0}")
