"""
Modular Station Simulation - CLI

The single entry point for running a headless station session, printing a
summary and generating plots.
"""

import argparse
from dataclasses import replace
import logging
import os
import sys

from .config import create_default_config
from .main import DEFAULT_PLAN, run_session

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Modular Space Station Simulation",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument(
        "--modules", "-n",
        type=int,
        default=len(DEFAULT_PLAN),
        help="Number of modules to launch from the default plan (cycled)"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for spawn angles, faults and telemetry drift"
    )
    parser.add_argument(
        "--dt",
        type=float,
        default=None,
        help="Frame time in seconds (defaults to the rendezvous step)"
    )
    parser.add_argument(
        "--fault-interval",
        type=float,
        default=None,
        help="Inject a random fault every N simulated seconds"
    )
    parser.add_argument(
        "--repair-interval",
        type=float,
        default=None,
        help="Repair all critical modules every N simulated seconds"
    )
    parser.add_argument(
        "--output-dir", "-o",
        type=str,
        default="plots",
        help="Directory to save output plots"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress verbose output"
    )
    parser.add_argument(
        "--no-plots",
        action="store_true",
        help="Skip plot generation"
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Main execution flow."""
    args = parse_args(argv)

    if args.quiet:
        logging.getLogger().setLevel(logging.WARNING)

    plan = [DEFAULT_PLAN[i % len(DEFAULT_PLAN)] for i in range(max(args.modules, 0))]
    config = create_default_config()

    print(f"\n{'='*70}\nMODULAR STATION: HEADLESS SESSION\n{'='*70}\n")

    try:
        logger.info("Starting session...")
        controller, log, reason = run_session(
            plan=plan,
            dt=args.dt,
            fault_interval=args.fault_interval,
            repair_interval=args.repair_interval,
            config=replace(config, random_seed=args.seed),
            verbose=not args.quiet,
        )

        print("\n" + "=" * 60)
        print("SESSION SUMMARY")
        print("=" * 60)
        print(f"Termination reason: {reason}")
        print(f"Final time: {controller.time:.2f} s")
        print(f"Launches: {log.launches}, rejections: {log.rejections}")
        for module in controller.modules:
            path = controller.shortest_path(module.id)
            route = " -> ".join(path) if path else "(no port link)"
            print(f"  {module.id:<10} {module.name:<20} {module.dock_state.name:<10} "
                  f"{module.telemetry.status.name:<8} {route}")
        print("=" * 60 + "\n")

        if not args.no_plots and len(log) > 0:
            from .plotting import generate_all_plots

            if os.path.isabs(args.output_dir):
                plot_dir = args.output_dir
            else:
                plot_dir = os.path.join(os.getcwd(), args.output_dir)

            logger.info(f"Generating plots in {plot_dir}")
            paths = generate_all_plots(log, plot_dir)
            print(f">> Wrote {len(paths)} plots to: {plot_dir}")

    except Exception as e:
        logger.error(f"Session failed: {e}", exc_info=True)
        print(f"\n[ERROR] Session failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
