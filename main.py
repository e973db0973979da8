"""Main entry point for the ecosystem simulation.

Runs the simulation headless: stats are logged periodically and can be
exported as JSON together with a final world snapshot.
"""

import argparse
import logging
import sys

from ecosim.config.simulation_config import SimulationConfig, WorldConfig
from ecosim.config.world import STATS_INTERVAL
from ecosim.exceptions import ConfigurationError
from ecosim.logging_config import configure_logging
from ecosim.simulation import SimulationEngine
from ecosim.spatial.bounds import BoundaryPolicy

logger = logging.getLogger(__name__)


def build_config(args: argparse.Namespace) -> SimulationConfig:
    """Translate command-line options into a SimulationConfig."""
    base = SimulationConfig.headless_fast() if args.fast else SimulationConfig.production()
    world = WorldConfig(
        width=base.world.width,
        height=base.world.height,
        boundary_policy=BoundaryPolicy(args.boundary),
        timestep=base.world.timestep,
        spatial_cell_size=base.world.spatial_cell_size,
        parallel_workers=args.workers,
        separator_width=base.world.separator_width,
    )
    return base.with_overrides(world=world)


def run_headless(args: argparse.Namespace) -> int:
    """Run the simulation in headless mode.

    Returns:
        Process exit code
    """
    try:
        config = build_config(args)
        engine = SimulationEngine(config, seed=args.seed)
    except ConfigurationError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    engine.run_headless(
        max_ticks=args.max_ticks,
        stats_interval=args.stats_interval,
        export_json=args.export_stats,
        snapshot_path=args.snapshot,
    )
    return 0


def main():
    """Parse command-line arguments and run the simulation."""
    parser = argparse.ArgumentParser(
        description="Continuous-space ecosystem simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Quick run in a small world
  python main.py --fast --max-ticks 1000

  # Reproducible run on a toroidal world with stats export
  python main.py --seed 42 --boundary periodic --export-stats results.json

  # Spread perception and intent work over four threads
  python main.py --workers 4 --max-ticks 20000 --snapshot final.json
        """,
    )

    parser.add_argument(
        "--max-ticks",
        type=int,
        default=10000,
        help="Maximum ticks to simulate (default: 10000)",
    )

    parser.add_argument(
        "--stats-interval",
        type=int,
        default=STATS_INTERVAL,
        help=f"Log stats every N ticks, 0 to disable (default: {STATS_INTERVAL})",
    )

    parser.add_argument(
        "--seed", type=int, default=None, help="Random seed for deterministic behavior (optional)"
    )

    parser.add_argument(
        "--boundary",
        choices=[policy.value for policy in BoundaryPolicy],
        default=BoundaryPolicy.CLAMP.value,
        help="Boundary policy at the world edges (default: clamp)",
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Worker threads for perception and intent phases (default: 1)",
    )

    parser.add_argument(
        "--fast", action="store_true", help="Use the small headless_fast world"
    )

    parser.add_argument(
        "--export-stats",
        type=str,
        default=None,
        help="Export final stats to a JSON file",
    )

    parser.add_argument(
        "--snapshot",
        type=str,
        default=None,
        help="Write the final world snapshot to a JSON file",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Log level (default: ECOSIM_LOG_LEVEL or INFO)",
    )

    args = parser.parse_args()
    configure_logging(level=args.log_level, format="%(levelname)s:%(name)s:%(message)s")

    sys.exit(run_headless(args))


if __name__ == "__main__":
    main()
