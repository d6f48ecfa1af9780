#!/usr/bin/env python3
"""
Channel Flow Simulation Script.

Runs the explicit Euler solver on a channel with an optional lower-wall bump
and writes CSV/DAT/VTK results and plots.

Usage:
    python scripts/run_channel.py --config config/examples/gamm_channel.yaml
    python scripts/run_channel.py --nx 60 --ny 20 --scheme hll --global-dt

Examples:
    # Using YAML config (recommended)
    python scripts/run_channel.py --config config/examples/gamm_channel.yaml

    # Quick coarse run with the JAX kernels
    python scripts/run_channel.py --preset coarse --backend jax --max-iter 2000
"""

import argparse
import sys

from loguru import logger

from euler2d.config import SimulationConfig, load_yaml, from_dict, apply_cli_overrides, save_yaml
from euler2d.errors import ConfigError
from euler2d.utils.logging import setup_logging


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Run the 2D Euler solver on a channel",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument('--config', '-c', help="YAML config file")
    parser.add_argument('--preset', choices=['coarse', 'medium', 'fine'],
                        help="Grid preset (ignored with --config)")

    # Grid
    parser.add_argument('--nx', type=int, help="Interior cells along the channel")
    parser.add_argument('--ny', type=int, help="Interior cells across the channel")
    parser.add_argument('--bump-height', type=float, help="Relative bump thickness")

    # Flow
    parser.add_argument('--alpha', '-a', type=float, help="Inlet flow angle (degrees)")
    parser.add_argument('--p2', type=float, help="Outlet static pressure")

    # Solver
    parser.add_argument('--max-iter', '-n', type=int, help="Maximum iterations")
    parser.add_argument('--tol', type=float, help="Convergence threshold on log residual")
    parser.add_argument('--cfl', type=float, help="CFL number")
    parser.add_argument('--scheme', choices=['hll', 'hllc'], help="Riemann solver")
    parser.add_argument('--backend', choices=['numpy', 'jax'], help="Kernel backend")
    parser.add_argument('--global-dt', action='store_const', const=True, default=None,
                        help="Use one global time step (time-accurate)")
    parser.add_argument('--print-freq', type=int, help="Print every N iterations")

    # Output
    parser.add_argument('--output-dir', '-o', help="Output directory")
    parser.add_argument('--case-name', help="Output file prefix")
    parser.add_argument('--log-level', default=None,
                        help="DEBUG, INFO, WARNING, ... (default: INFO)")
    parser.add_argument('--log-file', default=None, help="Also log to this file")

    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level, log_file=args.log_file)

    try:
        if args.config:
            config = load_yaml(args.config)
        elif args.preset:
            config = from_dict({'preset': args.preset})
        else:
            config = SimulationConfig()
        config = apply_cli_overrides(config, args)
    except (FileNotFoundError, ConfigError, ValueError) as err:
        logger.error(f"Invalid configuration: {err}")
        return 2

    # Import after logging is configured (pulls in JAX)
    from euler2d.solvers.euler_solver import EulerSolver

    solver = EulerSolver(config)
    outcome = solver.run()

    save_yaml(config, f"{config.output.directory}/{config.output.case_name}_config.yaml")
    written = solver.save_results()
    logger.info(f"Wrote {len(written)} output file(s) to {config.output.directory}")

    if outcome.failed:
        logger.error(f"Run failed: {outcome.error.message}")
        return 1
    if not outcome.converged:
        logger.warning("Run did not converge")
    logger.info(f"Solution bounds: {solver.solution_bounds()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
