"""Command line interface for the GPS trilateration simulator.

Points are given as two numbers, latitude then longitude, so southern and
western coordinates need no quoting.

Usage:
    trilateration-sim solve --sat 0 0 --sat 0 1 --sat 1 0 --range 47.2 --range 84.7 --range 84.7
    trilateration-sim simulate --sat 0 0 --sat 0 1 --sat 1 0 --target 0.3 0.3
    trilateration-sim simulate --sat 40 -4 --sat 42 -1 --sat 39 0 --box 38 43 -5 1 --mode jitter
    trilateration-sim simulate --sat -33.87 151.21 --sat -37.81 144.96 --sat -27.47 153.03 --target -35.28 149.13
    trilateration-sim montecarlo --sat 0 0 --sat 0 1 --sat 1 0 --target 0.3 0.3 --range-std "200 m"
"""

import argparse
import logging
import sys
import traceback
from typing import List, Optional, Sequence

import pint

from common.logging_config import get_logger
from common.types import GeoPoint
from common.units import to_kilometers
from geospatial.trilateration import trilaterate
from scenario_simulation.monte_carlo import MonteCarloConfig, MonteCarloSimulator
from scenario_simulation.scenario import (
    BoundingBox,
    LocateMode,
    SimulationConfig,
    run_scenario,
)

logger = get_logger("trilateration_sim")

_LOGGER_NAMES = (
    "trilateration_sim",
    "scenario_simulation.scenario",
    "MonteCarloSimulator",
    "audit",
)


def parse_point(values: Sequence[float]) -> GeoPoint:
    """Build a checked point from (lat, lng) in degrees.

    Raises
    ------
    ValueError
        If either coordinate is out of range.
    """
    latitude, longitude = values
    return GeoPoint.checked(latitude, longitude)


def parse_box(values: Sequence[float]) -> BoundingBox:
    """Build a box from (south, north, west, east) in degrees."""
    south, north, west, east = values
    return BoundingBox(south, north, west, east)


def parse_distance(text: str) -> float:
    """Parse a non-negative distance, bare numbers in km, otherwise any pint length."""
    try:
        distance = to_kilometers(text)
    except (ValueError, pint.errors.PintError) as e:
        raise argparse.ArgumentTypeError(f"Invalid distance {text!r}: {e}")
    if distance < 0:
        raise argparse.ArgumentTypeError(f"Invalid distance {text!r}: must not be negative")
    return distance


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog='trilateration-sim',
        description='GPS trilateration on a spherical Earth',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging and tracebacks'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    def add_satellites(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            '--sat', dest='satellites', type=float, nargs=2, action='append', required=True,
            metavar=('LAT', 'LNG'), help='Satellite position (give exactly three)'
        )

    solve = subparsers.add_parser('solve', help='Trilaterate from three satellites and ranges')
    add_satellites(solve)
    solve.add_argument(
        '--range', dest='ranges', type=parse_distance, action='append', required=True,
        metavar='DISTANCE', help='Great-circle distance to the target, e.g. 47.2 or "500 m"'
    )
    solve.add_argument('--prior', type=float, nargs=2, metavar=('LAT', 'LNG'),
                       help='Rough position used to choose between the two solutions')

    simulate = subparsers.add_parser('simulate', help='Run one simulated exercise')
    add_satellites(simulate)
    simulate.add_argument('--target', type=float, nargs=2, metavar=('LAT', 'LNG'),
                          help='True position (random inside --box when omitted)')
    simulate.add_argument('--box', type=float, nargs=4, metavar=('S', 'N', 'W', 'E'),
                          help='Box for random targets')
    simulate.add_argument('--mode', choices=[m.value for m in LocateMode], default='solve')
    simulate.add_argument('--noise', type=parse_distance, default=0.0,
                          help='Range noise standard deviation (default: 0)')
    simulate.add_argument('--seed', type=int, help='Random seed')

    montecarlo = subparsers.add_parser('montecarlo', help='Estimate fix error under range noise')
    add_satellites(montecarlo)
    montecarlo.add_argument('--target', type=float, nargs=2, required=True, metavar=('LAT', 'LNG'))
    montecarlo.add_argument('--samples', type=int, default=100)
    montecarlo.add_argument('--range-std', type=parse_distance, default=0.5,
                            help='Range noise standard deviation (default: 0.5 km)')
    montecarlo.add_argument('--seed', type=int, help='Random seed')

    args = parser.parse_args(argv)

    if len(args.satellites) != 3:
        parser.error('exactly three --sat options are required')
    if args.command == 'solve' and len(args.ranges) != 3:
        parser.error('exactly three --range options are required')
    if args.command == 'simulate' and args.target is None and args.box is None:
        parser.error('simulate needs --target or --box')

    try:
        args.satellites = [parse_point(values) for values in args.satellites]
        for name in ('target', 'prior'):
            if getattr(args, name, None) is not None:
                setattr(args, name, parse_point(getattr(args, name)))
        if getattr(args, 'box', None) is not None:
            args.box = parse_box(args.box)
    except ValueError as e:
        parser.error(str(e))
    return args


def _run_solve(args: argparse.Namespace) -> int:
    s1, s2, s3 = args.satellites
    r1, r2, r3 = args.ranges
    outcome = trilaterate(s1, r1, s2, r2, s3, r3)
    if not outcome.resolved:
        print(f"Could not triangulate: {outcome.message}")
        return 1
    for idx, candidate in enumerate(outcome.candidates, start=1):
        print(f"Candidate {idx}: {candidate}")
    print(f"Selected:    {outcome.unwrap(args.prior)}")
    return 0


def _run_simulate(args: argparse.Namespace) -> int:
    config = SimulationConfig(
        mode=LocateMode(args.mode),
        range_noise_std_km=args.noise,
        random_seed=args.seed,
    )
    if args.box is not None:
        config.bounds = args.box

    state = run_scenario(tuple(args.satellites), target=args.target, config=config)

    print(f"Target: {state.target}")
    for sat in state.satellites:
        print(f"{sat.name}: {sat.position}  distance {state.distances[sat.id]:.3f} km")
    if state.fix is None:
        print(f"Could not triangulate: {state.outcome.message}")
        return 1
    print(f"Calculated position: {state.fix.point}")
    print(f"Accuracy: {state.fix.accuracy_km:.3f} km")
    return 0


def _run_montecarlo(args: argparse.Namespace) -> int:
    config = MonteCarloConfig(
        num_samples=args.samples,
        range_std_km=args.range_std,
        random_seed=args.seed,
    )
    result = MonteCarloSimulator(config).run_simulation(args.satellites, args.target)
    stats = result.error_stats

    print(f"Resolved: {result.success_rate:.1%} of {result.num_samples} samples")
    for status, count in result.status_counts.items():
        print(f"  {status.value}: {count}")
    print(f"Mean error: {stats.mean:.3f} km (std {stats.std:.3f} km)")
    print(
        "Percentiles: "
        + ", ".join(f"p{p}={v:.3f} km" for p, v in sorted(stats.percentiles.items()))
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    args = parse_arguments(argv)
    if args.verbose:
        for name in _LOGGER_NAMES:
            logging.getLogger(name).setLevel(logging.DEBUG)

    try:
        if args.command == 'solve':
            return _run_solve(args)
        if args.command == 'simulate':
            return _run_simulate(args)
        return _run_montecarlo(args)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        return 1
    except Exception as e:
        print(f"\nERROR: {args.command} failed: {e}")
        if args.verbose:
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
