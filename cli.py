#!/usr/bin/env python3
"""
Command-line interface for calibrated fast approximation.

Provides commands for:
- Running the toy-model calibration demo
- Validating error configuration files

Usage:
    fae demo --method min_distance --precision 0.05
    fae demo --config error.yaml -o out/demo
    fae check-config error.yaml
"""

import argparse
import json
import logging
import os
import sys


def cmd_demo(args):
    """Calibrate on the toy model and report acceptance statistics."""
    from calibration import ErrorConfig, ErrorMethod, load_config
    from calibration.exceptions import ApproximatorErrorException
    from runtime.demo import run_demo

    try:
        config = load_config(args.config) if args.config else ErrorConfig()
        if args.method:
            config.method = ErrorMethod.parse(args.method)
        if args.precision is not None:
            config.precision = args.precision
        if args.neighbors is not None:
            config.approximator.n_neighbors = args.neighbors
        if args.no_posterior_file:
            config.posterior_file = None

        print(f"Running demo with method: {config.method.value}")
        print(f"Precision: {config.precision}")
        print("=" * 60)

        results = run_demo(
            out_dir=args.output,
            config=config,
            n_train=args.n_train,
            n_test=args.n_test,
            n_query=args.n_query,
            dim=args.dim,
            seed=args.seed
        )

    except FileNotFoundError as e:
        print(f"ERROR: {e}")
        return 1
    except (ApproximatorErrorException, ValueError) as e:
        print(f"ERROR: {e}")
        return 1

    calib = results["calibration"]
    queries = results["queries"]

    print("\nCalibration:")
    print("-" * 40)
    print(f"Valid samples: {calib['n_valid_samples']}")
    if calib["calibrated"]:
        print(f"Status: CALIBRATED")
        print(f"Ratio 1 sigma upper: {calib['sigma1_upper']:.4f}")
        print(f"Ratio 2 sigma upper: {calib['sigma2_upper']:.4f}")
    else:
        print("Status: NOT CALIBRATED (exact matches only)")

    print("\nQueries:")
    print("-" * 40)
    print(f"Fast: {queries['n_fast']}")
    print(f"Slow: {queries['n_slow']}")
    print(f"Fast fraction: {queries['fast_fraction']:.2%}")
    if queries["max_fast_error"] is not None:
        print(f"Max error of fast evaluations: {queries['max_fast_error']:.4g}")
        print(f"Fast evaluations above precision: {queries['n_fast_above_precision']}")

    print(f"\nResults written to: {args.output}")

    if args.json:
        print(json.dumps(results, indent=2))

    return 0


def cmd_check_config(args):
    """Validate an error configuration file."""
    from calibration import load_config
    from calibration.exceptions import ConfigurationError

    print(f"Validating config: {args.config}")
    print("=" * 60)

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"ERROR: {e}")
        return 1
    except ConfigurationError as e:
        print("VALIDATION: FAILED")
        print(f"Errors:\n{e}")
        return 1

    print(f"Method: {config.method.value}")
    print(f"Precision: {config.precision}")
    print(f"Min samples: {config.min_samples}")
    print(f"Posterior file: {config.posterior_file}")
    print(f"Neighbors: {config.approximator.n_neighbors}")
    print()
    print("VALIDATION: PASSED")

    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Calibrated fast approximation CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  fae demo --method avg_inv_distance --precision 0.05
  fae demo --config error.yaml --n-test 1000 -o out/demo
  fae check-config error.yaml
        """
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Log calibration progress')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Demo command
    demo_parser = subparsers.add_parser('demo', help='Run the toy-model demo')
    demo_parser.add_argument('--config', help='Error configuration YAML file')
    demo_parser.add_argument('--method', help='Error method (overrides config)')
    demo_parser.add_argument('--precision', type=float, help='Precision (overrides config)')
    demo_parser.add_argument('--neighbors', type=int, help='Number of nearest neighbors')
    demo_parser.add_argument('--n-train', type=int, default=2000, help='Training points')
    demo_parser.add_argument('--n-test', type=int, default=500, help='Calibration points')
    demo_parser.add_argument('--n-query', type=int, default=500, help='Query points')
    demo_parser.add_argument('--dim', type=int, default=1, help='Input dimension')
    demo_parser.add_argument('--seed', type=int, default=123)
    demo_parser.add_argument('--no-posterior-file', action='store_true',
                             help='Do not write the ratio posterior')
    demo_parser.add_argument('-o', '--output', default='out/demo', help='Output directory')
    demo_parser.add_argument('--json', action='store_true', help='Print results as JSON')

    # Config command
    config_parser = subparsers.add_parser('check-config', help='Validate a config file')
    config_parser.add_argument('config', help='Path to YAML config')

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s"
    )

    # Add package to path
    sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

    # Dispatch to command handler
    if args.command == 'demo':
        return cmd_demo(args)
    elif args.command == 'check-config':
        return cmd_check_config(args)

    return 0


if __name__ == "__main__":
    sys.exit(main())
