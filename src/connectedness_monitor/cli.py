"""
Command Line Interface for Connectedness Monitor.

Provides the main entry point for running analysis.
"""

import argparse
import signal
import sys
from pathlib import Path

from .core.constants import DEFAULT_OUTPUT_DIR, DEFAULT_STANDALONE_HORIZON, VERSION_NAME


EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CANCELLED = 130


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog='connectedness-monitor',
        description='Connectedness Monitor - Rolling-Window Granger Causality Networks',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Basic run
    python -m connectedness_monitor run -d returns.xlsx

    # With custom config and output directory
    python -m connectedness_monitor run -d returns.xlsx -c config.yaml -o ./results

    # Full-sample variance decomposition
    python -m connectedness_monitor decompose -d returns.xlsx --lags 2 --horizon 12

    # Validate a config file
    python -m connectedness_monitor validate-config config.yaml
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Run command
    run_parser = subparsers.add_parser('run', help='Run rolling-window connectedness analysis')
    run_parser.add_argument('-d', '--data', required=True, type=Path,
                            help='Path to returns workbook (.xlsx) or CSV file')
    run_parser.add_argument('-o', '--output', default=DEFAULT_OUTPUT_DIR, type=Path,
                            help=f'Output directory (default: {DEFAULT_OUTPUT_DIR})')
    run_parser.add_argument('-c', '--config', type=Path,
                            help='Path to config.yaml')
    run_parser.add_argument('--no-plots', action='store_true',
                            help='Skip chart generation')
    run_parser.add_argument('-v', '--verbose', action='store_true',
                            help='Verbose output')
    run_parser.add_argument('-q', '--quiet', action='store_true',
                            help='Quiet mode (warnings only)')
    run_parser.add_argument('--log-file', type=Path,
                            help='Also write a DEBUG run log to this file')

    # Decompose command
    decompose_parser = subparsers.add_parser('decompose', help='Full-sample variance decomposition')
    decompose_parser.add_argument('-d', '--data', required=True, type=Path,
                                  help='Path to returns workbook (.xlsx) or CSV file')
    decompose_parser.add_argument('-c', '--config', type=Path,
                                  help='Path to config.yaml')
    decompose_parser.add_argument('--lags', type=int,
                                  help='VAR lag order (default: spillover.lags from the config)')
    decompose_parser.add_argument('--horizon', type=int,
                                  help=f'Forecast horizon (default: {DEFAULT_STANDALONE_HORIZON}; '
                                       'spillover.horizon only applies inside rolling runs)')
    decompose_parser.add_argument('--orthogonal', action='store_true',
                                  help='Cholesky (orthogonal) instead of generalized decomposition')
    decompose_parser.add_argument('-v', '--verbose', action='store_true',
                                  help='Verbose output')

    # Validate config command
    validate_parser = subparsers.add_parser('validate-config', help='Validate config file')
    validate_parser.add_argument('config', type=Path, help='Config file path')

    # Version command
    parser.add_argument('--version', action='store_true', help='Show version')

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from . import __version__
        print(f"{VERSION_NAME} v{__version__}")
        return EXIT_OK

    if args.command == 'run':
        return run_analysis(args)
    elif args.command == 'decompose':
        return run_decomposition(args)
    elif args.command == 'validate-config':
        return validate_config(args)
    else:
        parser.print_help()
        return EXIT_OK


def run_analysis(args) -> int:
    """Run the rolling-window connectedness pipeline."""
    import logging
    from .utils.logging import setup_logging, get_logger, log_exception, ProgressLogger
    from .core.config import ConfigLoader
    from .core.exceptions import ConnectednessError, format_exception_chain
    from .data.loader import DataLoader
    from .analysis.windows import CancellationToken, run_connectedness
    from .report.generator import ReportGenerator
    from .report.writer import ResultsWriter

    log_level = logging.DEBUG if args.verbose else (logging.WARNING if args.quiet else logging.INFO)
    setup_logging(level=log_level, log_file=args.log_file, quiet=args.quiet)
    logger = get_logger(__name__)

    print("=" * 70)
    print("  CONNECTEDNESS MONITOR")
    print("=" * 70)

    cancellation = CancellationToken()
    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: cancellation.cancel())

    try:
        print("\n[1/4] Loading configuration...")
        config = ConfigLoader.load_or_default(args.config)
        config.validate()
        conn = config.connectedness
        print(f"  Bandwidth: {conn.bandwidth}  Significance: {conn.significance}  "
              f"Robust: {conn.robust}  k: {conn.k}")

        output_dir = Path(args.output)
        output_dir.mkdir(parents=True, exist_ok=True)

        print("\n[2/4] Loading returns...")
        dataset = DataLoader(args.data, config).load()
        print(f"  {dataset.N} firms, {dataset.T} observations")

        print("\n[3/4] Computing rolling-window networks...")
        progress = ProgressLogger(logger, description="Rolling windows")
        results = run_connectedness(
            dataset.returns,
            config,
            partition=dataset.partition,
            progress_callback=None if args.quiet else progress,
            cancellation=cancellation,
        )

        if results is None:
            print("\n  Run cancelled, no results written.", file=sys.stderr)
            return EXIT_CANCELLED

        if not args.quiet:
            progress.finish(f"Computed {results.n_windows} windows")

        print("\n[4/4] Generating outputs...")
        date_str = dataset.dates[-1].strftime('%Y%m%d')
        prefix = config.output.results_prefix

        report = ReportGenerator(config).generate(results)
        report_path = output_dir / f"{prefix}_{date_str}.txt"
        with open(report_path, 'w', encoding='utf-8') as f:
            f.write(report)
        print(f"  Report: {report_path}")

        if config.output.save_results:
            results_path = ResultsWriter().write(results, output_dir / f"{prefix}_{date_str}")
            print(f"  Results: {results_path}")

        if config.output.save_plots and not args.no_plots:
            from .report.visualizer import Visualizer
            for path in Visualizer(config).create_all(results, output_dir, f"{prefix}_{date_str}"):
                print(f"  Chart: {path}")

        if not args.quiet:
            print("\n" + "=" * 70)
            print(report)

        print("\n" + "=" * 70)
        print("  Done!")
        print("=" * 70)

        return EXIT_OK

    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return EXIT_CANCELLED
    except ConnectednessError as e:
        logger.error(format_exception_chain(e))
        print(f"\nError: {e}", file=sys.stderr)
        return EXIT_ERROR
    except Exception as e:
        log_exception(logger, e, "Unexpected error")
        print(f"\nUnexpected error: {e}", file=sys.stderr)
        return EXIT_ERROR
    finally:
        signal.signal(signal.SIGINT, previous_handler)


def run_decomposition(args) -> int:
    """
    Fit a VAR on the full sample and print its variance decomposition.

    Lags come from the config unless overridden; the horizon defaults to the
    standalone horizon, independent of spillover.horizon.
    """
    import logging
    from .utils.logging import setup_logging
    from .core.config import ConfigLoader
    from .core.exceptions import ConnectednessError
    from .data.loader import DataLoader
    from .analysis.variance_decomposition import VarianceDecomposer, spillover_summary
    from .report.generator import ReportGenerator

    setup_logging(level=logging.DEBUG if args.verbose else logging.WARNING)
    logger = logging.getLogger(__name__)

    try:
        config = ConfigLoader.load_or_default(args.config)
        spill = config.spillover

        decomposer = VarianceDecomposer(
            lags=args.lags if args.lags is not None else spill.lags,
            horizon=args.horizon if args.horizon is not None else DEFAULT_STANDALONE_HORIZON,
            generalized=not args.orthogonal and spill.generalized,
        )

        dataset = DataLoader(args.data, config, require_bandwidth=False).load()
        decomposition = decomposer.decompose(dataset.returns)
        summary = spillover_summary(decomposition.matrix, dataset.firm_names)

        print(ReportGenerator(config).generate_spillover(decomposition, summary))
        return EXIT_OK

    except ConnectednessError as e:
        logger.error(str(e))
        print(f"\nError: {e}", file=sys.stderr)
        return EXIT_ERROR


def validate_config(args) -> int:
    """Validate a config file."""
    from .core.config import ConfigLoader
    from .core.exceptions import ConfigurationError

    print(f"Validating: {args.config}")

    try:
        config = ConfigLoader.load(args.config)
        print("✓ Config is valid")
        print(f"  Bandwidth: {config.connectedness.bandwidth}")
        print(f"  Significance: {config.connectedness.significance}")
        print(f"  VAR lags / horizon: {config.spillover.lags} / {config.spillover.horizon}")
        print(f"  Groups: {len(config.data.groups)}")
        return EXIT_OK
    except ConfigurationError as e:
        print(f"✗ Config validation failed: {e}")
        return EXIT_ERROR


if __name__ == '__main__':
    sys.exit(main())
