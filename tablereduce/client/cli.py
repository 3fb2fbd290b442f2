#!/usr/bin/env python3
"""
tablereduce CLI
Loads a dataset, runs the demo queries and prints the results
"""

import argparse
import logging
import sys
import time

from tablereduce.client.formatting import format_duration, format_ranked, format_speedup
from tablereduce.common.schema_loader import SchemaLoader
from tablereduce.config import EngineConfig
from tablereduce.coordinator.engine import AnalyticsEngine
from tablereduce.exceptions import TableReduceError
from tablereduce.samples.air_quality import AirQualityAnalyzer
from tablereduce.samples.population import PopulationAnalyzer

logger = logging.getLogger(__name__)


def build_config(args) -> EngineConfig:
    return EngineConfig.from_env().with_overrides(
        workers=args.workers,
        fallback_workers=args.fallback_workers,
        backend=args.backend,
        log_level=args.log_level,
    )


def print_population_analysis(analyzer: PopulationAnalyzer, results: dict, year: int, base_year: int):
    print(f"Countries loaded: {results['countries_loaded']}")

    print(f"\n1. Top 10 Countries by Population ({year}):")
    labelled = [(f"{analyzer.get_country_name(code)} ({code})", pop) for code, pop in results['top_countries']]
    for line in format_ranked(labelled):
        print(line)

    print(f"\n2. Global Population Growth ({base_year}-{year}):")
    print(f"Growth rate: {results['global_growth']:.2f}%")

    print(f"\n3. Countries with Population > 100 Million ({year}):")
    print(f"Found {len(results['large_countries'])} countries:")
    for code, pop in results['large_countries']:
        print(f"  {analyzer.get_country_name(code) + ' (' + code + ')':<40} {pop:>15,}")

    print(f"\n4. Total World Population ({year}):")
    print(f"Total: {results['world_population']:>15,} people")

    print(f"\n5. Top 5 Countries by Growth Rate ({base_year}-{year}):")
    labelled = [(f"{analyzer.get_country_name(code)} ({code})", rate) for code, rate in results['top_growth_rates']]
    for line in format_ranked(labelled, value_format="{:.2f}%"):
        print(line)


def population_command(args):
    """Run the population analysis, optionally comparing serial and parallel"""
    config = build_config(args)
    analyzer = PopulationAnalyzer(config=config)

    row_count, warnings = analyzer.load_from_csv(args.csv_file)
    for warning in warnings:
        print(f"Warning: {warning}")
    if row_count == 0:
        print(f"Error: no population rows loaded from {args.csv_file}")
        return 1

    modes = [False, True] if args.compare else [not args.serial]
    timings = {}
    for use_parallel in modes:
        label = "PARALLEL" if use_parallel else "SINGLE-THREADED"
        print(f"\n=== COMPREHENSIVE POPULATION ANALYSIS ({label}) ===")
        start = time.perf_counter()
        results = analyzer.comprehensive_analysis(
            use_parallel=use_parallel, year=args.year, base_year=args.base_year
        )
        timings[use_parallel] = (time.perf_counter() - start) * 1000
        print_population_analysis(analyzer, results, args.year, args.base_year)
        print(f"\nAnalysis time: {format_duration(timings[use_parallel] / 1000)}")

    if args.compare:
        print(f"\nSpeedup: {format_speedup(timings[False], timings[True])}")
    return 0


def air_quality_command(args):
    """Run the air quality queries"""
    config = build_config(args)
    analyzer = AirQualityAnalyzer(config=config)
    use_parallel = not args.serial

    start = time.perf_counter()
    row_count, warnings = analyzer.load_data(args.data_dir)
    print(f"Loaded {row_count} records in {format_duration(time.perf_counter() - start)}")
    for warning in warnings:
        print(f"Warning: {warning}")

    stats = analyzer.get_data_statistics(use_parallel=use_parallel)
    if stats.total_records == 0:
        print("No data loaded.")
        return 1

    print("\n=== DATA STATISTICS ===")
    print(f"Total records: {stats.total_records}")
    print(f"Date range: {stats.first_date} to {stats.last_date}")
    print(f"AQI range: {stats.min_aqi} to {stats.max_aqi}")
    print(f"Number of unique dates: {stats.unique_dates}")
    print("\nParameter distribution:")
    for parameter, count in stats.parameter_counts:
        print(f"  {parameter}: {count} records")

    print(f"\n1. AQI data for {args.date}:")
    day_data = analyzer.get_aqi_data_for_date(args.date, use_parallel=use_parallel)
    print(f"Found {len(day_data)} records")
    for record in sorted(day_data, key=lambda r: (r.site_name, r.datetime))[:5]:
        print(f"  {record.site_name} - AQI: {record.aqi} ({record.parameter}: {record.value} {record.unit})")

    print(f"\n2. Days with AQI above {args.threshold}:")
    for date in analyzer.get_days_with_aqi_above(args.threshold):
        print(f"  {date}")

    print(f"\n3. Average AQI for {args.average_date}:")
    print(f"Average AQI: {analyzer.get_average_aqi_for_date(args.average_date, use_parallel=use_parallel):.2f}")

    print(f"\n4. Top {args.top} readings with AQI >= {args.threshold}:")
    for line in format_ranked(analyzer.get_top_readings_above(args.threshold, args.top, use_parallel=use_parallel)):
        print(line)
    return 0


def load_command(args):
    """Load files with a user-provided schema and report the table size"""
    try:
        schema = SchemaLoader(args.schema).get_schema()
    except (FileNotFoundError, AttributeError, TypeError) as e:
        print(f"Error loading schema: {e}")
        return 1

    engine = AnalyticsEngine(schema, config=build_config(args))
    row_count, warnings = engine.load_from_files(args.paths)
    for warning in warnings:
        print(f"Warning: {warning}")
    print(f"Schema: {schema.name}")
    print(f"Rows loaded: {row_count}")
    return 0 if not warnings else 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Parallel chunked analytics over CSV tables')
    parser.add_argument('--workers', type=int, help='Worker count (default: CPU count)')
    parser.add_argument('--fallback-workers', type=int,
                        help='Worker count when the CPU count is unreported')
    parser.add_argument('--backend', choices=['serial', 'pool', 'thread'],
                        help='Dispatch backend (default: pool)')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level (default: INFO)')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    population_parser = subparsers.add_parser('population', help='World Bank population analysis')
    population_parser.add_argument('csv_file', help='Path to the population CSV')
    population_parser.add_argument('--year', type=int, default=2020, help='Analysis year')
    population_parser.add_argument('--base-year', type=int, default=1960, help='Growth baseline year')
    population_parser.add_argument('--serial', action='store_true', help='Single-threaded queries')
    population_parser.add_argument('--compare', action='store_true',
                                   help='Run serial and parallel and report speedup')
    population_parser.set_defaults(func=population_command)

    air_parser = subparsers.add_parser('air-quality', help='Air quality / fire data analysis')
    air_parser.add_argument('data_dir', help='Directory tree of CSV files')
    air_parser.add_argument('--date', default='2020-08-15', help='Date for the exact-match query')
    air_parser.add_argument('--average-date', default='2020-08-20', help='Date for the average AQI query')
    air_parser.add_argument('--threshold', type=int, default=100, help='AQI threshold')
    air_parser.add_argument('--top', type=int, default=5, help='Number of top readings')
    air_parser.add_argument('--serial', action='store_true', help='Single-threaded queries')
    air_parser.set_defaults(func=air_quality_command)

    load_parser = subparsers.add_parser('load', help='Load files with a custom schema')
    load_parser.add_argument('--schema', required=True, help='Python file defining SCHEMA')
    load_parser.add_argument('paths', nargs='+', help='Files to load')
    load_parser.set_defaults(func=load_command)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = build_config(args)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        return args.func(args)
    except TableReduceError as e:
        logger.error(f"Command failed: {e}")
        print(f"Error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
