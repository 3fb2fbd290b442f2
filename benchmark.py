#!/usr/bin/env python3
"""
Automated benchmarking script for the chunked reduction engine.
Loads a dataset once, then times every query serially and in parallel
across worker counts and dispatch backends.
"""

import argparse
import csv
import json
import logging
import os
import sys
import time
from datetime import datetime
from pathlib import Path

from tablereduce.config import EngineConfig
from tablereduce.coordinator.engine import AnalyticsEngine
from tablereduce.samples.air_quality import AIR_QUALITY_SCHEMA, AirQualityAnalyzer
from tablereduce.samples.population import POPULATION_SCHEMA, PopulationAnalyzer
from tablereduce.worker.dispatch import get_dispatcher

# Configuration
RESULTS_DIR = Path("benchmark_results")
INPUT_DIR = Path("shared") / "input"
WORKER_COUNTS = [1, 2, 4, 8]
BACKENDS = ["pool", "thread"]


def population_queries(analyzer: PopulationAnalyzer):
    """name -> callable(use_parallel) for the population dataset."""
    return {
        "top_countries": lambda p: analyzer.get_top_countries_by_population(2020, 10, p),
        "global_growth": lambda p: analyzer.calculate_global_population_growth(1960, 2020, p),
        "growth_rates": lambda p: analyzer.calculate_country_growth_rates(1960, 2020, p),
        "world_population": lambda p: analyzer.calculate_total_world_population(2020, p),
        "large_countries": lambda p: analyzer.find_countries_with_population_above(100_000_000, 2020, p),
    }


def air_quality_queries(analyzer: AirQualityAnalyzer, date: str, threshold: int):
    """name -> callable(use_parallel) for the air quality dataset."""
    return {
        "aqi_for_date": lambda p: sorted(r.full_site_id + r.datetime for r in analyzer.get_aqi_data_for_date(date, p)),
        "average_aqi": lambda p: analyzer.get_average_aqi_for_date(date, p),
        "top_readings": lambda p: analyzer.get_top_readings_above(threshold, 10, p),
        "statistics": lambda p: analyzer.get_data_statistics(p),
    }


def build_analyzer(dataset: str, path: str, backend: str, workers: int):
    """Create a fresh analyzer bound to one backend and worker count, loaded from path."""
    config = EngineConfig(workers=workers, backend=backend)
    if dataset == "population":
        analyzer = PopulationAnalyzer(engine=AnalyticsEngine(POPULATION_SCHEMA, config=config))
        analyzer.load_from_csv(path)
    else:
        analyzer = AirQualityAnalyzer(engine=AnalyticsEngine(AIR_QUALITY_SCHEMA, config=config))
        analyzer.load_data(path)
    return analyzer


def time_call(func, use_parallel: bool, repeats: int):
    """Run func repeatedly and return (best_ms, mean_ms, last_result)."""
    timings = []
    result = None
    for _ in range(repeats):
        start = time.perf_counter()
        result = func(use_parallel)
        timings.append((time.perf_counter() - start) * 1000)
    return min(timings), sum(timings) / len(timings), result


def run_benchmarks(dataset: str, path: str, repeats: int, date: str, threshold: int):
    """Run every query for every backend and worker count."""
    results = []
    timestamp = datetime.now().isoformat()
    input_size = get_input_size(path)

    for backend in BACKENDS:
        for workers in WORKER_COUNTS:
            print(f"\n{'='*70}")
            print(f"Dataset: {dataset}  Backend: {backend}  Workers: {workers}")
            print(f"{'='*70}")

            analyzer = build_analyzer(dataset, path, backend, workers)
            if dataset == "population":
                query_set = population_queries(analyzer)
            else:
                query_set = air_quality_queries(analyzer, date, threshold)

            for name, func in query_set.items():
                serial_best, serial_mean, serial_result = time_call(func, False, repeats)
                parallel_best, parallel_mean, parallel_result = time_call(func, True, repeats)
                consistent = serial_result == parallel_result
                speedup = serial_best / parallel_best if parallel_best > 0 else 0.0

                print(f"  {name:<20} serial {serial_best:>9.2f}ms  parallel {parallel_best:>9.2f}ms  "
                      f"speedup {speedup:>5.2f}x  {'✓' if consistent else '✗ MISMATCH'}")

                results.append({
                    "benchmark_name": f"{name}_{backend}_{workers}",
                    "dataset": dataset,
                    "query": name,
                    "backend": backend,
                    "workers": workers,
                    "repeats": repeats,
                    "timestamp": timestamp,
                    "input_path": str(path),
                    "input_size_bytes": input_size,
                    "rows": analyzer.engine.get_table_size(),
                    "serial_best_ms": round(serial_best, 3),
                    "serial_mean_ms": round(serial_mean, 3),
                    "parallel_best_ms": round(parallel_best, 3),
                    "parallel_mean_ms": round(parallel_mean, 3),
                    "speedup": round(speedup, 3),
                    "consistent": consistent,
                })

    return results


def get_input_size(path):
    """Total size in bytes of a file or every file under a directory."""
    if os.path.isfile(path):
        return os.path.getsize(path)
    total = 0
    for dirpath, _dirnames, filenames in os.walk(path):
        total += sum(os.path.getsize(os.path.join(dirpath, f)) for f in filenames)
    return total


def save_results(results, timestamp):
    """Save results to JSON and CSV files."""
    RESULTS_DIR.mkdir(exist_ok=True)

    json_file = RESULTS_DIR / f"benchmark_results_{timestamp}.json"
    with open(json_file, 'w') as f:
        json.dump(results, f, indent=2)
    print(f"\n✓ Results saved to: {json_file}")

    csv_file = RESULTS_DIR / f"benchmark_results_{timestamp}.csv"
    if results:
        fieldnames = list(results[0].keys())
        with open(csv_file, 'w', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(results)
        print(f"✓ Results saved to: {csv_file}")

    return json_file, csv_file


def print_summary(results):
    """Print a summary table of results."""
    print(f"\n{'='*70}")
    print("BENCHMARK SUMMARY")
    print(f"{'='*70}")
    print(f"{'Query':<20} {'Backend':>8} {'Workers':>8} {'Serial':>11} {'Parallel':>11} {'Speedup':>8}")
    print(f"{'-'*70}")

    for r in results:
        print(f"{r['query']:<20} {r['backend']:>8} {r['workers']:>8} "
              f"{r['serial_best_ms']:>9.2f}ms {r['parallel_best_ms']:>9.2f}ms {r['speedup']:>7.2f}x")

    print(f"{'='*70}")
    mismatches = sum(1 for r in results if not r['consistent'])
    print(f"Total: {len(results)} measurements, {mismatches} serial/parallel mismatches")


def main():
    """Main benchmarking workflow."""
    parser = argparse.ArgumentParser(description="Serial vs parallel query benchmark")
    parser.add_argument("dataset", choices=["population", "air-quality"])
    parser.add_argument("path", nargs="?", help="CSV file (population) or directory (air-quality)")
    parser.add_argument("--repeats", type=int, default=3, help="Runs per measurement")
    parser.add_argument("--date", default="2020-08-15", help="Date for air quality queries")
    parser.add_argument("--threshold", type=int, default=100, help="AQI threshold")
    parser.add_argument("--workers", type=int, nargs="+", help="Worker counts to test")
    parser.add_argument("--backends", nargs="+", choices=["pool", "thread"], help="Backends to test")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    global WORKER_COUNTS, BACKENDS
    WORKER_COUNTS = args.workers or WORKER_COUNTS
    BACKENDS = args.backends or BACKENDS
    for backend in BACKENDS:
        get_dispatcher(backend)

    default_path = INPUT_DIR / ("population.csv" if args.dataset == "population" else "air_quality")
    path = args.path or str(default_path)
    if not Path(path).exists():
        print(f"❌ Input not found: {path}")
        print("   Generate one with: python scripts/generate_benchmark_inputs.py")
        return 1

    print("=" * 70)
    print("Chunked Reduction Benchmark Suite")
    print("=" * 70)
    print(f"Input: {path} ({get_input_size(path) / 1024 / 1024:.2f} MB)")
    print(f"Backends: {', '.join(BACKENDS)}  Workers: {WORKER_COUNTS}  Repeats: {args.repeats}")

    results = run_benchmarks(args.dataset, path, max(1, args.repeats), args.date, args.threshold)
    if not results:
        print("\n❌ No results collected")
        return 1

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    json_file, _csv_file = save_results(results, timestamp)
    print_summary(results)

    print(f"\n{'='*70}")
    print("Next steps:")
    print(f"  1. Review results: cat {json_file}")
    print(f"  2. Generate plots: python plot_results.py {json_file}")
    print(f"{'='*70}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
