#!/usr/bin/env python3
"""
Generate plots from benchmark results.
"""

import json
import sys
from collections import defaultdict
from pathlib import Path

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
import numpy as np

# Configuration
PLOTS_DIR = Path("benchmark_results/plots")


def load_results(json_file):
    """Load benchmark results from JSON file."""
    with open(json_file, 'r') as f:
        return json.load(f)


def aggregate_runs(results):
    """
    Aggregate repeated measurements of the same (query, backend, workers).
    Returns dict: (query, backend, workers) -> {avg_serial, avg_parallel, ...}
    """
    grouped = defaultdict(list)
    for r in results:
        grouped[(r['query'], r['backend'], r['workers'])].append(r)

    aggregated = {}
    for key, runs in grouped.items():
        serial = [r['serial_best_ms'] for r in runs]
        parallel = [r['parallel_best_ms'] for r in runs]
        speedups = [r['speedup'] for r in runs]

        aggregated[key] = {
            'query': key[0],
            'backend': key[1],
            'workers': key[2],
            'rows': runs[0]['rows'],
            'avg_serial_ms': float(np.mean(serial)),
            'avg_parallel_ms': float(np.mean(parallel)),
            'std_parallel_ms': float(np.std(parallel)),
            'avg_speedup': float(np.mean(speedups)),
            'consistent': all(r['consistent'] for r in runs),
            'num_runs': len(runs),
        }

    return aggregated


def plot_speedup(aggregated, backend, output_file):
    """Plot speedup vs worker count per query, against ideal linear speedup."""
    by_query = defaultdict(list)
    for v in aggregated.values():
        if v['backend'] == backend:
            by_query[v['query']].append((v['workers'], v['avg_speedup']))

    if not by_query:
        print(f"⚠️  No data for backend '{backend}'")
        return

    plt.figure(figsize=(10, 6))
    all_workers = set()
    for query, points in sorted(by_query.items()):
        points.sort()
        workers, speedups = zip(*points)
        all_workers.update(workers)
        plt.plot(workers, speedups, marker='o', linewidth=2, markersize=7, label=query)

    ticks = sorted(all_workers)
    plt.plot(ticks, ticks, linestyle='--', linewidth=2, color='gray', alpha=0.7,
             label='Ideal (Linear) Speedup')
    plt.xlabel('Number of Workers', fontsize=12)
    plt.ylabel('Speedup over Serial', fontsize=12)
    plt.title(f'Query Speedup vs Workers ({backend} backend)', fontsize=14, fontweight='bold')
    plt.xticks(ticks)
    plt.legend(fontsize=10)
    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig(output_file, dpi=300, bbox_inches='tight')
    print(f"✓ Saved: {output_file}")
    plt.close()


def plot_backend_comparison(aggregated, output_file):
    """Grouped bars of parallel runtime per query for each backend at the highest worker count."""
    if not aggregated:
        print("⚠️  No data to compare")
        return

    max_workers = max(v['workers'] for v in aggregated.values())
    rows = [v for v in aggregated.values() if v['workers'] == max_workers]
    queries = sorted({v['query'] for v in rows})
    backends = sorted({v['backend'] for v in rows})

    x = np.arange(len(queries))
    width = 0.8 / (len(backends) + 1)

    plt.figure(figsize=(12, 6))
    serial = [np.mean([v['avg_serial_ms'] for v in rows if v['query'] == q]) for q in queries]
    plt.bar(x - 0.4 + width / 2, serial, width, label='serial', color='#FF6B6B')
    for i, backend in enumerate(backends, start=1):
        runtimes = []
        errors = []
        for q in queries:
            match = [v for v in rows if v['query'] == q and v['backend'] == backend]
            runtimes.append(match[0]['avg_parallel_ms'] if match else 0)
            errors.append(match[0]['std_parallel_ms'] if match else 0)
        plt.bar(x - 0.4 + width / 2 + i * width, runtimes, width, yerr=errors, capsize=3, label=backend)

    plt.xticks(x, queries, rotation=20)
    plt.ylabel('Runtime (ms)', fontsize=12)
    plt.title(f'Runtime per Query ({max_workers} workers)', fontsize=14, fontweight='bold')
    plt.legend()
    plt.grid(axis='y', alpha=0.3)
    plt.tight_layout()
    plt.savefig(output_file, dpi=300, bbox_inches='tight')
    print(f"✓ Saved: {output_file}")
    plt.close()


def plot_speedup_heatmap(aggregated, backend, output_file):
    """Heatmap of speedup for each (query, workers) combination."""
    data = [(v['query'], v['workers'], v['avg_speedup'])
            for v in aggregated.values() if v['backend'] == backend]

    if not data:
        print(f"⚠️  No heatmap data for backend '{backend}'")
        return

    queries = sorted(set(d[0] for d in data))
    workers = sorted(set(d[1] for d in data))

    matrix = np.zeros((len(queries), len(workers)))
    for q, w, speedup in data:
        matrix[queries.index(q), workers.index(w)] = speedup

    plt.figure(figsize=(10, 8))
    im = plt.imshow(matrix, cmap='YlGn', aspect='auto')

    plt.xticks(range(len(workers)), workers)
    plt.yticks(range(len(queries)), queries)
    plt.xlabel('Number of Workers', fontsize=12)
    plt.ylabel('Query', fontsize=12)
    plt.title(f'Speedup Heatmap ({backend} backend)', fontsize=14, fontweight='bold')

    cbar = plt.colorbar(im)
    cbar.set_label('Speedup', fontsize=11)

    for i in range(len(queries)):
        for j in range(len(workers)):
            if matrix[i, j] > 0:
                plt.text(j, i, f'{matrix[i, j]:.2f}', ha="center", va="center", color="black", fontsize=10)

    plt.tight_layout()
    plt.savefig(output_file, dpi=300, bbox_inches='tight')
    print(f"✓ Saved: {output_file}")
    plt.close()


def generate_summary_table(aggregated, output_file):
    """Generate a markdown table summarizing all results."""
    lines = [
        "# Benchmark Results Summary\n",
        "| Query | Backend | Workers | Rows | Serial (ms) | Parallel (ms) | Std Dev | Speedup | Consistent |",
        "|-------|---------|---------|------|-------------|---------------|---------|---------|------------|"
    ]

    for key in sorted(aggregated):
        v = aggregated[key]
        lines.append(
            f"| {v['query']:<20} | {v['backend']:<7} | {v['workers']:>7} | {v['rows']:>8} | "
            f"{v['avg_serial_ms']:>11.2f} | {v['avg_parallel_ms']:>13.2f} | {v['std_parallel_ms']:>7.3f} | "
            f"{v['avg_speedup']:>7.2f} | {'yes' if v['consistent'] else 'NO':>10} |"
        )

    with open(output_file, 'w') as f:
        f.write('\n'.join(lines))

    print(f"✓ Saved: {output_file}")


def main():
    """Generate all plots from benchmark results."""
    if len(sys.argv) < 2:
        print("Usage: python plot_results.py <results.json>")
        print("\nExample:")
        print("  python plot_results.py benchmark_results/benchmark_results_20250113_120000.json")
        sys.exit(1)

    json_file = sys.argv[1]

    if not Path(json_file).exists():
        print(f"❌ File not found: {json_file}")
        sys.exit(1)

    print(f"Loading results from: {json_file}")
    results = load_results(json_file)
    print(f"✓ Loaded {len(results)} benchmark results")

    aggregated = aggregate_runs(results)
    print(f"✓ Aggregated into {len(aggregated)} unique measurements")

    PLOTS_DIR.mkdir(parents=True, exist_ok=True)

    print("\nGenerating plots...")
    backends = sorted({v['backend'] for v in aggregated.values()})
    for i, backend in enumerate(backends, start=1):
        plot_speedup(aggregated, backend, PLOTS_DIR / f"{i}_speedup_{backend}.png")
        plot_speedup_heatmap(aggregated, backend, PLOTS_DIR / f"{i}_heatmap_{backend}.png")
    plot_backend_comparison(aggregated, PLOTS_DIR / "backend_comparison.png")

    generate_summary_table(aggregated, PLOTS_DIR / "results_table.md")

    print(f"\n{'='*70}")
    print(f"All plots saved to: {PLOTS_DIR}/")
    print(f"{'='*70}")


if __name__ == "__main__":
    main()
