#!/usr/bin/env python3
"""
Benchmarking tool for the MapReduce engine.
Runs the pipeline over a grid of mapper/reducer counts, saves the
results as JSON and CSV, and plots runtime against parallelism.
"""

import argparse
import csv
import json
import logging
import os
import sys
import tempfile
from collections import defaultdict
from datetime import datetime
from pathlib import Path

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
import numpy as np

from localmr.common.config import RunConfig
from localmr.common.errors import MapReduceError
from localmr.coordinator.job_runner import JobRunner
from localmr.worker.function_loader import FunctionLoader

logger = logging.getLogger(__name__)

RESULTS_DIR = Path("benchmark_results")


def generate_input(source_path, output_path, target_size):
    """
    Write a copy of source_path replicated until it reaches target_size bytes.

    Only whole copies are written, so every line stays intact; the result is
    at least one copy and may fall short of target_size by less than one copy.

    Returns:
        Size of the generated file in bytes
    """
    source_content = Path(source_path).read_bytes()
    if not source_content:
        raise ValueError(f"Source file is empty: {source_path}")
    if not source_content.endswith(b'\n'):
        source_content += b'\n'

    replications = max(1, int(target_size // len(source_content)))
    with open(output_path, 'wb') as f:
        for _ in range(replications):
            f.write(source_content)

    return os.path.getsize(output_path)


def run_benchmark(input_path, num_mappers, num_reducers, job_file=None, run_number=1):
    """
    Run one job configuration and return its result row.

    Output files go to a scratch directory that is removed afterwards.
    """
    loader = FunctionLoader(job_file)
    with tempfile.TemporaryDirectory(prefix='localmr-bench-') as output_dir:
        config = RunConfig(
            input_path=input_path,
            num_mappers=num_mappers,
            num_reducers=num_reducers,
            output_dir=output_dir,
            job_file=job_file
        )
        runner = JobRunner(config, loader.get_map_function(), loader.get_reduce_function(),
                           loader.get_key_function())
        error_message = ''
        try:
            runner.run()
        except MapReduceError as e:
            error_message = str(e)
            logger.warning(f"Benchmark m={num_mappers} r={num_reducers} failed: {e}")
        metrics = runner.collector.get_metrics()

    return {
        'benchmark_name': f"m{num_mappers}_r{num_reducers}",
        'run_number': run_number,
        'num_map_tasks': num_mappers,
        'num_reduce_tasks': num_reducers,
        'input_size_mb': metrics.input_size_bytes / 1024 / 1024,
        'total_runtime_seconds': metrics.total_time_seconds,
        'map_phase_seconds': metrics.map_phase_time_seconds,
        'reduce_phase_seconds': metrics.reduce_phase_time_seconds,
        'records_emitted': metrics.records_emitted,
        'peak_rss_mb': metrics.peak_rss_bytes / 1024 / 1024,
        'success': metrics.success,
        'error_message': error_message
    }


def run_grid(input_path, mapper_counts, reducer_counts, runs=1, job_file=None):
    """Run every (mappers, reducers) combination `runs` times."""
    results = []
    for num_mappers in mapper_counts:
        for num_reducers in reducer_counts:
            for run_number in range(1, runs + 1):
                results.append(run_benchmark(input_path, num_mappers, num_reducers,
                                             job_file, run_number))
    return results


def aggregate_runs(results):
    """
    Aggregate multiple runs of the same configuration.
    Returns dict: benchmark_name -> {avg_runtime, std_runtime, config, ...}
    """
    by_benchmark = defaultdict(list)

    for r in results:
        if r['success']:  # Only include successful runs
            by_benchmark[r['benchmark_name']].append(r)

    aggregated = {}
    for name, runs in by_benchmark.items():
        runtimes = [r['total_runtime_seconds'] for r in runs]
        first = runs[0]

        aggregated[name] = {
            'benchmark_name': name,
            'num_map_tasks': first['num_map_tasks'],
            'num_reduce_tasks': first['num_reduce_tasks'],
            'input_size_mb': first['input_size_mb'],
            'avg_runtime': float(np.mean(runtimes)),
            'std_runtime': float(np.std(runtimes)),
            'min_runtime': float(np.min(runtimes)),
            'max_runtime': float(np.max(runtimes)),
            'num_runs': len(runs)
        }

    return aggregated


def save_results(results, results_dir, timestamp):
    """Write raw results as JSON and CSV; returns both paths."""
    results_dir = Path(results_dir)
    results_dir.mkdir(parents=True, exist_ok=True)

    json_file = results_dir / f"benchmark_results_{timestamp}.json"
    with open(json_file, 'w') as f:
        json.dump(results, f, indent=2)

    csv_file = results_dir / f"benchmark_results_{timestamp}.csv"
    if results:
        fieldnames = list(results[0].keys())
        with open(csv_file, 'w', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(results)

    return json_file, csv_file


def plot_map_task_scaling(aggregated, output_file):
    """Plot runtime vs number of map tasks, one line per reducer count."""
    by_reducers = defaultdict(list)
    for v in aggregated.values():
        by_reducers[v['num_reduce_tasks']].append(
            (v['num_map_tasks'], v['avg_runtime'], v['std_runtime']))

    if not by_reducers:
        logger.warning("No successful runs to plot")
        return None

    plt.figure(figsize=(10, 6))
    for num_reducers, data in sorted(by_reducers.items()):
        data.sort()
        map_tasks, runtimes, stds = zip(*data)
        plt.errorbar(map_tasks, runtimes, yerr=stds, marker='o', capsize=5,
                     linewidth=2, markersize=8, label=f"{num_reducers} reducers")
    plt.xlabel('Number of Map Tasks', fontsize=12)
    plt.ylabel('Runtime (seconds)', fontsize=12)
    plt.title('MapReduce Performance: Map Task Parallelism', fontsize=14, fontweight='bold')
    plt.legend()
    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig(output_file, dpi=150, bbox_inches='tight')
    plt.close()
    return output_file


def print_summary(results):
    print(f"{'Benchmark':<15} {'Maps':>5} {'Reduces':>7} {'Runtime':>10} {'Status':>8}")
    print('-' * 50)
    for r in results:
        print(f"{r['benchmark_name']:<15} {r['num_map_tasks']:>5} "
              f"{r['num_reduce_tasks']:>7} {r['total_runtime_seconds']:>9.3f}s "
              f"{'ok' if r['success'] else 'FAILED':>8}")

    successful = sum(1 for r in results if r['success'])
    print(f"Total: {len(results)} runs, {successful} successful, {len(results) - successful} failed")


def _counts(value):
    return [int(v) for v in value.split(',') if v.strip()]


def main(argv=None):
    parser = argparse.ArgumentParser(prog='localmr-benchmark',
                                     description='Benchmark the MapReduce engine on one input file')
    parser.add_argument('input_path', help='Input text file')
    parser.add_argument('--mappers', type=_counts, default=[1, 2, 4, 8],
                        help='Comma-separated mapper counts (default: 1,2,4,8)')
    parser.add_argument('--reducers', type=_counts, default=[2],
                        help='Comma-separated reducer counts (default: 2)')
    parser.add_argument('--runs', type=int, default=1, help='Runs per configuration')
    parser.add_argument('--job-file', help='Python file defining map_function and reduce_function')
    parser.add_argument('--results-dir', default=str(RESULTS_DIR), help='Where to write results and plots')
    parser.add_argument('--target-mb', type=float,
                        help='Benchmark a copy of the input replicated to roughly this size')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if not os.path.exists(args.input_path):
        print(f"Error: Input file {args.input_path} not found", file=sys.stderr)
        return 1

    input_path = args.input_path
    if args.target_mb:
        Path(args.results_dir).mkdir(parents=True, exist_ok=True)
        input_path = str(Path(args.results_dir) / f"input_{args.target_mb:g}mb.txt")
        generate_input(args.input_path, input_path, int(args.target_mb * 1024 * 1024))

    results = run_grid(input_path, args.mappers, args.reducers, args.runs, args.job_file)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    json_file, csv_file = save_results(results, args.results_dir, timestamp)
    plot_file = plot_map_task_scaling(aggregate_runs(results),
                                      Path(args.results_dir) / f"map_scaling_{timestamp}.png")

    print_summary(results)
    print(f"Results saved to: {json_file}, {csv_file}")
    if plot_file:
        print(f"Plot saved to: {plot_file}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
