"""
Unit tests for the benchmark tool
"""

import csv
import json
import os

from localmr import benchmark


class TestBenchmark:
    """Tests for running, saving and plotting benchmarks"""

    def test_run_grid_covers_every_configuration(self, sample_input_file):
        """Test one result row per configuration and run"""
        results = benchmark.run_grid(sample_input_file, [1, 2], [1, 3], runs=2)

        assert len(results) == 8
        assert {r['benchmark_name'] for r in results} == {'m1_r1', 'm1_r3', 'm2_r1', 'm2_r3'}
        assert all(r['success'] for r in results)
        assert all(r['records_emitted'] == 5 for r in results)

    def test_failed_run_is_recorded(self, sample_input_file):
        """Test that a failing configuration is reported, not raised"""
        result = benchmark.run_benchmark(sample_input_file, 2, 0)

        assert result['success'] is False
        assert result['error_message']

    def test_aggregate_runs_skips_failures(self):
        """Test mean/std aggregation over successful runs"""
        rows = [
            {'benchmark_name': 'm1_r1', 'num_map_tasks': 1, 'num_reduce_tasks': 1,
             'input_size_mb': 0.1, 'total_runtime_seconds': t, 'success': ok}
            for t, ok in [(1.0, True), (3.0, True), (99.0, False)]
        ]

        aggregated = benchmark.aggregate_runs(rows)

        assert aggregated['m1_r1']['avg_runtime'] == 2.0
        assert aggregated['m1_r1']['std_runtime'] == 1.0
        assert aggregated['m1_r1']['num_runs'] == 2

    def test_save_results_and_plot(self, sample_input_file, temp_dir):
        """Test JSON, CSV and PNG outputs"""
        results = benchmark.run_grid(sample_input_file, [1, 2], [2])

        json_file, csv_file = benchmark.save_results(results, temp_dir, 'test')
        plot_file = benchmark.plot_map_task_scaling(benchmark.aggregate_runs(results),
                                                    os.path.join(temp_dir, 'plot.png'))

        with open(json_file) as f:
            assert len(json.load(f)) == 2
        with open(csv_file, newline='') as f:
            assert len(list(csv.DictReader(f))) == 2
        assert os.path.getsize(plot_file) > 0

    def test_plot_without_data_returns_none(self, temp_dir):
        """Test that nothing is plotted when every run failed"""
        assert benchmark.plot_map_task_scaling({}, os.path.join(temp_dir, 'plot.png')) is None

    def test_generate_input_replicates_whole_lines(self, sample_input_file, sample_text, temp_dir):
        """Test that a scaled input is whole copies of the source"""
        output = os.path.join(temp_dir, 'scaled.txt')
        source_size = len(sample_text) + 1  # newline appended to the last line

        size = benchmark.generate_input(sample_input_file, output, source_size * 4 + 10)

        assert size == source_size * 4
        with open(output) as f:
            assert f.read().splitlines() == sample_text.split('\n') * 4

    def test_main_writes_results(self, sample_input_file, temp_dir, capsys):
        """Test the command-line entry point"""
        results_dir = os.path.join(temp_dir, 'results')

        status = benchmark.main([sample_input_file, '--mappers', '1,2', '--reducers', '1',
                                 '--results-dir', results_dir])

        assert status == 0
        names = os.listdir(results_dir)
        assert any(n.endswith('.json') for n in names)
        assert any(n.endswith('.csv') for n in names)
        assert any(n.endswith('.png') for n in names)
        assert 'Total: 2 runs, 2 successful' in capsys.readouterr().out
