"""
Performance metrics collection for MapReduce jobs.
"""

import os
import time
import json
from dataclasses import dataclass, asdict
from typing import List

import psutil


@dataclass
class JobMetrics:
    """Metrics for a single MapReduce job execution."""

    input_path: str
    num_map_tasks: int
    num_reduce_tasks: int
    start_time: float
    end_time: float = 0.0
    split_phase_end: float = 0.0
    map_phase_end: float = 0.0
    shuffle_phase_end: float = 0.0
    reduce_phase_end: float = 0.0
    input_size_bytes: int = 0
    records_emitted: int = 0
    distinct_keys: int = 0
    output_size_bytes: int = 0
    peak_rss_bytes: int = 0
    success: bool = False

    @property
    def total_time_seconds(self) -> float:
        """Total job execution time in seconds."""
        return self.end_time - self.start_time

    @property
    def map_phase_time_seconds(self) -> float:
        """Map phase execution time in seconds."""
        return max(0.0, self.map_phase_end - self.split_phase_end)

    @property
    def reduce_phase_time_seconds(self) -> float:
        """Reduce phase execution time in seconds."""
        return max(0.0, self.reduce_phase_end - self.shuffle_phase_end)

    def to_dict(self) -> dict:
        """Convert metrics to dictionary."""
        data = asdict(self)
        data['total_time_seconds'] = self.total_time_seconds
        data['map_phase_time_seconds'] = self.map_phase_time_seconds
        data['reduce_phase_time_seconds'] = self.reduce_phase_time_seconds
        return data

    def save_to_file(self, filepath: str):
        """Save metrics to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


class MetricsCollector:
    """Collects metrics for one MapReduce job as it moves through its phases."""

    def __init__(self, input_path: str, num_map_tasks: int, num_reduce_tasks: int):
        self.process = psutil.Process()
        self.metrics = JobMetrics(
            input_path=input_path,
            num_map_tasks=num_map_tasks,
            num_reduce_tasks=num_reduce_tasks,
            start_time=time.time()
        )

    def _sample_memory(self):
        rss = self.process.memory_info().rss
        self.metrics.peak_rss_bytes = max(self.metrics.peak_rss_bytes, rss)

    def end_split_phase(self, input_size: int):
        """Mark the end of input splitting."""
        self.metrics.split_phase_end = time.time()
        self.metrics.input_size_bytes = input_size

    def end_map_phase(self, records_emitted: int):
        """Mark the end of the map phase."""
        self.metrics.map_phase_end = time.time()
        self.metrics.records_emitted = records_emitted
        self._sample_memory()

    def end_shuffle_phase(self, distinct_keys: int):
        """Mark the end of the shuffle phase."""
        self.metrics.shuffle_phase_end = time.time()
        self.metrics.distinct_keys = distinct_keys
        self._sample_memory()

    def end_job(self, output_files: List[str], success: bool):
        """Mark job completion and calculate output size."""
        now = time.time()
        if success:
            self.metrics.reduce_phase_end = now
        self.metrics.end_time = now
        self.metrics.success = success
        self.metrics.output_size_bytes = sum(
            os.path.getsize(f) for f in output_files if os.path.exists(f))
        self._sample_memory()

    def get_metrics(self) -> JobMetrics:
        return self.metrics
