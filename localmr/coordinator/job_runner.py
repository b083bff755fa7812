"""
JobRunner, drives one MapReduce job through split, map, shuffle and reduce.
"""

import os
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List

from localmr.common.config import RunConfig
from localmr.common.errors import TaskFailedError
from localmr.coordinator.job_manager import JobManager, JobStatus, TaskStatus
from localmr.coordinator.metrics import JobMetrics, MetricsCollector
from localmr.coordinator.shuffler import shuffle, identity_key
from localmr.worker.function_loader import MapFunction, ReduceFunction
from localmr.worker.map_executor import MapExecutor
from localmr.worker.reduce_executor import ReduceExecutor, write_output

logger = logging.getLogger(__name__)


class JobRunner:
    def __init__(self, config: RunConfig, map_fn: MapFunction, reduce_fn: ReduceFunction,
                 key_fn=None):
        """Initialize the runner for one job; nothing runs until run() is called."""
        self.config = config
        self.map_fn = map_fn
        self.reduce_fn = reduce_fn
        self.key_fn = key_fn
        self.manager = JobManager(config.input_path, config.num_mappers, config.num_reducers)
        self.collector = MetricsCollector(config.input_path, config.num_mappers, config.num_reducers)

    def _pool_size(self, num_tasks: int) -> int:
        """One worker per task, capped by max_workers when configured."""
        size = max(num_tasks, 1)
        if self.config.max_workers is not None:
            size = min(size, self.config.max_workers)
        return size

    def get_job_status(self) -> dict:
        return self.manager.get_job_status()

    def run(self) -> JobMetrics:
        """
        Run the whole pipeline.

        Returns:
            Metrics for the completed job

        Raises:
            MapReduceError: The first error from whichever stage failed. The
                job is left in the FAILED state.
        """
        success = False
        try:
            self._split()
            map_outputs = self._map_phase()
            buckets = self._shuffle_phase(map_outputs)
            self._reduce_phase(buckets)
            self.manager.transition(JobStatus.COMPLETED)
            success = True
        except Exception as e:
            logger.error(f"Job failed: {e}")
            self.manager.fail(e)
            raise
        finally:
            output_files = [t.output_file for t in self.manager.job.reduce_tasks]
            self.collector.end_job(output_files, success)
            if self.config.metrics_file:
                self._save_metrics()

        return self.collector.get_metrics()

    def _save_metrics(self):
        """Write the metrics file; a failed write never replaces the job's own outcome."""
        try:
            self.collector.get_metrics().save_to_file(self.config.metrics_file)
        except OSError as e:
            logger.warning(f"Can't write metrics file {self.config.metrics_file}: {e}")

    def _split(self):
        self.manager.transition(JobStatus.SPLITTING)
        map_tasks = self.manager.generate_map_tasks()
        self.collector.end_split_phase(map_tasks[-1].end_offset)
        logger.info(f"Created {len(map_tasks)} map tasks for {self.config.input_path}")

    def _map_phase(self) -> List[List[str]]:
        """Run every map task in parallel and wait for all of them."""
        self.manager.transition(JobStatus.MAP_PHASE)
        map_tasks = self.manager.job.map_tasks

        executors = [
            MapExecutor(
                task_id=task.task_id,
                input_path=task.input_path,
                start_offset=task.start_offset,
                end_offset=task.end_offset,
                map_func=self.map_fn,
                encoding=self.config.encoding
            )
            for task in map_tasks
        ]
        for task in map_tasks:
            self.manager.mark_task(task, TaskStatus.RUNNING)

        # Leaving the with-block joins every worker
        with ThreadPoolExecutor(max_workers=self._pool_size(len(executors)),
                                thread_name_prefix='map') as pool:
            results = list(pool.map(lambda executor: executor.execute(), executors))

        for task, result in zip(map_tasks, results):
            task.execution_time_ms = result['execution_time_ms']
            if result['success']:
                task.records = result['records']
                self.manager.mark_task(task, TaskStatus.COMPLETED)
            else:
                self.manager.mark_task(task, TaskStatus.FAILED, result['error_message'])

        self._raise_first_failure('Map', map_tasks, results)

        outputs = [task.records for task in map_tasks]
        self.collector.end_map_phase(sum(len(records) for records in outputs))
        return outputs

    def _shuffle_phase(self, map_outputs: List[List[str]]) -> List[List[str]]:
        self.manager.transition(JobStatus.SHUFFLE_PHASE)
        buckets = shuffle(map_outputs, self.config.num_reducers, self.key_fn)

        # A key never spans two buckets, so per-bucket counts add up
        key_fn = self.key_fn or identity_key
        distinct_keys = sum(len(set(map(key_fn, bucket))) for bucket in buckets)
        self.collector.end_shuffle_phase(distinct_keys)
        return buckets

    def _reduce_phase(self, buckets: List[List[str]]):
        """Run one reduce task per non-empty bucket in parallel and wait for all of them."""
        self.manager.transition(JobStatus.REDUCE_PHASE)
        os.makedirs(self.config.output_dir, exist_ok=True)
        output_files = [self.config.output_file(i) for i in range(len(buckets))]
        reduce_tasks = self.manager.generate_reduce_tasks(buckets, output_files)

        # Empty buckets still get an (empty) output file
        pending = []
        for task in reduce_tasks:
            if task.bucket:
                pending.append(task)
            else:
                write_output(task.output_file, [], self.config.encoding)
                self.manager.mark_task(task, TaskStatus.COMPLETED)

        executors = [
            ReduceExecutor(
                task_id=task.task_id,
                bucket=task.bucket,
                reduce_func=self.reduce_fn,
                output_file=task.output_file,
                encoding=self.config.encoding
            )
            for task in pending
        ]
        for task in pending:
            self.manager.mark_task(task, TaskStatus.RUNNING)

        with ThreadPoolExecutor(max_workers=self._pool_size(len(executors)),
                                thread_name_prefix='reduce') as pool:
            results = list(pool.map(lambda executor: executor.execute(), executors))

        for task, result in zip(pending, results):
            task.execution_time_ms = result['execution_time_ms']
            if result['success']:
                task.lines_written = result['lines_written']
                self.manager.mark_task(task, TaskStatus.COMPLETED)
            else:
                self.manager.mark_task(task, TaskStatus.FAILED, result['error_message'])

        self._raise_first_failure('Reduce', pending, results)

    @staticmethod
    def _raise_first_failure(task_type: str, tasks, results):
        """Raise the first task error in task order, after every task has finished."""
        failures = [(task, result) for task, result in zip(tasks, results) if not result['success']]
        if not failures:
            return
        if len(failures) > 1:
            logger.error(f"{len(failures)} {task_type.lower()} tasks failed")

        task, result = failures[0]
        raise TaskFailedError(task_type, task.task_id, result['error']) from result['error']


def run_job(config: RunConfig, map_fn: MapFunction, reduce_fn: ReduceFunction,
            key_fn=None) -> JobMetrics:
    """Convenience wrapper: build a JobRunner and run it."""
    return JobRunner(config, map_fn, reduce_fn, key_fn).run()
