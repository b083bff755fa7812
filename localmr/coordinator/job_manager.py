#!/usr/bin/env python3
"""
Job Manager for the MapReduce coordinator
Handles job state, input splitting into map tasks, and progress tracking
"""

import os
import logging
import threading
from enum import Enum
from dataclasses import dataclass, field
from typing import List, Dict

from localmr.common.errors import InvalidArgumentError, MapReduceIOError, EmptyInputError

logger = logging.getLogger(__name__)


class JobStatus(Enum):
    """Status of a MapReduce job"""
    PENDING = "pending"
    SPLITTING = "splitting"
    MAP_PHASE = "map_phase"
    SHUFFLE_PHASE = "shuffle_phase"
    REDUCE_PHASE = "reduce_phase"
    COMPLETED = "completed"
    FAILED = "failed"


class TaskStatus(Enum):
    """Status of individual map or reduce tasks"""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


# Allowed job transitions; FAILED is reachable from every non-terminal state
_TRANSITIONS = {
    JobStatus.PENDING: {JobStatus.SPLITTING},
    JobStatus.SPLITTING: {JobStatus.MAP_PHASE},
    JobStatus.MAP_PHASE: {JobStatus.SHUFFLE_PHASE},
    JobStatus.SHUFFLE_PHASE: {JobStatus.REDUCE_PHASE},
    JobStatus.REDUCE_PHASE: {JobStatus.COMPLETED},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
}


@dataclass
class MapTask:
    """A single map task over the byte range [start_offset, end_offset)"""
    task_id: int
    input_path: str
    start_offset: int
    end_offset: int
    status: TaskStatus = TaskStatus.PENDING
    records: List[str] = field(default_factory=list)
    error_message: str = ''
    execution_time_ms: int = 0


@dataclass
class ReduceTask:
    """A single reduce task over one shuffled bucket"""
    task_id: int
    output_file: str
    bucket: List[str] = field(default_factory=list)
    status: TaskStatus = TaskStatus.PENDING
    lines_written: int = 0
    error_message: str = ''
    execution_time_ms: int = 0


@dataclass
class Job:
    """Represents a complete MapReduce job"""
    input_path: str
    num_map_tasks: int
    num_reduce_tasks: int
    status: JobStatus = JobStatus.PENDING
    map_tasks: List[MapTask] = field(default_factory=list)
    reduce_tasks: List[ReduceTask] = field(default_factory=list)
    error_message: str = ''


def split_input(input_path: str, num_sections: int) -> List[int]:
    """
    Split the input file into line-aligned sections

    Args:
        input_path: Path to input file
        num_sections: Number of sections to produce

    Returns:
        num_sections + 1 byte offsets; section i is [offsets[i], offsets[i + 1])

    Raises:
        InvalidArgumentError: If the path is empty or num_sections <= 0
        MapReduceIOError: If the file can't be opened or read
        EmptyInputError: If the file has zero length
    """
    if not input_path or not isinstance(num_sections, int) or num_sections <= 0:
        raise InvalidArgumentError(
            f"Invalid argument: input_path={input_path!r}, num_sections={num_sections!r}")

    try:
        with open(input_path, 'rb') as f:
            file_size = f.seek(0, os.SEEK_END)
            if file_size <= 0:
                raise EmptyInputError(f"File is empty: {input_path}")

            # The last section absorbs the remainder
            section_size = file_size // num_sections
            offsets = [0]
            for i in range(1, num_sections):
                f.seek(section_size * i)
                # Advance to the end of the current line
                f.readline()
                offsets.append(f.tell())
            offsets.append(file_size)
    except OSError as e:
        raise MapReduceIOError(f"Can't read file {input_path}: {e}") from e

    logger.debug(f"Split {input_path} ({file_size} bytes) into {num_sections} sections: {offsets}")
    return offsets


class JobManager:
    """Manages the lifecycle of one MapReduce job"""

    def __init__(self, input_path: str, num_map_tasks: int, num_reduce_tasks: int):
        self.job = Job(
            input_path=input_path,
            num_map_tasks=num_map_tasks,
            num_reduce_tasks=num_reduce_tasks,
        )
        self.lock = threading.Lock()

    def transition(self, status: JobStatus):
        """Move the job to `status`, rejecting out-of-order transitions"""
        with self.lock:
            current = self.job.status
            if status is not JobStatus.FAILED and status not in _TRANSITIONS[current]:
                raise RuntimeError(f"Illegal job transition {current.value} -> {status.value}")
            if status is JobStatus.FAILED and current in (JobStatus.COMPLETED, JobStatus.FAILED):
                raise RuntimeError(f"Illegal job transition {current.value} -> {status.value}")
            logger.info(f"Job {current.value} -> {status.value}")
            self.job.status = status

    def fail(self, error: BaseException):
        """Mark the job as failed with the error that stopped it"""
        with self.lock:
            self.job.error_message = str(error)
        self.transition(JobStatus.FAILED)

    def generate_map_tasks(self) -> List[MapTask]:
        """Split the input file into M line-aligned map tasks"""
        job = self.job
        offsets = split_input(job.input_path, job.num_map_tasks)

        map_tasks = [
            MapTask(
                task_id=i,
                input_path=job.input_path,
                start_offset=offsets[i],
                end_offset=offsets[i + 1]
            )
            for i in range(job.num_map_tasks)
        ]

        job.map_tasks = map_tasks
        return map_tasks

    def generate_reduce_tasks(self, buckets: List[List[str]], output_files: List[str]) -> List[ReduceTask]:
        """Create one reduce task per shuffled bucket"""
        reduce_tasks = [
            ReduceTask(task_id=i, output_file=output_file, bucket=bucket)
            for i, (bucket, output_file) in enumerate(zip(buckets, output_files))
        ]

        self.job.reduce_tasks = reduce_tasks
        return reduce_tasks

    def mark_task(self, task, status: TaskStatus, error_message: str = ''):
        """Update the status of a map or reduce task"""
        with self.lock:
            task.status = status
            if error_message:
                task.error_message = error_message

    def get_job_status(self) -> Dict:
        """Get current job status with progress"""
        with self.lock:
            job = self.job
            map_completed = sum(1 for t in job.map_tasks if t.status == TaskStatus.COMPLETED)
            reduce_completed = sum(1 for t in job.reduce_tasks if t.status == TaskStatus.COMPLETED)
            total_tasks = job.num_map_tasks + job.num_reduce_tasks

            progress = int((map_completed + reduce_completed) / total_tasks * 100) if total_tasks > 0 else 0

            return {
                'status': job.status.value,
                'progress': progress,
                'map_completed': map_completed,
                'map_total': len(job.map_tasks),
                'reduce_completed': reduce_completed,
                'reduce_total': len(job.reduce_tasks),
                'error_message': job.error_message
            }

