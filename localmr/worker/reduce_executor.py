#!/usr/bin/env python3
"""
Reduce Task Executor
Executes reduce tasks by applying the reduce function to one shuffled
bucket and writing the result to that reducer's output file
"""

import os
import time
import logging
from typing import List

from localmr.common.errors import InvalidArgumentError, MapReduceIOError
from localmr.worker.function_loader import ReduceFunction

logger = logging.getLogger(__name__)


def write_output(output_file: str, lines, encoding: str = 'utf-8') -> int:
    """
    Write one line per item, overwriting any existing file

    A file left half-written by a failure is removed before the error propagates.

    Returns:
        Number of lines written
    """
    count = 0
    opened = False
    try:
        # surrogateescape writes back input bytes that were not valid text
        with open(output_file, 'w', encoding=encoding, errors='surrogateescape') as f:
            opened = True
            for line in lines:
                f.write(f"{line}\n")
                count += 1
    except BaseException as e:
        if opened and os.path.exists(output_file):
            os.remove(output_file)
        if isinstance(e, OSError):
            raise MapReduceIOError(f"Can't write file {output_file}: {e}") from e
        raise
    return count


def reduce_bucket(bucket: List[str], reduce_func: ReduceFunction, output_file: str,
                  encoding: str = 'utf-8') -> int:
    """
    Reduce one bucket and persist the result

    Args:
        bucket: Records assigned to this reducer by the shuffle
        reduce_func: Called once with the whole bucket, returns output lines
        output_file: Path of this reducer's output file
        encoding: Text encoding of the output file

    Returns:
        Number of lines written

    Raises:
        InvalidArgumentError: If the bucket is empty, reduce_func is unset
            or output_file is empty
        MapReduceIOError: If the output file can't be written
    """
    if not bucket or reduce_func is None or not output_file:
        raise InvalidArgumentError(
            f"Invalid argument: {len(bucket or [])} records, reduce_func={reduce_func!r}, "
            f"output_file={output_file!r}")

    # Reduce before opening the file so a failing reduce_func leaves nothing behind
    reduced = list(reduce_func(bucket))
    return write_output(output_file, reduced, encoding)


class ReduceExecutor:
    """Executes a single reduce task"""

    def __init__(self, task_id: int, bucket: List[str], reduce_func: ReduceFunction,
                 output_file: str, encoding: str = 'utf-8'):
        """
        Initialize the reduce executor

        Args:
            task_id: Unique ID for this reduce task
            bucket: Records this reduce task is responsible for
            reduce_func: The reduce function to apply to the bucket
            output_file: Path where the final output should be written
            encoding: Text encoding of the output file
        """
        self.task_id = task_id
        self.bucket = bucket
        self.reduce_func = reduce_func
        self.output_file = output_file
        self.encoding = encoding

    def execute(self) -> dict:
        """
        Execute the reduce task

        Returns:
            Dictionary with 'success', 'lines_written', 'execution_time_ms',
            'error_message' and 'error' fields
        """
        start_time = time.time()

        try:
            logger.info(f"Reduce task {self.task_id}: Reducing {len(self.bucket)} records")
            lines_written = reduce_bucket(self.bucket, self.reduce_func, self.output_file, self.encoding)

            execution_time = int((time.time() - start_time) * 1000)
            logger.info(f"Reduce task {self.task_id}: Wrote {lines_written} lines to "
                        f"{self.output_file} in {execution_time}ms")

            return {
                'success': True,
                'lines_written': lines_written,
                'execution_time_ms': execution_time,
                'error_message': '',
                'error': None
            }

        except Exception as e:
            execution_time = int((time.time() - start_time) * 1000)
            logger.error(f"Reduce task {self.task_id} failed: {e}")
            return {
                'success': False,
                'lines_written': 0,
                'execution_time_ms': execution_time,
                'error_message': str(e),
                'error': e
            }
