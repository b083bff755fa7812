#!/usr/bin/env python3
"""
Map Task Executor
Executes map tasks by reading one line-aligned input section
and applying the map function to every line in it
"""

import time
import logging
from typing import List

from localmr.common.errors import InvalidArgumentError, MapReduceIOError
from localmr.worker.function_loader import MapFunction

logger = logging.getLogger(__name__)


def read_section(input_path: str, start_offset: int, end_offset: int, encoding: str = 'utf-8'):
    """
    Yield the lines of [start_offset, end_offset), without trailing newlines

    Every call opens its own handle, so concurrent readers share no file position.
    """
    try:
        with open(input_path, 'rb') as f:
            f.seek(start_offset)
            while f.tell() < end_offset:
                line = f.readline()
                if not line:
                    break
                yield line.decode(encoding, errors='surrogateescape').rstrip('\n')
    except OSError as e:
        raise MapReduceIOError(f"Can't read file {input_path}: {e}") from e


def map_section(input_path: str, start_offset: int, end_offset: int,
                map_func: MapFunction, encoding: str = 'utf-8') -> List[str]:
    """
    Apply map_func to every line of one input section

    Args:
        input_path: Path to input file
        start_offset: Byte offset where this section starts
        end_offset: Byte offset where this section stops
        map_func: Called once per line, returns zero or more records
        encoding: Text encoding of the input file

    Returns:
        Emitted records in input line order

    Raises:
        InvalidArgumentError: If input_path is empty or map_func is unset
        MapReduceIOError: If the file can't be opened or read
    """
    if not input_path or map_func is None:
        raise InvalidArgumentError(f"Invalid argument: input_path={input_path!r}, map_func={map_func!r}")

    records = []
    for line in read_section(input_path, start_offset, end_offset, encoding):
        records.extend(map_func(line))
    return records


class MapExecutor:
    """Executes a single map task"""

    def __init__(self, task_id: int, input_path: str, start_offset: int,
                 end_offset: int, map_func: MapFunction, encoding: str = 'utf-8'):
        """
        Initialize the map executor

        Args:
            task_id: Unique ID for this map task
            input_path: Path to input file
            start_offset: Byte offset where this task should start reading
            end_offset: Byte offset where this task should stop reading
            map_func: The map function to apply to each line
            encoding: Text encoding of the input file
        """
        self.task_id = task_id
        self.input_path = input_path
        self.start_offset = start_offset
        self.end_offset = end_offset
        self.map_func = map_func
        self.encoding = encoding

    def execute(self) -> dict:
        """
        Execute the map task

        Returns:
            Dictionary with 'success', 'records', 'execution_time_ms',
            'error_message' and 'error' fields
        """
        start_time = time.time()

        try:
            logger.info(f"Map task {self.task_id}: Reading bytes [{self.start_offset}, {self.end_offset})")
            records = map_section(self.input_path, self.start_offset, self.end_offset,
                                  self.map_func, self.encoding)

            execution_time = int((time.time() - start_time) * 1000)
            logger.info(f"Map task {self.task_id}: Emitted {len(records)} records in {execution_time}ms")

            return {
                'success': True,
                'records': records,
                'execution_time_ms': execution_time,
                'error_message': '',
                'error': None
            }

        except Exception as e:
            execution_time = int((time.time() - start_time) * 1000)
            logger.error(f"Map task {self.task_id} failed: {e}")
            return {
                'success': False,
                'records': [],
                'execution_time_ms': execution_time,
                'error_message': str(e),
                'error': e
            }
