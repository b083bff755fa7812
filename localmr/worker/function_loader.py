#!/usr/bin/env python3
"""
Dynamic Function Loader for MapReduce user functions
Loads a user-provided Python module containing map, reduce, and key functions
"""

import importlib.util
import logging
import os
from typing import Callable, Iterable, List, Optional

from localmr.common.errors import InvalidArgumentError, MapReduceIOError

logger = logging.getLogger(__name__)

MapFunction = Callable[[str], Iterable[str]]
ReduceFunction = Callable[[List[str]], Iterable[str]]


def identity_map(line: str) -> List[str]:
    """Emit the line itself"""
    return [line]


def identity_reduce(records: List[str]) -> List[str]:
    """Return the bucket unchanged"""
    return list(records)


class FunctionLoader:
    """Dynamically loads user-provided map/reduce functions from Python files"""

    def __init__(self, job_file: Optional[str] = None):
        """
        Initialize the function loader

        Args:
            job_file: Path to user's Python file containing map/reduce functions.
                When None, the identity functions are used.
        """
        self.job_file = job_file
        self.module = None

    def load_module(self):
        """
        Dynamically load user-provided module

        Returns:
            The loaded module object

        Raises:
            MapReduceIOError: If the job file doesn't exist
        """
        if not os.path.exists(self.job_file):
            raise MapReduceIOError(f"Job file not found: {self.job_file}")

        spec = importlib.util.spec_from_file_location("user_mapreduce", self.job_file)
        if spec is None or spec.loader is None:
            raise InvalidArgumentError(f"Failed to load job file: {self.job_file}")
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        self.module = module
        logger.info(f"Loaded job functions from {self.job_file}")
        return module

    def _get(self, name: str):
        if not self.module:
            self.load_module()

        func = getattr(self.module, name, None)
        if not callable(func):
            raise InvalidArgumentError(f"Job file must define '{name}'")
        return func

    def get_map_function(self) -> MapFunction:
        """The module's map_function, or identity_map without a job file"""
        if self.job_file is None:
            return identity_map
        return self._get('map_function')

    def get_reduce_function(self) -> ReduceFunction:
        """The module's reduce_function, or identity_reduce without a job file"""
        if self.job_file is None:
            return identity_reduce
        return self._get('reduce_function')

    def get_key_function(self):
        """
        Get the optional key function used to group records

        Returns:
            The module's key_function callable, or None to group by record value

        Raises:
            InvalidArgumentError: If key_function is defined but not callable
        """
        if self.job_file is None:
            return None
        if not self.module:
            self.load_module()
        func = getattr(self.module, 'key_function', None)
        if func is not None and not callable(func):
            raise InvalidArgumentError(f"Job file's 'key_function' must be callable, got {func!r}")
        return func
