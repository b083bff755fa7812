"""
Run configuration for a MapReduce job
Values come from command-line arguments, with defaults overridable from the environment
"""

import os
from dataclasses import dataclass
from typing import Optional

from localmr.common.errors import InvalidArgumentError

# Configuration from environment
DEFAULT_OUTPUT_DIR = '.'
DEFAULT_OUTPUT_TEMPLATE = 'output_{index}.txt'
DEFAULT_ENCODING = 'utf-8'
DEFAULT_LOG_LEVEL = 'WARNING'


def parse_count(value, name: str) -> int:
    """
    Parse a mapper or reducer count

    Args:
        value: Raw value, usually a command-line string
        name: Parameter name used in the error message

    Returns:
        The integer value. Range checks are left to the stage that uses it.

    Raises:
        InvalidArgumentError: If the value is not an integer
    """
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise InvalidArgumentError(f"Invalid argument: {name} must be an integer, got {value!r}")


@dataclass
class RunConfig:
    """Everything the job runner needs to execute one job"""
    input_path: str
    num_mappers: int
    num_reducers: int
    output_dir: str = DEFAULT_OUTPUT_DIR
    output_template: str = DEFAULT_OUTPUT_TEMPLATE
    encoding: str = DEFAULT_ENCODING
    job_file: Optional[str] = None
    metrics_file: Optional[str] = None
    max_workers: Optional[int] = None

    def __post_init__(self):
        if self.max_workers is not None and (
                not isinstance(self.max_workers, int) or self.max_workers <= 0):
            raise InvalidArgumentError(
                f"Invalid argument: max_workers must be a positive integer, got {self.max_workers!r}")

    @classmethod
    def from_env(cls, input_path: str, num_mappers, num_reducers, **overrides) -> 'RunConfig':
        """Build a config, filling unset values from LOCALMR_* environment variables"""
        values = {
            'output_dir': os.getenv('LOCALMR_OUTPUT_DIR', DEFAULT_OUTPUT_DIR),
            'encoding': os.getenv('LOCALMR_ENCODING', DEFAULT_ENCODING),
        }
        max_workers = os.getenv('LOCALMR_MAX_WORKERS')
        if max_workers:
            values['max_workers'] = parse_count(max_workers, 'LOCALMR_MAX_WORKERS')

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(
            input_path=input_path,
            num_mappers=parse_count(num_mappers, 'num_mappers'),
            num_reducers=parse_count(num_reducers, 'num_reducers'),
            **values
        )

    def output_file(self, index: int) -> str:
        """Path of the output file for reducer `index`"""
        return os.path.join(self.output_dir, self.output_template.format(index=index))


def log_level_from_env() -> str:
    return os.getenv('LOCALMR_LOG_LEVEL', DEFAULT_LOG_LEVEL).upper()
