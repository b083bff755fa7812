"""
Error types raised by the MapReduce pipeline stages
"""


class MapReduceError(Exception):
    """Base class for all pipeline errors"""


class InvalidArgumentError(MapReduceError, ValueError):
    """Bad or missing parameter passed to a pipeline stage"""


class MapReduceIOError(MapReduceError, OSError):
    """File open, seek, read or write failure"""


class EmptyInputError(MapReduceError):
    """The input file has zero length"""


class TaskFailedError(MapReduceError):
    """A map or reduce worker task raised an error"""

    def __init__(self, task_type: str, task_id: int, error: BaseException):
        self.task_type = task_type
        self.task_id = task_id
        self.error = error
        super().__init__(f"{task_type} task {task_id} failed: {error}")
