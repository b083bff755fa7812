"""
Unit tests for ReduceExecutor and reduce_bucket
"""

import pytest
import os
from unittest.mock import Mock, patch

from localmr.common.errors import InvalidArgumentError, MapReduceIOError
from localmr.worker.function_loader import identity_reduce
from localmr.worker.reduce_executor import ReduceExecutor, reduce_bucket, write_output


def read_lines(path):
    with open(path) as f:
        return f.read().splitlines()


class TestReduceBucket:
    """Tests for reducing a bucket and writing the output file"""

    def test_writes_one_line_per_output_item(self, temp_dir):
        """Test output file format"""
        output_file = os.path.join(temp_dir, 'output_0.txt')

        count = reduce_bucket(['a', 'a', 'c'], identity_reduce, output_file)

        assert count == 3
        with open(output_file) as f:
            assert f.read() == 'a\na\nc\n'

    def test_reduce_function_sees_whole_bucket_once(self, temp_dir):
        """Test that reduce_func is called once with the full bucket"""
        reduce_func = Mock(return_value=['summary'])
        output_file = os.path.join(temp_dir, 'output_0.txt')

        reduce_bucket(['x', 'y', 'y'], reduce_func, output_file)

        reduce_func.assert_called_once_with(['x', 'y', 'y'])
        assert read_lines(output_file) == ['summary']

    def test_accepts_generator_reduce_functions(self, temp_dir):
        """Test that reduce_func may yield its lines"""
        def count_reduce(records):
            yield f"total\t{len(records)}"

        output_file = os.path.join(temp_dir, 'output_0.txt')
        reduce_bucket(['a', 'b'], count_reduce, output_file)

        assert read_lines(output_file) == ['total\t2']

    def test_overwrites_existing_file(self, temp_dir):
        """Test that a stale output file is replaced"""
        output_file = os.path.join(temp_dir, 'output_0.txt')
        with open(output_file, 'w') as f:
            f.write('stale\nstale\nstale\n')

        reduce_bucket(['fresh'], identity_reduce, output_file)

        assert read_lines(output_file) == ['fresh']

    def test_empty_bucket_raises_invalid_argument(self, temp_dir):
        """Test that an empty bucket is rejected"""
        with pytest.raises(InvalidArgumentError):
            reduce_bucket([], identity_reduce, os.path.join(temp_dir, 'out.txt'))

    def test_missing_reduce_function_raises_invalid_argument(self, temp_dir):
        """Test that an unset reduce function is rejected"""
        with pytest.raises(InvalidArgumentError):
            reduce_bucket(['a'], None, os.path.join(temp_dir, 'out.txt'))

    def test_empty_output_name_raises_invalid_argument(self):
        """Test that an empty output file name is rejected"""
        with pytest.raises(InvalidArgumentError):
            reduce_bucket(['a'], identity_reduce, '')

    def test_unwritable_output_raises_io_error(self, temp_dir):
        """Test that a missing output directory raises MapReduceIOError"""
        output_file = os.path.join(temp_dir, 'no', 'such', 'dir', 'out.txt')

        with pytest.raises(MapReduceIOError):
            reduce_bucket(['a'], identity_reduce, output_file)

    def test_failing_reduce_function_creates_no_file(self, temp_dir):
        """Test that nothing is written when reduce_func raises"""
        output_file = os.path.join(temp_dir, 'output_0.txt')

        with pytest.raises(RuntimeError):
            reduce_bucket(['a'], Mock(side_effect=RuntimeError('nope')), output_file)

        assert not os.path.exists(output_file)


class TestWriteOutput:
    """Tests for output file handling"""

    def test_partial_file_is_removed_on_write_error(self, temp_dir):
        """Test that a write failure does not leave a half-written file"""
        output_file = os.path.join(temp_dir, 'output_0.txt')

        def lines():
            yield 'first'
            raise OSError('disk full')

        with pytest.raises(MapReduceIOError):
            write_output(output_file, lines())

        assert not os.path.exists(output_file)

    def test_partial_file_is_removed_on_encode_error(self, temp_dir):
        """Test that an unencodable line removes the file and keeps its own error type"""
        output_file = os.path.join(temp_dir, 'output_0.txt')

        with pytest.raises(UnicodeEncodeError):
            reduce_bucket(['x'], lambda records: ['ok', '\ud800'], output_file)

        assert not os.path.exists(output_file)

    def test_escaped_input_bytes_are_written_back(self, temp_dir):
        """Test that undecodable input bytes round-trip to the output file"""
        output_file = os.path.join(temp_dir, 'output_0.txt')

        write_output(output_file, [b'a\xff'.decode('utf-8', errors='surrogateescape')])

        with open(output_file, 'rb') as f:
            assert f.read() == b'a\xff\n'

    def test_empty_output_creates_empty_file(self, temp_dir):
        """Test writing no lines"""
        output_file = os.path.join(temp_dir, 'output_1.txt')

        assert write_output(output_file, []) == 0
        assert os.path.getsize(output_file) == 0


class TestReduceExecutor:
    """Tests for task execution results"""

    def test_execute_reports_lines_written(self, temp_dir):
        """Test a successful task result"""
        output_file = os.path.join(temp_dir, 'output_0.txt')
        executor = ReduceExecutor(task_id=0, bucket=['a', 'b'], reduce_func=identity_reduce,
                                  output_file=output_file)

        result = executor.execute()

        assert result['success'] is True
        assert result['lines_written'] == 2
        assert result['error'] is None

    def test_execute_captures_errors(self, temp_dir):
        """Test that an exception is reported, not raised"""
        executor = ReduceExecutor(task_id=1, bucket=[], reduce_func=identity_reduce,
                                  output_file=os.path.join(temp_dir, 'output_1.txt'))

        result = executor.execute()

        assert result['success'] is False
        assert isinstance(result['error'], InvalidArgumentError)
        assert result['error_message']

    def test_execute_logs_failures(self, temp_dir):
        """Test that failures are logged at error level"""
        executor = ReduceExecutor(task_id=2, bucket=['a'], reduce_func=None,
                                  output_file=os.path.join(temp_dir, 'output_2.txt'))

        with patch('localmr.worker.reduce_executor.logger') as mock_logger:
            executor.execute()

        mock_logger.error.assert_called_once()
