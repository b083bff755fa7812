#!/usr/bin/env python3
"""
MapReduce Client CLI
Runs one MapReduce job over a local input file:

    localmr <input-path> <num-mappers> <num-reducers>
"""

import argparse
import logging
import sys

from localmr.common.config import RunConfig, log_level_from_env
from localmr.common.errors import MapReduceError
from localmr.coordinator.job_runner import JobRunner
from localmr.worker.function_loader import FunctionLoader

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_USAGE = 2


class UsageParser(argparse.ArgumentParser):
    """Argument parser that prints usage to stdout on bad arguments"""

    def error(self, message):
        self.print_usage(sys.stdout)
        print(f"{self.prog}: error: {message}")
        sys.exit(EXIT_USAGE)


def build_parser() -> argparse.ArgumentParser:
    parser = UsageParser(
        prog='localmr',
        description='Run a MapReduce job over a text file on this machine'
    )
    # Counts stay strings here; the pipeline stages validate them
    parser.add_argument('input_path', help='Input text file')
    parser.add_argument('num_mappers', help='Number of map tasks')
    parser.add_argument('num_reducers', help='Number of reduce tasks (and output files)')
    parser.add_argument('--job-file', help='Python file defining map_function and reduce_function '
                                           '(identity functions when omitted)')
    parser.add_argument('--output-dir', help='Directory for output_<i>.txt files '
                                             '(default: $LOCALMR_OUTPUT_DIR or .)')
    parser.add_argument('--metrics-file', help='Write job metrics as JSON to this file')
    parser.add_argument('--max-workers', type=int, help='Cap on concurrent worker threads per phase')
    parser.add_argument('--log-level', default=log_level_from_env(),
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level (default: $LOCALMR_LOG_LEVEL or WARNING)')
    return parser


def run(args) -> int:
    """Run the job described by parsed arguments and return the exit status"""
    try:
        config = RunConfig.from_env(
            args.input_path,
            args.num_mappers,
            args.num_reducers,
            output_dir=args.output_dir,
            job_file=args.job_file,
            metrics_file=args.metrics_file,
            max_workers=args.max_workers
        )

        loader = FunctionLoader(config.job_file)
        runner = JobRunner(
            config,
            map_fn=loader.get_map_function(),
            reduce_fn=loader.get_reduce_function(),
            key_fn=loader.get_key_function()
        )
        metrics = runner.run()

    except MapReduceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except Exception as e:
        logger.exception("Unexpected error")
        print(f"Unexpected error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    logger.info(f"Job completed in {metrics.total_time_seconds:.3f}s: "
                f"{metrics.records_emitted} records, {metrics.distinct_keys} keys")
    return 0


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level, logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    return run(args)


if __name__ == '__main__':
    sys.exit(main())
