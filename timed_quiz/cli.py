"""
Command Line Interface for the timed quiz.

Reads ``question,answer`` records from a CSV file and quizzes the operator at
the terminal, optionally under a total time limit.
"""

import argparse
import sys
import logging
from pathlib import Path
from typing import Dict, Any, List, NoReturn, Optional

try:
    import tomllib  # Python 3.11+ built-in TOML parser
except ImportError:
    import tomli as tomllib  # Fallback for Python < 3.11

import colorama
from colorama import Fore, Style

from .core import (
    DEFAULT_CSV_FILE,
    DEFAULT_TIME_LIMIT,
    ProblemParseError,
    QuizFileError,
    QuizRunner,
    open_quiz_file,
    read_problems,
)

# Initialize colorama for cross-platform color support
colorama.init()

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FILE_ERROR = 1
EXIT_PARSE_ERROR = 2


class Colors:
    """Colors for diagnostics. Prompts and the score line stay uncolored."""

    ERROR = Fore.RED + Style.BRIGHT
    WARNING = Fore.YELLOW + Style.BRIGHT
    RESET = Style.RESET_ALL


def config_error(config_file: Path, message: str) -> NoReturn:
    print(f"{Colors.ERROR}Error in configuration file {config_file}: {message}{Colors.RESET}")
    sys.exit(1)


def load_config(config_file: Path) -> Dict[str, Any]:
    """Load quiz defaults from a TOML file.

    Only the ``[quiz]`` and ``[output]`` tables are read. ``quiz.time_limit``
    must be an integer and ``quiz.timed`` a boolean; anything else ends the
    run with status 1 before the quiz starts.

    Args:
        config_file: Path to TOML configuration file

    Returns:
        Dictionary with ``quiz`` and ``output`` tables (possibly empty)
    """
    try:
        with open(config_file, "rb") as f:
            raw = tomllib.load(f)
    except FileNotFoundError:
        print(f"{Colors.ERROR}Error: Configuration file not found: {config_file}{Colors.RESET}")
        sys.exit(1)
    except (OSError, tomllib.TOMLDecodeError) as e:
        config_error(config_file, str(e))

    config = {"quiz": raw.get("quiz", {}), "output": raw.get("output", {})}
    for table, values in config.items():
        if not isinstance(values, dict):
            config_error(config_file, f"[{table}] must be a table")

    quiz_config = config["quiz"]
    time_limit = quiz_config.get("time_limit")
    if time_limit is not None and (isinstance(time_limit, bool) or not isinstance(time_limit, int)):
        config_error(config_file, f"quiz.time_limit must be an integer, got {time_limit!r}")
    if "timed" in quiz_config and not isinstance(quiz_config["timed"], bool):
        config_error(config_file, f"quiz.timed must be true or false, got {quiz_config['timed']!r}")

    logger.info(f"Loaded configuration from {config_file}: {config}")
    return config


def merge_config_with_args(args, config: Dict[str, Any]) -> None:
    """Merge configuration file values with command line arguments.

    Command line arguments take precedence over config file values.

    Args:
        args: Parsed command line arguments
        config: Configuration dictionary from TOML file
    """
    quiz_config = config.get("quiz", {})
    if args.csv == DEFAULT_CSV_FILE and "csv" in quiz_config:
        args.csv = quiz_config["csv"]
    if args.time_limit == DEFAULT_TIME_LIMIT and "time_limit" in quiz_config:
        args.time_limit = quiz_config["time_limit"]
    if not args.untimed and quiz_config.get("timed") is False:
        args.untimed = True

    output_config = config.get("output", {})
    if not args.verbose and output_config.get("verbose", False):
        args.verbose = True


def setup_logging(verbose: bool = False):
    """Set up logging.

    Verbose logs go to stderr so they never land between a prompt and the
    answer typed after it on stdout.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            handlers=[logging.StreamHandler(sys.stderr)],
        )
    else:
        logging.basicConfig(level=logging.CRITICAL, handlers=[logging.NullHandler()])


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        description="Timed quiz - answer the problems in a CSV file before time runs out",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run problems.csv from the current directory with a 30 second limit
  python -m timed_quiz

  # Use another problem file and a longer limit
  python -m timed_quiz --csv capitals.csv --timeLimit 120

  # Take the quiz without a time limit
  python -m timed_quiz --csv capitals.csv --untimed

  # Read defaults from a configuration file
  python -m timed_quiz --config quiz.toml

CSV format:
  One problem per line as 'question,answer', no header row.

Exit codes:
  0: Quiz completed (including when time runs out)
  1: Problem file could not be opened
  2: Problem file contains a malformed record
        """,
    )

    parser.add_argument(
        "--csv",
        default=DEFAULT_CSV_FILE,
        help="a csv file in the format of 'question,answer' (default: problems.csv)",
    )

    parser.add_argument(
        "--timeLimit",
        dest="time_limit",
        type=int,
        default=DEFAULT_TIME_LIMIT,
        help="time limit for the quiz in seconds (default: 30)",
    )

    parser.add_argument(
        "--untimed",
        action="store_true",
        help="Run the quiz without any time limit",
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="Path to TOML configuration file with quiz defaults",
    )

    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging output")

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Load configuration file if provided
    if args.config:
        config = load_config(args.config)
        merge_config_with_args(args, config)

    # Set up logging
    setup_logging(args.verbose)

    if args.time_limit < 0:
        parser.error("--timeLimit must be a non-negative number of seconds")

    time_limit = None if args.untimed else args.time_limit
    logger.info(f"Problem file: {args.csv}")
    logger.info(f"Time limit: {time_limit if time_limit is not None else 'none'}")

    try:
        with open_quiz_file(args.csv) as csv_file:
            runner = QuizRunner(time_limit=time_limit)
            runner.run(read_problems(csv_file))
        exit_code = EXIT_OK

    except QuizFileError as e:
        print(f"{Colors.ERROR}Failed to open csv file: {e.path}{Colors.RESET}")
        exit_code = EXIT_FILE_ERROR
    except ProblemParseError as e:
        logger.error(f"Malformed record in {args.csv}: {e}")
        print(f"\n{Colors.ERROR}Error: malformed record in {args.csv}, {e}{Colors.RESET}")
        exit_code = EXIT_PARSE_ERROR
    except KeyboardInterrupt:
        logger.info("Quiz interrupted by user")
        print(f"\n{Colors.WARNING}Quiz interrupted.{Colors.RESET}")
        exit_code = 1
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        print(f"\n{Colors.ERROR}Error: {e}{Colors.RESET}")
        if args.verbose:
            import traceback

            traceback.print_exc()
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
