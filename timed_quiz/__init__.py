"""
Timed Quiz

A terminal quiz that reads question/answer pairs from a CSV file and keeps
score, optionally under a total time limit.
"""

from .core import (
    DEFAULT_CSV_FILE,
    DEFAULT_TIME_LIMIT,
    Problem,
    ProblemParseError,
    QuizError,
    QuizFileError,
    QuizResult,
    QuizRunner,
    open_quiz_file,
    parse_record,
    read_problems,
)

__version__ = "1.0.0"
__all__ = [
    # Runner
    "QuizRunner",
    # Core data structures
    "Problem",
    "QuizResult",
    # Problem file handling
    "open_quiz_file",
    "read_problems",
    "parse_record",
    # Errors
    "QuizError",
    "QuizFileError",
    "ProblemParseError",
    # Defaults
    "DEFAULT_CSV_FILE",
    "DEFAULT_TIME_LIMIT",
]
