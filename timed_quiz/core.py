"""
Core quiz engine: record file parsing and the interactive quiz loop.

Records are read lazily from a two-column CSV file (``question,answer``) and
administered one at a time. The timed variant races each answer against a
single deadline fixed when the run starts.
"""

import csv
import logging
import queue
import sys
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, TextIO, Union

logger = logging.getLogger(__name__)

DEFAULT_CSV_FILE = "problems.csv"
DEFAULT_TIME_LIMIT = 30


class QuizError(Exception):
    """Base class for errors that end a quiz run."""


class QuizFileError(QuizError):
    """The records file could not be opened."""

    def __init__(self, path: Union[str, Path], reason: str = ""):
        self.path = path
        self.reason = reason
        message = f"Failed to open csv file: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ProblemParseError(QuizError):
    """A record in the file is malformed. Always fatal for the whole run."""

    def __init__(self, message: str, line: int):
        self.line = line
        super().__init__(f"line {line}: {message}")


@dataclass
class Problem:
    """A single question and its expected answer."""

    question: str  # Shown verbatim
    answer: str  # Already stripped of surrounding whitespace
    number: int


@dataclass
class QuizResult:
    """Outcome of one quiz run."""

    correct: int
    attempted: int
    timed_out: bool = False

    @property
    def summary(self) -> str:
        return f"You scored {self.correct} out of {self.attempted}"


def open_quiz_file(csv_path: Union[str, Path]) -> TextIO:
    """Open the records file for reading.

    Args:
        csv_path: Path to the CSV file

    Returns:
        Open text file handle, owned by the caller

    Raises:
        QuizFileError: If the file cannot be opened for any reason
    """
    try:
        f = open(csv_path, "r", newline="", encoding="utf-8")
    except OSError as e:
        logger.error(f"Error opening quiz file {csv_path}: {e}")
        raise QuizFileError(csv_path, e.strerror or str(e)) from e

    logger.info(f"Opened quiz file {csv_path}")
    return f


def parse_record(fields: List[str], number: int) -> Problem:
    """Build a Problem from the first two fields of a CSV row."""
    return Problem(question=fields[0], answer=fields[1].strip(), number=number)


def read_problems(csv_file: TextIO) -> Iterator[Problem]:
    """Lazily parse problems from an open CSV file.

    Every row must have at least two fields and the same number of fields as
    the first row. Blank lines carry no record and are passed over. Any other
    irregularity, including bytes that do not decode, raises ProblemParseError at the point it is reached, so rows
    before it may already have been administered.

    Args:
        csv_file: Open text file (or any iterable of lines)

    Yields:
        Problem for each record, in file order
    """
    reader = csv.reader(csv_file, strict=True)
    expected_fields = None
    number = 0

    while True:
        try:
            fields = next(reader)
        except StopIteration:
            logger.debug(f"Reached end of quiz file after {number} records")
            return
        except csv.Error as e:
            raise ProblemParseError(str(e), line=reader.line_num) from e
        except (UnicodeDecodeError, OSError) as e:
            raise ProblemParseError(
                f"could not read record: {e}", line=reader.line_num + 1
            ) from e

        # An empty line is not a record (as with any CSV reader); it is
        # skipped rather than treated as a zero-field row.
        if not fields:
            continue

        if len(fields) < 2:
            raise ProblemParseError(
                f"expected at least 2 fields, found {len(fields)}", line=reader.line_num
            )
        if expected_fields is None:
            expected_fields = len(fields)
        elif len(fields) != expected_fields:
            raise ProblemParseError(
                f"wrong number of fields (expected {expected_fields}, found {len(fields)})",
                line=reader.line_num,
            )

        number += 1
        yield parse_record(fields, number)


class QuizRunner:
    """Administers problems at a terminal and keeps score."""

    def __init__(
        self,
        time_limit: Optional[float] = DEFAULT_TIME_LIMIT,
        input_stream: Optional[TextIO] = None,
        output_stream: Optional[TextIO] = None,
    ):
        """Initialize the runner.

        Args:
            time_limit: Total seconds allowed for the whole run, or None for
                the untimed variant
            input_stream: Where answers are read from (defaults to stdin)
            output_stream: Where prompts and the summary go (defaults to stdout)
        """
        if time_limit is not None and time_limit < 0:
            raise ValueError(f"time_limit must be non-negative, got {time_limit}")

        self.time_limit = time_limit
        self.input_stream = input_stream if input_stream is not None else sys.stdin
        self.output_stream = output_stream if output_stream is not None else sys.stdout

    @property
    def timed(self) -> bool:
        return self.time_limit is not None

    def run(self, problems: Iterable[Problem]) -> QuizResult:
        """Run the quiz over the given problems and print the summary.

        ProblemParseError raised by the problem source propagates unchanged
        and no summary is printed.
        """
        if self.timed:
            logger.info(f"Starting timed quiz with a limit of {self.time_limit} seconds")
            result = self._run_timed(problems)
        else:
            logger.info("Starting untimed quiz")
            result = self._run_untimed(problems)

        self._write(f"\n{result.summary}\n")
        logger.info(
            f"Quiz finished: {result.correct}/{result.attempted} correct, timed_out={result.timed_out}"
        )
        return result

    def read_answer(self) -> str:
        """Read one line from the input stream and return its first token.

        An empty line or end of input yields an empty answer.
        """
        tokens = self.input_stream.readline().split()
        return tokens[0] if tokens else ""

    def _run_untimed(self, problems: Iterable[Problem]) -> QuizResult:
        correct = 0
        attempted = 0

        for problem in problems:
            self._prompt(problem)
            answer = self.read_answer()
            attempted += 1
            if self._check(problem, answer):
                correct += 1

        return QuizResult(correct=correct, attempted=attempted)

    def _run_timed(self, problems: Iterable[Problem]) -> QuizResult:
        correct = 0
        attempted = 0
        deadline = time.monotonic() + self.time_limit

        for problem in problems:
            self._prompt(problem)

            # One-shot handoff; the reader thread is never joined
            handoff: "queue.Queue[str]" = queue.Queue(maxsize=1)
            reader = threading.Thread(
                target=self._collect_answer,
                args=(handoff,),
                name=f"answer-reader-{problem.number}",
                daemon=True,
            )
            reader.start()

            try:
                answer = handoff.get(timeout=max(0.0, deadline - time.monotonic()))
            except queue.Empty:
                logger.info(
                    f"Time limit reached while waiting on problem {problem.number}, "
                    f"{attempted} problems answered"
                )
                return QuizResult(correct=correct, attempted=attempted, timed_out=True)

            attempted += 1
            if self._check(problem, answer):
                correct += 1

        return QuizResult(correct=correct, attempted=attempted)

    def _collect_answer(self, handoff: "queue.Queue[str]") -> None:
        handoff.put(self.read_answer())

    def _prompt(self, problem: Problem) -> None:
        self._write(f"\nProblem: {problem.question} = ")

    def _check(self, problem: Problem, answer: str) -> bool:
        is_correct = answer == problem.answer
        logger.debug(
            f"Problem {problem.number}: expected={problem.answer!r}, got={answer!r}, correct={is_correct}"
        )
        return is_correct

    def _write(self, text: str) -> None:
        self.output_stream.write(text)
        self.output_stream.flush()
