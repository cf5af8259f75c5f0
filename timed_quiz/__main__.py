"""
Entry point for running the timed quiz as a module.

Usage: python -m timed_quiz --csv problems.csv --timeLimit 30
"""

from .cli import main

if __name__ == "__main__":
    main()
