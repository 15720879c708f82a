"""Exception types raised while listing inputs and planning splits."""

from __future__ import annotations

from typing import Iterable, List


class SplitPlannerError(Exception):
    """Base class for planner failures."""


class NoInputPathsError(SplitPlannerError):
    def __init__(self, message: str = "No input paths specified in job") -> None:
        super().__init__(message)


class InputPathError(SplitPlannerError):
    def __init__(self, path: str, message: str) -> None:
        super().__init__(message)
        self.path = path

    @classmethod
    def missing(cls, path: str) -> "InputPathError":
        return cls(path, f"Input path does not exist: {path}")

    @classmethod
    def no_matches(cls, path: str) -> "InputPathError":
        return cls(path, f"Input Pattern {path} matches 0 files")


class InvalidInputError(SplitPlannerError):
    """Every bad input path of one listing, reported together."""

    def __init__(self, errors: Iterable[InputPathError]) -> None:
        self.errors: List[InputPathError] = list(errors)
        super().__init__("\n".join(str(error) for error in self.errors))

    @property
    def messages(self) -> List[str]:
        return [str(error) for error in self.errors]


class BlockOffsetError(SplitPlannerError, ValueError):
    """Block metadata does not cover the requested offset."""


class NotAFileError(SplitPlannerError):
    def __init__(self, path: str) -> None:
        super().__init__(f"Not a file (dir): {path}")
        self.path = path


class InvalidTopologyError(SplitPlannerError, ValueError):
    """A topology path names no host."""


class InvalidPathFilterError(SplitPlannerError, ValueError):
    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"Invalid input path filter {pattern!r}: {reason}")
        self.pattern = pattern
