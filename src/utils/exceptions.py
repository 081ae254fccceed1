#!/usr/bin/env python3
"""
Exceptions for the World Cup Squad Data Pipeline
================================================

Every failure in the pipeline is fatal for the run. Collectors raise
``SourceFormatError`` when a source does not have the expected shape, the
normalizer raises ``DateParseError`` for unreadable birth dates and the
validator raises ``ValidationError`` for broken roster invariants.
"""

from typing import Any, Optional


class SquadDataError(Exception):
    """Base class for all pipeline errors."""


class SourceFormatError(SquadDataError):
    """A PDF or HTML source did not yield the expected shape."""


class DateParseError(SquadDataError):
    """A birth date could not be parsed with any configured format."""

    def __init__(self, value: Any, formats=None):
        self.value = value
        self.formats = list(formats or [])
        message = f"Cannot parse birth date {value!r}"
        if self.formats:
            message += f" (tried formats: {', '.join(self.formats)})"
        super().__init__(message)


class ValidationError(SquadDataError):
    """A structural invariant of the roster table does not hold."""

    def __init__(self, invariant: str, observed: Any, expected: Any = None,
                 team: Optional[str] = None):
        self.invariant = invariant
        self.observed = observed
        self.expected = expected
        self.team = team

        message = f"Invariant '{invariant}' failed"
        if team is not None:
            message += f" for team '{team}'"
        message += f": observed {observed}"
        if expected is not None:
            message += f", expected {expected}"
        super().__init__(message)
