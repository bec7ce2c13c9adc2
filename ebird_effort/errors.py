"""Exceptions for data-quality failures in the sampling-effort pipeline.

Hierarchy:
    EbirdEffortError (base)
    ├── MissingColumnError       input table lacks mapped columns
    ├── EmptySelectionError      nothing survives a cleaning stage
    ├── UnknownLocalityError     requested locality absent from the data
    └── InsufficientDataError    an engine needs more checklists

Malformed rows are skipped and logged rather than raised, and a curve that
never reaches a threshold is reported as "not reached", so neither has an
exception type here.
"""

from typing import Any, Dict, Optional


class EbirdEffortError(Exception):
    """Base exception carrying a message and optional context."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.context:
            return self.message
        context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({context_str})"


class MissingColumnError(EbirdEffortError, LookupError):
    """The input header is missing one or more mapped columns."""


class EmptySelectionError(EbirdEffortError, ValueError):
    """A cleaning stage removed every checklist."""


class UnknownLocalityError(EbirdEffortError, LookupError):
    """A locality identifier does not occur in the data."""


class InsufficientDataError(EbirdEffortError, ValueError):
    """Too few checklists for the requested statistic."""
