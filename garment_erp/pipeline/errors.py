"""Errors and diagnostics raised by the production pipeline.

Hard failures (missing identity fields, empty templates, illegal status
transitions) are raised as :class:`PipelineError` subclasses.  Recoverable
data problems are not raised; they are reported as :class:`Diagnostic`
records so the caller can show them to the supervisor.
"""

import logging
from dataclasses import dataclass, field
from typing import Any


class PipelineError(Exception):
    """Base class for all pipeline errors.

    ``code`` is a short machine readable tag (``MISSING_LOT_NUMBER``,
    ``INVALID_STATUS``...) and ``details`` holds the context as keyword
    arguments so the web layer can echo it back in JSON.
    """

    def __init__(self, code: str, **details: Any):
        self.code = code
        self.details = details
        message = f"{code}: {details}" if details else code
        super().__init__(message)

    def as_dict(self) -> dict:
        return {"code": self.code, **self.details}


class InvalidInputError(PipelineError):
    """Input record is missing a required identity field or is malformed."""


class NotFoundError(PipelineError):
    """A referenced lot, bundle, template, operator or work item does not exist."""


class WorkflowError(PipelineError):
    """A work item cannot make the requested status transition."""


class SpreadsheetError(PipelineError):
    """An uploaded CSV/Excel sheet could not be read."""


@dataclass(frozen=True)
class Diagnostic:
    """Non-fatal warning produced while processing data."""

    code: str
    message: str
    context: dict = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "context": dict(self.context)}


def report(diagnostics, logger: logging.Logger, code: str, message: str, **context) -> Diagnostic:
    """Log a warning and append it to ``diagnostics`` when a list is given."""
    diag = Diagnostic(code=code, message=message, context=context)
    logger.warning("%s: %s %s", code, message, context)
    if diagnostics is not None:
        diagnostics.append(diag)
    return diag
