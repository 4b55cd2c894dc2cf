"""Typed errors surfaced by the analysis pipeline.

Only input errors and unrecoverable external-dependency errors reach the
caller. Extraction misses and revenue corrections are never errors.
"""

from propyield.domain.enums import PipelineStep


class AnalysisError(Exception):
    """Base class for failures that abort an analysis request."""


class AnalysisInputError(AnalysisError):
    """Raised when the request cannot be resolved to a coordinate pair."""


class ExternalDependencyError(AnalysisError):
    """Raised when an external collaborator fails during a pipeline step."""

    def __init__(self, step: PipelineStep, message: str):
        self.step = step
        self.message = message
        super().__init__(f"{step.value} failed: {message}")
