"""
Exceptions raised by the duration comparison feature.

Window validation problems are not exceptions; they travel inside
TimeWindow as a WindowError.
"""

from __future__ import annotations


class ComparisonError(Exception):
    """Base class for comparison failures."""


class FetchFailure(ComparisonError):
    """A run listing failed, so the whole aggregation failed."""

    def __init__(self, pipeline_id: str, message: str):
        super().__init__(message)
        self.pipeline_id = pipeline_id
        self.message = message


class UnknownPipelineError(ComparisonError, KeyError):
    """A selection referenced a DAG that is not in the loaded catalog."""

    def __init__(self, pipeline_id: str):
        super().__init__(pipeline_id)
        self.pipeline_id = pipeline_id

    def __str__(self) -> str:
        return f"Unknown DAG: {self.pipeline_id}"
