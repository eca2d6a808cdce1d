"""
Exception types raised by the benchmark harness.

All errors derive from BenchmarkError so that a suite can tell benchmark
failures apart from programming errors.
"""

from typing import Optional


class BenchmarkError(Exception):
    """Base class for benchmark failures."""


class ConfigError(BenchmarkError):
    """The cluster configuration file is missing or malformed."""


class ProvisioningError(BenchmarkError):
    """A pod, service or namespace could not be created or never became ready."""


class ExecutionError(BenchmarkError):
    """A command run inside a pod failed at the transport level or exited non-zero."""

    def __init__(self, message: str, stderr: str = "", return_code: Optional[int] = None):
        super().__init__(message)
        self.stderr = stderr
        self.return_code = return_code

    def __str__(self) -> str:
        text = super().__str__()
        if self.stderr:
            text += f" (stderr: {self.stderr})"
        return text


class SampleParseError(BenchmarkError):
    """Tool output did not reduce to a single floating point number."""

    def __init__(self, raw_output: str, stderr: str = ""):
        super().__init__(f"could not parse {raw_output!r} as a number")
        self.raw_output = raw_output
        self.stderr = stderr


class AggregationError(BenchmarkError):
    """An aggregate was requested with the wrong number of samples."""


class InvalidTopologyError(ValueError):
    """An unknown topology value was passed. Indicates a caller defect."""


class InvalidResultError(BenchmarkError):
    """Aggregates were reported but at least one of them is flagged invalid."""

    def __init__(self, message: str, results: Optional[list] = None):
        super().__init__(message)
        self.results = results or []
