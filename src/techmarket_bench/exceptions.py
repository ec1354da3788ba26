"""Exception hierarchy for the benchmark harness and repository adapters."""


class BenchmarkError(Exception):
    """Base class for benchmark errors."""


class NoResultsError(BenchmarkError):
    """Raised when a report is requested but no operation succeeded."""

    def __init__(self, message: str = "no results to generate report"):
        super().__init__(message)


class BackendConnectionError(BenchmarkError):
    """Raised when a repository adapter cannot reach its backend at startup."""

    def __init__(self, backend: str, cause: Exception):
        self.backend = backend
        self.cause = cause
        super().__init__(f"{backend} connection failed: {cause}")


class RowDecodeError(BenchmarkError, ValueError):
    """Raised when a stored row or document cannot be mapped to a model."""
