"""Structured error hierarchy for flowzone."""

from __future__ import annotations


class FlowzoneError(Exception):
    """Base for all flowzone errors."""

    pass


class ContractViolationError(FlowzoneError):
    """Entity or strategy is missing required behavior."""

    def __init__(self, subject: str, missing: list[str]):
        self.subject = subject
        self.missing = missing
        super().__init__(f"{subject} is missing required method(s): {', '.join(missing)}")


class BatchError(FlowzoneError):
    """A parallel batch failed as a whole."""

    def __init__(self, message: str, worker_index: int):
        self.worker_index = worker_index
        super().__init__(message)


class WorkerFailedError(BatchError):
    """A worker raised, crashed or exited non-zero."""

    def __init__(self, worker_index: int, detail: str, exit_code: int | None = None):
        self.detail = detail
        self.exit_code = exit_code
        reason = detail.strip().splitlines()[-1] if detail.strip() else "no detail"
        if exit_code is not None:
            reason = f"exit code {exit_code}: {reason}"
        super().__init__(f"Worker {worker_index} failed ({reason})", worker_index)


class BatchTimeoutError(BatchError):
    """A worker exceeded the batch wall-clock timeout."""

    def __init__(self, worker_index: int, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Worker {worker_index} exceeded the {timeout_seconds:g}s batch timeout",
            worker_index,
        )


class ConfigError(FlowzoneError):
    """Invalid policy, parameter or command-line configuration."""

    pass


class HistoryError(FlowzoneError):
    """History directory is unusable."""

    pass
