"""
Error taxonomy.

We separate error types so callers can react correctly.
Example:
NotFoundRetryable and DependencyNotReady requeue after a fixed delay.
ValidationFailure and HardFailure mark the resource failed and surface to the operator.
CancellationRequested aborts a drain loop without dispatching cleanup.

requeue_after
When set, the controller requeues the key after that many seconds.
When None, the controller applies its default backoff.
"""

from __future__ import annotations


class OrchestratorError(Exception):
    """Base class for all orchestrator exceptions."""

    def __init__(self, message: str, requeue_after: float | None = None) -> None:
        super().__init__(message)
        self.requeue_after = requeue_after


class NotFoundRetryable(OrchestratorError):
    """Raised when a remote or declared dependency does not exist yet."""


class HardFailure(OrchestratorError):
    """
    Raised for any other nonzero admin status or unparseable admin output.

    exit_status is kept for diagnostics only. Callers never branch on it.
    """

    def __init__(self, message: str, exit_status: int | None = None) -> None:
        super().__init__(message)
        self.exit_status = exit_status


class ValidationFailure(OrchestratorError):
    """Raised when a declared resource spec is malformed."""


class DependencyNotReady(OrchestratorError):
    """Raised when a parent resource exists but cannot be used yet."""


class CancellationRequested(OrchestratorError):
    """Raised when an operator aborts a drain loop."""


class ResourceNotFound(OrchestratorError):
    """Raised by resource stores when a named object does not exist."""


class ControlPlaneError(OrchestratorError):
    """Raised when a control plane query or submission fails."""
