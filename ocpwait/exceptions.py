# SPDX-License-Identifier: Apache-2.0

"""Failure kinds reported by the convergence poller.

The poller itself never raises these. They are attached to
``PollOutcome.error`` so callers can branch on ``kind``.
"""

FETCH_FAILED = "fetch-failed"
TERMINAL_CONDITION = "terminal-condition"
DEADLINE_EXCEEDED = "deadline-exceeded"


class PollError(Exception):
    kind = None

    def __eq__(self, other):
        return (
            type(self) is type(other)
            and self.kind == other.kind
            and str(self) == str(other)
        )

    def __hash__(self):
        return hash((type(self), self.kind, str(self)))


class FetchError(PollError):
    """Reading the resource failed and retrying will not help."""

    kind = FETCH_FAILED
    transient = False

    def __init__(self, message, status=None):
        super().__init__(message)
        self.status = status


class TransientFetchError(FetchError):
    """Reading the resource failed, but a later attempt may succeed."""

    transient = True


class TerminalConditionError(PollError):
    """The resource reported a state it will not recover from on its own."""

    kind = TERMINAL_CONDITION

    def __init__(self, reason):
        super().__init__(reason)
        self.reason = reason


class DeadlineExceeded(PollError):
    """Retries or timeout were used up while the resource was still converging."""

    kind = DEADLINE_EXCEEDED

    def __init__(self, attempts, elapsed, last_error=None):
        message = (
            f"still not converged after {attempts} attempt(s) in {elapsed:.1f} second(s)"
        )
        if last_error is not None:
            message += f", last read failed: {last_error}"
        super().__init__(message)
        self.attempts = attempts
        self.elapsed = elapsed
        self.last_error = last_error
