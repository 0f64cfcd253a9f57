# SPDX-License-Identifier: Apache-2.0

"""Wait for a cluster resource to converge to a desired state.

A poll repeatedly reads one resource through an injected ``fetch``
callable and classifies what it sees with a predicate:

* ``Verdict.SATISFIED`` ends the poll successfully,
* ``Verdict.NOT_YET`` sleeps ``policy.delay`` and tries again,
* ``Verdict.FAILED`` ends the poll with a ``TerminalConditionError``.

Running out of retries (or hitting ``policy.timeout``) ends the poll
with ``DeadlineExceeded``. Fetch failures are retried when they are
transient and end the poll otherwise. Every failure mode is returned
in ``PollOutcome.error``; ``poll`` itself does not raise.
"""

from dataclasses import dataclass
from enum import Enum
import time
from typing import Any, Callable, Dict, Optional, Tuple, Union

from loguru import logger

from ocpwait.exceptions import (
    DeadlineExceeded,
    FetchError,
    PollError,
    TerminalConditionError,
)


@dataclass(frozen=True)
class ResourceReference:
    """Identifies the object to observe.

    Attributes:
        api_version: Group and version, e.g. ``operator.openshift.io/v1``
        kind: Resource kind, e.g. ``Network``
        name: Object name
        namespace: Namespace, None for cluster scoped objects
    """

    api_version: str
    kind: str
    name: str
    namespace: Optional[str] = None

    def __str__(self):
        if self.namespace:
            return f"{self.kind}/{self.namespace}/{self.name}"
        return f"{self.kind}/{self.name}"


@dataclass(frozen=True)
class PollPolicy:
    """Retry budget of a poll.

    Attributes:
        retries: Maximum number of fetch attempts
        delay: Seconds to sleep between two attempts
        timeout: Optional overall deadline in seconds
    """

    retries: int
    delay: float
    timeout: Optional[float] = None

    def __post_init__(self):
        if self.retries < 1:
            raise ValueError(f"retries must be at least 1, got {self.retries}")
        if self.delay < 0:
            raise ValueError(f"delay must not be negative, got {self.delay}")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")

    @property
    def budget(self) -> float:
        """Longest time the retry budget alone allows, ignoring fetch time."""
        return (self.retries - 1) * self.delay


class Verdict(Enum):
    SATISFIED = "satisfied"
    NOT_YET = "not-yet"
    FAILED = "failed"


Predicate = Callable[[Dict[str, Any]], Union[Verdict, Tuple[Verdict, str]]]
Fetch = Callable[[ResourceReference], Dict[str, Any]]


@dataclass(frozen=True)
class PollOutcome:
    satisfied: bool
    attempts: int
    last_status: Any = None
    error: Optional[PollError] = None

    @property
    def failure_kind(self) -> Optional[str]:
        if self.error is None:
            return None
        return self.error.kind


class Clock:
    """Time source of a poll, replaced by a fake clock in tests."""

    def now(self) -> float:
        raise NotImplementedError

    def sleep(self, seconds: float) -> None:
        raise NotImplementedError


class SystemClock(Clock):
    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


def evaluate(predicate: Predicate, obj: Dict[str, Any]) -> Tuple[Verdict, str]:
    """Run a predicate and normalise its result to a (verdict, reason) pair.

    A predicate that raises is treated as having found a terminal condition.
    """
    try:
        result = predicate(obj)
    except Exception as e:
        return Verdict.FAILED, f"predicate raised {type(e).__name__}: {e}"

    if isinstance(result, tuple):
        verdict, reason = result
    else:
        verdict, reason = result, ""

    if not isinstance(verdict, Verdict):
        return Verdict.FAILED, f"predicate returned {verdict!r} instead of a Verdict"

    return verdict, reason


def poll(
    ref: ResourceReference,
    predicate: Predicate,
    policy: PollPolicy,
    fetch: Fetch,
    clock: Optional[Clock] = None,
) -> PollOutcome:
    """Poll ``ref`` until ``predicate`` is satisfied or the policy runs out.

    Args:
        ref: Resource to observe
        predicate: Classifies the fetched object
        policy: Retry budget
        fetch: Reads the resource, raises FetchError on failure
        clock: Time source, defaults to the system clock

    Returns:
        PollOutcome describing how the poll ended
    """
    clock = clock or SystemClock()
    start = clock.now()

    deadline = None
    if policy.timeout is not None:
        deadline = start + policy.timeout
        if policy.timeout < policy.budget:
            logger.debug(
                f"Timeout of {policy.timeout} second(s) is shorter than "
                f"{policy.retries} x {policy.delay} second(s), the timeout bounds the wait for {ref}"
            )

    attempts = 0
    last_status = None
    last_error = None

    while True:
        attempts += 1

        try:
            obj = fetch(ref)
        except FetchError as e:
            if not e.transient:
                logger.error(f"Reading {ref} failed: {e}")
                return PollOutcome(False, attempts, last_status, e)
            last_error = e
            logger.warning(
                f"Reading {ref} failed (attempt {attempts}/{policy.retries}): {e}"
            )
        except Exception as e:
            logger.error(f"Unexpected error while reading {ref}: {e}")
            return PollOutcome(
                False,
                attempts,
                last_status,
                FetchError(f"unexpected error while reading {ref}: {e}"),
            )
        else:
            last_error = None
            last_status = obj.get("status") if isinstance(obj, dict) else None
            verdict, reason = evaluate(predicate, obj)

            if verdict is Verdict.SATISFIED:
                logger.debug(f"{ref} converged after {attempts} attempt(s)")
                return PollOutcome(True, attempts, last_status)

            if verdict is Verdict.FAILED:
                reason = reason or f"{ref} reported a terminal condition"
                logger.error(f"{ref} will not converge: {reason}")
                return PollOutcome(
                    False, attempts, last_status, TerminalConditionError(reason)
                )

            logger.info(
                f"{ref} not converged yet (attempt {attempts}/{policy.retries})"
                + (f": {reason}" if reason else "")
            )

        if attempts >= policy.retries:
            break

        wait = policy.delay
        if deadline is not None:
            remaining = deadline - clock.now()
            if remaining <= 0:
                break
            wait = min(wait, remaining)

        logger.debug(f"Wait {wait} second(s) until the next check of {ref}")
        clock.sleep(wait)

    error = DeadlineExceeded(attempts, clock.now() - start, last_error)
    logger.error(f"{ref}: {error}")
    return PollOutcome(False, attempts, last_status, error)
