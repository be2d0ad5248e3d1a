"""
Polling loop shared by the task and cluster waits.

A wait is a small state machine: fetch the remote object, classify it as
pending, succeeded or failed, and either return, raise, or sleep and fetch
again. Transient fetch errors are retried up to a fixed budget, and an
optional wall-clock timeout bounds the whole wait.
"""
import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from photonctl.modules.photon import PhotonTransientError
from photonctl.modules.progress import ProgressReporter
from photonctl.utils import RetryError

logger = logging.getLogger(__name__)

ReporterFactory = Callable[[threading.Event], ProgressReporter]


class PollOutcome(Enum):
    """Classification of a single successful fetch."""
    PENDING = 'pending'
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'


class WaitError(Exception):
    """Base exception for waits that ended without success."""
    pass


class TaskFailedError(WaitError):
    """The task reached an error state on the control plane."""

    def __init__(self, task):
        details = "; ".join(
            f"{e.code}: {e.message}" if e.code else e.message for e in task.errors
        )
        message = f"Task {task.id} ({task.operation or 'operation'}) entered {task.state.value} state"
        if details:
            message = f"{message}: {details}"
        super().__init__(message)
        self.task = task


class ClusterErrorStateError(WaitError):
    """The cluster reached the ERROR state."""

    def __init__(self, cluster):
        super().__init__(f"Cluster {cluster.id} entered ERROR state")
        self.cluster = cluster


class WaitTimeoutError(WaitError):
    """No terminal state was observed before the deadline."""

    def __init__(self, message: str, timeout: float, last_value: Any = None):
        super().__init__(message)
        self.timeout = timeout
        self.last_value = last_value


@dataclass
class PollPolicy:
    """Delay between fetches, wall-clock limit and transient-error budget.

    A ``timeout`` of None or 0 means the wait is bounded only by terminal
    states and the retry budget.
    """
    delay: float
    timeout: Optional[float] = None
    retries: int = 3


class WaitSession:
    """Per-call wait state: start time, failure count and the reporter stop signal."""

    def __init__(self, reporter_factory: Optional[ReporterFactory] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self.stop_event = threading.Event()
        self.reporter = reporter_factory(self.stop_event) if reporter_factory else None
        self.started_at = 0.0
        self.failures = 0
        self._closed = False

    def __enter__(self) -> 'WaitSession':
        self.started_at = self.clock()
        if self.reporter is not None:
            self.reporter.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def elapsed(self) -> float:
        return self.clock() - self.started_at

    def close(self) -> None:
        """Stop the reporter and wait for it; later calls do nothing."""
        if self._closed:
            return
        self._closed = True
        self.stop_event.set()
        if self.reporter is not None:
            self.reporter.stop()


class Poller:
    """Drives a fetch/evaluate loop under a :class:`PollPolicy`."""

    def __init__(
        self,
        policy: PollPolicy,
        reporter_factory: Optional[ReporterFactory] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.policy = policy
        self.reporter_factory = reporter_factory
        self.clock = clock
        self.sleep = sleep

    def _within_deadline(self, session: WaitSession) -> bool:
        if not self.policy.timeout:
            return True
        return session.elapsed < self.policy.timeout

    def run(
        self,
        fetch: Callable[[], Any],
        evaluate: Callable[[Any], PollOutcome],
        on_failure: Callable[[Any], Exception],
        description: str,
    ) -> Any:
        """Poll until ``evaluate`` reports a terminal outcome.

        Args:
            fetch: Returns the current remote object; may raise PhotonError
            evaluate: Maps a fetched object to a PollOutcome
            on_failure: Builds the exception raised for a FAILED outcome
            description: Human-readable name used in logs and errors

        Returns:
            The object for which ``evaluate`` returned SUCCEEDED

        Raises:
            RetryError: More consecutive transient errors than the policy allows
            WaitTimeoutError: The timeout elapsed before a terminal outcome
            WaitError: Whatever ``on_failure`` builds for a FAILED outcome
            PhotonAPIError: Non-transient fetch errors propagate unchanged
        """
        last_value = None
        with WaitSession(self.reporter_factory, self.clock) as session:
            while self._within_deadline(session):
                try:
                    last_value = fetch()
                except PhotonTransientError as e:
                    session.failures += 1
                    if session.failures > self.policy.retries:
                        logger.error(
                            "Giving up on %s after %d consecutive errors", description, session.failures
                        )
                        raise RetryError(
                            f"Failed to poll {description} after {session.failures} attempts. Last error: {e}",
                            attempts=session.failures,
                            last_error=e,
                        ) from e
                    logger.warning(
                        "Polling %s failed (%d/%d): %s",
                        description, session.failures, self.policy.retries, e,
                    )
                    self.sleep(self.policy.delay)
                    continue

                session.failures = 0
                outcome = evaluate(last_value)
                logger.debug("Polled %s: %s", description, outcome.value)

                if outcome is PollOutcome.SUCCEEDED:
                    return last_value
                if outcome is PollOutcome.FAILED:
                    raise on_failure(last_value)

                self.sleep(self.policy.delay)

            raise WaitTimeoutError(
                f"Timed out after {self.policy.timeout:g}s while waiting for {description}",
                timeout=self.policy.timeout,
                last_value=last_value,
            )
