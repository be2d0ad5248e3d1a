"""Wait for remote tasks to finish."""
import logging
import time
from typing import Callable, Optional

from photonctl.config import Config
from photonctl.modules.models import Task, TaskState
from photonctl.modules.photon import PhotonClient
from photonctl.modules.polling import (
    Poller,
    PollOutcome,
    PollPolicy,
    ReporterFactory,
    TaskFailedError,
)

logger = logging.getLogger(__name__)


def task_policy() -> PollPolicy:
    return PollPolicy(
        delay=Config.TASK_POLL_DELAY,
        timeout=Config.TASK_POLL_TIMEOUT or None,
        retries=Config.MAX_RETRIES,
    )


def evaluate_task(task: Task) -> PollOutcome:
    if task.state is TaskState.COMPLETED:
        return PollOutcome.SUCCEEDED
    if task.state is TaskState.ERROR:
        return PollOutcome.FAILED
    return PollOutcome.PENDING


def wait_for_task(
    client: PhotonClient,
    task_id: str,
    policy: Optional[PollPolicy] = None,
    reporter_factory: Optional[ReporterFactory] = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> Task:
    """Block until a task completes.

    Args:
        client: Control plane client
        task_id: ID of a task already accepted by the control plane
        policy: Polling policy (defaults from Config)
        reporter_factory: Builds a ProgressReporter for the wait, if any

    Returns:
        The COMPLETED task

    Raises:
        TaskFailedError: The task entered ERROR (or an error variant)
        RetryError: The transient-error budget was exhausted
        WaitTimeoutError: Only when the policy sets a timeout
    """
    poller = Poller(policy or task_policy(), reporter_factory, clock=clock, sleep=sleep)
    logger.debug("Waiting for task %s", task_id)
    task = poller.run(
        fetch=lambda: client.get_task(task_id),
        evaluate=evaluate_task,
        on_failure=TaskFailedError,
        description=f"task {task_id}",
    )
    logger.info("Task %s completed", task.id)
    return task
