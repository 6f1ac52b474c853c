"""
Polling of asynchronous comparison jobs.

A job is polled quickly at first and more slowly once it has been running
for a while, until it reaches a terminal status or the deadline passes.
The loop is a tenacity retry on "still processing" results; exceptions
raised by a poll are never retried.
"""

import logging
import time
from typing import Callable, TypeVar

from tenacity import Retrying, retry_if_result
from tqdm import tqdm

from ..application.domain import JobPoll, JobStatus
from ..application.exceptions import (
    JobFailedError,
    PollingTimeoutError,
    ProtocolError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# --- Constants for Polling ---
FAST_INTERVAL_SECONDS = 0.5
SLOW_INTERVAL_SECONDS = 1.0
SLOW_AFTER_SECONDS = 10.0
MAX_POLLING_SECONDS = 60.0

_JOB_FAILED = "job failed on server"


def _still_processing(poll: JobPoll) -> bool:
    return poll.status.is_pending


def _log_before_poll(retry_state):
    """Log the next poll with the status and wait time."""
    poll = retry_state.outcome.result()
    next_poll_in = retry_state.next_action.sleep
    logger.debug(
        f"Job is {poll.status.value}, polling again in {next_poll_in:.2f}s "
        f"(attempt {retry_state.attempt_number})..."
    )


class JobPoller:
    """Waits for a job to finish using a fast/slow backoff and a deadline."""

    def __init__(
        self,
        fast_interval: float = FAST_INTERVAL_SECONDS,
        slow_interval: float = SLOW_INTERVAL_SECONDS,
        slow_after: float = SLOW_AFTER_SECONDS,
        max_duration: float = MAX_POLLING_SECONDS,
        show_progress: bool = False,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initializes the poller. ``sleep`` and ``clock`` are for tests."""
        self.fast_interval = fast_interval
        self.slow_interval = slow_interval
        self.slow_after = slow_after
        self.max_duration = max_duration
        self.show_progress = show_progress
        self.sleep = sleep
        self.clock = clock

    def _resolve(self, poll: JobPoll[T]) -> T:
        """Turns a terminal poll into its result or an exception."""

        if poll.status is JobStatus.SUCCESS:
            if poll.result is None:
                raise ProtocolError("job succeeded but no results returned")
            return poll.result

        if poll.status is JobStatus.ERROR:
            raise JobFailedError(poll.error or _JOB_FAILED)

        raise ProtocolError(f"unknown job status: {poll.raw_status}")

    def wait_for(
        self, job_id: str, fetch: Callable[[str], JobPoll[T]]
    ) -> T:
        """
        Polls a job until it succeeds, fails, or runs out of time.

        Args:
            job_id: The handle returned by the job submission.
            fetch: Performs one poll and interprets its response.

        Returns:
            The result carried by the successful poll.

        Raises:
            PollingTimeoutError: If the deadline passes first.
            JobFailedError: If the server reports the job as failed.
            ProtocolError: If a poll violates the job protocol.
        """

        started = self.clock()

        def elapsed() -> float:
            return self.clock() - started

        def interval(retry_state) -> float:
            if elapsed() > self.slow_after:
                return self.slow_interval
            return self.fast_interval

        def deadline_passed(retry_state) -> bool:
            return elapsed() > self.max_duration

        def timed_out() -> PollingTimeoutError:
            return PollingTimeoutError(
                f"job polling timed out after {self.max_duration:g}s"
            )

        def give_up(retry_state):
            raise timed_out()

        def poll_once(job_id: str) -> JobPoll[T]:
            # No poll is sent once the deadline has passed.
            if elapsed() > self.max_duration:
                raise timed_out()
            return fetch(job_id)

        with tqdm(
            total=self.max_duration,
            unit="s",
            desc=f"Job {job_id}",
            disable=not self.show_progress,
            leave=False,
        ) as progress:

            def sleep(seconds: float):
                self.sleep(seconds)
                progress.update(seconds)

            retrying = Retrying(
                retry=retry_if_result(_still_processing),
                wait=interval,
                stop=deadline_passed,
                sleep=sleep,
                before_sleep=_log_before_poll,
                retry_error_callback=give_up,
            )
            poll = retrying(poll_once, job_id)

        logger.debug(f"Job {job_id} finished with status '{poll.status.value}'.")
        return self._resolve(poll)
