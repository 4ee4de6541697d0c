# services/completion_poller.py
"""
Job Completion Poller

Waits on the notification queue for the SNS message Glacier publishes when
a job finishes, correlated by job id.

SQS message body layout (two JSON documents, the inner one as a string):

    {"Type": "Notification", ..., "Message": "{\"JobId\": \"...\", \"StatusCode\": \"Succeeded\", ...}"}

The loop short-polls (no long-poll wait) and sleeps between empty rounds.
It has no deadline of its own; it is a coroutine, so cancelling the task
or wrapping it in asyncio.wait_for stops it at the next await.
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Tuple

from pydantic import ValidationError

from core.config import settings
from core.exceptions import MalformedNotificationError, ServiceError
from core.logger import logger
from schemas.glacier_models import JobNotification, PollState


# ============================================================================
# DECODING
# ============================================================================

def decode_notification(body: str, receipt_handle: Optional[str] = None) -> JobNotification:
    """Unwrap the SNS delivery envelope and parse the Glacier job payload inside it."""
    try:
        envelope = json.loads(body)
    except (TypeError, ValueError) as e:
        raise MalformedNotificationError(f"Message body is not JSON: {e}") from e

    if not isinstance(envelope, dict):
        raise MalformedNotificationError("Message body is not a JSON object")
    inner = envelope.get("Message")
    if not isinstance(inner, str):
        raise MalformedNotificationError("Envelope has no string 'Message' field")

    try:
        payload = json.loads(inner)
    except ValueError as e:
        raise MalformedNotificationError(f"Envelope 'Message' is not JSON: {e}") from e

    if not isinstance(payload, dict):
        raise MalformedNotificationError("Envelope 'Message' is not a JSON object")

    try:
        return JobNotification.model_validate({**payload, "receipt_handle": receipt_handle})
    except ValidationError as e:
        raise MalformedNotificationError(f"Notification lacks JobId/StatusCode: {e}") from e


def scan_batch(
    messages: List[Dict[str, Any]],
    job_id: str,
) -> Tuple[PollState, Optional[JobNotification]]:
    """
    Look for the notification of `job_id` in one received batch.

    The first matching message decides the state and stops the scan; other
    jobs' notifications and undecodable messages are skipped untouched.
    """
    for message in messages:
        try:
            notification = decode_notification(message.get("Body", ""), message.get("ReceiptHandle"))
        except MalformedNotificationError as e:
            logger.warning(f"Skipping message {message.get('MessageId', '?')}: {e}")
            continue

        if notification.job_id != job_id:
            logger.debug(f"Ignoring notification for job {notification.job_id}")
            continue

        if notification.succeeded:
            return PollState.MATCHED_SUCCESS, notification
        return PollState.MATCHED_FAILURE, notification

    return PollState.WAITING, None


# ============================================================================
# WAIT STRATEGIES
# ============================================================================

class WaitStrategy(Protocol):
    """Delay, in seconds, before receive attempt number `attempt + 1`."""

    def delay(self, attempt: int) -> float:
        ...


class FixedWait:
    """Same delay between every attempt."""

    def __init__(self, interval: float):
        self.interval = interval

    def delay(self, attempt: int) -> float:
        return self.interval


class ExponentialWait:
    """Delay grows by `factor` per attempt, capped at `maximum`."""

    def __init__(self, initial: float, factor: float = 2.0, maximum: float = 3600):
        self.initial = initial
        self.factor = factor
        self.maximum = maximum

    def delay(self, attempt: int) -> float:
        return min(self.initial * (self.factor ** attempt), self.maximum)


def wait_strategy_from_settings() -> WaitStrategy:
    if settings.INVENTORY_POLL_BACKOFF == "exponential":
        return ExponentialWait(
            initial=settings.INVENTORY_POLL_INTERVAL_SECS,
            factor=settings.INVENTORY_POLL_BACKOFF_FACTOR,
            maximum=settings.INVENTORY_POLL_MAX_INTERVAL_SECS,
        )
    return FixedWait(settings.INVENTORY_POLL_INTERVAL_SECS)


# ============================================================================
# POLLER
# ============================================================================

class CompletionPoller:
    """Blocks (asynchronously) until the expected job's notification shows up."""

    def __init__(
        self,
        queue_client,
        wait_strategy: Optional[WaitStrategy] = None,
        batch_size: Optional[int] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.queue_client = queue_client
        self.wait_strategy = wait_strategy or wait_strategy_from_settings()
        self.batch_size = batch_size or settings.INVENTORY_POLL_BATCH_SIZE
        self._sleep = sleep
        self.state = PollState.WAITING

    async def wait_for_job(self, queue_url: str, job_id: str) -> bool:
        """Return True if the job succeeded, False if it completed with any other status."""
        self.state = PollState.WAITING
        loop = asyncio.get_running_loop()
        started = loop.time()
        attempt = 0

        while self.state == PollState.WAITING:
            elapsed_minutes = int((loop.time() - started) // 60)
            logger.info(f"Checking for messages: {elapsed_minutes} minutes elapsed")

            messages = await asyncio.to_thread(self.queue_client.receive, queue_url, self.batch_size)
            if messages:
                self.state, notification = scan_batch(messages, job_id)
                if self.state != PollState.WAITING:
                    await self._acknowledge(queue_url, notification)
                    break

            delay = self.wait_strategy.delay(attempt)
            attempt += 1
            logger.debug(f"No notification for job {job_id} yet, sleeping {delay:.0f}s")
            await self._sleep(delay)

        logger.info(f"Job {job_id} finished with state {self.state.value}")
        return self.state == PollState.MATCHED_SUCCESS

    async def _acknowledge(self, queue_url: str, notification: JobNotification) -> None:
        """Remove the consumed notification; the queue is about to go away anyway."""
        try:
            await asyncio.to_thread(self.queue_client.delete_message, queue_url, notification.receipt_handle)
        except ServiceError as e:
            logger.warning(f"Could not delete notification for job {notification.job_id}: {e}")
