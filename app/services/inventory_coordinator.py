# services/inventory_coordinator.py
"""
Inventory Retrieval Coordinator

Turns Glacier's asynchronous jobs into one awaitable call:

    provision queue -> provision topic + subscription -> initiate job
    -> wait for the job's notification -> fetch output -> tear down

The same flow backs archive downloads (archive-retrieval jobs); only the
job parameters and the output handling differ.
"""

import asyncio
from typing import Callable, Optional
from uuid import uuid4

from pydantic import ValidationError

from core.config import settings
from core.exceptions import (
    ConfigurationError,
    RetrievalError,
    ServiceError,
    SubmissionError,
)
from core.logger import logger
from integrations.glacier_client import GlacierClient
from schemas.glacier_models import JobRequest, JobType, QueueConfig
from services.completion_poller import CompletionPoller
from services.provisioner import NotificationChannelProvisioner
from utils.log_event import log_job_event


def unique_name(base: str) -> str:
    """Suffix a queue/topic name so concurrent runs never share a channel."""
    return f"{base}-{uuid4().hex[:8]}"


class InventoryRetrievalCoordinator:
    """Runs one retrieval job end to end over a private notification channel."""

    def __init__(
        self,
        glacier: Optional[GlacierClient] = None,
        provisioner: Optional[NotificationChannelProvisioner] = None,
        poller: Optional[CompletionPoller] = None,
        unique_names: Optional[bool] = None,
    ):
        """Initialize with dependency injection."""
        self.glacier = glacier or GlacierClient()
        self.provisioner = provisioner or NotificationChannelProvisioner()
        self.poller = poller or CompletionPoller(self.provisioner.queue_client)
        self.unique_names = settings.INVENTORY_UNIQUE_NAMES if unique_names is None else unique_names

    async def inventory(
        self,
        vault_name: str,
        topic_name: Optional[str] = None,
        queue_name: Optional[str] = None,
        dest_path: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """
        Retrieve the inventory of `vault_name` into `dest_path`.

        Returns the path written. Raises ConfigurationError for a bad request
        before anything is provisioned, then ProvisioningError, SubmissionError or
        RetrievalError; the notification channel is removed in every case.
        """
        dest_path = dest_path or settings.GLACIER_DEFAULT_INVENTORY_FILE
        logger.info(f"Requesting inventory from Glacier vault {vault_name}. It might take around 4 hours.")

        return await self._run_job(
            vault_name=vault_name,
            topic_name=topic_name,
            queue_name=queue_name,
            timeout=timeout,
            build_request=lambda topic_arn: JobRequest(
                vault_name=vault_name,
                job_type=JobType.INVENTORY_RETRIEVAL,
                notification_topic_id=topic_arn,
                output_format=settings.GLACIER_INVENTORY_FORMAT,
            ),
            fetch=lambda job_id: self.glacier.fetch_job_output(vault_name, job_id, dest_path),
        )

    async def retrieve_archive(
        self,
        vault_name: str,
        archive_id: str,
        dest_path: str,
        topic_name: Optional[str] = None,
        queue_name: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """Retrieve one archive's content into `dest_path` through an archive-retrieval job."""
        logger.info(f"Requesting archive {archive_id} from Glacier vault {vault_name}. It might take several hours.")

        return await self._run_job(
            vault_name=vault_name,
            topic_name=topic_name,
            queue_name=queue_name,
            timeout=timeout,
            build_request=lambda topic_arn: JobRequest(
                vault_name=vault_name,
                job_type=JobType.ARCHIVE_RETRIEVAL,
                notification_topic_id=topic_arn,
                archive_id=archive_id,
                output_format=None,
            ),
            fetch=lambda job_id: self.glacier.fetch_archive_output(vault_name, job_id, dest_path),
        )

    # ========================================================================
    # FLOW
    # ========================================================================

    async def _run_job(
        self,
        vault_name: str,
        topic_name: Optional[str],
        queue_name: Optional[str],
        timeout: Optional[float],
        build_request: Callable[[str], JobRequest],
        fetch: Callable[[str], str],
    ) -> str:
        topic_name = self._channel_name(topic_name or settings.GLACIER_DEFAULT_TOPIC)
        queue_name = self._channel_name(queue_name or settings.GLACIER_DEFAULT_QUEUE)
        if timeout is None:
            timeout = settings.INVENTORY_TIMEOUT_SECS

        # Reject bad arguments before anything is provisioned
        try:
            build_request("arn:aws:sns:pending")
        except ValidationError as e:
            messages = "; ".join(error["msg"] for error in e.errors())
            raise ConfigurationError(f"Invalid job request for vault '{vault_name}': {messages}") from e

        async with self.provisioner.channel(queue_name, topic_name) as config:
            request = build_request(config.topic_arn)
            job_id = self._submit(request)
            log_job_event("job_submitted", vault_name, job_id, job_type=request.job_type.value, queue=config.queue_url)

            await self._await_completion(vault_name, job_id, config, timeout)

            try:
                path = await asyncio.to_thread(fetch, job_id)
            except (ServiceError, OSError, UnicodeDecodeError) as e:
                log_job_event("retrieval_failed", vault_name, job_id, error=str(e))
                raise RetrievalError(f"Could not fetch output of job {job_id}: {e}") from e

        log_job_event("job_output_saved", vault_name, job_id, path=path)
        logger.info(f"Retrieved job {job_id} output to {path}")
        return path

    def _submit(self, request: JobRequest) -> str:
        try:
            job_id = self.glacier.submit_job(request)
        except ServiceError as e:
            raise SubmissionError(f"Glacier rejected the {request.job_type.value} job for vault {request.vault_name}: {e}") from e
        logger.info(f"Jobid = {job_id}")
        return job_id

    async def _await_completion(
        self,
        vault_name: str,
        job_id: str,
        config: QueueConfig,
        timeout: Optional[float],
    ) -> None:
        try:
            if timeout:
                succeeded = await asyncio.wait_for(self.poller.wait_for_job(config.queue_url, job_id), timeout)
            else:
                succeeded = await self.poller.wait_for_job(config.queue_url, job_id)
        except asyncio.TimeoutError as e:
            log_job_event("job_failed", vault_name, job_id, reason="timeout", timeout_secs=timeout)
            raise RetrievalError(f"Job {job_id} did not complete within {timeout:.0f}s") from e
        except ServiceError as e:
            log_job_event("job_failed", vault_name, job_id, reason="poll_error", error=str(e))
            raise RetrievalError(f"Lost track of job {job_id} while polling {config.queue_url}: {e}") from e

        if not succeeded:
            log_job_event("job_failed", vault_name, job_id, reason="status")
            raise RetrievalError(f"Job {job_id} did not complete successfully.")
        log_job_event("job_completed", vault_name, job_id)

    def _channel_name(self, base: str) -> str:
        return unique_name(base) if self.unique_names else base
