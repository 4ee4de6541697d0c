# services/provisioner.py
"""
Notification Channel Provisioning

Creates the SQS queue + SNS topic + subscription that Glacier uses to
announce job completion, and removes them again.

Provisioning writes each identifier into the QueueConfig as soon as the
corresponding resource exists, so teardown always knows exactly what to
delete, whichever step failed.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional, Tuple

from core.exceptions import ProvisioningError, ServiceError, TeardownError
from core.logger import logger
from integrations.sns_client import TopicClient
from integrations.sqs_client import QueueClient, send_message_policy
from schemas.glacier_models import QueueConfig
from utils.log_event import log_job_event


class NotificationChannelProvisioner:
    """Owns queue/topic lifecycle for job completion notifications."""

    def __init__(
        self,
        queue_client: Optional[QueueClient] = None,
        topic_client: Optional[TopicClient] = None,
    ):
        self.queue_client = queue_client or QueueClient()
        self.topic_client = topic_client or TopicClient()

    # ========================================================================
    # PROVISIONING
    # ========================================================================

    def provision_queue(self, name: str, config: QueueConfig) -> Tuple[str, str]:
        """
        Create the queue, look up its ARN and allow SNS to deliver into it.

        Without the SendMessage policy SNS silently drops deliveries.
        """
        try:
            config.queue_url = self.queue_client.create_queue(name)
            config.queue_arn = self.queue_client.get_queue_arn(config.queue_url)
            self.queue_client.set_policy(config.queue_url, send_message_policy(config.queue_arn))
        except ServiceError as e:
            raise ProvisioningError(f"Could not provision queue {name}: {e}") from e
        return config.queue_url, config.queue_arn

    def provision_topic(self, name: str, queue_arn: str, config: QueueConfig) -> Tuple[str, str]:
        """Create the topic and subscribe the queue to it."""
        try:
            config.topic_arn = self.topic_client.create_topic(name)
            config.subscription_arn = self.topic_client.subscribe(config.topic_arn, queue_arn, "sqs")
        except ServiceError as e:
            raise ProvisioningError(f"Could not provision topic {name}: {e}") from e
        return config.topic_arn, config.subscription_arn

    # ========================================================================
    # TEARDOWN
    # ========================================================================

    def teardown(self, config: QueueConfig) -> None:
        """
        Unsubscribe, delete the topic, delete the queue.

        Every populated identifier gets its delete attempted, whatever happened
        to the previous step; failures are collected into one TeardownError.
        """
        failures: List[str] = []

        if _is_subscription_arn(config.subscription_arn):
            try:
                self.topic_client.unsubscribe(config.subscription_arn)
            except ServiceError as e:
                failures.append(f"unsubscribe {config.subscription_arn}: {e}")

        if config.topic_arn:
            try:
                self.topic_client.delete_topic(config.topic_arn)
            except ServiceError as e:
                failures.append(f"delete topic {config.topic_arn}: {e}")

        if config.queue_url:
            try:
                self.queue_client.delete_queue(config.queue_url)
            except ServiceError as e:
                failures.append(f"delete queue {config.queue_url}: {e}")

        if failures:
            raise TeardownError(failures)

    @asynccontextmanager
    async def channel(self, queue_name: str, topic_name: str) -> AsyncIterator[QueueConfig]:
        """
        Provision a notification channel for the duration of the block.

        Teardown runs on every way out of the block, cancellation included,
        and covers whatever part of the channel was created before a failure.
        """
        config = QueueConfig()
        try:
            self.provision_queue(queue_name, config)
            self.provision_topic(topic_name, config.queue_arn, config)
            logger.info(f"Notification channel ready: queue={config.queue_url} topic={config.topic_arn}")
            yield config
        finally:
            # Synchronous so a repeated cancellation cannot cut teardown short
            self._release(config)

    def _release(self, config: QueueConfig) -> None:
        if config.is_empty():
            return
        try:
            self.teardown(config)
            logger.info("Notification channel removed")
        except TeardownError as e:
            # Never masks the exception (if any) that ended the block
            logger.error(f"Leaked notification resources, delete them manually: {e}")
            log_job_event("teardown_incomplete", failures=e.failures)


def _is_subscription_arn(value: Optional[str]) -> bool:
    # Cross-account subscriptions come back as "pending confirmation"
    return bool(value) and value.startswith("arn:")
