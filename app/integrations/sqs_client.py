# app/integrations/sqs_client.py
import json
from typing import Any, Dict, List, Optional
from botocore.exceptions import BotoCoreError, ClientError
from core.logger import logger
from core.aws_client import get_sqs_client, to_service_error


class QueueClient:
    """Thin wrapper over the SQS API used as the job notification endpoint."""

    def __init__(self, client=None):
        self._sqs = client or get_sqs_client()

    def create_queue(self, name: str) -> str:
        """Create the queue (SQS returns the existing one for a known name) and return its URL."""
        try:
            resp = self._sqs.create_queue(QueueName=name)
        except (ClientError, BotoCoreError) as e:
            raise to_service_error(e, f"Creating SQS queue {name}") from e
        queue_url = resp["QueueUrl"]
        logger.info("SQS queue ready name=%s url=%s", name, queue_url)
        return queue_url

    def get_queue_arn(self, queue_url: str) -> str:
        try:
            resp = self._sqs.get_queue_attributes(QueueUrl=queue_url, AttributeNames=["QueueArn"])
        except (ClientError, BotoCoreError) as e:
            raise to_service_error(e, f"Reading attributes of {queue_url}") from e
        return resp["Attributes"]["QueueArn"]

    def set_policy(self, queue_url: str, policy: Dict[str, Any]) -> None:
        body = json.dumps(policy, separators=(",", ":"))
        try:
            self._sqs.set_queue_attributes(QueueUrl=queue_url, Attributes={"Policy": body})
        except (ClientError, BotoCoreError) as e:
            raise to_service_error(e, f"Setting access policy on {queue_url}") from e
        logger.debug("SQS policy installed url=%s policy=%s", queue_url, body)

    def receive(self, queue_url: str, max_batch: int = 10, wait_seconds: int = 0) -> List[Dict[str, Any]]:
        """Short-poll the queue; returns an empty list when nothing is available."""
        try:
            resp = self._sqs.receive_message(
                QueueUrl=queue_url,
                MaxNumberOfMessages=max_batch,
                WaitTimeSeconds=wait_seconds,
            )
        except (ClientError, BotoCoreError) as e:
            raise to_service_error(e, f"Receiving messages from {queue_url}") from e
        return resp.get("Messages", [])

    def delete_message(self, queue_url: str, receipt_handle: Optional[str]) -> None:
        if not receipt_handle:
            return
        try:
            self._sqs.delete_message(QueueUrl=queue_url, ReceiptHandle=receipt_handle)
        except (ClientError, BotoCoreError) as e:
            raise to_service_error(e, f"Deleting message from {queue_url}") from e

    def delete_queue(self, queue_url: str) -> None:
        try:
            self._sqs.delete_queue(QueueUrl=queue_url)
        except (ClientError, BotoCoreError) as e:
            raise to_service_error(e, f"Deleting SQS queue {queue_url}") from e
        logger.info("SQS queue deleted url=%s", queue_url)


def send_message_policy(queue_arn: str) -> Dict[str, Any]:
    """Policy letting any principal (SNS included) deliver into the given queue."""
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Sid": "AllowNotificationDelivery",
                "Effect": "Allow",
                "Principal": {"AWS": "*"},
                "Action": "SQS:SendMessage",
                "Resource": queue_arn,
            }
        ],
    }
