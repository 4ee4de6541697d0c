# =============================================================================
# Shared fixtures
# =============================================================================
# Fakes for the SQS/SNS/Glacier collaborators. boto3 clients are replaced by
# MagicMock objects, so no test talks to AWS.
#
# Run: python -m pytest tests -v
# =============================================================================

import io
import json
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, ReadTimeoutError
from botocore.response import StreamingBody

from core.exceptions import ServiceError
from schemas.glacier_models import QueueConfig


QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/123456789012/glacier"
QUEUE_ARN = "arn:aws:sqs:us-east-1:123456789012:glacier"
TOPIC_ARN = "arn:aws:sns:us-east-1:123456789012:glacier"
SUBSCRIPTION_ARN = TOPIC_ARN + ":0d5c2b3e-1f1e-4c5e-9a39-5b0a2f0c7d11"


def client_error(code: str = "InternalError", message: str = "boom", status: int = 500, operation: str = "Op") -> ClientError:
    return ClientError(
        {"Error": {"Code": code, "Message": message}, "ResponseMetadata": {"HTTPStatusCode": status}},
        operation,
    )


def notification_message(job_id: str, status_code: str = "Succeeded", receipt: Optional[str] = None) -> Dict[str, Any]:
    """An SQS message as SNS delivers a Glacier job notification."""
    payload = {
        "Action": "InventoryRetrieval",
        "JobId": job_id,
        "StatusCode": status_code,
        "Completed": True,
        "VaultARN": "arn:aws:glacier:us-east-1:123456789012:vaults/photos",
    }
    envelope = {
        "Type": "Notification",
        "MessageId": f"msg-{job_id}",
        "TopicArn": TOPIC_ARN,
        "Message": json.dumps(payload),
    }
    return {
        "MessageId": f"sqs-{job_id}",
        "ReceiptHandle": receipt or f"rh-{job_id}",
        "Body": json.dumps(envelope),
    }


def streaming_body(data: bytes) -> StreamingBody:
    return StreamingBody(io.BytesIO(data), len(data))


class DroppedBody:
    """Job output body whose connection times out after the first piece."""

    def __init__(self, first: bytes = b'{"VaultARN":"photos",'):
        self.first = first
        self.closed = False

    def iter_lines(self, chunk_size: int = 1024, keepends: bool = False):
        yield self.first
        raise ReadTimeoutError(endpoint_url="https://glacier.us-east-1.amazonaws.com")

    def iter_chunks(self, chunk_size: int = 1024):
        yield self.first
        raise ReadTimeoutError(endpoint_url="https://glacier.us-east-1.amazonaws.com")

    def close(self) -> None:
        self.closed = True


class FakeQueueClient:
    """QueueClient stand-in returning scripted receive batches."""

    def __init__(self, batches: Optional[List[List[Dict[str, Any]]]] = None):
        self.batches = list(batches or [])
        self.receive_calls: List[tuple] = []
        self.deleted_messages: List[str] = []
        self.receive_error: Optional[Exception] = None

    def receive(self, queue_url: str, max_batch: int = 10, wait_seconds: int = 0):
        self.receive_calls.append((queue_url, max_batch))
        if self.receive_error is not None:
            raise self.receive_error
        if self.batches:
            return self.batches.pop(0)
        return []

    def delete_message(self, queue_url: str, receipt_handle: Optional[str]) -> None:
        self.deleted_messages.append(receipt_handle)


@pytest.fixture
def sqs_boto():
    client = MagicMock()
    client.create_queue.return_value = {"QueueUrl": QUEUE_URL}
    client.get_queue_attributes.return_value = {"Attributes": {"QueueArn": QUEUE_ARN}}
    client.receive_message.return_value = {}
    return client


@pytest.fixture
def sns_boto():
    client = MagicMock()
    client.create_topic.return_value = {"TopicArn": TOPIC_ARN}
    client.subscribe.return_value = {"SubscriptionArn": SUBSCRIPTION_ARN}
    return client


@pytest.fixture
def glacier_boto():
    client = MagicMock()
    client.initiate_job.return_value = {"jobId": "job-123", "location": "/-/vaults/photos/jobs/job-123"}
    client.get_job_output.return_value = {"body": streaming_body(b'{"VaultARN":"photos",\n"ArchiveList":[]}\n')}
    return client


@pytest.fixture
def full_config():
    return QueueConfig(
        queue_url=QUEUE_URL,
        queue_arn=QUEUE_ARN,
        topic_arn=TOPIC_ARN,
        subscription_arn=SUBSCRIPTION_ARN,
    )


@pytest.fixture
def service_error():
    return ServiceError("request failed", status=500, code="InternalError")
