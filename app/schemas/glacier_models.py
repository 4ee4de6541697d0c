# app/schemas/glacier_models.py
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Any, Dict, Optional
from enum import Enum


class JobType(str, Enum):
    """Glacier job types handled through the notification channel"""
    INVENTORY_RETRIEVAL = "inventory-retrieval"
    ARCHIVE_RETRIEVAL = "archive-retrieval"


class PollState(str, Enum):
    """Completion poller states; both MATCHED_* states are terminal"""
    WAITING = "waiting"
    MATCHED_SUCCESS = "matched_success"
    MATCHED_FAILURE = "matched_failure"


class JobRequest(BaseModel):
    """A job submission; immutable once built."""
    model_config = ConfigDict(frozen=True)

    vault_name: str = Field(..., min_length=1)
    job_type: JobType = JobType.INVENTORY_RETRIEVAL
    notification_topic_id: str = Field(..., min_length=1)
    archive_id: Optional[str] = None
    output_format: Optional[str] = "JSON"

    @model_validator(mode="after")
    def _archive_id_matches_type(self):
        if self.job_type == JobType.ARCHIVE_RETRIEVAL and not self.archive_id:
            raise ValueError("archive-retrieval jobs require an archive_id")
        if self.job_type == JobType.INVENTORY_RETRIEVAL and self.archive_id:
            raise ValueError("inventory-retrieval jobs do not take an archive_id")
        return self

    def to_job_parameters(self) -> Dict[str, Any]:
        """Render the `jobParameters` document expected by Glacier initiate_job."""
        params: Dict[str, Any] = {
            "Type": self.job_type.value,
            "SNSTopic": self.notification_topic_id,
        }
        if self.job_type == JobType.ARCHIVE_RETRIEVAL:
            params["ArchiveId"] = self.archive_id
        elif self.output_format:
            params["Format"] = self.output_format
        return params


class QueueConfig(BaseModel):
    """
    Identifiers of the transient notification channel of one retrieval.
    Populated step by step as provisioning succeeds; anything set here must
    be torn down before the retrieval returns.
    """
    queue_url: Optional[str] = None
    queue_arn: Optional[str] = None
    topic_arn: Optional[str] = None
    subscription_arn: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.queue_url or self.topic_arn or self.subscription_arn)


class JobNotification(BaseModel):
    """Job completion payload published by Glacier, unwrapped from its SNS envelope."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    job_id: str = Field(..., alias="JobId")
    status_code: str = Field(..., alias="StatusCode")
    action: Optional[str] = Field(None, alias="Action")
    vault_arn: Optional[str] = Field(None, alias="VaultARN")
    status_message: Optional[str] = Field(None, alias="StatusMessage")
    completed: Optional[bool] = Field(None, alias="Completed")
    receipt_handle: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status_code == "Succeeded"
