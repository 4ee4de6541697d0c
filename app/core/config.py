# core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Literal, Optional


class Settings(BaseSettings):
    """
    Centralized application configuration.
    Values come from the environment or a local .env file.
    """

    # ------------------------------------------------------------
    # Project / Runtime
    # ------------------------------------------------------------
    PROJECT_NAME: str = "glacier-cli"
    DEBUG: bool = False

    # ------------------------------------------------------------
    # AWS Core
    # ------------------------------------------------------------
    AWS_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    AWS_SESSION_TOKEN: Optional[str] = None

    """
    botocore client tuning shared by the glacier, sqs and sns clients
    """
    AWS_CONNECT_TIMEOUT_SECS: int = 60
    AWS_READ_TIMEOUT_SECS: int = 300
    AWS_MAX_ATTEMPTS: int = 5

    # ------------------------------------------------------------
    # Inventory retrieval defaults
    # ------------------------------------------------------------
    GLACIER_DEFAULT_TOPIC: str = "glacier"
    GLACIER_DEFAULT_QUEUE: str = "glacier"
    GLACIER_DEFAULT_INVENTORY_FILE: str = "glacier.json"
    GLACIER_INVENTORY_FORMAT: Literal["JSON", "CSV"] = "JSON"

    """
    Append a random suffix to queue/topic names so that every invocation
    owns its own notification channel. Disable only when a single
    retrieval runs at a time against the given names.
    """
    INVENTORY_UNIQUE_NAMES: bool = True

    # ------------------------------------------------------------
    # Completion polling
    # ------------------------------------------------------------

    """
    Inventory jobs usually take hours; polling more often only burns
    SQS requests.
    """
    INVENTORY_POLL_INTERVAL_SECS: float = Field(
        default=600,
        ge=0,
        description="Delay between receive attempts that found no matching notification",
    )
    INVENTORY_POLL_BATCH_SIZE: int = Field(
        default=10,
        ge=1,
        le=10,
        description="Maximum messages requested per receive call (SQS caps this at 10)",
    )
    INVENTORY_POLL_BACKOFF: Literal["fixed", "exponential"] = "fixed"
    INVENTORY_POLL_BACKOFF_FACTOR: float = Field(default=2.0, ge=1.0)
    INVENTORY_POLL_MAX_INTERVAL_SECS: float = Field(default=3600, ge=0)
    INVENTORY_TIMEOUT_SECS: Optional[float] = Field(
        default=None,
        gt=0,
        description="Give up waiting for the job after this many seconds (unbounded when unset)",
    )

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
