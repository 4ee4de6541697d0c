# core/aws_client.py
"""
Centralized AWS client factory to ensure proper credential handling.
This module creates AWS clients with explicit credential configuration.
"""
import boto3
from botocore.config import Config
from botocore.exceptions import ClientError
from core.config import settings
from core.exceptions import ServiceError
from core.logger import logger
import os


def _credentials():
    """Resolve credentials from settings (which loads from .env) or environment."""
    return {
        "aws_access_key_id": getattr(settings, 'AWS_ACCESS_KEY_ID', None) or os.getenv('AWS_ACCESS_KEY_ID'),
        "aws_secret_access_key": getattr(settings, 'AWS_SECRET_ACCESS_KEY', None) or os.getenv('AWS_SECRET_ACCESS_KEY'),
        "aws_session_token": getattr(settings, 'AWS_SESSION_TOKEN', None) or os.getenv('AWS_SESSION_TOKEN'),
    }


def _client_config() -> Config:
    return Config(
        read_timeout=settings.AWS_READ_TIMEOUT_SECS,
        connect_timeout=settings.AWS_CONNECT_TIMEOUT_SECS,
        retries={'max_attempts': settings.AWS_MAX_ATTEMPTS, 'mode': 'standard'}
    )


def get_glacier_client(region: str = None):
    """Get Glacier client with proper credentials."""
    try:
        client = boto3.client(
            "glacier",
            region_name=region or settings.AWS_REGION,
            config=_client_config(),
            **_credentials()
        )
        logger.debug("Glacier client initialized with credentials")
        return client
    except Exception as e:
        logger.error(f"Failed to initialize Glacier client: {str(e)}")
        raise


def get_sqs_client(region: str = None):
    """Get SQS client with proper credentials."""
    try:
        client = boto3.client(
            "sqs",
            region_name=region or settings.AWS_REGION,
            config=_client_config(),
            **_credentials()
        )
        logger.debug("SQS client initialized with credentials")
        return client
    except Exception as e:
        logger.error(f"Failed to initialize SQS client: {str(e)}")
        raise


def get_sns_client(region: str = None):
    """Get SNS client with proper credentials."""
    try:
        client = boto3.client(
            "sns",
            region_name=region or settings.AWS_REGION,
            config=_client_config(),
            **_credentials()
        )
        logger.debug("SNS client initialized with credentials")
        return client
    except Exception as e:
        logger.error(f"Failed to initialize SNS client: {str(e)}")
        raise


def validate_aws_credentials():
    """Validate that AWS credentials are configured somewhere boto3 can find them."""
    creds = _credentials()
    if creds["aws_access_key_id"] and creds["aws_secret_access_key"]:
        logger.debug("AWS credentials found in settings/environment")
        return True

    # Fall back to the default chain (~/.aws/credentials, instance profile, ...)
    if boto3.Session().get_credentials() is not None:
        logger.debug("AWS credentials found in the default credential chain")
        return True

    logger.warning("Missing AWS credentials in settings, environment and AWS config files")
    logger.info("AWS credentials not found. Make sure to set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY in .env file, "
                "or configure AWS CLI with 'aws configure'")
    return False


def to_service_error(error: Exception, action: str) -> ServiceError:
    """Translate a botocore failure into a ServiceError carrying status and code."""
    if isinstance(error, ClientError):
        details = error.response.get("Error", {})
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        code = details.get("Code")
        message = details.get("Message") or str(error)
        logger.error(f"{action} failed: {code} (HTTP {status}) {message}")
        return ServiceError(f"{action} failed: {message}", status=status, code=code)

    logger.error(f"{action} failed: {error}")
    return ServiceError(f"{action} failed: {error}")
