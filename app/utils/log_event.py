import json
from datetime import datetime, timezone
from core.logger import logger

FAILURE_EVENTS = ("job_failed", "teardown_incomplete", "retrieval_failed")


def log_job_event(
    event: str,
    vault_name: str = None,
    job_id: str = None,
    **fields
) -> None:
    """
    Structured logging for job lifecycle events (one JSON document per line).
    """
    log_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "vault": vault_name,
        "job_id": job_id,
    }
    log_data.update({key: value for key, value in fields.items() if value is not None})

    if event in FAILURE_EVENTS:
        logger.warning(json.dumps(log_data, default=str))
    else:
        logger.info(json.dumps(log_data, default=str))
