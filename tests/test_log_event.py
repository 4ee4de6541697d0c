import json
from unittest.mock import patch

from utils.log_event import log_job_event


@patch("utils.log_event.logger")
def test_success_events_log_json_at_info(mock_logger):
    log_job_event("job_submitted", "photos", "job-1", queue="https://sqs/q", ignored=None)

    payload = json.loads(mock_logger.info.call_args.args[0])
    assert payload["event"] == "job_submitted"
    assert payload["vault"] == "photos"
    assert payload["job_id"] == "job-1"
    assert payload["queue"] == "https://sqs/q"
    assert "ignored" not in payload
    mock_logger.warning.assert_not_called()


@patch("utils.log_event.logger")
def test_failure_events_log_at_warning(mock_logger):
    log_job_event("teardown_incomplete", failures=["delete queue q: boom"])

    payload = json.loads(mock_logger.warning.call_args.args[0])
    assert payload["failures"] == ["delete queue q: boom"]
    mock_logger.info.assert_not_called()
