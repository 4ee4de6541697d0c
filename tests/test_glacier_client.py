# =============================================================================
# Tests for the Glacier adapter, job request model and error translation
# =============================================================================

import pytest
from botocore.exceptions import EndpointConnectionError
from pydantic import ValidationError

from conftest import DroppedBody, client_error, streaming_body
from core.aws_client import to_service_error
from core.exceptions import ServiceError
from integrations.glacier_client import GlacierClient
from schemas.glacier_models import JobRequest, JobType


class TestJobRequest:

    def test_inventory_parameters(self):
        request = JobRequest(vault_name="photos", notification_topic_id="arn:topic")
        assert request.job_type == JobType.INVENTORY_RETRIEVAL
        assert request.to_job_parameters() == {
            "Type": "inventory-retrieval",
            "SNSTopic": "arn:topic",
            "Format": "JSON",
        }

    def test_archive_parameters(self):
        request = JobRequest(
            vault_name="photos",
            job_type=JobType.ARCHIVE_RETRIEVAL,
            notification_topic_id="arn:topic",
            archive_id="abc",
            output_format=None,
        )
        assert request.to_job_parameters() == {
            "Type": "archive-retrieval",
            "SNSTopic": "arn:topic",
            "ArchiveId": "abc",
        }

    def test_is_immutable(self):
        request = JobRequest(vault_name="photos", notification_topic_id="arn:topic")
        with pytest.raises(ValidationError):
            request.vault_name = "other"

    def test_archive_job_requires_archive_id(self):
        with pytest.raises(ValidationError):
            JobRequest(vault_name="photos", job_type=JobType.ARCHIVE_RETRIEVAL, notification_topic_id="arn:topic")

    def test_inventory_job_rejects_archive_id(self):
        with pytest.raises(ValidationError):
            JobRequest(vault_name="photos", notification_topic_id="arn:topic", archive_id="abc")


class TestToServiceError:

    def test_client_error_carries_status_and_code(self):
        error = to_service_error(client_error("ResourceNotFoundException", "Vault not found", 404), "Describing vault x")
        assert isinstance(error, ServiceError)
        assert error.status == 404
        assert error.code == "ResourceNotFoundException"
        assert "Vault not found" in str(error)

    def test_botocore_error_without_status(self):
        error = to_service_error(EndpointConnectionError(endpoint_url="https://glacier"), "Listing vaults")
        assert error.status is None
        assert error.message.startswith("Listing vaults failed")


class TestGlacierClient:

    def test_upload_sends_file_and_returns_archive_id(self, glacier_boto, tmp_path):
        archive = tmp_path / "backup.tar"
        archive.write_bytes(b"data")
        glacier_boto.upload_archive.return_value = {"archiveId": "archive-1"}

        assert GlacierClient(glacier_boto).upload("photos", str(archive)) == "archive-1"
        kwargs = glacier_boto.upload_archive.call_args.kwargs
        assert kwargs["vaultName"] == "photos"
        assert kwargs["archiveDescription"] == "backup.tar"

    def test_submit_inventory_job(self, glacier_boto):
        job_id = GlacierClient(glacier_boto).submit_inventory_job("photos", "arn:topic")
        assert job_id == "job-123"
        glacier_boto.initiate_job.assert_called_once_with(
            vaultName="photos",
            jobParameters={"Type": "inventory-retrieval", "SNSTopic": "arn:topic", "Format": "JSON"},
        )

    def test_fetch_job_output_joins_lines(self, glacier_boto, tmp_path):
        glacier_boto.get_job_output.return_value = {"body": streaming_body(b"line one\r\nline two\nline three")}
        dest = tmp_path / "out.txt"

        GlacierClient(glacier_boto).fetch_job_output("photos", "job-1", str(dest))
        assert dest.read_text(encoding="utf-8") == "line one\nline two\nline three"

    def test_interrupted_output_keeps_previous_file(self, glacier_boto, tmp_path):
        body = DroppedBody()
        glacier_boto.get_job_output.return_value = {"body": body}
        dest = tmp_path / "out.txt"
        dest.write_text("PREVIOUS GOOD INVENTORY", encoding="utf-8")

        with pytest.raises(ServiceError, match="Reading output of job job-1"):
            GlacierClient(glacier_boto).fetch_job_output("photos", "job-1", str(dest))

        assert dest.read_text(encoding="utf-8") == "PREVIOUS GOOD INVENTORY"
        assert [p.name for p in tmp_path.iterdir()] == ["out.txt"]
        assert body.closed

    def test_interrupted_archive_output_leaves_no_file(self, glacier_boto, tmp_path):
        glacier_boto.get_job_output.return_value = {"body": DroppedBody(b"\x00\x01")}

        with pytest.raises(ServiceError):
            GlacierClient(glacier_boto).fetch_archive_output("photos", "job-1", str(tmp_path / "a.bin"))
        assert list(tmp_path.iterdir()) == []

    def test_delete_error_becomes_service_error(self, glacier_boto):
        glacier_boto.delete_archive.side_effect = client_error("ResourceNotFoundException", status=404)
        with pytest.raises(ServiceError) as exc_info:
            GlacierClient(glacier_boto).delete("photos", "archive-1")
        assert exc_info.value.status == 404

    def test_list_vaults_walks_pages(self, glacier_boto):
        paginator = glacier_boto.get_paginator.return_value
        paginator.paginate.return_value = [
            {"VaultList": [{"VaultName": "a"}]},
            {"VaultList": [{"VaultName": "b"}]},
            {},
        ]
        vaults = GlacierClient(glacier_boto).list_vaults()
        assert [v["VaultName"] for v in vaults] == ["a", "b"]
        glacier_boto.get_paginator.assert_called_once_with("list_vaults")

    def test_describe_vault_drops_response_metadata(self, glacier_boto):
        glacier_boto.describe_vault.return_value = {"VaultName": "photos", "NumberOfArchives": 3, "ResponseMetadata": {}}
        assert GlacierClient(glacier_boto).describe_vault("photos") == {"VaultName": "photos", "NumberOfArchives": 3}
