# app/integrations/glacier_client.py
"""
Archive Store adapter over the boto3 Glacier client.

Every SDK failure leaves this module as a ServiceError; callers decide
which flow error (TransferError, SubmissionError, RetrievalError) it
becomes.
"""
import os
import tempfile
from typing import IO, Any, Callable, Dict, Iterator, List
from botocore.exceptions import BotoCoreError, ClientError
from core.logger import logger
from core.aws_client import get_glacier_client, to_service_error
from schemas.glacier_models import JobRequest, JobType

OUTPUT_CHUNK_SIZE = 1024 * 1024


class GlacierClient:
    """Request/response calls against one region's Glacier endpoint."""

    def __init__(self, client=None):
        self._glacier = client or get_glacier_client()

    # ------------------------------------------------------------
    # Archives
    # ------------------------------------------------------------

    def upload(self, vault_name: str, path: str) -> str:
        """Upload a file as a single archive; the description is the file name."""
        try:
            with open(path, "rb") as body:
                resp = self._glacier.upload_archive(
                    vaultName=vault_name,
                    archiveDescription=os.path.basename(path),
                    body=body,
                )
        except (ClientError, BotoCoreError) as e:
            raise to_service_error(e, f"Uploading {path} to vault {vault_name}") from e
        return resp["archiveId"]

    def delete(self, vault_name: str, archive_id: str) -> None:
        try:
            self._glacier.delete_archive(vaultName=vault_name, archiveId=archive_id)
        except (ClientError, BotoCoreError) as e:
            raise to_service_error(e, f"Deleting archive {archive_id} from vault {vault_name}") from e

    # ------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------

    def submit_job(self, request: JobRequest) -> str:
        try:
            resp = self._glacier.initiate_job(
                vaultName=request.vault_name,
                jobParameters=request.to_job_parameters(),
            )
        except (ClientError, BotoCoreError) as e:
            raise to_service_error(e, f"Initiating {request.job_type.value} job on vault {request.vault_name}") from e
        job_id = resp["jobId"]
        logger.info("Glacier job submitted vault=%s type=%s job_id=%s", request.vault_name, request.job_type.value, job_id)
        return job_id

    def submit_inventory_job(self, vault_name: str, topic_arn: str, output_format: str = "JSON") -> str:
        return self.submit_job(JobRequest(
            vault_name=vault_name,
            job_type=JobType.INVENTORY_RETRIEVAL,
            notification_topic_id=topic_arn,
            output_format=output_format,
        ))

    def fetch_job_output(self, vault_name: str, job_id: str, dest_path: str) -> str:
        """
        Stream a text job output (inventory) to dest_path, line by line.

        dest_path is only replaced once the whole body has been read.
        """
        body = self._open_job_output(vault_name, job_id)

        def write(out):
            for index, line in enumerate(body.iter_lines()):
                if index:
                    out.write("\n")
                out.write(line.decode("utf-8"))

        return self._save_output(body, job_id, dest_path, write, mode="w", encoding="utf-8")

    def fetch_archive_output(self, vault_name: str, job_id: str, dest_path: str) -> str:
        """Stream a binary job output (archive retrieval) to dest_path."""
        body = self._open_job_output(vault_name, job_id)

        def write(out):
            for chunk in body.iter_chunks(chunk_size=OUTPUT_CHUNK_SIZE):
                out.write(chunk)

        return self._save_output(body, job_id, dest_path, write, mode="wb")

    def _save_output(self, body, job_id: str, dest_path: str, write: Callable[[IO], None], **open_args) -> str:
        # Write next to dest_path so os.replace stays on one filesystem
        directory = os.path.dirname(os.path.abspath(dest_path))
        tmp = None
        try:
            tmp = tempfile.NamedTemporaryFile(dir=directory, prefix=".glacier-", suffix=".part", delete=False, **open_args)
            with tmp:
                write(tmp)
            os.replace(tmp.name, dest_path)
        except (ClientError, BotoCoreError) as e:
            raise to_service_error(e, f"Reading output of job {job_id}") from e
        finally:
            body.close()
            if tmp is not None and os.path.exists(tmp.name):
                os.remove(tmp.name)
        return dest_path

    def _open_job_output(self, vault_name: str, job_id: str):
        try:
            resp = self._glacier.get_job_output(vaultName=vault_name, jobId=job_id)
        except (ClientError, BotoCoreError) as e:
            raise to_service_error(e, f"Fetching output of job {job_id} from vault {vault_name}") from e
        return resp["body"]

    # ------------------------------------------------------------
    # Vaults
    # ------------------------------------------------------------

    def create_vault(self, vault_name: str) -> str:
        try:
            resp = self._glacier.create_vault(vaultName=vault_name)
        except (ClientError, BotoCoreError) as e:
            raise to_service_error(e, f"Creating vault {vault_name}") from e
        return resp.get("location", "")

    def delete_vault(self, vault_name: str) -> None:
        try:
            self._glacier.delete_vault(vaultName=vault_name)
        except (ClientError, BotoCoreError) as e:
            raise to_service_error(e, f"Deleting vault {vault_name}") from e

    def describe_vault(self, vault_name: str) -> Dict[str, Any]:
        try:
            resp = self._glacier.describe_vault(vaultName=vault_name)
        except (ClientError, BotoCoreError) as e:
            raise to_service_error(e, f"Describing vault {vault_name}") from e
        resp.pop("ResponseMetadata", None)
        return resp

    def list_vaults(self) -> List[Dict[str, Any]]:
        return list(self._iter_vaults())

    def _iter_vaults(self) -> Iterator[Dict[str, Any]]:
        try:
            for page in self._glacier.get_paginator("list_vaults").paginate():
                yield from page.get("VaultList", [])
        except (ClientError, BotoCoreError) as e:
            raise to_service_error(e, "Listing vaults") from e
