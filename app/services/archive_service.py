# services/archive_service.py
"""
Archive and vault operations behind the CLI commands.

Each archive operation prints a progress line, performs a single request
(or, for downloads, one archive-retrieval job) and reports the result.
Failures are re-raised as TransferError with the operation in the message.
"""

from typing import Any, Dict, List, Optional, Tuple

from core.exceptions import ConfigurationError, GlacierCliError, ServiceError, TransferError
from core.logger import logger
from integrations.glacier_client import GlacierClient
from services.inventory_coordinator import InventoryRetrievalCoordinator


class ArchiveService:
    """Upload, download and delete archives; manage vaults."""

    def __init__(
        self,
        glacier: Optional[GlacierClient] = None,
        coordinator: Optional[InventoryRetrievalCoordinator] = None,
    ):
        self.glacier = glacier or GlacierClient()
        self._coordinator = coordinator

    @property
    def coordinator(self) -> InventoryRetrievalCoordinator:
        # Built on first download only; the other commands never touch SQS/SNS
        if self._coordinator is None:
            self._coordinator = InventoryRetrievalCoordinator(glacier=self.glacier)
        return self._coordinator

    # ========================================================================
    # ARCHIVES
    # ========================================================================

    def upload(self, vault_name: str, path: str) -> str:
        msg = f"Uploading {path} to Glacier vault {vault_name}"
        logger.info(msg)
        try:
            archive_id = self.glacier.upload(vault_name, path)
        except (ServiceError, OSError) as e:
            raise TransferError(f"Error {msg[0].lower()}{msg[1:]}: {e}") from e
        logger.info(f"Uploaded {path}: {archive_id}")
        return archive_id

    def upload_many(self, vault_name: str, paths: List[str]) -> Tuple[Dict[str, str], Dict[str, str]]:
        """
        Upload every file independently.

        Returns (uploaded, failed): file -> archive id, file -> error message.
        """
        uploaded: Dict[str, str] = {}
        failed: Dict[str, str] = {}
        for path in paths:
            try:
                uploaded[path] = self.upload(vault_name, path)
            except TransferError as e:
                logger.error(str(e))
                failed[path] = str(e)
        logger.info(f"Upload finished: {len(uploaded)} succeeded, {len(failed)} failed")
        return uploaded, failed

    async def download(self, vault_name: str, archive_id: str, dest_path: str, **job_options) -> str:
        msg = f"Downloading {archive_id} from Glacier vault {vault_name}"
        logger.info(msg)
        try:
            path = await self.coordinator.retrieve_archive(vault_name, archive_id, dest_path, **job_options)
        except ConfigurationError:
            raise
        except GlacierCliError as e:
            raise TransferError(f"Error {msg[0].lower()}{msg[1:]}: {e}") from e
        logger.info(f"Downloaded archive {archive_id} to {path}")
        return path

    def delete(self, vault_name: str, archive_id: str) -> None:
        msg = f"Deleting {archive_id} from Glacier vault {vault_name}"
        logger.info(msg)
        try:
            self.glacier.delete(vault_name, archive_id)
        except ServiceError as e:
            raise TransferError(f"Error {msg[0].lower()}{msg[1:]}: {e}") from e
        logger.info(f"Deleted archive: {archive_id}")

    # ========================================================================
    # VAULTS
    # ========================================================================

    def create_vault(self, vault_name: str) -> str:
        location = self.glacier.create_vault(vault_name)
        logger.info(f"Created vault {vault_name}: {location}")
        return location

    def delete_vault(self, vault_name: str) -> None:
        self.glacier.delete_vault(vault_name)
        logger.info(f"Deleted vault {vault_name}")

    def describe_vault(self, vault_name: str) -> Dict[str, Any]:
        return self.glacier.describe_vault(vault_name)

    def list_vaults(self) -> List[Dict[str, Any]]:
        return self.glacier.list_vaults()
