"""
Corpus Blob Storage Module

Stores the flattened text of each page as a plain-text blob (the "corpus") and
keeps the processing status of the corpus in the container's metadata.
"""

import logging
import os
from enum import Enum
from typing import Mapping, Optional, Sequence, Union

from azure.core.credentials_async import AsyncTokenCredential
from azure.storage.blob import ContentSettings
from azure.storage.blob.aio import BlobServiceClient

from .page import PageDetail

logger = logging.getLogger("scripts")

STATUS_METADATA_KEY = "DocumentProcessingStatus"


class DocumentProcessingStatus(Enum):
    Default = 0
    Processing = 1
    Succeeded = 2
    Failed = 3


def status_from_metadata(
    metadata: Optional[Mapping[str, str]],
    key: str = STATUS_METADATA_KEY,
    default: DocumentProcessingStatus = DocumentProcessingStatus.Default,
) -> DocumentProcessingStatus:
    """
    Reads a DocumentProcessingStatus stored by name in blob metadata.
    Missing keys and unknown names give back the default.
    """
    value = (metadata or {}).get(key)
    if value is None or value not in DocumentProcessingStatus.__members__:
        return default
    return DocumentProcessingStatus[value]


def corpus_name_from_file_page(blob_name: str, page: int = 0) -> str:
    return f"{os.path.splitext(os.path.basename(blob_name))[0]}-{page}.txt"


class CorpusManager:
    """
    Manages the corpus container: one text blob per document page.

    Attributes:
        endpoint (str): The Azure Blob Storage endpoint URL
        container (str): The name of the corpus container
        credential (Union[AsyncTokenCredential, str]): Azure credentials or account key
    """

    def __init__(self, endpoint: str, container: str, credential: Union[AsyncTokenCredential, str]):
        self.endpoint = endpoint
        self.container = container
        self.credential = credential

    def create_service_client(self) -> BlobServiceClient:
        return BlobServiceClient(account_url=self.endpoint, credential=self.credential)

    async def upload_corpus(self, blob_name: str, pages: Sequence[PageDetail]) -> int:
        """
        Uploads the text of every page, skipping pages already in the container.

        Returns:
            int: Number of page blobs uploaded
        """
        uploaded = 0
        async with self.create_service_client() as service_client, service_client.get_container_client(
            self.container
        ) as container_client:
            if not await container_client.exists():
                await container_client.create_container()

            for page in pages:
                corpus_name = corpus_name_from_file_page(blob_name, page.index)
                blob_client = container_client.get_blob_client(corpus_name)
                if await blob_client.exists():
                    continue
                logger.info("Uploading corpus '%s'", corpus_name)
                await blob_client.upload_blob(
                    page.text.encode("utf-8"), content_settings=ContentSettings(content_type="text/plain")
                )
                uploaded += 1
        return uploaded

    async def get_status(self) -> DocumentProcessingStatus:
        async with self.create_service_client() as service_client, service_client.get_container_client(
            self.container
        ) as container_client:
            properties = await container_client.get_container_properties()
            return status_from_metadata(properties.metadata)

    async def set_status(self, status: DocumentProcessingStatus):
        async with self.create_service_client() as service_client, service_client.get_container_client(
            self.container
        ) as container_client:
            await container_client.set_container_metadata({STATUS_METADATA_KEY: status.name})
