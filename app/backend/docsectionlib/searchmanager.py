"""
Azure AI Search Upload Module

Turns Section objects into search documents and uploads them to an existing
Azure AI Search index. Creating or changing the index schema is done elsewhere.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from azure.core.credentials import AzureKeyCredential
from azure.core.credentials_async import AsyncTokenCredential
from azure.search.documents.aio import SearchClient

from .page import Section

logger = logging.getLogger("scripts")

FIELD_ID = "id"
FIELD_CONTENT = "content"
FIELD_CATEGORY = "category"
FIELD_SOURCE_PAGE = "sourcepage"
FIELD_SOURCE_FILE = "sourcefile"
FIELD_EMBEDDING = "embedding"
FIELD_IMAGE_EMBEDDING = "imageEmbedding"

MAX_BATCH_SIZE = 1000


class SearchInfo:
    """
    Connection details for an Azure AI Search index.

    Attributes:
        endpoint (str): The search service endpoint URL
        credential (Union[AsyncTokenCredential, AzureKeyCredential]): Authentication credential
        index_name (str): Name of the index sections are uploaded to
    """

    def __init__(
        self,
        endpoint: str,
        credential: Union[AsyncTokenCredential, AzureKeyCredential],
        index_name: str,
    ) -> None:
        self.endpoint = endpoint
        self.credential = credential
        self.index_name = index_name

    def create_search_client(self) -> SearchClient:
        return SearchClient(endpoint=self.endpoint, index_name=self.index_name, credential=self.credential)


def section_to_document(section: Section, embedding: Optional[List[float]] = None) -> Dict[str, Any]:
    return {
        FIELD_ID: section.id,
        FIELD_CONTENT: section.content,
        FIELD_CATEGORY: section.category,
        FIELD_SOURCE_PAGE: section.source_page,
        FIELD_SOURCE_FILE: section.source_file,
        FIELD_EMBEDDING: embedding,
    }


def image_section_to_document(section: Section, embedding: Optional[List[float]] = None) -> Dict[str, Any]:
    return {
        FIELD_ID: section.id,
        FIELD_CONTENT: section.content,
        FIELD_CATEGORY: section.category,
        FIELD_SOURCE_FILE: section.source_file,
        FIELD_IMAGE_EMBEDDING: embedding,
    }


class SearchManager:
    """
    Uploads sections to the search index in batches.
    """

    def __init__(self, search_info: SearchInfo):
        self.search_info = search_info

    async def update_content(self, sections: List[Section], embeddings: Optional[List[List[float]]] = None):
        """
        Merges or uploads the given sections into the index.

        Args:
            sections: Sections to index
            embeddings: Optional text embeddings, one per section, in the same order
        """
        logger.info("Indexing %d sections into search index '%s'", len(sections), self.search_info.index_name)
        async with self.search_info.create_search_client() as search_client:
            for batch_start in range(0, len(sections), MAX_BATCH_SIZE):
                batch = sections[batch_start : batch_start + MAX_BATCH_SIZE]
                documents = [
                    section_to_document(section, embeddings[batch_start + i] if embeddings else None)
                    for i, section in enumerate(batch)
                ]
                results = await search_client.merge_or_upload_documents(documents)
                succeeded = sum(1 for result in results if result.succeeded)
                logger.info("Indexed %d sections, %d succeeded", len(documents), succeeded)

    async def update_image(self, section: Section, embedding: List[float]):
        async with self.search_info.create_search_client() as search_client:
            await search_client.merge_or_upload_documents([image_section_to_document(section, embedding)])
