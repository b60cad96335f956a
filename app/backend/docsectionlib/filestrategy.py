import logging
import os
from typing import IO, List, Optional

from .blobmanager import CorpusManager, DocumentProcessingStatus
from .embeddings import ImageEmbeddings, TextEmbeddings
from .page import Section
from .parser import Parser
from .searchmanager import SearchManager
from .sections import create_image_section, create_sections
from .textsplitter import TextSplitter

logger = logging.getLogger("scripts")

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif"}
DOCUMENT_EXTENSIONS = {".pdf"}


class EmbedStrategy:
    """
    Ingests a single blob into the search index.

    For documents the pipeline is: analyze pages, upload the page corpus,
    split into sections, compute embeddings and index. Images become a single
    section carrying an image embedding.

    Attributes:
        parser (Parser): Turns document content into pages
        search_manager (SearchManager): Uploads sections to the index
        corpus_manager (Optional[CorpusManager]): Stores page text and processing status
        embeddings (Optional[TextEmbeddings]): Text embedding service
        image_embeddings (Optional[ImageEmbeddings]): Image embedding service
        splitter (Optional[TextSplitter]): Section window strategy
        category (Optional[str]): Category label for document sections
    """

    def __init__(
        self,
        parser: Parser,
        search_manager: SearchManager,
        corpus_manager: Optional[CorpusManager] = None,
        embeddings: Optional[TextEmbeddings] = None,
        image_embeddings: Optional[ImageEmbeddings] = None,
        splitter: Optional[TextSplitter] = None,
        category: Optional[str] = None,
    ):
        self.parser = parser
        self.search_manager = search_manager
        self.corpus_manager = corpus_manager
        self.embeddings = embeddings
        self.image_embeddings = image_embeddings
        self.splitter = splitter
        self.category = category

    async def embed_pdf_blob(self, content: IO, blob_name: str) -> List[Section]:
        logger.info("Embedding blob '%s'", blob_name)
        pages = [page async for page in self.parser.parse(content)]

        if self.corpus_manager:
            await self.corpus_manager.upload_corpus(blob_name, pages)

        sections = list(create_sections(pages, blob_name, splitter=self.splitter, category=self.category))
        if not sections:
            logger.info("No sections found in '%s', nothing to index", blob_name)
            return sections

        section_embeddings: Optional[List[List[float]]] = None
        if self.embeddings:
            section_embeddings = await self.embeddings.create_embeddings(
                [section.content.replace("\r", " ") for section in sections]
            )

        logger.info(
            "Indexing sections from '%s' into search index '%s'", blob_name, self.search_manager.search_info.index_name
        )
        await self.search_manager.update_content(sections, section_embeddings)
        return sections

    async def embed_image_blob(self, image_url: str, image_name: str) -> Section:
        if self.image_embeddings is None:
            raise ValueError("An image embeddings service is required to embed images")

        embedding = await self.image_embeddings.create_embedding(image_url)
        section = create_image_section(image_url, image_name)
        await self.search_manager.update_image(section, embedding)
        return section

    async def embed_blob(
        self, content: IO, blob_name: str, image_url: Optional[str] = None
    ) -> DocumentProcessingStatus:
        """
        Embeds a document or image blob, chosen by file extension, and records
        the outcome as the corpus processing status.

        Args:
            content: Blob content
            blob_name: Name of the blob
            image_url: URL the image embedding service reads images from

        Raises:
            ValueError: If the file type is not supported
        """
        status = DocumentProcessingStatus.Default
        extension = os.path.splitext(blob_name)[1].lower()
        try:
            if extension in IMAGE_EXTENSIONS:
                logger.info("Embedding image: %s", blob_name)
                await self.embed_image_blob(image_url or blob_name, blob_name)
            elif extension in DOCUMENT_EXTENSIONS:
                logger.info("Embedding pdf: %s", blob_name)
                await self.embed_pdf_blob(content, blob_name)
            else:
                raise ValueError(f"Unsupported file type: '{extension}'")
            status = DocumentProcessingStatus.Succeeded
        except Exception:
            logger.exception("Failed to embed blob '%s'", blob_name)
            status = DocumentProcessingStatus.Failed
            raise
        finally:
            if self.corpus_manager:
                await self.corpus_manager.set_status(status)
        return status
