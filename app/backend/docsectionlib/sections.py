import logging
import re
from typing import Generator, Optional, Sequence

from .page import PageDetail, Section
from .textsplitter import SentenceTextSplitter, TextSplitter, find_page

logger = logging.getLogger("scripts")

CATEGORY_DOCS = "docs"
CATEGORY_IMAGES = "image"

# Search index keys can only contain letters, digits, underscore, dash or equal sign
INVALID_ID_CHARS = re.compile("[^0-9a-zA-Z_-]")


def sanitize_id(value: str) -> str:
    return INVALID_ID_CHARS.sub("_", value).lstrip("_")


def source_page_from_file_page(blob_name: str, page: int = 0) -> str:
    """
    Returns the citation label for a page of a blob.

    Documents are cited by blob name only, so the page is not part of the label.
    """
    return blob_name


def create_sections(
    pages: Sequence[PageDetail],
    blob_name: str,
    splitter: Optional[TextSplitter] = None,
    category: Optional[str] = None,
) -> Generator[Section, None, None]:
    """
    Splits the pages of a document into sections ready for indexing.

    Sections are produced lazily, in increasing start offset. Iterating again
    requires calling this function again.

    Args:
        pages: Pages of the document, in order, with their running offsets
        blob_name: Name of the source blob, used for ids and citations
        splitter: Window strategy, SentenceTextSplitter by default
        category: Optional category stored on every section

    Yields:
        Section objects, one per window
    """
    splitter = splitter or SentenceTextSplitter()
    all_text = "".join(page.text for page in pages)

    logger.info("Splitting '%s' into sections", blob_name)

    for start, end in splitter.split_text(all_text):
        yield Section(
            id=sanitize_id(f"{blob_name}-{start}"),
            content=all_text[start:end],
            category=category,
            source_page=source_page_from_file_page(blob_name, find_page(pages, start)),
            source_file=blob_name,
        )


def create_image_section(image_url: str, image_name: str) -> Section:
    return Section(
        id=sanitize_id(image_url),
        content=image_name,
        category=CATEGORY_IMAGES,
        source_page=image_url,
        source_file=image_url,
    )
