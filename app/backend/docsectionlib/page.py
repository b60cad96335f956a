from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PageDetail:
    """
    A single page of an analyzed document, with tables already flattened to HTML.

    The ordered list of PageDetail objects is what maps an absolute offset in the
    concatenated document text back to the page it came from.

    Attributes:
        index (int): Page number within the document (zero-based)
        offset (int): Character offset of this page in the full document text
        text (str): Flattened page text, tables replaced by HTML, trailing space appended

    Example:
        If a document contains two pages:
        - Page 1 text: "hello "
        - Page 2 text: "world "

        Then Page 2 would have:
        - index = 1
        - offset = 6 (length of "hello ")
        - text = "world "
    """

    index: int
    offset: int
    text: str


@dataclass(frozen=True)
class Section:
    """
    A bounded slice of a document's text, ready to be embedded and indexed.

    Attributes:
        id (str): Index key, restricted to letters, digits, "_" and "-"
        content (str): Section text
        category (Optional[str]): Optional category label
        source_page (str): Label of the page containing the start of the section
        source_file (str): Name of the blob the section came from
    """

    id: str
    content: str
    category: Optional[str]
    source_page: str
    source_file: str
