"""
Text Splitting Module

This module computes where a document's text is cut into sections. It works on
the concatenated text of all pages and yields [start, end) windows that:
- Stay close to a maximum length
- End on a sentence boundary when one is near, otherwise on a word boundary
- Overlap the previous window to preserve context across cuts
- Avoid cutting an HTML table in half without repeating it in the next window

Key Components:
- TextSplitter: Abstract base class for splitting strategies
- SentenceTextSplitter: Sentence-aware splitter used for document ingestion
- find_page: Maps an absolute offset back to the page containing it
"""

import logging
from abc import ABC
from typing import Generator, Sequence, Set, Tuple

from .page import PageDetail

logger = logging.getLogger("scripts")

STANDARD_WORD_BREAKS: Set[str] = {",", ";", ":", " ", "(", ")", "[", "]", "{", "}", "\t", "\n"}

STANDARD_SENTENCE_ENDINGS: Set[str] = {".", "!", "?"}

DEFAULT_SECTION_LENGTH = 1000
DEFAULT_SENTENCE_SEARCH_LIMIT = 100
DEFAULT_SECTION_OVERLAP = 100


def find_page(pages: Sequence[PageDetail], offset: int) -> int:
    """
    Returns the index of the page whose [offset, next page offset) range contains
    the given offset. Anything past the start of the last page belongs to it.
    """
    num_pages = len(pages)
    for i in range(num_pages - 1):
        if offset >= pages[i].offset and offset < pages[i + 1].offset:
            return pages[i].index
    return pages[num_pages - 1].index


class TextSplitter(ABC):
    """
    Interface for strategies that cut a document's text into section windows.
    """

    def split_text(self, all_text: str) -> Generator[Tuple[int, int], None, None]:
        """
        Yields (start, end) windows over all_text, in increasing start order.
        """
        raise NotImplementedError


class SentenceTextSplitter(TextSplitter):
    """
    Splits text into overlapping windows while trying to respect sentence boundaries.

    Each window is at most max_section_length characters plus a forward search of
    up to sentence_search_limit characters for a sentence ending. Its start is then
    pulled back to the nearest sentence (or word) boundary, so a window may begin
    up to max_section_length + 2 * sentence_search_limit characters before its end.
    """

    def __init__(
        self,
        max_section_length: int = DEFAULT_SECTION_LENGTH,
        sentence_search_limit: int = DEFAULT_SENTENCE_SEARCH_LIMIT,
        section_overlap: int = DEFAULT_SECTION_OVERLAP,
    ):
        self.sentence_endings = STANDARD_SENTENCE_ENDINGS
        self.word_breaks = STANDARD_WORD_BREAKS
        self.max_section_length = max_section_length
        self.sentence_search_limit = sentence_search_limit
        self.section_overlap = section_overlap

    def find_end(self, all_text: str, start: int) -> int:
        length = len(all_text)
        last_word = -1
        end = start + self.max_section_length

        if end > length:
            end = length
        else:
            # Try to find the end of the sentence
            while (
                end < length
                and (end - start - self.max_section_length) < self.sentence_search_limit
                and all_text[end] not in self.sentence_endings
            ):
                if all_text[end] in self.word_breaks:
                    last_word = end
                end += 1

            if end < length and all_text[end] not in self.sentence_endings and last_word > 0:
                end = last_word  # Fall back to at least keeping a whole word

        if end < length:
            end += 1
        return end

    def find_start(self, all_text: str, start: int, end: int) -> int:
        last_word = -1
        while (
            start > 0
            and start > end - self.max_section_length - 2 * self.sentence_search_limit
            and all_text[start] not in self.sentence_endings
        ):
            if all_text[start] in self.word_breaks:
                last_word = start
            start -= 1

        if all_text[start] not in self.sentence_endings and last_word > 0:
            start = last_word
        if start > 0:
            start += 1
        return start

    def split_text(self, all_text: str) -> Generator[Tuple[int, int], None, None]:
        length = len(all_text)
        start = 0
        end = length

        while start + self.section_overlap < length:
            end = self.find_end(all_text, start)
            start = self.find_start(all_text, start, end)
            yield start, end

            section_text = all_text[start:end]
            last_table_start = section_text.rfind("<table")
            if last_table_start > 2 * self.sentence_search_limit and last_table_start > section_text.rfind("</table"):
                # A table starting within the search limit is not retried: it would never fit and loop forever
                logger.warning(
                    "Section ends with unclosed table, starting next section with the table at offset %d table start %d",
                    start,
                    last_table_start,
                )
                start = min(end - self.section_overlap, start + last_table_start)
            else:
                start = end - self.section_overlap

        if start + self.section_overlap < end:
            yield start, end
