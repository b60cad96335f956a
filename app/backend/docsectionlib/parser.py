from abc import ABC
from typing import IO, AsyncGenerator

from .page import PageDetail


class Parser(ABC):
    """
    Abstract base class for anything that turns a document into a stream of pages.

    Concrete parsers yield PageDetail objects in page order, with running offsets
    into the concatenated document text, so the result can be handed straight to
    create_sections().

    Usage:
        class ConcreteParser(Parser):
            async def parse(self, content: IO) -> AsyncGenerator[PageDetail, None]:
                ...
    """

    async def parse(self, content: IO) -> AsyncGenerator[PageDetail, None]:
        """
        Parses document content into a stream of PageDetail objects.

        Args:
            content: An IO stream containing the document content to parse
        """
        if False:  # pragma: no cover - this is necessary for mypy to type check
            yield
