import html
import logging
from typing import IO, AsyncGenerator, Generator, List, Sequence, Union

from azure.ai.documentintelligence.aio import DocumentIntelligenceClient
from azure.ai.documentintelligence.models import AnalyzeResult, DocumentSpan, DocumentTable
from azure.core.credentials import AzureKeyCredential
from azure.core.credentials_async import AsyncTokenCredential

from .page import PageDetail
from .parser import Parser

logger = logging.getLogger("scripts")

# Marker for page characters that do not belong to any table
NO_TABLE = -1


def table_to_html(table: DocumentTable) -> str:
    """
    Converts a Document Intelligence table to HTML.

    Rows are emitted in row order and cells within a row by column index.
    Header cells (column or row headers) become <th>, everything else <td>.
    Spans are only written when greater than one, and cell content is escaped.
    """
    table_html = "<table>"
    rows = [
        sorted([cell for cell in table.cells if cell.row_index == i], key=lambda cell: cell.column_index)
        for i in range(table.row_count)
    ]
    for row_cells in rows:
        table_html += "<tr>"
        for cell in row_cells:
            tag = "th" if (cell.kind == "columnHeader" or cell.kind == "rowHeader") else "td"
            cell_spans = ""
            if cell.column_span is not None and cell.column_span > 1:
                cell_spans += f' colSpan="{cell.column_span}"'
            if cell.row_span is not None and cell.row_span > 1:
                cell_spans += f' rowSpan="{cell.row_span}"'
            table_html += f"<{tag}{cell_spans}>{html.escape(cell.content)}</{tag}>"
        table_html += "</tr>"
    table_html += "</table>"
    return table_html


def mark_table_chars(page_span: DocumentSpan, tables_on_page: Sequence[DocumentTable]) -> List[int]:
    """
    Returns one slot per page character holding the index of the table covering it,
    or NO_TABLE. Tables and spans are applied in list order, so a later span
    overwrites an earlier one where they overlap.
    """
    page_offset = page_span.offset
    page_length = page_span.length
    table_chars = [NO_TABLE] * page_length
    for table_id, table in enumerate(tables_on_page):
        for span in table.spans:
            for i in range(span.length):
                idx = span.offset - page_offset + i
                if idx >= 0 and idx < page_length:
                    table_chars[idx] = table_id
    return table_chars


def flatten_page_text(content: str, page_span: DocumentSpan, tables_on_page: Sequence[DocumentTable]) -> str:
    """
    Builds the text of one page, replacing every table's characters with the
    table's HTML. Each table is rendered once, where its first character is,
    even when its spans are not contiguous. A trailing space keeps the last word
    of the page from running into the first word of the next one.
    """
    table_chars = mark_table_chars(page_span, tables_on_page)
    page_text = ""
    added_tables = set()
    for idx, table_id in enumerate(table_chars):
        if table_id == NO_TABLE:
            page_text += content[page_span.offset + idx]
        elif table_id not in added_tables:
            page_text += table_to_html(tables_on_page[table_id])
            added_tables.add(table_id)
    page_text += " "
    return page_text


def page_details_from_result(result: AnalyzeResult) -> Generator[PageDetail, None, None]:
    """
    Flattens every page of an analysis result, in page order, and yields
    PageDetail objects carrying their offset into the concatenated text.
    """
    offset = 0
    for index, page in enumerate(result.pages):
        # bounding regions use 1-based page numbers
        tables_on_page = [
            table
            for table in (result.tables or [])
            if table.bounding_regions and table.bounding_regions[0].page_number == index + 1
        ]
        page_text = flatten_page_text(result.content, page.spans[0], tables_on_page)
        yield PageDetail(index=index, offset=offset, text=page_text)
        offset += len(page_text)


class DocumentAnalysisParser(Parser):
    """
    Parser implementation using Azure AI Document Intelligence.

    The layout model detects tables, which are flattened into inline HTML so that
    the section splitter can keep them together.
    """

    def __init__(
        self, endpoint: str, credential: Union[AsyncTokenCredential, AzureKeyCredential], model_id="prebuilt-layout"
    ):
        self.model_id = model_id
        self.endpoint = endpoint
        self.credential = credential

    async def analyze(self, content: IO) -> AnalyzeResult:
        async with DocumentIntelligenceClient(
            endpoint=self.endpoint, credential=self.credential
        ) as document_intelligence_client:
            poller = await document_intelligence_client.begin_analyze_document(
                self.model_id, content, content_type="application/octet-stream"
            )
            return await poller.result()

    async def parse(self, content: IO) -> AsyncGenerator[PageDetail, None]:
        logger.info("Extracting text from '%s' using Azure Document Intelligence", content.name)

        result = await self.analyze(content)
        for page in page_details_from_result(result):
            yield page
