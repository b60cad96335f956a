from typing import List

import pytest

from docsectionlib.page import PageDetail


def make_pages(texts: List[str]) -> List[PageDetail]:
    pages = []
    offset = 0
    for index, text in enumerate(texts):
        pages.append(PageDetail(index=index, offset=offset, text=text))
        offset += len(text)
    return pages


def sample_table_html(rows: int = 4) -> str:
    cells = "".join(f"<tr><td>Row {i} name</td><td>{i * 10} units</td></tr>" for i in range(rows))
    return f"<table><tr><th>Name</th><th>Amount</th></tr>{cells}</table>"


@pytest.fixture
def sample_pages() -> List[PageDetail]:
    texts = []
    for page in range(6):
        sentences = [
            f"Sentence {page}.{i} is about item {i}, and it keeps going for a while. " for i in range(20)
        ]
        if page in (2, 4):
            sentences.insert(10, sample_table_html() + " ")
        texts.append("".join(sentences))
    return make_pages(texts)
