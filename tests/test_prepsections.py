import io
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

import prepsections
from docsectionlib.pdfparser import DocumentAnalysisParser

PAGE_ONE = "".join(f"Policy clause {i} applies to every member. " for i in range(30))
TABLE_TEXT = "Plan Cost Basic 10"
PAGE_TWO = "Costs are listed below. " + TABLE_TEXT + " End of document."


def analysis_json() -> dict:
    content = PAGE_ONE + PAGE_TWO
    table_offset = len(PAGE_ONE) + PAGE_TWO.index(TABLE_TEXT)
    return {
        "analyzeResult": {
            "content": content,
            "pages": [
                {"pageNumber": 1, "spans": [{"offset": 0, "length": len(PAGE_ONE)}]},
                {"pageNumber": 2, "spans": [{"offset": len(PAGE_ONE), "length": len(PAGE_TWO)}]},
            ],
            "tables": [
                {
                    "rowCount": 2,
                    "columnCount": 2,
                    "boundingRegions": [{"pageNumber": 2, "polygon": []}],
                    "spans": [{"offset": table_offset, "length": len(TABLE_TEXT)}],
                    "cells": [
                        {"rowIndex": 0, "columnIndex": 0, "content": "Plan", "kind": "columnHeader"},
                        {"rowIndex": 0, "columnIndex": 1, "content": "Cost", "kind": "columnHeader"},
                        {"rowIndex": 1, "columnIndex": 0, "content": "Basic"},
                        {"rowIndex": 1, "columnIndex": 1, "content": "10"},
                    ],
                }
            ],
        }
    }


@pytest.fixture
def result_file(tmp_path):
    path = tmp_path / "Benefits.pdf.json"
    path.write_text(json.dumps(analysis_json()), encoding="utf-8")
    return path


def test_blob_name_from_result_path():
    assert prepsections.blob_name_from_result_path("/tmp/results/report.pdf.json") == "report.pdf"
    assert prepsections.blob_name_from_result_path("report.pdf") == "report.pdf"


def test_print_sections(result_file):
    out = io.StringIO()

    count = prepsections.print_sections([str(result_file)], category="benefits", out=out)

    sections = [json.loads(line) for line in out.getvalue().splitlines()]
    assert count == len(sections) == 2
    assert sections[0]["id"] == "Benefits_pdf-0"
    assert all(section["source_file"] == "Benefits.pdf" for section in sections)
    assert all(section["category"] == "benefits" for section in sections)
    assert (
        "<table><tr><th>Plan</th><th>Cost</th></tr><tr><td>Basic</td><td>10</td></tr></table>"
        in sections[-1]["content"]
    )


def test_main_print_sections(result_file, capsys):
    assert prepsections.main([str(result_file), "--printsections"]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 2
    assert json.loads(lines[0])["source_page"] == "Benefits.pdf"


def test_main_no_matching_files(tmp_path):
    assert prepsections.main([str(tmp_path / "*.pdf")]) == 0


@pytest.fixture
def clean_env(monkeypatch):
    for name in [
        "AZURE_SEARCH_SERVICE",
        "AZURE_SEARCH_INDEX",
        "AZURE_SEARCH_KEY",
        "AZURE_DOCUMENTINTELLIGENCE_SERVICE",
        "AZURE_DOCUMENTINTELLIGENCE_KEY",
        "AZURE_STORAGE_ACCOUNT",
        "AZURE_STORAGE_CONTAINER",
    ]:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_setup_embed_strategy_requires_search_service(clean_env):
    args = prepsections.build_parser().parse_args(["data/*"])

    with pytest.raises(ValueError, match="search service"):
        prepsections.setup_embed_strategy(args, MagicMock())


def test_setup_embed_strategy_requires_document_intelligence(clean_env):
    clean_env.setenv("AZURE_SEARCH_SERVICE", "search")
    clean_env.setenv("AZURE_SEARCH_INDEX", "index")
    args = prepsections.build_parser().parse_args(["data/*"])

    with pytest.raises(ValueError, match="Document Intelligence"):
        prepsections.setup_embed_strategy(args, MagicMock())


def test_setup_embed_strategy_from_env_and_args(clean_env):
    clean_env.setenv("AZURE_SEARCH_SERVICE", "search")
    clean_env.setenv("AZURE_SEARCH_INDEX", "index")
    clean_env.setenv("AZURE_DOCUMENTINTELLIGENCE_SERVICE", "docint")
    clean_env.setenv("AZURE_SEARCH_KEY", "secret")
    credential = MagicMock()
    args = prepsections.build_parser().parse_args(
        ["data/*", "--index", "override", "--storageaccount", "store", "--container", "corpus", "--category", "hr"]
    )

    strategy = prepsections.setup_embed_strategy(args, credential)

    search_info = strategy.search_manager.search_info
    assert search_info.endpoint == "https://search.search.windows.net/"
    assert search_info.index_name == "override"
    assert search_info.credential.key == "secret"
    assert isinstance(strategy.parser, DocumentAnalysisParser)
    assert strategy.parser.endpoint == "https://docint.cognitiveservices.azure.com/"
    assert strategy.parser.credential is credential
    assert strategy.corpus_manager.endpoint == "https://store.blob.core.windows.net"
    assert strategy.corpus_manager.container == "corpus"
    assert strategy.category == "hr"


def test_setup_embed_strategy_without_storage(clean_env):
    clean_env.setenv("AZURE_SEARCH_SERVICE", "search")
    clean_env.setenv("AZURE_SEARCH_INDEX", "index")
    clean_env.setenv("AZURE_DOCUMENTINTELLIGENCE_SERVICE", "docint")
    args = prepsections.build_parser().parse_args(["data/*"])

    assert prepsections.setup_embed_strategy(args, MagicMock()).corpus_manager is None


@pytest.mark.asyncio
async def test_embed_files_skips_unsupported(tmp_path):
    pdf = tmp_path / "report.pdf"
    pdf.write_bytes(b"%PDF")
    notes = tmp_path / "notes.md5"
    notes.write_text("abc")
    strategy = MagicMock()
    strategy.embed_blob = AsyncMock()

    await prepsections.embed_files([str(pdf), str(notes)], strategy)

    strategy.embed_blob.assert_awaited_once()
    assert strategy.embed_blob.await_args.args[1] == "report.pdf"
