import argparse
import asyncio
import json
import logging
import os
import sys
from glob import glob
from typing import List, Optional, Union

from azure.ai.documentintelligence.models import AnalyzeResult
from azure.core.credentials import AzureKeyCredential
from azure.core.credentials_async import AsyncTokenCredential
from azure.identity.aio import AzureDeveloperCliCredential

from docsectionlib.blobmanager import CorpusManager
from docsectionlib.filestrategy import DOCUMENT_EXTENSIONS, EmbedStrategy
from docsectionlib.formatutils import format_as_ndjson
from docsectionlib.pdfparser import DocumentAnalysisParser, page_details_from_result
from docsectionlib.searchmanager import SearchInfo, SearchManager
from docsectionlib.sections import create_sections
from load_azd_env import load_azd_env

logger = logging.getLogger("scripts")


def blob_name_from_result_path(path: str) -> str:
    """Saved analysis results are named after their document, e.g. 'report.pdf.json'."""
    name = os.path.basename(path)
    if name.lower().endswith(".json"):
        return name[: -len(".json")]
    return name


def print_sections(paths: List[str], category: Optional[str], out=None) -> int:
    """
    Splits saved Document Intelligence results into sections and writes them as
    NDJSON. No Azure service is called.
    """
    if out is None:
        out = sys.stdout
    count = 0
    for path in paths:
        pages = list(page_details_from_result(load_analyze_result(path)))
        for line in format_as_ndjson(create_sections(pages, blob_name_from_result_path(path), category=category)):
            out.write(line)
            count += 1
    return count


def load_analyze_result(path: str) -> AnalyzeResult:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    # results saved from the REST API wrap the payload in "analyzeResult"
    return AnalyzeResult(data.get("analyzeResult", data))


def setup_credential(tenant_id: Optional[str]) -> AsyncTokenCredential:
    if tenant_id:
        logger.info("Connecting to Azure services using the azd credential for tenant %s", tenant_id)
        return AzureDeveloperCliCredential(tenant_id=tenant_id, process_timeout=60)
    logger.info("Connecting to Azure services using the azd credential for home tenant")
    return AzureDeveloperCliCredential(process_timeout=60)


def key_or_credential(
    key: Optional[str], credential: AsyncTokenCredential
) -> Union[AzureKeyCredential, AsyncTokenCredential]:
    return AzureKeyCredential(key) if key else credential


def setup_embed_strategy(args: argparse.Namespace, credential: AsyncTokenCredential) -> EmbedStrategy:
    search_service = args.searchservice or os.getenv("AZURE_SEARCH_SERVICE")
    index_name = args.index or os.getenv("AZURE_SEARCH_INDEX")
    docint_service = args.documentintelligenceservice or os.getenv("AZURE_DOCUMENTINTELLIGENCE_SERVICE")
    if not search_service or not index_name:
        raise ValueError("A search service and index are required, set AZURE_SEARCH_SERVICE and AZURE_SEARCH_INDEX")
    if not docint_service:
        raise ValueError("A Document Intelligence service is required, set AZURE_DOCUMENTINTELLIGENCE_SERVICE")

    search_info = SearchInfo(
        endpoint=f"https://{search_service}.search.windows.net/",
        credential=key_or_credential(os.getenv("AZURE_SEARCH_KEY"), credential),
        index_name=index_name,
    )
    parser = DocumentAnalysisParser(
        endpoint=f"https://{docint_service}.cognitiveservices.azure.com/",
        credential=key_or_credential(os.getenv("AZURE_DOCUMENTINTELLIGENCE_KEY"), credential),
    )

    corpus_manager = None
    storage_account = args.storageaccount or os.getenv("AZURE_STORAGE_ACCOUNT")
    container = args.container or os.getenv("AZURE_STORAGE_CONTAINER")
    if storage_account and container:
        corpus_manager = CorpusManager(
            endpoint=f"https://{storage_account}.blob.core.windows.net",
            container=container,
            credential=credential,
        )
    else:
        logger.info("No storage account configured, page corpus will not be uploaded")

    return EmbedStrategy(
        parser=parser,
        search_manager=SearchManager(search_info),
        corpus_manager=corpus_manager,
        category=args.category,
    )


async def embed_files(paths: List[str], strategy: EmbedStrategy):
    for path in paths:
        if os.path.splitext(path)[1].lower() not in DOCUMENT_EXTENSIONS:
            logger.info("Skipping '%s', no parser found.", path)
            continue
        with open(path, mode="rb") as content:
            await strategy.embed_blob(content, os.path.basename(path))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Split documents into sections and index them in Azure AI Search.",
        epilog="Example: prepsections '.\\data\\*' -v",
    )
    parser.add_argument("files", help="Files to be processed (glob pattern)")
    parser.add_argument("--category", help="Value for the category field in the search index for all sections")
    parser.add_argument("--index", help="Name of the Azure AI Search index (defaults to AZURE_SEARCH_INDEX)")
    parser.add_argument("--searchservice", help="Name of the Azure AI Search service (defaults to AZURE_SEARCH_SERVICE)")
    parser.add_argument(
        "--documentintelligenceservice",
        help="Name of the Azure Document Intelligence service (defaults to AZURE_DOCUMENTINTELLIGENCE_SERVICE)",
    )
    parser.add_argument("--storageaccount", help="Storage account for the page corpus (defaults to AZURE_STORAGE_ACCOUNT)")
    parser.add_argument("--container", help="Container for the page corpus (defaults to AZURE_STORAGE_CONTAINER)")
    parser.add_argument(
        "--printsections",
        action="store_true",
        help="Treat files as saved Document Intelligence results and print their sections as NDJSON",
    )
    parser.add_argument("--loadazdenv", action="store_true", help="Load settings from the default azd environment")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=logging.WARNING)
    logger.setLevel(logging.DEBUG if args.verbose else logging.INFO)

    if args.loadazdenv:
        load_azd_env()

    paths = sorted(glob(args.files))
    if not paths:
        logger.warning("No files match '%s'", args.files)
        return 0

    if args.printsections:
        count = print_sections(paths, args.category)
        logger.info("Printed %d sections", count)
        return 0

    async def run():
        credential = setup_credential(os.getenv("AZURE_TENANT_ID"))
        async with credential:
            await embed_files(paths, setup_embed_strategy(args, credential))

    asyncio.run(run())
    return 0


if __name__ == "__main__":
    sys.exit(main())
