#!/usr/bin/env python3
"""Ingest plain-text documents into the KB Curator corpus."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from kb_curator.analysis import AttributionAnalyzer
from kb_curator.main import add_document, approve_document
from kb_curator.schemas import DocumentCreate

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

EXTENSIONS = {".txt", ".md"}


def ingest_file(
    file_path: Path,
    company_code: Optional[str] = None,
    product_code: Optional[str] = None,
    approve: bool = False,
) -> bool:
    """Ingest a single file, detecting missing codes from its text."""
    try:
        text = file_path.read_text(encoding="utf-8")
        if not company_code or not product_code:
            detected_company, detected_product = AttributionAnalyzer.detect_company_and_product(
                text, file_path.name
            )
            company_code = company_code or detected_company
            product_code = product_code or detected_product

        document = add_document(
            DocumentCreate(
                title=file_path.stem,
                content=text,
                company_code=company_code,
                product_code=product_code,
                file_url=str(file_path),
            )
        )
        if approve:
            approve_document(document.id, approved_by="ingest")

        logger.info(
            f"Successfully ingested: {file_path.name} "
            f"(ID: {document.id}, {len(document.chunks)} chunks, {company_code}/{product_code})"
        )
        return True
    except Exception as e:
        logger.error(f"Failed to ingest {file_path.name}: {e}")
        return False


def ingest_directory(dir_path: Path, recursive: bool = False, **kwargs) -> tuple[int, int]:
    """Ingest all text documents in a directory."""
    success_count = 0
    failure_count = 0

    pattern = "**/*" if recursive else "*"

    for file_path in sorted(dir_path.glob(pattern)):
        if file_path.is_file() and file_path.suffix.lower() in EXTENSIONS:
            if ingest_file(file_path, **kwargs):
                success_count += 1
            else:
                failure_count += 1

    return success_count, failure_count


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Ingest text documents into KB Curator")
    parser.add_argument("paths", nargs="+", help="Files or directories to ingest")
    parser.add_argument(
        "-r", "--recursive",
        action="store_true",
        help="Recursively process directories",
    )
    parser.add_argument("--company", help="Company code for every file (detected when omitted)")
    parser.add_argument("--product", help="Product code for every file (detected when omitted)")
    parser.add_argument(
        "--approve",
        action="store_true",
        help="Mark ingested documents as approved so they are searchable",
    )

    args = parser.parse_args()
    options = {"company_code": args.company, "product_code": args.product, "approve": args.approve}

    total_success = 0
    total_failure = 0

    for path_str in args.paths:
        path = Path(path_str)

        if not path.exists():
            logger.error(f"Path not found: {path}")
            total_failure += 1
            continue

        if path.is_file():
            if ingest_file(path, **options):
                total_success += 1
            else:
                total_failure += 1
        elif path.is_dir():
            success, failure = ingest_directory(path, args.recursive, **options)
            total_success += success
            total_failure += failure
        else:
            logger.error(f"Invalid path: {path}")
            total_failure += 1

    logger.info(f"Ingestion complete: {total_success} succeeded, {total_failure} failed")

    if total_failure > 0:
        sys.exit(1)


if __name__ == "__main__":
    main()
