#!/usr/bin/env python3
"""Run a batch quality analysis over the corpus and write a JSON report.

Meant for the Elasticsearch backend (``CORPUS_BACKEND=elasticsearch``); the
in-memory backend starts empty in a fresh process.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from kb_curator.analysis import BatchSummary
from kb_curator.main import run_analysis, suggest_remediations
from kb_curator.schemas import AnalysisRequest

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def build_report(request: AnalysisRequest) -> dict:
    """Analyze the corpus and collect analyses, summary and suggestions."""
    analyses = run_analysis(request)
    summary = BatchSummary.from_analyses(analyses)
    suggestions = suggest_remediations(analyses)

    return {
        "summary": summary.to_dict(),
        "analyses": [a.to_dict() for a in analyses],
        "remediations": [s.to_dict() for s in suggestions],
    }


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Analyze knowledge-base document quality")
    parser.add_argument("--company", help="Only analyze this company's documents")
    parser.add_argument("--limit", type=int, help="Analyze at most N newest documents")
    parser.add_argument(
        "--skip-approved", action="store_true", help="Do not analyze approved documents"
    )
    parser.add_argument(
        "--skip-obsolete", action="store_true", help="Do not analyze obsolete documents"
    )
    parser.add_argument("-o", "--output", help="Write the report here instead of stdout")

    args = parser.parse_args()

    request = AnalysisRequest(
        include_approved=not args.skip_approved,
        include_obsolete=not args.skip_obsolete,
        company_code=args.company,
        limit=args.limit,
    )

    try:
        report = build_report(request)
    except Exception as e:
        logger.error(f"Analysis failed: {e}")
        sys.exit(1)

    payload = json.dumps(report, ensure_ascii=False, indent=2)
    if args.output:
        Path(args.output).write_text(payload, encoding="utf-8")
        logger.info(f"Report written to {args.output}")
    else:
        print(payload)

    summary = report["summary"]
    logger.info(
        f"Analyzed {summary['totalAnalyzed']} documents, "
        f"average score {summary['averageScore']}, "
        f"{summary['problemDocuments']} need attention"
    )


if __name__ == "__main__":
    main()
