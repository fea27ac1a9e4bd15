#!/usr/bin/env python3
"""Setup Elasticsearch indices for KB Curator."""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from elasticsearch import Elasticsearch

from kb_curator.config import ElasticsearchSettings, settings
from kb_curator.ingestion import ElasticsearchCorpus

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


RUSSIAN_ANALYSIS = {
    "analyzer": {
        "russian_content": {
            "type": "custom",
            "tokenizer": "standard",
            "filter": ["lowercase", "russian_stop", "russian_stemmer"],
        }
    },
    "filter": {
        "russian_stop": {"type": "stop", "stopwords": "_russian_"},
        "russian_stemmer": {"type": "stemmer", "language": "russian"},
    },
}


DOCUMENTS_INDEX_MAPPING = {
    "settings": {
        "number_of_shards": 1,
        "number_of_replicas": 0,
        "analysis": RUSSIAN_ANALYSIS,
    },
    "mappings": {
        "properties": {
            "title": {
                "type": "text",
                "analyzer": "russian_content",
                "fields": {"keyword": {"type": "keyword"}},
            },
            "company_code": {"type": "keyword"},
            "product_code": {"type": "keyword"},
            "source_url": {"type": "keyword"},
            "file_url": {"type": "keyword"},
            "version": {"type": "keyword"},
            "document_type": {"type": "keyword"},
            "chunk_count": {"type": "integer"},
            "created_at": {"type": "date"},
            "is_approved": {"type": "boolean"},
            "approved_at": {"type": "date"},
            "approved_by": {"type": "keyword"},
            "is_obsolete": {"type": "boolean"},
            "obsolete_at": {"type": "date"},
            "obsolete_by": {"type": "keyword"},
        }
    },
}


CHUNKS_INDEX_MAPPING = {
    "settings": {
        "number_of_shards": 1,
        "number_of_replicas": 0,
        "analysis": RUSSIAN_ANALYSIS,
    },
    "mappings": {
        "properties": {
            "doc_id": {"type": "keyword"},
            "chunk_idx": {"type": "integer"},
            "text": {"type": "text", "analyzer": "russian_content"},
            "char_count": {"type": "integer"},
        }
    },
}


def build_settings(args: argparse.Namespace) -> ElasticsearchSettings:
    """Apply command-line overrides on top of the configured connection."""
    overrides = {
        key: value
        for key, value in vars(args).items()
        if key in ElasticsearchSettings.model_fields and value is not None
    }
    return settings.elasticsearch.model_copy(update=overrides)


def ensure_index(es: Elasticsearch, name: str, mapping: dict, recreate: bool = False) -> bool:
    """Create ``name`` unless it exists. Returns True when the index was created."""
    if es.indices.exists(index=name):
        if not recreate:
            logger.info(f"{name}: keeping existing index")
            return False
        logger.warning(f"{name}: dropping existing index")
        es.indices.delete(index=name)

    es.indices.create(index=name, settings=mapping["settings"], mappings=mapping["mappings"])
    logger.info(f"{name}: created")
    return True


def setup_indices(
    es: Elasticsearch, es_settings: ElasticsearchSettings, recreate: bool = False
) -> dict[str, bool]:
    """Set up the documents and chunks indices."""
    return {
        es_settings.documents_index: ensure_index(
            es, es_settings.documents_index, DOCUMENTS_INDEX_MAPPING, recreate
        ),
        es_settings.chunks_index: ensure_index(
            es, es_settings.chunks_index, CHUNKS_INDEX_MAPPING, recreate
        ),
    }


def main():
    parser = argparse.ArgumentParser(description="Create the KB Curator Elasticsearch indices")
    parser.add_argument("--host", help="Elasticsearch host")
    parser.add_argument("--port", type=int, help="Elasticsearch port")
    parser.add_argument("--username", help="Elasticsearch username")
    parser.add_argument("--password", help="Elasticsearch password")
    parser.add_argument("--api-key", help="Elasticsearch API key")
    parser.add_argument("--documents-index", help="Documents index name")
    parser.add_argument("--chunks-index", help="Chunks index name")
    parser.add_argument(
        "--recreate",
        action="store_true",
        help="Drop and recreate indices that already exist",
    )
    args = parser.parse_args()

    es_settings = build_settings(args)
    es = ElasticsearchCorpus(es_settings=es_settings).es

    try:
        version = es.info()["version"]["number"]
    except Exception as e:
        logger.error(f"Cannot reach Elasticsearch at {es_settings.connection_url}: {e}")
        sys.exit(1)
    logger.info(f"Elasticsearch {version} at {es_settings.connection_url}")

    created = setup_indices(es, es_settings, recreate=args.recreate)
    logger.info(f"Indices created: {sum(created.values())} of {len(created)}")


if __name__ == "__main__":
    main()
