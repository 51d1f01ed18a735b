#!/usr/bin/env python3
"""Usage examples for the Milvus plugin.

Expects a running Milvus instance.  The collection is created, populated,
searched and dropped again.

Run::

    # Defaults to MILVUS_URI or http://localhost:19530
    python examples/milvus_plugin_usage.py

    # Custom server
    python examples/milvus_plugin_usage.py --uri http://milvus.example.com:19530
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from pprint import pprint

# Make the package importable when running from the repo root
SRC_ROOT = Path(__file__).resolve().parent.parent / "src"
sys.path.insert(0, str(SRC_ROOT))

from milvus_plugin import (
    CreateCollectionOptions,
    Document,
    MilvusClientParams,
    MilvusPluginParams,
    MilvusRetrieverOptions,
    SentenceTransformerEmbedder,
    create_milvus_collection,
    delete_milvus_collection,
    describe_milvus_collection,
    get_default_client_params,
    milvus,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
)

SAMPLE_DOCS = [
    Document.from_text(
        "Milvus is an open-source vector database built for similarity search.",
        {"source": "intro.md"},
    ),
    Document.from_text(
        "A collection is a named, schema-bound container for vector records.",
        {"source": "concepts.md"},
    ),
    Document.from_text(
        "Filter expressions restrict a search to records matching metadata.",
        {"source": "search.md"},
        id="search-filters",
    ),
]


# ---------------------------------------------------------------------------
# 1. Collection management
# ---------------------------------------------------------------------------
def example_collection(params: MilvusClientParams, collection: str, dim: int) -> None:
    """Create a collection and inspect it."""
    print("\n=== 1. Collection Management ===\n")

    create_milvus_collection(
        CreateCollectionOptions(collection_name=collection, dimension=dim),
        client_params=params,
    )
    pprint(describe_milvus_collection(collection, client_params=params))


# ---------------------------------------------------------------------------
# 2. Index and retrieve
# ---------------------------------------------------------------------------
async def example_index_retrieve(params: MilvusClientParams, collection: str) -> None:
    """Index a few documents, then query them with and without a filter."""
    print("\n=== 2. Index → Retrieve ===\n")

    with milvus(
        [
            MilvusPluginParams(
                collection_name=collection,
                embedder=SentenceTransformerEmbedder(),
                client_params=params,
            )
        ]
    ) as plugin:
        await plugin.indexer(collection).index(SAMPLE_DOCS)
        print(f"Indexed {len(SAMPLE_DOCS)} documents.")

        query = Document.from_text("What is a collection?")
        docs = await plugin.retriever(collection).retrieve(query, {"limit": 2})
        print("\nTop-2 results:")
        for i, doc in enumerate(docs, 1):
            print(f"  {i}. {doc.text}  {doc.metadata}")

        filtered = await plugin.retriever(collection).retrieve(
            query,
            MilvusRetrieverOptions(limit=3, filter={"source": "search.md"}),
        )
        print(f"\nFiltered results (source=search.md): {len(filtered)} hits")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------
def main() -> None:
    parser = argparse.ArgumentParser(description="Milvus plugin examples")
    parser.add_argument("--uri", default=None, help="Milvus address (default: MILVUS_URI)")
    parser.add_argument("--collection", default="milvus_plugin_demo", help="Collection name")
    parser.add_argument("--dim", type=int, default=384, help="Embedding dimension")
    parser.add_argument(
        "--keep", action="store_true", help="Do not drop the collection afterwards"
    )
    args = parser.parse_args()

    params = MilvusClientParams(uri=args.uri) if args.uri else get_default_client_params()

    example_collection(params, args.collection, args.dim)
    try:
        asyncio.run(example_index_retrieve(params, args.collection))
    finally:
        if not args.keep:
            delete_milvus_collection(args.collection, client_params=params)
            print(f"\nDropped collection '{args.collection}'.")


if __name__ == "__main__":
    main()
