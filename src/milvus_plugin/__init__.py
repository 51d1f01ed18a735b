"""Milvus retriever and indexer plugin.

Embeds documents through a pluggable embedder, stores them in a Milvus
collection, and retrieves them again by similarity search.

Quick start::

    from milvus_plugin import (
        Document,
        MilvusPluginParams,
        SentenceTransformerEmbedder,
        milvus,
    )

    plugin = milvus([
        MilvusPluginParams(
            collection_name="docs",
            embedder=SentenceTransformerEmbedder(),
        ),
    ])

    await plugin.indexer("docs").index([Document.from_text("Milvus is a vector DB")])
    docs = await plugin.retriever("docs").retrieve(
        Document.from_text("What is Milvus?"), {"limit": 3}
    )

    plugin.close()
"""

from milvus_plugin.collections_admin import (
    acreate_milvus_collection,
    adelete_milvus_collection,
    adescribe_milvus_collection,
    create_milvus_collection,
    delete_milvus_collection,
    describe_milvus_collection,
)
from milvus_plugin.config import (
    DEFAULT_MILVUS_URI,
    MAX_LIMIT,
    CreateCollectionOptions,
    MilvusClientParams,
    MilvusIndexerOptions,
    MilvusPluginParams,
    MilvusRetrieverOptions,
    SparseVector,
    get_default_client_params,
)
from milvus_plugin.documents import TEXT_KEY, Document
from milvus_plugin.embedder import Embedder, SentenceTransformerEmbedder, embed
from milvus_plugin.indexer import MilvusIndexer, configure_milvus_indexer
from milvus_plugin.plugin import (
    ActionRef,
    MilvusPlugin,
    milvus,
    milvus_indexer_ref,
    milvus_retriever_ref,
)
from milvus_plugin.retriever import MilvusRetriever, configure_milvus_retriever

__all__ = [
    "milvus",
    "MilvusPlugin",
    "MilvusPluginParams",
    "ActionRef",
    "milvus_retriever_ref",
    "milvus_indexer_ref",
    "MilvusRetriever",
    "configure_milvus_retriever",
    "MilvusIndexer",
    "configure_milvus_indexer",
    "create_milvus_collection",
    "describe_milvus_collection",
    "delete_milvus_collection",
    "acreate_milvus_collection",
    "adescribe_milvus_collection",
    "adelete_milvus_collection",
    "CreateCollectionOptions",
    "MilvusClientParams",
    "MilvusRetrieverOptions",
    "MilvusIndexerOptions",
    "SparseVector",
    "get_default_client_params",
    "DEFAULT_MILVUS_URI",
    "MAX_LIMIT",
    "Document",
    "TEXT_KEY",
    "Embedder",
    "SentenceTransformerEmbedder",
    "embed",
]

__version__ = "0.1.0"
