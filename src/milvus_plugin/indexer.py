"""Milvus indexer.

Provides :class:`MilvusIndexer`, which embeds a batch of documents
concurrently and writes them to a collection in a single insert call.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pymilvus import MilvusClient

from milvus_plugin.client import close_client, create_client
from milvus_plugin.config import MilvusClientParams, MilvusIndexerOptions
from milvus_plugin.documents import TEXT_KEY, Document
from milvus_plugin.embedder import embed

logger = logging.getLogger("milvus_plugin.indexer")

IndexerOptionsArg = Union[MilvusIndexerOptions, Mapping[str, Any], None]


class MilvusIndexer:
    """Writes documents and their embeddings to a single Milvus collection.

    Parameters mirror :class:`~milvus_plugin.retriever.MilvusRetriever`.
    """

    def __init__(
        self,
        collection_name: str,
        embedder: Any,
        client: MilvusClient,
        embedder_options: Optional[Dict[str, Any]] = None,
        text_key: Optional[str] = None,
    ) -> None:
        self.collection_name = collection_name
        self.name = f"milvus/{collection_name}"
        self._embedder = embedder
        self._embedder_options = embedder_options
        self._client = client
        self._text_key = text_key or TEXT_KEY

    @property
    def text_key(self) -> str:
        return self._text_key

    # ----------------------------------------------------------------- index
    async def index(
        self,
        documents: Sequence[Document],
        options: IndexerOptionsArg = None,
    ) -> Any:
        """Embed *documents* and insert them as one batch.

        Each document is embedded independently and concurrently; if any
        embedding fails nothing is inserted and the error propagates.

        Returns
        -------
        Any
            The raw ``insert`` response from Milvus, or ``None`` for an empty
            batch.

        Raises
        ------
        ValueError
            If *options* are invalid or a document's metadata already uses the
            reserved text key.
        """
        opts = _coerce_options(options)
        collection_name = opts.collection_name or self.collection_name

        if not documents:
            logger.info("No documents to index into '%s'.", collection_name)
            return None

        for i, doc in enumerate(documents):
            if self._text_key in doc.metadata:
                raise ValueError(
                    f"Document at index {i} has a metadata field named "
                    f"'{self._text_key}', which is reserved for the document text."
                )

        embeddings = await asyncio.gather(
            *(embed(self._embedder, doc, self._embedder_options) for doc in documents)
        )

        records = [
            self._to_record(doc, vector, i)
            for i, (doc, vector) in enumerate(zip(documents, embeddings))
        ]

        result = await asyncio.to_thread(
            self._client.insert,
            collection_name=collection_name,
            data=records,
        )
        logger.info(
            "Inserted %d documents into '%s'.", len(records), collection_name
        )
        return result

    def _to_record(
        self,
        doc: Document,
        vector: List[float],
        position: int,
    ) -> Dict[str, Any]:
        metadata: Dict[str, Any] = dict(doc.metadata)
        metadata[self._text_key] = doc.text
        return {
            "id": doc.id if doc.id is not None else str(position),
            "vector": vector,
            "metadata": metadata,
        }

    # ----------------------------------------------------------------- close
    def close(self) -> None:
        """Close the owned Milvus client.  Safe to call multiple times."""
        close_client(self._client)

    def __enter__(self) -> "MilvusIndexer":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"MilvusIndexer(collection='{self.collection_name}')"


def _coerce_options(options: IndexerOptionsArg) -> MilvusIndexerOptions:
    if options is None:
        return MilvusIndexerOptions()
    if isinstance(options, MilvusIndexerOptions):
        return options
    return MilvusIndexerOptions.from_dict(options)


def configure_milvus_indexer(
    collection_name: str,
    embedder: Any,
    embedder_options: Optional[Dict[str, Any]] = None,
    client_params: Optional[MilvusClientParams] = None,
    text_key: Optional[str] = None,
) -> MilvusIndexer:
    """Create a :class:`MilvusIndexer` with its own client connection."""
    if not collection_name:
        raise ValueError("collection_name is required.")
    client = create_client(client_params)
    return MilvusIndexer(
        collection_name=collection_name,
        embedder=embedder,
        client=client,
        embedder_options=embedder_options,
        text_key=text_key,
    )
