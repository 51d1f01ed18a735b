"""Milvus retriever.

Provides :class:`MilvusRetriever`, which embeds a query document, runs a
similarity search against one collection and turns the hits back into
:class:`~milvus_plugin.documents.Document` objects.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from pymilvus import MilvusClient

from milvus_plugin.client import close_client, create_client
from milvus_plugin.config import MilvusClientParams, MilvusRetrieverOptions
from milvus_plugin.documents import TEXT_KEY, Document
from milvus_plugin.embedder import embed

logger = logging.getLogger("milvus_plugin.retriever")

METADATA_FIELD = "metadata"

RetrieverOptionsArg = Union[MilvusRetrieverOptions, Mapping[str, Any], None]


class MilvusRetriever:
    """Similarity search over a single Milvus collection.

    Parameters
    ----------
    collection_name:
        Collection searched by default.
    embedder:
        Embedder used for the query (see :func:`milvus_plugin.embedder.embed`).
    client:
        An open ``MilvusClient``.  The retriever owns it and closes it in
        :meth:`close`.
    embedder_options:
        Options forwarded to the embedder on every call.
    text_key:
        Metadata field holding the document text (default ``"_content"``).
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

    # ------------------------------------------------------------- retrieve
    async def retrieve(
        self,
        query: Document,
        options: RetrieverOptionsArg = None,
    ) -> List[Document]:
        """Return the documents closest to *query*.

        Options are validated before any network call.  Embedding and search
        errors propagate unchanged.
        """
        opts = _coerce_options(options)
        collection_name = opts.collection_name or self.collection_name

        query_vector = await embed(self._embedder, query, self._embedder_options)

        search_kwargs: Dict[str, Any] = {
            "collection_name": collection_name,
            "data": [query_vector],
            "limit": opts.limit,
            "output_fields": [METADATA_FIELD],
        }
        if opts.expr:
            search_kwargs["filter"] = opts.expr

        logger.debug(
            "Searching '%s' (limit=%d, filter=%r)",
            collection_name,
            opts.limit,
            opts.expr,
        )
        raw_results = await asyncio.to_thread(self._client.search, **search_kwargs)
        return self._to_documents(raw_results)

    # ------------------------------------------------------- result mapping
    def _to_documents(self, raw_results: Any) -> List[Document]:
        documents: List[Document] = []
        for hits in raw_results or []:
            for hit in hits:
                value = _entity_value(hit)
                if value is None:
                    continue
                metadata = dict(value)
                content = metadata.pop(self._text_key, "")
                documents.append(Document.from_text(str(content), metadata))
        return documents

    # ----------------------------------------------------------------- close
    def close(self) -> None:
        """Close the owned Milvus client.  Safe to call multiple times."""
        close_client(self._client)

    def __enter__(self) -> "MilvusRetriever":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"MilvusRetriever(collection='{self.collection_name}')"


def _coerce_options(options: RetrieverOptionsArg) -> MilvusRetrieverOptions:
    if options is None:
        return MilvusRetrieverOptions()
    if isinstance(options, MilvusRetrieverOptions):
        return options
    return MilvusRetrieverOptions.from_dict(options)


def _entity_value(hit: Any) -> Optional[Mapping[str, Any]]:
    """Extract the metadata mapping from a search hit, or ``None``."""
    if isinstance(hit, Mapping):
        entity = hit.get("entity")
    else:
        entity = getattr(hit, "entity", None)
    if entity is None:
        return None

    if isinstance(entity, Mapping):
        value = entity.get(METADATA_FIELD)
    else:
        value = getattr(entity, METADATA_FIELD, None)

    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            logger.debug("Dropping hit with undecodable metadata: %r", value)
            return None
    if not isinstance(value, Mapping):
        return None
    return value


def configure_milvus_retriever(
    collection_name: str,
    embedder: Any,
    embedder_options: Optional[Dict[str, Any]] = None,
    client_params: Optional[MilvusClientParams] = None,
    text_key: Optional[str] = None,
) -> MilvusRetriever:
    """Create a :class:`MilvusRetriever` with its own client connection.

    When *client_params* is omitted the address comes from ``MILVUS_URI``
    (default ``http://localhost:19530``).
    """
    if not collection_name:
        raise ValueError("collection_name is required.")
    client = create_client(client_params)
    return MilvusRetriever(
        collection_name=collection_name,
        embedder=embedder,
        client=client,
        embedder_options=embedder_options,
        text_key=text_key,
    )
