"""Plugin entry point.

:func:`milvus` turns a list of per-collection parameters into a
:class:`MilvusPlugin` exposing one retriever and one indexer per collection,
registered under ``milvus/<collection_name>``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Set

from milvus_plugin.config import MilvusPluginParams
from milvus_plugin.indexer import MilvusIndexer, configure_milvus_indexer
from milvus_plugin.retriever import MilvusRetriever, configure_milvus_retriever

logger = logging.getLogger("milvus_plugin.plugin")

PLUGIN_NAME = "milvus"


# ---------------------------------------------------------------------------
# References
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ActionRef:
    """Name and display label of a registered retriever or indexer."""

    kind: str
    name: str
    label: str


def _ref(kind: str, collection_name: str, display_name: Optional[str]) -> ActionRef:
    return ActionRef(
        kind=kind,
        name=f"{PLUGIN_NAME}/{collection_name}",
        label=display_name or f"Milvus - {collection_name}",
    )


def milvus_retriever_ref(
    collection_name: str,
    display_name: Optional[str] = None,
) -> ActionRef:
    return _ref("retriever", collection_name, display_name)


def milvus_indexer_ref(
    collection_name: str,
    display_name: Optional[str] = None,
) -> ActionRef:
    return _ref("indexer", collection_name, display_name)


# ---------------------------------------------------------------------------
# Plugin
# ---------------------------------------------------------------------------
class MilvusPlugin:
    """Retrievers and indexers keyed by ``milvus/<collection_name>``."""

    name = PLUGIN_NAME

    def __init__(
        self,
        retrievers: Sequence[MilvusRetriever],
        indexers: Sequence[MilvusIndexer],
    ) -> None:
        self._retrievers: Dict[str, MilvusRetriever] = self._by_name(retrievers)
        self._indexers: Dict[str, MilvusIndexer] = self._by_name(indexers)

    @staticmethod
    def _by_name(actions: Sequence[Any]) -> Dict[str, Any]:
        table: Dict[str, Any] = {}
        for action in actions:
            if action.name in table:
                raise ValueError(f"'{action.name}' is registered more than once.")
            table[action.name] = action
        return table

    @property
    def retrievers(self) -> List[MilvusRetriever]:
        return list(self._retrievers.values())

    @property
    def indexers(self) -> List[MilvusIndexer]:
        return list(self._indexers.values())

    def retriever(self, name: str) -> MilvusRetriever:
        """Look up a retriever by ``milvus/<collection>`` or bare collection name."""
        return self._lookup(self._retrievers, name, "retriever")

    def indexer(self, name: str) -> MilvusIndexer:
        """Look up an indexer by ``milvus/<collection>`` or bare collection name."""
        return self._lookup(self._indexers, name, "indexer")

    @staticmethod
    def _lookup(table: Dict[str, Any], name: str, kind: str) -> Any:
        key = name if name.startswith(f"{PLUGIN_NAME}/") else f"{PLUGIN_NAME}/{name}"
        try:
            return table[key]
        except KeyError:
            raise KeyError(f"No Milvus {kind} registered as '{key}'.") from None

    def close(self) -> None:
        """Close every client owned by the plugin's retrievers and indexers."""
        for retriever in self._retrievers.values():
            retriever.close()
        for indexer in self._indexers.values():
            indexer.close()

    def __enter__(self) -> "MilvusPlugin":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"MilvusPlugin(collections={sorted(self._retrievers)})"


def milvus(params: Sequence[MilvusPluginParams]) -> MilvusPlugin:
    """Build the Milvus plugin.

    Parameters
    ----------
    params:
        One :class:`MilvusPluginParams` per collection.

    Examples
    --------
    >>> plugin = milvus([
    ...     MilvusPluginParams(collection_name="docs", embedder=embedder),
    ... ])
    >>> docs = await plugin.retriever("milvus/docs").retrieve(query)

    Raises
    ------
    ValueError
        If two entries share a ``collection_name``.  Checked before any
        client is opened.
    """
    seen: Set[str] = set()
    for p in params:
        if p.collection_name in seen:
            raise ValueError(
                f"Collection '{p.collection_name}' is configured more than once."
            )
        seen.add(p.collection_name)

    retrievers: List[MilvusRetriever] = []
    indexers: List[MilvusIndexer] = []
    try:
        for p in params:
            retrievers.append(
                configure_milvus_retriever(
                    collection_name=p.collection_name,
                    embedder=p.embedder,
                    embedder_options=p.embedder_options,
                    client_params=p.client_params,
                    text_key=p.text_key,
                )
            )
            indexers.append(
                configure_milvus_indexer(
                    collection_name=p.collection_name,
                    embedder=p.embedder,
                    embedder_options=p.embedder_options,
                    client_params=p.client_params,
                    text_key=p.text_key,
                )
            )
    except Exception:
        logger.error(
            "Milvus plugin setup failed; closing %d opened client(s).",
            len(retrievers) + len(indexers),
        )
        for action in [*retrievers, *indexers]:
            action.close()
        raise

    logger.info(
        "Configured Milvus plugin for %d collection(s): %s",
        len(params),
        ", ".join(p.collection_name for p in params),
    )
    return MilvusPlugin(retrievers=retrievers, indexers=indexers)
