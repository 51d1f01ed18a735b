"""Configuration dataclasses for the Milvus plugin.

Centralises the connection parameters, the retriever and indexer options
recognised by the host framework, and the per-collection plugin parameters so
they are validated once, at construction time, and never mutated afterwards.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
MILVUS_URI_ENV = "MILVUS_URI"
DEFAULT_MILVUS_URI = "http://localhost:19530"

DEFAULT_LIMIT = 5
MAX_LIMIT = 1000

# Milvus VARCHAR limit used for string primary keys
MAX_ID_LENGTH = 512


# ---------------------------------------------------------------------------
# Connection configuration
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class MilvusClientParams:
    """Parameters for connecting to a Milvus instance.

    Attributes:
        uri: Address of the Milvus server, e.g. ``http://localhost:19530``.
        token: Optional authentication token (Zilliz Cloud API key or
            ``user:password``).
        user: Optional username.
        password: Optional password.
        db_name: Optional database name.
        timeout: Optional client timeout in seconds.
    """

    uri: str = DEFAULT_MILVUS_URI
    token: str = ""
    user: str = ""
    password: str = ""
    db_name: str = ""
    timeout: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.uri:
            raise ValueError("A Milvus connection address (uri) is required.")

    def to_client_kwargs(self) -> Dict[str, Any]:
        """Serialise to the keyword arguments accepted by ``MilvusClient``."""
        kwargs: Dict[str, Any] = {"uri": self.uri}
        for name in ("token", "user", "password", "db_name"):
            value = getattr(self, name)
            if value:
                kwargs[name] = value
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        return kwargs


def get_default_client_params() -> MilvusClientParams:
    """Build client params from ``MILVUS_URI``, falling back to localhost."""
    return MilvusClientParams(
        uri=os.environ.get(MILVUS_URI_ENV) or DEFAULT_MILVUS_URI,
        token="",
        user="",
        password="",
    )


# ---------------------------------------------------------------------------
# Retriever options
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class SparseVector:
    """Sparse query vector as parallel ``indices`` / ``values`` lists."""

    indices: List[int] = field(default_factory=list)
    values: List[float] = field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.indices) != len(self.values):
            raise ValueError("Indices and values must be of the same length")

    def to_dict(self) -> Dict[int, float]:
        return dict(zip(self.indices, self.values))


FilterType = Union[str, Mapping[str, Any]]


def build_filter_expression(filter: Optional[FilterType]) -> str:
    """Translate *filter* into a Milvus boolean expression.

    Strings are passed through untouched.  Mappings become equality checks on
    the ``metadata`` JSON field joined with ``and``:

    ``{"source": "intro.md"}`` → ``metadata["source"] == "intro.md"``
    """
    if not filter:
        return ""
    if isinstance(filter, str):
        return filter

    conditions = []
    for key, value in filter.items():
        conditions.append(f"metadata[{json.dumps(str(key))}] == {json.dumps(value)}")
    return " and ".join(conditions)


_RETRIEVER_OPTION_ALIASES = {
    "limit": "limit",
    "k": "limit",
    "collection_name": "collection_name",
    "collectionName": "collection_name",
    "filter": "filter",
    "sparse_vector": "sparse_vector",
    "sparseVector": "sparse_vector",
}


@dataclass(frozen=True)
class MilvusRetrieverOptions:
    """Per-call retrieval options.

    Attributes:
        limit: Number of nearest neighbours to return (``1..1000``).
        collection_name: Optional collection overriding the retriever's own.
        filter: Milvus boolean expression, or a mapping of metadata equality
            conditions (see :func:`build_filter_expression`).
        sparse_vector: Optional sparse query vector.  Validated, currently
            not sent to the server.
    """

    limit: int = DEFAULT_LIMIT
    collection_name: Optional[str] = None
    filter: Optional[FilterType] = None
    sparse_vector: Optional[SparseVector] = None

    def __post_init__(self) -> None:
        if isinstance(self.limit, bool) or not isinstance(self.limit, int):
            raise ValueError(f"limit must be an integer, got {self.limit!r}.")
        if self.limit < 1 or self.limit > MAX_LIMIT:
            raise ValueError(
                f"limit must be between 1 and {MAX_LIMIT}, got {self.limit}."
            )
        if self.collection_name is not None and not self.collection_name:
            raise ValueError("collection_name must not be empty.")
        if isinstance(self.sparse_vector, Mapping):
            unknown = set(self.sparse_vector) - {"indices", "values"}
            if unknown:
                raise ValueError(
                    f"Unknown sparse vector field(s): {', '.join(sorted(map(str, unknown)))}."
                )
            object.__setattr__(
                self, "sparse_vector", SparseVector(**self.sparse_vector)
            )

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "MilvusRetrieverOptions":
        """Validate a plain options mapping (snake_case or camelCase keys)."""
        kwargs: Dict[str, Any] = {}
        for key, value in raw.items():
            if key not in _RETRIEVER_OPTION_ALIASES:
                raise ValueError(f"Unknown retriever option '{key}'.")
            name = _RETRIEVER_OPTION_ALIASES[key]
            if name in kwargs:
                raise ValueError(f"Retriever option '{name}' is given more than once.")
            kwargs[name] = value
        return cls(**kwargs)

    @property
    def expr(self) -> str:
        return build_filter_expression(self.filter)


# ---------------------------------------------------------------------------
# Indexer options
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class MilvusIndexerOptions:
    """Per-call indexing options."""

    collection_name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.collection_name is not None and not self.collection_name:
            raise ValueError("collection_name must not be empty.")

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "MilvusIndexerOptions":
        kwargs: Dict[str, Any] = {}
        for key, value in raw.items():
            if key not in ("collection_name", "collectionName"):
                raise ValueError(f"Unknown indexer option '{key}'.")
            if "collection_name" in kwargs:
                raise ValueError("Indexer option 'collection_name' is given more than once.")
            kwargs["collection_name"] = value
        return cls(**kwargs)


# ---------------------------------------------------------------------------
# Collection creation
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class CreateCollectionOptions:
    """Quick-setup collection parameters forwarded to ``create_collection``.

    The defaults produce a string primary key so the ids written by the
    indexer (document ids or batch positions) are accepted as-is.
    """

    collection_name: str
    dimension: int
    enable_dynamic_field: bool = True
    id_type: str = "string"
    max_length: int = MAX_ID_LENGTH
    metric_type: str = "COSINE"

    def to_dict(self) -> Dict[str, Any]:
        """Serialise to the keyword arguments of ``MilvusClient.create_collection``."""
        kwargs: Dict[str, Any] = {
            "collection_name": self.collection_name,
            "dimension": self.dimension,
            "enable_dynamic_field": self.enable_dynamic_field,
            "id_type": self.id_type,
            "metric_type": self.metric_type,
        }
        if self.id_type == "string":
            kwargs["max_length"] = self.max_length
        return kwargs


# ---------------------------------------------------------------------------
# Plugin parameters
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class MilvusPluginParams:
    """Everything needed to wire one collection into a retriever and indexer.

    Instantiate per collection::

        params = MilvusPluginParams(
            collection_name="docs",
            embedder=SentenceTransformerEmbedder(),
        )
    """

    collection_name: str
    embedder: Any
    embedder_options: Optional[Dict[str, Any]] = None
    client_params: Optional[MilvusClientParams] = None
    text_key: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.collection_name:
            raise ValueError("collection_name is required.")
        if self.embedder is None:
            raise ValueError("An embedder is required.")
        if self.text_key is not None and not self.text_key:
            raise ValueError("text_key must not be empty.")
