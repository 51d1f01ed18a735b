"""Tests for configuration dataclasses and client construction."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from milvus_plugin.client import create_client, resolve_client_params
from milvus_plugin.config import (
    DEFAULT_MILVUS_URI,
    MAX_LIMIT,
    CreateCollectionOptions,
    MilvusClientParams,
    MilvusIndexerOptions,
    MilvusPluginParams,
    MilvusRetrieverOptions,
    SparseVector,
    build_filter_expression,
    get_default_client_params,
)
from milvus_plugin.documents import TEXT_KEY, Document


# =========================================================================
# Client params
# =========================================================================

class TestClientParams:
    def test_default_uri_without_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("MILVUS_URI", raising=False)
        params = get_default_client_params()
        assert params.uri == DEFAULT_MILVUS_URI == "http://localhost:19530"
        assert params.token == ""
        assert params.user == ""
        assert params.password == ""

    def test_uri_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MILVUS_URI", "http://milvus.example.com:19530")
        assert get_default_client_params().uri == "http://milvus.example.com:19530"

    def test_explicit_params_win_over_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MILVUS_URI", "http://from-env:19530")
        explicit = MilvusClientParams(uri="http://explicit:19530")
        assert resolve_client_params(explicit) is explicit

    def test_empty_uri_rejected(self) -> None:
        with pytest.raises(ValueError, match="address"):
            MilvusClientParams(uri="")

    def test_client_kwargs_drop_empty_fields(self) -> None:
        params = MilvusClientParams(uri="http://h:1", token="secret", timeout=5.0)
        assert params.to_client_kwargs() == {
            "uri": "http://h:1",
            "token": "secret",
            "timeout": 5.0,
        }

    def test_frozen(self) -> None:
        params = MilvusClientParams()
        with pytest.raises(AttributeError):
            params.uri = "changed"  # type: ignore[misc]

    def test_create_client_uses_env_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MILVUS_URI", "http://env-host:19530")
        with patch("milvus_plugin.client.MilvusClient") as mock_cls:
            create_client()
        mock_cls.assert_called_once_with(uri="http://env-host:19530")


# =========================================================================
# Retriever options
# =========================================================================

class TestRetrieverOptions:
    def test_defaults(self) -> None:
        opts = MilvusRetrieverOptions()
        assert opts.limit == 5
        assert opts.collection_name is None
        assert opts.expr == ""

    def test_limit_upper_bound(self) -> None:
        assert MilvusRetrieverOptions(limit=MAX_LIMIT).limit == 1000
        with pytest.raises(ValueError, match="limit"):
            MilvusRetrieverOptions(limit=MAX_LIMIT + 1)

    @pytest.mark.parametrize("limit", [0, -3, 2.5, True])
    def test_invalid_limits(self, limit: object) -> None:
        with pytest.raises(ValueError, match="limit"):
            MilvusRetrieverOptions(limit=limit)  # type: ignore[arg-type]

    def test_from_dict_accepts_camel_case(self) -> None:
        opts = MilvusRetrieverOptions.from_dict(
            {
                "limit": 7,
                "collectionName": "other",
                "filter": 'source == "a"',
                "sparseVector": {"indices": [1, 4], "values": [0.5, 0.2]},
            }
        )
        assert opts.limit == 7
        assert opts.collection_name == "other"
        assert opts.expr == 'source == "a"'
        assert isinstance(opts.sparse_vector, SparseVector)
        assert opts.sparse_vector.to_dict() == {1: 0.5, 4: 0.2}

    def test_from_dict_rejects_unknown_key(self) -> None:
        with pytest.raises(ValueError, match="Unknown retriever option"):
            MilvusRetrieverOptions.from_dict({"topK": 3})

    def test_sparse_vector_length_mismatch(self) -> None:
        with pytest.raises(ValueError, match="same length"):
            SparseVector(indices=[1, 2], values=[0.1])

    def test_sparse_vector_unknown_field(self) -> None:
        with pytest.raises(ValueError, match="Unknown sparse vector"):
            MilvusRetrieverOptions(sparse_vector={"indices": [1], "vals": [0.5]})

    def test_from_dict_rejects_repeated_option(self) -> None:
        with pytest.raises(ValueError, match="more than once"):
            MilvusRetrieverOptions.from_dict({"k": 3, "limit": 4})


class TestFilterExpression:
    def test_string_passthrough(self) -> None:
        assert build_filter_expression("id in ['a']") == "id in ['a']"

    def test_empty(self) -> None:
        assert build_filter_expression(None) == ""
        assert build_filter_expression({}) == ""

    def test_mapping(self) -> None:
        expr = build_filter_expression({"source": "intro.md", "position": 2})
        assert expr == 'metadata["source"] == "intro.md" and metadata["position"] == 2'


# =========================================================================
# Other options
# =========================================================================

class TestIndexerAndPluginOptions:
    def test_indexer_options_from_dict(self) -> None:
        assert MilvusIndexerOptions.from_dict({"collectionName": "c"}).collection_name == "c"

    def test_indexer_options_reject_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown indexer option"):
            MilvusIndexerOptions.from_dict({"limit": 3})

    def test_indexer_options_reject_repeated_collection(self) -> None:
        with pytest.raises(ValueError, match="more than once"):
            MilvusIndexerOptions.from_dict({"collection_name": "a", "collectionName": "b"})

    def test_plugin_params_require_collection(self) -> None:
        with pytest.raises(ValueError, match="collection_name"):
            MilvusPluginParams(collection_name="", embedder=object())

    def test_plugin_params_require_embedder(self) -> None:
        with pytest.raises(ValueError, match="embedder"):
            MilvusPluginParams(collection_name="docs", embedder=None)

    def test_create_collection_options(self) -> None:
        kwargs = CreateCollectionOptions(collection_name="docs", dimension=384).to_dict()
        assert kwargs["collection_name"] == "docs"
        assert kwargs["dimension"] == 384
        assert kwargs["enable_dynamic_field"] is True
        assert kwargs["id_type"] == "string"
        assert kwargs["max_length"] == 512

    def test_create_collection_options_int_ids(self) -> None:
        kwargs = CreateCollectionOptions(
            collection_name="docs", dimension=8, id_type="int"
        ).to_dict()
        assert "max_length" not in kwargs


# =========================================================================
# Document
# =========================================================================

class TestDocument:
    def test_from_text_copies_metadata(self) -> None:
        meta = {"source": "a.md"}
        doc = Document.from_text("hello", meta)
        meta["source"] = "changed"
        assert doc.metadata == {"source": "a.md"}
        assert doc.text == "hello"
        assert doc.id is None

    def test_to_dict(self) -> None:
        doc = Document.from_text("hello", {"k": 1}, id="d1")
        assert doc.to_dict() == {
            "content": [{"text": "hello"}],
            "metadata": {"k": 1},
            "id": "d1",
        }

    def test_reserved_key(self) -> None:
        assert TEXT_KEY == "_content"
