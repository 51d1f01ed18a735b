"""Milvus client construction shared by the retriever, indexer and helpers."""

from __future__ import annotations

import logging
from typing import Optional

from pymilvus import MilvusClient

from milvus_plugin.config import MilvusClientParams, get_default_client_params

logger = logging.getLogger("milvus_plugin.client")


def resolve_client_params(
    client_params: Optional[MilvusClientParams] = None,
) -> MilvusClientParams:
    """Return *client_params*, or the ``MILVUS_URI`` based default."""
    return client_params if client_params is not None else get_default_client_params()


def create_client(client_params: Optional[MilvusClientParams] = None) -> MilvusClient:
    """Open a new ``MilvusClient`` for *client_params*.

    Connection errors from ``pymilvus`` propagate unchanged.
    """
    params = resolve_client_params(client_params)
    client = MilvusClient(**params.to_client_kwargs())
    logger.info("Connected to Milvus at %s", params.uri)
    return client


def close_client(client: MilvusClient) -> None:
    """Close *client*, logging instead of raising on failure."""
    try:
        client.close()
    except Exception:  # noqa: BLE001
        logger.debug("Close warning (non-fatal)", exc_info=True)
