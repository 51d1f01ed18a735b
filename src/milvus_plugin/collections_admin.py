"""Collection management helpers.

Each helper opens a fresh client (caller-supplied params, or the
``MILVUS_URI`` default), forwards one call to Milvus and closes the client.
Nothing is retried.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Union

from milvus_plugin.client import close_client, create_client
from milvus_plugin.config import CreateCollectionOptions, MilvusClientParams

logger = logging.getLogger("milvus_plugin.collections_admin")


def create_milvus_collection(
    options: Union[CreateCollectionOptions, Mapping[str, Any]],
    client_params: Optional[MilvusClientParams] = None,
) -> Any:
    """Create a quick-setup collection.

    *options* is either a :class:`CreateCollectionOptions` or a mapping of
    ``create_collection`` keyword arguments passed through verbatim.

    Examples
    --------
    >>> create_milvus_collection(
    ...     CreateCollectionOptions(collection_name="docs", dimension=384)
    ... )
    """
    if isinstance(options, CreateCollectionOptions):
        kwargs: Dict[str, Any] = options.to_dict()
    else:
        kwargs = dict(options)

    client = create_client(client_params)
    try:
        result = client.create_collection(**kwargs)
    finally:
        close_client(client)
    logger.info("Created collection '%s'", kwargs.get("collection_name"))
    return result


def describe_milvus_collection(
    collection_name: str,
    client_params: Optional[MilvusClientParams] = None,
) -> Dict[str, Any]:
    """Return the server's description of *collection_name*.

    Useful to check that a newly created collection is ready for use.
    """
    client = create_client(client_params)
    try:
        return client.describe_collection(collection_name=collection_name)
    finally:
        close_client(client)


def delete_milvus_collection(
    collection_name: str,
    client_params: Optional[MilvusClientParams] = None,
) -> Any:
    """Drop *collection_name*.

    Failures, including an unreachable server, are logged and re-raised.
    """
    client = None
    try:
        client = create_client(client_params)
        result = client.drop_collection(collection_name=collection_name)
    except Exception as exc:
        logger.error(
            "Failed to delete Milvus collection '%s': %s", collection_name, exc
        )
        raise
    finally:
        if client is not None:
            close_client(client)
    logger.info("Deleted collection '%s'", collection_name)
    return result


# ---------------------------------------------------------------------------
# Async wrappers
# ---------------------------------------------------------------------------
async def acreate_milvus_collection(
    options: Union[CreateCollectionOptions, Mapping[str, Any]],
    client_params: Optional[MilvusClientParams] = None,
) -> Any:
    """Async wrapper around :func:`create_milvus_collection`."""
    return await asyncio.to_thread(create_milvus_collection, options, client_params)


async def adescribe_milvus_collection(
    collection_name: str,
    client_params: Optional[MilvusClientParams] = None,
) -> Dict[str, Any]:
    """Async wrapper around :func:`describe_milvus_collection`."""
    return await asyncio.to_thread(
        describe_milvus_collection, collection_name, client_params
    )


async def adelete_milvus_collection(
    collection_name: str,
    client_params: Optional[MilvusClientParams] = None,
) -> Any:
    """Async wrapper around :func:`delete_milvus_collection`."""
    return await asyncio.to_thread(
        delete_milvus_collection, collection_name, client_params
    )
