"""Embedder abstraction used by the retriever and indexer.

An embedder turns a :class:`~milvus_plugin.documents.Document` into a dense
vector.  Anything with an ``embed(document, options)`` method (sync or async)
or any plain callable with the same signature can be plugged in;
:class:`SentenceTransformerEmbedder` is the bundled local implementation.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

import numpy as np

from milvus_plugin.documents import Document

logger = logging.getLogger("milvus_plugin.embedder")

DEFAULT_MODEL_NAME = "sentence-transformers/all-MiniLM-L6-v2"


@runtime_checkable
class Embedder(Protocol):
    """Structural type for embedders."""

    async def embed(
        self,
        document: Document,
        options: Optional[Dict[str, Any]] = None,
    ) -> Sequence[float]:
        ...


def _to_float_list(vector: Any) -> List[float]:
    if isinstance(vector, np.ndarray):
        return vector.astype(np.float32).tolist()
    return [float(v) for v in vector]


async def embed(
    embedder: Any,
    content: Document,
    options: Optional[Dict[str, Any]] = None,
) -> List[float]:
    """Embed *content* with *embedder* and return a plain list of floats.

    Coroutine results are awaited; synchronous embedders are run on a worker
    thread so the event loop is not blocked.  Errors propagate unchanged.
    """
    fn = getattr(embedder, "embed", embedder)
    if not callable(fn):
        raise TypeError(f"Object of type {type(embedder).__name__} is not an embedder.")

    if inspect.iscoroutinefunction(fn):
        vector = await fn(content, options)
    else:
        vector = await asyncio.to_thread(fn, content, options)
        if inspect.isawaitable(vector):
            vector = await vector
    return _to_float_list(vector)


class SentenceTransformerEmbedder:
    """Local embedder backed by ``sentence-transformers``.

    The model is loaded lazily on the first call.

    Parameters
    ----------
    model_name:
        Hugging Face model identifier.
    device:
        Torch device string (``"cpu"``, ``"cuda"``, ``"mps"``).
    normalize:
        Whether to L2-normalise embeddings (recommended for IP / COSINE).

    Per-call ``options`` may override ``normalize``.
    """

    def __init__(
        self,
        model_name: str = DEFAULT_MODEL_NAME,
        device: str = "cpu",
        normalize: bool = True,
    ) -> None:
        self.model_name = model_name
        self.device = device
        self.normalize = normalize
        self._model: Any = None
        self._model_lock = threading.Lock()

    async def embed(
        self,
        document: Document,
        options: Optional[Dict[str, Any]] = None,
    ) -> List[float]:
        return await asyncio.to_thread(self._encode, document.text, options or {})

    def _encode(self, text: str, options: Dict[str, Any]) -> List[float]:
        if self._model is None:
            with self._model_lock:
                if self._model is None:
                    self._model = self._load_model()

        embedding: np.ndarray = self._model.encode(
            text,
            batch_size=1,
            show_progress_bar=False,
            normalize_embeddings=options.get("normalize", self.normalize),
        )
        return embedding.astype(np.float32).tolist()

    def _load_model(self) -> Any:
        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as exc:
            raise ImportError(
                "sentence-transformers is required for SentenceTransformerEmbedder.  "
                "Install it with:  pip install 'milvus-plugin[embeddings]'"
            ) from exc

        logger.info(
            "Loading embedding model '%s' on device '%s'",
            self.model_name,
            self.device,
        )
        model = SentenceTransformer(self.model_name, device=self.device)
        logger.info("Embedding model loaded successfully.")
        return model

    def __repr__(self) -> str:
        return (
            f"SentenceTransformerEmbedder(model_name='{self.model_name}', "
            f"device='{self.device}')"
        )
