"""Framework document type and the reserved metadata text key."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

# Metadata field used to carry the document text through Milvus.
TEXT_KEY = "_content"


@dataclass
class Document:
    """A piece of text plus free-form metadata and an optional identifier.

    Attributes:
        content: The document text.
        metadata: Arbitrary JSON-serialisable metadata.
        id: Optional identifier, used as the Milvus primary key when indexed.
    """

    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None

    @classmethod
    def from_text(
        cls,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
        id: Optional[str] = None,
    ) -> "Document":
        return cls(content=content, metadata=dict(metadata or {}), id=id)

    @property
    def text(self) -> str:
        return self.content

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the framework's JSON document shape."""
        data: Dict[str, Any] = {
            "content": [{"text": self.content}],
            "metadata": dict(self.metadata),
        }
        if self.id is not None:
            data["id"] = self.id
        return data
