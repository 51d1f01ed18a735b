"""Shared pytest configuration.

Integration tests (marked ``@pytest.mark.integration``) need a running Milvus
server and are skipped unless an address is given::

    pytest -m integration --milvus-uri http://localhost:19530
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest

# ---------------------------------------------------------------------------
# Make the package importable from the repo root
# ---------------------------------------------------------------------------
SRC_ROOT = Path(__file__).resolve().parent.parent / "src"
sys.path.insert(0, str(SRC_ROOT))


def pytest_addoption(parser: Any) -> None:
    parser.addoption(
        "--milvus-uri",
        default=None,
        help="Address of a live Milvus server for integration tests.",
    )


def pytest_collection_modifyitems(config: Any, items: list) -> None:
    if config.getoption("--milvus-uri"):
        return
    skip = pytest.mark.skip(reason="needs --milvus-uri to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


@pytest.fixture
def milvus_uri(request: Any) -> str:
    return request.config.getoption("--milvus-uri")
