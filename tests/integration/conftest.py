"""Integration test fixtures — A live Elasticsearch-compatible service.

Expects a service on localhost:9200 (override with INDEXSYNC_IT_URL), e.g.:
    docker run -p 9200:9200 -e discovery.type=single-node elasticsearch:7.17.22
"""

from __future__ import annotations

import os
import time

import httpx
import pytest


def _wait_for_service(url: str, timeout: float = 5.0) -> bool:
    """Block until *url* returns HTTP 200, or timeout."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            r = httpx.get(url, timeout=2)
            if r.status_code == 200:
                return True
        except httpx.HTTPError:
            pass
        time.sleep(1)
    return False


@pytest.fixture(scope="session")
def elasticsearch_url() -> str:
    """Ensure the search service is reachable."""
    url = os.environ.get("INDEXSYNC_IT_URL", "http://localhost:9200")
    if not _wait_for_service(url):
        pytest.skip(f"Search service not available at {url}")
    return url


@pytest.fixture
def it_index() -> str:
    return f"indexsync-it-{int(time.time() * 1000)}"
