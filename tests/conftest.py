import json
from unittest.mock import Mock, patch

import pytest
from fastapi.testclient import TestClient

from odata_proxy.config import ProxyConfig
from odata_proxy.main import create_app

UPSTREAM_URL = "https://upstream.example.com/api/transactions"


def make_item(i, **overrides):
    item = {
        "id": str(i),
        "outlet": "Airport" if i % 2 else "Mall",
        "date": f"2025-08-0{i}",
        "day": "Friday",
        "guest_count": str(i * 2),
        "category": "Food",
        "quantity": str(i),
        "cost_price": "1.5",
        "selling_price": "3",
        "total_sales": str(i * 3),
        "total_cost_price": str(i * 1.5),
        "profit": str(i * 1.5),
    }
    item.update(overrides)
    return item


@pytest.fixture
def upstream_items():
    return [make_item(i) for i in range(1, 6)]


@pytest.fixture
def config():
    return ProxyConfig(upstream_url=UPSTREAM_URL)


def upstream_response(payload=None, status_code=200, chunks=None):
    """A streamed upstream response; `chunks` overrides the JSON-encoded payload."""
    if chunks is None:
        chunks = [json.dumps(payload).encode("utf-8")]
    resp = Mock()
    resp.status_code = status_code
    resp.iter_content.side_effect = lambda chunk_size=None: iter(chunks)
    return resp


@pytest.fixture
def mock_get(upstream_items):
    """Patch the upstream GET; returns the mock so tests can reconfigure it."""
    with patch("odata_proxy.odata.upstream.requests.get") as get:
        get.return_value = upstream_response(upstream_items)
        yield get


@pytest.fixture
def client(config):
    return TestClient(create_app(config))
