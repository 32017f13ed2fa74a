"""集成测试共享 fixture"""

import json
from pathlib import Path

import httpx
import pytest_asyncio
from flightdeck.core.store import create_kv_store


class CollectorStub:
    """记录所有到达采集端的请求"""

    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code)

    @property
    def payloads(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]

    @property
    def names(self) -> list[str]:
        return [p["event"] for p in self.payloads]


@pytest_asyncio.fixture
async def collector():
    return CollectorStub()


@pytest_asyncio.fixture
async def http_client(collector):
    client = httpx.AsyncClient(transport=httpx.MockTransport(collector.handler))
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def db_path(tmp_path: Path) -> str:
    return str(tmp_path / "sqlite" / "flightdeck.db")


@pytest_asyncio.fixture
async def kv_store(db_path):
    store = await create_kv_store(db_path)
    yield store
    await store.close()
