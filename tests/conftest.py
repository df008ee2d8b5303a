import httpx
import pytest_asyncio

from apiprobe.core.engine import Harness

BASE_URL = "http://api.test"


def make_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def status_handler(code: int):
    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(code, request=request, json={"status": code})
    return _handler


def refused(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("Connection refused", request=request)


@pytest_asyncio.fixture
async def harness_for():
    """Build a Harness around a stub handler; closes the stub clients afterwards."""
    clients = []

    def _build(handler, logger=None) -> Harness:
        client = make_client(handler)
        clients.append(client)
        return Harness(BASE_URL, client=client, logger=logger)

    yield _build
    for client in clients:
        await client.aclose()
