"""End-to-end tests: the client services talking to in-process relay apps."""

from typing import Dict
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from conftest import mock_transport
from main import create_app
from models import ConnectionState
from services import (
    BenchmarkRunner,
    ConnectionManager,
    EndpointSelector,
    HealthProbe,
    RelayClient,
    SessionCredential,
)
from utils import ConnectFailed


class RoutingTransport(httpx.AsyncBaseTransport):
    """Dispatches requests to ASGI apps by host; unknown hosts are unreachable."""

    def __init__(self, apps: Dict[str, FastAPI]) -> None:
        self.routes = {host: httpx.ASGITransport(app=app) for host, app in apps.items()}
        self.hits: Dict[str, int] = {}

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        self.hits[host] = self.hits.get(host, 0) + 1
        transport = self.routes.get(host)
        if transport is None:
            raise httpx.ConnectError(f"no route to {host}", request=request)
        return await transport.handle_async_request(request)


def upstream_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        json={"path": request.url.path, "forwarded_for": request.headers.get("X-Forwarded-For")},
    )


def unhealthy_app() -> FastAPI:
    app = FastAPI()

    @app.get("/health")
    async def health():
        return JSONResponse(status_code=503, content={"status": "degraded"})

    return app


@pytest.fixture
def routing(mock_config) -> RoutingTransport:
    def relay() -> FastAPI:
        return create_app(mock_config, http_client=mock_transport(upstream_handler))

    # w1.test is absent from the routes and therefore unreachable.
    return RoutingTransport(
        {
            "w2.test": relay(),
            "w3.test": unhealthy_app(),
            "eu1.test": relay(),
        }
    )


@pytest_asyncio.fixture
async def manager(mock_config, routing):
    http_client = httpx.AsyncClient(transport=routing)
    manager = ConnectionManager(
        mock_config,
        EndpointSelector(mock_config, HealthProbe(mock_config, http_client)),
        SessionCredential(mock_config),
        RelayClient(mock_config, http_client),
    )
    yield manager
    await manager.close()
    await http_client.aclose()


class TestEndToEnd:
    """Full session lifecycle against in-process relays."""

    @pytest.mark.asyncio
    async def test_session_lifecycle(self, manager, routing) -> None:
        ack = await manager.connect("US")

        assert manager.state == ConnectionState.CONNECTED
        assert manager.session.endpoint.url == "https://w2.test"
        assert ack.session_id == manager.session.session_id
        assert routing.hits["w1.test"] == 1
        assert routing.hits["w3.test"] == 1

        response = await manager.fetch("https://example.com/data")
        assert response.status_code == 200
        assert response.json()["path"] == "/data"
        assert response.headers["X-Proxy-Platform"] == "FastAPI"

        token_before = manager.session.token
        await manager.refresh_token()
        assert manager.session.session_id == token_before.payload.session_id
        assert manager.session.token_expiry >= manager.session.connected_at
        response = await manager.fetch("https://example.com/again")
        assert response.status_code == 200

        await manager.switch_region("EU")
        assert manager.session.region == "EU"
        assert manager.session.endpoint.url == "https://eu1.test"
        response = await manager.fetch("https://example.com/eu")
        assert response.status_code == 200

        await manager.disconnect()
        assert manager.state == ConnectionState.DISCONNECTED
        assert not manager.refresh_pending

    @pytest.mark.asyncio
    async def test_region_with_no_reachable_relay(self, manager, routing) -> None:
        del routing.routes["eu1.test"]

        with pytest.raises(ConnectFailed):
            await manager.connect("EU")

        assert manager.state == ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_benchmark(self, manager, mock_config) -> None:
        runner = BenchmarkRunner(mock_config, manager, sleep=AsyncMock())

        report = await runner.run("US", iterations=3)

        assert report.success_count == 3
        assert report.avg_connection_time_ms > 0
        assert manager.session is None

    @pytest.mark.asyncio
    async def test_all_regions(self, manager, mock_config) -> None:
        runner = BenchmarkRunner(mock_config, manager, sleep=AsyncMock())

        results = await runner.test_all_regions()

        assert [r.success for r in results] == [True, True]
        assert manager.session is None
