"""Unit tests for the relay client info resolver."""

from unittest.mock import Mock

import httpx
import pytest

from conftest import mock_transport
from services.client_info import ClientInfoResolver


def fake_request(headers=None, host="10.0.0.5"):
    request = Mock()
    request.headers = httpx.Headers(headers or {})
    request.client = Mock(host=host)
    return request


class TestClientInfoResolver:
    """Test cases for ClientInfoResolver."""

    def test_prefers_cloudflare_ip(self, mock_config) -> None:
        resolver = ClientInfoResolver(mock_config)
        request = fake_request({"CF-Connecting-IP": "192.0.2.1", "X-Forwarded-For": "198.51.100.2"})

        assert resolver.basic_info(request).ip == "192.0.2.1"

    def test_first_forwarded_address(self, mock_config) -> None:
        resolver = ClientInfoResolver(mock_config)
        request = fake_request({"X-Forwarded-For": "198.51.100.2, 10.0.0.1"})

        assert resolver.basic_info(request).ip == "198.51.100.2"

    def test_falls_back_to_peer(self, mock_config) -> None:
        info = ClientInfoResolver(mock_config).basic_info(fake_request())

        assert info.ip == "10.0.0.5"
        assert info.country_code == "XX"
        assert info.platform == mock_config.relay_platform

    @pytest.mark.asyncio
    async def test_geoip_enrichment(self, mock_config) -> None:
        config = mock_config.model_copy(update={"geoip_enabled": True})

        def handler(request: httpx.Request) -> httpx.Response:
            assert "10.0.0.5" in str(request.url)
            return httpx.Response(
                200,
                json={"status": "success", "country": "Japan", "countryCode": "JP", "city": "Tokyo", "as": "AS2516"},
            )

        info = await ClientInfoResolver(config, mock_transport(handler)).resolve(fake_request())

        assert info.country == "Japan"
        assert info.country_code == "JP"
        assert info.asn == "AS2516"

    @pytest.mark.asyncio
    async def test_geoip_failure_falls_back(self, mock_config) -> None:
        config = mock_config.model_copy(update={"geoip_enabled": True})

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500)

        info = await ClientInfoResolver(config, mock_transport(handler)).resolve(fake_request())

        assert info.country == "Unknown"

    @pytest.mark.asyncio
    async def test_geoip_disabled_skips_lookup(self, mock_config) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("lookup should not happen")

        info = await ClientInfoResolver(mock_config, mock_transport(handler)).resolve(fake_request())

        assert info.ip == "10.0.0.5"
