"""Client identity and location lookup for the relay."""

from typing import Optional

import httpx
from fastapi import Request

from config import ApplicationConfig
from models import ClientInfo
from utils import create_contextual_logger


class ClientInfoResolver:
    """Builds the ClientInfo a relay reports back to its clients.

    The basic view comes from request headers (Cloudflare-style geo headers when
    present). With GeoIP enabled it is enriched from an external lookup service;
    a failed lookup falls back to the basic view.
    """

    def __init__(self, config: ApplicationConfig, client: Optional[httpx.AsyncClient] = None) -> None:
        self.config = config
        self.client = client
        self.logger = create_contextual_logger(__name__, service="client_info")

    def basic_info(self, request: Request) -> ClientInfo:
        headers = request.headers
        forwarded = headers.get("CF-Connecting-IP") or headers.get("X-Forwarded-For")
        if forwarded:
            ip = forwarded.split(",")[0].strip()
        elif request.client is not None:
            ip = request.client.host
        else:
            ip = "127.0.0.1"

        return ClientInfo(
            ip=ip,
            country=headers.get("CF-IPCountry-Name", "Unknown"),
            country_code=headers.get("CF-IPCountry", "XX"),
            city=headers.get("CF-IPCity", "Unknown"),
            region=headers.get("CF-Region", "Unknown"),
            timezone=headers.get("CF-Timezone", "UTC"),
            datacenter=self.config.relay_datacenter,
            user_agent=headers.get("User-Agent", "Unknown"),
            platform=self.config.relay_platform,
        )

    async def resolve(self, request: Request) -> ClientInfo:
        info = self.basic_info(request)
        if not self.config.geoip_enabled or self.client is None:
            return info

        try:
            response = await self.client.get(self.config.geoip_url.format(ip=info.ip), timeout=5.0)
            response.raise_for_status()
            geo = response.json()
        except (httpx.HTTPError, ValueError) as e:
            self.logger.warning("GeoIP lookup failed", ip=info.ip, error=str(e))
            return info

        if geo.get("status") != "success":
            return info

        return info.model_copy(
            update={
                "country": geo.get("country", info.country),
                "country_code": geo.get("countryCode", info.country_code),
                "region": geo.get("region", info.region),
                "city": geo.get("city", info.city),
                "timezone": geo.get("timezone", info.timezone),
                "asn": geo.get("as") or 0,
            }
        )
