"""FastAPI dependencies resolving relay services from application state."""

from typing import Any, Dict

import httpx
from fastapi import Request

from config import ApplicationConfig
from services import ClientInfoResolver, RelaySessionStore, SessionCredential


def get_config(request: Request) -> ApplicationConfig:
    return request.app.state.config  # type: ignore[no-any-return]


def get_session_store(request: Request) -> RelaySessionStore:
    return request.app.state.session_store  # type: ignore[no-any-return]


def get_credential(request: Request) -> SessionCredential:
    return request.app.state.credential  # type: ignore[no-any-return]


def get_client_info_resolver(request: Request) -> ClientInfoResolver:
    return request.app.state.client_info  # type: ignore[no-any-return]


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client  # type: ignore[no-any-return]


def worker_descriptor(config: ApplicationConfig) -> Dict[str, Any]:
    return {
        "region": config.relay_region,
        "datacenter": config.relay_datacenter,
        "platform": config.relay_platform,
        "version": config.worker_version,
    }
