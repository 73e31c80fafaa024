from __future__ import annotations

import ipaddress
import logging
from typing import Optional, Sequence

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from .config import IPNetwork, settings

logger = logging.getLogger(__name__)

# Host names the test client and local tooling report instead of an address
LOOPBACK_NAMES = frozenset({"testclient", "localhost", "testserver"})


def client_address(request: Request) -> str:
    if settings.behind_proxy:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    host = request.client.host if request.client else None
    if not host or host in LOOPBACK_NAMES:
        return "127.0.0.1"
    return host


def is_blocked(address: str, networks: Sequence[IPNetwork]) -> bool:
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        # Unparseable forwarded values are refused outright
        return address not in LOOPBACK_NAMES
    return any(ip in network for network in networks)


class BlockListMiddleware(BaseHTTPMiddleware):
    """Answer 403 for clients inside ``settings.block_ips``."""

    def __init__(self, app, networks: Optional[Sequence[IPNetwork]] = None) -> None:
        super().__init__(app)
        self._networks = networks

    @property
    def networks(self) -> Sequence[IPNetwork]:
        if self._networks is not None:
            return self._networks
        return settings.block_networks

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        networks = self.networks
        if networks:
            address = client_address(request)
            if is_blocked(address, networks):
                logger.warning("Blocked request from %s to %s", address, request.url.path)
                return JSONResponse({"error": "Access denied"}, status_code=403)
        return await call_next(request)
