"""
HTTP transport to the label printer service, built on a shared httpx client.

This module provides a singleton transport pool bound to one service origin.
Every entity in ``labelprint.models`` talks to the service through it.

Key Features:
    - One configured httpx.AsyncClient per process, bound to the base origin
    - Configurable timeouts (connect, read, write, pool)
    - Keep-alive connection management
    - Non-2xx responses surface as TransportError (status code + body)
    - Network failures surface as ServiceUnavailableError
    - X-Request-ID header on every request, shared with log records

Design Philosophy:
    - Singleton pattern so every entity shares the same origin and connections
    - Async-only operations
    - Pydantic models for type-safe configuration
    - No automatic retries: each failure propagates to the caller once
    - Async-safe lazy creation with an asyncio lock

Configuration Example:
    config = ClientConfig(
        base_url="http://printer.local:3000",
        timeout=TimeoutConfig(connect=2.0, read=60.0),
    )
    TransportPool.configure(config)

Usage:
    transport = await TransportPool.get_transport()
    images = await transport.get("/images")
    await transport.post("/images/abc/invert", {"invert": True})
    await transport.delete("/images/abc")

Testing:
    Pass any httpx transport (e.g. httpx.ASGITransport wrapping a fake
    service app) to ``TransportPool.configure(config, http_transport=...)``.
"""

import asyncio
from typing import Any
from uuid import uuid4

import httpx
import structlog
from asgi_correlation_id import correlation_id
from pydantic import BaseModel, Field

from labelprint.core.exceptions import ServiceUnavailableError, TransportError

__all__ = [
    "REQUEST_ID_HEADER",
    "ClientConfig",
    "LabelServiceTransport",
    "PoolConfig",
    "TimeoutConfig",
    "TransportPool",
]

REQUEST_ID_HEADER = "X-Request-ID"

logger = structlog.get_logger(__name__)


class TimeoutConfig(BaseModel):
    """HTTP client timeout settings."""

    connect: float = Field(default=5.0, description="Connection timeout (seconds)")
    read: float = Field(default=30.0, description="Read timeout (seconds)")
    write: float = Field(default=30.0, description="Write timeout (seconds)")
    pool: float = Field(default=30.0, description="Pool timeout (seconds)")

    def to_httpx_timeout(self) -> httpx.Timeout:
        """Convert to httpx.Timeout."""
        return httpx.Timeout(**self.model_dump())


class PoolConfig(BaseModel):
    """Connection pool settings."""

    max_connections: int = Field(default=10, description="Max total connections")
    max_keepalive: int = Field(default=5, description="Max idle connections")
    keepalive_expiry: float = Field(default=30.0, description="Idle connection TTL (seconds)")


class ClientConfig(BaseModel):
    """HTTP client configuration."""

    base_url: str = Field(default="http://localhost:3000", description="Label service origin")
    timeout: TimeoutConfig = Field(default_factory=TimeoutConfig)
    pool: PoolConfig = Field(default_factory=PoolConfig)
    http2: bool = Field(default=False, description="Enable HTTP/2 (requires h2)")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    follow_redirects: bool = Field(default=True, description="Follow redirects")


def _decode_body(response: httpx.Response) -> Any:
    """Parsed response body: JSON when present, None for an empty body."""
    if not response.content:
        return None
    if "json" in response.headers.get("content-type", ""):
        return response.json()
    return response.text


class LabelServiceTransport:
    """Thin request layer over an httpx.AsyncClient bound to the service origin."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @property
    def base_url(self) -> str:
        """Origin the underlying client sends requests to, without trailing slash."""
        return str(self._client.base_url).rstrip("/")

    @property
    def is_closed(self) -> bool:
        """True once the underlying client has been closed."""
        return self._client.is_closed

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send one request and return the raw response.

        Args:
            method: HTTP method.
            path: Path relative to the service origin.
            **kwargs: Passed to httpx.AsyncClient.request().

        Raises:
            TransportError: On any non-2xx response.
            ServiceUnavailableError: When no response was received.
        """
        request_id = correlation_id.get() or uuid4().hex[:16]
        token = correlation_id.set(request_id)
        try:
            headers = {REQUEST_ID_HEADER: request_id, **kwargs.pop("headers", {})}
            logger.debug("label_service_request", method=method, path=path)

            try:
                response = await self._client.request(method, path, headers=headers, **kwargs)
            except httpx.RequestError as exc:
                logger.error("label_service_unreachable", method=method, path=path, error=str(exc))
                raise ServiceUnavailableError(
                    f"Label service unavailable: {method} {path}",
                    detail={"method": method, "path": path, "error": str(exc)},
                ) from exc

            if not response.is_success:
                logger.warning(
                    "label_service_error",
                    method=method,
                    path=path,
                    status_code=response.status_code,
                )
                raise TransportError(
                    f"{method} {path} failed",
                    status_code=response.status_code,
                    body=response.text,
                    detail={"method": method, "path": path},
                )

            return response
        finally:
            correlation_id.reset(token)

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        response = await self.request("GET", path, params=params)
        return _decode_body(response)

    async def get_bytes(self, path: str, params: dict[str, Any] | None = None) -> bytes:
        """Fetch binary content (PNG previews)."""
        response = await self.request("GET", path, params=params)
        return response.content

    async def post(
        self,
        path: str,
        body: Any = None,
        files: dict[str, Any] | None = None,
    ) -> Any:
        """POST a JSON body, or a multipart body when ``files`` is given."""
        if files is not None:
            response = await self.request("POST", path, files=files)
        elif body is not None:
            response = await self.request("POST", path, json=body)
        else:
            response = await self.request("POST", path)
        return _decode_body(response)

    async def delete(self, path: str) -> None:
        await self.request("DELETE", path)

    async def aclose(self) -> None:
        await self._client.aclose()


class TransportPool:
    """Singleton transport bound to the configured label service origin."""

    _transport: LabelServiceTransport | None = None
    _config: ClientConfig = ClientConfig()
    _http_transport: httpx.AsyncBaseTransport | None = None
    _lock: asyncio.Lock | None = None

    @classmethod
    def _get_lock(cls) -> asyncio.Lock:
        """Get or create lock for current event loop."""
        if cls._lock is None:
            cls._lock = asyncio.Lock()
        return cls._lock

    @classmethod
    def configure(
        cls,
        config: ClientConfig | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Set client configuration; takes effect on the next client creation.

        Raises:
            RuntimeError: If a transport is live. Call ``await dispose()`` first.
        """
        if cls._transport is not None:
            msg = "TransportPool already has a live transport. Call await TransportPool.dispose() first."
            raise RuntimeError(msg)
        if config is not None:
            cls._config = config
        if http_transport is not None:
            cls._http_transport = http_transport

    @classmethod
    def base_url(cls) -> str:
        """Origin every request is sent to."""
        if cls._transport is not None:
            return cls._transport.base_url
        return cls._config.base_url.rstrip("/")

    @classmethod
    async def get_transport(cls) -> LabelServiceTransport:
        """Get shared transport (async-safe)."""
        if cls._transport is None:
            async with cls._get_lock():
                if cls._transport is None:
                    limits = httpx.Limits(
                        max_connections=cls._config.pool.max_connections,
                        max_keepalive_connections=cls._config.pool.max_keepalive,
                        keepalive_expiry=cls._config.pool.keepalive_expiry,
                    )

                    transport = cls._http_transport or httpx.AsyncHTTPTransport(
                        retries=0,
                        http2=cls._config.http2,
                        limits=limits,
                        verify=cls._config.verify_ssl,
                    )

                    client = httpx.AsyncClient(
                        base_url=cls.base_url(),
                        transport=transport,
                        timeout=cls._config.timeout.to_httpx_timeout(),
                        follow_redirects=cls._config.follow_redirects,
                    )
                    cls._transport = LabelServiceTransport(client)
                    logger.info("label_service_transport_created", base_url=cls.base_url())
        return cls._transport

    @classmethod
    async def dispose(cls) -> None:
        """Close client and release resources."""
        if cls._transport is not None:
            await cls._transport.aclose()
            cls._transport = None
        cls._http_transport = None
        cls._lock = None
