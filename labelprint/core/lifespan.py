"""
Client lifespan management.

Wraps a UI session (or any async program) so that the label service transport
is configured from settings on entry and its connections are closed on exit.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from labelprint.core.rest_api import ClientConfig, LabelServiceTransport, TransportPool
from labelprint.main_config import get_service_config


@asynccontextmanager
async def client_lifespan(
    config: ClientConfig | None = None,
) -> AsyncGenerator[LabelServiceTransport, None]:
    """Open the shared transport for the duration of the block.

    Startup:
        - Configure the transport pool (explicit config or LABEL_SERVICE_* settings)
        - Create the HTTP client

    Shutdown:
        - Close the HTTP client

    Raises:
        RuntimeError: If the pool already has a live transport
    """
    TransportPool.configure(config or get_service_config().to_client_config())
    transport = await TransportPool.get_transport()
    try:
        yield transport
    finally:
        await TransportPool.dispose()
