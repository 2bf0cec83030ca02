from __future__ import annotations

from collections.abc import AsyncGenerator

import httpx


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """One outbound client per request, closed when the response is done.

    Nothing is shared between claims: no connection pool, no token cache.
    Tests override this dependency with a client on an httpx.MockTransport.
    """
    async with httpx.AsyncClient() as client:
        yield client
