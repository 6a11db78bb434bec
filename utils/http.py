from typing import AsyncIterator

import httpx


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    """Cliente HTTP por requisição para chamadas de saída (webhooks, PostgREST)."""
    async with httpx.AsyncClient(timeout=30.0) as client:
        yield client
