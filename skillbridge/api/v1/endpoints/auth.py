"""Pass-through to the external auth provider (sign-up, sign-in, e-mail verification, session)"""
import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import Response

from skillbridge.core.config import settings as default_settings
from skillbridge.core.exceptions import AuthProviderError, AuthProviderUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter()

# Connection-level headers that must not be copied between hops
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
    "host",
    "content-length",
    "content-encoding",
}


def _forwardable(headers) -> list:
    return [(name, value) for name, value in headers if name.lower() not in HOP_BY_HOP_HEADERS]


async def _send(client: httpx.AsyncClient, request: Request, url: str) -> httpx.Response:
    return await client.request(
        request.method,
        url,
        params=request.query_params.multi_items(),
        headers=_forwardable(request.headers.items()),
        content=await request.body(),
    )


@router.api_route("/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def proxy_auth(path: str, request: Request):
    settings = getattr(request.app.state, "settings", default_settings)
    base_url: Optional[str] = settings.AUTH_PROVIDER_URL
    if not base_url:
        raise AuthProviderUnavailableError()

    url = f"{base_url.rstrip('/')}/{path}"
    client: Optional[httpx.AsyncClient] = getattr(request.app.state, "auth_http_client", None)
    try:
        if client is not None:
            upstream = await _send(client, request, url)
        else:
            async with httpx.AsyncClient(timeout=10.0) as client:
                upstream = await _send(client, request, url)
    except httpx.HTTPError as e:
        logger.error(f"Auth provider request to /{path} failed: {e}", exc_info=True)
        raise AuthProviderError()

    response = Response(content=upstream.content, status_code=upstream.status_code)
    for name, value in _forwardable(upstream.headers.multi_items()):
        response.headers.append(name, value)
    return response
