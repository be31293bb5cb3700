"""
CORS middleware.

The mobile runtime does not always send an Origin header, so the permissive
headers are added to every response instead of only to cross-origin ones.
Any OPTIONS request is answered here without reaching the routers.
"""

from fastapi import Request
from fastapi.responses import PlainTextResponse

from quota_gate.config import get_settings


def cors_headers() -> dict[str, str]:
    """Headers carried by every response."""
    settings = get_settings()
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Headers": settings.cors_allow_headers,
    }


async def cors_middleware(request: Request, call_next):
    """Answer preflights and add CORS headers to all responses"""

    if request.method == "OPTIONS":
        response = PlainTextResponse("ok")
        response.headers["Access-Control-Allow-Methods"] = "*"
    else:
        response = await call_next(request)

    response.headers.update(cors_headers())
    return response
