"""
CORS headers for API responses.

Every response carries the same header set; preflight requests are answered
before routing and authentication.
"""

from typing import Awaitable, Callable, Optional

from fastapi import Request, Response

ALLOW_METHODS = "GET, POST, OPTIONS"
ALLOW_HEADERS = "Content-Type, X-API-Key, Authorization"
MAX_AGE_SECONDS = 86400


def cors_headers(origin: Optional[str] = None) -> dict[str, str]:
    """Build the CORS header set for a request origin."""
    return {
        "Access-Control-Allow-Origin": origin or "*",
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
        "Access-Control-Max-Age": str(MAX_AGE_SECONDS),
    }


async def cors_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Answer preflight requests and attach CORS headers to everything else."""
    if request.method == "OPTIONS":
        return Response(status_code=200, headers={"Access-Control-Allow-Origin": "*"})

    response = await call_next(request)
    response.headers.update(cors_headers(request.headers.get("origin")))
    return response
