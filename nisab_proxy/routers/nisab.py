from __future__ import annotations

from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import JSONResponse

from nisab_proxy.services.nisab.cache_service import NisabCacheService

"""Nisab proxy router.

Endpoints:
    - GET /zakat-nisab      -> cached / live / fallback nisab thresholds
    - OPTIONS /zakat-nisab  -> empty CORS preflight answer

Unsupported query values are normalized to defaults rather than rejected, so
GET always answers 200 with a well-formed entry.
"""

router = APIRouter(tags=["nisab"])

ALLOW_METHODS = "GET, OPTIONS"


def get_nisab_service(request: Request) -> NisabCacheService:
    return request.app.state.nisab_service


def cors_headers(request: Request) -> Dict[str, str]:
    """CORS headers for this request, driven by settings.cors_allow_origins."""
    allowed = request.app.state.settings.cors_allow_origins
    headers = {"Access-Control-Allow-Methods": ALLOW_METHODS}
    if "*" in allowed:
        headers["Access-Control-Allow-Origin"] = "*"
        return headers
    headers["Vary"] = "Origin"
    origin = request.headers.get("origin")
    if origin in allowed:
        headers["Access-Control-Allow-Origin"] = origin
    return headers


@router.get("/zakat-nisab", summary="Nisab thresholds for a currency and standard")
def get_nisab(
    currency: Optional[str] = Query(None, description="ISO currency code (default NGN)"),
    standard: Optional[str] = Query(
        None, description="Calculation standard: classical or common (default classical)"
    ),
    svc: NisabCacheService = Depends(get_nisab_service),
    headers: Dict[str, str] = Depends(cors_headers),
):
    entry = svc.get_nisab(currency, standard)
    return JSONResponse(content=entry, headers=headers)


@router.options("/zakat-nisab", include_in_schema=False)
def preflight_nisab(headers: Dict[str, str] = Depends(cors_headers)) -> Response:
    return Response(status_code=200, headers=headers)
