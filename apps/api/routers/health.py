"""
Health check endpoint.
GET /health - Returns 200 if the storage backend is reachable, 503 otherwise.
"""

import time
from typing import Any

from fastapi import APIRouter, Depends, Response, status

from apps.api.routers.uploads import get_storage
from packages.shared.storage import FileStorageBackend

router = APIRouter()


@router.get("/health")
async def health_check(
    response: Response,
    storage: FileStorageBackend = Depends(get_storage),
) -> dict[str, Any]:
    """
    Health check endpoint.

    Returns:
        200 + {"status": "ok", ...} if all checks pass
        503 + {"status": "degraded", ...} if any check fails
    """
    result: dict[str, Any] = {
        "status": "ok",
        "api": "ok",
        "storage": "ok",
        "storage_backend": storage.backend_name,
    }

    # --- Check storage backend ---
    try:
        start = time.perf_counter()
        await storage.ping()
        result["storage_latency_ms"] = round((time.perf_counter() - start) * 1000, 2)
    except Exception:
        result["storage"] = "fail"
        result["status"] = "degraded"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return result
