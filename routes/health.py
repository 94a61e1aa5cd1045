from fastapi import APIRouter
from fastapi.responses import JSONResponse

from services import redis_client
from utils.metrics import snapshot

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health():
    if not redis_client.ping():
        return JSONResponse(status_code=503, content={"status": "DEGRADED", "redis": "unavailable"})
    return {
        "status": "OK",
        "redis": "connected"
    }


@router.get("/metrics")
def metrics():
    return snapshot()
