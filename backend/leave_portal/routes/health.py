from fastapi import APIRouter
from datetime import datetime
import time
from leave_portal.db import get_db, LEAVE_REQUESTS
from leave_portal.utils.ws_manager import manager

router = APIRouter()

API_VERSION = "1.0.0"


async def _database_check() -> dict:
    db = get_db()
    started = time.perf_counter()
    await db.command("ping")
    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
    pending = await db[LEAVE_REQUESTS].count_documents({"status": "pending"})
    return {"status": "healthy", "response_time_ms": elapsed_ms, "pending_leave_requests": pending}


@router.get("/health")
async def health_check():
    """
    Readiness report: MongoDB reachability and event-socket load.
    A failing database marks the service ``degraded`` but still answers 200.
    """
    checks = {}
    overall = "healthy"
    try:
        checks["database"] = await _database_check()
    except Exception as e:
        checks["database"] = {"status": "unhealthy", "error": str(e)}
        overall = "degraded"

    checks["websockets"] = {"status": "healthy", **manager.get_connection_stats()}
    return {
        "status": overall,
        "timestamp": datetime.utcnow().isoformat(),
        "version": API_VERSION,
        "checks": checks,
    }


@router.get("/health/live")
async def liveness_check():
    return {"status": "alive", "timestamp": datetime.utcnow().isoformat()}
