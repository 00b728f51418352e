from fastapi import APIRouter, Request
from ...db import db_health

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health(request: Request):
    db_ok = await db_health(request.app.state.engine)
    return {
        "status": "ok" if db_ok else "degraded",
        "dependencies": {
            "database": db_ok,
            "sms_gateway": request.app.state.sms_service.enabled,
        },
    }

@router.get("/readiness")
async def readiness(request: Request):
    db_ok = await db_health(request.app.state.engine)
    return {"ready": db_ok, "database": db_ok}

@router.get("/liveness")
async def liveness():
    return {"alive": True}
