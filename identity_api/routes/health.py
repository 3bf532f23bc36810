# identity_api/routes/health.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session
import datetime
import logging

from identity_api.database import get_db

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/health",
    tags=["Health Check"]
)


@router.get("/")
def health_check(db: Session = Depends(get_db)):
    """
    Health check with database connectivity
    """
    health_status = {
        "status": "healthy",
        "timestamp": datetime.datetime.now().isoformat(),
        "service": "Identity API",
        "version": "1.0.0",
    }

    try:
        db.execute(text("SELECT 1"))
        health_status["database"] = {"status": "connected", "type": db.bind.dialect.name}
    except Exception as e:
        logger.error(f"Health check database probe failed: {e}")
        health_status["database"] = {"status": "disconnected"}
        health_status["status"] = "degraded"

    return JSONResponse(
        content=health_status,
        headers={
            "Cache-Control": "no-cache, no-store, must-revalidate",
            "X-Health-Check": "true"
        }
    )


@router.get("/ping")
def ping():
    """
    Simple ping endpoint for keep-alive
    """
    return JSONResponse(
        content={"status": "pong", "timestamp": datetime.datetime.now().isoformat()},
        headers={"Cache-Control": "no-cache"}
    )
