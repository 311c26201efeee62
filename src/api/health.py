"""Health check endpoint."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.orm import Session

from src.db.database import get_db

router = APIRouter()


@router.get("/health")
def health_check(request: Request, db: Session = Depends(get_db)) -> dict[str, str]:
    """Return database connectivity and whether pack config is loaded."""
    service = getattr(request.app.state, "pack_service", None)
    config = "loaded" if service is not None else "missing"
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ok", "database": "connected", "config": config}
    except Exception:
        return {"status": "error", "database": "disconnected", "config": config}
