from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db

router = APIRouter()

@router.get("/z")
def healthz():
    # Check si l'API est up
    return {"status": "ok"}


@router.get("/ready")
def readiness(db: Session = Depends(get_db)):
    # DB joignable + agent configuré
    db.execute(text("SELECT 1"))
    return {"status": "ok", "database": "ok", "agent": "configured" if settings.GROQ_API_KEY else "missing api key"}
