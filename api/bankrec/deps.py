from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from .config import Settings, get_settings
from .db import get_db
from .services.workflow import ReconciliationWorkflow


def get_current_user(x_user_id: str | None = Header(None, alias="X-User-Id")) -> str:
    # Identity is asserted by the caller; authentication happens upstream
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(401, "X-User-Id header is required")
    return x_user_id.strip()


def get_workflow(db: Session = Depends(get_db), settings: Settings = Depends(get_settings)) -> ReconciliationWorkflow:
    return ReconciliationWorkflow(db, settings)
