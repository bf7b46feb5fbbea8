from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import crud
from dependencies import get_db
from filter_helpers import blank_to_none, normalize_limit, normalize_offset
from models import ActivityLog

router = APIRouter(prefix="/api")


@router.get("/activity-log", response_model=list[ActivityLog])
def list_activity_api(
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    limit: int = 100,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    return crud.list_activity(
        db,
        entity_type=blank_to_none(entity_type),
        entity_id=blank_to_none(entity_id),
        limit=normalize_limit(limit),
        offset=normalize_offset(offset),
    )
