from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

import crud
from dependencies import get_db, require_access
from models import AccessLevel, AssetStatus, AssetStatusIn, BUILTIN_STATUSES, RequestContext

router = APIRouter(prefix="/api/asset-statuses")


@router.get("", response_model=list[AssetStatus])
def list_statuses_api(db: Session = Depends(get_db)):
    return crud.list_asset_statuses(db)


@router.post("", response_model=AssetStatus, status_code=201)
def create_status_api(
    body: AssetStatusIn,
    ctx: RequestContext = Depends(require_access(AccessLevel.MANAGER)),
    db: Session = Depends(get_db),
):
    name = (body.name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="name is required")
    if name in BUILTIN_STATUSES:
        raise HTTPException(status_code=409, detail="built-in status")

    created = crud.create_asset_status(db, body)
    if not created:
        raise HTTPException(status_code=409, detail="status already exists")
    return created


@router.delete("/{status_id}", status_code=204)
def delete_status_api(
    status_id: str,
    ctx: RequestContext = Depends(require_access(AccessLevel.MANAGER)),
    db: Session = Depends(get_db),
):
    if status_id in BUILTIN_STATUSES:
        raise HTTPException(status_code=409, detail="built-in status")
    if not crud.get_asset_status(db, status_id):
        raise HTTPException(status_code=404, detail="status not found")
    if not crud.delete_asset_status(db, status_id=status_id):
        raise HTTPException(status_code=409, detail="status is in use")
    return None
