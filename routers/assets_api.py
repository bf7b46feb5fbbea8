from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

import crud
import lifecycle
from csv_utils import assets_to_csv_response, csv_bytes_to_rows
from dependencies import get_db, require_access
from filter_helpers import (
    blank_to_none,
    normalize_limit,
    normalize_offset,
    normalize_order,
    normalize_sort,
    normalize_status,
    normalize_type,
)
from models import (
    AccessLevel,
    Asset,
    AssetIn,
    AssetTransaction,
    AssetUpdate,
    AssetsMeta,
    AssignIn,
    CheckInIn,
    CheckOutIn,
    Maintenance,
    MaintenanceIn,
    RequestContext,
)

router = APIRouter(prefix="/api")

EXPORT_LIMIT = 100000

# NOT NULL columns an edit may change but never clear
REQUIRED_FIELDS = ("type", "brand", "serial_number", "status")

manager = require_access(AccessLevel.MANAGER)
admin = require_access(AccessLevel.ADMIN)


@router.get("/assets", response_model=list[Asset])
def list_assets_api(
    q: Optional[str] = None,
    status: Optional[str] = None,
    type: Optional[str] = None,
    employee_id: Optional[str] = None,
    sort: str = "asset_id",
    order: str = "asc",
    limit: int = 50,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    return crud.list_assets_filtered(
        db,
        q=blank_to_none(q),
        status=normalize_status(db, status),
        asset_type=normalize_type(type),
        employee_id=blank_to_none(employee_id),
        sort=normalize_sort(sort),
        order=normalize_order(order),
        limit=normalize_limit(limit),
        offset=normalize_offset(offset),
    )


@router.get("/assets/meta", response_model=AssetsMeta)
def assets_meta_api(
    q: Optional[str] = None,
    status: Optional[str] = None,
    type: Optional[str] = None,
    employee_id: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    meta = crud.assets_meta(
        db,
        q=blank_to_none(q),
        status=normalize_status(db, status),
        asset_type=normalize_type(type),
        employee_id=blank_to_none(employee_id),
        limit=limit,
        offset=offset,
    )
    return AssetsMeta(**meta)


@router.get("/assets/export")
def export_assets_api(
    q: Optional[str] = None,
    status: Optional[str] = None,
    type: Optional[str] = None,
    sort: str = "asset_id",
    order: str = "asc",
    db: Session = Depends(get_db),
):
    assets = crud.list_assets_filtered(
        db,
        q=blank_to_none(q),
        status=normalize_status(db, status),
        asset_type=normalize_type(type),
        employee_id=None,
        sort=normalize_sort(sort),
        order=normalize_order(order),
        limit=EXPORT_LIMIT,
        offset=0,
    )
    return assets_to_csv_response(assets, filename="assets_export.csv")


@router.post("/assets/import")
async def import_assets_api(
    file: UploadFile = File(...),
    ctx: RequestContext = Depends(manager),
    db: Session = Depends(get_db),
):
    data = await file.read()
    rows, err = csv_bytes_to_rows(data)
    if err:
        raise HTTPException(status_code=400, detail=err)

    result = crud.bulk_import_assets(db, rows)
    crud.log_activity(
        db,
        user_id=ctx.user_id,
        action="Import",
        entity_type="Asset",
        details={"created": result["created"], "skipped": result["skipped"]},
    )
    return result


@router.post("/assets", response_model=Asset, status_code=201)
def create_asset_api(
    body: AssetIn,
    ctx: RequestContext = Depends(manager),
    db: Session = Depends(get_db),
):
    if not crud.is_valid_status(db, body.status):
        raise HTTPException(status_code=400, detail=f"Invalid status: {body.status}")

    asset = crud.create_asset(db, body, commit=False)
    crud.log_activity(
        db,
        user_id=ctx.user_id,
        action="Create",
        entity_type="Asset",
        entity_id=asset.id,
        details={"assetId": asset.asset_id, "type": asset.type},
        commit=False,
    )
    db.commit()
    return asset


@router.get("/assets/{asset_id}", response_model=Asset)
def get_asset_api(
    asset_id: str,
    db: Session = Depends(get_db),
):
    asset = crud.get_asset(db, asset_id)
    if not asset:
        raise HTTPException(status_code=404, detail="Asset not found")
    return asset


@router.put("/assets/{asset_id}", response_model=Asset)
def update_asset_api(
    asset_id: str,
    body: AssetUpdate,
    ctx: RequestContext = Depends(manager),
    db: Session = Depends(get_db),
):
    fields = body.model_fields_set
    if "assigned_employee_id" in fields:
        raise HTTPException(status_code=400, detail="Use assign/unassign to change the assigned employee")
    for name in REQUIRED_FIELDS:
        if name in fields and getattr(body, name) is None:
            raise HTTPException(status_code=400, detail=f"{name} cannot be empty")
    if body.status is not None and not crud.is_valid_status(db, body.status):
        raise HTTPException(status_code=400, detail=f"Invalid status: {body.status}")

    updated = crud.update_asset(db, asset_id, body, commit=False)
    if not updated:
        raise HTTPException(status_code=404, detail="Asset not found")
    crud.log_activity(
        db,
        user_id=ctx.user_id,
        action="Update",
        entity_type="Asset",
        entity_id=asset_id,
        details={"assetId": updated.asset_id, "fields": sorted(body.model_dump(exclude_unset=True))},
        commit=False,
    )
    db.commit()
    return crud.get_asset(db, asset_id)


@router.delete("/assets/{asset_id}", status_code=204)
def delete_asset_api(
    asset_id: str,
    ctx: RequestContext = Depends(admin),
    db: Session = Depends(get_db),
):
    lifecycle.delete(db, ctx, asset_id)
    return None


# ---------- lifecycle ----------
@router.post("/assets/{asset_id}/assign", response_model=Asset)
def assign_asset_api(
    asset_id: str,
    body: AssignIn,
    ctx: RequestContext = Depends(manager),
    db: Session = Depends(get_db),
):
    return lifecycle.assign(db, ctx, asset_id, body.employee_id)


@router.post("/assets/{asset_id}/unassign", response_model=Asset)
def unassign_asset_api(
    asset_id: str,
    ctx: RequestContext = Depends(manager),
    db: Session = Depends(get_db),
):
    return lifecycle.unassign(db, ctx, asset_id)


@router.post("/assets/{asset_id}/check-out", response_model=AssetTransaction, status_code=201)
def check_out_asset_api(
    asset_id: str,
    body: CheckOutIn,
    ctx: RequestContext = Depends(manager),
    db: Session = Depends(get_db),
):
    return lifecycle.check_out(db, ctx, asset_id, body.employee_id, body.reason, body.notes)


@router.post("/assets/{asset_id}/check-in", response_model=AssetTransaction, status_code=201)
def check_in_asset_api(
    asset_id: str,
    body: CheckInIn,
    ctx: RequestContext = Depends(manager),
    db: Session = Depends(get_db),
):
    return lifecycle.check_in(db, ctx, asset_id, body.reason, body.notes)


@router.post("/assets/{asset_id}/maintenance", response_model=Maintenance, status_code=201)
def schedule_maintenance_api(
    asset_id: str,
    body: MaintenanceIn,
    ctx: RequestContext = Depends(manager),
    db: Session = Depends(get_db),
):
    return lifecycle.schedule_maintenance(db, ctx, asset_id, body)


@router.get("/assets/{asset_id}/maintenance", response_model=list[Maintenance])
def list_maintenance_api(
    asset_id: str,
    db: Session = Depends(get_db),
):
    if not crud.get_asset(db, asset_id):
        raise HTTPException(status_code=404, detail="Asset not found")
    return crud.list_maintenance_for_asset(db, asset_id)


@router.get("/assets/{asset_id}/transactions", response_model=list[AssetTransaction])
def list_asset_transactions_api(
    asset_id: str,
    db: Session = Depends(get_db),
):
    if not crud.get_asset(db, asset_id):
        raise HTTPException(status_code=404, detail="Asset not found")
    return crud.list_asset_transactions(db, asset_id=asset_id)


@router.get("/asset-transactions", response_model=list[AssetTransaction])
def list_transactions_api(
    asset_id: Optional[str] = None,
    employee_id: Optional[str] = None,
    type: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return crud.list_asset_transactions(
        db,
        asset_id=blank_to_none(asset_id),
        employee_id=blank_to_none(employee_id),
        type=blank_to_none(type),
    )
