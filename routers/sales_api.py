from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

import bulk
import crud
from actions import BulkActionKind
from dependencies import get_db, get_session_factory, require_access
from models import (
    AccessLevel,
    AssetSale,
    AssetSaleIn,
    AssetSaleItem,
    BulkActionParams,
    BulkActionResult,
    RequestContext,
)

router = APIRouter(prefix="/api")


@router.post("/asset-sales", response_model=BulkActionResult)
async def create_sale_api(
    body: AssetSaleIn,
    ctx: RequestContext = Depends(require_access(AccessLevel.ADMIN)),
    session_factory=Depends(get_session_factory),
):
    # a sale is the sell bulk action over the listed assets
    params = BulkActionParams(
        buyer=body.buyer,
        sale_date=body.sale_date,
        total_amount=body.total_amount,
        notes=body.notes,
    )
    return await bulk.execute_bulk_action(BulkActionKind.SELL, body.asset_ids, params, ctx, session_factory)


@router.get("/asset-sales", response_model=list[AssetSale])
def list_sales_api(
    ctx: RequestContext = Depends(require_access(AccessLevel.MANAGER)),
    db: Session = Depends(get_db),
):
    return crud.list_asset_sales(db)


@router.get("/asset-sales/{sale_id}/items", response_model=list[AssetSaleItem])
def list_sale_items_api(
    sale_id: str,
    ctx: RequestContext = Depends(require_access(AccessLevel.MANAGER)),
    db: Session = Depends(get_db),
):
    items = crud.list_sale_items(db, sale_id)
    if not items and not crud.get_asset_sale(db, sale_id):
        raise HTTPException(status_code=404, detail="Sale not found")
    return items
