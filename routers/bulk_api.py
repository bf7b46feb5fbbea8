from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

import bulk
import crud
from actions import SelectionContext, get_action_by_id, get_available_actions
from dependencies import get_db, get_request_context, get_session_factory
from models import BulkAction, BulkActionIn, BulkActionResult, RequestContext, SelectionIn

# registered ahead of the assets router: "bulk" would otherwise match /assets/{asset_id}/...
router = APIRouter(prefix="/api/assets/bulk")


@router.post("/available-actions", response_model=list[BulkAction])
def available_actions_api(
    body: SelectionIn,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    assets = crud.get_assets(db, body.selected_ids)
    context = SelectionContext(selected_ids=body.selected_ids, assets=assets, user=ctx)
    return get_available_actions(context)


@router.post("/{action_id}", response_model=BulkActionResult)
async def execute_bulk_action_api(
    action_id: str,
    body: BulkActionIn,
    ctx: RequestContext = Depends(get_request_context),
    session_factory=Depends(get_session_factory),
):
    action = get_action_by_id(action_id)
    if action is None:
        raise HTTPException(status_code=404, detail="unknown bulk action")
    if ctx.access_level < action.access_level:
        raise HTTPException(status_code=403, detail="insufficient access level")

    return await bulk.execute_bulk_action(action.id, body.selected_ids, body, ctx, session_factory)
