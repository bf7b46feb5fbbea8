"""
Single-asset state transitions.

Every operation loads the asset, checks its precondition, applies the
change, appends the transaction/activity rows and commits once. Failures
raise a LifecycleError subclass carrying the operator-facing message.
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

import crud
from errors import LifecycleValidationError, NotFoundError, RuleViolationError
from models import (
    Asset,
    AssetSale,
    AssetTransaction,
    AssetUpdate,
    Maintenance,
    MaintenanceIn,
    RequestContext,
    TERMINAL_STATUSES,
)

logger = logging.getLogger("app.lifecycle")

ENTITY = "Asset"


def _load_asset(db: Session, asset_id: str) -> Asset:
    asset = crud.get_asset(db, asset_id)
    if not asset:
        raise NotFoundError("Asset not found")
    return asset


def _require_employee(db: Session, employee_id: Optional[str]):
    if not employee_id:
        raise LifecycleValidationError("Employee ID is required")
    employee = crud.get_employee(db, employee_id)
    if not employee:
        raise NotFoundError("Employee not found")
    return employee


def _reject_terminal(asset: Asset, template: str) -> None:
    if asset.status in TERMINAL_STATUSES:
        raise RuleViolationError(template.format(status=asset.status.lower()))


def _finish(db: Session, *, commit: bool) -> None:
    try:
        crud.persist(db, commit=commit)
    except Exception:
        db.rollback()
        raise


def assign(db: Session, ctx: RequestContext, asset_id: str, employee_id: Optional[str], *, commit: bool = True) -> Asset:
    asset = _load_asset(db, asset_id)
    employee = _require_employee(db, employee_id)
    _reject_terminal(asset, "Cannot assign {status} assets")

    updated = crud.update_asset(
        db,
        asset_id,
        AssetUpdate(assigned_employee_id=employee.id, status="In Use"),
        commit=False,
    )
    if not updated:
        raise NotFoundError("Asset not found")
    crud.create_asset_transaction(
        db,
        asset_id=asset_id,
        employee_id=employee.id,
        type="Assign",
        handled_by_id=ctx.user_id,
        commit=False,
    )
    crud.log_activity(
        db,
        user_id=ctx.user_id,
        action="Assign",
        entity_type=ENTITY,
        entity_id=asset_id,
        details={
            "assetId": asset.asset_id,
            "type": asset.type,
            "assignedTo": employee.english_name,
            "employeeId": employee.emp_id,
        },
        commit=False,
    )
    _finish(db, commit=commit)
    logger.info("assign asset=%s employee=%s", asset.asset_id, employee.emp_id)
    return updated


def unassign(db: Session, ctx: RequestContext, asset_id: str, *, commit: bool = True) -> Asset:
    asset = _load_asset(db, asset_id)
    if not asset.assigned_employee_id:
        raise RuleViolationError("Asset is not assigned to any employee")

    previous = asset.assigned_employee_id
    employee = crud.get_employee(db, previous)

    updated = crud.update_asset(
        db,
        asset_id,
        AssetUpdate(assigned_employee_id=None, status="Available"),
        commit=False,
    )
    if not updated:
        raise NotFoundError("Asset not found")
    crud.create_asset_transaction(
        db,
        asset_id=asset_id,
        employee_id=previous,
        type="Unassign",
        handled_by_id=ctx.user_id,
        commit=False,
    )
    crud.log_activity(
        db,
        user_id=ctx.user_id,
        action="Unassign",
        entity_type=ENTITY,
        entity_id=asset_id,
        details={
            "assetId": asset.asset_id,
            "type": asset.type,
            "unassignedFrom": employee.english_name if employee else None,
            "employeeId": employee.emp_id if employee else previous,
        },
        commit=False,
    )
    _finish(db, commit=commit)
    logger.info("unassign asset=%s", asset.asset_id)
    return updated


def check_out(
    db: Session,
    ctx: RequestContext,
    asset_id: str,
    employee_id: Optional[str],
    reason: Optional[str] = None,
    notes: Optional[str] = None,
    *,
    commit: bool = True,
) -> AssetTransaction:
    asset = _load_asset(db, asset_id)
    employee = _require_employee(db, employee_id)
    if not reason:
        raise LifecycleValidationError("Reason is required")

    crud.update_asset(
        db,
        asset_id,
        AssetUpdate(assigned_employee_id=employee.id, status="In Use"),
        commit=False,
    )
    transaction = crud.create_asset_transaction(
        db,
        asset_id=asset_id,
        employee_id=employee.id,
        type="Check-Out",
        reason=reason,
        notes=notes,
        handled_by_id=ctx.user_id,
        commit=False,
    )
    crud.log_activity(
        db,
        user_id=ctx.user_id,
        action="Check-Out",
        entity_type=ENTITY,
        entity_id=asset_id,
        details={
            "assetId": asset.asset_id,
            "employeeId": employee.emp_id,
            "transactionId": transaction.id,
            "reason": reason,
            "notes": notes or f"Asset checked out to employee {employee.english_name}",
        },
        commit=False,
    )
    _finish(db, commit=commit)
    logger.info("check_out asset=%s employee=%s", asset.asset_id, employee.emp_id)
    return transaction


def check_in(
    db: Session,
    ctx: RequestContext,
    asset_id: str,
    reason: Optional[str] = None,
    notes: Optional[str] = None,
    *,
    commit: bool = True,
) -> AssetTransaction:
    asset = _load_asset(db, asset_id)
    if not reason:
        raise LifecycleValidationError("Reason is required")
    # the transaction keeps who returned it
    previous = asset.assigned_employee_id

    crud.update_asset(
        db,
        asset_id,
        AssetUpdate(assigned_employee_id=None, status="Available"),
        commit=False,
    )
    transaction = crud.create_asset_transaction(
        db,
        asset_id=asset_id,
        employee_id=previous,
        type="Check-In",
        reason=reason,
        notes=notes,
        handled_by_id=ctx.user_id,
        commit=False,
    )
    crud.log_activity(
        db,
        user_id=ctx.user_id,
        action="Check-In",
        entity_type=ENTITY,
        entity_id=asset_id,
        details={
            "assetId": asset.asset_id,
            "transactionId": transaction.id,
            "reason": reason,
            "notes": notes or "Asset checked in",
        },
        commit=False,
    )
    _finish(db, commit=commit)
    logger.info("check_in asset=%s", asset.asset_id)
    return transaction


def change_status(db: Session, ctx: RequestContext, asset_id: str, status: Optional[str], *, commit: bool = True) -> Asset:
    asset = _load_asset(db, asset_id)
    if not crud.is_valid_status(db, status):
        raise LifecycleValidationError(f"Invalid status: {status}")

    updated = crud.update_asset(db, asset_id, AssetUpdate(status=status), commit=False)
    if not updated:
        raise NotFoundError("Asset not found")
    crud.log_activity(
        db,
        user_id=ctx.user_id,
        action="Status Change",
        entity_type=ENTITY,
        entity_id=asset_id,
        details={"assetId": asset.asset_id, "from": asset.status, "to": status},
        commit=False,
    )
    _finish(db, commit=commit)
    return updated


def schedule_maintenance(
    db: Session,
    ctx: RequestContext,
    asset_id: str,
    body: MaintenanceIn,
    *,
    commit: bool = True,
) -> Maintenance:
    asset = _load_asset(db, asset_id)

    maintenance = crud.create_asset_maintenance(db, asset_id, body, commit=False)
    if asset.status != "Maintenance":
        crud.update_asset(db, asset_id, AssetUpdate(status="Maintenance"), commit=False)

    crud.log_activity(
        db,
        user_id=ctx.user_id,
        action="Maintenance",
        entity_type=ENTITY,
        entity_id=asset_id,
        details={
            "assetId": asset.asset_id,
            "type": asset.type,
            "maintenanceType": maintenance.type,
            "cost": str(maintenance.cost),
        },
        commit=False,
    )
    _finish(db, commit=commit)
    return maintenance


def open_sale(
    db: Session,
    ctx: RequestContext,
    *,
    buyer: Optional[str],
    sale_date: Optional[date],
    total_amount: Optional[Decimal],
    notes: Optional[str],
    asset_count: int,
    commit: bool = True,
) -> AssetSale:
    """Create the sale header that the per-asset sale items hang off."""
    if not buyer or not sale_date or total_amount is None or asset_count == 0:
        raise LifecycleValidationError("Missing required fields")
    if total_amount < 0:
        raise LifecycleValidationError("Total amount cannot be negative")

    sale = crud.create_asset_sale(
        db,
        buyer=buyer,
        sale_date=sale_date,
        total_amount=total_amount,
        notes=notes,
        commit=False,
    )
    crud.log_activity(
        db,
        user_id=ctx.user_id,
        action="Sale",
        entity_type=ENTITY,
        details={
            "saleId": sale.id,
            "buyer": buyer,
            "date": sale_date.isoformat(),
            "totalAmount": str(total_amount),
            "assetCount": asset_count,
        },
        commit=False,
    )
    _finish(db, commit=commit)
    return sale


def sell(
    db: Session,
    ctx: RequestContext,
    asset_id: str,
    sale_id: str,
    amount: Decimal,
    *,
    commit: bool = True,
) -> Asset:
    asset = _load_asset(db, asset_id)
    _reject_terminal(asset, "Asset is already {status}")

    crud.add_asset_to_sale(db, sale_id=sale_id, asset_id=asset_id, amount=amount, commit=False)
    # a sold asset no longer belongs to anyone
    updated = crud.update_asset(db, asset_id, AssetUpdate(status="Sold", assigned_employee_id=None), commit=False)
    if not updated:
        raise NotFoundError("Asset not found")
    crud.log_activity(
        db,
        user_id=ctx.user_id,
        action="Sold",
        entity_type=ENTITY,
        entity_id=asset_id,
        details={
            "assetId": asset.asset_id,
            "saleId": sale_id,
            "amount": str(amount),
            "previousEmployeeId": asset.assigned_employee_id,
        },
        commit=False,
    )
    _finish(db, commit=commit)
    return updated


def retire(db: Session, ctx: RequestContext, asset_id: str, reason: Optional[str] = None, *, commit: bool = True) -> Asset:
    asset = _load_asset(db, asset_id)
    _reject_terminal(asset, "Asset is already {status}")

    updated = crud.update_asset(db, asset_id, AssetUpdate(status="Retired", assigned_employee_id=None), commit=False)
    if not updated:
        raise NotFoundError("Asset not found")
    crud.log_activity(
        db,
        user_id=ctx.user_id,
        action="Retire",
        entity_type=ENTITY,
        entity_id=asset_id,
        details={
            "assetId": asset.asset_id,
            "type": asset.type,
            "reason": reason,
            "previousEmployeeId": asset.assigned_employee_id,
        },
        commit=False,
    )
    _finish(db, commit=commit)
    return updated


def delete(db: Session, ctx: RequestContext, asset_id: str, *, commit: bool = True) -> None:
    # identifying fields are captured before the row is gone
    asset = _load_asset(db, asset_id)

    if not crud.delete_asset(db, asset_id, commit=False):
        raise NotFoundError("Asset not found")
    crud.log_activity(
        db,
        user_id=ctx.user_id,
        action="Delete",
        entity_type=ENTITY,
        entity_id=asset_id,
        details={"assetId": asset.asset_id, "type": asset.type},
        commit=False,
    )
    _finish(db, commit=commit)
    logger.info("delete asset=%s", asset.asset_id)
