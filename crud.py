from __future__ import annotations

import os
from datetime import date, datetime, timezone

from decimal import Decimal
from typing import Any, Optional
from uuid import uuid4

from pydantic import ValidationError
from sqlalchemy import select, delete, func, or_
from sqlalchemy.orm import Session

from models import (
    ActivityLog,
    Asset,
    AssetIn,
    AssetSale,
    AssetSaleItem,
    AssetStatus,
    AssetStatusIn,
    AssetTransaction,
    AssetUpdate,
    BUILTIN_STATUSES,
    Employee,
    EmployeeIn,
    EmployeeUpdate,
    Maintenance,
    MaintenanceIn,
)
from orm import (
    ActivityLogORM,
    AssetMaintenanceORM,
    AssetORM,
    AssetSaleItemORM,
    AssetSaleORM,
    AssetStatusORM,
    AssetTransactionORM,
    EmployeeORM,
)

ALLOWED_SORTS = {
    "asset_id": AssetORM.asset_id,
    "type": AssetORM.type,
    "brand": AssetORM.brand,
    "status": AssetORM.status,
    "serial_number": AssetORM.serial_number,
    "updated_at": AssetORM.updated_at,
}

TYPE_PREFIXES = {
    "Laptop": "LT-",
    "Desktop": "DT-",
    "Mobile": "MB-",
    "Tablet": "TB-",
    "Monitor": "MN-",
    "Printer": "PR-",
    "Server": "SV-",
    "Network": "NW-",
}

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def persist(db: Session, *, commit: bool) -> None:
    if commit:
        db.commit()
    else:
        db.flush()

def asset_id_prefix() -> str:
    return os.getenv("ASSET_ID_PREFIX", "SIT-")

def _asset_to_schema(a: AssetORM) -> Asset:
    return Asset(
        id=a.id,
        asset_id=a.asset_id,
        type=a.type,  # type: ignore[arg-type]
        brand=a.brand,
        serial_number=a.serial_number,
        model_name=a.model_name,
        model_number=a.model_number,
        specs=a.specs,
        status=a.status,
        assigned_employee_id=a.assigned_employee_id,
        purchase_date=a.purchase_date,
        buy_price=a.buy_price,
        warranty_expiry_date=a.warranty_expiry_date,
        life_span=a.life_span,
        created_at=a.created_at,
        updated_at=a.updated_at,
    )

def _employee_to_schema(e: EmployeeORM) -> Employee:
    return Employee(
        id=e.id,
        emp_id=e.emp_id,
        english_name=e.english_name,
        arabic_name=e.arabic_name,
        department=e.department,
        title=e.title,
        status=e.status,  # type: ignore[arg-type]
        corporate_email=e.corporate_email,
        user_id=e.user_id,
        created_at=e.created_at,
        updated_at=e.updated_at,
    )

def _transaction_to_schema(t: AssetTransactionORM) -> AssetTransaction:
    return AssetTransaction(
        id=t.id,
        asset_id=t.asset_id,
        employee_id=t.employee_id,
        type=t.type,  # type: ignore[arg-type]
        reason=t.reason,
        condition_notes=t.condition_notes,
        handled_by_id=t.handled_by_id,
        transaction_date=t.transaction_date,
    )

def _maintenance_to_schema(m: AssetMaintenanceORM) -> Maintenance:
    return Maintenance(
        id=m.id,
        asset_id=m.asset_id,
        scheduled_date=m.scheduled_date,
        type=m.type,  # type: ignore[arg-type]
        description=m.description,
        cost=m.cost,
        provider_type=m.provider_type,
        provider_name=m.provider_name,
        created_at=m.created_at,
    )

def _sale_to_schema(s: AssetSaleORM) -> AssetSale:
    return AssetSale(
        id=s.id,
        buyer=s.buyer,
        sale_date=s.sale_date,
        total_amount=s.total_amount,
        notes=s.notes,
        created_at=s.created_at,
    )

def _activity_to_schema(l: ActivityLogORM) -> ActivityLog:
    return ActivityLog(
        id=l.id,
        user_id=l.user_id,
        action=l.action,
        entity_type=l.entity_type,
        entity_id=l.entity_id,
        details=l.details,
        created_at=l.created_at,
    )


# ---------- Asset ----------
def asset_business_id_exists(db: Session, asset_id: str, exclude_id: Optional[str] = None) -> bool:
    stmt = select(AssetORM).where(AssetORM.asset_id == asset_id)
    if exclude_id:
        stmt = stmt.where(AssetORM.id != exclude_id)
    return db.execute(stmt).first() is not None


def next_asset_id(db: Session, asset_type: str) -> str:
    """
    {prefix}{type prefix}{NNNN}. The number continues from the highest
    numeric suffix across all assets, whatever their type.
    """
    highest = 0
    for (business_id,) in db.execute(select(AssetORM.asset_id)).all():
        parts = business_id.split("-")
        if len(parts) > 2 and parts[-1].isdigit():
            highest = max(highest, int(parts[-1]))

    type_prefix = TYPE_PREFIXES.get(asset_type, "OT-")
    return f"{asset_id_prefix()}{type_prefix}{highest + 1:04d}"


def get_asset(db: Session, asset_id: str) -> Optional[Asset]:
    row = db.get(AssetORM, asset_id)
    return _asset_to_schema(row) if row else None


def get_assets(db: Session, asset_ids: list[str]) -> list[Asset]:
    if not asset_ids:
        return []
    rows = db.execute(select(AssetORM).where(AssetORM.id.in_(asset_ids))).scalars().all()
    return [_asset_to_schema(a) for a in rows]


def create_asset(db: Session, body: AssetIn, *, asset_id: Optional[str] = None, commit: bool = True) -> Asset:
    now = utcnow()

    a = AssetORM(
        id=str(uuid4()),
        asset_id=asset_id or next_asset_id(db, body.type),
        type=body.type,
        brand=body.brand,
        serial_number=body.serial_number,
        model_name=body.model_name,
        model_number=body.model_number,
        specs=body.specs,
        status=body.status or "Available",
        assigned_employee_id=None,
        purchase_date=body.purchase_date,
        buy_price=body.buy_price,
        warranty_expiry_date=body.warranty_expiry_date,
        life_span=body.life_span,
        created_at=now,
        updated_at=now,
    )
    db.add(a)
    persist(db, commit=commit)
    if commit:
        db.refresh(a)
    return _asset_to_schema(a)


def update_asset(db: Session, asset_id: str, body: AssetUpdate, *, commit: bool = True) -> Optional[Asset]:
    a = db.get(AssetORM, asset_id)
    if not a:
        return None

    data = body.model_dump(exclude_unset=True)
    for k, v in data.items():
        setattr(a, k, v)

    a.updated_at = utcnow()

    persist(db, commit=commit)
    if commit:
        db.refresh(a)
    return _asset_to_schema(a)


def delete_asset(db: Session, asset_id: str, *, commit: bool = True) -> bool:
    result = db.execute(delete(AssetORM).where(AssetORM.id == asset_id))
    persist(db, commit=commit)
    return result.rowcount > 0


def build_assets_query(
    q: str | None,
    status: str | None,
    asset_type: str | None,
    employee_id: str | None,
):
    stmt = select(AssetORM)

    if q:
        like = f"%{q}%"
        stmt = stmt.where(
            or_(
                AssetORM.asset_id.ilike(like),
                AssetORM.brand.ilike(like),
                AssetORM.model_name.ilike(like),
                AssetORM.serial_number.ilike(like),
            )
        )
    if status:
        stmt = stmt.where(AssetORM.status == status)

    if asset_type:
        stmt = stmt.where(AssetORM.type == asset_type)

    if employee_id:
        stmt = stmt.where(AssetORM.assigned_employee_id == employee_id)

    return stmt

def assets_meta(
    db: Session,
    *,
    q: str | None,
    status: str | None,
    asset_type: str | None,
    employee_id: str | None,
    limit: int,
    offset: int,
) -> dict:
    if limit < 1:
        limit = 1
    if limit > 500:
        limit = 500
    if offset < 0:
        offset = 0

    total = count_assets_filtered(db, q=q, status=status, asset_type=asset_type, employee_id=employee_id)
    total_pages = max(1, (total + limit - 1) // limit)

    return {
        "total": total,
        "limit": limit,
        "offset": offset,
        "total_pages": total_pages,
    }

def count_assets_filtered(
    db: Session,
    *,
    q: str | None,
    status: str | None,
    asset_type: str | None,
    employee_id: str | None,
) -> int:
    stmt = build_assets_query(q, status, asset_type, employee_id)
    count_stmt = select(func.count()).select_from(stmt.subquery())
    return int(db.execute(count_stmt).scalar_one())

def list_assets_filtered(
    db: Session,
    *,
    q: str | None,
    status: str | None,
    asset_type: str | None,
    employee_id: str | None,
    sort: str,
    order: str,
    limit: int,
    offset: int,
) -> list[Asset]:
    stmt = build_assets_query(q, status, asset_type, employee_id)

    col = ALLOWED_SORTS.get(sort, AssetORM.asset_id)
    desc = (order or "").lower() == "desc"
    stmt = stmt.order_by(col.desc() if desc else col.asc())

    stmt = stmt.limit(limit).offset(offset)
    rows = db.execute(stmt).scalars().all()
    return [_asset_to_schema(a) for a in rows]


def bulk_import_assets(db: Session, rows: list[dict[str, str]]) -> dict:
    """
    rows: [{"asset_id": "...", "type": "...", "brand": "...", "serial_number": "...", ...}]
    asset_id may be blank, in which case one is generated.
    """
    created = 0
    skipped = 0
    errors: list[str] = []

    try:
        for idx, r in enumerate(rows, start=1):
            business_id = (r.get("asset_id") or "").strip() or None
            asset_type = (r.get("type") or "").strip()
            brand = (r.get("brand") or "").strip()
            serial_number = (r.get("serial_number") or "").strip()

            if not asset_type or not brand or not serial_number:
                errors.append(f"row {idx}: type/brand/serial_number is empty")
                continue

            if business_id and asset_business_id_exists(db, business_id):
                skipped += 1
                continue

            try:
                body = AssetIn(
                    type=asset_type,  # type: ignore[arg-type]
                    brand=brand,
                    serial_number=serial_number,
                    model_name=(r.get("model_name") or "").strip() or None,
                    model_number=(r.get("model_number") or "").strip() or None,
                    specs=(r.get("specs") or "").strip() or None,
                    status=(r.get("status") or "").strip() or "Available",
                    purchase_date=(r.get("purchase_date") or "").strip() or None,
                    buy_price=(r.get("buy_price") or "").strip() or None,
                )
            except ValidationError as e:
                errors.append(f"row {idx}: {e.errors()[0]['msg']}")
                continue

            create_asset(db, body, asset_id=business_id, commit=False)
            created += 1
        db.commit()
    except Exception:
        db.rollback()
        raise

    return {"created": created, "skipped": skipped, "errors": errors}


# ---------- Employee ----------
def emp_id_exists(db: Session, emp_id: str, exclude_id: Optional[str] = None) -> bool:
    stmt = select(EmployeeORM).where(EmployeeORM.emp_id == emp_id)
    if exclude_id:
        stmt = stmt.where(EmployeeORM.id != exclude_id)
    return db.execute(stmt).first() is not None


def get_employee(db: Session, employee_id: str) -> Optional[Employee]:
    row = db.get(EmployeeORM, employee_id)
    return _employee_to_schema(row) if row else None


def list_employees(db: Session, *, department: str | None = None, status: str | None = None) -> list[Employee]:
    stmt = select(EmployeeORM)
    if department:
        stmt = stmt.where(EmployeeORM.department == department)
    if status:
        stmt = stmt.where(EmployeeORM.status == status)
    rows = db.execute(stmt.order_by(EmployeeORM.emp_id.asc())).scalars().all()
    return [_employee_to_schema(e) for e in rows]


def create_employee(db: Session, body: EmployeeIn, *, commit: bool = True) -> Employee:
    now = utcnow()
    e = EmployeeORM(id=str(uuid4()), **body.model_dump(), created_at=now, updated_at=now)
    db.add(e)
    persist(db, commit=commit)
    if commit:
        db.refresh(e)
    return _employee_to_schema(e)


def update_employee(db: Session, employee_id: str, body: EmployeeUpdate, *, commit: bool = True) -> Optional[Employee]:
    e = db.get(EmployeeORM, employee_id)
    if not e:
        return None

    for k, v in body.model_dump(exclude_unset=True).items():
        setattr(e, k, v)
    e.updated_at = utcnow()

    persist(db, commit=commit)
    if commit:
        db.refresh(e)
    return _employee_to_schema(e)


def count_assets_for_employee(db: Session, employee_id: str) -> int:
    stmt = select(func.count()).select_from(AssetORM).where(AssetORM.assigned_employee_id == employee_id)
    return int(db.execute(stmt).scalar_one())


def delete_employee(db: Session, employee_id: str, *, commit: bool = True) -> bool:
    result = db.execute(delete(EmployeeORM).where(EmployeeORM.id == employee_id))
    persist(db, commit=commit)
    return result.rowcount > 0


# ---------- Transactions ----------
def create_asset_transaction(
    db: Session,
    *,
    asset_id: str,
    employee_id: Optional[str],
    type: str,
    reason: Optional[str] = None,
    notes: Optional[str] = None,
    handled_by_id: Optional[int] = None,
    commit: bool = True,
) -> AssetTransaction:
    t = AssetTransactionORM(
        id=str(uuid4()),
        asset_id=asset_id,
        employee_id=employee_id,
        type=type,
        reason=reason,
        condition_notes=notes,
        handled_by_id=handled_by_id,
        transaction_date=utcnow(),
    )
    db.add(t)
    persist(db, commit=commit)
    return _transaction_to_schema(t)


def list_asset_transactions(
    db: Session,
    *,
    asset_id: str | None = None,
    employee_id: str | None = None,
    type: str | None = None,
) -> list[AssetTransaction]:
    stmt = select(AssetTransactionORM)
    if asset_id:
        stmt = stmt.where(AssetTransactionORM.asset_id == asset_id)
    if employee_id:
        stmt = stmt.where(AssetTransactionORM.employee_id == employee_id)
    if type:
        stmt = stmt.where(AssetTransactionORM.type == type)
    rows = db.execute(stmt.order_by(AssetTransactionORM.transaction_date.desc())).scalars().all()
    return [_transaction_to_schema(t) for t in rows]


# ---------- Maintenance ----------
def create_asset_maintenance(db: Session, asset_id: str, body: MaintenanceIn, *, commit: bool = True) -> Maintenance:
    m = AssetMaintenanceORM(
        id=str(uuid4()),
        asset_id=asset_id,
        scheduled_date=body.scheduled_date,
        type=body.type,
        description=body.description,
        cost=body.cost if body.cost is not None else Decimal("0"),
        provider_type=body.provider_type,
        provider_name=body.provider_name,
        created_at=utcnow(),
    )
    db.add(m)
    persist(db, commit=commit)
    return _maintenance_to_schema(m)


def list_maintenance_for_asset(db: Session, asset_id: str) -> list[Maintenance]:
    stmt = (
        select(AssetMaintenanceORM)
        .where(AssetMaintenanceORM.asset_id == asset_id)
        .order_by(AssetMaintenanceORM.scheduled_date.desc())
    )
    return [_maintenance_to_schema(m) for m in db.execute(stmt).scalars().all()]


# ---------- Sales ----------
def create_asset_sale(
    db: Session,
    *,
    buyer: str,
    sale_date: date,
    total_amount: Decimal,
    notes: Optional[str] = None,
    commit: bool = True,
) -> AssetSale:
    s = AssetSaleORM(
        id=str(uuid4()),
        buyer=buyer,
        sale_date=sale_date,
        total_amount=total_amount,
        notes=notes,
        created_at=utcnow(),
    )
    db.add(s)
    persist(db, commit=commit)
    return _sale_to_schema(s)


def add_asset_to_sale(db: Session, *, sale_id: str, asset_id: str, amount: Decimal, commit: bool = True) -> AssetSaleItem:
    item = AssetSaleItemORM(
        id=str(uuid4()),
        sale_id=sale_id,
        asset_id=asset_id,
        amount=amount,
        created_at=utcnow(),
    )
    db.add(item)
    persist(db, commit=commit)
    return AssetSaleItem(id=item.id, sale_id=sale_id, asset_id=asset_id, amount=amount)


def list_asset_sales(db: Session) -> list[AssetSale]:
    rows = db.execute(select(AssetSaleORM).order_by(AssetSaleORM.sale_date.desc())).scalars().all()
    return [_sale_to_schema(s) for s in rows]


def get_asset_sale(db: Session, sale_id: str) -> Optional[AssetSale]:
    s = db.get(AssetSaleORM, sale_id)
    return _sale_to_schema(s) if s else None


def list_sale_items(db: Session, sale_id: str) -> list[AssetSaleItem]:
    rows = db.execute(select(AssetSaleItemORM).where(AssetSaleItemORM.sale_id == sale_id)).scalars().all()
    return [AssetSaleItem(id=i.id, sale_id=i.sale_id, asset_id=i.asset_id, amount=i.amount) for i in rows]


# ---------- Asset statuses ----------
def list_asset_statuses(db: Session) -> list[AssetStatus]:
    """Built-in statuses first, then custom ones by name."""
    statuses = [AssetStatus(id=name, name=name, builtin=True) for name in BUILTIN_STATUSES]
    rows = db.execute(select(AssetStatusORM).order_by(AssetStatusORM.name.asc())).scalars().all()
    statuses.extend(
        AssetStatus(id=s.id, name=s.name, color=s.color, description=s.description) for s in rows
    )
    return statuses


def get_asset_status(db: Session, status_id: str) -> Optional[AssetStatus]:
    s = db.get(AssetStatusORM, status_id)
    if not s:
        return None
    return AssetStatus(id=s.id, name=s.name, color=s.color, description=s.description)


def is_valid_status(db: Session, name: str | None) -> bool:
    if not name:
        return False
    if name in BUILTIN_STATUSES:
        return True
    return db.execute(select(AssetStatusORM.id).where(AssetStatusORM.name == name)).first() is not None


def create_asset_status(db: Session, body: AssetStatusIn, *, commit: bool = True) -> Optional[AssetStatus]:
    name = (body.name or "").strip()
    if not name or name in BUILTIN_STATUSES:
        return None
    exists = db.execute(select(AssetStatusORM).where(AssetStatusORM.name == name)).first()
    if exists:
        return None

    now = utcnow()
    s = AssetStatusORM(
        id=str(uuid4()),
        name=name,
        color=body.color,
        description=body.description,
        created_at=now,
        updated_at=now,
    )
    db.add(s)
    persist(db, commit=commit)
    return AssetStatus(id=s.id, name=s.name, color=s.color, description=s.description)


def delete_asset_status(db: Session, *, status_id: str, commit: bool = True) -> bool:
    s = db.get(AssetStatusORM, status_id)
    if not s:
        return False

    # assets store the status by name
    used = db.execute(
        select(func.count()).select_from(AssetORM).where(AssetORM.status == s.name)
    ).scalar_one()
    if int(used) > 0:
        return False

    db.execute(delete(AssetStatusORM).where(AssetStatusORM.id == status_id))
    persist(db, commit=commit)
    return True


# ---------- Activity log ----------
def log_activity(
    db: Session,
    *,
    user_id: Optional[int],
    action: str,
    entity_type: str,
    entity_id: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
    commit: bool = True,
) -> ActivityLog:
    entry = ActivityLogORM(
        id=str(uuid4()),
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details,
        created_at=utcnow(),
    )
    db.add(entry)
    persist(db, commit=commit)
    return _activity_to_schema(entry)


def list_activity(
    db: Session,
    *,
    entity_type: str | None = None,
    entity_id: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[ActivityLog]:
    stmt = select(ActivityLogORM)
    if entity_type:
        stmt = stmt.where(ActivityLogORM.entity_type == entity_type)
    if entity_id:
        stmt = stmt.where(ActivityLogORM.entity_id == entity_id)
    stmt = stmt.order_by(ActivityLogORM.created_at.desc()).limit(limit).offset(offset)
    return [_activity_to_schema(l) for l in db.execute(stmt).scalars().all()]
