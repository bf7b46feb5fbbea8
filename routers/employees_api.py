from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

import crud
from csv_utils import employees_to_csv_response
from dependencies import get_db, require_access
from filter_helpers import blank_to_none
from models import (
    AccessLevel,
    Asset,
    AssetTransaction,
    Employee,
    EmployeeIn,
    EmployeeUpdate,
    RequestContext,
)

router = APIRouter(prefix="/api/employees")


@router.get("", response_model=list[Employee])
def list_employees_api(
    department: Optional[str] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return crud.list_employees(db, department=blank_to_none(department), status=blank_to_none(status))


@router.get("/export")
def export_employees_api(db: Session = Depends(get_db)):
    return employees_to_csv_response(crud.list_employees(db))


@router.post("", response_model=Employee, status_code=201)
def create_employee_api(
    body: EmployeeIn,
    ctx: RequestContext = Depends(require_access(AccessLevel.MANAGER)),
    db: Session = Depends(get_db),
):
    if crud.emp_id_exists(db, body.emp_id):
        raise HTTPException(status_code=409, detail="emp_id already exists")

    employee = crud.create_employee(db, body, commit=False)
    crud.log_activity(
        db,
        user_id=ctx.user_id,
        action="Create",
        entity_type="Employee",
        entity_id=employee.id,
        details={"empId": employee.emp_id, "name": employee.english_name},
        commit=False,
    )
    db.commit()
    return employee


@router.get("/{employee_id}", response_model=Employee)
def get_employee_api(employee_id: str, db: Session = Depends(get_db)):
    employee = crud.get_employee(db, employee_id)
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")
    return employee


@router.put("/{employee_id}", response_model=Employee)
def update_employee_api(
    employee_id: str,
    body: EmployeeUpdate,
    ctx: RequestContext = Depends(require_access(AccessLevel.MANAGER)),
    db: Session = Depends(get_db),
):
    if body.emp_id and crud.emp_id_exists(db, body.emp_id, exclude_id=employee_id):
        raise HTTPException(status_code=409, detail="emp_id already exists")

    updated = crud.update_employee(db, employee_id, body)
    if not updated:
        raise HTTPException(status_code=404, detail="Employee not found")
    crud.log_activity(
        db,
        user_id=ctx.user_id,
        action="Update",
        entity_type="Employee",
        entity_id=employee_id,
        details={"empId": updated.emp_id},
    )
    return updated


@router.delete("/{employee_id}", status_code=204)
def delete_employee_api(
    employee_id: str,
    ctx: RequestContext = Depends(require_access(AccessLevel.ADMIN)),
    db: Session = Depends(get_db),
):
    employee = crud.get_employee(db, employee_id)
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")
    # assets still pointing at the employee must be unassigned first
    if crud.count_assets_for_employee(db, employee_id) > 0:
        raise HTTPException(status_code=409, detail="Employee has assigned assets")

    crud.delete_employee(db, employee_id, commit=False)
    crud.log_activity(
        db,
        user_id=ctx.user_id,
        action="Delete",
        entity_type="Employee",
        entity_id=employee_id,
        details={"empId": employee.emp_id, "name": employee.english_name},
        commit=False,
    )
    db.commit()
    return None


@router.get("/{employee_id}/assets", response_model=list[Asset])
def list_employee_assets_api(employee_id: str, db: Session = Depends(get_db)):
    if not crud.get_employee(db, employee_id):
        raise HTTPException(status_code=404, detail="Employee not found")
    return crud.list_assets_filtered(
        db,
        q=None,
        status=None,
        asset_type=None,
        employee_id=employee_id,
        sort="asset_id",
        order="asc",
        limit=500,
        offset=0,
    )


@router.get("/{employee_id}/transactions", response_model=list[AssetTransaction])
def list_employee_transactions_api(employee_id: str, db: Session = Depends(get_db)):
    if not crud.get_employee(db, employee_id):
        raise HTTPException(status_code=404, detail="Employee not found")
    return crud.list_asset_transactions(db, employee_id=employee_id)
