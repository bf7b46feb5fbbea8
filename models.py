from pydantic import BaseModel, Field, computed_field
from typing import Optional, Literal, get_args
from datetime import date, datetime
from decimal import Decimal
from enum import IntEnum

AssetType = Literal["Laptop", "Desktop", "Mobile", "Tablet", "Monitor", "Printer", "Server", "Network", "Other"]
EmployeeStatus = Literal["Active", "Resigned", "Terminated", "On Leave"]
TransactionType = Literal["Check-Out", "Check-In", "Assign", "Unassign"]
MaintenanceType = Literal["Preventive", "Corrective", "Upgrade", "Repair", "Inspection", "Cleaning", "Replacement"]
BulkOutcome = Literal["success", "partial", "failure"]

ASSET_TYPES: tuple[str, ...] = get_args(AssetType)

# Custom statuses live in the asset_statuses table and extend this list
BUILTIN_STATUSES = ("Available", "In Use", "Maintenance", "Sold", "Retired", "Disposed")
TERMINAL_STATUSES = ("Sold", "Retired", "Disposed")


class AccessLevel(IntEnum):
    EMPLOYEE = 0
    AGENT = 1
    MANAGER = 2
    ADMIN = 3


class RequestContext(BaseModel):
    """Who is acting, passed explicitly into every operation."""

    user_id: Optional[int] = None
    access_level: AccessLevel = AccessLevel.EMPLOYEE
    locale: str = "en"


# ---------- Employee ----------
class EmployeeIn(BaseModel):
    emp_id: str
    english_name: str
    arabic_name: Optional[str] = None
    department: str
    title: Optional[str] = None
    status: EmployeeStatus = "Active"
    corporate_email: Optional[str] = None
    user_id: Optional[int] = None

class EmployeeUpdate(BaseModel):
    emp_id: Optional[str] = None
    english_name: Optional[str] = None
    arabic_name: Optional[str] = None
    department: Optional[str] = None
    title: Optional[str] = None
    status: Optional[EmployeeStatus] = None
    corporate_email: Optional[str] = None
    user_id: Optional[int] = None

class Employee(EmployeeIn):
    id: str
    created_at: datetime
    updated_at: datetime


# ---------- Asset ----------
class AssetIn(BaseModel):
    type: AssetType
    brand: str
    serial_number: str
    model_name: Optional[str] = None
    model_number: Optional[str] = None
    specs: Optional[str] = None
    status: str = "Available"
    purchase_date: Optional[date] = None
    buy_price: Optional[Decimal] = None
    warranty_expiry_date: Optional[date] = None
    life_span: Optional[int] = None

class AssetUpdate(BaseModel):
    type: Optional[AssetType] = None
    brand: Optional[str] = None
    serial_number: Optional[str] = None
    model_name: Optional[str] = None
    model_number: Optional[str] = None
    specs: Optional[str] = None
    status: Optional[str] = None
    assigned_employee_id: Optional[str] = None
    purchase_date: Optional[date] = None
    buy_price: Optional[Decimal] = None
    warranty_expiry_date: Optional[date] = None
    life_span: Optional[int] = None

class Asset(AssetIn):
    id: str
    asset_id: str
    assigned_employee_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

class AssetsMeta(BaseModel):
    total: int
    limit: int
    offset: int
    total_pages: int


class AssetStatusIn(BaseModel):
    name: str
    color: Optional[str] = None
    description: Optional[str] = None

class AssetStatus(AssetStatusIn):
    id: str
    builtin: bool = False


# ---------- History ----------
class AssetTransaction(BaseModel):
    id: str
    asset_id: str
    employee_id: Optional[str] = None
    type: TransactionType
    reason: Optional[str] = None
    condition_notes: Optional[str] = None
    handled_by_id: Optional[int] = None
    transaction_date: datetime

class MaintenanceIn(BaseModel):
    scheduled_date: date
    type: MaintenanceType
    description: str
    cost: Optional[Decimal] = None
    provider_type: str = "Internal"
    provider_name: Optional[str] = None

class Maintenance(MaintenanceIn):
    id: str
    asset_id: str
    cost: Decimal = Decimal("0")
    created_at: datetime

class AssetSaleIn(BaseModel):
    buyer: str
    sale_date: date
    total_amount: Decimal
    notes: Optional[str] = None
    asset_ids: list[str]

class AssetSale(BaseModel):
    id: str
    buyer: str
    sale_date: date
    total_amount: Decimal
    notes: Optional[str] = None
    created_at: datetime

class AssetSaleItem(BaseModel):
    id: str
    sale_id: str
    asset_id: str
    amount: Decimal

class ActivityLog(BaseModel):
    id: str
    user_id: Optional[int] = None
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    details: Optional[dict] = None
    created_at: datetime


# ---------- Single-asset lifecycle requests ----------
class AssignIn(BaseModel):
    employee_id: Optional[str] = None

class CheckOutIn(BaseModel):
    employee_id: Optional[str] = None
    reason: Optional[str] = None
    notes: Optional[str] = None

class CheckInIn(BaseModel):
    reason: Optional[str] = None
    notes: Optional[str] = None


# ---------- Bulk actions ----------
class BulkAction(BaseModel):
    id: str
    label: str
    description: str
    icon: str
    requires_confirmation: bool
    requires_dialog: bool
    allowed_statuses: Optional[tuple[str, ...]] = None
    blocked_statuses: Optional[tuple[str, ...]] = None
    min_selection: Optional[int] = None
    max_selection: Optional[int] = None
    requires_employee: bool = False
    access_level: AccessLevel = AccessLevel.MANAGER

class SelectionIn(BaseModel):
    selected_ids: list[str] = Field(default_factory=list)

class BulkActionParams(BaseModel):
    """Action-specific inputs; each action reads only the fields it needs."""

    employee_id: Optional[str] = None
    status: Optional[str] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
    confirmation_text: Optional[str] = None

    buyer: Optional[str] = None
    sale_date: Optional[date] = None
    total_amount: Optional[Decimal] = None

    maintenance: Optional[MaintenanceIn] = None

class BulkActionIn(BulkActionParams):
    selected_ids: list[str] = Field(default_factory=list)

class BulkActionDetails(BaseModel):
    succeeded: int = 0
    failed: int = 0
    errors: list[str] = Field(default_factory=list)

class BulkActionResult(BaseModel):
    success: bool
    message: str
    outcome: BulkOutcome
    details: BulkActionDetails = Field(default_factory=BulkActionDetails)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def clear_selection(self) -> bool:
        # failed items stay selected so the operator can retry them
        return self.success and self.details.failed == 0
