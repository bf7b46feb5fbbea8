"""Catalog of bulk actions and which of them apply to a selection."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Sequence

from models import AccessLevel, BulkAction, RequestContext, TERMINAL_STATUSES


class BulkActionKind(str, Enum):
    CHANGE_STATUS = "change_status"
    ASSIGN = "assign"
    UNASSIGN = "unassign"
    CHECK_OUT = "check_out"
    CHECK_IN = "check_in"
    SELL = "sell"
    RETIRE = "retire"
    DELETE = "delete"
    SCHEDULE_MAINTENANCE = "schedule_maintenance"


@dataclass
class SelectionContext:
    selected_ids: Sequence[str]
    # full records, so status predicates see the real rows rather than ids
    assets: Sequence[Any] = field(default_factory=list)
    user: Optional[RequestContext] = None


# Declaration order is the order actions are offered in.
BULK_ACTIONS: dict[BulkActionKind, BulkAction] = {
    BulkActionKind.CHANGE_STATUS: BulkAction(
        id=BulkActionKind.CHANGE_STATUS.value,
        label="Change Status",
        description="Update the status of selected assets",
        icon="Badge",
        requires_confirmation=True,
        requires_dialog=True,
        min_selection=1,
    ),
    BulkActionKind.ASSIGN: BulkAction(
        id=BulkActionKind.ASSIGN.value,
        label="Assign to Employee",
        description="Assign selected assets to an employee",
        icon="User",
        requires_confirmation=True,
        requires_dialog=True,
        requires_employee=True,
        blocked_statuses=TERMINAL_STATUSES,
        min_selection=1,
    ),
    BulkActionKind.UNASSIGN: BulkAction(
        id=BulkActionKind.UNASSIGN.value,
        label="Unassign",
        description="Remove assignment from selected assets",
        icon="UserX",
        requires_confirmation=True,
        requires_dialog=False,
        blocked_statuses=TERMINAL_STATUSES,
        min_selection=1,
    ),
    BulkActionKind.CHECK_OUT: BulkAction(
        id=BulkActionKind.CHECK_OUT.value,
        label="Check Out",
        description="Check out available assets to an employee",
        icon="LogOut",
        requires_confirmation=True,
        requires_dialog=True,
        allowed_statuses=("Available",),
        min_selection=1,
    ),
    BulkActionKind.CHECK_IN: BulkAction(
        id=BulkActionKind.CHECK_IN.value,
        label="Check In",
        description="Check in assets that are in use",
        icon="LogIn",
        requires_confirmation=True,
        requires_dialog=True,
        allowed_statuses=("In Use",),
        min_selection=1,
    ),
    BulkActionKind.SELL: BulkAction(
        id=BulkActionKind.SELL.value,
        label="Sell Assets",
        description="Mark selected assets as sold",
        icon="DollarSign",
        requires_confirmation=True,
        requires_dialog=True,
        blocked_statuses=TERMINAL_STATUSES,
        min_selection=1,
        access_level=AccessLevel.ADMIN,
    ),
    BulkActionKind.RETIRE: BulkAction(
        id=BulkActionKind.RETIRE.value,
        label="Retire Assets",
        description="Mark selected assets as retired",
        icon="Archive",
        requires_confirmation=True,
        requires_dialog=True,
        blocked_statuses=TERMINAL_STATUSES,
        min_selection=1,
    ),
    BulkActionKind.DELETE: BulkAction(
        id=BulkActionKind.DELETE.value,
        label="Delete Assets",
        description="Permanently delete selected assets",
        icon="Trash2",
        requires_confirmation=True,
        requires_dialog=True,
        min_selection=1,
        max_selection=10,
        access_level=AccessLevel.ADMIN,
    ),
    BulkActionKind.SCHEDULE_MAINTENANCE: BulkAction(
        id=BulkActionKind.SCHEDULE_MAINTENANCE.value,
        label="Schedule Maintenance",
        description="Schedule maintenance for selected assets",
        icon="Wrench",
        requires_confirmation=True,
        requires_dialog=True,
        blocked_statuses=TERMINAL_STATUSES,
        min_selection=1,
    ),
}


def _status_of(asset: Any) -> Optional[str]:
    if isinstance(asset, dict):
        return asset.get("status")
    return getattr(asset, "status", None)


def _id_of(asset: Any) -> Optional[str]:
    if isinstance(asset, dict):
        return asset.get("id")
    return getattr(asset, "id", None)


def is_applicable(action: BulkAction, context: SelectionContext) -> bool:
    count = len(context.selected_ids)
    if count == 0:
        return False

    if action.min_selection is not None and count < action.min_selection:
        return False
    if action.max_selection is not None and count > action.max_selection:
        return False

    selected = set(context.selected_ids)
    statuses = [_status_of(a) for a in context.assets if _id_of(a) in selected]

    if action.blocked_statuses and any(s in action.blocked_statuses for s in statuses):
        return False
    if action.allowed_statuses and not any(s in action.allowed_statuses for s in statuses):
        return False

    user = context.user
    # never offer what the execute endpoint would refuse
    if user is None or user.access_level < action.access_level:
        return False
    if action.requires_employee and user.access_level < AccessLevel.MANAGER:
        return False

    return True


def get_available_actions(context: SelectionContext) -> list[BulkAction]:
    if not context.selected_ids:
        return []
    return [action for action in BULK_ACTIONS.values() if is_applicable(action, context)]


def get_action_by_id(action_id: str) -> Optional[BulkAction]:
    try:
        kind = BulkActionKind((action_id or "").lower())
    except ValueError:
        return None
    return BULK_ACTIONS[kind]
