"""
Bulk action orchestration.

One lifecycle operation per selected asset, all dispatched at once, each in
its own session. Every item settles (success or failure) before the result
is classified; one failing item never aborts or cancels its siblings and
there is no transaction spanning items.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Optional, Sequence

from sqlalchemy.orm import Session

import crud
import lifecycle
from actions import BulkActionKind
from errors import LifecycleError, LifecycleValidationError
from models import BulkActionDetails, BulkActionParams, BulkActionResult, RequestContext

logger = logging.getLogger("app.bulk")

SessionFactory = Callable[[], Session]
ItemOperation = Callable[[Session, str], Any]

CENTS = Decimal("0.01")
UNKNOWN_ERROR = "Unknown error"

_VALIDATION_MESSAGES = {
    "en": {
        "no_selection": "No assets selected",
        "unknown_action": "Unknown bulk action: {action}",
        "confirmation_required": "Please type the confirmation text",
        "select_employee": "Please select an employee",
        "select_status": "Please select a status",
        "select_reason": "Please select a reason",
        "fill_required": "Please fill in all required fields",
    },
    "ar": {
        "confirmation_required": "يرجى كتابة نص التأكيد",
    },
}


@dataclass(frozen=True)
class Phrasing:
    done: str
    verb: str
    failure: str


PHRASES: dict[BulkActionKind, Phrasing] = {
    BulkActionKind.CHANGE_STATUS: Phrasing("updated", "Updated", "Failed to update asset status"),
    BulkActionKind.ASSIGN: Phrasing("assigned", "Assigned", "Failed to assign assets"),
    BulkActionKind.UNASSIGN: Phrasing("unassigned", "Unassigned", "Failed to unassign assets"),
    BulkActionKind.CHECK_OUT: Phrasing("checked out", "Checked out", "Failed to check out assets"),
    BulkActionKind.CHECK_IN: Phrasing("checked in", "Checked in", "Failed to check in assets"),
    BulkActionKind.SELL: Phrasing("sold", "Sold", "Failed to sell assets"),
    BulkActionKind.RETIRE: Phrasing("retired", "Retired", "Failed to retire assets"),
    BulkActionKind.DELETE: Phrasing("deleted", "Deleted", "Failed to delete assets"),
    BulkActionKind.SCHEDULE_MAINTENANCE: Phrasing(
        "scheduled maintenance for", "Scheduled maintenance for", "Failed to schedule maintenance"
    ),
}


def _msg(ctx: RequestContext, key: str, **kwargs: Any) -> str:
    lang = (ctx.locale or "en").split("-")[0].lower()
    template = _VALIDATION_MESSAGES.get(lang, {}).get(key) or _VALIDATION_MESSAGES["en"][key]
    return template.format(**kwargs)


def delete_confirmation_phrase(count: int) -> str:
    return f"DELETE {count} ASSETS"


def is_delete_confirmed(text: Optional[str], count: int) -> bool:
    # exact match: no trimming, no case folding
    return text == delete_confirmation_phrase(count)


def split_sale_amount(total_amount: Decimal, count: int) -> Decimal:
    """Even split of a sale total, rounded half-up to cents. No remainder redistribution."""
    return (Decimal(total_amount) / count).quantize(CENTS, rounding=ROUND_HALF_UP)


def error_message(exc: BaseException) -> str:
    if isinstance(exc, LifecycleError):
        return exc.message or UNKNOWN_ERROR
    return str(exc) or UNKNOWN_ERROR


def classify(kind: BulkActionKind, succeeded: int, failed: int, errors: list[str], *, suffix: str = "") -> BulkActionResult:
    phrase = PHRASES[kind]
    details = BulkActionDetails(succeeded=succeeded, failed=failed, errors=errors)

    if failed == 0:
        return BulkActionResult(
            success=True,
            outcome="success",
            message=f"Successfully {phrase.done} {succeeded} assets{suffix}",
            details=details,
        )
    if succeeded > 0:
        return BulkActionResult(
            success=True,
            outcome="partial",
            message=f"{phrase.verb} {succeeded} assets, {failed} failed",
            details=details,
        )
    return BulkActionResult(success=False, outcome="failure", message=phrase.failure, details=details)


# ---------- per-action preparation ----------
# Each preparer validates the parameters (raising before anything is
# dispatched) and returns the per-item operation plus a message suffix.

def _prepare_change_status(ids, params: BulkActionParams, ctx, session_factory):
    if not params.status:
        raise LifecycleValidationError(_msg(ctx, "select_status"))
    db = session_factory()
    try:
        valid = crud.is_valid_status(db, params.status)
    finally:
        db.close()
    if not valid:
        raise LifecycleValidationError(f"Invalid status: {params.status}")

    def op(db: Session, asset_id: str):
        return lifecycle.change_status(db, ctx, asset_id, params.status)

    return op, f" to {params.status}"


def _prepare_assign(ids, params: BulkActionParams, ctx, session_factory):
    if not params.employee_id:
        raise LifecycleValidationError(_msg(ctx, "select_employee"))
    db = session_factory()
    try:
        employee = crud.get_employee(db, params.employee_id)
    finally:
        db.close()

    def op(db: Session, asset_id: str):
        return lifecycle.assign(db, ctx, asset_id, params.employee_id)

    return op, f" to {employee.english_name}" if employee else ""


def _prepare_unassign(ids, params: BulkActionParams, ctx, session_factory):
    def op(db: Session, asset_id: str):
        return lifecycle.unassign(db, ctx, asset_id)

    return op, ""


def _prepare_check_out(ids, params: BulkActionParams, ctx, session_factory):
    if not params.employee_id:
        raise LifecycleValidationError(_msg(ctx, "select_employee"))
    if not params.reason:
        raise LifecycleValidationError(_msg(ctx, "select_reason"))

    def op(db: Session, asset_id: str):
        return lifecycle.check_out(db, ctx, asset_id, params.employee_id, params.reason, params.notes)

    return op, ""


def _prepare_check_in(ids, params: BulkActionParams, ctx, session_factory):
    if not params.reason:
        raise LifecycleValidationError(_msg(ctx, "select_reason"))

    def op(db: Session, asset_id: str):
        return lifecycle.check_in(db, ctx, asset_id, params.reason, params.notes)

    return op, ""


def _prepare_sell(ids, params: BulkActionParams, ctx, session_factory):
    db = session_factory()
    try:
        sale = lifecycle.open_sale(
            db,
            ctx,
            buyer=params.buyer,
            sale_date=params.sale_date,
            total_amount=params.total_amount,
            notes=params.notes,
            asset_count=len(ids),
        )
    finally:
        db.close()
    amount = split_sale_amount(params.total_amount, len(ids))  # type: ignore[arg-type]

    def op(db: Session, asset_id: str):
        return lifecycle.sell(db, ctx, asset_id, sale.id, amount)

    return op, f" to {params.buyer}"


def _prepare_retire(ids, params: BulkActionParams, ctx, session_factory):
    def op(db: Session, asset_id: str):
        return lifecycle.retire(db, ctx, asset_id, params.reason)

    return op, ""


def _prepare_delete(ids, params: BulkActionParams, ctx, session_factory):
    if not is_delete_confirmed(params.confirmation_text, len(ids)):
        raise LifecycleValidationError(_msg(ctx, "confirmation_required"))

    def op(db: Session, asset_id: str):
        lifecycle.delete(db, ctx, asset_id)
        return True

    return op, ""


def _prepare_schedule_maintenance(ids, params: BulkActionParams, ctx, session_factory):
    if params.maintenance is None:
        raise LifecycleValidationError(_msg(ctx, "fill_required"))

    def op(db: Session, asset_id: str):
        return lifecycle.schedule_maintenance(db, ctx, asset_id, params.maintenance)

    return op, ""


PREPARERS: dict[BulkActionKind, Callable[..., tuple[ItemOperation, str]]] = {
    BulkActionKind.CHANGE_STATUS: _prepare_change_status,
    BulkActionKind.ASSIGN: _prepare_assign,
    BulkActionKind.UNASSIGN: _prepare_unassign,
    BulkActionKind.CHECK_OUT: _prepare_check_out,
    BulkActionKind.CHECK_IN: _prepare_check_in,
    BulkActionKind.SELL: _prepare_sell,
    BulkActionKind.RETIRE: _prepare_retire,
    BulkActionKind.DELETE: _prepare_delete,
    BulkActionKind.SCHEDULE_MAINTENANCE: _prepare_schedule_maintenance,
}

_unhandled = set(BulkActionKind) - set(PREPARERS)
if _unhandled:
    raise RuntimeError(f"bulk actions without a handler: {sorted(k.value for k in _unhandled)}")


def _run_item(session_factory: SessionFactory, operation: ItemOperation, asset_id: str) -> Any:
    db = session_factory()
    try:
        return operation(db, asset_id)
    finally:
        db.close()


async def execute_bulk_action(
    action_id: str | BulkActionKind,
    selected_ids: Sequence[str],
    params: BulkActionParams,
    ctx: RequestContext,
    session_factory: SessionFactory,
) -> BulkActionResult:
    if isinstance(action_id, BulkActionKind):
        kind = action_id
    else:
        try:
            kind = BulkActionKind((action_id or "").lower())
        except ValueError:
            raise LifecycleValidationError(_msg(ctx, "unknown_action", action=action_id)) from None

    ids = list(selected_ids)
    if not ids:
        raise LifecycleValidationError(_msg(ctx, "no_selection"))

    # preparers may query the database, so they stay off the event loop too
    operation, suffix = await asyncio.to_thread(PREPARERS[kind], ids, params, ctx, session_factory)

    outcomes = await asyncio.gather(
        *(asyncio.to_thread(_run_item, session_factory, operation, asset_id) for asset_id in ids),
        return_exceptions=True,
    )

    succeeded = 0
    errors: list[str] = []
    for asset_id, outcome in zip(ids, outcomes):
        if isinstance(outcome, BaseException):
            message = error_message(outcome)
            if not isinstance(outcome, LifecycleError):
                logger.warning("bulk item failed action=%s asset=%s error=%r", kind.value, asset_id, outcome)
            errors.append(message)
        elif not outcome:
            errors.append(UNKNOWN_ERROR)
        else:
            succeeded += 1

    result = classify(kind, succeeded, len(errors), errors, suffix=suffix)
    logger.info(
        "bulk action=%s user=%s selected=%s succeeded=%s failed=%s",
        kind.value,
        ctx.user_id,
        len(ids),
        succeeded,
        len(errors),
    )
    return result
