import asyncio
from datetime import date
from decimal import Decimal

import pytest

import bulk
import crud
import lifecycle
from errors import LifecycleValidationError
from models import AccessLevel, BulkActionParams, MaintenanceIn, RequestContext

MANAGER = RequestContext(user_id=7, access_level=AccessLevel.MANAGER)
ADMIN = RequestContext(user_id=1, access_level=AccessLevel.ADMIN)


def run(action_id, ids, params, session_factory, ctx=MANAGER):
    return asyncio.run(bulk.execute_bulk_action(action_id, ids, params, ctx, session_factory))


def test_assign_all_succeed(session_factory, db_session, make_asset, make_employee):
    emp = make_employee(english_name="Omar Khaled")
    ids = [make_asset().id for _ in range(3)]

    result = run("assign", ids, BulkActionParams(employee_id=emp.id), session_factory)

    assert result.success is True
    assert result.outcome == "success"
    assert result.message == "Successfully assigned 3 assets to Omar Khaled"
    assert result.details.succeeded == 3
    assert result.details.failed == 0
    assert result.clear_selection is True

    db_session.expire_all()
    assert all(crud.get_asset(db_session, i).assigned_employee_id == emp.id for i in ids)


def test_partial_success_keeps_selection(session_factory, make_asset, make_employee):
    emp = make_employee()
    ids = [make_asset().id, make_asset(status="Sold").id, make_asset().id]

    result = run("assign", ids, BulkActionParams(employee_id=emp.id), session_factory)

    assert result.success is True
    assert result.outcome == "partial"
    assert result.message == "Assigned 2 assets, 1 failed"
    assert result.details.errors == ["Cannot assign sold assets"]
    assert result.clear_selection is False


def test_total_failure(session_factory, make_asset):
    ids = [make_asset().id, make_asset().id]

    # neither asset is assigned
    result = run("unassign", ids, BulkActionParams(), session_factory)

    assert result.success is False
    assert result.outcome == "failure"
    assert result.message == "Failed to unassign assets"
    assert result.details.failed == 2
    assert result.details.errors == ["Asset is not assigned to any employee"] * 2


def test_counts_always_add_up(session_factory, make_asset):
    ids = [make_asset().id, "missing-1", make_asset(status="Retired").id, "missing-2"]

    result = run("retire", ids, BulkActionParams(reason="old"), session_factory)

    assert result.details.succeeded + result.details.failed == len(ids)
    assert result.details.succeeded == 1
    assert sorted(result.details.errors) == ["Asset is already retired", "Asset not found", "Asset not found"]


def test_one_crashing_item_does_not_stop_siblings(monkeypatch, session_factory, db_session, make_asset):
    ids = [make_asset().id for _ in range(3)]
    real_retire = lifecycle.retire

    def flaky_retire(db, ctx, asset_id, reason=None, **kwargs):
        if asset_id == ids[1]:
            raise RuntimeError()
        return real_retire(db, ctx, asset_id, reason, **kwargs)

    monkeypatch.setattr(lifecycle, "retire", flaky_retire)

    result = run("retire", ids, BulkActionParams(), session_factory)

    assert result.outcome == "partial"
    assert result.details.errors == ["Unknown error"]
    db_session.expire_all()
    assert crud.get_asset(db_session, ids[0]).status == "Retired"
    assert crud.get_asset(db_session, ids[1]).status == "Available"
    assert crud.get_asset(db_session, ids[2]).status == "Retired"


def test_empty_selection_is_rejected(session_factory):
    with pytest.raises(LifecycleValidationError) as e:
        run("retire", [], BulkActionParams(), session_factory)
    assert e.value.message == "No assets selected"


def test_unknown_action_is_rejected(session_factory, make_asset):
    with pytest.raises(LifecycleValidationError):
        run("explode", [make_asset().id], BulkActionParams(), session_factory)


def test_action_id_is_case_insensitive(session_factory, make_asset):
    result = run("RETIRE", [make_asset().id], BulkActionParams(), session_factory)
    assert result.message == "Successfully retired 1 assets"


@pytest.mark.parametrize(
    "text",
    [None, "", "delete 2 assets", "DELETE 2 ASSETS ", " DELETE 2 ASSETS", "DELETE 3 ASSETS"],
)
def test_delete_needs_exact_confirmation(session_factory, db_session, make_asset, text):
    ids = [make_asset().id, make_asset().id]

    with pytest.raises(LifecycleValidationError):
        run("delete", ids, BulkActionParams(confirmation_text=text), session_factory, ctx=ADMIN)

    db_session.expire_all()
    assert all(crud.get_asset(db_session, i) is not None for i in ids)


def test_delete_with_confirmation(session_factory, db_session, make_asset):
    ids = [make_asset().id, make_asset().id]

    result = run("delete", ids, BulkActionParams(confirmation_text="DELETE 2 ASSETS"), session_factory, ctx=ADMIN)

    assert result.message == "Successfully deleted 2 assets"
    db_session.expire_all()
    assert all(crud.get_asset(db_session, i) is None for i in ids)


def test_confirmation_message_follows_locale(session_factory, make_asset):
    ctx = RequestContext(user_id=1, access_level=AccessLevel.ADMIN, locale="ar-SA")
    with pytest.raises(LifecycleValidationError) as e:
        run("delete", [make_asset().id], BulkActionParams(confirmation_text="nope"), session_factory, ctx=ctx)
    assert e.value.message == "يرجى كتابة نص التأكيد"


@pytest.mark.parametrize(
    "total, count, each",
    [
        (Decimal("300"), 3, Decimal("100.00")),
        (Decimal("100"), 3, Decimal("33.33")),
        (Decimal("0.05"), 2, Decimal("0.03")),
    ],
)
def test_split_sale_amount(total, count, each):
    assert bulk.split_sale_amount(total, count) == each


def test_sell_creates_one_sale_with_even_items(session_factory, db_session, make_asset):
    ids = [make_asset().id for _ in range(3)]
    params = BulkActionParams(buyer="Acme", sale_date=date(2026, 3, 1), total_amount=Decimal("100"))

    result = run("sell", ids, params, session_factory, ctx=ADMIN)

    assert result.message == "Successfully sold 3 assets to Acme"
    sales = crud.list_asset_sales(db_session)
    assert len(sales) == 1
    items = crud.list_sale_items(db_session, sales[0].id)
    assert sorted(i.asset_id for i in items) == sorted(ids)
    # no remainder redistribution
    assert all(i.amount == Decimal("33.33") for i in items)

    sale_log = [l for l in crud.list_activity(db_session) if l.action == "Sale"]
    assert len(sale_log) == 1
    assert sale_log[0].details["assetCount"] == 3


def test_sell_requires_sale_fields(session_factory, db_session, make_asset):
    with pytest.raises(LifecycleValidationError) as e:
        run("sell", [make_asset().id], BulkActionParams(buyer="Acme"), session_factory, ctx=ADMIN)
    assert e.value.message == "Missing required fields"
    assert crud.list_asset_sales(db_session) == []


def test_change_status_requires_known_status(session_factory, make_asset):
    ids = [make_asset().id]

    with pytest.raises(LifecycleValidationError):
        run("change_status", ids, BulkActionParams(), session_factory)
    with pytest.raises(LifecycleValidationError) as e:
        run("change_status", ids, BulkActionParams(status="Lost"), session_factory)
    assert e.value.message == "Invalid status: Lost"

    result = run("change_status", ids, BulkActionParams(status="Maintenance"), session_factory)
    assert result.message == "Successfully updated 1 assets to Maintenance"


def test_check_out_and_check_in(session_factory, db_session, make_asset, make_employee):
    emp = make_employee()
    ids = [make_asset().id, make_asset().id]

    with pytest.raises(LifecycleValidationError):
        run("check_out", ids, BulkActionParams(employee_id=emp.id), session_factory)

    out = run("check_out", ids, BulkActionParams(employee_id=emp.id, reason="Travel"), session_factory)
    assert out.details.succeeded == 2

    back = run("check_in", ids, BulkActionParams(reason="Returned"), session_factory)
    assert back.message == "Successfully checked in 2 assets"
    assert len(crud.list_asset_transactions(db_session, employee_id=emp.id)) == 4


def test_schedule_maintenance(session_factory, db_session, make_asset):
    ids = [make_asset().id, make_asset().id]
    body = MaintenanceIn(scheduled_date=date(2026, 4, 1), type="Inspection", description="yearly")

    with pytest.raises(LifecycleValidationError):
        run("schedule_maintenance", ids, BulkActionParams(), session_factory)

    result = run("schedule_maintenance", ids, BulkActionParams(maintenance=body), session_factory)
    assert result.details.succeeded == 2
    db_session.expire_all()
    assert {crud.get_asset(db_session, i).status for i in ids} == {"Maintenance"}


def test_error_message_fallbacks():
    assert bulk.error_message(RuntimeError()) == "Unknown error"
    assert bulk.error_message(ValueError("boom")) == "boom"
    assert bulk.error_message(LifecycleValidationError("Asset not found")) == "Asset not found"


def test_preparation_runs_off_the_event_loop_thread(monkeypatch, session_factory, make_asset):
    import threading

    kind = bulk.BulkActionKind.RETIRE
    real_prepare = bulk.PREPARERS[kind]
    seen = []

    def recording_prepare(*args):
        seen.append(threading.current_thread() is threading.main_thread())
        return real_prepare(*args)

    monkeypatch.setitem(bulk.PREPARERS, kind, recording_prepare)

    result = run("retire", [make_asset().id], BulkActionParams(), session_factory)

    assert result.outcome == "success"
    assert seen == [False]
