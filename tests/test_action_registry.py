import pytest

import actions
from models import AccessLevel, RequestContext

ADMIN = RequestContext(user_id=1, access_level=AccessLevel.ADMIN)
MANAGER = RequestContext(user_id=7, access_level=AccessLevel.MANAGER)
AGENT = RequestContext(user_id=8, access_level=AccessLevel.AGENT)


def _ctx(statuses, user=ADMIN):
    assets = [{"id": f"a{i}", "status": s} for i, s in enumerate(statuses)]
    return actions.SelectionContext(selected_ids=[a["id"] for a in assets], assets=assets, user=user)


def _ids(available):
    return [a.id for a in available]


def test_catalog_order_is_declaration_order():
    assert [a.id for a in actions.BULK_ACTIONS.values()] == [
        "change_status",
        "assign",
        "unassign",
        "check_out",
        "check_in",
        "sell",
        "retire",
        "delete",
        "schedule_maintenance",
    ]


def test_empty_selection_yields_no_actions():
    ctx = actions.SelectionContext(selected_ids=[], assets=[], user=MANAGER)
    assert actions.get_available_actions(ctx) == []


def test_available_selection_offers_check_out_not_check_in():
    ids = _ids(actions.get_available_actions(_ctx(["Available", "Available"])))
    assert "check_out" in ids
    assert "check_in" not in ids
    assert "assign" in ids


def test_in_use_selection_offers_check_in():
    ids = _ids(actions.get_available_actions(_ctx(["In Use"])))
    assert "check_in" in ids
    assert "check_out" not in ids


def test_allowed_statuses_need_only_one_matching_asset():
    ids = _ids(actions.get_available_actions(_ctx(["Available", "Maintenance"])))
    assert "check_out" in ids


def test_one_sold_asset_blocks_assign_sell_and_retire():
    ids = _ids(actions.get_available_actions(_ctx(["Available", "Sold"])))
    for blocked in ("assign", "unassign", "sell", "retire", "schedule_maintenance"):
        assert blocked not in ids
    # not blocked by terminal statuses
    assert "change_status" in ids
    assert "delete" in ids


def test_delete_hidden_above_ten_assets():
    ids = _ids(actions.get_available_actions(_ctx(["Available"] * 11)))
    assert "delete" not in ids

    ids = _ids(actions.get_available_actions(_ctx(["Available"] * 10)))
    assert "delete" in ids


def test_assign_requires_manager_access():
    ids = _ids(actions.get_available_actions(_ctx(["Available"], user=AGENT)))
    assert "assign" not in ids

    ids = _ids(actions.get_available_actions(_ctx(["Available"], user=None)))
    assert "assign" not in ids


def test_assets_can_be_objects():
    class Row:
        def __init__(self, id, status):
            self.id = id
            self.status = status

    ctx = actions.SelectionContext(selected_ids=["x"], assets=[Row("x", "In Use")], user=MANAGER)
    assert "check_in" in _ids(actions.get_available_actions(ctx))


def test_assets_outside_selection_are_ignored():
    assets = [{"id": "a", "status": "Available"}, {"id": "b", "status": "Sold"}]
    ctx = actions.SelectionContext(selected_ids=["a"], assets=assets, user=ADMIN)
    assert "sell" in _ids(actions.get_available_actions(ctx))


@pytest.mark.parametrize("action_id", ["delete", "DELETE", "Delete"])
def test_get_action_by_id_is_case_insensitive(action_id):
    action = actions.get_action_by_id(action_id)
    assert action is not None
    assert action.id == "delete"
    assert action.max_selection == 10
    assert action.access_level == AccessLevel.ADMIN


def test_get_action_by_id_unknown_returns_none():
    assert actions.get_action_by_id("explode") is None
    assert actions.get_action_by_id("") is None


def test_manager_is_not_offered_admin_actions():
    ids = _ids(actions.get_available_actions(_ctx(["Available"], user=MANAGER)))
    assert "sell" not in ids
    assert "delete" not in ids
    assert ids == ["change_status", "assign", "unassign", "check_out", "retire", "schedule_maintenance"]


def test_anonymous_user_is_offered_nothing():
    assert actions.get_available_actions(_ctx(["Available"], user=None)) == []
