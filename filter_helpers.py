from sqlalchemy.orm import Session

import crud
from models import ASSET_TYPES

ALLOWED_SORTS = ("asset_id", "type", "brand", "status", "serial_number", "updated_at")
ALLOWED_ORDERS = ("asc", "desc")


def blank_to_none(value: str | None) -> str | None:
    if value == "":
        return None
    return value


def normalize_sort(sort: str) -> str:
    if sort not in ALLOWED_SORTS:
        return "asset_id"
    return sort


def normalize_order(order: str) -> str:
    if order not in ALLOWED_ORDERS:
        return "asc"
    return order


def normalize_status(db: Session, status: str | None) -> str | None:
    # unknown statuses are ignored rather than rejected
    if not crud.is_valid_status(db, status):
        return None
    return status


def normalize_type(asset_type: str | None) -> str | None:
    if asset_type not in ASSET_TYPES:
        return None
    return asset_type


def normalize_limit(limit: int) -> int:
    if limit < 1:
        return 1
    if limit > 500:
        return 500
    return limit


def normalize_offset(offset: int) -> int:
    if offset < 0:
        return 0
    return offset
