from collections.abc import Callable, Generator
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from db import SessionLocal
from models import AccessLevel, RequestContext


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> Callable[[], Session]:
    return SessionLocal


def get_request_context(
    x_user_id: Optional[int] = Header(None),
    x_access_level: int = Header(0),
    accept_language: Optional[str] = Header(None),
) -> RequestContext:
    # stands in for the session layer: identity arrives as headers
    try:
        level = AccessLevel(x_access_level)
    except ValueError:
        raise HTTPException(status_code=400, detail="invalid access level") from None
    locale = (accept_language or "en").split(",")[0].strip() or "en"
    return RequestContext(user_id=x_user_id, access_level=level, locale=locale)


def require_access(level: AccessLevel):
    def _check(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
        if ctx.access_level < level:
            raise HTTPException(status_code=403, detail="insufficient access level")
        return ctx

    return _check
