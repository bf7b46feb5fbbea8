import os
import importlib

import pytest
from fastapi.testclient import TestClient

MANAGER = {"X-User-Id": "7", "X-Access-Level": "2"}
ADMIN = {"X-User-Id": "1", "X-Access-Level": "3"}


@pytest.fixture(scope="session")
def app_module(tmp_path_factory):
    # ---- test DB path ----
    tmp_dir = tmp_path_factory.mktemp("itassets_app")
    db_path = tmp_dir / "test_itassets.db"
    os.environ["APP_DB_PATH"] = str(db_path)
    os.environ.pop("DATABASE_URL", None)

    # ---- reload so the modules pick up APP_DB_PATH ----
    import db
    import orm
    import crud
    import lifecycle
    import actions
    import bulk
    import dependencies
    import filter_helpers
    import routers
    import routers.activity_api
    import routers.assets_api
    import routers.bulk_api
    import routers.employees_api
    import routers.sales_api
    import routers.statuses_api
    import main

    for module in (
        db,
        orm,
        crud,
        lifecycle,
        actions,
        bulk,
        dependencies,
        filter_helpers,
        routers.activity_api,
        routers.assets_api,
        routers.bulk_api,
        routers.employees_api,
        routers.sales_api,
        routers.statuses_api,
        routers,
        main,
    ):
        importlib.reload(module)

    return main


@pytest.fixture()
def client(app_module):
    import dependencies
    from db import SessionLocal

    # get_db is overridden to use the test SessionLocal
    def _get_db_override():
        db = SessionLocal()
        try:
            yield db
        finally:
            db.close()

    app_module.app.dependency_overrides[dependencies.get_db] = _get_db_override
    with TestClient(app_module.app) as c:
        yield c
    app_module.app.dependency_overrides.clear()


@pytest.fixture()
def session_factory(app_module):
    from db import SessionLocal

    return SessionLocal


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def clean_db(app_module, db_session):
    # wipe every table before each test (children before parents)
    from db import Base

    for table in reversed(Base.metadata.sorted_tables):
        db_session.execute(table.delete())
    db_session.commit()
    yield


@pytest.fixture()
def make_employee(db_session):
    import crud
    from models import EmployeeIn

    def _make(emp_id="E-001", english_name="Sara Ali", department="IT", **kwargs):
        body = EmployeeIn(emp_id=emp_id, english_name=english_name, department=department, **kwargs)
        return crud.create_employee(db_session, body)

    return _make


@pytest.fixture()
def make_asset(db_session):
    import crud
    from models import AssetIn

    counter = {"n": 0}

    def _make(type="Laptop", brand="Dell", status="Available", **kwargs):
        counter["n"] += 1
        kwargs.setdefault("serial_number", f"SN-{counter['n']:03d}")
        body = AssetIn(type=type, brand=brand, status=status, **kwargs)
        return crud.create_asset(db_session, body)

    return _make
