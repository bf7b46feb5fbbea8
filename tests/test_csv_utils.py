from conftest import MANAGER

import csv_utils


def _create_asset(client, type="Laptop", brand="Dell", serial="SN-1", **extra):
    body = {"type": type, "brand": brand, "serial_number": serial}
    body.update(extra)
    r = client.post("/api/assets", json=body, headers=MANAGER)
    assert r.status_code == 201, r.text
    return r.json()


def _upload(client, text, encoding="utf-8"):
    files = {"file": ("assets.csv", text.encode(encoding), "text/csv")}
    return client.post("/api/assets/import", files=files, headers=MANAGER)


def test_normalize_header_variants():
    assert csv_utils.normalize_header("Serial Number") == "serial_number"
    assert csv_utils.normalize_header(" AssetID ") == "asset_id"
    assert csv_utils.normalize_header("serial") == "serial_number"
    assert csv_utils.normalize_header("Unknown Col") == "Unknown Col"


def test_decode_handles_bom_and_cp1256():
    assert csv_utils.decode_csv_bytes("\ufefftype,brand".encode("utf-8")) == "type,brand"
    assert csv_utils.decode_csv_bytes("مرحبا".encode("cp1256")) == "مرحبا"


def test_csv_bytes_to_rows_empty():
    rows, err = csv_utils.csv_bytes_to_rows(b"")
    assert rows == []
    assert err == "CSV header not found"


def test_export_quotes_commas_and_blanks_nulls(client):
    _create_asset(client, brand="Dell", specs="i7, 16GB")
    _create_asset(client, type="Printer", brand="HP", serial="SN-2")

    # empty-string filters should not break the export
    r = client.get("/api/assets/export?status=&type=&q=")
    assert r.status_code == 200, r.text
    assert "text/csv" in r.headers.get("content-type", "")
    assert "assets_export.csv" in r.headers.get("content-disposition", "")

    lines = r.text.strip().splitlines()
    assert lines[0].startswith("asset_id,type,brand,model_name,model_number,serial_number,specs,status")
    assert len(lines) == 1 + 2
    assert lines[1].startswith('SIT-LT-0001,Laptop,Dell,,,SN-1,"i7, 16GB",Available,,')


def test_import_creates_skips_and_reports(client):
    _create_asset(client, serial="SN-EXISTING")

    text = (
        "Asset ID,Type,Brand,Serial Number,Model Name\n"
        "SIT-LT-0001,Laptop,Dell,SN-EXISTING,Latitude\n"
        ",Desktop,HP,SN-100,ProDesk\n"
        "SIT-MN-0050,Monitor,LG,SN-101,\n"
        ",Laptop,,SN-102,\n"
    )
    r = _upload(client, text)
    assert r.status_code == 200, r.text
    result = r.json()
    assert result["created"] == 2
    assert result["skipped"] == 1
    assert result["errors"] == ["row 4: type/brand/serial_number is empty"]

    ids = sorted(a["asset_id"] for a in client.get("/api/assets").json())
    assert ids == ["SIT-DT-0002", "SIT-LT-0001", "SIT-MN-0050"]


def test_import_rejects_unknown_type(client):
    r = _upload(client, "type,brand,serial_number\nToaster,Acme,SN-1\n")
    assert r.status_code == 200
    assert r.json()["created"] == 0
    assert r.json()["errors"][0].startswith("row 1:")


def test_import_requires_header(client):
    r = _upload(client, "")
    assert r.status_code == 400
    assert r.json()["detail"] == "CSV header not found"


def test_import_requires_manager(client):
    files = {"file": ("assets.csv", b"type,brand,serial_number\n", "text/csv")}
    r = client.post("/api/assets/import", files=files)
    assert r.status_code == 403
