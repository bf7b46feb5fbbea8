import csv
import io
from typing import Iterable, Any, Sequence, Callable, Optional
from fastapi.responses import StreamingResponse

Column = tuple[str, Callable[[Any], str]]

def decode_csv_bytes(data: bytes) -> str:
    # Arabic Windows exports come as cp1256
    for enc in ("utf-8-sig", "utf-8", "cp1256"):
        try:
            return data.decode(enc)
        except UnicodeDecodeError:
            continue
    return data.decode("utf-8", errors="replace")


def normalize_header(h: str) -> str:
    h = (h or "").strip()
    mapping = {
        "asset_id": "asset_id",
        "assetid": "asset_id",
        "asset id": "asset_id",
        "type": "type",
        "brand": "brand",
        "model_name": "model_name",
        "modelname": "model_name",
        "model name": "model_name",
        "model_number": "model_number",
        "modelnumber": "model_number",
        "model number": "model_number",
        "serial_number": "serial_number",
        "serialnumber": "serial_number",
        "serial number": "serial_number",
        "serial": "serial_number",
        "specs": "specs",
        "status": "status",
        "purchase_date": "purchase_date",
        "purchasedate": "purchase_date",
        "purchase date": "purchase_date",
        "buy_price": "buy_price",
        "buyprice": "buy_price",
        "buy price": "buy_price",
    }
    key = h.lower()
    return mapping.get(h, mapping.get(key, h))


def _text(value: Any) -> str:
    # null/undefined render as an empty cell
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def _attr(name: str) -> Callable[[Any], str]:
    return lambda row: _text(getattr(row, name, None))


ASSET_COLUMNS: Sequence[Column] = [
    (name, _attr(name))
    for name in (
        "asset_id",
        "type",
        "brand",
        "model_name",
        "model_number",
        "serial_number",
        "specs",
        "status",
        "assigned_employee_id",
        "purchase_date",
        "buy_price",
        "warranty_expiry_date",
        "life_span",
        "updated_at",
    )
]

EMPLOYEE_COLUMNS: Sequence[Column] = [
    (name, _attr(name))
    for name in (
        "emp_id",
        "english_name",
        "arabic_name",
        "department",
        "title",
        "status",
        "corporate_email",
    )
]


def rows_to_csv_response(
    rows: Iterable[Any],
    *,
    filename: str,
    columns: Sequence[Column],
) -> StreamingResponse:
    """
    Stream rows (anything with attribute access) as a CSV download.
    csv.writer quotes fields that contain the delimiter, quotes or newlines.
    """

    def generate():
        buf = io.StringIO()
        w = csv.writer(buf)

        w.writerow([h for h, _ in columns])
        yield buf.getvalue()
        buf.seek(0)
        buf.truncate(0)

        for row in rows:
            w.writerow([getter(row) for _, getter in columns])
            yield buf.getvalue()
            buf.seek(0)
            buf.truncate(0)

    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    return StreamingResponse(generate(), media_type="text/csv; charset=utf-8", headers=headers)


def assets_to_csv_response(
    assets: Iterable[Any],
    *,
    filename: str = "assets_export.csv",
    columns: Optional[Sequence[Column]] = None,
) -> StreamingResponse:
    return rows_to_csv_response(assets, filename=filename, columns=columns or ASSET_COLUMNS)


def employees_to_csv_response(employees: Iterable[Any], *, filename: str = "employees_export.csv") -> StreamingResponse:
    return rows_to_csv_response(employees, filename=filename, columns=EMPLOYEE_COLUMNS)


def csv_bytes_to_rows(data: bytes) -> tuple[list[dict[str, str]], str | None]:
    """
    Parse uploaded CSV bytes into rows keyed by normalized header.
    Returns (rows, None) on success, ([], "CSV header not found") when empty.
    """
    text = decode_csv_bytes(data)
    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames:
        return [], "CSV header not found"

    field_map = {fn: normalize_header(fn) for fn in reader.fieldnames}

    rows: list[dict[str, str]] = []
    for raw in reader:
        row: dict[str, str] = {}
        for k, v in raw.items():
            nk = field_map.get(k, k)
            row[nk] = v if v is not None else ""
        rows.append(row)

    return rows, None
