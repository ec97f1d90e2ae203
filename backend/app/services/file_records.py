from __future__ import annotations

import csv
from datetime import date, datetime, time
import io
import json
from typing import Any

from openpyxl import load_workbook

from app.core.exceptions import ValidationError

CSV_TYPES = {"text/csv", "application/csv"}
EXCEL_TYPES = {
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}
JSON_TYPES = {"application/json"}
ALLOWED_CONTENT_TYPES = CSV_TYPES | EXCEL_TYPES | JSON_TYPES


def _cell_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, date):
        return value.isoformat()
    return value


def _decode_text(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ValidationError("Uploaded file must be UTF-8 encoded") from exc


def _read_csv(content: bytes) -> list[dict[str, Any]]:
    reader = csv.DictReader(io.StringIO(_decode_text(content)))
    records = []
    try:
        for row in reader:
            record = {str(key).strip(): (value.strip() if isinstance(value, str) else value) for key, value in row.items() if key}
            if any(value not in (None, "") for value in record.values()):
                records.append(record)
    except csv.Error as exc:
        raise ValidationError("Uploaded CSV file could not be read") from exc
    return records


def _read_excel(content: bytes) -> list[dict[str, Any]]:
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as exc:
        raise ValidationError("Uploaded spreadsheet could not be read") from exc
    try:
        worksheet = workbook.worksheets[0]
        rows = worksheet.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return []
        keys = [str(cell).strip() if cell is not None else "" for cell in header]
        records = []
        for row in rows:
            record = {
                key: _cell_value(value)
                for key, value in zip(keys, row)
                if key and value is not None
            }
            if record:
                records.append(record)
        return records
    finally:
        workbook.close()


def _read_json(content: bytes) -> list[dict[str, Any]]:
    try:
        decoded = json.loads(_decode_text(content))
    except json.JSONDecodeError as exc:
        raise ValidationError("Uploaded JSON file is not valid JSON") from exc
    if isinstance(decoded, dict):
        return [decoded]
    if isinstance(decoded, list) and all(isinstance(item, dict) for item in decoded):
        return decoded
    raise ValidationError("Uploaded JSON must be an object or a list of objects")


def read_file_records(content: bytes, content_type: str | None, *, max_bytes: int) -> list[dict[str, Any]]:
    """Turns an uploaded CSV, spreadsheet or JSON file into string-keyed records."""
    media_type = (content_type or "").split(";")[0].strip().lower()
    if media_type not in ALLOWED_CONTENT_TYPES:
        raise ValidationError(
            "Invalid file type. Only CSV, Excel, and JSON files are allowed.",
            details={"contentType": media_type},
        )
    if len(content) > max_bytes:
        raise ValidationError(
            f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB.",
            details={"maxBytes": max_bytes},
        )
    if not content:
        raise ValidationError("Uploaded file is empty")

    if media_type in CSV_TYPES:
        return _read_csv(content)
    if media_type in EXCEL_TYPES:
        return _read_excel(content)
    return _read_json(content)
