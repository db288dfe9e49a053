# Overview: Bulk import of historical records from CSV/XLSX rows.

from __future__ import annotations

import csv
import io
from typing import Any

from flask import current_app

from ..errors import ServiceError, ValidationError
from ..extensions import db
from .access_service import Actor, ensure_station_access, get_active_station
from .import_schemas import SCHEMAS, SchemaContext

"""
Import rules

- Each row is normalized, validated and posted inside its own savepoint.
  A failing row is rolled back alone and reported as "Row N: message";
  the rest of the batch still commits.
- Row numbers are 1-based over data rows (the header is not counted).
- Imported documents carry source="import" and never move tank stock,
  party balances or the journal.
"""

IMPORT_TYPES = tuple(SCHEMAS.keys())
XLSX_EXTENSIONS = {"xlsx", "xlsm"}


def get_schema(import_type: str):
    schema = SCHEMAS.get((import_type or "").strip().lower())
    if schema is None:
        raise ValidationError(f"Unknown import type: {import_type}", field="type")
    return schema


def generate_template(import_type: str, include_example: bool = False) -> str:
    """
    CSV template: the header row, plus one illustrative row on request.

    The plain template can be filled in and imported as-is; the example
    row references names that may not exist at the station.
    """
    schema = get_schema(import_type)
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(schema.columns)
    if include_example:
        writer.writerow(schema.example)
    return buffer.getvalue()


def read_upload(filename: str, stream) -> list[dict[str, Any]]:
    """Parse an uploaded .csv (UTF-8, BOM tolerated) or .xlsx file into row dicts."""
    ext = (filename or "").rsplit(".", 1)[-1].lower() if "." in (filename or "") else ""

    if ext == "csv":
        raw = stream.read()
        try:
            text = raw.decode("utf-8-sig") if isinstance(raw, bytes) else raw.lstrip("\ufeff")
        except UnicodeDecodeError:
            raise ValidationError("CSV file must be UTF-8 encoded", field="file")
        reader = csv.DictReader(io.StringIO(text))
        return [row for row in reader if any((value or "").strip() for value in row.values() if isinstance(value, str))]

    if ext in XLSX_EXTENSIONS:
        from openpyxl import load_workbook

        try:
            workbook = load_workbook(stream, read_only=True, data_only=True)
        except Exception:
            raise ValidationError("Could not read the spreadsheet", field="file")
        sheet = workbook.active
        data = list(sheet.values)
        workbook.close()
        if not data:
            return []
        headers = [str(h).strip() if h is not None else "" for h in data[0]]
        return [
            {headers[i]: row[i] for i in range(min(len(headers), len(row)))}
            for row in data[1:]
            if any(cell not in (None, "") for cell in row)
        ]

    raise ValidationError("Unsupported file format (use .csv or .xlsx)", field="file")


def import_rows(station_id: int, import_type: str, rows: list[dict[str, Any]], actor: Actor) -> dict:
    """
    Import ``rows`` for one station.

    Returns {"success": n, "failed": m, "errors": ["Row N: message", ...]}.
    """
    schema = get_schema(import_type)
    if not isinstance(rows, list):
        raise ValidationError("rows must be a list", field="rows")
    ensure_station_access(station_id, actor.station_id, actor.role)
    get_active_station(station_id)

    success = 0
    errors: list[str] = []

    for row_number, raw_row in enumerate(rows, start=1):
        if not isinstance(raw_row, dict):
            errors.append(f"Row {row_number}: invalid row")
            continue

        normalized = schema.normalize_row(raw_row)
        problems = schema.validate_row(normalized)
        if problems:
            errors.append(f"Row {row_number}: {'; '.join(problems)}")
            continue

        savepoint = db.session.begin_nested()
        try:
            schema.post_row(
                normalized,
                SchemaContext(station_id=station_id, actor=actor, row_number=row_number),
            )
            savepoint.commit()
            success += 1
        except ServiceError as exc:
            savepoint.rollback()
            errors.append(f"Row {row_number}: {exc.message}")

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    result = {"success": success, "failed": len(errors), "errors": errors}
    current_app.logger.info(
        "Imported %s rows into station %s: %s succeeded, %s failed",
        import_type, station_id, success, len(errors),
    )
    return result
