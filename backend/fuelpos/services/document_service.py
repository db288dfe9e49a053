# Overview: Per-station atomic numbering for invoices, purchase orders and journal entries.

from __future__ import annotations

from typing import Callable

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..errors import ValidationError
from ..extensions import db
from ..models import DocumentSequence

DOCUMENT_PREFIXES = {
    "INV": "INV",
    "PO": "PO",
    "JE": "JE",
}


def next_document_number(*, station_id: int, document_type: str, pad: int = 4,
                         taken: Callable[[str], bool] | None = None) -> str:
    """
    Allocate the next document number for a station/type, e.g. ``INV-001-0042``.

    The counter is bumped with a store-side ``next_number + 1`` so two
    concurrent callers can never receive the same number. The first number
    for a station/type creates the sequence row; a racing insert falls back
    to the update path.

    Runs inside the caller's transaction: a rolled-back document also rolls
    back its number.

    ``taken`` reports numbers already used by hand-entered documents; those
    are skipped.
    """
    if not station_id:
        raise ValidationError("station_id is required", field="station_id")
    prefix = DOCUMENT_PREFIXES.get(document_type)
    if not prefix:
        raise ValidationError(f"Unknown document type: {document_type}")

    stmt = (
        update(DocumentSequence)
        .where(
            DocumentSequence.station_id == station_id,
            DocumentSequence.document_type == document_type,
        )
        .values(next_number=DocumentSequence.next_number + 1)
        .execution_options(synchronize_session=False)
    )

    def _read_allocated() -> int:
        current = (
            db.session.query(DocumentSequence.next_number)
            .filter_by(station_id=station_id, document_type=document_type)
            .scalar()
        )
        return current - 1

    def _allocate() -> int:
        if db.session.execute(stmt).rowcount:
            return _read_allocated()
        savepoint = db.session.begin_nested()
        try:
            db.session.add(DocumentSequence(station_id=station_id, document_type=document_type, next_number=2))
            savepoint.commit()
            return 1
        except IntegrityError:
            savepoint.rollback()
            db.session.execute(stmt)
            return _read_allocated()

    while True:
        number = f"{prefix}-{station_id:03d}-{_allocate():0{pad}d}"
        if taken is None or not taken(number):
            return number
