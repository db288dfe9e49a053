from __future__ import annotations

from ..extensions import db
from fuelpos.time_utils import to_utc_z


class Station(db.Model):
    """
    A physical fuel station.

    Stations are the partition key for tanks, pumps, documents and the
    chart of accounts. Non-admin users are pinned to exactly one station.

    ``timezone`` is an IANA zone name; every "today" / "this month" rollup
    for the station is computed on its local calendar.
    """
    __tablename__ = "stations"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    code = db.Column(db.String(32), nullable=True, unique=True, index=True)
    location = db.Column(db.String(255), nullable=True)
    contact_number = db.Column(db.String(32), nullable=True)

    timezone = db.Column(db.String(64), nullable=False, default="UTC")

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Station id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "location": self.location,
            "contact_number": self.contact_number,
            "timezone": self.timezone,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StationSettings(db.Model):
    """Per-station display and alerting preferences (one row per station)."""
    __tablename__ = "station_settings"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    station_id = db.Column(db.Integer, db.ForeignKey("stations.id"), nullable=False, unique=True)

    currency_code = db.Column(db.String(8), nullable=False, default="USD")
    currency_symbol = db.Column(db.String(8), nullable=False, default="$")
    low_stock_alerts_enabled = db.Column(db.Boolean, nullable=False, default=True)
    receipt_footer = db.Column(db.String(255), nullable=True)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    station = db.relationship("Station", backref=db.backref("settings", uselist=False, lazy=True))

    def to_dict(self) -> dict:
        return {
            "station_id": self.station_id,
            "currency_code": self.currency_code,
            "currency_symbol": self.currency_symbol,
            "low_stock_alerts_enabled": self.low_stock_alerts_enabled,
            "receipt_footer": self.receipt_footer,
            "updated_at": to_utc_z(self.updated_at),
        }


class DocumentSequence(db.Model):
    """Per-station counter behind invoice, purchase-order and journal numbers."""
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("station_id", "document_type", name="uq_document_sequences_station_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    station_id = db.Column(db.Integer, db.ForeignKey("stations.id"), nullable=False, index=True)
    document_type = db.Column(db.String(16), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
