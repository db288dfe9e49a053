from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from sqlalchemy import func

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Product
from ..numbers import parse_money, parse_quantity
from .access_service import Actor
from .party_service import find_customer_by_name, find_supplier_by_name
from .payment_service import add_expense, add_payment
from .purchase_service import add_purchase_order
from .sales_service import add_sales_transaction


def _to_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def _to_lower(value: Any) -> str | None:
    text = _to_text(value)
    return text.lower() if text else None


def _to_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = _to_text(value)
    if not text:
        return None
    # the whole cell must be YYYY-MM-DD
    if len(text) != 10:
        raise ValueError(text)
    return datetime.strptime(text, "%Y-%m-%d").date()


def _collect(errors: list[str], parse, *args, **kwargs):
    """Run a parser, turning a ValidationError into a row error message."""
    try:
        return parse(*args, **kwargs)
    except ValidationError as exc:
        errors.append(exc.message)
        return None


def resolve_product(name: str) -> Product:
    """Active product whose name matches exactly, ignoring case."""
    product = (
        db.session.query(Product)
        .filter(func.lower(Product.name) == name.strip().lower(), Product.is_active.is_(True))
        .order_by(Product.id.asc())
        .first()
    )
    if product is None:
        raise NotFoundError(f"Product not found: {name}", field="product_name")
    return product


@dataclass
class SchemaContext:
    station_id: int
    actor: Actor
    row_number: int


class BaseImportSchema:
    columns: tuple[str, ...] = ()
    example: tuple[str, ...] = ()

    def normalize_row(self, raw_row: dict[str, Any]) -> dict[str, Any]:
        raise NotImplementedError

    def validate_row(self, normalized_row: dict[str, Any]) -> list[str]:
        raise NotImplementedError

    def post_row(self, normalized_row: dict[str, Any], context: SchemaContext) -> dict[str, Any]:
        raise NotImplementedError

    @staticmethod
    def cell(raw_row: dict[str, Any], column: str) -> Any:
        """Header lookup tolerant of case and surrounding whitespace."""
        if column in raw_row:
            return raw_row[column]
        wanted = column.strip().lower()
        for key, value in raw_row.items():
            if key is not None and str(key).strip().lower() == wanted:
                return value
        return None

    def _date(self, normalized_row: dict[str, Any], errors: list[str]) -> None:
        raw = normalized_row.get("date")
        if not raw:
            errors.append("Date is required")
            return
        try:
            normalized_row["date"] = _to_date(raw)
        except ValueError:
            errors.append(f"Invalid date (expected YYYY-MM-DD): {raw}")


class SalesSchema(BaseImportSchema):
    columns = ("Date", "Customer Name", "Product Name", "Quantity", "Unit Price", "Payment Method", "Invoice Number")
    example = ("2022-01-15", "John Doe", "High Speed Diesel", "100.5", "150.00", "cash", "INV001")

    def normalize_row(self, raw_row: dict[str, Any]) -> dict[str, Any]:
        return {
            "date": _to_text(self.cell(raw_row, "Date")),
            "customer_name": _to_text(self.cell(raw_row, "Customer Name")),
            "product_name": _to_text(self.cell(raw_row, "Product Name")),
            "quantity": _to_text(self.cell(raw_row, "Quantity")),
            "unit_price": _to_text(self.cell(raw_row, "Unit Price")),
            "payment_method": _to_lower(self.cell(raw_row, "Payment Method")) or "cash",
            "invoice_number": _to_text(self.cell(raw_row, "Invoice Number")),
        }

    def validate_row(self, normalized_row: dict[str, Any]) -> list[str]:
        errors: list[str] = []
        self._date(normalized_row, errors)
        if not normalized_row.get("product_name"):
            errors.append("Product Name is required")
        normalized_row["quantity"] = _collect(errors, parse_quantity, normalized_row.get("quantity"), "Quantity")
        normalized_row["unit_price_cents"] = _collect(errors, parse_money, normalized_row.get("unit_price"), "Unit Price")
        if normalized_row["payment_method"] == "credit" and not normalized_row.get("customer_name"):
            errors.append("Credit sales require a Customer Name")
        return errors

    def post_row(self, normalized_row: dict[str, Any], context: SchemaContext) -> dict[str, Any]:
        product = resolve_product(normalized_row["product_name"])
        customer_id = None
        if normalized_row.get("customer_name"):
            customer = find_customer_by_name(context.station_id, normalized_row["customer_name"])
            if customer is None:
                raise NotFoundError(f"Customer not found: {normalized_row['customer_name']}", field="customer_name")
            customer_id = customer.id

        txn = add_sales_transaction(
            {
                "station_id": context.station_id,
                "customer_id": customer_id,
                "payment_method": normalized_row["payment_method"],
                "transaction_date": normalized_row["date"],
                "invoice_number": normalized_row.get("invoice_number"),
                "source": "import",
            },
            [{
                "product_id": product.id,
                "quantity": normalized_row["quantity"],
                "unit_price_cents": normalized_row["unit_price_cents"],
            }],
            context.actor,
        )
        return {"entity_type": "sales_transaction", "id": txn.id}


class ExpensesSchema(BaseImportSchema):
    columns = ("Date", "Description", "Amount", "Account Code", "Receipt Number", "Payment Method", "Notes")
    example = ("2022-01-15", "Office Supplies", "5000", "5001", "RCP001", "cash", "Monthly supplies")

    def normalize_row(self, raw_row: dict[str, Any]) -> dict[str, Any]:
        return {
            "date": _to_text(self.cell(raw_row, "Date")),
            "description": _to_text(self.cell(raw_row, "Description")),
            "amount": _to_text(self.cell(raw_row, "Amount")),
            "account_code": _to_text(self.cell(raw_row, "Account Code")) or "5001",
            "receipt_number": _to_text(self.cell(raw_row, "Receipt Number")),
            "payment_method": _to_lower(self.cell(raw_row, "Payment Method")) or "cash",
            "notes": _to_text(self.cell(raw_row, "Notes")),
        }

    def validate_row(self, normalized_row: dict[str, Any]) -> list[str]:
        errors: list[str] = []
        self._date(normalized_row, errors)
        if not normalized_row.get("description"):
            errors.append("Description is required")
        normalized_row["amount_cents"] = _collect(
            errors, parse_money, normalized_row.get("amount"), "Amount", allow_zero=False
        )
        return errors

    def post_row(self, normalized_row: dict[str, Any], context: SchemaContext) -> dict[str, Any]:
        expense = add_expense(
            context.station_id,
            {
                "description": normalized_row["description"],
                "amount_cents": normalized_row["amount_cents"],
                "account_code": normalized_row["account_code"],
                "receipt_number": normalized_row.get("receipt_number"),
                "payment_method": normalized_row["payment_method"],
                "notes": normalized_row.get("notes"),
                "expense_date": normalized_row["date"],
                "source": "import",
            },
            context.actor,
        )
        return {"entity_type": "expense", "id": expense.id}


class PaymentsSchema(BaseImportSchema):
    columns = ("Date", "Customer/Supplier Name", "Amount", "Payment Method", "Type", "Reference Number", "Notes")
    example = ("2022-01-15", "ABC Company", "50000", "bank", "receivable", "PAY001", "Payment received")

    def normalize_row(self, raw_row: dict[str, Any]) -> dict[str, Any]:
        return {
            "date": _to_text(self.cell(raw_row, "Date")),
            "party_name": _to_text(self.cell(raw_row, "Customer/Supplier Name")),
            "amount": _to_text(self.cell(raw_row, "Amount")),
            "payment_method": _to_lower(self.cell(raw_row, "Payment Method")) or "cash",
            "payment_type": _to_lower(self.cell(raw_row, "Type")),
            "reference_number": _to_text(self.cell(raw_row, "Reference Number")),
            "notes": _to_text(self.cell(raw_row, "Notes")),
        }

    def validate_row(self, normalized_row: dict[str, Any]) -> list[str]:
        errors: list[str] = []
        self._date(normalized_row, errors)
        if not normalized_row.get("party_name"):
            errors.append("Customer/Supplier Name is required")
        if normalized_row.get("payment_type") not in ("receivable", "payable"):
            errors.append("Type must be receivable or payable")
        normalized_row["amount_cents"] = _collect(
            errors, parse_money, normalized_row.get("amount"), "Amount", allow_zero=False
        )
        return errors

    def post_row(self, normalized_row: dict[str, Any], context: SchemaContext) -> dict[str, Any]:
        data = {
            "payment_type": normalized_row["payment_type"],
            "amount_cents": normalized_row["amount_cents"],
            "payment_method": normalized_row["payment_method"],
            "reference_number": normalized_row.get("reference_number"),
            "notes": normalized_row.get("notes"),
            "payment_date": normalized_row["date"],
            "source": "import",
        }
        name = normalized_row["party_name"]
        if normalized_row["payment_type"] == "receivable":
            customer = find_customer_by_name(context.station_id, name)
            if customer is None:
                raise NotFoundError(f"Customer not found: {name}", field="party_name")
            data["customer_id"] = customer.id
        else:
            supplier = find_supplier_by_name(context.station_id, name)
            if supplier is None:
                raise NotFoundError(f"Supplier not found: {name}", field="party_name")
            data["supplier_id"] = supplier.id

        payment = add_payment(context.station_id, data, context.actor)
        return {"entity_type": "payment", "id": payment.id}


class PurchasesSchema(BaseImportSchema):
    columns = ("Date", "Supplier Name", "Product Name", "Quantity", "Unit Price", "Order Number", "Status")
    example = ("2022-01-15", "XYZ Suppliers", "High Speed Diesel", "5000", "145.00", "PO001", "delivered")

    def normalize_row(self, raw_row: dict[str, Any]) -> dict[str, Any]:
        return {
            "date": _to_text(self.cell(raw_row, "Date")),
            "supplier_name": _to_text(self.cell(raw_row, "Supplier Name")),
            "product_name": _to_text(self.cell(raw_row, "Product Name")),
            "quantity": _to_text(self.cell(raw_row, "Quantity")),
            "unit_price": _to_text(self.cell(raw_row, "Unit Price")),
            "order_number": _to_text(self.cell(raw_row, "Order Number")),
            "status": _to_lower(self.cell(raw_row, "Status")) or "pending",
        }

    def validate_row(self, normalized_row: dict[str, Any]) -> list[str]:
        errors: list[str] = []
        self._date(normalized_row, errors)
        if not normalized_row.get("supplier_name"):
            errors.append("Supplier Name is required")
        if not normalized_row.get("product_name"):
            errors.append("Product Name is required")
        normalized_row["quantity"] = _collect(errors, parse_quantity, normalized_row.get("quantity"), "Quantity")
        normalized_row["unit_price_cents"] = _collect(errors, parse_money, normalized_row.get("unit_price"), "Unit Price")
        return errors

    def post_row(self, normalized_row: dict[str, Any], context: SchemaContext) -> dict[str, Any]:
        product = resolve_product(normalized_row["product_name"])
        supplier = find_supplier_by_name(context.station_id, normalized_row["supplier_name"])
        if supplier is None:
            raise NotFoundError(f"Supplier not found: {normalized_row['supplier_name']}", field="supplier_name")

        order = add_purchase_order(
            {
                "station_id": context.station_id,
                "supplier_id": supplier.id,
                "order_number": normalized_row.get("order_number"),
                "order_date": normalized_row["date"],
                "status": normalized_row["status"],
                "source": "import",
            },
            [{
                "product_id": product.id,
                "quantity": normalized_row["quantity"],
                "unit_price_cents": normalized_row["unit_price_cents"],
            }],
            context.actor,
        )
        return {"entity_type": "purchase_order", "id": order.id}


SCHEMAS: dict[str, BaseImportSchema] = {
    "sales": SalesSchema(),
    "expenses": ExpensesSchema(),
    "payments": PaymentsSchema(),
    "purchases": PurchasesSchema(),
}
