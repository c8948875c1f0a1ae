# Overview: Bill aggregate: creation with priced items, updates with notification triggers, reads.

"""
Bill Aggregate Builder

create_bill() runs as ONE transaction: customer lookup-or-create, item
pricing against the store catalog, bill number allocation, bill + items
insert and any triggered notification jobs. Any failure rolls all of it
back, including a customer created for this bill.

Notifications are never sent from inside the transaction. Jobs are
written to the outbox with the bill and dispatched after commit.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload

from ..errors import (
    CategoryCrossTenantError,
    CategoryNotFoundError,
    DuplicateResourceError,
    IronPressError,
    NoValidItemsError,
    NotFoundError,
    ValidationError,
)
from ..extensions import db
from ..models import Bill, BillItem, Customer
from ..models.billing import BILL_STATUSES, PAYMENT_METHODS, PAYMENT_STATUSES
from ..models.notifications import KIND_COLLECTION_REMINDER, KIND_PAYMENT_CONFIRMATION
from ..time_utils import business_tz, parse_iso_datetime, utcnow
from . import category_service, customer_service, notification_service
from .concurrency import begin_write_transaction, lock_for_update, run_with_retry
from .sequence_service import generate_bill_number


CENT = Decimal("0.01")
CREATE_ATTEMPTS = 5
COLLECTION_STATUSES = {"READY", "COMPLETED"}
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def _enum(value, allowed: tuple, field: str, default: str | None = None) -> str | None:
    if value is None or value == "":
        return default
    normalized = str(value).strip().upper()
    if normalized not in allowed:
        raise ValidationError(f"Invalid {field}", {field: value, "allowed": list(allowed)})
    return normalized


def _quantity(raw) -> int:
    if isinstance(raw, bool):
        raise ValidationError("quantity must be an integer", {"quantity": raw})
    try:
        qty = int(raw)
    except (TypeError, ValueError):
        raise ValidationError("quantity must be an integer", {"quantity": raw})
    if isinstance(raw, float) and raw != qty:
        raise ValidationError("quantity must be an integer", {"quantity": raw})
    return qty


def price_items(store_id: str, items: list) -> tuple[list[dict], Decimal]:
    """
    Price requested items against the store catalog.

    Items with quantity <= 0 are skipped. Returns (priced lines, total).
    Raises CategoryNotFoundError for a missing or inactive category and
    CategoryCrossTenantError for one owned by another store.
    """
    if not isinstance(items, list):
        raise ValidationError("items must be a list")

    lines = []
    total = Decimal("0.00")
    for raw in items:
        if not isinstance(raw, dict):
            raise ValidationError("Each item must be an object")
        quantity = _quantity(raw.get("quantity"))
        if quantity <= 0:
            continue

        category_id = raw.get("category_id")
        category = category_service.find_category(category_id)
        if not category or not category.is_active:
            raise CategoryNotFoundError(category_id)
        if category.store_id != store_id:
            raise CategoryCrossTenantError(category_id)

        price = Decimal(category.price).quantize(CENT)
        subtotal = (price * quantity).quantize(CENT)
        total += subtotal
        lines.append({
            "category_id": category.id,
            "quantity": quantity,
            "price": price,
            "subtotal": subtotal,
        })
    return lines, total


def create_bill(data: dict, store_id: str) -> Bill:
    """
    Create a bill with its items for `store_id`.

    Input keys: customer_name, customer_phone, customer_email,
    customer_address, items [{category_id, quantity}], notes, status,
    payment_status, payment_method.
    """
    if not store_id:
        raise ValidationError("store_id is required")
    data = data or {}
    status = _enum(data.get("status"), BILL_STATUSES, "status", default="PENDING")
    payment_status = _enum(data.get("payment_status"), PAYMENT_STATUSES, "payment_status", default="PENDING")
    payment_method = _enum(data.get("payment_method"), PAYMENT_METHODS, "payment_method")
    if not (data.get("customer_phone") or "").strip():
        raise ValidationError("customer_phone is required")
    if not (data.get("customer_name") or "").strip():
        raise ValidationError("customer_name is required")

    def _op() -> tuple[Bill, list[str]]:
        begin_write_transaction()

        customer = customer_service.find_or_create_customer(
            store_id,
            data.get("customer_phone"),
            name=data.get("customer_name"),
            email=data.get("customer_email"),
            address=data.get("customer_address"),
        )

        lines, total = price_items(store_id, data.get("items") or [])
        if not lines:
            raise NoValidItemsError()

        bill = Bill(
            store_id=store_id,
            bill_number=generate_bill_number(store_id),
            customer_id=customer.id,
            total_amount=total,
            status=status,
            payment_status=payment_status,
            payment_method=payment_method,
            notes=(data.get("notes") or None),
            completed_at=utcnow() if status == "COMPLETED" else None,
        )
        db.session.add(bill)
        db.session.flush()
        for line in lines:
            db.session.add(BillItem(bill_id=bill.id, **line))
        db.session.flush()

        job_ids = []
        if payment_status == "PAID":
            job_ids = notification_service.enqueue_bill_notifications(bill, KIND_PAYMENT_CONFIRMATION)

        db.session.commit()
        return bill, job_ids

    try:
        bill, job_ids = run_with_retry(_op, attempts=CREATE_ATTEMPTS, retry_on=(IntegrityError,))
    except IronPressError:
        db.session.rollback()
        raise
    except IntegrityError:
        current_app.logger.exception("Bill creation kept conflicting for store %s", store_id)
        raise DuplicateResourceError("Could not allocate a unique bill number, please retry")

    current_app.logger.info("Created bill %s for store %s (total %s)", bill.bill_number, store_id, bill.total_amount)
    notification_service.dispatch_jobs(job_ids)
    return get_bill(bill.id)


def _load_bill(bill_id: str, store_id: str | None = None, include_notifications: bool = False) -> Bill:
    options = [
        joinedload(Bill.customer),
        joinedload(Bill.items).joinedload(BillItem.category),
    ]
    if include_notifications:
        options.append(joinedload(Bill.notifications))
    bill = db.session.query(Bill).options(*options).filter(Bill.id == bill_id).first()
    if not bill or (store_id and bill.store_id != store_id):
        raise NotFoundError("Bill not found", {"bill_id": bill_id})
    return bill


def get_bill(bill_id: str, store_id: str | None = None) -> Bill:
    """Bill with customer, items + categories and notifications."""
    return _load_bill(bill_id, store_id, include_notifications=True)


def update_bill(bill_id: str, data: dict, store_id: str | None = None) -> Bill:
    """
    Partial update of status, payment_status, payment_method and notes.

    Triggers (only on an actual change):
    - status -> READY/COMPLETED: collection reminder
    - payment_status non-PAID -> PAID: payment confirmation

    The previous values are read under the write lock, so two concurrent
    updates to the same target value trigger one notification between them.
    """
    data = data or {}
    new_status = _enum(data.get("status"), BILL_STATUSES, "status")
    new_payment_status = _enum(data.get("payment_status"), PAYMENT_STATUSES, "payment_status")
    new_payment_method = _enum(data.get("payment_method"), PAYMENT_METHODS, "payment_method")

    def _op() -> list[str]:
        begin_write_transaction()
        bill = lock_for_update(
            db.session.query(Bill).filter(Bill.id == bill_id)
        ).populate_existing().first()
        if not bill or (store_id and bill.store_id != store_id):
            raise NotFoundError("Bill not found", {"bill_id": bill_id})

        old_status = bill.status
        old_payment_status = bill.payment_status
        kinds = []

        if new_status:
            bill.status = new_status
            if new_status == "COMPLETED":
                if old_status != "COMPLETED" or bill.completed_at is None:
                    bill.completed_at = utcnow()
            else:
                bill.completed_at = None
            if new_status in COLLECTION_STATUSES and new_status != old_status:
                kinds.append(KIND_COLLECTION_REMINDER)

        if new_payment_status:
            bill.payment_status = new_payment_status
            if new_payment_status == "PAID" and old_payment_status != "PAID":
                kinds.append(KIND_PAYMENT_CONFIRMATION)

        if new_payment_method:
            bill.payment_method = new_payment_method

        if "notes" in data:
            bill.notes = data.get("notes") or None

        job_ids = []
        for kind in kinds:
            job_ids.extend(notification_service.enqueue_bill_notifications(bill, kind))
        db.session.commit()
        return job_ids

    try:
        job_ids = run_with_retry(_op)
    except Exception:
        db.session.rollback()
        raise

    notification_service.dispatch_jobs(job_ids)
    return get_bill(bill_id)


def delete_bill(bill_id: str, store_id: str | None = None) -> None:
    bill = db.session.get(Bill, bill_id)
    if not bill or (store_id and bill.store_id != store_id):
        raise NotFoundError("Bill not found", {"bill_id": bill_id})
    db.session.delete(bill)
    db.session.commit()
    current_app.logger.info("Deleted bill %s", bill_id)


def _date_bound(value, *, end: bool = False) -> datetime | None:
    """
    Filter bound as a UTC-naive datetime.

    A bare date (YYYY-MM-DD) is a calendar day in the business timezone;
    as an end bound it includes the whole day.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return parse_iso_datetime(value.isoformat())
    if isinstance(value, date):
        day = value
    else:
        text_value = str(value).strip()
        if len(text_value) != 10:
            try:
                return parse_iso_datetime(text_value)
            except ValueError:
                raise ValidationError("Invalid date", {"value": value})
        try:
            day = date.fromisoformat(text_value)
        except ValueError:
            raise ValidationError("Invalid date", {"value": value})
    if end:
        day = day + timedelta(days=1)
    local = datetime(day.year, day.month, day.day, tzinfo=business_tz())
    return local.astimezone(timezone.utc).replace(tzinfo=None)


def list_bills(
    store_id: str | None = None,
    status: str | None = None,
    search: str | None = None,
    start_date=None,
    end_date=None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> dict:
    """Newest first, with pagination metadata."""
    try:
        page = max(int(page or 1), 1)
        limit = min(max(int(limit or DEFAULT_PAGE_SIZE), 1), MAX_PAGE_SIZE)
    except (TypeError, ValueError):
        raise ValidationError("page and limit must be integers")

    query = db.session.query(Bill).join(Customer, Bill.customer_id == Customer.id)
    if store_id:
        query = query.filter(Bill.store_id == store_id)
    if status and str(status).lower() != "all":
        query = query.filter(Bill.status == _enum(status, BILL_STATUSES, "status"))
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Bill.bill_number.ilike(pattern),
            Customer.name.ilike(pattern),
            Customer.phone.ilike(pattern),
        ))

    start = _date_bound(start_date)
    end = _date_bound(end_date, end=True)
    if start:
        query = query.filter(Bill.created_at >= start)
    if end:
        query = query.filter(Bill.created_at < end)

    total = query.count()
    bills = (
        query.options(
            joinedload(Bill.customer),
            joinedload(Bill.items).joinedload(BillItem.category),
        )
        .order_by(Bill.created_at.desc(), Bill.bill_number.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "bills": [b.to_dict() for b in bills],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": (total + limit - 1) // limit,
        },
    }
