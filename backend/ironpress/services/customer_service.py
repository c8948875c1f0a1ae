# Overview: Store customers: lookup-or-create during billing, plus CRUD.

from __future__ import annotations

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, DuplicateResourceError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Bill, Customer


def _clean(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def find_customer_by_phone(store_id: str, phone: str) -> Customer | None:
    return db.session.query(Customer).filter_by(store_id=store_id, phone=phone).first()


def find_or_create_customer(
    store_id: str,
    phone: str,
    *,
    name: str,
    email: str | None = None,
    address: str | None = None,
) -> Customer:
    """
    Return the store's customer with this phone, creating it if absent.

    Does not commit: used inside the bill transaction. An existing
    customer is reused as-is, never overwritten with the new details.
    """
    phone = _clean(phone)
    name = _clean(name)
    if not phone:
        raise ValidationError("customer_phone is required")

    customer = find_customer_by_phone(store_id, phone)
    if customer:
        return customer

    if not name:
        raise ValidationError("customer_name is required")
    customer = Customer(store_id=store_id, name=name, phone=phone, email=_clean(email), address=_clean(address))
    db.session.add(customer)
    db.session.flush()
    return customer


def create_customer(store_id: str, data: dict) -> Customer:
    name = _clean(data.get("name"))
    phone = _clean(data.get("phone"))
    if not name or not phone:
        raise ValidationError("name and phone are required")
    if find_customer_by_phone(store_id, phone):
        raise DuplicateResourceError("Customer with this phone already exists", {"phone": phone})

    customer = Customer(
        store_id=store_id,
        name=name,
        phone=phone,
        email=_clean(data.get("email")),
        address=_clean(data.get("address")),
    )
    db.session.add(customer)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateResourceError("Customer with this phone already exists", {"phone": phone})
    return customer


def list_customers(store_id: str, search: str | None = None) -> list[Customer]:
    query = db.session.query(Customer).filter(Customer.store_id == store_id)
    search = _clean(search)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Customer.name.ilike(pattern),
            Customer.phone.ilike(pattern),
            Customer.email.ilike(pattern),
        ))
    return query.order_by(Customer.name.asc()).all()


def get_customer(customer_id: str, store_id: str | None = None) -> Customer:
    customer = db.session.get(Customer, customer_id)
    if not customer or (store_id and customer.store_id != store_id):
        raise NotFoundError("Customer not found", {"customer_id": customer_id})
    return customer


def get_customer_with_bills(customer_id: str, store_id: str | None = None, limit: int = 10) -> dict:
    customer = get_customer(customer_id, store_id)
    bills = (
        db.session.query(Bill)
        .filter(Bill.customer_id == customer.id)
        .order_by(Bill.created_at.desc())
        .limit(limit)
        .all()
    )
    data = customer.to_dict()
    data["bills"] = [b.to_dict(include_items=False, include_customer=False) for b in bills]
    return data


def update_customer(customer_id: str, data: dict, store_id: str | None = None) -> Customer:
    customer = get_customer(customer_id, store_id)

    if "phone" in data:
        phone = _clean(data.get("phone"))
        if not phone:
            raise ValidationError("phone cannot be empty")
        if phone != customer.phone:
            existing = find_customer_by_phone(customer.store_id, phone)
            if existing and existing.id != customer.id:
                raise DuplicateResourceError("Customer with this phone already exists", {"phone": phone})
            customer.phone = phone
    if "name" in data:
        name = _clean(data.get("name"))
        if not name:
            raise ValidationError("name cannot be empty")
        customer.name = name
    if "email" in data:
        customer.email = _clean(data.get("email"))
    if "address" in data:
        customer.address = _clean(data.get("address"))

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateResourceError("Customer with this phone already exists", {"phone": data.get("phone")})
    return customer


def delete_customer(customer_id: str, store_id: str | None = None) -> None:
    customer = get_customer(customer_id, store_id)
    bill_count = db.session.query(Bill.id).filter(Bill.customer_id == customer.id).count()
    if bill_count:
        raise ConflictError("Cannot delete customer with existing bills", {"bill_count": bill_count})
    db.session.delete(customer)
    db.session.commit()
