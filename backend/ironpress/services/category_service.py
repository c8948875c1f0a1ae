# Overview: Store service catalog (priced categories).

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, DuplicateResourceError, NotFoundError, ValidationError
from ..extensions import db
from ..models import BillItem, Category


DEFAULT_CATEGORIES = [
    ("Shirt", "15.00", "👔"),
    ("Pants", "20.00", "👖"),
    ("Lowers", "12.00", "🩳"),
    ("Saree", "50.00", "🥻"),
    ("Suit", "80.00", "🤵"),
    ("Kurta", "25.00", "👘"),
    ("Dress", "35.00", "👗"),
    ("Blazer", "45.00", "🧥"),
    ("T-Shirt", "10.00", "👕"),
    ("Bedsheet", "30.00", "🛏️"),
]


def parse_price(raw) -> Decimal:
    if isinstance(raw, bool) or raw is None:
        raise ValidationError("price is required")
    try:
        price = Decimal(str(raw).strip()).quantize(Decimal("0.01"))
    except (InvalidOperation, ValueError):
        raise ValidationError("price must be a number", {"price": raw})
    if price < 0:
        raise ValidationError("price cannot be negative", {"price": raw})
    return price


def find_category(category_id: str) -> Category | None:
    """Unscoped lookup; callers decide how to treat another store's category."""
    if not category_id:
        return None
    return db.session.get(Category, category_id)


def _name_taken(store_id: str, name: str, exclude_id: str | None = None) -> bool:
    query = db.session.query(Category.id).filter(
        Category.store_id == store_id,
        func.lower(Category.name) == name.lower(),
    )
    if exclude_id:
        query = query.filter(Category.id != exclude_id)
    return query.first() is not None


def create_category(store_id: str, data: dict) -> Category:
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("name is required")
    price = parse_price(data.get("price"))
    if _name_taken(store_id, name):
        raise DuplicateResourceError("Category with this name already exists", {"name": name})

    category = Category(
        store_id=store_id,
        name=name,
        price=price,
        icon=(data.get("icon") or None),
        is_active=bool(data.get("is_active", True)),
    )
    db.session.add(category)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateResourceError("Category with this name already exists", {"name": name})
    return category


def list_categories(store_id: str, active_only: bool = False) -> list[Category]:
    query = db.session.query(Category).filter(Category.store_id == store_id)
    if active_only:
        query = query.filter(Category.is_active.is_(True))
    return query.order_by(Category.name.asc()).all()


def get_category(category_id: str, store_id: str | None = None) -> Category:
    category = find_category(category_id)
    if not category or (store_id and category.store_id != store_id):
        raise NotFoundError("Category not found", {"category_id": category_id})
    return category


def update_category(category_id: str, data: dict, store_id: str | None = None) -> Category:
    category = get_category(category_id, store_id)

    if "name" in data:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("name cannot be empty")
        if _name_taken(category.store_id, name, exclude_id=category.id):
            raise DuplicateResourceError("Category with this name already exists", {"name": name})
        category.name = name
    if "price" in data:
        # Existing bill items keep their snapshot price
        category.price = parse_price(data.get("price"))
    if "icon" in data:
        category.icon = data.get("icon") or None
    if "is_active" in data:
        category.is_active = bool(data.get("is_active"))

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateResourceError("Category with this name already exists", {"name": data.get("name")})
    return category


def delete_category(category_id: str, store_id: str | None = None) -> None:
    category = get_category(category_id, store_id)
    in_use = db.session.query(BillItem.id).filter(BillItem.category_id == category.id).first()
    if in_use:
        raise ConflictError("Cannot delete category that is used in bills. Deactivate it instead.")
    db.session.delete(category)
    db.session.commit()


def seed_default_categories(store_id: str, commit: bool = True) -> int:
    """Add the standard laundry catalog to a store that has no categories."""
    if db.session.query(Category.id).filter_by(store_id=store_id).first():
        return 0
    for name, price, icon in DEFAULT_CATEGORIES:
        db.session.add(Category(store_id=store_id, name=name, price=Decimal(price), icon=icon, is_active=True))
    if commit:
        db.session.commit()
    return len(DEFAULT_CATEGORIES)
