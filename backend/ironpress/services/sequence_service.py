# Overview: Per-store, per-day bill number allocation.

from __future__ import annotations

from datetime import date

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Bill, BillSequence
from ..time_utils import local_today


BILL_NUMBER_PREFIX = "BILL"
BILL_NUMBER_PAD = 3


def bill_number_prefix(day: date) -> str:
    return f"{BILL_NUMBER_PREFIX}-{day:%Y%m%d}"


def format_bill_number(day: date, number: int) -> str:
    """BILL-YYYYMMDD-NNN; widens past three digits instead of wrapping."""
    return f"{bill_number_prefix(day)}-{number:0{BILL_NUMBER_PAD}d}"


def _highest_existing_suffix(store_id: str, day: date) -> int:
    """
    Highest numeric suffix already used by this store for `day`.

    Covers bills written before the counter row existed. Compared as
    integers, since "BILL-...-1000" sorts before "BILL-...-999" as text.
    """
    prefix = bill_number_prefix(day) + "-"
    rows = (
        db.session.query(Bill.bill_number)
        .filter(Bill.store_id == store_id, Bill.bill_number.like(prefix + "%"))
        .all()
    )
    highest = 0
    for (number,) in rows:
        suffix = number[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return highest


def _increment(store_id: str, day: date) -> int | None:
    stmt = (
        update(BillSequence)
        .where(BillSequence.store_id == store_id, BillSequence.sequence_date == day)
        .values(next_number=BillSequence.next_number + 1)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    if not result.rowcount:
        return None
    current = (
        db.session.query(BillSequence.next_number)
        .filter_by(store_id=store_id, sequence_date=day)
        .scalar()
    )
    return current - 1


def next_bill_sequence_number(store_id: str, day: date) -> int:
    """
    Atomically allocate the next suffix for (store_id, day).

    Runs inside the caller's transaction: the counter increment commits or
    rolls back together with the bill that uses it.
    """
    allocated = _increment(store_id, day)
    if allocated is not None:
        return allocated

    seed = _highest_existing_suffix(store_id, day) + 1
    try:
        with db.session.begin_nested():
            db.session.add(BillSequence(store_id=store_id, sequence_date=day, next_number=seed + 1))
        return seed
    except IntegrityError:
        # A concurrent transaction created the row first
        allocated = _increment(store_id, day)
        if allocated is None:
            raise
        return allocated


def generate_bill_number(store_id: str, day: date | None = None) -> str:
    """
    Next bill number for today (business timezone) in the store's namespace.

    Sequential calls yield BILL-YYYYMMDD-001, -002, ... The caller owns the
    transaction; numbers allocated in a rolled-back transaction are reused.
    """
    if not store_id:
        raise ValueError("store_id is required")
    day = day or local_today()
    return format_bill_number(day, next_bill_sequence_number(store_id, day))
