# Overview: Dashboard rollups over bills, per store or platform-wide.

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import Bill, BillItem
from ..models.catalog import money_str
from ..time_utils import local_midnight_utc, to_utc_z


RECENT_BILLS_LIMIT = 5
WEEK_DAYS = 7
MONTH_DAYS = 30


def _scoped(query, store_id: str | None):
    if store_id:
        query = query.filter(Bill.store_id == store_id)
    return query


def _completed_revenue_since(store_id: str | None, since: datetime) -> Decimal:
    query = db.session.query(func.coalesce(func.sum(Bill.total_amount), 0)).filter(
        Bill.status == "COMPLETED",
        Bill.created_at >= since,
    )
    total = _scoped(query, store_id).scalar()
    return Decimal(str(total or 0)).quantize(Decimal("0.01"))


def _count(store_id: str | None, status: str | None = None) -> int:
    query = db.session.query(func.count(Bill.id))
    if status:
        query = query.filter(Bill.status == status)
    return int(_scoped(query, store_id).scalar() or 0)


def get_dashboard_stats(store_id: str | None = None) -> dict:
    """
    Counts and COMPLETED-bill revenue for today, the trailing 7 and the
    trailing 30 days. Windows start at local midnight in the business
    timezone. store_id=None aggregates every store.
    """
    today_start = local_midnight_utc()
    week_start = local_midnight_utc(days_ago=WEEK_DAYS)
    month_start = local_midnight_utc(days_ago=MONTH_DAYS)

    recent = (
        _scoped(db.session.query(Bill), store_id)
        .options(
            joinedload(Bill.customer),
            joinedload(Bill.items).joinedload(BillItem.category),
        )
        .order_by(Bill.created_at.desc(), Bill.bill_number.desc())
        .limit(RECENT_BILLS_LIMIT)
        .all()
    )

    return {
        "store_id": store_id,
        "total_bills": _count(store_id),
        "pending_bills": _count(store_id, "PENDING"),
        "completed_bills": _count(store_id, "COMPLETED"),
        "today_revenue": money_str(_completed_revenue_since(store_id, today_start)),
        "weekly_revenue": money_str(_completed_revenue_since(store_id, week_start)),
        "monthly_revenue": money_str(_completed_revenue_since(store_id, month_start)),
        "recent_bills": [b.to_dict() for b in recent],
        "windows": {
            "today_start": to_utc_z(today_start),
            "week_start": to_utc_z(week_start),
            "month_start": to_utc_z(month_start),
        },
    }
