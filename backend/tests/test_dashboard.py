# Overview: Pytest coverage for dashboard counts and revenue windows.

from datetime import timedelta

from ironpress.models import Bill
from ironpress.services import billing_service, reporting_service
from ironpress.time_utils import local_midnight_utc, utcnow


def _bill(db_session, store, category, bill_payload, quantity, status, days_ago=0, phone="9000000001"):
    bill = billing_service.create_bill(bill_payload((category, quantity), phone=phone, status=status), store.id)
    if days_ago:
        row = db_session.get(Bill, bill.id)
        row.created_at = utcnow() - timedelta(days=days_ago)
        db_session.commit()
    return bill


class TestDashboardStats:
    def test_empty_store(self, db_session, store_a):
        stats = reporting_service.get_dashboard_stats(store_a.id)

        assert stats["total_bills"] == 0
        assert stats["pending_bills"] == 0
        assert stats["completed_bills"] == 0
        assert stats["today_revenue"] == "0.00"
        assert stats["weekly_revenue"] == "0.00"
        assert stats["monthly_revenue"] == "0.00"
        assert stats["recent_bills"] == []

    def test_counts_by_status(self, db_session, store_a, shirt_a, bill_payload):
        _bill(db_session, store_a, shirt_a, bill_payload, 1, "PENDING")
        _bill(db_session, store_a, shirt_a, bill_payload, 1, "PENDING")
        _bill(db_session, store_a, shirt_a, bill_payload, 1, "READY")
        _bill(db_session, store_a, shirt_a, bill_payload, 1, "COMPLETED")

        stats = reporting_service.get_dashboard_stats(store_a.id)

        assert stats["total_bills"] == 4
        assert stats["pending_bills"] == 2
        assert stats["completed_bills"] == 1

    def test_revenue_counts_completed_bills_only(self, db_session, store_a, shirt_a, bill_payload):
        _bill(db_session, store_a, shirt_a, bill_payload, 2, "COMPLETED")   # 30.00
        _bill(db_session, store_a, shirt_a, bill_payload, 4, "PENDING")     # 60.00
        _bill(db_session, store_a, shirt_a, bill_payload, 1, "READY")       # 15.00
        _bill(db_session, store_a, shirt_a, bill_payload, 3, "CANCELLED")   # 45.00

        stats = reporting_service.get_dashboard_stats(store_a.id)

        assert stats["today_revenue"] == "30.00"
        assert stats["weekly_revenue"] == "30.00"
        assert stats["monthly_revenue"] == "30.00"

    def test_trailing_windows(self, db_session, store_a, shirt_a, bill_payload):
        _bill(db_session, store_a, shirt_a, bill_payload, 1, "COMPLETED")                # today, 15.00
        _bill(db_session, store_a, shirt_a, bill_payload, 2, "COMPLETED", days_ago=3)    # week, 30.00
        _bill(db_session, store_a, shirt_a, bill_payload, 4, "COMPLETED", days_ago=10)   # month, 60.00
        _bill(db_session, store_a, shirt_a, bill_payload, 8, "COMPLETED", days_ago=45)   # outside

        stats = reporting_service.get_dashboard_stats(store_a.id)

        assert stats["today_revenue"] == "15.00"
        assert stats["weekly_revenue"] == "45.00"
        assert stats["monthly_revenue"] == "105.00"
        assert stats["total_bills"] == 4

    def test_windows_start_at_local_midnight(self, db_session, store_a):
        stats = reporting_service.get_dashboard_stats(store_a.id)

        today_start = local_midnight_utc()
        assert stats["windows"]["today_start"].startswith(today_start.strftime("%Y-%m-%dT%H:%M"))
        # Asia/Kolkata midnight is 18:30 UTC on the previous day
        assert today_start.strftime("%H:%M") == "18:30"

    def test_scoped_to_store(self, db_session, store_a, store_b, shirt_a, shirt_b, bill_payload):
        _bill(db_session, store_a, shirt_a, bill_payload, 2, "COMPLETED")
        _bill(db_session, store_b, shirt_b, bill_payload, 1, "COMPLETED")

        stats_a = reporting_service.get_dashboard_stats(store_a.id)
        stats_b = reporting_service.get_dashboard_stats(store_b.id)

        assert (stats_a["total_bills"], stats_a["today_revenue"]) == (1, "30.00")
        assert (stats_b["total_bills"], stats_b["today_revenue"]) == (1, "18.00")

    def test_platform_wide_when_no_store(self, db_session, store_a, store_b, shirt_a, shirt_b, bill_payload):
        _bill(db_session, store_a, shirt_a, bill_payload, 2, "COMPLETED")
        _bill(db_session, store_b, shirt_b, bill_payload, 1, "COMPLETED")

        stats = reporting_service.get_dashboard_stats(None)

        assert stats["total_bills"] == 2
        assert stats["today_revenue"] == "48.00"

    def test_recent_bills_newest_five(self, db_session, store_a, shirt_a, bill_payload):
        for i in range(7):
            _bill(db_session, store_a, shirt_a, bill_payload, 1, "PENDING", phone=f"90000000{i:02d}")

        recent = reporting_service.get_dashboard_stats(store_a.id)["recent_bills"]

        assert len(recent) == 5
        assert recent[0]["bill_number"].endswith("-007")
        assert recent[0]["customer"]["phone"] == "9000000006"
