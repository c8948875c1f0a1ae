# Overview: Pytest coverage for per-store, per-day bill number allocation.

from datetime import date

import pytest

from ironpress.models import Bill, BillSequence, Customer
from ironpress.services.sequence_service import (
    bill_number_prefix,
    format_bill_number,
    generate_bill_number,
)


DAY = date(2024, 3, 5)


def _existing_bill(db_session, store, number):
    customer = db_session.query(Customer).filter_by(store_id=store.id, phone="9000000000").first()
    if not customer:
        customer = Customer(store_id=store.id, name="Walk-in", phone="9000000000")
        db_session.add(customer)
        db_session.flush()
    db_session.add(Bill(store_id=store.id, bill_number=number, customer_id=customer.id, total_amount=0))
    db_session.commit()


class TestFormatting:
    def test_prefix_uses_calendar_date(self):
        assert bill_number_prefix(DAY) == "BILL-20240305"

    def test_suffix_is_zero_padded(self):
        assert format_bill_number(DAY, 7) == "BILL-20240305-007"

    def test_suffix_widens_instead_of_wrapping(self):
        assert format_bill_number(DAY, 1000) == "BILL-20240305-1000"


class TestGenerateBillNumber:
    def test_sequential_numbers_for_one_store_and_day(self, db_session, store_a):
        numbers = [generate_bill_number(store_a.id, DAY) for _ in range(3)]
        db_session.commit()

        assert numbers == ["BILL-20240305-001", "BILL-20240305-002", "BILL-20240305-003"]

    def test_each_store_has_its_own_namespace(self, db_session, store_a, store_b):
        assert generate_bill_number(store_a.id, DAY) == "BILL-20240305-001"
        assert generate_bill_number(store_a.id, DAY) == "BILL-20240305-002"
        assert generate_bill_number(store_b.id, DAY) == "BILL-20240305-001"
        db_session.commit()

    def test_counter_restarts_on_a_new_day(self, db_session, store_a):
        generate_bill_number(store_a.id, DAY)
        generate_bill_number(store_a.id, DAY)

        assert generate_bill_number(store_a.id, date(2024, 3, 6)) == "BILL-20240306-001"
        db_session.commit()

    def test_counter_is_persisted_per_store_and_day(self, db_session, store_a):
        generate_bill_number(store_a.id, DAY)
        generate_bill_number(store_a.id, DAY)
        db_session.commit()

        seq = db_session.query(BillSequence).filter_by(store_id=store_a.id, sequence_date=DAY).one()
        assert seq.next_number == 3

    def test_continues_after_bills_written_without_a_counter(self, db_session, store_a):
        _existing_bill(db_session, store_a, "BILL-20240305-041")

        assert generate_bill_number(store_a.id, DAY) == "BILL-20240305-042"
        db_session.commit()

    def test_existing_suffixes_compare_numerically(self, db_session, store_a):
        _existing_bill(db_session, store_a, "BILL-20240305-999")
        _existing_bill(db_session, store_a, "BILL-20240305-1000")

        assert generate_bill_number(store_a.id, DAY) == "BILL-20240305-1001"
        db_session.commit()

    def test_other_stores_bills_do_not_affect_numbering(self, db_session, store_a, store_b):
        _existing_bill(db_session, store_b, "BILL-20240305-010")

        assert generate_bill_number(store_a.id, DAY) == "BILL-20240305-001"
        db_session.commit()

    def test_rolled_back_allocation_is_reused(self, db_session, store_a):
        assert generate_bill_number(store_a.id, DAY) == "BILL-20240305-001"
        db_session.rollback()

        assert generate_bill_number(store_a.id, DAY) == "BILL-20240305-001"
        db_session.commit()

    def test_store_id_is_required(self, db_session):
        with pytest.raises(ValueError):
            generate_bill_number(None, DAY)
