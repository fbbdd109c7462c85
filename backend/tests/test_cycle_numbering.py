from datetime import datetime

import pytest
from sqlalchemy.exc import IntegrityError

from closeout.models import DiningTable, MenuItem, SalesCycle
from closeout.services import business_hours_service, checkout_service, order_service

from conftest import tokyo_clock


def _visit(store_id, table_id, menu_item_id, ordered_at, checked_out_at):
    order_service.place_order(
        store_id, table_id, [{"menu_item_id": menu_item_id, "quantity": 1}],
        clock=tokyo_clock(*ordered_at),
    )
    return checkout_service.checkout(store_id, table_id, clock=tokyo_clock(*checked_out_at)).sales_cycle


def test_cycle_numbers_reset_per_business_day(db_session, store, table, menu):
    item_id = menu["set"].id

    first = _visit(store.id, table.id, item_id, (2025, 6, 12, 22, 0), (2025, 6, 12, 23, 0))
    second = _visit(store.id, table.id, item_id, (2025, 6, 12, 23, 30), (2025, 6, 13, 1, 30))
    next_day = _visit(store.id, table.id, item_id, (2025, 6, 13, 17, 30), (2025, 6, 13, 18, 0))

    assert (first.cycle_number, first.accounting_date) == (1, "2025-06-12")
    assert (second.cycle_number, second.accounting_date) == (2, "2025-06-12")
    assert (next_day.cycle_number, next_day.accounting_date) == (1, "2025-06-13")


def test_cycle_numbers_are_per_table(db_session, store, table, menu):
    other_table = DiningTable(store_id=store.id, number=6)
    db_session.add(other_table)
    db_session.commit()
    item_id = menu["set"].id

    a = _visit(store.id, table.id, item_id, (2025, 6, 12, 18, 0), (2025, 6, 12, 19, 0))
    b = _visit(store.id, other_table.id, item_id, (2025, 6, 12, 18, 0), (2025, 6, 12, 19, 30))

    assert a.cycle_number == 1
    assert b.cycle_number == 1


def test_store_without_business_hours_numbers_globally(db_session, other_store):
    table = DiningTable(store_id=other_store.id, number=1)
    item = MenuItem(store_id=other_store.id, name="Coffee", price=500)
    db_session.add_all([table, item])
    db_session.commit()

    # Business day falls back to the 05:00 rollover
    first = _visit(other_store.id, table.id, item.id, (2025, 6, 13, 3, 0), (2025, 6, 13, 4, 0))
    second = _visit(other_store.id, table.id, item.id, (2025, 6, 13, 9, 0), (2025, 6, 13, 10, 0))
    third = _visit(other_store.id, table.id, item.id, (2025, 6, 14, 9, 0), (2025, 6, 14, 10, 0))

    assert first.accounting_date == "2025-06-12"
    assert second.accounting_date == "2025-06-13"
    assert third.accounting_date == "2025-06-14"
    assert [first.cycle_number, second.cycle_number, third.cycle_number] == [1, 2, 3]
    assert db_session.query(SalesCycle).filter_by(store_id=other_store.id).count() == 3


def test_cycle_number_is_unique_per_table_and_day(db_session, store, table):
    def _cycle():
        return SalesCycle(
            store_id=store.id,
            table_id=table.id,
            cycle_number=1,
            accounting_date="2025-06-12",
            status="completed",
            started_at=datetime(2025, 6, 12, 9, 0),
            completed_at=datetime(2025, 6, 12, 10, 0),
        )

    db_session.add(_cycle())
    db_session.commit()

    db_session.add(_cycle())
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()

    assert db_session.query(SalesCycle).count() == 1


def test_moving_business_hours_mid_day_keeps_numbers_unique(db_session, store, table, menu):
    item_id = menu["set"].id
    first = _visit(store.id, table.id, item_id, (2025, 6, 12, 17, 10), (2025, 6, 12, 17, 30))

    # Opening later moves the period start past the first checkout
    business_hours_service.set_business_hours(store.id, "18:00", "26:00")
    second = _visit(store.id, table.id, item_id, (2025, 6, 12, 18, 10), (2025, 6, 12, 19, 0))

    assert first.accounting_date == second.accounting_date == "2025-06-12"
    assert [first.cycle_number, second.cycle_number] == [1, 2]
