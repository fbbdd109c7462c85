from datetime import date

from closeout.models import ArchivedOrder, ArchivedOrderItem, DailySales, DiningTable, MenuItem, SalesCycle, Store
from closeout.services import checkout_service, daily_sales_service, order_service

from conftest import tokyo_clock


def _visit(store, table, menu, ordered_at, checked_out_at):
    order_service.place_order(
        store.id, table.id, [{"menu_item_id": menu["set"].id, "quantity": 1}],
        clock=tokyo_clock(*ordered_at),
    )
    checkout_service.checkout(store.id, table.id, clock=tokyo_clock(*checked_out_at))


def test_seed_demo(app, db_session):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["closeout", "seed-demo", "--tables", "3"])

    assert result.exit_code == 0, result.output
    assert "17:00-26:00 (next day)" in result.output
    store = db_session.query(Store).filter_by(code="DEMO").one()
    assert store.timezone == "Asia/Tokyo"
    assert db_session.query(DiningTable).filter_by(store_id=store.id).count() == 3
    assert db_session.query(MenuItem).filter_by(store_id=store.id).count() == 4

    # Idempotent
    result = runner.invoke(args=["closeout", "seed-demo", "--tables", "3"])
    assert result.exit_code == 0, result.output
    assert db_session.query(Store).count() == 1
    assert db_session.query(DiningTable).count() == 3


def test_purge_archive(app, db_session, store, table, menu):
    _visit(store, table, menu, (2025, 6, 12, 18, 0), (2025, 6, 12, 19, 0))
    _visit(store, table, menu, (2025, 6, 14, 18, 0), (2025, 6, 14, 19, 0))
    daily_sales_service.recompute(store.id, date(2025, 6, 12))

    runner = app.test_cli_runner()
    result = runner.invoke(args=["accounting", "purge-archive", "--before", "2025-06-13", "--yes"])

    assert result.exit_code == 0, result.output
    assert "Deleted 1 cycles, 1 orders, 1 items." in result.output
    remaining = db_session.query(SalesCycle).all()
    assert [c.accounting_date for c in remaining] == ["2025-06-14"]
    assert db_session.query(ArchivedOrder).count() == 1
    assert db_session.query(ArchivedOrderItem).count() == 1
    # Aggregates survive the purge
    assert db_session.query(DailySales).count() == 1


def test_accounting_commands(app, db_session, store, table, menu):
    _visit(store, table, menu, (2025, 6, 12, 18, 0), (2025, 6, 12, 19, 0))
    runner = app.test_cli_runner()

    result = runner.invoke(args=["accounting", "date", "--store-id", str(store.id), "--at", "2025-06-12T15:20:00Z"])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "2025-06-12"

    result = runner.invoke(args=["accounting", "recompute", "--store-id", str(store.id), "--date", "2025-06-12"])
    assert result.exit_code == 0, result.output
    assert "amount=1000 tax=100" in result.output

    result = runner.invoke(args=["accounting", "finalize", "--store-id", str(store.id), "--date", "2025-06-12"])
    assert result.exit_code == 0, result.output

    result = runner.invoke(args=["accounting", "recompute", "--store-id", str(store.id), "--date", "2025-06-12"])
    assert result.exit_code == 1
    assert "finalized" in result.output

    result = runner.invoke(args=["accounting", "finalize", "--store-id", str(store.id), "--date", "2020-01-01"])
    assert result.exit_code == 1

    result = runner.invoke(args=["accounting", "checkout", "--store-id", str(store.id), "--table-id", str(table.id)])
    assert result.exit_code == 0, result.output
    assert "Nothing to check out" in result.output
