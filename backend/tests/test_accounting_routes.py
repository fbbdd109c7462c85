"""
HTTP surface tests: status codes and payload shapes of the JSON routes.
"""

from closeout.models import Order
from closeout.services import order_service

from conftest import tokyo_clock


def _place(store_id, table_id, menu_item_id, quantity=1):
    order_service.place_order(store_id, table_id, [{"menu_item_id": menu_item_id, "quantity": quantity}])


def test_health(client, db_session):
    response = client.get('/health')
    assert response.status_code == 200
    assert response.json["checks"]["database"]["status"] == "healthy"


def test_accounting_date_route(client, db_session, store):
    response = client.get(f'/api/accounting/date?store_id={store.id}&at=2025-06-12T15:20:00Z')
    assert response.status_code == 200
    assert response.json["accounting_date"] == "2025-06-12"
    assert response.json["period_start"] == "2025-06-12T08:00:00Z"
    assert response.json["business_hours"] == "17:00-26:00 (next day)"


def test_accounting_date_route_errors(client, db_session, store):
    assert client.get('/api/accounting/date').status_code == 400
    assert client.get('/api/accounting/date?store_id=999999').status_code == 404
    assert client.get(f'/api/accounting/date?store_id={store.id}&at=yesterday').status_code == 400


def test_business_hours_routes(client, db_session, store):
    response = client.get(f'/api/stores/{store.id}/business-hours')
    assert response.status_code == 200
    assert response.json["business_hours"]["close_time"] == "26:00"
    assert response.json["business_hours"]["is_next_day"] is True

    response = client.put(
        f'/api/stores/{store.id}/business-hours',
        json={"open_time": "18:00", "close_time": "01:00"},
    )
    assert response.status_code == 200
    assert response.json["business_hours"]["close_time"] == "25:00"
    assert response.json["business_hours"]["display"] == "18:00-25:00 (next day)"

    response = client.put(
        f'/api/stores/{store.id}/business-hours',
        json={"open_time": "18:00", "close_time": "31:00"},
    )
    assert response.status_code == 400

    response = client.put('/api/stores/999999/business-hours', json={"open_time": "18:00", "close_time": "25:00"})
    assert response.status_code == 404


def test_business_hours_response_can_be_put_back(client, db_session, store):
    for open_time, close_time in [("17:00", "17:00"), ("17:00", "10:00"), ("17:00", "26:00")]:
        response = client.put(
            f'/api/stores/{store.id}/business-hours',
            json={"open_time": open_time, "close_time": close_time},
        )
        assert response.status_code == 200
        shown = response.json["business_hours"]

        again = client.put(
            f'/api/stores/{store.id}/business-hours',
            json={"open_time": shown["open_time"], "close_time": shown["close_time"]},
        )
        assert again.status_code == 200, again.json
        assert again.json["business_hours"] == shown

    response = client.put(
        f'/api/stores/{store.id}/business-hours',
        json={"open_time": "17:00", "close_time": "17:00"},
    )
    assert response.json["business_hours"]["close_time"] == "17:00"
    assert response.json["business_hours"]["is_all_day"] is True
    assert response.json["business_hours"]["display"] == "17:00-17:00 (24h)"


def test_accounting_settings_routes(client, db_session, store):
    response = client.get(f'/api/stores/{store.id}/accounting-settings')
    assert response.status_code == 200
    assert response.json["tax_rate_bps"] == 1000
    assert response.json["count_delivered_unbilled"] is True

    response = client.put(
        f'/api/stores/{store.id}/accounting-settings',
        json={"tax_rate_bps": 800, "count_delivered_unbilled": False},
    )
    assert response.status_code == 200
    assert response.json["tax_rate_bps"] == 800

    response = client.put(f'/api/stores/{store.id}/accounting-settings', json={"tax_rate_bps": "lots"})
    assert response.status_code == 400


def test_checkout_routes(client, db_session, store, table, menu):
    store_id, table_id = store.id, table.id
    _place(store_id, table_id, menu["set"].id, quantity=2)
    _place(store_id, table_id, menu["ramen"].id)

    response = client.post(f'/api/tables/{table_id}/request-checkout?store_id={store_id}')
    assert response.status_code == 200
    assert response.json["table"]["checkout_requested"] is True

    response = client.get(f'/api/tables/checkout-requests?store_id={store_id}')
    assert [t["number"] for t in response.json["tables"]] == [5]

    response = client.post(f'/api/tables/{table_id}/checkout?store_id={store_id}')
    assert response.status_code == 200
    assert response.json["archived_orders"] == 2
    assert response.json["total_amount"] == 3500
    assert response.json["total_items"] == 3
    assert response.json["sales_cycle"]["status"] == "completed"
    assert db_session.query(Order).count() == 0

    response = client.post(f'/api/tables/{table_id}/checkout?store_id={store_id}')
    assert response.status_code == 200
    assert response.json["archived_orders"] == 0
    assert response.json["sales_cycle"] is None


def test_checkout_route_errors(client, db_session, store, table):
    assert client.post(f'/api/tables/{table.id}/checkout').status_code == 400
    assert client.post(f'/api/tables/{table.id + 1000}/checkout?store_id={store.id}').status_code == 404


def test_daily_sales_routes(client, db_session, store, table, menu):
    store_id, table_id = store.id, table.id
    _place(store_id, table_id, menu["set"].id, quantity=3)
    client.post(f'/api/tables/{table_id}/checkout?store_id={store_id}')

    today = client.get(f'/api/accounting/date?store_id={store_id}').json["accounting_date"]

    response = client.post('/api/accounting/daily-sales/calculate', json={"store_id": store_id, "date": today})
    assert response.status_code == 200
    assert response.json["daily_sales"]["total_amount"] == 3000
    assert response.json["daily_sales"]["tax_amount"] == 300

    response = client.get(f'/api/accounting/daily-sales?store_id={store_id}&date={today}')
    assert response.status_code == 200
    assert [row["accounting_date"] for row in response.json["daily_sales"]] == [today]

    response = client.get(f'/api/accounting/sales-cycles?store_id={store_id}&date={today}')
    assert response.status_code == 200
    assert len(response.json["sales_cycles"]) == 1

    response = client.post('/api/accounting/daily-sales/finalize', json={"store_id": store_id, "date": today})
    assert response.status_code == 200
    assert response.json["daily_sales"]["is_finalized"] is True

    response = client.post('/api/accounting/daily-sales/calculate', json={"store_id": store_id, "date": today})
    assert response.status_code == 409


def test_daily_sales_route_errors(client, db_session, store):
    response = client.post('/api/accounting/daily-sales/finalize', json={"store_id": store.id, "date": "2020-01-01"})
    assert response.status_code == 404

    response = client.post('/api/accounting/daily-sales/calculate', json={"store_id": store.id, "date": "06/12/2025"})
    assert response.status_code == 400

    response = client.get(f'/api/accounting/daily-sales?store_id={store.id}&startDate=2025-06-01')
    assert response.status_code == 400

    response = client.get(f'/api/accounting/sales-summary?store_id={store.id}')
    assert response.status_code == 400

    response = client.get(
        f'/api/accounting/sales-summary?store_id={store.id}&startDate=2025-06-01&endDate=2025-07-01&groupBy=year'
    )
    assert response.status_code == 400

    response = client.get(
        f'/api/accounting/sales-summary?store_id={store.id}&startDate=2025-06-01&endDate=2025-07-01&groupBy=month'
    )
    assert response.status_code == 200
    assert response.json["rows"] == []


def test_orders_for_date_route(client, db_session, store, table, menu):
    store_id, table_id = store.id, table.id
    early = order_service.place_order(
        store_id, table_id, [{"menu_item_id": menu["set"].id, "quantity": 2}],
        clock=tokyo_clock(2025, 6, 12, 21, 5),
    ).id
    after_midnight = order_service.place_order(
        store_id, table_id,
        [{"menu_item_id": menu["ramen"].id, "quantity": 1, "topping_ids": [menu["egg"].id]}],
        clock=tokyo_clock(2025, 6, 13, 0, 30),
    ).id
    order_service.place_order(
        store_id, table_id, [{"menu_item_id": menu["set"].id, "quantity": 1}],
        clock=tokyo_clock(2025, 6, 13, 18, 0),
    )

    response = client.get(f'/api/accounting/orders?store_id={store_id}&date=2025-06-12')
    assert response.status_code == 200
    assert response.json["accounting_date"] == "2025-06-12"
    orders = response.json["orders"]
    assert [o["id"] for o in orders] == [after_midnight, early]
    assert all(o["table_number"] == 5 for o in orders)
    assert orders[0]["total_amount"] == 1700
    assert [(i["name"], i["quantity"], i["total_price"]) for i in orders[0]["items"]] == [("Ramen", 1, 1700)]
    assert orders[0]["items"][0]["toppings"] == [{"name": "Egg", "price": 200}]

    response = client.get(f'/api/accounting/orders?store_id={store_id}&date=2025-06-13')
    assert len(response.json["orders"]) == 1

    assert client.get('/api/accounting/orders?store_id=999999&date=2025-06-12').status_code == 404
    assert client.get(f'/api/accounting/orders?store_id={store_id}&date=June').status_code == 400
