from decimal import Decimal

import pytest
from sqlalchemy import select

from poscrm.application.errors import AuthorizationError, StockError, ValidationError
from poscrm.application.ledger import DebtLedger
from poscrm.application.order_service import OrderService
from poscrm.application.schemas import OrderCreate
from poscrm.domain.models import DebtAdjustment, Order


def _order(items, **extra):
    return OrderCreate.model_validate({"items": items, **extra})


def test_pending_order_for_client_adds_debt(db, admin, client_user, phone):
    order = OrderService(db).create(admin, _order([{"productId": 1, "quantity": 2}], clientId=7))

    assert order.client_id == 7
    assert order.status == "pending"
    assert order.total_amount == Decimal("1000")
    db.refresh(phone)
    assert phone.stock_quantity == 8

    entries = DebtLedger(db).entries(7)
    assert [(e.currency, Decimal(e.adjustment_amount), e.adjustment_type) for e in entries] == [
        ("EUR", Decimal("-1000"), "order_created"),
    ]
    assert entries[0].notes == f"Debt increase from pending order #{order.id}"
    assert DebtLedger(db).balances(7).eur_debt == Decimal("1000")


def test_mixed_order_writes_one_entry_per_currency(db, admin, client_user, phone, charger):
    OrderService(db).create(admin, _order(
        [{"productId": 1, "quantity": 1}, {"productId": 2, "quantity": 3}], clientId=7,
    ))
    balance = DebtLedger(db).balances(7)
    assert balance.eur_debt == Decimal("500")
    assert balance.mkd_debt == Decimal("150")
    assert len(DebtLedger(db).entries(7)) == 2


def test_completed_order_adds_no_debt(db, admin, client_user, phone):
    OrderService(db).create(admin, _order([{"productId": 1, "quantity": 1}], clientId=7, status="completed"))
    assert DebtLedger(db).entries(7) == []


def test_guest_order_has_no_client_and_no_ledger(db, admin, charger):
    order = OrderService(db).create(admin, _order([{"productId": 2, "quantity": 1}], guestName="Walk-in"))
    assert order.client_id is None
    assert order.guest_name == "Walk-in"
    assert order.guest_email == ""
    assert db.scalars(select(DebtAdjustment)).all() == []


def test_client_order_defaults_to_self(db, client_user, charger):
    order = OrderService(db).create(client_user, _order([{"productId": 2, "quantity": 1}]))
    assert order.client_id == client_user.id


def test_client_cannot_assign_to_other_client(db, client_user, other_client, charger):
    with pytest.raises(AuthorizationError, match="Only admins can assign orders to other clients"):
        OrderService(db).create(client_user, _order([{"productId": 2, "quantity": 1}], clientId=other_client.id))


def test_client_cannot_create_guest_order(db, client_user, charger):
    with pytest.raises(AuthorizationError, match="Only admins can create guest orders"):
        OrderService(db).create(client_user, _order([{"productId": 2, "quantity": 1}], guestName="Walk-in"))


def test_insufficient_stock_counts_repeated_lines(db, admin, client_user, phone):
    with pytest.raises(StockError, match="Insufficient stock for Galaxy S24"):
        OrderService(db).create(admin, _order(
            [{"productId": 1, "quantity": 6}, {"productId": 1, "quantity": 5}], clientId=7,
        ))
    db.refresh(phone)
    assert phone.stock_quantity == 10
    assert db.scalars(select(Order)).all() == []


def test_disabled_product_is_rejected(db, admin, client_user, phone):
    phone.stock_status = "disabled"
    db.commit()
    with pytest.raises(StockError, match="Product Galaxy S24 is not available"):
        OrderService(db).create(admin, _order([{"productId": 1, "quantity": 1}], clientId=7))


def test_missing_product_writes_nothing(db, admin, client_user, phone):
    with pytest.raises(ValidationError, match="Product 99 not found"):
        OrderService(db).create(admin, _order(
            [{"productId": 1, "quantity": 1}, {"productId": 99, "quantity": 1}], clientId=7,
        ))
    db.refresh(phone)
    assert phone.stock_quantity == 10
    assert DebtLedger(db).entries(7) == []


def test_revenue_counts_completed_orders_only(db, admin, client_user, phone, charger):
    service = OrderService(db)
    service.create(admin, _order([{"productId": 1, "quantity": 1}], clientId=7, status="completed"))
    service.create(admin, _order([{"productId": 2, "quantity": 2}], clientId=7, status="completed"))
    service.create(admin, _order([{"productId": 1, "quantity": 3}], clientId=7))

    assert service.revenue() == {"eurRevenue": 500.0, "mkdRevenue": 100.0, "totalRevenue": 600.0}


def test_delete_leaves_stock_and_ledger(db, admin, client_user, phone):
    service = OrderService(db)
    order = service.create(admin, _order([{"productId": 1, "quantity": 2}], clientId=7))
    service.delete(order.id)

    assert db.get(Order, order.id) is None
    db.refresh(phone)
    assert phone.stock_quantity == 8
    assert DebtLedger(db).balances(7).eur_debt == Decimal("1000")
