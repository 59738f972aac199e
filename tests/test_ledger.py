from decimal import Decimal

from poscrm.application.ledger import (
    DebtBalance,
    DebtLedger,
    clamp_debt,
    fold_balance,
    totals_by_currency,
)


def test_clamp_debt():
    assert clamp_debt(Decimal("-120.50")) == Decimal("120.50")
    assert clamp_debt(Decimal("0")) == Decimal("0")
    # Overpayment never shows up as negative debt
    assert clamp_debt(Decimal("300")) == Decimal("0")


def test_fold_balance_missing_currency_is_zero():
    balance = fold_balance({"EUR": Decimal("-10")})
    assert balance.eur_debt == Decimal("10")
    assert balance.mkd_debt == Decimal("0")
    assert balance.total_debt == Decimal("10")


def test_totals_by_currency_drops_zero_totals():
    totals = totals_by_currency([
        ("MKD", Decimal("50")),
        ("EUR", Decimal("500")),
        ("EUR", Decimal("250")),
        ("MKD", Decimal("-50")),
    ])
    assert totals == {"EUR": Decimal("750")}


def test_balance_to_dict():
    body = DebtBalance(eur_debt=Decimal("1000"), mkd_debt=Decimal("50")).to_dict()
    assert body == {"eurDebt": 1000.0, "mkdDebt": 50.0, "totalDebt": 1050.0}


def test_no_entries_means_no_debt(db, client_user):
    balance = DebtLedger(db).balances(client_user.id)
    assert balance.eur_debt == 0
    assert balance.mkd_debt == 0


def test_balances_fold_per_currency(db, admin, client_user):
    ledger = DebtLedger(db)
    ledger.append(client_user.id, Decimal("-1000"), "EUR", "order_created", admin.id)
    ledger.append(client_user.id, Decimal("400"), "EUR", "manual_reduction", admin.id)
    ledger.append(client_user.id, Decimal("-50"), "MKD", "order_created", admin.id)
    ledger.append(client_user.id, Decimal("80"), "MKD", "manual_reduction", admin.id)
    db.commit()

    balance = ledger.balances(client_user.id)
    assert balance.eur_debt == Decimal("600")
    assert balance.mkd_debt == Decimal("0")
    assert [e.currency for e in ledger.entries(client_user.id)] == ["EUR", "EUR", "MKD", "MKD"]


def test_balances_are_scoped_to_user(db, admin, client_user, other_client):
    DebtLedger(db).append(other_client.id, Decimal("-75"), "MKD", "order_created", admin.id)
    db.commit()
    assert DebtLedger(db).balances(client_user.id).mkd_debt == 0
    assert DebtLedger(db).balances(other_client.id).mkd_debt == Decimal("75")


def test_append_per_currency_applies_sign(db, admin, client_user):
    written = DebtLedger(db).append_per_currency(
        client_user.id,
        {"EUR": Decimal("500"), "MKD": Decimal("50")},
        sign=-1,
        adjustment_type="order_created",
        created_by=admin.id,
        notes="Debt increase from pending order #1",
    )
    db.commit()
    assert sorted((e.currency, Decimal(e.adjustment_amount)) for e in written) == [
        ("EUR", Decimal("-500")),
        ("MKD", Decimal("-50")),
    ]
