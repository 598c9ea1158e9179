from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from treasury.models import Tenant, TenantStatus


def _fund_ledger(add_revenue, add_expense) -> None:
    add_revenue("1000.00", on=date(2025, 3, 1))
    add_expense("400.00", on=date(2025, 3, 3))


def test_summary_creates_empty_fund(client, auth_headers) -> None:
    response = client.get("/api/reserve-fund", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {
        "balance": "0.00",
        "last_transfer_date": None,
        "available_balance": "0.00",
    }


def test_requests_without_token_are_rejected(client) -> None:
    response = client.get("/api/reserve-fund")

    assert response.status_code == 401
    assert response.json()["detail"] == "Usuário não autenticado"


def test_deposit_flow(client, auth_headers, add_revenue, add_expense) -> None:
    _fund_ledger(add_revenue, add_expense)

    response = client.post(
        "/api/reserve-fund/deposit",
        json={"amount": "200.00", "description": "Emergência"},
        headers=auth_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["operation"] == "deposit"
    assert data["balance"] == "200.00"
    assert data["transaction"]["transaction_type"] == "deposit"
    assert data["transaction"]["created_by"] == "tesoureiro@igreja.org"
    assert data["ledger_entry_id"]

    summary = client.get("/api/reserve-fund", headers=auth_headers).json()
    assert summary["balance"] == "200.00"
    assert summary["available_balance"] == "400.00"


def test_deposit_above_available_balance_conflicts(client, auth_headers, add_revenue, add_expense) -> None:
    _fund_ledger(add_revenue, add_expense)

    response = client.post("/api/reserve-fund/deposit", json={"amount": 700}, headers=auth_headers)

    assert response.status_code == 409
    assert "Saldo atual: R$ 600,00" in response.json()["detail"]


def test_zero_amount_is_unprocessable(client, auth_headers) -> None:
    response = client.post("/api/reserve-fund/deposit", json={"amount": 0}, headers=auth_headers)

    assert response.status_code == 422
    assert response.json()["detail"] == "Valor deve ser maior que zero"


@pytest.mark.parametrize("amount", ["0.004", "1e30", "1000000000000.00"])
def test_amounts_outside_the_ledger_precision_are_unprocessable(client, auth_headers, add_revenue, amount) -> None:
    add_revenue("100.00")

    response = client.post("/api/reserve-fund/deposit", json={"amount": amount}, headers=auth_headers)

    assert response.status_code == 422
    assert client.get("/api/reserve-fund", headers=auth_headers).json()["balance"] == "0.00"


def test_summary_follows_new_ledger_entries(client, auth_headers) -> None:
    before = client.get("/api/reserve-fund", headers=auth_headers).json()
    created = client.post(
        "/api/revenues",
        json={"amount": "500.00", "transaction_date": "2025-03-09", "payment_method": "pix"},
        headers=auth_headers,
    )
    after = client.get("/api/reserve-fund", headers=auth_headers).json()

    assert created.status_code == 201
    assert before["available_balance"] == "0.00"
    assert after["available_balance"] == "500.00"


def test_withdraw_and_history(client, auth_headers, add_revenue, add_expense) -> None:
    _fund_ledger(add_revenue, add_expense)
    client.post("/api/reserve-fund/deposit", json={"amount": "300.00"}, headers=auth_headers)

    response = client.post(
        "/api/reserve-fund/withdraw",
        json={"amount": "120.00", "description": "Conserto do telhado"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    assert response.json()["balance"] == "180.00"

    too_much = client.post("/api/reserve-fund/withdraw", json={"amount": "500"}, headers=auth_headers)
    assert too_much.status_code == 409

    history = client.get("/api/reserve-fund/transactions", params={"limit": 10}, headers=auth_headers)
    assert history.status_code == 200
    assert [item["transaction_type"] for item in history.json()] == ["withdrawal", "deposit"]
    assert history.json()[0]["description"] == "Conserto do telhado"


def test_transaction_limit_is_validated(client, auth_headers) -> None:
    client.get("/api/reserve-fund", headers=auth_headers)

    response = client.get("/api/reserve-fund/transactions", params={"limit": 0}, headers=auth_headers)

    assert response.status_code == 422


def test_auto_transfer_once_per_month(client, auth_headers, add_revenue, add_expense) -> None:
    _fund_ledger(add_revenue, add_expense)

    first = client.post("/api/reserve-fund/auto-transfer", headers=auth_headers)
    assert first.status_code == 201
    assert first.json()["amount"] == "600.00"
    assert first.json()["ledger_entry_id"] is None
    assert first.json()["transaction"]["description"] == "Transferência automática de 10/03/2025"

    second = client.post("/api/reserve-fund/auto-transfer", headers=auth_headers)
    assert second.status_code == 409
    assert second.json()["detail"] == "Transferência automática já realizada este mês"


def test_auto_transfer_without_cash_conflicts(client, auth_headers) -> None:
    response = client.post("/api/reserve-fund/auto-transfer", headers=auth_headers)

    assert response.status_code == 409
    assert response.json()["detail"] == "Não há saldo em caixa para transferir"


def test_reconciliation_is_consistent(client, auth_headers, add_revenue, add_expense) -> None:
    _fund_ledger(add_revenue, add_expense)
    client.post("/api/reserve-fund/deposit", json={"amount": "100"}, headers=auth_headers)
    client.post("/api/reserve-fund/withdraw", json={"amount": "25.50"}, headers=auth_headers)

    response = client.get("/api/reserve-fund/reconciliation", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["expected_balance"] == data["balance"] == "74.50"
    assert data["consistent"] is True


def test_members_cannot_move_money(client, login_as, add_revenue, add_expense) -> None:
    _fund_ledger(add_revenue, add_expense)
    member = login_as("MEMBER", email="membro@igreja.org")

    assert client.get("/api/reserve-fund", headers=member).status_code == 200
    response = client.post("/api/reserve-fund/deposit", json={"amount": "10"}, headers=member)

    assert response.status_code == 403
    assert response.json()["detail"] == "Permissão insuficiente"


def test_inactive_church_is_forbidden(client, auth_headers, db_session: Session) -> None:
    tenant = db_session.get(Tenant, "igreja-demo")
    tenant.status = TenantStatus.INACTIVE
    db_session.commit()

    response = client.get("/api/reserve-fund", headers=auth_headers)

    assert response.status_code == 403


def test_ledger_reflects_transfers(client, auth_headers, add_revenue, add_expense) -> None:
    _fund_ledger(add_revenue, add_expense)
    client.post("/api/reserve-fund/deposit", json={"amount": "50"}, headers=auth_headers)

    expenses = client.get("/api/expenses", headers=auth_headers).json()
    operating = client.get(
        "/api/expenses", params={"exclude_reserve_fund": "true"}, headers=auth_headers
    ).json()

    assert len(expenses) == 2
    assert len(operating) == 1
    assert Decimal(operating[0]["amount"]) == Decimal("400.00")
