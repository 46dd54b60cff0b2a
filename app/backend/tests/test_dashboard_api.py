from __future__ import annotations

from collections.abc import Callable
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from conftest import ADMIN_PASSWORD, ADMIN_USERNAME, bootstrap_admin, login_headers
from sales_dashboard.core.config import Settings
from sales_dashboard.models.entities import Employee, Expense, MonthlyTarget, Sale
from sales_dashboard.repositories.sales_repository import SalesRepository


def _create_branch(client: TestClient, headers: dict[str, str], name: str, color: str = "#16a34a") -> int:
    response = client.post("/api/v1/branches", json={"name": name, "color": color}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["id"]


def _create_employee(client: TestClient, headers: dict[str, str], branch_id: int, name: str) -> int:
    response = client.post("/api/v1/employees", json={"branch_id": branch_id, "name": name}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["id"]


def _seed_silom(client: TestClient, headers: dict[str, str]) -> tuple[int, int]:
    branch_id = _create_branch(client, headers, "Silom")
    employee_id = _create_employee(client, headers, branch_id, "Somchai")

    target = client.put(
        f"/api/v1/employees/{employee_id}/targets",
        json={"year": 2025, "month": 3, "facebook": 1000, "shopee": 500, "lazada": 0},
        headers=headers,
    )
    assert target.status_code == 200, target.text

    sales = client.put(
        "/api/v1/sales/entries/bulk",
        json={
            "entries": [
                {"employee_id": employee_id, "channel": "facebook", "amount": 800, "year": 2025, "month": 3},
                {"employee_id": employee_id, "channel": "shopee", "amount": 600, "year": 2025, "month": 3},
            ]
        },
        headers=headers,
    )
    assert sales.status_code == 200, sales.text
    assert sales.json()["updated_entries"] == 2

    expenses = client.put(
        "/api/v1/expenses/entries/bulk",
        json={
            "entries": [
                {"employee_id": employee_id, "type": "cost", "amount": 200, "year": 2025, "month": 3},
                {"employee_id": employee_id, "type": "ads", "amount": 50, "year": 2025, "month": 3},
            ]
        },
        headers=headers,
    )
    assert expenses.status_code == 200, expenses.text
    return branch_id, employee_id


def _dashboard(client: TestClient, headers: dict[str, str], year: int = 2025, month: int = 3) -> dict:
    response = client.get("/api/v1/dashboard", params={"year": year, "month": month}, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


def test_silom_dashboard_end_to_end(client: TestClient, admin_headers: dict[str, str]) -> None:
    branch_id, employee_id = _seed_silom(client, admin_headers)

    body = _dashboard(client, admin_headers)

    assert body["year"] == 2025
    assert body["month"] == 3
    assert len(body["branches"]) == 1
    branch = body["branches"][0]
    assert branch["id"] == branch_id
    assert branch["name"] == "Silom"
    assert branch["color"] == "#16a34a"
    employee = branch["employees"][0]
    assert employee["id"] == employee_id
    assert employee["branchId"] == branch_id
    assert employee["name"] == "Somchai"

    for record in (employee, branch):
        assert record["targets"] == {
            "facebook": "1000.00",
            "shopee": "500.00",
            "lazada": "0.00",
            "total": "1500.00",
        }
        assert record["sales"] == {"facebook": "800.00", "shopee": "600.00", "lazada": "0.00"}
        assert record["expenses"] == {"cost": "200.00", "ads": "50.00", "fees": "0.00"}
        assert record["totalTarget"] == "1500.00"
        assert record["totalSales"] == "1400.00"
        assert record["performancePct"] == "93.3"
        assert record["totalExpenses"] == "250.00"
        assert record["netProfit"] == "1150.00"
        assert record["diffFromTarget"] == "-100.00"
        assert record["costPct"] == "14.3"
        assert record["adsPct"] == "3.6"
        assert record["feesPct"] == "0.0"
        assert record["totalExpPct"] == "17.9"
        assert record["marginPct"] == "82.1"

    company = body["company"]
    assert company["totalSales"] == "1400.00"
    assert company["performancePct"] == "93.3"
    assert company["branchCount"] == 1
    assert company["employeeCount"] == 1
    assert company["branchesOnTarget"] == 0


def test_dashboard_is_repeatable(client: TestClient, admin_headers: dict[str, str]) -> None:
    _seed_silom(client, admin_headers)

    assert _dashboard(client, admin_headers) == _dashboard(client, admin_headers)


def test_other_period_shows_zeros(client: TestClient, admin_headers: dict[str, str]) -> None:
    _seed_silom(client, admin_headers)

    employee = _dashboard(client, admin_headers, 2025, 4)["branches"][0]["employees"][0]

    assert employee["sales"] == {"facebook": "0.00", "shopee": "0.00", "lazada": "0.00"}
    assert employee["totalSales"] == "0.00"
    assert employee["totalTarget"] == "0.00"
    assert employee["performancePct"] == "0.0"


def test_sale_upsert_is_idempotent_and_replaces_amount(
    client: TestClient,
    admin_headers: dict[str, str],
    db_session: Session,
) -> None:
    branch_id = _create_branch(client, admin_headers, "Sathorn")
    employee_id = _create_employee(client, admin_headers, branch_id, "Malee")
    entry = {"employee_id": employee_id, "channel": "lazada", "amount": 300, "year": 2025, "month": 3}

    first = client.put("/api/v1/sales", json=entry, headers=admin_headers)
    second = client.put("/api/v1/sales", json=entry, headers=admin_headers)

    assert first.status_code == 200
    assert second.json()["id"] == first.json()["id"]
    listed = client.get(
        "/api/v1/sales",
        params={"employee_id": employee_id, "year": 2025, "month": 3},
        headers=admin_headers,
    )
    assert len(listed.json()["items"]) == 1
    assert _dashboard(client, admin_headers)["company"]["totalSales"] == "300.00"

    replaced = client.put("/api/v1/sales", json={**entry, "amount": 125.5}, headers=admin_headers)

    assert replaced.json()["amount"] == "125.50"
    assert db_session.scalar(select(func.count()).select_from(Sale)) == 1
    assert _dashboard(client, admin_headers)["company"]["totalSales"] == "125.50"


def test_bulk_payload_with_duplicate_key_is_rejected(client: TestClient, admin_headers: dict[str, str]) -> None:
    branch_id = _create_branch(client, admin_headers, "Ari")
    employee_id = _create_employee(client, admin_headers, branch_id, "Nid")
    entry = {"employee_id": employee_id, "type": "fees", "amount": 10, "year": 2025, "month": 3}

    response = client.put("/api/v1/expenses/entries/bulk", json={"entries": [entry, entry]}, headers=admin_headers)

    assert response.status_code == 422
    assert response.json()["detail"] == "Duplicate expense key in bulk payload."


def test_entries_for_unknown_employee_or_negative_amount_are_rejected(
    client: TestClient,
    admin_headers: dict[str, str],
) -> None:
    unknown = client.put(
        "/api/v1/sales",
        json={"employee_id": 404, "channel": "facebook", "amount": 1, "year": 2025, "month": 3},
        headers=admin_headers,
    )
    negative = client.put(
        "/api/v1/sales",
        json={"employee_id": 1, "channel": "facebook", "amount": -1, "year": 2025, "month": 3},
        headers=admin_headers,
    )
    bad_channel = client.put(
        "/api/v1/sales",
        json={"employee_id": 1, "channel": "tiktok", "amount": 1, "year": 2025, "month": 3},
        headers=admin_headers,
    )

    assert unknown.status_code == 422
    assert negative.status_code == 422
    assert bad_channel.status_code == 422


def test_target_defaults_to_zero_and_is_overwritten(client: TestClient, admin_headers: dict[str, str]) -> None:
    branch_id = _create_branch(client, admin_headers, "Bangna")
    employee_id = _create_employee(client, admin_headers, branch_id, "Lek")
    url = f"/api/v1/employees/{employee_id}/targets"

    empty = client.get(url, params={"year": 2025, "month": 6}, headers=admin_headers)
    client.put(url, json={"year": 2025, "month": 6, "facebook": 100}, headers=admin_headers)
    client.put(url, json={"year": 2025, "month": 6, "shopee": 40}, headers=admin_headers)
    current = client.get(url, params={"year": 2025, "month": 6}, headers=admin_headers)
    missing = client.get("/api/v1/employees/999/targets", params={"year": 2025, "month": 6}, headers=admin_headers)

    assert empty.json()["total"] == "0.00"
    assert current.json()["facebook"] == "0.00"
    assert current.json()["shopee"] == "40.00"
    assert current.json()["total"] == "40.00"
    assert missing.status_code == 404


def test_empty_dashboard_is_success(client: TestClient, admin_headers: dict[str, str]) -> None:
    body = _dashboard(client, admin_headers)

    assert body["branches"] == []
    assert body["company"]["branchCount"] == 0
    assert body["company"]["totalSales"] == "0.00"
    assert body["company"]["performancePct"] == "0.0"


def test_dashboard_defaults_to_current_month(client: TestClient, admin_headers: dict[str, str]) -> None:
    response = client.get("/api/v1/dashboard", headers=admin_headers)
    today = date.today()

    assert response.status_code == 200
    assert (response.json()["year"], response.json()["month"]) == (today.year, today.month)


@pytest.mark.parametrize("month", [0, 13])
def test_invalid_month_is_rejected(client: TestClient, admin_headers: dict[str, str], month: int) -> None:
    dashboard = client.get("/api/v1/dashboard", params={"year": 2025, "month": month}, headers=admin_headers)
    history = client.get("/api/v1/dashboard/history", params={"year": 2025, "month": month}, headers=admin_headers)

    assert dashboard.status_code == 422
    assert "month" in dashboard.json()["detail"]
    assert history.status_code == 422


def test_history_covers_twelve_months_oldest_first(client: TestClient, admin_headers: dict[str, str]) -> None:
    _, employee_id = _seed_silom(client, admin_headers)
    client.put(
        "/api/v1/sales",
        json={"employee_id": employee_id, "channel": "lazada", "amount": 90, "year": 2024, "month": 12},
        headers=admin_headers,
    )

    response = client.get("/api/v1/dashboard/history", params={"year": 2025, "month": 3}, headers=admin_headers)

    assert response.status_code == 200
    periods = response.json()["periods"]
    assert len(periods) == 12
    assert (periods[0]["year"], periods[0]["month"]) == (2024, 4)
    assert (periods[-1]["year"], periods[-1]["month"]) == (2025, 3)

    latest = periods[-1]
    assert latest["sales"] == {"facebook": "800.00", "shopee": "600.00", "lazada": "0.00"}
    assert latest["totalSales"] == "1400.00"
    assert latest["totalTarget"] == "1500.00"
    assert latest["totalExpenses"] == "250.00"
    assert latest["netProfit"] == "1150.00"
    assert latest["performancePct"] == "93.3"

    december = next(row for row in periods if (row["year"], row["month"]) == (2024, 12))
    assert december["totalSales"] == "90.00"
    assert december["totalTarget"] == "0.00"
    assert december["performancePct"] == "0.0"


def test_deleting_branch_cascades_to_figures(
    client: TestClient,
    admin_headers: dict[str, str],
    db_session: Session,
) -> None:
    branch_id, _ = _seed_silom(client, admin_headers)
    other_branch = _create_branch(client, admin_headers, "Thonglor")
    _create_employee(client, admin_headers, other_branch, "Dao")

    response = client.delete(f"/api/v1/branches/{branch_id}", headers=admin_headers)

    assert response.status_code == 204
    remaining = client.get("/api/v1/employees", headers=admin_headers).json()["items"]
    assert [row["name"] for row in remaining] == ["Dao"]
    for model in (Sale, Expense, MonthlyTarget):
        assert db_session.scalar(select(func.count()).select_from(model)) == 0
    assert db_session.scalar(select(func.count()).select_from(Employee)) == 1
    assert [row["name"] for row in _dashboard(client, admin_headers)["branches"]] == ["Thonglor"]


def test_employee_update_and_unknown_branch(client: TestClient, admin_headers: dict[str, str]) -> None:
    first = _create_branch(client, admin_headers, "Silom")
    second = _create_branch(client, admin_headers, "Sathorn")
    employee_id = _create_employee(client, admin_headers, first, "Somchai")

    moved = client.patch(
        f"/api/v1/employees/{employee_id}",
        json={"branch_id": second, "target_facebook": 250},
        headers=admin_headers,
    )
    orphan = client.post("/api/v1/employees", json={"branch_id": 999, "name": "Nobody"}, headers=admin_headers)

    assert moved.status_code == 200
    assert moved.json()["branch_name"] == "Sathorn"
    assert moved.json()["targets"]["facebook"] == "250.00"
    assert orphan.status_code == 422
    assert client.get("/api/v1/employees", params={"branch_id": 999}, headers=admin_headers).status_code == 404


def test_repository_failure_is_service_unavailable(
    client: TestClient,
    admin_headers: dict[str, str],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def broken_list_branches(self: SalesRepository) -> list:
        raise OperationalError("SELECT branches", {}, Exception("database is locked"))

    monkeypatch.setattr(SalesRepository, "list_branches", broken_list_branches)

    response = client.get("/api/v1/dashboard", params={"year": 2025, "month": 3}, headers=admin_headers)

    assert response.status_code == 503
    assert "try again later" in response.json()["detail"]


def test_dashboard_follows_settings_given_to_app(
    make_client: Callable[..., TestClient],
    db_session: Session,
) -> None:
    client = make_client(
        Settings(bootstrap_on_startup=False, target_source="employee", history_window_months=3)
    )
    bootstrap_admin(db_session)
    headers = login_headers(client, ADMIN_USERNAME, ADMIN_PASSWORD)
    branch_id = _create_branch(client, headers, "Silom")
    employee = client.post(
        "/api/v1/employees",
        json={"branch_id": branch_id, "name": "Somchai", "target_facebook": 100},
        headers=headers,
    )
    client.put(
        "/api/v1/sales",
        json={"employee_id": employee.json()["id"], "channel": "facebook", "amount": 40, "year": 2025, "month": 3},
        headers=headers,
    )

    company = _dashboard(client, headers)["company"]
    history = client.get("/api/v1/dashboard/history", params={"year": 2025, "month": 3}, headers=headers)

    assert company["totalTarget"] == "100.00"
    assert company["performancePct"] == "40.0"
    assert [(row["year"], row["month"]) for row in history.json()["periods"]] == [(2025, 1), (2025, 2), (2025, 3)]
    assert history.json()["periods"][-1]["totalTarget"] == "100.00"


@pytest.mark.parametrize(
    ("path", "params"),
    [
        ("/api/v1/sales", {"month": 13}),
        ("/api/v1/sales", {"year": 2025, "month": 0}),
        ("/api/v1/expenses", {"year": 0}),
    ],
)
def test_entry_listing_rejects_invalid_period(
    client: TestClient,
    admin_headers: dict[str, str],
    path: str,
    params: dict[str, int],
) -> None:
    response = client.get(path, params=params, headers=admin_headers)

    assert response.status_code == 422


def test_entry_listing_accepts_partial_period(client: TestClient, admin_headers: dict[str, str]) -> None:
    _seed_silom(client, admin_headers)

    by_year = client.get("/api/v1/sales", params={"year": 2025}, headers=admin_headers)
    by_month = client.get("/api/v1/expenses", params={"month": 3}, headers=admin_headers)

    assert len(by_year.json()["items"]) == 2
    assert len(by_month.json()["items"]) == 2
