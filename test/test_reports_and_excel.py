from pathlib import Path

import pytest
from conftest import make_container, seed_shop
from openpyxl import Workbook, load_workbook

from shopledger.domain.errors import DuplicateError, ValidationError
from shopledger.domain.models import PURCHASE_INVENTORY, PURCHASE_UTILITY


def _ledger_with_activity(tmp_path: Path):
    c, clock = make_container(tmp_path)
    customer, rice, milling = seed_shop(c)

    clock.value = "2024-02-20"
    c.purchases.create_purchase(PURCHASE_INVENTORY, "Agro", 800.0, 800.0, product_id=rice.id, quantity=10)
    clock.value = "2024-03-02"
    c.purchases.create_purchase(PURCHASE_UTILITY, "Power Board", 150.0, 0, description="Electricity")
    c.sales.create_sale(
        customer.id,
        150.0,
        [
            {"product_id": rice.id, "quantity": 2, "price": 100.0},
            {"product_id": milling.id, "quantity": 2, "price": 50.0},
        ],
    )
    clock.value = "2024-04-01"
    c.sales.create_sale(customer.id, 0, [{"product_id": rice.id, "quantity": 1, "price": 100.0}])
    return c, customer, rice, milling


def test_period_report_totals(tmp_path: Path):
    c, _customer, rice, milling = _ledger_with_activity(tmp_path)

    report = c.reporting.period_report("2024-03-01", "2024-03-31")

    assert report.total_revenue == pytest.approx(300.0)
    assert report.total_paid == pytest.approx(150.0)
    assert report.total_due == pytest.approx(150.0)
    assert report.total_expenses == pytest.approx(150.0)
    # avg cost 80/bag over every inventory purchase: 2 bags sold
    assert report.total_cogs == pytest.approx(160.0)
    assert report.total_profit == pytest.approx(300.0 - 160.0 - 150.0)
    # 10 seeded + 10 bought - 2 - 1 sold = 17 bags on hand
    assert report.stock_value == pytest.approx(17 * 80.0)

    [rice_row] = report.product_reports
    assert rice_row.id == rice.id
    assert rice_row.quantity == 2
    assert rice_row.paid == pytest.approx(100.0)
    assert rice_row.profit == pytest.approx(40.0)
    [milling_row] = report.service_reports
    assert milling_row.id == milling.id
    assert milling_row.due == pytest.approx(50.0)
    assert [p.description for p in report.utility_expenses] == ["Electricity"]


def test_sales_stats_and_trends(tmp_path: Path):
    c, _customer, rice, _milling = _ledger_with_activity(tmp_path)

    stats = c.reporting.sales_stats("2024-01-01", "2024-12-31")
    assert stats.num_sales == 2
    assert stats.total_amount == pytest.approx(400.0)
    assert stats.due_amount == pytest.approx(250.0)

    assert c.reporting.monthly_sales_totals(6) == [("2024-03", 300.0), ("2024-04", 100.0)]
    assert c.reporting.top_selling_products(1) == [(rice.id, "Rice 5kg", 3)]


def test_report_window_must_be_ordered(tmp_path: Path):
    c, _ = make_container(tmp_path)

    with pytest.raises(ValidationError):
        c.reporting.period_report("2024-03-31", "2024-03-01")


def test_export_report_excel_writes_sheets(tmp_path: Path):
    c, *_ = _ledger_with_activity(tmp_path)
    out = tmp_path / "report.xlsx"

    c.reporting.export_report_excel(str(out), "2024-03-01", "2024-03-31")

    wb = load_workbook(out)
    assert wb.sheetnames == ["Summary", "Products", "Services", "Utility Expenses"]
    assert wb["Summary"]["B5"].value == pytest.approx(300.0)
    assert wb["Products"]["B2"].value == "Rice 5kg"


def _customer_sheet(path: Path, rows):
    wb = Workbook()
    ws = wb.active
    ws.append(["Name", "Phone", "Address"])
    for r in rows:
        ws.append(list(r))
    wb.save(path)
    return path


def test_import_customers_from_excel(tmp_path: Path):
    c, _ = make_container(tmp_path)
    path = _customer_sheet(
        tmp_path / "customers.xlsx",
        [("Rahim", "01711000001", "12 Station Road"), ("Karim", 1899000002, "7 Bazar Lane")],
    )

    assert c.excel.import_customers_excel(str(path)) == 2
    assert [(x.id, x.phone) for x in c.customers.list_customers()] == [
        ("CUST001", "01711000001"),
        ("CUST002", "1899000002"),
    ]


def test_import_is_all_or_nothing(tmp_path: Path):
    c, _ = make_container(tmp_path)
    c.customers.add_customer("Rahim", "01711000001", "12 Station Road")

    clash = _customer_sheet(tmp_path / "clash.xlsx", [("New", "01711000009", "Road 1"), ("Dup", "01711000001", "Road 2")])
    with pytest.raises(DuplicateError):
        c.excel.import_customers_excel(str(clash))

    repeated = _customer_sheet(tmp_path / "repeat.xlsx", [("A", "0170", "Road 1"), ("B", "0170", "Road 2")])
    with pytest.raises(DuplicateError):
        c.excel.import_customers_excel(str(repeated))

    blank = _customer_sheet(tmp_path / "blank.xlsx", [("A", "0171", None)])
    with pytest.raises(ValidationError):
        c.excel.import_customers_excel(str(blank))

    empty = _customer_sheet(tmp_path / "empty.xlsx", [])
    with pytest.raises(ValidationError):
        c.excel.import_customers_excel(str(empty))

    assert len(c.customers.list_customers()) == 1


def test_export_customers_includes_dues(tmp_path: Path):
    c, customer, *_ = _ledger_with_activity(tmp_path)
    out = tmp_path / "customers_out.xlsx"

    assert c.excel.export_customers_excel(str(out)) == 1

    ws = load_workbook(out).active
    assert ws["A2"].value == customer.id
    assert ws["E2"].value == pytest.approx(250.0)
    assert ws["G2"].value == "2024-03-02"
