from pathlib import Path

import pytest
from conftest import make_container, seed_shop

from shopledger.domain.errors import NotFoundError, ValidationError
from shopledger.domain.models import STATUS_DUE, STATUS_PAID


def _two_due_sales(tmp_path: Path):
    c, clock = make_container(tmp_path)
    customer, product, _service = seed_shop(c)

    clock.value = "2024-01-01"
    s1 = c.sales.create_sale(customer.id, 30.0, [{"product_id": product.id, "quantity": 1, "price": 100.0}])
    clock.value = "2024-02-01"
    s2 = c.sales.create_sale(customer.id, 0, [{"product_id": product.id, "quantity": 1, "price": 50.0}])
    clock.value = "2024-03-01"
    return c, customer, s1, s2


def test_payment_settles_oldest_sale_first(tmp_path: Path):
    c, customer, s1, s2 = _two_due_sales(tmp_path)
    payments_before = len(c.payments.list_payments())

    result = c.payments.record_payment(customer.id, 90.0)

    first = c.sales.get_sale(s1.id)
    second = c.sales.get_sale(s2.id)
    assert first.paid_amount == pytest.approx(100.0)
    assert first.status == STATUS_PAID
    assert second.paid_amount == pytest.approx(20.0)
    assert second.status == STATUS_DUE
    assert second.due == pytest.approx(30.0)

    assert result.allocations == [(s1.id, pytest.approx(70.0)), (s2.id, pytest.approx(20.0))]
    assert result.unapplied == 0.0

    payments = c.payments.list_payments()
    assert len(payments) == payments_before + 1
    assert payments[-1].amount == 90.0
    assert payments[-1].method == "Cash"
    assert payments[-1].date == "2024-03-01"
    assert payments[-1].id.startswith("PAY")


def test_payment_lowers_customer_due(tmp_path: Path):
    c, customer, _s1, _s2 = _two_due_sales(tmp_path)
    assert c.customers.summary(customer.id).due_amount == pytest.approx(120.0)

    c.payments.record_payment(customer.id, 90.0)

    summary = c.customers.summary(customer.id)
    assert summary.due_amount == pytest.approx(30.0)
    assert summary.due_since == "2024-02-01"


def test_overpayment_is_recorded_but_not_carried_as_credit(tmp_path: Path):
    c, customer, s1, s2 = _two_due_sales(tmp_path)

    result = c.payments.record_payment(customer.id, 200.0)

    assert result.unapplied == pytest.approx(80.0)
    assert c.sales.get_sale(s1.id).status == STATUS_PAID
    assert c.sales.get_sale(s2.id).paid_amount == pytest.approx(50.0)
    assert c.customers.summary(customer.id).due_amount == 0
    assert c.payments.list_payments()[-1].amount == 200.0

    # a later sale starts fully due: the surplus was not kept as credit
    product_id = s1.items[0].product_id
    later = c.sales.create_sale(customer.id, 0, [{"product_id": product_id, "quantity": 1, "price": 100.0}])
    assert later.status == STATUS_DUE


def test_payment_never_touches_other_customers(tmp_path: Path):
    c, customer, _s1, _s2 = _two_due_sales(tmp_path)
    other = c.customers.add_customer("Karim", "01711000002", "7 Bazar Lane")
    product_id = c.inventory.list_products()[-1].id
    theirs = c.sales.create_sale(other.id, 0, [{"product_id": product_id, "quantity": 1, "price": 100.0}])

    c.payments.record_payment(customer.id, 500.0)

    assert c.sales.get_sale(theirs.id).paid_amount == 0
    assert c.payments.payments_for_customer(other.id) == []


def test_same_day_sales_are_settled_in_stored_order(tmp_path: Path):
    c, _ = make_container(tmp_path)
    customer, product, _service = seed_shop(c)
    a = c.sales.create_sale(customer.id, 0, [{"product_id": product.id, "quantity": 1, "price": 40.0}])
    b = c.sales.create_sale(customer.id, 0, [{"product_id": product.id, "quantity": 1, "price": 40.0}])
    stored = [s.id for s in c.sales.list_sales()]

    result = c.payments.record_payment(customer.id, 40.0)

    assert result.allocations == [(stored[0], pytest.approx(40.0))]
    assert {a.id, b.id} == set(stored)


def test_payment_with_nothing_due_only_records_the_payment(tmp_path: Path):
    c, _ = make_container(tmp_path)
    customer, _product, _service = seed_shop(c)

    result = c.payments.record_payment(customer.id, 25.0, method="Bkash")

    assert result.allocations == []
    assert result.unapplied == pytest.approx(25.0)
    assert c.payments.list_payments()[0].method == "Bkash"


@pytest.mark.parametrize("amount", [0, -10])
def test_payment_amount_must_be_positive(tmp_path: Path, amount):
    c, _ = make_container(tmp_path)
    customer, _product, _service = seed_shop(c)

    with pytest.raises(ValidationError):
        c.payments.record_payment(customer.id, amount)
    assert c.payments.list_payments() == []


def test_payment_for_unknown_customer(tmp_path: Path):
    c, _ = make_container(tmp_path)

    with pytest.raises(NotFoundError):
        c.payments.record_payment("CUST404", 10.0)


@pytest.mark.parametrize("amount", [float("nan"), float("inf"), "abc"])
def test_non_numeric_payment_changes_nothing_in_memory_or_on_disk(tmp_path: Path, amount):
    c, customer, s1, s2 = _two_due_sales(tmp_path)

    with pytest.raises(ValidationError):
        c.payments.record_payment(customer.id, amount)

    assert c.payments.list_payments() == []
    assert c.sales.get_sale(s1.id) == s1
    reloaded, _ = make_container(tmp_path)
    assert reloaded.payments.list_payments() == []
    assert reloaded.sales.get_sale(s2.id).paid_amount == 0
