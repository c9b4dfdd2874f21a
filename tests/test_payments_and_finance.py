import unittest
from decimal import Decimal
from unittest import mock

from support import make_category, make_customer, make_database, make_item, make_user, utc

from rental_api.core.errors import Conflict, InvalidInput, NotFound
from rental_api.models.enums import ExpenseCategory, PaymentMethod, PaymentStatus
from rental_api.models.expense import Expense
from rental_api.models.payment import Payment
from rental_api.services import finance, payments, rentals


class PaymentLedgerTests(unittest.TestCase):
    def setUp(self):
        self.database = make_database()
        self.db = self.database.session()
        self.user = make_user(self.db)
        category = make_category(self.db)
        item = make_item(self.db, category)
        customer = make_customer(self.db)
        # total 130, see the charges example
        self.rental = rentals.create_rental(
            self.db, self.user, customer.id, item.id, utc(2026, 2, 14), utc(2026, 2, 20),
            deposit=Decimal("50"), discount=Decimal("10"),
        )

    def tearDown(self):
        self.db.close()
        self.database.dispose()

    def _balances(self):
        r = rentals.get_rental(self.db, self.rental.id)
        return r.amount_paid, r.amount_due, r.payment_status

    def assertBalanced(self):
        paid, due, _ = self._balances()
        self.assertEqual(paid + due, Decimal("130.00"))

    def test_classify(self):
        self.assertEqual(payments.classify_payment_status(Decimal("0"), Decimal("130")), PaymentStatus.UNPAID)
        self.assertEqual(payments.classify_payment_status(Decimal("10"), Decimal("130")), PaymentStatus.PARTIAL)
        self.assertEqual(payments.classify_payment_status(Decimal("130"), Decimal("130")), PaymentStatus.PAID)

    def test_partial_then_full_payment(self):
        payments.record_payment(self.db, self.rental.id, Decimal("100"), PaymentMethod.CASH)
        self.assertEqual(self._balances(), (Decimal("100.00"), Decimal("30.00"), PaymentStatus.PARTIAL))
        self.assertBalanced()

        payments.record_payment(self.db, self.rental.id, Decimal("30"), PaymentMethod.CARD, reference="R-2")
        self.assertEqual(self._balances(), (Decimal("130.00"), Decimal("0.00"), PaymentStatus.PAID))
        self.assertBalanced()

    def test_overpayment_is_rejected(self):
        payments.record_payment(self.db, self.rental.id, Decimal("100"), PaymentMethod.CASH)

        with self.assertRaises(Conflict):
            payments.record_payment(self.db, self.rental.id, Decimal("30.01"), PaymentMethod.CASH)
        self.assertEqual(self._balances(), (Decimal("100.00"), Decimal("30.00"), PaymentStatus.PARTIAL))
        self.assertEqual(self.db.query(Payment).count(), 1)

    def test_non_positive_amount_is_invalid(self):
        with self.assertRaises(InvalidInput):
            payments.record_payment(self.db, self.rental.id, Decimal("0"), PaymentMethod.CASH)
        with self.assertRaises(InvalidInput):
            payments.record_payment(self.db, self.rental.id, Decimal("-5"), PaymentMethod.CASH)

    def test_unknown_rental(self):
        with self.assertRaises(NotFound):
            payments.record_payment(self.db, 9999, Decimal("5"), PaymentMethod.CASH)

    def test_delete_restores_previous_balances(self):
        before = self._balances()
        payment = payments.record_payment(self.db, self.rental.id, Decimal("100"), PaymentMethod.CASH)

        payments.delete_payment(self.db, payment.id)

        self.assertEqual(self._balances(), before)
        self.assertEqual(before, (Decimal("0.00"), Decimal("130.00"), PaymentStatus.UNPAID))

    def test_delete_one_of_two_payments(self):
        first = payments.record_payment(self.db, self.rental.id, Decimal("100"), PaymentMethod.CASH)
        payments.record_payment(self.db, self.rental.id, Decimal("30"), PaymentMethod.CASH)

        payments.delete_payment(self.db, first.id)

        self.assertEqual(self._balances(), (Decimal("30.00"), Decimal("100.00"), PaymentStatus.PARTIAL))
        self.assertBalanced()

    def _failing_rebalance(self):
        real = payments._rebalance

        def rebalance_then_fail(db, rental):
            real(db, rental)
            raise RuntimeError("boom")
        return mock.patch.object(payments, "_rebalance", side_effect=rebalance_then_fail)

    def test_failure_after_payment_insert_rolls_back(self):
        with self._failing_rebalance():
            with self.assertRaises(RuntimeError):
                payments.record_payment(self.db, self.rental.id, Decimal("100"), PaymentMethod.CASH)

        self.assertEqual(self.db.query(Payment).count(), 0)
        self.assertEqual(self._balances(), (Decimal("0.00"), Decimal("130.00"), PaymentStatus.UNPAID))

    def test_failure_while_deleting_keeps_payment(self):
        payment = payments.record_payment(self.db, self.rental.id, Decimal("100"), PaymentMethod.CASH)

        with self._failing_rebalance():
            with self.assertRaises(RuntimeError):
                payments.delete_payment(self.db, payment.id)

        self.assertEqual(self.db.query(Payment).count(), 1)
        self.assertEqual(self._balances(), (Decimal("100.00"), Decimal("30.00"), PaymentStatus.PARTIAL))

    def test_out_of_range_amount_is_invalid(self):
        with self.assertRaises(InvalidInput):
            payments.record_payment(self.db, self.rental.id, "1e30", PaymentMethod.CASH)
        self.assertEqual(self.db.query(Payment).count(), 0)

    def test_delete_unknown_payment(self):
        with self.assertRaises(NotFound):
            payments.delete_payment(self.db, 9999)

    def test_list_filters_by_method_and_date(self):
        payments.record_payment(self.db, self.rental.id, Decimal("10"), PaymentMethod.CASH, payment_date=utc(2026, 2, 15))
        payments.record_payment(self.db, self.rental.id, Decimal("20"), PaymentMethod.CARD, payment_date=utc(2026, 3, 15))

        rows, total = payments.list_payments(self.db, method=PaymentMethod.CARD)
        self.assertEqual(total, 1)
        self.assertEqual(rows[0].amount, Decimal("20.00"))

        rows, total = payments.list_payments(self.db, start=utc(2026, 2, 1), end=utc(2026, 2, 28))
        self.assertEqual(total, 1)
        self.assertEqual(rows[0].payment_method, PaymentMethod.CASH)


class FinancialAggregatorTests(unittest.TestCase):
    def setUp(self):
        self.database = make_database()
        self.db = self.database.session()
        self.user = make_user(self.db)
        self.category = make_category(self.db)
        self.customer = make_customer(self.db)

    def tearDown(self):
        self.db.close()
        self.database.dispose()

    def _rental(self, name, rate="15.00"):
        item = make_item(self.db, self.category, name=name, daily_rate=rate)
        return rentals.create_rental(
            self.db, self.user, self.customer.id, item.id, utc(2026, 2, 14), utc(2026, 2, 20),
            deposit=Decimal("50"), discount=Decimal("10"),
        )

    def _expense(self, amount, when):
        self.db.add(Expense(description="Spare parts", amount=Decimal(amount),
                            category=ExpenseCategory.MAINTENANCE, expense_date=when))
        self.db.commit()

    def test_summary_for_period(self):
        a = self._rental("Drill")
        b = self._rental("Mower")
        payments.record_payment(self.db, a.id, Decimal("100"), PaymentMethod.CASH, payment_date=utc(2026, 2, 15))
        payments.record_payment(self.db, b.id, Decimal("30"), PaymentMethod.CASH, payment_date=utc(2026, 2, 16))
        payments.record_payment(self.db, b.id, Decimal("50"), PaymentMethod.CASH, payment_date=utc(2026, 4, 1))
        self._expense("30", utc(2026, 2, 20))
        self._expense("500", utc(2026, 5, 1))

        result = finance.summary(self.db, utc(2026, 2, 1), utc(2026, 2, 28, 23, 59, 59))

        self.assertEqual(result["total_revenue"], 130.0)
        self.assertEqual(result["total_expenses"], 30.0)
        self.assertEqual(result["net_profit"], 100.0)
        self.assertEqual(result["profit_margin"], 76.92)
        # a owes 30, b owes 50; not narrowed by the period
        self.assertEqual(result["outstanding_payments"], 80.0)

    def test_outstanding_ignores_period(self):
        self._rental("Drill")
        result = finance.summary(self.db, utc(2020, 1, 1), utc(2020, 1, 31))
        self.assertEqual(result["total_revenue"], 0.0)
        self.assertEqual(result["outstanding_payments"], 130.0)

    def test_totals_may_exceed_a_single_amount(self):
        self._expense("60000000", utc(2026, 2, 10))
        self._expense("60000000", utc(2026, 2, 11))
        result = finance.summary(self.db)
        self.assertEqual(result["total_expenses"], 120000000.0)

    def test_zero_revenue_margin(self):
        self._expense("40", utc(2026, 2, 20))
        result = finance.summary(self.db)
        self.assertEqual(result["net_profit"], -40.0)
        self.assertEqual(result["profit_margin"], 0.0)

    def test_month_to_date_uses_calendar_month(self):
        a = self._rental("Drill")
        payments.record_payment(self.db, a.id, Decimal("20"), PaymentMethod.CASH, payment_date=utc(2026, 1, 31, 23, 59))
        payments.record_payment(self.db, a.id, Decimal("25"), PaymentMethod.CASH, payment_date=utc(2026, 2, 1))
        payments.record_payment(self.db, a.id, Decimal("5"), PaymentMethod.CASH, payment_date=utc(2026, 2, 28, 23))
        payments.record_payment(self.db, a.id, Decimal("7"), PaymentMethod.CASH, payment_date=utc(2026, 3, 1))
        self._expense("10", utc(2026, 2, 10))

        result = finance.month_to_date(self.db, now=utc(2026, 2, 14, 12))

        self.assertEqual(result["monthly_revenue"], 30.0)
        self.assertEqual(result["monthly_expenses"], 10.0)
        self.assertEqual(result["net_profit"], 20.0)

    def test_revenue_by_month(self):
        a = self._rental("Drill")
        payments.record_payment(self.db, a.id, Decimal("40"), PaymentMethod.CASH, payment_date=utc(2026, 1, 10))
        payments.record_payment(self.db, a.id, Decimal("60"), PaymentMethod.CASH, payment_date=utc(2026, 3, 10))
        self._expense("15", utc(2026, 3, 20))

        points = finance.revenue_by_month(self.db, utc(2026, 1, 1), utc(2026, 3, 31))

        self.assertEqual([p["month"] for p in points], ["Jan 2026", "Feb 2026", "Mar 2026"])
        self.assertEqual([p["revenue"] for p in points], [40.0, 0.0, 60.0])
        self.assertEqual(points[2]["expenses"], 15.0)
        self.assertEqual(points[2]["profit"], 45.0)

    def test_revenue_by_month_defaults_to_six_months(self):
        points = finance.revenue_by_month(self.db, end=utc(2026, 2, 14))
        self.assertEqual(
            [p["month"] for p in points],
            ["Sep 2025", "Oct 2025", "Nov 2025", "Dec 2025", "Jan 2026", "Feb 2026"],
        )


if __name__ == "__main__":
    unittest.main()
