import unittest
from decimal import Decimal
from unittest import mock

from support import make_category, make_customer, make_database, make_item, make_user, utc

from rental_api.core.errors import Conflict, InvalidInput, NotFound
from rental_api.models.enums import ItemStatus, PaymentStatus, RentalStatus, UserRole
from rental_api.models.item import Item
from rental_api.models.rental import Rental
from rental_api.services import rentals


class RentalChargesTests(unittest.TestCase):
    def test_charges_for_six_day_rental(self):
        charges = rentals.compute_charges("15", utc(2026, 2, 14), utc(2026, 2, 20), deposit=50, discount=10)

        self.assertEqual(charges["number_of_days"], 6)
        self.assertEqual(charges["subtotal"], Decimal("90.00"))
        self.assertEqual(charges["total_amount"], Decimal("130.00"))
        self.assertEqual(charges["amount_due"], Decimal("130.00"))

    def test_partial_day_counts_as_full_day(self):
        self.assertEqual(rentals.rental_days(utc(2026, 2, 14, 9), utc(2026, 2, 15, 10)), 2)
        self.assertEqual(rentals.rental_days(utc(2026, 2, 14), utc(2026, 2, 14, 1)), 1)

    def test_end_before_start_is_invalid(self):
        with self.assertRaises(InvalidInput):
            rentals.compute_charges("15", utc(2026, 2, 20), utc(2026, 2, 20))
        with self.assertRaises(InvalidInput):
            rentals.compute_charges("15", utc(2026, 2, 20), utc(2026, 2, 14))

    def test_discount_cannot_make_total_negative(self):
        with self.assertRaises(InvalidInput):
            rentals.compute_charges("15", utc(2026, 2, 14), utc(2026, 2, 15), discount=100)
        # A discount equal to the whole charge is allowed
        charges = rentals.compute_charges("15", utc(2026, 2, 14), utc(2026, 2, 15), deposit=5, discount=20)
        self.assertEqual(charges["total_amount"], Decimal("0.00"))

    def test_money_rejects_values_outside_the_column(self):
        self.assertEqual(rentals.money("99999999.99"), Decimal("99999999.99"))
        for bad in ("1e30", "100000000", "-100000000", "abc", "NaN", "Infinity"):
            with self.subTest(value=bad):
                with self.assertRaises(InvalidInput):
                    rentals.money(bad)

    def test_long_rental_overflowing_subtotal_is_invalid(self):
        with self.assertRaises(InvalidInput):
            rentals.compute_charges("99999999.00", utc(2026, 1, 1), utc(2026, 1, 3))


class RentalLifecycleTests(unittest.TestCase):
    def setUp(self):
        self.database = make_database()
        self.db = self.database.session()
        self.user = make_user(self.db, "staff@rental.test", UserRole.STAFF)
        self.category = make_category(self.db)
        self.item = make_item(self.db, self.category, quantity=5)
        self.customer = make_customer(self.db)

    def tearDown(self):
        self.db.close()
        self.database.dispose()

    def _create(self, **overrides):
        kwargs = dict(
            customer_id=self.customer.id,
            item_id=self.item.id,
            start_date=utc(2026, 2, 14),
            end_date=utc(2026, 2, 20),
            deposit=Decimal("50"),
            discount=Decimal("10"),
        )
        kwargs.update(overrides)
        return rentals.create_rental(self.db, self.user, **kwargs)

    def test_create_snapshots_charges_and_reserves_unit(self):
        rental = self._create()

        self.assertEqual(rental.status, RentalStatus.PENDING)
        self.assertEqual(rental.payment_status, PaymentStatus.UNPAID)
        self.assertEqual(rental.daily_rate, Decimal("15.00"))
        self.assertEqual(rental.number_of_days, 6)
        self.assertEqual(rental.subtotal, Decimal("90.00"))
        self.assertEqual(rental.total_amount, Decimal("130.00"))
        self.assertEqual(rental.amount_due, Decimal("130.00"))
        self.assertEqual(rental.amount_paid + rental.amount_due, rental.total_amount)

        item = self.db.get(Item, self.item.id)
        self.assertEqual(item.quantity, 4)
        self.assertEqual(item.status, ItemStatus.RENTED)

    def test_return_releases_unit(self):
        rental = self._create()
        returned = rentals.return_item(self.db, rental.id, now=utc(2026, 2, 19))

        self.assertEqual(returned.status, RentalStatus.COMPLETED)
        self.assertIsNotNone(returned.return_date)
        item = self.db.get(Item, self.item.id)
        self.assertEqual(item.quantity, 5)
        self.assertEqual(item.status, ItemStatus.AVAILABLE)

    def test_return_twice_conflicts(self):
        rental = self._create()
        rentals.return_item(self.db, rental.id)

        with self.assertRaises(Conflict):
            rentals.return_item(self.db, rental.id)
        self.assertEqual(self.db.get(Item, self.item.id).quantity, 5)

    def test_daily_rate_is_copied_not_linked(self):
        rental = self._create()
        self.item.daily_rate = Decimal("99.00")
        self.db.commit()

        rental = rentals.update_rental(self.db, rental.id, end_date=utc(2026, 2, 21))
        self.assertEqual(rental.daily_rate, Decimal("15.00"))
        self.assertEqual(rental.number_of_days, 7)
        self.assertEqual(rental.subtotal, Decimal("105.00"))
        self.assertEqual(rental.total_amount, Decimal("145.00"))
        self.assertEqual(rental.amount_due, Decimal("145.00"))

    def test_date_edit_keeps_amount_paid(self):
        rental = self._create()
        rental.amount_paid = Decimal("30.00")
        rental.amount_due = Decimal("100.00")
        self.db.commit()

        rental = rentals.update_rental(self.db, rental.id, start_date=utc(2026, 2, 15))
        self.assertEqual(rental.amount_paid, Decimal("30.00"))
        self.assertEqual(rental.total_amount, Decimal("115.00"))
        self.assertEqual(rental.amount_due, Decimal("85.00"))

    def test_date_edit_rejects_inverted_range(self):
        rental = self._create()
        with self.assertRaises(InvalidInput):
            rentals.update_rental(self.db, rental.id, end_date=utc(2026, 2, 10))

    def test_unavailable_item_is_rejected_without_writes(self):
        self.item.status = ItemStatus.MAINTENANCE
        self.db.commit()

        with self.assertRaises(Conflict):
            self._create()
        self.assertEqual(self.db.query(Rental).count(), 0)
        self.assertEqual(self.db.get(Item, self.item.id).quantity, 5)

    def test_failure_after_reserving_rolls_back_rental_and_item(self):
        # compute_charges runs after reserve_unit has flushed the item change
        with mock.patch.object(rentals, "compute_charges", side_effect=RuntimeError("boom")):
            with self.assertRaises(RuntimeError):
                self._create()

        self.assertEqual(self.db.query(Rental).count(), 0)
        item = self.db.get(Item, self.item.id)
        self.assertEqual((item.quantity, item.status), (5, ItemStatus.AVAILABLE))

        # The item is still rentable afterwards
        self.assertEqual(self._create().status, RentalStatus.PENDING)

    def test_failure_while_returning_keeps_rental_open(self):
        rental = self._create()
        with mock.patch.object(rentals.inventory, "release_unit", side_effect=RuntimeError("boom")):
            with self.assertRaises(RuntimeError):
                rentals.return_item(self.db, rental.id)

        rental = self.db.get(Rental, rental.id)
        self.assertEqual(rental.status, RentalStatus.PENDING)
        self.assertIsNone(rental.return_date)
        item = self.db.get(Item, self.item.id)
        self.assertEqual((item.quantity, item.status), (4, ItemStatus.RENTED))

    def test_excessive_discount_is_rejected_without_writes(self):
        with self.assertRaises(InvalidInput):
            self._create(deposit=Decimal("0"), discount=Decimal("500"))
        self.assertEqual(self.db.query(Rental).count(), 0)
        self.assertEqual(self.db.get(Item, self.item.id).quantity, 5)

    def test_zero_quantity_is_rejected(self):
        self.item.quantity = 0
        self.db.commit()
        with self.assertRaises(Conflict):
            self._create()

    def test_missing_customer_or_item(self):
        with self.assertRaises(NotFound):
            self._create(customer_id=9999)
        with self.assertRaises(NotFound):
            self._create(item_id=9999)
        self.assertEqual(self.db.get(Item, self.item.id).quantity, 5)

    def test_status_transitions(self):
        rental = self._create()
        rental = rentals.update_rental(self.db, rental.id, status=RentalStatus.ACTIVE)
        self.assertEqual(rental.status, RentalStatus.ACTIVE)

        # OVERDUE and COMPLETED are not manual transitions
        with self.assertRaises(Conflict):
            rentals.update_rental(self.db, rental.id, status=RentalStatus.OVERDUE)
        with self.assertRaises(Conflict):
            rentals.update_rental(self.db, rental.id, status=RentalStatus.COMPLETED)
        with self.assertRaises(Conflict):
            rentals.update_rental(self.db, rental.id, status=RentalStatus.PENDING)

        rentals.return_item(self.db, rental.id)
        with self.assertRaises(Conflict):
            rentals.update_rental(self.db, rental.id, status=RentalStatus.ACTIVE)

    def test_cancel_releases_unit_and_is_terminal(self):
        rental = self._create()
        rental = rentals.update_rental(self.db, rental.id, status=RentalStatus.CANCELLED)

        self.assertEqual(rental.status, RentalStatus.CANCELLED)
        item = self.db.get(Item, self.item.id)
        self.assertEqual(item.quantity, 5)
        self.assertEqual(item.status, ItemStatus.AVAILABLE)

        with self.assertRaises(Conflict):
            rentals.return_item(self.db, rental.id)
        with self.assertRaises(Conflict):
            rentals.update_rental(self.db, rental.id, status=RentalStatus.ACTIVE)

    def test_same_status_is_noop(self):
        rental = self._create()
        rental = rentals.update_rental(self.db, rental.id, status=RentalStatus.PENDING, notes="call first")
        self.assertEqual(rental.status, RentalStatus.PENDING)
        self.assertEqual(rental.notes, "call first")


class OverdueSweepTests(unittest.TestCase):
    def setUp(self):
        self.database = make_database()
        self.db = self.database.session()
        self.user = make_user(self.db)
        self.category = make_category(self.db)
        self.customer = make_customer(self.db)
        self.items = 0

    def tearDown(self):
        self.db.close()
        self.database.dispose()

    def _item(self):
        # A rental flips its item to RENTED, so each rental here gets its own item
        self.items += 1
        return make_item(self.db, self.category, name=f"Ladder {self.items}", quantity=2)

    def _active(self, end):
        rental = rentals.create_rental(
            self.db, self.user, self.customer.id, self._item().id, utc(2026, 3, 1), end,
        )
        return rentals.update_rental(self.db, rental.id, status=RentalStatus.ACTIVE)

    def test_sweep_marks_only_past_due_active_rentals(self):
        late = self._active(utc(2026, 3, 5))
        on_time = self._active(utc(2026, 3, 20))
        pending = rentals.create_rental(
            self.db, self.user, self.customer.id, self._item().id, utc(2026, 3, 1), utc(2026, 3, 2),
        )

        changed = rentals.sweep_overdue(self.db, now=utc(2026, 3, 10))

        self.assertEqual(changed, [late.id])
        self.assertEqual(self.db.get(Rental, late.id).status, RentalStatus.OVERDUE)
        self.assertEqual(self.db.get(Rental, on_time.id).status, RentalStatus.ACTIVE)
        self.assertEqual(self.db.get(Rental, pending.id).status, RentalStatus.PENDING)

    def test_sweep_is_idempotent(self):
        self._active(utc(2026, 3, 5))
        self._active(utc(2026, 3, 6))
        now = utc(2026, 3, 10)

        first = rentals.sweep_overdue(self.db, now=now)
        overdue_after_first = {r.id for r in rentals.list_by_status(self.db, RentalStatus.OVERDUE)}
        second = rentals.sweep_overdue(self.db, now=now)
        overdue_after_second = {r.id for r in rentals.list_by_status(self.db, RentalStatus.OVERDUE)}

        self.assertEqual(len(first), 2)
        self.assertEqual(second, [])
        self.assertEqual(overdue_after_first, overdue_after_second)

    def test_list_overdue_sweeps_first(self):
        late = self._active(utc(2026, 3, 5))
        overdue = rentals.list_overdue(self.db, now=utc(2026, 3, 10))
        self.assertEqual([r.id for r in overdue], [late.id])

    def test_overdue_rental_can_be_returned(self):
        late = self._active(utc(2026, 3, 5))
        rentals.sweep_overdue(self.db, now=utc(2026, 3, 10))

        returned = rentals.return_item(self.db, late.id, now=utc(2026, 3, 11))
        self.assertEqual(returned.status, RentalStatus.COMPLETED)
        item = self.db.get(Item, late.item_id)
        self.assertEqual(item.quantity, 2)
        self.assertEqual(item.status, ItemStatus.AVAILABLE)


if __name__ == "__main__":
    unittest.main()
