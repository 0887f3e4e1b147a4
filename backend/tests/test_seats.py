import unittest
from unittest import mock

from backend.app.errors import BusinessLogicError, EntityNotFound, ValidationError
from backend.app.models import Reservation, TicketType

from seating_testcase import SeatingTestCase


class TestSeatLifecycle(SeatingTestCase):
    def test_create_seat_appends_to_row(self):
        row = self.make_row(seat_numbers=(), capacity=5)
        seat = self.svc.seats.create_seat(row.id, 7)
        self.assertEqual(seat.row_id, row.id)
        self.assertEqual([s.seat_number for s in self.svc.seats.seats_by_row(row.id)], [7])
        self.assertFalse(self.svc.seats.is_reserved(seat.id))

    def test_create_seat_missing_row(self):
        with self.assertRaises(EntityNotFound):
            self.svc.seats.create_seat(999, 1)

    def test_create_seat_duplicate_number(self):
        row = self.make_row(seat_numbers=(1,), capacity=3)
        with self.assertRaises(ValidationError):
            self.svc.seats.create_seat(row.id, 1)

    def test_create_seat_respects_row_capacity(self):
        row = self.make_row(seat_numbers=(1, 2), capacity=2)
        with self.assertRaises(ValidationError):
            self.svc.seats.create_seat(row.id, 3)

    def test_delete_seat(self):
        row = self.make_row(seat_numbers=(1, 2))
        seat = self.svc.seats.seats_by_row(row.id)[0]
        self.svc.seats.delete_seat(seat.id)
        self.assertIsNone(self.svc.seats.get_seat(seat.id))
        self.assertEqual([s.seat_number for s in self.svc.seats.seats_by_row(row.id)], [2])

    def test_delete_seat_missing(self):
        with self.assertRaises(EntityNotFound):
            self.svc.seats.delete_seat(42)

    def test_delete_seat_releases_reservation_and_unbinds_ticket(self):
        row = self.make_row(seat_numbers=(1,))
        seat = self.svc.seats.seats_by_row(row.id)[0]
        event = self.make_event(self.venue_of(row))
        ticket = self.svc.seats.reserve(seat.id, event, self.make_customer(), 50.0, TicketType.vip)

        self.svc.seats.delete_seat(seat.id)

        self.assertEqual(self.svc.repos.reservations.get_all(), [])
        kept = self.svc.repos.tickets.read(ticket.id)
        self.assertIsNotNone(kept)
        self.assertIsNone(kept.seat_id)


class TestReservations(SeatingTestCase):
    def setUp(self):
        super().setUp()
        row = self.make_row(seat_numbers=(1, 2))
        self.seat = self.svc.seats.seats_by_row(row.id)[0]
        self.venue = self.venue_of(row)
        self.event = self.make_event(self.venue)
        self.customer = self.make_customer()

    def test_reserve_binds_ticket(self):
        ticket = self.svc.seats.reserve(self.seat.id, self.event, self.customer, 25.5, TicketType.early_access)
        self.assertEqual(ticket.seat_id, self.seat.id)
        self.assertEqual(ticket.event_id, self.event.id)
        self.assertEqual(ticket.customer_id, self.customer.id)
        self.assertEqual(ticket.price, 25.5)
        self.assertEqual(ticket.ticket_type, TicketType.early_access)
        self.assertTrue(self.svc.seats.is_reserved(self.seat.id))
        self.assertTrue(self.svc.seats.is_reserved_for_event(self.seat.id, self.event.id))
        self.assertEqual(self.svc.seats.ticket_for(self.seat.id, self.event.id).id, ticket.id)

    def test_reserve_requires_event_and_customer(self):
        with self.assertRaises(ValidationError):
            self.svc.seats.reserve(self.seat.id, None, self.customer, 10.0)
        with self.assertRaises(ValidationError):
            self.svc.seats.reserve(self.seat.id, self.event, None, 10.0)
        self.assertFalse(self.svc.seats.is_reserved(self.seat.id))
        self.assertEqual(self.svc.repos.tickets.get_all(), [])

    def test_reserve_rejects_event_at_another_venue(self):
        elsewhere = self.svc.venues.create_venue("Hall", "Town", 100, True)
        with self.assertRaises(BusinessLogicError):
            self.svc.seats.reserve(self.seat.id, self.make_event(elsewhere), self.customer, 10.0)
        with self.assertRaises(BusinessLogicError):
            self.svc.seats.reserve(self.seat.id, self.make_event(name="Unplaced"), self.customer, 10.0)
        self.assertFalse(self.svc.seats.is_reserved(self.seat.id))
        self.assertEqual(self.svc.repos.tickets.get_all(), [])
        self.assertEqual(self.svc.seats.venue_id_of(self.seat), self.venue.id)

    def test_reserve_missing_seat(self):
        with self.assertRaises(EntityNotFound):
            self.svc.seats.reserve(999, self.event, self.customer, 10.0)

    def test_double_reserve_fails(self):
        self.svc.seats.reserve(self.seat.id, self.event, self.customer, 10.0)
        with self.assertRaises(ValidationError):
            self.svc.seats.reserve(self.seat.id, self.event, self.make_customer(username="bob"), 10.0)
        self.assertEqual(len(self.svc.repos.tickets.get_all()), 1)

    def test_reservation_is_scoped_per_event(self):
        matinee = self.make_event(self.venue, name="Matinee")
        self.svc.seats.reserve(self.seat.id, self.event, self.customer, 10.0)

        self.assertFalse(self.svc.seats.is_reserved_for_event(self.seat.id, matinee.id))
        self.svc.seats.reserve(self.seat.id, matinee, self.customer, 10.0)
        self.assertTrue(self.svc.seats.is_reserved_for_event(self.seat.id, matinee.id))
        self.assertTrue(self.svc.seats.is_reserved_for_event(self.seat.id, self.event.id))

    def test_unreserve_not_reserved_fails(self):
        with self.assertRaises(ValidationError):
            self.svc.seats.unreserve(self.seat.id)
        with self.assertRaises(ValidationError):
            self.svc.seats.unreserve(999)

    def test_reserve_unreserve_reserve(self):
        first = self.svc.seats.reserve(self.seat.id, self.event, self.customer, 10.0)
        self.svc.seats.unreserve(self.seat.id)
        self.assertFalse(self.svc.seats.is_reserved(self.seat.id))
        self.assertIsNone(self.svc.repos.tickets.read(first.id).seat_id)

        second = self.svc.seats.reserve(self.seat.id, self.event, self.customer, 12.0)
        self.assertNotEqual(first.id, second.id)
        self.assertTrue(self.svc.seats.is_reserved_for_event(self.seat.id, self.event.id))
        self.assertEqual(self.svc.seats.ticket_for(self.seat.id, self.event.id).id, second.id)

    def test_unreserve_needs_event_when_held_for_several(self):
        matinee = self.make_event(self.venue, name="Matinee")
        self.svc.seats.reserve(self.seat.id, self.event, self.customer, 10.0)
        self.svc.seats.reserve(self.seat.id, matinee, self.customer, 10.0)

        with self.assertRaises(ValidationError):
            self.svc.seats.unreserve(self.seat.id)

        self.svc.seats.unreserve(self.seat.id, matinee.id)
        self.assertFalse(self.svc.seats.is_reserved_for_event(self.seat.id, matinee.id))
        self.assertTrue(self.svc.seats.is_reserved_for_event(self.seat.id, self.event.id))

    def test_unreserve_wrong_event_fails(self):
        other = self.make_event(self.venue, name="Other")
        self.svc.seats.reserve(self.seat.id, self.event, self.customer, 10.0)
        with self.assertRaises(ValidationError):
            self.svc.seats.unreserve(self.seat.id, other.id)

    def test_concurrent_insert_surfaces_as_validation_error(self):
        self.svc.seats.reserve(self.seat.id, self.event, self.customer, 10.0)
        # Forget what this session knows, as a second writer would.
        self.session.expunge_all()

        with mock.patch.object(self.svc.seats, "is_reserved_for_event", return_value=False):
            with self.assertRaises(ValidationError):
                self.svc.seats.reserve(self.seat.id, self.event, self.customer, 10.0)

        self.assertEqual(len(self.svc.repos.reservations.find(Reservation.seat_id == self.seat.id)), 1)
        self.assertEqual(len(self.svc.repos.tickets.get_all()), 1)

    def test_available_seats_excludes_reserved_for_event_only(self):
        seats = self.svc.seats.seats_by_row(self.seat.row_id)
        other = self.make_event(self.venue, name="Other")
        self.svc.seats.reserve(self.seat.id, self.event, self.customer, 10.0)

        free = self.svc.seats.available_seats(seats, self.event.id)
        self.assertEqual([s.seat_number for s in free], [2])
        self.assertEqual(len(self.svc.seats.available_seats(seats, other.id)), 2)
        self.assertFalse(self.svc.seats.is_available(self.seat, self.event.id))


if __name__ == "__main__":
    unittest.main()
