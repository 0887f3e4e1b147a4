from __future__ import annotations

from typing import Iterable, Optional, Sequence

from loguru import logger
from sqlalchemy.exc import IntegrityError

from .db import transaction
from .errors import BusinessLogicError, EntityNotFound, ValidationError
from .models import Customer, Event, Reservation, Row, Seat, Ticket, TicketType
from .repository import Repositories


class SeatStore:
    """
    Seat records and their reservations.

    Reservations are keyed by (seat_id, event_id): the same physical seat can be
    sold once per event. A seat is available for an event iff no reservation
    exists for that pair; every availability query in the package goes through
    available_seats() so row, section and venue answers agree.
    """

    def __init__(self, repos: Repositories):
        self.repos = repos
        self.session = repos.session

    # Lookups

    def get_seat(self, seat_id: int) -> Optional[Seat]:
        return self.repos.seats.read(seat_id)

    def all_seats(self) -> list[Seat]:
        return self.repos.seats.get_all()

    def seats_by_row(self, row_id: int) -> list[Seat]:
        return self.repos.seats.find(Seat.row_id == row_id)

    def venue_id_of(self, seat: Seat) -> Optional[int]:
        row = self.repos.rows.read(seat.row_id)
        section = self.repos.sections.read(row.section_id) if row is not None else None
        return section.venue_id if section is not None else None

    def ticket_for(self, seat_id: int, event_id: int) -> Optional[Ticket]:
        reservation = self.repos.reservations.read((seat_id, event_id))
        if reservation is None:
            return None
        return self.repos.tickets.read(reservation.ticket_id)

    # Availability

    def is_reserved_for_event(self, seat_id: int, event_id: int) -> bool:
        return self.repos.reservations.read((seat_id, event_id)) is not None

    def is_reserved(self, seat_id: int) -> bool:
        return self.repos.reservations.first(Reservation.seat_id == seat_id) is not None

    def is_available(self, seat: Seat, event_id: int) -> bool:
        return not self.is_reserved_for_event(int(seat.id), event_id)

    def available_seats(self, seats: Sequence[Seat], event_id: int) -> list[Seat]:
        """Filter `seats` down to those free for `event_id`, keeping their order."""
        if not seats:
            return []
        seat_ids = [int(s.id) for s in seats]
        taken = {
            r.seat_id
            for r in self.repos.reservations.find(
                Reservation.event_id == event_id,
                Reservation.seat_id.in_(seat_ids),
            )
        }
        return [s for s in seats if s.id not in taken]

    # Seat lifecycle

    def check_room(self, row: Row, seat_numbers: Iterable[int]) -> None:
        """Raise ValidationError unless `seat_numbers` can be added to `row`."""
        numbers = list(seat_numbers)
        bad = [n for n in numbers if n < 1]
        if bad:
            raise ValidationError(f"seat numbers must be positive: {bad}")
        if len(set(numbers)) != len(numbers):
            raise ValidationError("seat numbers must be unique")

        existing = self.seats_by_row(int(row.id))
        taken = {s.seat_number for s in existing}
        clashes = sorted(n for n in numbers if n in taken)
        if clashes:
            raise ValidationError(f"row {row.id} already has seat numbers {clashes}")
        if len(existing) + len(numbers) > row.capacity:
            raise ValidationError(
                f"row {row.id} holds at most {row.capacity} seats ({len(existing)} present, {len(numbers)} requested)"
            )

    def create_seat(self, row_id: int, seat_number: int) -> Seat:
        with transaction(self.session):
            row = self.repos.rows.read(row_id)
            if row is None:
                raise EntityNotFound(f"row {row_id} not found")
            self.check_room(row, [seat_number])
            seat = self.repos.seats.create(Seat(row_id=row_id, seat_number=seat_number))
        logger.info("created seat {} (number {}) in row {}", seat.id, seat.seat_number, row_id)
        return seat

    def release_seats(self, seat_ids: list[int]) -> None:
        """Drop the seats' reservations and unbind their tickets."""
        if not seat_ids:
            return
        with transaction(self.session):
            unbound = self.repos.tickets.update_where({"seat_id": None}, Ticket.seat_id.in_(seat_ids))
            dropped = self.repos.reservations.delete_where(Reservation.seat_id.in_(seat_ids))
        if dropped or unbound:
            logger.info("released {} reservation(s), unbound {} ticket(s)", dropped, unbound)

    def delete_seat(self, seat_id: int) -> None:
        with transaction(self.session):
            seat = self.get_seat(seat_id)
            if seat is None:
                raise EntityNotFound(f"seat {seat_id} not found")
            self.release_seats([seat_id])
            self.repos.seats.delete(seat_id)
        logger.info("deleted seat {}", seat_id)

    def delete_seats_by_rows(self, row_ids: list[int]) -> int:
        if not row_ids:
            return 0
        with transaction(self.session):
            seat_ids = [int(s.id) for s in self.repos.seats.find(Seat.row_id.in_(row_ids))]
            self.release_seats(seat_ids)
            deleted = self.repos.seats.delete_where(Seat.row_id.in_(row_ids))
        return deleted

    # Reservation lifecycle

    def reserve(
        self,
        seat_id: int,
        event: Optional[Event],
        customer: Optional[Customer],
        price: float = 0.0,
        ticket_type: TicketType = TicketType.standard,
    ) -> Ticket:
        with transaction(self.session):
            seat = self.get_seat(seat_id)
            if seat is None:
                raise EntityNotFound(f"seat {seat_id} not found")
            if event is None:
                raise ValidationError("event cannot be None")
            if customer is None:
                raise ValidationError("customer cannot be None")
            if event.venue_id is None or event.venue_id != self.venue_id_of(seat):
                raise BusinessLogicError(f"seat {seat_id} is not in the venue of event {event.id}")
            if self.is_reserved_for_event(seat_id, int(event.id)):
                raise ValidationError(f"seat {seat_id} is already reserved for event {event.id}")

            ticket = self.repos.tickets.create(
                Ticket(
                    event_id=int(event.id),
                    customer_id=int(customer.id),
                    seat_id=seat_id,
                    price=float(price),
                    ticket_type=ticket_type,
                )
            )
            try:
                self.repos.reservations.create(
                    Reservation(
                        seat_id=seat_id,
                        event_id=int(event.id),
                        ticket_id=int(ticket.id),
                        customer_id=int(customer.id),
                    )
                )
            except IntegrityError as e:
                # Lost a race with another writer for the same (seat, event) key.
                raise ValidationError(f"seat {seat_id} is already reserved for event {event.id}") from e
        logger.info("reserved seat {} for event {} (ticket {}, customer {})", seat_id, event.id, ticket.id, customer.id)
        return ticket

    def unreserve(self, seat_id: int, event_id: Optional[int] = None) -> None:
        """
        Release a reservation and unbind its ticket.

        Without `event_id` the seat's single reservation is released; a seat
        held for several events needs the event spelled out.
        """
        with transaction(self.session):
            criteria = [Reservation.seat_id == seat_id]
            if event_id is not None:
                criteria.append(Reservation.event_id == event_id)
            held = self.repos.reservations.find(*criteria)
            if not held:
                raise ValidationError(f"seat {seat_id} is not reserved")
            if len(held) > 1:
                raise ValidationError(f"seat {seat_id} is reserved for {len(held)} events; event_id is required")

            reservation = held[0]
            ticket = self.repos.tickets.read(reservation.ticket_id)
            if ticket is not None:
                ticket.seat_id = None
                self.repos.tickets.update(ticket)
            released_event = reservation.event_id
            self.repos.reservations.delete((seat_id, released_event))
        logger.info("unreserved seat {} for event {}", seat_id, released_event)
