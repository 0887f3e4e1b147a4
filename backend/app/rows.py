from __future__ import annotations

from typing import Iterable, Optional

from loguru import logger

from .db import transaction
from .errors import BusinessLogicError, EntityNotFound, ValidationError
from .models import Row, Seat, Section
from .recommend import closest_seat
from .repository import Repositories
from .seats import SeatStore


class RowManager:
    def __init__(self, repos: Repositories, seats: SeatStore):
        self.repos = repos
        self.session = repos.session
        self.seats = seats

    def get_row(self, row_id: int) -> Optional[Row]:
        return self.repos.rows.read(row_id)

    def all_rows(self) -> list[Row]:
        return self.repos.rows.get_all()

    def rows_by_section(self, section_id: int) -> list[Row]:
        return self.repos.rows.find(Row.section_id == section_id)

    def check_fits(self, section: Section, capacity: int, *, exclude_id: Optional[int] = None) -> None:
        """Raise ValidationError unless a row of `capacity` fits in what `section` has left."""
        used = sum(r.capacity for r in self.rows_by_section(int(section.id)) if r.id != exclude_id)
        if used + capacity > section.capacity:
            raise ValidationError(
                f"section {section.id} holds {section.capacity} seats; rows already take {used}, {capacity} requested"
            )

    def create_row(self, section: Optional[Section], capacity: int) -> Row:
        with transaction(self.session):
            if section is None:
                raise BusinessLogicError("section cannot be None")
            if capacity <= 0:
                raise ValidationError("row capacity must be greater than zero")
            self.check_fits(section, capacity)
            row = self.repos.rows.create(Row(section_id=int(section.id), capacity=capacity))
        logger.info("created row {} in section {} (capacity {})", row.id, section.id, capacity)
        return row

    def update_row(self, row_id: int, capacity: int) -> Row:
        with transaction(self.session):
            row = self.get_row(row_id)
            if row is None:
                raise EntityNotFound(f"row {row_id} not found")
            present = len(self.seats.seats_by_row(row_id))
            if capacity <= 0 or capacity < present:
                raise ValidationError(f"row capacity must be positive and at least {present} (seats present)")
            self.check_fits(self.repos.sections.read(row.section_id), capacity, exclude_id=row.id)
            row.capacity = capacity
            self.repos.rows.update(row)
        logger.info("updated row {} (capacity {})", row_id, capacity)
        return row

    def add_seats(self, row_id: int, count: int) -> list[Seat]:
        """
        Append `count` seats numbered after the highest existing seat number.

        An empty row gets seats 1..count.
        """
        with transaction(self.session):
            row = self.get_row(row_id)
            if row is None:
                raise EntityNotFound(f"row {row_id} not found")
            if count <= 0:
                raise ValidationError("number of seats must be greater than zero")

            existing_max = max((s.seat_number for s in self.seats.seats_by_row(row_id)), default=0)
            numbers = list(range(existing_max + 1, existing_max + 1 + count))
            self.seats.check_room(row, numbers)
            created = [self.repos.seats.create(Seat(row_id=row_id, seat_number=n)) for n in numbers]
        logger.info("added seats {}..{} to row {}", numbers[0], numbers[-1], row_id)
        return created

    def delete_row(self, row_id: int) -> None:
        with transaction(self.session):
            if self.get_row(row_id) is None:
                raise EntityNotFound(f"row {row_id} not found")
            seats = self.seats.delete_seats_by_rows([row_id])
            self.repos.rows.delete(row_id)
        logger.info("deleted row {} ({} seats)", row_id, seats)

    def delete_rows_by_section(self, section_id: int) -> int:
        with transaction(self.session):
            row_ids = [int(r.id) for r in self.rows_by_section(section_id)]
            if not row_ids:
                return 0
            seats = self.seats.delete_seats_by_rows(row_ids)
            deleted = self.repos.rows.delete_where(Row.section_id == section_id)
        logger.info("deleted {} rows ({} seats) from section {}", deleted, seats, section_id)
        return deleted

    def available_seats_in_row(self, row_id: int, event_id: int) -> list[Seat]:
        if self.get_row(row_id) is None:
            return []
        return self.seats.available_seats(self.seats.seats_by_row(row_id), event_id)

    def recommend_closest_seat(
        self,
        section_id: int,
        row_id: int,
        selected_seat_numbers: Iterable[int],
        event_id: int,
    ) -> Optional[Seat]:
        if self.repos.sections.read(section_id) is None:
            return None
        row = self.get_row(row_id)
        if row is None or row.section_id != section_id:
            return None
        return closest_seat(self.available_seats_in_row(row_id, event_id), selected_seat_numbers)
