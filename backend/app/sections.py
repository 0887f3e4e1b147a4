from __future__ import annotations

from typing import Optional

from loguru import logger

from .db import transaction
from .errors import BusinessLogicError, EntityNotFound, ValidationError
from .models import Row, Seat, Section, Venue
from .repository import Repositories
from .rows import RowManager
from .seats import SeatStore


def _norm(name: str) -> str:
    return (name or "").strip().casefold()


class SectionManager:
    """
    Sections of a venue.

    Names are unique per venue ignoring case and surrounding whitespace; the
    check runs on create and on rename.
    """

    def __init__(self, repos: Repositories, rows: RowManager, seats: SeatStore):
        self.repos = repos
        self.session = repos.session
        self.rows = rows
        self.seats = seats

    def get_section(self, section_id: int) -> Optional[Section]:
        return self.repos.sections.read(section_id)

    def all_sections(self) -> list[Section]:
        return self.repos.sections.get_all()

    def sections_by_venue(self, venue_id: int) -> list[Section]:
        return self.repos.sections.find(Section.venue_id == venue_id)

    def sections_by_name(self, name: str) -> list[Section]:
        wanted = _norm(name)
        return [s for s in self.all_sections() if _norm(s.name) == wanted]

    def name_taken(self, venue_id: int, name: str, *, exclude_id: Optional[int] = None) -> bool:
        wanted = _norm(name)
        return any(_norm(s.name) == wanted and s.id != exclude_id for s in self.sections_by_venue(venue_id))

    def check_fits(self, venue: Venue, capacity: int, *, exclude_id: Optional[int] = None) -> None:
        """Raise ValidationError unless a section of `capacity` fits in what `venue` has left."""
        used = sum(s.capacity for s in self.sections_by_venue(int(venue.id)) if s.id != exclude_id)
        if used + capacity > venue.capacity:
            raise ValidationError(
                f"venue {venue.id} holds {venue.capacity}; sections already take {used}, {capacity} requested"
            )

    def create_section(self, venue: Optional[Venue], capacity: int, name: str) -> Section:
        with transaction(self.session):
            if venue is None:
                raise BusinessLogicError("venue cannot be None")
            name = (name or "").strip()
            if not name:
                raise ValidationError("section name cannot be empty")
            if capacity <= 0:
                raise ValidationError("section capacity must be greater than zero")
            if self.name_taken(int(venue.id), name):
                raise BusinessLogicError(f"section with name {name!r} already exists in the venue")
            self.check_fits(venue, capacity)
            section =self.repos.sections.create(Section(venue_id=int(venue.id), name=name, capacity=capacity))
        logger.info("created section {} {!r} in venue {} (capacity {})", section.id, name, venue.id, capacity)
        return section

    def update_section(self, section_id: int, name: str, capacity: int) -> Optional[Section]:
        with transaction(self.session):
            section = self.get_section(section_id)
            if section is None:
                return None
            name = (name or "").strip()
            if not name:
                raise ValidationError("section name cannot be empty")
            if capacity <= 0:
                raise ValidationError("section capacity must be greater than zero")
            if self.name_taken(section.venue_id, name, exclude_id=section.id):
                raise BusinessLogicError(f"section with name {name!r} already exists in the venue")
            rows_total = sum(r.capacity for r in self.rows.rows_by_section(section_id))
            if capacity < rows_total:
                raise ValidationError(f"section capacity must be at least {rows_total} (row capacities)")
            self.check_fits(self.repos.venues.read(section.venue_id), capacity, exclude_id=section.id)
            section.name = name
            section.capacity = capacity
            self.repos.sections.update(section)
        logger.info("updated section {} ({!r}, capacity {})", section_id, name, capacity)
        return section

    def delete_section(self, section_id: int) -> None:
        with transaction(self.session):
            if self.get_section(section_id) is None:
                raise EntityNotFound(f"section {section_id} not found")
            self.rows.delete_rows_by_section(section_id)
            self.repos.sections.delete(section_id)
        logger.info("deleted section {}", section_id)

    def delete_sections_by_venue(self, venue_id: int) -> int:
        with transaction(self.session):
            sections = self.sections_by_venue(venue_id)
            for section in sections:
                self.rows.delete_rows_by_section(int(section.id))
            self.repos.sections.delete_where(Section.venue_id == venue_id)
        return len(sections)

    def add_rows_to_section(self, section_id: int, count: int, row_capacity: int) -> list[Row]:
        with transaction(self.session):
            section = self.get_section(section_id)
            if section is None:
                raise EntityNotFound(f"section {section_id} not found")
            if count <= 0:
                raise ValidationError("number of rows must be greater than zero")
            return [self.rows.create_row(section, row_capacity) for _ in range(count)]

    def _seats_in_section(self, section_id: int) -> list[Seat]:
        return [seat for row in self.rows.rows_by_section(section_id) for seat in self.seats.seats_by_row(int(row.id))]

    def available_seats_in_section(self, section_id: int, event_id: int) -> list[Seat]:
        if self.get_section(section_id) is None:
            return []
        return self.seats.available_seats(self._seats_in_section(section_id), event_id)

    def first_available_seat(self, section_id: int, event_id: int) -> Optional[Seat]:
        for row in self.rows.rows_by_section(section_id):
            free = self.seats.available_seats(self.seats.seats_by_row(int(row.id)), event_id)
            if free:
                return free[0]
        return None
