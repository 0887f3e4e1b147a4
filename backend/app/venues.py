from __future__ import annotations

from typing import Optional

from loguru import logger

from .db import transaction
from .errors import BusinessLogicError, EntityNotFound, ValidationError
from .models import Event, Seat, Section, Venue
from .repository import Repositories
from .sections import SectionManager
from .seats import SeatStore


DEFAULT_SECTION_NAME = "Default Section"


def _validate_venue_fields(name: str, location: str, capacity: int) -> None:
    if not name or not name.strip():
        raise BusinessLogicError("venue name cannot be empty")
    if not location or not location.strip():
        raise BusinessLogicError("venue location cannot be empty")
    if capacity <= 0:
        raise ValidationError("venue capacity must be greater than zero")


class VenueManager:
    """
    Entry point for the seating hierarchy.

    Venues own their sections; deleting a venue takes every section, row,
    seat and reservation beneath it down in the same transaction. Tickets that
    pointed at removed seats survive with their seat unbound.
    """

    def __init__(self, repos: Repositories, sections: SectionManager, seats: SeatStore):
        self.repos = repos
        self.session = repos.session
        self.sections = sections
        self.seats = seats

    def get_venue(self, venue_id: int) -> Optional[Venue]:
        return self.repos.venues.read(venue_id)

    def all_venues(self) -> list[Venue]:
        return self.repos.venues.get_all()

    def find_by_name(self, name: str) -> Optional[Venue]:
        wanted = (name or "").strip().casefold()
        return next((v for v in self.all_venues() if v.name.casefold() == wanted), None)

    def find_by_location_or_name(self, keyword: str) -> list[Venue]:
        wanted = (keyword or "").strip().casefold()
        return [v for v in self.all_venues() if v.name.casefold() == wanted or v.location.casefold() == wanted]

    def create_venue(self, name: str, location: str, capacity: int, has_seats: bool) -> Venue:
        with transaction(self.session):
            _validate_venue_fields(name, location, capacity)
            venue = self.repos.venues.create(
                Venue(name=name.strip(), location=location.strip(), capacity=capacity, has_seats=has_seats)
            )
            if not has_seats:
                self.sections.create_section(venue, capacity, DEFAULT_SECTION_NAME)
        logger.info("created venue {} {!r} at {!r} (capacity {}, seated={})", venue.id, venue.name, venue.location, capacity, has_seats)
        return venue

    def update_venue(self, venue_id: int, name: str, location: str, capacity: int, has_seats: bool) -> Optional[Venue]:
        with transaction(self.session):
            venue = self.get_venue(venue_id)
            if venue is None:
                return None
            _validate_venue_fields(name, location, capacity)
            venue.name = name.strip()
            venue.location = location.strip()
            venue.capacity = capacity
            venue.has_seats = has_seats
            self.repos.venues.update(venue)
            if not has_seats:
                self._sync_default_section(venue)
            used = sum(s.capacity for s in self.sections.sections_by_venue(venue_id))
            if used > capacity:
                raise ValidationError(f"venue capacity must be at least {used} (section capacities)")
        logger.info("updated venue {}", venue_id)
        return venue

    def _sync_default_section(self, venue: Venue) -> None:
        # A general admission venue's Default Section tracks the venue capacity.
        sections = self.sections.sections_by_venue(int(venue.id))
        default = next((s for s in sections if s.name == DEFAULT_SECTION_NAME), None)
        if default is None:
            if not sections:
                self.sections.create_section(venue, venue.capacity, DEFAULT_SECTION_NAME)
        elif default.capacity != venue.capacity:
            self.sections.update_section(int(default.id), default.name, venue.capacity)

    def add_sections_to_venue(self, venue_id: int, count: int, section_capacity: int, base_name: str) -> list[Section]:
        with transaction(self.session):
            venue = self.get_venue(venue_id)
            if venue is None:
                raise EntityNotFound(f"venue {venue_id} not found")
            if count <= 0:
                raise ValidationError("number of sections must be greater than zero")

            names = [f"{(base_name or '').strip()} {i}" for i in range(1, count + 1)]
            for name in names:
                if self.sections.name_taken(venue_id, name):
                    raise ValidationError(f"duplicate section name: {name}")
            created = [self.sections.create_section(venue, section_capacity, name) for name in names]
        logger.info("added {} sections to venue {}", len(created), venue_id)
        return created

    def delete_venue(self, venue_id: int) -> bool:
        with transaction(self.session):
            if self.get_venue(venue_id) is None:
                return False
            sections = self.sections.delete_sections_by_venue(venue_id)
            # Events are not ours to delete; they lose their venue like tickets lose their seat.
            self.repos.events.update_where({"venue_id": None}, Event.venue_id == venue_id)
            self.repos.venues.delete(venue_id)
        logger.info("deleted venue {} ({} sections)", venue_id, sections)
        return True

    def available_seats_in_venue(self, venue_id: int, event_id: int) -> list[Seat]:
        venue = self.get_venue(venue_id)
        if venue is None or not venue.has_seats:
            return []
        seats: list[Seat] = []
        for section in self.sections.sections_by_venue(venue_id):
            seats.extend(self.sections.available_seats_in_section(int(section.id), event_id))
        return seats

    def available_seat_count(self, venue_id: int, event_id: int) -> int:
        return len(self.available_seats_in_venue(venue_id, event_id))

    def is_sold_out(self, event: Event) -> bool:
        """
        True when the event's venue has no seat left for it.

        General admission venues are never reported sold out here: without
        seats there is nothing for this subsystem to count.
        """
        venue = self.get_venue(event.venue_id) if event.venue_id is not None else None
        if venue is None:
            raise EntityNotFound(f"venue for event {event.id} not found")
        if not venue.has_seats:
            return False
        return self.available_seat_count(int(venue.id), int(event.id)) == 0
