from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Mapping, Optional, Sequence

from loguru import logger

from .models import Customer, Event, Seat, Section, Venue

if TYPE_CHECKING:
    from .sections import SectionManager


def closest_seat(candidates: Sequence[Seat], selected_numbers: Iterable[int]) -> Optional[Seat]:
    """
    Pick the candidate nearest to any already-selected seat number.

    Selected numbers are never returned. Ties keep the candidates' order, so
    the first seat in stored order wins; with nothing selected that is simply
    the first candidate.
    """
    selected = set(selected_numbers)
    pool = [s for s in candidates if s.seat_number not in selected]
    if not pool:
        return None
    if not selected:
        return pool[0]
    return min(pool, key=lambda s: min(abs(s.seat_number - n) for n in selected))


def rank_sections(sections: Sequence[Section], preferences: Mapping[int, int]) -> list[Section]:
    # sorted() stays stable with reverse=True: equal weights keep venue order.
    return sorted(sections, key=lambda s: preferences.get(int(s.id), 0), reverse=True)


class RecommendationEngine:
    """Read-only seat suggestions across a whole venue."""

    def __init__(self, sections: "SectionManager"):
        self.sections = sections

    def recommend_seat(
        self,
        customer: Optional[Customer],
        venue: Optional[Venue],
        event: Optional[Event],
    ) -> Optional[Seat]:
        if venue is None or event is None:
            return None
        preferences = customer.preferences() if customer is not None else {}

        for section in rank_sections(self.sections.sections_by_venue(int(venue.id)), preferences):
            seat = self.sections.first_available_seat(int(section.id), int(event.id))
            if seat is not None:
                logger.debug(
                    "recommending seat {} in section {!r} (weight {}) for event {}",
                    seat.id,
                    section.name,
                    preferences.get(int(section.id), 0),
                    event.id,
                )
                return seat
        return None
