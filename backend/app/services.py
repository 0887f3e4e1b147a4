from __future__ import annotations

from dataclasses import dataclass

from sqlmodel import Session

from .recommend import RecommendationEngine
from .repository import Repositories
from .rows import RowManager
from .seats import SeatStore
from .sections import SectionManager
from .venues import VenueManager


@dataclass
class Services:
    repos: Repositories
    seats: SeatStore
    rows: RowManager
    sections: SectionManager
    venues: VenueManager
    recommendations: RecommendationEngine


def build_services(session: Session) -> Services:
    # Wired leaves first; each manager only sees the collaborators it is handed.
    repos = Repositories.for_session(session)
    seats = SeatStore(repos)
    rows = RowManager(repos, seats)
    sections = SectionManager(repos, rows, seats)
    venues = VenueManager(repos, sections, seats)
    return Services(
        repos=repos,
        seats=seats,
        rows=rows,
        sections=sections,
        venues=venues,
        recommendations=RecommendationEngine(sections),
    )
