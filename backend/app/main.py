from __future__ import annotations

from typing import Iterator, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from sqlmodel import Session

from .db import get_session, init_db, transaction
from .errors import SeatingError
from .logging_config import configure_logging
from .models import Customer, Event, Seat
from .schemas import (
    ClosestSeatRequest,
    CustomerCreate,
    EventCreate,
    RecommendationRequest,
    ReserveRequest,
    RowBulkCreate,
    RowCreate,
    RowUpdate,
    SeatBulkCreate,
    SeatCreate,
    SectionBulkCreate,
    SectionCreate,
    SectionUpdate,
    UnreserveRequest,
    VenueCreate,
    VenueUpdate,
)
from .services import Services, build_services


app = FastAPI(title="Venue Seating & Reservation API", version="0.2.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _startup() -> None:
    configure_logging()
    init_db()


@app.exception_handler(SeatingError)
async def _seating_error(request: Request, exc: SeatingError) -> JSONResponse:
    logger.warning("{} {} rejected ({}): {}", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def _session() -> Iterator[Session]:
    with get_session() as session:
        yield session


def _services(session: Session = Depends(_session)) -> Services:
    return build_services(session)


def _seat_list(seats: list[Seat]) -> list[dict]:
    return [s.model_dump() for s in seats]


def _event_or_404(svc: Services, event_id: int) -> Event:
    event = svc.repos.events.read(event_id)
    if not event:
        raise HTTPException(status_code=404, detail="event not found")
    return event


@app.get("/health")
def health() -> dict:
    return {"ok": True}


# Venues


@app.post("/venues")
def create_venue(payload: VenueCreate, svc: Services = Depends(_services)) -> dict:
    v = svc.venues.create_venue(payload.name, payload.location, payload.capacity, payload.has_seats)
    return v.model_dump()


@app.get("/venues")
def list_venues(keyword: Optional[str] = None, svc: Services = Depends(_services)) -> list[dict]:
    venues = svc.venues.find_by_location_or_name(keyword) if keyword else svc.venues.all_venues()
    return [v.model_dump() for v in venues]


@app.get("/venues/{venue_id}")
def get_venue(venue_id: int, svc: Services = Depends(_services)) -> dict:
    v = svc.venues.get_venue(venue_id)
    if not v:
        raise HTTPException(status_code=404, detail="venue not found")
    return v.model_dump()


@app.put("/venues/{venue_id}")
def update_venue(venue_id: int, payload: VenueUpdate, svc: Services = Depends(_services)) -> dict:
    v = svc.venues.update_venue(venue_id, payload.name, payload.location, payload.capacity, payload.has_seats)
    if not v:
        raise HTTPException(status_code=404, detail="venue not found")
    return v.model_dump()


@app.delete("/venues/{venue_id}")
def delete_venue(venue_id: int, svc: Services = Depends(_services)) -> dict:
    if not svc.venues.delete_venue(venue_id):
        raise HTTPException(status_code=404, detail="venue not found")
    return {"deleted": True}


@app.post("/venues/{venue_id}/sections")
def create_section(venue_id: int, payload: SectionCreate, svc: Services = Depends(_services)) -> dict:
    venue = svc.venues.get_venue(venue_id)
    if not venue:
        raise HTTPException(status_code=404, detail="venue not found")
    s = svc.sections.create_section(venue, payload.capacity, payload.name)
    return s.model_dump()


@app.post("/venues/{venue_id}/sections/bulk")
def add_sections(venue_id: int, payload: SectionBulkCreate, svc: Services = Depends(_services)) -> dict:
    created = svc.venues.add_sections_to_venue(venue_id, payload.count, payload.capacity, payload.base_name)
    return {"created": len(created), "section_ids": [int(s.id) for s in created]}


@app.get("/venues/{venue_id}/sections")
def list_sections(venue_id: int, svc: Services = Depends(_services)) -> list[dict]:
    if not svc.venues.get_venue(venue_id):
        raise HTTPException(status_code=404, detail="venue not found")
    return [s.model_dump() for s in svc.sections.sections_by_venue(venue_id)]


@app.get("/venues/{venue_id}/available-seats")
def venue_available_seats(venue_id: int, event_id: int, svc: Services = Depends(_services)) -> list[dict]:
    _event_or_404(svc, event_id)
    return _seat_list(svc.venues.available_seats_in_venue(venue_id, event_id))


# Sections


@app.get("/sections")
def find_sections(name: str, svc: Services = Depends(_services)) -> list[dict]:
    return [s.model_dump() for s in svc.sections.sections_by_name(name)]


@app.put("/sections/{section_id}")
def update_section(section_id: int, payload: SectionUpdate, svc: Services = Depends(_services)) -> dict:
    s = svc.sections.update_section(section_id, payload.name, payload.capacity)
    if not s:
        raise HTTPException(status_code=404, detail="section not found")
    return s.model_dump()


@app.delete("/sections/{section_id}")
def delete_section(section_id: int, svc: Services = Depends(_services)) -> dict:
    svc.sections.delete_section(section_id)
    return {"deleted": True}


@app.post("/sections/{section_id}/rows")
def create_row(section_id: int, payload: RowCreate, svc: Services = Depends(_services)) -> dict:
    section = svc.sections.get_section(section_id)
    if not section:
        raise HTTPException(status_code=404, detail="section not found")
    r = svc.rows.create_row(section, payload.capacity)
    return r.model_dump()


@app.post("/sections/{section_id}/rows/bulk")
def add_rows(section_id: int, payload: RowBulkCreate, svc: Services = Depends(_services)) -> dict:
    created = svc.sections.add_rows_to_section(section_id, payload.count, payload.capacity)
    return {"created": len(created), "row_ids": [int(r.id) for r in created]}


@app.get("/sections/{section_id}/rows")
def list_rows(section_id: int, svc: Services = Depends(_services)) -> list[dict]:
    if not svc.sections.get_section(section_id):
        raise HTTPException(status_code=404, detail="section not found")
    return [r.model_dump() for r in svc.rows.rows_by_section(section_id)]


@app.get("/sections/{section_id}/available-seats")
def section_available_seats(section_id: int, event_id: int, svc: Services = Depends(_services)) -> list[dict]:
    _event_or_404(svc, event_id)
    return _seat_list(svc.sections.available_seats_in_section(section_id, event_id))


# Rows


@app.put("/rows/{row_id}")
def update_row(row_id: int, payload: RowUpdate, svc: Services = Depends(_services)) -> dict:
    return svc.rows.update_row(row_id, payload.capacity).model_dump()


@app.delete("/rows/{row_id}")
def delete_row(row_id: int, svc: Services = Depends(_services)) -> dict:
    svc.rows.delete_row(row_id)
    return {"deleted": True}


@app.post("/rows/{row_id}/seats")
def create_seat(row_id: int, payload: SeatCreate, svc: Services = Depends(_services)) -> dict:
    return svc.seats.create_seat(row_id, payload.seat_number).model_dump()


@app.post("/rows/{row_id}/seats/bulk")
def add_seats(row_id: int, payload: SeatBulkCreate, svc: Services = Depends(_services)) -> dict:
    created = svc.rows.add_seats(row_id, payload.count)
    return {"created": len(created), "seat_numbers": [s.seat_number for s in created]}


@app.get("/rows/{row_id}/seats")
def list_seats(row_id: int, svc: Services = Depends(_services)) -> list[dict]:
    if not svc.rows.get_row(row_id):
        raise HTTPException(status_code=404, detail="row not found")
    return _seat_list(svc.seats.seats_by_row(row_id))


@app.get("/rows/{row_id}/available-seats")
def row_available_seats(row_id: int, event_id: int, svc: Services = Depends(_services)) -> list[dict]:
    _event_or_404(svc, event_id)
    return _seat_list(svc.rows.available_seats_in_row(row_id, event_id))


@app.post("/rows/{row_id}/recommend-closest")
def recommend_closest(row_id: int, payload: ClosestSeatRequest, svc: Services = Depends(_services)) -> dict:
    _event_or_404(svc, payload.event_id)
    seat = svc.rows.recommend_closest_seat(payload.section_id, row_id, payload.selected_seat_numbers, payload.event_id)
    return {"seat": seat.model_dump() if seat else None}


# Seats


@app.delete("/seats/{seat_id}")
def delete_seat(seat_id: int, svc: Services = Depends(_services)) -> dict:
    svc.seats.delete_seat(seat_id)
    return {"deleted": True}


@app.post("/seats/{seat_id}/reserve")
def reserve_seat(seat_id: int, payload: ReserveRequest, svc: Services = Depends(_services)) -> dict:
    event = _event_or_404(svc, payload.event_id)
    customer = svc.repos.customers.read(payload.customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="customer not found")
    ticket = svc.seats.reserve(seat_id, event, customer, payload.price, payload.ticket_type)
    return ticket.model_dump()


@app.post("/seats/{seat_id}/unreserve")
def unreserve_seat(seat_id: int, payload: UnreserveRequest, svc: Services = Depends(_services)) -> dict:
    svc.seats.unreserve(seat_id, payload.event_id)
    return {"unreserved": True}


@app.get("/seats/{seat_id}/reserved")
def seat_reserved(seat_id: int, event_id: int, svc: Services = Depends(_services)) -> dict:
    if not svc.seats.get_seat(seat_id):
        raise HTTPException(status_code=404, detail="seat not found")
    _event_or_404(svc, event_id)
    return {"seat_id": seat_id, "event_id": event_id, "reserved": svc.seats.is_reserved_for_event(seat_id, event_id)}


# Events, customers and recommendations


@app.post("/events")
def register_event(payload: EventCreate, svc: Services = Depends(_services)) -> dict:
    if payload.venue_id is not None and not svc.venues.get_venue(payload.venue_id):
        raise HTTPException(status_code=404, detail="venue not found")
    with transaction(svc.repos.session):
        e = svc.repos.events.create(Event(name=payload.name, venue_id=payload.venue_id))
    return e.model_dump()


@app.get("/events/{event_id}/sold-out")
def event_sold_out(event_id: int, svc: Services = Depends(_services)) -> dict:
    event = _event_or_404(svc, event_id)
    return {"event_id": event_id, "sold_out": svc.venues.is_sold_out(event)}


@app.post("/customers")
def register_customer(payload: CustomerCreate, svc: Services = Depends(_services)) -> dict:
    c = Customer(username=payload.username)
    c.set_preferences(payload.preferences)
    with transaction(svc.repos.session):
        c = svc.repos.customers.create(c)
    return {"id": c.id, "username": c.username, "preferences": c.preferences()}


@app.post("/recommendations")
def recommend_seat(payload: RecommendationRequest, svc: Services = Depends(_services)) -> dict:
    customer = svc.repos.customers.read(payload.customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="customer not found")
    venue = svc.venues.get_venue(payload.venue_id)
    if not venue:
        raise HTTPException(status_code=404, detail="venue not found")
    event = _event_or_404(svc, payload.event_id)
    seat = svc.recommendations.recommend_seat(customer, venue, event)
    return {"seat": seat.model_dump() if seat else None}
